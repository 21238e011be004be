"""Readers turning feature model files into FeatureModel objects."""

from .base import FeatureModelParser, FeatureModelParserError, FMFormat
from .descriptive import DescriptiveFormatParser
from .factory import detect_format, get_parser, parse_file
from .featureide import FeatureIDEParser
from .glencoe import GlencoeParser
from .sxfm import SXFMParser
from .xmi import XMIParser

__all__ = [
    "FMFormat",
    "FeatureModelParser",
    "FeatureModelParserError",
    "SXFMParser",
    "FeatureIDEParser",
    "XMIParser",
    "GlencoeParser",
    "DescriptiveFormatParser",
    "get_parser",
    "detect_format",
    "parse_file",
]
