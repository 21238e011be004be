"""Parser lookup by format, and format detection for files."""

import logging
from typing import Dict, Optional, Type

from cfm.model import FeatureModel
from cfm.parsers.base import FeatureModelParser, FeatureModelParserError, FMFormat
from cfm.parsers.descriptive import DescriptiveFormatParser
from cfm.parsers.featureide import FeatureIDEParser
from cfm.parsers.glencoe import GlencoeParser
from cfm.parsers.sxfm import SXFMParser
from cfm.parsers.xmi import XMIParser

logger = logging.getLogger(__name__)

PARSERS: Dict[FMFormat, Type[FeatureModelParser]] = {
    FMFormat.SXFM: SXFMParser,
    FMFormat.FEATUREIDE: FeatureIDEParser,
    FMFormat.XMI: XMIParser,
    FMFormat.GLENCOE: GlencoeParser,
    FMFormat.DESCRIPTIVE: DescriptiveFormatParser,
}


def get_parser(fm_format: FMFormat) -> FeatureModelParser:
    """Return a fresh reader for `fm_format`."""
    try:
        return PARSERS[fm_format]()
    except KeyError:
        raise ValueError(f"Unsupported feature model format: {fm_format}")


def detect_format(file_path: str) -> FMFormat:
    """
    Find the format of a feature model file.

    Raises:
        FeatureModelParserError: if no reader accepts the file
    """
    for fm_format, parser_cls in PARSERS.items():
        if parser_cls().check_format(file_path):
            logger.debug("Detected format [file=%s, format=%s]", file_path, fm_format.value)
            return fm_format
    raise FeatureModelParserError(f"Unknown feature model format: {file_path}")


def parse_file(file_path: str, fm_format: Optional[FMFormat] = None) -> FeatureModel:
    """Parse a file, detecting its format unless one is given."""
    if fm_format is None:
        fm_format = detect_format(file_path)
    return get_parser(fm_format).parse(file_path)


__all__ = ["PARSERS", "get_parser", "detect_format", "parse_file"]
