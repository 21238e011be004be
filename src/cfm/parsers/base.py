"""
Reader contract shared by every feature model format (Raw Input → CFM).

Each reader:
    - recognises its own files (`check_format`), never raising on bad input
    - builds a FeatureModel exclusively through the construction API, in
      the order features/relationships/constraints appear in the file
    - reports any failure as FeatureModelParserError, chaining the core
      ConstructionError / FeatureLookupError that caused it
"""

import logging
import os
from abc import ABC, abstractmethod
from enum import Enum
from typing import Optional, Tuple

from cfm.errors import ConstructionError, FeatureLookupError, FeatureModelError
from cfm.model import FeatureModel

logger = logging.getLogger(__name__)


class FMFormat(Enum):
    """Supported feature model file formats."""
    SXFM = "sxfm"                # SPLOT
    FEATUREIDE = "featureide"    # FeatureIDE XML
    XMI = "xmi"                  # v.control
    GLENCOE = "glencoe"          # Glencoe JSON
    DESCRIPTIVE = "descriptive"  # canonical text


class FeatureModelParserError(FeatureModelError):
    """Raised when a feature model file cannot be read."""
    pass


def read_text(file_path: str) -> str:
    try:
        with open(file_path, 'r', encoding='utf-8') as f:
            return f.read()
    except FileNotFoundError:
        raise FileNotFoundError(f"Feature model file not found: {file_path}")


class FeatureModelParser(ABC):
    """
    Base class for format readers.

    Subclasses declare:
        fm_format: the FMFormat they read
        extensions: accepted file extensions (lower case, with dot)
        names_from_file: name the model after the file stem when the
            content declares no name

    and implement:
        check_content(content) -> bool
        _build(content, fm) -> Optional[str]
    """

    fm_format: FMFormat
    extensions: Tuple[str, ...] = ()
    names_from_file = False

    def check_format(self, file_path: str) -> bool:
        """
        Check the extension of the file, then its structure.

        Returns:
            True if this reader can parse the file, False otherwise
        """
        _, ext = os.path.splitext(file_path)
        if ext.lower() not in self.extensions:
            return False
        try:
            content = read_text(file_path)
        except (OSError, UnicodeDecodeError):
            return False
        return self.check_content(content)

    @abstractmethod
    def check_content(self, content: str) -> bool:
        """True if `content` has the structure of this format."""

    @abstractmethod
    def _build(self, content: str, fm: FeatureModel) -> Optional[str]:
        """
        Populate `fm` from `content` through the construction API.

        Returns:
            The model name declared by the content, if any
        """

    def parse_string(self, content: str, name: Optional[str] = None) -> FeatureModel:
        """
        Parse file content into a FeatureModel.

        Args:
            content: Whole file content
            name: Fallback model name, used when the content declares none

        Raises:
            FeatureModelParserError: if the content is invalid
        """
        fm = FeatureModel()
        try:
            declared_name = self._build(content, fm)
        except (ConstructionError, FeatureLookupError) as e:
            raise FeatureModelParserError(str(e)) from e

        if fm.get_num_of_features() == 0:
            raise FeatureModelParserError("Couldn't parse any features in the feature model file!")
        if declared_name or name:
            fm.set_name(declared_name or name)
        return fm

    def parse(self, file_path: str) -> FeatureModel:
        """
        Parse a feature model file.

        Raises:
            FeatureModelParserError: wrong format or invalid content
        """
        if not self.check_format(file_path):
            raise FeatureModelParserError(
                f"The format of file is not {self.fm_format.name} format "
                f"or there are errors in the file! [file={file_path}]"
            )
        logger.debug("Parsing the feature model file [file=%s, format=%s]",
                     file_path, self.fm_format.value)
        name = None
        if self.names_from_file:
            name = os.path.splitext(os.path.basename(file_path))[0]
        fm = self.parse_string(read_text(file_path), name=name)
        logger.info("Parsed feature model [file=%s, features=%d, relationships=%d, constraints=%d]",
                    os.path.basename(file_path), fm.get_num_of_features(),
                    fm.get_num_of_relationships(), fm.get_num_of_constraints())
        return fm


__all__ = [
    "FMFormat",
    "FeatureModelParser",
    "FeatureModelParserError",
    "read_text",
]
