"""
Descriptive (.fm4conf) reader: the canonical text form read back in.

    FEATURES:
        Bamboo Bike
        Frame
    RELATIONSHIPS:
        mandatory(Bamboo Bike, Frame)
    CONSTRAINTS:
        3cnf(~Frame, Bamboo Bike)

Feature ids are the feature names. Blank lines and lines starting with `#`
are ignored. Since `, ` separates the operands of a rule, feature names must
not contain it.
"""

import logging
import re
from typing import List, Optional

from cfm.model import FeatureModel, RelationshipType
from cfm.parsers.base import FeatureModelParser, FeatureModelParserError, FMFormat

logger = logging.getLogger(__name__)

FEATURES_HEADER = "FEATURES:"
RELATIONSHIPS_HEADER = "RELATIONSHIPS:"
CONSTRAINTS_HEADER = "CONSTRAINTS:"

_RULE_RE = re.compile(r'^(?P<kind>[A-Za-z0-9]+)\((?P<args>.*)\)$')


def _content_lines(content: str) -> List[str]:
    lines = []
    for line in content.splitlines():
        line = line.strip()
        if line and not line.startswith("#"):
            lines.append(line)
    return lines


def _parse_rule(line: str):
    m = _RULE_RE.match(line)
    if not m:
        raise FeatureModelParserError(f"Invalid rule: {line}")
    try:
        rtype = RelationshipType(m.group("kind"))
    except ValueError as e:
        raise FeatureModelParserError(f"Unknown relationship type '{m.group('kind')}'") from e
    args = [arg.strip() for arg in m.group("args").split(",")]
    return rtype, args


class DescriptiveFormatParser(FeatureModelParser):
    """Reads .fm4conf files written in the canonical text form."""

    fm_format = FMFormat.DESCRIPTIVE
    extensions = (".fm4conf",)

    def check_content(self, content: str) -> bool:
        lines = _content_lines(content)
        return bool(lines) and lines[0] == FEATURES_HEADER

    def _build(self, content: str, fm: FeatureModel) -> Optional[str]:
        section = None
        for line in _content_lines(content):
            if line in (FEATURES_HEADER, RELATIONSHIPS_HEADER, CONSTRAINTS_HEADER):
                section = line
                logger.debug("Reading section %s", line)
            elif section == FEATURES_HEADER:
                fm.add_feature(line, line)
            elif section == RELATIONSHIPS_HEADER:
                rtype, args = _parse_rule(line)
                fm.add_relationship(rtype, fm.get_feature(args[0]),
                                    [fm.get_feature(arg) for arg in args[1:]])
            elif section == CONSTRAINTS_HEADER:
                rtype, args = _parse_rule(line)
                if rtype == RelationshipType.THREE_CNF:
                    fm.add_constraint(rtype, " | ".join(args))
                else:
                    fm.add_constraint(rtype, fm.get_feature(args[0]),
                                      [fm.get_feature(arg) for arg in args[1:]])
            else:
                raise FeatureModelParserError(f"Content before the {FEATURES_HEADER} section: {line}")
        return None


__all__ = ["DescriptiveFormatParser"]
