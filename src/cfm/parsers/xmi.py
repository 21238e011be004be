"""
XMI reader for v.control feature models.

    <xmi:XMI xmlns:xmi="http://www.omg.org/XMI" xmlns:xsi="...">
      <models xsi:type="com.prostep.vcontrol.model.feature:FeatureModel">
        <rootFeature xsi:type="...feature:Feature" id="r" name="Root">
          <children xsi:type="...feature:Feature" id="a" name="A" optional="false"/>
          <children xsi:type="...feature:FeatureGroup" id="g" name="G" min="1">
            <children xsi:type="...feature:Feature" id="g1" name="G1"/>
            <children xsi:type="...feature:Feature" id="g2" name="G2"/>
          </children>
        </rootFeature>
      </models>
      <constraints>
        <rootTerm xsi:type="com.prostep.vcontrol.model.terms:ImpliesTerm">
          <leftOperand xsi:type="...terms:FeatureRefTerm" element="a"/>
          <rightOperand xsi:type="...terms:FeatureRefTerm" element="g1"/>
        </rootTerm>
      </constraints>
    </xmi:XMI>

Feature groups are features of their own; a group without a `max`
attribute is an alternative group, otherwise an or group.
"""

import logging
import xml.etree.ElementTree as ET
from typing import List, Optional

from cfm.errors import FeatureLookupError
from cfm.model import Feature, FeatureModel, RelationshipType
from cfm.parsers.base import FeatureModelParser, FeatureModelParserError, FMFormat

logger = logging.getLogger(__name__)

FEATURE_TYPE = "com.prostep.vcontrol.model.feature:Feature"
FEATURE_GROUP_TYPE = "com.prostep.vcontrol.model.feature:FeatureGroup"
IMPLIES_TYPE = "com.prostep.vcontrol.model.terms:ImpliesTerm"
EXCLUDES_TYPE = "com.prostep.vcontrol.model.terms:ExcludesTerm"


def _local(tag: str) -> str:
    """Strip the `{namespace}` prefix ElementTree puts on qualified names."""
    return tag.rsplit("}", 1)[-1]


def _attr(element: ET.Element, name: str) -> str:
    for key, value in element.attrib.items():
        if _local(key) == name:
            return value
    return ""


def _has_descendant(element: ET.Element, name: str) -> bool:
    return any(_local(e.tag) == name for e in element.iter())


def _feature_children(element: ET.Element) -> List[ET.Element]:
    return [child for child in element if _local(child.tag) in ("rootFeature", "children")]


class XMIParser(FeatureModelParser):
    """Reads v.control .xmi files."""

    fm_format = FMFormat.XMI
    extensions = (".xmi",)

    def check_content(self, content: str) -> bool:
        try:
            root = ET.fromstring(content)
        except ET.ParseError:
            return False
        return (_local(root.tag) == "XMI"
                and _has_descendant(root, "models")
                and _has_descendant(root, "constraints"))

    def _build(self, content: str, fm: FeatureModel) -> Optional[str]:
        try:
            root = ET.fromstring(content)
        except ET.ParseError as e:
            raise FeatureModelParserError(f"Invalid XMI document: {e}") from e

        logger.debug("Generating features and relationships")
        for models in (e for e in root.iter() if _local(e.tag) == "models"):
            self._examine_node(models, fm)
        if fm.get_num_of_features() == 0:
            return None

        logger.debug("Generating constraints")
        for constraints in (e for e in root.iter() if _local(e.tag) == "constraints"):
            self._examine_constraint(constraints, fm)
        return None

    def _create_child_features(self, element: ET.Element, fm: FeatureModel) -> List[Feature]:
        features = []
        for child in _feature_children(element):
            fid = _attr(child, "id")
            try:
                feature = fm.get_feature(fid)
            except FeatureLookupError:
                feature = fm.add_feature(_attr(child, "name"), fid)
            features.append(feature)
        return features

    def _examine_node(self, element: ET.Element, fm: FeatureModel) -> None:
        child_features = self._create_child_features(element, fm)

        if _local(element.tag) != "models":
            parent = fm.get_feature(_attr(element, "id"))
            node_type = _attr(element, "type")

            if node_type == FEATURE_TYPE:
                for child, feature in zip(_feature_children(element), child_features):
                    if _attr(child, "optional") == "false":
                        fm.add_relationship(RelationshipType.MANDATORY, parent, [feature])
                    else:
                        fm.add_relationship(RelationshipType.OPTIONAL, feature, [parent])
            elif node_type == FEATURE_GROUP_TYPE:
                if not child_features:
                    raise FeatureModelParserError(
                        "OR and ALT relationships must have at least one child feature"
                    )
                rtype = RelationshipType.OR if _attr(element, "max") else RelationshipType.ALTERNATIVE
                fm.add_relationship(rtype, parent, child_features)
            else:
                raise FeatureModelParserError(f"Unexpected relationship type: {node_type}")

        for child in _feature_children(element):
            self._examine_node(child, fm)

    def _examine_constraint(self, element: ET.Element, fm: FeatureModel) -> None:
        terms = list(element)
        if not terms:
            raise FeatureModelParserError("Empty constraint")
        term = terms[0]
        operands = list(term)
        if len(operands) < 2:
            raise FeatureModelParserError("A constraint term needs a left and a right operand")

        left = fm.get_feature(_attr(operands[0], "element"))
        right = fm.get_feature(_attr(operands[1], "element"))

        term_type = _attr(term, "type")
        if term_type == IMPLIES_TYPE:
            fm.add_constraint(RelationshipType.REQUIRES, left, [right])
        elif term_type == EXCLUDES_TYPE:
            fm.add_constraint(RelationshipType.EXCLUDES, left, [right])
        else:
            raise FeatureModelParserError(f"Unexpected constraint type: {term_type}")


__all__ = ["XMIParser"]
