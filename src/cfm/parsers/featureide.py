"""
FeatureIDE XML reader.

    <featureModel>
        <struct>
            <and mandatory="true" name="Root">
                <feature mandatory="true" name="A"/>
                <alt name="B">
                    <feature name="B1"/>
                    <feature name="B2"/>
                </alt>
            </and>
        </struct>
        <constraints>
            <rule><imp><var>A</var><var>B1</var></imp></rule>
        </constraints>
    </featureModel>

Feature ids are the feature names.
"""

import logging
import warnings
import xml.etree.ElementTree as ET
from typing import List, Optional

from cfm.errors import FeatureLookupError
from cfm.model import Feature, FeatureModel, RelationshipType
from cfm.parsers.base import FeatureModelParser, FeatureModelParserError, FMFormat

logger = logging.getLogger(__name__)

_NODE_TAGS = ("and", "or", "alt", "feature")
_RULE_TAGS = ("imp", "not", "disj", "conj", "eq", "var")


def _feature_children(element: ET.Element) -> List[ET.Element]:
    return [child for child in element if child.tag in _NODE_TAGS]


def _var_text(element: ET.Element) -> str:
    if element.tag != "var" or not (element.text or "").strip():
        raise FeatureModelParserError(f"Expected a <var> element, found <{element.tag}>")
    return element.text.strip()


def _negated_var(element: ET.Element) -> str:
    operands = list(element)
    if len(operands) != 1:
        raise FeatureModelParserError("A <not> rule needs exactly one operand")
    return "~" + _var_text(operands[0])


class FeatureIDEParser(FeatureModelParser):
    """Reads FeatureIDE .xml files."""

    fm_format = FMFormat.FEATUREIDE
    extensions = (".xml",)
    names_from_file = True

    def check_content(self, content: str) -> bool:
        try:
            root = ET.fromstring(content)
        except ET.ParseError:
            return False
        return (root.tag == "featureModel"
                and root.find(".//struct") is not None
                and root.find(".//constraints") is not None)

    def _build(self, content: str, fm: FeatureModel) -> Optional[str]:
        try:
            root = ET.fromstring(content)
        except ET.ParseError as e:
            raise FeatureModelParserError(f"Invalid FeatureIDE XML: {e}") from e

        struct = root.find(".//struct")
        if struct is None:
            raise FeatureModelParserError("Missing <struct> element")

        logger.debug("Generating features and relationships")
        self._examine_node(struct, fm)
        if fm.get_num_of_features() == 0:
            return None

        logger.debug("Generating constraints")
        for rule in root.iter("rule"):
            self._examine_rule(rule, fm)
        return None

    def _create_child_features(self, element: ET.Element, fm: FeatureModel) -> List[Feature]:
        features = []
        for child in _feature_children(element):
            name = child.get("name", "")
            try:
                feature = fm.get_feature(name)
            except FeatureLookupError:
                feature = fm.add_feature(name, name)
            features.append(feature)
        return features

    def _examine_node(self, element: ET.Element, fm: FeatureModel) -> None:
        """Children are created before any relationship, then visited in order."""
        child_features = self._create_child_features(element, fm)

        if element.tag != "struct":
            parent = fm.get_feature(element.get("name", ""))

            if element.tag == "and":
                for child, feature in zip(_feature_children(element), child_features):
                    if child.get("mandatory") == "true":
                        fm.add_relationship(RelationshipType.MANDATORY, parent, [feature])
                    else:
                        fm.add_relationship(RelationshipType.OPTIONAL, feature, [parent])
            elif element.tag in ("or", "alt"):
                if not child_features:
                    raise FeatureModelParserError(
                        f"{element.tag.upper()} node must have at least one child feature!"
                    )
                rtype = RelationshipType.OR if element.tag == "or" else RelationshipType.ALTERNATIVE
                fm.add_relationship(rtype, parent, child_features)

        for child in _feature_children(element):
            self._examine_node(child, fm)

    def _examine_rule(self, rule: ET.Element, fm: FeatureModel) -> None:
        node = next((child for child in rule if child.tag in _RULE_TAGS), None)
        if node is None:
            raise FeatureModelParserError("Empty constraint rule")

        if node.tag == "not":
            fm.add_constraint(RelationshipType.THREE_CNF, _negated_var(node))
        elif node.tag == "imp":
            if len(node) != 2:
                raise FeatureModelParserError("An <imp> rule needs exactly two operands")
            left = fm.get_feature(_var_text(node[0]))
            right = fm.get_feature(_var_text(node[1]))
            fm.add_constraint(RelationshipType.REQUIRES, left, [right])
        elif node.tag == "disj":
            clauses: List[str] = []
            self._explore_disjunction(node, clauses)
            self._add_disjunction(clauses, fm)
        else:
            raise FeatureModelParserError(f"Unexpected constraint type: {node.tag}")

    def _explore_disjunction(self, element: ET.Element, clauses: List[str]) -> None:
        for child in element:
            if child.tag == "disj":
                self._explore_disjunction(child, clauses)
            elif child.tag == "var":
                clauses.append(_var_text(child))
            elif child.tag == "not":
                clauses.append(_negated_var(child))
            else:
                raise FeatureModelParserError(f"Unexpected element in disjunction: <{child.tag}>")

    def _add_disjunction(self, clauses: List[str], fm: FeatureModel) -> None:
        if len(clauses) == 2:
            first, second = clauses
            first_neg, second_neg = first.startswith("~"), second.startswith("~")
            if first_neg and second_neg:
                fm.add_constraint(RelationshipType.EXCLUDES,
                                  fm.get_feature(first[1:]), [fm.get_feature(second[1:])])
                return
            if first_neg != second_neg:
                negative, positive = (first, second) if first_neg else (second, first)
                fm.add_constraint(RelationshipType.REQUIRES,
                                  fm.get_feature(negative[1:]), [fm.get_feature(positive)])
                return
            warnings.warn(
                f"Disjunction '{' | '.join(clauses)}' is neither requires nor excludes; stored as 3cnf",
                UserWarning,
            )
        fm.add_constraint(RelationshipType.THREE_CNF, " | ".join(clauses))


__all__ = ["FeatureIDEParser"]
