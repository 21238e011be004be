"""
Glencoe JSON reader.

    {
      "features": {
        "root": {"name": "Root", "type": "FEATURE"},
        "a":    {"name": "A", "optional": false},
        ...
      },
      "tree": {"id": "root", "children": [{"id": "a"}, ...]},
      "constraints": {
        "c1": {"type": "ImpliesTerm",
               "operands": [{"operands": ["a"]}, {"operands": ["b"]}]}
      }
    }

The `type` of a feature object decides the relationship to its children:
FEATURE (each child by its `optional` flag), XOR (alternative) or OR.
"""

import json
import logging
from typing import Any, Dict, List, Optional

from cfm.errors import FeatureLookupError
from cfm.model import Feature, FeatureModel, RelationshipType
from cfm.parsers.base import FeatureModelParser, FeatureModelParserError, FMFormat

logger = logging.getLogger(__name__)

_CONSTRAINT_TYPES = {
    "ImpliesTerm": RelationshipType.REQUIRES,
    "ExcludesTerm": RelationshipType.EXCLUDES,
}


def _load(content: str) -> Dict[str, Any]:
    try:
        data = json.loads(content)
    except json.JSONDecodeError as e:
        raise FeatureModelParserError(f"Invalid Glencoe JSON: {e}") from e
    if not isinstance(data, dict):
        raise FeatureModelParserError("Glencoe document must be a JSON object")
    for key in ("features", "tree", "constraints"):
        if not isinstance(data.get(key), dict):
            raise FeatureModelParserError(f"Glencoe document has no '{key}' object")
    return data


def _feature_object(fid: str, features: Dict[str, Any]) -> Dict[str, Any]:
    obj = features.get(fid)
    if not isinstance(obj, dict):
        raise FeatureModelParserError(f"Couldn't find the feature object '{fid}'")
    return obj


def _operand_id(operand: Any) -> str:
    try:
        return str(operand["operands"][0])
    except (KeyError, IndexError, TypeError) as e:
        raise FeatureModelParserError(f"Malformed constraint operand: {operand!r}") from e


class GlencoeParser(FeatureModelParser):
    """Reads Glencoe .json files."""

    fm_format = FMFormat.GLENCOE
    extensions = (".json",)

    def check_content(self, content: str) -> bool:
        try:
            _load(content)
        except FeatureModelParserError:
            return False
        return True

    def _build(self, content: str, fm: FeatureModel) -> Optional[str]:
        data = _load(content)
        features = data["features"]
        tree = data["tree"]

        logger.debug("Generating features and relationships")
        root_id = tree.get("id")
        if not root_id:
            raise FeatureModelParserError("Couldn't find the root feature!")
        fm.add_feature(_feature_object(root_id, features).get("name", ""), root_id)
        self._examine_node(tree, features, fm)

        logger.debug("Generating constraints")
        for constraint in data["constraints"].values():
            self._examine_constraint(constraint, fm)
        return None

    def _create_child_features(self, children: List[Dict[str, Any]], features: Dict[str, Any],
                               fm: FeatureModel) -> List[Feature]:
        created = []
        for child in children:
            fid = child.get("id", "")
            try:
                feature = fm.get_feature(fid)
            except FeatureLookupError:
                feature = fm.add_feature(_feature_object(fid, features).get("name", ""), fid)
            created.append(feature)
        return created

    def _examine_node(self, node: Dict[str, Any], features: Dict[str, Any], fm: FeatureModel) -> None:
        children = node.get("children")
        if not children:
            return

        parent_id = node.get("id", "")
        parent = fm.get_feature(parent_id)
        child_features = self._create_child_features(children, features, fm)

        parent_type = _feature_object(parent_id, features).get("type")
        if parent_type == "FEATURE":
            for feature in child_features:
                child_obj = _feature_object(feature.id, features)
                if "optional" not in child_obj:
                    continue
                if child_obj["optional"]:
                    fm.add_relationship(RelationshipType.OPTIONAL, feature, [parent])
                else:
                    fm.add_relationship(RelationshipType.MANDATORY, parent, [feature])
        elif parent_type == "XOR":
            fm.add_relationship(RelationshipType.ALTERNATIVE, parent, child_features)
        elif parent_type == "OR":
            fm.add_relationship(RelationshipType.OR, parent, child_features)
        elif parent_type is not None:
            raise FeatureModelParserError(f"Unexpected relationship type: {parent_type}")

        for child in children:
            self._examine_node(child, features, fm)

    def _examine_constraint(self, constraint: Dict[str, Any], fm: FeatureModel) -> None:
        if not isinstance(constraint, dict):
            raise FeatureModelParserError(f"Malformed constraint: {constraint!r}")
        if "type" not in constraint:
            return
        rtype = _CONSTRAINT_TYPES.get(constraint["type"])
        if rtype is None:
            raise FeatureModelParserError(f"Unexpected constraint type: {constraint['type']}")

        operands = constraint.get("operands") or []
        if len(operands) < 2:
            raise FeatureModelParserError("A constraint needs a left and a right operand")
        left = fm.get_feature(_operand_id(operands[0]))
        right = fm.get_feature(_operand_id(operands[1]))
        fm.add_constraint(rtype, left, [right])


__all__ = ["GlencoeParser"]
