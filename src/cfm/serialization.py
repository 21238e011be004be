"""
Serialization helpers for CFM objects (FeatureModel, Feature, Relationship).

Provides lossless JSON/YAML round-trip via intermediate dict representation.
Basic relationships reference features by id; 3CNF constraints keep their
clause texts. Loading goes back through the construction API, so a
serialized model is re-validated on the way in.
"""
from __future__ import annotations

import json
from typing import Any, Dict

import yaml

from cfm.errors import ConstructionError
from cfm.feature import Feature
from cfm.model import FeatureModel
from cfm.relationships import (
    BasicRelationship,
    Relationship,
    RelationshipType,
    ThreeCNFConstraint,
)


def feature_to_dict(f: Feature) -> Dict[str, Any]:
    return {"name": f.name, "id": f.id}


def relationship_to_dict(r: Relationship) -> Dict[str, Any]:
    if isinstance(r, BasicRelationship):
        return {
            "type": r.type.value,
            "left": r.left.id,
            "right": [f.id for f in r.right],
        }
    if isinstance(r, ThreeCNFConstraint):
        return {"type": r.type.value, "clauses": [str(c) for c in r.clauses]}
    raise TypeError(f"Unsupported Relationship type: {type(r)}")


def _add_relationship_from_dict(fm: FeatureModel, d: Dict[str, Any], as_constraint: bool) -> None:
    try:
        rtype = RelationshipType(d["type"])
    except (KeyError, ValueError) as e:
        raise ConstructionError(f"Unsupported relationship dict: {d}") from e

    if rtype == RelationshipType.THREE_CNF:
        fm.add_constraint(rtype, " | ".join(d.get("clauses", [])))
        return

    left = fm.get_feature(d["left"])
    right = [fm.get_feature(fid) for fid in d.get("right", [])]
    if as_constraint:
        fm.add_constraint(rtype, left, right)
    else:
        fm.add_relationship(rtype, left, right)


def model_to_dict(fm: FeatureModel) -> Dict[str, Any]:
    return {
        "name": fm.name,
        "consistency": fm.consistency,
        "features": [feature_to_dict(f) for f in fm.features],
        "relationships": [relationship_to_dict(r) for r in fm.relationships],
        "constraints": [relationship_to_dict(c) for c in fm.constraints],
    }


def model_from_dict(d: Dict[str, Any]) -> FeatureModel:
    fm = FeatureModel(name=d.get("name") or None)
    for f in d.get("features", []):
        fm.add_feature(f["name"], f.get("id") or f["name"])
    for r in d.get("relationships", []):
        _add_relationship_from_dict(fm, r, as_constraint=False)
    for c in d.get("constraints", []):
        _add_relationship_from_dict(fm, c, as_constraint=True)
    fm.consistency = bool(d.get("consistency", False))
    return fm


def model_to_json(fm: FeatureModel) -> str:
    return json.dumps(model_to_dict(fm), sort_keys=True)


def model_from_json(s: str) -> FeatureModel:
    d = json.loads(s)
    return model_from_dict(d)


def model_to_yaml(fm: FeatureModel) -> str:
    return yaml.safe_dump(model_to_dict(fm), sort_keys=False)


def model_from_yaml(s: str) -> FeatureModel:
    d = yaml.safe_load(s)
    return model_from_dict(d)
