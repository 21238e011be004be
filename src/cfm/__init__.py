"""
Canonical Feature Model (CFM) Package

This is the single in-memory representation of a feature model, whatever
file format it was read from.

ARCHITECTURAL GUARANTEE:
------------------------
The core (cfm.feature, cfm.relationships, cfm.model) contains ZERO
knowledge of:
    - SPLOT / FeatureIDE / v.control / Glencoe file formats
    - Constraint solving or consistency checking
    - Diagram rendering

The core defines FEATURE MODEL STRUCTURE only.

Readers (cfm.parsers) build models through the construction API.
Everything else (serialization, analysis, backends) consumes them unchanged.
"""

from cfm.errors import ConstructionError, FeatureLookupError, FeatureModelError
from cfm.feature import Feature
from cfm.relationships import (
    BasicRelationship,
    Clause,
    Relationship,
    RelationshipType,
    ThreeCNFConstraint,
)
from cfm.model import FeatureModel

__version__ = "0.1.0"

__all__ = [
    "ConstructionError",
    "FeatureLookupError",
    "FeatureModelError",
    "Feature",
    "Clause",
    "Relationship",
    "RelationshipType",
    "BasicRelationship",
    "ThreeCNFConstraint",
    "FeatureModel",
]
