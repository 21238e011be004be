"""
Feature: the identity-bearing node of a feature model.

A feature is a flat value: a display name plus a stable identifier.
Readers that only know one of the two (legacy single-field construction)
may omit the id, in which case the name doubles as id.

ARCHITECTURAL RULE:
    Features are immutable.
    Uniqueness of names and ids is a property of the model that owns them,
    not of the feature itself; the helpers below only compare.
"""

from dataclasses import dataclass
from typing import Optional

from cfm.errors import ConstructionError


@dataclass(frozen=True)
class Feature:
    """
    A single feature.

    Properties:
        name:
            Human-readable, non-empty name (e.g. "Bamboo Bike").
            This is what the canonical text rendering prints.

        id:
            Non-empty identifier used by readers to resolve references
            (e.g. SPLOT "_r_3", FeatureIDE uses the name itself).
            Defaults to the name when omitted.

    Equality:
        Two features are equal iff both name and id are equal.
    """

    name: str
    id: Optional[str] = None

    def __post_init__(self):
        if not self.name:
            raise ConstructionError("Feature name cannot be empty!")
        if self.id is None:
            object.__setattr__(self, "id", self.name)
        elif not self.id:
            raise ConstructionError("Feature id cannot be empty!")

    def is_name_duplicate(self, name: str) -> bool:
        return self.name == name

    def is_id_duplicate(self, id: str) -> bool:
        return self.id == id

    def is_duplicate(self, other: "Feature") -> bool:
        """True iff `other` has both the same name and the same id."""
        return self.is_name_duplicate(other.name) and self.is_id_duplicate(other.id)

    def __str__(self) -> str:
        return self.name


__all__ = ["Feature"]
