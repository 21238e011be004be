"""
Core Feature Model Objects

Defines the aggregate of the Canonical Feature Model:

    - FeatureModel (root container): ordered features, ordered tree
      relationships, ordered cross-tree constraints

Features and relationships themselves live in `cfm.feature` and
`cfm.relationships`; they are re-exported here for convenience.

ARCHITECTURAL RULE:
    A FeatureModel is written once (by a single reader, during one parse
    pass) and read many times. The only mutations are appends through the
    construction API, and every append validates before it stores.

    Insertion order is part of the contract: features, relationships and
    constraints are always reported in the order they were added.
"""

import logging
from typing import Dict, List, Optional, Sequence, Set, Tuple, Union

from cfm.errors import ConstructionError, FeatureLookupError
from cfm.feature import Feature
from cfm.relationships import (
    BASIC_CONSTRAINT_TYPES,
    GROUP_TYPES,
    STRUCTURAL_TYPES,
    BasicRelationship,
    Clause,
    Relationship,
    RelationshipType,
    ThreeCNFConstraint,
)

logger = logging.getLogger(__name__)


class FeatureModel:
    """
    Root container for a whole feature model.

    This is THE primary artifact. Every reader produces one, every backend
    consumes one.

    Properties:
        name:
            Display name. Set explicitly through `set_name`; otherwise the
            name of the root feature.

        features:
            All features in discovery order. The first one is the root.

        relationships:
            Tree relationships (mandatory, optional, or, alternative)

        constraints:
            Cross-tree constraints (requires, excludes, 3cnf)

        consistency:
            Caller-owned flag. The model never computes it.

    INVARIANTS:
        - Feature names are unique, feature ids are unique
        - Every feature referenced by a basic relationship is in `features`
        - Every stored relationship satisfies the arity of its type
    """

    def __init__(self, name: Optional[str] = None):
        self._name = name
        self._features: List[Feature] = []
        self._features_by_name: Dict[str, Feature] = {}
        self._features_by_id: Dict[str, Feature] = {}
        self._relationships: List[Relationship] = []
        self._constraints: List[Relationship] = []
        self.consistency = False

    # =========================================================================
    # PROPERTIES
    # =========================================================================

    @property
    def name(self) -> str:
        if self._name:
            return self._name
        root = self.root
        return root.name if root is not None else ""

    def set_name(self, name: str) -> None:
        self._name = name

    @property
    def root(self) -> Optional[Feature]:
        """The first feature ever added, or None for an empty model."""
        return self._features[0] if self._features else None

    @property
    def features(self) -> Tuple[Feature, ...]:
        return tuple(self._features)

    @property
    def relationships(self) -> Tuple[Relationship, ...]:
        return tuple(self._relationships)

    @property
    def constraints(self) -> Tuple[Relationship, ...]:
        return tuple(self._constraints)

    # =========================================================================
    # CONSTRUCTION API
    # =========================================================================

    def add_feature(self, name: str, id: str) -> Feature:
        """
        Append a new feature.

        Args:
            name: Non-empty name, unique within the model
            id: Non-empty id, unique within the model

        Returns:
            The stored Feature

        Raises:
            ConstructionError: on an empty or duplicate name or id
        """
        if not name:
            raise ConstructionError("Feature name cannot be empty!")
        if not id:
            raise ConstructionError("Feature id cannot be empty!")
        if name in self._features_by_name:
            raise ConstructionError(f"Feature's name {name} already exists!")
        if id in self._features_by_id:
            raise ConstructionError(f"Feature's id {id} already exists!")

        feature = Feature(name=name, id=id)
        self._features.append(feature)
        self._features_by_name[name] = feature
        self._features_by_id[id] = feature
        logger.debug("Added feature [feature=%s, id=%s]", name, id)
        return feature

    def add_relationship(self, relationship_type: RelationshipType, left: Feature,
                         right: Sequence[Feature]) -> BasicRelationship:
        """
        Append a tree relationship (mandatory, optional, or, alternative).

        The caller resolves `left` and `right` through `get_feature` first.

        Raises:
            ConstructionError: wrong type, arity mismatch, or a feature that
                does not belong to this model
        """
        if relationship_type not in STRUCTURAL_TYPES:
            raise ConstructionError(
                f"{relationship_type!r} is not a structural relationship type"
            )
        relationship = self._build_basic(relationship_type, left, right)
        self._relationships.append(relationship)
        logger.debug("Added relationship [relationship=%s]", relationship)
        return relationship

    def add_constraint(self, relationship_type: RelationshipType,
                       left: Union[Feature, str],
                       right: Optional[Sequence[Feature]] = None) -> Relationship:
        """
        Append a cross-tree constraint.

        Two forms:
            add_constraint(RelationshipType.REQUIRES, a, [b])
            add_constraint(RelationshipType.THREE_CNF, "~A | B | C")

        Raises:
            ConstructionError: wrong type for the form used, arity mismatch,
                unknown feature, or an empty/unparsable 3CNF text
        """
        if relationship_type == RelationshipType.THREE_CNF:
            if not isinstance(left, str) or right is not None:
                raise ConstructionError("A 3CNF constraint is built from its text only")
            constraint: Relationship = ThreeCNFConstraint.from_text(left)
        else:
            if relationship_type not in BASIC_CONSTRAINT_TYPES:
                raise ConstructionError(
                    f"{relationship_type!r} is not a constraint type"
                )
            if not isinstance(left, Feature) or right is None:
                raise ConstructionError(
                    f"A {relationship_type.value} constraint needs a left and a right side"
                )
            constraint = self._build_basic(relationship_type, left, right)

        self._constraints.append(constraint)
        logger.debug("Added constraint [constraint=%s]", constraint)
        return constraint

    def _build_basic(self, relationship_type: RelationshipType, left: Feature,
                     right: Sequence[Feature]) -> BasicRelationship:
        relationship = BasicRelationship(type=relationship_type, left=left, right=tuple(right))
        for feature in (relationship.left,) + relationship.right:
            if not self._is_member(feature):
                raise ConstructionError(
                    f"Feature '{feature}' is not part of the feature model"
                )
        return relationship

    def _is_member(self, feature: Feature) -> bool:
        return self._features_by_id.get(feature.id) == feature

    # =========================================================================
    # QUERY API
    # =========================================================================

    def get_feature(self, key: Union[int, str]) -> Feature:
        """
        Retrieve a feature by 0-based index or by id.

        Raises:
            FeatureLookupError: index out of bounds, or no feature has the id
        """
        if isinstance(key, int):
            if not 0 <= key < len(self._features):
                raise FeatureLookupError(f"Index {key} out of bound!")
            return self._features[key]

        if not key:
            raise FeatureLookupError("Feature id cannot be empty!")
        feature = self._features_by_id.get(key)
        if feature is None:
            raise FeatureLookupError(f"Feature '{key}' doesn't exist!")
        return feature

    def get_num_of_features(self) -> int:
        return len(self._features)

    def get_num_of_relationships(self, relationship_type: Optional[RelationshipType] = None) -> int:
        """
        Count tree relationships, optionally of one type.

        REQUIRES and EXCLUDES are counted among the constraints, since that
        is where they are stored.
        """
        if relationship_type is None:
            return len(self._relationships)
        if relationship_type in BASIC_CONSTRAINT_TYPES:
            pool = self._constraints
        else:
            pool = self._relationships
        return sum(1 for r in pool if r.is_type(relationship_type))

    def get_num_of_constraints(self) -> int:
        return len(self._constraints)

    def is_mandatory_feature(self, feature: Feature) -> bool:
        """True iff some mandatory relationship has `feature` on its right side."""
        return any(
            r.is_type(RelationshipType.MANDATORY) and r.present_at_right_side(feature)
            for r in self._relationships
        )

    def is_optional_feature(self, feature: Feature) -> bool:
        """
        True iff `feature` is an optional child or a group member.

        Optional relationships store the child on the LEFT side
        (optional(child, parent)), group relationships on the right side.
        """
        for r in self._relationships:
            if r.is_type(RelationshipType.OPTIONAL):
                if r.present_at_left_side(feature):
                    return True
            elif r.type in GROUP_TYPES:
                if r.present_at_right_side(feature):
                    return True
        return False

    def get_right_side_of_relationships(self, left_side: Feature) -> List[Feature]:
        """
        Collect the features "below" `left_side` in the tree relationships.

        For an OPTIONAL relationship with `left_side` on its right, the
        relationship's left feature is emitted (optional(child, parent) is
        stored child-first). For every other type with `left_side` on the
        left, each right-side feature is emitted. Every emitted feature is
        re-resolved by id through the model.

        Raises:
            FeatureLookupError: if a referenced id cannot be resolved
        """
        found: List[Feature] = []
        for r in self._relationships:
            if r.is_type(RelationshipType.OPTIONAL):
                if r.present_at_right_side(left_side):
                    found.append(self.get_feature(r.left.id))
            elif r.present_at_left_side(left_side):
                for right in r.right:
                    found.append(self.get_feature(right.id))
        return found

    def get_relationships_with(self, feature: Feature) -> List[Relationship]:
        """
        All relationships, then all constraints, in which `feature` takes part.

        Basic relationships match on either side; 3CNF constraints match when
        one of their literals names the feature.
        """
        found: List[Relationship] = [
            r for r in self._relationships
            if r.present_at_right_side(feature) or r.present_at_left_side(feature)
        ]
        for c in self._constraints:
            if isinstance(c, ThreeCNFConstraint):
                if c.contains(feature):
                    found.append(c)
            elif c.present_at_right_side(feature) or c.present_at_left_side(feature):
                found.append(c)
        return found

    # =========================================================================
    # MANDATORY PARENTS
    # =========================================================================

    def get_mandatory_parents(self, target: Feature) -> List[Feature]:
        """
        Find the mandatory features whose selection `target` depends on.

        Walks backwards along requires edges (B -> A for requires(A, B)) and
        through or/alternative groups (member -> gate, gate -> members),
        stopping each path at the first mandatory feature found. The root
        is never a parent. The current path is carried as an immutable
        tuple; a candidate already on the path ends that branch. Each
        non-mandatory feature is expanded at most once per call.

        3CNF constraints are not traversed.

        Returns:
            De-duplicated features in first-discovery order
        """
        parents: List[Feature] = []
        path = (target,)
        seen = {target}
        for relationship in self._parent_edges(target):
            self._explore_parent_edge(relationship, target, path, seen, parents)
        return parents

    def _parent_edges(self, feature: Feature) -> List[Relationship]:
        edges = []
        for r in self.get_relationships_with(feature):
            if r.is_type(RelationshipType.REQUIRES):
                if r.present_at_right_side(feature):
                    edges.append(r)
            elif r.type in GROUP_TYPES:
                edges.append(r)
            # TODO: follow 3CNF constraints once their implication direction is defined
        return edges

    def _explore_parent_edge(self, relationship: Relationship, feature: Feature,
                             path: Tuple[Feature, ...], seen: Set[Feature],
                             parents: List[Feature]) -> None:
        if self._is_root(feature):
            return
        for candidate in self._parent_candidates(relationship, feature):
            if self._is_root(candidate) or candidate in path:
                continue
            if self.is_mandatory_feature(candidate):
                if candidate not in parents:
                    parents.append(candidate)
                continue
            if candidate in seen:
                continue
            seen.add(candidate)
            next_path = path + (candidate,)
            for edge in self._parent_edges(candidate):
                self._explore_parent_edge(edge, candidate, next_path, seen, parents)

    @staticmethod
    def _parent_candidates(relationship: Relationship, feature: Feature) -> Tuple[Feature, ...]:
        if not isinstance(relationship, BasicRelationship):
            return ()
        if relationship.is_type(RelationshipType.REQUIRES):
            if relationship.present_at_right_side(feature):
                return (relationship.left,)
        elif relationship.type in GROUP_TYPES:
            if relationship.present_at_right_side(feature):
                return (relationship.left,)
            if relationship.present_at_left_side(feature):
                return relationship.right
        return ()

    def _is_root(self, feature: Feature) -> bool:
        root = self.root
        return root is not None and feature.name == root.name

    # =========================================================================
    # CANONICAL TEXT
    # =========================================================================

    def to_text(self) -> str:
        """
        Render the canonical text form.

        FEATURES:
        \\t<feature name>
        RELATIONSHIPS:
        \\t<conf rule>
        CONSTRAINTS:
        \\t<conf rule>

        An empty model renders as an empty string.
        """
        if not self._features:
            return ""
        lines = ["FEATURES:\n"]
        lines.extend(f"\t{feature}\n" for feature in self._features)
        lines.append("RELATIONSHIPS:\n")
        lines.extend(f"\t{r.conf_rule()}\n" for r in self._relationships)
        lines.append("CONSTRAINTS:\n")
        lines.extend(f"\t{c.conf_rule()}\n" for c in self._constraints)
        return "".join(lines)

    def __str__(self) -> str:
        return self.to_text()

    def __repr__(self) -> str:
        return (
            f"FeatureModel(name={self.name!r}, features={len(self._features)}, "
            f"relationships={len(self._relationships)}, constraints={len(self._constraints)})"
        )


__all__ = [
    "Feature",
    "Clause",
    "Relationship",
    "RelationshipType",
    "BasicRelationship",
    "ThreeCNFConstraint",
    "FeatureModel",
]
