"""
Relationship System for the Canonical Feature Model

Everything that links features is a Relationship. There are exactly two
shapes, and the set is closed:

    - BasicRelationship:   one left feature, an ordered right side,
                           typed as mandatory/optional/or/alternative
                           (tree structure) or requires/excludes
                           (cross-tree constraints)
    - ThreeCNFConstraint:  an ordered disjunction of signed literals

Both render to a single canonical line (the "conf rule"), e.g.

    mandatory(Bamboo Bike, Frame)
    alternative(Frame, Female, Male, Step-through)
    3cnf(~F1, F7, F8)

ARCHITECTURAL RULE:
    Relationships are immutable and validate themselves on construction.
    They do NOT know which model they belong to; membership checks are
    the model's job.
"""

from abc import ABC, abstractmethod
from dataclasses import dataclass, field
from enum import Enum
from typing import Tuple

from cfm.errors import ConstructionError
from cfm.feature import Feature


class RelationshipType(Enum):
    """
    Types of relationships and constraints.

    The value of each member is the keyword used in its conf rule.
    """

    # Tree structure
    MANDATORY = "mandatory"
    OPTIONAL = "optional"
    ALTERNATIVE = "alternative"
    OR = "or"

    # Cross-tree constraints
    REQUIRES = "requires"
    EXCLUDES = "excludes"
    THREE_CNF = "3cnf"


STRUCTURAL_TYPES = frozenset({
    RelationshipType.MANDATORY,
    RelationshipType.OPTIONAL,
    RelationshipType.ALTERNATIVE,
    RelationshipType.OR,
})

BASIC_CONSTRAINT_TYPES = frozenset({RelationshipType.REQUIRES, RelationshipType.EXCLUDES})

GROUP_TYPES = frozenset({RelationshipType.ALTERNATIVE, RelationshipType.OR})

_SINGLE_RIGHT_SIDE_TYPES = frozenset({
    RelationshipType.MANDATORY,
    RelationshipType.OPTIONAL,
    RelationshipType.REQUIRES,
    RelationshipType.EXCLUDES,
})


def check_arity(relationship_type: RelationshipType, right_side_size: int) -> None:
    """
    Enforce the right-side size rule of a basic relationship type.

    Raises:
        ConstructionError: on a size mismatch, or for THREE_CNF which has
            no basic form at all.
    """
    label = relationship_type.value.capitalize()
    if relationship_type in _SINGLE_RIGHT_SIDE_TYPES:
        if right_side_size != 1:
            raise ConstructionError(
                f"{label} relationship's right side must have exactly one feature "
                f"(got {right_side_size})"
            )
    elif relationship_type in GROUP_TYPES:
        if right_side_size <= 1:
            raise ConstructionError(
                f"{label} relationship's right side must have more than one feature "
                f"(got {right_side_size})"
            )
    else:
        raise ConstructionError(f"Relationship type must not be {relationship_type.value}")


@dataclass(frozen=True)
class Clause:
    """
    A signed literal inside a 3-CNF constraint.

    Properties:
        literal: Feature name the clause refers to (non-empty)
        positive: False when the literal is negated (written "~X")

    Example:
        Clause.from_token("~F1") == Clause(literal="F1", positive=False)
    """

    literal: str
    positive: bool = True

    def __post_init__(self):
        if not self.literal:
            raise ConstructionError("Clause literal cannot be empty!")

    @classmethod
    def from_token(cls, token: str) -> "Clause":
        token = token.strip()
        if token.startswith("~"):
            return cls(literal=token[1:].strip(), positive=False)
        return cls(literal=token, positive=True)

    def __str__(self) -> str:
        return self.literal if self.positive else f"~{self.literal}"


class Relationship(ABC):
    """
    Capability set shared by both relationship shapes.

    Subclasses render their own conf rule and override what applies to them:
        - BasicRelationship answers the left/right side questions
        - ThreeCNFConstraint answers `contains`

    Everything else defaults to "no".
    """

    type: RelationshipType

    def is_optional(self) -> bool:
        """True for OPTIONAL and OR relationships."""
        return self.type in (RelationshipType.OPTIONAL, RelationshipType.OR)

    def is_type(self, relationship_type: RelationshipType) -> bool:
        return self.type == relationship_type

    def present_at_left_side(self, feature: Feature) -> bool:
        return False

    def present_at_right_side(self, feature: Feature) -> bool:
        return False

    def contains(self, feature: Feature) -> bool:
        return False

    @abstractmethod
    def conf_rule(self) -> str:
        """The canonical one-line form, e.g. `mandatory(P, C)`."""

    def __str__(self) -> str:
        return self.conf_rule()


@dataclass(frozen=True)
class BasicRelationship(Relationship):
    """
    A typed edge between one left feature and an ordered right side.

    Reading guide (how readers store the tree):
        mandatory(P, C)        C is a mandatory child of P
        optional(C, P)         C is an optional child of P (note the order)
        or(P, C1, C2, ...)     at least one of the Ci when P is selected
        alternative(P, C1, …)  exactly one of the Ci when P is selected
        requires(A, B)         A implies B
        excludes(A, B)         not both

    Properties:
        type: any RelationshipType except THREE_CNF
        left: the left operand
        right: ordered right operands (a list is accepted, a tuple is kept)

    Raises:
        ConstructionError: if the right side violates the arity of `type`
    """

    type: RelationshipType
    left: Feature
    right: Tuple[Feature, ...]

    def __post_init__(self):
        object.__setattr__(self, "right", tuple(self.right))
        check_arity(self.type, len(self.right))

    def present_at_left_side(self, feature: Feature) -> bool:
        return self.left == feature

    def present_at_right_side(self, feature: Feature) -> bool:
        return any(f == feature for f in self.right)

    def conf_rule(self) -> str:
        return render_conf_rule(self)


@dataclass(frozen=True)
class ThreeCNFConstraint(Relationship):
    """
    A disjunction of signed literals, e.g. ``~F1 | F7 | F8``.

    Literals are feature *names*, not ids, so this constraint is seeded from
    text rather than from Feature objects.
    """

    clauses: Tuple[Clause, ...]
    type: RelationshipType = field(default=RelationshipType.THREE_CNF, init=False)

    def __post_init__(self):
        object.__setattr__(self, "clauses", tuple(self.clauses))
        if not self.clauses:
            raise ConstructionError("3CNF constraint must have at least one clause!")

    @classmethod
    def from_text(cls, text: str) -> "ThreeCNFConstraint":
        """
        Build a constraint from its ``" | "``-joined source text.

        Raises:
            ConstructionError: if the text is empty or has an empty literal
        """
        if not text or not text.strip():
            raise ConstructionError("3CNF constraint cannot be empty!")
        tokens = [token.strip() for token in text.split(" | ")]
        if any(not token or token == "~" for token in tokens):
            raise ConstructionError(f"Unparsable 3CNF constraint: '{text}'")
        return cls(clauses=tuple(Clause.from_token(token) for token in tokens))

    def contains(self, feature: Feature) -> bool:
        return any(clause.literal == feature.name for clause in self.clauses)

    def conf_rule(self) -> str:
        return render_conf_rule(self)


def render_conf_rule(relationship: Relationship) -> str:
    """Render the canonical one-line form of a relationship."""
    if isinstance(relationship, BasicRelationship):
        right = ", ".join(f.name for f in relationship.right)
        return f"{relationship.type.value}({relationship.left.name}, {right})"
    if isinstance(relationship, ThreeCNFConstraint):
        clauses = ", ".join(str(c) for c in relationship.clauses)
        return f"{relationship.type.value}({clauses})"
    raise TypeError(f"Unsupported Relationship type: {type(relationship)}")


__all__ = [
    "RelationshipType",
    "STRUCTURAL_TYPES",
    "BASIC_CONSTRAINT_TYPES",
    "GROUP_TYPES",
    "Clause",
    "Relationship",
    "BasicRelationship",
    "ThreeCNFConstraint",
    "check_arity",
    "render_conf_rule",
]
