"""
SPLOT (SXFM) reader.

File layout:

    <feature_model name="FM_10_0">
    <feature_tree>
    :r FM_10_0 (FM_10_0)
        :o F1 (F1)
        :m F2 (F2)
            :o F8 (F8)
        :g (_g1) [1,*]
            : F3 (F3)
            : F4 (F4)
    </feature_tree>
    <constraints>
    C1:~F8 or F6
    </constraints>
    </feature_model>

Tree syntax (nesting by indentation):
    :r name (id)        root
    :m name (id)        mandatory solitary feature
    :o name (id)        optional solitary feature
    :g (id) [min,max]   feature group ([1,1] = alternative, else or)
    : name (id)         grouped feature

Constraints are CNF clauses over feature ids (or names):
    ~A or B        → requires(A, B)
    ~A or ~B       → excludes(A, B)
    anything else  → 3cnf
"""

import logging
import re
import warnings
import xml.etree.ElementTree as ET
from dataclasses import dataclass, field
from typing import Dict, List, Optional

from cfm.model import FeatureModel, RelationshipType
from cfm.parsers.base import FeatureModelParser, FeatureModelParserError, FMFormat

logger = logging.getLogger(__name__)

_NODE_RE = re.compile(r'^(?P<indent>[ \t]*):(?P<kind>[rmog]?)\s*(?P<rest>.*?)\s*$')
_FEATURE_RE = re.compile(r'^(?P<name>.*?)\s*(?:\((?P<id>[^()]*)\))?$')
_GROUP_RE = re.compile(r'^(?:\((?P<id>[^()]*)\))?\s*\[(?P<min>\d+)\s*,\s*(?P<max>\d+|\*)\]$')
_OR_RE = re.compile(r'\s+or\s+', re.IGNORECASE)


@dataclass
class TreeNode:
    """One line of the SPLOT feature tree."""
    kind: str  # "r", "m", "o", "g" or "" (grouped feature)
    name: str
    id: str
    indent: int
    max: Optional[str] = None
    parent: Optional["TreeNode"] = None
    children: List["TreeNode"] = field(default_factory=list)

    @property
    def is_feature(self) -> bool:
        return self.kind != "g"


def _tokenize_tree(text: str) -> Optional[TreeNode]:
    """Turn the indented tree text into TreeNodes, returning the root."""
    root: Optional[TreeNode] = None
    stack: List[TreeNode] = []

    for line_num, line in enumerate(text.splitlines(), start=1):
        if not line.strip():
            continue
        m = _NODE_RE.match(line)
        if not m:
            raise FeatureModelParserError(f"Invalid feature tree line {line_num}: {line.strip()}")

        kind = m.group("kind")
        rest = m.group("rest")
        indent = len(m.group("indent").expandtabs(4))

        if kind == "g":
            g = _GROUP_RE.match(rest)
            if not g:
                raise FeatureModelParserError(f"Invalid feature group at line {line_num}: {rest}")
            node = TreeNode(kind=kind, name="", id=g.group("id") or f"_g{line_num}",
                            indent=indent, max=g.group("max"))
        else:
            f = _FEATURE_RE.match(rest)
            name = f.group("name").strip() if f else ""
            if not name:
                raise FeatureModelParserError(
                    f"The feature name could not be blank! [line {line_num}]"
                )
            node = TreeNode(kind=kind, name=name, id=(f.group("id") or name).strip(), indent=indent)

        if kind == "r":
            if root is not None:
                raise FeatureModelParserError("SPLOT feature tree has more than one root")
            root = node
            stack = [node]
            continue

        while stack and stack[-1].indent >= indent:
            stack.pop()
        if not stack:
            raise FeatureModelParserError(f"Feature tree line {line_num} has no parent")
        node.parent = stack[-1]
        stack[-1].children.append(node)
        stack.append(node)

    return root


def _breadth_first(root: TreeNode) -> List[TreeNode]:
    order = []
    queue = [root]
    while queue:
        node = queue.pop(0)
        order.append(node)
        queue.extend(node.children)
    return order


def _parent_feature(node: TreeNode) -> TreeNode:
    parent = node.parent
    if parent is None or not parent.is_feature:
        raise FeatureModelParserError(f"Feature '{node.name or node.id}' has no parent feature")
    return parent


class SXFMParser(FeatureModelParser):
    """Reads SPLOT .sxfm / .splx files."""

    fm_format = FMFormat.SXFM
    extensions = (".sxfm", ".splx")
    names_from_file = True

    def check_content(self, content: str) -> bool:
        try:
            root = ET.fromstring(content)
        except ET.ParseError:
            return False
        return (root.tag == "feature_model"
                and root.find(".//feature_tree") is not None
                and root.find(".//constraints") is not None)

    def _build(self, content: str, fm: FeatureModel) -> Optional[str]:
        try:
            root = ET.fromstring(content)
        except ET.ParseError as e:
            raise FeatureModelParserError(f"Invalid SPLOT XML: {e}") from e

        tree_elem = root.find(".//feature_tree")
        if tree_elem is None:
            raise FeatureModelParserError("Missing <feature_tree> element")
        tree_root = _tokenize_tree(tree_elem.text or "")
        if tree_root is None:
            return None

        nodes = _breadth_first(tree_root)
        self._convert_features(nodes, fm)
        self._convert_relationships(nodes, fm)

        constraints_elem = root.find(".//constraints")
        self._convert_constraints(constraints_elem.text if constraints_elem is not None else "",
                                  nodes, fm)
        return root.get("name") or None

    def _convert_features(self, nodes: List[TreeNode], fm: FeatureModel) -> None:
        logger.debug("Generating features")
        for node in nodes:
            if node.is_feature:
                fm.add_feature(node.name, node.id)

    def _convert_relationships(self, nodes: List[TreeNode], fm: FeatureModel) -> None:
        logger.debug("Generating relationships")
        for node in nodes:
            if node.kind == "o":
                parent = _parent_feature(node)
                fm.add_relationship(RelationshipType.OPTIONAL,
                                    fm.get_feature(node.id), [fm.get_feature(parent.id)])
            elif node.kind == "m":
                parent = _parent_feature(node)
                fm.add_relationship(RelationshipType.MANDATORY,
                                    fm.get_feature(parent.id), [fm.get_feature(node.id)])
            elif node.kind == "g":
                parent = _parent_feature(node)
                if not node.children:
                    raise FeatureModelParserError(
                        "OR and ALT relationships must have at least one child."
                    )
                rtype = RelationshipType.ALTERNATIVE if node.max == "1" else RelationshipType.OR
                fm.add_relationship(rtype, fm.get_feature(parent.id),
                                    [fm.get_feature(child.id) for child in node.children])

    def _convert_constraints(self, text: str, nodes: List[TreeNode], fm: FeatureModel) -> None:
        logger.debug("Generating constraints")
        names_by_key: Dict[str, str] = {}
        for node in nodes:
            if node.is_feature:
                names_by_key.setdefault(node.name, node.id)
        for node in nodes:
            if node.is_feature:
                names_by_key[node.id] = node.id

        for line in (text or "").splitlines():
            line = line.strip()
            if not line:
                continue
            formula = line.split(":", 1)[1] if ":" in line else line
            literals = [lit.strip() for lit in _OR_RE.split(formula.strip()) if lit.strip()]
            if not literals:
                raise FeatureModelParserError(f"Empty constraint: {line}")

            signed = []
            for lit in literals:
                negative = lit.startswith("~")
                key = lit[1:].strip() if negative else lit
                if key not in names_by_key:
                    raise FeatureModelParserError(f"Constraint '{line}' references unknown feature '{key}'")
                signed.append((fm.get_feature(names_by_key[key]), negative))

            if len(signed) == 2:
                (first, first_neg), (second, second_neg) = signed
                if first_neg and second_neg:
                    fm.add_constraint(RelationshipType.EXCLUDES, first, [second])
                    continue
                if first_neg != second_neg:
                    left, right = (first, second) if first_neg else (second, first)
                    fm.add_constraint(RelationshipType.REQUIRES, left, [right])
                    continue
                warnings.warn(
                    f"Constraint '{line}' is neither requires nor excludes; stored as 3cnf",
                    UserWarning,
                )

            fm.add_constraint(
                RelationshipType.THREE_CNF,
                " | ".join(("~" if negative else "") + feature.name for feature, negative in signed),
            )


__all__ = ["SXFMParser"]
