"""
Feature Model Analyzer: early diagnostics and inventory of CFM models.

This module provides lightweight analysis of FeatureModel objects:
    - Relationship and constraint inventory
    - Tree structure (depth, unreachable features)
    - Constraint hygiene (requires cycles, self references, unknown literals)
    - Warning flags for modelling risk

IMPORTANT: This is read-only. It does NOT modify the model and it does NOT
decide satisfiability; no solver is involved.
"""

from __future__ import annotations

from collections import defaultdict
from dataclasses import dataclass, field
from typing import Dict, List, Optional, Set

from cfm.model import FeatureModel
from cfm.relationships import BasicRelationship, RelationshipType, ThreeCNFConstraint


def _find_cycles_dfs(graph: Dict[str, List[str]], start: str, visited: Set[str],
                     rec_stack: Set[str], path: List[str]) -> Optional[List[str]]:
    """DFS to find a cycle starting from a node."""
    visited.add(start)
    rec_stack.add(start)
    path.append(start)

    for neighbor in graph.get(start, []):
        if neighbor not in visited:
            cycle = _find_cycles_dfs(graph, neighbor, visited, rec_stack, path[:])
            if cycle:
                return cycle
        elif neighbor in rec_stack:
            cycle_start_idx = path.index(neighbor)
            return path[cycle_start_idx:] + [neighbor]

    rec_stack.remove(start)
    return None


def _tree_children(fm: FeatureModel) -> Dict[str, List[str]]:
    """Parent name -> child names, following how readers store the tree."""
    children: Dict[str, List[str]] = defaultdict(list)
    for r in fm.relationships:
        if not isinstance(r, BasicRelationship):
            continue
        if r.is_type(RelationshipType.OPTIONAL):
            # optional(child, parent)
            children[r.right[0].name].append(r.left.name)
        else:
            children[r.left.name].extend(f.name for f in r.right)
    return children


@dataclass
class FeatureModelReport:
    """Analysis report for a feature model."""

    model_name: str
    total_features: int = 0
    total_relationships: int = 0
    total_constraints: int = 0

    # Inventory
    relationship_counts: Dict[str, int] = field(default_factory=dict)
    mandatory_features: List[str] = field(default_factory=list)
    optional_features: List[str] = field(default_factory=list)
    leaf_features: List[str] = field(default_factory=list)

    # Tree structure
    root: Optional[str] = None
    tree_depth: int = 0
    unreachable_features: Set[str] = field(default_factory=set)
    max_group_size: int = 0

    # Constraint hygiene
    unknown_literals: Set[str] = field(default_factory=set)
    self_referencing_constraints: List[str] = field(default_factory=list)
    has_requires_cycle: bool = False
    requires_cycle_example: Optional[List[str]] = None

    warnings: List[str] = field(default_factory=list)

    def add_warning(self, msg: str) -> None:
        """Add a warning to the report."""
        if msg not in self.warnings:
            self.warnings.append(msg)


def analyze_feature_model(fm: FeatureModel) -> FeatureModelReport:
    """
    Perform an inventory of a FeatureModel.

    Checks for:
    - Counts per relationship type
    - Mandatory / optional / leaf features
    - Tree reachability from the root and depth
    - Requires cycles, self-referencing constraints, unknown 3CNF literals

    Returns a FeatureModelReport with metrics and warnings.
    """
    report = FeatureModelReport(model_name=fm.name)

    report.total_features = fm.get_num_of_features()
    report.total_relationships = fm.get_num_of_relationships()
    report.total_constraints = fm.get_num_of_constraints()

    for rtype in RelationshipType:
        if rtype == RelationshipType.THREE_CNF:
            count = sum(1 for c in fm.constraints if c.is_type(rtype))
        else:
            count = fm.get_num_of_relationships(rtype)
        report.relationship_counts[rtype.value] = count

    feature_names = {f.name for f in fm.features}

    # =========================================================================
    # 1. FEATURE INVENTORY
    # =========================================================================

    for feature in fm.features:
        if fm.is_mandatory_feature(feature):
            report.mandatory_features.append(feature.name)
        if fm.is_optional_feature(feature):
            report.optional_features.append(feature.name)

    children = _tree_children(fm)
    report.leaf_features = [f.name for f in fm.features if not children.get(f.name)]

    group_sizes = [
        len(r.right) for r in fm.relationships
        if isinstance(r, BasicRelationship) and r.type in (RelationshipType.OR, RelationshipType.ALTERNATIVE)
    ]
    if group_sizes:
        report.max_group_size = max(group_sizes)

    # =========================================================================
    # 2. TREE STRUCTURE
    # =========================================================================

    if fm.root is not None:
        report.root = fm.root.name
        depth_of = {fm.root.name: 0}
        queue = [fm.root.name]
        while queue:
            node = queue.pop(0)
            for child in children.get(node, []):
                if child not in depth_of:
                    depth_of[child] = depth_of[node] + 1
                    queue.append(child)
        report.tree_depth = max(depth_of.values())
        report.unreachable_features = feature_names - set(depth_of)

    # =========================================================================
    # 3. CONSTRAINT HYGIENE
    # =========================================================================

    requires_graph: Dict[str, List[str]] = defaultdict(list)
    for c in fm.constraints:
        if isinstance(c, ThreeCNFConstraint):
            for clause in c.clauses:
                if clause.literal not in feature_names:
                    report.unknown_literals.add(clause.literal)
            continue
        if c.left in c.right:
            report.self_referencing_constraints.append(c.conf_rule())
        if c.is_type(RelationshipType.REQUIRES):
            requires_graph[c.left.name].extend(f.name for f in c.right)

    visited: Set[str] = set()
    for name in list(requires_graph.keys()):
        if name not in visited:
            cycle = _find_cycles_dfs(requires_graph, name, visited, set(), [])
            if cycle:
                report.has_requires_cycle = True
                report.requires_cycle_example = cycle
                break

    # =========================================================================
    # 4. WARNING FLAGS
    # =========================================================================

    if report.unreachable_features:
        report.add_warning(
            f"Features not reachable from the root: {', '.join(sorted(report.unreachable_features))}"
        )

    if report.unknown_literals:
        report.add_warning(
            f"3CNF literals without a feature: {', '.join(sorted(report.unknown_literals))}"
        )

    for rule in report.self_referencing_constraints:
        report.add_warning(f"Self-referencing constraint: {rule}")

    if report.has_requires_cycle:
        report.add_warning(
            f"Requires cycle detected: {' -> '.join(report.requires_cycle_example)}"
        )

    if report.total_features > 1 and not report.total_relationships:
        report.add_warning("Model has several features but no tree relationships")

    return report
