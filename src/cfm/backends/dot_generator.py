"""
Graphviz DOT diagram generator for CFM feature models.

Converts a FeatureModel object into Graphviz DOT format for visualization.

Supports two modes:
    - SIMPLE: the feature tree only
    - DETAILED: the tree plus cross-tree constraints (dashed edges) and
      3CNF constraints as note nodes

Edge notation follows the usual feature diagram conventions:
    mandatory   filled circle at the child
    optional    hollow circle at the child
    or / xor    edges labelled with the group kind
"""

from enum import Enum
from typing import Dict, List

from cfm.model import FeatureModel
from cfm.relationships import BasicRelationship, RelationshipType, ThreeCNFConstraint


class DotMode(Enum):
    """Visualization modes for DOT output."""
    SIMPLE = "simple"      # Tree only
    DETAILED = "detailed"  # Tree plus constraints


def _escape_dot_string(s: str) -> str:
    """Escape special characters for DOT labels."""
    if not s:
        return '""'
    # Escape backslashes first
    s = s.replace('\\', '\\\\')
    s = s.replace('"', '\\"')
    s = s.replace('\n', '\\n')
    return f'"{s}"'


def _node_ids(fm: FeatureModel) -> Dict[str, str]:
    """Stable DOT identifiers, one per feature, independent of its name."""
    return {f.id: f"f{index}" for index, f in enumerate(fm.features)}


def _tree_edges(r: BasicRelationship, ids: Dict[str, str]) -> List[str]:
    if r.is_type(RelationshipType.MANDATORY):
        return [f"  {ids[r.left.id]} -> {ids[r.right[0].id]} [arrowhead=dot];"]
    if r.is_type(RelationshipType.OPTIONAL):
        # optional(child, parent): draw parent -> child
        return [f"  {ids[r.right[0].id]} -> {ids[r.left.id]} [arrowhead=odot];"]

    label = "xor" if r.is_type(RelationshipType.ALTERNATIVE) else "or"
    return [
        f'  {ids[r.left.id]} -> {ids[child.id]} [arrowhead=none, label="{label}"];'
        for child in r.right
    ]


def generate_dot(fm: FeatureModel, mode: DotMode = DotMode.SIMPLE) -> str:
    """
    Generate Graphviz DOT format for a feature model.

    Args:
        fm: FeatureModel to visualize
        mode: Visualization mode (SIMPLE, DETAILED)

    Returns:
        String containing DOT graph definition
    """
    lines = []

    lines.append("digraph feature_model {")
    lines.append("  rankdir=TB;")
    lines.append("  node [shape=box, style=filled, fillcolor=lightblue];")

    # =========================================================================
    # NODES
    # =========================================================================

    ids = _node_ids(fm)
    root = fm.root

    for feature in fm.features:
        attrs = f"label={_escape_dot_string(feature.name)}"
        if root is not None and feature == root:
            attrs += ", fillcolor=lightgreen"
        lines.append(f"  {ids[feature.id]} [{attrs}];")

    # =========================================================================
    # TREE EDGES
    # =========================================================================

    for r in fm.relationships:
        if isinstance(r, BasicRelationship):
            lines.extend(_tree_edges(r, ids))

    # =========================================================================
    # CONSTRAINTS (DETAILED MODE)
    # =========================================================================

    if mode == DotMode.DETAILED:
        note_index = 0
        for c in fm.constraints:
            if isinstance(c, ThreeCNFConstraint):
                note_id = f"c{note_index}"
                note_index += 1
                lines.append(
                    f"  {note_id} [shape=note, fillcolor=lightyellow, "
                    f"label={_escape_dot_string(c.conf_rule())}];"
                )
                continue
            left = ids[c.left.id]
            right = ids[c.right[0].id]
            if c.is_type(RelationshipType.REQUIRES):
                lines.append(f'  {left} -> {right} [style=dashed, label="requires"];')
            else:
                lines.append(
                    f'  {left} -> {right} [style=dashed, dir=both, label="excludes"];'
                )

    lines.append("}")

    return "\n".join(lines)


def save_dot_file(fm: FeatureModel, filename: str, mode: DotMode = DotMode.SIMPLE) -> None:
    """
    Generate DOT and save to file.

    Args:
        fm: FeatureModel to visualize
        filename: Output file path (.dot extension recommended)
        mode: Visualization mode
    """
    dot = generate_dot(fm, mode=mode)
    with open(filename, 'w', encoding='utf-8') as f:
        f.write(dot)


__all__ = ["DotMode", "generate_dot", "save_dot_file"]
