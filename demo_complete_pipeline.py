#!/usr/bin/env python3
"""
Complete Pipeline Demo: File → CFM → Analysis → Diagrams

Shows the full workflow:
1. Read a feature model file (any supported format), or build the example
2. Print its canonical text
3. Analyze the model
4. Generate Graphviz diagrams and a YAML export

Usage:
    python demo_complete_pipeline.py [path/to/model.{sxfm,splx,xml,xmi,json,fm4conf}]
"""

import sys

from cfm.analyzer import analyze_feature_model
from cfm.backends import DotMode, save_dot_file
from cfm.examples import build_fm_10_0_model
from cfm.parsers import parse_file
from cfm.serialization import model_to_yaml


def main():
    print("=" * 80)
    print("COMPLETE PIPELINE DEMO: File → CFM → Analysis → Diagrams")
    print("=" * 80)

    # =========================================================================
    # STEP 1: Read model
    # =========================================================================
    print("\n1. READING MODEL...")
    if len(sys.argv) > 1:
        fm = parse_file(sys.argv[1])
        print(f"   ✓ Parsed: {sys.argv[1]}")
    else:
        fm = build_fm_10_0_model()
        print("   ✓ No file given, using the FM_10_0 example")
    print(f"   ✓ Model: {fm.name}")
    print(f"   ✓ Features: {fm.get_num_of_features()}")
    print(f"   ✓ Relationships: {fm.get_num_of_relationships()}")
    print(f"   ✓ Constraints: {fm.get_num_of_constraints()}")

    # =========================================================================
    # STEP 2: Canonical text
    # =========================================================================
    print("\n2. CANONICAL TEXT...")
    for line in str(fm).splitlines():
        print(f"   {line}")

    # =========================================================================
    # STEP 3: Analyze
    # =========================================================================
    print("\n3. ANALYZING MODEL...")
    report = analyze_feature_model(fm)
    print(f"   ✓ Root: {report.root}")
    print(f"   ✓ Tree depth: {report.tree_depth}")
    print(f"   ✓ Mandatory features: {report.mandatory_features}")
    print(f"   ✓ Relationship counts: {report.relationship_counts}")
    print(f"   ✓ Requires cycle: {report.has_requires_cycle}")

    for feature in fm.features:
        parents = fm.get_mandatory_parents(feature)
        if parents:
            print(f"   ✓ {feature.name} depends on mandatory {[p.name for p in parents]}")

    if report.warnings:
        print(f"\n   Warnings ({len(report.warnings)}):")
        for warning in report.warnings[:5]:
            print(f"      - {warning}")
        if len(report.warnings) > 5:
            print(f"      ... and {len(report.warnings) - 5} more")

    # =========================================================================
    # STEP 4: Outputs
    # =========================================================================
    print("\n4. GENERATING OUTPUTS...")
    for mode in DotMode:
        filename = f"feature_model_{mode.value}.dot"
        save_dot_file(fm, filename, mode=mode)
        print(f"   ✓ {filename}")

    with open("feature_model.yaml", "w", encoding="utf-8") as f:
        f.write(model_to_yaml(fm))
    print("   ✓ feature_model.yaml")

    print("\n   To render: dot -Tpng feature_model_detailed.dot -o feature_model.png")


if __name__ == "__main__":
    main()
