"""
Tests for DOT diagram generator.

These tests verify that feature models are correctly converted to Graphviz DOT format.
We test extensively because visual output is easy to get wrong and hard to debug.

Tests cover:
    - Feature nodes and tree edges
    - Edge decorations per relationship type
    - Special character escaping
    - Simple vs. detailed modes
"""

from cfm.backends.dot_generator import DotMode, generate_dot, save_dot_file
from cfm.examples import build_bamboo_bike_model, build_fm_10_0_model
from cfm.model import FeatureModel


class TestDotBasicStructure:
    """Test basic DOT graph structure."""

    def test_empty_model_generates_valid_dot(self):
        """Should generate valid DOT even for an empty model."""
        dot = generate_dot(FeatureModel(), mode=DotMode.SIMPLE)
        assert dot.startswith("digraph feature_model {")
        assert dot.endswith("}")

    def test_every_feature_becomes_a_node(self):
        fm = build_bamboo_bike_model()
        dot = generate_dot(fm)
        for index, feature in enumerate(fm.features):
            assert f'f{index} [label="{feature.name}"' in dot

    def test_root_is_highlighted(self):
        dot = generate_dot(build_bamboo_bike_model())
        assert 'f0 [label="Bamboo Bike", fillcolor=lightgreen];' in dot
        assert 'f1 [label="Frame"];' in dot


class TestDotTreeEdges:
    """Test edge decorations for tree relationships."""

    def test_mandatory_edge(self):
        dot = generate_dot(build_bamboo_bike_model())
        assert "f0 -> f1 [arrowhead=dot];" in dot

    def test_optional_edge_points_from_parent(self):
        """optional(Engine, Bamboo Bike) is drawn Bamboo Bike -> Engine."""
        dot = generate_dot(build_bamboo_bike_model())
        assert "f0 -> f3 [arrowhead=odot];" in dot

    def test_group_edges_are_labelled(self):
        dot = generate_dot(build_bamboo_bike_model())
        assert 'f1 -> f5 [arrowhead=none, label="xor"];' in dot
        assert 'f2 -> f10 [arrowhead=none, label="or"];' in dot


class TestDotModes:
    """Simple vs. detailed output."""

    def test_simple_mode_hides_constraints(self):
        dot = generate_dot(build_fm_10_0_model(), mode=DotMode.SIMPLE)
        assert "dashed" not in dot
        assert "shape=note" not in dot

    def test_detailed_mode_shows_constraints(self):
        dot = generate_dot(build_fm_10_0_model(), mode=DotMode.DETAILED)
        # requires(F8, F6): F8 is f3, F6 is f7
        assert 'f3 -> f7 [style=dashed, label="requires"];' in dot
        # excludes(F4, F1)
        assert 'f5 -> f1 [style=dashed, dir=both, label="excludes"];' in dot
        assert 'c0 [shape=note, fillcolor=lightyellow, label="3cnf(~F1, F7, F8)"];' in dot


class TestDotEscaping:

    def test_quotes_in_names_are_escaped(self):
        fm = FeatureModel()
        fm.add_feature('Say "hi"', "q")
        dot = generate_dot(fm)
        assert 'label="Say \\"hi\\""' in dot


class TestSaveDotFile:

    def test_save_dot_file(self, tmp_path):
        fm = build_fm_10_0_model()
        out = tmp_path / "fm.dot"
        save_dot_file(fm, str(out), mode=DotMode.DETAILED)
        assert out.read_text(encoding="utf-8") == generate_dot(fm, mode=DotMode.DETAILED)
