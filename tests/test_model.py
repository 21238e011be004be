"""
Tests for the FeatureModel aggregate.

These tests verify:
    - Construction API validation (duplicates, arity, membership)
    - Lookup and counting
    - Mandatory / optional classification
    - Mandatory parent discovery, including cyclic constraint graphs
    - Canonical text rendering
"""

import pytest

from cfm.errors import ConstructionError, FeatureLookupError, FeatureModelError
from cfm.examples import build_bamboo_bike_model, build_fm_10_0_model
from cfm.model import Feature, FeatureModel, RelationshipType, ThreeCNFConstraint


BAMBOO_BIKE_TEXT = (
    "FEATURES:\n"
    "\tBamboo Bike\n"
    "\tFrame\n"
    "\tBrake\n"
    "\tEngine\n"
    "\tDrop Handlebar\n"
    "\tFemale\n"
    "\tMale\n"
    "\tStep-through\n"
    "\tFront\n"
    "\tRear\n"
    "\tBack-pedal\n"
    "RELATIONSHIPS:\n"
    "\tmandatory(Bamboo Bike, Frame)\n"
    "\tmandatory(Bamboo Bike, Brake)\n"
    "\toptional(Engine, Bamboo Bike)\n"
    "\toptional(Drop Handlebar, Bamboo Bike)\n"
    "\talternative(Frame, Female, Male, Step-through)\n"
    "\tor(Brake, Front, Rear, Back-pedal)\n"
    "CONSTRAINTS:\n"
    "\texcludes(Engine, Back-pedal)\n"
    "\trequires(Drop Handlebar, Male)\n"
)


def build_tiny_model() -> FeatureModel:
    """R with a mandatory child M and optional children A and B."""
    fm = FeatureModel()
    for name in ["R", "M", "A", "B"]:
        fm.add_feature(name, name)
    f = fm.get_feature
    fm.add_relationship(RelationshipType.MANDATORY, f("R"), [f("M")])
    fm.add_relationship(RelationshipType.OPTIONAL, f("A"), [f("R")])
    fm.add_relationship(RelationshipType.OPTIONAL, f("B"), [f("R")])
    return fm


class TestAddFeature:
    """Test feature registration."""

    def test_add_feature_returns_stored_feature(self):
        fm = FeatureModel()
        f = fm.add_feature("Frame", "_r_1")
        assert f == Feature("Frame", "_r_1")
        assert fm.features == (f,)

    def test_first_feature_is_root(self):
        fm = FeatureModel()
        root = fm.add_feature("Root", "_r")
        fm.add_feature("Child", "_r_1")
        assert fm.root == root

    def test_empty_name_rejected(self):
        fm = FeatureModel()
        with pytest.raises(ConstructionError, match="Feature name cannot be empty!"):
            fm.add_feature("", "id")

    def test_duplicate_name_rejected(self):
        fm = FeatureModel()
        fm.add_feature("F1", "1")
        with pytest.raises(ConstructionError, match="Feature's name F1 already exists!"):
            fm.add_feature("F1", "2")
        assert fm.get_num_of_features() == 1

    def test_duplicate_id_rejected(self):
        fm = FeatureModel()
        fm.add_feature("F1", "1")
        with pytest.raises(ConstructionError):
            fm.add_feature("F2", "1")

    def test_errors_share_a_base_class(self):
        fm = FeatureModel()
        with pytest.raises(FeatureModelError):
            fm.add_feature("", "")

    def test_features_are_read_only_view(self):
        fm = build_tiny_model()
        assert isinstance(fm.features, tuple)
        assert isinstance(fm.relationships, tuple)
        assert isinstance(fm.constraints, tuple)


class TestAddRelationship:
    """Test tree relationship and constraint registration."""

    def test_arity_violation_leaves_model_unchanged(self):
        fm = build_tiny_model()
        f = fm.get_feature
        with pytest.raises(ConstructionError):
            fm.add_relationship(RelationshipType.MANDATORY, f("R"), [f("A"), f("B")])
        with pytest.raises(ConstructionError):
            fm.add_relationship(RelationshipType.OR, f("R"), [f("A")])
        assert fm.get_num_of_relationships() == 3

    def test_constraint_type_is_not_a_relationship(self):
        fm = build_tiny_model()
        f = fm.get_feature
        with pytest.raises(ConstructionError):
            fm.add_relationship(RelationshipType.REQUIRES, f("A"), [f("B")])

    def test_structural_type_is_not_a_constraint(self):
        fm = build_tiny_model()
        f = fm.get_feature
        with pytest.raises(ConstructionError):
            fm.add_constraint(RelationshipType.MANDATORY, f("A"), [f("B")])

    def test_plain_string_type_rejected(self):
        fm = build_tiny_model()
        f = fm.get_feature
        with pytest.raises(ConstructionError):
            fm.add_relationship("mandatory", f("R"), [f("A")])
        with pytest.raises(ConstructionError):
            fm.add_constraint("requires", f("A"), [f("B")])
        assert fm.get_num_of_relationships() == 3
        assert fm.get_num_of_constraints() == 0

    def test_foreign_feature_rejected(self):
        fm = build_tiny_model()
        with pytest.raises(ConstructionError):
            fm.add_relationship(RelationshipType.OPTIONAL, Feature("X"), [fm.get_feature("R")])

    def test_three_cnf_from_text(self):
        fm = build_tiny_model()
        c = fm.add_constraint(RelationshipType.THREE_CNF, "~A | B | M")
        assert isinstance(c, ThreeCNFConstraint)
        assert fm.constraints == (c,)

    def test_three_cnf_needs_text_only(self):
        fm = build_tiny_model()
        with pytest.raises(ConstructionError):
            fm.add_constraint(RelationshipType.THREE_CNF, "A | B", [fm.get_feature("B")])
        with pytest.raises(ConstructionError):
            fm.add_constraint(RelationshipType.THREE_CNF, "")

    def test_requires_needs_features(self):
        fm = build_tiny_model()
        with pytest.raises(ConstructionError):
            fm.add_constraint(RelationshipType.REQUIRES, "A")

    def test_excludes_arity(self):
        fm = build_tiny_model()
        f = fm.get_feature
        with pytest.raises(ConstructionError):
            fm.add_constraint(RelationshipType.EXCLUDES, f("A"), [f("B"), f("M")])


class TestLookup:
    """Test get_feature and the counters."""

    def test_get_feature_by_index(self):
        fm = build_fm_10_0_model()
        assert fm.get_feature(0).name == "FM_10_0"
        assert fm.get_feature(3).name == "F8"

    @pytest.mark.parametrize("index", [-1, 9, 100])
    def test_index_out_of_bounds(self, index):
        fm = build_fm_10_0_model()
        with pytest.raises(FeatureLookupError):
            fm.get_feature(index)

    def test_get_feature_by_id(self):
        fm = FeatureModel()
        fm.add_feature("Bamboo Bike", "_r")
        assert fm.get_feature("_r").name == "Bamboo Bike"

    def test_name_is_not_an_id(self):
        fm = FeatureModel()
        fm.add_feature("Bamboo Bike", "_r")
        with pytest.raises(FeatureLookupError):
            fm.get_feature("Bamboo Bike")

    def test_empty_id_lookup(self):
        with pytest.raises(FeatureLookupError):
            build_tiny_model().get_feature("")

    def test_counts(self):
        fm = build_fm_10_0_model()
        assert fm.get_num_of_features() == 9
        assert fm.get_num_of_relationships() == 5
        assert fm.get_num_of_relationships(RelationshipType.OPTIONAL) == 2
        assert fm.get_num_of_relationships(RelationshipType.MANDATORY) == 1
        assert fm.get_num_of_relationships(RelationshipType.REQUIRES) == 2
        assert fm.get_num_of_relationships(RelationshipType.EXCLUDES) == 1
        assert fm.get_num_of_constraints() == 4

    def test_name_defaults_to_root(self):
        fm = build_tiny_model()
        assert fm.name == "R"
        fm.set_name("Tiny")
        assert fm.name == "Tiny"

    def test_empty_model_name(self):
        assert FeatureModel().name == ""
        assert FeatureModel().root is None


class TestClassification:
    """Mandatory and optional features of the FM_10_0 model."""

    def test_only_f2_is_mandatory(self):
        fm = build_fm_10_0_model()
        mandatory = [f.name for f in fm.features if fm.is_mandatory_feature(f)]
        assert mandatory == ["F2"]

    def test_optional_features(self):
        fm = build_fm_10_0_model()
        optional = [f.name for f in fm.features if fm.is_optional_feature(f)]
        assert optional == ["F1", "F8", "F3", "F4", "F5", "F6", "F7"]

    def test_root_is_neither(self):
        fm = build_fm_10_0_model()
        root = fm.root
        assert not fm.is_mandatory_feature(root)
        assert not fm.is_optional_feature(root)


class TestNavigation:
    """Test get_right_side_of_relationships and get_relationships_with."""

    def test_children_of_root(self):
        fm = build_fm_10_0_model()
        names = [f.name for f in fm.get_right_side_of_relationships(fm.root)]
        assert names == ["F1", "F2", "F3", "F4", "F5", "F6", "F7"]

    def test_optional_child_reported_under_parent(self):
        fm = build_fm_10_0_model()
        names = [f.name for f in fm.get_right_side_of_relationships(fm.get_feature("F2"))]
        assert names == ["F8"]

    def test_leaf_has_no_children(self):
        fm = build_fm_10_0_model()
        assert fm.get_right_side_of_relationships(fm.get_feature("F6")) == []

    def test_relationships_with_feature(self):
        fm = build_fm_10_0_model()
        rules = [r.conf_rule() for r in fm.get_relationships_with(fm.get_feature("F1"))]
        assert rules == [
            "optional(F1, FM_10_0)",
            "excludes(F4, F1)",
            "3cnf(~F1, F7, F8)",
        ]


class TestMandatoryParents:
    """Test get_mandatory_parents."""

    def test_fm_10_0_f6(self):
        """The alternative gate is the root and is skipped; requires(F2, F6) wins."""
        fm = build_fm_10_0_model()
        parents = fm.get_mandatory_parents(fm.get_feature("F6"))
        assert [f.name for f in parents] == ["F2"]

    def test_root_has_no_mandatory_parents(self):
        fm = build_fm_10_0_model()
        assert fm.get_mandatory_parents(fm.root) == []

    def test_cyclic_requires_terminates(self):
        fm = build_tiny_model()
        f = fm.get_feature
        fm.add_constraint(RelationshipType.REQUIRES, f("A"), [f("B")])
        fm.add_constraint(RelationshipType.REQUIRES, f("B"), [f("A")])
        assert fm.get_mandatory_parents(f("A")) == []

    def test_cycle_with_mandatory_exit(self):
        fm = build_tiny_model()
        f = fm.get_feature
        fm.add_constraint(RelationshipType.REQUIRES, f("A"), [f("B")])
        fm.add_constraint(RelationshipType.REQUIRES, f("B"), [f("A")])
        fm.add_constraint(RelationshipType.REQUIRES, f("M"), [f("B")])
        assert fm.get_mandatory_parents(f("A")) == [f("M")]

    def test_group_member_reaches_mandatory_gate(self):
        fm = FeatureModel()
        for name in ["R", "M", "X", "Y"]:
            fm.add_feature(name, name)
        f = fm.get_feature
        fm.add_relationship(RelationshipType.MANDATORY, f("R"), [f("M")])
        fm.add_relationship(RelationshipType.OR, f("M"), [f("X"), f("Y")])
        assert fm.get_mandatory_parents(f("X")) == [f("M")]

    def test_gate_explores_its_members(self):
        fm = FeatureModel()
        for name in ["R", "M", "P", "X", "Y"]:
            fm.add_feature(name, name)
        f = fm.get_feature
        fm.add_relationship(RelationshipType.MANDATORY, f("R"), [f("M")])
        fm.add_relationship(RelationshipType.OPTIONAL, f("P"), [f("R")])
        fm.add_relationship(RelationshipType.ALTERNATIVE, f("P"), [f("X"), f("Y")])
        fm.add_constraint(RelationshipType.REQUIRES, f("M"), [f("X")])
        assert fm.get_mandatory_parents(f("P")) == [f("M")]

    def test_three_cnf_is_not_followed(self):
        fm = build_tiny_model()
        fm.add_constraint(RelationshipType.THREE_CNF, "~M | A")
        assert fm.get_mandatory_parents(fm.get_feature("A")) == []

    def test_results_are_deduplicated(self):
        fm = build_tiny_model()
        f = fm.get_feature
        fm.add_constraint(RelationshipType.REQUIRES, f("M"), [f("A")])
        fm.add_constraint(RelationshipType.REQUIRES, f("B"), [f("A")])
        fm.add_constraint(RelationshipType.REQUIRES, f("M"), [f("B")])
        assert fm.get_mandatory_parents(f("A")) == [f("M")]

    def test_dense_requires_graph(self):
        """Every optional feature requires every other one."""
        fm = FeatureModel()
        fm.add_feature("R", "R")
        names = [f"X{i}" for i in range(18)]
        for name in names:
            fm.add_feature(name, name)
        f = fm.get_feature
        for name in names:
            fm.add_relationship(RelationshipType.OPTIONAL, f(name), [f("R")])
        for a in names:
            for b in names:
                if a != b:
                    fm.add_constraint(RelationshipType.REQUIRES, f(a), [f(b)])
        assert fm.get_mandatory_parents(f("X0")) == []

        fm.add_feature("M", "M")
        fm.add_relationship(RelationshipType.MANDATORY, f("R"), [f("M")])
        fm.add_constraint(RelationshipType.REQUIRES, f("M"), [f("X17")])
        assert fm.get_mandatory_parents(f("X0")) == [f("M")]


class TestCanonicalText:
    """Test to_text / str rendering."""

    def test_bamboo_bike(self):
        assert str(build_bamboo_bike_model()) == BAMBOO_BIKE_TEXT

    def test_fm_10_0_sections(self):
        text = build_fm_10_0_model().to_text()
        assert text.endswith(
            "CONSTRAINTS:\n"
            "\trequires(F8, F6)\n"
            "\texcludes(F4, F1)\n"
            "\t3cnf(~F1, F7, F8)\n"
            "\trequires(F2, F6)\n"
        )
        assert "\toptional(F8, F2)\n" in text

    def test_rendering_is_idempotent(self):
        fm = build_fm_10_0_model()
        assert str(fm) == str(fm)

    def test_empty_model_renders_empty(self):
        assert str(FeatureModel()) == ""

    def test_sections_without_rules(self):
        fm = FeatureModel()
        fm.add_feature("Solo", "Solo")
        assert fm.to_text() == "FEATURES:\n\tSolo\nRELATIONSHIPS:\nCONSTRAINTS:\n"

    def test_repr(self):
        assert repr(build_tiny_model()) == (
            "FeatureModel(name='R', features=4, relationships=3, constraints=0)"
        )
