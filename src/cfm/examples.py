"""
Example feature models used by the demo, the docs and the tests.

    - build_bamboo_bike_model(): the bamboo bike product line
    - build_fm_10_0_model(): a small SPLOT-style generated model with
      every relationship kind and a 3CNF constraint

Both are built exactly the way a reader builds a model: features first in
discovery order, then relationships and constraints resolved by id.
"""
from cfm.model import FeatureModel, RelationshipType


def build_bamboo_bike_model() -> FeatureModel:
    fm = FeatureModel()

    for name in [
        "Bamboo Bike", "Frame", "Brake", "Engine", "Drop Handlebar",
        "Female", "Male", "Step-through", "Front", "Rear", "Back-pedal",
    ]:
        fm.add_feature(name, name)

    f = fm.get_feature
    fm.add_relationship(RelationshipType.MANDATORY, f("Bamboo Bike"), [f("Frame")])
    fm.add_relationship(RelationshipType.MANDATORY, f("Bamboo Bike"), [f("Brake")])
    fm.add_relationship(RelationshipType.OPTIONAL, f("Engine"), [f("Bamboo Bike")])
    fm.add_relationship(RelationshipType.OPTIONAL, f("Drop Handlebar"), [f("Bamboo Bike")])
    fm.add_relationship(
        RelationshipType.ALTERNATIVE, f("Frame"), [f("Female"), f("Male"), f("Step-through")]
    )
    fm.add_relationship(RelationshipType.OR, f("Brake"), [f("Front"), f("Rear"), f("Back-pedal")])

    fm.add_constraint(RelationshipType.EXCLUDES, f("Engine"), [f("Back-pedal")])
    fm.add_constraint(RelationshipType.REQUIRES, f("Drop Handlebar"), [f("Male")])

    return fm


def build_fm_10_0_model() -> FeatureModel:
    fm = FeatureModel(name="FM_10_0")

    # Breadth-first discovery order of the SPLOT tree
    for name in ["FM_10_0", "F1", "F2", "F8", "F3", "F4", "F5", "F6", "F7"]:
        fm.add_feature(name, name)

    f = fm.get_feature
    fm.add_relationship(RelationshipType.OPTIONAL, f("F1"), [f("FM_10_0")])
    fm.add_relationship(RelationshipType.MANDATORY, f("FM_10_0"), [f("F2")])
    fm.add_relationship(RelationshipType.OR, f("FM_10_0"), [f("F3"), f("F4"), f("F5")])
    fm.add_relationship(RelationshipType.ALTERNATIVE, f("FM_10_0"), [f("F6"), f("F7")])
    fm.add_relationship(RelationshipType.OPTIONAL, f("F8"), [f("F2")])

    fm.add_constraint(RelationshipType.REQUIRES, f("F8"), [f("F6")])
    fm.add_constraint(RelationshipType.EXCLUDES, f("F4"), [f("F1")])
    fm.add_constraint(RelationshipType.THREE_CNF, "~F1 | F7 | F8")
    fm.add_constraint(RelationshipType.REQUIRES, f("F2"), [f("F6")])

    return fm
