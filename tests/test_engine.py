from math import pi

import pytest

from cargoload.config import Settings
from cargoload.model.entities import CargoItem, CargoType, Dimensions, Orientation, PlacedItem, Vector3
from cargoload.model.solver import (
    INSUFFICIENT_SPACE,
    INVALID_DIMENSIONS,
    WEIGHT_LIMIT_EXCEEDED,
    PackingEngine,
    expand_items,
    group_units,
    run,
    sort_by_volume,
)

from conftest import make_box, make_container, make_pallet, make_roll


@pytest.fixture
def engine():
    # generous budget so kernel compilation never eats into pattern evaluation
    return PackingEngine(Settings(pattern_time_budget=120.0))


def positions(result):
    return [(p.item_id, p.position.as_tuple(), p.rotation, int(p.orientation))
            for p in result.placed_items]


def footprints_disjoint(a, b, eps=0.01):
    return (
        a.position.x + a.dimensions.length <= b.position.x + eps
        or b.position.x + b.dimensions.length <= a.position.x + eps
        or a.position.z + a.dimensions.width <= b.position.z + eps
        or b.position.z + b.dimensions.width <= a.position.z + eps
    )


class TestItems:
    def test_pallet_adds_footprint_and_height(self):
        crate = make_box(length=100, width=60, height=50, pallet_dimensions=Dimensions(120, 80, 0.15))
        dims = crate.effective_dimensions()
        assert (dims.length, dims.width) == (120, 80)
        assert dims.height == pytest.approx(50.15)
        assert crate.is_floor_only

    def test_roll_profile_on_pallet(self):
        roll = make_roll(diameter=50, length=100, pallet_dimensions=Dimensions(100, 100, 15))
        assert roll.roll_profile() == (100, 115)
        assert roll.is_pallet_mounted

    def test_roll_profile_from_box_dimensions(self):
        drum = CargoItem(id="drum", type=CargoType.ROLL, dimensions=Dimensions(80, 60, 100))
        assert drum.roll_profile() == (60, 100)
        assert not drum.is_pallet_mounted
        assert CargoItem(id="empty", type=CargoType.ROLL).roll_profile() is None

    def test_pallet_mounted_roll_counts_its_cylinder(self):
        roll = make_roll(diameter=50, length=100, pallet_dimensions=Dimensions(100, 100, 15))
        placed = PlacedItem(roll, Vector3(0, 0, 0), 0, Orientation.FLAT, Dimensions(100, 100, 115))
        assert placed.volume == pytest.approx(pi * 25 * 25 * 100)


class TestUnits:
    def test_expand_assigns_unit_ids(self):
        units = expand_items([make_box("a", quantity=3), make_box("b", quantity=0)])
        assert [u.id for u in units] == ["a-0", "a-1", "a-2"]
        assert all(u.quantity == 1 for u in units)
        assert units[0].catalog_entry.id == "a"

    def test_sort_is_stable_by_volume(self):
        units = expand_items([
            make_box("small", 10, 10, 10),
            make_box("big", 100, 100, 100),
            make_box("same", 10, 10, 10),
        ])
        assert [u.id for u in sort_by_volume(units)] == ["big-0", "small-0", "same-0"]

    def test_groups_keep_first_appearance(self):
        units = expand_items([
            make_box("a", 10, 10, 10, quantity=2),
            make_roll("r", quantity=1),
            make_box("b", 10, 10, 10, quantity=1),
        ])
        groups = group_units(units)
        assert [[u.id for u in g] for g in groups] == [["a-0", "a-1", "b-0"], ["r-0"]]


class TestScenarios:
    def test_single_box_at_origin(self, engine, invariants):
        container = make_container()
        result = engine.run([make_box(length=100, width=50, height=40)], container)
        assert len(result.placed_items) == 1
        placed = result.placed_items[0]
        assert placed.item_id == "box-0"
        assert placed.position == Vector3(0, 0, 0)
        assert placed.rotation == 0
        assert placed.dimensions == Dimensions(100, 50, 40)
        assert result.unplaced_items == []
        invariants.all(result, container)

    def test_second_box_stacks_on_first(self, engine, invariants):
        container = make_container(length=120, width=80, height=200)
        result = engine.run([make_box(length=120, width=80, height=100, quantity=2)], container)
        assert [p.position.y for p in result.placed_items] == [0, 100]
        assert result.utilization_percent == pytest.approx(100.0)
        invariants.all(result, container)

    def test_overfull_container(self, engine, invariants):
        container = make_container(length=200, width=200, height=100)
        result = engine.run([make_box(quantity=6)], container)
        assert len(result.placed_items) == 4
        assert len(result.unplaced_items) == 2
        assert result.unplaced_reasons == {
            "box-4": INSUFFICIENT_SPACE,
            "box-5": INSUFFICIENT_SPACE,
        }
        assert result.utilization_percent == pytest.approx(100.0)
        invariants.all(result, container)

    def test_rolls_use_hex_lattice(self, engine, invariants):
        container = make_container(length=100, width=235, height=237)
        result = engine.run([make_roll(diameter=60, length=100, quantity=20)], container)
        # a square grid holds 9
        assert len(result.placed_items) >= 12
        assert all(p.orientation == Orientation.HORIZONTAL_X for p in result.placed_items)
        invariants.all(result, container)

    def test_pallet_mounted_rolls_keep_decks_apart(self, engine, invariants):
        container = make_container(length=600, width=290, height=240)
        item = make_roll("pr", diameter=50, length=100, quantity=17,
                         pallet_dimensions=Dimensions(100, 100, 15))
        result = engine.run([item], container)
        # two square rows of six; a third row needs 300 of the 290 width
        assert len(result.placed_items) == 12
        assert set(result.unplaced_reasons.values()) == {INSUFFICIENT_SPACE}
        for p in result.placed_items:
            assert p.position.y == 0
            assert p.orientation == Orientation.FLAT
            assert p.dimensions == Dimensions(100, 100, 115)
        placed = result.placed_items
        for i, a in enumerate(placed):
            for b in placed[i + 1:]:
                assert footprints_disjoint(a, b), f"{a.item_id} deck overlaps {b.item_id}"
        invariants.all(result, container)

    def test_palletized_boxes_carry_the_pallet(self, engine, invariants):
        container = make_container()
        item = make_box("pb", length=100, width=60, height=50, quantity=3,
                        pallet_dimensions=Dimensions(120, 80, 0.15))
        result = engine.run([item], container)
        assert len(result.placed_items) == 3
        for p in result.placed_items:
            assert p.position.y == 0
            assert sorted((p.dimensions.length, p.dimensions.width)) == [80, 120]
            assert p.dimensions.height == pytest.approx(50.15)
        invariants.all(result, container)

    def test_roll_given_as_box_dimensions(self, engine, invariants):
        container = make_container()
        drum = CargoItem(id="drum", type=CargoType.ROLL, name="drum", dimensions=Dimensions(80, 60, 100))
        result = engine.run([drum], container)
        assert len(result.placed_items) == 1
        placed = result.placed_items[0]
        assert placed.position == Vector3(0, 0, 0)
        assert placed.orientation == Orientation.VERTICAL
        assert placed.dimensions == Dimensions(60, 60, 100)
        invariants.all(result, container)


class TestRules:
    def test_conservation(self, engine):
        items = [make_box("a", quantity=30), make_roll("r", quantity=10), make_pallet("p", quantity=4)]
        result = engine.run(items, make_container())
        assert len(result.placed_items) + len(result.unplaced_items) == 44
        assert len({p.item_id for p in result.placed_items}) == len(result.placed_items)

    def test_deterministic(self, engine):
        items = [make_box("a", 60, 40, 30, quantity=12), make_roll("r", 50, 120, quantity=5)]
        first = engine.run(items, make_container())
        second = engine.run(items, make_container())
        assert positions(first) == positions(second)

    def test_invalid_dimensions(self, engine):
        result = engine.run([make_box("bad", length=0), make_roll("flat", diameter=0)], make_container())
        assert result.placed_items == []
        assert result.unplaced_reasons == {"bad-0": INVALID_DIMENSIONS, "flat-0": INVALID_DIMENSIONS}

    def test_weight_limit(self, engine):
        container = make_container(max_weight=100)
        result = engine.run([make_box(weight=60, quantity=2)], container)
        assert len(result.placed_items) == 1
        assert result.total_weight == 60
        assert result.unplaced_reasons == {"box-1": WEIGHT_LIMIT_EXCEEDED}

    def test_weight_limit_on_pattern_path(self, engine):
        container = make_container(max_weight=100)
        result = engine.run([make_box(weight=30, quantity=6)], container)
        assert len(result.placed_items) == 3
        assert set(result.unplaced_reasons.values()) == {WEIGHT_LIMIT_EXCEEDED}

    def test_weight_limit_can_be_disabled(self):
        engine = PackingEngine(Settings(enforce_max_weight=False, pattern_time_budget=120.0))
        result = engine.run([make_box(weight=60, quantity=2)], make_container(max_weight=100))
        assert len(result.placed_items) == 2

    def test_palletized_units_stay_on_floor(self, engine, invariants):
        container = make_container(length=200, width=100, height=300)
        result = engine.run([make_box(quantity=4, is_palletized=True)], container)
        assert len(result.placed_items) == 2
        assert all(p.position.y == 0 for p in result.placed_items)
        assert set(result.unplaced_reasons.values()) == {INSUFFICIENT_SPACE}
        invariants.all(result, container)

    def test_mixed_load(self, engine, invariants):
        container = make_container()
        items = [
            make_pallet("p", quantity=2),
            make_box("a", 60, 40, 30, quantity=8),
            make_box("b", 50, 50, 50, quantity=3),
            make_roll("r", 40, 80, quantity=4),
        ]
        result = engine.run(items, container)
        assert len(result.placed_items) == 17
        invariants.all(result, container)

    def test_mixed_load_without_patterns(self, invariants):
        engine = PackingEngine(Settings(enable_pattern_packing=False))
        container = make_container()
        items = [make_box("a", 60, 40, 30, quantity=8), make_roll("r", 40, 80, quantity=4)]
        result = engine.run(items, container)
        assert len(result.placed_items) == 12
        invariants.all(result, container)

    def test_execution_time_in_milliseconds(self):
        result = run([make_box()], make_container())
        assert result.execution_time >= 0
