import numpy as np

from cargoload.model import box_strategy, pallet_strategy, roll_strategy
from cargoload.model.candidates import anchor_points, dedup_points, order_points
from cargoload.model.entities import (
    CargoItem,
    CargoType,
    Dimensions,
    Orientation,
    OrientationOption,
    PackingContext,
    PlacedItem,
    PlacementChoice,
    Vector3,
)
from cargoload.model.patterns import SIN60
from cargoload.model.strategies import STRATEGIES, strategy_for

from conftest import make_box, make_container, make_pallet, make_roll


def place(context, item, choice):
    context.add(PlacedItem.from_choice(item, choice))


class TestCandidates:
    def test_dedup_keeps_first_occurrence(self):
        points = np.array([[5.0, 0.0, 0.0], [0.0, 0.0, 0.0], [5.01, 0.0, 0.0]])
        result = dedup_points(points)
        assert result.tolist() == [[5.0, 0.0, 0.0], [0.0, 0.0, 0.0]]

    def test_order_is_stable(self):
        points = np.array([[1.0, 0.0, 0.0], [0.0, 1.0, 0.0], [1.0, 0.0, 0.0]])
        ordered = order_points(points, (1.0, 1.0, 0.0))
        assert ordered.tolist() == points.tolist()

    def test_anchors_of_empty_context(self, settings):
        context = PackingContext(make_container())
        points = anchor_points(context, settings.tolerances, (1.0, 1.0, 1.0))
        assert points.tolist() == [[0.0, 0.0, 0.0]]


class TestBoxStrategy:
    def test_options_start_with_given_orientation(self):
        options = box_strategy.box_options(make_box(length=100, width=50, height=30))
        assert len(options) == 6
        assert options[0].dimensions == Dimensions(100, 50, 30)
        assert options[0].rotation == 0
        heights = [o.dimensions.height for o in options[1:]]
        assert heights == sorted(heights)
        assert options[1].dimensions == Dimensions(50, 100, 30)
        assert options[1].rotation == 90

    def test_palletized_box_keeps_height(self):
        options = box_strategy.box_options(make_box(length=100, width=50, height=30, is_palletized=True))
        assert [o.dimensions.height for o in options] == [30, 30]

    def test_first_box_at_origin(self, settings):
        item = make_box(length=100, width=50, height=40)
        choice = box_strategy.find_best_position(item, PackingContext(make_container()), settings)
        assert choice.position == Vector3(0, 0, 0)
        assert choice.rotation == 0
        assert choice.dimensions == Dimensions(100, 50, 40)

    def test_second_box_stacks(self, settings):
        context = PackingContext(make_container(length=120, width=80, height=200))
        item = make_box(length=120, width=80, height=100)
        place(context, item, box_strategy.find_best_position(item, context, settings))
        choice = box_strategy.find_best_position(item, context, settings)
        assert choice.position == Vector3(0.0, 100.0, 0.0)

    def test_floor_before_stacking(self, settings):
        context = PackingContext(make_container(length=200, width=100, height=200))
        item = make_box(length=100, width=100, height=100)
        place(context, item, box_strategy.find_best_position(item, context, settings))
        choice = box_strategy.find_best_position(item, context, settings)
        assert choice.position.y == 0
        assert choice.position.x == 100

    def test_no_room(self, settings):
        context = PackingContext(make_container(length=50, width=50, height=50))
        assert box_strategy.find_best_position(make_box(), context, settings) is None


class TestRollStrategy:
    def test_options(self):
        assert len(roll_strategy.roll_options(make_roll())) == 3
        standing = roll_strategy.roll_options(make_roll(is_palletized=True))
        assert [o.orientation for o in standing] == [Orientation.VERTICAL]

    def test_first_roll_stands_at_origin(self, settings):
        choice = roll_strategy.find_best_position(make_roll(), PackingContext(make_container()), settings)
        assert choice.position == Vector3(0.0, 0.0, 0.0)
        assert choice.orientation == Orientation.VERTICAL

    def test_low_container_lays_rolls_down(self, settings):
        context = PackingContext(make_container(length=600, width=235, height=50))
        item = make_roll(diameter=40, length=100)
        choice = roll_strategy.find_best_position(item, context, settings)
        assert choice.position == Vector3(0.0, 0.0, 0.0)
        assert choice.orientation == Orientation.HORIZONTAL_X

    def test_rolls_fill_floor_first(self, settings):
        context = PackingContext(make_container())
        item = make_roll()
        for _ in range(3):
            place(context, item, roll_strategy.find_best_position(item, context, settings))
        assert all(p.position.y == 0 for p in context.placed_items)

    def test_roll_inferred_from_box_dimensions(self, settings):
        drum = CargoItem(id="drum", type=CargoType.ROLL, name="drum", dimensions=Dimensions(80, 60, 100))
        options = roll_strategy.roll_options(drum)
        assert options[0].dimensions == Dimensions(60, 60, 100)
        choice = roll_strategy.find_best_position(drum, PackingContext(make_container()), settings)
        assert choice.position == Vector3(0.0, 0.0, 0.0)
        assert choice.orientation == Orientation.VERTICAL
        assert choice.dimensions == Dimensions(60, 60, 100)

    def test_nudge_slides_toward_origin(self, settings):
        context = PackingContext(make_container())
        context.add(PlacedItem(make_roll(), Vector3(0, 0, 0), 0, Orientation.VERTICAL, Dimensions(60, 60, 100)))
        item = make_roll("second")
        start = PlacementChoice(Vector3(60.0, 0.0, 70.0), 0, Orientation.VERTICAL, Dimensions(60, 60, 100))
        choice = roll_strategy._nudge(item, start, context, settings)
        # x slides clear past the first roll, z stops where the circles would cut
        assert choice.position == Vector3(0.0, 0.0, 60.0)
        option = OrientationOption(choice.dimensions, choice.rotation, choice.orientation)
        assert roll_strategy.can_place_at(item, choice.position, option, context, settings)

    def test_corner_fallback_when_lattice_is_blocked(self, settings):
        context = PackingContext(make_container(length=100, width=60, height=100))
        wall = make_box("wall", length=30, width=60, height=100)
        context.add(PlacedItem(wall, Vector3(0, 0, 0), 0, Orientation.FLAT, Dimensions(30, 60, 100)))
        choice = roll_strategy.find_best_position(make_roll(), context, settings)
        assert choice.position == Vector3(30.0, 0.0, 0.0)
        assert choice.orientation == Orientation.VERTICAL

    def test_dense_lattice_keeps_every_family(self):
        points = roll_strategy.dense_lattice(10.0, 20.0, 1198.0, 235.0, 269.0, False, 400)
        assert len(points) <= 400
        # standing rows along z and lying rolls in their second (staggered) layer
        assert (points[:, 2] > 0).any()
        assert np.isclose(points[:, 1], 10 * SIN60).any()

    def test_pallet_mounted_roll_is_a_deck_box(self):
        item = make_roll(diameter=50, length=100, pallet_dimensions=Dimensions(100, 100, 15))
        options = roll_strategy.roll_options(item)
        assert [o.orientation for o in options] == [Orientation.FLAT]
        assert options[0].dimensions == Dimensions(100, 100, 115)

    def test_pallet_mounted_rolls_tile_without_stagger(self, settings):
        context = PackingContext(make_container())
        item = make_roll(diameter=50, length=100, pallet_dimensions=Dimensions(100, 100, 15))
        for _ in range(2):
            place(context, item, roll_strategy.find_best_position(item, context, settings))
        first, second = context.placed_items
        assert first.position == Vector3(0.0, 0.0, 0.0)
        assert second.position == Vector3(100.0, 0.0, 0.0)
        assert second.orientation == Orientation.FLAT


class TestPalletStrategy:
    def test_empty_container_uses_best_pattern(self, settings):
        choice = pallet_strategy.find_best_position(make_pallet(), PackingContext(make_container()), settings)
        assert choice.position == Vector3(0, 0, 0)
        assert choice.rotation == 0

    def test_next_pallet_beside_the_first(self, settings):
        context = PackingContext(make_container())
        item = make_pallet()
        place(context, item, pallet_strategy.find_best_position(item, context, settings))
        choice = pallet_strategy.find_best_position(item, context, settings)
        assert choice.position == Vector3(0.0, 0.0, 80.0)

    def test_never_above_floor(self, settings):
        context = PackingContext(make_container())
        item = make_pallet()
        option = pallet_strategy.pallet_options(item)[0]
        assert pallet_strategy.can_place_at(item, Vector3(0, 0, 0), option, context, settings)
        assert not pallet_strategy.can_place_at(item, Vector3(0, 10, 0), option, context, settings)

    def test_full_floor(self, settings):
        context = PackingContext(make_container(length=120, width=80, height=300))
        item = make_pallet()
        place(context, item, pallet_strategy.find_best_position(item, context, settings))
        assert pallet_strategy.find_best_position(item, context, settings) is None


def test_dispatch_by_type():
    assert set(STRATEGIES) == set(CargoType)
    assert strategy_for(make_roll()) is STRATEGIES[CargoType.ROLL]
    assert strategy_for(make_pallet()).can_place_at is pallet_strategy.can_place_at


def test_can_place_at_checks_collision(settings):
    context = PackingContext(make_container())
    item = make_box()
    option = OrientationOption(Dimensions(100, 100, 100), 0, Orientation.FLAT)
    assert box_strategy.can_place_at(item, Vector3(0, 0, 0), option, context, settings)
    place(context, item, box_strategy.find_best_position(item, context, settings))
    assert not box_strategy.can_place_at(item, Vector3(50, 0, 0), option, context, settings)
