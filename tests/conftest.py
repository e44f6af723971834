from itertools import combinations

import numpy as np
import pytest

from cargoload.config import Settings, Tolerances
from cargoload.model.entities import (
    CargoItem,
    CargoType,
    Container,
    Dimensions,
    RollDimensions,
)
from cargoload.model.geometry import intersects, within_bounds
from cargoload.model.support import is_supported


def make_box(item_id="box", length=100.0, width=100.0, height=100.0, quantity=1, **kwargs):
    return CargoItem(
        id=item_id,
        type=CargoType.BOX,
        name=item_id,
        quantity=quantity,
        dimensions=Dimensions(length, width, height),
        **kwargs,
    )


def make_roll(item_id="roll", diameter=60.0, length=100.0, quantity=1, **kwargs):
    return CargoItem(
        id=item_id,
        type=CargoType.ROLL,
        name=item_id,
        quantity=quantity,
        roll_dimensions=RollDimensions(diameter, length),
        **kwargs,
    )


def make_pallet(item_id="pallet", length=120.0, width=80.0, height=150.0, quantity=1, **kwargs):
    return CargoItem(
        id=item_id,
        type=CargoType.PALLET,
        name=item_id,
        quantity=quantity,
        dimensions=Dimensions(length, width, height),
        **kwargs,
    )


def make_container(length=600.0, width=235.0, height=240.0, max_weight=1e9, container_id="c1"):
    return Container(container_id, container_id, length, width, height, max_weight)


class Invariants:
    def __init__(self, tolerances: Tolerances):
        self.tol = tolerances

    def no_overlap(self, placed):
        for a, b in combinations(placed, 2):
            assert not intersects(
                a.position, a.dimensions, a.kind, a.orientation,
                b.position, b.dimensions, b.kind, b.orientation,
                self.tol,
            ), f"{a.item_id} overlaps {b.item_id}"

    def contained(self, placed, container):
        for p in placed:
            assert within_bounds(p.position, p.dimensions, container, self.tol), p.item_id

    def supported(self, placed):
        for i, p in enumerate(placed):
            others = [q.row() for j, q in enumerate(placed) if j != i]
            data = np.array(others, dtype=np.float64).reshape(-1, 8)
            assert is_supported(
                p.position, p.dimensions, p.kind, p.orientation,
                p.item.is_floor_only, data, self.tol,
            ), f"{p.item_id} at {p.position} is unsupported"

    def floor_only_on_floor(self, placed):
        for p in placed:
            if p.item.is_floor_only:
                assert p.position.y < self.tol.epsilon, p.item_id

    def all(self, result, container):
        self.no_overlap(result.placed_items)
        self.contained(result.placed_items, container)
        self.supported(result.placed_items)
        self.floor_only_on_floor(result.placed_items)


@pytest.fixture
def settings():
    return Settings()


@pytest.fixture
def invariants(settings):
    return Invariants(settings.tolerances)
