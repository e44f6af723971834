from __future__ import annotations

from functools import lru_cache
from typing import List, Optional

import numpy as np

from cargoload.config import Settings
from .candidates import anchor_points, can_place, dedup_points, first_valid_placement, order_points
from .entities import (
    CargoItem,
    Dimensions,
    Orientation,
    OrientationOption,
    PackingContext,
    PlacementChoice,
    Vector3,
)
from .patterns import RollLattice, lattice_points

# bottom first, then across the width, then along the length
ROLL_POINT_WEIGHTS = (1.0, 10000.0, 100.0)


def _deck_options(item: CargoItem) -> List[OrientationOption]:
    base = item.effective_dimensions()
    if base is None:
        return []
    options = [OrientationOption(base, 0, Orientation.FLAT)]
    rotated = base.rotated()
    if rotated != base:
        options.append(OrientationOption(rotated, 90, Orientation.FLAT))
    return options


def roll_options(item: CargoItem) -> List[OrientationOption]:
    if item.is_pallet_mounted:
        return _deck_options(item)
    profile = item.roll_profile()
    if profile is None:
        return []
    d, l = profile
    options = [OrientationOption(Dimensions(d, d, l), 0, Orientation.VERTICAL)]
    if not item.is_floor_only:
        options.append(OrientationOption(Dimensions(l, d, d), 0, Orientation.HORIZONTAL_X))
        options.append(OrientationOption(Dimensions(d, l, d), 90, Orientation.HORIZONTAL_Z))
    return options


@lru_cache(maxsize=64)
def dense_lattice(diameter: float, length: float, c_length: float, c_width: float,
                  c_height: float, floor_only: bool, cap: int) -> np.ndarray:
    """Staggered vertical lattices for both row axes plus log-stack cross-sections for both roll axes.

    ``cap`` is shared evenly between the lattices so every one of them keeps some points.
    """
    share = max(cap // (2 if floor_only else 4), 1)
    arrays = []
    for axis in ("x", "z"):
        vertical = RollLattice("vertical", axis, True, 0, diameter, length)
        arrays.append(lattice_points(vertical, c_length, c_width, c_height, False, floor_only, share))
        if not floor_only:
            logs = RollLattice("horizontal", axis, True, 0, diameter, length)
            arrays.append(lattice_points(logs, c_length, c_width, c_height, True, False, share))
    points = np.vstack(arrays)
    return order_points(dedup_points(points), ROLL_POINT_WEIGHTS)


def _nudge(item: CargoItem, choice: PlacementChoice, context: PackingContext,
           settings: Settings) -> PlacementChoice:
    """Slide a valid corner placement toward x = 0, then z = 0, while it stays valid."""
    option = OrientationOption(choice.dimensions, choice.rotation, choice.orientation)
    step = settings.nudge_step
    pos = choice.position

    for _ in range(settings.nudge_max_steps):
        candidate = Vector3(pos.x - step, pos.y, pos.z)
        if candidate.x < 0 or not can_place(item, candidate, option, context, settings.tolerances):
            break
        pos = candidate

    for _ in range(settings.nudge_max_steps):
        candidate = Vector3(pos.x, pos.y, pos.z - step)
        if candidate.z < 0 or not can_place(item, candidate, option, context, settings.tolerances):
            break
        pos = candidate

    return PlacementChoice(pos, choice.rotation, choice.orientation, choice.dimensions)


def find_best_position(item: CargoItem, context: PackingContext,
                       settings: Settings) -> Optional[PlacementChoice]:
    options = roll_options(item)
    if not options:
        return None

    if item.is_pallet_mounted:
        # deck boxes tile on a square grid, no stagger
        corners = anchor_points(context, settings.tolerances, ROLL_POINT_WEIGHTS)
        return first_valid_placement(corners, options, item, context, settings.tolerances)

    d, l = item.roll_profile()
    container = context.container
    lattice = dense_lattice(
        float(d), float(l),
        float(container.length), float(container.width), float(container.height),
        item.is_floor_only, settings.max_lattice_points,
    )
    choice = first_valid_placement(lattice, options, item, context, settings.tolerances)
    if choice is not None:
        return choice

    corners = anchor_points(context, settings.tolerances, ROLL_POINT_WEIGHTS)
    choice = first_valid_placement(corners, options, item, context, settings.tolerances)
    if choice is None:
        return None
    return _nudge(item, choice, context, settings)


def can_place_at(item: CargoItem, position: Vector3, option: OrientationOption,
                 context: PackingContext, settings: Settings) -> bool:
    return can_place(item, position, option, context, settings.tolerances)
