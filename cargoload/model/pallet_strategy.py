from __future__ import annotations

from typing import List, Optional

import numpy as np

from cargoload.config import Settings
from .candidates import can_place, dedup_points
from .entities import (
    KIND_CODES,
    CargoItem,
    Orientation,
    OrientationOption,
    PackingContext,
    PlacementChoice,
    Vector3,
)
from .geometry import container_extents, extents_array, first_free_index_numba
from .patterns import generate_slots, pallet_patterns


def pallet_options(item: CargoItem) -> List[OrientationOption]:
    base = item.effective_dimensions()
    if base is None:
        return []
    options = [OrientationOption(base, 0, Orientation.FLAT)]
    rotated = base.rotated()
    if rotated != base:
        options.append(OrientationOption(rotated, 90, Orientation.FLAT))
    return options


def _from_pattern(item: CargoItem, context: PackingContext,
                  settings: Settings) -> Optional[PlacementChoice]:
    base = item.effective_dimensions()
    patterns = pallet_patterns(base, context.container, floor_only=True)
    if not patterns:
        return None
    slots = generate_slots(patterns[0], context.container)
    if not slots:
        return None
    slot = slots[0]
    option = OrientationOption(slot.dimensions, slot.rotation, slot.orientation)
    if not can_place(item, slot.position, option, context, settings.tolerances):
        return None
    return PlacementChoice(slot.position, slot.rotation, slot.orientation, slot.dimensions)


def floor_scan_points(context: PackingContext, option: OrientationOption, step: float) -> np.ndarray:
    """y = 0 points on a coarse grid merged with the exact edges of placed items, x-major."""
    container = context.container
    dims = option.dimensions
    max_x = container.length - dims.length
    max_z = container.width - dims.width
    if max_x < 0 or max_z < 0:
        return np.empty((0, 3), dtype=np.float64)

    xs = set(np.arange(0.0, max_x + 1e-9, step).tolist())
    zs = set(np.arange(0.0, max_z + 1e-9, step).tolist())
    xs.add(max_x)
    zs.add(max_z)
    for placed in context.placed_items:
        for x in (placed.position.x, placed.position.x + placed.dimensions.length):
            if x <= max_x + 1e-9:
                xs.add(x)
        for z in (placed.position.z, placed.position.z + placed.dimensions.width):
            if z <= max_z + 1e-9:
                zs.add(z)

    grid_x, grid_z = np.meshgrid(np.array(sorted(xs)), np.array(sorted(zs)), indexing="ij")
    points = np.column_stack(
        (grid_x.ravel(), np.zeros(grid_x.size), grid_z.ravel())
    ).astype(np.float64)
    return np.ascontiguousarray(dedup_points(points, grid_size=0.01))


def find_best_position(item: CargoItem, context: PackingContext,
                       settings: Settings) -> Optional[PlacementChoice]:
    options = pallet_options(item)
    if not options:
        return None

    if context.is_empty:
        choice = _from_pattern(item, context, settings)
        if choice is not None:
            return choice

    placed = context.as_array()
    bounds = container_extents(context.container)
    kind = KIND_CODES[item.type]
    tol = settings.tolerances

    for option in options:
        points = floor_scan_points(context, option, settings.pallet_scan_step)
        if points.shape[0] == 0:
            continue
        # floor level only, so bounds and collision are the whole rule
        idx = first_free_index_numba(
            points, 0, points.shape[0], extents_array(option.dimensions), kind,
            int(option.orientation), placed, bounds, True, tol.epsilon, tol.roll_overlap_tolerance,
        )
        if idx >= 0:
            pos = Vector3(float(points[idx, 0]), 0.0, float(points[idx, 2]))
            return PlacementChoice(pos, option.rotation, option.orientation, option.dimensions)
    return None


def can_place_at(item: CargoItem, position: Vector3, option: OrientationOption,
                 context: PackingContext, settings: Settings) -> bool:
    if position.y > settings.tolerances.epsilon:
        return False
    return can_place(item, position, option, context, settings.tolerances)
