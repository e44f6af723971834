from __future__ import annotations

from typing import List, Optional, Sequence

import numpy as np
import numba

from cargoload.config import Tolerances
from .entities import (
    KIND_CODES,
    CargoItem,
    OrientationOption,
    PackingContext,
    PlacementChoice,
    Vector3,
)
from .geometry import container_extents, extents_array, first_free_index_numba
from .support import is_supported, is_valid_placement

DEDUP_GRID = 0.1


@numba.njit(cache=True)
def _push(positions, count, x, y, z, lx, ly, lz, epsilon):
    if x < -epsilon or y < -epsilon or z < -epsilon:
        return count
    if x >= lx - epsilon or y >= ly - epsilon or z >= lz - epsilon:
        return count
    positions[count, 0] = x
    positions[count, 1] = y
    positions[count, 2] = z
    return count + 1


@numba.njit(cache=True)
def _generate_anchors_numba(
    placed_items_data: np.ndarray,
    container_dims: np.ndarray,
    epsilon: float,
) -> np.ndarray:
    """Origin plus extreme points of every placed item (x=length, y=up, z=width)."""
    # origin + 3 faces + 3 diagonals + 3 floor projections per item
    max_positions = 1 + placed_items_data.shape[0] * 9
    positions = np.empty((max_positions, 3), dtype=np.float64)
    lx, ly, lz = container_dims[0], container_dims[1], container_dims[2]

    positions[0, 0] = 0.0
    positions[0, 1] = 0.0
    positions[0, 2] = 0.0
    count = 1

    for i in range(placed_items_data.shape[0]):
        px, py, pz = placed_items_data[i, 0], placed_items_data[i, 1], placed_items_data[i, 2]
        pdx, pdy, pdz = placed_items_data[i, 3], placed_items_data[i, 4], placed_items_data[i, 5]

        # right, back, top
        count = _push(positions, count, px + pdx, py, pz, lx, ly, lz, epsilon)
        count = _push(positions, count, px, py, pz + pdz, lx, ly, lz, epsilon)
        count = _push(positions, count, px, py + pdy, pz, lx, ly, lz, epsilon)

        # compound corners
        count = _push(positions, count, px + pdx, py, pz + pdz, lx, ly, lz, epsilon)
        count = _push(positions, count, px + pdx, py + pdy, pz, lx, ly, lz, epsilon)
        count = _push(positions, count, px, py + pdy, pz + pdz, lx, ly, lz, epsilon)

        # floor projections
        if py > epsilon:
            count = _push(positions, count, px + pdx, 0.0, pz, lx, ly, lz, epsilon)
            count = _push(positions, count, px, 0.0, pz + pdz, lx, ly, lz, epsilon)
            count = _push(positions, count, px, 0.0, pz, lx, ly, lz, epsilon)

    return positions[:count]


def dedup_points(points: np.ndarray, grid_size: float = DEDUP_GRID) -> np.ndarray:
    """Drop points that collapse onto the same grid cell, keeping the first occurrence."""
    if points.shape[0] == 0:
        return np.empty((0, 3), dtype=np.float64)
    rounded = np.ascontiguousarray(np.round(points / grid_size).astype(np.int64))
    rounded_view = rounded.view(dtype=[('x', np.int64), ('y', np.int64), ('z', np.int64)]).ravel()
    _, unique_indices = np.unique(rounded_view, return_index=True)
    return points[np.sort(unique_indices)]


def order_points(points: np.ndarray, weights: Sequence[float]) -> np.ndarray:
    """Stable ascending order by ``x*wx + y*wy + z*wz``."""
    if points.shape[0] == 0:
        return points
    key = points[:, 0] * weights[0] + points[:, 1] * weights[1] + points[:, 2] * weights[2]
    return np.ascontiguousarray(points[np.argsort(key, kind="stable")])


def anchor_points(context: PackingContext, tolerances: Tolerances,
                  weights: Sequence[float]) -> np.ndarray:
    """Deduplicated corner anchors of the placed items, ordered by ``weights`` (x, y, z)."""
    positions = _generate_anchors_numba(
        context.as_array(), container_extents(context.container), tolerances.epsilon
    )
    return order_points(dedup_points(positions), weights)


def first_valid_placement(
    points: np.ndarray,
    options: List[OrientationOption],
    item: CargoItem,
    context: PackingContext,
    tolerances: Tolerances,
) -> Optional[PlacementChoice]:
    """
    Earliest point (then earliest option) that passes bounds, collision and support.

    Each option is scanned by the numba kernel; later options only look at points
    before the best index found so far.
    """
    if points.shape[0] == 0 or not options:
        return None
    placed = context.as_array()
    bounds = container_extents(context.container)
    kind = KIND_CODES[item.type]
    floor_only = item.is_floor_only

    best_idx = points.shape[0]
    best: Optional[PlacementChoice] = None

    for option in options:
        ext = extents_array(option.dimensions)
        orient = int(option.orientation)
        start = 0
        while start < best_idx:
            idx = first_free_index_numba(
                points, start, best_idx, ext, kind, orient, placed, bounds,
                floor_only, tolerances.epsilon, tolerances.roll_overlap_tolerance,
            )
            if idx < 0:
                break
            pos = Vector3(float(points[idx, 0]), float(points[idx, 1]), float(points[idx, 2]))
            if is_supported(pos, option.dimensions, kind, option.orientation, floor_only,
                            placed, tolerances):
                best_idx = idx
                best = PlacementChoice(pos, option.rotation, option.orientation, option.dimensions)
                break
            start = idx + 1
    return best


def can_place(item: CargoItem, position: Vector3, option: OrientationOption,
              context: PackingContext, tolerances: Tolerances) -> bool:
    return is_valid_placement(
        position, option.dimensions, KIND_CODES[item.type], option.orientation,
        item.is_floor_only, context.as_array(), container_extents(context.container),
        tolerances,
    )
