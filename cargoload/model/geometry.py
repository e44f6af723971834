from __future__ import annotations

from typing import Tuple, Union

import numpy as np
import numba

from cargoload.config import Tolerances
from .entities import (
    KIND_ROLL,
    Container,
    Dimensions,
    Orientation,
    Vector3,
)

# orientation codes as stored in the placed-item array
ORIENT_FLAT = 0
ORIENT_VERTICAL = 1
ORIENT_HORIZONTAL_X = 2
ORIENT_HORIZONTAL_Z = 3


@numba.njit(cache=True)
def check_bounds_within_container(x: float, y: float, z: float,
                                  dx: float, dy: float, dz: float,
                                  lx: float, ly: float, lz: float,
                                  epsilon: float) -> bool:
    """Check if a volume at (x,y,z) with extents (dx,dy,dz) fits inside [0,lx]x[0,ly]x[0,lz]."""
    if dx <= 0.0 or dy <= 0.0 or dz <= 0.0:
        return False
    if x < -epsilon or y < -epsilon or z < -epsilon:
        return False
    if x + dx > lx + epsilon:
        return False
    if y + dy > ly + epsilon:
        return False
    if z + dz > lz + epsilon:
        return False
    return True


@numba.njit(cache=True)
def _boxes_overlap(ax, ay, az, adx, ady, adz, bx, by, bz, bdx, bdy, bdz, epsilon):
    return (
        ax < bx + bdx - epsilon
        and ax + adx > bx + epsilon
        and ay < by + bdy - epsilon
        and ay + ady > by + epsilon
        and az < bz + bdz - epsilon
        and az + adz > bz + epsilon
    )


@numba.njit(cache=True)
def roll_cross_section(x, y, z, dx, dy, dz, orient):
    """(c1, c2, radius) of a cylinder projected on the plane perpendicular to its axis.

    vertical -> plane (x, z); horizontal along x -> plane (y, z); horizontal along z -> plane (x, y).
    """
    if orient == ORIENT_VERTICAL:
        return x + dx / 2.0, z + dz / 2.0, dx / 2.0
    if orient == ORIENT_HORIZONTAL_X:
        return y + dy / 2.0, z + dz / 2.0, dy / 2.0
    return x + dx / 2.0, y + dy / 2.0, dy / 2.0


@numba.njit(cache=True)
def _box_rect_in_plane(x, y, z, dx, dy, dz, orient):
    if orient == ORIENT_VERTICAL:
        return x, x + dx, z, z + dz
    if orient == ORIENT_HORIZONTAL_X:
        return y, y + dy, z, z + dz
    return x, x + dx, y, y + dy


@numba.njit(cache=True)
def pair_intersects(ax, ay, az, adx, ady, adz, akind, aorient,
                    bx, by, bz, bdx, bdy, bdz, bkind, borient,
                    epsilon, roll_tolerance):
    """Shape-aware overlap test for two placed volumes.

    The bounding boxes always have to overlap first. That covers the axial interval
    of every cylinder. Perpendicular roll pairs keep the bounding-box answer.
    """
    if adx <= 0.0 or ady <= 0.0 or adz <= 0.0 or bdx <= 0.0 or bdy <= 0.0 or bdz <= 0.0:
        return False
    if not _boxes_overlap(ax, ay, az, adx, ady, adz, bx, by, bz, bdx, bdy, bdz, epsilon):
        return False

    a_cyl = akind == KIND_ROLL and aorient != ORIENT_FLAT
    b_cyl = bkind == KIND_ROLL and borient != ORIENT_FLAT

    if not a_cyl and not b_cyl:
        return True

    if a_cyl and b_cyl:
        if aorient != borient:
            return True
        a1, a2, ar = roll_cross_section(ax, ay, az, adx, ady, adz, aorient)
        b1, b2, br = roll_cross_section(bx, by, bz, bdx, bdy, bdz, borient)
        if ar <= 0.0 or br <= 0.0:
            return False
        d1 = a1 - b1
        d2 = a2 - b2
        limit = ar + br - roll_tolerance
        return d1 * d1 + d2 * d2 < limit * limit

    if a_cyl:
        c1, c2, r = roll_cross_section(ax, ay, az, adx, ady, adz, aorient)
        lo1, hi1, lo2, hi2 = _box_rect_in_plane(bx, by, bz, bdx, bdy, bdz, aorient)
    else:
        c1, c2, r = roll_cross_section(bx, by, bz, bdx, bdy, bdz, borient)
        lo1, hi1, lo2, hi2 = _box_rect_in_plane(ax, ay, az, adx, ady, adz, borient)
    if r <= 0.0:
        return False
    n1 = min(max(c1, lo1), hi1)
    n2 = min(max(c2, lo2), hi2)
    d1 = c1 - n1
    d2 = c2 - n2
    limit = r - epsilon
    return d1 * d1 + d2 * d2 < limit * limit


@numba.njit(cache=True)
def check_collision_numba(
    item_pos: np.ndarray,
    item_dims: np.ndarray,
    item_kind: int,
    item_orient: int,
    placed_items_data: np.ndarray,
    epsilon: float,
    roll_tolerance: float,
) -> bool:
    """Checks a candidate against every placed row ([x, y, z, dx, dy, dz, kind, orient])."""
    x1, y1, z1 = item_pos[0], item_pos[1], item_pos[2]
    l1, h1, w1 = item_dims[0], item_dims[1], item_dims[2]

    for i in range(placed_items_data.shape[0]):
        row = placed_items_data[i]
        if pair_intersects(
            x1, y1, z1, l1, h1, w1, item_kind, item_orient,
            row[0], row[1], row[2], row[3], row[4], row[5], int(row[6]), int(row[7]),
            epsilon, roll_tolerance,
        ):
            return True
    return False


@numba.njit(cache=True)
def first_free_index_numba(
    points: np.ndarray,
    start: int,
    stop: int,
    item_dims: np.ndarray,
    item_kind: int,
    item_orient: int,
    placed_items_data: np.ndarray,
    container_dims: np.ndarray,
    floor_only: bool,
    epsilon: float,
    roll_tolerance: float,
) -> int:
    """Index of the first point in [start, stop) that is in bounds and collision free, else -1."""
    dx, dy, dz = item_dims[0], item_dims[1], item_dims[2]
    lx, ly, lz = container_dims[0], container_dims[1], container_dims[2]
    end = min(stop, points.shape[0])
    for i in range(start, end):
        x, y, z = points[i, 0], points[i, 1], points[i, 2]
        if floor_only and y > epsilon:
            continue
        if not check_bounds_within_container(x, y, z, dx, dy, dz, lx, ly, lz, epsilon):
            continue
        if check_collision_numba(points[i], item_dims, item_kind, item_orient,
                                 placed_items_data, epsilon, roll_tolerance):
            continue
        return i
    return -1


Position = Union[Vector3, Tuple[float, float, float]]


def _as_point(pos: Position) -> Tuple[float, float, float]:
    if isinstance(pos, Vector3):
        pos = pos.as_tuple()
    return (float(pos[0]), float(pos[1]), float(pos[2]))


def _float_extents(dims: Dimensions) -> Tuple[float, float, float]:
    dx, dy, dz = dims.extents()
    return float(dx), float(dy), float(dz)


def extents_array(dims: Dimensions) -> np.ndarray:
    return np.array(dims.extents(), dtype=np.float64)


def container_extents(container: Container) -> np.ndarray:
    return np.array([container.length, container.height, container.width], dtype=np.float64)


def intersects(
    pos_a: Position, dims_a: Dimensions, kind_a: int, orient_a: Orientation,
    pos_b: Position, dims_b: Dimensions, kind_b: int, orient_b: Orientation,
    tolerances: Tolerances,
) -> bool:
    ax, ay, az = _as_point(pos_a)
    bx, by, bz = _as_point(pos_b)
    adx, ady, adz = _float_extents(dims_a)
    bdx, bdy, bdz = _float_extents(dims_b)
    return bool(pair_intersects(
        ax, ay, az, adx, ady, adz, int(kind_a), int(orient_a),
        bx, by, bz, bdx, bdy, bdz, int(kind_b), int(orient_b),
        tolerances.epsilon, tolerances.roll_overlap_tolerance,
    ))


def within_bounds(
    pos: Position,
    dims: Dimensions,
    container_dims: Union[Container, Dimensions],
    tolerances: Tolerances,
) -> bool:
    x, y, z = _as_point(pos)
    dx, dy, dz = _float_extents(dims)
    return bool(check_bounds_within_container(
        x, y, z, dx, dy, dz,
        float(container_dims.length), float(container_dims.height), float(container_dims.width),
        tolerances.epsilon,
    ))
