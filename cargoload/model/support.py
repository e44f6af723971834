from __future__ import annotations

import numpy as np
import numba

from cargoload.config import Tolerances
from .entities import KIND_ROLL, Dimensions, Orientation, Vector3
from .geometry import (
    ORIENT_FLAT,
    ORIENT_HORIZONTAL_X,
    ORIENT_HORIZONTAL_Z,
    ORIENT_VERTICAL,
    check_bounds_within_container,
    check_collision_numba,
    extents_array,
    roll_cross_section,
)


@numba.njit(cache=True)
def support_area_numba(
    x: float, y: float, z: float, dx: float, dz: float,
    placed_items_data: np.ndarray,
    contact_epsilon: float,
):
    """Summed footprint overlap of flat-topped items whose top touches the bottom face at y.

    Returns (area, horizontal_roll_below). Horizontal rolls never count as flat supporters.
    """
    area = 0.0
    horizontal_below = False
    for i in range(placed_items_data.shape[0]):
        px, py, pz = placed_items_data[i, 0], placed_items_data[i, 1], placed_items_data[i, 2]
        pdx, pdy, pdz = placed_items_data[i, 3], placed_items_data[i, 4], placed_items_data[i, 5]
        kind = int(placed_items_data[i, 6])
        orient = int(placed_items_data[i, 7])

        if abs(py + pdy - y) > contact_epsilon:
            continue
        ox = min(x + dx, px + pdx) - max(x, px)
        oz = min(z + dz, pz + pdz) - max(z, pz)
        if ox <= 0.0 or oz <= 0.0:
            continue
        if kind == KIND_ROLL and (orient == ORIENT_HORIZONTAL_X or orient == ORIENT_HORIZONTAL_Z):
            horizontal_below = True
            continue
        area += ox * oz
    return area, horizontal_below


@numba.njit(cache=True)
def roll_contacts_numba(
    x: float, y: float, z: float, dx: float, dy: float, dz: float,
    orient: int,
    placed_items_data: np.ndarray,
    epsilon: float,
    contact_epsilon: float,
    contact_tolerance: float,
) -> int:
    """Number of placed rolls that carry a roll candidate.

    Same horizontal axis: a lower roll whose center distance is the sum of radii within
    the tolerance and whose axial interval overlaps. Vertical on vertical: top face at y
    and axes no further apart than the larger radius.
    """
    c1, c2, r = roll_cross_section(x, y, z, dx, dy, dz, orient)
    contacts = 0
    for i in range(placed_items_data.shape[0]):
        if int(placed_items_data[i, 6]) != KIND_ROLL:
            continue
        p_orient = int(placed_items_data[i, 7])
        if p_orient != orient:
            continue
        px, py, pz = placed_items_data[i, 0], placed_items_data[i, 1], placed_items_data[i, 2]
        pdx, pdy, pdz = placed_items_data[i, 3], placed_items_data[i, 4], placed_items_data[i, 5]
        p1, p2, pr = roll_cross_section(px, py, pz, pdx, pdy, pdz, p_orient)

        if orient == ORIENT_VERTICAL:
            if abs(py + pdy - y) > contact_epsilon:
                continue
            # stacked end faces: the axis must land on the face below, not on the
            # r1 + r2 side-contact distance used for lying rolls. An axis exactly on
            # the rim of the lower face still counts.
            dist = np.sqrt((c1 - p1) ** 2 + (c2 - p2) ** 2)
            if dist <= max(r, pr):
                contacts += 1
            continue

        # horizontal: supporter center must sit lower
        if py + pdy / 2.0 >= y + dy / 2.0 - epsilon:
            continue
        if orient == ORIENT_HORIZONTAL_X:
            a0, a1, b0, b1 = x, x + dx, px, px + pdx
        else:
            a0, a1, b0, b1 = z, z + dz, pz, pz + pdz
        if min(a1, b1) - max(a0, b0) <= epsilon:
            continue
        dist = np.sqrt((c1 - p1) ** 2 + (c2 - p2) ** 2)
        if abs(dist - (r + pr)) < contact_tolerance:
            contacts += 1
    return contacts


@numba.njit(cache=True)
def is_supported_numba(
    item_pos: np.ndarray,
    item_dims: np.ndarray,
    item_kind: int,
    item_orient: int,
    placed_items_data: np.ndarray,
    floor_only: bool,
    epsilon: float,
    floor_epsilon: float,
    contact_epsilon: float,
    contact_tolerance: float,
    min_support_ratio: float,
) -> bool:
    x, y, z = item_pos[0], item_pos[1], item_pos[2]
    dx, dy, dz = item_dims[0], item_dims[1], item_dims[2]

    if y < floor_epsilon:
        return True
    if floor_only:
        return False

    area, horizontal_below = support_area_numba(x, y, z, dx, dz, placed_items_data, contact_epsilon)
    is_roll = item_kind == KIND_ROLL and item_orient != ORIENT_FLAT

    if is_roll and item_orient == ORIENT_VERTICAL and horizontal_below:
        return False

    footprint = dx * dz
    if footprint > 0.0 and area / footprint >= min_support_ratio:
        return True

    if is_roll:
        return roll_contacts_numba(
            x, y, z, dx, dy, dz, item_orient, placed_items_data,
            epsilon, contact_epsilon, contact_tolerance,
        ) >= 1
    return False


def is_supported(
    position: Vector3,
    dims: Dimensions,
    kind: int,
    orientation: Orientation,
    floor_only: bool,
    placed_items_data: np.ndarray,
    tolerances: Tolerances,
) -> bool:
    return bool(is_supported_numba(
        np.array(position.as_tuple(), dtype=np.float64),
        extents_array(dims),
        int(kind),
        int(orientation),
        placed_items_data,
        floor_only,
        tolerances.epsilon,
        tolerances.floor_epsilon,
        tolerances.contact_epsilon,
        tolerances.roll_contact_tolerance,
        tolerances.min_support_ratio,
    ))


def is_valid_placement(
    position: Vector3,
    dims: Dimensions,
    kind: int,
    orientation: Orientation,
    floor_only: bool,
    placed_items_data: np.ndarray,
    container_dims: np.ndarray,
    tolerances: Tolerances,
) -> bool:
    """Bounds, collision and support for one candidate; the full acceptance rule."""
    x, y, z = float(position.x), float(position.y), float(position.z)
    if floor_only and y > tolerances.epsilon:
        return False
    ext = extents_array(dims)
    if not check_bounds_within_container(
        x, y, z, ext[0], ext[1], ext[2],
        container_dims[0], container_dims[1], container_dims[2],
        tolerances.epsilon,
    ):
        return False
    pos = np.array((x, y, z), dtype=np.float64)
    if check_collision_numba(pos, ext, int(kind), int(orientation), placed_items_data,
                             tolerances.epsilon, tolerances.roll_overlap_tolerance):
        return False
    return bool(is_supported_numba(
        pos, ext, int(kind), int(orientation), placed_items_data, floor_only,
        tolerances.epsilon,
        tolerances.floor_epsilon,
        tolerances.contact_epsilon,
        tolerances.roll_contact_tolerance,
        tolerances.min_support_ratio,
    ))
