from __future__ import annotations

from typing import List, Optional

from cargoload.config import Settings
from .candidates import anchor_points, can_place, first_valid_placement
from .entities import (
    CargoItem,
    Dimensions,
    Orientation,
    OrientationOption,
    PackingContext,
    PlacementChoice,
    Vector3,
)
from .patterns import box_orientations


def _rotation_for(base: Dimensions, dims: Dimensions) -> int:
    return 0 if abs(dims.length - base.length) < 1e-9 else 90


def box_options(item: CargoItem) -> List[OrientationOption]:
    """Distinct orientations: as given first, then lowest first, larger footprint first on equal height."""
    base = item.effective_dimensions()
    if base is None:
        return []
    dims_list = box_orientations(base, keep_height=item.is_floor_only)
    rest = sorted(dims_list[1:], key=lambda d: (d.height, -d.footprint))
    return [
        OrientationOption(d, _rotation_for(base, d), Orientation.FLAT)
        for d in [dims_list[0]] + rest
    ]


def find_best_position(item: CargoItem, context: PackingContext,
                       settings: Settings) -> Optional[PlacementChoice]:
    options = box_options(item)
    if not options:
        return None
    # y*W1 + x*W2 + z
    weights = (settings.anchor_x_weight, settings.anchor_y_weight, 1.0)
    points = anchor_points(context, settings.tolerances, weights)
    return first_valid_placement(points, options, item, context, settings.tolerances)


def can_place_at(item: CargoItem, position: Vector3, option: OrientationOption,
                 context: PackingContext, settings: Settings) -> bool:
    return can_place(item, position, option, context, settings.tolerances)
