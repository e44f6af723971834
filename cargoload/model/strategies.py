from __future__ import annotations

from typing import Callable, Dict, NamedTuple, Optional

from cargoload.config import Settings
from . import box_strategy, pallet_strategy, roll_strategy
from .entities import (
    CargoItem,
    CargoType,
    OrientationOption,
    PackingContext,
    PlacementChoice,
    Vector3,
)


class Strategy(NamedTuple):
    find_best_position: Callable[[CargoItem, PackingContext, Settings], Optional[PlacementChoice]]
    can_place_at: Callable[[CargoItem, Vector3, OrientationOption, PackingContext, Settings], bool]


STRATEGIES: Dict[CargoType, Strategy] = {
    CargoType.BOX: Strategy(box_strategy.find_best_position, box_strategy.can_place_at),
    CargoType.ROLL: Strategy(roll_strategy.find_best_position, roll_strategy.can_place_at),
    CargoType.PALLET: Strategy(pallet_strategy.find_best_position, pallet_strategy.can_place_at),
}


def strategy_for(item: CargoItem) -> Strategy:
    return STRATEGIES[item.type]
