from __future__ import annotations

import time
from dataclasses import dataclass
from typing import List, Optional, Tuple

from cargoload.config import Tolerances
from cargoload.logger import logger
from .entities import (
    KIND_CODES,
    CargoItem,
    CargoType,
    Container,
    PackingContext,
    PlacedItem,
)
from .geometry import container_extents, within_bounds
from .patterns import (
    LayoutPattern,
    PlacementSlot,
    box_patterns,
    generate_slots,
    pallet_patterns,
    roll_patterns,
)
from .support import is_valid_placement


@dataclass
class PatternEvaluation:
    pattern: LayoutPattern
    slots: List[PlacementSlot]
    items_fitted: int
    score: float


def pattern_score(items_fitted: int, utilization: float, valid_slots: int) -> float:
    return items_fitted * 1_000_000 + utilization * 100 + valid_slots


def candidate_patterns(item: CargoItem, container: Container) -> List[LayoutPattern]:
    """Ranked patterns for a homogeneous batch represented by ``item``."""
    if item.type == CargoType.ROLL and not item.is_pallet_mounted:
        profile = item.roll_profile()
        if profile is None:
            return []
        return roll_patterns(profile[0], profile[1], container, item.is_floor_only)

    base = item.effective_dimensions()
    if base is None:
        return []
    if item.type == CargoType.PALLET:
        return pallet_patterns(base, container, floor_only=True)
    return box_patterns(base, container, floor_only=item.is_floor_only)


def place_from_slots(
    items: List[CargoItem],
    slots: List[PlacementSlot],
    context: PackingContext,
    tolerances: Optional[Tolerances] = None,
) -> Tuple[List[PlacedItem], List[CargoItem]]:
    """Walk items and slots in lock-step; ``context`` is left untouched."""
    tolerances = tolerances or Tolerances()
    work = context.fork()
    bounds = container_extents(context.container)
    placed: List[PlacedItem] = []
    remaining: List[CargoItem] = []
    slot_index = 0

    for item in items:
        kind = KIND_CODES[item.type]
        floor_only = item.is_floor_only
        accepted: Optional[PlacementSlot] = None

        while slot_index < len(slots):
            slot = slots[slot_index]
            slot_index += 1
            if floor_only and slot.position.y > tolerances.epsilon:
                continue
            if is_valid_placement(slot.position, slot.dimensions, kind, slot.orientation,
                                  floor_only, work.as_array(), bounds, tolerances):
                accepted = slot
                break

        if accepted is None:
            remaining.append(item)
            continue

        placed_item = PlacedItem(
            item=item,
            position=accepted.position,
            rotation=accepted.rotation,
            orientation=accepted.orientation,
            dimensions=accepted.dimensions,
        )
        work.add(placed_item)
        placed.append(placed_item)

    return placed, remaining


def evaluate(
    items: List[CargoItem],
    container: Container,
    time_budget: float = 3.0,
    context: Optional[PackingContext] = None,
    tolerances: Optional[Tolerances] = None,
    max_slots: int = 50000,
) -> Optional[PatternEvaluation]:
    """
    Rank the candidate patterns of a homogeneous batch within ``time_budget`` seconds.

    Every pattern is dry-run through ``place_from_slots`` against ``context`` so that
    items_fitted counts what would really be accepted. Returns the best evaluation
    seen when the budget runs out, None when nothing was evaluated.
    """
    if not items:
        return None
    tolerances = tolerances or Tolerances()
    context = context or PackingContext(container)

    patterns = candidate_patterns(items[0], container)
    if not patterns:
        return None

    deadline = time.perf_counter() + time_budget
    best: Optional[PatternEvaluation] = None

    for pattern in patterns:
        if time.perf_counter() > deadline:
            logger.info(f"Pattern evaluation budget exhausted after {pattern.describe()}")
            break
        slots = generate_slots(pattern, container, deadline=deadline, max_slots=max_slots)
        if slots is None:
            logger.info(f"Slot generation aborted for {pattern.describe()}")
            break

        valid = [s for s in slots if within_bounds(s.position, s.dimensions, container, tolerances)]
        placed, _ = place_from_slots(items, valid, context, tolerances)
        score = pattern_score(len(placed), pattern.utilization_score, len(valid))

        if best is None or score > best.score:
            best = PatternEvaluation(pattern=pattern, slots=valid,
                                     items_fitted=len(placed), score=score)

    if best is not None:
        logger.debug(
            f"Best pattern {best.pattern.describe()}: {best.items_fitted} of {len(items)} fitted"
        )
    return best
