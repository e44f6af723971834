from __future__ import annotations

import time
from collections import Counter
from dataclasses import dataclass, field
from typing import Dict, List, Optional, Tuple

from cargoload.config import Settings
from cargoload.logger import logger
from .entities import CargoItem, CargoType, Container, PackingContext, PlacedItem
from .evaluator import evaluate, place_from_slots
from .strategies import strategy_for

INVALID_DIMENSIONS = "invalid_dimensions"
WEIGHT_LIMIT_EXCEEDED = "weight_limit_exceeded"
INSUFFICIENT_SPACE = "insufficient_space"


@dataclass
class PackingResult:
    placed_items: List[PlacedItem]
    unplaced_items: List[CargoItem]
    utilization_percent: float
    total_weight: float
    execution_time: float  # milliseconds
    unplaced_reasons: Dict[str, str] = field(default_factory=dict)


def expand_items(items: List[CargoItem]) -> List[CargoItem]:
    units: List[CargoItem] = []
    for item in items:
        units.extend(item.expand())
    return units


def sort_by_volume(units: List[CargoItem]) -> List[CargoItem]:
    # sorted() is stable, equal volumes keep input order
    return sorted(units, key=lambda u: u.volume, reverse=True)


def group_units(units: List[CargoItem]) -> List[List[CargoItem]]:
    """Homogeneous batches in order of first appearance."""
    groups: Dict[Tuple, List[CargoItem]] = {}
    for unit in units:
        groups.setdefault(unit.group_key(), []).append(unit)
    return list(groups.values())


def is_placeable(unit: CargoItem) -> bool:
    if unit.type == CargoType.ROLL:
        return unit.roll_profile() is not None
    return unit.effective_dimensions() is not None


class PackingEngine:
    """
    Single-container packing run.

    Units are expanded from the catalog, sorted by volume and grouped. Each group
    goes through the pattern path when it qualifies; whatever the pattern does not
    place, and every other group, is placed one unit at a time by its strategy.
    """

    def __init__(self, settings: Optional[Settings] = None):
        self.settings = settings or Settings()

    def run(self, items: List[CargoItem], container: Container) -> PackingResult:
        start = time.perf_counter()
        self._check_duplicates(items)

        context = PackingContext(container)
        unplaced: List[CargoItem] = []
        reasons: Dict[str, str] = {}

        units = sort_by_volume(expand_items(items))
        logger.info(
            f"Packing {len(units)} units into {container.id} "
            f"({container.length} x {container.width} x {container.height})"
        )

        placeable: List[CargoItem] = []
        for unit in units:
            if is_placeable(unit):
                placeable.append(unit)
            else:
                logger.warning(f"Unit {unit.id} has invalid dimensions, skipped")
                self._reject(unit, INVALID_DIMENSIONS, unplaced, reasons)

        for group in group_units(placeable):
            leftovers = group
            if self._use_patterns(group):
                leftovers = self._pattern_pass(group, context)
            for unit in leftovers:
                self._place_single(unit, context, unplaced, reasons)

        placed = context.placed_items
        used_volume = sum(p.volume for p in placed)
        utilization = used_volume / container.volume * 100 if container.volume > 0 else 0.0
        execution_time = (time.perf_counter() - start) * 1000

        logger.info(
            f"Packing complete: {len(placed)} placed, {len(unplaced)} unplaced, "
            f"utilization {utilization:.2f}% in {execution_time:.0f} ms"
        )
        return PackingResult(
            placed_items=list(placed),
            unplaced_items=unplaced,
            utilization_percent=utilization,
            total_weight=context.total_weight,
            execution_time=execution_time,
            unplaced_reasons=reasons,
        )

    def _check_duplicates(self, items: List[CargoItem]) -> None:
        counts = Counter(item.id for item in items)
        duplicates = [item_id for item_id, n in counts.items() if n > 1]
        if duplicates:
            logger.error(f"duplicate input ids: {duplicates}")

    def _use_patterns(self, group: List[CargoItem]) -> bool:
        if not self.settings.enable_pattern_packing or not group:
            return False
        return group[0].is_floor_only or len(group) >= self.settings.pattern_min_group_size

    def _weight_allowance(self, context: PackingContext) -> float:
        if not self.settings.enforce_max_weight:
            return float("inf")
        return context.container.max_weight - context.total_weight

    def _pattern_pass(self, group: List[CargoItem], context: PackingContext) -> List[CargoItem]:
        allowance = self._weight_allowance(context)
        batch: List[CargoItem] = []
        overweight: List[CargoItem] = []
        carried = 0.0
        for unit in group:
            if not overweight and carried + unit.weight_value <= allowance + 1e-9:
                batch.append(unit)
                carried += unit.weight_value
            else:
                overweight.append(unit)
        if not batch:
            return group

        tol = self.settings.tolerances
        evaluation = evaluate(
            batch,
            context.container,
            time_budget=self.settings.pattern_time_budget,
            context=context,
            tolerances=tol,
            max_slots=self.settings.max_lattice_points,
        )
        if evaluation is None or evaluation.items_fitted == 0:
            logger.info(f"No usable pattern for group {group[0].catalog_entry.id}, per-unit placement")
            return group

        placed, remaining = place_from_slots(batch, evaluation.slots, context, tol)
        for p in placed:
            context.add(p)
        logger.info(
            f"Pattern {evaluation.pattern.describe()} placed {len(placed)} of {len(group)} "
            f"units of {group[0].catalog_entry.id}"
        )
        return remaining + overweight

    def _place_single(self, unit: CargoItem, context: PackingContext,
                      unplaced: List[CargoItem], reasons: Dict[str, str]) -> None:
        if unit.weight_value > self._weight_allowance(context) + 1e-9:
            logger.debug(f"Unit {unit.id} would exceed the weight limit")
            self._reject(unit, WEIGHT_LIMIT_EXCEEDED, unplaced, reasons)
            return

        choice = strategy_for(unit).find_best_position(unit, context, self.settings)
        if choice is None:
            logger.debug(f"No position for unit {unit.id}")
            self._reject(unit, INSUFFICIENT_SPACE, unplaced, reasons)
            return
        context.add(PlacedItem.from_choice(unit, choice))

    @staticmethod
    def _reject(unit: CargoItem, reason: str, unplaced: List[CargoItem],
                reasons: Dict[str, str]) -> None:
        unplaced.append(unit.catalog_entry)
        reasons[unit.id] = reason


def run(items: List[CargoItem], container: Container,
        settings: Optional[Settings] = None) -> PackingResult:
    return PackingEngine(settings).run(items, container)
