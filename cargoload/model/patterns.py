"""
Row tilings for boxes and pallets, analytic lattices for rolls.

Patterns are cheap descriptions. They carry their capacity so they can be ranked
before a single slot exists; ``generate_slots`` turns the chosen one into positions.
"""

from __future__ import annotations

import time
from dataclasses import dataclass
from functools import lru_cache
from math import floor, pi, sqrt
from typing import List, Optional, Tuple

import numpy as np

from .entities import Container, Dimensions, Orientation, Vector3

SIN60 = sqrt(3.0) / 2.0

MAX_BOX_PATTERNS = 10
MAX_PALLET_PATTERNS = 15
MAX_ROLL_PATTERNS = 12

MAX_BOX_ROWS = 3
MAX_PALLET_ROWS = 5

BOX_WIDTH_TOLERANCE = 0.01
PALLET_WIDTH_TOLERANCE = 0.1
SLOT_TOLERANCE = 0.01

DEADLINE_POLL = 256


@dataclass(frozen=True)
class RowPattern:
    row_width: float
    orientation: str  # "length" | "width"
    items_per_row: int
    dimensions: Dimensions
    rotation: int


@dataclass(frozen=True)
class RollLattice:
    """Analytic roll arrangement.

    mode is "vertical", "horizontal" or "hybrid". For vertical lattices ``axis`` is the
    direction the rows run along; for log stacks it is the roll axis.
    """

    mode: str
    axis: str
    staggered: bool
    phase: int
    diameter: float
    length: float

    @property
    def pitch(self) -> float:
        return self.diameter * SIN60 if self.staggered else self.diameter

    def offset(self, index: int) -> float:
        if self.staggered and (index + self.phase) % 2 == 1:
            return self.diameter / 2.0
        return 0.0


@dataclass(frozen=True)
class LayoutPattern:
    total_items: int
    utilization_score: float
    rows: Tuple[RowPattern, ...] = ()
    layers: int = 1
    layer_height: float = 0.0
    lattice: Optional[RollLattice] = None

    def describe(self) -> str:
        if self.lattice is not None:
            lat = self.lattice
            kind = "hex" if lat.staggered else "grid"
            return f"{lat.mode}-{lat.axis}-{kind}{lat.phase}"
        lengthwise = sum(1 for r in self.rows if r.orientation == "length")
        return f"rows L{lengthwise}/W{len(self.rows) - lengthwise} x{self.layers}"


@dataclass(frozen=True)
class PlacementSlot:
    position: Vector3
    dimensions: Dimensions
    rotation: int
    orientation: Orientation = Orientation.FLAT


def _rank(patterns: List[LayoutPattern], limit: int) -> List[LayoutPattern]:
    # stable: earlier candidates win ties
    patterns.sort(key=lambda p: (-p.total_items, -p.utilization_score))
    return patterns[:limit]


def box_orientations(dims: Dimensions, keep_height: bool = False) -> List[Dimensions]:
    l, w, h = dims.length, dims.width, dims.height
    if keep_height:
        candidates = [(l, w, h), (w, l, h)]
    else:
        candidates = [(l, w, h), (l, h, w), (w, l, h), (w, h, l), (h, l, w), (h, w, l)]
    seen = set()
    result = []
    for c in candidates:
        key = tuple(round(v, 6) for v in c)
        if key in seen:
            continue
        seen.add(key)
        result.append(Dimensions(*c))
    return result


def _rows(lengthwise: int, widthwise: int, dims: Dimensions, container: Container) -> Tuple[RowPattern, ...]:
    along = dims
    across = dims.rotated()
    per_row_l = int(floor(container.length / along.length + 1e-9))
    per_row_w = int(floor(container.length / across.length + 1e-9))
    rows = [RowPattern(along.width, "length", per_row_l, along, 0) for _ in range(lengthwise)]
    rows += [RowPattern(across.width, "width", per_row_w, across, 90) for _ in range(widthwise)]
    return tuple(rows)


def box_patterns(base: Dimensions, container: Container, floor_only: bool = False) -> List[LayoutPattern]:
    """Row configurations over every distinct axis permutation of ``base``."""
    if base.is_degenerate:
        return []
    patterns: List[LayoutPattern] = []
    container_volume = container.volume

    for dims in box_orientations(base, keep_height=floor_only):
        max_l = int(floor(container.width / dims.width + 1e-9))
        max_w = int(floor(container.width / dims.length + 1e-9))
        layers = 1 if floor_only else int(floor(container.height / dims.height + 1e-9))
        if layers == 0:
            continue

        for lr in range(0, min(max_l, MAX_BOX_ROWS) + 1):
            for wr in range(0, min(max_w, MAX_BOX_ROWS) + 1):
                if lr == 0 and wr == 0:
                    continue
                used = lr * dims.width + wr * dims.length
                if used > container.width + BOX_WIDTH_TOLERANCE:
                    continue
                rows = _rows(lr, wr, dims, container)
                per_layer = sum(r.items_per_row for r in rows)
                total = per_layer * layers
                if total == 0:
                    continue
                utilization = total * dims.volume / container_volume * 100
                patterns.append(LayoutPattern(
                    total_items=total,
                    utilization_score=utilization,
                    rows=rows,
                    layers=layers,
                    layer_height=dims.height,
                ))
    return _rank(patterns, MAX_BOX_PATTERNS)


def pallet_patterns(base: Dimensions, container: Container, floor_only: bool = True) -> List[LayoutPattern]:
    """Footprint rotations 0/90 only; utilization is the share of container width used."""
    if base.is_degenerate:
        return []
    patterns: List[LayoutPattern] = []
    max_l = int(floor(container.width / base.width + 1e-9))
    max_w = int(floor(container.width / base.length + 1e-9))
    layers = 1 if floor_only else int(floor(container.height / base.height + 1e-9))
    if layers == 0:
        return []

    for lr in range(0, min(max_l, MAX_PALLET_ROWS) + 1):
        for wr in range(0, min(max_w, MAX_PALLET_ROWS) + 1):
            if lr == 0 and wr == 0:
                continue
            used = lr * base.width + wr * base.length
            if used > container.width + PALLET_WIDTH_TOLERANCE:
                continue
            rows = _rows(lr, wr, base, container)
            total = sum(r.items_per_row for r in rows) * layers
            if total == 0:
                continue
            patterns.append(LayoutPattern(
                total_items=total,
                utilization_score=used / container.width * 100,
                rows=rows,
                layers=layers,
                layer_height=base.height,
            ))
    return _rank(patterns, MAX_PALLET_PATTERNS)


def _line_counts(span: float, cross: float, lattice: RollLattice) -> List[int]:
    """Units per line for every line that fits across ``cross``."""
    d = lattice.diameter
    if cross < d - 1e-9 or span < d - 1e-9:
        return []
    lines = int(floor((cross - d) / lattice.pitch + 1e-9)) + 1
    return [int(floor((span - lattice.offset(k)) / d + 1e-9)) for k in range(lines)]


def _spans(lattice: RollLattice, length: float, width: float) -> Tuple[float, float]:
    # (along the axis, across it)
    return (length, width) if lattice.axis == "x" else (width, length)


def lattice_capacity(lattice: RollLattice, length: float, width: float, height: float,
                     floor_only: bool = False) -> int:
    along, across = _spans(lattice, length, width)
    d, l = lattice.diameter, lattice.length

    if lattice.mode == "vertical":
        if l > height + 1e-9:
            return 0
        layers = 1 if floor_only else int(floor(height / l + 1e-9))
        return sum(_line_counts(along, across, lattice)) * layers

    if lattice.mode == "horizontal":
        segments = int(floor(along / l + 1e-9))
        return sum(_line_counts(across, height, lattice)) * segments

    # hybrid
    if l > height + 1e-9:
        return 0
    floor_part = sum(_line_counts(along, across, lattice))
    segments = int(floor(along / l + 1e-9))
    return floor_part + sum(_line_counts(across, height - l, lattice)) * segments


@lru_cache(maxsize=128)
def _roll_pattern_table(diameter: float, length: float, c_length: float, c_width: float,
                        c_height: float, floor_only: bool) -> Tuple[LayoutPattern, ...]:
    modes = ("vertical",) if floor_only else ("vertical", "horizontal", "hybrid")
    roll_volume = pi * (diameter / 2.0) ** 2 * length
    container_volume = c_length * c_width * c_height
    patterns: List[LayoutPattern] = []
    for mode in modes:
        for axis in ("x", "z"):
            # square grid first so a hex lattice only wins when strictly better
            for staggered, phase in ((False, 0), (True, 0), (True, 1)):
                lattice = RollLattice(mode, axis, staggered, phase, diameter, length)
                capacity = lattice_capacity(lattice, c_length, c_width, c_height, floor_only)
                if capacity <= 0:
                    continue
                layers = 1
                if mode == "vertical" and not floor_only:
                    layers = int(floor(c_height / length + 1e-9))
                patterns.append(LayoutPattern(
                    total_items=capacity,
                    utilization_score=capacity * roll_volume / container_volume * 100,
                    layers=layers,
                    layer_height=length,
                    lattice=lattice,
                ))
    return tuple(_rank(patterns, MAX_ROLL_PATTERNS))


def roll_patterns(diameter: float, length: float, container: Container,
                  floor_only: bool = False) -> List[LayoutPattern]:
    if diameter <= 0 or length <= 0:
        return []
    return list(_roll_pattern_table(
        float(diameter), float(length),
        float(container.length), float(container.width), float(container.height),
        bool(floor_only),
    ))


def roll_slot_shape(lattice: RollLattice, horizontal: bool) -> Tuple[Dimensions, int, Orientation]:
    d, l = lattice.diameter, lattice.length
    if not horizontal:
        return Dimensions(d, d, l), 0, Orientation.VERTICAL
    if lattice.axis == "x":
        return Dimensions(l, d, d), 0, Orientation.HORIZONTAL_X
    return Dimensions(d, l, d), 90, Orientation.HORIZONTAL_Z


def _vertical_points(lattice: RollLattice, length: float, width: float, height: float,
                     layers: int):
    """Column-wise bottom-up: line, position in line, then stack level."""
    along, across = _spans(lattice, length, width)
    d = lattice.diameter
    for k, count in enumerate(_line_counts(along, across, lattice)):
        c = k * lattice.pitch
        start = lattice.offset(k)
        for i in range(count):
            a = start + i * d
            for level in range(layers):
                y = level * lattice.length
                if lattice.axis == "x":
                    yield a, y, c
                else:
                    yield c, y, a


def _log_stack_points(lattice: RollLattice, length: float, width: float, height: float,
                      base_y: float):
    """Segment along the roll axis, then layer bottom-up, then position across."""
    along, across = _spans(lattice, length, width)
    d, l = lattice.diameter, lattice.length
    segments = int(floor(along / l + 1e-9))
    counts = _line_counts(across, height - base_y, lattice)
    for s in range(segments):
        a = s * l
        for k, count in enumerate(counts):
            y = base_y + k * lattice.pitch
            start = lattice.offset(k)
            for j in range(count):
                c = start + j * d
                if lattice.axis == "x":
                    yield a, y, c
                else:
                    yield c, y, a


@lru_cache(maxsize=256)
def lattice_points(lattice: RollLattice, length: float, width: float, height: float,
                   horizontal: bool, floor_only: bool = False, cap: int = 50000) -> np.ndarray:
    """Minimum-corner points of one lattice as a read-only (n, 3) array, at most ``cap`` rows."""
    if horizontal:
        gen = _log_stack_points(lattice, length, width, height, 0.0)
    else:
        if lattice.length > height + 1e-9:
            return np.empty((0, 3), dtype=np.float64)
        layers = 1 if floor_only else int(floor(height / lattice.length + 1e-9))
        gen = _vertical_points(lattice, length, width, height, layers)
    points = []
    for p in gen:
        points.append(p)
        if len(points) >= cap:
            break
    arr = np.array(points, dtype=np.float64).reshape(-1, 3)
    arr.setflags(write=False)
    return arr


def _expired(deadline: Optional[float]) -> bool:
    return deadline is not None and time.perf_counter() > deadline


def _row_slots(pattern: LayoutPattern, container: Container, deadline: Optional[float]):
    slots: List[PlacementSlot] = []
    z = 0.0
    for row in pattern.rows:
        dims = row.dimensions
        if z + dims.width > container.width + SLOT_TOLERANCE:
            break
        for i in range(row.items_per_row):
            x = i * dims.length
            if x + dims.length > container.length + SLOT_TOLERANCE:
                break
            for layer in range(pattern.layers):
                y = layer * dims.height
                if y + dims.height > container.height + SLOT_TOLERANCE:
                    break
                slots.append(PlacementSlot(Vector3(x, y, z), dims, row.rotation))
                if len(slots) % DEADLINE_POLL == 0 and _expired(deadline):
                    return None
        z += row.row_width
    return slots


def _lattice_slots(pattern: LayoutPattern, container: Container, deadline: Optional[float],
                   cap: int):
    lattice = pattern.lattice
    L, W, H = container.length, container.width, container.height
    slots: List[PlacementSlot] = []

    if lattice.mode == "vertical":
        parts = [(_vertical_points(lattice, L, W, H, pattern.layers), False)]
    elif lattice.mode == "horizontal":
        parts = [(_log_stack_points(lattice, L, W, H, 0.0), True)]
    else:
        parts = [
            (_vertical_points(lattice, L, W, H, 1), False),
            (_log_stack_points(lattice, L, W, H, lattice.length), True),
        ]

    for points, horizontal in parts:
        dims, rotation, orientation = roll_slot_shape(lattice, horizontal)
        for x, y, z in points:
            if len(slots) >= cap:
                return slots
            slots.append(PlacementSlot(Vector3(x, y, z), dims, rotation, orientation))
            if len(slots) % DEADLINE_POLL == 0 and _expired(deadline):
                return None
    return slots


def generate_slots(pattern: LayoutPattern, container: Container,
                   deadline: Optional[float] = None,
                   max_slots: int = 50000) -> Optional[List[PlacementSlot]]:
    """Positioned slots of a pattern, or None if ``deadline`` (perf_counter) passed meanwhile."""
    if pattern.lattice is not None:
        return _lattice_slots(pattern, container, deadline, max_slots)
    return _row_slots(pattern, container, deadline)
