from __future__ import annotations

from dataclasses import dataclass, field, replace
from enum import Enum, IntEnum
from math import pi
from typing import List, Optional, Tuple

import numpy as np


class CargoType(str, Enum):
    BOX = "box"
    ROLL = "roll"
    PALLET = "pallet"


class Orientation(IntEnum):
    """Resolved orientation of a placed unit.

    Boxes and pallets are always FLAT (their 0/90 turn lives in ``rotation``), and so
    is a roll mounted on a pallet. Other rolls are VERTICAL (axis along y) or lie
    horizontally with the axis along x or z.
    """

    FLAT = 0
    VERTICAL = 1
    HORIZONTAL_X = 2
    HORIZONTAL_Z = 3


# numeric shape codes used inside the numba kernels
KIND_BOX = 0
KIND_ROLL = 1
KIND_PALLET = 2

KIND_CODES = {
    CargoType.BOX: KIND_BOX,
    CargoType.ROLL: KIND_ROLL,
    CargoType.PALLET: KIND_PALLET,
}

# columns of the placed-item array: x, y, z, dx, dy, dz, kind, orientation
PLACED_COLUMNS = 8


@dataclass(frozen=True)
class Vector3:
    x: float
    y: float
    z: float

    def as_tuple(self) -> Tuple[float, float, float]:
        return (self.x, self.y, self.z)


@dataclass(frozen=True)
class Dimensions:
    """length runs along x, width along z, height along y."""

    length: float
    width: float
    height: float

    @property
    def volume(self) -> float:
        return self.length * self.width * self.height

    @property
    def footprint(self) -> float:
        return self.length * self.width

    @property
    def is_degenerate(self) -> bool:
        return self.length <= 0 or self.width <= 0 or self.height <= 0

    def rotated(self) -> "Dimensions":
        return Dimensions(self.width, self.length, self.height)

    def extents(self) -> Tuple[float, float, float]:
        """(dx, dy, dz) in container axes."""
        return (self.length, self.height, self.width)

    def key(self) -> Tuple[float, float, float]:
        return (round(self.length, 4), round(self.width, 4), round(self.height, 4))


@dataclass(frozen=True)
class RollDimensions:
    diameter: float
    length: float

    def key(self) -> Tuple[float, float]:
        return (round(self.diameter, 4), round(self.length, 4))


@dataclass(frozen=True)
class Container:
    id: str
    name: str
    length: float
    width: float
    height: float
    max_weight: float

    @property
    def volume(self) -> float:
        return self.length * self.width * self.height

    @property
    def dimensions(self) -> Dimensions:
        return Dimensions(self.length, self.width, self.height)


@dataclass
class CargoItem:
    id: str
    type: CargoType
    name: str = ""
    quantity: int = 1
    weight: Optional[float] = None
    dimensions: Optional[Dimensions] = None
    roll_dimensions: Optional[RollDimensions] = None
    pallet_dimensions: Optional[Dimensions] = None
    # reserved, not used to gate placement
    stackable: bool = True
    fragile: bool = False
    is_palletized: bool = False
    color: Optional[str] = None
    # catalog entry a unit was expanded from
    source: Optional["CargoItem"] = field(default=None, repr=False, compare=False)

    @property
    def is_floor_only(self) -> bool:
        return self.is_palletized or self.pallet_dimensions is not None

    @property
    def is_pallet_mounted(self) -> bool:
        """A roll standing on a pallet deck; collides and tiles as its deck box."""
        return self.type == CargoType.ROLL and self.pallet_dimensions is not None

    @property
    def weight_value(self) -> float:
        return float(self.weight) if self.weight else 0.0

    @property
    def catalog_entry(self) -> "CargoItem":
        return self.source if self.source is not None else self

    def expand(self) -> List["CargoItem"]:
        """One unit per quantity, ids suffixed with the unit index."""
        return [
            replace(self, id=f"{self.id}-{n}", quantity=1, source=self)
            for n in range(max(int(self.quantity), 0))
        ]

    def effective_dimensions(self) -> Optional[Dimensions]:
        """Box-like bounding dimensions, pallet footprint and height included."""
        base = self.dimensions
        if base is None and self.roll_dimensions is not None:
            d, l = self.roll_dimensions.diameter, self.roll_dimensions.length
            base = Dimensions(d, d, l)
        if base is None:
            return None
        if self.pallet_dimensions is not None:
            base = Dimensions(
                self.pallet_dimensions.length,
                self.pallet_dimensions.width,
                base.height + self.pallet_dimensions.height,
            )
        if base.is_degenerate:
            return None
        return base

    def roll_profile(self) -> Optional[Tuple[float, float]]:
        """(diameter, length) of the cylinder used for placement."""
        if self.roll_dimensions is not None:
            diameter = self.roll_dimensions.diameter
            length = self.roll_dimensions.length
        elif self.dimensions is not None:
            diameter = min(self.dimensions.length, self.dimensions.width)
            length = self.dimensions.height
        else:
            return None

        if self.pallet_dimensions is not None:
            length = length + self.pallet_dimensions.height
            diameter = max(self.pallet_dimensions.length, self.pallet_dimensions.width)

        if diameter <= 0 or length <= 0:
            return None
        return diameter, length

    @property
    def volume(self) -> float:
        if self.type == CargoType.ROLL:
            if self.roll_dimensions is not None:
                r = self.roll_dimensions.diameter / 2
                return pi * r * r * self.roll_dimensions.length
            profile = self.roll_profile()
            if profile is None:
                return 0.0
            return pi * (profile[0] / 2) ** 2 * profile[1]
        if self.dimensions is None:
            return 0.0
        return self.dimensions.volume

    def group_key(self) -> Tuple:
        return (
            self.type.value,
            self.dimensions.key() if self.dimensions else None,
            self.roll_dimensions.key() if self.roll_dimensions else None,
            self.pallet_dimensions.key() if self.pallet_dimensions else None,
            self.is_palletized,
        )


@dataclass(frozen=True)
class OrientationOption:
    dimensions: Dimensions
    rotation: int
    orientation: Orientation


@dataclass(frozen=True)
class PlacementChoice:
    position: Vector3
    rotation: int
    orientation: Orientation
    dimensions: Dimensions


@dataclass(frozen=True)
class PlacedItem:
    item: CargoItem
    position: Vector3
    rotation: int
    orientation: Orientation
    dimensions: Dimensions

    @property
    def item_id(self) -> str:
        return self.item.id

    @property
    def kind(self) -> int:
        return KIND_CODES[self.item.type]

    @property
    def radius(self) -> float:
        if self.orientation == Orientation.VERTICAL:
            return self.dimensions.length / 2
        return self.dimensions.height / 2

    @property
    def volume(self) -> float:
        if self.orientation == Orientation.VERTICAL:
            return pi * self.radius ** 2 * self.dimensions.height
        if self.orientation == Orientation.HORIZONTAL_X:
            return pi * self.radius ** 2 * self.dimensions.length
        if self.orientation == Orientation.HORIZONTAL_Z:
            return pi * self.radius ** 2 * self.dimensions.width
        if self.item.type == CargoType.ROLL:
            # roll on a pallet: the cylinder counts, not the deck box
            return self.item.volume
        return self.dimensions.volume

    def row(self) -> Tuple[float, ...]:
        dx, dy, dz = self.dimensions.extents()
        return (
            self.position.x,
            self.position.y,
            self.position.z,
            dx,
            dy,
            dz,
            float(self.kind),
            float(int(self.orientation)),
        )

    @classmethod
    def from_choice(cls, item: CargoItem, choice: PlacementChoice) -> "PlacedItem":
        return cls(
            item=item,
            position=choice.position,
            rotation=choice.rotation,
            orientation=choice.orientation,
            dimensions=choice.dimensions,
        )


class PackingContext:
    """Container plus the placed items of the current run.

    Placed items are only ever appended. A float64 row view
    (``x, y, z, dx, dy, dz, kind, orientation``) is kept in step for the numba kernels.
    """

    def __init__(self, container: Container, placed_items: Optional[List[PlacedItem]] = None):
        self.container = container
        self.placed_items: List[PlacedItem] = []
        self._rows = np.zeros((64, PLACED_COLUMNS), dtype=np.float64)
        self._count = 0
        for placed in placed_items or []:
            self.add(placed)

    def __len__(self) -> int:
        return len(self.placed_items)

    @property
    def is_empty(self) -> bool:
        return not self.placed_items

    @property
    def total_weight(self) -> float:
        return sum(p.item.weight_value for p in self.placed_items)

    def add(self, placed: PlacedItem) -> None:
        if self._count == self._rows.shape[0]:
            grown = np.zeros((self._rows.shape[0] * 2, PLACED_COLUMNS), dtype=np.float64)
            grown[: self._count] = self._rows[: self._count]
            self._rows = grown
        self._rows[self._count] = placed.row()
        self._count += 1
        self.placed_items.append(placed)

    def as_array(self) -> np.ndarray:
        return self._rows[: self._count]

    def fork(self) -> "PackingContext":
        clone = PackingContext(self.container)
        clone.placed_items = list(self.placed_items)
        clone._rows = self._rows.copy()
        clone._count = self._count
        return clone
