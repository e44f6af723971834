"""
Runtime settings for the packing engine.

Units follow the caller (the presets are in centimetres); every tolerance below is
expressed in the same unit as the container dimensions.
"""

from __future__ import annotations

import os
from dataclasses import dataclass, field, replace

from dotenv import load_dotenv

load_dotenv()


@dataclass(frozen=True)
class Tolerances:
    """Geometric tolerances handed explicitly to every predicate."""

    epsilon: float = 0.01  # overlap / containment slack
    floor_epsilon: float = 0.01  # y below this counts as "on the floor"
    contact_epsilon: float = 0.05  # top face vs bottom face distance for flat support
    roll_overlap_tolerance: float = 0.01  # allowed cylinder interpenetration
    roll_contact_tolerance: float = 0.25  # |center distance - (r1 + r2)| for roll contact
    min_support_ratio: float = 0.70

    def __post_init__(self) -> None:
        if not 0.60 <= self.min_support_ratio <= 0.75:
            raise ValueError(
                f"min_support_ratio must be within [0.60, 0.75], got {self.min_support_ratio!r}"
            )


@dataclass
class Settings:
    tolerances: Tolerances = field(default_factory=Tolerances)

    enable_pattern_packing: bool = True
    pattern_min_group_size: int = 6
    pattern_time_budget: float = 3.0  # seconds

    enforce_max_weight: bool = True

    # anchor ordering for boxes: y * W1 + x * W2 + z
    anchor_y_weight: float = 1e6
    anchor_x_weight: float = 1e3

    max_lattice_points: int = 50000
    pallet_scan_step: float = 5.0
    nudge_step: float = 1.0
    nudge_max_steps: int = 200

    @classmethod
    def from_env(cls) -> "Settings":
        defaults = cls()
        tol = defaults.tolerances
        tolerances = replace(
            tol,
            epsilon=_env_float("CARGOLOAD_EPSILON", tol.epsilon),
            contact_epsilon=_env_float("CARGOLOAD_CONTACT_EPSILON", tol.contact_epsilon),
            roll_contact_tolerance=_env_float(
                "CARGOLOAD_ROLL_CONTACT_TOLERANCE", tol.roll_contact_tolerance
            ),
            min_support_ratio=_env_float("CARGOLOAD_MIN_SUPPORT_RATIO", tol.min_support_ratio),
        )
        return cls(
            tolerances=tolerances,
            enable_pattern_packing=_env_bool(
                "CARGOLOAD_PATTERN_PACKING", defaults.enable_pattern_packing
            ),
            pattern_min_group_size=int(
                os.getenv("CARGOLOAD_PATTERN_MIN_GROUP", defaults.pattern_min_group_size)
            ),
            pattern_time_budget=_env_float(
                "CARGOLOAD_PATTERN_TIME_BUDGET", defaults.pattern_time_budget
            ),
            enforce_max_weight=_env_bool(
                "CARGOLOAD_ENFORCE_MAX_WEIGHT", defaults.enforce_max_weight
            ),
            max_lattice_points=int(
                os.getenv("CARGOLOAD_MAX_LATTICE_POINTS", defaults.max_lattice_points)
            ),
            pallet_scan_step=_env_float("CARGOLOAD_PALLET_SCAN_STEP", defaults.pallet_scan_step),
        )


def _env_float(name: str, default: float) -> float:
    raw = os.getenv(name)
    if raw is None or raw == "":
        return default
    return float(raw)


def _env_bool(name: str, default: bool) -> bool:
    raw = os.getenv(name)
    if raw is None or raw == "":
        return default
    return raw.strip().lower() in ("1", "true", "yes", "on")
