"""Built-in container presets, dimensions in centimetres and weights in kilograms."""

from typing import Dict, List, Optional

from cargoload.model.entities import Container

CM_TO_M = 0.01
M_TO_CM = 100

DEFAULT_CONTAINERS: Dict[str, Dict] = {
    "20DC": {
        "id": "20dc-default",
        "name": "20ft Dry Container",
        "type": "20DC",
        "length": 590,
        "width": 235,
        "height": 237,
        "max_weight": 28000,
        "is_default": True,
    },
    "40DC": {
        "id": "40dc-default",
        "name": "40ft Dry Container",
        "type": "40DC",
        "length": 1198,
        "width": 235,
        "height": 235,
        "max_weight": 29000,
        "is_default": True,
    },
    "40HC": {
        "id": "40hc-default",
        "name": "40ft High Cube",
        "type": "40HC",
        "length": 1198,
        "width": 235,
        "height": 269,
        "max_weight": 29000,
        "is_default": True,
    },
    "TRUCK": {
        "id": "truck-default",
        "name": "Truck",
        "type": "TRUCK",
        "length": 1360,
        "width": 242,
        "height": 260,
        "max_weight": 24000,
        "is_default": True,
    },
}


def list_presets() -> List[Dict]:
    return [dict(p) for p in DEFAULT_CONTAINERS.values()]


def get_preset(container_type: str) -> Optional[Dict]:
    preset = DEFAULT_CONTAINERS.get(container_type.upper())
    return dict(preset) if preset else None


def preset_container(container_type: str) -> Container:
    preset = DEFAULT_CONTAINERS[container_type.upper()]
    return Container(
        id=preset["id"],
        name=preset["name"],
        length=float(preset["length"]),
        width=float(preset["width"]),
        height=float(preset["height"]),
        max_weight=float(preset["max_weight"]),
    )


def cm_to_m(cm: float) -> float:
    return cm * CM_TO_M


def m_to_cm(m: float) -> int:
    return round(m * M_TO_CM)


def volume_m3(length: float, width: float, height: float) -> float:
    """Volume in cubic metres from centimetre dimensions."""
    return (length * width * height) / 1_000_000


def format_dimensions(length: float, width: float, height: float, unit: str = "cm") -> str:
    if unit == "m":
        return f"{cm_to_m(length):.2f}m x {cm_to_m(width):.2f}m x {cm_to_m(height):.2f}m"
    return f"{length}cm x {width}cm x {height}cm"
