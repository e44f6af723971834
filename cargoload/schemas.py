from typing import Any, Dict, Literal, Optional

from pydantic import AliasChoices, BaseModel, ConfigDict, Field


def to_camel(string: str) -> str:
    """Helper function to convert snake_case to camelCase"""
    parts = string.split("_")
    return parts[0] + "".join(word.capitalize() for word in parts[1:])


class CamelModel(BaseModel):
    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True)


class Vector3Schema(CamelModel):
    x: float
    y: float
    z: float


class DimensionsSchema(CamelModel):
    length: float
    width: float
    height: float


class RollDimensionsSchema(CamelModel):
    diameter: float
    length: float


# ----Cargo-----
class CargoItemSchema(CamelModel):
    id: str
    type: Literal["box", "roll", "pallet"]
    name: str = ""
    weight: Optional[float] = None
    quantity: int = Field(default=1, ge=0)
    dimensions: Optional[DimensionsSchema] = None
    roll_dimensions: Optional[RollDimensionsSchema] = None
    pallet_dimensions: Optional[DimensionsSchema] = None
    stackable: bool = True
    fragile: bool = False
    is_palletized: bool = Field(
        default=False,
        validation_alias=AliasChoices("isPalletized", "is_palletized", "palletized"),
        serialization_alias="isPalletized",
    )
    color: Optional[str] = None


# ----Container-----
class ContainerSchema(CamelModel):
    id: str
    name: str = ""
    dimensions: DimensionsSchema
    # None means no weight limit
    max_weight: Optional[float] = Field(default=None, gt=0)


class ContainerPresetSchema(CamelModel):
    id: str
    name: str
    type: str
    length: float
    width: float
    height: float
    max_weight: float
    is_default: bool = True


# ----Packing-----
class PackingOptions(CamelModel):
    enable_pattern_packing: Optional[bool] = None
    pattern_min_group_size: Optional[int] = Field(default=None, ge=1)
    pattern_time_budget: Optional[float] = Field(default=None, gt=0)
    min_support_ratio: Optional[float] = Field(default=None, ge=0.60, le=0.75)
    enforce_max_weight: Optional[bool] = None


class PackingRequest(CamelModel):
    items: list[CargoItemSchema]
    container: ContainerSchema
    options: Optional[PackingOptions] = None


class PlacedItemSchema(CamelModel):
    item_id: str
    item: CargoItemSchema
    position: Vector3Schema
    rotation: int
    orientation: Optional[Literal["vertical", "horizontal"]] = None
    axis: Optional[Literal["x", "z"]] = None
    dimensions: DimensionsSchema


class PackingResponse(CamelModel):
    placed_items: list[PlacedItemSchema]
    unplaced_items: list[CargoItemSchema]
    utilization_percent: float
    total_weight: float
    execution_time: float
    unplaced_reasons: Dict[str, str] = {}


# ----Tasks-----
class TaskCreatedResponse(BaseModel):
    task_id: str
    status: str
    message: str


class TaskStatusResponse(BaseModel):
    task_id: str
    status: str
    message: str
    result: Optional[Any] = None
    error: Optional[str] = None
