from dataclasses import replace
from typing import List, Optional

from cargoload import schemas
from cargoload.config import Settings
from cargoload.model.entities import (
    CargoItem,
    CargoType,
    Container,
    Dimensions,
    Orientation,
    PlacedItem,
    RollDimensions,
)
from cargoload.model.solver import PackingEngine, PackingResult


def _dimensions(schema: Optional[schemas.DimensionsSchema]) -> Optional[Dimensions]:
    if schema is None:
        return None
    return Dimensions(schema.length, schema.width, schema.height)


def prepare_items(items: List[schemas.CargoItemSchema]) -> List[CargoItem]:
    result = []
    for item in items:
        roll = item.roll_dimensions
        result.append(
            CargoItem(
                id=item.id,
                type=CargoType(item.type),
                name=item.name,
                quantity=item.quantity,
                weight=item.weight,
                dimensions=_dimensions(item.dimensions),
                roll_dimensions=RollDimensions(roll.diameter, roll.length) if roll else None,
                pallet_dimensions=_dimensions(item.pallet_dimensions),
                stackable=item.stackable,
                fragile=item.fragile,
                is_palletized=item.is_palletized,
                color=item.color,
            )
        )
    return result


def prepare_container(container: schemas.ContainerSchema) -> Container:
    dims = container.dimensions
    return Container(
        id=container.id,
        name=container.name,
        length=dims.length,
        width=dims.width,
        height=dims.height,
        max_weight=container.max_weight if container.max_weight is not None else float("inf"),
    )


def prepare_settings(options: Optional[schemas.PackingOptions]) -> Settings:
    settings = Settings.from_env()
    if options is None:
        return settings
    if options.enable_pattern_packing is not None:
        settings.enable_pattern_packing = options.enable_pattern_packing
    if options.pattern_min_group_size is not None:
        settings.pattern_min_group_size = options.pattern_min_group_size
    if options.pattern_time_budget is not None:
        settings.pattern_time_budget = options.pattern_time_budget
    if options.enforce_max_weight is not None:
        settings.enforce_max_weight = options.enforce_max_weight
    if options.min_support_ratio is not None:
        settings.tolerances = replace(settings.tolerances, min_support_ratio=options.min_support_ratio)
    return settings


def _item_schema(item: CargoItem) -> schemas.CargoItemSchema:
    return schemas.CargoItemSchema(
        id=item.id,
        type=item.type.value,
        name=item.name,
        weight=item.weight,
        quantity=item.quantity,
        dimensions=_dimensions_schema(item.dimensions),
        roll_dimensions=(
            schemas.RollDimensionsSchema(
                diameter=item.roll_dimensions.diameter, length=item.roll_dimensions.length
            )
            if item.roll_dimensions
            else None
        ),
        pallet_dimensions=_dimensions_schema(item.pallet_dimensions),
        stackable=item.stackable,
        fragile=item.fragile,
        is_palletized=item.is_palletized,
        color=item.color,
    )


def _dimensions_schema(dims: Optional[Dimensions]) -> Optional[schemas.DimensionsSchema]:
    if dims is None:
        return None
    return schemas.DimensionsSchema(length=dims.length, width=dims.width, height=dims.height)


def _placed_schema(placed: PlacedItem) -> schemas.PlacedItemSchema:
    orientation = None
    axis = None
    if placed.orientation == Orientation.VERTICAL:
        orientation = "vertical"
    elif placed.orientation == Orientation.HORIZONTAL_X:
        orientation, axis = "horizontal", "x"
    elif placed.orientation == Orientation.HORIZONTAL_Z:
        orientation, axis = "horizontal", "z"
    pos = placed.position
    return schemas.PlacedItemSchema(
        item_id=placed.item_id,
        item=_item_schema(placed.item),
        position=schemas.Vector3Schema(x=pos.x, y=pos.y, z=pos.z),
        rotation=placed.rotation,
        orientation=orientation,
        axis=axis,
        dimensions=_dimensions_schema(placed.dimensions),
    )


def to_response(result: PackingResult) -> schemas.PackingResponse:
    return schemas.PackingResponse(
        placed_items=[_placed_schema(p) for p in result.placed_items],
        unplaced_items=[_item_schema(i) for i in result.unplaced_items],
        utilization_percent=result.utilization_percent,
        total_weight=result.total_weight,
        execution_time=result.execution_time,
        unplaced_reasons=result.unplaced_reasons,
    )


def run_packing(request: schemas.PackingRequest) -> schemas.PackingResponse:
    engine = PackingEngine(prepare_settings(request.options))
    result = engine.run(prepare_items(request.items), prepare_container(request.container))
    return to_response(result)
