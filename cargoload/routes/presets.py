from fastapi import APIRouter, HTTPException

from cargoload import presets, schemas

router = APIRouter(tags=["Container Presets"])


@router.get("/", response_model=list[schemas.ContainerPresetSchema])
def read_presets():
    return presets.list_presets()


@router.get("/{container_type}", response_model=schemas.ContainerPresetSchema)
def read_preset(container_type: str):
    preset = presets.get_preset(container_type)
    if preset is None:
        raise HTTPException(status_code=404, detail=f"Unknown container type {container_type}")
    return preset
