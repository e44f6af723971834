from fastapi import APIRouter, HTTPException

from cargoload import schemas, service
from cargoload.celery.tasks import pack_task
from cargoload.logger import logger

router = APIRouter(tags=["Packing"])


@router.post("/run", response_model=schemas.PackingResponse)
def run_packing(request: schemas.PackingRequest):
    """Pack the request synchronously and return the load plan."""
    try:
        return service.run_packing(request)
    except Exception as e:
        logger.error(f"Packing failed: {e}")
        raise HTTPException(status_code=500, detail=str(e))


@router.post("/tasks", response_model=schemas.TaskCreatedResponse)
def create_packing_task(request: schemas.PackingRequest):
    """Queue the request on a celery worker."""
    task = pack_task.delay(request.model_dump(mode="json", by_alias=True))
    return {
        "task_id": task.id,
        "status": "Task created",
        "message": f"Packing {sum(item.quantity for item in request.items)} units",
    }
