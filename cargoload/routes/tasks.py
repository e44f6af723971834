from celery.result import AsyncResult
from fastapi import APIRouter

from cargoload import schemas
from cargoload.celery_app import celery_app

router = APIRouter(tags=["Celery Tasks"])


@router.get("/", response_model=schemas.TaskStatusResponse)
def get_task_status(task_id: str):
    """Get the status of a packing task"""
    task_result = AsyncResult(task_id, app=celery_app)

    if task_result.state == "PENDING":
        response = {
            "task_id": task_id,
            "status": task_result.state,
            "message": "Task is waiting to be processed",
        }
    elif task_result.state == "FAILURE":
        response = {
            "task_id": task_id,
            "status": task_result.state,
            "message": "Task failed",
            "error": str(task_result.info),
        }
    elif task_result.state == "SUCCESS":
        response = {
            "task_id": task_id,
            "status": task_result.state,
            "result": task_result.result,
            "message": "Task completed successfully",
        }
    else:
        response = {
            "task_id": task_id,
            "status": task_result.state,
            "message": f"Task is {task_result.state.lower()}",
        }

    return response


@router.get("/health")
def health_check():
    """Health check endpoint"""
    return {"status": "healthy", "service": "cargoload"}
