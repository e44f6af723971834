import time

from cargoload import schemas, service
from cargoload.celery_app import celery_app
from cargoload.logger import logger

__all__ = ["celery_app", "pack_task"]


@celery_app.task(name="pack", bind=True, pydantic=True, time_limit=1800)
def pack_task(self, payload: dict) -> dict:
    try:
        logger.info(f"Starting Pack Task with id: {self.request.id}")
        request = schemas.PackingRequest.model_validate(payload)

        start_time = time.perf_counter()
        response = service.run_packing(request)
        end_time = time.perf_counter()

        elapsed_time = end_time - start_time
        logger.info(f"Pack Task completed after {elapsed_time} seconds")

        result = response.model_dump(mode="json", by_alias=True)
        result["status"] = "SUCCESS"
        result["message"] = f"Pack Task completed after {elapsed_time} seconds"
        return result

    except Exception as e:
        logger.info(f"Pack Task Failed: {str(e)}")
        raise e
