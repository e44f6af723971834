from .packing import router as packing_routes
from .presets import router as presets_routes
from .tasks import router as tasks_routes

__all__ = [
    "packing_routes",
    "presets_routes",
    "tasks_routes",
]
