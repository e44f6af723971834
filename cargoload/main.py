from dotenv import load_dotenv
from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware

from cargoload.routes import packing_routes, presets_routes, tasks_routes

load_dotenv()

app = FastAPI(title="cargoload")

app.add_middleware(
    CORSMiddleware,
    allow_origins=["*"],
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)

app.include_router(packing_routes, prefix="/packing")
app.include_router(tasks_routes, prefix="/tasks")
app.include_router(presets_routes, prefix="/presets")
