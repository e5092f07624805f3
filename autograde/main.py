# autograde/main.py
from contextlib import asynccontextmanager

from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware

from autograde.routes.processing_routes import router as processing_router
from autograde.services.job_queue import get_worker_pool


@asynccontextmanager
async def lifespan(app: FastAPI):
    yield
    get_worker_pool().shutdown(wait=False)


app = FastAPI(
    title="Autograde – Grade Sheet Vision",
    version="0.1.0",
    lifespan=lifespan,
)

# CORS (relaxed; tighten if needed)
app.add_middleware(
    CORSMiddleware,
    allow_origins=["*"],
    allow_methods=["*"],
    allow_headers=["*"],
)


@app.get("/")
def root_index():
    return {"message": "Autograde grade-sheet processing is running", "docs": "/docs"}


app.include_router(processing_router)
