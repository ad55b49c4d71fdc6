"""GlucoPredict FastAPI application."""

from contextlib import asynccontextmanager
from typing import Any

from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware

from glucopredict.config import settings
from glucopredict.database import close_database
from glucopredict.logging_config import get_logger, setup_logging
from glucopredict.middleware import CorrelationIdMiddleware
from glucopredict.routers import glucose_calculations, health
from glucopredict.routers import settings as settings_router

setup_logging(
    log_format=settings.log_format,
    log_level=settings.log_level,
    service_name=settings.service_name,
)
logger = get_logger(__name__)

API_VERSION = "0.1.0"


@asynccontextmanager
async def lifespan(app: FastAPI):
    """Application lifespan handler."""
    # Migrations run before uvicorn starts (python -m glucopredict.core.migrations)
    logger.info(
        "GlucoPredict API started",
        prediction_horizon_minutes=settings.prediction_horizon_minutes,
        event_window_hours=settings.event_window_hours,
    )

    yield

    logger.info("Shutting down GlucoPredict API")
    await close_database()
    logger.info("GlucoPredict API shutdown complete")


app = FastAPI(
    title="GlucoPredict API",
    description="Glucose prediction from insulin and carbohydrate decay",
    version=API_VERSION,
    lifespan=lifespan,
)

# First added = last executed
app.add_middleware(
    CORSMiddleware,
    allow_origins=settings.cors_origins,
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)
app.add_middleware(CorrelationIdMiddleware)

app.include_router(health.router)
app.include_router(glucose_calculations.router)
app.include_router(settings_router.router)


@app.get("/")
async def root() -> dict[str, Any]:
    """Root endpoint."""
    return {
        "name": "GlucoPredict API",
        "version": API_VERSION,
        "docs": "/docs",
    }
