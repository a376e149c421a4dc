"""FastAPI application entry point for Furlong."""

import logging
from contextlib import asynccontextmanager

from fastapi import FastAPI

from furlong.api import analysis
from furlong.config import get_settings
from furlong.reference import StaticReferenceData

settings = get_settings()

logging.basicConfig(
    level=getattr(logging, settings.log_level.upper()),
    format="%(asctime)s - %(name)s - %(levelname)s - %(message)s",
)
logger = logging.getLogger(__name__)


@asynccontextmanager
async def lifespan(app: FastAPI):
    """Load reference data on startup."""
    if settings.reference_data_path:
        app.state.reference = StaticReferenceData.from_json(settings.reference_data_path)
    else:
        app.state.reference = StaticReferenceData()
    logger.info("Furlong ready")
    yield


app = FastAPI(
    title="Furlong",
    description="Handicapping score and value-detection engine",
    version="0.1.0",
    lifespan=lifespan,
)

app.include_router(analysis.router, prefix="/api", tags=["analysis"])


@app.get("/health")
async def health_check():
    """Health check endpoint."""
    return {"status": "healthy", "version": "0.1.0"}
