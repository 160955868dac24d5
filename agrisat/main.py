"""FastAPI application setup for the AgriSat feedback service."""

from contextlib import asynccontextmanager

from fastapi import FastAPI

from agrisat.advisor import FarmAdvisor
from agrisat.api import router as api_router
from agrisat.climate import ClimateAggregator
from agrisat.config import settings
from agrisat.data_access import DataAccessService
from agrisat.decision_engine import DecisionRuleEngine
from utils.logging_utils import get_tagged_logger

logger = get_tagged_logger(__name__, tag="agrisat/main")


@asynccontextmanager
async def lifespan(app: FastAPI):
    """Build the services once per process and keep them on `app.state`."""
    service = DataAccessService.from_settings(settings)
    app.state.data_access = service
    app.state.advisor = FarmAdvisor(
        ClimateAggregator(service),
        DecisionRuleEngine(strict=settings.strict_snapshots),
    )
    await service.start(probe=settings.probe_on_start)
    try:
        yield
    finally:
        service.stop()
        logger.info("Services stopped")


app = FastAPI(title="AgriSat Feedback", lifespan=lifespan)

# API routes
app.include_router(api_router, prefix="/v1")
