"""HTTP API for the farming feedback service."""

from typing import Annotated, Any, Optional

from fastapi import APIRouter, Depends, HTTPException, Query, Request, status
from pydantic import BaseModel

from agrisat.advisor import FarmAdvisor
from agrisat.conservation import crop_guidance
from agrisat.data_access import DataAccessService
from agrisat.domain import (
    ActivityOutcome,
    ClimateSnapshot,
    CropGuidance,
    FieldAssessment,
    Recommendation,
    SustainabilityReport,
)
from agrisat.errors import DataAccessError, IncompleteSnapshotError
from utils.logging_utils import get_tagged_logger

logger = get_tagged_logger(__name__, tag="agrisat/api")

router = APIRouter()

Latitude = Annotated[float, Query(ge=-90, le=90, description="Latitude in decimal degrees")]
Longitude = Annotated[float, Query(ge=-180, le=180, description="Longitude in decimal degrees")]


def get_data_access(request: Request) -> DataAccessService:
    """Data access service built in the application lifespan."""
    return request.app.state.data_access


def get_advisor(request: Request) -> FarmAdvisor:
    """Field advisor built in the application lifespan."""
    return request.app.state.advisor


class StatusResponse(BaseModel):
    """Connectivity, queue and cache state of the data access layer."""
    online: bool
    connection_status: str
    queue_size: int
    in_flight: bool
    last_request: Optional[float] = None
    last_checked: Optional[float] = None
    last_error: Optional[str] = None
    cache_size: int
    cache: dict[str, Any]


class MessageResponse(BaseModel):
    message: str


async def _assess(advisor: FarmAdvisor, lat: float, lon: float) -> FieldAssessment:
    try:
        return await advisor.assess(lat, lon)
    except IncompleteSnapshotError as exc:
        logger.warning("Snapshot incomplete for strict analysis", extra={"rule": exc.rule_id, "missing": exc.missing})
        raise HTTPException(status_code=422, detail=str(exc)) from exc


@router.get("/climate", response_model=ClimateSnapshot)
async def get_climate(lat: Latitude, lon: Longitude, advisor: FarmAdvisor = Depends(get_advisor)):
    return await advisor.aggregator.get_climate_snapshot(lat, lon)


@router.get("/assessment", response_model=FieldAssessment)
async def get_assessment(lat: Latitude, lon: Longitude, advisor: FarmAdvisor = Depends(get_advisor)):
    return await _assess(advisor, lat, lon)


@router.get("/recommendations", response_model=list[Recommendation])
async def get_recommendations(
    lat: Latitude, lon: Longitude, advisor: FarmAdvisor = Depends(get_advisor)
):
    assessment = await _assess(advisor, lat, lon)
    return assessment.recommendations


@router.get("/sustainability", response_model=SustainabilityReport)
async def get_sustainability(
    lat: Latitude, lon: Longitude, advisor: FarmAdvisor = Depends(get_advisor)
):
    assessment = await _assess(advisor, lat, lon)
    return assessment.report


@router.post("/activities/{activity}", response_model=ActivityOutcome)
async def execute_activity(
    activity: str, lat: Latitude, lon: Longitude, advisor: FarmAdvisor = Depends(get_advisor)
):
    snapshot = await advisor.aggregator.get_climate_snapshot(lat, lon)
    try:
        return advisor.execute_activity(activity, snapshot)
    except IncompleteSnapshotError as exc:
        logger.warning("Snapshot incomplete for strict analysis", extra={"rule": exc.rule_id, "missing": exc.missing})
        raise HTTPException(status_code=422, detail=str(exc)) from exc
    except ValueError as exc:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail=str(exc)) from exc


@router.get("/imagery")
async def get_imagery(
    lat: Latitude,
    lon: Longitude,
    date: Optional[str] = Query(default=None, pattern=r"^\d{4}-\d{2}-\d{2}$"),
    service: DataAccessService = Depends(get_data_access),
):
    try:
        return await service.get_earth_imagery(lat, lon, date)
    except DataAccessError as exc:
        logger.warning("Imagery request failed", extra={"endpoint": exc.endpoint, "error": str(exc)})
        raise HTTPException(status_code=status.HTTP_502_BAD_GATEWAY, detail=str(exc)) from exc


@router.get("/crops/{crop}", response_model=CropGuidance)
def get_crop_guidance(crop: str):
    guidance = crop_guidance(crop)
    if guidance is None:
        raise HTTPException(status_code=404, detail=f"No guidance for crop '{crop}'")
    return guidance


@router.get("/status", response_model=StatusResponse)
def get_status(service: DataAccessService = Depends(get_data_access)):
    return StatusResponse(**service.status(), cache=service.cache_stats())


@router.post("/cache/clear", response_model=MessageResponse)
def clear_cache(service: DataAccessService = Depends(get_data_access)):
    service.clear_cache()
    return MessageResponse(message="Cache cleared")


@router.post("/connectivity/{state}", response_model=StatusResponse)
def signal_connectivity(state: str, service: DataAccessService = Depends(get_data_access)):
    """Apply an environment connectivity signal (`online` or `offline`)."""
    if state == "online":
        service.handle_online()
    elif state == "offline":
        service.handle_offline()
    else:
        raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail="state must be 'online' or 'offline'")
    return StatusResponse(**service.status(), cache=service.cache_stats())
