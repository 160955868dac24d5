"""Domain vocabulary and schemas for climate snapshots and agronomic feedback.

This module defines the stable contract between the data access layer, the
decision engine and the sustainability scorer: enums and Pydantic models for
the payloads that flow through the system. No interpretation logic lives here.
"""

from __future__ import annotations

from datetime import datetime, timezone
from enum import Enum
from typing import Dict, List, Optional, Union

from pydantic import BaseModel, ConfigDict, Field


def utc_now() -> datetime:
    """Timezone-aware current time used to stamp snapshots and reports."""
    return datetime.now(timezone.utc)


class _StrictBaseModel(BaseModel):
    """Base model with strict extra handling."""

    model_config = ConfigDict(extra="forbid")


class SnapshotSource(str, Enum):
    """Where the values of a climate snapshot came from."""
    LIVE = "live"
    SYNTHETIC = "synthetic"


class Urgency(str, Enum):
    """How soon a recommended activity should happen."""
    LOW = "low"
    MEDIUM = "medium"
    HIGH = "high"


class Activity(str, Enum):
    """Farming activities the decision engine can recommend."""
    IRRIGATION = "irrigation"
    FERTILIZATION = "fertilization"
    PLANTING = "planting"
    HARVEST = "harvest"
    PEST_CONTROL = "pest_control"


class Location(_StrictBaseModel):
    """Point location in decimal degrees."""
    lat: float = Field(ge=-90, le=90)
    lon: float = Field(ge=-180, le=180)


class ClimateSnapshot(_StrictBaseModel):
    """One consistent view of the environment at a location.

    Numeric fields are optional: a live provider may not report every measure.
    Snapshots are immutable; derive new ones with `model_copy(update=...)`.
    """
    model_config = ConfigDict(extra="forbid", frozen=True)

    temperature: Optional[float] = None  # °C at 2 m
    humidity: Optional[float] = None  # relative humidity, %
    solar_radiation: Optional[float] = None  # MJ/m²/day
    precipitation: Optional[float] = None  # mm/day
    soil_moisture: Optional[float] = None  # %
    vegetation_index: Optional[float] = None  # NDVI, 0-1
    soil_temperature: Optional[float] = None  # °C
    wind_speed: Optional[float] = None  # m/s at 2 m
    timestamp: datetime = Field(default_factory=utc_now)
    location: Location
    source: SnapshotSource = SnapshotSource.LIVE


ImpactValue = Union[str, int, float]


class Recommendation(_StrictBaseModel):
    """A single activity suggested by the decision engine."""
    activity: Activity
    urgency: Urgency
    message: str
    action: str
    data_source: str
    impact: Dict[str, ImpactValue] = Field(default_factory=dict)
    timestamp: datetime = Field(default_factory=utc_now)


class SustainabilityMetrics(_StrictBaseModel):
    """Five sustainability scores, each in [0, 100]."""
    water_efficiency: float = Field(ge=0, le=100)
    soil_health: float = Field(ge=0, le=100)
    carbon_sequestration: float = Field(ge=0, le=100)
    biodiversity: float = Field(ge=0, le=100)
    energy_use: float = Field(ge=0, le=100)

    def as_list(self) -> List[float]:
        return [
            self.water_efficiency,
            self.soil_health,
            self.carbon_sequestration,
            self.biodiversity,
            self.energy_use,
        ]


class Improvement(_StrictBaseModel):
    """A suggested practice change for a weak sustainability metric."""
    area: str
    suggestion: str
    impact: str


class SustainabilityReport(_StrictBaseModel):
    """Overall score, the metrics behind it and what to improve."""
    overall_score: int = Field(ge=0, le=100)
    metrics: SustainabilityMetrics
    recommendations: List[Recommendation] = Field(default_factory=list)
    improvements: List[Improvement] = Field(default_factory=list)
    timestamp: datetime = Field(default_factory=utc_now)


class ActivityOutcome(_StrictBaseModel):
    """Result of simulating a farming activity against a snapshot."""
    activity: Activity
    recommended: bool
    effect: str
    cost: int
    sustainability: int
    snapshot: ClimateSnapshot
    timestamp: datetime = Field(default_factory=utc_now)


class ConservationTechnique(_StrictBaseModel):
    """Catalogue entry for a soil or water conservation practice."""
    id: str
    name: str
    description: str
    benefits: List[str]
    impact: str
    implementation: str
    data_source: str


class ConservationTip(_StrictBaseModel):
    """A conservation technique suggested by current conditions."""
    technique: ConservationTechnique
    priority: Urgency
    reason: str


class CropGuidance(_StrictBaseModel):
    """Optimal ranges and suggested techniques for one crop."""
    crop: str
    optimal_moisture: str
    optimal_temperature: str
    techniques: List[str]


class FieldAssessment(_StrictBaseModel):
    """Everything the advisor derives from one climate snapshot."""
    snapshot: ClimateSnapshot
    recommendations: List[Recommendation]
    report: SustainabilityReport
    conservation: List[ConservationTip] = Field(default_factory=list)
