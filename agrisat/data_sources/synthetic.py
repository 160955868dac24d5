"""Synthetic fallback payloads shaped like live provider responses.

Values are random but bounded. The bounds are part of the contract:

====================  ===========================================  ==============
measure               range (inclusive)                            POWER name
====================  ===========================================  ==============
air temperature       20 °C - 5 if |lat| > 30 else 20 °C + 5, ±3   T2M
daily max / min       T2M ± [2, 6] °C                              T2M_MAX/T2M_MIN
soil temperature      T2M + [-2, 6] °C                             TS
relative humidity     [40, 80] %                                   RH2M
solar radiation       [15, 25] MJ/m²/day                           ALLSKY_SFC_SW_DWN
clear-sky radiation   ALLSKY + [0.5, 3] MJ/m²/day                  CLRSKY_SFC_SW_DWN
precipitation         [0, 15] mm/day                               PRECTOTCORR
wind speed            [0.5, 7] m/s                                 WS2M
soil wetness          [0.25, 0.65] (soil moisture 25-65 %)         GWETTOP
vegetation index      [0.2, 0.8]                                   NDVI
====================  ===========================================  ==============

Pass a seeded `random.Random` for reproducible output; by default every call differs.
"""

from __future__ import annotations

import base64
import datetime as dt
import random
import uuid
from enum import Enum
from typing import Any, Callable, Dict, Mapping, Optional, Tuple

from agrisat.data_sources.nasa_client import EXPECTED_POWER_UNITS
from agrisat.domain import ClimateSnapshot, Location, SnapshotSource, utc_now
from utils.logging_utils import get_tagged_logger

logger = get_tagged_logger(__name__, tag="synthetic_data")

Bounds = Tuple[float, float]

TEMPERATURE_BASELINE_C = 20.0
HIGH_LATITUDE_THRESHOLD = 30.0
HIGH_LATITUDE_OFFSET_C = -5.0
LOW_LATITUDE_OFFSET_C = 5.0
TEMPERATURE_JITTER_C = 3.0

HUMIDITY_RANGE: Bounds = (40.0, 80.0)
SOLAR_RADIATION_RANGE: Bounds = (15.0, 25.0)
CLEAR_SKY_GAIN: Bounds = (0.5, 3.0)
PRECIPITATION_RANGE: Bounds = (0.0, 15.0)
WIND_SPEED_RANGE: Bounds = (0.5, 7.0)
SOIL_WETNESS_RANGE: Bounds = (0.25, 0.65)
VEGETATION_INDEX_RANGE: Bounds = (0.2, 0.8)
SOIL_TEMPERATURE_OFFSET_C: Bounds = (-2.0, 6.0)
DAILY_SPREAD_C: Bounds = (2.0, 6.0)

ALL_PARAMETERS = (
    "T2M",
    "T2M_MAX",
    "T2M_MIN",
    "TS",
    "RH2M",
    "ALLSKY_SFC_SW_DWN",
    "CLRSKY_SFC_SW_DWN",
    "PRECTOTCORR",
    "WS2M",
    "GWETTOP",
    "NDVI",
)

DEFAULT_ENDPOINTS = {
    "earth": "/planetary/earth/imagery",
    "power": "/power/api/temporal/daily/point",
}

SYNTHETIC_SOURCE = "synthetic"

_PLACEHOLDER_SVG = (
    '<svg width="256" height="256" xmlns="http://www.w3.org/2000/svg">'
    '<rect width="256" height="256" fill="#4a7c59"/>'
    '<text x="50%" y="50%" font-family="Arial" font-size="14" fill="white" '
    'text-anchor="middle" dy=".3em">Synthetic imagery</text></svg>'
)
PLACEHOLDER_IMAGE_URL = "data:image/svg+xml;base64," + base64.b64encode(_PLACEHOLDER_SVG.encode("utf-8")).decode("ascii")


class EndpointKind(str, Enum):
    """Categories of provider endpoints the generator can imitate."""
    IMAGERY = "imagery"
    MEASUREMENT = "measurement"
    UNKNOWN = "unknown"


def temperature_bounds(latitude: float) -> Bounds:
    """Air temperature range for a latitude: cooler away from the tropics."""
    offset = HIGH_LATITUDE_OFFSET_C if abs(latitude) > HIGH_LATITUDE_THRESHOLD else LOW_LATITUDE_OFFSET_C
    base = TEMPERATURE_BASELINE_C + offset
    return base - TEMPERATURE_JITTER_C, base + TEMPERATURE_JITTER_C


def is_synthetic(payload: Any) -> bool:
    """Return True if a payload was produced by the generator."""
    if not isinstance(payload, Mapping):
        return False
    header = payload.get("header")
    return isinstance(header, Mapping) and header.get("source") == SYNTHETIC_SOURCE


def format_power_date(value: dt.date) -> str:
    """Format a date the way POWER keys its daily series (YYYYMMDD)."""
    return value.strftime("%Y%m%d")


def _coordinate(params: Mapping[str, Any], *names: str) -> float:
    for name in names:
        try:
            return float(params[name])
        except (KeyError, TypeError, ValueError):
            continue
    return 0.0


class SyntheticDataGenerator:
    """Produce plausible provider payloads and snapshots without touching the network."""

    def __init__(
        self,
        endpoints: Optional[Mapping[str, str]] = None,
        *,
        rng: Optional[random.Random] = None,
        today: Optional[Callable[[], dt.date]] = None,
    ) -> None:
        self.endpoints = dict(endpoints or DEFAULT_ENDPOINTS)
        self._rng = rng or random.Random()
        self._today = today or dt.date.today

    def _uniform(self, bounds: Bounds) -> float:
        lo, hi = bounds
        return round(self._rng.uniform(lo, hi), 2)

    def classify(self, endpoint: str) -> EndpointKind:
        if endpoint == self.endpoints.get("earth"):
            return EndpointKind.IMAGERY
        if endpoint == self.endpoints.get("power"):
            return EndpointKind.MEASUREMENT
        return EndpointKind.UNKNOWN

    def generate(self, endpoint: str, params: Optional[Mapping[str, Any]] = None) -> Dict[str, Any]:
        """Return a payload shaped like the live response for `endpoint`."""
        params = params or {}
        kind = self.classify(endpoint)
        logger.debug(f"Generating synthetic {kind.value} payload for {endpoint}")
        if kind == EndpointKind.IMAGERY:
            return self.imagery(params)
        if kind == EndpointKind.MEASUREMENT:
            return self.measurements(params)
        return {
            "error": "data unavailable offline",
            "endpoint": endpoint,
            "header": {"source": SYNTHETIC_SOURCE},
        }

    def imagery(self, params: Mapping[str, Any]) -> Dict[str, Any]:
        """Imagery descriptor with a placeholder image."""
        return {
            "date": params.get("date") or self._today().isoformat(),
            "id": f"synthetic_{uuid.uuid4().hex[:12]}",
            "url": PLACEHOLDER_IMAGE_URL,
            "coordinates": [_coordinate(params, "lon", "longitude"), _coordinate(params, "lat", "latitude")],
            "header": {"source": SYNTHETIC_SOURCE},
        }

    def _measurement_values(self, latitude: float, names: Tuple[str, ...]) -> Dict[str, float]:
        temperature = self._uniform(temperature_bounds(latitude))
        solar = self._uniform(SOLAR_RADIATION_RANGE)
        generators: Dict[str, Callable[[], float]] = {
            "T2M": lambda: temperature,
            "T2M_MAX": lambda: round(temperature + self._uniform(DAILY_SPREAD_C), 2),
            "T2M_MIN": lambda: round(temperature - self._uniform(DAILY_SPREAD_C), 2),
            "TS": lambda: round(temperature + self._uniform(SOIL_TEMPERATURE_OFFSET_C), 2),
            "RH2M": lambda: self._uniform(HUMIDITY_RANGE),
            "ALLSKY_SFC_SW_DWN": lambda: solar,
            "CLRSKY_SFC_SW_DWN": lambda: round(solar + self._uniform(CLEAR_SKY_GAIN), 2),
            "PRECTOTCORR": lambda: self._uniform(PRECIPITATION_RANGE),
            "WS2M": lambda: self._uniform(WIND_SPEED_RANGE),
            "GWETTOP": lambda: self._uniform(SOIL_WETNESS_RANGE),
            "NDVI": lambda: self._uniform(VEGETATION_INDEX_RANGE),
        }
        return {name: generators[name]() for name in names if name in generators}

    def measurements(self, params: Mapping[str, Any]) -> Dict[str, Any]:
        """POWER-style point feature with one daily value per requested parameter."""
        latitude = _coordinate(params, "latitude", "lat")
        longitude = _coordinate(params, "longitude", "lon")
        requested = params.get("parameters")
        names = tuple(p.strip() for p in str(requested).split(",") if p.strip()) if requested else ALL_PARAMETERS
        day = str(params.get("end") or format_power_date(self._today()))

        values = self._measurement_values(latitude, names)
        return {
            "type": "Feature",
            "geometry": {"type": "Point", "coordinates": [longitude, latitude]},
            "properties": {"parameter": {name: {day: value} for name, value in values.items()}},
            "parameters": {name: {"units": EXPECTED_POWER_UNITS.get(name, "")} for name in values},
            "header": {"source": SYNTHETIC_SOURCE},
        }

    def climate_snapshot(self, lat: float, lon: float) -> ClimateSnapshot:
        """Fully synthetic snapshot; every field comes from the generator."""
        temperature = self._uniform(temperature_bounds(lat))
        return ClimateSnapshot(
            temperature=temperature,
            humidity=self._uniform(HUMIDITY_RANGE),
            solar_radiation=self._uniform(SOLAR_RADIATION_RANGE),
            precipitation=self._uniform(PRECIPITATION_RANGE),
            soil_moisture=round(self._uniform(SOIL_WETNESS_RANGE) * 100, 2),
            vegetation_index=self._uniform(VEGETATION_INDEX_RANGE),
            soil_temperature=round(temperature + self._uniform(SOIL_TEMPERATURE_OFFSET_C), 2),
            wind_speed=self._uniform(WIND_SPEED_RANGE),
            timestamp=utc_now(),
            location=Location(lat=lat, lon=lon),
            source=SnapshotSource.SYNTHETIC,
        )

    async def fetch(self, endpoint: str, params: Mapping[str, Any]) -> Dict[str, Any]:
        """Serve as a data source when the service is configured for synthetic data only."""
        return self.generate(endpoint, params)
