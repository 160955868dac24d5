"""Compose one climate snapshot from four concurrent provider requests."""
from __future__ import annotations

import asyncio
from typing import Any, Dict, Mapping, Optional

from agrisat.data_access import DataAccessService
from agrisat.data_sources.nasa_client import POWER_FILL_VALUE, warn_on_unexpected_units
from agrisat.data_sources.synthetic import SyntheticDataGenerator, is_synthetic
from agrisat.domain import ClimateSnapshot, Location, SnapshotSource, utc_now
from utils.logging_utils import get_tagged_logger
logger = get_tagged_logger(__name__, tag="climate_aggregator")

SUB_REQUESTS = ("weather", "solar", "precipitation", "soil")


def _parameter_block(payload: Any) -> Mapping[str, Any]:
    """Return `properties.parameter` of a POWER point feature; raises on malformed payloads."""
    block = payload["properties"]["parameter"]
    if not isinstance(block, Mapping):
        raise TypeError(f"Expected a mapping of parameters, got {type(block).__name__}")
    return block


def latest_value(block: Mapping[str, Any], name: str) -> Optional[float]:
    """Most recent non-fill daily value for `name`, or None if the parameter has none."""
    series = block.get(name)
    if series is None:
        return None
    if not isinstance(series, Mapping):
        raise TypeError(f"Expected a date series for {name}, got {type(series).__name__}")
    for day in sorted(series, reverse=True):
        value = series[day]
        if value is None:
            continue
        value = float(value)
        if value <= POWER_FILL_VALUE:
            continue
        return value
    return None


class ClimateAggregator:
    """Fetch weather, solar, precipitation and soil data concurrently and merge them.

    The result is all-or-nothing: if any sub-request fails, returns a malformed
    payload or was itself answered with synthetic data, the snapshot is entirely
    synthetic. Live and synthetic values are never mixed.
    """

    def __init__(self, service: DataAccessService, generator: Optional[SyntheticDataGenerator] = None) -> None:
        self.service = service
        self.generator = generator or service.generator

    async def get_climate_snapshot(self, lat: float, lon: float) -> ClimateSnapshot:
        results = await asyncio.gather(
            self.service.get_weather_data(lat, lon),
            self.service.get_solar_radiation(lat, lon),
            self.service.get_precipitation_data(lat, lon),
            self.service.get_soil_temperature(lat, lon),
            return_exceptions=True,
        )
        payloads = dict(zip(SUB_REQUESTS, results))

        failures = {
            name: f"{type(result).__name__}: {result}"
            for name, result in payloads.items()
            if isinstance(result, BaseException)
        }
        synthetic = sorted(name for name, result in payloads.items() if is_synthetic(result))
        if failures or synthetic:
            return self._fallback(lat, lon, failures=failures, synthetic=synthetic)

        try:
            snapshot = self._compose(lat, lon, payloads)
        except (KeyError, TypeError, ValueError) as exc:
            return self._fallback(lat, lon, failures={"extraction": f"{type(exc).__name__}: {exc}"}, synthetic=[])
        logger.debug("Composed live climate snapshot", extra={"lat": lat, "lon": lon})
        return snapshot

    def _fallback(self, lat: float, lon: float, *, failures: Dict[str, str], synthetic: list) -> ClimateSnapshot:
        logger.warning(
            "Climate snapshot degraded to synthetic data",
            extra={"lat": lat, "lon": lon, "failures": failures, "synthetic_parts": synthetic},
        )
        return self.generator.climate_snapshot(lat, lon)

    def _compose(self, lat: float, lon: float, payloads: Mapping[str, Any]) -> ClimateSnapshot:
        blocks = {name: _parameter_block(payload) for name, payload in payloads.items()}
        for name, payload in payloads.items():
            warn_on_unexpected_units(payload.get("parameters"), context=name)

        soil_wetness = latest_value(blocks["soil"], "GWETTOP")
        vegetation_index = None
        for block in blocks.values():
            vegetation_index = latest_value(block, "NDVI")
            if vegetation_index is not None:
                break

        return ClimateSnapshot(
            temperature=latest_value(blocks["weather"], "T2M"),
            humidity=latest_value(blocks["weather"], "RH2M"),
            wind_speed=latest_value(blocks["weather"], "WS2M"),
            solar_radiation=latest_value(blocks["solar"], "ALLSKY_SFC_SW_DWN"),
            precipitation=latest_value(blocks["precipitation"], "PRECTOTCORR"),
            soil_temperature=latest_value(blocks["soil"], "TS"),
            soil_moisture=round(soil_wetness * 100, 2) if soil_wetness is not None else None,
            vegetation_index=vegetation_index,
            timestamp=utc_now(),
            location=Location(lat=lat, lon=lon),
            source=SnapshotSource.LIVE,
        )
