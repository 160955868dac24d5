"""Public facade over the provider: cache first, then queue, synthetic data when offline."""

from __future__ import annotations

import datetime as dt
from typing import Any, Callable, Dict, Mapping, Optional

from agrisat import config
from agrisat.cache import DEFAULT_TTL_SECONDS, ResponseCache, make_cache_key
from agrisat.clock import Clock, SystemClock
from agrisat.connectivity import ConnectivityMonitor
from agrisat.data_sources.base import DataSource
from agrisat.data_sources.factory import build_data_source
from agrisat.data_sources.synthetic import DEFAULT_ENDPOINTS, SyntheticDataGenerator, format_power_date
from agrisat.request_queue import RateLimitedQueue
from utils.logging_utils import get_tagged_logger

logger = get_tagged_logger(__name__, tag="data_access")

POWER_COMMUNITY = "AG"
WEATHER_PARAMETERS = "T2M,PRECTOTCORR,RH2M,ALLSKY_SFC_SW_DWN,WS2M"
SOLAR_PARAMETERS = "ALLSKY_SFC_SW_DWN,CLRSKY_SFC_SW_DWN"
PRECIPITATION_PARAMETERS = "PRECTOTCORR"
SOIL_PARAMETERS = "TS,T2M_MAX,T2M_MIN,GWETTOP"
IMAGERY_DIM_DEGREES = 0.15
DEFAULT_PROBE_PARAMS = {"count": 1, "thumbs": True}


class DataAccessService:
    """Answer `(endpoint, params)` requests from the cache, the provider or the synthetic generator.

    The cache is written only here, and only with live payloads; synthetic data
    served while offline is never cached. Provider errors reach the caller unchanged.
    """

    def __init__(
        self,
        source: DataSource,
        *,
        endpoints: Optional[Mapping[str, str]] = None,
        generator: Optional[SyntheticDataGenerator] = None,
        cache: Optional[ResponseCache] = None,
        queue: Optional[RateLimitedQueue] = None,
        monitor: Optional[ConnectivityMonitor] = None,
        clock: Optional[Clock] = None,
        cache_ttl_seconds: float = DEFAULT_TTL_SECONDS,
        rate_limit_seconds: float = 1.0,
        timeout_seconds: float = 10.0,
        probe_endpoint: Optional[str] = None,
        probe_params: Optional[Mapping[str, Any]] = None,
        today: Optional[Callable[[], dt.date]] = None,
    ) -> None:
        self.clock = clock or SystemClock()
        self.endpoints = dict(endpoints or DEFAULT_ENDPOINTS)
        self.generator = generator or SyntheticDataGenerator(self.endpoints)
        self.cache = cache or ResponseCache(cache_ttl_seconds, clock=self.clock)
        self.queue = queue or RateLimitedQueue(
            source,
            interval_seconds=rate_limit_seconds,
            timeout_seconds=timeout_seconds,
            clock=self.clock,
        )
        self.probe_endpoint = probe_endpoint
        self.probe_params = dict(probe_params if probe_params is not None else DEFAULT_PROBE_PARAMS)
        self.monitor = monitor or ConnectivityMonitor(self._probe if probe_endpoint else None, clock=self.clock)
        self._today = today or dt.date.today

    @classmethod
    def from_settings(
        cls,
        settings: config.Settings | None = None,
        *,
        source: DataSource | None = None,
        clock: Clock | None = None,
    ) -> "DataAccessService":
        """Build the service and its provider from configuration."""
        settings = settings or config.settings
        return cls(
            source or build_data_source(settings),
            endpoints=settings.endpoints,
            clock=clock,
            cache_ttl_seconds=settings.cache_ttl_seconds,
            rate_limit_seconds=settings.rate_limit_seconds,
            timeout_seconds=settings.request_timeout_seconds,
            probe_endpoint=settings.probe_path,
        )

    async def _probe(self) -> Any:
        # Straight to the queue: the probe must reach the provider even when the monitor says offline.
        return await self.queue.enqueue(self.probe_endpoint, self.probe_params)

    async def start(self, probe: bool = True) -> None:
        """Start the request queue and, optionally, run the reachability probe."""
        self.queue.start()
        if probe:
            await self.monitor.check()
        logger.info("Data access service started", extra={"connection_status": self.monitor.connection_status})

    def stop(self) -> None:
        self.queue.stop()

    async def request(self, endpoint: str, params: Optional[Mapping[str, Any]] = None) -> Any:
        """Return the payload for one request."""
        params = dict(params or {})
        key = make_cache_key(endpoint, params)

        cached = self.cache.get(key)
        if cached is not None:
            logger.debug(f"Cache hit for {endpoint}")
            return cached

        if not self.monitor.online:
            logger.info(f"Offline, serving synthetic data for {endpoint}")
            return self.generator.generate(endpoint, params)

        payload = await self.queue.enqueue(endpoint, params)
        self.cache.put(key, payload)
        return payload

    def handle_online(self) -> None:
        self.monitor.handle_online()

    def handle_offline(self) -> None:
        self.monitor.handle_offline()

    # Endpoint helpers

    def _days_back(self, days: int) -> Dict[str, str]:
        today = self._today()
        return {
            "start": format_power_date(today - dt.timedelta(days=days)),
            "end": format_power_date(today),
        }

    def _power_params(self, lat: float, lon: float, parameters: str, window: Mapping[str, str]) -> Dict[str, Any]:
        return {
            "parameters": parameters,
            "community": POWER_COMMUNITY,
            "longitude": lon,
            "latitude": lat,
            "start": window["start"],
            "end": window["end"],
            "format": "JSON",
        }

    async def get_earth_imagery(self, lat: float, lon: float, date: Optional[str] = None) -> Any:
        """Imagery descriptor for a point; `date` is YYYY-MM-DD, latest available when omitted."""
        params: Dict[str, Any] = {"lat": lat, "lon": lon, "dim": IMAGERY_DIM_DEGREES}
        if date:
            params["date"] = date
        return await self.request(self.endpoints["earth"], params)

    async def get_weather_data(
        self, lat: float, lon: float, start: Optional[str] = None, end: Optional[str] = None
    ) -> Any:
        """Daily weather for a point; defaults to the last 30 days."""
        window = self._days_back(30)
        window = {"start": start or window["start"], "end": end or window["end"]}
        return await self.request(self.endpoints["power"], self._power_params(lat, lon, WEATHER_PARAMETERS, window))

    async def get_solar_radiation(self, lat: float, lon: float, year: Optional[int] = None) -> Any:
        """Daily all-sky and clear-sky radiation for a calendar year (current year by default)."""
        year = year or self._today().year
        window = {"start": f"{year}0101", "end": f"{year}1231"}
        return await self.request(self.endpoints["power"], self._power_params(lat, lon, SOLAR_PARAMETERS, window))

    async def get_precipitation_data(self, lat: float, lon: float, days: int = 30) -> Any:
        return await self.request(
            self.endpoints["power"], self._power_params(lat, lon, PRECIPITATION_PARAMETERS, self._days_back(days))
        )

    async def get_soil_temperature(self, lat: float, lon: float) -> Any:
        """Soil temperature, daily extremes and top-soil wetness for the last week."""
        return await self.request(
            self.endpoints["power"], self._power_params(lat, lon, SOIL_PARAMETERS, self._days_back(7))
        )

    # Introspection

    def cache_stats(self) -> Dict[str, Any]:
        return self.cache.stats()

    def clear_cache(self) -> None:
        self.cache.clear()

    def status(self) -> Dict[str, Any]:
        return {
            **self.monitor.status(),
            "queue_size": self.queue.pending,
            "in_flight": self.queue.in_flight,
            "last_request": self.queue.last_execution,
            "cache_size": len(self.cache),
        }
