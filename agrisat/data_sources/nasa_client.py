"""Client for fetching imagery and agroclimatology data from the NASA APIs."""
from __future__ import annotations

import asyncio
from typing import Any, Mapping, Optional

import requests

from agrisat.errors import ProviderTimeoutError, TransportError
from utils.logging_utils import get_tagged_logger, mask_secrets
logger = get_tagged_logger(__name__, tag="nasa_client")

# No requests_cache/retry wrapper here: responses are cached by ResponseCache and
# every request gets exactly one attempt.
session = requests.Session()

# POWER marks missing daily values with this sentinel.
POWER_FILL_VALUE = -999.0

EXPECTED_POWER_UNITS = {
    "T2M": "C",
    "T2M_MAX": "C",
    "T2M_MIN": "C",
    "TS": "C",
    "RH2M": "%",
    "PRECTOTCORR": "mm/day",
    "ALLSKY_SFC_SW_DWN": "MJ/m^2/day",
    "CLRSKY_SFC_SW_DWN": "MJ/m^2/day",
    "WS2M": "m/s",
    "GWETTOP": "1",
}

# Acceptable alternative units that should not trigger warnings (community/localized differences).
ALLOWED_POWER_UNIT_SYNONYMS = {
    "T2M": {"C", "°C"},
    "T2M_MAX": {"C", "°C"},
    "T2M_MIN": {"C", "°C"},
    "TS": {"C", "°C"},
    "RH2M": {"%", "percent"},
    "PRECTOTCORR": {"mm/day", "mm"},
    "ALLSKY_SFC_SW_DWN": {"MJ/m^2/day", "kW-hr/m^2/day"},
    "CLRSKY_SFC_SW_DWN": {"MJ/m^2/day", "kW-hr/m^2/day"},
    "WS2M": {"m/s"},
    "GWETTOP": {"1", "", "fraction"},
}


def warn_on_unexpected_units(parameters_meta: Optional[Mapping[str, Any]], *, context: str) -> None:
    """Log a warning if POWER reports units we did not expect for a parameter."""
    if not parameters_meta:
        return
    for field, expected in EXPECTED_POWER_UNITS.items():
        meta = parameters_meta.get(field)
        if not isinstance(meta, Mapping):
            continue
        actual = meta.get("units")
        if actual is None or actual == expected:
            continue
        allowed = ALLOWED_POWER_UNIT_SYNONYMS.get(field, set())
        if actual not in allowed:
            logger.warning(
                "Unexpected POWER unit",
                extra={"context": context, "field": field, "unit": actual, "expected": expected, "allowed": sorted(allowed)},
            )


class NasaPowerClient:
    """HTTP implementation of the data request contract.

    One GET per call. Non-success statuses and connection failures raise
    `TransportError`; a socket-level timeout raises `ProviderTimeoutError`.
    Blocking I/O runs in a worker thread so the event loop stays free.
    """

    def __init__(
        self,
        base_url: str,
        api_key: str | None = None,
        *,
        timeout_seconds: float = 10.0,
        user_agent: str = "agrisat-feedback/1.0",
        http: requests.Session | None = None,
    ) -> None:
        self.base_url = base_url.rstrip("/")
        self.api_key = api_key
        self.timeout_seconds = timeout_seconds
        self.user_agent = user_agent
        self.http = http

    def _url(self, endpoint: str) -> str:
        if endpoint.startswith(("http://", "https://")):
            return endpoint
        return f"{self.base_url}/{endpoint.lstrip('/')}"

    def fetch_sync(self, endpoint: str, params: Mapping[str, Any]) -> Any:
        """Perform the request on the calling thread."""
        request_params = {k: v for k, v in params.items() if v is not None}
        if self.api_key:
            request_params["api_key"] = self.api_key
        url = self._url(endpoint)
        http = self.http or session

        logger.debug(f"Requesting provider endpoint {endpoint}", extra={"url": mask_secrets(url)})
        try:
            resp = http.get(
                url,
                params=request_params,
                headers={"Accept": "application/json", "User-Agent": self.user_agent},
                timeout=self.timeout_seconds,
            )
        except requests.Timeout as exc:
            raise ProviderTimeoutError(endpoint, self.timeout_seconds) from exc
        except requests.RequestException as exc:
            raise TransportError(f"Request to {endpoint} failed: {exc}", endpoint=endpoint) from exc

        if not resp.ok:
            raise TransportError(
                f"HTTP {resp.status_code}: {resp.reason}",
                endpoint=endpoint,
                status_code=resp.status_code,
            )

        content_type = (resp.headers or {}).get("Content-Type", "application/json")
        if "json" in content_type:
            return resp.json()

        # Imagery endpoints answer with the image itself; hand back a descriptor instead.
        return {
            "url": mask_secrets(getattr(resp, "url", url)),
            "content_type": content_type,
            "date": params.get("date"),
        }

    async def fetch(self, endpoint: str, params: Mapping[str, Any]) -> Any:
        """Perform the request without blocking the event loop."""
        return await asyncio.to_thread(self.fetch_sync, endpoint, params)
