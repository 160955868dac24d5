"""Online/offline tracking for the provider connection."""

from __future__ import annotations

from typing import Any, Awaitable, Callable, Dict, Optional

from agrisat.clock import Clock, SystemClock
from utils.logging_utils import get_tagged_logger

logger = get_tagged_logger(__name__, tag="connectivity")

Probe = Callable[[], Awaitable[Any]]

CONNECTED = "connected"
OFFLINE = "offline"


class ConnectivityMonitor:
    """Online flag driven by a reachability probe and by environment signals.

    Signals (`handle_online` / `handle_offline`) take effect immediately and win
    over any probe that was already running when they arrived. Individual request
    failures do not change the state; only a probe or a signal does.
    """

    def __init__(self, probe: Optional[Probe] = None, *, online: bool = True, clock: Optional[Clock] = None) -> None:
        self._probe = probe
        self._online = online
        self._clock = clock or SystemClock()
        self._generation = 0
        self.last_checked: Optional[float] = None
        self.last_error: Optional[str] = None

    @property
    def online(self) -> bool:
        return self._online

    @property
    def connection_status(self) -> str:
        return CONNECTED if self._online else OFFLINE

    def _set(self, online: bool, *, reason: str) -> None:
        if online != self._online:
            logger.info(f"Connectivity changed to {CONNECTED if online else OFFLINE}", extra={"reason": reason})
        self._online = online

    async def check(self) -> bool:
        """Run the probe once and record the result. Returns the resulting online state."""
        if self._probe is None:
            return self._online
        generation = self._generation
        error: Optional[str] = None
        try:
            await self._probe()
        except Exception as exc:
            error = str(exc) or type(exc).__name__
            logger.warning(f"Connectivity probe failed: {error}")

        if generation != self._generation:
            logger.debug("Probe result superseded by a connectivity signal")
            return self._online
        self.last_checked = self._clock.now()
        self.last_error = error
        self._set(error is None, reason="probe")
        return self._online

    def handle_online(self) -> None:
        self._generation += 1
        self.last_error = None
        self._set(True, reason="signal")

    def handle_offline(self) -> None:
        self._generation += 1
        self._set(False, reason="signal")

    def status(self) -> Dict[str, Any]:
        return {
            "online": self._online,
            "connection_status": self.connection_status,
            "last_checked": self.last_checked,
            "last_error": self.last_error,
        }
