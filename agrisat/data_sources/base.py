"""Interfaces and helpers for environmental data sources."""

from __future__ import annotations

from dataclasses import dataclass
from typing import Any, Awaitable, Callable, Mapping, Protocol


class DataSource(Protocol):
    """Anything that can answer an `(endpoint, parameters) -> payload` request."""

    async def fetch(self, endpoint: str, params: Mapping[str, Any]) -> Any:
        """Return the provider payload for one request, raising on failure."""
        ...


@dataclass
class CallableDataSource(DataSource):
    """Wrap an async callable so it can be swapped in for a real provider."""

    func: Callable[[str, Mapping[str, Any]], Awaitable[Any]]

    async def fetch(self, endpoint: str, params: Mapping[str, Any]) -> Any:
        """Delegate to the configured callable."""
        return await self.func(endpoint, params)
