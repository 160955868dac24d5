"""Exception types raised by the data access layer and the decision engine."""

from __future__ import annotations

from typing import Sequence


class DataAccessError(Exception):
    """Base class for failures of a single provider request."""

    def __init__(self, message: str, *, endpoint: str | None = None) -> None:
        super().__init__(message)
        self.endpoint = endpoint


class TransportError(DataAccessError):
    """The provider answered with a non-success status, or could not be reached."""

    def __init__(self, message: str, *, endpoint: str | None = None, status_code: int | None = None) -> None:
        super().__init__(message, endpoint=endpoint)
        self.status_code = status_code


class ProviderTimeoutError(DataAccessError):
    """A request did not complete within the configured timeout and was cancelled."""

    def __init__(self, endpoint: str, timeout_seconds: float) -> None:
        super().__init__(f"Request to {endpoint} timed out after {timeout_seconds:.3f}s", endpoint=endpoint)
        self.timeout_seconds = timeout_seconds


class QueueClosedError(DataAccessError):
    """The request queue was stopped before the request could be resolved."""


class IncompleteSnapshotError(ValueError):
    """A decision rule needs snapshot fields that are missing (strict mode only)."""

    def __init__(self, rule_id: str, missing: Sequence[str]) -> None:
        super().__init__(f"Rule '{rule_id}' requires missing snapshot fields: {', '.join(missing)}")
        self.rule_id = rule_id
        self.missing = list(missing)
