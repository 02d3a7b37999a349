# backend/iocwatch/core/errors.py
from typing import Optional


class IocWatchError(Exception):
    """Base class for everything the watchlist service raises on purpose."""


class ReputationSourceError(IocWatchError):
    """A single call to one reputation source failed."""

    def __init__(self, source: str, message: str) -> None:
        super().__init__(f"{source}: {message}")
        self.source = source


class ConfigurationError(ReputationSourceError):
    """The source cannot be called at all (missing API key etc.)."""


class TransientNetworkError(ReputationSourceError):
    """Timeout, connection failure or 5xx from the source."""


class SourceResponseError(ReputationSourceError):
    """Any other non-2xx answer (404, 401, 429, ...)."""

    def __init__(self, source: str, status_code: int) -> None:
        super().__init__(source, f"API error: {status_code}")
        self.status_code = status_code


class ScanFailure(IocWatchError):
    """
    Every applicable reputation source failed for one indicator.
    `cause` is the last underlying error.
    """

    def __init__(
        self,
        indicator_type: str,
        indicator_value: str,
        cause: Optional[Exception] = None,
    ) -> None:
        msg = f"Scan failed for {indicator_type} {indicator_value}"
        if cause is not None:
            msg = f"{msg}: {cause}"
        super().__init__(msg)
        self.indicator_type = indicator_type
        self.indicator_value = indicator_value
        self.cause = cause


class PersistenceError(IocWatchError):
    """A store write (history, item update or alert) did not go through."""
