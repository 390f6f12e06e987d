"""Exceptions raised by the migration engine."""

from typing import Optional


class MigrationError(Exception):
    """Base class for every error raised by grafana_migrator."""


class ConfigError(MigrationError):
    """A required setting is missing or invalid. Fatal at startup."""


class TransportError(MigrationError):
    """Connection, TLS or timeout failure while talking to a Grafana instance."""

    def __init__(self, method: str, url: str, reason: str) -> None:
        super().__init__(f"{method} {url} failed: {reason}")
        self.method = method
        self.url = url
        self.reason = reason


class ApiError(MigrationError):
    """The instance answered, but not with a 2xx status."""

    def __init__(self, method: str, path: str, status_code: int, detail: Optional[str] = None) -> None:
        message = f"{method} {path} returned status {status_code}"
        if detail:
            message = f"{message}: {detail}"
        super().__init__(message)
        self.method = method
        self.path = path
        self.status_code = status_code
        self.detail = detail


class MalformedResponseError(MigrationError):
    """A document is not JSON, has the wrong shape, or lacks a required field."""


class SnapshotError(MigrationError):
    """Local snapshot directory or file could not be read or written."""


__all__ = [
    "MigrationError",
    "ConfigError",
    "TransportError",
    "ApiError",
    "MalformedResponseError",
    "SnapshotError",
]
