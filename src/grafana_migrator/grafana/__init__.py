"""Grafana HTTP API access."""

from .client import ApiResponse, GrafanaClient

__all__ = ["ApiResponse", "GrafanaClient"]
