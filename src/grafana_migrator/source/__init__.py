"""Source instance interaction package."""

from .fetcher import ResourceFetcher

__all__ = ["ResourceFetcher"]
