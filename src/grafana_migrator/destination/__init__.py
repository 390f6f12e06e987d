"""Destination instance interaction package."""

from .importer import Importer, ImportResult
from .resolver import UpsertResolver

__all__ = ["Importer", "ImportResult", "UpsertResolver"]
