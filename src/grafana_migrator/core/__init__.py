"""
Core package: orchestration of migration processes.
This package exposes the Coordinator class which ties together the fetcher,
snapshot store, resolver and importer to perform an export or an import.
"""

from .coordinator import COMMANDS, Coordinator

__all__ = [
    "COMMANDS",
    "Coordinator",
]
