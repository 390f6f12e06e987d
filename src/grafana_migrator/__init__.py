"""
Migrate Grafana dashboards, folders and datasources between two instances.

``export`` snapshots a source instance to local JSON files; ``import`` replays
those snapshots into a destination instance, updating what already exists.
"""

from .config import Credential, MigrationConfig, load_config
from .core import Coordinator
from .models import EntityKind

__version__ = "0.1.0"

__all__ = [
    "Coordinator",
    "Credential",
    "EntityKind",
    "MigrationConfig",
    "load_config",
]
