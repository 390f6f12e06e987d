"""
Run configuration.

Settings are read once, in increasing order of precedence, from:
  - a YAML file shaped like ``{src: {host, api_key}, dst: {host, api_key}}``,
  - a ``.env`` file (never overriding the real environment),
  - ``GRAFANA_*`` environment variables,
  - explicit keyword overrides (the CLI flags).

The resulting ``MigrationConfig`` is passed by parameter into the components
that need it.
"""

import logging
import os
from dataclasses import dataclass
from pathlib import Path
from typing import Any, Dict, Mapping, Optional

import yaml
from dotenv import load_dotenv

from .errors import ConfigError

logger = logging.getLogger(__name__)

DEFAULT_CONFIG_FILE = Path("grafana.yaml")
DEFAULT_TIMEOUT = 5.0

ENV_VARS = {
    ("src", "host"): "GRAFANA_SRC_HOST",
    ("src", "api_key"): "GRAFANA_SRC_API_KEY",
    ("dst", "host"): "GRAFANA_DST_HOST",
    ("dst", "api_key"): "GRAFANA_DST_API_KEY",
}
TIMEOUT_ENV = "GRAFANA_MIGRATOR_TIMEOUT"
SNAPSHOT_DIR_ENV = "GRAFANA_MIGRATOR_SNAPSHOT_DIR"


@dataclass(frozen=True)
class Credential:
    """Base URL and API key of one Grafana instance."""

    host: str
    api_key: str

    def __post_init__(self) -> None:
        object.__setattr__(self, "host", self.host.strip().rstrip("/"))
        object.__setattr__(self, "api_key", self.api_key.strip())

    def __repr__(self) -> str:
        return f"Credential(host={self.host!r}, api_key='****')"


@dataclass(frozen=True)
class MigrationConfig:
    source: Optional[Credential]
    destination: Optional[Credential]
    snapshot_dir: Path = Path(".")
    timeout: float = DEFAULT_TIMEOUT

    def require_source(self) -> Credential:
        if self.source is None:
            raise ConfigError(
                "Source instance is not configured: set src.host/src.api_key "
                "or GRAFANA_SRC_HOST/GRAFANA_SRC_API_KEY")
        return self.source

    def require_destination(self) -> Credential:
        if self.destination is None:
            raise ConfigError(
                "Destination instance is not configured: set dst.host/dst.api_key "
                "or GRAFANA_DST_HOST/GRAFANA_DST_API_KEY")
        return self.destination


def _read_yaml(path: Path) -> Dict[str, Any]:
    try:
        with path.open("r", encoding="utf-8") as f:
            data = yaml.safe_load(f)
    except OSError as e:
        raise ConfigError(f"Cannot read config file {path}: {e}") from e
    except yaml.YAMLError as e:
        raise ConfigError(f"Invalid YAML in config file {path}: {e}") from e

    if data is None:
        return {}
    if not isinstance(data, dict):
        raise ConfigError(f"Config file {path} must contain a mapping, got {type(data).__name__}")
    return data


def _section(raw: Dict[str, Any], name: str, path: Optional[Path]) -> Dict[str, Any]:
    section = raw.get(name) or {}
    if not isinstance(section, dict):
        raise ConfigError(f"'{name}' in {path} must be a mapping with 'host' and 'api_key'")
    return {k: str(v) for k, v in section.items() if v is not None}


def _credential(values: Dict[str, str], name: str) -> Optional[Credential]:
    host = (values.get("host") or "").strip()
    api_key = (values.get("api_key") or "").strip()
    if not host and not api_key:
        return None
    if not host or not api_key:
        missing = "host" if not host else "api_key"
        raise ConfigError(f"Incomplete '{name}' credential: '{missing}' is missing")
    return Credential(host=host, api_key=api_key)


def _parse_timeout(value: Any) -> float:
    try:
        timeout = float(value)
    except (TypeError, ValueError) as e:
        raise ConfigError(f"Invalid timeout {value!r}: expected a number of seconds") from e
    if timeout <= 0:
        raise ConfigError(f"Invalid timeout {value!r}: must be positive")
    return timeout


def load_config(
    config_file: Optional[Path] = None,
    *,
    env: Optional[Mapping[str, str]] = None,
    dotenv_path: Optional[Path] = None,
    snapshot_dir: Optional[Path] = None,
    timeout: Optional[float] = None,
) -> MigrationConfig:
    """
    Build a MigrationConfig.

    ``config_file`` must exist when given explicitly; when omitted,
    ``grafana.yaml`` in the working directory is used only if present.
    ``env`` defaults to ``os.environ`` after loading ``.env``.
    """
    if env is None:
        load_dotenv(dotenv_path=dotenv_path or Path(".env"), override=False)
        env = os.environ

    raw: Dict[str, Any] = {}
    path: Optional[Path] = None
    if config_file is not None:
        if not config_file.exists():
            raise ConfigError(f"Config file not found: {config_file}")
        path = config_file
    elif DEFAULT_CONFIG_FILE.exists():
        path = DEFAULT_CONFIG_FILE
    if path is not None:
        logger.debug("Reading config file %s", path)
        raw = _read_yaml(path)

    sections = {name: _section(raw, name, path) for name in ("src", "dst")}
    for (name, key), var in ENV_VARS.items():
        value = env.get(var)
        if value:
            sections[name][key] = value

    resolved_timeout: Any = raw.get("timeout", DEFAULT_TIMEOUT)
    if env.get(TIMEOUT_ENV):
        resolved_timeout = env[TIMEOUT_ENV]
    if timeout is not None:
        resolved_timeout = timeout

    resolved_dir: Any = raw.get("snapshot_dir", ".")
    if env.get(SNAPSHOT_DIR_ENV):
        resolved_dir = env[SNAPSHOT_DIR_ENV]
    if snapshot_dir is not None:
        resolved_dir = snapshot_dir

    return MigrationConfig(
        source=_credential(sections["src"], "src"),
        destination=_credential(sections["dst"], "dst"),
        snapshot_dir=Path(resolved_dir),
        timeout=_parse_timeout(resolved_timeout),
    )


__all__ = ["Credential", "MigrationConfig", "load_config", "DEFAULT_TIMEOUT"]
