"""Shared pytest fixtures."""

from pathlib import Path

import pytest

from grafana_migrator.config import Credential, MigrationConfig
from tests.fake_grafana import FakeGrafana


@pytest.fixture
def source() -> FakeGrafana:
    return FakeGrafana()


@pytest.fixture
def destination() -> FakeGrafana:
    return FakeGrafana()


@pytest.fixture
def credential() -> Credential:
    return Credential(host="http://grafana.test", api_key="secret-token")


@pytest.fixture
def config(tmp_path: Path, credential: Credential) -> MigrationConfig:
    return MigrationConfig(
        source=credential,
        destination=Credential(host="http://grafana-dst.test", api_key="dst-token"),
        snapshot_dir=tmp_path / "snapshots",
        timeout=5.0,
    )
