"""Tests du conteneur: sélection du dépôt selon la configuration."""

from __future__ import annotations

import pytest

from protocol_api.core.container import Container, build_repository
from protocol_api.core.settings import Settings
from protocol_api.infra.repo.db import MEMORY_URL, get_engine
from protocol_api.infra.repo.seed import count_by_tenant


def test_memory_backend_with_demo_data():
    repo, engine = build_repository(Settings(REPOSITORY_BACKEND="memory", SEED_DEMO_DATA=True))
    assert engine is None
    assert repo.backend_name == "memory"
    assert repo.list_for_polling("tenant-acme").total == 3
    assert repo.list_for_polling("tenant-globex").total == 2


def test_sql_backend_creates_schema_and_seeds():
    engine = get_engine(MEMORY_URL)
    settings = Settings(REPOSITORY_BACKEND="sql", AUTO_CREATE_SCHEMA=True, SEED_DEMO_DATA=True)
    repo, used = build_repository(settings, engine)
    assert used is engine
    assert repo.backend_name == "sql"
    assert count_by_tenant(engine) == {"tenant-acme": 3, "tenant-globex": 2}
    engine.dispose()


def test_upstream_backend_requires_url():
    with pytest.raises(RuntimeError):
        build_repository(Settings(REPOSITORY_BACKEND="upstream"))


def test_upstream_backend():
    settings = Settings(REPOSITORY_BACKEND="upstream", UPSTREAM_URL="http://inspections.local")
    container = Container(settings)
    assert container.repository_backend == "upstream"
    assert container.engine is None
    container.close()


def test_container_wires_authenticator_and_controller():
    settings = Settings(REPOSITORY_BACKEND="memory", API_KEYS='{"k1": "tenant-acme"}')
    container = Container(settings)
    assert container.authenticator.resolve_tenant("k1") == "tenant-acme"
    assert container.controller.repository is container.repository
    container.close()
