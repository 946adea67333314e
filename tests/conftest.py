"""Configuration de test pour pytest avec gestion des chemins.

Ce module configure pytest pour résoudre les imports `protocol_api` en ajoutant la racine du
projet au sys.path, et fournit les fixtures communes: dépôts (mémoire, SQL sqlite, amont simulé),
application FastAPI construite sur un conteneur de test, et client HTTP.
"""

import json
import os
import sys
from dataclasses import dataclass
from typing import Any

import pytest

# Ensure project root is on sys.path so that
# imports like `from protocol_api...` resolve.
CURRENT_DIR = os.path.dirname(__file__)
PROJECT_ROOT = os.path.abspath(os.path.join(CURRENT_DIR, ".."))
if PROJECT_ROOT not in sys.path:
    sys.path.insert(0, PROJECT_ROOT)

from fastapi.testclient import TestClient  # noqa: E402

from protocol_api.app.main import create_app  # noqa: E402
from protocol_api.core.container import Container  # noqa: E402
from protocol_api.core.settings import Settings  # noqa: E402
from protocol_api.infra.repo.db import MEMORY_URL, get_engine  # noqa: E402
from protocol_api.infra.repo.execution_protocol_repo import (  # noqa: E402
    SqlExecutionProtocolRepository,
)
from protocol_api.infra.repo.seed import create_schema, upsert_protocols  # noqa: E402
from protocol_api.infra.repositories import InMemoryExecutionProtocolRepository  # noqa: E402
from protocol_api.infra.upstream.adapter import UpstreamExecutionProtocolRepository  # noqa: E402
from tests.fakes import API_KEYS, FakeUpstream, scenario_protocols  # noqa: E402


def make_settings(**overrides: Any) -> Settings:
    """Settings de test: dépôt mémoire et clés API des deux tenants."""
    values: dict[str, Any] = {
        "REPOSITORY_BACKEND": "memory",
        "API_KEYS": json.dumps(API_KEYS),
        "LOG_LEVEL": "WARNING",
    }
    values.update(overrides)
    return Settings(**values)


@dataclass
class Backend:
    """Dépôt sous test et moyen d'y écrire (chaque backend a son propre chemin d'écriture)."""

    name: str
    repo: Any
    writer: Any

    def put(self, *protocols) -> None:
        self.writer(list(protocols))


def build_backend(name: str, protocols) -> Backend:
    """Construit un dépôt `memory`, `sql` (sqlite mémoire) ou `upstream` (amont simulé)."""
    protocols = list(protocols)
    if name == "memory":
        repo = InMemoryExecutionProtocolRepository(protocols)
        return Backend(name, repo, lambda ps: [repo.save(p) for p in ps])
    if name == "sql":
        engine = get_engine(MEMORY_URL)
        create_schema(engine)
        upsert_protocols(engine, protocols)
        repo = SqlExecutionProtocolRepository(engine)
        return Backend(name, repo, lambda ps: upsert_protocols(engine, ps))
    if name == "upstream":
        fake = FakeUpstream(protocols)
        repo = UpstreamExecutionProtocolRepository("http://upstream.test", client=fake.client())
        return Backend(name, repo, lambda ps: [fake.put(p) for p in ps])
    raise ValueError(name)


@pytest.fixture(params=["memory", "sql", "upstream"])
def backend(request) -> Backend:
    """Chaque test paramétré s'exécute sur les trois implémentations du dépôt."""
    return build_backend(request.param, scenario_protocols())


@pytest.fixture
def memory_repo() -> InMemoryExecutionProtocolRepository:
    """Dépôt mémoire pré-rempli avec le scénario de test."""
    return InMemoryExecutionProtocolRepository(scenario_protocols())


@pytest.fixture
def make_client():
    """Fabrique de clients HTTP sur une application construite autour d'un dépôt donné."""

    def _make(repository=None, **settings_overrides) -> TestClient:
        repo = repository or InMemoryExecutionProtocolRepository(scenario_protocols())
        container = Container(settings=make_settings(**settings_overrides), repository=repo)
        return TestClient(create_app(container), raise_server_exceptions=False)

    return _make


@pytest.fixture
def client(make_client) -> TestClient:
    """Client HTTP sur le scénario de test (dépôt mémoire)."""
    return make_client()
