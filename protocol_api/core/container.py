"""
Conteneur d'injection de dépendances et configuration application.

Instancie les composants centraux (settings, moteur SQL, dépôt, authentification, contrôleur) une
fois par processus. Le conteneur est attaché à `app.state` par `create_app`; le moteur (pool de
connexions) est transmis explicitement au dépôt SQL plutôt que partagé comme état global.
"""

from __future__ import annotations

import structlog
from sqlalchemy.engine import Engine

from protocol_api.apigw.api_key_auth import ApiKeyAuthenticator
from protocol_api.core.settings import Settings, get_settings
from protocol_api.domain.controller import ExecutionProtocolController
from protocol_api.domain.repository import ExecutionProtocolRepository
from protocol_api.infra.repo.db import get_engine
from protocol_api.infra.repo.execution_protocol_repo import SqlExecutionProtocolRepository
from protocol_api.infra.repo.seed import create_schema, upsert_protocols
from protocol_api.infra.repositories import InMemoryExecutionProtocolRepository
from protocol_api.infra.seed_data import demo_protocols
from protocol_api.infra.upstream.adapter import UpstreamExecutionProtocolRepository

log = structlog.get_logger(__name__)


def build_repository(
    settings: Settings, engine: Engine | None = None
) -> tuple[ExecutionProtocolRepository, Engine | None]:
    """Construit le dépôt configuré par `REPOSITORY_BACKEND`.

    Returns:
        (dépôt, moteur SQL ou None si le backend n'utilise pas de base)
    """
    backend = settings.REPOSITORY_BACKEND
    if backend == "memory":
        seed = demo_protocols() if settings.SEED_DEMO_DATA else []
        return InMemoryExecutionProtocolRepository(seed), None
    if backend == "upstream":
        if not settings.UPSTREAM_URL:
            raise RuntimeError("UPSTREAM_URL required when REPOSITORY_BACKEND=upstream")
        repo = UpstreamExecutionProtocolRepository(
            settings.UPSTREAM_URL,
            settings.UPSTREAM_API_KEY,
            timeout_s=settings.UPSTREAM_TIMEOUT_S,
            page_size=settings.UPSTREAM_PAGE_SIZE,
        )
        return repo, None
    if engine is None:
        engine = get_engine(
            settings.DATABASE_URL, pool_size=settings.DB_POOL_SIZE, echo=settings.DB_ECHO
        )
    if settings.AUTO_CREATE_SCHEMA or not settings.DATABASE_URL:
        create_schema(engine)
    if settings.SEED_DEMO_DATA:
        upsert_protocols(engine, demo_protocols())
    return SqlExecutionProtocolRepository(engine), engine


class Container:
    """Regroupe les dépendances partagées par les requêtes d'un processus."""

    def __init__(
        self,
        settings: Settings | None = None,
        repository: ExecutionProtocolRepository | None = None,
        authenticator: ApiKeyAuthenticator | None = None,
    ):
        self.settings = settings or get_settings()
        self.engine: Engine | None = None
        if repository is None:
            repository, self.engine = build_repository(self.settings)
        self.repository = repository
        self.repository_backend = getattr(repository, "backend_name", type(repository).__name__)
        self.authenticator = authenticator or ApiKeyAuthenticator(self.settings.api_key_map())
        self.controller = ExecutionProtocolController(
            self.repository, allowed_tenants=self.settings.ALLOWED_TENANTS
        )
        log.info("container_ready", repository=self.repository_backend)

    def close(self) -> None:
        """Libère les ressources du processus (pool SQL, client HTTP amont)."""
        close = getattr(self.repository, "close", None)
        if callable(close):
            close()
        if self.engine is not None:
            self.engine.dispose()
