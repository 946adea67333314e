"""
Application principale FastAPI.

Ce module assemble tous les composants de l'application : middlewares, routes, gestion des
erreurs, métriques et configuration de l'API de polling des protocoles d'exécution.

Responsabilités du module:
- Initialiser le logging structuré et le tracing
- Construire le conteneur (settings, dépôt, authentification, contrôleur)
- Ajouter les middlewares (request id, timing, métriques)
- Monter les routers (santé, protocoles d'exécution, métriques)
"""

from __future__ import annotations

from contextlib import asynccontextmanager

from fastapi import FastAPI

from protocol_api.api.routes_execution_protocols import router as protocols_router
from protocol_api.api.routes_health import router as health_router
from protocol_api.apigw.errors import register_error_handlers
from protocol_api.app.metrics import PrometheusMiddleware, metrics_router
from protocol_api.app.tracing import setup_tracing
from protocol_api.core.container import Container
from protocol_api.core.logging import setup_logging
from protocol_api.core.settings import get_settings
from protocol_api.middlewares.request_id import RequestIDMiddleware
from protocol_api.middlewares.timing import TimingMiddleware


def create_app(container: Container | None = None) -> FastAPI:
    """
    Construit et retourne l'application FastAPI prête à l'usage.

    Étapes:
    - Configure le logging structuré (structlog) et le tracing (OTLP si configuré)
    - Construit le conteneur si aucun n'est fourni (tests: conteneur avec dépôt factice)
    - Ajoute les middlewares utiles au debug/traçabilité
    - Publie les routes de santé, de polling et de métriques
    """
    settings = container.settings if container is not None else get_settings()
    setup_logging(settings.LOG_LEVEL, settings.LOG_JSON)
    setup_tracing(settings)
    if container is None:
        container = Container(settings)

    @asynccontextmanager
    async def lifespan(app: FastAPI):
        yield
        app.state.container.close()

    app = FastAPI(title=settings.APP_NAME, debug=settings.APP_DEBUG, lifespan=lifespan)
    app.state.container = container
    register_error_handlers(app)
    app.add_middleware(PrometheusMiddleware)
    app.add_middleware(TimingMiddleware)
    app.add_middleware(RequestIDMiddleware)
    app.include_router(health_router)
    app.include_router(protocols_router)
    app.include_router(metrics_router)
    return app


app = create_app()
