"""
Métriques Prometheus pour l'application.

Ce module définit les métriques Prometheus utilisées pour le monitoring de l'API de polling des
protocoles d'exécution, l'endpoint `/metrics` et un middleware de mesure HTTP.
"""

import time

from fastapi import APIRouter, Request
from prometheus_client import (
    CONTENT_TYPE_LATEST,
    Counter,
    Histogram,
    generate_latest,
)
from starlette.middleware.base import BaseHTTPMiddleware
from starlette.responses import Response

metrics_router = APIRouter()

REQUEST_COUNT = Counter(
    "http_requests_total", "Total HTTP requests", ["method", "route", "status"]
)
REQUEST_LATENCY = Histogram(
    "http_request_duration_seconds", "Latency of HTTP requests", ["route"]
)

# Polling metrics
PROTOCOL_POLL_REQUESTS = Counter(
    "protocol_poll_requests_total",
    "Total polling list requests",
    ["tenant", "cursor"],
)
PROTOCOL_ITEMS_RETURNED = Counter(
    "protocol_items_returned_total",
    "Total list metadata items returned by polling",
    ["tenant"],
)
PROTOCOL_SNAPSHOT_LOOKUPS = Counter(
    "protocol_snapshot_lookups_total",
    "Snapshot lookups by outcome",
    ["tenant", "outcome"],
)
PROTOCOL_VALIDATION_ERRORS = Counter(
    "protocol_validation_errors_total",
    "Requests rejected before repository access",
    ["kind"],
)
REPOSITORY_ERRORS = Counter(
    "protocol_repository_errors_total",
    "Repository failures surfaced as internal errors",
    ["backend", "operation"],
)
REPOSITORY_LATENCY = Histogram(
    "protocol_repository_latency_seconds",
    "Latency of repository operations",
    ["backend", "operation"],
)


def _normalize_allowed(allowed: list[str] | str | None) -> list[str]:
    """Normalize allowed values from settings (list or CSV string)."""
    if not allowed:
        return []
    if isinstance(allowed, list):
        if len(allowed) == 1 and "," in (allowed[0] or ""):
            return [s.strip() for s in allowed[0].split(",") if s.strip()]
        return [str(x).strip() for x in allowed if str(x).strip()]
    # string
    return [s.strip() for s in str(allowed).split(",") if s.strip()]


def labelize_tenant(tenant: str | None, allowed: list[str] | str | None) -> str:
    """Project tenant label through a whitelist; otherwise 'unknown'."""
    vals = set(_normalize_allowed(allowed))
    if not vals:
        return tenant or "default"
    return (tenant or "").strip() if (tenant or "").strip() in vals else "unknown"


@metrics_router.get("/metrics")
def metrics():
    """
    Expose les métriques Prometheus au format texte.

    Returns:
        Response: Réponse HTTP contenant les métriques au format Prometheus.
    """
    return Response(generate_latest(), media_type=CONTENT_TYPE_LATEST)


def _route_label(request: Request) -> str:
    """Gabarit de route (ex: /api/v1/execution-protocols/{protocol_id}) pour borner la cardinalité."""
    route = request.scope.get("route")
    path = getattr(route, "path", None)
    return path or "unmatched"


class PrometheusMiddleware(BaseHTTPMiddleware):
    """
    Middleware Prometheus pour mesurer les métriques HTTP.

    Collecte les métriques de comptage des requêtes et de latence par gabarit de route pour
    l'exposition Prometheus.
    """

    async def dispatch(self, request: Request, call_next):
        """
        Traite une requête HTTP et collecte les métriques.

        Args:
            request: Requête HTTP entrante.
            call_next: Fonction pour appeler le middleware suivant.

        Returns:
            Response: Réponse HTTP avec métriques collectées.
        """
        start = time.perf_counter()
        response: Response = await call_next(request)
        route = _route_label(request)
        REQUEST_COUNT.labels(request.method, route, str(response.status_code)).inc()
        REQUEST_LATENCY.labels(route).observe(time.perf_counter() - start)
        return response
