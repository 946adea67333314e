"""Configuration du tracing OpenTelemetry pour l'observabilité.

Ce module configure le tracing distribué avec OpenTelemetry pour exporter les traces vers un
endpoint OTLP configuré via les variables d'environnement. Sans endpoint, le tracer reste le
tracer no-op par défaut et `get_tracer` peut être utilisé sans coût.
"""

from __future__ import annotations

from opentelemetry import trace
from opentelemetry.exporter.otlp.proto.grpc.trace_exporter import OTLPSpanExporter
from opentelemetry.sdk.resources import Resource
from opentelemetry.sdk.trace import TracerProvider
from opentelemetry.sdk.trace.export import BatchSpanProcessor

from protocol_api.core.settings import Settings


def setup_tracing(settings: Settings) -> bool:
    """Configure le tracing OpenTelemetry pour l'observabilité.

    Initialise le provider de tracing et configure l'exporteur OTLP si l'endpoint est configuré dans
    les paramètres. Retourne True si un provider a été installé.
    """
    if not getattr(settings, "OTLP_ENDPOINT", None):
        return False

    provider = TracerProvider(resource=Resource.create({"service.name": settings.APP_NAME}))
    processor = BatchSpanProcessor(OTLPSpanExporter(endpoint=settings.OTLP_ENDPOINT, insecure=True))
    provider.add_span_processor(processor)
    trace.set_tracer_provider(provider)
    return True


def get_tracer(name: str) -> trace.Tracer:
    """Retourne un tracer nommé (no-op tant qu'aucun provider n'est installé)."""
    return trace.get_tracer(name)
