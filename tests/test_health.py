"""Tests pour les endpoints de santé et de métriques de l'application."""

from fastapi.testclient import TestClient

from protocol_api.app.main import app
from protocol_api.core.http_constants import HTTP_OK
from tests.fakes import T1_HEADERS, pid


def test_health():
    """Teste que l'endpoint de santé retourne un statut OK."""
    client = TestClient(app)
    r = client.get("/health")
    assert r.status_code == HTTP_OK
    assert r.json()["status"] == "ok"


def test_health_reports_repository_backend(client):
    """Le backend de dépôt actif est exposé, sans authentification."""
    r = client.get("/health")
    assert r.json() == {"status": "ok", "repository": "memory"}
    assert r.headers["X-Request-ID"]
    assert "X-Process-Time-ms" in r.headers


def test_metrics_exposes_polling_counters(client):
    """Les compteurs de polling apparaissent après un appel."""
    client.get("/api/v1/execution-protocols", headers=T1_HEADERS)
    r = client.get("/metrics")
    assert r.status_code == HTTP_OK
    assert "protocol_poll_requests_total" in r.text
    assert 'route="/api/v1/execution-protocols"' in r.text


def test_metrics_use_route_templates(client):
    """Les identifiants ne se retrouvent pas dans les labels de route."""
    client.get(f"/api/v1/execution-protocols/{pid(42)}", headers=T1_HEADERS)
    text = client.get("/metrics").text
    assert 'route="/api/v1/execution-protocols/{protocol_id}"' in text
    assert "000000000042" not in text
