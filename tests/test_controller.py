# ============================================================
# Tests : tests/test_controller.py
# Objet  : Validation, projection et propagation d'erreurs du contrôleur.
# ============================================================
"""Tests du contrôleur des protocoles d'exécution (indépendant du transport HTTP)."""

from __future__ import annotations

import pytest

from protocol_api.core.http_constants import DEFAULT_PAGE_SIZE, MAX_PAGE_SIZE
from protocol_api.domain.controller import INVALID_CURSOR_MESSAGE, ExecutionProtocolController
from protocol_api.domain.errors import BadRequest, InternalError, NotFound, Unauthorized
from tests.fakes import T1, T2, UNKNOWN_ID, FailingRepository, SpyRepository, pid, ts


@pytest.fixture
def controller(memory_repo) -> ExecutionProtocolController:
    return ExecutionProtocolController(memory_repo)


def test_requires_repository():
    """Un contrôleur sans dépôt est une erreur de construction."""
    with pytest.raises(ValueError):
        ExecutionProtocolController(None)


def test_list_projects_metadata_only(controller):
    """Les éléments ne contiennent que les champs de métadonnées, sans snapshot."""
    body = controller.handle_list_for_polling(T1)
    assert [i["id"] for i in body["items"]] == [pid(1), pid(2), pid(3)]
    first = body["items"][0]
    assert set(first) == {"id", "siteId", "plantId", "status", "closedAt", "updatedAt"}
    assert first["status"] == "CLOSED"
    assert first["updatedAt"] == ts(1)
    assert body["pagination"] == {
        "limit": DEFAULT_PAGE_SIZE,
        "offset": 0,
        "total": 3,
        "hasMore": False,
    }


def test_list_with_cursor(controller):
    """Le curseur filtre strictement; pagination reflète le filtre."""
    body = controller.handle_list_for_polling(T1, "2026-02-05T00:00:00Z")
    assert [i["id"] for i in body["items"]] == [pid(2), pid(3)]
    assert body["pagination"]["total"] == 2

    empty = controller.handle_list_for_polling(T1, "2026-02-20T00:00:00Z")
    assert empty["items"] == []
    assert empty["pagination"]["total"] == 0
    assert empty["pagination"]["hasMore"] is False


def test_empty_cursor_means_full_backfill(controller):
    """updatedAfter vide est traité comme absent."""
    body = controller.handle_list_for_polling(T1, "")
    assert body["pagination"]["total"] == 3


def test_pagination_is_clamped_not_rejected(controller):
    """limit/offset hors bornes sont corrigés."""
    body = controller.handle_list_for_polling(T1, None, "1000", "-3")
    assert body["pagination"]["limit"] == MAX_PAGE_SIZE
    assert body["pagination"]["offset"] == 0

    body = controller.handle_list_for_polling(T1, None, "0", "abc")
    assert body["pagination"]["limit"] == DEFAULT_PAGE_SIZE
    assert body["pagination"]["offset"] == 0


def test_has_more(controller):
    """hasMore tant que offset + taille de page < total."""
    body = controller.handle_list_for_polling(T1, None, 2, 0)
    assert len(body["items"]) == 2
    assert body["pagination"]["hasMore"] is True
    body = controller.handle_list_for_polling(T1, None, 2, 2)
    assert len(body["items"]) == 1
    assert body["pagination"]["hasMore"] is False


@pytest.mark.parametrize("tenant", [None, "", "   "])
def test_missing_tenant_is_unauthorized(controller, tenant):
    """Sans tenant, toutes les opérations échouent avant d'interroger le dépôt."""
    with pytest.raises(Unauthorized):
        controller.handle_list_for_polling(tenant)
    with pytest.raises(Unauthorized):
        controller.handle_get_snapshot(tenant, pid(1))


def test_invalid_cursor_is_bad_request_before_storage(memory_repo):
    """Un curseur illisible lève BadRequest sans aucun appel au dépôt."""
    spy = SpyRepository(memory_repo)
    controller = ExecutionProtocolController(spy)
    with pytest.raises(BadRequest) as excinfo:
        controller.handle_list_for_polling(T1, "not-a-date")
    assert excinfo.value.message == INVALID_CURSOR_MESSAGE
    assert spy.calls == []


def test_malformed_id_is_not_found_before_storage(memory_repo):
    """Un identifiant mal formé lève NotFound sans aucun appel au dépôt."""
    spy = SpyRepository(memory_repo)
    controller = ExecutionProtocolController(spy)
    with pytest.raises(NotFound):
        controller.handle_get_snapshot(T1, "not-a-uuid")
    with pytest.raises(NotFound):
        controller.handle_get_snapshot(T1, None)
    assert spy.calls == []


def test_snapshot_returned_unwrapped(controller):
    """Le snapshot est renvoyé tel quel."""
    snapshot = controller.handle_get_snapshot(T1, pid(2))
    assert snapshot["id"] == pid(2)
    assert "sections" in snapshot


def test_snapshot_id_is_case_insensitive(controller):
    """Un UUID en majuscules désigne le même protocole."""
    assert controller.handle_get_snapshot(T1, pid(2).upper())["id"] == pid(2)


def test_snapshot_not_found_is_indistinguishable(controller):
    """Autre tenant, inconnu, non clôturé: même erreur et même message."""
    errors = []
    for tenant, protocol_id in [(T2, pid(1)), (T1, UNKNOWN_ID), (T1, pid(6))]:
        with pytest.raises(NotFound) as excinfo:
            controller.handle_get_snapshot(tenant, protocol_id)
        errors.append((excinfo.value.kind, excinfo.value.message))
    assert len(set(errors)) == 1


def test_repository_failure_becomes_internal_error():
    """Un échec du dépôt remonte en InternalError sans détail de stockage."""
    controller = ExecutionProtocolController(FailingRepository())
    with pytest.raises(InternalError) as excinfo:
        controller.handle_list_for_polling(T1)
    assert "connection refused" not in excinfo.value.message
    with pytest.raises(InternalError):
        controller.handle_get_snapshot(T1, pid(1))


def test_controller_is_stateless(controller):
    """Deux appels identiques donnent le même résultat."""
    first = controller.handle_list_for_polling(T1, "2026-02-01T00:00:00Z", 1, 0)
    second = controller.handle_list_for_polling(T1, "2026-02-01T00:00:00Z", 1, 0)
    assert first == second
