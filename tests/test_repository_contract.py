# ============================================================
# Tests : tests/test_repository_contract.py
# Objet  : Contrat commun des dépôts (mémoire, SQL sqlite, amont simulé).
# ============================================================
"""
Tests du contrat partagé par toutes les implémentations du dépôt.

Chaque test est exécuté sur les trois backends via la fixture paramétrée `backend`; l'amont
simulé ne filtre rien, ce qui vérifie aussi la revérification locale de l'adaptateur.
"""

from __future__ import annotations

from protocol_api.domain.execution_protocol import CLOSED, PollingPage
from protocol_api.domain.repository import ExecutionProtocolRepository
from tests.fakes import T1, T2, UNKNOWN_ID, make_protocol, pid, ts


def _ids(page: PollingPage) -> list[str]:
    return [p.id for p in page.items]


def test_backend_satisfies_protocol(backend) -> None:
    """Chaque implémentation est reconnue comme dépôt de protocoles."""
    assert isinstance(backend.repo, ExecutionProtocolRepository)
    assert backend.repo.backend_name == backend.name


def test_list_returns_only_closed_protocols_of_tenant(backend) -> None:
    """Le filtre tenant + CLOSED exclut les autres tenants et les protocoles en cours."""
    page = backend.repo.list_for_polling(T1)
    assert _ids(page) == [pid(1), pid(2), pid(3)]
    assert page.total == 3
    assert all(p.tenant_id == T1 and p.status == CLOSED for p in page.items)

    other = backend.repo.list_for_polling(T2)
    assert _ids(other) == [pid(4), pid(5)]


def test_list_items_are_loaded_without_snapshot(backend) -> None:
    """La liste ne charge que les métadonnées."""
    page = backend.repo.list_for_polling(T1)
    assert all(p.snapshot is None for p in page.items)


def test_cursor_is_strictly_greater(backend) -> None:
    """Un enregistrement dont updated_at égale le curseur n'est pas renvoyé."""
    page = backend.repo.list_for_polling(T1, updated_after=ts(6))
    assert _ids(page) == [pid(3)]
    assert page.total == 1


def test_cursor_between_records(backend) -> None:
    """Curseur au 5 février: protocoles du 6 et du 13, total 2."""
    page = backend.repo.list_for_polling(T1, updated_after=ts(5))
    assert _ids(page) == [pid(2), pid(3)]
    assert page.total == 2


def test_cursor_after_everything_is_empty(backend) -> None:
    """Aucun résultat n'est pas une erreur: liste vide et total 0."""
    page = backend.repo.list_for_polling(T1, updated_after=ts(20))
    assert page.items == []
    assert page.total == 0


def test_total_ignores_pagination(backend) -> None:
    """total compte l'ensemble filtré, pas la page."""
    page = backend.repo.list_for_polling(T1, limit=1, offset=1)
    assert _ids(page) == [pid(2)]
    assert page.total == 3

    beyond = backend.repo.list_for_polling(T1, limit=10, offset=10)
    assert beyond.items == []
    assert beyond.total == 3


def test_ties_are_ordered_by_id(backend) -> None:
    """Les égalités d'updated_at sont départagées par id croissant."""
    backend.put(
        make_protocol(12, T1, ts(20)),
        make_protocol(10, T1, ts(20)),
        make_protocol(11, T1, ts(20)),
    )
    page = backend.repo.list_for_polling(T1, updated_after=ts(13))
    assert _ids(page) == [pid(10), pid(11), pid(12)]


def test_updated_record_reappears_after_cursor(backend) -> None:
    """Une modification (updated_at plus récent) est redélivrée au prochain polling."""
    backend.put(make_protocol(1, T1, ts(15)))
    page = backend.repo.list_for_polling(T1, updated_after=ts(13))
    assert _ids(page) == [pid(1)]


def test_get_by_id_returns_full_entity(backend) -> None:
    """get_by_id charge l'entité avec son snapshot."""
    protocol = backend.repo.get_by_id(T1, pid(2))
    assert protocol is not None
    assert protocol.id == pid(2)
    assert protocol.updated_at == ts(6)
    assert protocol.snapshot["sections"][0]["title"] == "Key Facts"


def test_get_snapshot_by_id_returns_document(backend) -> None:
    """Le snapshot est renvoyé tel que stocké."""
    snapshot = backend.repo.get_snapshot_by_id(T2, pid(5))
    assert snapshot["id"] == pid(5)
    assert snapshot["validation"]["isValid"] is True


def test_lookup_hides_other_tenants_and_open_protocols(backend) -> None:
    """Autre tenant, protocole non clôturé et id inconnu sont indiscernables (None)."""
    assert backend.repo.get_by_id(T2, pid(1)) is None
    assert backend.repo.get_snapshot_by_id(T2, pid(1)) is None
    assert backend.repo.get_by_id(T1, pid(6)) is None
    assert backend.repo.get_snapshot_by_id(T1, pid(6)) is None
    assert backend.repo.get_snapshot_by_id(T1, UNKNOWN_ID) is None


def test_empty_tenant_sees_nothing(backend) -> None:
    """Un tenant vide ne voit aucun protocole."""
    assert backend.repo.list_for_polling("").total == 0
    assert backend.repo.get_by_id("", pid(1)) is None
