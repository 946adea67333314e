# ============================================================
# Tests : tests/test_sync_protocol.py
# Objet  : Algorithme de synchronisation incrémentale côté consommateur.
# ============================================================
"""
Tests de l'algorithme de curseur (`protocol_api.domain.sync`).

Le consommateur est simulé au-dessus du contrôleur, sur les trois dépôts: aucune redélivrance d'un
enregistrement inchangé, aucune perte aux frontières de page (égalités d'horodatage comprises), et
un curseur qui n'avance jamais au-delà des données reçues.
"""

from __future__ import annotations

from datetime import UTC, datetime

import pytest

from protocol_api.domain.controller import ExecutionProtocolController
from protocol_api.domain.sync import SyncPosition, advance, max_updated_at
from tests.fakes import T1, make_protocol, pid, ts


def _drain(controller, position: SyncPosition, page_size: int):
    """Une passe complète du consommateur; retourne (ids reçus, position finale)."""
    received: list[str] = []
    for _ in range(100):
        body = controller.handle_list_for_polling(
            T1,
            position.query_after.isoformat() if position.query_after else None,
            page_size,
            position.offset,
        )
        items = body["items"]
        received.extend(i["id"] for i in items)
        position = advance(position, items, body["pagination"]["hasMore"])
        if not items or not body["pagination"]["hasMore"]:
            return received, position
    raise AssertionError("sync did not terminate")


def _item(n: int, updated_at: datetime) -> dict:
    return {"id": pid(n), "updatedAt": updated_at}


def test_start_position():
    """Position initiale: curseur persisté (ou None), offset 0."""
    assert SyncPosition.start() == SyncPosition(None, None, 0)
    start = SyncPosition.start("2026-02-05T00:00:00Z")
    assert start.cursor == datetime(2026, 2, 5, tzinfo=UTC)
    assert start.query_after == start.cursor
    assert start.checkpoint == start.cursor


def test_max_updated_at():
    """Le curseur candidat est le plus grand updatedAt de la réponse."""
    assert max_updated_at([]) is None
    assert max_updated_at([_item(1, ts(1)), _item(2, ts(6)), _item(3, ts(3))]) == ts(6)
    assert max_updated_at([{"id": "x", "updatedAt": "2026-02-06T00:00:00Z"}]) == ts(6)


def test_empty_page_keeps_cursor():
    """Une page vide ne fait pas bouger le curseur."""
    position = SyncPosition.start(ts(13))
    assert advance(position, [], False) == SyncPosition(ts(13), ts(13), 0)


def test_last_page_collapses_to_cursor():
    """Fin d'ensemble: la requête suivante repart du plus grand updatedAt, offset 0."""
    nxt = advance(SyncPosition.start(), [_item(1, ts(1)), _item(2, ts(6))], False)
    assert nxt == SyncPosition(ts(6), ts(6), 0)


def test_full_page_skips_tied_tail():
    """Page pleine finissant par des égalités: curseur sous l'égalité, offset = taille de queue."""
    items = [_item(1, ts(1)), _item(2, ts(6)), _item(3, ts(6))]
    nxt = advance(SyncPosition.start(), items, True)
    assert nxt.cursor == ts(6)
    assert nxt.query_after == ts(1)
    assert nxt.offset == 2
    assert nxt.checkpoint == ts(1)


def test_full_page_all_tied_accumulates_offset():
    """Page entièrement à égalité: on garde le filtre et on avance l'offset."""
    position = SyncPosition(ts(6), ts(1), 2)
    nxt = advance(position, [_item(4, ts(6)), _item(5, ts(6))], True)
    assert nxt == SyncPosition(ts(6), ts(1), 4)


def test_cursor_never_moves_backwards():
    """Le curseur est le maximum observé, jamais une valeur plus ancienne."""
    position = SyncPosition.start(ts(13))
    nxt = advance(position, [_item(1, ts(1))], False)
    assert nxt.cursor == ts(13)


def test_sync_feb_scenario(backend):
    """Protocoles du 1, 6 et 13 février, curseur au 5: deux reçus puis plus rien."""
    controller = ExecutionProtocolController(backend.repo)
    received, position = _drain(controller, SyncPosition.start(ts(5)), page_size=50)
    assert received == [pid(2), pid(3)]
    assert position.cursor == ts(13)

    again, final = _drain(controller, position, page_size=50)
    assert again == []
    assert final.cursor == ts(13)


@pytest.mark.parametrize("page_size", [1, 2, 3, 50])
def test_sync_delivers_each_record_once_with_ties(backend, page_size):
    """Avec des égalités à cheval sur les pages, chaque protocole est livré une seule fois."""
    backend.put(
        *[make_protocol(n, T1, ts(20)) for n in range(10, 15)],
        make_protocol(15, T1, ts(21)),
    )
    controller = ExecutionProtocolController(backend.repo)
    received, position = _drain(controller, SyncPosition.start(), page_size)
    expected = [pid(1), pid(2), pid(3)] + [pid(n) for n in range(10, 16)]
    assert received == expected
    assert position == SyncPosition(ts(21), ts(21), 0)


def test_sync_redelivers_only_modified_records(backend):
    """Après une passe complète, seule une modification ultérieure est redélivrée."""
    controller = ExecutionProtocolController(backend.repo)
    _, position = _drain(controller, SyncPosition.start(), page_size=2)
    assert position.cursor == ts(13)

    backend.put(make_protocol(1, T1, ts(14)))
    received, position = _drain(controller, position, page_size=2)
    assert received == [pid(1)]
    assert position.cursor == ts(14)


def test_cursor_is_bounded_by_received_data(backend):
    """Le curseur final vaut le plus grand updatedAt reçu, pas l'heure d'appel."""
    controller = ExecutionProtocolController(backend.repo)
    _, position = _drain(controller, SyncPosition.start(), page_size=1)
    assert position.cursor == ts(13)
    assert position.cursor < datetime.now(UTC)
