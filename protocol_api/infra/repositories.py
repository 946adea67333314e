"""
Dépôt en mémoire des protocoles d'exécution.

Ce module fournit une implémentation du dépôt adossée à un dict local, utilisée pour le
développement local (REPOSITORY_BACKEND=memory) et comme double de test. Elle applique elle-même
les mêmes règles que les autres implémentations: filtre tenant, statut CLOSED, curseur strict.
"""

from __future__ import annotations

import threading
from collections.abc import Iterable
from datetime import datetime
from typing import Any

from protocol_api.core.http_constants import DEFAULT_OFFSET, DEFAULT_PAGE_SIZE
from protocol_api.domain.execution_protocol import ExecutionProtocol, PollingPage
from protocol_api.domain.repository import clamp_page


class InMemoryExecutionProtocolRepository:
    """
    Dépôt de protocoles en mémoire (utilisé pour dev/tests).

    Stocke les enregistrements dans un dict local, non persistant.
    """

    backend_name = "memory"

    def __init__(self, protocols: Iterable[ExecutionProtocol] = ()):
        """Initialise la base mémoire, éventuellement avec des protocoles."""
        self._db: dict[str, ExecutionProtocol] = {}
        self._lock = threading.Lock()
        for p in protocols:
            self.save(p)

    def save(self, protocol: ExecutionProtocol) -> ExecutionProtocol:
        """Enregistre/écrase un protocole et le renvoie."""
        with self._lock:
            self._db[protocol.id] = protocol
        return protocol

    def _snapshot(self) -> list[ExecutionProtocol]:
        with self._lock:
            return list(self._db.values())

    def list_for_polling(
        self,
        tenant_id: str,
        updated_after: datetime | None = None,
        limit: int = DEFAULT_PAGE_SIZE,
        offset: int = DEFAULT_OFFSET,
    ) -> PollingPage:
        """Liste les protocoles visibles du tenant après le curseur, triés par (updated_at, id)."""
        limit, offset = clamp_page(limit, offset)
        matching = sorted(
            (
                p
                for p in self._snapshot()
                if p.visible_to(tenant_id)
                and (updated_after is None or p.updated_at > updated_after)
            ),
            key=ExecutionProtocol.sort_key,
        )
        items = [p.without_snapshot() for p in matching[offset : offset + limit]]
        return PollingPage(items=items, total=len(matching))

    def get_by_id(self, tenant_id: str, protocol_id: str) -> ExecutionProtocol | None:
        """Retourne un protocole par id s'il est visible pour le tenant, sinon None."""
        with self._lock:
            protocol = self._db.get(protocol_id)
        if protocol is None or not protocol.visible_to(tenant_id):
            return None
        return protocol

    def get_snapshot_by_id(self, tenant_id: str, protocol_id: str) -> dict[str, Any] | None:
        """Retourne le snapshot d'un protocole visible, sinon None."""
        protocol = self.get_by_id(tenant_id, protocol_id)
        return protocol.snapshot if protocol else None
