"""Interface du dépôt des protocoles d'exécution.

Ce module définit le contrat d'accès aux données que doivent respecter toutes les implémentations
(base relationnelle, adaptateur amont, mémoire). Les implémentations sont interchangeables sans
effet sur les consommateurs: chacune applique elle-même le filtre tenant + statut CLOSED, aucune
classe de base partagée ne s'en charge.
"""

from __future__ import annotations

from datetime import datetime
from typing import Any, Protocol, runtime_checkable

from protocol_api.core.http_constants import (
    DEFAULT_OFFSET,
    DEFAULT_PAGE_SIZE,
    MAX_PAGE_SIZE,
    MIN_PAGE_SIZE,
)
from protocol_api.domain.execution_protocol import ExecutionProtocol, PollingPage


@runtime_checkable
class ExecutionProtocolRepository(Protocol):
    """Protocole des dépôts de protocoles d'exécution (lecture seule, scope tenant)."""

    backend_name: str

    def list_for_polling(
        self,
        tenant_id: str,
        updated_after: datetime | None = None,
        limit: int = DEFAULT_PAGE_SIZE,
        offset: int = DEFAULT_OFFSET,
    ) -> PollingPage:
        """Liste les protocoles CLOSED du tenant modifiés strictement après le curseur.

        Args:
            tenant_id: Tenant demandeur (filtre d'égalité stricte).
            updated_after: Curseur optionnel, filtre `updated_at > updated_after`.
            limit: Taille de page, bornée à [1, 100].
            offset: Décalage dans l'ensemble filtré par le curseur.

        Returns:
            PollingPage: éléments triés par (updated_at, id) croissants, sans snapshot, et total
            calculé sur le même filtre, indépendamment de limit/offset.

        Raises:
            RepositoryError: en cas de défaillance du stockage.
        """
        ...

    def get_by_id(self, tenant_id: str, protocol_id: str) -> ExecutionProtocol | None:
        """Retourne l'entité complète, ou None (absent, autre tenant, non CLOSED)."""
        ...

    def get_snapshot_by_id(self, tenant_id: str, protocol_id: str) -> dict[str, Any] | None:
        """Retourne uniquement le snapshot, avec les mêmes règles que `get_by_id`."""
        ...


def clamp_page(limit: int, offset: int) -> tuple[int, int]:
    """Borne limit à [1, 100] et offset à >= 0 (garde-fou côté dépôt)."""
    return max(MIN_PAGE_SIZE, min(limit, MAX_PAGE_SIZE)), max(offset, 0)
