"""
Modèle de domaine ExecutionProtocol (POPO).

Représente un protocole d'exécution clôturé (CLOSED) et son snapshot figé. Ce module définit aussi
les deux projections du contrat externe : les métadonnées de liste (sans snapshot) et le snapshot
complet, ainsi que le type de résultat paginé renvoyé par les dépôts.
"""

# ============================================================
# Module : protocol_api/domain/execution_protocol.py
# Objet  : Entité canonique + projections du contrat (liste / snapshot).
# Invariants :
#  - tenant_id immuable, filtré sur chaque chemin de lecture.
#  - seuls les enregistrements CLOSED sont visibles.
#  - updated_at est le champ curseur (non décroissant par enregistrement).
# ============================================================

from __future__ import annotations

from collections.abc import Mapping
from dataclasses import dataclass, field, replace
from datetime import UTC, datetime
from typing import Any

CLOSED = "CLOSED"


def ensure_utc(value: datetime | str | None) -> datetime | None:
    """Normalise un horodatage en datetime UTC (naïf => interprété comme UTC)."""
    if value is None:
        return None
    if isinstance(value, str):
        value = datetime.fromisoformat(value.strip())
    if value.tzinfo is None:
        return value.replace(tzinfo=UTC)
    return value.astimezone(UTC)


def _pick(data: Mapping[str, Any], snake: str, camel: str) -> Any:
    value = data.get(snake)
    if value is None:
        value = data.get(camel)
    return value


@dataclass(frozen=True)
class ExecutionProtocol:
    """
    Protocole d'exécution clôturé (objet domaine, lecture seule).

    Attributs
    - id: UUID v4 (forme canonique minuscule).
    - tenant_id: tenant propriétaire.
    - site_id / plant_id: références opaques vers les sites et équipements.
    - status: état (seul CLOSED est exposé).
    - created_at / closed_at / updated_at: horodatages UTC; updated_at sert de curseur.
    - snapshot: document figé, None quand l'entité est chargée pour une liste.
    """

    id: str
    tenant_id: str
    site_id: str
    plant_id: str
    status: str
    created_at: datetime | None
    closed_at: datetime | None
    updated_at: datetime
    snapshot: dict[str, Any] | None = field(default=None, compare=False)

    @classmethod
    def from_row(cls, data: Mapping[str, Any]) -> ExecutionProtocol:
        """Construit l'entité depuis une ligne de stockage (clés snake_case ou camelCase)."""
        updated_at = ensure_utc(_pick(data, "updated_at", "updatedAt"))
        if updated_at is None:
            raise ValueError("execution protocol row without updated_at")
        return cls(
            id=str(data["id"]).lower(),
            tenant_id=str(_pick(data, "tenant_id", "tenantId")),
            site_id=str(_pick(data, "site_id", "siteId") or ""),
            plant_id=str(_pick(data, "plant_id", "plantId") or ""),
            status=str(data.get("status") or ""),
            created_at=ensure_utc(_pick(data, "created_at", "createdAt")),
            closed_at=ensure_utc(_pick(data, "closed_at", "closedAt")),
            updated_at=updated_at,
            snapshot=data.get("snapshot"),
        )

    @property
    def is_closed(self) -> bool:
        """Indique si le protocole est finalisé et donc exposable."""
        return self.status == CLOSED

    def visible_to(self, tenant_id: str) -> bool:
        """Vrai si le protocole appartient au tenant et est clôturé."""
        return bool(tenant_id) and self.tenant_id == tenant_id and self.is_closed

    def without_snapshot(self) -> ExecutionProtocol:
        """Copie de l'entité sans le snapshot (chargement pour la liste)."""
        return replace(self, snapshot=None)

    def to_list_metadata(self) -> dict[str, Any]:
        """Projection minimale utilisée par l'endpoint de polling."""
        return {
            "id": self.id,
            "siteId": self.site_id,
            "plantId": self.plant_id,
            "status": self.status,
            "closedAt": self.closed_at,
            "updatedAt": self.updated_at,
        }

    def sort_key(self) -> tuple[datetime, str]:
        """Clé d'ordre du polling: updated_at puis id pour départager les égalités."""
        return (self.updated_at, self.id)


@dataclass
class PollingPage:
    """Page de résultats du polling et total correspondant au même filtre."""

    items: list[ExecutionProtocol]
    total: int

    @classmethod
    def empty(cls) -> PollingPage:
        """Page vide (aucun résultat n'est une erreur)."""
        return cls(items=[], total=0)


def build_snapshot(
    *,
    id: str,
    site: dict[str, Any],
    plant: dict[str, Any],
    template: dict[str, Any],
    inspector: dict[str, Any],
    closed_at: str,
    validation: dict[str, Any],
    sections: list[dict[str, Any]],
    attachments: list[dict[str, Any]] | None = None,
    report: dict[str, Any] | None = None,
    metadata: dict[str, Any] | None = None,
    status: str = CLOSED,
) -> dict[str, Any]:
    """Assemble un document snapshot à partir des données métier."""
    snapshot: dict[str, Any] = {
        "id": id,
        "site": site,
        "plant": plant,
        "template": template,
        "inspector": inspector,
        "status": status,
        "closedAt": closed_at,
        "validation": validation,
        "sections": sections,
        "attachments": attachments or [],
        "report": report,
    }
    if metadata is not None:
        snapshot["metadata"] = metadata
    return snapshot
