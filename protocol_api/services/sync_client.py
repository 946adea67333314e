# ============================================================
# Module : protocol_api/services/sync_client.py
# Objet  : Client de référence pour la synchronisation par polling.
# Contexte : Utilisé par les intégrations (ERP, entrepôts) et les scripts.
# Invariants :
#  - Le curseur avance au plus grand updatedAt reçu, jamais à l'heure d'appel.
#  - offset ne remplace pas l'avancée du curseur.
# ============================================================
"""Client HTTP de synchronisation incrémentale des protocoles d'exécution.

Pilote l'algorithme de `protocol_api.domain.sync`: liste les métadonnées modifiées après le
curseur, récupère le snapshot de chaque élément, puis avance jusqu'à épuisement. La livraison est
au-moins-une-fois: un consommateur doit traiter les protocoles de façon idempotente (clé: id).
"""

from __future__ import annotations

from collections.abc import Iterator
from dataclasses import dataclass, field
from datetime import UTC, datetime
from typing import Any

import httpx
import structlog

from protocol_api.apigw.api_key_auth import API_KEY_HEADER
from protocol_api.core.http_constants import DEFAULT_PAGE_SIZE, HTTP_NOT_FOUND, MAX_PAGE_SIZE
from protocol_api.domain.sync import SyncPosition, advance

LIST_PATH = "/api/v1/execution-protocols"


class SyncClientError(RuntimeError):
    """Erreur renvoyée par l'API (ou réseau) pendant la synchronisation."""

    def __init__(self, status_code: int | None, code: str, message: str) -> None:
        """Initialise l'erreur avec le code HTTP et l'enveloppe de l'API."""
        self.status_code = status_code
        self.code = code
        self.message = message
        super().__init__(f"{code}: {message}")


@dataclass
class SyncBatch:
    """Page synchronisée: métadonnées, snapshots associés et position après la page."""

    items: list[dict[str, Any]]
    snapshots: dict[str, dict[str, Any]] = field(default_factory=dict)
    position: SyncPosition | None = None

    @property
    def cursor(self) -> datetime | None:
        """Plus grand updatedAt observé depuis le début de la synchronisation."""
        return self.position.cursor if self.position else None


def format_cursor(value: datetime) -> str:
    """Formate un curseur en ISO-8601 UTC avec suffixe Z."""
    return value.astimezone(UTC).isoformat().replace("+00:00", "Z")


class ProtocolSyncClient:
    """Consommateur de référence de l'API de polling."""

    def __init__(
        self,
        base_url: str,
        api_key: str,
        *,
        page_size: int = DEFAULT_PAGE_SIZE,
        timeout_s: float = 10.0,
        fetch_snapshots: bool = True,
        client: httpx.Client | None = None,
    ) -> None:
        """Construit le client; un `httpx.Client` peut être injecté (tests, pool partagé)."""
        self.page_size = max(1, min(page_size, MAX_PAGE_SIZE))
        self.fetch_snapshots = fetch_snapshots
        self._log = structlog.get_logger(__name__).bind(component="protocol_sync_client")
        self._client = client or httpx.Client(base_url=base_url.rstrip("/"), timeout=timeout_s)
        self._headers = {API_KEY_HEADER: api_key, "Accept": "application/json"}

    def close(self) -> None:
        """Ferme le client HTTP."""
        self._client.close()

    def _get(self, url: str, params: dict[str, Any] | None = None) -> Any:
        try:
            resp = self._client.get(url, params=params, headers=self._headers)
        except httpx.HTTPError as exc:
            raise SyncClientError(None, "NETWORK_ERROR", str(exc)) from exc
        if resp.is_error:
            try:
                body = resp.json()
            except ValueError:
                body = {}
            raise SyncClientError(
                resp.status_code,
                str(body.get("code") or "HTTP_ERROR"),
                str(body.get("message") or resp.reason_phrase),
            )
        return resp.json()

    def list_page(
        self, updated_after: datetime | None = None, limit: int | None = None, offset: int = 0
    ) -> dict[str, Any]:
        """Appelle l'endpoint LIST et retourne la réponse décodée."""
        params: dict[str, Any] = {"limit": limit or self.page_size, "offset": offset}
        if updated_after is not None:
            params["updatedAfter"] = format_cursor(updated_after)
        return self._get(LIST_PATH, params)

    def get_snapshot(self, protocol_id: str) -> dict[str, Any]:
        """Retourne le snapshot complet d'un protocole."""
        return self._get(f"{LIST_PATH}/{protocol_id}")

    def sync(self, cursor: datetime | str | None = None) -> Iterator[SyncBatch]:
        """Synchronise depuis `cursor` (None => backfill complet), page par page.

        Chaque lot expose `position.checkpoint`, valeur sûre à persister après traitement; en fin
        de passe, elle vaut le plus grand updatedAt observé.
        """
        position = SyncPosition.start(cursor)
        while True:
            body = self.list_page(position.query_after, self.page_size, position.offset)
            items = body.get("items") or []
            has_more = bool((body.get("pagination") or {}).get("hasMore"))
            snapshots: dict[str, dict[str, Any]] = {}
            if self.fetch_snapshots:
                for item in items:
                    try:
                        snapshots[item["id"]] = self.get_snapshot(item["id"])
                    except SyncClientError as exc:
                        # retiré entre la liste et la lecture (plus CLOSED, plus visible)
                        if exc.status_code != HTTP_NOT_FOUND:
                            raise
                        self._log.warning("protocol_snapshot_missing", protocol_id=item["id"])
            position = advance(position, items, has_more)
            self._log.info(
                "protocols_synced",
                received=len(items),
                has_more=has_more,
                cursor=format_cursor(position.cursor) if position.cursor else None,
            )
            if items:
                yield SyncBatch(items=items, snapshots=snapshots, position=position)
            if not items or not has_more:
                return
