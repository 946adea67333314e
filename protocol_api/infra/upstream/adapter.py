# ============================================================
# Module : protocol_api/infra/upstream/adapter.py
# Objet  : Dépôt adossé au système d'inspection amont (HTTP).
# Contexte : Transforme le schéma amont vers le contrat canonique.
# Invariants :
#  - Le filtre tenant + CLOSED + curseur strict est réappliqué localement,
#    même si l'amont annonce des données déjà filtrées.
#  - Aucune relance automatique: un échec amont remonte immédiatement.
# ============================================================
"""Adaptateur distant implémentant le dépôt des protocoles d'exécution.

Variables d'environnement / settings utilisées:
  - `UPSTREAM_URL`: URL de base du système amont (ex: https://inspections.example.com)
  - `UPSTREAM_API_KEY`: jeton d'accès (si requis par l'instance)
  - `UPSTREAM_TIMEOUT_S`: délai réseau en secondes
  - `UPSTREAM_PAGE_SIZE`: taille des pages demandées à l'amont

Contrat amont attendu:
  - `GET /v1/executions?tenant=..&state=closed[&modifiedSince=..]` =>
    `{"executions": [...], "next": <url|null>}`
  - `GET /v1/executions/{id}?tenant=..` => enregistrement, ou 404
"""

from __future__ import annotations

from collections.abc import Iterator
from datetime import UTC, datetime
from typing import Any

import httpx
import structlog

from protocol_api.core.http_constants import (
    DEFAULT_OFFSET,
    DEFAULT_PAGE_SIZE,
    HTTP_NOT_FOUND,
)
from protocol_api.domain.errors import RepositoryError
from protocol_api.domain.execution_protocol import ExecutionProtocol, PollingPage
from protocol_api.domain.repository import clamp_page

MAX_UPSTREAM_PAGES = 1000


def transform_execution(record: dict[str, Any]) -> ExecutionProtocol:
    """Convertit un enregistrement amont vers l'entité canonique.

    Raises:
        KeyError / ValueError: si un champ obligatoire manque ou est illisible.
    """
    site = record.get("site") or {}
    plant = record.get("plant") or {}
    return ExecutionProtocol.from_row(
        {
            "id": record["executionId"],
            "tenant_id": record["tenant"],
            "site_id": site.get("code") or "",
            "plant_id": plant.get("code") or "",
            "status": str(record.get("state") or "").upper(),
            "created_at": record.get("createdOn"),
            "closed_at": record.get("finishedOn"),
            "updated_at": record["lastModified"],
            "snapshot": record.get("document"),
        }
    )


class UpstreamExecutionProtocolRepository:
    """Dépôt lisant les protocoles depuis le système amont via HTTP."""

    backend_name = "upstream"

    def __init__(
        self,
        base_url: str,
        api_key: str | None = None,
        *,
        timeout_s: float = 10.0,
        page_size: int = 200,
        client: httpx.Client | None = None,
    ) -> None:
        """Initialise l'adaptateur; un client httpx peut être injecté (pool partagé, tests)."""
        if not (base_url or "").strip():
            raise ValueError("UPSTREAM_URL est requis pour le dépôt amont")
        self.base_url = base_url.rstrip("/")
        self.page_size = max(1, page_size)
        self._log = structlog.get_logger(__name__).bind(component="upstream_repository")
        if client is None:
            headers: dict[str, str] = {"Accept": "application/json"}
            if api_key:
                headers["Authorization"] = f"Bearer {api_key}"
            timeout = httpx.Timeout(timeout_s)
            limits = httpx.Limits(max_keepalive_connections=20, max_connections=50)
            client = httpx.Client(
                base_url=self.base_url, headers=headers, timeout=timeout, limits=limits
            )
        self._client = client

    def close(self) -> None:
        """Ferme le client HTTP sous-jacent."""
        self._client.close()

    def _get(self, operation: str, url: str, params: dict[str, Any] | None = None) -> httpx.Response:
        try:
            return self._client.get(url, params=params)
        except httpx.HTTPError as exc:
            self._log.error("upstream_unreachable", operation=operation, error=str(exc))
            raise RepositoryError(self.backend_name, operation, str(exc)) from exc

    def _fail(self, operation: str, resp: httpx.Response) -> RepositoryError:
        self._log.error("upstream_http_error", operation=operation, status_code=resp.status_code)
        return RepositoryError(
            self.backend_name, operation, f"upstream responded {resp.status_code}"
        )

    def _iter_records(self, tenant_id: str, updated_after: datetime | None) -> Iterator[dict]:
        params: dict[str, Any] | None = {
            "tenant": tenant_id,
            "state": "closed",
            "pageSize": self.page_size,
        }
        if updated_after is not None:
            params["modifiedSince"] = updated_after.astimezone(UTC).isoformat()
        url: str | None = "/v1/executions"
        pages = 0
        while url:
            pages += 1
            if pages > MAX_UPSTREAM_PAGES:
                raise RepositoryError(self.backend_name, "list_for_polling", "too many pages")
            resp = self._get("list_for_polling", url, params)
            if resp.is_error:
                raise self._fail("list_for_polling", resp)
            try:
                body = resp.json()
                records = body["executions"]
                if not isinstance(records, list):
                    raise TypeError("executions is not a list")
            except (ValueError, KeyError, TypeError) as exc:
                raise RepositoryError(
                    self.backend_name, "list_for_polling", "malformed upstream payload"
                ) from exc
            yield from records
            url = body.get("next")
            # les liens `next` portent déjà leurs paramètres
            params = None

    def _to_entity(self, operation: str, record: Any) -> ExecutionProtocol:
        try:
            if not isinstance(record, dict):
                raise TypeError(f"record is {type(record).__name__}, not an object")
            return transform_execution(record)
        except (KeyError, ValueError, TypeError, AttributeError, OverflowError) as exc:
            raise RepositoryError(
                self.backend_name, operation, "malformed upstream record"
            ) from exc

    def list_for_polling(
        self,
        tenant_id: str,
        updated_after: datetime | None = None,
        limit: int = DEFAULT_PAGE_SIZE,
        offset: int = DEFAULT_OFFSET,
    ) -> PollingPage:
        """Liste les protocoles amont revérifiés localement (tenant, CLOSED, curseur strict)."""
        if not tenant_id:
            return PollingPage.empty()
        limit, offset = clamp_page(limit, offset)
        matching: list[ExecutionProtocol] = []
        dropped = 0
        for record in self._iter_records(tenant_id, updated_after):
            protocol = self._to_entity("list_for_polling", record)
            if not protocol.visible_to(tenant_id) or (
                updated_after is not None and protocol.updated_at <= updated_after
            ):
                dropped += 1
                continue
            matching.append(protocol.without_snapshot())
        if dropped:
            self._log.warning("upstream_records_filtered", tenant=tenant_id, dropped=dropped)
        matching.sort(key=ExecutionProtocol.sort_key)
        return PollingPage(items=matching[offset : offset + limit], total=len(matching))

    def get_by_id(self, tenant_id: str, protocol_id: str) -> ExecutionProtocol | None:
        """Charge un protocole amont; None si absent, d'un autre tenant ou non clôturé."""
        if not tenant_id or not protocol_id:
            return None
        resp = self._get("get_by_id", f"/v1/executions/{protocol_id}", {"tenant": tenant_id})
        if resp.status_code == HTTP_NOT_FOUND:
            return None
        if resp.is_error:
            raise self._fail("get_by_id", resp)
        try:
            record = resp.json()
        except ValueError as exc:
            raise RepositoryError(self.backend_name, "get_by_id", "malformed upstream payload") from exc
        protocol = self._to_entity("get_by_id", record)
        if protocol.id != protocol_id.lower() or not protocol.visible_to(tenant_id):
            return None
        return protocol

    def get_snapshot_by_id(self, tenant_id: str, protocol_id: str) -> dict[str, Any] | None:
        """Retourne le document amont du protocole visible, sinon None."""
        protocol = self.get_by_id(tenant_id, protocol_id)
        if protocol is None or protocol.snapshot is None:
            return None
        return protocol.snapshot
