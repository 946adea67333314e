# ============================================================
# Module : protocol_api/domain/controller.py
# Objet  : Contrôleur d'accès aux protocoles (validation, projection).
# Invariants :
#  - Aucun état entre deux appels.
#  - Les erreurs de validation sont levées avant tout accès au dépôt.
#  - Les échecs du dépôt ne sont ni masqués ni rejoués.
# ============================================================
"""Contrôleur d'accès aux protocoles d'exécution.

Valide les entrées (tenant, curseur, pagination, identifiant), délègue au dépôt injecté et projette
les résultats vers le contrat externe. Le contrôleur ignore l'implémentation du dépôt (base,
adaptateur amont ou mémoire).
"""

from __future__ import annotations

import time
from typing import Any

import structlog

from protocol_api.app.metrics import (
    PROTOCOL_ITEMS_RETURNED,
    PROTOCOL_POLL_REQUESTS,
    PROTOCOL_SNAPSHOT_LOOKUPS,
    PROTOCOL_VALIDATION_ERRORS,
    REPOSITORY_ERRORS,
    REPOSITORY_LATENCY,
    labelize_tenant,
)
from protocol_api.app.tracing import get_tracer
from protocol_api.domain.errors import (
    BadRequest,
    InternalError,
    NotFound,
    RepositoryError,
    Unauthorized,
)
from protocol_api.domain.repository import ExecutionProtocolRepository
from protocol_api.domain.validation import (
    is_valid_uuid,
    normalize_limit,
    normalize_offset,
    parse_cursor,
)

INVALID_CURSOR_MESSAGE = (
    "Invalid updatedAfter format. Use ISO 8601 timestamp (e.g., 2026-02-15T10:00:00Z)"
)

log = structlog.get_logger(__name__)
tracer = get_tracer(__name__)


class ExecutionProtocolController:
    """Point d'entrée du contrat de polling, indépendant de la source de données."""

    def __init__(
        self,
        repository: ExecutionProtocolRepository,
        allowed_tenants: list[str] | None = None,
    ) -> None:
        """Construit le contrôleur avec le dépôt à utiliser."""
        if repository is None:
            raise ValueError("ExecutionProtocolController requires a repository")
        self.repository = repository
        self._allowed_tenants = allowed_tenants or []

    @staticmethod
    def _require_tenant(tenant_id: str | None) -> str:
        tenant = (tenant_id or "").strip()
        if not tenant:
            PROTOCOL_VALIDATION_ERRORS.labels("UNAUTHORIZED").inc()
            raise Unauthorized()
        return tenant

    def _call_repository(self, operation: str, fn, *args, **kwargs):
        backend = getattr(self.repository, "backend_name", type(self.repository).__name__)
        start = time.perf_counter()
        try:
            return fn(*args, **kwargs)
        except RepositoryError as exc:
            REPOSITORY_ERRORS.labels(backend, operation).inc()
            log.error(
                "repository_failure",
                backend=backend,
                operation=operation,
                error=str(exc),
            )
            raise InternalError(f"Failed to retrieve execution protocol data ({operation})") from exc
        finally:
            REPOSITORY_LATENCY.labels(backend, operation).observe(time.perf_counter() - start)

    def handle_list_for_polling(
        self,
        tenant_id: str | None,
        raw_updated_after: str | None = None,
        raw_limit: str | int | None = None,
        raw_offset: str | int | None = None,
    ) -> dict[str, Any]:
        """
        Liste les métadonnées des protocoles CLOSED du tenant pour le polling incrémental.

        Paramètres:
        - tenant_id: identité tenant résolue par l'authentification.
        - raw_updated_after: curseur ISO-8601 optionnel (strictement supérieur).
        - raw_limit / raw_offset: pagination brute, bornée plutôt que rejetée.

        Retour: `{"items": [...], "pagination": {"limit", "offset", "total", "hasMore"}}`.
        """
        tenant = self._require_tenant(tenant_id)
        try:
            updated_after = parse_cursor(raw_updated_after)
        except ValueError as err:
            PROTOCOL_VALIDATION_ERRORS.labels("BAD_REQUEST").inc()
            raise BadRequest(INVALID_CURSOR_MESSAGE) from err
        limit = normalize_limit(raw_limit)
        offset = normalize_offset(raw_offset)

        tenant_label = labelize_tenant(tenant, self._allowed_tenants)
        PROTOCOL_POLL_REQUESTS.labels(tenant_label, "yes" if updated_after else "no").inc()
        with tracer.start_as_current_span("execution_protocols.list_for_polling") as span:
            span.set_attribute("protocols.limit", limit)
            span.set_attribute("protocols.offset", offset)
            page = self._call_repository(
                "list_for_polling",
                self.repository.list_for_polling,
                tenant,
                updated_after=updated_after,
                limit=limit,
                offset=offset,
            )

        items = [p.to_list_metadata() for p in page.items]
        PROTOCOL_ITEMS_RETURNED.labels(tenant_label).inc(len(items))
        log.info(
            "protocols_polled",
            tenant=tenant,
            updated_after=updated_after.isoformat() if updated_after else None,
            limit=limit,
            offset=offset,
            returned=len(items),
            total=page.total,
        )
        return {
            "items": items,
            "pagination": {
                "limit": limit,
                "offset": offset,
                "total": page.total,
                "hasMore": offset + len(items) < page.total,
            },
        }

    def handle_get_snapshot(self, tenant_id: str | None, raw_id: str | None) -> dict[str, Any]:
        """
        Retourne le snapshot complet d'un protocole, sans enveloppe.

        Un identifiant mal formé, absent, d'un autre tenant ou non clôturé produit la même
        erreur `NotFound`.
        """
        tenant = self._require_tenant(tenant_id)
        tenant_label = labelize_tenant(tenant, self._allowed_tenants)
        if not is_valid_uuid(raw_id):
            PROTOCOL_SNAPSHOT_LOOKUPS.labels(tenant_label, "malformed_id").inc()
            raise NotFound()

        protocol_id = str(raw_id).lower()
        with tracer.start_as_current_span("execution_protocols.get_snapshot"):
            snapshot = self._call_repository(
                "get_snapshot_by_id",
                self.repository.get_snapshot_by_id,
                tenant,
                protocol_id,
            )
        if snapshot is None:
            PROTOCOL_SNAPSHOT_LOOKUPS.labels(tenant_label, "not_found").inc()
            log.info("protocol_snapshot_not_found", tenant=tenant, protocol_id=protocol_id)
            raise NotFound()
        PROTOCOL_SNAPSHOT_LOOKUPS.labels(tenant_label, "found").inc()
        return snapshot
