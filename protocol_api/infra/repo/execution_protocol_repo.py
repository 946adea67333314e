# ============================================================
# Module : protocol_api/infra/repo/execution_protocol_repo.py
# Objet  : Dépôt SQL (lecture seule) des protocoles d'exécution.
# Notes  : PostgreSQL en production (JSONB), SQLite pour les tests.
# ============================================================

from __future__ import annotations

from datetime import UTC, datetime
from typing import Any

from sqlalchemy import func, select
from sqlalchemy.engine import Engine
from sqlalchemy.exc import SQLAlchemyError

from ...core.http_constants import DEFAULT_OFFSET, DEFAULT_PAGE_SIZE
from ...domain.errors import RepositoryError
from ...domain.execution_protocol import CLOSED, ExecutionProtocol, PollingPage
from ...domain.repository import clamp_page
from .db import session_scope
from .models import ExecutionProtocolORM

_LIST_COLUMNS = (
    ExecutionProtocolORM.id,
    ExecutionProtocolORM.site_id,
    ExecutionProtocolORM.plant_id,
    ExecutionProtocolORM.tenant_id,
    ExecutionProtocolORM.status,
    ExecutionProtocolORM.created_at,
    ExecutionProtocolORM.closed_at,
    ExecutionProtocolORM.updated_at,
)


class SqlExecutionProtocolRepository:
    """Implémentation de référence adossée à la table `execution_protocols`.

    Chaque opération ouvre sa propre session sur le moteur fourni et la referme avant de rendre
    la main; aucune connexion n'est conservée entre deux opérations.
    """

    backend_name = "sql"

    def __init__(self, engine: Engine) -> None:
        """Construit le dépôt avec le moteur (pool de connexions) du processus."""
        self._engine = engine

    @staticmethod
    def _visible(tenant_id: str) -> list:
        return [
            ExecutionProtocolORM.tenant_id == tenant_id,
            ExecutionProtocolORM.status == CLOSED,
        ]

    def list_for_polling(
        self,
        tenant_id: str,
        updated_after: datetime | None = None,
        limit: int = DEFAULT_PAGE_SIZE,
        offset: int = DEFAULT_OFFSET,
    ) -> PollingPage:
        """Liste les protocoles CLOSED du tenant, triés par (updated_at, id) croissants."""
        if not tenant_id:
            return PollingPage.empty()
        limit, offset = clamp_page(limit, offset)
        conditions = self._visible(tenant_id)
        if updated_after is not None:
            conditions.append(ExecutionProtocolORM.updated_at > updated_after.astimezone(UTC))

        stmt = (
            select(*_LIST_COLUMNS)
            .where(*conditions)
            .order_by(ExecutionProtocolORM.updated_at.asc(), ExecutionProtocolORM.id.asc())
            .limit(limit)
            .offset(offset)
        )
        count_stmt = select(func.count()).select_from(ExecutionProtocolORM).where(*conditions)
        try:
            with session_scope(self._engine) as session:
                rows = session.execute(stmt).all()
                total = session.execute(count_stmt).scalar_one()
        except SQLAlchemyError as exc:
            raise RepositoryError(self.backend_name, "list_for_polling", str(exc)) from exc
        items = [ExecutionProtocol.from_row(row._mapping) for row in rows]
        return PollingPage(items=items, total=int(total))

    def get_by_id(self, tenant_id: str, protocol_id: str) -> ExecutionProtocol | None:
        """Retourne le protocole complet (avec snapshot) si tenant et statut correspondent."""
        if not tenant_id or not protocol_id:
            return None
        stmt = select(ExecutionProtocolORM).where(
            ExecutionProtocolORM.id == protocol_id, *self._visible(tenant_id)
        )
        try:
            with session_scope(self._engine) as session:
                row = session.execute(stmt).scalars().first()
                if row is None:
                    return None
                return ExecutionProtocol.from_row(
                    {c.name: getattr(row, c.name) for c in ExecutionProtocolORM.__table__.columns}
                )
        except SQLAlchemyError as exc:
            raise RepositoryError(self.backend_name, "get_by_id", str(exc)) from exc

    def get_snapshot_by_id(self, tenant_id: str, protocol_id: str) -> dict[str, Any] | None:
        """Retourne uniquement le snapshot, avec les mêmes règles de visibilité."""
        if not tenant_id or not protocol_id:
            return None
        stmt = select(ExecutionProtocolORM.snapshot).where(
            ExecutionProtocolORM.id == protocol_id, *self._visible(tenant_id)
        )
        try:
            with session_scope(self._engine) as session:
                return session.execute(stmt).scalars().first()
        except SQLAlchemyError as exc:
            raise RepositoryError(self.backend_name, "get_snapshot_by_id", str(exc)) from exc
