"""Écriture des protocoles en base pour l'amorçage (scripts, dev, tests).

L'API elle-même est en lecture seule; ce module n'est utilisé que par les outils d'exploitation
(initialisation du schéma, jeu de données de démonstration) et par les tests.
"""

from __future__ import annotations

from collections.abc import Iterable

from sqlalchemy import func, select
from sqlalchemy.engine import Engine

from ...domain.execution_protocol import ExecutionProtocol
from .db import session_scope
from .models import Base, ExecutionProtocolORM


def create_schema(engine: Engine) -> None:
    """Crée la table `execution_protocols` et ses index si absents."""
    Base.metadata.create_all(engine)


def upsert_protocols(engine: Engine, protocols: Iterable[ExecutionProtocol]) -> int:
    """Insère ou remplace les protocoles fournis (clé: id). Retourne le nombre écrit."""
    count = 0
    with session_scope(engine) as session:
        for p in protocols:
            session.merge(
                ExecutionProtocolORM(
                    id=p.id,
                    site_id=p.site_id,
                    plant_id=p.plant_id,
                    tenant_id=p.tenant_id,
                    status=p.status,
                    snapshot=p.snapshot or {},
                    created_at=p.created_at or p.updated_at,
                    closed_at=p.closed_at,
                    updated_at=p.updated_at,
                )
            )
            count += 1
    return count


def count_by_tenant(engine: Engine) -> dict[str, int]:
    """Résumé du nombre de protocoles par tenant (tous statuts confondus)."""
    stmt = (
        select(ExecutionProtocolORM.tenant_id, func.count())
        .group_by(ExecutionProtocolORM.tenant_id)
        .order_by(ExecutionProtocolORM.tenant_id)
    )
    with session_scope(engine) as session:
        return {tenant: int(n) for tenant, n in session.execute(stmt).all()}
