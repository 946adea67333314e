"""SQLAlchemy models for persistence layer (ExecutionProtocol)."""

from __future__ import annotations

from datetime import UTC, datetime

from sqlalchemy import (
    JSON,
    Column,
    DateTime,
    Index,
    MetaData,
    String,
)
from sqlalchemy.dialects.postgresql import JSONB
from sqlalchemy.orm import DeclarativeBase


def _utcnow() -> datetime:
    return datetime.now(UTC)


class Base(DeclarativeBase):
    """Classe de base pour tous les modèles SQLAlchemy."""

    metadata = MetaData()


class ExecutionProtocolORM(Base):
    """Modèle ORM pour les protocoles d'exécution (snapshot JSONB sur PostgreSQL)."""

    __tablename__ = "execution_protocols"

    id = Column(String(36), primary_key=True)
    site_id = Column(String(255), nullable=False)
    plant_id = Column(String(255), nullable=False)
    tenant_id = Column(String(255), nullable=False)
    status = Column(String(50), nullable=False, default="CLOSED")
    snapshot = Column(JSON().with_variant(JSONB(), "postgresql"), nullable=False)
    created_at = Column(DateTime(timezone=True), nullable=False, default=_utcnow)
    closed_at = Column(DateTime(timezone=True), nullable=True)
    updated_at = Column(DateTime(timezone=True), nullable=False, default=_utcnow)

    __table_args__ = (
        Index("idx_execution_protocols_polling", "tenant_id", "status", "updated_at"),
        Index("idx_execution_protocols_tenant", "tenant_id"),
    )
