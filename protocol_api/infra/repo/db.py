"""DB utilities for SQLAlchemy sessions/engine.

Uses the configured `DATABASE_URL` (or env var) and falls back to an in-memory SQLite database
shared across threads (`StaticPool`) for dev/tests. The engine is the process-scoped connection
pool handle; it is created once and passed explicitly to the repositories.
"""

from __future__ import annotations

import os
from collections.abc import Iterator
from contextlib import contextmanager

from sqlalchemy import create_engine
from sqlalchemy.engine import Engine
from sqlalchemy.orm import Session, sessionmaker
from sqlalchemy.pool import StaticPool

MEMORY_URL = "sqlite+pysqlite:///:memory:"


def get_engine(url: str | None = None, *, pool_size: int = 5, echo: bool = False) -> Engine:
    """Crée un moteur SQLAlchemy à partir de l'URL de base de données."""
    db_url = url or os.getenv("DATABASE_URL") or MEMORY_URL
    if db_url.startswith("sqlite"):
        kwargs: dict = {"connect_args": {"check_same_thread": False}}
        if ":memory:" in db_url or db_url.rstrip("/").endswith("sqlite+pysqlite:"):
            kwargs["poolclass"] = StaticPool
        return create_engine(db_url, echo=echo, **kwargs)
    return create_engine(db_url, echo=echo, pool_size=pool_size, pool_pre_ping=True)


def get_session_factory(engine: Engine) -> sessionmaker:
    """Crée une factory de sessions SQLAlchemy."""
    return sessionmaker(bind=engine, class_=Session, expire_on_commit=False)


@contextmanager
def session_scope(engine: Engine) -> Iterator[Session]:
    """Contexte de session SQLAlchemy avec gestion automatique des transactions.

    La session est ouverte pour une seule opération logique et toujours refermée, la connexion
    retournant au pool en sortie de contexte.
    """
    SessionLocal = get_session_factory(engine)
    session = SessionLocal()
    try:
        yield session
        session.commit()
    except Exception:
        session.rollback()
        raise
    finally:
        session.close()
