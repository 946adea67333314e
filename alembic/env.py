"""
Configuration de l'environnement Alembic pour les migrations de la table execution_protocols.

L'URL de base est résolue comme pour l'application (Settings: env/.env), avec repli sur une base
SQLite locale pour le développement.
"""

from __future__ import annotations

import sys
from logging.config import fileConfig
from pathlib import Path

from sqlalchemy import create_engine, pool

from alembic import context  # type: ignore[attr-defined]

# Permet d'importer le projet quand Alembic est lancé depuis la racine du dépôt
_root = str(Path(__file__).resolve().parent.parent)
if _root not in sys.path:
    sys.path.append(_root)

from protocol_api.core.settings import get_settings  # noqa: E402
from protocol_api.infra.repo.models import Base  # noqa: E402

DEFAULT_URL = "sqlite:///./protocols.db"

config = context.config

# Interpret the config file for Python logging.
if config.config_file_name is not None:
    fileConfig(config.config_file_name, disable_existing_loggers=False)

target_metadata = Base.metadata


def _database_url() -> str:
    return get_settings().DATABASE_URL or DEFAULT_URL


def run_migrations_offline() -> None:
    """Exécute les migrations en mode offline (SQL généré avec bindings littéraux)."""
    context.configure(url=_database_url(), target_metadata=target_metadata, literal_binds=True)
    with context.begin_transaction():
        context.run_migrations()


def run_migrations_online() -> None:
    """Exécute les migrations avec une connexion active (pool désactivé)."""
    connectable = create_engine(_database_url(), poolclass=pool.NullPool)
    with connectable.connect() as connection:
        context.configure(connection=connection, target_metadata=target_metadata)
        with context.begin_transaction():
            context.run_migrations()


if context.is_offline_mode():
    run_migrations_offline()
else:
    run_migrations_online()
