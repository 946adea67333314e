"""
Initialisation du schéma de base de données.

Crée la table `execution_protocols` et ses index de polling si absents. En production, préférer
les migrations Alembic (`alembic upgrade head`); ce script sert au développement local.
"""

from __future__ import annotations

import argparse
import sys

from protocol_api.core.settings import get_settings
from protocol_api.infra.repo.db import get_engine
from protocol_api.infra.repo.seed import create_schema


def main(argv: list[str] | None = None) -> int:
    """Point d'entrée: crée le schéma sur la base ciblée (argument ou DATABASE_URL)."""
    parser = argparse.ArgumentParser(description="Create the execution_protocols schema")
    parser.add_argument("--database-url", default=None, help="Override DATABASE_URL")
    args = parser.parse_args(argv)

    url = args.database_url or get_settings().DATABASE_URL
    if not url:
        print("DATABASE_URL is not set", file=sys.stderr)
        return 1
    engine = get_engine(url)
    try:
        create_schema(engine)
    finally:
        engine.dispose()
    print("execution_protocols table ready")
    return 0


if __name__ == "__main__":  # pragma: no cover - script entry
    sys.exit(main())
