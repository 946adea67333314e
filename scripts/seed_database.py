"""
Amorçage de la base avec des protocoles CLOSED réalistes.

Simule un état d'intégration proche de la production sans système amont: cinq protocoles répartis
sur `tenant-acme` et `tenant-globex`. Les enregistrements existants (même id) sont remplacés.
"""

from __future__ import annotations

import argparse
import sys

from protocol_api.core.settings import get_settings
from protocol_api.infra.repo.db import get_engine
from protocol_api.infra.repo.seed import count_by_tenant, create_schema, upsert_protocols
from protocol_api.infra.seed_data import demo_protocols


def main(argv: list[str] | None = None) -> int:
    """Point d'entrée: insère le jeu de démonstration et affiche un résumé par tenant."""
    parser = argparse.ArgumentParser(description="Seed demo execution protocols")
    parser.add_argument("--database-url", default=None, help="Override DATABASE_URL")
    parser.add_argument(
        "--create-schema", action="store_true", help="Create the table before seeding"
    )
    args = parser.parse_args(argv)

    url = args.database_url or get_settings().DATABASE_URL
    if not url:
        print("DATABASE_URL is not set", file=sys.stderr)
        return 1
    engine = get_engine(url)
    try:
        if args.create_schema:
            create_schema(engine)
        protocols = demo_protocols()
        written = upsert_protocols(engine, protocols)
        for p in protocols:
            print(f"inserted {p.id} site={p.site_id} plant={p.plant_id} tenant={p.tenant_id}")
        print(f"seeded {written} execution protocols")
        for tenant, count in count_by_tenant(engine).items():
            print(f"  {tenant}: {count} protocols")
    finally:
        engine.dispose()
    return 0


if __name__ == "__main__":  # pragma: no cover - script entry
    sys.exit(main())
