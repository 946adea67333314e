"""
Consommateur de démonstration: synchronisation incrémentale par polling.

Lit le curseur persisté (fichier), synchronise les protocoles modifiés depuis, écrit chaque
snapshot en JSON dans un répertoire de sortie et persiste le nouveau curseur après chaque page.
"""

from __future__ import annotations

import argparse
import json
import os
import sys
from pathlib import Path

from protocol_api.services.sync_client import ProtocolSyncClient, SyncClientError, format_cursor


def _read_cursor(path: Path) -> str | None:
    if not path.exists():
        return None
    value = path.read_text(encoding="utf-8").strip()
    return value or None


def main(argv: list[str] | None = None) -> int:
    """Point d'entrée: une passe de synchronisation complète."""
    parser = argparse.ArgumentParser(description="Poll closed execution protocols")
    parser.add_argument("--base-url", default=os.getenv("PROTOCOLS_API_URL", "http://localhost:4001"))
    parser.add_argument("--api-key", default=os.getenv("PROTOCOLS_API_KEY"))
    parser.add_argument("--cursor-file", type=Path, default=Path(".protocols_cursor"))
    parser.add_argument("--out-dir", type=Path, default=Path("protocols"))
    parser.add_argument("--page-size", type=int, default=50)
    args = parser.parse_args(argv)

    if not args.api_key:
        print("an API key is required (--api-key or PROTOCOLS_API_KEY)", file=sys.stderr)
        return 1

    args.out_dir.mkdir(parents=True, exist_ok=True)
    client = ProtocolSyncClient(args.base_url, args.api_key, page_size=args.page_size)
    received = 0
    try:
        for batch in client.sync(_read_cursor(args.cursor_file)):
            for protocol_id, snapshot in batch.snapshots.items():
                target = args.out_dir / f"{protocol_id}.json"
                target.write_text(json.dumps(snapshot, indent=2), encoding="utf-8")
            received += len(batch.items)
            checkpoint = batch.position.checkpoint if batch.position else None
            if checkpoint is not None:
                args.cursor_file.write_text(format_cursor(checkpoint), encoding="utf-8")
    except SyncClientError as exc:
        print(f"sync failed: {exc}", file=sys.stderr)
        return 2
    finally:
        client.close()
    print(f"synced {received} protocols")
    return 0


if __name__ == "__main__":  # pragma: no cover - script entry
    sys.exit(main())
