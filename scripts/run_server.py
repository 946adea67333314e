"""
Serveur de développement local.

Lance l'API avec le dépôt mémoire amorcé par défaut, pour tester le polling sans base ni système
amont. Les variables d'environnement déjà définies restent prioritaires.
"""

import os

# Ensure local-friendly defaults BEFORE importing app/modules
os.environ.setdefault("REPOSITORY_BACKEND", "memory")
os.environ.setdefault("SEED_DEMO_DATA", "true")
os.environ.setdefault(
    "API_KEYS", '{"dev-key-acme": "tenant-acme", "dev-key-globex": "tenant-globex"}'
)

import uvicorn  # noqa: E402

from protocol_api.app.main import app  # noqa: E402
from protocol_api.core.settings import get_settings  # noqa: E402


def main():
    """Point d'entrée: démarre uvicorn sur APP_HOST/APP_PORT."""
    settings = get_settings()
    uvicorn.run(app, host=settings.APP_HOST, port=settings.APP_PORT, reload=False)


if __name__ == "__main__":
    main()
