"""Définition et chargement des paramètres de configuration applicative.

Objectif du module
------------------
- Centraliser les paramètres (env/.env) via Pydantic Settings
- Résoudre le fichier `.env` à utiliser selon la stratégie: ENV_FILE > .env.{APP_ENV} > .env
"""

import json
import os
from pathlib import Path

from pydantic import field_validator
from pydantic_settings import BaseSettings, SettingsConfigDict

# Détermination du fichier .env à utiliser avec priorité:
# 1) ENV_FILE (chemin explicite)
# 2) .env.{APP_ENV} si présent
# 3) .env (défaut)
_cwd = Path.cwd()
_env_file_from_env = os.getenv("ENV_FILE")
if _env_file_from_env:
    _ENV_FILE_PATH = _env_file_from_env
else:
    _app_env = os.getenv("APP_ENV", "dev")
    _candidate_specific = _cwd / f".env.{_app_env}"
    _candidate_default = _cwd / ".env"
    if _candidate_specific.exists():
        _ENV_FILE_PATH = _candidate_specific
    else:
        _ENV_FILE_PATH = _candidate_default

REPOSITORY_BACKENDS = ("sql", "upstream", "memory")


class Settings(BaseSettings):
    """Modèle de configuration chargé depuis l'environnement et .env."""

    model_config = SettingsConfigDict(
        env_file=_ENV_FILE_PATH,
        env_file_encoding="utf-8",
        env_ignore_empty=True,
        case_sensitive=False,
    )
    APP_NAME: str = "execution-protocols-api"
    APP_ENV: str = "dev"
    APP_DEBUG: bool = False
    APP_HOST: str = "0.0.0.0"
    APP_PORT: int = 4001

    # Logging
    LOG_LEVEL: str = "INFO"
    LOG_JSON: bool = False

    # Stockage relationnel (PostgreSQL en production, SQLite en dev/tests)
    DATABASE_URL: str | None = None
    DB_POOL_SIZE: int = 5
    DB_ECHO: bool = False
    AUTO_CREATE_SCHEMA: bool = False

    # Choix du dépôt: "sql" | "upstream" | "memory"
    REPOSITORY_BACKEND: str = "sql"
    SEED_DEMO_DATA: bool = False

    # Système amont (adaptateur distant)
    UPSTREAM_URL: str | None = None
    UPSTREAM_API_KEY: str | None = None
    UPSTREAM_TIMEOUT_S: float = 10.0
    UPSTREAM_PAGE_SIZE: int = 200

    # Clés API -> tenant, JSON: {"<api key>": "<tenant id>"}
    API_KEYS: str = "{}"

    OTLP_ENDPOINT: str | None = None
    # Limitation de cardinalité des labels métriques (CSV via .env, peut être vide)
    ALLOWED_TENANTS: list[str] = []

    @field_validator("REPOSITORY_BACKEND")
    @classmethod
    def _check_backend(cls, value: str) -> str:
        backend = value.strip().lower()
        if backend not in REPOSITORY_BACKENDS:
            raise ValueError(f"invalid REPOSITORY_BACKEND: {value}")
        return backend

    @field_validator("API_KEYS")
    @classmethod
    def _check_api_keys(cls, value: str) -> str:
        try:
            parsed = json.loads(value or "{}")
        except json.JSONDecodeError as err:
            raise ValueError("API_KEYS must be a JSON object") from err
        if not isinstance(parsed, dict):
            raise ValueError("API_KEYS must be a JSON object")
        return value

    def api_key_map(self) -> dict[str, str]:
        """Retourne la table clé API -> tenant décodée depuis `API_KEYS`."""
        raw = json.loads(self.API_KEYS or "{}")
        return {str(k): str(v) for k, v in raw.items() if str(k) and str(v).strip()}


def get_settings() -> Settings:
    """Construit et retourne la configuration de l'application."""
    return Settings()
