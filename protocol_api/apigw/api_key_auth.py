"""
Authentification par clé API et résolution du tenant.

Trust model:
- La clé `X-API-Key` est la seule source de l'identité tenant.
- Aucun en-tête client (ex: X-Tenant-ID) ne peut surclasser le tenant dérivé de la clé.
- Les clés sont comparées en temps constant.
"""

from __future__ import annotations

import hmac
import logging

from fastapi import Request

from protocol_api.apigw.errors import unauthorized

API_KEY_HEADER = "X-API-Key"

log = logging.getLogger(__name__)


class ApiKeyAuthenticator:
    """Résout une clé API en identifiant tenant à partir d'une table clé -> tenant."""

    def __init__(self, api_keys: dict[str, str]) -> None:
        """Initialise l'authentificateur avec la table des clés (valeurs: tenant)."""
        self._keys = {k: v.strip() for k, v in api_keys.items() if k and v and v.strip()}

    def resolve_tenant(self, api_key: str | None) -> str | None:
        """Retourne le tenant associé à la clé, ou None si la clé est inconnue."""
        if not api_key:
            return None
        candidate = api_key.encode("utf-8")
        tenant: str | None = None
        for known, known_tenant in self._keys.items():
            if hmac.compare_digest(candidate, known.encode("utf-8")):
                tenant = known_tenant
        return tenant

    def authenticate(self, request: Request) -> str:
        """Extrait et valide la clé API de la requête, retourne le tenant résolu.

        Raises:
            APIError: 401 si la clé est absente ou invalide.
        """
        api_key = request.headers.get(API_KEY_HEADER)
        if not api_key:
            raise unauthorized(f"Missing {API_KEY_HEADER} header")
        tenant = self.resolve_tenant(api_key)
        if tenant is None:
            log.warning(
                "Invalid API key presented",
                extra={
                    "route": request.url.path,
                    "trace_id": getattr(request.state, "trace_id", None),
                },
            )
            raise unauthorized("Invalid API key")
        request.state.tenant_id = tenant
        return tenant
