"""Dépendances partagées pour les routes de l'API.

But du module
-------------
- Exposer aux endpoints les composants du conteneur attaché à l'application
  (`app.state.container`), sans état global au niveau module.
- Résoudre l'identité tenant via le collaborateur d'authentification.
"""

from fastapi import Request

from protocol_api.core.container import Container
from protocol_api.domain.controller import ExecutionProtocolController


def get_container(request: Request) -> Container:
    """Retourne le conteneur de l'application courante."""
    return request.app.state.container


def get_controller(request: Request) -> ExecutionProtocolController:
    """Retourne le contrôleur des protocoles d'exécution."""
    return get_container(request).controller


def get_tenant_id(request: Request) -> str:
    """Authentifie la requête (X-API-Key) et retourne le tenant résolu (401 sinon)."""
    return get_container(request).authenticator.authenticate(request)
