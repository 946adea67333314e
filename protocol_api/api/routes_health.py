"""
Endpoint de santé pour vérifier la disponibilité de l'API.

Expose `/health` pour signaler l'état général de l'application et le dépôt configuré. L'endpoint
ne sollicite pas le stockage.
"""

from fastapi import APIRouter, Depends

from protocol_api.api.deps import get_container
from protocol_api.core.container import Container

router = APIRouter(tags=["health"])
container_dep = Depends(get_container)


@router.get("/health")
def health(container: Container = container_dep):
    """Vérifie la disponibilité de l'API et indique le backend de dépôt actif."""
    return {
        "status": "ok",
        "repository": container.repository_backend,
    }
