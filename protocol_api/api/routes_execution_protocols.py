"""
Routes en lecture seule des protocoles d'exécution (contrat d'intégration par polling).

Ce module regroupe les endpoints `/api/v1/execution-protocols`: la liste incrémentale des
métadonnées (curseur `updatedAfter` + pagination) et la lecture du snapshot complet d'un protocole.
Toutes les routes exigent une clé API; le tenant est dérivé de la clé, jamais des paramètres.
"""

from typing import Any

from fastapi import APIRouter, Depends, Query

from protocol_api.api.deps import get_controller, get_tenant_id
from protocol_api.api.schemas import ErrorResponse, ProtocolListResponse
from protocol_api.domain.controller import ExecutionProtocolController

router = APIRouter(prefix="/api/v1/execution-protocols", tags=["execution-protocols"])
tenant_dep = Depends(get_tenant_id)
controller_dep = Depends(get_controller)

_ERRORS: dict[int | str, dict[str, Any]] = {
    401: {"model": ErrorResponse},
    404: {"model": ErrorResponse},
    500: {"model": ErrorResponse},
}


@router.get(
    "",
    response_model=ProtocolListResponse,
    responses={**_ERRORS, 400: {"model": ErrorResponse}},
)
def list_execution_protocols(
    updated_after: str | None = Query(None, alias="updatedAfter"),
    limit: str | None = Query(None),
    offset: str | None = Query(None),
    tenant_id: str = tenant_dep,
    controller: ExecutionProtocolController = controller_dep,
):
    """
    Endpoint de polling: métadonnées des protocoles CLOSED du tenant.

    Paramètres:
    - updatedAfter: horodatage ISO-8601; seuls les protocoles modifiés strictement après sont
      renvoyés.
    - limit: taille de page (défaut 50, bornée à 100).
    - offset: décalage dans l'ensemble filtré (défaut 0).

    Retour: `ProtocolListResponse` (items triés par updatedAt croissant + pagination).
    """
    return controller.handle_list_for_polling(tenant_id, updated_after, limit, offset)


@router.get("/{protocol_id}", responses=_ERRORS)
def get_execution_protocol(
    protocol_id: str,
    tenant_id: str = tenant_dep,
    controller: ExecutionProtocolController = controller_dep,
) -> dict[str, Any]:
    """Retourne le snapshot complet d'un protocole (corps de réponse non enveloppé)."""
    return controller.handle_get_snapshot(tenant_id, protocol_id)


@router.get("/{protocol_id}/snapshot", responses=_ERRORS)
def get_execution_protocol_snapshot(
    protocol_id: str,
    tenant_id: str = tenant_dep,
    controller: ExecutionProtocolController = controller_dep,
) -> dict[str, Any]:
    """Alias de `/{protocol_id}`: snapshot complet, non enveloppé."""
    return controller.handle_get_snapshot(tenant_id, protocol_id)
