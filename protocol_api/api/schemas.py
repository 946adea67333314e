# Schémas Pydantic exposés par l'API (réponses du contrat de polling).

from datetime import datetime
from typing import Literal

from pydantic import BaseModel, ConfigDict


class ListMetadata(BaseModel):
    """Métadonnées minimales d'un protocole pour le polling.

    Champs:
    - id: str (UUID v4)
    - siteId / plantId: str (références opaques)
    - status: "CLOSED"
    - closedAt: datetime | None (ISO-8601)
    - updatedAt: datetime (ISO-8601, champ curseur)
    """

    id: str
    siteId: str
    plantId: str
    status: Literal["CLOSED"]
    closedAt: datetime | None = None
    updatedAt: datetime


class Pagination(BaseModel):
    """Bornes de pagination effectives et total du filtre (tenant + CLOSED + curseur)."""

    limit: int
    offset: int
    total: int
    hasMore: bool


class ProtocolListResponse(BaseModel):
    """Réponse de l'endpoint de polling."""

    items: list[ListMetadata]
    pagination: Pagination


class ErrorResponse(BaseModel):
    """Enveloppe d'erreur standard (documentation OpenAPI)."""

    model_config = ConfigDict(extra="forbid")

    code: str
    message: str
    trace_id: str | None = None
