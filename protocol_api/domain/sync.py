"""Algorithme de synchronisation incrémentale côté consommateur.

Le consommateur conserve un seul curseur: le plus grand `updatedAt` observé dans les réponses
(jamais l'heure d'appel). Le filtre `updatedAfter` étant strict, repoller avec ce curseur ne
renvoie pas l'enregistrement déjà vu.

Pendant une même passe, la pagination `offset` ne sert qu'à avancer à l'intérieur de l'ensemble
filtré par le curseur courant. Quand une page pleine se termine par plusieurs enregistrements de
même `updatedAt`, la page suivante garde le curseur sous cet horodatage et saute la queue déjà
reçue, pour que les égalités à la frontière de page ne soient ni perdues ni dupliquées.
"""

from __future__ import annotations

from collections.abc import Mapping, Sequence
from dataclasses import dataclass
from datetime import datetime
from typing import Any

from protocol_api.domain.execution_protocol import ensure_utc


@dataclass(frozen=True)
class SyncPosition:
    """Position d'un consommateur dans le flux de polling.

    - cursor: plus grand updatedAt observé (None avant la première donnée).
    - query_after: valeur `updatedAfter` de la prochaine requête.
    - offset: décalage de la prochaine requête dans l'ensemble filtré par `query_after`.
    """

    cursor: datetime | None
    query_after: datetime | None
    offset: int = 0

    @classmethod
    def start(cls, cursor: datetime | str | None = None) -> SyncPosition:
        """Position initiale à partir d'un curseur persisté (None => backfill complet)."""
        value = ensure_utc(cursor)
        return cls(cursor=value, query_after=value, offset=0)

    @property
    def checkpoint(self) -> datetime | None:
        """Valeur sûre à persister: tout enregistrement <= checkpoint a été livré."""
        return self.query_after


def _updated_at(item: Mapping[str, Any]) -> datetime:
    value = ensure_utc(item["updatedAt"])
    if value is None:
        raise ValueError("list item without updatedAt")
    return value


def max_updated_at(items: Sequence[Mapping[str, Any]]) -> datetime | None:
    """Plus grand updatedAt parmi les éléments d'une réponse (None si vide)."""
    if not items:
        return None
    return max(_updated_at(item) for item in items)


def advance(
    position: SyncPosition, items: Sequence[Mapping[str, Any]], has_more: bool
) -> SyncPosition:
    """Calcule la position suivante après réception d'une page.

    Args:
        position: Position ayant servi à la requête.
        items: Métadonnées reçues, triées par updatedAt croissant.
        has_more: `pagination.hasMore` de la réponse.

    Returns:
        SyncPosition: position de la requête suivante; quand l'ensemble est épuisé,
        `query_after == cursor` et `offset == 0`.
    """
    newest = max_updated_at(items)
    cursor = position.cursor
    if newest is not None and (cursor is None or newest > cursor):
        cursor = newest
    if not items or not has_more:
        return SyncPosition(cursor=cursor, query_after=cursor, offset=0)

    stamps = [_updated_at(item) for item in items]
    last = stamps[-1]
    tail = 0
    for stamp in reversed(stamps):
        if stamp != last:
            break
        tail += 1
    if tail == len(stamps):
        # toute la page partage le même horodatage
        return SyncPosition(
            cursor=cursor,
            query_after=position.query_after,
            offset=position.offset + len(items),
        )
    return SyncPosition(cursor=cursor, query_after=stamps[-tail - 1], offset=tail)
