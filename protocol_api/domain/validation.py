"""Utilitaires de validation des entrées du contrat de polling.

Fonctions pures: format des identifiants, lecture du curseur `updatedAfter` et normalisation de la
pagination (bornage plutôt que rejet).
"""

from __future__ import annotations

import re
from datetime import datetime

from protocol_api.core.http_constants import (
    DEFAULT_OFFSET,
    DEFAULT_PAGE_SIZE,
    MAX_PAGE_SIZE,
    MIN_PAGE_SIZE,
)
from protocol_api.domain.execution_protocol import ensure_utc

_UUID_V4_RE = re.compile(
    r"^[0-9a-f]{8}-[0-9a-f]{4}-4[0-9a-f]{3}-[89ab][0-9a-f]{3}-[0-9a-f]{12}$", re.IGNORECASE
)
# entier décimal en tête de chaîne ("10abc" => 10, "1.5" => 1)
_LEADING_INT_RE = re.compile(r"^\s*([+-]?\d+)")


def is_valid_uuid(value: object) -> bool:
    """Vrai si la valeur est une chaîne au format UUID v4 (hex insensible à la casse)."""
    if not value or not isinstance(value, str):
        return False
    return _UUID_V4_RE.match(value) is not None


def parse_cursor(raw: str | None) -> datetime | None:
    """Parse un curseur ISO-8601 en datetime UTC.

    - None ou chaîne vide => pas de curseur (backfill complet).
    - Suffixe `Z` accepté; valeur sans fuseau => UTC; date seule => minuit UTC.
    - Un horodatage hors plage une fois converti en UTC est refusé.

    Raises:
        ValueError: si la valeur n'est pas un horodatage lisible.
    """
    if raw is None:
        return None
    text = raw.strip()
    if not text:
        return None
    try:
        parsed = datetime.fromisoformat(text)
    except ValueError as err:
        raise ValueError(f"invalid timestamp: {raw!r}") from err
    try:
        return ensure_utc(parsed)
    except OverflowError as err:
        # décalage qui sort de la plage datetime une fois ramené en UTC
        raise ValueError(f"timestamp out of range: {raw!r}") from err


def _parse_int(raw: str | int | None) -> int | None:
    if raw is None or isinstance(raw, bool):
        return None
    if isinstance(raw, int):
        return raw
    match = _LEADING_INT_RE.match(str(raw))
    return int(match.group(1)) if match else None


def normalize_limit(raw: str | int | None) -> int:
    """Absent, illisible ou < 1 => 50; > 100 => 100."""
    value = _parse_int(raw)
    if value is None or value < MIN_PAGE_SIZE:
        return DEFAULT_PAGE_SIZE
    return min(value, MAX_PAGE_SIZE)


def normalize_offset(raw: str | int | None) -> int:
    """Absent, illisible ou négatif => 0."""
    value = _parse_int(raw)
    if value is None or value < 0:
        return DEFAULT_OFFSET
    return value
