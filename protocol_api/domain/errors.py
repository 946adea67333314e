"""Taxonomie des erreurs du domaine des protocoles d'exécution.

Les erreurs d'accès (`ProtocolAccessError`) portent un `kind` lisible par machine et un message
destiné au consommateur; elles sont traduites en codes HTTP par la couche API gateway.
`RepositoryError` signale une défaillance du stockage ou du système amont.
"""

from __future__ import annotations


class ProtocolAccessError(Exception):
    """Erreur de base renvoyée au consommateur avec un type et un message."""

    kind = "INTERNAL_ERROR"
    default_message = "An unexpected error occurred"

    def __init__(self, message: str | None = None) -> None:
        """Initialise l'erreur avec un message optionnel (sinon message par défaut)."""
        self.message = message or self.default_message
        super().__init__(self.message)


class Unauthorized(ProtocolAccessError):
    """Aucun contexte tenant résolu pour la requête."""

    kind = "UNAUTHORIZED"
    default_message = "Missing tenant context"


class BadRequest(ProtocolAccessError):
    """Entrée client invalide (curseur illisible)."""

    kind = "BAD_REQUEST"
    default_message = "Invalid request"


class NotFound(ProtocolAccessError):
    """Protocole absent, d'un autre tenant, non clôturé ou identifiant mal formé."""

    kind = "NOT_FOUND"
    default_message = "Execution protocol not found"


class InternalError(ProtocolAccessError):
    """Défaillance du stockage ou de l'adaptateur, exposée sans détail interne."""


class RepositoryError(RuntimeError):
    """Erreur levée par une implémentation de dépôt (base ou système amont)."""

    def __init__(self, backend: str, operation: str, message: str | None = None) -> None:
        """Initialise l'erreur avec le backend et l'opération en échec."""
        self.backend = backend
        self.operation = operation
        super().__init__(message or f"{backend} repository failed during {operation}")
