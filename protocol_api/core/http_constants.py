"""Constantes HTTP et de pagination pour éviter les valeurs magiques dans le code.

Ce module définit les codes de statut HTTP utilisés par l'API et les bornes du contrat de
pagination du polling.
"""

# Codes de statut HTTP courants
HTTP_OK = 200
HTTP_BAD_REQUEST = 400
HTTP_UNAUTHORIZED = 401
HTTP_NOT_FOUND = 404
HTTP_INTERNAL_SERVER_ERROR = 500

# Contrat de pagination
DEFAULT_PAGE_SIZE = 50
MAX_PAGE_SIZE = 100
MIN_PAGE_SIZE = 1
DEFAULT_OFFSET = 0
