"""Exception hierarchy for the care rota core.

Business-rule conflicts and understaffing are never raised; they are
returned as data (see ``ConflictReport`` and ``SolveResult``).
"""


class CareRotaError(Exception):
    """Base class for all care rota errors."""

    kind = "error"


class NotFoundError(CareRotaError):
    """Raised when a referenced shift, user or swap does not exist."""

    kind = "not_found"

    def __init__(self, entity: str, entity_id: str):
        self.entity = entity
        self.entity_id = entity_id
        super().__init__(f"{entity} not found: {entity_id}")


class InvalidStateError(CareRotaError):
    """Raised when a swap transition is attempted from the wrong status."""

    kind = "invalid_state"


class SwapExpiredError(CareRotaError):
    """Raised when a pending swap is acted on after its expiry."""

    kind = "expired"


class StorageError(CareRotaError):
    """Raised when the underlying store fails during a read or write.

    Callers may retry these; the other classes are permanent rejections.
    """

    kind = "system_error"


# Mapping of custom exceptions to HTTP status codes for transport layers
ERROR_STATUS_CODES = {
    NotFoundError: 404,
    InvalidStateError: 409,
    SwapExpiredError: 410,
    StorageError: 503,
}


def status_code_for(error: Exception) -> int:
    """Return the transport status code for an error (500 if unmapped)."""
    for error_type, code in ERROR_STATUS_CODES.items():
        if isinstance(error, error_type):
            return code
    return 500
