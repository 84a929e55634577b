"""
Error taxonomy shared by the service layer.

Services raise these; the API layer turns them into HTTP responses using
``status_code``.
"""


class CatalogError(Exception):
    status_code = 500
    default_message = "Catalog error"

    def __init__(self, message: str | None = None):
        self.message = message or self.default_message
        super().__init__(self.message)


class ValidationError(CatalogError):
    """Missing or out-of-range input."""

    status_code = 400
    default_message = "Invalid input"


class NotFoundError(CatalogError):
    """Referenced record is absent or soft-deleted."""

    status_code = 404
    default_message = "Not found"


class ConflictError(CatalogError):
    """Uniqueness violation or an integrity rule blocking the operation."""

    status_code = 409
    default_message = "Conflict"


class InternalError(CatalogError):
    """Unexpected store failure. The message is safe to show to callers."""

    status_code = 500
    default_message = "Internal server error"
