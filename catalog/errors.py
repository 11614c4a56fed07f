"""
Typed failures raised by the service layer.

Each error carries the HTTP status it maps to; ``catalog.main`` installs a
single exception handler that renders them as ``{"detail": message}``.
"""


class CatalogError(Exception):
    status_code: int = 500
    default_message: str = "Internal server error"

    def __init__(self, message: str | None = None) -> None:
        self.message = message or self.default_message
        super().__init__(self.message)


class InvalidRequest(CatalogError):
    status_code = 400
    default_message = "Invalid request"


class Unauthenticated(CatalogError):
    status_code = 401
    default_message = "Could not validate credentials"


class Forbidden(CatalogError):
    status_code = 403
    default_message = "You are not allowed to modify this resource"


class NotFound(CatalogError):
    status_code = 404
    default_message = "Resource not found"


class Conflict(CatalogError):
    status_code = 409
    default_message = "Resource already exists"


class Internal(CatalogError):
    status_code = 500


class NotFoundAfterWrite(Internal):
    """The store accepted a write but the row cannot be read back."""

    default_message = "Record missing after write"


class UpstreamUnavailable(CatalogError):
    status_code = 503
    default_message = "Upstream service unavailable"


class Timeout(CatalogError):
    status_code = 504
    default_message = "Upstream call timed out"
