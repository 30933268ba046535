"""Error taxonomy shared by the service, repository and HTTP layers.

Each error carries the HTTP status it maps to and a message that is safe
to show to API consumers. Diagnostic detail stays on the exception chain
and is only exposed outside production.
"""

from __future__ import annotations


class ServiceError(Exception):
    """Base class for errors that translate to a JSON error envelope."""

    status_code: int = 500
    public_message: str = "Internal server error"

    def __init__(self, message: str | None = None) -> None:
        self.message = message or self.public_message
        super().__init__(self.message)


class ValidationError(ServiceError):
    status_code = 400
    public_message = "Invalid request"


class ConflictError(ServiceError):
    status_code = 409
    public_message = "A registration with this Aadhaar or PAN number already exists"


class NotFoundError(ServiceError):
    status_code = 404
    public_message = "Not found"


class CatalogNotFoundError(NotFoundError):
    public_message = "Form field catalog not found"


class CatalogUnreadableError(ServiceError):
    status_code = 500
    public_message = "Could not load form field catalog"


class UnhandledRouteError(NotFoundError):
    public_message = "Route not found"


class PersistenceError(ServiceError):
    """Storage unreachable or transaction failure."""

    status_code = 500
    public_message = "Registration storage error"


class StorageUnavailableError(PersistenceError):
    """No pooled connection could be acquired in time; safe to retry."""

    status_code = 503
    public_message = "Storage temporarily unavailable, please retry"
    retry_after_s = 5
