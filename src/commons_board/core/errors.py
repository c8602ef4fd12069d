"""Domain error taxonomy shared by services and the HTTP layer.

Services raise these exceptions; ``commons_board.main`` maps them to HTTP
responses in a single exception handler, so no endpoint needs to translate
them by hand.
"""

from __future__ import annotations


class DomainError(Exception):
    """Base class for errors raised by the engagement and moderation services."""

    status_code: int = 400
    code: str = "domain_error"

    def __init__(self, message: str, *, code: str | None = None) -> None:
        super().__init__(message)
        self.message = message
        if code is not None:
            self.code = code

    def to_dict(self) -> dict[str, str | None]:
        """Return the JSON body sent to clients."""
        return {"detail": self.message, "code": self.code}


class ValidationError(DomainError):
    """Raised for malformed payloads (bad poll option, non-positive amount, ...)."""

    status_code = 400
    code = "validation_error"

    def __init__(self, message: str, *, field: str | None = None, code: str | None = None) -> None:
        super().__init__(message, code=code)
        self.field = field

    def to_dict(self) -> dict[str, str | None]:
        body = super().to_dict()
        body["field"] = self.field
        return body


class NotFoundError(DomainError):
    """Raised when an identifier is malformed or does not resolve to an entity."""

    status_code = 404
    code = "not_found"


class AuthorizationError(DomainError):
    """Raised when a non-author invokes an author-only transition."""

    status_code = 403
    code = "forbidden"


class ConflictError(DomainError):
    """Raised when a request collides with existing state (duplicate offer, report)."""

    status_code = 409
    code = "conflict"
