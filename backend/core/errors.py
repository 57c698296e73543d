"""Error kinds raised by the catalog, the rating aggregator and the view builder.

Every error carries a machine readable ``code``, a human readable ``message``
and optional ``details`` so the presentation layer can render an error state
and let the caller retry. ``status_code`` is the HTTP status the API answers
with.
"""

import uuid


def new_trace_id() -> str:
    return f"req_{uuid.uuid4().hex[:12]}"


class RatingsError(Exception):
    code = "SERVER_ERROR"
    status_code = 500
    default_message = "internal server error"

    def __init__(self, message: str | None = None, details: dict | None = None):
        self.message = message or self.default_message
        self.details = details or {}
        super().__init__(self.message)

    def to_payload(self) -> dict:
        return {
            "error": {
                "code": self.code,
                "message": self.message,
                "details": self.details,
                "trace_id": new_trace_id(),
            }
        }


class ValidationError(RatingsError):
    """Malformed input: value out of range, required field missing."""
    code = "VALIDATION_ERROR"
    status_code = 400
    default_message = "validation error"


class ForbiddenError(RatingsError):
    """The caller's role does not allow the operation."""
    code = "FORBIDDEN"
    status_code = 403
    default_message = "forbidden"


class NotFoundError(RatingsError):
    code = "NOT_FOUND"
    status_code = 404
    default_message = "not found"


class ConflictError(RatingsError):
    """A uniqueness rule would be violated by an insert."""
    code = "CONFLICT"
    status_code = 409
    default_message = "conflict"


class UnavailableError(RatingsError):
    code = "UNAVAILABLE"
    status_code = 503
    default_message = "Database unavailable. Verify DATABASE_URL and database credentials."
