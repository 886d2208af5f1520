# app/core/errors.py
"""
Domain error taxonomy.

Every error carries a stable machine-readable ``code`` and the HTTP status the
API layer maps it to. Routers translate these into ``HTTPException`` with
``detail={"code": ..., "message": ...}``.
"""


class ServiceError(Exception):
    """Base class for all errors raised by the licensing and summarisation core."""

    code = "INTERNAL_ERROR"
    status_code = 500
    default_message = "Internal server error"

    def __init__(self, message: str | None = None):
        self.message = message or self.default_message
        super().__init__(self.message)

    def to_detail(self) -> dict:
        return {"code": self.code, "message": self.message}


class ValidationError(ServiceError):
    """Missing or malformed caller input (user-correctable)."""

    code = "MISSING_INPUT"
    status_code = 400
    default_message = "Missing licenseKey or text"


class AuthorizationError(ServiceError):
    """Invalid, unknown or revoked license. Never says which."""

    code = "INVALID_LICENSE"
    status_code = 403
    default_message = "Invalid license"


class UpstreamError(ServiceError):
    """AI relay unreachable, timed out, or answered with an error status."""

    code = "RELAY_ERROR"
    status_code = 502
    default_message = "AI API error"


class MalformedUpstreamResponse(ServiceError):
    """AI relay answered, but the content is not a usable summary."""

    code = "MALFORMED_RESPONSE"
    status_code = 502
    default_message = "AI returned an unreadable summary"


class PersistenceError(ServiceError):
    """Record store read/write failure; may be transient."""

    code = "PERSISTENCE_ERROR"
    status_code = 500
    default_message = "Storage error"


class DuplicateRecordError(PersistenceError):
    """A uniqueness constraint rejected an insert."""

    code = "DUPLICATE_RECORD"
    default_message = "Record already exists"


class DuplicateEvent(ServiceError):
    """Payment event already processed. Not a failure: callers acknowledge it."""

    code = "DUPLICATE_EVENT"
    status_code = 200
    default_message = "Event already handled"


class SignatureError(ServiceError):
    """Payment event signature missing or invalid; the event must be rejected."""

    code = "INVALID_SIGNATURE"
    status_code = 400
    default_message = "Invalid webhook signature"
