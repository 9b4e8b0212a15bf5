"""Domain error taxonomy.

Every error carries a stable machine code and maps to one HTTP status.
The global handlers in `storeratings.main` render them in the standard
envelope: { "error": { "code": str, "message": str, "detail": object } }.
"""

from enum import Enum
from typing import Any


class AppError(Exception):
    """Base class for errors surfaced to API clients."""

    status_code: int = 500
    code: str = "INTERNAL_ERROR"

    def __init__(self, message: str, *, code: str | None = None, detail: dict[str, Any] | None = None):
        super().__init__(message)
        self.message = message
        if code is not None:
            self.code = code
        self.detail = detail


class AuthErrorKind(str, Enum):
    """Why a request could not be authenticated."""

    MISSING_TOKEN = "MISSING_TOKEN"
    MALFORMED = "MALFORMED"
    INVALID_SIGNATURE = "INVALID_SIGNATURE"
    EXPIRED = "EXPIRED"
    UNKNOWN_SUBJECT = "UNKNOWN_SUBJECT"
    INVALID_CREDENTIALS = "INVALID_CREDENTIALS"


_AUTH_MESSAGES = {
    AuthErrorKind.MISSING_TOKEN: "Access token required",
    AuthErrorKind.MALFORMED: "Invalid token",
    AuthErrorKind.INVALID_SIGNATURE: "Invalid token",
    AuthErrorKind.EXPIRED: "Token expired",
    AuthErrorKind.UNKNOWN_SUBJECT: "Invalid token",
    AuthErrorKind.INVALID_CREDENTIALS: "Invalid credentials",
}


class AuthError(AppError):
    """Identity could not be established."""

    status_code = 401

    def __init__(self, kind: AuthErrorKind, message: str | None = None):
        super().__init__(message or _AUTH_MESSAGES[kind], code=kind.value)
        self.kind = kind


class AuthorizationErrorKind(str, Enum):
    """Why an authenticated caller was denied."""

    INSUFFICIENT_ROLE = "INSUFFICIENT_ROLE"
    NOT_OWNER = "NOT_OWNER"
    SELF_ACTION_FORBIDDEN = "SELF_ACTION_FORBIDDEN"


_AUTHORIZATION_MESSAGES = {
    AuthorizationErrorKind.INSUFFICIENT_ROLE: "Insufficient permissions",
    AuthorizationErrorKind.NOT_OWNER: "Access denied. You can only view ratings for your own store.",
    AuthorizationErrorKind.SELF_ACTION_FORBIDDEN: "Cannot perform this action on your own account",
}


class AuthorizationError(AppError):
    """Caller is authenticated but not allowed to perform the operation."""

    status_code = 403

    def __init__(self, kind: AuthorizationErrorKind, message: str | None = None):
        super().__init__(message or _AUTHORIZATION_MESSAGES[kind], code=kind.value)
        self.kind = kind


class ValidationError(AppError):
    """A field violated a length, range or format constraint."""

    status_code = 400
    code = "FIELD_CONSTRAINT"

    def __init__(self, field: str, constraint: str, message: str | None = None):
        super().__init__(
            message or f"{field}: {constraint}",
            detail={"field": field, "constraint": constraint},
        )
        self.field = field
        self.constraint = constraint


class ConflictKind(str, Enum):
    DUPLICATE_RATING = "DUPLICATE_RATING"
    DUPLICATE_EMAIL = "DUPLICATE_EMAIL"


class ConflictError(AppError):
    """Write rejected by a uniqueness constraint; client can correct and retry."""

    status_code = 409

    def __init__(self, kind: ConflictKind, message: str):
        super().__init__(message, code=kind.value)
        self.kind = kind


class DuplicateRatingError(ConflictError):
    def __init__(self, user_id: int, store_id: int):
        super().__init__(ConflictKind.DUPLICATE_RATING, "You have already rated this store")
        self.user_id = user_id
        self.store_id = store_id


class DuplicateEmailError(ConflictError):
    def __init__(self, resource: str):
        super().__init__(ConflictKind.DUPLICATE_EMAIL, f"{resource} with this email already exists")
        self.resource = resource


class NotFoundError(AppError):
    """Resource does not exist, or exists but the caller may not see it."""

    status_code = 404
    code = "NOT_FOUND"

    def __init__(self, resource: str, message: str | None = None):
        super().__init__(message or f"{resource} not found", detail={"resource": resource})
        self.resource = resource
