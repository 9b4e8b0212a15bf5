"""Password hashing and password policy."""

import re
from functools import lru_cache

from passlib.context import CryptContext

from storeratings.settings import get_settings

PASSWORD_MIN_LENGTH = 8
PASSWORD_MAX_LENGTH = 16

_UPPERCASE_RE = re.compile(r"[A-Z]")
_SPECIAL_RE = re.compile(r"[!@#$%^&*(),.?\":{}|<>]")


@lru_cache
def _crypt_context() -> CryptContext:
    settings = get_settings()
    return CryptContext(
        schemes=["bcrypt"],
        deprecated="auto",
        bcrypt__rounds=settings.password_hash_rounds,
    )


def hash_password(password: str) -> str:
    return _crypt_context().hash(password)


def verify_password(password: str, password_hash: str) -> bool:
    return _crypt_context().verify(password, password_hash)


def password_policy_violation(password: str) -> str | None:
    """Return the violated constraint, or None if the password is acceptable."""
    if not PASSWORD_MIN_LENGTH <= len(password) <= PASSWORD_MAX_LENGTH:
        return f"length must be between {PASSWORD_MIN_LENGTH} and {PASSWORD_MAX_LENGTH}"
    if not _UPPERCASE_RE.search(password):
        return "must contain at least one uppercase letter"
    if not _SPECIAL_RE.search(password):
        return "must contain at least one special character"
    return None
