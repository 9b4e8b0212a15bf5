"""Stateless session tokens.

A token is an HS256-signed JWT carrying the identity claims:
- sub: subject (user) id, stringified
- email, role
- iat / exp: issued-at and expiry (fixed at issuance, no sliding renewal)

There is no server-side session table; an expired token must be replaced by
logging in again.
"""

from dataclasses import dataclass
from datetime import datetime, timedelta, timezone

from jose import ExpiredSignatureError, JWTError, jwt
from jose.exceptions import JWSSignatureError, JWTClaimsError

from storeratings.errors import AuthError, AuthErrorKind
from storeratings.services.authorization import Role
from storeratings.settings import get_settings


@dataclass(frozen=True)
class Identity:
    """Claims carried by a token."""

    id: int
    email: str
    role: Role


@dataclass(frozen=True)
class IssuedToken:
    token: str
    issued_at: datetime
    expires_at: datetime


def issue_token(
    identity: Identity,
    *,
    now: datetime | None = None,
    ttl_seconds: int | None = None,
) -> IssuedToken:
    """Mint a signed token for the identity.

    Args:
        identity: Subject id, email and role.
        now: Issuance time (defaults to current UTC time).
        ttl_seconds: Lifetime override (defaults to settings.token_ttl).

    Returns:
        IssuedToken with the encoded token and its expiry.
    """
    settings = get_settings()
    issued_at = (now or datetime.now(timezone.utc)).replace(microsecond=0)
    ttl = settings.token_ttl if ttl_seconds is None else ttl_seconds
    expires_at = issued_at + timedelta(seconds=ttl)

    claims = {
        "sub": str(identity.id),
        "email": identity.email,
        "role": identity.role.value,
        "iat": int(issued_at.timestamp()),
        "exp": int(expires_at.timestamp()),
    }
    token = jwt.encode(claims, settings.jwt_secret, algorithm=settings.jwt_algorithm)
    return IssuedToken(token=token, issued_at=issued_at, expires_at=expires_at)


def verify_token(token: str | None) -> Identity:
    """Validate a token and return its identity.

    The signature is checked before expiry, so a tampered token reports
    INVALID_SIGNATURE even if it is also expired.

    Raises:
        AuthError: MISSING_TOKEN, MALFORMED, INVALID_SIGNATURE or EXPIRED.
    """
    if not token:
        raise AuthError(AuthErrorKind.MISSING_TOKEN)

    settings = get_settings()
    try:
        claims = jwt.decode(
            token,
            settings.jwt_secret,
            algorithms=[settings.jwt_algorithm],
            options={"require_exp": True, "require_iat": True, "require_sub": True},
        )
    except ExpiredSignatureError as e:
        raise AuthError(AuthErrorKind.EXPIRED) from e
    except JWTClaimsError as e:
        raise AuthError(AuthErrorKind.MALFORMED) from e
    except JWTError as e:
        if _is_signature_failure(e):
            raise AuthError(AuthErrorKind.INVALID_SIGNATURE) from e
        raise AuthError(AuthErrorKind.MALFORMED) from e

    return _identity_from_claims(claims)


def _is_signature_failure(error: BaseException) -> bool:
    # jose re-raises JWSSignatureError as a generic JWSError, then wraps that
    # in JWTError; the original survives only as implicit context.
    seen: set[int] = set()
    current: BaseException | None = error
    while current is not None and id(current) not in seen:
        if isinstance(current, JWSSignatureError):
            return True
        seen.add(id(current))
        current = current.__cause__ or current.__context__
    return False


def _identity_from_claims(claims: dict) -> Identity:
    try:
        subject_id = int(claims["sub"])
        email = str(claims["email"])
        role = Role(claims["role"])
    except (KeyError, TypeError, ValueError) as e:
        raise AuthError(AuthErrorKind.MALFORMED) from e
    return Identity(id=subject_id, email=email, role=role)
