"""Request dependencies: identity and role gating.

Every protected endpoint runs, in order:
1. get_current_principal - verify the bearer token, then load the subject
2. require(permission)   - role allow-list check
3. the endpoint itself   - resource-scoped checks (ownership, self-action)
                           via authorize() with a ResourceContext
"""

import logging
from dataclasses import dataclass

from fastapi import Depends, Query
from fastapi.security import HTTPAuthorizationCredentials, HTTPBearer

from storeratings.errors import AuthError, AuthErrorKind, AuthorizationError, AuthorizationErrorKind
from storeratings.models import User
from storeratings.services.authorization import Caller, Permission, Role, is_allowed_role
from storeratings.services.listing import DEFAULT_PAGE_SIZE, MAX_PAGE_SIZE, Page
from storeratings.services.tokens import verify_token
from storeratings.stores.postgres import get_session

logger = logging.getLogger("uvicorn.error")

bearer_scheme = HTTPBearer(auto_error=False, description="Bearer token from POST /auth/login")


@dataclass(frozen=True)
class Principal:
    """The authenticated caller, as currently stored."""

    id: int
    email: str
    name: str
    role: Role

    @property
    def caller(self) -> Caller:
        return Caller(id=self.id, role=self.role)


async def get_current_principal(
    credentials: HTTPAuthorizationCredentials | None = Depends(bearer_scheme),
) -> Principal:
    """Resolve the bearer token to a principal.

    The token proves identity; the role used for authorization is the one
    currently stored, so role changes and deletions apply immediately.

    Raises:
        AuthError: missing/invalid/expired token, or subject no longer exists.
    """
    token = credentials.credentials if credentials else None
    try:
        identity = verify_token(token)
    except AuthError as e:
        logger.warning("[auth] token rejected reason=%s", e.kind.value)
        raise

    async with get_session() as session:
        user = await session.get(User, identity.id)
        if user is None:
            logger.warning("[auth] token subject missing user_id=%s", identity.id)
            raise AuthError(AuthErrorKind.UNKNOWN_SUBJECT)
        return Principal(id=user.id, email=user.email, name=user.name, role=user.role)


def require(permission: Permission):
    """Dependency factory: authenticated caller whose role may use `permission`."""

    async def dependency(principal: Principal = Depends(get_current_principal)) -> Principal:
        if not is_allowed_role(principal.role, permission):
            logger.warning(
                "[auth] role denied user_id=%s role=%s permission=%s",
                principal.id,
                principal.role.value,
                permission.value,
            )
            raise AuthorizationError(AuthorizationErrorKind.INSUFFICIENT_ROLE)
        return principal

    return dependency


def page_params(
    page: int = Query(default=1, ge=1, description="1-based page number"),
    page_size: int = Query(
        default=DEFAULT_PAGE_SIZE,
        alias="pageSize",
        ge=1,
        le=MAX_PAGE_SIZE,
        description="Items per page",
    ),
) -> Page:
    return Page(page=page, page_size=page_size)
