"""Role-based authorization gate.

Roles are a flat, closed enumeration. Every protected operation names a
Permission, and every Permission declares the explicit set of roles allowed to
exercise it. There is no hierarchy: admin holds exactly the permissions listed
for admin and nothing else.

Two extra rules sit on top of the role check:
- ownership-scoped permissions require the caller to be the resource owner
- self-forbidden permissions reject a caller acting on their own account

`authorize()` is a pure function. Resolving the resource owner from the store
is the caller's job (see services.ownership).
"""

from dataclasses import dataclass
from enum import Enum

from storeratings.errors import AuthorizationError, AuthorizationErrorKind


class Role(str, Enum):
    """User role."""

    ADMIN = "admin"
    STORE_OWNER = "store_owner"
    USER = "user"


class Permission(str, Enum):
    """Operations guarded by the gate."""

    VIEW_PROFILE = "view_profile"
    CHANGE_PASSWORD = "change_password"
    UPDATE_PROFILE = "update_profile"
    VIEW_RATING_HISTORY = "view_rating_history"

    LIST_STORES = "list_stores"
    VIEW_STORE = "view_store"
    VIEW_OWN_STORE = "view_own_store"
    VIEW_STORE_RATINGS = "view_store_ratings"

    SUBMIT_RATING = "submit_rating"
    UPDATE_RATING = "update_rating"
    DELETE_RATING = "delete_rating"
    VIEW_OWN_RATING = "view_own_rating"

    ADMIN_DASHBOARD = "admin_dashboard"
    ADMIN_LIST_USERS = "admin_list_users"
    ADMIN_VIEW_USER = "admin_view_user"
    ADMIN_CREATE_USER = "admin_create_user"
    ADMIN_UPDATE_ROLE = "admin_update_role"
    ADMIN_DELETE_USER = "admin_delete_user"
    ADMIN_LIST_STORES = "admin_list_stores"
    ADMIN_CREATE_STORE = "admin_create_store"
    ADMIN_ASSIGN_OWNER = "admin_assign_owner"
    ADMIN_DELETE_STORE = "admin_delete_store"


@dataclass(frozen=True)
class Rule:
    """Allow-list and extra checks for one permission."""

    roles: frozenset[Role]
    requires_ownership: bool = False
    forbids_self: bool = False


_ANY_ROLE = frozenset(Role)
_RATERS = frozenset({Role.USER, Role.STORE_OWNER})
_ADMIN = frozenset({Role.ADMIN})

POLICY: dict[Permission, Rule] = {
    Permission.VIEW_PROFILE: Rule(_ANY_ROLE),
    Permission.CHANGE_PASSWORD: Rule(_ANY_ROLE),
    Permission.UPDATE_PROFILE: Rule(_RATERS),
    Permission.VIEW_RATING_HISTORY: Rule(_RATERS),
    Permission.LIST_STORES: Rule(_ANY_ROLE),
    Permission.VIEW_STORE: Rule(_ANY_ROLE),
    Permission.VIEW_OWN_STORE: Rule(frozenset({Role.STORE_OWNER})),
    Permission.VIEW_STORE_RATINGS: Rule(frozenset({Role.STORE_OWNER}), requires_ownership=True),
    Permission.SUBMIT_RATING: Rule(_RATERS),
    Permission.UPDATE_RATING: Rule(_RATERS),
    Permission.DELETE_RATING: Rule(_RATERS),
    Permission.VIEW_OWN_RATING: Rule(_RATERS),
    Permission.ADMIN_DASHBOARD: Rule(_ADMIN),
    Permission.ADMIN_LIST_USERS: Rule(_ADMIN),
    Permission.ADMIN_VIEW_USER: Rule(_ADMIN),
    Permission.ADMIN_CREATE_USER: Rule(_ADMIN),
    Permission.ADMIN_UPDATE_ROLE: Rule(_ADMIN),
    Permission.ADMIN_DELETE_USER: Rule(_ADMIN, forbids_self=True),
    Permission.ADMIN_LIST_STORES: Rule(_ADMIN),
    Permission.ADMIN_CREATE_STORE: Rule(_ADMIN),
    Permission.ADMIN_ASSIGN_OWNER: Rule(_ADMIN),
    Permission.ADMIN_DELETE_STORE: Rule(_ADMIN),
}


@dataclass(frozen=True)
class Caller:
    """Authenticated principal as seen by the gate."""

    id: int
    role: Role


@dataclass(frozen=True)
class ResourceContext:
    """Facts about the target resource needed by the extra rules.

    resource_owner_id: registered owner of the target store (None if unowned
        or the store does not exist).
    target_user_id: user account the operation acts on.
    """

    resource_owner_id: int | None = None
    target_user_id: int | None = None


def is_allowed_role(role: Role, permission: Permission) -> bool:
    return role in POLICY[permission].roles


def authorize(
    caller: Caller,
    permission: Permission,
    context: ResourceContext | None = None,
) -> None:
    """Allow the operation or raise AuthorizationError.

    Args:
        caller: Authenticated caller.
        permission: Operation being attempted.
        context: Resource facts; required for ownership-scoped and
            self-forbidden permissions, ignored otherwise.

    Raises:
        AuthorizationError: INSUFFICIENT_ROLE, NOT_OWNER or SELF_ACTION_FORBIDDEN.
    """
    rule = POLICY[permission]
    if caller.role not in rule.roles:
        raise AuthorizationError(AuthorizationErrorKind.INSUFFICIENT_ROLE)

    ctx = context or ResourceContext()
    if rule.requires_ownership and (ctx.resource_owner_id is None or ctx.resource_owner_id != caller.id):
        raise AuthorizationError(AuthorizationErrorKind.NOT_OWNER)
    if rule.forbids_self and ctx.target_user_id == caller.id:
        raise AuthorizationError(AuthorizationErrorKind.SELF_ACTION_FORBIDDEN)
