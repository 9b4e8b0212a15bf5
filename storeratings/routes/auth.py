"""Authentication endpoints.

POST /auth/register  - self-service registration (role=user)
POST /auth/login     - verify credentials, issue a token
POST /auth/logout    - acknowledgement only; tokens are stateless
GET  /auth/profile   - current user's profile
PUT  /auth/password  - change own password
"""

from fastapi import APIRouter, Depends, status

from storeratings.routes.deps import Principal, require
from storeratings.schemas import MessageResponse
from storeratings.schemas.users import (
    LoginRequest,
    LoginResponse,
    PasswordChangeRequest,
    ProfileResponse,
    RegisterRequest,
    UserCreatedResponse,
    UserOut,
)
from storeratings.services import accounts
from storeratings.services.authorization import Permission
from storeratings.stores.postgres import get_session

router = APIRouter()


@router.post("/register", response_model=UserCreatedResponse, status_code=status.HTTP_201_CREATED)
async def register(request: RegisterRequest) -> UserCreatedResponse:
    """Register a normal user account."""
    async with get_session() as session:
        user = await accounts.register_user(
            session,
            name=request.name,
            email=request.email,
            password=request.password,
            address=request.address,
        )
        return UserCreatedResponse(message="User registered successfully", user_id=user.id)


@router.post("/login", response_model=LoginResponse)
async def login(request: LoginRequest) -> LoginResponse:
    """Exchange email/password for a bearer token."""
    async with get_session() as session:
        result = await accounts.authenticate(session, email=request.email, password=request.password)
        return LoginResponse(
            token=result.token.token,
            expires_at=result.token.expires_at,
            user=UserOut.model_validate(result.user),
        )


@router.post("/logout", response_model=MessageResponse)
async def logout() -> MessageResponse:
    """Tokens are not tracked server-side; the client discards its token."""
    return MessageResponse(message="Logout successful")


@router.get("/profile", response_model=ProfileResponse)
async def get_profile(
    principal: Principal = Depends(require(Permission.VIEW_PROFILE)),
) -> ProfileResponse:
    async with get_session() as session:
        user = await accounts.get_user(session, principal.id)
        return ProfileResponse(user=UserOut.model_validate(user))


@router.put("/password", response_model=MessageResponse)
async def change_password(
    request: PasswordChangeRequest,
    principal: Principal = Depends(require(Permission.CHANGE_PASSWORD)),
) -> MessageResponse:
    """Verify the current password and set a new one."""
    async with get_session() as session:
        await accounts.change_password(
            session,
            user_id=principal.id,
            current_password=request.current_password,
            new_password=request.new_password,
        )
    return MessageResponse(message="Password updated successfully")
