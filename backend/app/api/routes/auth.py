"""Auth Routes — admin bootstrap, login/logout, password change, token validation.

Invariants:
    - setup-admin only succeeds while no admin exists; the password is shown once
    - login answers with one generic error for every failure reason
"""

from fastapi import APIRouter, Depends, status

from app.api.deps import (
    bearer_token, current_user, get_identity_service, request_origin,
)
from app.core.repository_protocols import RequestOrigin
from app.models.user import User
from app.schemas.auth import (
    ChangePasswordRequest, LoginRequest, LoginResponse, SetupAdminResponse,
    UserResponse,
)
from app.services.identity import IdentityService

router = APIRouter(prefix="/api/v1/auth", tags=["auth"])


@router.post(
    "/setup-admin",
    response_model=SetupAdminResponse,
    status_code=status.HTTP_201_CREATED,
)
async def setup_admin(
    identity: IdentityService = Depends(get_identity_service),
    origin: RequestOrigin = Depends(request_origin),
):
    user, password = await identity.setup_admin(origin)
    return SetupAdminResponse(username=user.username, initial_password=password)


@router.post("/login", response_model=LoginResponse)
async def login(
    body: LoginRequest,
    identity: IdentityService = Depends(get_identity_service),
    origin: RequestOrigin = Depends(request_origin),
):
    token, user, expires_at = await identity.login(
        body.username, body.password, origin,
    )
    return LoginResponse(
        token=token,
        expires_at=expires_at,
        user=UserResponse.model_validate(user),
    )


@router.post("/logout")
async def logout(
    token: str = Depends(bearer_token),
    user: User = Depends(current_user),
    identity: IdentityService = Depends(get_identity_service),
    origin: RequestOrigin = Depends(request_origin),
):
    await identity.logout(token, user, origin)
    return {"message": "Logged out"}


@router.post("/change-password")
async def change_password(
    body: ChangePasswordRequest,
    user: User = Depends(current_user),
    identity: IdentityService = Depends(get_identity_service),
    origin: RequestOrigin = Depends(request_origin),
):
    await identity.change_password(
        user, body.current_password, body.new_password, origin,
    )
    return {"message": "Password changed"}


@router.get("/validate", response_model=UserResponse)
async def validate(user: User = Depends(current_user)):
    """Echo the token's user; 401 when the token is missing, invalid or expired."""
    return user
