"""Authentication API endpoints."""

from typing import Annotated

from fastapi import APIRouter, Depends, status

from expense_api.api.dependencies import (
    AuthenticatedUser,
    get_auth_service,
    get_current_user,
    limit_auth_attempts,
)
from expense_api.schemas.auth import AuthResponse, UserLogin, UserRegister, UserResponse
from expense_api.services.auth import AuthService

router = APIRouter(prefix="/api/v1/auth", tags=["auth"])


@router.post(
    "/register",
    response_model=AuthResponse,
    status_code=status.HTTP_201_CREATED,
    dependencies=[Depends(limit_auth_attempts)],
)
def register(
    user_data: UserRegister,
    auth_service: Annotated[AuthService, Depends(get_auth_service)],
):
    """Register a new user."""
    result = auth_service.register(user_data.email, user_data.password)
    return AuthResponse(
        access_token=result.token,
        user=UserResponse.model_validate(result.user),
    )


@router.post("/login", response_model=AuthResponse, dependencies=[Depends(limit_auth_attempts)])
def login(
    credentials: UserLogin,
    auth_service: Annotated[AuthService, Depends(get_auth_service)],
):
    """Login with email and password."""
    result = auth_service.login(credentials.email, credentials.password)
    return AuthResponse(
        access_token=result.token,
        user=UserResponse.model_validate(result.user),
    )


@router.get("/me", response_model=UserResponse)
def get_me(
    current_user: Annotated[AuthenticatedUser, Depends(get_current_user)],
    auth_service: Annotated[AuthService, Depends(get_auth_service)],
):
    """Get current user information."""
    return auth_service.get_user(current_user.id)


@router.post("/logout")
async def logout(
    current_user: Annotated[AuthenticatedUser, Depends(get_current_user)],
):
    """Logout (client should discard token)."""
    return {"message": "Logged out successfully"}
