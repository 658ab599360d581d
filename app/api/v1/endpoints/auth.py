"""
Authentication endpoints.

Provides:
- Registration (always role `user`)
- Login (email/password -> JWT access token)
- Current user profile
"""

from fastapi import APIRouter, Depends, HTTPException, status

from app.auth.dependencies import (
    conflict_error,
    get_auth_service,
    get_credential_store,
    get_current_principal,
    login_failed_error,
)
from app.auth.outcomes import Conflict, Principal, Unauthenticated
from app.auth.service import AuthService
from app.auth.store import SqlCredentialStore
from app.schemas.auth import LoginRequest, LoginResponse, RegisterRequest, RegisterResponse
from app.schemas.user import UserResponse

router = APIRouter()


@router.post("/register", response_model=RegisterResponse, status_code=status.HTTP_201_CREATED)
async def register(
    data: RegisterRequest,
    auth: AuthService = Depends(get_auth_service),
):
    """Create an account and return it together with an access token."""
    outcome = await auth.register(name=data.name, email=data.email, password=data.password)
    if isinstance(outcome, Conflict):
        raise conflict_error(outcome)

    return RegisterResponse(
        access_token=outcome.token.token,
        expires_in=outcome.token.expires_in,
        user=UserResponse.model_validate(outcome.user),
    )


@router.post("/login", response_model=LoginResponse)
async def login(
    data: LoginRequest,
    auth: AuthService = Depends(get_auth_service),
):
    """
    Authenticate with email and password.

    Unknown email, wrong password and disabled account all produce the same
    401 response.
    """
    outcome = await auth.login(email=data.email, password=data.password)
    if isinstance(outcome, Unauthenticated):
        raise login_failed_error()

    return LoginResponse(
        access_token=outcome.token.token,
        expires_in=outcome.token.expires_in,
        user=UserResponse.model_validate(outcome.user),
    )


@router.get("/me", response_model=UserResponse)
async def get_current_user_info(
    principal: Principal = Depends(get_current_principal),
    store: SqlCredentialStore = Depends(get_credential_store),
):
    """Get current user's profile information."""
    user = await store.find_by_id(principal.id)
    if user is None:
        raise HTTPException(
            status_code=status.HTTP_404_NOT_FOUND,
            detail="User not found",
        )
    return UserResponse.model_validate(user)
