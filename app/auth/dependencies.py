"""
FastAPI dependencies for authentication and authorization.

This is the only place where auth outcomes become HTTP errors:
- Unauthenticated -> 401 with a generic message and WWW-Authenticate
- Forbidden       -> 403 with the policy's message
- Conflict        -> 409
"""

from typing import Optional

from fastapi import Depends, Header, HTTPException, status
from sqlalchemy.ext.asyncio import AsyncSession

from app.auth.gate import authenticate
from app.auth.jwt import TokenService
from app.auth.outcomes import (
    Conflict,
    Decision,
    Forbidden,
    Principal,
    Unauthenticated,
    UnauthenticatedReason,
)
from app.auth.password import PasswordService
from app.auth.policy import require_ownership_or_admin
from app.auth.policy import require_role as role_decision
from app.auth.service import AuthService
from app.auth.store import SqlCredentialStore
from app.core.config import Settings, get_settings
from app.core.database import get_db
from app.models.user import UserRole

NOT_AUTHENTICATED = "Not authenticated"
INVALID_CREDENTIALS = "Invalid or expired credentials"
INVALID_LOGIN = "Invalid email or password"


# =============================================================================
# Service providers
# =============================================================================

def get_token_service(settings: Settings = Depends(get_settings)) -> TokenService:
    return TokenService(settings)


def get_password_service(settings: Settings = Depends(get_settings)) -> PasswordService:
    return PasswordService(settings)


def get_credential_store(db: AsyncSession = Depends(get_db)) -> SqlCredentialStore:
    return SqlCredentialStore(db)


def get_auth_service(
    store: SqlCredentialStore = Depends(get_credential_store),
    passwords: PasswordService = Depends(get_password_service),
    tokens: TokenService = Depends(get_token_service),
) -> AuthService:
    return AuthService(store, passwords, tokens)


# =============================================================================
# Outcome -> HTTP translation
# =============================================================================

def unauthenticated_error(outcome: Unauthenticated) -> HTTPException:
    """
    Build the 401 for an Unauthenticated outcome.

    Only "no credential at all" gets its own message. Every other reason
    shares one so the response cannot be used as an enumeration oracle.
    """
    if outcome.reason == UnauthenticatedReason.MISSING_CREDENTIAL:
        detail = NOT_AUTHENTICATED
    else:
        detail = INVALID_CREDENTIALS
    return HTTPException(
        status_code=status.HTTP_401_UNAUTHORIZED,
        detail=detail,
        headers={"WWW-Authenticate": "Bearer"},
    )


def login_failed_error() -> HTTPException:
    """401 for any failed login, whatever the underlying reason."""
    return HTTPException(
        status_code=status.HTTP_401_UNAUTHORIZED,
        detail=INVALID_LOGIN,
    )


def forbidden_error(outcome: Forbidden) -> HTTPException:
    return HTTPException(status_code=status.HTTP_403_FORBIDDEN, detail=outcome.reason)


def conflict_error(outcome: Conflict) -> HTTPException:
    return HTTPException(status_code=status.HTTP_409_CONFLICT, detail=outcome.reason)


def enforce(decision: Decision) -> None:
    """Raise 403 if the policy decision is Forbidden."""
    if isinstance(decision, Forbidden):
        raise forbidden_error(decision)


def enforce_ownership(principal: Principal, resource_owner_id: int) -> None:
    enforce(require_ownership_or_admin(principal, resource_owner_id))


# =============================================================================
# Request dependencies
# =============================================================================

async def get_current_principal(
    authorization: Optional[str] = Header(default=None),
    tokens: TokenService = Depends(get_token_service),
    store: SqlCredentialStore = Depends(get_credential_store),
) -> Principal:
    """
    Authenticate the request from its `Authorization: Bearer <token>` header.

    Raises:
        HTTPException 401: For any authentication failure
    """
    outcome = await authenticate(authorization, tokens, store)
    if isinstance(outcome, Unauthenticated):
        raise unauthenticated_error(outcome)
    return outcome.principal


def require_role(*allowed_roles: UserRole):
    """
    Dependency to require specific role(s).

    Usage:
        @router.get("/stats")
        async def stats(
            principal: Principal = Depends(require_role(UserRole.ADMIN))
        ):
            ...
    """
    async def role_checker(
        principal: Principal = Depends(get_current_principal),
    ) -> Principal:
        enforce(role_decision(principal, allowed_roles))
        return principal

    return role_checker
