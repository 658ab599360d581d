"""
Authentication and Authorization module.

Provides:
- Password hashing (Argon2id)
- JWT token issuing and verification
- Credential store over SQLAlchemy
- Authentication gate and role/ownership policy
- FastAPI dependencies mapping outcomes to 401/403/409
"""

from app.auth.jwt import (
    IssuedToken,
    RejectionReason,
    TokenClaims,
    TokenRejection,
    TokenService,
)
from app.auth.password import PasswordService, generate_temp_password
from app.auth.store import CredentialStore, DuplicateEmailError, SqlCredentialStore
from app.auth.outcomes import (
    ALLOW,
    Allow,
    Authenticated,
    Conflict,
    Forbidden,
    Principal,
    Unauthenticated,
    UnauthenticatedReason,
)
from app.auth.gate import authenticate, extract_bearer_token
from app.auth.policy import require_ownership_or_admin, require_role
from app.auth.service import AuthService, LoggedIn, Registered

__all__ = [
    # JWT
    "IssuedToken",
    "RejectionReason",
    "TokenClaims",
    "TokenRejection",
    "TokenService",
    # Password
    "PasswordService",
    "generate_temp_password",
    # Store
    "CredentialStore",
    "DuplicateEmailError",
    "SqlCredentialStore",
    # Outcomes
    "ALLOW",
    "Allow",
    "Authenticated",
    "Conflict",
    "Forbidden",
    "Principal",
    "Unauthenticated",
    "UnauthenticatedReason",
    # Gate and policy
    "authenticate",
    "extract_bearer_token",
    "require_ownership_or_admin",
    "require_role",
    # Service
    "AuthService",
    "LoggedIn",
    "Registered",
]
