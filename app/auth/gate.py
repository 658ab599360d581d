"""
Authentication gate.

Turns an Authorization header into a Principal, or into an Unauthenticated
outcome naming the internal reason. Steps, each a possible exit:

1. Header present with the Bearer scheme
2. Token verifies (signature, claims, expiry)
3. Subject resolves to a live user record
4. User is active

The Principal is built from the live record, so role changes and
deactivation take effect on the next request even while the token itself
is still valid.
"""

import logging
from typing import Optional

from app.auth.jwt import TokenRejection, TokenService
from app.auth.outcomes import (
    AuthOutcome,
    Authenticated,
    Principal,
    Unauthenticated,
    UnauthenticatedReason,
)
from app.auth.store import CredentialStore

logger = logging.getLogger(__name__)

BEARER_SCHEME = "bearer"


def extract_bearer_token(authorization: Optional[str]) -> Optional[str]:
    """Return the token from `Bearer <token>`, or None if absent or malformed."""
    if not authorization:
        return None

    scheme, _, credentials = authorization.strip().partition(" ")
    if scheme.lower() != BEARER_SCHEME:
        return None

    credentials = credentials.strip()
    if not credentials or " " in credentials:
        return None
    return credentials


async def authenticate(
    authorization: Optional[str],
    tokens: TokenService,
    store: CredentialStore,
) -> AuthOutcome:
    """Run the gate for one request. Reads the store, never writes to it."""
    token = extract_bearer_token(authorization)
    if token is None:
        return Unauthenticated(UnauthenticatedReason.MISSING_CREDENTIAL)

    claims = tokens.verify(token)
    if isinstance(claims, TokenRejection):
        logger.debug("Token rejected: %s", claims.reason.value)
        return Unauthenticated(UnauthenticatedReason.INVALID_CREDENTIAL)

    user = await store.find_by_id(claims.subject_id)
    if user is None:
        logger.info("Token subject %s no longer exists", claims.sub)
        return Unauthenticated(UnauthenticatedReason.UNKNOWN_SUBJECT)

    if not user.is_active:
        logger.info("Rejected request from deactivated user %s", user.id)
        return Unauthenticated(UnauthenticatedReason.DEACTIVATED)

    return Authenticated(Principal(id=user.id, email=user.email, role=user.role))
