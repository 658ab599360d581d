"""
Outcome types returned by the auth core.

Authentication and authorization never raise for expected failures. They
return one of the variants below, and the HTTP layer maps each variant to a
status code:

- Authenticated   -> request proceeds with a Principal
- Unauthenticated -> 401
- Forbidden       -> 403
- Conflict        -> 409
"""

from dataclasses import dataclass
from enum import Enum
from typing import Union

from app.models.user import UserRole


@dataclass(frozen=True)
class Principal:
    """The identity attached to a request after successful authentication."""
    id: int
    email: str
    role: UserRole

    @property
    def is_admin(self) -> bool:
        return self.role == UserRole.ADMIN


class UnauthenticatedReason(str, Enum):
    """Internal reason codes. Never sent to clients."""
    MISSING_CREDENTIAL = "missing_credential"
    INVALID_CREDENTIAL = "invalid_credential"
    UNKNOWN_SUBJECT = "unknown_subject"
    DEACTIVATED = "deactivated"
    BAD_CREDENTIALS = "bad_credentials"


@dataclass(frozen=True)
class Authenticated:
    principal: Principal


@dataclass(frozen=True)
class Unauthenticated:
    reason: UnauthenticatedReason


@dataclass(frozen=True)
class Forbidden:
    reason: str


@dataclass(frozen=True)
class Conflict:
    reason: str


@dataclass(frozen=True)
class Allow:
    pass


ALLOW = Allow()

AuthOutcome = Union[Authenticated, Unauthenticated]
Decision = Union[Allow, Forbidden]
