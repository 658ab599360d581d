"""
JWT access tokens.

Security measures:
- Signing key, algorithm and lifetime come from an explicit Settings object
- Issuer, audience and token type are validated
- Verification fails closed: any structural, signature, claim or expiry
  defect produces a rejection, never partial claims
"""

import secrets
from dataclasses import dataclass
from datetime import datetime, timedelta, timezone
from enum import Enum
from typing import Callable, Optional, Union

from jose import ExpiredSignatureError, JWTError, jwt
from jose.exceptions import JWTClaimsError
from pydantic import BaseModel, ValidationError, field_validator

from app.core.config import Settings
from app.models.user import UserRole

ACCESS_TOKEN_TYPE = "access"


class TokenClaims(BaseModel):
    """Decoded and verified token claims."""
    sub: str                          # User ID (subject)
    role: UserRole                    # Role at issue time
    type: str                         # Always "access"
    iat: datetime                     # Issued at
    exp: datetime                     # Expiration
    jti: Optional[str] = None         # Unique token ID

    @field_validator("sub")
    @classmethod
    def numeric_subject(cls, v: str) -> str:
        if not (v.isascii() and v.isdigit()):
            raise ValueError("subject must be a numeric user id")
        return v

    @property
    def subject_id(self) -> int:
        return int(self.sub)


class RejectionReason(str, Enum):
    MALFORMED = "malformed"
    BAD_SIGNATURE = "bad-signature"
    EXPIRED = "expired"


@dataclass(frozen=True)
class TokenRejection:
    """Why a token failed verification. Stays inside the auth core."""
    reason: RejectionReason


@dataclass(frozen=True)
class IssuedToken:
    token: str
    expires_at: datetime
    expires_in: int                   # Seconds


def _utc_now() -> datetime:
    return datetime.now(timezone.utc)


class TokenService:
    """
    Issues and verifies signed bearer tokens.

    The key is captured at construction. Swapping the instance (for example
    through a FastAPI dependency override) swaps the key.
    """

    def __init__(self, settings: Settings, clock: Callable[[], datetime] = _utc_now):
        self._secret = settings.jwt_secret_key
        self._algorithm = settings.jwt_algorithm
        self._ttl = timedelta(minutes=settings.access_token_expire_minutes)
        self._issuer = settings.token_issuer
        self._audience = settings.token_audience
        self._clock = clock

    def issue(
        self,
        subject_id: int,
        role: UserRole,
        ttl: Optional[timedelta] = None,
    ) -> IssuedToken:
        """
        Create a signed access token.

        Args:
            subject_id: The user's database ID
            role: User's role at issue time
            ttl: Lifetime override; defaults to the configured lifetime

        Returns:
            IssuedToken with the encoded JWT and its expiry
        """
        lifetime = ttl if ttl is not None else self._ttl
        now = self._clock().replace(microsecond=0)
        expire = now + lifetime

        payload = {
            "sub": str(subject_id),
            "role": UserRole(role).value,
            "type": ACCESS_TOKEN_TYPE,
            "iat": now,
            "exp": expire,
            "iss": self._issuer,
            "aud": self._audience,
            "jti": secrets.token_urlsafe(16),
        }

        token = jwt.encode(payload, self._secret, algorithm=self._algorithm)
        return IssuedToken(
            token=token,
            expires_at=expire,
            expires_in=int(lifetime.total_seconds()),
        )

    def verify(self, token: str) -> Union[TokenClaims, TokenRejection]:
        """
        Verify and decode a token.

        Returns TokenClaims on success, TokenRejection otherwise. Never raises.
        """
        if not isinstance(token, str) or token.count(".") != 2:
            return TokenRejection(RejectionReason.MALFORMED)

        try:
            jwt.get_unverified_header(token)
        except JWTError:
            return TokenRejection(RejectionReason.MALFORMED)

        try:
            payload = jwt.decode(
                token,
                self._secret,
                algorithms=[self._algorithm],
                audience=self._audience,
                issuer=self._issuer,
                options={"require_exp": True, "require_iat": True, "require_sub": True},
            )
        except ExpiredSignatureError:
            return TokenRejection(RejectionReason.EXPIRED)
        except JWTClaimsError:
            return TokenRejection(RejectionReason.MALFORMED)
        except JWTError:
            return TokenRejection(RejectionReason.BAD_SIGNATURE)

        try:
            claims = TokenClaims(
                sub=payload["sub"],
                role=payload["role"],
                type=payload["type"],
                iat=datetime.fromtimestamp(payload["iat"], tz=timezone.utc),
                exp=datetime.fromtimestamp(payload["exp"], tz=timezone.utc),
                jti=payload.get("jti"),
            )
        except (KeyError, TypeError, ValueError, OverflowError, ValidationError):
            return TokenRejection(RejectionReason.MALFORMED)

        if claims.type != ACCESS_TOKEN_TYPE:
            return TokenRejection(RejectionReason.MALFORMED)

        if self._clock() > claims.exp:
            return TokenRejection(RejectionReason.EXPIRED)

        return claims
