"""
Registration and login.

Both operations return outcome variants. Every login failure is an
Unauthenticated; the HTTP layer renders all of them with one generic message.
"""

import logging
from dataclasses import dataclass
from typing import Union

from starlette.concurrency import run_in_threadpool

from app.auth.jwt import IssuedToken, TokenService
from app.auth.outcomes import Conflict, Unauthenticated, UnauthenticatedReason
from app.auth.password import PasswordService
from app.auth.store import CredentialStore, DuplicateEmailError, normalize_email
from app.models.user import User, UserRole

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class Registered:
    user: User
    token: IssuedToken


@dataclass(frozen=True)
class LoggedIn:
    user: User
    token: IssuedToken


class AuthService:
    def __init__(self, store: CredentialStore, passwords: PasswordService, tokens: TokenService):
        self.store = store
        self.passwords = passwords
        self.tokens = tokens

    async def register(
        self,
        name: str,
        email: str,
        password: str,
        role: UserRole = UserRole.USER,
    ) -> Union[Registered, Conflict]:
        """
        Create an account and issue its first token.

        Public registration always passes the default role; admins are
        created through `role` only by trusted code (bootstrap, tests).
        """
        email = normalize_email(email)
        if await self.store.find_by_email(email) is not None:
            return Conflict("User already exists with this email")

        password_hash = await run_in_threadpool(self.passwords.hash, password)
        record = User(
            name=name.strip(),
            email=email,
            password_hash=password_hash,
            role=role,
            is_active=True,
        )

        try:
            user = await self.store.create(record)
        except DuplicateEmailError:
            return Conflict("User already exists with this email")

        return Registered(user=user, token=self.tokens.issue(user.id, user.role))

    async def login(self, email: str, password: str) -> Union[LoggedIn, Unauthenticated]:
        user = await self.store.find_by_email(email)
        if user is None:
            await run_in_threadpool(self.passwords.dummy_verify, password)
            logger.info("Login failed: unknown email")
            return Unauthenticated(UnauthenticatedReason.BAD_CREDENTIALS)

        matches = await run_in_threadpool(self.passwords.verify, password, user.password_hash)
        if not matches:
            logger.info("Login failed for user %s: wrong password", user.id)
            return Unauthenticated(UnauthenticatedReason.BAD_CREDENTIALS)

        if not user.is_active:
            logger.info("Login refused for deactivated user %s", user.id)
            return Unauthenticated(UnauthenticatedReason.DEACTIVATED)

        # Upgrade hashes made with older cost parameters
        if self.passwords.needs_rehash(user.password_hash):
            user.password_hash = await run_in_threadpool(self.passwords.hash, password)

        user.record_successful_login()
        await self.store.save(user)

        return LoggedIn(user=user, token=self.tokens.issue(user.id, user.role))
