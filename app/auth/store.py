"""
Credential store.

Persists user identity records. Email uniqueness is checked up front and
backed by the database unique index, so a concurrent duplicate still fails
with DuplicateEmailError rather than a raw IntegrityError.
"""

import logging
from typing import Optional, Protocol

from sqlalchemy import func, select
from sqlalchemy.exc import IntegrityError
from sqlalchemy.ext.asyncio import AsyncSession

from app.models.user import User

logger = logging.getLogger(__name__)


class DuplicateEmailError(Exception):
    """Raised by `create` when the email is already registered."""

    def __init__(self, email: str):
        super().__init__(f"Email already registered: {email}")
        self.email = email


def normalize_email(email: str) -> str:
    return email.strip().lower()


class CredentialStore(Protocol):
    async def find_by_email(self, email: str) -> Optional[User]: ...

    async def find_by_id(self, user_id: int) -> Optional[User]: ...

    async def create(self, record: User) -> User: ...

    async def save(self, record: User) -> None: ...


class SqlCredentialStore:
    """CredentialStore backed by an SQLAlchemy AsyncSession."""

    def __init__(self, db: AsyncSession):
        self.db = db

    async def find_by_email(self, email: str) -> Optional[User]:
        result = await self.db.execute(
            select(User).where(User.email == normalize_email(email))
        )
        return result.scalar_one_or_none()

    async def find_by_id(self, user_id: int) -> Optional[User]:
        return await self.db.get(User, user_id, populate_existing=True)

    async def create(self, record: User) -> User:
        record.email = normalize_email(record.email)

        if await self.find_by_email(record.email) is not None:
            raise DuplicateEmailError(record.email)

        self.db.add(record)
        try:
            await self.db.commit()
        except IntegrityError as e:
            await self.db.rollback()
            raise DuplicateEmailError(record.email) from e

        await self.db.refresh(record)
        logger.info("Created user %s (id=%s, role=%s)", record.email, record.id, record.role.value)
        return record

    async def save(self, record: User) -> None:
        self.db.add(record)
        await self.db.commit()

    async def count(self) -> int:
        result = await self.db.execute(select(func.count(User.id)))
        return result.scalar_one()
