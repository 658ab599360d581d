"""
User identity records.

Security considerations:
- Only the Argon2id hash of the password is stored
- Email is stored lower-cased; the unique index makes it case-insensitive
- The hash never leaves the credential store boundary (no repr, no schema)
- All timestamps use UTC
"""

from datetime import datetime, timezone
from enum import Enum as PyEnum
from typing import TYPE_CHECKING, List, Optional

from sqlalchemy import Boolean, DateTime, Enum, String
from sqlalchemy.orm import Mapped, mapped_column, relationship

from app.core.database import Base

if TYPE_CHECKING:
    from app.models.task import Task


class UserRole(str, PyEnum):
    """Roles recognised by the authorization policy."""
    USER = "user"
    ADMIN = "admin"


class User(Base):
    """A registered account. Never hard-deleted; deactivate via `is_active`."""

    __tablename__ = "users"

    id: Mapped[int] = mapped_column(primary_key=True)

    # Profile
    name: Mapped[str] = mapped_column(String(100), nullable=False)

    # Authentication
    email: Mapped[str] = mapped_column(String(255), unique=True, index=True, nullable=False)
    password_hash: Mapped[str] = mapped_column(String(255), nullable=False)
    role: Mapped[UserRole] = mapped_column(
        Enum(UserRole, values_callable=lambda roles: [r.value for r in roles]),
        nullable=False,
        default=UserRole.USER,
    )

    # Account status
    is_active: Mapped[bool] = mapped_column(Boolean, default=True, nullable=False)

    # Timestamps
    created_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True),
        default=lambda: datetime.now(timezone.utc)
    )
    updated_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True),
        default=lambda: datetime.now(timezone.utc),
        onupdate=lambda: datetime.now(timezone.utc)
    )
    last_login: Mapped[Optional[datetime]] = mapped_column(DateTime(timezone=True), nullable=True)

    tasks: Mapped[List["Task"]] = relationship("Task", back_populates="owner")

    def __repr__(self) -> str:
        return f"<User {self.email}>"

    def record_successful_login(self) -> None:
        self.last_login = datetime.now(timezone.utc)
