"""
Authentication-related schemas.
"""

from typing import Any

from pydantic import BaseModel, EmailStr, Field, field_validator

from app.schemas.user import UserResponse


class RegisterRequest(BaseModel):
    """Public self-registration. The role is always `user`."""

    name: str = Field(min_length=2, max_length=100, description="Display name")
    email: EmailStr = Field(description="User email address")
    password: str = Field(min_length=6, max_length=128, description="Password")

    @field_validator("email")
    @classmethod
    def lowercase_email(cls, v: str) -> str:
        return v.lower().strip()

    @field_validator("name", mode="before")
    @classmethod
    def strip_name(cls, v: Any) -> Any:
        # Length limits apply to the stripped value
        if isinstance(v, str):
            return v.strip()
        return v


class LoginRequest(BaseModel):
    """Login request with email and password."""

    email: EmailStr = Field(description="User email address")
    password: str = Field(min_length=1, max_length=128, description="User password")

    @field_validator("email")
    @classmethod
    def lowercase_email(cls, v: str) -> str:
        return v.lower().strip()


class TokenResponse(BaseModel):
    access_token: str = Field(description="JWT access token")
    token_type: str = Field(default="bearer", description="Token type")
    expires_in: int = Field(description="Access token expiration in seconds")


class RegisterResponse(TokenResponse):
    user: UserResponse


class LoginResponse(TokenResponse):
    user: UserResponse
