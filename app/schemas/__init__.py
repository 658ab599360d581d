"""
Pydantic schemas for API request/response validation.

These schemas provide:
- Input validation (the `Invalid` outcome is FastAPI's 422)
- Output serialization without sensitive fields
- OpenAPI documentation generation
"""

from app.schemas.auth import (
    LoginRequest,
    LoginResponse,
    RegisterRequest,
    RegisterResponse,
    TokenResponse,
)
from app.schemas.user import UserResponse
from app.schemas.task import (
    TaskCreate,
    TaskUpdate,
    TaskResponse,
    TaskStatsResponse,
)
from app.schemas.common import HealthResponse, PaginatedResponse

__all__ = [
    # Auth
    "LoginRequest",
    "LoginResponse",
    "RegisterRequest",
    "RegisterResponse",
    "TokenResponse",
    # User
    "UserResponse",
    # Task
    "TaskCreate",
    "TaskUpdate",
    "TaskResponse",
    "TaskStatsResponse",
    # Common
    "HealthResponse",
    "PaginatedResponse",
]
