"""
Task Tracker API

Main FastAPI application with security hardening.
"""

import logging
import secrets
from contextlib import asynccontextmanager
from datetime import datetime, timezone
from typing import Callable

from dotenv import load_dotenv

load_dotenv()

from fastapi import FastAPI, Request, status
from fastapi.middleware.cors import CORSMiddleware
from fastapi.middleware.trustedhost import TrustedHostMiddleware
from fastapi.responses import JSONResponse
from sqlalchemy import text
from starlette.middleware.base import BaseHTTPMiddleware

from app.api.v1.api import api_router
from app.auth.jwt import TokenService
from app.auth.password import PasswordService, generate_temp_password
from app.auth.service import AuthService, Registered
from app.auth.store import SqlCredentialStore
from app.core.config import Settings, get_settings
from app.core.database import async_session_maker, close_db, engine, init_db
from app.models.user import UserRole
from app.schemas.common import HealthResponse

logger = logging.getLogger(__name__)

VERSION = "1.0.0"

settings = get_settings()


# =============================================================================
# Application Lifespan (startup/shutdown)
# =============================================================================

def configure_logging(level: str) -> None:
    logging.basicConfig(
        level=level,
        format="%(asctime)s %(levelname)s [%(name)s] %(message)s",
    )


@asynccontextmanager
async def lifespan(app: FastAPI):
    """Application lifespan manager for startup/shutdown events."""
    configure_logging(settings.log_level)
    logger.info("Starting Task Tracker API %s", VERSION)

    await init_db()
    logger.info("Database initialized")

    await create_default_admin_if_needed(settings)

    yield

    logger.info("Shutting down Task Tracker API")
    await close_db()


async def create_default_admin_if_needed(settings: Settings) -> None:
    """Create a default admin user if no users exist."""
    async with async_session_maker() as session:
        store = SqlCredentialStore(session)
        if await store.count() > 0:
            return

        temp_password = generate_temp_password()
        auth = AuthService(store, PasswordService(settings), TokenService(settings))
        outcome = await auth.register(
            name="Task Tracker Administrator",
            email=settings.default_admin_email,
            password=temp_password,
            role=UserRole.ADMIN,
        )
        if isinstance(outcome, Registered):
            logger.warning(
                "DEFAULT ADMIN ACCOUNT CREATED: email=%s password=%s (change it immediately)",
                outcome.user.email,
                temp_password,
            )


# =============================================================================
# FastAPI Application
# =============================================================================

app = FastAPI(
    title="Task Tracker API",
    version=VERSION,
    description="Task tracking with JWT authentication and role-based access control",
    lifespan=lifespan,
    docs_url="/docs" if settings.enable_docs else None,
    redoc_url="/redoc" if settings.enable_docs else None,
)


# =============================================================================
# Security Middleware
# =============================================================================

class SecurityHeadersMiddleware(BaseHTTPMiddleware):
    """Add security headers to all responses."""

    async def dispatch(self, request: Request, call_next: Callable):
        response = await call_next(request)

        response.headers["X-Frame-Options"] = "DENY"
        response.headers["X-Content-Type-Options"] = "nosniff"
        response.headers["Referrer-Policy"] = "strict-origin-when-cross-origin"

        # Docs pages need scripts from the CDN; the API itself needs nothing
        if not request.url.path.startswith(("/docs", "/redoc")):
            response.headers["Content-Security-Policy"] = "default-src 'none'; frame-ancestors 'none'"

        if settings.enable_hsts:
            response.headers["Strict-Transport-Security"] = "max-age=31536000; includeSubDomains"

        return response


class RequestIDMiddleware(BaseHTTPMiddleware):
    """Add unique request ID for tracing."""

    async def dispatch(self, request: Request, call_next: Callable):
        request_id = request.headers.get("X-Request-ID") or secrets.token_urlsafe(8)
        request.state.request_id = request_id

        response = await call_next(request)
        response.headers["X-Request-ID"] = request_id

        return response


# =============================================================================
# Add Middleware (order matters - first added = last executed)
# =============================================================================

app.add_middleware(
    CORSMiddleware,
    allow_origins=settings.cors_origins,
    allow_credentials="*" not in settings.cors_origins,
    allow_methods=["GET", "POST", "PUT", "DELETE", "OPTIONS"],
    allow_headers=["*"],
    expose_headers=["X-Request-ID"],
)

# Trusted hosts (prevent host header attacks)
if "*" not in settings.trusted_hosts:
    app.add_middleware(TrustedHostMiddleware, allowed_hosts=settings.trusted_hosts)

app.add_middleware(SecurityHeadersMiddleware)
app.add_middleware(RequestIDMiddleware)


# =============================================================================
# Routes
# =============================================================================

@app.get("/", tags=["root"])
def home():
    """Root endpoint."""
    return {
        "name": "Task Tracker API",
        "version": VERSION,
        "docs": "/docs",
        "endpoints": {
            "health": "/health",
            "auth": "/api/v1/auth",
            "tasks": "/api/v1/tasks",
        },
    }


@app.get("/health", tags=["health"], response_model=HealthResponse)
async def health_check():
    """Health check endpoint for load balancers and monitoring."""
    db_status = "healthy"
    try:
        async with engine.connect() as conn:
            await conn.execute(text("SELECT 1"))
    except Exception as e:
        logger.error("Health check database ping failed: %s", e)
        db_status = "unhealthy"

    return HealthResponse(
        status="healthy" if db_status == "healthy" else "degraded",
        version=VERSION,
        database=db_status,
        timestamp=datetime.now(timezone.utc),
    )


app.include_router(api_router, prefix="/api/v1")


# =============================================================================
# Error Handlers
# =============================================================================

@app.exception_handler(Exception)
async def global_exception_handler(request: Request, exc: Exception):
    """Global exception handler to prevent information leakage."""
    request_id = getattr(request.state, "request_id", "unknown")
    logger.error(
        "[%s] Unhandled exception: %s",
        request_id,
        exc,
        exc_info=settings.debug,
    )

    return JSONResponse(
        status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
        content={
            "detail": "An internal error occurred",
            "request_id": request_id,
        },
    )


# =============================================================================
# Development Server
# =============================================================================

if __name__ == "__main__":
    import uvicorn

    uvicorn.run(
        "app.main:app",
        host="0.0.0.0",
        port=8000,
        reload=True,
        log_level="info",
    )
