import asyncio
import os
import sys
import tempfile

import pytest
import pytest_asyncio
from fastapi.testclient import TestClient

# Add project root to sys.path
sys.path.append(os.path.abspath(os.path.join(os.path.dirname(__file__), '..')))

# Set up environment variables before importing app
_TMP_DIR = tempfile.mkdtemp(prefix="task-tracker-tests-")
os.environ["DATABASE_URL"] = f"sqlite+aiosqlite:///{_TMP_DIR}/bootstrap.db"
os.environ["JWT_SECRET_KEY"] = "test-secret-key-not-for-production-use"
os.environ["ACCESS_TOKEN_EXPIRE_MINUTES"] = "60"
# Cheap Argon2 parameters keep the suite fast
os.environ["PASSWORD_TIME_COST"] = "1"
os.environ["PASSWORD_MEMORY_COST"] = "1024"
os.environ["PASSWORD_PARALLELISM"] = "1"

from app.auth.jwt import TokenService
from app.auth.password import PasswordService
from app.auth.service import AuthService
from app.auth.store import SqlCredentialStore
from app.core.config import get_settings
from app.core.database import build_engine, build_session_maker, create_tables, get_db
from app.main import app
from app.models.user import UserRole


@pytest.fixture
def settings():
    return get_settings()


@pytest.fixture
def tokens(settings):
    return TokenService(settings)


@pytest.fixture
def passwords(settings):
    return PasswordService(settings)


# =============================================================================
# Async database fixtures (unit tests)
# =============================================================================

@pytest_asyncio.fixture
async def db_engine(tmp_path):
    engine = build_engine(f"sqlite+aiosqlite:///{tmp_path / 'unit.db'}")
    await create_tables(engine)
    yield engine
    await engine.dispose()


@pytest_asyncio.fixture
async def session(db_engine):
    async with build_session_maker(db_engine)() as s:
        yield s


@pytest.fixture
def store(session):
    return SqlCredentialStore(session)


@pytest.fixture
def auth_service(store, passwords, tokens):
    return AuthService(store, passwords, tokens)


# =============================================================================
# HTTP fixtures
# =============================================================================

class DatabaseHelper:
    """Runs setup coroutines against the per-test database, outside the app."""

    def __init__(self, session_maker, settings):
        self.session_maker = session_maker
        self.settings = settings

    def run(self, fn):
        async def _run():
            async with self.session_maker() as s:
                return await fn(s)
        return asyncio.run(_run())

    def create_user(self, email, password="secret1", role=UserRole.USER, name="Test User"):
        """Create a user directly and return (user_id, access_token)."""
        async def _create(s):
            service = AuthService(
                SqlCredentialStore(s),
                PasswordService(self.settings),
                TokenService(self.settings),
            )
            outcome = await service.register(name=name, email=email, password=password, role=role)
            return outcome.user.id, outcome.token.token
        return self.run(_create)

    def update_user(self, user_id, **fields):
        async def _update(s):
            store = SqlCredentialStore(s)
            user = await store.find_by_id(user_id)
            for key, value in fields.items():
                setattr(user, key, value)
            await store.save(user)
        return self.run(_update)


@pytest.fixture
def db_helper(tmp_path, settings):
    engine = build_engine(f"sqlite+aiosqlite:///{tmp_path / 'api.db'}")
    asyncio.run(create_tables(engine))
    helper = DatabaseHelper(build_session_maker(engine), settings)
    yield helper
    asyncio.run(engine.dispose())


@pytest.fixture
def client(db_helper):
    async def override_get_db():
        async with db_helper.session_maker() as s:
            yield s

    app.dependency_overrides[get_db] = override_get_db
    with TestClient(app) as c:
        yield c
    app.dependency_overrides.clear()
