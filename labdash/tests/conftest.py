import os
import sys
from pathlib import Path
from types import SimpleNamespace

import pytest
from fastapi.testclient import TestClient
from sqlalchemy import create_engine
from sqlalchemy.orm import sessionmaker
from sqlalchemy.pool import StaticPool

# Ensure tests use an in-memory SQLite DB and never reach Gemini
os.environ.setdefault("DATABASE_URL", "sqlite://")
os.environ["GEMINI_API_KEY"] = ""

# Ensure the project root is on sys.path so `import labdash` works when running
# pytest from the repository root.
ROOT_DIR = Path(__file__).resolve().parents[2]
if str(ROOT_DIR) not in sys.path:
    sys.path.insert(0, str(ROOT_DIR))

from labdash.app import app
from labdash.auth.deps import get_current_user
from labdash.db.session import Base, get_db
from labdash.routes.extract_routes import get_invoker
from labdash.services.gemini import ModelFallbackInvoker
from labdash.utils.rate_limit import limiter

from fakes import FakeVisionClient


# In-memory SQLite shared across connections
engine = create_engine(
    "sqlite://",
    connect_args={"check_same_thread": False},
    poolclass=StaticPool,
)
TestingSessionLocal = sessionmaker(autocommit=False, autoflush=False, bind=engine)

TEST_USER_ID = "user-1"


@pytest.fixture(scope="session", autouse=True)
def create_schema():
    Base.metadata.create_all(bind=engine)
    yield
    Base.metadata.drop_all(bind=engine)


@pytest.fixture(autouse=True)
def clean_tables():
    yield
    with engine.begin() as conn:
        for table in reversed(Base.metadata.sorted_tables):
            conn.execute(table.delete())


def _override_get_db():
    db = TestingSessionLocal()
    try:
        yield db
    finally:
        db.close()


app.dependency_overrides[get_db] = _override_get_db
app.dependency_overrides[get_current_user] = lambda: SimpleNamespace(id=TEST_USER_ID, email="u@example.com")

# Code paths that import SessionLocal directly use the test engine/session
import labdash.db.session as session_mod
session_mod.engine = engine
session_mod.SessionLocal = TestingSessionLocal
import labdash.models as models_mod
models_mod.engine = engine


@pytest.fixture(autouse=True)
def reset_rate_limiter():
    limiter.reset()
    yield


@pytest.fixture
def client():
    return TestClient(app)


@pytest.fixture
def db():
    session = TestingSessionLocal()
    try:
        yield session
    finally:
        session.close()



@pytest.fixture
def fake_vision():
    return FakeVisionClient()


@pytest.fixture
def mock_gemini(fake_vision):
    """Route extraction through ``fake_vision`` instead of the network."""
    app.dependency_overrides[get_invoker] = lambda: ModelFallbackInvoker(
        client=fake_vision, models=["model-a", "model-b"]
    )
    yield fake_vision
    app.dependency_overrides.pop(get_invoker, None)


@pytest.fixture
def real_auth():
    """Use the real token-based get_current_user for the duration of a test."""
    override = app.dependency_overrides.pop(get_current_user)
    yield
    app.dependency_overrides[get_current_user] = override
