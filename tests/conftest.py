import sys
import os

# Add project root to Python path
ROOT_DIR = os.path.abspath(os.path.join(os.path.dirname(__file__), ".."))
sys.path.insert(0, ROOT_DIR)

# -----------------------------------------
# TEST DATABASE URL + environment
# -----------------------------------------
TEST_DATABASE_URL = "sqlite:///./test.db"

os.environ["DATABASE_URL"] = TEST_DATABASE_URL
os.environ["APP_ENV"] = "development"
os.environ["SECRET_KEY"] = "test-secret"
os.environ["ALGORITHM"] = "HS256"
os.environ.pop("SMS_API_URL", None)

import pytest
import fakeredis
from fastapi.testclient import TestClient
from sqlalchemy import create_engine
from sqlalchemy.orm import sessionmaker

from main import app

from api.deps import otp_rate_limit
from db import get_db, get_redis
from models import Base


# -----------------------------------------
# Create test engine + session
# -----------------------------------------
engine = create_engine(
    TEST_DATABASE_URL,
    connect_args={"check_same_thread": False}
)
TestingSessionLocal = sessionmaker(bind=engine, autoflush=False, autocommit=False)

# Shared in-memory redis: every request gets its own client on its own
# event loop, all pointing at the same data
redis_server = fakeredis.FakeServer()


# -----------------------------------------
# Override dependencies in FastAPI
# -----------------------------------------
def override_get_db():
    db = TestingSessionLocal()
    try:
        yield db
    finally:
        db.close()


def override_get_redis():
    return fakeredis.FakeAsyncRedis(server=redis_server, decode_responses=True)


def no_rate_limit():
    return None


app.dependency_overrides[get_db] = override_get_db
app.dependency_overrides[get_redis] = override_get_redis
app.dependency_overrides[otp_rate_limit] = no_rate_limit


# -----------------------------------------
# PYTEST GLOBAL SETUP
# -----------------------------------------
@pytest.fixture(scope="session", autouse=True)
def setup_test_database():
    """Create tables before tests start."""
    Base.metadata.drop_all(bind=engine)
    Base.metadata.create_all(bind=engine)


@pytest.fixture(autouse=True)
def flush_redis():
    fakeredis.FakeRedis(server=redis_server).flushall()
    yield


# -----------------------------------------
# Test Client
# -----------------------------------------
@pytest.fixture(scope="session")
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
def sync_redis():
    """Synchronous view of the shared fake redis, for assertions."""
    return fakeredis.FakeRedis(server=redis_server, decode_responses=True)


@pytest.fixture
def fake_server():
    return redis_server
