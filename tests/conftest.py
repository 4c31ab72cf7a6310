import os

# Settings are read at import time
os.environ["TESTING"] = "1"
os.environ["TEST_DATABASE_URL"] = "sqlite:///./test_clinic.db"

import pytest
from fastapi.testclient import TestClient
from sqlalchemy import create_engine
from sqlalchemy.orm import sessionmaker

from clinic.main import app
from clinic.core.database import Base, get_db, get_redis
from clinic.core.security import UserRole, create_token, get_password_hash
from clinic.models.profile import Profile

SQLALCHEMY_DATABASE_URL = "sqlite:///./test_clinic.db"
engine = create_engine(
    SQLALCHEMY_DATABASE_URL, connect_args={"check_same_thread": False}
)
TestingSessionLocal = sessionmaker(autocommit=False, autoflush=False, bind=engine)

DEFAULT_PASSWORD = "TestPassword123"
_password_hash = None

def override_get_db():
    try:
        db = TestingSessionLocal()
        yield db
    finally:
        db.close()

class FakeRedis:
    """In-memory stand-in for the few Redis commands the rate limiter uses."""

    def __init__(self):
        self.store = {}

    def get(self, key):
        return self.store.get(key)

    def setex(self, key, seconds, value):
        self.store[key] = str(value)
        return True

    def incr(self, key):
        self.store[key] = str(int(self.store.get(key, 0)) + 1)
        return int(self.store[key])

@pytest.fixture(scope="function")
def db():
    Base.metadata.create_all(bind=engine)
    session = TestingSessionLocal()
    yield session
    session.close()
    Base.metadata.drop_all(bind=engine)

@pytest.fixture
def fake_redis():
    return FakeRedis()

@pytest.fixture
def client(db, fake_redis):
    app.dependency_overrides[get_db] = override_get_db
    app.dependency_overrides[get_redis] = lambda: fake_redis
    with TestClient(app, base_url="http://testserver") as test_client:
        yield test_client
    app.dependency_overrides.clear()

@pytest.fixture
def make_profile(db):
    """Factory inserting a profile directly; all share ``DEFAULT_PASSWORD``."""
    def _make(email, role=UserRole.ADMIN, approved=True, is_active=True, **fields):
        global _password_hash
        if _password_hash is None:
            _password_hash = get_password_hash(DEFAULT_PASSWORD)
        profile = Profile(
            email=email,
            password_hash=_password_hash,
            role=role,
            approved=approved,
            is_active=is_active,
            **fields,
        )
        db.add(profile)
        db.commit()
        db.refresh(profile)
        return profile

    return _make

@pytest.fixture
def superadmin(make_profile):
    return make_profile("root@example.com", role=UserRole.SUPERADMIN, first_name="Root")

@pytest.fixture
def admin(make_profile):
    return make_profile("staff@example.com", first_name="Staff", last_name="Member")

def auth_headers(profile):
    token = create_token(profile.id, profile.email, profile.role)
    return {"Authorization": f"Bearer {token.access_token}"}

@pytest.fixture
def superadmin_headers(superadmin):
    return auth_headers(superadmin)

@pytest.fixture
def admin_headers(admin):
    return auth_headers(admin)
