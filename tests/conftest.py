import os
import sys

import pytest

CURRENT_DIR = os.path.dirname(__file__)
PROJECT_ROOT = os.path.dirname(CURRENT_DIR)
if PROJECT_ROOT not in sys.path:
    sys.path.insert(0, PROJECT_ROOT)

# до импорта classroom.config
os.environ.setdefault("DATABASE_URL", "sqlite://")
os.environ.setdefault("SESSION_BACKEND", "memory")
os.environ.setdefault("RATE_LIMIT_ENABLED", "false")

from fastapi.testclient import TestClient
from sqlalchemy import create_engine
from sqlalchemy.orm import sessionmaker
from sqlalchemy.pool import StaticPool

from classroom.application.account_store import AccountStore
from classroom.application.role_groups import RoleGroupRegistry
from classroom.domain.entities import Role
from classroom.infrastructure.db import get_db
from classroom.infrastructure.models import Base
from classroom.infrastructure.repositories import AccountRepository
from classroom.infrastructure.security import PasswordHasher
from classroom.infrastructure.sessions import InMemorySessionStore
from classroom.interfaces.http.authz import get_role_groups, get_session_store
from classroom.interfaces.http.ratelimit import limiter

# Тестовая БД в памяти, одно соединение на все потоки
test_engine = create_engine(
    "sqlite://",
    connect_args={"check_same_thread": False},
    poolclass=StaticPool,
)
TestingSessionLocal = sessionmaker(autocommit=False, autoflush=False, bind=test_engine)


def override_get_db():
    db = TestingSessionLocal()
    try:
        yield db
    finally:
        db.close()


@pytest.fixture(autouse=True)
def tables():
    """Чистые таблицы для каждого теста"""
    Base.metadata.drop_all(bind=test_engine)
    Base.metadata.create_all(bind=test_engine)
    yield
    Base.metadata.drop_all(bind=test_engine)


@pytest.fixture
def db():
    session = TestingSessionLocal()
    try:
        yield session
    finally:
        session.close()


@pytest.fixture
def accounts(db):
    return AccountStore(repo=AccountRepository(db), hasher=PasswordHasher())


@pytest.fixture
def session_store():
    return InMemorySessionStore()


@pytest.fixture
def app(session_store):
    from classroom.main import app

    limiter.enabled = False
    app.dependency_overrides[get_db] = override_get_db
    app.dependency_overrides[get_session_store] = lambda: session_store
    app.dependency_overrides[get_role_groups] = lambda: RoleGroupRegistry.from_config(
        {"user": ["student", "teacher"]}
    )
    yield app
    app.dependency_overrides.clear()


@pytest.fixture
def client(app):
    return TestClient(app)


def sign_up(client, role: Role, email: str, password: str, name: str = "Test"):
    return client.post(
        f"{role.scope}/sign_up",
        json={"email": email, "password": password, "name": name},
    )


def sign_in(client, role: Role, email: str, password: str, **extra):
    return client.post(
        role.sign_in_path,
        json={"email": email, "password": password, **extra},
    )
