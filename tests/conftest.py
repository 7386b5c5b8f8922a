import os
import tempfile

# Point the app at a throwaway database before any project module is imported.
os.environ.setdefault("DATA_DIR", tempfile.mkdtemp(prefix="campus-test-"))
os.environ.setdefault("DATABASE_URL", "sqlite://")
os.environ.setdefault("ADMIN_TOKEN", "test-admin-token")

import pytest
from fastapi.testclient import TestClient
from sqlalchemy import create_engine
from sqlalchemy.orm import sessionmaker
from sqlalchemy.pool import StaticPool

from app import app
from api.routes.auth import create_access_token
from core.database import get_db
from core.dependencies import get_user_manager
from models.base import Base
from utils.class_manager import ClassManager
from utils.user_manager import UserManager

FAST_BCRYPT_ROUNDS = 4


@pytest.fixture
def engine():
    engine = create_engine(
        "sqlite://",
        connect_args={"check_same_thread": False},
        poolclass=StaticPool,
    )
    Base.metadata.create_all(bind=engine)
    yield engine
    Base.metadata.drop_all(bind=engine)
    engine.dispose()


@pytest.fixture
def session_factory(engine):
    return sessionmaker(autocommit=False, autoflush=False, bind=engine)


@pytest.fixture
def db(session_factory):
    session = session_factory()
    try:
        yield session
    finally:
        session.close()


@pytest.fixture
def make_user(db):
    """Create a user with a profile and return the User schema."""
    manager = UserManager(db, bcrypt_rounds=FAST_BCRYPT_ROUNDS)

    def _make(username, full_name=None, email=None, role="student", password="secret123"):
        return manager.create_user(
            username=username,
            password=password,
            full_name=full_name or username.title(),
            email=email or f"{username}@uni.example",
            role=role,
        )

    return _make


@pytest.fixture
def make_class(db):
    def _make(creator_id, name="Data Structures", **kwargs):
        kwargs.setdefault("units", [{"name": "Week 1"}])
        return ClassManager(db).create_class(name=name, creator_id=creator_id, **kwargs)

    return _make


@pytest.fixture
def client(session_factory):
    def override_get_db():
        session = session_factory()
        try:
            yield session
        finally:
            session.close()

    def override_get_user_manager():
        session = session_factory()
        try:
            yield UserManager(session, bcrypt_rounds=FAST_BCRYPT_ROUNDS)
        finally:
            session.close()

    app.dependency_overrides[get_db] = override_get_db
    app.dependency_overrides[get_user_manager] = override_get_user_manager
    with TestClient(app) as test_client:
        yield test_client
    app.dependency_overrides.clear()


def auth_headers(username):
    return {"Authorization": f"Bearer {create_access_token({'sub': username})}"}
