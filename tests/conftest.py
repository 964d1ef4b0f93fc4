import os
from uuid import uuid4

# Settings are read at import time, point them at SQLite before importing the app
os.environ.setdefault("DATABASE_URL", "sqlite://")
os.environ.setdefault("DEBUG", "false")
os.environ.setdefault("SECRET_KEY", "test-secret-key")
os.environ.setdefault("AUTOMATION_DELAYED_RUNNER_ENABLED", "false")

import pytest
from fastapi.testclient import TestClient
from sqlalchemy import create_engine
from sqlalchemy.orm import sessionmaker
from sqlalchemy.pool import StaticPool

from bukialo.core.auth import create_access_token
from bukialo.core.db.deps import get_db
from bukialo.main import app
from bukialo.models import Base, Contact, User
from bukialo.models.contact import ContactStatus
from bukialo.models.user import UserRole
from tests.helpers import FIXED_NOW, FixedClock


@pytest.fixture(scope="function")
def test_engine():
    """In-memory SQLite engine shared by every session of one test."""
    engine = create_engine(
        "sqlite://",
        connect_args={"check_same_thread": False},
        poolclass=StaticPool,
    )
    Base.metadata.create_all(bind=engine)
    yield engine
    Base.metadata.drop_all(bind=engine)
    engine.dispose()


@pytest.fixture(scope="function")
def session_factory(test_engine):
    return sessionmaker(autocommit=False, autoflush=False, bind=test_engine)


@pytest.fixture(scope="function")
def db_session(session_factory):
    """Create a database session for one test."""
    db = session_factory()
    try:
        yield db
    finally:
        db.close()


@pytest.fixture(scope="function")
def client(db_session):
    """Create a test client with database dependency override."""

    def override_get_db():
        try:
            yield db_session
        finally:
            pass

    app.dependency_overrides[get_db] = override_get_db
    with TestClient(app) as test_client:
        yield test_client
    app.dependency_overrides.clear()


@pytest.fixture
def clock():
    return FixedClock(FIXED_NOW)


def _create_user(db_session, role: UserRole, is_active: bool = True) -> User:
    user = User(
        email=f"{role.value.lower()}-{uuid4().hex[:8]}@bukialo.test",
        first_name="Test",
        last_name=role.value.title(),
        role=role.value,
        is_active=is_active,
    )
    db_session.add(user)
    db_session.commit()
    db_session.refresh(user)
    return user


@pytest.fixture(scope="function")
def admin_user(db_session):
    return _create_user(db_session, UserRole.ADMIN)


@pytest.fixture(scope="function")
def manager_user(db_session):
    return _create_user(db_session, UserRole.MANAGER)


@pytest.fixture(scope="function")
def other_manager_user(db_session):
    return _create_user(db_session, UserRole.MANAGER)


@pytest.fixture(scope="function")
def agent_user(db_session):
    return _create_user(db_session, UserRole.AGENT)


@pytest.fixture(scope="function")
def inactive_user(db_session):
    return _create_user(db_session, UserRole.MANAGER, is_active=False)


@pytest.fixture(scope="function")
def test_contact(db_session, agent_user):
    """Create a contact owned by the agent."""
    contact = Contact(
        first_name="Lucía",
        last_name="Fernández",
        email="lucia@example.com",
        phone="+5491155550000",
        status=ContactStatus.INTERESADO.value,
        source="WEBSITE",
        tags=["web"],
        assigned_agent_id=agent_user.id,
    )
    db_session.add(contact)
    db_session.commit()
    db_session.refresh(contact)
    return contact


def auth_headers_for(user: User) -> dict[str, str]:
    token = create_access_token({"sub": str(user.id), "role": user.role})
    return {"Authorization": f"Bearer {token}"}


@pytest.fixture
def admin_headers(admin_user):
    return auth_headers_for(admin_user)


@pytest.fixture
def manager_headers(manager_user):
    return auth_headers_for(manager_user)


@pytest.fixture
def other_manager_headers(other_manager_user):
    return auth_headers_for(other_manager_user)


@pytest.fixture
def agent_headers(agent_user):
    return auth_headers_for(agent_user)
