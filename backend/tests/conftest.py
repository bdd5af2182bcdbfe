"""
Pytest configuration and fixtures for the federation backend tests
"""

import os
from datetime import date

# Must be set before federation.database is imported
os.environ.setdefault("DATABASE_URL", "sqlite://")
os.environ.setdefault("SECRET_KEY", "test-secret-key")
os.environ["EMAIL_ENABLED"] = "false"

import pytest
from fastapi.testclient import TestClient
from sqlalchemy import create_engine
from sqlalchemy.orm import sessionmaker
from sqlalchemy.pool import StaticPool

from federation import auth, models
from federation.database import Base, get_db
from federation.dependencies import get_today
from federation.main import app

TODAY = date(2025, 6, 15)


@pytest.fixture(scope="function")
def db_session():
    """Fresh in-memory database per test"""
    engine = create_engine(
        "sqlite://",
        connect_args={"check_same_thread": False},
        poolclass=StaticPool,
    )
    Base.metadata.create_all(bind=engine)
    TestingSession = sessionmaker(bind=engine, autocommit=False, autoflush=False)
    session = TestingSession()
    try:
        yield session
    finally:
        session.close()
        Base.metadata.drop_all(bind=engine)
        engine.dispose()


@pytest.fixture(scope="function")
def client(db_session):
    def _get_db():
        yield db_session

    app.dependency_overrides[get_db] = _get_db
    app.dependency_overrides[get_today] = lambda: TODAY
    try:
        yield TestClient(app)
    finally:
        app.dependency_overrides.clear()


def _make_user(db_session, email, role):
    user = models.User(
        email=email,
        hashed_password=auth.hash_password("Password123!"),
        full_name=email.split("@")[0].title(),
        role=role,
        is_active=True,
    )
    db_session.add(user)
    db_session.commit()
    db_session.refresh(user)
    return user


def _headers(user):
    token = auth.create_access_token(user_id=user.id, subject=user.email, role=user.role)
    return {"Authorization": f"Bearer {token}"}


@pytest.fixture(scope="function")
def admin_user(db_session):
    return _make_user(db_session, "admin@federation.org", auth.ROLE_ADMIN)


@pytest.fixture(scope="function")
def staff_user(db_session):
    return _make_user(db_session, "clerk@federation.org", auth.ROLE_USER)


@pytest.fixture(scope="function")
def admin_headers(admin_user):
    return _headers(admin_user)


@pytest.fixture(scope="function")
def staff_headers(staff_user):
    return _headers(staff_user)


@pytest.fixture(scope="function")
def club_factory(db_session):
    def make(name):
        club = models.Club(name=name, is_active=True)
        db_session.add(club)
        db_session.commit()
        db_session.refresh(club)
        return club

    return make


@pytest.fixture(scope="function")
def person_factory(db_session):
    counter = {"n": 0}

    def make(full_name="Lucia Mamani", club=None, **extra):
        counter["n"] += 1
        person = models.Person(
            full_name=full_name,
            dni=extra.pop("dni", f"3000000{counter['n']}"),
            birth_date=extra.pop("birth_date", date(2004, 3, 9)),
            club_id=club.id if club else None,
            category=extra.pop("category", "Sub-21"),
            roles=extra.pop("roles", ["Player"]),
            **extra,
        )
        db_session.add(person)
        db_session.commit()
        db_session.refresh(person)
        return person

    return make
