"""
Pytest configuration and fixtures for backend tests.
"""

import os

# Must be set before the app modules build their engine
os.environ.setdefault("DATABASE_URL", "sqlite://")

import fakeredis
import pytest
from fastapi.testclient import TestClient
from sqlalchemy import create_engine
from sqlalchemy.orm import sessionmaker
from sqlalchemy.pool import StaticPool

from rest_api.main import app
from rest_api.models import Base, Branch, Company, School
from shared.infrastructure.cache import read_cache
from shared.infrastructure.cache.read_cache import ReadCache
from shared.infrastructure.db import get_db
from shared.security.auth import sign_jwt


COMPANY_ID = "company-1"
OTHER_COMPANY_ID = "company-2"


# SQLite in-memory database for testing
SQLALCHEMY_DATABASE_URL = "sqlite:///:memory:"

engine = create_engine(
    SQLALCHEMY_DATABASE_URL,
    connect_args={"check_same_thread": False},
    poolclass=StaticPool,
)
TestingSessionLocal = sessionmaker(autocommit=False, autoflush=False, bind=engine)


@pytest.fixture(autouse=True)
def fake_redis(monkeypatch):
    """Each test gets an empty in-memory Redis behind the read cache."""
    client = fakeredis.FakeRedis(server=fakeredis.FakeServer(), decode_responses=True)
    monkeypatch.setattr(read_cache, "_read_cache", ReadCache(lambda: client, ttl_seconds=60))
    yield client
    client.flushall()


@pytest.fixture(scope="function")
def db_session():
    """
    Create a fresh database session for each test.
    Uses SQLite in-memory for isolation.
    """
    Base.metadata.create_all(bind=engine)

    session = TestingSessionLocal()
    try:
        yield session
    finally:
        session.close()
        Base.metadata.drop_all(bind=engine)


@pytest.fixture(scope="function")
def client(db_session):
    """
    Create a test client with database session override.
    """
    def override_get_db():
        try:
            yield db_session
        finally:
            pass

    app.dependency_overrides[get_db] = override_get_db

    with TestClient(app) as test_client:
        yield test_client

    app.dependency_overrides.clear()


# =============================================================================
# Organization fixtures
# =============================================================================


@pytest.fixture
def seed_company(db_session):
    company = Company(
        id=COMPANY_ID,
        name="Acme Schools",
        code="ACME",
        status="active",
        country="Chile",
    )
    db_session.add(company)
    db_session.commit()
    db_session.refresh(company)
    return company


@pytest.fixture
def seed_other_company(db_session):
    company = Company(id=OTHER_COMPANY_ID, name="Other Group", code="OTHER", status="active")
    db_session.add(company)
    db_session.commit()
    db_session.refresh(company)
    return company


@pytest.fixture
def seed_schools(db_session, seed_company):
    """Two schools of the test company: North (S1) and South (S2)."""
    north = School(id="school-1", company_id=seed_company.id, name="North Campus", code="NTH")
    south = School(id="school-2", company_id=seed_company.id, name="South Campus", code="STH")
    db_session.add_all([north, south])
    db_session.commit()
    return north, south


@pytest.fixture
def seed_branches(db_session, seed_schools):
    """One branch per school."""
    north, south = seed_schools
    north_branch = Branch(
        id="branch-1",
        company_id=north.company_id,
        school_id=north.id,
        name="North Primary",
        code="NTH-P",
    )
    south_branch = Branch(
        id="branch-2",
        company_id=south.company_id,
        school_id=south.id,
        name="South Primary",
        code="STH-P",
    )
    db_session.add_all([north_branch, south_branch])
    db_session.commit()
    return north_branch, south_branch


# =============================================================================
# Auth fixtures
# =============================================================================


@pytest.fixture
def make_headers():
    """
    Factory for Authorization headers.

        headers = make_headers(["SCHOOL_ADMIN"], school_ids=["school-1"])
    """
    def _make(
        roles=("ENTITY_ADMIN",),
        school_ids=(),
        branch_ids=(),
        company_id=COMPANY_ID,
        email="admin@acme.test",
    ):
        token = sign_jwt(
            {
                "sub": "user-1",
                "email": email,
                "company_id": company_id,
                "roles": list(roles),
                "school_ids": list(school_ids),
                "branch_ids": list(branch_ids),
            }
        )
        return {"Authorization": f"Bearer {token}"}

    return _make


@pytest.fixture
def auth_headers(make_headers):
    """ENTITY_ADMIN of the test company: unscoped, may write configuration."""
    return make_headers()


@pytest.fixture
def school_admin_headers(make_headers):
    """SCHOOL_ADMIN limited to the North school."""
    return make_headers(["SCHOOL_ADMIN"], school_ids=["school-1"])


@pytest.fixture
def branch_admin_headers(make_headers):
    """BRANCH_ADMIN of the North primary branch (read-only configuration)."""
    return make_headers(["BRANCH_ADMIN"], school_ids=["school-1"], branch_ids=["branch-1"])
