"""
Test configuration and fixtures.
Importing partner_onboarding.main is deferred to the client fixture so service-level
tests only need db_session.
"""
import os

# Settings are read at import time; keep the app off the on-disk default database.
os.environ.setdefault("DATABASE_URL", "sqlite:///:memory:")

import pytest
from sqlalchemy import create_engine
from sqlalchemy.orm import sessionmaker
from sqlalchemy.pool import StaticPool

from partner_onboarding.db import Base, get_db
from partner_onboarding.models import OnboardingStage
from partner_onboarding.services import onboarding_service

# Test database URL (in-memory SQLite)
SQLALCHEMY_DATABASE_URL = "sqlite:///:memory:"

# Create test engine
engine = create_engine(
    SQLALCHEMY_DATABASE_URL,
    connect_args={"check_same_thread": False},
    poolclass=StaticPool,
)

# Create test session
TestingSessionLocal = sessionmaker(autocommit=False, autoflush=False, bind=engine)


@pytest.fixture(scope="function")
def db_session():
    """Create a fresh database session for each test."""
    Base.metadata.create_all(bind=engine)
    session = TestingSessionLocal()
    try:
        yield session
    finally:
        session.close()
        Base.metadata.drop_all(bind=engine)


@pytest.fixture(scope="function")
def client(db_session):
    """Create a test client with database session override."""
    from fastapi.testclient import TestClient
    from partner_onboarding.main import app

    def override_get_db():
        try:
            yield db_session
        finally:
            pass

    app.dependency_overrides[get_db] = override_get_db
    with TestClient(app) as test_client:
        yield test_client
    app.dependency_overrides.clear()


def complete_required_tasks(db, partner_id, stage):
    """Tick every required task of one stage through the service."""
    onboarding = onboarding_service.get_onboarding(db, partner_id)
    for task in list(onboarding.stage_state(stage).tasks):
        if task.required and not task.completed:
            onboarding = onboarding_service.toggle_task(db, partner_id, stage, task.id, True, actor="tester")
    return onboarding


@pytest.fixture
def started_partner(db_session):
    """A partner that has just entered onboarding (outreach, nothing ticked)."""
    onboarding_service.start_onboarding(db_session, "partner-001", actor="tester")
    return "partner-001"


@pytest.fixture
def onboarded_partner(db_session):
    """A partner moved to the onboarded stage with its required tasks done."""
    partner_id = "partner-onb"
    onboarding_service.start_onboarding(db_session, partner_id, actor="tester")
    onboarding_service.apply_stage_change(db_session, partner_id, OnboardingStage.ONBOARDED, actor="tester")
    complete_required_tasks(db_session, partner_id, OnboardingStage.ONBOARDED)
    return partner_id
