"""
Pytest configuration and shared fixtures.
"""
from datetime import date

import pytest
from sqlalchemy import create_engine
from sqlalchemy.orm import sessionmaker
from sqlalchemy.pool import StaticPool

from revision_engine.database import Base
from revision_engine import models  # noqa: F401  (registers tables)
from revision_engine.repositories import SqlCardRepository, SqlRevisionRepository
from revision_engine.schemas import CompetenceCard
from revision_engine.service import RevisionService

TODAY = date(2025, 3, 10)


@pytest.fixture
def today():
    return TODAY


@pytest.fixture
def db_session():
    """Fresh in-memory SQLite database per test."""
    engine = create_engine(
        "sqlite://",
        connect_args={"check_same_thread": False},
        poolclass=StaticPool,
    )
    Base.metadata.create_all(bind=engine)
    session = sessionmaker(bind=engine)()
    try:
        yield session
    finally:
        session.close()
        engine.dispose()


@pytest.fixture
def card_repo(db_session):
    return SqlCardRepository(db_session)


@pytest.fixture
def revision_repo(db_session):
    return SqlRevisionRepository(db_session)


@pytest.fixture
def service(card_repo, revision_repo):
    return RevisionService(card_repo, revision_repo)


@pytest.fixture
def make_card():
    """Factory for competence cards with sensible defaults."""
    def _make(code="CP.MA.N1.1", student_id=1, **overrides):
        values = {
            "student_id": student_id,
            "competence_code": code,
            "easiness_factor": 2.5,
            "repetition_number": 0,
            "interval_days": 0,
        }
        values.update(overrides)
        return CompetenceCard(**values)
    return _make
