"""
Pytest configuration and fixtures.

Every test gets a fresh in-memory SQLite database.
"""
import os
import tempfile

# Point the app at throwaway storage before any tracker module is imported
os.environ.setdefault("TRACKER_DATABASE_URL", "sqlite://")
os.environ.setdefault("TRACKER_LOG_DIR", tempfile.mkdtemp(prefix="tracker-logs-"))

import pytest
from datetime import date, datetime, timedelta
from sqlalchemy import create_engine
from sqlalchemy.orm import sessionmaker
from sqlalchemy.pool import StaticPool

from tracker.database import Base
from tracker.models import Discipline, DisciplineCheck, serialize_specific_days
from tracker.constants import Weekday


@pytest.fixture
def db_session():
    """Session bound to a private in-memory database"""
    engine = create_engine(
        "sqlite://",
        connect_args={"check_same_thread": False},
        poolclass=StaticPool,
    )
    Base.metadata.create_all(bind=engine)
    TestingSession = sessionmaker(autocommit=False, autoflush=False, bind=engine)

    session = TestingSession()
    try:
        yield session
    finally:
        session.close()
        Base.metadata.drop_all(bind=engine)
        engine.dispose()


@pytest.fixture
def today():
    """Fixed reference date: Tuesday 2026-01-20"""
    return date(2026, 1, 20)


@pytest.fixture
def yesterday(today):
    return today - timedelta(days=1)


@pytest.fixture
def make_discipline():
    """Factory for unsaved disciplines with sensible defaults"""
    def _make(frequency="DAILY", specific_days=None, started_at=datetime(2026, 1, 1), **overrides):
        if isinstance(specific_days, (list, tuple)):
            specific_days = serialize_specific_days([Weekday(d.lower()) for d in specific_days])
        fields = dict(
            id=1,
            title="Test Discipline",
            frequency=frequency,
            specific_days=specific_days,
            flexibility_minutes=15,
            status="ACTIVE",
            started_at=started_at,
            created_at=datetime(2026, 1, 1),
            updated_at=datetime(2026, 1, 1),
        )
        fields.update(overrides)
        return Discipline(**fields)
    return _make


@pytest.fixture
def make_check():
    """Factory for unsaved checks; accepts ISO date strings"""
    def _make(day, rating="NAILED_IT", discipline_id=1):
        if isinstance(day, str):
            day = date.fromisoformat(day)
        return DisciplineCheck(discipline_id=discipline_id, date=day, rating=rating)
    return _make


def add_checks(db_session, discipline_id, ratings_by_day):
    """Persist checks given as {date: rating}"""
    for day, rating in ratings_by_day.items():
        db_session.add(DisciplineCheck(discipline_id=discipline_id, date=day, rating=rating))
    db_session.commit()


@pytest.fixture
def seed_checks(db_session):
    def _seed(discipline_id, ratings_by_day):
        add_checks(db_session, discipline_id, ratings_by_day)
    return _seed
