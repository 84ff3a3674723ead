"""Shared fixtures: in-memory SQLite engine, repository and API client."""

from datetime import date

import pytest
from fastapi.testclient import TestClient
from sqlalchemy.pool import StaticPool
from sqlmodel import Session, SQLModel, create_engine

MONDAY = date(2025, 3, 10)
TUESDAY = date(2025, 3, 11)
FRIDAY = date(2025, 3, 14)
SATURDAY = date(2025, 3, 15)
SUNDAY = date(2025, 3, 16)
NEXT_MONDAY = date(2025, 3, 17)


@pytest.fixture
def engine():
    """Fresh in-memory database per test."""
    from clinic_calendar import models  # noqa: F401

    engine = create_engine(
        "sqlite://",
        connect_args={"check_same_thread": False},
        poolclass=StaticPool,
    )
    SQLModel.metadata.create_all(engine)
    yield engine
    engine.dispose()


@pytest.fixture
def session(engine):
    with Session(engine) as session:
        yield session


@pytest.fixture
def repo(session):
    from clinic_calendar.repository import BookingRepository

    return BookingRepository(session)


@pytest.fixture
def client(engine):
    """API client bound to the in-memory database."""
    from clinic_calendar.db import get_session
    from clinic_calendar.main import create_app

    app = create_app()

    def override_session():
        with Session(engine) as session:
            yield session

    app.dependency_overrides[get_session] = override_session
    yield TestClient(app)
    app.dependency_overrides.clear()


def make_appointment(**overrides) -> dict:
    appointment = {
        "dentist": "DC",
        "patient": "Somchai",
        "phone": "0812345678",
        "treatment": "Scaling",
        "duration": "30min",
        "status": "pending",
    }
    appointment.update(overrides)
    return appointment
