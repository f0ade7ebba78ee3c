"""Pytest configuration and fixtures."""

import json
import os

# settings are read at import time
os.environ.setdefault("DATABASE_URL", "sqlite:///./studio-booking-test.db")
os.environ.setdefault("ENV", "test")

import pytest
from sqlalchemy import create_engine
from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker
from sqlalchemy.pool import NullPool
from sqlmodel import Session, SQLModel

from studio_booking.core.db import build_engine
from studio_booking.models.provider import ProviderSettings
from studio_booking.services.work_windows import WorkSchedule

WEEKDAYS_9_TO_5 = [
    {"day": day, "enabled": True, "startTime": "09:00", "endTime": "17:00"}
    for day in ("Monday", "Tuesday", "Wednesday", "Thursday", "Friday")
] + [
    {"day": "Saturday", "enabled": False, "startTime": "09:00", "endTime": "17:00"},
    {"day": "Sunday", "enabled": False, "startTime": "09:00", "endTime": "17:00"},
]

EVERY_DAY_9_TO_5 = [
    {"day": day, "enabled": True, "startTime": "09:00", "endTime": "17:00"}
    for day in ("Monday", "Tuesday", "Wednesday", "Thursday", "Friday", "Saturday", "Sunday")
]

SERVICES = [
    {"name": "Sleeve", "duration": 180, "price": 45000, "sittings": 3},
    {"name": "Flash", "duration": 60, "price": 15000, "sittings": 1},
]


@pytest.fixture
def weekday_schedule() -> WorkSchedule:
    """Mon-Fri 09:00-17:00, weekends closed."""
    return WorkSchedule.from_entries(WEEKDAYS_9_TO_5)


@pytest.fixture
def daily_schedule() -> WorkSchedule:
    """Open 09:00-17:00 every day."""
    return WorkSchedule.from_entries(EVERY_DAY_9_TO_5)


@pytest.fixture
def db_url(tmp_path) -> str:
    return f"sqlite:///{tmp_path / 'booking.db'}"


@pytest.fixture
def sync_engine(db_url):
    """Plain SQLite engine used to create tables and seed rows."""
    engine = create_engine(db_url)
    SQLModel.metadata.create_all(engine)
    yield engine
    engine.dispose()


@pytest.fixture
def session_maker(db_url, sync_engine) -> async_sessionmaker[AsyncSession]:
    # NullPool: every session gets its own connection, as concurrent requests would
    engine = build_engine(db_url, poolclass=NullPool)
    return async_sessionmaker(engine, class_=AsyncSession, expire_on_commit=False)


@pytest.fixture
def provider(sync_engine) -> ProviderSettings:
    """Provider "artist-1" in Sydney, open Mon-Fri 09:00-17:00."""
    row = ProviderSettings(
        provider_id="artist-1",
        business_name="Ink Lab",
        time_zone="Australia/Sydney",
        work_schedule=json.dumps(WEEKDAYS_9_TO_5),
        services=json.dumps(SERVICES),
    )
    with Session(sync_engine) as s:
        s.add(row)
        s.commit()
        s.refresh(row)
    return row


@pytest.fixture
def weekday_entries() -> list[dict]:
    return [dict(e) for e in WEEKDAYS_9_TO_5]


@pytest.fixture
def service_catalogue() -> list[dict]:
    return [dict(s) for s in SERVICES]
