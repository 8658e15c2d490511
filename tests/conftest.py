import os
from collections.abc import AsyncGenerator
from dataclasses import dataclass, field
from datetime import timedelta
from uuid import uuid4

# Settings are read at import time, so test defaults go in before any app import
os.environ.setdefault("DATABASE_URL", "sqlite+aiosqlite:///./clinic_scheduler_test.db")
os.environ.setdefault("JWT_SECRET_KEY", "test-secret-key-not-for-production")
os.environ.setdefault("CACHE_ENABLED", "false")
os.environ.setdefault("LOG_FORMAT", "console")

import pytest
import pytest_asyncio
from httpx import ASGITransport, AsyncClient
from sqlalchemy import insert
from sqlalchemy.ext.asyncio import (
    AsyncEngine,
    AsyncSession,
    async_sessionmaker,
    create_async_engine,
)
from sqlalchemy.pool import NullPool

from clinic_scheduler.core.redis_client import get_cache_manager
from clinic_scheduler.core.security import create_access_token, get_password_hash
from clinic_scheduler.database import get_db
from clinic_scheduler.main import app
from clinic_scheduler.models import doctors, metadata, patients
from clinic_scheduler.services.notification_service import get_notifier

TEST_PASSWORD = "Str0ngPassw0rd"


@dataclass
class RecordingNotifier:
    """Notifier fake that remembers every call instead of sending e-mail."""

    booked: list = field(default_factory=list)
    cancelled: list = field(default_factory=list)

    def notify_booked(self, appointment, doctor, patient) -> None:
        self.booked.append((appointment, doctor, patient))

    def notify_cancelled(self, appointment, doctor, patient) -> None:
        self.cancelled.append((appointment, doctor, patient))


@pytest_asyncio.fixture
async def test_engine(tmp_path) -> AsyncGenerator[AsyncEngine, None]:
    """Fresh SQLite database file per test."""
    engine = create_async_engine(
        f"sqlite+aiosqlite:///{tmp_path / 'clinic.db'}",
        poolclass=NullPool,
    )
    async with engine.begin() as conn:
        await conn.run_sync(metadata.create_all)

    yield engine

    await engine.dispose()


@pytest.fixture
def session_factory(test_engine: AsyncEngine) -> async_sessionmaker[AsyncSession]:
    """Session factory bound to the test database."""
    return async_sessionmaker(test_engine, class_=AsyncSession, expire_on_commit=False)


@pytest_asyncio.fixture
async def db_session(
    session_factory: async_sessionmaker[AsyncSession],
) -> AsyncGenerator[AsyncSession, None]:
    """Create a test database session."""
    async with session_factory() as session:
        yield session


@pytest.fixture
def notifier() -> RecordingNotifier:
    return RecordingNotifier()


@pytest_asyncio.fixture
async def client(
    session_factory: async_sessionmaker[AsyncSession],
    notifier: RecordingNotifier,
) -> AsyncGenerator[AsyncClient, None]:
    """Create a test HTTP client; every request gets its own session."""

    async def override_get_db() -> AsyncGenerator[AsyncSession, None]:
        async with session_factory() as session:
            yield session

    app.dependency_overrides[get_db] = override_get_db
    app.dependency_overrides[get_notifier] = lambda: notifier
    app.dependency_overrides[get_cache_manager] = lambda: None

    async with AsyncClient(transport=ASGITransport(app=app), base_url="http://test") as client:
        yield client

    app.dependency_overrides.clear()


async def _insert_doctor(db: AsyncSession, **overrides) -> dict:
    doctor_id = uuid4()
    data = {
        "id": doctor_id,
        "email": f"doctor_{doctor_id.hex[:8]}@clinic-mail.com",
        "password_hash": get_password_hash(TEST_PASSWORD),
        "first_name": "Gregory",
        "last_name": "House",
        "specialty": "Neurologist",
        "experience_years": 20,
        "city": "Princeton",
        "state": "NJ",
        "contact_number": "+15550100",
        "availability_slots": [],
    }
    data.update(overrides)
    await db.execute(insert(doctors).values(**data))
    await db.commit()
    return data


async def _insert_patient(db: AsyncSession, **overrides) -> dict:
    patient_id = uuid4()
    data = {
        "id": patient_id,
        "email": f"patient_{patient_id.hex[:8]}@clinic-mail.com",
        "password_hash": get_password_hash(TEST_PASSWORD),
        "first_name": "Rebecca",
        "last_name": "Adler",
        "medical_history": [],
    }
    data.update(overrides)
    await db.execute(insert(patients).values(**data))
    await db.commit()
    return data


@pytest_asyncio.fixture
async def test_doctor(db_session: AsyncSession) -> dict:
    """Create a test doctor in the database."""
    return await _insert_doctor(db_session)


@pytest_asyncio.fixture
async def other_doctor(db_session: AsyncSession) -> dict:
    """A second doctor with an independent calendar."""
    return await _insert_doctor(db_session, first_name="Lisa", last_name="Cuddy")


@pytest.fixture
def make_doctor(db_session: AsyncSession):
    """Factory for extra directory doctors with overridden columns."""

    async def _make(**overrides) -> dict:
        return await _insert_doctor(db_session, **overrides)

    return _make


@pytest_asyncio.fixture
async def test_patient(db_session: AsyncSession) -> dict:
    """Create a test patient in the database."""
    return await _insert_patient(db_session)


@pytest_asyncio.fixture
async def other_patient(db_session: AsyncSession) -> dict:
    """A second patient."""
    return await _insert_patient(db_session, first_name="Eric", last_name="Foreman")


def _auth_headers(account: dict, role: str) -> dict:
    token_data = {"sub": str(account["id"]), "role": role, "email": account["email"]}
    token = create_access_token(data=token_data, expires_delta=timedelta(minutes=30))
    return {"Authorization": f"Bearer {token}"}


@pytest.fixture
def patient_headers(test_patient: dict) -> dict:
    """Authentication headers for the test patient."""
    return _auth_headers(test_patient, "patient")


@pytest.fixture
def other_patient_headers(other_patient: dict) -> dict:
    return _auth_headers(other_patient, "patient")


@pytest.fixture
def doctor_headers(test_doctor: dict) -> dict:
    """Authentication headers for the test doctor."""
    return _auth_headers(test_doctor, "doctor")


@pytest.fixture
def other_doctor_headers(other_doctor: dict) -> dict:
    return _auth_headers(other_doctor, "doctor")


@pytest.fixture
def booking_payload(test_doctor: dict) -> dict:
    """Booking request for the test doctor on 2024-06-01, 10:00-10:30."""
    return {
        "doctor_id": str(test_doctor["id"]),
        "appointment_date": "2024-06-01",
        "start_time": "10:00",
        "end_time": "10:30",
        "consultation_location": "Princeton-Plainsboro, Room 4",
        "notes": "Recurring headaches",
    }


@pytest.fixture
def account_password() -> str:
    """Plain-text password of the fixture doctor and patient."""
    return TEST_PASSWORD
