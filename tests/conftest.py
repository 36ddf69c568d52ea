import os

os.environ.setdefault("RATE_LIMIT_ENABLED", "false")

from datetime import timedelta

import pytest
from httpx import AsyncClient, ASGITransport
from sqlalchemy.ext.asyncio import create_async_engine, AsyncSession, async_sessionmaker
from sqlalchemy.pool import NullPool

from app import create_app
from app.apis.deps import get_db
from app.cores.db import Base
from app.cores.token import create_access_token
from app.models.coaching.booking_request import CoachingBookingRequest
from app.models.coaching.coaching_profile import TutorCoachingProfile
from app.services.utils.datetime_service import get_utc_now

TUTOR_ID = 7
STUDENT_ID = 42


# Base de datos de prueba: un archivo por test para poder abrir varias sesiones
@pytest.fixture
async def session_factory(tmp_path):
    engine_test = create_async_engine(
        f"sqlite+aiosqlite:///{tmp_path / 'coaching_test.db'}",
        poolclass=NullPool
    )
    async with engine_test.begin() as conn:
        await conn.run_sync(Base.metadata.create_all)

    yield async_sessionmaker(engine_test, class_=AsyncSession, expire_on_commit=False, autoflush=False)

    await engine_test.dispose()


@pytest.fixture
async def db(session_factory):
    async with session_factory() as session:
        yield session


@pytest.fixture
async def client(session_factory):
    app = create_app()

    async def override_get_db():
        async with session_factory() as session:
            yield session

    # Sobrescribe get_db con la base de datos de prueba
    app.dependency_overrides[get_db] = override_get_db

    transport = ASGITransport(app=app)
    async with AsyncClient(transport=transport, base_url="http://test") as test_client:
        yield test_client


def get_tutor_headers(tutor_id: int = TUTOR_ID) -> dict:
    token = create_access_token({
        "user_id": 100 + tutor_id,
        "user_type": "sole_tutor",
        "tutor": {"id": tutor_id, "fname": "Ada", "lname": "Obi"},
    })
    return {"Authorization": f"Bearer {token}"}


def get_student_headers(student_id: int = STUDENT_ID) -> dict:
    token = create_access_token({"user_id": student_id, "user_type": "student"})
    return {"Authorization": f"Bearer {token}"}


@pytest.fixture
def tutor_headers():
    return get_tutor_headers()


@pytest.fixture
def student_headers():
    return get_student_headers()


@pytest.fixture
async def coaching_profile(db):
    profile = TutorCoachingProfile(
        tutor_id=TUTOR_ID,
        tutor_type="sole_tutor",
        hourly_rate=1500,
        currency="NGN",
        min_duration_minutes=30,
        max_duration_minutes=120,
        timezone="Africa/Lagos",
    )
    db.add(profile)
    await db.commit()
    await db.refresh(profile)
    return profile


@pytest.fixture
def make_booking(db):
    """Inserta una solicitud directamente, sin pasar por las validaciones de creación."""
    async def _make_booking(**overrides) -> CoachingBookingRequest:
        start = get_utc_now().replace(microsecond=0) + timedelta(days=3)
        values = {
            "student_id": STUDENT_ID,
            "tutor_id": TUTOR_ID,
            "tutor_type": "sole_tutor",
            "topic": "Financial modelling",
            "proposed_start_time": start,
            "proposed_end_time": start + timedelta(minutes=90),
            "proposed_duration_minutes": 90,
            "status": "pending",
            "hourly_rate": 1500,
            "estimated_price": 2250,
            "currency": "NGN",
            "expires_at": get_utc_now() + timedelta(hours=48),
        }
        values.update(overrides)
        booking = CoachingBookingRequest(**values)
        db.add(booking)
        await db.commit()
        await db.refresh(booking)
        return booking

    return _make_booking
