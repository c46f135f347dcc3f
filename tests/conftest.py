"""Pytest configuration and fixtures."""

import os
import time as time_module
from datetime import time
from decimal import Decimal
from unittest.mock import AsyncMock

import pytest
from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker, create_async_engine
from sqlalchemy.pool import StaticPool

from consult_core.config import Settings
from consult_core.database.models import AvailabilityWindow, Base, LawyerProfile, User
from consult_core.services.availability_service import AvailabilityResolver
from consult_core.services.booking_service import BookingTransactionManager
from consult_core.services.consultations_service import ConsultationsService
from consult_core.services.credential_service import SessionCredentialIssuer
from consult_core.services.lifecycle_service import ConsultationLifecycleService
from consult_core.services.locks import LawyerLockRegistry
from consult_core.services.messages_service import MessagesService
from consult_core.services.notification_service import NotificationDispatcher
from helpers import ADMIN_ID, CLIENT_ID, LAWYER_ID, OTHER_CLIENT_ID, OUTSIDER_ID, FakeClock, RecordingNotifier

# Test database URL (in-memory SQLite for unit tests)
TEST_DATABASE_URL = "sqlite+aiosqlite:///:memory:"


@pytest.fixture
async def engine():
    """Create test database engine."""
    engine = create_async_engine(
        TEST_DATABASE_URL,
        connect_args={"check_same_thread": False},
        poolclass=StaticPool,
    )

    async with engine.begin() as conn:
        await conn.run_sync(Base.metadata.create_all)

    yield engine

    async with engine.begin() as conn:
        await conn.run_sync(Base.metadata.drop_all)

    await engine.dispose()


@pytest.fixture
def session_factory(engine):
    return async_sessionmaker(engine, class_=AsyncSession, expire_on_commit=False)


@pytest.fixture
async def session(session_factory):
    """Create test database session."""
    async with session_factory() as session:
        yield session
        await session.rollback()


@pytest.fixture
def settings():
    return Settings()


@pytest.fixture
def clock():
    return FakeClock()


@pytest.fixture
def notifier():
    return RecordingNotifier()


@pytest.fixture
def dispatcher(notifier):
    return NotificationDispatcher(notifier)


@pytest.fixture
def lock_registry():
    return LawyerLockRegistry()


@pytest.fixture
async def seeded(session_factory):
    """Users plus one active lawyer with a Monday template."""
    async with session_factory() as session:
        session.add_all(
            [
                User(id=LAWYER_ID, email="lawyer@example.com", name="Lawyer", role="lawyer"),
                User(id=CLIENT_ID, email="client@example.com", name="Client"),
                User(id=OTHER_CLIENT_ID, email="client2@example.com", name="Other Client"),
                User(id=OUTSIDER_ID, email="outsider@example.com", name="Outsider"),
                User(id=ADMIN_ID, email="admin@example.com", name="Admin", role="admin"),
            ]
        )
        await session.flush()
        session.add(LawyerProfile(user_id=LAWYER_ID, is_active=True, hourly_rate=Decimal("120.00")))
        await session.flush()
        session.add_all(
            [
                AvailabilityWindow(
                    lawyer_id=LAWYER_ID,
                    day_of_week="monday",
                    position=0,
                    start_time=time(9, 0),
                    end_time=time(12, 0),
                ),
                AvailabilityWindow(
                    lawyer_id=LAWYER_ID,
                    day_of_week="monday",
                    position=1,
                    start_time=time(14, 0),
                    end_time=time(18, 0),
                ),
                AvailabilityWindow(
                    lawyer_id=LAWYER_ID,
                    day_of_week="monday",
                    position=2,
                    start_time=time(19, 0),
                    end_time=time(21, 0),
                    available=False,
                ),
            ]
        )
        await session.commit()
    return session_factory


@pytest.fixture
def booking_manager(seeded, dispatcher, lock_registry, clock, settings):
    return BookingTransactionManager(
        session_factory=seeded,
        dispatcher=dispatcher,
        lock_registry=lock_registry,
        clock=clock,
        settings=settings,
    )


@pytest.fixture
def lifecycle(seeded, dispatcher, lock_registry, clock, settings):
    return ConsultationLifecycleService(
        session_factory=seeded,
        dispatcher=dispatcher,
        lock_registry=lock_registry,
        clock=clock,
        settings=settings,
    )


@pytest.fixture
def resolver(seeded, clock, settings):
    return AvailabilityResolver(session_factory=seeded, clock=clock, settings=settings)


@pytest.fixture
def signaling():
    provider = AsyncMock()
    provider.create_token.return_value = "signed-token"
    return provider


@pytest.fixture
def issuer(seeded, signaling, clock, settings):
    return SessionCredentialIssuer(
        session_factory=seeded, signaling=signaling, clock=clock, settings=settings
    )


@pytest.fixture
def consultations_service(seeded):
    return ConsultationsService(session_factory=seeded)


@pytest.fixture
def messages_service(seeded):
    return MessagesService(session_factory=seeded)



@pytest.fixture
def server_in_utc():
    """Run the test with the process timezone set to UTC."""
    if not hasattr(time_module, "tzset"):
        pytest.skip("process timezone cannot be changed on this platform")
    previous = os.environ.get("TZ")
    os.environ["TZ"] = "UTC"
    time_module.tzset()
    yield
    if previous is None:
        del os.environ["TZ"]
    else:
        os.environ["TZ"] = previous
    time_module.tzset()
