import os

# must be set before anything under app/ reads settings
os.environ.setdefault("POSTGRES_DSN", "sqlite+aiosqlite:///:memory:")
os.environ["ENV"] = "test"
os.environ["CACHE_PROVIDER"] = "memory"
os.environ["EVENT_BUS_PROVIDER"] = "noop"

import uuid
from datetime import date, time
from decimal import Decimal

import pytest
from sqlalchemy.ext.asyncio import create_async_engine, async_sessionmaker, AsyncSession
from sqlalchemy.pool import StaticPool

from app.core.base import Base
from app.core.db import import_models
from app.modules.directory.models import Barber, Service, Client
from app.modules.availability.models import WorkHourRule, BreakRule, DateException
from app.modules.appointments.models import Appointment
from app.platform.adapters.cache_memory import MemoryCache

DAY = date(2026, 10, 19)


class RecordingBus:
    def __init__(self):
        self.events = []

    async def publish(self, topic: str, key: str, value: dict, headers: dict | None = None) -> None:
        self.events.append((topic, key, value))


class Seed:
    """Small helpers to put source rows in the test database."""

    def __init__(self, session: AsyncSession):
        self.s = session

    async def _add(self, obj):
        self.s.add(obj)
        await self.s.flush()
        return obj

    async def barber(self, org_id: uuid.UUID, name: str = "Joao", active: bool = True) -> Barber:
        return await self._add(Barber(org_id=org_id, name=name, active=active))

    async def service(self, org_id: uuid.UUID, price: str = "40.00", name: str = "Corte") -> Service:
        return await self._add(Service(org_id=org_id, name=name, price=Decimal(price)))

    async def client(self, org_id: uuid.UUID, name: str = "Carlos", phone: str | None = "11999990000") -> Client:
        return await self._add(Client(org_id=org_id, full_name=name, phone=phone))

    async def work_hours(self, barber: Barber, weekday: int, start: int, end: int) -> WorkHourRule:
        return await self._add(WorkHourRule(org_id=barber.org_id, barber_id=barber.id, weekday=weekday, start_minute=start, end_minute=end))

    async def brk(self, barber: Barber, weekday: int, start: int, end: int) -> BreakRule:
        return await self._add(BreakRule(org_id=barber.org_id, barber_id=barber.id, weekday=weekday, start_minute=start, end_minute=end))

    async def closed(self, barber: Barber, on: date) -> DateException:
        return await self._add(DateException(org_id=barber.org_id, barber_id=barber.id, exception_date=on, is_closed=True))

    async def appointment(self, barber: Barber, client: Client | None, on: date, at: time, status: str = "confirmed", duration: int = 30, service: Service | None = None) -> Appointment:
        return await self._add(Appointment(
            org_id=barber.org_id,
            barber_id=barber.id,
            client_id=client.id if client else None,
            service_id=service.id if service else None,
            appointment_date=on,
            appointment_time=at,
            duration_minutes=duration,
            status=status,
        ))


@pytest.fixture
async def engine():
    import_models()
    eng = create_async_engine(
        "sqlite+aiosqlite://",
        poolclass=StaticPool,
        connect_args={"check_same_thread": False},
    )
    async with eng.begin() as conn:
        await conn.run_sync(Base.metadata.create_all)
    yield eng
    await eng.dispose()


@pytest.fixture
def session_factory(engine):
    return async_sessionmaker(engine, expire_on_commit=False, class_=AsyncSession)


@pytest.fixture
async def session(session_factory):
    async with session_factory() as s:
        yield s


@pytest.fixture
def seed(session):
    return Seed(session)


@pytest.fixture
def bus():
    return RecordingBus()


@pytest.fixture
def cache():
    return MemoryCache()
