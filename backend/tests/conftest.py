"""Test fixtures for the studio booking backend."""
from __future__ import annotations

import os
import uuid
from collections.abc import AsyncIterator
from datetime import UTC, date, datetime, time

import pytest
import pytest_asyncio
from httpx import ASGITransport, AsyncClient
from sqlalchemy.ext.asyncio import create_async_engine

os.environ.setdefault("DATABASE_URL", "sqlite+aiosqlite:///./test.db")
os.environ.setdefault("STUDIO_TIMEZONE", "UTC")

from studio.api import deps
from studio.core.config import get_settings
from studio.core.settings import EngineSettings
from studio.db.base import Base
from studio.db.session import dispose_engine, get_sessionmaker
from studio.main import app
from studio.models import (
    ClassDefinition,
    Location,
    Participant,
    RecurringSchedule,
    RestrictionBehavior,
)
from studio.scheduling import BookingEngine, FixedClock
from studio.scheduling.store import (
    InMemoryStore,
    RecordingDispatcher,
    StaticMembershipDirectory,
)

# Thursday before the Monday class used throughout the suite.
NOW = datetime(2026, 3, 5, 12, 0, tzinfo=UTC)
CLASS_DATE = date(2026, 3, 9)
CLASS_START = datetime(2026, 3, 9, 18, 0, tzinfo=UTC)


def make_definition(**overrides) -> ClassDefinition:
    values = {
        "id": uuid.uuid4(),
        "name": "Yoga",
        "default_duration_minutes": 60,
        "color": "#4caf50",
        "has_waitlist": None,
    }
    values.update(overrides)
    return ClassDefinition(**values)


def make_schedule(definition: ClassDefinition, **overrides) -> RecurringSchedule:
    values = {
        "id": uuid.uuid4(),
        "location_id": uuid.uuid4(),
        "class_definition_id": definition.id,
        "coach_id": uuid.uuid4(),
        "days_of_week": [1],
        "start_time": time(18, 0),
        "duration_minutes": 60,
        "max_participants": 2,
        "start_date": date(2026, 1, 1),
        "end_date": date(2026, 12, 31),
        "has_waitlist": True,
        "special_label": None,
    }
    values.update(overrides)
    return RecurringSchedule(**values)


@pytest.fixture()
def clock() -> FixedClock:
    return FixedClock(NOW)


@pytest.fixture()
def store() -> InMemoryStore:
    return InMemoryStore()


@pytest.fixture()
def dispatcher() -> RecordingDispatcher:
    return RecordingDispatcher()


@pytest.fixture()
def definition(store: InMemoryStore) -> ClassDefinition:
    return store.add_definition(make_definition())


@pytest.fixture()
def schedule_factory(store: InMemoryStore, definition: ClassDefinition):
    """Register a Monday 18:00 schedule; keyword arguments override fields."""

    def _factory(**overrides) -> RecurringSchedule:
        return store.add_schedule(make_schedule(definition, **overrides))

    return _factory


@pytest.fixture()
def schedule(schedule_factory) -> RecurringSchedule:
    return schedule_factory()


@pytest.fixture()
def class_date() -> date:
    return CLASS_DATE


@pytest.fixture()
def class_start() -> datetime:
    return CLASS_START


@pytest.fixture()
def membership() -> StaticMembershipDirectory:
    return StaticMembershipDirectory()


@pytest.fixture()
def engine(
    store: InMemoryStore,
    clock: FixedClock,
    dispatcher: RecordingDispatcher,
    membership: StaticMembershipDirectory,
) -> BookingEngine:
    return BookingEngine(
        store,
        settings=EngineSettings(timezone="UTC"),
        clock=clock,
        membership=membership,
        dispatcher=dispatcher,
    )


@pytest.fixture(scope="session")
def db_url(tmp_path_factory: pytest.TempPathFactory) -> str:
    """Provide a temporary SQLite database URL for the test session."""
    db_path = tmp_path_factory.mktemp("db") / "test.db"
    return f"sqlite+aiosqlite:///{db_path}"


@pytest_asyncio.fixture()
async def reset_database(db_url: str) -> AsyncIterator[None]:
    """Drop and recreate the database schema for an isolated test."""
    os.environ["DATABASE_URL"] = db_url
    get_settings.cache_clear()
    get_settings()

    await dispose_engine(db_url)
    engine = create_async_engine(db_url, future=True)
    async with engine.begin() as connection:
        await connection.run_sync(Base.metadata.drop_all)
        await connection.run_sync(Base.metadata.create_all)
    await engine.dispose()
    yield
    await dispose_engine(db_url)


@pytest_asyncio.fixture()
async def app_context(
    reset_database: AsyncIterator[None], db_url: str
) -> AsyncIterator[dict[str, object]]:
    """Yield an async client, a fixed clock and seeded catalog data."""
    sessionmaker = get_sessionmaker(db_url)
    coach_id = uuid.uuid4()
    manager_id = uuid.uuid4()

    async with sessionmaker() as session:
        location = Location(name="Downtown Studio", city="Cedar Rapids")
        session.add(location)
        yoga = ClassDefinition(name="Yoga", default_duration_minutes=60, color="#4caf50")
        boxing = ClassDefinition(name="Boxing", default_duration_minutes=45)
        open_gym = ClassDefinition(name="Open Gym")
        session.add_all([yoga, boxing, open_gym])
        await session.flush()

        schedule = RecurringSchedule(
            location_id=location.id,
            class_definition_id=yoga.id,
            coach_id=coach_id,
            days_of_week=[1],
            start_time=time(18, 0),
            duration_minutes=60,
            max_participants=2,
            start_date=date(2026, 1, 1),
            end_date=date(2026, 12, 31),
            has_waitlist=True,
        )
        boxing_schedule = RecurringSchedule(
            location_id=location.id,
            class_definition_id=boxing.id,
            coach_id=coach_id,
            days_of_week=[1, 3],
            start_time=time(7, 0),
            duration_minutes=45,
            max_participants=10,
            start_date=date(2026, 1, 1),
            end_date=date(2026, 12, 31),
        )
        session.add_all([schedule, boxing_schedule])

        participants = {
            name: Participant(location_id=location.id, display_name=name)
            for name in ("alice", "bob", "carol", "dave")
        }
        participants["erin"] = Participant(
            location_id=location.id,
            display_name="erin",
            restricted_categories={"boxing": RestrictionBehavior.HIDE.value},
        )
        session.add_all(participants.values())
        await session.commit()

        context: dict[str, object] = {
            "location_id": location.id,
            "definition_id": yoga.id,
            "boxing_definition_id": boxing.id,
            "no_duration_definition_id": open_gym.id,
            "schedule_id": schedule.id,
            "boxing_schedule_id": boxing_schedule.id,
            "coach_id": coach_id,
            "manager_id": manager_id,
            "participants": {name: p.id for name, p in participants.items()},
        }

    clock = FixedClock(NOW)
    app.dependency_overrides[deps.get_clock] = lambda: clock
    context["clock"] = clock

    transport = ASGITransport(app=app)
    async with AsyncClient(transport=transport, base_url="http://test") as client:
        context["client"] = client
        yield context
    app.dependency_overrides.clear()
