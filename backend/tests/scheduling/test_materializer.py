"""Tests for expanding schedules into class instances."""

from __future__ import annotations

import uuid
from datetime import UTC, date, datetime, time

import pytest

from studio.core.settings import EngineSettings
from studio.models import BookingStatus, RestrictionBehavior
from studio.scheduling import BookingEngine, InstanceOverrides, NotFound, Viewer
from studio.scheduling.store import StaticMembershipDirectory

pytestmark = pytest.mark.asyncio


async def test_default_window_covers_booking_horizon(engine, schedule) -> None:
    instances = await engine.materialize()

    assert [inst.class_date for inst in instances] == [
        date(2026, 3, 9),
        date(2026, 3, 16),
    ]
    first = instances[0]
    assert first.start_at == datetime(2026, 3, 9, 18, 0, tzinfo=UTC)
    assert first.end_at == datetime(2026, 3, 9, 19, 0, tzinfo=UTC)
    assert first.available_spots == 2
    assert first.cancellation_deadline == datetime(2026, 3, 9, 16, 0, tzinfo=UTC)
    assert first.is_bookable


async def test_materialize_is_idempotent(engine, schedule, class_date) -> None:
    await engine.book(uuid.uuid4(), schedule.id, class_date)

    first = await engine.materialize(start=date(2026, 3, 5), days=14)
    second = await engine.materialize(start=date(2026, 3, 5), days=14)

    assert first == second
    assert first[0].booked_count == 1


async def test_deleted_absent_and_cancelled_flagged(engine, schedule) -> None:
    await engine.cancel_instance(schedule.id, date(2026, 3, 9))
    await engine.delete_instance_silently(schedule.id, date(2026, 3, 16))

    instances = await engine.materialize(start=date(2026, 3, 5), days=21)

    assert [inst.class_date for inst in instances] == [
        date(2026, 3, 9),
        date(2026, 3, 23),
    ]
    assert instances[0].is_cancelled
    assert not instances[0].is_bookable
    assert not instances[1].is_cancelled


async def test_started_classes_only_in_management_view(engine, schedule, clock) -> None:
    clock.set(datetime(2026, 3, 9, 18, 30, tzinfo=UTC))

    booking_view = await engine.materialize(start=date(2026, 3, 9), days=1)
    management_view = await engine.materialize(
        start=date(2026, 3, 9), days=1, include_past=True
    )

    assert booking_view == []
    assert [inst.class_date for inst in management_view] == [date(2026, 3, 9)]


async def test_window_end_is_exclusive(engine, schedule) -> None:
    short = await engine.materialize(start=date(2026, 3, 10), days=6)
    week = await engine.materialize(start=date(2026, 3, 10), days=7)

    assert short == []
    assert [inst.class_date for inst in week] == [date(2026, 3, 16)]


async def test_schedule_window_bounds_occurrences(engine, schedule_factory) -> None:
    schedule_factory(start_date=date(2026, 3, 10), end_date=date(2026, 3, 20))

    instances = await engine.materialize(start=date(2026, 3, 5), days=28)

    assert [inst.class_date for inst in instances] == [date(2026, 3, 16)]


async def test_sorted_by_start_then_schedule(engine, schedule_factory) -> None:
    evening = schedule_factory(start_time=time(18, 0))
    morning = schedule_factory(start_time=time(7, 0))
    tuesday = schedule_factory(days_of_week=[2], start_time=time(6, 0))

    instances = await engine.materialize(start=date(2026, 3, 9), days=2)

    assert [inst.schedule_id for inst in instances] == [
        morning.id,
        evening.id,
        tuesday.id,
    ]


async def test_location_filter(engine, schedule_factory) -> None:
    here = uuid.uuid4()
    mine = schedule_factory(location_id=here)
    schedule_factory()

    instances = await engine.materialize(location_id=here, start=date(2026, 3, 9), days=1)

    assert [inst.schedule_id for inst in instances] == [mine.id]


async def test_home_calendar_uses_participant_location(
    store, clock, schedule_factory
) -> None:
    home = uuid.uuid4()
    member = uuid.uuid4()
    local = schedule_factory(location_id=home)
    schedule_factory()
    engine = BookingEngine(
        store,
        settings=EngineSettings(timezone="UTC"),
        clock=clock,
        membership=StaticMembershipDirectory(locations={member: home}),
    )
    await engine.book(member, local.id, date(2026, 3, 9))

    instances = await engine.home_calendar(member, start=date(2026, 3, 9), days=1)

    assert [inst.schedule_id for inst in instances] == [local.id]
    assert instances[0].my_status is BookingStatus.BOOKED
    with pytest.raises(NotFound):
        await engine.home_calendar(uuid.uuid4())


async def test_hidden_category_dropped_for_viewer(engine, schedule) -> None:
    viewer = Viewer(
        participant_id=uuid.uuid4(), restrictions={"yoga": RestrictionBehavior.HIDE}
    )

    instances = await engine.materialize(start=date(2026, 3, 9), days=1, viewer=viewer)

    assert instances == []


async def test_show_lock_marks_instances_restricted(engine, schedule) -> None:
    viewer = Viewer(
        participant_id=uuid.uuid4(),
        restrictions={"Yoga": RestrictionBehavior.SHOW_LOCK},
    )

    instances = await engine.materialize(start=date(2026, 3, 9), days=1, viewer=viewer)

    assert len(instances) == 1
    assert instances[0].is_restricted


async def test_viewer_flags(engine, schedule, class_date) -> None:
    alice, bob, carol = uuid.uuid4(), uuid.uuid4(), uuid.uuid4()
    await engine.book(alice, schedule.id, class_date)
    await engine.book(bob, schedule.id, class_date)
    waitlisted = await engine.book(carol, schedule.id, class_date)

    as_carol = await engine.materialize(
        start=class_date, days=1, viewer=Viewer(participant_id=carol)
    )
    as_coach = await engine.materialize(
        start=class_date, days=1, viewer=Viewer(coach_id=schedule.coach_id)
    )

    instance = as_carol[0]
    assert instance.is_full
    assert instance.is_bookable
    assert instance.my_booking_id == waitlisted.id
    assert instance.my_waitlist_position == 1
    assert not instance.is_mine
    assert as_coach[0].is_mine
    assert as_coach[0].my_booking_id is None


async def test_edited_instance_reflects_overrides(engine, schedule, class_date) -> None:
    await engine.edit_instance(
        schedule.id,
        class_date,
        InstanceOverrides(start_time=time(19, 0), special_label="Outdoor"),
    )

    instances = await engine.materialize(start=class_date, days=8)

    assert instances[0].is_modified
    assert instances[0].start_at == datetime(2026, 3, 9, 19, 0, tzinfo=UTC)
    assert instances[0].special_label == "Outdoor"
    assert not instances[1].is_modified


async def test_negative_days_rejected(engine, schedule) -> None:
    with pytest.raises(ValueError):
        await engine.materialize(start=date(2026, 3, 9), days=-1)


async def test_schedule_without_definition_is_skipped(engine, schedule_factory) -> None:
    schedule_factory(class_definition_id=uuid.uuid4())

    instances = await engine.materialize(start=date(2026, 3, 9), days=1)

    assert instances == []
