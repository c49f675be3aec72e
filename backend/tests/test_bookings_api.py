"""Booking API tests: waitlist, cutoff, check-in and participant listings."""
from __future__ import annotations

import uuid
from datetime import UTC, datetime
from typing import Any

import pytest
from httpx import AsyncClient

from studio.scheduling import FixedClock

pytestmark = pytest.mark.asyncio

CLASS_DATE = "2026-03-09"


def _as(actor_id: uuid.UUID, role: str = "participant") -> dict[str, str]:
    return {"X-Actor-Id": str(actor_id), "X-Actor-Role": role}


async def _book(
    client: AsyncClient,
    schedule_id: uuid.UUID,
    actor_id: uuid.UUID,
    *,
    role: str = "participant",
    participant_id: uuid.UUID | None = None,
    class_date: str = CLASS_DATE,
):
    payload: dict[str, str] = {"schedule_id": str(schedule_id), "class_date": class_date}
    if participant_id is not None:
        payload["participant_id"] = str(participant_id)
    return await client.post("/api/v1/bookings", json=payload, headers=_as(actor_id, role))


async def test_waitlist_promotion_flow(app_context: dict[str, Any]) -> None:
    client: AsyncClient = app_context["client"]
    schedule_id = app_context["schedule_id"]
    people = app_context["participants"]

    alice = await _book(client, schedule_id, people["alice"])
    bob = await _book(client, schedule_id, people["bob"])
    carol = await _book(client, schedule_id, people["carol"])

    assert alice.status_code == 201
    assert alice.json()["status"] == "BOOKED"
    assert bob.json()["status"] == "BOOKED"
    assert carol.json()["status"] == "WAITLISTED"

    again = await _book(client, schedule_id, people["alice"])
    assert again.status_code == 409
    assert again.json()["detail"]["code"] == "already_booked"

    cancel = await client.post(
        f"/api/v1/bookings/{alice.json()['id']}/cancel", headers=_as(people["alice"])
    )
    assert cancel.status_code == 200
    body = cancel.json()
    assert body["booking"]["status"] == "CANCELLED"
    assert body["booking"]["cancel_reason"] == "participant_cancelled"
    assert body["promoted"]["id"] == carol.json()["id"]
    assert body["promoted"]["status"] == "BOOKED"

    notifications = await client.get(
        f"/api/v1/participants/{people['carol']}/notifications",
        headers=_as(people["carol"]),
    )
    assert notifications.status_code == 200
    kinds = [item["kind"] for item in notifications.json()]
    assert kinds == ["waitlist_promoted"]
    assert notifications.json()[0]["payload"]["booking_id"] == carol.json()["id"]


async def test_booking_for_someone_else(app_context: dict[str, Any]) -> None:
    client: AsyncClient = app_context["client"]
    schedule_id = app_context["schedule_id"]
    people = app_context["participants"]

    forbidden = await _book(
        client, schedule_id, people["alice"], participant_id=people["bob"]
    )
    assert forbidden.status_code == 403

    on_behalf = await _book(
        client,
        schedule_id,
        app_context["coach_id"],
        role="coach",
        participant_id=people["dave"],
    )
    assert on_behalf.status_code == 201
    assert on_behalf.json()["participant_id"] == str(people["dave"])

    unknown = await _book(
        client,
        schedule_id,
        app_context["manager_id"],
        role="manager",
        participant_id=uuid.uuid4(),
    )
    assert unknown.status_code == 404


async def test_booking_errors(app_context: dict[str, Any]) -> None:
    client: AsyncClient = app_context["client"]
    people = app_context["participants"]

    off_day = await _book(
        client, app_context["schedule_id"], people["alice"], class_date="2026-03-10"
    )
    assert off_day.status_code == 404
    assert off_day.json()["detail"]["code"] == "not_found"

    hidden = await _book(
        client, app_context["boxing_schedule_id"], people["erin"], class_date="2026-03-11"
    )
    assert hidden.status_code == 404

    allowed = await _book(
        client, app_context["boxing_schedule_id"], people["alice"], class_date="2026-03-11"
    )
    assert allowed.status_code == 201

    unknown_schedule = await _book(client, uuid.uuid4(), people["alice"])
    assert unknown_schedule.status_code == 404


async def test_cancellation_cutoff(app_context: dict[str, Any]) -> None:
    client: AsyncClient = app_context["client"]
    clock: FixedClock = app_context["clock"]
    people = app_context["participants"]
    booking = await _book(client, app_context["schedule_id"], people["alice"])
    booking_id = booking.json()["id"]

    clock.set(datetime(2026, 3, 9, 16, 0, tzinfo=UTC))
    late = await client.post(
        f"/api/v1/bookings/{booking_id}/cancel", headers=_as(people["alice"])
    )
    assert late.status_code == 409
    assert late.json()["detail"]["code"] == "past_cutoff"

    by_staff = await client.post(
        f"/api/v1/bookings/{booking_id}/cancel",
        headers=_as(app_context["coach_id"], "coach"),
    )
    assert by_staff.status_code == 200
    assert by_staff.json()["booking"]["cancel_reason"] == "coach_cancelled"

    twice = await client.post(
        f"/api/v1/bookings/{booking_id}/cancel",
        headers=_as(app_context["coach_id"], "coach"),
    )
    assert twice.status_code == 409
    assert twice.json()["detail"]["code"] == "invalid_transition"


async def test_cancel_someone_elses_booking(app_context: dict[str, Any]) -> None:
    client: AsyncClient = app_context["client"]
    people = app_context["participants"]
    booking = await _book(client, app_context["schedule_id"], people["alice"])

    response = await client.post(
        f"/api/v1/bookings/{booking.json()['id']}/cancel", headers=_as(people["bob"])
    )
    read = await client.get(
        f"/api/v1/bookings/{booking.json()['id']}", headers=_as(people["bob"])
    )

    assert response.status_code == 403
    assert read.status_code == 403


async def test_staff_check_in_and_undo(app_context: dict[str, Any]) -> None:
    client: AsyncClient = app_context["client"]
    people = app_context["participants"]
    coach = _as(app_context["coach_id"], "coach")
    booking = await _book(client, app_context["schedule_id"], people["alice"])
    booking_id = booking.json()["id"]

    denied = await client.post(
        f"/api/v1/bookings/{booking_id}/check-in", headers=_as(people["alice"])
    )
    assert denied.status_code == 403

    checked_in = await client.post(f"/api/v1/bookings/{booking_id}/check-in", headers=coach)
    assert checked_in.status_code == 200
    assert checked_in.json()["status"] == "CHECKED-IN"

    undone = await client.post(
        f"/api/v1/bookings/{booking_id}/undo-check-in", headers=coach
    )
    assert undone.status_code == 200
    assert undone.json()["status"] == "BOOKED"

    read = await client.get(f"/api/v1/bookings/{booking_id}", headers=_as(people["alice"]))
    assert read.json()["status"] == "BOOKED"


async def test_manual_promotion(app_context: dict[str, Any]) -> None:
    client: AsyncClient = app_context["client"]
    schedule_id = app_context["schedule_id"]
    people = app_context["participants"]
    manager = _as(app_context["manager_id"], "manager")
    for name in ("alice", "bob"):
        await _book(client, schedule_id, people[name])
    queued = await _book(client, schedule_id, people["carol"])

    full = await client.post(
        f"/api/v1/bookings/{queued.json()['id']}/promote", headers=manager
    )
    assert full.status_code == 409
    assert full.json()["detail"]["code"] == "no_capacity"

    raised = await client.patch(
        f"/api/v1/instances/{schedule_id}/{CLASS_DATE}",
        json={"max_participants": 3, "notify": False},
        headers=manager,
    )
    assert raised.status_code == 200

    promoted = await client.post(
        f"/api/v1/bookings/{queued.json()['id']}/promote", headers=manager
    )
    assert promoted.status_code == 200
    assert promoted.json()["status"] == "BOOKED"


async def test_self_check_in(app_context: dict[str, Any]) -> None:
    client: AsyncClient = app_context["client"]
    clock: FixedClock = app_context["clock"]
    people = app_context["participants"]
    await _book(client, app_context["schedule_id"], people["alice"])
    payload = {"schedule_id": str(app_context["schedule_id"]), "class_date": CLASS_DATE}

    early = await client.post(
        "/api/v1/bookings/self-check-in", json=payload, headers=_as(people["alice"])
    )
    assert early.status_code == 409
    assert early.json()["detail"]["code"] == "check_in_closed"

    clock.set(datetime(2026, 3, 9, 17, 50, tzinfo=UTC))
    on_time = await client.post(
        "/api/v1/bookings/self-check-in", json=payload, headers=_as(people["alice"])
    )
    assert on_time.status_code == 200
    assert on_time.json()["status"] == "CHECKED-IN"

    no_booking = await client.post(
        "/api/v1/bookings/self-check-in", json=payload, headers=_as(people["bob"])
    )
    assert no_booking.status_code == 404


async def test_started_class_cannot_be_booked(app_context: dict[str, Any]) -> None:
    client: AsyncClient = app_context["client"]
    clock: FixedClock = app_context["clock"]
    clock.set(datetime(2026, 3, 9, 18, 5, tzinfo=UTC))

    response = await _book(
        client, app_context["schedule_id"], app_context["participants"]["alice"]
    )

    assert response.status_code == 410
    assert response.json()["detail"]["code"] == "instance_gone"


async def test_participant_booking_listing(app_context: dict[str, Any]) -> None:
    client: AsyncClient = app_context["client"]
    clock: FixedClock = app_context["clock"]
    schedule_id = app_context["schedule_id"]
    alice = app_context["participants"]["alice"]
    await _book(client, schedule_id, alice, class_date="2026-03-09")
    await _book(client, schedule_id, alice, class_date="2026-03-16")

    everything = await client.get(
        f"/api/v1/participants/{alice}/bookings", headers=_as(alice)
    )
    assert [item["class_date"] for item in everything.json()] == [
        "2026-03-09",
        "2026-03-16",
    ]

    clock.set(datetime(2026, 3, 10, 9, 0, tzinfo=UTC))
    upcoming = await client.get(
        f"/api/v1/participants/{alice}/bookings",
        params={"upcoming_only": "true"},
        headers=_as(alice),
    )
    assert [item["class_date"] for item in upcoming.json()] == ["2026-03-16"]

    snooping = await client.get(
        f"/api/v1/participants/{alice}/bookings",
        headers=_as(app_context["participants"]["bob"]),
    )
    assert snooping.status_code == 403


async def test_calendar_views(app_context: dict[str, Any]) -> None:
    client: AsyncClient = app_context["client"]
    people = app_context["participants"]
    location_id = app_context["location_id"]
    await _book(client, app_context["schedule_id"], people["alice"])
    params = {"start": "2026-03-09", "days": 3}

    as_alice = await client.get(
        f"/api/v1/locations/{location_id}/classes", params=params, headers=_as(people["alice"])
    )
    assert as_alice.status_code == 200
    rows = as_alice.json()
    assert [(row["class_name"], row["class_date"]) for row in rows] == [
        ("Boxing", "2026-03-09"),
        ("Yoga", "2026-03-09"),
        ("Boxing", "2026-03-11"),
    ]
    yoga = rows[1]
    assert yoga["my_status"] == "BOOKED"
    assert yoga["booked_count"] == 1
    assert yoga["available_spots"] == 1

    as_erin = await client.get(
        f"/api/v1/locations/{location_id}/classes", params=params, headers=_as(people["erin"])
    )
    assert [row["class_name"] for row in as_erin.json()] == ["Yoga"]

    forbidden = await client.get(
        f"/api/v1/locations/{location_id}/classes",
        params={**params, "view": "management"},
        headers=_as(people["alice"]),
    )
    assert forbidden.status_code == 403

    management = await client.get(
        f"/api/v1/locations/{location_id}/classes",
        params={**params, "view": "management"},
        headers=_as(app_context["coach_id"], "coach"),
    )
    assert management.status_code == 200
    assert all(row["is_mine"] for row in management.json())

    unknown = await client.get(
        f"/api/v1/locations/{uuid.uuid4()}/classes", headers=_as(people["alice"])
    )
    assert unknown.status_code == 404

    too_long = await client.get(
        f"/api/v1/locations/{location_id}/classes",
        params={"days": 365},
        headers=_as(people["alice"]),
    )
    assert too_long.status_code == 422


async def test_participant_home_calendar(app_context: dict[str, Any]) -> None:
    client: AsyncClient = app_context["client"]
    people = app_context["participants"]
    params = {"start": "2026-03-09", "days": 3}

    own = await client.get(
        f"/api/v1/participants/{people['alice']}/classes",
        params=params,
        headers=_as(people["alice"]),
    )
    assert own.status_code == 200
    assert [row["class_name"] for row in own.json()] == ["Boxing", "Yoga", "Boxing"]
    assert {row["location_id"] for row in own.json()} == {str(app_context["location_id"])}

    for_erin = await client.get(
        f"/api/v1/participants/{people['erin']}/classes",
        params=params,
        headers=_as(app_context["coach_id"], "coach"),
    )
    assert [row["class_name"] for row in for_erin.json()] == ["Yoga"]

    snooping = await client.get(
        f"/api/v1/participants/{people['alice']}/classes", headers=_as(people["bob"])
    )
    assert snooping.status_code == 403

    unknown = await client.get(
        f"/api/v1/participants/{uuid.uuid4()}/classes",
        headers=_as(app_context["manager_id"], "manager"),
    )
    assert unknown.status_code == 404
