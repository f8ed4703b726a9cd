"""
Tests for booking endpoints including concurrency scenarios.
"""

import asyncio

import pytest
from httpx import AsyncClient

from event_booking.core import clock
from conftest import create_user, auth_header_for, booking_payload, days_from_today


@pytest.mark.asyncio
async def test_book_spots(client: AsyncClient, auth_headers, test_user, test_event):
    """Successful booking reduces available spots."""
    response = await client.post(
        "/api/v1/bookings/",
        json=booking_payload(test_event.id, 2, attendee_phone="+1 (555) 010-2030"),
        headers=auth_headers,
    )
    assert response.status_code == 201
    data = response.json()
    assert data["event_id"] == test_event.id
    assert data["user_id"] == test_user.id
    assert data["quantity"] == 2
    assert data["status"] == "confirmed"
    assert data["attendee_phone"] == "+1 (555) 010-2030"

    event_response = await client.get(f"/api/v1/events/{test_event.id}")
    assert event_response.json()["available_spots"] == 98


@pytest.mark.asyncio
async def test_quantity_defaults_to_one(client: AsyncClient, auth_headers, test_event):
    payload = booking_payload(test_event.id)
    del payload["quantity"]
    response = await client.post("/api/v1/bookings/", json=payload, headers=auth_headers)
    assert response.status_code == 201
    assert response.json()["quantity"] == 1


@pytest.mark.asyncio
async def test_book_unauthenticated(client: AsyncClient, test_event):
    response = await client.post("/api/v1/bookings/", json=booking_payload(test_event.id))
    assert response.status_code == 401


@pytest.mark.parametrize(
    "overrides",
    [
        {"quantity": 0},
        {"quantity": 11},
        {"attendee_email": "not-an-email"},
        {"attendee_name": ""},
        {"attendee_phone": "call me maybe"},
    ],
)
@pytest.mark.asyncio
async def test_book_malformed_input(client: AsyncClient, auth_headers, test_event, overrides):
    response = await client.post(
        "/api/v1/bookings/",
        json=booking_payload(test_event.id, **overrides),
        headers=auth_headers,
    )
    assert response.status_code == 422


@pytest.mark.asyncio
async def test_book_more_than_available(client: AsyncClient, auth_headers, small_event):
    """Requesting more spots than remain reports both numbers."""
    response = await client.post(
        "/api/v1/bookings/",
        json=booking_payload(small_event.id, 3),
        headers=auth_headers,
    )
    assert response.status_code == 409
    data = response.json()
    assert data["code"] == "capacity_exceeded"
    assert data["available_spots"] == 2
    assert data["requested"] == 3


@pytest.mark.asyncio
async def test_book_full_event(client: AsyncClient, auth_headers, other_headers, small_event):
    await client.post("/api/v1/bookings/", json=booking_payload(small_event.id, 2), headers=other_headers)

    response = await client.post(
        "/api/v1/bookings/", json=booking_payload(small_event.id, 1), headers=auth_headers
    )
    assert response.status_code == 409
    assert response.json()["available_spots"] == 0


@pytest.mark.asyncio
async def test_duplicate_booking(client: AsyncClient, auth_headers, test_event):
    """Same user booking same event twice is rejected, whatever the quantity."""
    first = await client.post(
        "/api/v1/bookings/", json=booking_payload(test_event.id, 1), headers=auth_headers
    )
    assert first.status_code == 201

    second = await client.post(
        "/api/v1/bookings/", json=booking_payload(test_event.id, 3), headers=auth_headers
    )
    assert second.status_code == 409
    assert second.json()["code"] == "duplicate_booking"

    availability = await client.get(f"/api/v1/events/{test_event.id}/availability")
    assert availability.json()["committed"] == 1


@pytest.mark.asyncio
async def test_capacity_checked_before_duplicate(client: AsyncClient, auth_headers, small_event):
    """A user who already holds a booking still gets the capacity error first."""
    await client.post("/api/v1/bookings/", json=booking_payload(small_event.id, 2), headers=auth_headers)

    response = await client.post(
        "/api/v1/bookings/", json=booking_payload(small_event.id, 1), headers=auth_headers
    )
    assert response.json()["code"] == "capacity_exceeded"


@pytest.mark.asyncio
async def test_book_nonexistent_event(client: AsyncClient, auth_headers):
    response = await client.post(
        "/api/v1/bookings/", json=booking_payload(99999), headers=auth_headers
    )
    assert response.status_code == 404
    assert response.json()["code"] == "event_not_found"


@pytest.mark.asyncio
async def test_book_past_event(client: AsyncClient, auth_headers, make_event):
    past_event = await make_event(event_date=days_from_today(-1))
    response = await client.post(
        "/api/v1/bookings/", json=booking_payload(past_event.id), headers=auth_headers
    )
    assert response.status_code == 404


@pytest.mark.asyncio
async def test_book_event_today_at_any_time(client: AsyncClient, auth_headers, make_event):
    """Only the calendar date matters: an event earlier today is still bookable."""
    early = await make_event(event_date=clock.today(), start_time="00:00", end_time="00:01")
    response = await client.post(
        "/api/v1/bookings/", json=booking_payload(early.id), headers=auth_headers
    )
    assert response.status_code == 201


@pytest.mark.asyncio
async def test_cancel_booking(client: AsyncClient, auth_headers, test_event):
    """Cancellation frees exactly the booked quantity."""
    book_response = await client.post(
        "/api/v1/bookings/", json=booking_payload(test_event.id, 3), headers=auth_headers
    )
    booking_id = book_response.json()["id"]
    before = (await client.get(f"/api/v1/events/{test_event.id}")).json()["available_spots"]

    cancel_response = await client.put(f"/api/v1/bookings/{booking_id}/cancel", headers=auth_headers)
    assert cancel_response.status_code == 200
    assert cancel_response.json()["status"] == "cancelled"

    after = (await client.get(f"/api/v1/events/{test_event.id}")).json()["available_spots"]
    assert after - before == 3
    assert after == 100


@pytest.mark.asyncio
async def test_cancel_already_cancelled(client: AsyncClient, auth_headers, test_event):
    """Double-cancelling returns 400 and frees nothing more."""
    book_response = await client.post(
        "/api/v1/bookings/", json=booking_payload(test_event.id, 2), headers=auth_headers
    )
    booking_id = book_response.json()["id"]

    await client.put(f"/api/v1/bookings/{booking_id}/cancel", headers=auth_headers)
    response = await client.put(f"/api/v1/bookings/{booking_id}/cancel", headers=auth_headers)
    assert response.status_code == 400
    assert response.json()["code"] == "already_cancelled"

    availability = await client.get(f"/api/v1/events/{test_event.id}/availability")
    assert availability.json()["available_spots"] == 100


@pytest.mark.asyncio
async def test_cancel_someone_elses_booking(client: AsyncClient, auth_headers, other_headers, test_event):
    """Another user's booking looks exactly like a missing one."""
    book_response = await client.post(
        "/api/v1/bookings/", json=booking_payload(test_event.id), headers=auth_headers
    )
    booking_id = book_response.json()["id"]

    foreign = await client.put(f"/api/v1/bookings/{booking_id}/cancel", headers=other_headers)
    missing = await client.put("/api/v1/bookings/99999/cancel", headers=other_headers)
    assert foreign.status_code == missing.status_code == 404
    assert foreign.json()["detail"] == missing.json()["detail"]

    still_there = await client.get(f"/api/v1/bookings/{booking_id}", headers=auth_headers)
    assert still_there.json()["status"] == "confirmed"


@pytest.mark.asyncio
async def test_rebooking_after_cancellation_is_rejected(client: AsyncClient, auth_headers, test_event):
    book_response = await client.post(
        "/api/v1/bookings/", json=booking_payload(test_event.id), headers=auth_headers
    )
    await client.put(f"/api/v1/bookings/{book_response.json()['id']}/cancel", headers=auth_headers)

    response = await client.post(
        "/api/v1/bookings/", json=booking_payload(test_event.id), headers=auth_headers
    )
    assert response.status_code == 409
    assert response.json()["code"] == "duplicate_booking"


@pytest.mark.asyncio
async def test_list_user_bookings(client: AsyncClient, auth_headers, other_headers, test_event, small_event):
    """User sees only their own bookings, with an event summary."""
    await client.post("/api/v1/bookings/", json=booking_payload(test_event.id), headers=auth_headers)
    await client.post("/api/v1/bookings/", json=booking_payload(small_event.id), headers=auth_headers)
    await client.post("/api/v1/bookings/", json=booking_payload(test_event.id), headers=other_headers)

    response = await client.get("/api/v1/bookings/", headers=auth_headers)
    assert response.status_code == 200
    data = response.json()
    assert len(data) == 2
    # Newest first
    assert [b["event_id"] for b in data] == [small_event.id, test_event.id]
    assert data[0]["event"]["title"] == "Small Workshop"
    assert data[0]["event"]["start_time"] == "19:00"


@pytest.mark.asyncio
async def test_get_booking_scoped_to_owner(client: AsyncClient, auth_headers, other_headers, test_event):
    book_response = await client.post(
        "/api/v1/bookings/", json=booking_payload(test_event.id), headers=auth_headers
    )
    booking_id = book_response.json()["id"]

    own = await client.get(f"/api/v1/bookings/{booking_id}", headers=auth_headers)
    assert own.status_code == 200
    assert own.json()["event"]["id"] == test_event.id

    foreign = await client.get(f"/api/v1/bookings/{booking_id}", headers=other_headers)
    assert foreign.status_code == 404


@pytest.mark.asyncio
async def test_admin_lists_event_bookings(
    client: AsyncClient, auth_headers, other_headers, admin_headers, test_event
):
    await client.post("/api/v1/bookings/", json=booking_payload(test_event.id, 2), headers=auth_headers)
    await client.post("/api/v1/bookings/", json=booking_payload(test_event.id, 1), headers=other_headers)

    response = await client.get(f"/api/v1/bookings/event/{test_event.id}", headers=admin_headers)
    assert response.status_code == 200
    bookers = {b["user"]["email"]: b["quantity"] for b in response.json()}
    assert bookers == {"test@example.com": 2, "other@example.com": 1}


@pytest.mark.asyncio
async def test_event_bookings_require_admin(client: AsyncClient, auth_headers, test_event):
    response = await client.get(f"/api/v1/bookings/event/{test_event.id}", headers=auth_headers)
    assert response.status_code == 403


@pytest.mark.asyncio
async def test_concurrent_last_spot(client: AsyncClient, auth_headers, other_headers, make_event):
    """Two users race for a single spot: exactly one wins."""
    event = await make_event(title="One Seat Recital", capacity=1)

    responses = await asyncio.gather(
        client.post("/api/v1/bookings/", json=booking_payload(event.id), headers=auth_headers),
        client.post("/api/v1/bookings/", json=booking_payload(event.id), headers=other_headers),
    )

    codes = sorted(r.status_code for r in responses)
    assert codes == [201, 409]
    loser = next(r for r in responses if r.status_code == 409)
    assert loser.json()["code"] == "capacity_exceeded"

    availability = (await client.get(f"/api/v1/events/{event.id}/availability")).json()
    assert availability["available_spots"] == 0
    assert availability["is_full"] is True


@pytest.mark.asyncio
async def test_concurrent_bookings_never_oversell(client: AsyncClient, db_session, make_event):
    """Many users, random-ish quantities, one small event: committed never exceeds capacity."""
    event = await make_event(title="Flash Sale", capacity=7)
    users = [await create_user(db_session, f"rush{i}@example.com", f"Rush {i}") for i in range(12)]
    quantities = [2, 1, 3, 1, 2, 2, 1, 3, 1, 2, 1, 1]

    responses = await asyncio.gather(*[
        client.post(
            "/api/v1/bookings/",
            json=booking_payload(event.id, quantity),
            headers=auth_header_for(user),
        )
        for user, quantity in zip(users, quantities)
    ])

    admitted = sum(
        quantity for response, quantity in zip(responses, quantities) if response.status_code == 201
    )
    assert all(r.status_code in (201, 409) for r in responses)
    assert admitted <= 7

    availability = (await client.get(f"/api/v1/events/{event.id}/availability")).json()
    assert availability["committed"] == admitted
    assert availability["available_spots"] == 7 - admitted


@pytest.mark.asyncio
async def test_end_to_end_booking_flow(client: AsyncClient, admin_headers, auth_headers, other_headers):
    """create(capacity=2) -> book -> book -> full -> cancel -> one spot again."""
    create = await client.post(
        "/api/v1/events/",
        json={
            "title": "Integration Test Event",
            "date": days_from_today(7).isoformat(),
            "start_time": "18:00",
            "end_time": "20:00",
            "location": "Hall A",
            "capacity": 2,
            "price": 0,
        },
        headers=admin_headers,
    )
    assert create.status_code == 201
    event_id = create.json()["id"]

    async def availability() -> dict:
        return (await client.get(f"/api/v1/events/{event_id}/availability")).json()

    first = await client.post("/api/v1/bookings/", json=booking_payload(event_id), headers=auth_headers)
    assert first.status_code == 201
    assert (await availability())["available_spots"] == 1

    second = await client.post("/api/v1/bookings/", json=booking_payload(event_id), headers=other_headers)
    assert second.status_code == 201
    state = await availability()
    assert state["available_spots"] == 0
    assert state["is_full"] is True

    cancel = await client.put(f"/api/v1/bookings/{first.json()['id']}/cancel", headers=auth_headers)
    assert cancel.status_code == 200
    state = await availability()
    assert state["available_spots"] == 1
    assert state["is_full"] is False
