"""Booking API integration tests."""

from __future__ import annotations

from datetime import UTC, datetime, timedelta
from typing import Any

import pytest
from httpx import AsyncClient

pytestmark = pytest.mark.asyncio


async def _authenticate(client: AsyncClient, email: str, password: str) -> dict[str, str]:
    response = await client.post(
        "/api/v1/auth/token",
        data={"username": email, "password": password},
        headers={"Content-Type": "application/x-www-form-urlencoded"},
    )
    assert response.status_code == 200
    return {"Authorization": f"Bearer {response.json()['access_token']}"}


def _slot(days_ahead: int, hours: int = 4) -> tuple[str, str]:
    start = (datetime.now(UTC) + timedelta(days=days_ahead)).replace(
        minute=0, second=0, microsecond=0
    )
    return start.isoformat(), (start + timedelta(hours=hours)).isoformat()


def _payload(ctx: dict[str, Any], start: str, end: str, **extra: Any) -> dict[str, Any]:
    return {
        "space_id": ctx["space_id"],
        "vehicle_id": ctx["vehicle_id"],
        "start_time": start,
        "end_time": end,
        **extra,
    }


async def test_booking_create_and_conflict(app_context: dict[str, Any]) -> None:
    client: AsyncClient = app_context["client"]
    headers = await _authenticate(
        client, app_context["booker_email"], app_context["password"]
    )
    start, end = _slot(5)

    created = await client.post(
        "/api/v1/bookings", json=_payload(app_context, start, end), headers=headers
    )
    assert created.status_code == 201
    body = created.json()
    assert body["status"] == "pending"
    assert body["payment_status"] == "pending"
    assert body["total_amount"] == "40.00"
    assert len(body["verification_code"]) == 6

    clash = await client.post(
        "/api/v1/bookings", json=_payload(app_context, start, end), headers=headers
    )
    assert clash.status_code == 409
    envelope = clash.json()
    assert envelope["success"] is False
    assert envelope["error"]["code"] == "BIZ_CONFLICT"
    assert envelope["error"]["http"] == 409
    assert envelope["error"]["traceId"]
    assert (
        envelope["error"]["details"]["conflicting_booking_number"]
        == body["booking_number"]
    )


async def test_booking_validation_errors(app_context: dict[str, Any]) -> None:
    client: AsyncClient = app_context["client"]
    headers = await _authenticate(
        client, app_context["booker_email"], app_context["password"]
    )
    start, end = _slot(5)

    reversed_times = await client.post(
        "/api/v1/bookings", json=_payload(app_context, end, start), headers=headers
    )
    assert reversed_times.status_code == 400
    assert reversed_times.json()["error"]["code"] == "REQ_VALIDATION"

    missing = await client.post(
        "/api/v1/bookings", json={"space_id": app_context["space_id"]}, headers=headers
    )
    assert missing.status_code == 400
    assert missing.json()["error"]["code"] == "REQ_VALIDATION"

    unverified = await client.post(
        "/api/v1/bookings",
        json={**_payload(app_context, start, end), "vehicle_id": app_context["unverified_vehicle_id"]},
        headers=headers,
    )
    assert unverified.status_code == 400
    assert unverified.json()["error"]["message"] == "Vehicle must be verified before booking"


async def test_booking_requires_authentication(app_context: dict[str, Any]) -> None:
    client: AsyncClient = app_context["client"]
    start, end = _slot(5)

    response = await client.post("/api/v1/bookings", json=_payload(app_context, start, end))
    assert response.status_code == 401
    assert response.json()["error"]["code"] == "AUTH_UNAUTHORIZED"


async def test_booking_visibility_and_listing(app_context: dict[str, Any]) -> None:
    client: AsyncClient = app_context["client"]
    password = app_context["password"]
    booker = await _authenticate(client, app_context["booker_email"], password)
    owner = await _authenticate(client, app_context["owner_email"], password)
    outsider = await _authenticate(client, app_context["outsider_email"], password)

    ids = []
    for days in (5, 6, 7):
        start, end = _slot(days)
        response = await client.post(
            "/api/v1/bookings", json=_payload(app_context, start, end), headers=booker
        )
        assert response.status_code == 201
        ids.append(response.json()["id"])

    forbidden = await client.get(f"/api/v1/bookings/{ids[0]}", headers=outsider)
    assert forbidden.status_code == 403
    assert forbidden.json()["error"]["code"] == "AUTH_FORBIDDEN"

    owner_view = await client.get(f"/api/v1/bookings/{ids[0]}", headers=owner)
    assert owner_view.status_code == 200
    assert owner_view.json()["verification_code"] is None

    page = await client.get(
        "/api/v1/bookings", params={"page": 1, "limit": 2}, headers=booker
    )
    assert page.status_code == 200
    listing = page.json()
    assert listing["total"] == 3
    assert listing["total_pages"] == 2
    assert len(listing["items"]) == 2

    empty = await client.get("/api/v1/bookings", headers=outsider)
    assert empty.json()["total"] == 0


async def test_pay_then_cancel(app_context: dict[str, Any]) -> None:
    client: AsyncClient = app_context["client"]
    headers = await _authenticate(
        client, app_context["booker_email"], app_context["password"]
    )
    start, end = _slot(5)
    created = await client.post(
        "/api/v1/bookings", json=_payload(app_context, start, end), headers=headers
    )
    booking = created.json()

    paid = await client.post(
        f"/api/v1/bookings/{booking['id']}/pay",
        json={"amount": booking["total_amount"]},
        headers=headers,
    )
    assert paid.status_code == 200
    assert paid.json()["booking"]["status"] == "confirmed"
    assert paid.json()["booking"]["payment_status"] == "paid"
    assert paid.json()["payment"]["status"] == "succeeded"

    again = await client.post(
        f"/api/v1/bookings/{booking['id']}/pay",
        json={"amount": booking["total_amount"]},
        headers=headers,
    )
    assert again.status_code == 409

    cancelled = await client.post(
        f"/api/v1/bookings/{booking['id']}/cancel",
        json={"cancellation_reason": "Trip cancelled"},
        headers=headers,
    )
    assert cancelled.status_code == 200
    result = cancelled.json()
    assert result["booking"]["status"] == "cancelled"
    assert result["booking"]["payment_status"] == "refunded"
    assert result["refund"] == {
        "refund_amount": "40.00",
        "refund_percentage": 100,
        "status": "pending",
    }

    twice = await client.post(f"/api/v1/bookings/{booking['id']}/cancel", headers=headers)
    assert twice.status_code == 409


async def test_reschedule_and_extend(app_context: dict[str, Any]) -> None:
    client: AsyncClient = app_context["client"]
    headers = await _authenticate(
        client, app_context["booker_email"], app_context["password"]
    )
    start, end = _slot(5)
    booking = (
        await client.post(
            "/api/v1/bookings", json=_payload(app_context, start, end), headers=headers
        )
    ).json()

    new_end = (datetime.fromisoformat(end) + timedelta(hours=2)).isoformat()
    moved = await client.patch(
        f"/api/v1/bookings/{booking['id']}", json={"end_time": new_end}, headers=headers
    )
    assert moved.status_code == 200
    assert moved.json()["total_amount"] == "60.00"

    too_early = await client.post(
        f"/api/v1/bookings/{booking['id']}/extend",
        json={"new_end_time": (datetime.fromisoformat(new_end) + timedelta(hours=1)).isoformat()},
        headers=headers,
    )
    assert too_early.status_code == 400
    assert too_early.json()["error"]["code"] == "BIZ_OPERATION_NOT_ALLOWED"

    await client.post(
        f"/api/v1/bookings/{booking['id']}/pay",
        json={"amount": "60.00"},
        headers=headers,
    )
    extended = await client.post(
        f"/api/v1/bookings/{booking['id']}/extend",
        json={"new_end_time": (datetime.fromisoformat(new_end) + timedelta(hours=1)).isoformat()},
        headers=headers,
    )
    assert extended.status_code == 200
    assert extended.json()["extension"]["additional_charge"] == "10.00"
    assert extended.json()["booking"]["total_amount"] == "70.00"


async def test_check_in_window_not_open(app_context: dict[str, Any]) -> None:
    client: AsyncClient = app_context["client"]
    password = app_context["password"]
    booker = await _authenticate(client, app_context["booker_email"], password)
    owner = await _authenticate(client, app_context["owner_email"], password)
    start, end = _slot(5)
    booking = (
        await client.post(
            "/api/v1/bookings", json=_payload(app_context, start, end), headers=booker
        )
    ).json()
    await client.post(
        f"/api/v1/bookings/{booking['id']}/pay",
        json={"amount": booking["total_amount"]},
        headers=booker,
    )

    by_booker = await client.post(f"/api/v1/bookings/{booking['id']}/check-in", headers=booker)
    assert by_booker.status_code == 403

    early = await client.post(f"/api/v1/bookings/{booking['id']}/check-in", headers=owner)
    assert early.status_code == 400
    assert early.json()["error"]["message"] == "Check-in window has not opened yet"


async def test_no_show_sweep_is_admin_only(app_context: dict[str, Any]) -> None:
    client: AsyncClient = app_context["client"]
    password = app_context["password"]
    booker = await _authenticate(client, app_context["booker_email"], password)
    admin = await _authenticate(client, app_context["admin_email"], password)

    denied = await client.post("/api/v1/bookings/no-show-sweep", headers=booker)
    assert denied.status_code == 403

    swept = await client.post("/api/v1/bookings/no-show-sweep", headers=admin)
    assert swept.status_code == 200
    assert swept.json() == {"marked_count": 0, "booking_numbers": []}
