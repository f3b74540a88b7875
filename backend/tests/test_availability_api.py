"""Availability window API tests."""

from __future__ import annotations

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


async def test_availability_window_crud(app_context: dict[str, Any]) -> None:
    client: AsyncClient = app_context["client"]
    owner = await _authenticate(client, app_context["owner_email"], app_context["password"])
    base = f"/api/v1/spaces/{app_context['space_id']}/availability"

    created = await client.post(
        base,
        json={"day_of_week": 1, "available_from": "09:00", "available_to": "12:00"},
        headers=owner,
    )
    assert created.status_code == 201
    window = created.json()
    assert window["is_available"] is True

    clash = await client.post(
        base,
        json={"day_of_week": 1, "available_from": "11:00", "available_to": "14:00"},
        headers=owner,
    )
    assert clash.status_code == 409
    error = clash.json()["error"]
    assert error["message"] == "Conflicts with existing schedule"
    assert error["details"]["conflicting_schedule"]["id"] == window["id"]

    bad_time = await client.post(
        base,
        json={"day_of_week": 1, "available_from": "9am", "available_to": "12:00"},
        headers=owner,
    )
    assert bad_time.status_code == 400

    updated = await client.put(
        f"{base}/{window['id']}", json={"available_to": "13:00"}, headers=owner
    )
    assert updated.status_code == 200
    assert updated.json()["available_to"] == "13:00"

    listing = await client.get(base, params={"day_of_week": 1})
    assert [item["id"] for item in listing.json()] == [window["id"]]

    deleted = await client.delete(f"{base}/{window['id']}", headers=owner)
    assert deleted.status_code == 204
    missing = await client.put(
        f"{base}/{window['id']}", json={"available_to": "13:00"}, headers=owner
    )
    assert missing.status_code == 404


async def test_availability_requires_space_owner(app_context: dict[str, Any]) -> None:
    client: AsyncClient = app_context["client"]
    booker = await _authenticate(client, app_context["booker_email"], app_context["password"])

    response = await client.post(
        f"/api/v1/spaces/{app_context['space_id']}/availability",
        json={"day_of_week": 2, "available_from": "09:00", "available_to": "10:00"},
        headers=booker,
    )
    assert response.status_code == 403


async def test_bulk_availability_partial_success(app_context: dict[str, Any]) -> None:
    client: AsyncClient = app_context["client"]
    owner = await _authenticate(client, app_context["owner_email"], app_context["password"])
    base = f"/api/v1/spaces/{app_context['space_id']}/availability"

    response = await client.post(
        f"{base}/bulk",
        json={
            "schedules": [
                {"day_of_week": 3, "available_from": "08:00", "available_to": "12:00"},
                {"day_of_week": 3, "available_from": "10:00", "available_to": "13:00"},
                {"day_of_week": 3},
                "09:00-10:00",
                {"day_of_week": 4, "available_from": "08:00", "available_to": "12:00"},
            ]
        },
        headers=owner,
    )
    assert response.status_code == 201
    body = response.json()
    assert body["created_count"] == 2
    assert body["failed_count"] == 3
    assert [error["index"] for error in body["errors"]] == [1, 2, 3]
    assert body["errors"][2]["schedule"] == "09:00-10:00"
    assert body["errors"][2]["error"] == "Schedule entry must be an object"
    assert body["errors"][0]["error"] == "Conflicts with another schedule in this bulk request"

    probe = await client.post(
        f"{base}/check-conflict",
        json={"day_of_week": 3, "available_from": "11:00", "available_to": "15:00"},
    )
    assert probe.status_code == 200
    assert probe.json()["has_conflict"] is True
    assert probe.json()["conflicts"][0]["available_from"] == "08:00"
