"""Donor registration, login and balance over HTTP (requires running PG).

Pre-condition: alembic upgrade head
"""

import uuid

import pytest
from httpx import AsyncClient

pytestmark = pytest.mark.asyncio(loop_scope="session")


def _unique_donor() -> dict[str, str]:
    uid = uuid.uuid4().hex[:8]
    return {
        "email": f"donor_{uid}@example.com",
        "display_name": f"Donor {uid}",
        "password": "TestPass1",
    }


async def _register_and_login(client: AsyncClient) -> dict[str, str]:
    donor = _unique_donor()
    reg = await client.post("/api/v1/auth/register", json=donor)
    assert reg.status_code == 201
    resp = await client.post(
        "/api/v1/auth/login",
        json={"email": donor["email"], "password": donor["password"]},
    )
    assert resp.status_code == 200
    return resp.json()["data"]


class TestRegistration:
    async def test_duplicate_email_rejected(self, client: AsyncClient) -> None:
        donor = _unique_donor()
        await client.post("/api/v1/auth/register", json=donor)

        resp = await client.post("/api/v1/auth/register", json=donor)

        assert resp.status_code == 409
        assert resp.json()["code"] == 1002

    async def test_wrong_password(self, client: AsyncClient) -> None:
        donor = _unique_donor()
        await client.post("/api/v1/auth/register", json=donor)

        resp = await client.post(
            "/api/v1/auth/login", json={"email": donor["email"], "password": "WrongPass1"}
        )

        assert resp.status_code == 401


class TestBalance:
    async def test_new_donor_has_zero_balance(self, client: AsyncClient) -> None:
        tokens = await _register_and_login(client)

        resp = await client.get(
            "/api/v1/account/balance",
            headers={"Authorization": f"Bearer {tokens['access_token']}"},
        )

        assert resp.status_code == 200
        assert resp.json()["data"]["balance_satang"] == 0
        assert resp.json()["data"]["balance_display"] == "฿0.00"

    async def test_refresh_issues_working_access_token(self, client: AsyncClient) -> None:
        tokens = await _register_and_login(client)

        refreshed = await client.post(
            "/api/v1/auth/refresh", json={"refresh_token": tokens["refresh_token"]}
        )
        access = refreshed.json()["data"]["access_token"]
        resp = await client.get(
            "/api/v1/account/balance", headers={"Authorization": f"Bearer {access}"}
        )

        assert resp.status_code == 200


class TestPublicEndpoints:
    async def test_donation_total(self, client: AsyncClient) -> None:
        resp = await client.get("/api/v1/payments/total")
        assert resp.status_code == 200
        assert resp.json()["data"]["total_satang"] >= 0

    async def test_unknown_project_progress(self, client: AsyncClient) -> None:
        resp = await client.get("/api/v1/projects/2147483000/progress")
        assert resp.status_code == 404
