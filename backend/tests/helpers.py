"""Seed helpers shared by the service and API tests."""

import uuid

from httpx import AsyncClient
from sqlalchemy.ext.asyncio import AsyncSession

from sharecycle.models.donation import Donation
from sharecycle.models.user import User
from tests.conftest import auth_headers


def _uid() -> str:
    return uuid.uuid4().hex[:8]


async def seed_user(
    db: AsyncSession, name: str = "Test User", city: str | None = None
) -> User:
    uid = _uid()
    user = User(
        auth_sub=f"sub-{uid}", email=f"user-{uid}@example.com", full_name=name, city=city
    )
    db.add(user)
    await db.flush()
    return user


async def seed_donation(db: AsyncSession, donor: User, **overrides) -> Donation:
    values = {
        "donor_id": donor.id,
        "title": "Winter coats",
        "description": "Three warm coats in good condition",
        "category": "clothing",
        "quantity": 3,
        "condition": "used_good",
        "images": [],
        "pickup_address": "Rua Augusta, 1500",
        "pickup_city": "Sao Paulo",
        "pickup_state": "SP",
        "pickup_zip_code": "01304-001",
        "status": "available",
        "is_active": True,
    }
    values.update(overrides)
    donation = Donation(**values)
    db.add(donation)
    await db.flush()
    await db.refresh(donation)
    return donation


def donation_payload(**overrides) -> dict:
    payload = {
        "title": "Children's books",
        "description": "A box of picture books for ages 3 to 6",
        "category": "books",
        "quantity": 3,
        "condition": "used_good",
        "pickup_address": "Avenida Paulista, 1000",
        "pickup_city": "Sao Paulo",
        "pickup_state": "SP",
        "pickup_zip_code": "01310-100",
    }
    payload.update(overrides)
    return payload


def user_headers(prefix: str = "user", **claims) -> dict:
    """Headers for a brand-new user; the API provisions it on first call."""
    uid = _uid()
    headers = auth_headers(
        sub=f"{prefix}-{uid}", email=f"{prefix}-{uid}@example.com", **claims
    )
    headers["Content-Type"] = "application/json"
    return headers


async def create_donation_via_api(client: AsyncClient, headers: dict, **overrides) -> dict:
    resp = await client.post(
        "/api/v1/donations", json=donation_payload(**overrides), headers=headers
    )
    assert resp.status_code == 201, resp.text
    return resp.json()
