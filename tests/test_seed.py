"""
Wayfarer Backend - Seed Command Tests
=======================================

Test Strategy:
    ✅ A fresh database gets an ADMIN account that can log in and import
    ✅ Re-running promotes or reuses the account instead of duplicating it
    ✅ No password and no existing account is refused
    ✅ Sample spots and lodgings are inserted once
"""

import json

import pytest
from sqlalchemy import func, select

from wayfarer.models import ROLE_ADMIN, ROLE_USER, Lodging, TouristSpot, User
from wayfarer.security import verify_password
from wayfarer.seed import SAMPLE_LODGINGS, SAMPLE_SPOTS, SeedError, ensure_admin, run_seed

ADMIN_EMAIL = "root@wayfarer.io"
ADMIN_PASSWORD = "correct-horse-battery"


class TestEnsureAdmin:

    async def test_creates_admin_on_empty_database(self, session_factory):
        result = await run_seed(session_factory, email=ADMIN_EMAIL, password=ADMIN_PASSWORD, login="root")

        assert result.admin_created is True
        async with session_factory() as session:
            user = (await session.execute(select(User).where(User.email == ADMIN_EMAIL))).scalar_one()
        assert user.role == ROLE_ADMIN
        assert user.login == "root"
        assert verify_password(ADMIN_PASSWORD, user.password_hash)

    async def test_second_run_reuses_the_account(self, session_factory):
        await run_seed(session_factory, email=ADMIN_EMAIL, password=ADMIN_PASSWORD)
        result = await run_seed(session_factory, email=ADMIN_EMAIL, password="another-password")

        assert result.admin_created is False
        async with session_factory() as session:
            count = await session.scalar(select(func.count()).select_from(User))
            user = (await session.execute(select(User).where(User.email == ADMIN_EMAIL))).scalar_one()
        assert count == 1
        assert verify_password(ADMIN_PASSWORD, user.password_hash)

    async def test_existing_user_is_promoted(self, session_factory, user):
        async with session_factory() as session:
            admin, created = await ensure_admin(session, "Traveler@Example.com", password="")

        assert created is False
        assert admin.id == user.id
        async with session_factory() as session:
            stored = await session.get(User, user.id)
        assert stored.role == ROLE_ADMIN

    async def test_missing_password_is_refused(self, session_factory):
        with pytest.raises(SeedError, match="ADMIN_PASSWORD"):
            await run_seed(session_factory, email=ADMIN_EMAIL, password="")

        async with session_factory() as session:
            assert await session.scalar(select(func.count()).select_from(User)) == 0


class TestSampleData:

    async def test_samples_are_inserted_once(self, session_factory):
        first = await run_seed(session_factory, samples=True, email=ADMIN_EMAIL, password=ADMIN_PASSWORD)
        second = await run_seed(session_factory, samples=True, email=ADMIN_EMAIL, password=ADMIN_PASSWORD)

        assert first.spots_created == len(SAMPLE_SPOTS)
        assert first.lodgings_created == len(SAMPLE_LODGINGS)
        assert second.spots_created == 0
        assert second.lodgings_created == 0

        async with session_factory() as session:
            spots = (await session.execute(select(TouristSpot))).scalars().all()
            lodgings = await session.scalar(select(func.count()).select_from(Lodging))
        assert len(spots) == len(SAMPLE_SPOTS)
        assert lodgings == len(SAMPLE_LODGINGS)
        assert all(spot.created_by == first.admin.id for spot in spots)
        assert all(float(spot.average_rating) == 0.0 for spot in spots)


class TestSeededAdminAccess:

    async def test_seeded_admin_can_log_in_and_import(self, session_factory, test_client):
        await run_seed(session_factory, email=ADMIN_EMAIL, password=ADMIN_PASSWORD)

        login = await test_client.post("/auth/login", json={"email": ADMIN_EMAIL, "password": ADMIN_PASSWORD})
        assert login.status_code == 200
        assert login.json()["user"]["role"] == ROLE_ADMIN

        records = [{
            "name": "Pelourinho",
            "description": "Colonial old town of Salvador.",
            "city": "Salvador",
            "state": "BA",
            "country": "Brazil",
            "lat": -12.9714,
            "lng": -38.5108,
            "address": "Centro Histórico",
        }]
        response = await test_client.post(
            "/import/spots",
            files={"file": ("spots.json", json.dumps(records).encode(), "application/json")},
            data={"format": "json"},
            headers={"Authorization": f"Bearer {login.json()['token']}"},
        )

        assert response.status_code == 200
        assert response.json()["results"]["successful"] == 1

    async def test_registered_accounts_stay_users(self, test_client):
        response = await test_client.post(
            "/auth/register",
            json={"login": "visitor", "email": "visitor@wayfarer.io", "password": "long-enough-pw"},
        )
        assert response.json()["user"]["role"] == ROLE_USER
