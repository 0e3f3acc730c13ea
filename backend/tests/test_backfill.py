"""Coordinate backfill for donations saved without a location."""

import pytest
from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker

from scripts import backfill_coordinates as backfill_script
from sharecycle.models.donation import Donation
from sharecycle.services.donations import backfill_coordinates
from tests.conftest import SAO_PAULO
from tests.helpers import seed_donation, seed_user


@pytest.mark.asyncio
async def test_backfill_fills_only_missing_coordinates(db, geocoder):
    donor = await seed_user(db)
    missing = await seed_donation(db, donor)
    located = await seed_donation(db, donor, pickup_latitude=-22.9, pickup_longitude=-43.2)
    await seed_donation(db, donor, is_active=False)

    report = await backfill_coordinates(db, geocoder)

    assert (report.total, report.processed, report.successful, report.failed) == (1, 1, 1, 0)
    assert report.errors == []
    await db.refresh(missing)
    assert missing.pickup_latitude == pytest.approx(SAO_PAULO[0])
    assert missing.pickup_longitude == pytest.approx(SAO_PAULO[1])
    await db.refresh(located)
    assert located.pickup_latitude == pytest.approx(-22.9)


@pytest.mark.asyncio
async def test_backfill_reports_failures_and_leaves_rows_untouched(db, failing_geocoder):
    donor = await seed_user(db)
    donation = await seed_donation(db, donor)

    report = await backfill_coordinates(db, failing_geocoder)

    assert (report.total, report.processed, report.successful, report.failed) == (1, 1, 0, 1)
    [failure] = report.errors
    assert failure.donation_id == donation.id
    assert failure.address == "Rua Augusta, 1500, Sao Paulo, SP, 01304-001"
    await db.refresh(donation)
    assert donation.pickup_latitude is None


@pytest.mark.asyncio
async def test_backfill_respects_limit(db, geocoder):
    donor = await seed_user(db)
    for _ in range(3):
        await seed_donation(db, donor)

    report = await backfill_coordinates(db, geocoder, limit=2)

    assert report.total == 2
    remaining = await db.scalars(select(Donation).where(Donation.pickup_latitude.is_(None)))
    assert len(remaining.all()) == 1


@pytest.mark.asyncio
async def test_backfill_command_commits_and_exits_by_outcome(engine, geocoder, monkeypatch):
    factory = async_sessionmaker(engine, class_=AsyncSession, expire_on_commit=False)
    async with factory() as session:
        donor = await seed_user(session)
        donation = await seed_donation(session, donor)
        await session.commit()

    monkeypatch.setattr(backfill_script, "async_session_factory", factory)
    monkeypatch.setattr(backfill_script, "get_geocoder", lambda: geocoder)

    assert await backfill_script.main(["--delay", "0"]) == 0

    async with factory() as session:
        stored = await session.get(Donation, donation.id)
        assert stored.pickup_latitude == pytest.approx(SAO_PAULO[0])

    # Nothing left to do on a second run.
    assert await backfill_script.main(["--delay", "0"]) == 0


@pytest.mark.asyncio
async def test_backfill_command_exits_nonzero_on_failures(engine, failing_geocoder, monkeypatch):
    factory = async_sessionmaker(engine, class_=AsyncSession, expire_on_commit=False)
    async with factory() as session:
        await seed_donation(session, await seed_user(session))
        await session.commit()

    monkeypatch.setattr(backfill_script, "async_session_factory", factory)
    monkeypatch.setattr(backfill_script, "get_geocoder", lambda: failing_geocoder)

    assert await backfill_script.main(["--delay", "0"]) == 1
