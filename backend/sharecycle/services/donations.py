"""Donation store: writes with best-effort geocoding, soft delete, listing.

Inactive donations are invisible to every read here. Public listing also
hides anything that is not ``available``.
"""

import asyncio
import logging
import math
import uuid
from dataclasses import dataclass, field
from datetime import UTC, datetime

from sqlalchemy import Select, func, or_, select
from sqlalchemy.ext.asyncio import AsyncSession
from sqlalchemy.orm import selectinload

from sharecycle.core.results import ServiceResult, conflict, forbidden, invalid, not_found
from sharecycle.core.states import (
    CANCELLABLE_REQUEST_STATUSES,
    DonationStatus,
    can_cancel_donation,
)
from sharecycle.models.donation import Donation
from sharecycle.models.request import DonationRequest
from sharecycle.schemas.donation import (
    PAGE_SIZE,
    DonationCreate,
    DonationFilters,
    DonationOrdering,
    DonationUpdate,
)
from sharecycle.services.distance import distance_from, sort_by_distance
from sharecycle.services.geocoding import Coordinates, Geocoder, build_address_string
from sharecycle.services.notifications import NotificationType, notify

logger = logging.getLogger(__name__)

ADDRESS_FIELDS = ("pickup_address", "pickup_city", "pickup_state", "pickup_zip_code")


@dataclass
class DonationListing:
    items: list[tuple[Donation, float | None]] = field(default_factory=list)
    total: int = 0
    page: int = 1
    page_size: int = PAGE_SIZE

    @property
    def has_next(self) -> bool:
        return self.page * self.page_size < self.total


async def _geocode(geocoder: Geocoder, donation: Donation) -> Coordinates | None:
    coords = await geocoder.geocode_pickup_address(
        donation.pickup_address,
        donation.pickup_city,
        donation.pickup_state,
        donation.pickup_zip_code,
    )
    if coords is None:
        logger.warning(
            "Pickup address for donation %s could not be geocoded; saving without coordinates",
            donation.id,
        )
    return coords


async def _get_owned(
    db: AsyncSession, donation_id: uuid.UUID, owner_id: uuid.UUID
) -> ServiceResult[Donation]:
    donation = await db.get(Donation, donation_id, populate_existing=True)
    if donation is None or not donation.is_active:
        return not_found("Donation not found")
    if donation.donor_id != owner_id:
        return forbidden("You can only manage your own donations")
    return ServiceResult.success(donation)


async def create_donation(
    db: AsyncSession,
    owner_id: uuid.UUID,
    body: DonationCreate,
    geocoder: Geocoder,
) -> ServiceResult[Donation]:
    donation = Donation(
        id=uuid.uuid4(),
        donor_id=owner_id,
        title=body.title,
        description=body.description,
        category=body.category.value,
        quantity=body.quantity,
        condition=body.condition.value,
        images=[str(url) for url in body.images],
        pickup_address=body.pickup_address,
        pickup_city=body.pickup_city,
        pickup_state=body.pickup_state,
        pickup_zip_code=body.pickup_zip_code,
        pickup_instructions=body.pickup_instructions or None,
        expiry_date=body.expiry_date,
        status=DonationStatus.AVAILABLE.value,
        is_active=True,
    )

    coords = await _geocode(geocoder, donation)
    if coords is not None:
        donation.pickup_latitude = coords.latitude
        donation.pickup_longitude = coords.longitude

    db.add(donation)
    await db.flush()
    await db.refresh(donation)
    logger.info("Donation %s created by %s", donation.id, owner_id)
    return ServiceResult.success(donation)


async def update_donation(
    db: AsyncSession,
    donation_id: uuid.UUID,
    owner_id: uuid.UUID,
    body: DonationUpdate,
    geocoder: Geocoder,
) -> ServiceResult[Donation]:
    result = await _get_owned(db, donation_id, owner_id)
    if not result.ok:
        return result
    donation = result.value

    changes = body.model_dump(exclude_unset=True)
    for required in ("title", "description", "category", "quantity", "condition"):
        if required in changes and changes[required] is None:
            return invalid(f"{required} cannot be empty")
    for required in ADDRESS_FIELDS:
        if required in changes and changes[required] is None:
            return invalid(f"{required} cannot be empty")

    if "images" in changes:
        changes["images"] = [str(url) for url in changes["images"] or []]
    for enum_field in ("category", "condition"):
        if enum_field in changes:
            changes[enum_field] = str(changes[enum_field])

    address_changed = any(
        name in changes and changes[name] != getattr(donation, name) for name in ADDRESS_FIELDS
    )
    for name, value in changes.items():
        setattr(donation, name, value)

    if address_changed:
        coords = await _geocode(geocoder, donation)
        donation.pickup_latitude = coords.latitude if coords else None
        donation.pickup_longitude = coords.longitude if coords else None

    donation.updated_at = datetime.now(UTC)
    await db.flush()
    await db.refresh(donation)
    logger.info("Donation %s updated (address changed: %s)", donation.id, address_changed)
    return ServiceResult.success(donation)


async def deactivate_donation(
    db: AsyncSession,
    donation_id: uuid.UUID,
    owner_id: uuid.UUID,
) -> ServiceResult[Donation]:
    """Soft delete. Deactivating an already-inactive donation is a no-op."""
    donation = await db.get(Donation, donation_id, populate_existing=True)
    if donation is None:
        return not_found("Donation not found")
    if donation.donor_id != owner_id:
        return forbidden("You can only delete your own donations")
    if not donation.is_active:
        return ServiceResult.success(donation)

    donation.is_active = False
    donation.updated_at = datetime.now(UTC)
    await db.flush()
    await db.refresh(donation)
    logger.info("Donation %s deactivated", donation.id)
    return ServiceResult.success(donation)


async def cancel_donation(
    db: AsyncSession,
    donation_id: uuid.UUID,
    owner_id: uuid.UUID,
) -> ServiceResult[Donation]:
    """Owner withdraws the donation; open requesters are told."""
    result = await _get_owned(db, donation_id, owner_id)
    if not result.ok:
        return result
    donation = result.value

    if not can_cancel_donation(donation):
        return conflict(f"A {donation.status} donation cannot be cancelled")

    donation.status = DonationStatus.CANCELLED.value
    donation.updated_at = datetime.now(UTC)
    await db.flush()
    await db.refresh(donation)

    open_requests = await db.execute(
        select(DonationRequest.requester_id)
        .where(
            DonationRequest.donation_id == donation.id,
            DonationRequest.status.in_([s.value for s in CANCELLABLE_REQUEST_STATUSES]),
        )
        .distinct()
    )
    for requester_id in open_requests.scalars().all():
        await notify(db, requester_id, NotificationType.DONATION_CANCELLED, donation)

    logger.info("Donation %s cancelled by owner", donation.id)
    return ServiceResult.success(donation)


async def get_donation(db: AsyncSession, donation_id: uuid.UUID) -> ServiceResult[Donation]:
    donation = await db.get(Donation, donation_id, populate_existing=True)
    if donation is None or not donation.is_active:
        return not_found("Donation not found")
    return ServiceResult.success(donation)


async def list_owner_donations(db: AsyncSession, owner_id: uuid.UUID) -> list[Donation]:
    result = await db.execute(
        select(Donation)
        .where(Donation.donor_id == owner_id, Donation.is_active.is_(True))
        .order_by(Donation.created_at.desc(), Donation.id)
        .execution_options(populate_existing=True)
    )
    return list(result.scalars().all())


def _filtered(filters: DonationFilters) -> Select:
    stmt = select(Donation).where(
        Donation.is_active.is_(True),
        Donation.status == DonationStatus.AVAILABLE.value,
    )
    if filters.search:
        term = filters.search.strip()
        stmt = stmt.where(
            or_(
                Donation.title.icontains(term, autoescape=True),
                Donation.description.icontains(term, autoescape=True),
            )
        )
    if filters.category is not None:
        stmt = stmt.where(Donation.category == filters.category.value)
    if filters.city:
        stmt = stmt.where(Donation.pickup_city.icontains(filters.city.strip(), autoescape=True))
    return stmt


_ORDERINGS = {
    DonationOrdering.NEWEST: (Donation.created_at.desc(), Donation.id),
    DonationOrdering.OLDEST: (Donation.created_at.asc(), Donation.id),
    DonationOrdering.TITLE: (Donation.title.asc(), Donation.id),
    DonationOrdering.CATEGORY: (Donation.category.asc(), Donation.created_at.desc(), Donation.id),
    # Distance is computed in Python; this is the tie-break order.
    DonationOrdering.DISTANCE: (Donation.created_at.desc(), Donation.id),
}


async def list_donations(
    db: AsyncSession, filters: DonationFilters
) -> ServiceResult[DonationListing]:
    origin = filters.origin
    if filters.order_by == DonationOrdering.DISTANCE and origin is None:
        return invalid("latitude and longitude are required to order by distance")

    stmt = (
        _filtered(filters)
        .options(selectinload(Donation.donor))
        .order_by(*_ORDERINGS[filters.order_by])
        .execution_options(populate_existing=True)
    )
    offset = (filters.page - 1) * PAGE_SIZE

    if filters.order_by == DonationOrdering.DISTANCE:
        # Rank the whole filtered set before slicing the page; sorting
        # page by page would break proximity order across pages.
        result = await db.execute(stmt)
        ranked = sort_by_distance(
            result.scalars().all(),
            origin,
            lambda d: (d.pickup_latitude, d.pickup_longitude),
        )
        page_items = [
            (donation, None if math.isinf(km) else km)
            for donation, km in ranked[offset : offset + PAGE_SIZE]
        ]
        return ServiceResult.success(
            DonationListing(items=page_items, total=len(ranked), page=filters.page)
        )

    total = await db.scalar(select(func.count()).select_from(_filtered(filters).subquery()))
    result = await db.execute(stmt.offset(offset).limit(PAGE_SIZE))
    page_items = []
    for donation in result.scalars().all():
        km = None
        if origin is not None:
            km = distance_from(origin, donation.pickup_latitude, donation.pickup_longitude)
            km = None if math.isinf(km) else km
        page_items.append((donation, km))

    return ServiceResult.success(
        DonationListing(items=page_items, total=total or 0, page=filters.page)
    )


# ---------------------------------------------------------------------------
# coordinate backfill
# ---------------------------------------------------------------------------


@dataclass
class BackfillFailure:
    donation_id: uuid.UUID
    address: str
    error: str


@dataclass
class BackfillReport:
    total: int = 0
    processed: int = 0
    successful: int = 0
    failed: int = 0
    errors: list[BackfillFailure] = field(default_factory=list)


async def backfill_coordinates(
    db: AsyncSession,
    geocoder: Geocoder,
    *,
    limit: int | None = None,
    delay: float = 0.0,
) -> BackfillReport:
    """Geocode active donations that were saved without coordinates.

    Oldest first. ``delay`` spaces out provider calls (Nominatim allows one
    per second). Donations that still cannot be geocoded are reported and
    left untouched; the caller commits.
    """
    stmt = (
        select(Donation)
        .where(
            Donation.is_active.is_(True),
            or_(Donation.pickup_latitude.is_(None), Donation.pickup_longitude.is_(None)),
        )
        .order_by(Donation.created_at.asc(), Donation.id)
    )
    if limit is not None:
        stmt = stmt.limit(limit)
    donations = (await db.execute(stmt)).scalars().all()

    report = BackfillReport(total=len(donations))
    for index, donation in enumerate(donations):
        if index and delay:
            await asyncio.sleep(delay)
        report.processed += 1

        coords = await _geocode(geocoder, donation)
        if coords is None:
            report.failed += 1
            report.errors.append(
                BackfillFailure(
                    donation_id=donation.id,
                    address=build_address_string(
                        donation.pickup_address,
                        donation.pickup_city,
                        donation.pickup_state,
                        donation.pickup_zip_code,
                    ),
                    error="No coordinates found for address",
                )
            )
            continue

        donation.pickup_latitude = coords.latitude
        donation.pickup_longitude = coords.longitude
        donation.updated_at = datetime.now(UTC)
        report.successful += 1

    await db.flush()
    logger.info(
        "Coordinate backfill: %d total, %d updated, %d failed",
        report.total,
        report.successful,
        report.failed,
    )
    return report
