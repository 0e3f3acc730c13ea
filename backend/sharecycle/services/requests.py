"""Request lifecycle: create, approve, reject, cancel, complete.

Every transition is a conditional UPDATE keyed on the status the caller
observed, so a concurrent writer that got there first leaves zero rows
affected and the loser gets a ``conflict`` result instead of silently
overwriting.

Donation availability follows the requests pointing at it:

* approving reserves the donation (only an ``available`` donation can be
  reserved, so at most one request holds the reservation);
* rejecting or cancelling releases it back to ``available`` when no
  approved request remains, evaluated inside the UPDATE itself.
"""

import logging
import uuid
from datetime import UTC, datetime

from sqlalchemy import select, update
from sqlalchemy.exc import IntegrityError
from sqlalchemy.ext.asyncio import AsyncSession
from sqlalchemy.orm import selectinload

from sharecycle.core.results import ServiceResult, conflict, forbidden, invalid, not_found
from sharecycle.core.states import (
    DonationStatus,
    RequestStatus,
    can_approve,
    can_cancel,
    can_complete,
    can_reject,
    can_request,
    can_schedule_pickup,
    is_donor,
    is_requester,
)
from sharecycle.models.donation import Donation
from sharecycle.models.request import DonationRequest
from sharecycle.services.notifications import NotificationType, notify

logger = logging.getLogger(__name__)

_UNAVAILABLE_MESSAGES = {
    DonationStatus.RESERVED: "This donation is already reserved for another user",
    DonationStatus.DELIVERED: "This donation has already been delivered",
    DonationStatus.CANCELLED: "This donation was cancelled by the donor",
}


async def _load_request(db: AsyncSession, request_id: uuid.UUID) -> DonationRequest | None:
    return await db.get(DonationRequest, request_id, populate_existing=True)


async def _load_donation(db: AsyncSession, donation_id: uuid.UUID) -> Donation | None:
    return await db.get(Donation, donation_id, populate_existing=True)


async def _transition(
    db: AsyncSession,
    request_id: uuid.UUID,
    expected: RequestStatus,
    **values,
) -> bool:
    """Move a request out of ``expected``; False when another writer won."""
    result = await db.execute(
        update(DonationRequest)
        .where(DonationRequest.id == request_id, DonationRequest.status == expected.value)
        .values(**values)
        .execution_options(synchronize_session=False)
    )
    return result.rowcount > 0


async def _reserve_donation(db: AsyncSession, donation_id: uuid.UUID, now: datetime) -> bool:
    result = await db.execute(
        update(Donation)
        .where(
            Donation.id == donation_id,
            Donation.is_active.is_(True),
            Donation.status == DonationStatus.AVAILABLE.value,
        )
        .values(status=DonationStatus.RESERVED.value, updated_at=now)
        .execution_options(synchronize_session=False)
    )
    return result.rowcount > 0


async def release_donation(db: AsyncSession, donation_id: uuid.UUID) -> bool:
    """Return a reserved donation to ``available`` if no request is approved.

    The approved-request check runs inside the UPDATE, so an approval that
    lands between the caller's read and this write keeps the reservation.
    """
    still_approved = (
        select(DonationRequest.id)
        .where(
            DonationRequest.donation_id == donation_id,
            DonationRequest.status == RequestStatus.APPROVED.value,
        )
        .exists()
    )
    result = await db.execute(
        update(Donation)
        .where(
            Donation.id == donation_id,
            Donation.is_active.is_(True),
            Donation.status == DonationStatus.RESERVED.value,
            ~still_approved,
        )
        .values(status=DonationStatus.AVAILABLE.value, updated_at=datetime.now(UTC))
        .execution_options(synchronize_session=False)
    )
    released = result.rowcount > 0
    if released:
        logger.info("Donation %s released back to available", donation_id)
    return released


# ---------------------------------------------------------------------------
# create
# ---------------------------------------------------------------------------


async def _has_pending_request(
    db: AsyncSession, donation_id: uuid.UUID, requester_id: uuid.UUID
) -> bool:
    result = await db.execute(
        select(DonationRequest.id).where(
            DonationRequest.donation_id == donation_id,
            DonationRequest.requester_id == requester_id,
            DonationRequest.status == RequestStatus.PENDING.value,
        )
    )
    return result.first() is not None


async def create_request(
    db: AsyncSession,
    donation_id: uuid.UUID,
    requester_id: uuid.UUID,
    message: str | None = None,
    requested_quantity: int = 1,
) -> ServiceResult[DonationRequest]:
    if requested_quantity < 1:
        return invalid("Requested quantity must be at least 1")

    result = await db.execute(
        select(Donation)
        .where(Donation.id == donation_id, Donation.is_active.is_(True))
        .execution_options(populate_existing=True)
    )
    donation = result.scalar_one_or_none()
    if donation is None:
        return not_found("Donation not found or no longer available")

    if not can_request(donation):
        message_for_status = _UNAVAILABLE_MESSAGES.get(
            DonationStatus(donation.status), "This donation is not available"
        )
        return conflict(message_for_status)

    if donation.donor_id == requester_id:
        return forbidden("You cannot request your own donation")

    if await _has_pending_request(db, donation.id, requester_id):
        return conflict("You already have a pending request for this donation")

    request = DonationRequest(
        donation_id=donation.id,
        donor_id=donation.donor_id,
        requester_id=requester_id,
        message=message or None,
        requested_quantity=requested_quantity,
        status=RequestStatus.PENDING.value,
    )
    try:
        async with db.begin_nested():
            db.add(request)
    except IntegrityError:
        # Lost the race against a concurrent create for the same pair; only
        # the savepoint is rolled back.
        return conflict("You already have a pending request for this donation")
    await db.refresh(request)

    logger.info(
        "Request %s created by %s for donation %s", request.id, requester_id, donation.id
    )
    await notify(db, donation.donor_id, NotificationType.NEW_REQUEST, donation, request)
    return ServiceResult.success(request)


# ---------------------------------------------------------------------------
# donor decisions
# ---------------------------------------------------------------------------


async def approve_request(
    db: AsyncSession,
    request_id: uuid.UUID,
    approver_id: uuid.UUID,
    approved_quantity: int | None = None,
) -> ServiceResult[DonationRequest]:
    request = await _load_request(db, request_id)
    if request is None:
        return not_found("Request not found")
    if not is_donor(request, approver_id):
        return forbidden("Only the donor can approve this request")
    if not can_approve(request):
        return conflict(f"Only pending requests can be approved (status: {request.status})")

    quantity = approved_quantity if approved_quantity is not None else request.requested_quantity
    if quantity < 1 or quantity > request.requested_quantity:
        return invalid(
            f"Approved quantity must be between 1 and {request.requested_quantity}"
        )

    donation = await _load_donation(db, request.donation_id)
    if donation is None or not donation.is_active:
        return not_found("Donation not found")
    if donation.status != DonationStatus.AVAILABLE:
        return conflict(
            _UNAVAILABLE_MESSAGES.get(
                DonationStatus(donation.status), "This donation is not available"
            )
        )

    now = datetime.now(UTC)
    moved = await _transition(
        db,
        request.id,
        RequestStatus.PENDING,
        status=RequestStatus.APPROVED.value,
        approved_quantity=quantity,
        updated_at=now,
    )
    if not moved:
        return conflict("This request was already handled")

    if not await _reserve_donation(db, donation.id, now):
        # Another approval reserved the donation first; undo ours.
        await _transition(
            db,
            request.id,
            RequestStatus.APPROVED,
            status=RequestStatus.PENDING.value,
            approved_quantity=None,
            updated_at=now,
        )
        return conflict("This donation is already reserved for another user")

    await db.refresh(request)
    await db.refresh(donation)
    logger.info(
        "Request %s approved (quantity=%s); donation %s reserved",
        request.id,
        quantity,
        donation.id,
    )
    await notify(db, request.requester_id, NotificationType.REQUEST_APPROVED, donation, request)
    return ServiceResult.success(request)


async def reject_request(
    db: AsyncSession,
    request_id: uuid.UUID,
    approver_id: uuid.UUID,
    rejection_reason: str | None = None,
) -> ServiceResult[DonationRequest]:
    request = await _load_request(db, request_id)
    if request is None:
        return not_found("Request not found")
    if not is_donor(request, approver_id):
        return forbidden("Only the donor can reject this request")
    if not can_reject(request):
        return conflict(
            f"Only pending or approved requests can be rejected (status: {request.status})"
        )

    observed = RequestStatus(request.status)
    moved = await _transition(
        db,
        request.id,
        observed,
        status=RequestStatus.REJECTED.value,
        rejection_reason=rejection_reason or None,
        updated_at=datetime.now(UTC),
    )
    if not moved:
        return conflict("This request was already handled")

    await release_donation(db, request.donation_id)

    await db.refresh(request)
    logger.info("Request %s rejected (was %s)", request.id, observed.value)
    donation = await _load_donation(db, request.donation_id)
    if donation is not None:
        await notify(
            db, request.requester_id, NotificationType.REQUEST_REJECTED, donation, request
        )
    return ServiceResult.success(request)


# ---------------------------------------------------------------------------
# requester cancellation
# ---------------------------------------------------------------------------


async def cancel_request(
    db: AsyncSession,
    request_id: uuid.UUID,
    requester_id: uuid.UUID,
) -> ServiceResult[DonationRequest]:
    request = await _load_request(db, request_id)
    if request is None:
        return not_found("Request not found")
    if not is_requester(request, requester_id):
        return forbidden("Only the requester can cancel this request")
    if not can_cancel(request):
        return conflict(
            f"Only pending or approved requests can be cancelled (status: {request.status})"
        )

    observed = RequestStatus(request.status)
    moved = await _transition(
        db,
        request.id,
        observed,
        status=RequestStatus.CANCELLED.value,
        updated_at=datetime.now(UTC),
    )
    if not moved:
        return conflict("This request changed status; reload and try again")

    if observed == RequestStatus.APPROVED:
        await release_donation(db, request.donation_id)

    await db.refresh(request)
    logger.info("Request %s cancelled by requester (was %s)", request.id, observed.value)
    donation = await _load_donation(db, request.donation_id)
    if donation is not None:
        await notify(db, request.donor_id, NotificationType.REQUEST_CANCELLED, donation, request)
    return ServiceResult.success(request)


# ---------------------------------------------------------------------------
# pickup scheduling and completion
# ---------------------------------------------------------------------------


async def schedule_pickup(
    db: AsyncSession,
    request_id: uuid.UUID,
    donor_id: uuid.UUID,
    scheduled_at: datetime,
) -> ServiceResult[DonationRequest]:
    request = await _load_request(db, request_id)
    if request is None:
        return not_found("Request not found")
    if not is_donor(request, donor_id):
        return forbidden("Only the donor can schedule the pickup")
    if not can_schedule_pickup(request):
        return conflict(f"Only approved requests can be scheduled (status: {request.status})")

    if scheduled_at.tzinfo is None:
        scheduled_at = scheduled_at.replace(tzinfo=UTC)
    if scheduled_at < datetime.now(UTC):
        return invalid("Pickup time cannot be in the past")

    moved = await _transition(
        db,
        request.id,
        RequestStatus.APPROVED,
        pickup_scheduled_at=scheduled_at,
        updated_at=datetime.now(UTC),
    )
    if not moved:
        return conflict("This request changed status; reload and try again")

    await db.refresh(request)
    return ServiceResult.success(request)


async def complete_request(
    db: AsyncSession,
    request_id: uuid.UUID,
    donor_id: uuid.UUID,
) -> ServiceResult[DonationRequest]:
    """Mark an approved request delivered; the donation follows."""
    request = await _load_request(db, request_id)
    if request is None:
        return not_found("Request not found")
    if not is_donor(request, donor_id):
        return forbidden("Only the donor can confirm the delivery")
    if not can_complete(request):
        return conflict(f"Only approved requests can be delivered (status: {request.status})")

    now = datetime.now(UTC)
    moved = await _transition(
        db,
        request.id,
        RequestStatus.APPROVED,
        status=RequestStatus.DELIVERED.value,
        pickup_completed_at=now,
        updated_at=now,
    )
    if not moved:
        return conflict("This request changed status; reload and try again")

    result = await db.execute(
        update(Donation)
        .where(
            Donation.id == request.donation_id,
            Donation.status == DonationStatus.RESERVED.value,
        )
        .values(status=DonationStatus.DELIVERED.value, updated_at=now)
        .execution_options(synchronize_session=False)
    )
    if result.rowcount == 0:
        logger.warning(
            "Donation %s was not reserved when request %s was delivered",
            request.donation_id,
            request.id,
        )

    await db.refresh(request)
    donation = await _load_donation(db, request.donation_id)
    logger.info("Request %s delivered", request.id)
    if donation is not None:
        await notify(
            db, request.requester_id, NotificationType.DONATION_DELIVERED, donation, request
        )
    return ServiceResult.success(request)


# ---------------------------------------------------------------------------
# reads
# ---------------------------------------------------------------------------


_DETAILS = (
    selectinload(DonationRequest.donation),
    selectinload(DonationRequest.donor),
    selectinload(DonationRequest.requester),
)


async def list_requests_for_requester(
    db: AsyncSession,
    requester_id: uuid.UUID,
    status: RequestStatus | None = None,
) -> list[DonationRequest]:
    stmt = (
        select(DonationRequest)
        .options(*_DETAILS)
        .where(DonationRequest.requester_id == requester_id)
        .order_by(DonationRequest.created_at.desc(), DonationRequest.id)
    )
    if status is not None:
        stmt = stmt.where(DonationRequest.status == status.value)
    result = await db.execute(stmt.execution_options(populate_existing=True))
    return list(result.scalars().all())


async def list_requests_for_donor(
    db: AsyncSession,
    donor_id: uuid.UUID,
    status: RequestStatus | None = None,
) -> list[DonationRequest]:
    stmt = (
        select(DonationRequest)
        .options(*_DETAILS)
        .where(DonationRequest.donor_id == donor_id)
        .order_by(DonationRequest.created_at.desc(), DonationRequest.id)
    )
    if status is not None:
        stmt = stmt.where(DonationRequest.status == status.value)
    result = await db.execute(stmt.execution_options(populate_existing=True))
    return list(result.scalars().all())
