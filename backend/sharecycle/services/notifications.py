"""In-app notifications recorded on each lifecycle transition.

Only the notification row is written here; push/email fan-out happens
elsewhere, off the row.
"""

import logging
import uuid
from enum import StrEnum

from sqlalchemy import select, update
from sqlalchemy.ext.asyncio import AsyncSession

from sharecycle.core.results import ServiceResult, not_found
from sharecycle.models.donation import Donation
from sharecycle.models.notification import Notification
from sharecycle.models.request import DonationRequest

logger = logging.getLogger(__name__)

DEFAULT_LIMIT = 50


class NotificationType(StrEnum):
    NEW_REQUEST = "new_request"
    REQUEST_APPROVED = "request_approved"
    REQUEST_REJECTED = "request_rejected"
    REQUEST_CANCELLED = "request_cancelled"
    DONATION_DELIVERED = "donation_delivered"
    DONATION_CANCELLED = "donation_cancelled"


_TEMPLATES: dict[NotificationType, tuple[str, str]] = {
    NotificationType.NEW_REQUEST: (
        "New request",
        "Someone requested your donation \"{title}\".",
    ),
    NotificationType.REQUEST_APPROVED: (
        "Request approved",
        "Your request for \"{title}\" was approved.",
    ),
    NotificationType.REQUEST_REJECTED: (
        "Request rejected",
        "Your request for \"{title}\" was not approved.",
    ),
    NotificationType.REQUEST_CANCELLED: (
        "Request cancelled",
        "A request for your donation \"{title}\" was cancelled.",
    ),
    NotificationType.DONATION_DELIVERED: (
        "Donation delivered",
        "The donation \"{title}\" was marked as delivered.",
    ),
    NotificationType.DONATION_CANCELLED: (
        "Donation cancelled",
        "The donation \"{title}\" was cancelled by the donor.",
    ),
}


async def notify(
    db: AsyncSession,
    user_id: uuid.UUID,
    notification_type: NotificationType,
    donation: Donation,
    request: DonationRequest | None = None,
) -> Notification:
    title, template = _TEMPLATES[notification_type]
    data: dict[str, str] = {"donation_id": str(donation.id)}
    if request is not None:
        data["request_id"] = str(request.id)

    notification = Notification(
        user_id=user_id,
        type=notification_type.value,
        title=title,
        message=template.format(title=donation.title),
        data=data,
    )
    db.add(notification)
    await db.flush()
    logger.info(
        "Notification %s queued for user %s (donation %s)",
        notification_type.value,
        user_id,
        donation.id,
    )
    return notification


async def list_notifications(
    db: AsyncSession,
    user_id: uuid.UUID,
    *,
    unread_only: bool = False,
    limit: int = DEFAULT_LIMIT,
    offset: int = 0,
) -> list[Notification]:
    stmt = (
        select(Notification)
        .where(Notification.user_id == user_id)
        .order_by(Notification.created_at.desc(), Notification.id)
    )
    if unread_only:
        stmt = stmt.where(Notification.is_read.is_(False))
    stmt = stmt.offset(offset).limit(limit)
    result = await db.execute(stmt)
    return list(result.scalars().all())


async def mark_read(
    db: AsyncSession,
    notification_id: uuid.UUID,
    user_id: uuid.UUID,
) -> ServiceResult[Notification]:
    result = await db.execute(
        update(Notification)
        .where(Notification.id == notification_id, Notification.user_id == user_id)
        .values(is_read=True)
    )
    if result.rowcount == 0:
        return not_found("Notification not found")

    notification = await db.get(Notification, notification_id)
    await db.refresh(notification)
    return ServiceResult.success(notification)
