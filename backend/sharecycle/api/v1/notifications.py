"""Notification inbox for the current user."""

import uuid

from fastapi import APIRouter, Depends, Query
from sqlalchemy.ext.asyncio import AsyncSession

from sharecycle.core.dependencies import get_current_user, get_db
from sharecycle.core.exceptions import unwrap
from sharecycle.models.user import User
from sharecycle.schemas.notification import NotificationResponse
from sharecycle.services import notifications as notification_service

router = APIRouter()


@router.get("", response_model=list[NotificationResponse])
async def list_notifications(
    unread_only: bool = Query(False),
    limit: int = Query(notification_service.DEFAULT_LIMIT, ge=1, le=200),
    offset: int = Query(0, ge=0),
    user: User = Depends(get_current_user),
    db: AsyncSession = Depends(get_db),
) -> list[NotificationResponse]:
    rows = await notification_service.list_notifications(
        db, user.id, unread_only=unread_only, limit=limit, offset=offset
    )
    return [NotificationResponse.model_validate(n) for n in rows]


@router.post("/{notification_id}/read", response_model=NotificationResponse)
async def mark_notification_read(
    notification_id: uuid.UUID,
    user: User = Depends(get_current_user),
    db: AsyncSession = Depends(get_db),
) -> NotificationResponse:
    notification = unwrap(await notification_service.mark_read(db, notification_id, user.id))
    return NotificationResponse.model_validate(notification)
