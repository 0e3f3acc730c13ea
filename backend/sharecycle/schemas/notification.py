"""Notification response schemas."""

import uuid
from datetime import datetime

from pydantic import BaseModel


class NotificationResponse(BaseModel):
    id: uuid.UUID
    type: str
    title: str
    message: str
    data: dict | None
    is_read: bool
    created_at: datetime

    model_config = {"from_attributes": True}
