"""Donation request (recipient → donor) schemas."""

import uuid
from datetime import datetime

from pydantic import BaseModel, Field

from sharecycle.schemas.common import UserSummary


class RequestCreate(BaseModel):
    donation_id: uuid.UUID
    message: str | None = Field(None, max_length=1000)
    requested_quantity: int = Field(1, ge=1)


class RequestApprove(BaseModel):
    approved_quantity: int | None = Field(None, ge=1)


class RequestReject(BaseModel):
    rejection_reason: str | None = Field(None, max_length=1000)


class PickupSchedule(BaseModel):
    scheduled_at: datetime


class RequestResponse(BaseModel):
    id: uuid.UUID
    donation_id: uuid.UUID
    donor_id: uuid.UUID
    requester_id: uuid.UUID
    message: str | None
    requested_quantity: int
    approved_quantity: int | None
    rejection_reason: str | None
    status: str
    pickup_scheduled_at: datetime | None
    pickup_completed_at: datetime | None
    created_at: datetime
    updated_at: datetime | None

    model_config = {"from_attributes": True}


class RequestDonationSummary(BaseModel):
    id: uuid.UUID
    title: str
    description: str
    category: str
    images: list[str]
    status: str
    pickup_city: str

    model_config = {"from_attributes": True}


class RequestDetail(RequestResponse):
    """A request with the donation and both parties embedded."""

    donation: RequestDonationSummary
    donor: UserSummary
    requester: UserSummary
