"""Donation request/response schemas."""

import re
import uuid
from datetime import UTC, date, datetime
from enum import StrEnum

from pydantic import BaseModel, Field, HttpUrl, field_validator

from sharecycle.core.states import DonationCategory, ItemCondition
from sharecycle.schemas.common import UserSummary

ZIP_CODE_PATTERN = re.compile(r"^\d{5}-?\d{3}$")
MAX_IMAGES = 5
PAGE_SIZE = 12


class DonationOrdering(StrEnum):
    NEWEST = "newest"
    OLDEST = "oldest"
    TITLE = "title"
    CATEGORY = "category"
    DISTANCE = "distance"


def _validate_zip_code(v: str) -> str:
    if not ZIP_CODE_PATTERN.match(v):
        raise ValueError("Postal code must match the format 00000-000")
    return v


def _validate_expiry(v: date | None) -> date | None:
    if v is not None and v < datetime.now(UTC).date():
        raise ValueError("Expiry date cannot be in the past")
    return v


class DonationCreate(BaseModel):
    title: str = Field(..., min_length=3, max_length=100)
    description: str = Field(..., min_length=10, max_length=1000)
    category: DonationCategory
    quantity: int = Field(..., ge=1, le=1000)
    condition: ItemCondition
    images: list[HttpUrl] = Field(default_factory=list, max_length=MAX_IMAGES)
    pickup_address: str = Field(..., min_length=1, max_length=300)
    pickup_city: str = Field(..., min_length=1, max_length=100)
    pickup_state: str = Field(..., min_length=2, max_length=50)
    pickup_zip_code: str
    pickup_instructions: str | None = Field(None, max_length=500)
    expiry_date: date | None = None

    @field_validator("pickup_zip_code")
    @classmethod
    def validate_zip_code(cls, v: str) -> str:
        return _validate_zip_code(v)

    @field_validator("expiry_date")
    @classmethod
    def validate_expiry_date(cls, v: date | None) -> date | None:
        return _validate_expiry(v)


class DonationUpdate(BaseModel):
    """Partial update. Status is deliberately absent."""

    title: str | None = Field(None, min_length=3, max_length=100)
    description: str | None = Field(None, min_length=10, max_length=1000)
    category: DonationCategory | None = None
    quantity: int | None = Field(None, ge=1, le=1000)
    condition: ItemCondition | None = None
    images: list[HttpUrl] | None = Field(None, max_length=MAX_IMAGES)
    pickup_address: str | None = Field(None, min_length=1, max_length=300)
    pickup_city: str | None = Field(None, min_length=1, max_length=100)
    pickup_state: str | None = Field(None, min_length=2, max_length=50)
    pickup_zip_code: str | None = None
    pickup_instructions: str | None = Field(None, max_length=500)
    expiry_date: date | None = None

    @field_validator("pickup_zip_code")
    @classmethod
    def validate_zip_code(cls, v: str | None) -> str | None:
        return _validate_zip_code(v) if v is not None else v

    @field_validator("expiry_date")
    @classmethod
    def validate_expiry_date(cls, v: date | None) -> date | None:
        return _validate_expiry(v)


class DonationResponse(BaseModel):
    id: uuid.UUID
    donor_id: uuid.UUID
    title: str
    description: str
    category: str
    quantity: int
    condition: str
    images: list[str]
    pickup_address: str
    pickup_city: str
    pickup_state: str
    pickup_zip_code: str
    pickup_instructions: str | None
    pickup_latitude: float | None
    pickup_longitude: float | None
    expiry_date: date | None
    status: str
    is_active: bool
    created_at: datetime
    updated_at: datetime | None

    model_config = {"from_attributes": True}


class DonationListItem(BaseModel):
    id: uuid.UUID
    donor_id: uuid.UUID
    donor: UserSummary
    title: str
    description: str
    category: str
    quantity: int
    condition: str
    images: list[str]
    pickup_city: str
    pickup_state: str
    status: str
    created_at: datetime
    distance_km: float | None = None
    distance_label: str | None = None

    model_config = {"from_attributes": True}


class DonationFilters(BaseModel):
    search: str | None = None
    category: DonationCategory | None = None
    city: str | None = None
    order_by: DonationOrdering = DonationOrdering.NEWEST
    page: int = Field(1, ge=1)
    latitude: float | None = Field(None, ge=-90, le=90)
    longitude: float | None = Field(None, ge=-180, le=180)

    @property
    def origin(self) -> tuple[float, float] | None:
        if self.latitude is None or self.longitude is None:
            return None
        return self.latitude, self.longitude


class DonationPage(BaseModel):
    items: list[DonationListItem]
    total: int
    page: int
    page_size: int = PAGE_SIZE
    has_next: bool = False
