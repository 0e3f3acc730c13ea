"""Donation and request statuses plus the pure guards for each transition.

Request transitions:

    pending  -> approved | rejected   (donor)
    approved -> rejected              (donor, revokes the reservation)
    pending  -> cancelled             (requester)
    approved -> cancelled             (requester)
    approved -> delivered             (donor)

Donation status follows its requests: ``reserved`` while a request is
approved, ``available`` otherwise. Owners may only cancel a donation
directly.
"""

import uuid
from enum import StrEnum
from typing import Protocol


class DonationStatus(StrEnum):
    AVAILABLE = "available"
    RESERVED = "reserved"
    DELIVERED = "delivered"
    CANCELLED = "cancelled"


class RequestStatus(StrEnum):
    PENDING = "pending"
    APPROVED = "approved"
    REJECTED = "rejected"
    CANCELLED = "cancelled"
    DELIVERED = "delivered"


class DonationCategory(StrEnum):
    FOOD = "food"
    CLOTHING = "clothing"
    ELECTRONICS = "electronics"
    FURNITURE = "furniture"
    BOOKS = "books"
    TOYS = "toys"
    HOUSEHOLD_ITEMS = "household_items"
    MEDICINE = "medicine"
    HYGIENE_PRODUCTS = "hygiene_products"
    OTHER = "other"


class ItemCondition(StrEnum):
    NEW = "new"
    USED_GOOD = "used_good"
    USED_FAIR = "used_fair"
    NEEDS_REPAIR = "needs_repair"


CANCELLABLE_REQUEST_STATUSES = (RequestStatus.PENDING, RequestStatus.APPROVED)
REJECTABLE_REQUEST_STATUSES = (RequestStatus.PENDING, RequestStatus.APPROVED)
CANCELLABLE_DONATION_STATUSES = (DonationStatus.AVAILABLE, DonationStatus.RESERVED)


class _RequestLike(Protocol):
    status: str
    donor_id: uuid.UUID
    requester_id: uuid.UUID


class _DonationLike(Protocol):
    status: str
    is_active: bool
    donor_id: uuid.UUID


def can_request(donation: _DonationLike) -> bool:
    return donation.is_active and donation.status == DonationStatus.AVAILABLE


def can_approve(request: _RequestLike) -> bool:
    return request.status == RequestStatus.PENDING


def can_reject(request: _RequestLike) -> bool:
    return request.status in REJECTABLE_REQUEST_STATUSES


def can_cancel(request: _RequestLike) -> bool:
    return request.status in CANCELLABLE_REQUEST_STATUSES


def can_complete(request: _RequestLike) -> bool:
    return request.status == RequestStatus.APPROVED


def can_schedule_pickup(request: _RequestLike) -> bool:
    return request.status == RequestStatus.APPROVED


def can_cancel_donation(donation: _DonationLike) -> bool:
    return donation.status in CANCELLABLE_DONATION_STATUSES


def is_donor(request: _RequestLike, user_id: uuid.UUID) -> bool:
    return request.donor_id == user_id


def is_requester(request: _RequestLike, user_id: uuid.UUID) -> bool:
    return request.requester_id == user_id
