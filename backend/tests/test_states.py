"""Transition guards are pure; exercise them without a database."""

import uuid
from dataclasses import dataclass, field

import pytest

from sharecycle.core.states import (
    DonationStatus,
    RequestStatus,
    can_approve,
    can_cancel,
    can_cancel_donation,
    can_complete,
    can_reject,
    can_request,
    can_schedule_pickup,
    is_donor,
    is_requester,
)


@dataclass
class FakeRequest:
    status: str
    donor_id: uuid.UUID = field(default_factory=uuid.uuid4)
    requester_id: uuid.UUID = field(default_factory=uuid.uuid4)


@dataclass
class FakeDonation:
    status: str
    is_active: bool = True
    donor_id: uuid.UUID = field(default_factory=uuid.uuid4)


@pytest.mark.parametrize("status", list(RequestStatus))
def test_only_pending_can_be_approved(status):
    assert can_approve(FakeRequest(status=status.value)) is (status == RequestStatus.PENDING)


@pytest.mark.parametrize(
    "status,expected",
    [
        (RequestStatus.PENDING, True),
        (RequestStatus.APPROVED, True),
        (RequestStatus.REJECTED, False),
        (RequestStatus.CANCELLED, False),
        (RequestStatus.DELIVERED, False),
    ],
)
def test_reject_allowed_from_pending_or_approved(status, expected):
    assert can_reject(FakeRequest(status=status.value)) is expected


@pytest.mark.parametrize(
    "status,expected",
    [
        (RequestStatus.PENDING, True),
        (RequestStatus.APPROVED, True),
        (RequestStatus.REJECTED, False),
        (RequestStatus.CANCELLED, False),
        (RequestStatus.DELIVERED, False),
    ],
)
def test_cancel_allowed_from_pending_or_approved(status, expected):
    assert can_cancel(FakeRequest(status=status.value)) is expected


@pytest.mark.parametrize("status", list(RequestStatus))
def test_delivery_and_scheduling_need_approval(status):
    request = FakeRequest(status=status.value)
    expected = status == RequestStatus.APPROVED
    assert can_complete(request) is expected
    assert can_schedule_pickup(request) is expected


@pytest.mark.parametrize("status", list(DonationStatus))
def test_only_available_active_donations_take_requests(status):
    assert can_request(FakeDonation(status=status.value)) is (status == DonationStatus.AVAILABLE)
    assert can_request(FakeDonation(status=status.value, is_active=False)) is False


@pytest.mark.parametrize(
    "status,expected",
    [
        (DonationStatus.AVAILABLE, True),
        (DonationStatus.RESERVED, True),
        (DonationStatus.DELIVERED, False),
        (DonationStatus.CANCELLED, False),
    ],
)
def test_owner_can_cancel_open_donations(status, expected):
    assert can_cancel_donation(FakeDonation(status=status.value)) is expected


def test_role_checks():
    request = FakeRequest(status="pending")
    assert is_donor(request, request.donor_id)
    assert not is_donor(request, request.requester_id)
    assert is_requester(request, request.requester_id)
    assert not is_requester(request, request.donor_id)
