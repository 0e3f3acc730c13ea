"""Donation request endpoints (recipient asks, donor decides).

POST /requests                   create (caller = requester)
GET  /requests/mine              requests the caller made
GET  /requests/received          requests on the caller's donations
POST /requests/{id}/approve      donor
POST /requests/{id}/reject       donor
POST /requests/{id}/cancel       requester
POST /requests/{id}/schedule     donor, approved requests
POST /requests/{id}/complete     donor, approved requests
"""

import uuid

from fastapi import APIRouter, Depends, Query
from sqlalchemy.ext.asyncio import AsyncSession

from sharecycle.core.dependencies import get_current_user, get_db
from sharecycle.core.exceptions import unwrap
from sharecycle.core.states import RequestStatus
from sharecycle.models.user import User
from sharecycle.schemas.common import ErrorResponse
from sharecycle.schemas.request import (
    PickupSchedule,
    RequestApprove,
    RequestCreate,
    RequestDetail,
    RequestReject,
    RequestResponse,
)
from sharecycle.services import requests as request_service

router = APIRouter()

_PROBLEMS = {
    403: {"model": ErrorResponse},
    404: {"model": ErrorResponse},
    409: {"model": ErrorResponse},
    422: {"model": ErrorResponse},
}


@router.post("", response_model=RequestResponse, status_code=201, responses=_PROBLEMS)
async def create_request(
    body: RequestCreate,
    user: User = Depends(get_current_user),
    db: AsyncSession = Depends(get_db),
) -> RequestResponse:
    request = unwrap(
        await request_service.create_request(
            db,
            body.donation_id,
            user.id,
            message=body.message,
            requested_quantity=body.requested_quantity,
        )
    )
    return RequestResponse.model_validate(request)


@router.get("/mine", response_model=list[RequestDetail])
async def list_my_requests(
    status: RequestStatus | None = Query(None),
    user: User = Depends(get_current_user),
    db: AsyncSession = Depends(get_db),
) -> list[RequestDetail]:
    rows = await request_service.list_requests_for_requester(db, user.id, status)
    return [RequestDetail.model_validate(r) for r in rows]


@router.get("/received", response_model=list[RequestDetail])
async def list_received_requests(
    status: RequestStatus | None = Query(None),
    user: User = Depends(get_current_user),
    db: AsyncSession = Depends(get_db),
) -> list[RequestDetail]:
    rows = await request_service.list_requests_for_donor(db, user.id, status)
    return [RequestDetail.model_validate(r) for r in rows]


@router.post("/{request_id}/approve", response_model=RequestResponse, responses=_PROBLEMS)
async def approve_request(
    request_id: uuid.UUID,
    body: RequestApprove | None = None,
    user: User = Depends(get_current_user),
    db: AsyncSession = Depends(get_db),
) -> RequestResponse:
    approved_quantity = body.approved_quantity if body else None
    request = unwrap(
        await request_service.approve_request(db, request_id, user.id, approved_quantity)
    )
    return RequestResponse.model_validate(request)


@router.post("/{request_id}/reject", response_model=RequestResponse, responses=_PROBLEMS)
async def reject_request(
    request_id: uuid.UUID,
    body: RequestReject | None = None,
    user: User = Depends(get_current_user),
    db: AsyncSession = Depends(get_db),
) -> RequestResponse:
    reason = body.rejection_reason if body else None
    request = unwrap(await request_service.reject_request(db, request_id, user.id, reason))
    return RequestResponse.model_validate(request)


@router.post("/{request_id}/cancel", response_model=RequestResponse, responses=_PROBLEMS)
async def cancel_request(
    request_id: uuid.UUID,
    user: User = Depends(get_current_user),
    db: AsyncSession = Depends(get_db),
) -> RequestResponse:
    request = unwrap(await request_service.cancel_request(db, request_id, user.id))
    return RequestResponse.model_validate(request)


@router.post("/{request_id}/schedule", response_model=RequestResponse, responses=_PROBLEMS)
async def schedule_pickup(
    request_id: uuid.UUID,
    body: PickupSchedule,
    user: User = Depends(get_current_user),
    db: AsyncSession = Depends(get_db),
) -> RequestResponse:
    request = unwrap(
        await request_service.schedule_pickup(db, request_id, user.id, body.scheduled_at)
    )
    return RequestResponse.model_validate(request)


@router.post("/{request_id}/complete", response_model=RequestResponse, responses=_PROBLEMS)
async def complete_request(
    request_id: uuid.UUID,
    user: User = Depends(get_current_user),
    db: AsyncSession = Depends(get_db),
) -> RequestResponse:
    request = unwrap(await request_service.complete_request(db, request_id, user.id))
    return RequestResponse.model_validate(request)
