"""Donation endpoints.

GET    /donations                 public listing (available + active only)
POST   /donations                 create (owner = caller)
GET    /donations/mine            caller's active donations, any status
GET    /donations/{id}            detail
PATCH  /donations/{id}            owner edit (never changes status)
DELETE /donations/{id}            owner soft delete
POST   /donations/{id}/cancel     owner cancellation
"""

import uuid

from fastapi import APIRouter, Depends, Query, Response
from sqlalchemy.ext.asyncio import AsyncSession

from sharecycle.core.dependencies import get_current_user, get_db
from sharecycle.core.exceptions import unwrap
from sharecycle.core.states import DonationCategory
from sharecycle.models.donation import Donation
from sharecycle.models.user import User
from sharecycle.schemas.common import ErrorResponse
from sharecycle.schemas.donation import (
    DonationCreate,
    DonationFilters,
    DonationListItem,
    DonationOrdering,
    DonationPage,
    DonationResponse,
    DonationUpdate,
)
from sharecycle.services import donations as donation_service
from sharecycle.services.distance import format_distance
from sharecycle.services.geocoding import Geocoder, get_geocoder

router = APIRouter()

_PROBLEMS = {
    403: {"model": ErrorResponse},
    404: {"model": ErrorResponse},
    409: {"model": ErrorResponse},
    422: {"model": ErrorResponse},
}


def _list_item(donation: Donation, km: float | None) -> DonationListItem:
    item = DonationListItem.model_validate(donation)
    if km is None:
        return item
    return item.model_copy(
        update={"distance_km": round(km, 3), "distance_label": format_distance(km)}
    )


@router.get("", response_model=DonationPage)
async def list_donations(
    search: str | None = Query(None, max_length=100),
    category: DonationCategory | None = Query(None),
    city: str | None = Query(None, max_length=100),
    order_by: DonationOrdering = Query(DonationOrdering.NEWEST, alias="orderBy"),
    page: int = Query(1, ge=1),
    latitude: float | None = Query(None, ge=-90, le=90),
    longitude: float | None = Query(None, ge=-180, le=180),
    db: AsyncSession = Depends(get_db),
) -> DonationPage:
    filters = DonationFilters(
        search=search,
        category=category,
        city=city,
        order_by=order_by,
        page=page,
        latitude=latitude,
        longitude=longitude,
    )
    listing = unwrap(await donation_service.list_donations(db, filters))
    return DonationPage(
        items=[_list_item(d, km) for d, km in listing.items],
        total=listing.total,
        page=listing.page,
        page_size=listing.page_size,
        has_next=listing.has_next,
    )


@router.post("", response_model=DonationResponse, status_code=201, responses=_PROBLEMS)
async def create_donation(
    body: DonationCreate,
    user: User = Depends(get_current_user),
    db: AsyncSession = Depends(get_db),
    geocoder: Geocoder = Depends(get_geocoder),
) -> DonationResponse:
    donation = unwrap(await donation_service.create_donation(db, user.id, body, geocoder))
    return DonationResponse.model_validate(donation)


@router.get("/mine", response_model=list[DonationResponse])
async def list_my_donations(
    user: User = Depends(get_current_user),
    db: AsyncSession = Depends(get_db),
) -> list[DonationResponse]:
    donations = await donation_service.list_owner_donations(db, user.id)
    return [DonationResponse.model_validate(d) for d in donations]


@router.get("/{donation_id}", response_model=DonationResponse, responses=_PROBLEMS)
async def get_donation(
    donation_id: uuid.UUID,
    db: AsyncSession = Depends(get_db),
) -> DonationResponse:
    donation = unwrap(await donation_service.get_donation(db, donation_id))
    return DonationResponse.model_validate(donation)


@router.patch("/{donation_id}", response_model=DonationResponse, responses=_PROBLEMS)
async def update_donation(
    donation_id: uuid.UUID,
    body: DonationUpdate,
    user: User = Depends(get_current_user),
    db: AsyncSession = Depends(get_db),
    geocoder: Geocoder = Depends(get_geocoder),
) -> DonationResponse:
    donation = unwrap(
        await donation_service.update_donation(db, donation_id, user.id, body, geocoder)
    )
    return DonationResponse.model_validate(donation)


@router.delete("/{donation_id}", status_code=204, responses=_PROBLEMS)
async def deactivate_donation(
    donation_id: uuid.UUID,
    user: User = Depends(get_current_user),
    db: AsyncSession = Depends(get_db),
) -> Response:
    unwrap(await donation_service.deactivate_donation(db, donation_id, user.id))
    return Response(status_code=204)


@router.post("/{donation_id}/cancel", response_model=DonationResponse, responses=_PROBLEMS)
async def cancel_donation(
    donation_id: uuid.UUID,
    user: User = Depends(get_current_user),
    db: AsyncSession = Depends(get_db),
) -> DonationResponse:
    donation = unwrap(await donation_service.cancel_donation(db, donation_id, user.id))
    return DonationResponse.model_validate(donation)
