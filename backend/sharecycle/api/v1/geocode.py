"""Reverse geocoding for address autofill. Null when the provider fails."""

from fastapi import APIRouter, Depends, Query

from sharecycle.core.dependencies import get_current_user
from sharecycle.models.user import User
from sharecycle.schemas.geocode import ReverseGeocodeEnvelope, ReverseGeocodeResponse
from sharecycle.services.geocoding import Geocoder, get_geocoder

router = APIRouter()


@router.get("/reverse", response_model=ReverseGeocodeEnvelope)
async def reverse_geocode(
    latitude: float = Query(..., ge=-90, le=90),
    longitude: float = Query(..., ge=-180, le=180),
    _user: User = Depends(get_current_user),
    geocoder: Geocoder = Depends(get_geocoder),
) -> ReverseGeocodeEnvelope:
    found = await geocoder.reverse_geocode(latitude, longitude)
    if found is None:
        return ReverseGeocodeEnvelope(result=None)
    return ReverseGeocodeEnvelope(
        result=ReverseGeocodeResponse(
            address=found.address,
            city=found.city,
            state=found.state,
            postal_code=found.postal_code,
            country=found.country,
        )
    )
