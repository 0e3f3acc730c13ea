"""Reverse geocoding response schema."""

from pydantic import BaseModel


class ReverseGeocodeResponse(BaseModel):
    address: str | None = None
    city: str | None = None
    state: str | None = None
    postal_code: str | None = None
    country: str | None = None


class ReverseGeocodeEnvelope(BaseModel):
    result: ReverseGeocodeResponse | None = None
