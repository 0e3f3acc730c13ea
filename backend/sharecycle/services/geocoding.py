"""Best-effort geocoding against a Nominatim-compatible API.

Every failure (timeout, HTTP error, empty or malformed payload, a match
outside the configured country bounds) is logged and reported as ``None``.
Callers treat coordinates as optional enrichment and never fail a write
because of them.
"""

import logging
from dataclasses import dataclass

import httpx

from sharecycle.core.config import settings

logger = logging.getLogger(__name__)

MIN_ADDRESS_LENGTH = 3


@dataclass(frozen=True)
class Coordinates:
    latitude: float
    longitude: float
    accuracy: float | None = None
    source: str = "nominatim"


@dataclass(frozen=True)
class ReverseGeocodeResult:
    address: str | None = None
    city: str | None = None
    state: str | None = None
    postal_code: str | None = None
    country: str | None = None


@dataclass(frozen=True)
class Bounds:
    south: float
    north: float
    west: float
    east: float

    def contains(self, latitude: float, longitude: float) -> bool:
        return self.south <= latitude <= self.north and self.west <= longitude <= self.east


def default_bounds() -> Bounds:
    return Bounds(
        south=settings.GEO_BOUNDS_SOUTH,
        north=settings.GEO_BOUNDS_NORTH,
        west=settings.GEO_BOUNDS_WEST,
        east=settings.GEO_BOUNDS_EAST,
    )


def build_address_string(
    address: str | None = None,
    city: str | None = None,
    state: str | None = None,
    postal_code: str | None = None,
) -> str:
    """Join the non-empty address parts with ``", "``."""
    parts = [p.strip() for p in (address, city, state, postal_code) if p and p.strip()]
    return ", ".join(parts)


class Geocoder:
    """Forward and reverse geocoding with null-on-failure semantics.

    ``transport`` lets tests swap in ``httpx.MockTransport``.
    """

    def __init__(
        self,
        base_url: str | None = None,
        *,
        timeout: float | None = None,
        user_agent: str | None = None,
        country_codes: str | None = None,
        language: str | None = None,
        bounds: Bounds | None = None,
        enabled: bool | None = None,
        transport: httpx.AsyncBaseTransport | None = None,
    ):
        self.base_url = (base_url or settings.GEOCODER_BASE_URL).rstrip("/")
        self.timeout = timeout if timeout is not None else settings.GEOCODER_TIMEOUT_SECONDS
        self.user_agent = user_agent or settings.GEOCODER_USER_AGENT
        self.country_codes = (
            country_codes if country_codes is not None else settings.GEOCODER_COUNTRY_CODES
        )
        self.language = language or settings.GEOCODER_LANGUAGE
        self.bounds = bounds or default_bounds()
        self.enabled = enabled if enabled is not None else settings.GEOCODER_ENABLED
        self._transport = transport

    async def _get_json(self, path: str, params: dict) -> object | None:
        headers = {"User-Agent": self.user_agent, "Accept-Language": self.language}
        try:
            async with httpx.AsyncClient(
                base_url=self.base_url,
                timeout=self.timeout,
                headers=headers,
                transport=self._transport,
            ) as client:
                resp = await client.get(path, params=params)
                resp.raise_for_status()
                return resp.json()
        except (httpx.HTTPError, ValueError) as exc:
            logger.warning("Geocoding request %s failed: %s", path, exc)
            return None

    async def forward_geocode(self, address: str) -> Coordinates | None:
        """Resolve a free-text address to coordinates inside the home bounds."""
        if not self.enabled:
            return None
        query = (address or "").strip()
        if len(query) < MIN_ADDRESS_LENGTH:
            return None

        params = {"q": query, "format": "json", "limit": 1, "addressdetails": 1}
        if self.country_codes:
            params["countrycodes"] = self.country_codes

        data = await self._get_json("/search", params)
        if not isinstance(data, list) or not data:
            logger.warning("Geocoding found no match for address %r", query)
            return None

        first = data[0]
        try:
            lat = float(first["lat"])
            lon = float(first["lon"])
        except (KeyError, TypeError, ValueError):
            logger.warning("Geocoding returned a malformed result for %r", query)
            return None

        if not self.bounds.contains(lat, lon):
            logger.warning(
                "Geocoding result (%s, %s) for %r is outside the configured bounds",
                lat,
                lon,
                query,
            )
            return None

        try:
            accuracy = float(first.get("importance") or 0) or None
        except (TypeError, ValueError):
            accuracy = None
        return Coordinates(latitude=lat, longitude=lon, accuracy=accuracy)

    async def reverse_geocode(
        self, latitude: float, longitude: float
    ) -> ReverseGeocodeResult | None:
        """Resolve coordinates to address parts."""
        if not self.enabled:
            return None

        data = await self._get_json(
            "/reverse",
            {"lat": latitude, "lon": longitude, "format": "json", "addressdetails": 1},
        )
        if not isinstance(data, dict) or not isinstance(data.get("address"), dict):
            return None

        addr = data["address"]
        street = f"{addr.get('road') or ''} {addr.get('house_number') or ''}".strip()
        return ReverseGeocodeResult(
            address=street or None,
            city=(
                addr.get("city")
                or addr.get("town")
                or addr.get("village")
                or addr.get("municipality")
            ),
            state=addr.get("state"),
            postal_code=addr.get("postcode"),
            country=addr.get("country"),
        )

    async def geocode_pickup_address(
        self,
        address: str | None,
        city: str | None,
        state: str | None,
        postal_code: str | None,
    ) -> Coordinates | None:
        full_address = build_address_string(address, city, state, postal_code)
        if not full_address:
            return None
        return await self.forward_geocode(full_address)


def get_geocoder() -> Geocoder:
    """FastAPI dependency; overridden in tests."""
    return Geocoder()
