"""Geocoder null-on-failure behaviour against a mocked Nominatim."""

import httpx
import pytest

from sharecycle.services.geocoding import Geocoder, build_address_string
from tests.conftest import SAO_PAULO, make_geocoder


def _recording_geocoder(responder) -> tuple[Geocoder, list[httpx.Request]]:
    seen: list[httpx.Request] = []

    def handler(request: httpx.Request) -> httpx.Response:
        seen.append(request)
        return responder(request)

    return make_geocoder(handler), seen


def test_build_address_string_skips_blank_parts():
    assert build_address_string("Rua A, 10", "  ", "SP", None) == "Rua A, 10, SP"
    assert build_address_string(None, None, None, None) == ""


@pytest.mark.asyncio
async def test_forward_geocode_success():
    geocoder, seen = _recording_geocoder(
        lambda r: httpx.Response(200, json=[{"lat": "-23.5505", "lon": "-46.6333"}])
    )

    coords = await geocoder.forward_geocode("Praca da Se, Sao Paulo")

    assert coords is not None
    assert coords.latitude == pytest.approx(SAO_PAULO[0])
    assert coords.longitude == pytest.approx(SAO_PAULO[1])
    assert len(seen) == 1
    params = seen[0].url.params
    assert params["q"] == "Praca da Se, Sao Paulo"
    assert params["countrycodes"] == "br"
    assert params["limit"] == "1"
    assert seen[0].headers["User-Agent"]


@pytest.mark.asyncio
async def test_forward_geocode_outside_bounds_is_none():
    # Lisbon: a real match, but not a plausible pickup location.
    geocoder, _ = _recording_geocoder(
        lambda r: httpx.Response(200, json=[{"lat": "38.7223", "lon": "-9.1393"}])
    )
    assert await geocoder.forward_geocode("Rua Augusta, Lisboa") is None


@pytest.mark.asyncio
async def test_forward_geocode_empty_result_is_none():
    geocoder, _ = _recording_geocoder(lambda r: httpx.Response(200, json=[]))
    assert await geocoder.forward_geocode("Nowhere street 123") is None


@pytest.mark.asyncio
async def test_forward_geocode_http_error_is_none():
    geocoder, _ = _recording_geocoder(lambda r: httpx.Response(500))
    assert await geocoder.forward_geocode("Rua Augusta, Sao Paulo") is None


@pytest.mark.asyncio
async def test_forward_geocode_network_error_is_none():
    def unreachable(request: httpx.Request) -> httpx.Response:
        raise httpx.ConnectError("connection refused", request=request)

    geocoder = make_geocoder(unreachable)
    assert await geocoder.forward_geocode("Rua Augusta, Sao Paulo") is None


@pytest.mark.asyncio
async def test_forward_geocode_malformed_payload_is_none():
    geocoder, _ = _recording_geocoder(lambda r: httpx.Response(200, text="<html>oops</html>"))
    assert await geocoder.forward_geocode("Rua Augusta, Sao Paulo") is None

    geocoder, _ = _recording_geocoder(lambda r: httpx.Response(200, json=[{"lat": "x"}]))
    assert await geocoder.forward_geocode("Rua Augusta, Sao Paulo") is None


@pytest.mark.asyncio
async def test_short_address_skips_the_provider():
    geocoder, seen = _recording_geocoder(lambda r: httpx.Response(200, json=[]))
    assert await geocoder.forward_geocode("  a ") is None
    assert seen == []


@pytest.mark.asyncio
async def test_disabled_geocoder_never_calls_out():
    seen: list[httpx.Request] = []

    def handler(request: httpx.Request) -> httpx.Response:
        seen.append(request)
        return httpx.Response(200, json=[])

    geocoder = Geocoder(
        "http://geocoder.test", transport=httpx.MockTransport(handler), enabled=False
    )
    assert await geocoder.forward_geocode("Rua Augusta, Sao Paulo") is None
    assert await geocoder.reverse_geocode(*SAO_PAULO) is None
    assert seen == []


@pytest.mark.asyncio
async def test_geocode_pickup_address_joins_parts(geocoder):
    coords = await geocoder.geocode_pickup_address(
        "Avenida Paulista, 1000", "Sao Paulo", "SP", "01310-100"
    )
    assert coords is not None
    assert coords.accuracy == pytest.approx(0.61)


@pytest.mark.asyncio
async def test_reverse_geocode_parses_address(geocoder):
    found = await geocoder.reverse_geocode(*SAO_PAULO)

    assert found is not None
    assert found.address == "Praca da Se 100"
    assert found.city == "Sao Paulo"
    assert found.postal_code == "01001-000"
    assert found.country == "Brasil"


@pytest.mark.asyncio
async def test_reverse_geocode_falls_back_to_town():
    geocoder, _ = _recording_geocoder(
        lambda r: httpx.Response(200, json={"address": {"town": "Paraty", "state": "RJ"}})
    )
    found = await geocoder.reverse_geocode(-23.2178, -44.7131)

    assert found is not None
    assert found.city == "Paraty"
    assert found.address is None


@pytest.mark.asyncio
async def test_reverse_geocode_failure_is_none(failing_geocoder):
    assert await failing_geocoder.reverse_geocode(*SAO_PAULO) is None
