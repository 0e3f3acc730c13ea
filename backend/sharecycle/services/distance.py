"""Great-circle distance and nearest-first ordering."""

import math
from collections.abc import Callable, Iterable
from typing import TypeVar

T = TypeVar("T")

EARTH_RADIUS_KM = 6371.0


def distance_km(lat1: float, lon1: float, lat2: float, lon2: float) -> float:
    """Haversine distance between two points, in kilometres."""
    phi1 = math.radians(lat1)
    phi2 = math.radians(lat2)
    d_phi = math.radians(lat2 - lat1)
    d_lambda = math.radians(lon2 - lon1)

    a = math.sin(d_phi / 2) ** 2 + math.cos(phi1) * math.cos(phi2) * math.sin(d_lambda / 2) ** 2
    return 2 * EARTH_RADIUS_KM * math.atan2(math.sqrt(a), math.sqrt(1 - a))


def format_distance(km: float) -> str:
    """``"850m"`` below one kilometre, ``"12.3km"`` otherwise."""
    meters = round(km * 1000)
    if meters < 1000:
        return f"{meters}m"
    return f"{km:.1f}km"


def distance_from(
    origin: tuple[float, float],
    lat: float | None,
    lon: float | None,
) -> float:
    """Distance from origin, or +inf when the point has no coordinates."""
    if lat is None or lon is None:
        return math.inf
    return distance_km(origin[0], origin[1], lat, lon)


def sort_by_distance(
    items: Iterable[T],
    origin: tuple[float, float],
    coords: Callable[[T], tuple[float | None, float | None]],
) -> list[tuple[T, float]]:
    """Pair each item with its distance from origin and sort nearest first.

    The sort is stable, so items at equal distance (including every item
    without coordinates, which sort last) keep their incoming order.
    """
    ranked = [(item, distance_from(origin, *coords(item))) for item in items]
    ranked.sort(key=lambda pair: pair[1])
    return ranked
