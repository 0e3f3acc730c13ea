"""Haversine distance, formatting and nearest-first ordering."""

import math

import pytest

from sharecycle.services.distance import (
    distance_from,
    distance_km,
    format_distance,
    sort_by_distance,
)

SAO_PAULO = (-23.5505, -46.6333)
RIO = (-22.9068, -43.1729)
CAMPINAS = (-22.9099, -47.0626)

POINTS = [SAO_PAULO, RIO, CAMPINAS, (0.0, 0.0), (45.0, 179.9), (-45.0, -179.9)]


@pytest.mark.parametrize("a", POINTS)
@pytest.mark.parametrize("b", POINTS)
def test_distance_is_symmetric(a, b):
    assert distance_km(*a, *b) == pytest.approx(distance_km(*b, *a))


@pytest.mark.parametrize("a", POINTS)
def test_distance_to_self_is_zero(a):
    assert distance_km(*a, *a) == 0


def test_one_degree_of_longitude_on_the_equator():
    assert distance_km(0, 0, 0, 1) == pytest.approx(111.195, abs=0.01)


def test_sao_paulo_to_rio():
    assert 350 < distance_km(*SAO_PAULO, *RIO) < 365


def test_format_distance_below_one_kilometre_uses_metres():
    assert format_distance(0.85) == "850m"
    assert format_distance(0.0) == "0m"


def test_format_distance_from_one_kilometre_uses_one_decimal():
    assert format_distance(1.0) == "1.0km"
    assert format_distance(12.345) == "12.3km"


def test_format_distance_rounds_to_whole_metres_before_switching_units():
    assert format_distance(0.9994) == "999m"
    assert format_distance(0.9996) == "1.0km"


def test_distance_from_without_coordinates_is_infinite():
    assert math.isinf(distance_from(SAO_PAULO, None, -46.0))
    assert math.isinf(distance_from(SAO_PAULO, -23.0, None))


def test_sort_by_distance_nearest_first_and_missing_last():
    items = [
        ("rio", RIO),
        ("nowhere-1", (None, None)),
        ("campinas", CAMPINAS),
        ("here", SAO_PAULO),
        ("nowhere-2", (None, None)),
    ]
    ranked = sort_by_distance(items, SAO_PAULO, lambda item: item[1])

    assert [item[0] for item, _ in ranked] == [
        "here",
        "campinas",
        "rio",
        "nowhere-1",
        "nowhere-2",
    ]
    assert ranked[0][1] == 0
    assert math.isinf(ranked[-1][1])


def test_sort_by_distance_is_stable_for_ties():
    items = [("first", CAMPINAS), ("second", CAMPINAS), ("third", CAMPINAS)]
    ranked = sort_by_distance(items, SAO_PAULO, lambda item: item[1])
    assert [item[0] for item, _ in ranked] == ["first", "second", "third"]
