import pytest
from utils.geo import haversine_km, round_km


def test_same_point_is_zero():
    assert haversine_km(12.97, 77.59, 12.97, 77.59) == 0


def test_one_degree_of_latitude():
    assert haversine_km(0, 0, 1, 0) == pytest.approx(111.19, abs=0.01)


def test_distance_is_symmetric():
    there = haversine_km(12.9716, 77.5946, 12.9600, 77.6000)
    back = haversine_km(12.9600, 77.6000, 12.9716, 77.5946)
    assert there == pytest.approx(back)


def test_round_km():
    assert round_km(1.26) == 1.3
    assert round_km(1.24) == 1.2
    assert round_km(None) is None
