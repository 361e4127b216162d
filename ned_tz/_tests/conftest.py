"""
Shared fixtures: small hand-made Natural Earth style features.

Run with: python -m pytest ned_tz/_tests -v
"""

from typing import Any, Callable, Dict, List, Optional

import pytest


def make_square_feature(
    min_lng: float,
    min_lat: float,
    max_lng: float,
    max_lat: float,
    places: str = "Test Place",
    time_zone: str = "UTC+00:00",
    zone: float = 0.0,
    tz_name1st: Optional[str] = "Etc/UTC",
    dst_places: Optional[str] = None,
) -> Dict[str, Any]:
    """Feature dict with an axis-aligned rectangular Polygon and matching bbox."""
    ring = [
        [min_lng, min_lat],
        [max_lng, min_lat],
        [max_lng, max_lat],
        [min_lng, max_lat],
        [min_lng, min_lat],
    ]
    return {
        "type": "Feature",
        "bbox": [min_lng, min_lat, max_lng, max_lat],
        "properties": {
            "places": places,
            "time_zone": time_zone,
            "zone": zone,
            "tz_name1st": tz_name1st,
            "dst_places": dst_places,
        },
        "geometry": {"type": "Polygon", "coordinates": [ring]},
    }


@pytest.fixture
def square_feature() -> Callable[..., Dict[str, Any]]:
    """Factory for rectangular features (see make_square_feature)."""
    return make_square_feature


@pytest.fixture
def scenario_a_collection() -> Dict[str, Any]:
    """One square polygon [-10, 10] x [-10, 10]."""
    return {
        "type": "FeatureCollection",
        "features": [
            make_square_feature(-10.0, -10.0, 10.0, 10.0, tz_name1st="Test/Zone")
        ],
    }


@pytest.fixture
def small_collection() -> Dict[str, Any]:
    """Three overlapping zones with distinct metadata."""
    features: List[Dict[str, Any]] = [
        make_square_feature(
            -125.0,
            30.0,
            -114.0,
            49.0,
            places="Pacific coast",
            time_zone="UTC-08:00",
            zone=-8.0,
            tz_name1st="America/Los_Angeles",
            dst_places="Most of the zone",
        ),
        make_square_feature(
            -115.5,
            31.0,
            -102.0,
            49.0,
            places="Mountain",
            time_zone="UTC-07:00",
            zone=-7.0,
            tz_name1st="America/Denver",
        ),
        make_square_feature(
            75.0,
            8.0,
            90.0,
            30.0,
            places="India",
            time_zone="UTC+05:30",
            zone=5.5,
            tz_name1st="Asia/Kolkata",
        ),
    ]
    return {"type": "FeatureCollection", "features": features}
