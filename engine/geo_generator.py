"""Deterministic synthetic geo units spread around UK population centres."""

from typing import List

from config.defaults import (
    DEFAULT_GEO_UNIT_COUNT, GEO_UNIT_HALF_SIZE_DEG, GEO_UNIT_JITTER_DEG,
    UK_POPULATION_CENTRES,
)
from engine.hashing import string_hash
from models.geo_unit import GeoUnit


def square_polygon(lat: float, lng: float, half_size: float = GEO_UNIT_HALF_SIZE_DEG) -> dict:
    """Closed GeoJSON square around a centre, coordinates as [lng, lat]."""
    return {
        "type": "Polygon",
        "coordinates": [[
            [lng - half_size, lat - half_size],
            [lng + half_size, lat - half_size],
            [lng + half_size, lat + half_size],
            [lng - half_size, lat + half_size],
            [lng - half_size, lat - half_size],
        ]],
    }


def generate_base_geo_units(audience_id: str, count: int = DEFAULT_GEO_UNIT_COUNT) -> List[GeoUnit]:
    """Unscored units; unit i sits near centre i % 10, jittered by hash(audience_id + i)."""
    units = []
    for i in range(max(0, count)):
        _, base_lat, base_lng = UK_POPULATION_CENTRES[i % len(UK_POPULATION_CENTRES)]
        seed = string_hash(audience_id + str(i))
        lat = base_lat + ((seed % 1000) / 1000 - 0.5) * GEO_UNIT_JITTER_DEG
        lng = base_lng + (((seed * 7) % 1000) / 1000 - 0.5) * GEO_UNIT_JITTER_DEG
        units.append(GeoUnit(
            geo_id=f"h3_{audience_id}_{i}_{seed}",
            geo_type="h3",
            geometry=square_polygon(lat, lng),
            centroid_lat=lat,
            centroid_lng=lng,
        ))
    return units
