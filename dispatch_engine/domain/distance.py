"""
Great-circle distance using the Haversine formula.

Used directly by the geo index for ranking drivers, and by the route
resolver as its fallback when the routing provider cannot answer.  The
Earth is treated as a sphere of radius 6371 km; the error against real
road distance is accepted in exchange for a calculation that never fails
on finite input.

Complexity: O(1) per call.
"""

import math

EARTH_RADIUS_KM = 6_371.0


def haversine_km(
    lat1: float, lng1: float, lat2: float, lng2: float
) -> float:
    """Return the great-circle distance in **km** between two points."""
    lat1_r, lat2_r = math.radians(lat1), math.radians(lat2)
    dlat = math.radians(lat2 - lat1)
    dlng = math.radians(lng2 - lng1)

    a = (
        math.sin(dlat / 2) ** 2
        + math.cos(lat1_r) * math.cos(lat2_r) * math.sin(dlng / 2) ** 2
    )
    # Clamp: rounding can push ``a`` a hair above 1 for antipodal points
    return 2 * EARTH_RADIUS_KM * math.asin(math.sqrt(min(1.0, a)))


def haversine_m(
    lat1: float, lng1: float, lat2: float, lng2: float
) -> float:
    """Same as :func:`haversine_km`, in **metres**."""
    return haversine_km(lat1, lng1, lat2, lng2) * 1000.0
