"""
Distance Calculations for Location Services

Haversine formula for great-circle distance between two lat/lng points,
and conversion of that distance into walking minutes inside the hospital.
"""

import math

EARTH_RADIUS_KM = 6371.0
WALKING_SPEED_KMH = 5.0  # Average indoor walking pace


def haversine_km(lat1: float, lng1: float, lat2: float, lng2: float) -> float:
    """
    Calculate great-circle distance between two points in kilometers.
    Uses the Haversine formula.
    """
    lat1_r = math.radians(lat1)
    lat2_r = math.radians(lat2)
    dlat = math.radians(lat2 - lat1)
    dlng = math.radians(lng2 - lng1)

    a = (math.sin(dlat / 2) ** 2 +
         math.cos(lat1_r) * math.cos(lat2_r) * math.sin(dlng / 2) ** 2)
    c = 2 * math.atan2(math.sqrt(a), math.sqrt(1 - a))

    return EARTH_RADIUS_KM * c


def travel_minutes(distance_km: float, speed_kmh: float = WALKING_SPEED_KMH) -> int:
    """Whole minutes to cover distance_km, halves rounded up"""
    return int(math.floor(distance_km / speed_kmh * 60 + 0.5))
