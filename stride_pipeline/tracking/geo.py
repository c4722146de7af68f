"""
Great-circle distance helpers.
"""
import numpy as np

EARTH_RADIUS_KM = 6371.0


def haversine_km(lat1: float, lon1: float, lat2: float, lon2: float) -> float:
    """Distance between two coordinates in km."""
    lat1, lon1, lat2, lon2 = np.radians([lat1, lon1, lat2, lon2])
    dlat = lat2 - lat1
    dlon = lon2 - lon1
    a = np.sin(dlat / 2) ** 2 + np.cos(lat1) * np.cos(lat2) * np.sin(dlon / 2) ** 2
    return float(EARTH_RADIUS_KM * 2 * np.arctan2(np.sqrt(a), np.sqrt(1 - a)))


def route_distance_km(route) -> float:
    """Total length of a route given as (lat, lon) pairs."""
    if len(route) < 2:
        return 0.0
    return sum(haversine_km(*a, *b) for a, b in zip(route[:-1], route[1:]))
