"""Great-circle distance helpers."""

from __future__ import annotations

import math
from typing import Any, Dict, Optional

EARTH_RADIUS_KM = 6371.0

__all__ = ["EARTH_RADIUS_KM", "haversine_km", "build_geojson_point", "parse_geojson_point"]


def haversine_km(lat1: float, lon1: float, lat2: float, lon2: float) -> float:
    """Return the great-circle distance in kilometers between two coordinates.

    Inputs are decimal degrees and are expected to be within +/-90 / +/-180;
    callers validate upstream.
    """
    phi1 = math.radians(lat1)
    phi2 = math.radians(lat2)
    dphi = math.radians(lat2 - lat1)
    dlambda = math.radians(lon2 - lon1)

    sin_dphi = math.sin(dphi / 2.0)
    sin_dlambda = math.sin(dlambda / 2.0)
    a = sin_dphi * sin_dphi + math.cos(phi1) * math.cos(phi2) * sin_dlambda * sin_dlambda
    # rounding can push a marginally past 1 for antipodal points
    a = min(1.0, max(0.0, a))
    c = 2 * math.atan2(math.sqrt(a), math.sqrt(1.0 - a))
    return float(EARTH_RADIUS_KM * c)


def build_geojson_point(lat: float, lon: float) -> Dict[str, Any]:
    return {"type": "Point", "coordinates": [float(lon), float(lat)]}


def parse_geojson_point(raw: Any) -> Optional[Dict[str, float]]:
    if not isinstance(raw, dict):
        return None
    gtype = str(raw.get("type") or "").strip().lower()
    if gtype != "point":
        return None
    coords = raw.get("coordinates")
    if not isinstance(coords, (list, tuple)) or len(coords) < 2:
        return None
    # GeoJSON order is [lon, lat]
    return {"lat": coords[1], "lon": coords[0]}
