"""
Geospatial Aggregator for the Market Engine

Computes a representative center and an enclosing radius for a market:
- Center: planar centroid of member coordinates (city scale, no geodesic
  correction)
- Radius: maximum great-circle distance from the center, in meters
- Fallback radius when the members collapse to a single point
"""

import math
from dataclasses import dataclass
from typing import List

from .models import BoundingRegion, Coordinate


# =============================================================================
# Configuration Constants
# =============================================================================

# Mean Earth radius (IUGG), meters
EARTH_RADIUS_M = 6_371_008.8

# Radius used when a market has a single point or zero spread (meters)
DEFAULT_FALLBACK_RADIUS_M = 5000.0

# Radii below this are centroid rounding noise, i.e. zero spread (meters)
ZERO_RADIUS_TOLERANCE_M = 1e-6


@dataclass(frozen=True)
class MarketGeometry:
    """Center and radius of a market."""
    center: Coordinate
    radius_m: float


def haversine_distance_m(a: Coordinate, b: Coordinate) -> float:
    """
    Calculate distance between two points in meters using Haversine formula.

    Args:
        a: First point
        b: Second point

    Returns:
        Distance in meters
    """
    lat1_rad = math.radians(a.latitude)
    lat2_rad = math.radians(b.latitude)
    dlat = math.radians(b.latitude - a.latitude)
    dlon = math.radians(b.longitude - a.longitude)

    h = (
        math.sin(dlat / 2) ** 2
        + math.cos(lat1_rad) * math.cos(lat2_rad) * math.sin(dlon / 2) ** 2
    )
    # Clamp guards against rounding pushing h past 1 for antipodal points
    c = 2 * math.asin(math.sqrt(min(1.0, h)))

    return EARTH_RADIUS_M * c


def centroid(coordinates: List[Coordinate]) -> Coordinate:
    """Mean latitude and mean longitude of a non-empty coordinate list."""
    if not coordinates:
        raise ValueError("cannot take the centroid of an empty coordinate set")
    n = len(coordinates)
    return Coordinate(
        latitude=math.fsum(c.latitude for c in coordinates) / n,
        longitude=math.fsum(c.longitude for c in coordinates) / n,
    )


def compute_market_geometry(
    members: List[Coordinate],
    fallback_radius_m: float = DEFAULT_FALLBACK_RADIUS_M,
) -> MarketGeometry:
    """
    Compute the center and enclosing radius of a set of member points.

    Pure function: the same member list always yields the same geometry.

    Args:
        members: Coordinates of every market member
        fallback_radius_m: Radius substituted for single-point or zero-spread
            member sets so the market stays visible

    Returns:
        MarketGeometry with center and radius in meters

    Raises:
        ValueError: If ``members`` is empty
    """
    center = centroid(members)

    if len(members) == 1:
        return MarketGeometry(center=center, radius_m=fallback_radius_m)

    radius = max(haversine_distance_m(center, point) for point in members)
    if radius <= ZERO_RADIUS_TOLERANCE_M:
        radius = fallback_radius_m

    return MarketGeometry(center=center, radius_m=radius)


def bounding_region(coordinates: List[Coordinate]) -> BoundingRegion:
    """Minimal rectangle enclosing every coordinate (unpadded)."""
    return BoundingRegion.from_coordinates(coordinates)
