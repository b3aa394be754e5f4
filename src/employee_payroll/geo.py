"""GPS distance helpers for branch proximity checks."""

from __future__ import annotations

import math
from collections.abc import Iterable
from dataclasses import dataclass
from typing import TYPE_CHECKING

if TYPE_CHECKING:
    from employee_payroll.models import Branch

EARTH_RADIUS_METERS = 6_371_000


@dataclass(frozen=True)
class GeoPoint:
    latitude: float
    longitude: float


@dataclass(frozen=True)
class NearbyBranch:
    branch: Branch
    distance_meters: float


def haversine_distance(a: GeoPoint, b: GeoPoint) -> float:
    """Great-circle distance between two points, in metres."""
    phi1 = math.radians(a.latitude)
    phi2 = math.radians(b.latitude)
    d_phi = math.radians(b.latitude - a.latitude)
    d_lambda = math.radians(b.longitude - a.longitude)

    h = math.sin(d_phi / 2) ** 2 + math.cos(phi1) * math.cos(phi2) * math.sin(d_lambda / 2) ** 2
    return EARTH_RADIUS_METERS * 2 * math.atan2(math.sqrt(h), math.sqrt(1 - h))


def validate_coordinates(latitude: float, longitude: float) -> list[str]:
    """Return error messages for out-of-range coordinates (empty if valid)."""
    errors: list[str] = []
    if math.isnan(latitude) or not -90 <= latitude <= 90:
        errors.append("Latitude must be between -90 and 90 degrees")
    if math.isnan(longitude) or not -180 <= longitude <= 180:
        errors.append("Longitude must be between -180 and 180 degrees")
    return errors


def branch_point(branch: Branch) -> GeoPoint:
    return GeoPoint(float(branch.latitude), float(branch.longitude))


def find_nearby_branches(
    branches: Iterable[Branch],
    point: GeoPoint,
    radius_meters: float,
) -> list[NearbyBranch]:
    """Branches within radius of point, closest first."""
    nearby = [
        NearbyBranch(branch=branch, distance_meters=haversine_distance(point, branch_point(branch)))
        for branch in branches
    ]
    return sorted(
        (n for n in nearby if n.distance_meters <= radius_meters),
        key=lambda n: n.distance_meters,
    )
