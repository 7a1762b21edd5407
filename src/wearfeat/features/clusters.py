"""Location cluster assignment.

A point belongs to at most one cluster: the nearest cluster center whose
bubble radius contains it.  Distances are great-circle (haversine) meters.
"""

from __future__ import annotations

import math
from typing import Sequence

from wearfeat.config import DEFAULT_CLUSTER_RADIUS_M, LocationCluster

EARTH_RADIUS_M = 6_371_000.0

ONE_HOT_PREFIX = "locationClusterOneHot_"


def distance_meters(lat1: float, lon1: float, lat2: float, lon2: float) -> float:
    """Great-circle distance between two points, in meters."""
    d_lat = math.radians(lat2 - lat1)
    d_lon = math.radians(lon2 - lon1)
    r_lat1 = math.radians(lat1)
    r_lat2 = math.radians(lat2)

    a = (
        math.sin(d_lat / 2) ** 2
        + math.cos(r_lat1) * math.cos(r_lat2) * math.sin(d_lon / 2) ** 2
    )
    return EARTH_RADIUS_M * 2 * math.atan2(math.sqrt(a), math.sqrt(1 - a))


def cluster_radius(cluster: LocationCluster, default_radius_m: float = DEFAULT_CLUSTER_RADIUS_M) -> float:
    radius = cluster.radius_meters
    if radius is None or not math.isfinite(radius) or radius <= 0:
        return default_radius_m
    return radius


def assign_location_cluster(
    lat: float,
    lon: float,
    clusters: Sequence[LocationCluster],
    default_radius_m: float = DEFAULT_CLUSTER_RADIUS_M,
) -> str | None:
    """Key of the nearest cluster whose radius contains the point, else None."""
    best_key: str | None = None
    best_dist = math.inf
    for cluster in clusters:
        dist = distance_meters(lat, lon, cluster.lat, cluster.lon)
        if dist > cluster_radius(cluster, default_radius_m):
            continue
        if dist < best_dist:
            best_dist = dist
            best_key = cluster.key
    return best_key


def build_location_cluster_one_hot(
    cluster_key: str | None,
    clusters: Sequence[LocationCluster],
) -> dict[str, int]:
    """``locationClusterOneHot_<key>`` for every configured cluster.

    All entries are 0 when the point is unclustered.
    """
    return {
        f"{ONE_HOT_PREFIX}{c.key}": 1 if c.key == cluster_key else 0
        for c in clusters
    }
