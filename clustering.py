"""
Proximity clustering of positioned claim markers.

Markers are scanned in x order; each unassigned marker gathers every other
unassigned marker within a pixel radius, and the group becomes a cluster when
it reaches ``min_points``. The radius grows as the view zooms out
(threshold / zoom_scale), so wide windows cluster more.
"""

import bisect
import math
from collections import namedtuple
from dataclasses import dataclass

# Below this zoom scale the chart shows clusters instead of single markers
CLUSTER_ZOOM_CUTOFF = 0.7

PositionedClaim = namedtuple('PositionedClaim', ['claim_id', 'date', 'x', 'y'])

PointCluster = namedtuple(
    'PointCluster', ['id', 'x', 'y', 'count', 'claim_ids', 'min_date', 'max_date'])


@dataclass(frozen=True)
class ClusterConfig:
    threshold: float = 20.0   # px
    min_points: int = 5


def compute_clusters(points, config=None, zoom_scale=1.0):
    """Group PositionedClaims into centroid PointClusters.

    Points that do not end up in any cluster are simply absent from the
    result; see is_point_clustered().
    """
    config = config or ClusterConfig()
    radius = config.threshold / zoom_scale
    ordered = sorted(points, key=lambda p: p.x)
    xs = [p.x for p in ordered]
    assigned = set()
    clusters = []

    for point in ordered:
        if point.claim_id in assigned:
            continue
        lo = bisect.bisect_left(xs, point.x - radius)
        hi = bisect.bisect_right(xs, point.x + radius)
        nearby = [
            p for p in ordered[lo:hi]
            if p.claim_id not in assigned
            and (p.claim_id == point.claim_id
                 or math.hypot(p.x - point.x, p.y - point.y) <= radius)
        ]
        if len(nearby) < config.min_points:
            continue

        assigned.update(p.claim_id for p in nearby)
        dates = [p.date for p in nearby]
        clusters.append(PointCluster(
            id=f"cluster-{len(clusters)}",
            x=sum(p.x for p in nearby) / len(nearby),
            y=sum(p.y for p in nearby) / len(nearby),
            count=len(nearby),
            claim_ids=tuple(p.claim_id for p in nearby),
            min_date=min(dates),
            max_date=max(dates),
        ))

    return clusters


def is_point_clustered(claim_id, clusters):
    return any(claim_id in c.claim_ids for c in clusters)


def should_show_clusters(zoom_scale):
    return zoom_scale < CLUSTER_ZOOM_CUTOFF
