import math
from collections.abc import Iterable, Sequence
from dataclasses import dataclass, field

from trace_graph.core.hooks import MatchHooks, NoopHooks
from trace_graph.domain.entities.geography import MappedGpsPoint, Position, Pt, Road, to_position
from trace_graph.domain.geohash import DEFAULT_PRECISION, point_hash
from trace_graph.domain.mechanics.projector import Projection, project

DEFAULT_MAX_DISTANCE = 0.005


@dataclass
class MappedGps:
    mapped_gps_points: list[MappedGpsPoint] = field(default_factory=list)
    dropped: list[int] = field(default_factory=list)  # input indices with no road in range


def _nearest(roads: Sequence[Road], position: Position) -> tuple[Road | None, Projection | None]:
    best_road, best = None, None
    for road in roads:
        candidate = project(position, road.coordinates)
        # strict: equidistant roads keep the first one seen
        if best is None or candidate.distance < best.distance:
            best_road, best = road, candidate
    return best_road, best


def _mapped(road: Road, nearest: Projection, position: Position, precision: int) -> MappedGpsPoint:
    return MappedGpsPoint(
        coordinate=nearest.coordinate,
        hash=point_hash(nearest.coordinate, precision),
        distance=nearest.distance,
        index=nearest.index,
        location=nearest.location,
        road_hash=road.hash,
        src_hash=point_hash(position, precision),
        road_id=road.id,
    )


def find_point_on_nearest_road(
    roads: Sequence[Road],
    point: Pt,
    max_distance: float = DEFAULT_MAX_DISTANCE,
    precision: int = DEFAULT_PRECISION,
) -> MappedGpsPoint | None:
    """Project ``point`` onto the nearest road, or None if nothing is within ``max_distance``."""
    position = to_position(point)
    road, nearest = _nearest(roads, position)
    if road is None or nearest.distance > max_distance:
        return None
    return _mapped(road, nearest, position, precision)


def map_gps_to_road(
    roads: Sequence[Road],
    gps_points: Iterable[Pt],
    *,
    max_distance: float = DEFAULT_MAX_DISTANCE,
    precision: int = DEFAULT_PRECISION,
    hooks: MatchHooks | None = None,
) -> MappedGps:
    hooks = hooks or NoopHooks()
    out = MappedGps()
    for i, p in enumerate(gps_points):
        position = to_position(p)
        road, nearest = _nearest(roads, position)
        if road is None or nearest.distance > max_distance:
            out.dropped.append(i)
            hooks.point_dropped(
                index=i,
                position=position,
                nearest_distance=math.inf if nearest is None else nearest.distance,
                max_distance=max_distance,
            )
            continue
        out.mapped_gps_points.append(_mapped(road, nearest, position, precision))
    return out


def map_gps_line_string_to_road(
    roads: Sequence[Road],
    traces: Iterable[Sequence[Pt]],
    *,
    max_distance: float = DEFAULT_MAX_DISTANCE,
    precision: int = DEFAULT_PRECISION,
    hooks: MatchHooks | None = None,
) -> MappedGps:
    """Same per-coordinate mapping over every coordinate of every line string, in order."""
    flat = [c for line in traces for c in line]
    return map_gps_to_road(
        roads, flat, max_distance=max_distance, precision=precision, hooks=hooks
    )
