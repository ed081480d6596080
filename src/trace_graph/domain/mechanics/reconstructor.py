import math
from collections.abc import Iterable, Sequence
from dataclasses import dataclass, field

from trace_graph.core.hooks import MatchHooks, NoopHooks
from trace_graph.domain.entities.geography import Node, Position, Road
from trace_graph.domain.errors import InconsistencyError
from trace_graph.domain.mechanics.graph_builder import RouteGraph, locate, split_runs


@dataclass
class RouteFeatures:
    features: list[list[Position]] = field(default_factory=list)  # one line per unbroken run
    issues: list[InconsistencyError] = field(default_factory=list)


def _push(coords: list[Position], *more: Position) -> None:
    for c in more:
        if coords and coords[-1] == c:
            continue
        coords.append(c)


def _between(road: Road, head: float, tail: float) -> Iterable[Position]:
    """Road vertices strictly between two stations, in travel order."""
    if head <= tail:
        ks = range(math.floor(head) + 1, math.ceil(tail))
    else:
        ks = range(math.ceil(head) - 1, math.floor(tail), -1)
    return (road.coordinates[k] for k in ks)


def _common_road(graph: RouteGraph, head: Node, tail: Node):
    for rh in head.road_hashes:
        if rh not in tail.road_hashes:
            continue
        for road in graph.roads_for(rh):
            h, t = locate(head, road), locate(tail, road)
            if h is not None and t is not None:
                return road, h, t
    return None


def _node(graph: RouteGraph, h: str) -> Node:
    node = graph.node_map.get(h)
    if node is None:
        raise InconsistencyError("node missing from node map", hash=h, stage="reconstruct")
    return node


def _run_coordinates(graph: RouteGraph, run: list[str]) -> list[Position]:
    coords: list[Position] = []
    for head, tail in zip(run, run[1:]):
        road = graph.roads.get(f"{head}.{tail}")
        if road is not None:
            _push(coords, *road.coordinates)
            continue
        road = graph.roads.get(f"{tail}.{head}")
        if road is not None:
            _push(coords, *reversed(road.coordinates))
            continue

        head_node, tail_node = _node(graph, head), _node(graph, tail)
        found = _common_road(graph, head_node, tail_node)
        if found is None:
            raise InconsistencyError("no road shared by consecutive nodes", head=head, tail=tail)
        road, (h_station, h_coord), (t_station, t_coord) = found

        _push(coords, h_coord)
        _push(coords, *_between(road, h_station, t_station))
        _push(coords, t_coord)
    return coords


def graph_to_feature(graph: RouteGraph, *, hooks: MatchHooks | None = None) -> RouteFeatures:
    """
    Rebuild line geometry for every unbroken run of the path.

    Consecutive nodes joined by an explicit road take that road's coordinates whole;
    otherwise the road both nodes sit on is sliced between them. A run referencing
    an unknown node is dropped and reported; the other runs are still rebuilt.
    """
    hooks = hooks or NoopHooks()
    out = RouteFeatures()
    for i, run in enumerate(split_runs(graph.path)):
        try:
            coords = _run_coordinates(graph, run)
        except InconsistencyError as e:
            hooks.reconstruct_error(run=i, reason=e.reason, **e.context)
            out.issues.append(e)
            continue
        if len(coords) >= 2:
            out.features.append(coords)
    return out


def to_feature_collection(features: Iterable[Sequence[Position]]) -> dict:
    return {
        "type": "FeatureCollection",
        "features": [
            {
                "type": "Feature",
                "properties": {},
                "geometry": {"type": "LineString", "coordinates": [list(c) for c in line]},
            }
            for line in features
        ],
    }
