from collections.abc import Sequence

from trace_graph.app.protocols import PlannedRoute, RoutePlanner
from trace_graph.core.hooks import MatchHooks
from trace_graph.domain.entities.geography import MappedGpsPoint, Road
from trace_graph.domain.errors import InconsistencyError
from trace_graph.domain.geohash import DEFAULT_PRECISION
from trace_graph.domain.mechanics.astar import graph_from_roads, graph_search
from trace_graph.domain.mechanics.graph_builder import build_graph
from trace_graph.domain.mechanics.reconstructor import graph_to_feature


class TraceRoutePlanner(RoutePlanner):
    def __init__(self, include_all_gps_points: bool = True, max_steps: int | None = None):
        self.include_all_gps_points = include_all_gps_points
        self.max_steps = max_steps

    def plan(self, roads: Sequence[Road], points: Sequence[MappedGpsPoint], *, hooks: MatchHooks):
        graph = build_graph(
            roads,
            points,
            include_all_gps_points=self.include_all_gps_points,
            max_steps=self.max_steps,
            hooks=hooks,
        )
        rebuilt = graph_to_feature(graph, hooks=hooks)
        return PlannedRoute(
            path=graph.path,
            features=rebuilt.features,
            issues=[*graph.issues, *rebuilt.issues],
        )


class ShortestRoutePlanner(RoutePlanner):
    """Ignores intermediate fixes: A* over the road network from first to last mapped point."""

    def __init__(self, precision: int = DEFAULT_PRECISION):
        self.precision = precision

    def plan(self, roads: Sequence[Road], points: Sequence[MappedGpsPoint], *, hooks: MatchHooks):
        if len(points) < 2:
            return PlannedRoute(path=[], features=[])
        graph = graph_from_roads(roads, points, precision=self.precision)
        start = graph.node_map.get(points[0].hash)
        goal = graph.node_map.get(points[-1].hash)
        if start is None or goal is None:
            missing = points[0].hash if start is None else points[-1].hash
            hooks.node_missing(hash=missing, stage="shortest")
            issue = InconsistencyError("node missing from node map", hash=missing, stage="shortest")
            return PlannedRoute(path=[], features=[], issues=[issue])

        nodes = graph_search(graph, start, goal)
        if not nodes:
            issue = InconsistencyError("no road path", start=start.id, goal=goal.id)
            return PlannedRoute(path=[], features=[], issues=[issue])
        path = [n.id for n in nodes]
        features = [[n.point for n in nodes]] if len(nodes) >= 2 else []
        return PlannedRoute(path=path, features=features)
