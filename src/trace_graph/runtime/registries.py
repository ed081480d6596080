# runtime/registries.py
from collections.abc import Callable

from trace_graph.app.protocols import RoutePlanner
from trace_graph.config.models import (
    RoutePlannerShortestModel,
    RoutePlannerTraceModel,
    RoutePlannerUnion,
)
from trace_graph.domain.mechanics.route_planners import ShortestRoutePlanner, TraceRoutePlanner

RoutePlannerFactory = Callable[[RoutePlannerUnion, dict], RoutePlanner]

_route_planner_registry: dict[str, RoutePlannerFactory] = {}


# --------------------- Route Planners  ---------------------
def register_route_planner(kind: str):
    def deco(fn: RoutePlannerFactory):
        _route_planner_registry[kind] = fn
        return fn

    return deco


def make_route_planner(cfg: RoutePlannerUnion, *, deps: dict) -> RoutePlanner:
    """
    deps can include:
      - 'precision': int  # geohash precision shared with the mapper
    """
    try:
        factory = _route_planner_registry[cfg.kind]
    except KeyError:
        raise ValueError(f"Unknown route planner kind {cfg.kind!r}")
    return factory(cfg, deps)


@register_route_planner("trace")
def _make_trace(cfg: RoutePlannerTraceModel, deps):
    return TraceRoutePlanner(
        include_all_gps_points=cfg.include_all_gps_points, max_steps=cfg.max_steps
    )


@register_route_planner("shortest")
def _make_shortest(cfg: RoutePlannerShortestModel, deps):
    return ShortestRoutePlanner(precision=deps["precision"])
