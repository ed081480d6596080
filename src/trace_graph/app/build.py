# trace_graph/app/build.py
from collections.abc import Mapping, Sequence
from dataclasses import dataclass, field

from trace_graph.app.protocols import RoutePlanner
from trace_graph.config.models import MatcherModel
from trace_graph.core.hooks import MatchHooks, NoopHooks
from trace_graph.domain.entities.geography import MappedGpsPoint, Position, Pt, Road
from trace_graph.domain.errors import InconsistencyError, InputError
from trace_graph.domain.mechanics.mapper import map_gps_line_string_to_road, map_gps_to_road
from trace_graph.io.match_logging import MatchLogging
from trace_graph.runtime.registries import make_route_planner


@dataclass
class MatchResult:
    mapped_gps_points: list[MappedGpsPoint]
    dropped: list[int]
    path: list[str]
    features: list[list[Position]]
    issues: list[InconsistencyError] = field(default_factory=list)


def _is_line_strings(gps: Sequence) -> bool:
    # a line string's first element is itself a coordinate pair
    if not gps:
        return False
    first = gps[0]
    return len(first) > 0 and isinstance(first[0], Sequence)


@dataclass
class App:
    model: MatcherModel
    hooks: MatchHooks
    route_planner: RoutePlanner

    def roads(self, roads: Sequence[Road | Sequence[Pt]]) -> list[Road]:
        precision = self.model.mapper.hash_precision
        out = []
        for i, r in enumerate(roads):
            if isinstance(r, Road):
                # GPS nodes only merge into junctions hashed at the same precision
                if len(r.start_hash) != precision or len(r.end_hash) != precision:
                    raise InputError(
                        f"road {r.id!r} is hashed at precision {len(r.start_hash)}, "
                        f"mapper uses {precision}"
                    )
                out.append(r)
            else:
                out.append(Road.from_coordinates(r, id=f"road-{i}", precision=precision))
        return out

    def match(self, roads: Sequence[Road | Sequence[Pt]], gps: Sequence) -> MatchResult:
        if isinstance(gps, (str, bytes)):
            raise InputError("gps must be a sequence of positions or line strings")
        network = self.roads(roads)
        mapper = self.model.mapper
        map_fn = map_gps_line_string_to_road if _is_line_strings(gps) else map_gps_to_road
        mapped = map_fn(
            network,
            gps,
            max_distance=mapper.max_distance,
            precision=mapper.hash_precision,
            hooks=self.hooks,
        )
        route = self.route_planner.plan(network, mapped.mapped_gps_points, hooks=self.hooks)
        return MatchResult(
            mapped_gps_points=mapped.mapped_gps_points,
            dropped=mapped.dropped,
            path=route.path,
            features=route.features,
            issues=route.issues,
        )


def build(cfg: MatcherModel | Mapping, *, use_logging: bool = True) -> App:
    # 0) Validate config
    model = cfg if isinstance(cfg, MatcherModel) else MatcherModel.model_validate(cfg)

    # 1) Hooks
    hooks = (
        MatchLogging(run_id=model.run_id, level=model.log.level, debug=model.log.debug)
        if use_logging
        else NoopHooks()
    )

    # 2) Planner
    planner = make_route_planner(
        model.route_planner, deps={"precision": model.mapper.hash_precision}
    )
    return App(model=model, hooks=hooks, route_planner=planner)
