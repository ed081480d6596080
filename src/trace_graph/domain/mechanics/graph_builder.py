"""
Road graph builder.

Seeds a node map from road endpoints and mapped GPS points (keyed by geohash, so a
GPS projection landing on a junction *is* that junction), then walks the ordered
GPS targets into a path of hashes. When two consecutive targets sit on different
roads the walk threads through the junction the roads share; when the roads share
nothing the path gets a break sentinel and a fresh run starts at the next target.
"""

from collections.abc import Mapping, Sequence
from dataclasses import dataclass, field
from types import MappingProxyType

from trace_graph.core.hooks import MatchHooks, NoopHooks
from trace_graph.domain.entities.geography import (
    BREAK,
    GpsNode,
    MappedGpsPoint,
    Node,
    NodeMap,
    Position,
    Road,
    RoadEndpoint,
)
from trace_graph.domain.errors import InconsistencyError
from trace_graph.domain.geohash import road_node_ids


@dataclass
class RouteGraph:
    path: list[str]
    node_map: NodeMap
    roads: Mapping[str, Road]  # road hash -> first road with that hash
    targets: list[MappedGpsPoint] = field(default_factory=list)
    issues: list[InconsistencyError] = field(default_factory=list)
    parallel: Mapping[str, tuple[Road, ...]] = field(default_factory=dict)  # road hash -> every road

    def roads_for(self, road_hash: str) -> tuple[Road, ...]:
        if road_hash in self.parallel:
            return self.parallel[road_hash]
        road = self.roads.get(road_hash)
        return () if road is None else (road,)

    @property
    def runs(self) -> list[list[str]]:
        return split_runs(self.path)


# ---------------- road helpers ----------------


def join_node(road_a: str, road_b: str) -> str | None:
    """
    The hash shared by the endpoints of two roads.

    Precedence is a.start==b.end, a.end==b.start, a.start==b.start, a.end==b.end;
    roads sharing both endpoints resolve to the first match.
    """
    a_start, a_end = road_node_ids(road_a)
    b_start, b_end = road_node_ids(road_b)
    for x, y in ((a_start, b_end), (a_end, b_start), (a_start, b_start), (a_end, b_end)):
        if x == y:
            return x
    return None


def roads_connected(road_a: str, road_b: str) -> bool:
    return road_a == road_b or join_node(road_a, road_b) is not None


def locate(node: Node, road: Road) -> tuple[float, Position] | None:
    """Station (vertex units along ``road``) and coordinate of ``node`` on ``road``."""
    if road.start_hash == node.hash:
        return 0.0, road.coordinates[0]
    if road.end_hash == node.hash:
        return float(road.last_index), road.coordinates[-1]
    point = node.point if isinstance(node, GpsNode) else node.gps_point
    if point is None or not point.lies_on(road):
        return None
    if not 0 <= point.station <= road.last_index:
        raise InconsistencyError(
            "station outside road", hash=node.hash, road=road.id, station=point.station
        )
    return point.station, point.coordinate


# ---------------- build phase ----------------


def build_node_map(
    roads: Sequence[Road], points: Sequence[MappedGpsPoint]
) -> tuple[NodeMap, Mapping[str, Road]]:
    nodes: dict[str, Node] = {}
    by_hash: dict[str, Road] = {}

    for road in roads:
        # roads with identical endpoints are indistinguishable by hash; first one wins
        by_hash.setdefault(road.hash, road)
        for h, coord in ((road.start_hash, road.coordinates[0]), (road.end_hash, road.coordinates[-1])):
            node = nodes.get(h)
            if node is None:
                nodes[h] = RoadEndpoint(hash=h, coordinate=coord, road_hashes=[road.hash])
            elif road.hash not in node.road_hashes:
                node.road_hashes.append(road.hash)

    for p in points:
        node = nodes.get(p.hash)
        if node is None:
            nodes[p.hash] = GpsNode(hash=p.hash, point=p)
        elif isinstance(node, RoadEndpoint):
            node.is_gps = True
            if node.gps_point is None:
                node.gps_point = p
            if p.road_hash not in node.road_hashes:
                node.road_hashes.append(p.road_hash)

    return MappingProxyType(nodes), MappingProxyType(by_hash)


def select_targets(
    points: Sequence[MappedGpsPoint], junctions: set[str], include_all: bool = True
) -> list[MappedGpsPoint]:
    """
    Required walk targets.

    Simplified mode keeps the first and last point, any point sitting on a road
    junction, and the points either side of a loss of road connectivity; everything
    in between is left to the walk to thread through.
    """
    if include_all or len(points) <= 2:
        return list(points)

    targets = [points[0]]
    anchor = points[0]
    last = len(points) - 1
    for i in range(1, len(points)):
        prev, point = points[i - 1], points[i]
        if not roads_connected(anchor.road_hash, point.road_hash):
            if prev is not anchor:
                targets.append(prev)
                anchor = prev
            if not roads_connected(anchor.road_hash, point.road_hash):
                targets.append(point)
                anchor = point
                continue
        if i == last or point.hash in junctions:
            targets.append(point)
            anchor = point
    return targets


# ---------------- walk phase ----------------


def _current_road(node: Node, next_road: str) -> str:
    hashes = node.road_hashes
    if next_road in hashes:
        return next_road
    for rh in hashes:
        if join_node(rh, next_road) is not None:
            return rh
    return hashes[0]


def _walk(
    targets: list[MappedGpsPoint],
    nodes: NodeMap,
    roads: Mapping[str, Road],
    *,
    max_steps: int,
    hooks: MatchHooks,
    issues: list[InconsistencyError],
) -> list[str]:
    if not targets:
        return []

    current = targets[0].hash
    path = [current]
    cursor, step = 0, 0
    while cursor < len(targets) - 1:
        if step >= max_steps:
            hooks.step_cap(max_steps=max_steps, cursor=cursor, targets=len(targets))
            issues.append(
                InconsistencyError("walk step cap exceeded", max_steps=max_steps, cursor=cursor)
            )
            break
        step += 1

        target = targets[cursor + 1]
        nxt = target.hash
        if nxt == current:
            cursor += 1
            hooks.walk_step(step=step, cursor=cursor, current=current, target=nxt, action="repeat")
            continue

        node = nodes.get(current)
        if node is None:
            hooks.node_missing(hash=current, stage="walk")
            issues.append(InconsistencyError("node missing from node map", hash=current, stage="walk"))
            break

        next_road = target.road_hash
        cur_road = _current_road(node, next_road)

        if f"{current}.{nxt}" in roads or f"{nxt}.{current}" in roads:
            action = "road"
        elif cur_road == next_road:
            action = "same_road"
        else:
            join = join_node(cur_road, next_road)
            if join is None or join == current:
                hooks.run_break(current=current, target=nxt, road_a=cur_road, road_b=next_road)
                action = "break"
            elif join == nxt:
                action = "join_target"
            else:
                hooks.join(
                    current=current, target=nxt, join_node=join, road_a=cur_road, road_b=next_road
                )
                hooks.walk_step(step=step, cursor=cursor, current=current, target=nxt, action="join")
                path.append(join)
                current = join
                continue

        if action == "break":
            path.append(BREAK)
        path.append(nxt)
        current = nxt
        cursor += 1
        hooks.walk_step(step=step, cursor=cursor, current=current, target=nxt, action=action)

    return path


# ---------------- healing ----------------


def heal_path(path: Sequence[str], hooks: MatchHooks | None = None) -> list[str]:
    """
    Remove immediate back-tracking until nothing changes: ``A, B, A`` becomes ``A``
    and repeated neighbours collapse. Break sentinels never form part of a triple.
    """
    hooks = hooks or NoopHooks()
    healed = list(path)
    changed = True
    while changed:
        changed = False
        out: list[str] = []
        for h in healed:
            if out and out[-1] == h:
                changed = True
                continue
            if len(out) >= 2 and out[-2] == h and h != BREAK and out[-1] != BREAK:
                out.pop()
                changed = True
                continue
            out.append(h)
        healed = out
    if len(healed) != len(path):
        hooks.heal(removed=len(path) - len(healed), before=len(path), after=len(healed))
    return healed


def split_runs(path: Sequence[str]) -> list[list[str]]:
    """Runs between break sentinels; runs of a single node are dropped."""
    runs: list[list[str]] = []
    run: list[str] = []
    for h in [*path, BREAK]:
        if h == BREAK:
            if len(run) >= 2:
                runs.append(run)
            run = []
        else:
            run.append(h)
    return runs


def join_runs(runs: Sequence[Sequence[str]]) -> list[str]:
    out: list[str] = []
    for run in runs:
        if out:
            out.append(BREAK)
        out.extend(run)
    return out


# ---------------- entry point ----------------


def build_graph(
    roads: Sequence[Road],
    mapped_gps_points: Sequence[MappedGpsPoint],
    *,
    include_all_gps_points: bool = True,
    max_steps: int | None = None,
    hooks: MatchHooks | None = None,
) -> RouteGraph:
    hooks = hooks or NoopHooks()
    nodes, by_hash = build_node_map(roads, mapped_gps_points)
    junctions = {h for h, n in nodes.items() if isinstance(n, RoadEndpoint)}
    targets = select_targets(mapped_gps_points, junctions, include_all_gps_points)

    issues: list[InconsistencyError] = []
    raw = _walk(
        targets,
        nodes,
        by_hash,
        max_steps=max_steps if max_steps is not None else 4 * len(targets) + 16,
        hooks=hooks,
        issues=issues,
    )
    path = join_runs(split_runs(heal_path(raw, hooks)))

    parallel: dict[str, tuple[Road, ...]] = {}
    for road in roads:
        parallel[road.hash] = (*parallel.get(road.hash, ()), road)
    return RouteGraph(
        path=path,
        node_map=nodes,
        roads=by_hash,
        targets=targets,
        issues=issues,
        parallel=MappingProxyType(parallel),
    )
