import heapq
import math
from collections.abc import Sequence
from dataclasses import dataclass, field

from trace_graph.domain.entities.geography import MappedGpsPoint, Position, Pt, Road, to_position
from trace_graph.domain.geohash import DEFAULT_PRECISION, point_hash


@dataclass(eq=False)
class GraphNode:
    id: str  # geohash of the point
    point: Position
    is_gps: bool = False


@dataclass(frozen=True)
class GraphEdge:
    id: str  # "{from}.{to}"
    from_node: GraphNode
    to_node: GraphNode
    weight: float

    def other(self, node: GraphNode) -> GraphNode:
        return self.to_node if node.id == self.from_node.id else self.from_node


@dataclass
class Graph:
    nodes: list[GraphNode] = field(default_factory=list)
    edges: list[GraphEdge] = field(default_factory=list)
    node_map: dict[str, GraphNode] = field(default_factory=dict)
    _adj: dict[str, list[GraphEdge]] = field(default_factory=dict, repr=False)

    def neighbours(self, node: GraphNode) -> list[GraphEdge]:
        return self._adj.get(node.id, [])


def _dist(a: Position, b: Position) -> float:
    return math.hypot(b[0] - a[0], b[1] - a[1])


def create_graph() -> Graph:
    return Graph()


def create_graph_node(
    graph: Graph, point: Pt, is_gps: bool = False, precision: int = DEFAULT_PRECISION
) -> GraphNode:
    """Return the node for ``point``'s cell, creating it if new. The gps flag only ever turns on."""
    p = to_position(point)
    nid = point_hash(p, precision)
    node = graph.node_map.get(nid)
    if node is None:
        node = GraphNode(id=nid, point=p, is_gps=is_gps)
        graph.node_map[nid] = node
        graph.nodes.append(node)
        return node
    if is_gps and not node.is_gps:
        node.is_gps = True
    return node


def add_graph_edge(
    graph: Graph, a: GraphNode, b: GraphNode, weight: float | None = None
) -> GraphEdge | None:
    """Undirected edge a-b. Self loops and repeats (either direction) are ignored."""
    if a.id == b.id or edge_between(graph, a, b) is not None:
        return None
    edge = GraphEdge(
        id=f"{a.id}.{b.id}",
        from_node=a,
        to_node=b,
        weight=_dist(a.point, b.point) if weight is None else float(weight),
    )
    graph.edges.append(edge)
    graph._adj.setdefault(a.id, []).append(edge)
    graph._adj.setdefault(b.id, []).append(edge)
    return edge


def graph_from_roads(
    roads: Sequence[Road],
    mapped_gps_points: Sequence[MappedGpsPoint] = (),
    precision: int = DEFAULT_PRECISION,
) -> Graph:
    """
    Graph of every road vertex, with each projected GPS point spliced into the
    segment it landed on.
    """
    splits: dict[tuple[str, int], list[MappedGpsPoint]] = {}
    for p in mapped_gps_points:
        splits.setdefault((p.road_hash, p.index), []).append(p)

    g = create_graph()
    for road in roads:
        prev = create_graph_node(g, road.coordinates[0], precision=precision)
        for i in range(len(road.coordinates) - 1):
            on_segment = sorted(
                (p for p in splits.get((road.hash, i), ()) if p.lies_on(road)),
                key=lambda p: p.location,
            )
            for p in on_segment:
                node = create_graph_node(g, p.coordinate, is_gps=True, precision=precision)
                add_graph_edge(g, prev, node)
                prev = node
            nxt = create_graph_node(g, road.coordinates[i + 1], precision=precision)
            add_graph_edge(g, prev, nxt)
            prev = nxt
    return g


def _reconstruct(came_from: dict[str, GraphNode], current: GraphNode) -> list[GraphNode]:
    path = [current]
    while current.id in came_from:
        current = came_from[current.id]
        path.append(current)
    path.reverse()
    return path


def graph_search(graph: Graph, start: GraphNode, goal: GraphNode) -> list[GraphNode]:
    """
    A* from ``start`` to ``goal``. The straight-line heuristic is admissible because
    edge weights default to straight-line lengths. Empty list when no path exists.
    """
    if start.id not in graph.node_map or goal.id not in graph.node_map:
        return []
    start, goal = graph.node_map[start.id], graph.node_map[goal.id]

    def h(n: GraphNode) -> float:
        return _dist(n.point, goal.point)

    g_score: dict[str, float] = {start.id: 0.0}
    came_from: dict[str, GraphNode] = {}
    closed: set[str] = set()
    seq = 0  # FIFO among equal f
    open_heap: list[tuple[float, int, GraphNode]] = [(h(start), seq, start)]

    while open_heap:
        _, _, current = heapq.heappop(open_heap)
        if current.id in closed:
            continue  # stale entry
        if current.id == goal.id:
            return _reconstruct(came_from, current)
        closed.add(current.id)

        for edge in graph.neighbours(current):
            nb = edge.other(current)
            if nb.id in closed:
                continue
            tentative = g_score[current.id] + edge.weight
            if tentative >= g_score.get(nb.id, math.inf):
                continue
            came_from[nb.id] = current
            g_score[nb.id] = tentative
            seq += 1
            heapq.heappush(open_heap, (tentative + h(nb), seq, nb))

    return []


def edge_between(graph: Graph, a: GraphNode, b: GraphNode) -> GraphEdge | None:
    for e in graph.neighbours(a):
        if e.other(a).id == b.id:
            return e
    return None


def path_weight(graph: Graph, path: Sequence[GraphNode]) -> float:
    """Summed edge weight along ``path``; inf if two consecutive nodes are not adjacent."""
    total = 0.0
    for a, b in zip(path, path[1:]):
        e = edge_between(graph, a, b)
        if e is None:
            return math.inf
        total += e.weight
    return total
