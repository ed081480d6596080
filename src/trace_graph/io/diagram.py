# io/diagram.py
from collections.abc import Sequence

from trace_graph.domain.mechanics.astar import Graph, GraphEdge, GraphNode

PATH_STROKE, EDGE_STROKE = "#ff0000", "#333333"
GPS_FILL, ROAD_FILL = "#ff99ff", "#bbbbff"


def _node_id(n: GraphNode | str) -> str:
    return n if isinstance(n, str) else n.id


def _path_pairs(path: Sequence[GraphNode | str]) -> set[frozenset[str]]:
    ids = [_node_id(n) for n in path]
    return {frozenset((a, b)) for a, b in zip(ids, ids[1:])}


def _on_path(edge: GraphEdge, pairs: set[frozenset[str]]) -> bool:
    return frozenset((edge.from_node.id, edge.to_node.id)) in pairs


def _label(node: GraphNode) -> str:
    return f"({node.point[0]:.2f}, {node.point[1]:.2f})"


def render_mermaid(graph: Graph, path: Sequence[GraphNode | str] = ()) -> str:
    pairs = _path_pairs(path)
    lines = [
        "graph TD",
        f"    classDef gps fill:{GPS_FILL},stroke:#333,stroke-width:2px",
        f"    classDef road fill:{ROAD_FILL},stroke:#333,stroke-width:2px",
    ]
    for node in graph.nodes:
        kind = "GPS" if node.is_gps else "Road"
        lines.append(f'    {node.id}["{kind} {_label(node)}"]:::{kind.lower()}')
    for i, edge in enumerate(graph.edges):
        lines.append(f"    {edge.from_node.id} ---|{edge.weight:.2f}| {edge.to_node.id}")
        if _on_path(edge, pairs):
            lines.append(f"    linkStyle {i} stroke:{PATH_STROKE},stroke-width:2px")
    return "\n".join(lines) + "\n"


def render_svg(
    graph: Graph,
    path: Sequence[GraphNode | str] = (),
    width: int = 800,
    height: int = 600,
    padding: int = 50,
    node_radius: int = 5,
) -> str:
    """
    Plain SVG sketch of an A* graph: one <line> per edge (path edges in red,
    weight label at the midpoint) and one <circle> per node. Y is flipped so
    north is up.
    """
    pairs = _path_pairs(path)
    xs = [n.point[0] for n in graph.nodes] or [0.0]
    ys = [n.point[1] for n in graph.nodes] or [0.0]
    min_x, min_y = min(xs), min(ys)
    x_range = (max(xs) - min_x) or 1.0
    y_range = (max(ys) - min_y) or 1.0

    def sx(x: float) -> float:
        return (x - min_x) / x_range * (width - 2 * padding) + padding

    def sy(y: float) -> float:
        return height - ((y - min_y) / y_range * (height - 2 * padding) + padding)

    out = [
        f'<svg width="{width}" height="{height}" xmlns="http://www.w3.org/2000/svg">',
        '  <rect width="100%" height="100%" fill="white"/>',
    ]
    for edge in graph.edges:
        x1, y1 = sx(edge.from_node.point[0]), sy(edge.from_node.point[1])
        x2, y2 = sx(edge.to_node.point[0]), sy(edge.to_node.point[1])
        hot = _on_path(edge, pairs)
        out.append(
            f'  <line x1="{x1:.2f}" y1="{y1:.2f}" x2="{x2:.2f}" y2="{y2:.2f}" '
            f'stroke="{PATH_STROKE if hot else EDGE_STROKE}" stroke-width="{2 if hot else 1}"/>'
        )
        out.append(
            f'  <text x="{(x1 + x2) / 2:.2f}" y="{(y1 + y2) / 2 - 5:.2f}" '
            f'text-anchor="middle" font-size="10">{edge.weight:.2f}</text>'
        )
    for node in graph.nodes:
        x, y = sx(node.point[0]), sy(node.point[1])
        out.append(
            f'  <circle cx="{x:.2f}" cy="{y:.2f}" r="{node_radius}" '
            f'fill="{GPS_FILL if node.is_gps else ROAD_FILL}" stroke="#333333" stroke-width="1"/>'
        )
        out.append(
            f'  <text x="{x:.2f}" y="{y - node_radius - 5:.2f}" '
            f'text-anchor="middle" font-size="10">{_label(node)}</text>'
        )
    out.append("</svg>")
    return "\n".join(out) + "\n"
