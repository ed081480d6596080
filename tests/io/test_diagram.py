# tests/io/test_diagram.py
from trace_graph.domain.entities.geography import Road
from trace_graph.domain.mechanics.astar import graph_from_roads, graph_search
from trace_graph.domain.mechanics.mapper import map_gps_to_road
from trace_graph.io.diagram import render_mermaid, render_svg


def small_graph():
    roads = [
        Road.from_coordinates([(0, 0), (5, 0), (10, 0)], "r1", precision=9),
        Road.from_coordinates([(10, 0), (10, 10)], "r2", precision=9),
    ]
    points = map_gps_to_road(roads, [(2, 0)], max_distance=1, precision=9).mapped_gps_points
    return graph_from_roads(roads, points, precision=9)


def test_svg_has_one_shape_per_node_and_edge():
    g = small_graph()
    svg = render_svg(g)
    assert svg.startswith('<svg width="800" height="600"')
    assert svg.count("<circle") == len(g.nodes) == 5
    assert svg.count("<line") == len(g.edges) == 4
    assert "#ff0000" not in svg
    assert svg.count("#ff99ff") == 1


def test_svg_highlights_path_edges():
    g = small_graph()
    path = graph_search(g, g.nodes[0], g.nodes[-1])
    svg = render_svg(g, path, width=200, height=100, padding=10, node_radius=3)
    assert svg.count('stroke="#ff0000"') == len(path) - 1
    assert 'r="3"' in svg


def test_svg_single_node_graph():
    g = graph_from_roads([Road.from_coordinates([(1, 1), (1, 1)], precision=9)], precision=9)
    svg = render_svg(g)
    assert svg.count("<circle") == 1
    assert "<line" not in svg


def test_mermaid():
    g = small_graph()
    path = graph_search(g, g.nodes[0], g.nodes[-1])
    text = render_mermaid(g, [n.id for n in path])
    assert text.startswith("graph TD\n")
    assert text.count("---|") == len(g.edges)
    assert text.count("linkStyle") == len(path) - 1
    assert ":::gps" in text
