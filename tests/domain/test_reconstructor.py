# tests/domain/test_reconstructor.py
import dataclasses

import pytest

from trace_graph.core.hooks import NoopHooks
from trace_graph.domain.entities.geography import BREAK, Road
from trace_graph.domain.geohash import point_hash
from trace_graph.domain.mechanics.graph_builder import RouteGraph, build_graph, build_node_map
from trace_graph.domain.mechanics.mapper import map_gps_to_road
from trace_graph.domain.mechanics.reconstructor import graph_to_feature, to_feature_collection


def road(coords, id="road"):
    return Road.from_coordinates(coords, id, precision=9)


def h(x, y):
    return point_hash((x, y), 9)


def rebuild(roads, gps, include_all=True, max_distance=1000):
    points = map_gps_to_road(roads, gps, max_distance=max_distance, precision=9).mapped_gps_points
    graph = build_graph(roads, points, include_all_gps_points=include_all)
    return graph, graph_to_feature(graph)


def flat(features):
    return [c for line in features for pos in line for c in pos]


SINGLE = [road([(0, 0), (5, 0), (10, 0)], "road1")]


@pytest.mark.parametrize(
    "gps, expected",
    [
        ([(0, 0), (10, 0)], [0, 0, 5, 0, 10, 0]),
        ([(2.5, 0), (10, 0)], [2.5, 0, 5, 0, 10, 0]),
        ([(7.5, 0), (10, 0)], [7.5, 0, 10, 0]),
        ([(2.5, 0), (7.5, 0)], [2.5, 0, 5, 0, 7.5, 0]),
        ([(7.5, 0), (2.5, 0)], [7.5, 0, 5, 0, 2.5, 0]),
    ],
)
def test_single_road_slices(gps, expected):
    _, rebuilt = rebuild(SINGLE, gps)
    assert len(rebuilt.features) == 1
    assert flat(rebuilt.features) == pytest.approx(expected)


def test_explicit_road_reversed():
    roads = [road([(0, 0), (3, 1), (10, 0)], "bent")]
    graph, rebuilt = rebuild(roads, [(10, 0), (0, 0)])
    assert graph.path == [h(10, 0), h(0, 0)]
    assert flat(rebuilt.features) == pytest.approx([10, 0, 3, 1, 0, 0])


def test_triangle_simplified():
    roads = [
        road([(0, 0), (10, 0)], "r1"),
        road([(10, 0), (5, 5)], "r2"),
        road([(5, 5), (0, 0)], "r3"),
    ]
    _, rebuilt = rebuild(roads, [(7, 0), (7.5, 2.5), (5, 5), (0, 0)], include_all=False)
    assert flat(rebuilt.features) == pytest.approx([7, 0, 10, 0, 5, 5, 0, 0])


def test_across_a_shared_vertex():
    roads = [
        road([(0, 0), (5, 0), (10, 0)], "r1"),
        road([(10, 0), (10, 5), (10, 10)], "r2"),
    ]
    graph, rebuilt = rebuild(roads, [(5, 0), (10, 0), (10, 5)])
    assert graph.path == [h(5, 0), h(10, 0), h(10, 5)]
    assert flat(rebuilt.features) == pytest.approx([5, 0, 10, 0, 10, 5])


def test_long_reversed_road():
    roads = [road([(20, 0), (16, 0), (12, 0), (8, 0), (4, 0), (0, 0)], "reverse")]
    graph, rebuilt = rebuild(roads, [(5, 0), (7, 0), (13, 0), (19, 0)])
    assert graph.path == [h(5, 0), h(7, 0), h(13, 0), h(19, 0)]
    xs = [pos[0] for pos in rebuilt.features[0]]
    assert xs == pytest.approx([5, 7, 8, 12, 13, 16, 19])


def test_meeting_roads():
    roads = [
        road([(0, 0), (5, 0), (10, 0)], "west"),
        road([(20, 0), (15, 0), (10, 0)], "east"),
    ]
    graph, rebuilt = rebuild(roads, [(8, 0), (12, 0), (16, 0)])
    assert graph.path == [h(8, 0), h(10, 0), h(12, 0), h(16, 0)]
    xs = [pos[0] for pos in rebuilt.features[0]]
    assert xs == pytest.approx([8, 10, 12, 15, 16])


def test_t_junction_south_to_centre():
    roads = [
        road([(0, 0), (0, 5), (0, 10)], "road3"),
        road([(0, 0), (-5, 0), (-10, 0)], "road1"),
        road([(10, 0), (0, 0)], "road2"),
    ]
    _, rebuilt = rebuild(roads, [(0, 4), (1, 0)], include_all=False)
    assert flat(rebuilt.features) == pytest.approx([0, 4, 0, 0, 1, 0])


def test_disconnected_runs_become_separate_lines():
    roads = [road([(0, 0), (10, 0)], "a"), road([(10, 20), (20, 20)], "b")]
    graph, rebuilt = rebuild(
        roads,
        [(2, 0), (8, 0), (10, 10), (12, 20), (18, 20)],
        include_all=False,
        max_distance=5,
    )
    assert BREAK in graph.path
    assert len(rebuilt.features) == 2
    assert flat(rebuilt.features[:1]) == pytest.approx([2, 0, 8, 0])
    assert flat(rebuilt.features[1:]) == pytest.approx([12, 20, 18, 20])
    assert rebuilt.issues == []


class RecordingHooks(NoopHooks):
    def __init__(self):
        self.errors = []

    def reconstruct_error(self, **kw):
        self.errors.append(kw)


def test_missing_node_drops_only_its_run():
    roads = [road([(0, 0), (10, 0)], "a"), road([(10, 20), (20, 20)], "b")]
    nodes, by_hash = build_node_map(roads, [])
    path = [h(0, 0), h(10, 0), BREAK, h(10, 20), "s0000000"]
    graph = RouteGraph(path=path, node_map=nodes, roads=by_hash)

    hooks = RecordingHooks()
    rebuilt = graph_to_feature(graph, hooks=hooks)

    assert flat(rebuilt.features) == pytest.approx([0, 0, 10, 0])
    assert len(rebuilt.issues) == 1
    assert rebuilt.issues[0].context["hash"] == "s0000000"
    assert hooks.errors[0]["run"] == 1
    assert hooks.errors[0]["reason"] == "node missing from node map"


def test_to_feature_collection():
    fc = to_feature_collection([[(0, 0), (1, 1)]])
    assert fc["type"] == "FeatureCollection"
    (feat,) = fc["features"]
    assert feat["geometry"] == {"type": "LineString", "coordinates": [[0, 0], [1, 1]]}


PARALLEL = [
    road([(0, 0), (10, 0)], "straight"),
    road([(0, 0), (3, 5), (5, 6), (7, 5), (10, 0)], "bent"),
]


def test_parallel_roads_slice_the_road_projected_onto():
    assert PARALLEL[0].hash == PARALLEL[1].hash
    graph, rebuilt = rebuild(PARALLEL, [(5, 6.1), (7.3, 5)])

    assert rebuilt.issues == []
    (line,) = rebuilt.features
    t = 0.9 / 34
    assert flat([line]) == pytest.approx([5, 6, 7, 5, 7 + 3 * t, 5 - 5 * t])


def test_station_beyond_its_road_drops_the_run():
    points = map_gps_to_road(PARALLEL, [(5, 6.1), (7.3, 5)], max_distance=1000, precision=9)
    unlabelled = [dataclasses.replace(p, road_id=None) for p in points.mapped_gps_points]
    hooks = RecordingHooks()

    rebuilt = graph_to_feature(build_graph(PARALLEL, unlabelled), hooks=hooks)

    assert rebuilt.features == []
    assert len(rebuilt.issues) == 1
    assert rebuilt.issues[0].reason == "station outside road"
    assert hooks.errors[0]["road"] == "straight"
