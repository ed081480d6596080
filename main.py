# main.py
import json
import sys

from trace_graph.app.build import build
from trace_graph.io.geojson import (
    line_strings_from_geojson,
    read_geojson,
    roads_from_geojson,
    route_to_geojson,
)


def run(roads_path: str, gps_path: str, cfg: dict | None = None) -> dict:
    app = build(cfg or {})
    precision = app.model.mapper.hash_precision

    roads = roads_from_geojson(read_geojson(roads_path), precision=precision)
    traces = line_strings_from_geojson(read_geojson(gps_path))

    result = app.match(roads, traces)
    return route_to_geojson(result.features, result.path)


if __name__ == "__main__":
    # usage: python main.py roads.geojson gps.geojson
    print(json.dumps(run(sys.argv[1], sys.argv[2])))
