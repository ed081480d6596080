# io/geojson.py
import json
from collections.abc import Iterator, Mapping, Sequence
from pathlib import Path

from trace_graph.domain.entities.geography import Position, Road, to_position
from trace_graph.domain.errors import InputError
from trace_graph.domain.geohash import DEFAULT_PRECISION
from trace_graph.domain.mechanics.graph_builder import split_runs
from trace_graph.domain.mechanics.reconstructor import to_feature_collection


def read_geojson(path: str | Path) -> dict:
    with open(path, encoding="utf-8") as f:
        return json.load(f)


def _features(data: Mapping) -> Iterator[tuple[object, Mapping]]:
    """(feature id, geometry) for a FeatureCollection, a Feature or a bare geometry."""
    kind = data.get("type")
    if kind == "FeatureCollection":
        for i, feat in enumerate(data.get("features", [])):
            yield from _feature(feat, i)
    elif kind == "Feature":
        yield from _feature(data, 0)
    elif kind is not None:
        yield 0, data
    else:
        raise InputError("GeoJSON object has no 'type'")


def _feature(feat: Mapping, i: int) -> Iterator[tuple[object, Mapping]]:
    geom = feat.get("geometry")
    if geom is None:
        return
    props = feat.get("properties") or {}
    fid = feat.get("id", props.get("id", i))
    if geom.get("type") == "GeometryCollection":
        for g in geom.get("geometries", []):
            yield fid, g
    else:
        yield fid, geom


def _line(coords: Sequence) -> list[Position]:
    return [to_position(c) for c in coords]


def line_strings_from_geojson(data: Mapping) -> list[list[Position]]:
    lines = []
    for _, geom in _features(data):
        kind = geom.get("type")
        if kind == "LineString":
            lines.append(_line(geom["coordinates"]))
        elif kind == "MultiLineString":
            lines.extend(_line(c) for c in geom["coordinates"])
        else:
            raise InputError(f"expected LineString geometry, got {kind!r}")
    return lines


def roads_from_geojson(data: Mapping, *, precision: int = DEFAULT_PRECISION) -> list[Road]:
    roads = []
    for fid, geom in _features(data):
        kind = geom.get("type")
        if kind == "LineString":
            parts = [geom["coordinates"]]
        elif kind == "MultiLineString":
            parts = geom["coordinates"]
        else:
            raise InputError(f"road {fid!r}: expected LineString geometry, got {kind!r}")
        for j, coords in enumerate(parts):
            rid = str(fid) if len(parts) == 1 else f"{fid}-{j}"
            roads.append(Road.from_coordinates(coords, id=rid, precision=precision))
    return roads


def positions_from_geojson(data: Mapping) -> list[Position]:
    """Every GPS fix in document order. Points, MultiPoints and line vertices are accepted."""
    out: list[Position] = []
    for _, geom in _features(data):
        kind = geom.get("type")
        coords = geom.get("coordinates")
        if kind == "Point":
            out.append(to_position(coords))
        elif kind in ("MultiPoint", "LineString"):
            out.extend(_line(coords))
        elif kind == "MultiLineString":
            for c in coords:
                out.extend(_line(c))
        else:
            raise InputError(f"unsupported GPS geometry {kind!r}")
    return out


def route_to_geojson(features: Sequence[Sequence[Position]], path: Sequence[str] = ()) -> dict:
    """One LineString per unbroken run. The matching run of ``path`` goes in each feature's properties."""
    fc = to_feature_collection(features)
    runs = split_runs(path)
    if len(runs) == len(fc["features"]):
        for feat, run in zip(fc["features"], runs):
            feat["properties"]["nodes"] = run
    return fc
