# tests/domain/test_geohash.py
import math

import pytest

from trace_graph.domain.errors import InputError
from trace_graph.domain.geohash import (
    decode,
    decode_bbox,
    encode,
    point_hash,
    road_hash,
    road_node_ids,
    short_hash,
)


def test_known_cells():
    assert encode((0, 0), 9) == "7zzzzzzzz"
    assert encode((10, 0), 9) == "kpzpgxczb"
    assert encode((1, 1), 9) == "s00twy01m"
    assert encode((3, 3), 9) == "s0d1h60s3"
    # longitude first: (lon, lat)
    assert encode((2, 2), 9) == "s037ms06g"


def test_default_precision_is_ten():
    assert len(encode((151.2, -33.8))) == 10
    assert encode((151.2, -33.8)).startswith(encode((151.2, -33.8), 9))


@pytest.mark.parametrize(
    "pos",
    [(0.0, 0.0), (151.2093, -33.8688), (-0.1276, 51.5072), (-179.99, 89.99), (180.0, -90.0)],
)
@pytest.mark.parametrize("precision", [1, 5, 9, 12])
def test_decode_lands_in_encoded_cell(pos, precision):
    h = encode(pos, precision)
    min_lon, min_lat, max_lon, max_lat = decode_bbox(h)
    assert min_lon <= pos[0] <= max_lon
    assert min_lat <= pos[1] <= max_lat
    lon, lat = decode(h)
    assert encode((lon, lat), precision) == h


def test_cell_shrinks_with_precision():
    a = decode_bbox(encode((12.3, 45.6), 4))
    b = decode_bbox(encode((12.3, 45.6), 8))
    assert (b[2] - b[0]) < (a[2] - a[0])
    assert (b[3] - b[1]) < (a[3] - a[1])


@pytest.mark.parametrize(
    "pos, precision",
    [
        ((0, 91), 9),
        ((181, 0), 9),
        ((math.nan, 0), 9),
        ((0, math.inf), 9),
        ((0, 0), 0),
        ((0,), 9),
    ],
)
def test_encode_rejects_bad_input(pos, precision):
    with pytest.raises(InputError):
        encode(pos, precision)


@pytest.mark.parametrize("h", ["", "abc", "7zzi"])
def test_decode_rejects_bad_hash(h):
    with pytest.raises(InputError):
        decode(h)


def test_road_hash_and_node_ids():
    rh = road_hash([(0, 0), (0.5, 0.5), (1, 1)], 9)
    assert rh == "7zzzzzzzz.s00twy01m"
    assert road_node_ids(rh) == ("7zzzzzzzz", "s00twy01m")
    assert point_hash((0, 0), 9) == road_node_ids(rh)[0]

    with pytest.raises(InputError):
        road_hash([(0, 0)], 9)
    for bad in ("7zzzzzzzz", ".s00", "a.b.c"):
        with pytest.raises(InputError):
            road_node_ids(bad)


def test_short_hash():
    assert short_hash("kpzpgxczb") == "xczb"
    assert short_hash("7zzzzzzzz.s00twy01m") == "zzzz.y01m"
    assert short_hash(None) == "undefined"
