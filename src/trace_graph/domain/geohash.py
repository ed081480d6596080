# trace_graph/domain/geohash.py
from collections.abc import Sequence
from math import isfinite

from trace_graph.domain.errors import InputError

BASE32 = "0123456789bcdefghjkmnpqrstuvwxyz"
_DECODE = {c: i for i, c in enumerate(BASE32)}

# precision 9 is not enough to keep nearby projected points apart
DEFAULT_PRECISION = 10
MAX_PRECISION = 12

Position = tuple[float, float]


def _check_precision(precision: int) -> int:
    if not isinstance(precision, int) or isinstance(precision, bool):
        raise InputError(f"precision must be an int, got {precision!r}")
    if precision < 1:
        raise InputError(f"precision must be >= 1, got {precision}")
    return precision


def _check_position(position: Sequence[float]) -> Position:
    if len(position) < 2:
        raise InputError(f"position needs (lon, lat), got {position!r}")
    lon, lat = float(position[0]), float(position[1])
    if not (isfinite(lon) and isfinite(lat)):
        raise InputError(f"position must be finite, got {position!r}")
    if abs(lat) > 90.0:
        raise InputError(f"latitude out of range [-90, 90]: {lat}")
    if abs(lon) > 180.0:
        raise InputError(f"longitude out of range [-180, 180]: {lon}")
    return lon, lat


def encode(position: Sequence[float], precision: int = DEFAULT_PRECISION) -> str:
    """
    Encode a (lon, lat) position into a base32 geohash of ``precision`` characters.

    Bits interleave longitude first. A value only lands in the upper half of an
    interval when it is strictly greater than the midpoint, so (0, 0) encodes as
    ``7zzz...``.
    """
    _check_precision(precision)
    lon, lat = _check_position(position)

    lon_lo, lon_hi = -180.0, 180.0
    lat_lo, lat_hi = -90.0, 90.0
    chars: list[str] = []
    bits, value, even = 0, 0, True
    while len(chars) < precision:
        if even:
            mid = (lon_lo + lon_hi) / 2
            if lon > mid:
                value = (value << 1) | 1
                lon_lo = mid
            else:
                value <<= 1
                lon_hi = mid
        else:
            mid = (lat_lo + lat_hi) / 2
            if lat > mid:
                value = (value << 1) | 1
                lat_lo = mid
            else:
                value <<= 1
                lat_hi = mid
        even = not even
        bits += 1
        if bits == 5:
            chars.append(BASE32[value])
            bits, value = 0, 0
    return "".join(chars)


def decode_bbox(geohash: str) -> tuple[float, float, float, float]:
    """Return the cell as (min_lon, min_lat, max_lon, max_lat)."""
    if not geohash:
        raise InputError("geohash must be a non-empty string")
    lon_lo, lon_hi = -180.0, 180.0
    lat_lo, lat_hi = -90.0, 90.0
    even = True
    for c in geohash:
        try:
            cd = _DECODE[c]
        except KeyError:
            raise InputError(f"invalid geohash character {c!r} in {geohash!r}")
        for mask in (16, 8, 4, 2, 1):
            if even:
                mid = (lon_lo + lon_hi) / 2
                if cd & mask:
                    lon_lo = mid
                else:
                    lon_hi = mid
            else:
                mid = (lat_lo + lat_hi) / 2
                if cd & mask:
                    lat_lo = mid
                else:
                    lat_hi = mid
            even = not even
    return lon_lo, lat_lo, lon_hi, lat_hi


def decode(geohash: str) -> Position:
    """Centroid (lon, lat) of the geohash cell."""
    lon_lo, lat_lo, lon_hi, lat_hi = decode_bbox(geohash)
    return (lon_lo + lon_hi) / 2, (lat_lo + lat_hi) / 2


# ---------------- helpers used across the matcher ----------------


def point_hash(position: Sequence[float], precision: int = DEFAULT_PRECISION) -> str:
    return encode(position, precision)


def road_hash(coordinates: Sequence[Sequence[float]], precision: int = DEFAULT_PRECISION) -> str:
    if len(coordinates) < 2:
        raise InputError(f"a road needs at least two coordinates, got {len(coordinates)}")
    return f"{encode(coordinates[0], precision)}.{encode(coordinates[-1], precision)}"


def road_node_ids(rhash: str) -> tuple[str, str]:
    start, sep, end = rhash.partition(".")
    if not sep or not start or not end or "." in end:
        raise InputError(f"road hash must look like 'start.end', got {rhash!r}")
    return start, end


def short_hash(h: str | None) -> str:
    """Last four characters of each hash component; compact enough for logs."""
    if not h:
        return "undefined"
    return ".".join(part[-4:] for part in h.split("."))
