from collections.abc import Sequence
from dataclasses import dataclass

import numpy as np

from trace_graph.domain.entities.geography import Position, Pt, to_position
from trace_graph.domain.errors import InputError


@dataclass(frozen=True)
class Projection:
    coordinate: Position
    distance: float
    index: int  # segment index
    location: float  # fraction along the segment


def project(point: Pt, polyline: Sequence[Pt]) -> Projection:
    """
    Closest location on ``polyline`` to ``point``.

    Every segment is evaluated at once; the perpendicular foot is clamped to the
    segment ends and the globally nearest candidate wins, lowest segment index on ties.
    Distances are planar Euclidean on the raw coordinate values.
    """
    p = np.asarray(to_position(point), dtype=float)
    line = np.asarray([to_position(c) for c in polyline], dtype=float)
    if line.shape[0] < 2:
        raise InputError(f"polyline needs at least two coordinates, got {line.shape[0]}")

    a, b = line[:-1], line[1:]
    ab = b - a
    len2 = np.einsum("ij,ij->i", ab, ab)
    dot = np.einsum("ij,ij->i", p - a, ab)
    with np.errstate(divide="ignore", invalid="ignore"):
        t = np.where(len2 > 0.0, dot / len2, 0.0)
    t = np.clip(t, 0.0, 1.0)

    foot = a + t[:, None] * ab
    # clamped feet are the exact vertices, not a + 1.0 * (b - a)
    foot = np.where((t <= 0.0)[:, None], a, foot)
    foot = np.where((t >= 1.0)[:, None], b, foot)

    d = np.hypot(foot[:, 0] - p[0], foot[:, 1] - p[1])
    i = int(np.argmin(d))  # first occurrence on ties
    return Projection(
        coordinate=(float(foot[i, 0]), float(foot[i, 1])),
        distance=float(d[i]),
        index=i,
        location=float(t[i]),
    )


def distance(a: Pt, b: Pt) -> float:
    ax, ay = to_position(a)
    bx, by = to_position(b)
    return float(np.hypot(bx - ax, by - ay))
