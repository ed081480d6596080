# trace_graph/domain/entities/geography.py
from collections.abc import Mapping, Sequence
from dataclasses import dataclass, field
from typing import Literal

from trace_graph.domain.errors import InputError
from trace_graph.domain.geohash import DEFAULT_PRECISION, road_hash, road_node_ids

# (lon, lat) in degrees; distances are planar on the raw values
Position = tuple[float, float]
Pt = Position | Sequence[float]

BREAK = "-"  # path sentinel: the walk restarted here


def to_position(p: Pt) -> Position:
    if len(p) < 2:
        raise InputError(f"position needs (lon, lat), got {p!r}")
    return (float(p[0]), float(p[1]))


@dataclass(frozen=True)
class Road:
    coordinates: tuple[Position, ...]
    hash: str  # "{start geohash}.{end geohash}"
    id: str = "road"

    def __post_init__(self):
        if len(self.coordinates) < 2:
            raise InputError(
                f"road {self.id!r} needs at least two coordinates, got {len(self.coordinates)}"
            )
        road_node_ids(self.hash)

    @classmethod
    def from_coordinates(
        cls,
        coordinates: Sequence[Pt],
        id: str = "road",
        *,
        precision: int = DEFAULT_PRECISION,
        hash: str | None = None,
    ) -> "Road":
        coords = tuple(to_position(c) for c in coordinates)
        if len(coords) < 2:
            raise InputError(f"road {id!r} needs at least two coordinates, got {len(coords)}")
        return cls(coordinates=coords, hash=hash or road_hash(coords, precision), id=id)

    @property
    def start_hash(self) -> str:
        return road_node_ids(self.hash)[0]

    @property
    def end_hash(self) -> str:
        return road_node_ids(self.hash)[1]

    @property
    def last_index(self) -> int:
        return len(self.coordinates) - 1


@dataclass(frozen=True)
class MappedGpsPoint:
    """A raw GPS coordinate projected onto its nearest road."""

    coordinate: Position
    hash: str
    distance: float
    index: int  # segment index: the road vertex preceding the projection
    location: float  # fraction 0..1 along that segment
    road_hash: str
    src_hash: str  # hash of the unprojected point
    road_id: str | None = None  # parallel roads share a hash; the id picks the one projected onto

    @property
    def station(self) -> float:
        """Position along the road measured in vertices (vertex k sits at k)."""
        return self.index + self.location

    def lies_on(self, road: Road) -> bool:
        return self.road_hash == road.hash and self.road_id in (None, road.id)


# ---------------- Node map variants ----------------


@dataclass
class RoadEndpoint:
    hash: str
    coordinate: Position
    road_hashes: list[str] = field(default_factory=list)  # insertion order
    is_gps: bool = False
    gps_point: MappedGpsPoint | None = None  # first GPS projection merged into this junction
    kind: Literal["road"] = field(default="road", init=False)


@dataclass
class GpsNode:
    hash: str
    point: MappedGpsPoint
    kind: Literal["gps"] = field(default="gps", init=False)

    @property
    def is_gps(self) -> bool:
        return True

    @property
    def coordinate(self) -> Position:
        return self.point.coordinate

    @property
    def road_hashes(self) -> list[str]:
        return [self.point.road_hash]


Node = RoadEndpoint | GpsNode
NodeMap = Mapping[str, Node]
