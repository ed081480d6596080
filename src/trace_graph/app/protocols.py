from collections.abc import Sequence
from dataclasses import dataclass, field
from typing import Protocol, runtime_checkable

from trace_graph.core.hooks import MatchHooks
from trace_graph.domain.entities.geography import MappedGpsPoint, Position, Road
from trace_graph.domain.errors import InconsistencyError


@dataclass
class PlannedRoute:
    path: list[str]  # node hashes, "-" between disconnected runs
    features: list[list[Position]]
    issues: list[InconsistencyError] = field(default_factory=list)


@runtime_checkable
class RoutePlanner(Protocol):
    """
    Responsibilities:
      • Turn roads + mapped GPS points into a node-hash path.
      • Rebuild line geometry for that path (one line per unbroken run).
    Coordinates are raw (lon, lat); distances are planar.
    """

    def plan(
        self,
        roads: Sequence[Road],
        points: Sequence[MappedGpsPoint],
        *,
        hooks: MatchHooks,
    ) -> PlannedRoute: ...
