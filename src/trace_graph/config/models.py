from typing import Annotated, Literal

from pydantic import BaseModel, ConfigDict, Field, ValidationInfo, field_validator

from trace_graph.domain.geohash import DEFAULT_PRECISION, MAX_PRECISION


class LogModel(BaseModel):
    model_config = ConfigDict(extra="forbid")
    level: Literal["DEBUG", "INFO", "WARNING", "ERROR"] = "INFO"
    debug: bool = False


class MapperModel(BaseModel):
    model_config = ConfigDict(extra="forbid")
    # same units as the input coordinates; no geodesic correction is applied
    max_distance: float = 0.005
    hash_precision: int = DEFAULT_PRECISION

    @field_validator("max_distance")
    @classmethod
    def _positive(cls, v: float, info: ValidationInfo) -> float:
        if not v > 0:
            raise ValueError(f"{info.field_name} must be > 0")
        return v

    @field_validator("hash_precision")
    @classmethod
    def _precision_range(cls, v: int) -> int:
        if not 1 <= v <= MAX_PRECISION:
            raise ValueError(f"hash_precision must be within 1..{MAX_PRECISION}, got {v}")
        return v


# ----------------- ROUTE PLANNERS ---------------------


class RoutePlannerTraceModel(BaseModel):
    """Follow the ordered GPS trace through the road network."""

    model_config = ConfigDict(extra="forbid")
    kind: Literal["trace"] = "trace"
    include_all_gps_points: bool = True
    max_steps: int | None = None  # None => scaled to the number of targets

    @field_validator("max_steps")
    @classmethod
    def _min_steps(cls, v: int | None) -> int | None:
        if v is not None and v < 1:
            raise ValueError("max_steps must be >= 1")
        return v


class RoutePlannerShortestModel(BaseModel):
    """Cheapest road path between the first and last mapped GPS points (A*)."""

    model_config = ConfigDict(extra="forbid")
    kind: Literal["shortest"] = "shortest"


RoutePlannerUnion = Annotated[
    RoutePlannerTraceModel | RoutePlannerShortestModel,
    Field(discriminator="kind"),
]


# ------------------------------------------------------------------


class MatcherModel(BaseModel):
    model_config = ConfigDict(extra="forbid")
    name: str = "matcher"
    run_id: str = "local"
    mapper: MapperModel = Field(default_factory=MapperModel)
    route_planner: RoutePlannerUnion = Field(default_factory=RoutePlannerTraceModel)
    log: LogModel = LogModel()
