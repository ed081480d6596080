# io/match_logging.py
import json
import logging
import sys

from trace_graph.core.hooks import NoopHooks
from trace_graph.domain.geohash import short_hash


def _default_json_logger(name="trace_graph", level="INFO"):
    logger = logging.getLogger(name)
    if not logger.handlers:
        h = logging.StreamHandler(sys.stdout)

        class _JsonFormatter(logging.Formatter):
            def format(self, record: logging.LogRecord) -> str:
                payload = {
                    "level": record.levelname,
                    "msg": record.getMessage(),
                    "logger": record.name,
                }
                extra = getattr(record, "extra", None)
                if isinstance(extra, dict):
                    payload.update(extra)
                return json.dumps(payload, default=str)

        h.setFormatter(_JsonFormatter())
        logger.addHandler(h)
        logger.setLevel(level)
    return logger


class MatchLogging(NoopHooks):
    """
    Structured logs for the matcher. Data-consistency problems are always logged;
    per-step walk events only when ``debug`` is set.
    """

    def __init__(
        self,
        run_id: str = "local",
        level: str = "INFO",
        debug: bool = False,
        logger: logging.Logger | None = None,
    ):
        self.run_id, self.debug = run_id, debug
        self.log = logger or _default_json_logger(level=level)

    def _emit(self, level: str, msg: str, **extra):
        payload = {"run_id": self.run_id}
        self.log.log(getattr(logging, level), msg, extra={"extra": {**payload, **extra}})

    # mapping

    def point_dropped(self, *, index, position, nearest_distance, max_distance):
        if self.debug:
            self._emit(
                "DEBUG",
                "point_dropped",
                index=index,
                position=list(position),
                nearest_distance=nearest_distance,
                max_distance=max_distance,
            )

    # walk

    def walk_step(self, *, step, cursor, current, target, action):
        if self.debug:
            self._emit(
                "DEBUG",
                "walk_step",
                step=step,
                cursor=cursor,
                current=short_hash(current),
                target=short_hash(target),
                action=action,
            )

    def join(self, *, current, target, join_node, road_a, road_b):
        if self.debug:
            self._emit(
                "DEBUG",
                "join",
                current=short_hash(current),
                target=short_hash(target),
                join_node=short_hash(join_node),
                road_a=short_hash(road_a),
                road_b=short_hash(road_b),
            )

    def run_break(self, *, current, target, road_a, road_b):
        self._emit(
            "INFO",
            "run_break",
            current=short_hash(current),
            target=short_hash(target),
            road_a=short_hash(road_a),
            road_b=short_hash(road_b),
        )

    def heal(self, *, removed, before, after):
        if self.debug:
            self._emit("DEBUG", "heal", removed=removed, before=before, after=after)

    # inconsistencies

    def node_missing(self, *, hash, stage):
        self._emit("ERROR", "node_missing", hash=hash, stage=stage)

    def step_cap(self, *, max_steps, cursor, targets):
        self._emit("WARNING", "step_cap", max_steps=max_steps, cursor=cursor, targets=targets)

    def reconstruct_error(self, *, run, reason, **kw):
        self._emit("ERROR", "reconstruct_error", run=run, reason=reason, **kw)
