# core/hooks.py
from typing import Protocol


class MatchHooks(Protocol):
    def point_dropped(self, *, index, position, nearest_distance, max_distance): ...
    def walk_step(self, *, step, cursor, current, target, action): ...
    def join(self, *, current, target, join_node, road_a, road_b): ...
    def run_break(self, *, current, target, road_a, road_b): ...
    def heal(self, *, removed, before, after): ...
    def node_missing(self, *, hash, stage): ...
    def step_cap(self, *, max_steps, cursor, targets): ...
    def reconstruct_error(self, *, run, reason, **kw): ...


class NoopHooks:
    def point_dropped(self, **_):
        pass

    def walk_step(self, **_):
        pass

    def join(self, **_):
        pass

    def run_break(self, **_):
        pass

    def heal(self, **_):
        pass

    def node_missing(self, **_):
        pass

    def step_cap(self, **_):
        pass

    def reconstruct_error(self, **_):
        pass
