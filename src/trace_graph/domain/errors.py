# trace_graph/domain/errors.py


class TraceGraphError(Exception):
    """Base for everything the matcher raises or reports."""


class InputError(TraceGraphError, ValueError):
    """Malformed geometry or parameters, rejected at entry."""


class InconsistencyError(TraceGraphError):
    """
    A referenced hash is missing from the node map (or a pair of nodes shares no road).
    Never raised by the pipeline: collected into ``issues`` and logged.
    """

    def __init__(self, reason: str, **context):
        self.reason = reason
        self.context = context
        detail = ", ".join(f"{k}={v!r}" for k, v in context.items())
        super().__init__(f"{reason} ({detail})" if detail else reason)
