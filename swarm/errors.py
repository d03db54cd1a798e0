"""Exception hierarchy for the orchestration engine.

Fatal errors abort a run and reach the caller. Malformed model output and
augmentation failures are recovered where they happen and never show up here.
"""


class SwarmError(Exception):
    """Base class for every error raised by the engine."""


class ConfigurationError(SwarmError):
    """Settings are missing or invalid (bad bounds, missing API key, ...)."""


class NoUsableBackendError(SwarmError):
    """No candidate provider answered the probe call."""

    def __init__(self, tried: list[str] | None = None):
        self.tried = list(tried or [])
        detail = f" (tried: {', '.join(self.tried)})" if self.tried else ""
        super().__init__(f"No usable backend: configure a provider{detail}.")


class GraphDefinitionError(SwarmError, ValueError):
    """The task table is not a valid pipeline graph."""

    def __init__(self, issues: list[str]):
        self.issues = list(issues)
        super().__init__("Invalid pipeline graph: " + " ".join(self.issues))


class StateConflictError(SwarmError):
    """A partial update breaks the accumulation rules of GraphState."""


class TaskExecutionError(SwarmError):
    """A task failed for good; the run is aborted.

    The originating exception is chained as ``__cause__``.
    """

    def __init__(self, task: str, error: BaseException):
        self.task = task
        self.error = error
        super().__init__(f"Task '{task}' failed: {error!r}")
