"""Swarm state: single source of truth passed through the graph."""

import itertools
from dataclasses import asdict, dataclass, field
from datetime import datetime, timezone
from typing import Annotated, Literal, Optional, TypedDict

from swarm.accumulator import merge_messages, merge_task_results

Phase = Literal["designing", "assembled", "iterating", "finalized"]

# Process-wide completion counter; orders messages across concurrent tasks.
_completion_seq = itertools.count()


def _utc_now() -> str:
    return datetime.now(timezone.utc).isoformat()


@dataclass(frozen=True)
class TaskMessage:
    """One textual emission of a task (a single attempt, or a status line)."""

    task: str
    content: str
    attempt: int = 1
    ok: bool = True
    degraded: bool = False
    parsed: Optional[dict] = None
    timestamp: str = field(default_factory=_utc_now)
    seq: int = field(default_factory=lambda: next(_completion_seq))

    def to_dict(self) -> dict:
        return asdict(self)


@dataclass(frozen=True)
class Report:
    """Externally visible result of one assembly step.

    Scores share one scale (0-10 or 0-100) and always include ``overall``.
    """

    dimension_scores: dict[str, float]
    findings: dict[str, list[dict]] = field(default_factory=dict)
    summary_text: str = ""
    scale: int = 100

    def __post_init__(self):
        if self.scale not in (10, 100):
            raise ValueError(f"Report scale must be 10 or 100, got {self.scale}.")
        if "overall" not in self.dimension_scores:
            raise ValueError("Report is missing the 'overall' dimension.")
        for name, score in self.dimension_scores.items():
            if not 0 <= score <= self.scale:
                raise ValueError(
                    f"Dimension '{name}' score {score} is outside 0-{self.scale}."
                )

    @property
    def overall(self) -> float:
        return self.dimension_scores["overall"]

    def to_dict(self) -> dict:
        return {
            "dimensionScores": dict(self.dimension_scores),
            "findings": {k: list(v) for k, v in self.findings.items()},
            "summaryText": self.summary_text,
            "scale": self.scale,
        }


class GraphState(TypedDict):
    input: str  # Problem description. Immutable after init.
    preferences: dict  # Per-run options (focus, targets, ...). Immutable.
    task_results: Annotated[dict[str, str], merge_task_results]  # Raw output per task.
    messages: Annotated[list[TaskMessage], merge_messages]  # Completion-ordered log.
    report: Optional[Report]  # Set once per pass by the assembly task.
    iteration: int  # Zero-based index of the current pass.
    max_iterations: int  # Upper bound on passes. Immutable.


def initial_state(problem: str, preferences: dict | None = None, max_iterations: int = 2) -> GraphState:
    """Build the state a run starts from."""
    return {
        "input": problem,
        "preferences": dict(preferences or {}),
        "task_results": {},
        "messages": [],
        "report": None,
        "iteration": 0,
        "max_iterations": max_iterations,
    }


@dataclass
class RunResult:
    """What a finished run hands to the report consumer."""

    report: Report
    messages: list[TaskMessage]
    passes: int
    iteration: int
    provider: str
    phase: Phase = "finalized"
    state: dict = field(default_factory=dict, repr=False)

    def to_payload(self) -> dict:
        return {
            "report": self.report.to_dict(),
            "messages": [m.to_dict() for m in self.messages],
            "passes": self.passes,
            "iteration": self.iteration,
            "provider": self.provider,
        }
