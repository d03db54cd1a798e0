"""Assembler: turns the accumulated task outputs into a Report.

The assembler is the terminal task of every pipeline. It makes no external
call: it re-normalizes the raw outputs it needs, clamps the scores, and lowers
``overall`` for every degraded (unparseable or partly defaulted) input so the
iteration controller can react to bad model output.
"""

from collections.abc import Callable

from swarm.graph import TaskSpec
from swarm.state import GraphState, Report, TaskMessage
from swarm.utils.normalizer import normalize


def parse_output(state: GraphState, task: str, schema):
    """Normalized view of a task's raw output (all defaults if it never ran)."""
    return normalize((state.get("task_results") or {}).get(task, ""), schema)


def as_findings(items) -> list[dict]:
    """Coerce a list of model findings into structured records."""
    records = []
    for item in items or []:
        if isinstance(item, dict):
            records.append(item)
        elif item not in (None, ""):
            records.append({"description": str(item)})
    return records


def build_report(
    dimension_scores: dict,
    findings: dict | None = None,
    summary_text: str = "",
    *,
    scale: int = 100,
    degraded: int = 0,
    penalty: float = 0,
) -> Report:
    """Assemble a Report with bounded scores.

    ``overall`` falls back to the mean of the other dimensions when missing.
    ``penalty`` is expressed on a 0-100 scale and applied once per degraded
    input.
    """
    scores = {name: min(max(float(value), 0.0), scale) for name, value in dimension_scores.items()}
    if "overall" not in scores:
        others = list(scores.values())
        scores["overall"] = sum(others) / len(others) if others else 0.0

    if degraded and penalty:
        scores["overall"] = max(0.0, scores["overall"] - degraded * penalty * scale / 100)

    return Report(
        dimension_scores=scores,
        findings={key: as_findings(value) for key, value in (findings or {}).items()},
        summary_text=summary_text,
        scale=scale,
    )


def fallback_report(summary_text: str = "Pipeline did not produce a report.", scale: int = 100) -> Report:
    """Report returned when no assembly step ever completed."""
    return Report(dimension_scores={"overall": 0.0}, findings={}, summary_text=summary_text, scale=scale)


def assembler_task(name: str, assemble: Callable[[GraphState], Report], *, after=()) -> TaskSpec:
    """Terminal task writing ``report`` from ``assemble(state)``."""

    def run_assembler(state: GraphState) -> dict:
        report = assemble(state)
        return {
            "report": report,
            "messages": [TaskMessage(
                task=name,
                content=f"Report assembled (overall {report.overall:g}/{report.scale}).",
            )],
        }

    return TaskSpec(name, run_assembler, after=after)
