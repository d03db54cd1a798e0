"""Design review pipeline.

Flow:
    [requirements-analyst, risk-analyst]        (parallel)
        -> supervisor                           (merges and cross-checks)
        -> [architecture-planner, test-planner] (parallel)
        -> scorer
        -> assembler -> (iterate or finalize)
"""

from dataclasses import dataclass, field

from swarm.agents.assembler import assembler_task, build_report, parse_output
from swarm.agents.specialist import json_instructions, specialist_task

SCORE = {"bounds": (0, 100)}


@dataclass
class AnalystOutput:
    findings: list = field(default_factory=list)
    summary: str = ""


@dataclass
class SupervisorOutput:
    gaps: list = field(default_factory=list)
    contradictions: list = field(default_factory=list)
    summary: str = ""


@dataclass
class PlanOutput:
    steps: list = field(default_factory=list)
    summary: str = ""


@dataclass
class ScoreOutput:
    feasibility: float = field(default=50, metadata=SCORE)
    risk_coverage: float = field(default=50, metadata=SCORE)
    completeness: float = field(default=50, metadata=SCORE)
    clarity: float = field(default=50, metadata=SCORE)
    overall: float = field(default=50, metadata=SCORE)
    verdict: str = ""


OUTPUT_SCHEMAS = {
    "requirements-analyst": AnalystOutput,
    "risk-analyst": AnalystOutput,
    "supervisor": SupervisorOutput,
    "architecture-planner": PlanOutput,
    "test-planner": PlanOutput,
    "scorer": ScoreOutput,
}

PROMPTS = {
    "requirements-analyst": "You are a requirements analyst. List the functional and non-functional "
    "requirements implied by the problem, each as {\"title\", \"description\", \"priority\"}.",
    "risk-analyst": "You are a risk analyst. Identify the main technical and delivery risks of the "
    "problem, each as {\"title\", \"description\", \"severity\", \"mitigation\"}.",
    "supervisor": "You are the review supervisor. Cross-check the requirements against the risks, "
    "list uncovered requirements as gaps and any contradictions between the two analyses.",
    "architecture-planner": "You are a software architect. Propose the implementation steps that "
    "satisfy the requirements and close the supervisor's gaps.",
    "test-planner": "You are a test lead. Propose the verification steps that prove the requirements "
    "are met and the risks are mitigated.",
    "scorer": "You are a design reviewer. Score the combined analysis from 0 to 100 on feasibility, "
    "risk coverage, completeness and clarity, plus an overall score, and give a one-paragraph verdict.",
}


def _prompt(name: str) -> str:
    return f"{PROMPTS[name]}\n\n{json_instructions(OUTPUT_SCHEMAS[name])}"


def build(ctx) -> list:
    """Task table for one design review run."""
    penalty = ctx.setting("degraded_penalty", 0)

    def assemble(state):
        parts = {name: parse_output(state, name, schema) for name, schema in OUTPUT_SCHEMAS.items()}
        scores = parts["scorer"].value
        supervisor = parts["supervisor"].value
        return build_report(
            {
                "feasibility": scores.feasibility,
                "risk_coverage": scores.risk_coverage,
                "completeness": scores.completeness,
                "clarity": scores.clarity,
                "overall": scores.overall,
            },
            findings={
                "requirements": parts["requirements-analyst"].value.findings,
                "risks": parts["risk-analyst"].value.findings,
                "gaps": supervisor.gaps,
                "contradictions": supervisor.contradictions,
                "architecture": parts["architecture-planner"].value.steps,
                "verification": parts["test-planner"].value.steps,
            },
            summary_text=scores.verdict or supervisor.summary,
            degraded=sum(result.degraded for result in parts.values()),
            penalty=penalty,
        )

    analysts = ("requirements-analyst", "risk-analyst")
    planners = ("architecture-planner", "test-planner")
    return [
        specialist_task("requirements-analyst", _prompt("requirements-analyst"), AnalystOutput, ctx),
        specialist_task("risk-analyst", _prompt("risk-analyst"), AnalystOutput, ctx),
        specialist_task("supervisor", _prompt("supervisor"), SupervisorOutput, ctx, after=analysts),
        specialist_task(
            "architecture-planner", _prompt("architecture-planner"), PlanOutput, ctx,
            after=("supervisor",), reads=(*analysts, "supervisor"),
        ),
        specialist_task(
            "test-planner", _prompt("test-planner"), PlanOutput, ctx,
            after=("supervisor",), reads=(*analysts, "supervisor"),
        ),
        specialist_task(
            "scorer", _prompt("scorer"), ScoreOutput, ctx,
            after=planners, reads=(*analysts, "supervisor", *planners), temperature=0.2,
        ),
        assembler_task("assembler", assemble, after=("scorer",)),
    ]
