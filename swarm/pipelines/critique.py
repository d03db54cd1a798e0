"""Critique pipeline: planner -> reviewer -> scorer -> assembler.

A linear pipeline; scores use the 0-10 convention.
"""

from dataclasses import dataclass, field

from swarm.agents.assembler import assembler_task, build_report, parse_output
from swarm.agents.specialist import json_instructions, specialist_task

SCORE = {"bounds": (0, 10)}


@dataclass
class PlanOutput:
    approach: str = ""
    steps: list = field(default_factory=list)


@dataclass
class ReviewOutput:
    issues: list = field(default_factory=list)
    strengths: list = field(default_factory=list)
    summary: str = ""


@dataclass
class CritiqueScore:
    correctness: float = field(default=5, metadata=SCORE)
    maintainability: float = field(default=5, metadata=SCORE)
    overall: float = field(default=5, metadata=SCORE)
    verdict: str = ""


PLANNER_PROMPT = "You are a senior engineer. Outline an approach and concrete steps for the problem."
REVIEWER_PROMPT = "You are a strict code reviewer. List the issues and strengths of the proposed plan."
SCORER_PROMPT = "You grade plans from 0 to 10 for correctness and maintainability, plus an overall grade."


def build(ctx) -> list:
    penalty = ctx.setting("degraded_penalty", 0)

    def assemble(state):
        plan = parse_output(state, "planner", PlanOutput)
        review = parse_output(state, "reviewer", ReviewOutput)
        score = parse_output(state, "scorer", CritiqueScore)
        return build_report(
            {
                "correctness": score.value.correctness,
                "maintainability": score.value.maintainability,
                "overall": score.value.overall,
            },
            findings={
                "plan": plan.value.steps,
                "issues": review.value.issues,
                "strengths": review.value.strengths,
            },
            summary_text=score.value.verdict or review.value.summary,
            scale=10,
            degraded=plan.degraded + review.degraded + score.degraded,
            penalty=penalty,
        )

    return [
        specialist_task("planner", f"{PLANNER_PROMPT}\n\n{json_instructions(PlanOutput)}", PlanOutput, ctx),
        specialist_task(
            "reviewer", f"{REVIEWER_PROMPT}\n\n{json_instructions(ReviewOutput)}", ReviewOutput, ctx,
            after=("planner",),
        ),
        specialist_task(
            "scorer", f"{SCORER_PROMPT}\n\n{json_instructions(CritiqueScore)}", CritiqueScore, ctx,
            after=("reviewer",), reads=("planner", "reviewer"), temperature=0.2,
        ),
        assembler_task("assembler", assemble, after=("scorer",)),
    ]
