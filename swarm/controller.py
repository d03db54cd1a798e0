"""Iteration controller: runs graph passes until the report is good enough.

Phases: designing -> assembled -> (iterating -> designing -> assembled ...) -> finalized.

After every pass the controller looks at the freshly assembled report:

1. the pass just completed was the last allowed one -> finalized
2. overall score below the quality threshold -> iterating (bump ``iteration``,
   re-run from the entry tasks with the whole accumulated state)
3. otherwise -> finalized

The loop is bounded by ``max_iterations`` passes, so it always terminates.
"""

import asyncio
import sys

from swarm.accumulator import merge
from swarm.agents.assembler import fallback_report
from swarm.config import get_config, validate_config
from swarm.context import RunContext
from swarm.errors import ConfigurationError
from swarm.graph import compile_graph, run
from swarm.providers import candidates_from_config, resolve
from swarm.state import GraphState, Phase, Report, RunResult, initial_state
from swarm.utils.augment import default_augmenter
from swarm.utils.validator import validate_input, validate_preferences


def quality_score(report: Report | None) -> float:
    """The report's overall score on a 0-100 scale; 0 when there is no report."""
    if report is None:
        return 0.0
    return report.overall * (100 / report.scale)


class IterationController:
    def __init__(self, pipeline, quality_threshold: float = 40, max_concurrency: int | None = None):
        self.pipeline = pipeline
        self.quality_threshold = quality_threshold
        self.max_concurrency = max_concurrency
        self.phase: Phase = "designing"
        self.history: list[Phase] = []
        self.passes = 0

    def _enter(self, phase: Phase) -> None:
        self.phase = phase
        self.history.append(phase)

    def decide(self, state: GraphState) -> Phase:
        """Transition out of ``assembled``: ``iterating`` or ``finalized``."""
        if state["iteration"] + 1 >= state["max_iterations"]:
            return "finalized"
        if quality_score(state.get("report")) < self.quality_threshold:
            return "iterating"
        return "finalized"

    async def run(self, state: GraphState) -> GraphState:
        if state["max_iterations"] < 1:
            raise ConfigurationError(f"max_iterations must be at least 1, got {state['max_iterations']}.")

        self._enter("designing")
        for _ in range(state["max_iterations"]):
            state = await run(self.pipeline, state, self.max_concurrency)
            self.passes += 1
            self._enter("assembled")

            next_phase = self.decide(state)
            score = quality_score(state.get("report"))
            print(
                f"[SWARM] Pass {self.passes}: overall {score:.0f}/100 "
                f"(threshold {self.quality_threshold:g}) -> {next_phase}",
                file=sys.stderr,
            )
            if next_phase == "finalized":
                break

            self._enter("iterating")
            state = merge(state, {"iteration": state["iteration"] + 1})
            self._enter("designing")

        self._enter("finalized")
        return state


async def run_pipeline(
    build,
    problem: str,
    preferences: dict | None = None,
    *,
    max_iterations: int | None = None,
    candidates=None,
    augmenter=None,
    settings: dict | None = None,
    sleep=asyncio.sleep,
) -> RunResult:
    """Run a pipeline end to end.

    Args:
        build: Pipeline factory, ``build(ctx) -> list[TaskSpec]``.
        problem: The problem description handed to every task.
        preferences: Per-run options (focus, targets, ...).
        max_iterations: Override for the pass budget. None uses config.
        candidates: Provider handles to probe. None builds them from config.
        augmenter: Context augmenter. None uses the configured default.
        settings: Config override. None uses the loaded config.
    """
    settings = get_config() if settings is None else validate_config(settings)
    problem = validate_input(problem)
    preferences = validate_preferences(preferences)
    if max_iterations is None:
        max_iterations = settings.get("max_iterations", 2)
    if max_iterations < 1:
        raise ConfigurationError(f"max_iterations must be at least 1, got {max_iterations}.")

    if candidates is None:
        candidates = candidates_from_config(settings)
    provider = await resolve(candidates)

    ctx = RunContext(
        provider=provider,
        settings=settings,
        augmenter=default_augmenter(settings) if augmenter is None else augmenter,
        sleep=sleep,
    )
    pipeline = compile_graph(build(ctx))

    controller = IterationController(
        pipeline,
        quality_threshold=settings.get("quality_threshold", 40),
        max_concurrency=settings.get("max_concurrency"),
    )
    state = await controller.run(initial_state(problem, preferences, max_iterations))

    return RunResult(
        report=state.get("report") or fallback_report(),
        messages=list(state.get("messages") or []),
        passes=controller.passes,
        iteration=state["iteration"],
        provider=provider.name,
        phase=controller.phase,
        state=state,
    )


def run_pipeline_sync(build, problem: str, preferences: dict | None = None, **kwargs) -> RunResult:
    """Blocking wrapper around run_pipeline for scripts and the CLI."""
    return asyncio.run(run_pipeline(build, problem, preferences, **kwargs))
