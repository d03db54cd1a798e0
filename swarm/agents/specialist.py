"""Specialist task: one external generation call plus normalization.

Each specialist reads the problem, the run preferences and the raw output of
the tasks it depends on, calls the resolved provider through the task runner,
and contributes its raw text to ``task_results``. Every attempt (failed or not)
is logged to ``messages``.
"""

import json
import sys
from dataclasses import fields, is_dataclass

from swarm.graph import TaskSpec
from swarm.state import GraphState, TaskMessage
from swarm.utils.augment import safe_augment
from swarm.utils.normalizer import as_record, normalize
from swarm.utils.retry import invoke


def _example_value(default):
    if is_dataclass(default):
        return schema_example(type(default))
    if isinstance(default, bool):
        return "true | false"
    if isinstance(default, (int, float)):
        return "<number>"
    if isinstance(default, list):
        return ["..."]
    if isinstance(default, dict):
        return {}
    return "<string>"


def schema_example(schema) -> dict:
    """Skeleton JSON object for a dataclass schema, for use in prompts."""
    example = schema()
    return {f.name: _example_value(getattr(example, f.name)) for f in fields(schema)}


def json_instructions(schema) -> str:
    return (
        "Return your analysis as JSON:\n"
        f"{json.dumps(schema_example(schema), indent=2)}\n"
        "Return ONLY valid JSON, no markdown fences."
    )


def _bullet(value) -> str:
    if isinstance(value, (list, tuple)):
        return ", ".join(str(v) for v in value) or "None specified"
    return str(value)


def build_user_message(state: GraphState, name: str, reads=()) -> str:
    """Default user message: problem, preferences, upstream outputs, own last output."""
    parts = [f"## Problem\n{state['input']}"]

    preferences = state.get("preferences") or {}
    if preferences:
        lines = "\n".join(f"- {key}: {_bullet(value)}" for key, value in preferences.items())
        parts.append(f"## Preferences\n{lines}")

    results = state.get("task_results") or {}
    for dep in reads:
        parts.append(f"## Output of {dep}\n{results.get(dep, 'N/A')}")

    if state.get("iteration", 0) > 0 and name in results:
        parts.append(f"## Your output from the previous pass\n{results[name]}")
        report = state.get("report")
        if report is not None:
            parts.append(
                f"## Previous report\nOverall score {report.overall:g}/{report.scale}. "
                "Improve on the weakest areas."
            )

    return "\n\n".join(parts)


def specialist_task(
    name: str,
    system_prompt: str,
    schema,
    ctx,
    *,
    after=(),
    reads=None,
    build_message=None,
    temperature: float | None = None,
    max_tokens: int | None = None,
) -> TaskSpec:
    """Create a task that asks the provider for a ``schema``-shaped answer.

    ``reads`` names the tasks whose raw output goes into the user message
    (defaults to ``after``). ``build_message(state)`` replaces the default
    message entirely.
    """
    reads = tuple(after if reads is None else reads)
    temperature = temperature if temperature is not None else ctx.setting("temperature", 0.3)
    max_tokens = max_tokens if max_tokens is not None else ctx.setting("max_tokens", 8192)

    async def run_specialist(state: GraphState) -> dict:
        system = safe_augment(ctx.augmenter, system_prompt, state["input"])
        user = build_message(state) if build_message else build_user_message(state, name, reads)

        messages = []
        succeeded_on = []

        def on_attempt(number, text, error):
            if error is not None:
                messages.append(TaskMessage(
                    task=name, content=f"Attempt {number} failed: {error!r}", attempt=number, ok=False,
                ))
            else:
                succeeded_on.append(number)

        raw = await invoke(
            lambda: ctx.provider.complete(system, user, temperature=temperature, max_tokens=max_tokens),
            max_attempts=ctx.setting("max_attempts", 3),
            backoff_unit=ctx.setting("backoff_unit_seconds", 1.0),
            timeout=ctx.setting("call_timeout_seconds"),
            on_attempt=on_attempt,
            sleep=ctx.sleep,
        )

        result = normalize(raw, schema)
        if result.degraded:
            print(
                f"[SWARM] Warning: '{name}' output degraded ({result.reason}); "
                f"defaulted: {', '.join(result.defaulted)}",
                file=sys.stderr,
            )

        messages.append(TaskMessage(
            task=name,
            content=raw,
            attempt=succeeded_on[-1] if succeeded_on else 1,
            degraded=result.degraded,
            parsed=as_record(result),
        ))
        return {"task_results": {name: raw}, "messages": messages}

    return TaskSpec(name, run_specialist, after=after)
