"""Entry point: validates input, runs a pipeline, writes the report."""

import json
import sys

from swarm.controller import run_pipeline_sync
from swarm.errors import SwarmError
from swarm.pipelines.registry import PIPELINES, get_pipeline
from swarm.utils.formatter import write_report

USAGE = (
    "usage: swarm [--pipeline NAME] [--max-iterations N] [--json] [PROBLEM ...]\n"
    f"pipelines: {', '.join(sorted(PIPELINES))}"
)


def _take_option(args: list[str], flag: str) -> str | None:
    """Remove ``flag VALUE`` from args and return VALUE."""
    if flag not in args:
        return None
    index = args.index(flag)
    if index + 1 >= len(args):
        raise ValueError(f"{flag} needs a value.")
    value = args[index + 1]
    del args[index:index + 2]
    return value


def run(problem: str, pipeline: str = "design-review", max_iterations: int | None = None, as_json: bool = False) -> None:
    """Run a named pipeline on a problem description and report the outcome."""
    result = run_pipeline_sync(get_pipeline(pipeline), problem, max_iterations=max_iterations)

    if as_json:
        print(json.dumps(result.to_payload(), indent=2))
        return

    output_path = write_report(result, problem=problem.strip(), title=f"{pipeline} report")
    print(f"[SWARM] Overall: {result.report.overall:g}/{result.report.scale}")
    print(f"[SWARM] Passes: {result.passes}")
    print(f"[SWARM] Output written to: {output_path}")


def main() -> None:
    """CLI entry point. Accepts the problem as arguments or from stdin."""
    args = sys.argv[1:]

    if "-h" in args or "--help" in args:
        print(USAGE)
        return

    try:
        pipeline = _take_option(args, "--pipeline") or "design-review"
        max_iterations = _take_option(args, "--max-iterations")
        max_iterations = int(max_iterations) if max_iterations is not None else None
    except ValueError as exc:
        print(f"[SWARM] {exc}\n{USAGE}", file=sys.stderr)
        sys.exit(2)

    as_json = "--json" in args
    if as_json:
        args.remove("--json")

    if args:
        problem = " ".join(args)
    else:
        print("Describe the problem (Ctrl+D / Ctrl+Z to submit):", file=sys.stderr)
        problem = sys.stdin.read()

    try:
        run(problem, pipeline=pipeline, max_iterations=max_iterations, as_json=as_json)
    except (SwarmError, ValueError) as exc:
        print(f"[SWARM] Error: {exc}", file=sys.stderr)
        sys.exit(1)


if __name__ == "__main__":
    main()
