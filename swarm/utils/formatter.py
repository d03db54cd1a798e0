"""Output Formatter: renders a finished run as a Markdown report."""

from pathlib import Path

from swarm.config import get_config
from swarm.state import Report, RunResult


def _title(key: str) -> str:
    return key.replace("_", " ").replace("-", " ").title()


def _render_finding(finding: dict) -> str:
    """One bullet per finding: title/description first, other fields inline."""
    head = finding.get("title") or finding.get("name") or finding.get("description") or ""
    rest = {
        k: v for k, v in finding.items()
        if k not in ("title", "name") and not (k == "description" and v == head)
    }
    line = f"- **{head}**" if head else "-"
    if rest:
        line += ": " + "; ".join(f"{k}: {v}" for k, v in rest.items())
    return line


def _render_markdown(report: Report, problem: str = "", title: str = "Analysis Report") -> str:
    """Convert a Report into Markdown."""
    lines = [f"# {title}", ""]

    if problem:
        lines.append("## Problem")
        lines.append("")
        lines.append(problem)
        lines.append("")

    # Scores, overall first
    lines.append("## Scores")
    lines.append("")
    lines.append("| Dimension | Score |")
    lines.append("|-----------|-------|")
    lines.append(f"| **Overall** | **{report.overall:g}/{report.scale}** |")
    for name, score in report.dimension_scores.items():
        if name != "overall":
            lines.append(f"| {_title(name)} | {score:g}/{report.scale} |")
    lines.append("")

    if report.summary_text:
        lines.append("## Summary")
        lines.append("")
        lines.append(report.summary_text)
        lines.append("")

    for key, findings in report.findings.items():
        if not findings:
            continue
        lines.append(f"## {_title(key)}")
        lines.append("")
        for finding in findings:
            lines.append(_render_finding(finding))
        lines.append("")

    return "\n".join(lines)


def write_report(result: RunResult, problem: str = "", title: str = "Analysis Report") -> Path:
    """Write the run's report as Markdown to the configured output path.

    Appends a run log footer (passes, provider, failed attempts).
    Returns the Path to the written file.
    """
    config = get_config()
    base_path = Path(__file__).resolve().parent.parent / config["output_path"]
    output_dir = base_path.parent
    output_dir.mkdir(parents=True, exist_ok=True)

    # Find a non-conflicting filename
    stem = base_path.stem
    output_path = output_dir / f"{stem}.md"
    counter = 1
    while output_path.exists():
        counter += 1
        output_path = output_dir / f"{stem} ({counter}).md"

    content = _render_markdown(result.report, problem=problem, title=title)

    content += "\n---\n\n## Run Log\n\n"
    content += f"- Provider: {result.provider}\n"
    content += f"- Passes: {result.passes}\n"
    failed = [m for m in result.messages if not m.ok]
    degraded = sorted({m.task for m in result.messages if m.degraded})
    if failed:
        content += f"- Failed attempts: {len(failed)}\n"
    if degraded:
        content += f"- Degraded outputs: {', '.join(degraded)}\n"

    output_path.write_text(content, encoding="utf-8")
    return output_path
