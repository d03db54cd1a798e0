"""Tests for formatter: _render_markdown, write_report."""

from unittest.mock import patch

import pytest

from swarm.state import Report, RunResult, TaskMessage
from swarm.utils.formatter import _render_markdown, write_report


@pytest.fixture
def sample_report():
    return Report(
        dimension_scores={"feasibility": 70, "risk_coverage": 55.5, "overall": 64},
        findings={
            "risks": [{"title": "Data loss", "severity": "high", "mitigation": "backups"}],
            "gaps": [{"description": "No auth requirements"}],
            "contradictions": [],
        },
        summary_text="Reasonable plan; tighten security.",
    )


def _result(report, messages=()):
    return RunResult(report=report, messages=list(messages), passes=2, iteration=1, provider="groq")


# --- _render_markdown (pure function) ---

class TestRenderMarkdown:
    def test_title(self, sample_report):
        md = _render_markdown(sample_report, title="design-review report")
        assert md.startswith("# design-review report")

    def test_overall_first_in_scores(self, sample_report):
        md = _render_markdown(sample_report)
        assert "| **Overall** | **64/100** |" in md
        assert md.index("Overall") < md.index("Feasibility")

    def test_dimension_rows(self, sample_report):
        md = _render_markdown(sample_report)
        assert "| Feasibility | 70/100 |" in md
        assert "| Risk Coverage | 55.5/100 |" in md

    def test_ten_point_scale(self):
        md = _render_markdown(Report({"overall": 7}, scale=10))
        assert "**7/10**" in md

    def test_summary(self, sample_report):
        md = _render_markdown(sample_report)
        assert "## Summary\n\nReasonable plan; tighten security." in md

    def test_problem_section(self, sample_report):
        md = _render_markdown(sample_report, problem="Build a todo API")
        assert "## Problem\n\nBuild a todo API" in md

    def test_findings_with_extra_fields(self, sample_report):
        md = _render_markdown(sample_report)
        assert "## Risks" in md
        assert "- **Data loss**" in md
        assert "severity: high; mitigation: backups" in md

    def test_description_only_finding(self, sample_report):
        md = _render_markdown(sample_report)
        assert "- **No auth requirements**\n" in md + "\n"

    def test_empty_findings_section_skipped(self, sample_report):
        md = _render_markdown(sample_report)
        assert "## Contradictions" not in md

    def test_minimal_report(self):
        md = _render_markdown(Report({"overall": 0}))
        assert "## Scores" in md
        assert "## Summary" not in md


# --- write_report ---

class TestWriteReport:
    @patch("swarm.utils.formatter.get_config")
    def test_writes_file(self, mock_gc, tmp_path, sample_report):
        output_file = tmp_path / "report.md"
        mock_gc.return_value = {"output_path": str(output_file)}

        path = write_report(_result(sample_report), problem="Build a todo API")

        assert path == output_file
        content = output_file.read_text(encoding="utf-8")
        assert "## Scores" in content
        assert "## Run Log" in content
        assert "- Provider: groq" in content
        assert "- Passes: 2" in content

    @patch("swarm.utils.formatter.get_config")
    def test_does_not_overwrite(self, mock_gc, tmp_path, sample_report):
        output_file = tmp_path / "report.md"
        mock_gc.return_value = {"output_path": str(output_file)}

        first = write_report(_result(sample_report))
        second = write_report(_result(sample_report))

        assert first != second
        assert second.name == "report (2).md"

    @patch("swarm.utils.formatter.get_config")
    def test_run_log_counts_failures_and_degraded(self, mock_gc, tmp_path, sample_report):
        output_file = tmp_path / "report.md"
        mock_gc.return_value = {"output_path": str(output_file)}
        messages = [
            TaskMessage(task="scorer", content="Attempt 1 failed", ok=False),
            TaskMessage(task="scorer", content="{}", attempt=2, degraded=True),
            TaskMessage(task="supervisor", content="garbage", degraded=True),
        ]

        write_report(_result(sample_report, messages))

        content = output_file.read_text(encoding="utf-8")
        assert "- Failed attempts: 1" in content
        assert "- Degraded outputs: scorer, supervisor" in content

    @patch("swarm.utils.formatter.get_config")
    def test_clean_run_has_no_failure_lines(self, mock_gc, tmp_path, sample_report):
        output_file = tmp_path / "report.md"
        mock_gc.return_value = {"output_path": str(output_file)}

        write_report(_result(sample_report, [TaskMessage(task="a", content="ok")]))

        content = output_file.read_text(encoding="utf-8")
        assert "Failed attempts" not in content
        assert "Degraded outputs" not in content

    @patch("swarm.utils.formatter.get_config")
    def test_creates_parent_dirs(self, mock_gc, tmp_path, sample_report):
        output_file = tmp_path / "nested" / "dir" / "report.md"
        mock_gc.return_value = {"output_path": str(output_file)}

        assert write_report(_result(sample_report)).exists()
