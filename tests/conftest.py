"""Shared fixtures for the swarm test suite."""

import json
from unittest.mock import patch

import pytest

from swarm.context import RunContext
from swarm.state import initial_state
from tests.fakes import FakeProvider, no_sleep


@pytest.fixture
def base_state():
    """Minimal valid GraphState."""
    return initial_state("Build a todo REST API", {"focus": "full-audit"}, max_iterations=2)


@pytest.fixture
def test_settings():
    return {
        "providers": [],
        "max_iterations": 2,
        "quality_threshold": 40,
        "degraded_penalty": 5,
        "max_attempts": 3,
        "backoff_unit_seconds": 0,
        "call_timeout_seconds": None,
        "max_concurrency": 4,
        "temperature": 0.3,
        "max_tokens": 1024,
        "guidance_enabled": False,
        "output_path": "./output/report.md",
    }


@pytest.fixture
def fake_provider():
    return FakeProvider()


@pytest.fixture
def ctx(fake_provider, test_settings):
    """Run context wired to the fake provider, with no backoff waits."""
    return RunContext(provider=fake_provider, settings=test_settings, augmenter=None, sleep=no_sleep)


@pytest.fixture
def scorer_response():
    """Complete, valid design-review scorer response."""
    return json.dumps({
        "feasibility": 70,
        "risk_coverage": 60,
        "completeness": 65,
        "clarity": 80,
        "overall": 68,
        "verdict": "Solid plan with minor gaps.",
    })


@pytest.fixture
def mock_config(test_settings):
    """Patch the config singleton with test-friendly values."""
    with patch("swarm.config._config", test_settings):
        yield test_settings
