"""Tests for swarm.utils.retry.invoke."""

import asyncio

import httpx
import pytest

from swarm.errors import ConfigurationError
from swarm.utils.retry import invoke


class _Recorder:
    """Async sleep stand-in that records the requested delays."""

    def __init__(self):
        self.delays = []

    async def __call__(self, seconds):
        self.delays.append(seconds)


def _scripted(outcomes):
    """Async callable returning/raising the given outcomes in order."""
    calls = []

    async def call():
        calls.append(1)
        outcome = outcomes[len(calls) - 1]
        if isinstance(outcome, BaseException):
            raise outcome
        return outcome

    return call, calls


class TestInvoke:
    def test_succeeds_on_first_try(self):
        call, calls = _scripted(['{"ok": true}'])
        sleep = _Recorder()

        result = asyncio.run(invoke(call, 3, sleep=sleep))

        assert result == '{"ok": true}'
        assert len(calls) == 1
        assert sleep.delays == []

    def test_retries_on_connect_error(self):
        call, calls = _scripted([httpx.ConnectError("connection refused"), "done"])

        result = asyncio.run(invoke(call, 3, sleep=_Recorder()))

        assert result == "done"
        assert len(calls) == 2

    def test_retries_any_error(self):
        call, calls = _scripted([ValueError("bad request"), KeyError("x"), "done"])

        assert asyncio.run(invoke(call, 3, sleep=_Recorder())) == "done"
        assert len(calls) == 3

    def test_exhausts_attempts_and_reraises_last_error(self):
        call, calls = _scripted([
            httpx.ReadTimeout("read timed out"),
            httpx.ReadTimeout("read timed out"),
            RuntimeError("still down"),
        ])

        with pytest.raises(RuntimeError, match="still down"):
            asyncio.run(invoke(call, 3, sleep=_Recorder()))
        assert len(calls) == 3

    def test_backoff_doubles(self):
        call, _ = _scripted([RuntimeError(), RuntimeError(), RuntimeError()])
        sleep = _Recorder()

        with pytest.raises(RuntimeError):
            asyncio.run(invoke(call, 3, backoff_unit=1.0, sleep=sleep))

        assert sleep.delays == [1, 2]

    def test_backoff_unit_scales_delays(self):
        call, _ = _scripted([RuntimeError(), RuntimeError(), RuntimeError(), "ok"])
        sleep = _Recorder()

        asyncio.run(invoke(call, 4, backoff_unit=0.5, sleep=sleep))

        assert sleep.delays == [0.5, 1.0, 2.0]

    def test_single_attempt_never_sleeps(self):
        call, calls = _scripted([RuntimeError("boom")])
        sleep = _Recorder()

        with pytest.raises(RuntimeError):
            asyncio.run(invoke(call, 1, sleep=sleep))
        assert len(calls) == 1
        assert sleep.delays == []

    def test_zero_attempts_is_configuration_error(self):
        call, calls = _scripted(["ok"])

        with pytest.raises(ConfigurationError):
            asyncio.run(invoke(call, 0, sleep=_Recorder()))
        assert calls == []

    def test_configuration_error_not_retried(self):
        call, calls = _scripted([ConfigurationError("no key"), "ok"])

        with pytest.raises(ConfigurationError):
            asyncio.run(invoke(call, 3, sleep=_Recorder()))
        assert len(calls) == 1

    def test_on_attempt_sees_every_attempt(self):
        call, _ = _scripted([RuntimeError("one"), "two"])
        seen = []

        asyncio.run(invoke(
            call, 3, sleep=_Recorder(),
            on_attempt=lambda number, text, error: seen.append((number, text, type(error).__name__)),
        ))

        assert seen == [(1, None, "RuntimeError"), (2, "two", "NoneType")]

    def test_timeout_counts_as_failed_attempt(self):
        calls = []

        async def call():
            calls.append(1)
            if len(calls) == 1:
                await asyncio.sleep(1)
            return "late but fine"

        result = asyncio.run(invoke(call, 2, timeout=0.01, sleep=_Recorder()))

        assert result == "late but fine"
        assert len(calls) == 2
