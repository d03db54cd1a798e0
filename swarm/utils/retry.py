"""Task runner: one external call with exponential backoff.

Any error is retried: the runner does not try to tell transient provider errors
apart from permanent ones. After ``max_attempts`` attempts the last error is
re-raised and the task fails. Logging is the caller's business; it can watch
every attempt through ``on_attempt``.
"""

import asyncio
from collections.abc import Awaitable, Callable
from typing import Optional

from tenacity import AsyncRetrying, retry_if_not_exception_type, stop_after_attempt, wait_exponential

from swarm.errors import ConfigurationError

AttemptHook = Callable[[int, Optional[str], Optional[BaseException]], None]


async def invoke(
    call: Callable[[], Awaitable[str]],
    max_attempts: int = 3,
    *,
    backoff_unit: float = 1.0,
    timeout: float | None = None,
    on_attempt: AttemptHook | None = None,
    sleep: Callable[[float], Awaitable[None]] = asyncio.sleep,
) -> str:
    """Await ``call()`` until it returns text or ``max_attempts`` are used up.

    Waits ``backoff_unit * 2**attempt`` seconds between attempts (attempt
    counted from 0). ``timeout`` bounds each attempt; hitting it counts as a
    failed attempt. ConfigurationError is raised immediately.
    """
    if max_attempts < 1:
        raise ConfigurationError(f"max_attempts must be at least 1, got {max_attempts}.")

    text = ""
    async for attempt in AsyncRetrying(
        stop=stop_after_attempt(max_attempts),
        wait=wait_exponential(multiplier=backoff_unit, exp_base=2, min=0),
        retry=retry_if_not_exception_type(ConfigurationError),
        reraise=True,
        sleep=sleep,
    ):
        with attempt:
            number = attempt.retry_state.attempt_number
            try:
                if timeout is None:
                    text = await call()
                else:
                    text = await asyncio.wait_for(call(), timeout)
            except Exception as exc:
                if on_attempt:
                    on_attempt(number, None, exc)
                raise
            if on_attempt:
                on_attempt(number, text, None)
    return text
