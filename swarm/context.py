"""Run-scoped context handed to pipeline builders and their tasks."""

import asyncio
from collections.abc import Awaitable, Callable
from dataclasses import dataclass, field


@dataclass
class RunContext:
    provider: object  # resolved ProviderHandle (anything with an async ``complete``)
    settings: dict = field(default_factory=dict)
    augmenter: object = None
    sleep: Callable[[float], Awaitable[None]] = asyncio.sleep

    def setting(self, key: str, default=None):
        value = self.settings.get(key)
        return default if value is None else value
