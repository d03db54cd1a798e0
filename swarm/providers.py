"""Provider resolution: pick the first generation backend that answers.

Every backend is reached through a LangChain chat model. Anthropic and Google
use their native integrations; OpenAI, OpenRouter, Groq and a local Ollama all
speak the OpenAI API and go through ChatOpenAI with a base URL.
"""

import os
import sys
from dataclasses import dataclass

from langchain_anthropic import ChatAnthropic
from langchain_google_genai import ChatGoogleGenerativeAI
from langchain_openai import ChatOpenAI

from swarm.errors import ConfigurationError, NoUsableBackendError

PROBE_SYSTEM_PROMPT = "Reply with OK"
PROBE_MESSAGE = "test"
PROBE_MAX_TOKENS = 5


@dataclass(frozen=True)
class ProviderInfo:
    chat_model: str  # "anthropic" | "google" | "openai"
    default_model: str
    key_env: str | None
    base_url: str | None = None


PROVIDER_REGISTRY = {
    "anthropic": ProviderInfo("anthropic", "claude-sonnet-4-20250514", "ANTHROPIC_API_KEY"),
    "google": ProviderInfo("google", "gemini-2.0-flash", "GOOGLE_API_KEY"),
    "openai": ProviderInfo("openai", "gpt-4o", "OPENAI_API_KEY", "https://api.openai.com/v1"),
    "openrouter": ProviderInfo(
        "openai", "anthropic/claude-sonnet-4", "OPENROUTER_API_KEY", "https://openrouter.ai/api/v1"
    ),
    "groq": ProviderInfo("openai", "llama-3.3-70b-versatile", "GROQ_API_KEY", "https://api.groq.com/openai/v1"),
    "ollama": ProviderInfo("openai", "llama3.3", None, "http://localhost:11434/v1"),
}


def _text_of(content) -> str:
    """Flatten a chat model's message content to plain text."""
    if isinstance(content, str):
        return content
    parts = []
    for block in content or []:
        if isinstance(block, str):
            parts.append(block)
        elif isinstance(block, dict) and block.get("type") == "text":
            parts.append(block.get("text", ""))
    return "".join(parts)


class ProviderHandle:
    """A resolved backend: name, model and a way to build its chat model."""

    def __init__(self, name: str, model: str, make_llm):
        self.name = name
        self.model = model
        self._make_llm = make_llm

    def __repr__(self) -> str:
        return f"ProviderHandle({self.name!r}, {self.model!r})"

    async def complete(
        self,
        system_prompt: str,
        user_message: str,
        temperature: float = 0.7,
        max_tokens: int = 4096,
    ) -> str:
        llm = self._make_llm(temperature=temperature, max_tokens=max_tokens)
        response = await llm.ainvoke([
            {"role": "system", "content": system_prompt},
            {"role": "user", "content": user_message},
        ])
        return _text_of(response.content)


def build_handle(name: str, model: str | None = None) -> ProviderHandle:
    """Create a handle for a registered provider.

    Raises ConfigurationError for an unknown provider or a missing API key.
    """
    info = PROVIDER_REGISTRY.get(name)
    if info is None:
        raise ConfigurationError(
            f"Unknown provider '{name}'. Must be one of: {sorted(PROVIDER_REGISTRY)}"
        )

    api_key = None
    if info.key_env:
        api_key = os.getenv(info.key_env)
        if not api_key:
            raise ConfigurationError(f"No API key for provider '{name}'. Set {info.key_env}.")

    model = model or info.default_model

    if info.chat_model == "anthropic":
        def make_llm(temperature, max_tokens):
            return ChatAnthropic(model=model, temperature=temperature, max_tokens=max_tokens, api_key=api_key)
    elif info.chat_model == "google":
        def make_llm(temperature, max_tokens):
            return ChatGoogleGenerativeAI(
                model=model, temperature=temperature, max_output_tokens=max_tokens, google_api_key=api_key
            )
    else:
        def make_llm(temperature, max_tokens):
            return ChatOpenAI(
                model=model,
                temperature=temperature,
                max_tokens=max_tokens,
                api_key=api_key or "ollama",  # Ollama ignores the key but the client requires one
                base_url=info.base_url,
            )

    return ProviderHandle(name, model, make_llm)


def candidates_from_config(settings: dict) -> list[ProviderHandle]:
    """Build handles for the configured providers, in priority order.

    Entries are provider names or ``{name, model}`` mappings. Entries that
    cannot be built (no API key, unknown name) are skipped with a warning.
    """
    handles = []
    for entry in settings.get("providers") or []:
        if isinstance(entry, str):
            name, model = entry, None
        else:
            name, model = entry.get("name", ""), entry.get("model")
        try:
            handles.append(build_handle(name, model))
        except ConfigurationError as exc:
            print(f"[SWARM] Skipping provider '{name}': {exc}", file=sys.stderr)
    return handles


class ProviderResolver:
    """Probe candidates once per run and remember the winner."""

    def __init__(self, candidates):
        self.candidates = list(candidates)
        self.selected = None

    async def resolve(self):
        """Return the first candidate that answers a minimal probe call.

        The result is cached; later calls do not probe again. Raises
        NoUsableBackendError when every candidate fails.
        """
        if self.selected is not None:
            return self.selected

        tried = []
        for handle in self.candidates:
            tried.append(handle.name)
            try:
                await handle.complete(
                    PROBE_SYSTEM_PROMPT, PROBE_MESSAGE, temperature=0, max_tokens=PROBE_MAX_TOKENS
                )
            except Exception as exc:
                print(f"[SWARM] Provider '{handle.name}' did not answer: {exc!r}", file=sys.stderr)
                continue
            print(f"[SWARM] Using provider '{handle.name}' ({handle.model}).", file=sys.stderr)
            self.selected = handle
            return handle

        raise NoUsableBackendError(tried)


async def resolve(candidates):
    """One-shot form of ProviderResolver.resolve."""
    return await ProviderResolver(candidates).resolve()
