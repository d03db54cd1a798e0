"""Context augmentation for task system prompts.

Augmenters take a task's system prompt and the run's problem description and
return an enriched prompt. Augmentation is an enhancement, never a requirement:
``safe_augment`` falls back to the plain prompt when an augmenter fails.
"""

import re
import sys
from pathlib import Path
from typing import Protocol

# Distilled guidance for specialist tasks: imperative rules for LLM consumption.
_GUIDANCE_RULES = """\
- Ground every finding in the problem description; do not invent requirements the user did not state.
- Prefer a few concrete, actionable findings over many vague ones.
- Flag contradictions between earlier task outputs instead of silently picking one.
- Score conservatively: reserve high scores for evidence you can point to.
- When a previous pass exists, address its open issues first and say which ones remain.\
"""

_WORD_RE = re.compile(r"[a-z0-9]{4,}")


class Augmenter(Protocol):
    def augment(self, system_prompt: str, problem: str) -> str: ...


def load_guidance() -> str:
    """Return the distilled guidance rules.

    Returns an empty string if guidance is disabled in config
    (set guidance_enabled to false or remove it).
    """
    from swarm.config import get_config

    config = get_config()
    if not config.get("guidance_enabled", False):
        return ""

    return _GUIDANCE_RULES


class GuidanceAugmenter:
    """Appends the configured guidance rules to every system prompt."""

    def augment(self, system_prompt: str, problem: str) -> str:
        guidance = load_guidance()
        if not guidance:
            return system_prompt
        return f"{system_prompt}\n\n## Analysis Guidelines\n{guidance}"


def _words(text: str) -> set[str]:
    return set(_WORD_RE.findall(text.lower()))


class NotesAugmenter:
    """Appends the stored notes that share the most keywords with the problem.

    Notes live in a plain text file, one note per blank-line separated block.
    """

    def __init__(self, path, max_notes: int = 3):
        self.path = Path(path)
        self.max_notes = max_notes
        self._notes = None

    def _load(self) -> list[str]:
        if self._notes is None:
            text = self.path.read_text(encoding="utf-8")
            self._notes = [block.strip() for block in re.split(r"\n\s*\n", text) if block.strip()]
        return self._notes

    def relevant(self, problem: str) -> list[str]:
        query = _words(problem)
        scored = [(len(query & _words(note)), i, note) for i, note in enumerate(self._load())]
        scored = [s for s in scored if s[0] > 0]
        scored.sort(key=lambda s: (-s[0], s[1]))
        return [note for _, _, note in scored[:self.max_notes]]

    def augment(self, system_prompt: str, problem: str) -> str:
        notes = self.relevant(problem)
        if not notes:
            return system_prompt
        entries = "\n".join(f"[{i}] {note}" for i, note in enumerate(notes, 1))
        return (
            f"{system_prompt}\n\n<relevant_context>\n"
            f"The following notes from earlier work may be relevant:\n{entries}\n"
            "</relevant_context>"
        )


class ChainAugmenter:
    """Applies several augmenters in order."""

    def __init__(self, *augmenters):
        self.augmenters = augmenters

    def augment(self, system_prompt: str, problem: str) -> str:
        for augmenter in self.augmenters:
            system_prompt = augmenter.augment(system_prompt, problem)
        return system_prompt


def default_augmenter(settings: dict) -> Augmenter:
    """Guidance always; stored notes when ``notes_path`` is configured."""
    notes_path = settings.get("notes_path")
    if notes_path:
        return ChainAugmenter(GuidanceAugmenter(), NotesAugmenter(notes_path))
    return GuidanceAugmenter()


def safe_augment(augmenter, system_prompt: str, problem: str) -> str:
    """Augment the prompt, or return it unchanged if the augmenter fails."""
    if augmenter is None:
        return system_prompt
    try:
        return augmenter.augment(system_prompt, problem)
    except Exception as exc:
        print(f"[SWARM] Warning: context augmentation failed ({exc!r}); using the plain prompt.", file=sys.stderr)
        return system_prompt
