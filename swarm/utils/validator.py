"""Input validation: checks a run request before any provider is probed."""


def validate_input(problem: str) -> str:
    """Validate that the problem description is a non-empty string.

    Returns the stripped input on success.
    Raises ValueError if input is empty or whitespace-only.
    """
    if not isinstance(problem, str) or not problem.strip():
        raise ValueError("Problem description must be a non-empty string.")
    return problem.strip()


def validate_preferences(preferences) -> dict:
    """Per-run options must be a mapping with string keys. None means no options."""
    if preferences is None:
        return {}
    if not isinstance(preferences, dict):
        raise ValueError(f"Preferences must be a mapping, got {type(preferences).__name__}.")
    bad_keys = [key for key in preferences if not isinstance(key, str) or not key.strip()]
    if bad_keys:
        raise ValueError(f"Preference keys must be non-empty strings, got {bad_keys!r}.")
    return dict(preferences)
