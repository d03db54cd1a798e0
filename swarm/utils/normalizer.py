"""Structured-output normalizer: raw model text to a typed, defaulted record.

A schema is a dataclass whose field defaults are the documented fallbacks:

    @dataclass
    class Scores:
        overall: float = field(default=50, metadata={"bounds": (0, 100)})
        findings: list = field(default_factory=list)
        summary: str = ""

``normalize`` never raises on model text. Fields that are missing or have the
wrong shape get their default, numbers are clamped to their ``bounds``, and a
response that does not parse at all yields the all-defaults record. The result
is tagged: ``Parsed`` when every field came from the response, ``Degraded``
otherwise.
"""

import math
from dataclasses import MISSING, asdict, dataclass, fields, is_dataclass
from typing import Generic, TypeVar, Union

from swarm.utils.parsing import extract_json

T = TypeVar("T")

_INVALID = object()
_TRUE = {"true", "yes", "1"}
_FALSE = {"false", "no", "0"}


@dataclass(frozen=True)
class Parsed(Generic[T]):
    value: T
    raw: str

    @property
    def degraded(self) -> bool:
        return False

    @property
    def defaulted(self) -> tuple[str, ...]:
        return ()


@dataclass(frozen=True)
class Degraded(Generic[T]):
    value: T
    raw: str
    defaulted: tuple[str, ...] = ()
    reason: str = ""

    @property
    def degraded(self) -> bool:
        return True


NormalizedResult = Union[Parsed[T], Degraded[T]]


def _default_of(f):
    if f.default is not MISSING:
        return f.default
    if f.default_factory is not MISSING:
        return f.default_factory()
    raise TypeError(f"Schema field '{f.name}' has no default value.")


def _clamp(number, bounds):
    if not bounds:
        return number
    low, high = bounds
    return min(max(number, low), high)


def _coerce(value, default, bounds=None):
    """Coerce ``value`` to the shape of ``default``; _INVALID if impossible."""
    if isinstance(default, bool):
        if isinstance(value, bool):
            return value
        if isinstance(value, str) and value.strip().lower() in _TRUE | _FALSE:
            return value.strip().lower() in _TRUE
        return _INVALID

    if isinstance(default, (int, float)):
        if isinstance(value, bool):
            return _INVALID
        if isinstance(value, str):
            try:
                value = float(value.strip().rstrip("%"))
            except ValueError:
                return _INVALID
        if not isinstance(value, (int, float)):
            return _INVALID
        try:
            number = float(value)
        except OverflowError:
            return _INVALID
        if not math.isfinite(number):
            return _INVALID
        if isinstance(default, int) and number.is_integer():
            value = int(value)
        return _clamp(value, bounds)

    if isinstance(default, str):
        if isinstance(value, str):
            return value
        if isinstance(value, (int, float)) and not isinstance(value, bool):
            return str(value)
        return _INVALID

    if isinstance(default, list):
        return value if isinstance(value, list) else _INVALID

    if isinstance(default, dict):
        return value if isinstance(value, dict) else _INVALID

    return value


def _normalize_record(data: dict, schema, prefix: str = ""):
    values = {}
    defaulted = []
    for f in fields(schema):
        default = _default_of(f)
        path = f"{prefix}{f.name}"
        raw_value = data.get(f.name)

        if raw_value is None:
            values[f.name] = default
            defaulted.append(path)
            continue

        if is_dataclass(default):
            if isinstance(raw_value, dict):
                nested, nested_defaulted = _normalize_record(raw_value, type(default), path + ".")
                values[f.name] = type(default)(**nested)
                defaulted.extend(nested_defaulted)
            else:
                values[f.name] = default
                defaulted.append(path)
            continue

        coerced = _coerce(raw_value, default, f.metadata.get("bounds"))
        if coerced is _INVALID:
            values[f.name] = default
            defaulted.append(path)
        else:
            values[f.name] = coerced
    return values, defaulted


def normalize(raw_text: str, schema: type[T]) -> NormalizedResult[T]:
    """Project raw model text onto ``schema``. Never raises on bad text."""
    raw = raw_text if isinstance(raw_text, str) else ""
    data = extract_json(raw)

    if not isinstance(data, dict):
        return Degraded(
            value=schema(),
            raw=raw,
            defaulted=tuple(f.name for f in fields(schema)),
            reason="unparseable response" if raw.strip() else "empty response",
        )

    values, defaulted = _normalize_record(data, schema)
    value = schema(**values)
    if defaulted:
        return Degraded(value=value, raw=raw, defaulted=tuple(defaulted), reason="missing or malformed fields")
    return Parsed(value=value, raw=raw)


def as_record(result: NormalizedResult) -> dict:
    """Plain-dict view of a normalized value, for logs and payloads."""
    return asdict(result.value)
