"""State accumulator: field reducers and the functional merge of partial updates.

Every task returns a sparse partial update. Partials are folded into GraphState
field by field:

- ``messages``: union of both logs, ordered by completion sequence
- ``task_results``: last write wins per task name
- ``report`` / ``iteration``: plain overwrite, one writer each
- ``input`` / ``preferences`` / ``max_iterations``: set once, never written by a task

The same reducers are attached to GraphState (see swarm.state) so the graph
executor merges concurrent batch members exactly the way ``merge`` does.
"""

from collections import Counter
from collections.abc import Iterable, Mapping

from swarm.errors import StateConflictError

IMMUTABLE_FIELDS = frozenset({"input", "preferences", "max_iterations"})
SCALAR_FIELDS = frozenset({"report", "iteration"})


def merge_messages(left: list, right: list) -> list:
    """Combine two message logs, keeping completion order.

    Sorting on the completion sequence makes the merge commutative and
    associative, so siblings of a batch can be folded in any order.
    """
    if not right:
        return list(left or [])
    return sorted([*(left or []), *right], key=lambda message: message.seq)


def merge_task_results(left: dict, right: dict) -> dict:
    """Last-write-wins per task name. Each key has a single writer per pass."""
    return {**(left or {}), **(right or {})}


REDUCERS = {
    "messages": merge_messages,
    "task_results": merge_task_results,
}

STATE_FIELDS = IMMUTABLE_FIELDS | SCALAR_FIELDS | frozenset(REDUCERS)


def validate_partial(partial, task: str = "") -> dict:
    """Check that a partial update only touches fields a task may write.

    Returns the partial as a dict. Raises StateConflictError otherwise.
    """
    who = f"Task '{task}'" if task else "Partial update"
    if partial is None:
        return {}
    if not isinstance(partial, Mapping):
        raise StateConflictError(
            f"{who} returned {type(partial).__name__}, expected a mapping of field updates."
        )

    unknown = set(partial) - STATE_FIELDS
    if unknown:
        raise StateConflictError(f"{who} wrote unknown state fields: {sorted(unknown)}.")

    frozen = set(partial) & IMMUTABLE_FIELDS
    if frozen:
        raise StateConflictError(f"{who} tried to overwrite immutable fields: {sorted(frozen)}.")

    return dict(partial)


def merge(state: Mapping, partial: Mapping) -> dict:
    """Return a new state with ``partial`` folded in. Neither input is mutated."""
    updates = validate_partial(partial)
    merged = dict(state)
    for key, value in updates.items():
        reducer = REDUCERS.get(key)
        merged[key] = reducer(state.get(key), value) if reducer else value
    return merged


def merge_batch(state: Mapping, partials: Iterable[Mapping]) -> dict:
    """Merge the partials of one concurrent batch.

    Batch members have no relative order, so two of them writing the same
    scalar field is a conflict rather than a race to resolve.
    """
    partials = [validate_partial(p) for p in partials]
    writers = Counter(key for p in partials for key in p if key in SCALAR_FIELDS)
    clashes = sorted(key for key, count in writers.items() if count > 1)
    if clashes:
        raise StateConflictError(
            f"Concurrent tasks wrote the same scalar fields: {clashes}."
        )

    merged = dict(state)
    for partial in partials:
        merged = merge(merged, partial)
    return merged
