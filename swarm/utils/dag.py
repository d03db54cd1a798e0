"""Graph check: deterministic structural validation of a pipeline's task table.

Returns a list of issues. If empty, the tasks form a DAG with a single terminal
(assembly) task and can be scheduled.
"""

from swarm.accumulator import STATE_FIELDS

_RESERVED_NAMES = {"__start__", "__end__"}
_RESERVED_CHARS = ("|", ":")


def check_graph(tasks) -> list[str]:
    """Check whether the task table can be scheduled.

    ``tasks`` is any sequence of objects with ``name`` and ``after``.
    Returns a list of issue strings. Empty list = valid.
    """
    if not tasks:
        return ["Pipeline has no tasks."]

    issues = []

    # --- Names: present, unique, not clashing with the executor ---
    seen = set()
    for task in tasks:
        name = task.name
        if not name:
            issues.append("Task with empty name.")
            continue
        if name in seen:
            issues.append(f"Duplicate task name '{name}'.")
        seen.add(name)
        if name in _RESERVED_NAMES:
            issues.append(f"Task name '{name}' is reserved.")
        if name in STATE_FIELDS:
            issues.append(f"Task name '{name}' clashes with a state field.")
        if any(ch in name for ch in _RESERVED_CHARS):
            issues.append(f"Task name '{name}' contains a reserved character.")

    # --- Predecessors must reference defined tasks ---
    for task in tasks:
        for dep in task.after:
            if dep not in seen:
                issues.append(f"Task '{task.name}' runs after '{dep}' which is not defined.")
            elif dep == task.name:
                issues.append(f"Task '{task.name}' depends on itself.")

    # --- No cycles (DFS) ---
    adj = {task.name: [d for d in task.after if d in seen and d != task.name] for task in tasks}

    visited = set()
    in_stack = set()

    def _has_cycle(node):
        visited.add(node)
        in_stack.add(node)
        for neighbor in adj.get(node, []):
            if neighbor in in_stack:
                issues.append(f"Circular dependency: {node} -> {neighbor}.")
                return True
            if neighbor not in visited:
                if _has_cycle(neighbor):
                    return True
        in_stack.discard(node)
        return False

    for node in adj:
        if node not in visited:
            _has_cycle(node)

    # --- Exactly one terminal task (the assembler) ---
    has_successor = {dep for deps in adj.values() for dep in deps}
    terminals = [name for name in adj if name not in has_successor]
    if len(terminals) != 1:
        issues.append(
            f"Pipeline must end in exactly one terminal task, found {len(terminals)}: {terminals}."
        )

    return issues
