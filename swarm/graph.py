"""LangGraph StateGraph built from a pipeline's task table.

A pipeline is declared as a flat list of TaskSpec rows (name, predecessors,
function). The table is validated, split into batches by dependency depth, and
compiled once into a StateGraph where every task of batch k waits on all tasks
of batch k-1. LangGraph runs each batch as one superstep, so batch members
execute concurrently and their partial updates are merged through the reducers
on GraphState before the next batch starts.

The iteration back-edge (assembler -> entry tasks) is not part of the graph;
the iteration controller re-invokes ``run`` instead.
"""

import asyncio
import inspect
from collections.abc import Callable
from dataclasses import dataclass

from langgraph.errors import InvalidUpdateError
from langgraph.graph import END, START, StateGraph

from swarm.accumulator import validate_partial
from swarm.errors import ConfigurationError, GraphDefinitionError, StateConflictError, TaskExecutionError
from swarm.state import GraphState
from swarm.utils.dag import check_graph


@dataclass(frozen=True)
class TaskSpec:
    """Static declaration of one task: ``fn(state) -> partial`` (sync or async)."""

    name: str
    fn: Callable
    after: tuple[str, ...] = ()

    def __post_init__(self):
        object.__setattr__(self, "after", tuple(self.after))


def plan_batches(tasks) -> list[list[str]]:
    """Group tasks by dependency depth.

    A task lands one batch after its deepest predecessor, so every predecessor
    has finished and been merged before it starts. Within a batch, tasks keep
    their declaration order. Expects a validated (acyclic) table.
    """
    by_name = {task.name: task for task in tasks}
    depth = {}

    def _depth(name):
        if name not in depth:
            depth[name] = 1 + max((_depth(dep) for dep in by_name[name].after), default=-1)
        return depth[name]

    for task in tasks:
        _depth(task.name)

    batches = [[] for _ in range(max(depth.values()) + 1)]
    for task in tasks:
        batches[depth[task.name]].append(task.name)
    return batches


def _as_node(task: TaskSpec):
    """Wrap a task function as a graph node that names the task on failure.

    The task body runs shielded: when a sibling fails, LangGraph cancels the
    node but the body keeps running to completion. ``run`` waits for such
    bodies (tracked in the ``in_flight`` set of the run config) before it
    re-raises, and their updates are never merged.
    """

    async def execute(state: GraphState) -> dict:
        try:
            result = task.fn(state)
            if inspect.isawaitable(result):
                result = await result
        except TaskExecutionError:
            raise
        except Exception as exc:
            raise TaskExecutionError(task.name, exc) from exc
        return validate_partial(result, task.name)

    async def node(state: GraphState, config=None) -> dict:
        body = asyncio.ensure_future(execute(state))
        in_flight = ((config or {}).get("configurable") or {}).get("in_flight")
        if in_flight is not None:
            in_flight.add(body)
            body.add_done_callback(in_flight.discard)
        return await asyncio.shield(body)

    node.__name__ = f"task_{task.name}"
    return node


@dataclass(frozen=True)
class CompiledPipeline:
    tasks: tuple[TaskSpec, ...]
    batches: list[list[str]]
    app: object

    @property
    def entry_tasks(self) -> list[str]:
        return list(self.batches[0])

    @property
    def terminal_task(self) -> str:
        return self.batches[-1][0]


def compile_graph(tasks) -> CompiledPipeline:
    """Validate the task table and compile it into a runnable graph.

    Raises GraphDefinitionError listing every structural issue found.
    """
    tasks = list(tasks)
    issues = check_graph(tasks)
    if issues:
        raise GraphDefinitionError(issues)

    batches = plan_batches(tasks)

    workflow = StateGraph(GraphState)
    for task in tasks:
        workflow.add_node(task.name, _as_node(task))

    for name in batches[0]:
        workflow.add_edge(START, name)

    for previous, current in zip(batches, batches[1:]):
        # A list start key makes the edge wait for every task of the previous batch.
        start = previous if len(previous) > 1 else previous[0]
        for name in current:
            workflow.add_edge(start, name)

    for name in batches[-1]:
        workflow.add_edge(name, END)

    return CompiledPipeline(tuple(tasks), batches, workflow.compile())


async def run(graph, initial_state: GraphState, max_concurrency: int | None = None) -> GraphState:
    """Execute one pass of the pipeline and return the merged state.

    ``graph`` is a CompiledPipeline or a raw task list (compiled on the fly).
    The first failing task aborts the pass with TaskExecutionError. Siblings
    already running are allowed to finish before the error propagates; their
    results are discarded and no later batch starts. ``max_concurrency`` of
    None means unbounded.
    """
    if max_concurrency is not None and (isinstance(max_concurrency, bool) or max_concurrency < 1):
        raise ConfigurationError(f"max_concurrency must be at least 1, got {max_concurrency!r}.")

    pipeline = graph if isinstance(graph, CompiledPipeline) else compile_graph(graph)

    in_flight = set()
    config = {"recursion_limit": len(pipeline.batches) + 5, "configurable": {"in_flight": in_flight}}
    if max_concurrency is not None:
        config["max_concurrency"] = max_concurrency

    try:
        return await pipeline.app.ainvoke(dict(initial_state), config=config)
    except InvalidUpdateError as exc:
        raise StateConflictError(f"Concurrent tasks wrote the same scalar field: {exc}") from exc
    finally:
        if in_flight:
            await asyncio.gather(*in_flight, return_exceptions=True)
