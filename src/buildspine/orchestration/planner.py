"""
Artifact Planner - derives execution order from produces/requires declarations.

Instead of relying on manual ``series`` placement to run a consumer after
its producers, each task declares the artifacts it produces and requires.
The planner turns a set of tasks into a composite:

1. Index producers by artifact (one producer per artifact)
2. Add an edge producer → consumer for every required artifact
3. Validate the graph is a DAG (no cycles)
4. Layer the tasks with Kahn's algorithm: layer N holds every task whose
   producers all sit in layers < N
5. Run layers in ``series``, tasks within a layer in ``parallel``

Requirements with no producer in the set are assumed to exist on disk
already (for example ``build:standalone`` invoked on its own after a build).

Design Principles:
- Pure functions (deterministic, stable: input order is kept inside a layer)
- No execution (that's for the composites)
"""

from __future__ import annotations

from collections import defaultdict
from collections.abc import Sequence

from buildspine.artifacts import Artifact
from buildspine.core.logging import get_logger
from buildspine.orchestration.composition import (
    parallel,
    series,
    validate_order,
)
from buildspine.orchestration.exceptions import CycleDetectedError, PlanResolutionError
from buildspine.orchestration.task import TaskHandle

logger = get_logger(__name__)

__all__ = ["plan", "plan_layers", "validate_order"]


def _dependency_graph(tasks: Sequence[TaskHandle]) -> dict[str, list[str]]:
    """Map each task name to the names of the tasks it depends on."""
    producers: dict[Artifact, str] = {}
    for task in tasks:
        for artifact in task.produces:
            if artifact in producers:
                raise PlanResolutionError(
                    f"Artifact '{artifact.value}' is produced by both "
                    f"'{producers[artifact]}' and '{task.name}'"
                )
            producers[artifact] = task.name

    graph: dict[str, list[str]] = {}
    for task in tasks:
        deps = {producers[a] for a in task.requires if a in producers and producers[a] != task.name}
        graph[task.name] = sorted(deps)
    return graph


def _check_cycles(graph: dict[str, list[str]]) -> None:
    """
    Depth-first search with three-color marking.

    WHITE: unvisited, GRAY: on the current path, BLACK: finished.
    Reaching a GRAY node means the path closed a cycle.
    """
    WHITE, GRAY, BLACK = 0, 1, 2
    color = {name: WHITE for name in graph}
    path: list[str] = []

    def dfs(node: str) -> list[str] | None:
        color[node] = GRAY
        path.append(node)
        for neighbor in graph[node]:
            if color[neighbor] == GRAY:
                return path[path.index(neighbor):] + [neighbor]
            if color[neighbor] == WHITE:
                cycle = dfs(neighbor)
                if cycle:
                    return cycle
        color[node] = BLACK
        path.pop()
        return None

    for name in graph:
        if color[name] == WHITE:
            cycle = dfs(name)
            if cycle:
                raise CycleDetectedError(cycle)


def plan_layers(tasks: Sequence[TaskHandle]) -> list[TaskHandle]:
    """
    Derive ordered stages from artifact declarations.

    Returns:
        One handle per layer: the task itself for single-task layers, a
        ``parallel`` composite otherwise. Run them in ``series``.

    Raises:
        PlanResolutionError: Duplicate task names or two producers of one artifact
        CycleDetectedError: If declarations form a cycle
    """
    names = [t.name for t in tasks]
    if len(names) != len(set(names)):
        duplicates = sorted({n for n in names if names.count(n) > 1})
        raise PlanResolutionError(f"Duplicate tasks in plan: {duplicates}")

    graph = _dependency_graph(tasks)
    _check_cycles(graph)

    by_name = {t.name: t for t in tasks}
    dependents: dict[str, list[str]] = defaultdict(list)
    in_degree = {name: len(deps) for name, deps in graph.items()}
    for name, deps in graph.items():
        for dep in deps:
            dependents[dep].append(name)

    layers: list[TaskHandle] = []
    placed = 0
    current = [n for n in names if in_degree[n] == 0]
    while current:
        members = [by_name[n] for n in current]
        placed += len(members)
        layers.append(members[0] if len(members) == 1 else parallel(*members))
        following: list[str] = []
        for node in current:
            for dependent in dependents[node]:
                in_degree[dependent] -= 1
                if in_degree[dependent] == 0:
                    following.append(dependent)
        current = [n for n in names if n in following]

    if placed != len(tasks):
        raise PlanResolutionError(f"Plan incomplete: placed {placed} of {len(tasks)} tasks")

    logger.debug("plan.resolved", tasks=names, layers=[layer.name for layer in layers])
    return layers


def plan(tasks: Sequence[TaskHandle], name: str | None = None) -> TaskHandle:
    """Derive a single runnable handle from artifact declarations.

    Example::

        plan([build_standalone, build_scripts, build_styles], name="bundle")
        # → series(parallel(build:scripts, build:styles), build:standalone)
    """
    if not tasks:
        raise ValueError("plan() requires at least one task")
    layers = plan_layers(tasks)
    if len(layers) == 1 and name is None:
        return layers[0]
    return series(*layers, name=name)
