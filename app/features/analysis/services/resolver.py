"""
Dependency resolution for analysis modules.

``resolve_execution_order`` is a depth-first topological sort with three-color
marking. Independent modules keep their registration order, so the result is
deterministic for a fixed registration sequence.
"""
from enum import Enum
from typing import Any, Dict, List, Mapping

from app.features.analysis.exceptions import CircularDependencyError, MissingDependencyError
from app.features.analysis.services.module import dependency_names


class _Mark(Enum):
    visiting = 1
    done = 2


def resolve_execution_order(modules: Mapping[str, Any]) -> List[Any]:
    """
    Order modules so each one follows everything it depends on.

    Args:
        modules: registry of module name -> module, in registration order

    Raises:
        MissingDependencyError: a module names a dependency that is not registered
        CircularDependencyError: the dependency graph has a cycle
    """
    marks: Dict[str, _Mark] = {}
    order: List[Any] = []

    def visit(name: str) -> None:
        mark = marks.get(name)
        if mark is _Mark.visiting:
            raise CircularDependencyError(name)
        if mark is _Mark.done:
            return

        module = modules[name]
        marks[name] = _Mark.visiting

        for dep in dependency_names(module):
            if dep not in modules:
                raise MissingDependencyError(name, dep)
            visit(dep)

        marks[name] = _Mark.done
        order.append(module)

    for name in modules:
        visit(name)

    return order


def group_into_waves(order: List[Any]) -> List[List[Any]]:
    """
    Split a resolved order into waves: every module in a wave only depends on
    modules of earlier waves, so a wave's members may run concurrently.
    Members keep their relative position from ``order``.
    """
    level: Dict[str, int] = {}
    waves: List[List[Any]] = []

    for module in order:
        deps = dependency_names(module)
        wave = max((level[dep] + 1 for dep in deps), default=0)
        level[module.name] = wave
        if wave == len(waves):
            waves.append([])
        waves[wave].append(module)

    return waves
