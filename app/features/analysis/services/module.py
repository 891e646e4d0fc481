"""
Analysis module contract.

A module is a named, phase-tagged unit of work with declared dependencies and
an async ``execute(context)``. Modules can be declared two ways:

    class SecurityHeadersModule(AnalysisModule):
        name = "security"
        phase = AnalysisPhase.security
        dependencies = ["crawler"]

        async def execute(self, context):
            ...

    AnalysisModule(name="seo", phase="seo", dependencies=["crawler"], execute=run_seo)

The base class has no ``execute`` of its own: a subclass must define one or
pass it in, otherwise registration fails. The orchestrator only relies on the
four attributes, so any object exposing them can be registered.
"""
from typing import Any, Awaitable, Callable, List, Optional, Sequence, Union

from app.features.analysis.exceptions import ModuleValidationError
from app.features.analysis.schemas.analysis import AnalysisPhase

ExecuteFn = Callable[[Any], Awaitable[Any]]


class AnalysisModule:
    name: str = ""
    phase: Union[AnalysisPhase, str, None] = None
    dependencies: Sequence[str] = ()

    def __init__(
        self,
        name: Optional[str] = None,
        phase: Union[AnalysisPhase, str, None] = None,
        dependencies: Optional[Sequence[str]] = None,
        execute: Optional[ExecuteFn] = None,
    ):
        if name is not None:
            self.name = name
        if phase is not None:
            self.phase = phase
        if dependencies is not None:
            self.dependencies = dependencies
        if execute is not None:
            self.execute = execute

    def __repr__(self) -> str:
        return f"<AnalysisModule name={self.name!r} phase={self.phase!r} deps={list(self.dependencies or [])!r}>"


def module_phase(module: Any) -> AnalysisPhase:
    """Coerce a module's declared phase to AnalysisPhase."""
    phase = getattr(module, "phase", None)
    if isinstance(phase, AnalysisPhase):
        return phase
    return AnalysisPhase(phase)


def validate_module(module: Any) -> None:
    """
    Check the structural contract of a module before registration.

    Raises:
        ModuleValidationError: name or phase missing/blank/unknown, dependencies
            not a list of names, or execute not callable
    """
    name = getattr(module, "name", None)
    if not isinstance(name, str) or not name.strip():
        raise ModuleValidationError("Module must have a valid name")

    phase = getattr(module, "phase", None)
    if isinstance(phase, str) and not isinstance(phase, AnalysisPhase):
        if not phase.strip():
            raise ModuleValidationError(f'Module "{name}" must have a valid phase')
        try:
            AnalysisPhase(phase)
        except ValueError:
            allowed = ", ".join(p.value for p in AnalysisPhase)
            raise ModuleValidationError(
                f'Module "{name}" has unknown phase "{phase}" (expected one of: {allowed})'
            )
    elif not isinstance(phase, AnalysisPhase):
        raise ModuleValidationError(f'Module "{name}" must have a valid phase')

    dependencies = getattr(module, "dependencies", None)
    if not isinstance(dependencies, (list, tuple)):
        raise ModuleValidationError(f'Module "{name}" must have a dependencies array')
    if not all(isinstance(dep, str) and dep for dep in dependencies):
        raise ModuleValidationError(f'Module "{name}" dependencies must be module names')

    if not callable(getattr(module, "execute", None)):
        raise ModuleValidationError(f'Module "{name}" must have an execute method')


def dependency_names(module: Any) -> List[str]:
    return list(getattr(module, "dependencies", None) or [])
