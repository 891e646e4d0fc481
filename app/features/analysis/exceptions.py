"""
Analysis error taxonomy.

Registration errors are raised synchronously by ``register_module``.
Resolution, timeout and listener errors are fatal to a run and re-raised
from ``execute_analysis``. Module execution errors are never raised to the
caller; they surface through the ``module_error`` event only.
"""


class AnalysisError(Exception):
    """Base class for analysis engine errors."""


class ModuleRegistrationError(AnalysisError):
    pass


class DuplicateModuleError(ModuleRegistrationError):
    def __init__(self, module_name: str):
        self.module_name = module_name
        super().__init__(f'Module with name "{module_name}" is already registered')


class ModuleValidationError(ModuleRegistrationError, ValueError):
    """A module is missing a name, phase, dependency list or execute callable."""


class DependencyResolutionError(AnalysisError):
    pass


class MissingDependencyError(DependencyResolutionError):
    def __init__(self, module_name: str, dependency: str):
        self.module_name = module_name
        self.dependency = dependency
        super().__init__(
            f'Module "{module_name}" depends on "{dependency}" which is not registered'
        )


class CircularDependencyError(DependencyResolutionError):
    def __init__(self, module_name: str):
        self.module_name = module_name
        super().__init__(f'Circular dependency detected involving module "{module_name}"')


class ModuleTimeoutError(AnalysisError):
    def __init__(self, module_name: str, timeout: float):
        self.module_name = module_name
        self.timeout = timeout
        super().__init__(f'Module "{module_name}" timed out after {timeout}s')


class AnalysisTimeoutError(AnalysisError):
    def __init__(self, job_id: str, deadline: float):
        self.job_id = job_id
        self.deadline = deadline
        super().__init__(f"Analysis {job_id} exceeded its {deadline}s deadline")
