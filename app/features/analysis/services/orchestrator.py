"""
Orchestrator for registering and executing analysis modules.

The orchestrator:
- keeps the module registry
- resolves the execution order from declared dependencies
- runs modules one at a time (or wave by wave when ``parallel`` is set)
- emits lifecycle and progress events to its listeners
- isolates module failures so a run always returns partial results

All per-run state lives in an ``AnalysisRun`` value, never on the
orchestrator, so one instance can serve overlapping jobs. Listeners are
per instance and will observe events from every run it executes.
"""
import asyncio
import inspect
import math
from typing import Any, Callable, Dict, List, Optional, Union

from app.features.analysis.exceptions import (
    AnalysisTimeoutError,
    DuplicateModuleError,
    ModuleTimeoutError,
)
from app.features.analysis.schemas.analysis import (
    RESULT_SLOTS,
    AnalysisJob,
    AnalysisResults,
    ProgressUpdate,
)
from app.features.analysis.services.cache import create_cache_manager, job_cache_prefix
from app.features.analysis.services.context import (
    AnalysisContext,
    ModuleOutcome,
    ModuleOutcomeStatus,
    create_analysis_context,
)
from app.features.analysis.services.events import AnalysisEvent, EventEmitter, Listener
from app.features.analysis.services.module import module_phase, validate_module
from app.features.analysis.services.resolver import group_into_waves, resolve_execution_order
from app.platform.logger import create_logger


class AnalysisRun:
    """State of a single execution: context, order and the module-results table."""

    def __init__(self, job: AnalysisJob, context: AnalysisContext, order: List[Any]):
        self.job = job
        self.context = context
        self.order = order
        self.module_results: Dict[str, Any] = {}
        self.results: Optional[AnalysisResults] = None

    @property
    def outcomes(self) -> Dict[str, ModuleOutcome]:
        return self.context.outcomes

    @property
    def failed_modules(self) -> List[str]:
        return self.context.failed_dependencies


def calculate_progress(position: int, total: int) -> int:
    """Percentage for the ``position``-th (1-based) of ``total`` modules, rounded half up."""
    if total <= 0:
        return 100
    return int(math.floor(100 * position / total + 0.5))


class Orchestrator:
    def __init__(
        self,
        parallel: bool = False,
        module_timeout: Optional[float] = None,
        deadline: Optional[float] = None,
        cache_factory: Callable[[str], Any] = create_cache_manager,
        logger_factory: Callable[[str], Any] = create_logger,
    ):
        self.parallel = parallel
        self.module_timeout = module_timeout
        self.deadline = deadline
        self._cache_factory = cache_factory
        self._logger_factory = logger_factory
        self._modules: Dict[str, Any] = {}
        self.events = EventEmitter()

    # ── Listeners ───────────────────────────────
    def on(self, event: Union[AnalysisEvent, str], listener: Listener) -> Listener:
        return self.events.on(event, listener)

    def off(self, event: Union[AnalysisEvent, str], listener: Listener) -> None:
        self.events.off(event, listener)

    # ── Registry ────────────────────────────────
    def register_module(self, module: Any) -> None:
        """
        Register an analysis module.

        Raises:
            ModuleValidationError: the module does not satisfy the contract
            DuplicateModuleError: a module with the same name is already registered
        """
        validate_module(module)
        if module.name in self._modules:
            raise DuplicateModuleError(module.name)
        self._modules[module.name] = module

    def get_module(self, name: str) -> Optional[Any]:
        return self._modules.get(name)

    def get_all_modules(self) -> List[Any]:
        return list(self._modules.values())

    def clear_modules(self) -> None:
        self._modules.clear()

    def resolve_execution_order(self) -> List[Any]:
        return resolve_execution_order(self._modules)

    # ── Execution ───────────────────────────────
    async def execute_analysis(self, job: AnalysisJob) -> AnalysisResults:
        """
        Execute all registered modules in dependency order.

        Module failures are reported through ``module_error`` and leave their
        slot empty. Only resolution errors, timeouts of the whole run and
        errors raised by listeners propagate to the caller.
        """
        run = await self.run(job)
        return run.results

    async def run(self, job: AnalysisJob) -> AnalysisRun:
        try:
            logger = self._logger_factory(job.id)
            cache = self._cache_factory(job_cache_prefix(job.id))

            logger.info(f"Starting analysis of {job.url} with options {job.options.model_dump()}")

            order = self.resolve_execution_order()

            context = create_analysis_context(job.url, job.options)
            context.logger = logger
            context.cache = cache

            run = AnalysisRun(job, context, order)

            if self.deadline is None:
                await self._execute(run)
            else:
                try:
                    await asyncio.wait_for(self._execute(run), timeout=self.deadline)
                except asyncio.TimeoutError:
                    raise AnalysisTimeoutError(job.id, self.deadline) from None

            run.results = self._aggregate(run)

            if run.failed_modules:
                logger.warning(f"Analysis completed with failed modules: {', '.join(run.failed_modules)}")
            else:
                logger.info("Analysis completed successfully")

            await self.events.emit(AnalysisEvent.complete, run.results)
            return run

        except Exception as e:
            await self.events.emit(AnalysisEvent.error, e)
            raise

    async def _execute(self, run: AnalysisRun) -> None:
        total = len(run.order)

        if not self.parallel:
            for index, module in enumerate(run.order):
                await self._start(run, module)
                outcome = await self._run_module(run, module)
                await self._report(run, outcome, index + 1, total)
            return

        finished = 0
        for wave in group_into_waves(run.order):
            for module in wave:
                await self._start(run, module)
            outcomes = await asyncio.gather(*(self._run_module(run, module) for module in wave))
            for outcome in outcomes:
                finished += 1
                await self._report(run, outcome, finished, total)

    async def _start(self, run: AnalysisRun, module: Any) -> None:
        run.context.logger.info(f"Starting module: {module.name}")
        await self.events.emit(AnalysisEvent.module_start, module.name)

    async def _run_module(self, run: AnalysisRun, module: Any) -> ModuleOutcome:
        """Run one module and record its outcome. Never raises for module failures."""
        name, phase = module.name, module_phase(module)

        try:
            result = await self._invoke(module, run.context)
        except ModuleTimeoutError as e:
            outcome = ModuleOutcome(name, phase, ModuleOutcomeStatus.timed_out, error=e)
        except Exception as e:
            outcome = ModuleOutcome(name, phase, ModuleOutcomeStatus.failed, error=e)
        else:
            outcome = ModuleOutcome(name, phase, ModuleOutcomeStatus.completed, result=result)
            run.module_results[name] = result

        run.context.record_outcome(outcome)
        return outcome

    async def _invoke(self, module: Any, context: AnalysisContext) -> Any:
        call = module.execute(context)
        if not inspect.isawaitable(call):
            return call
        if self.module_timeout is None:
            return await call
        try:
            return await asyncio.wait_for(call, timeout=self.module_timeout)
        except asyncio.TimeoutError:
            raise ModuleTimeoutError(module.name, self.module_timeout) from None

    async def _report(self, run: AnalysisRun, outcome: ModuleOutcome, position: int, total: int) -> None:
        logger = run.context.logger

        if not outcome.succeeded:
            logger.error(f'Module "{outcome.name}" failed: {outcome.error}', exc_info=outcome.error)
            await self.events.emit(AnalysisEvent.module_error, outcome.name, outcome.error)
            return

        logger.info(f"Completed module: {outcome.name}")
        await self.events.emit(AnalysisEvent.module_complete, outcome.name, outcome.result)

        update = ProgressUpdate(
            phase=outcome.phase,
            progress=calculate_progress(position, total),
            current_task=f"Completed {outcome.name}",
            discoveries=run.context.drain_discoveries(),
            metrics=run.context.metrics.model_copy(),
        )
        await self.events.emit(AnalysisEvent.progress, update)

    @staticmethod
    def _aggregate(run: AnalysisRun) -> AnalysisResults:
        slots = {
            slot: run.module_results[name]
            for name, slot in RESULT_SLOTS.items()
            if name in run.module_results
        }
        return AnalysisResults(**slots)
