"""
Analysis Context

Per-run state shared by every module of one execution. Created fresh by the
orchestrator for each run and discarded afterwards.
"""
from enum import Enum
from typing import Any, Dict, List, Optional

from app.features.analysis.schemas.analysis import (
    AnalysisOptions,
    AnalysisPhase,
    Discovery,
    DiscoverySeverity,
    DiscoveryType,
    LiveMetrics,
)


class ModuleOutcomeStatus(str, Enum):
    completed = "completed"
    failed = "failed"
    timed_out = "timed_out"


class ModuleOutcome:
    """What happened to one module; handed to dependents as an explicit marker."""

    def __init__(
        self,
        name: str,
        phase: AnalysisPhase,
        status: ModuleOutcomeStatus,
        result: Any = None,
        error: Optional[BaseException] = None,
    ):
        self.name = name
        self.phase = phase
        self.status = status
        self.result = result
        self.error = error

    @property
    def succeeded(self) -> bool:
        return self.status == ModuleOutcomeStatus.completed

    def __repr__(self) -> str:
        return f"<ModuleOutcome {self.name} {self.status.value}>"


class AnalysisContext:
    def __init__(self, url: str, options: AnalysisOptions):
        self.url = url
        self.options = options
        self.logger = None
        self.cache = None

        # Latest result per phase and outcome per finished module
        self.phase_results: Dict[AnalysisPhase, Any] = {}
        self.outcomes: Dict[str, ModuleOutcome] = {}

        self.metrics = LiveMetrics()
        self._discoveries: List[Discovery] = []
        self._reported = 0

    # ── Shared crawl slot ───────────────────────
    @property
    def crawl_results(self) -> Any:
        """Output of the most recent successful crawl-phase module, if any."""
        return self.phase_results.get(AnalysisPhase.crawl)

    # ── Dependency access ───────────────────────
    def record_outcome(self, outcome: ModuleOutcome) -> None:
        self.outcomes[outcome.name] = outcome
        if outcome.succeeded:
            self.phase_results[outcome.phase] = outcome.result

    def dependency_outcome(self, name: str) -> Optional[ModuleOutcome]:
        """None means the module has not run (yet) in this execution."""
        return self.outcomes.get(name)

    def dependency_result(self, name: str, default: Any = None) -> Any:
        outcome = self.outcomes.get(name)
        if outcome is None or not outcome.succeeded:
            return default
        return outcome.result

    @property
    def failed_dependencies(self) -> List[str]:
        return [name for name, outcome in self.outcomes.items() if not outcome.succeeded]

    # ── Discoveries ─────────────────────────────
    def add_discovery(
        self,
        type: DiscoveryType,
        message: str,
        severity: DiscoverySeverity = DiscoverySeverity.info,
    ) -> Discovery:
        discovery = Discovery(type=type, severity=severity, message=message)
        self._discoveries.append(discovery)
        if discovery.type == DiscoveryType.issue:
            self.metrics.issues_found += 1
        elif discovery.type == DiscoveryType.technology:
            self.metrics.technologies_detected += 1
        return discovery

    @property
    def discoveries(self) -> List[Discovery]:
        return list(self._discoveries)

    def drain_discoveries(self) -> List[Discovery]:
        """Discoveries added since the previous drain."""
        fresh = self._discoveries[self._reported:]
        self._reported = len(self._discoveries)
        return fresh


def create_analysis_context(url: str, options: AnalysisOptions) -> AnalysisContext:
    """
    Build a fresh context for a job. Logger and cache are attached by the
    orchestrator, so this stays free of I/O.
    """
    return AnalysisContext(url=url, options=options.model_copy(deep=True))
