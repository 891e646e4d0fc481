"""
Test configuration and fixtures for the Site Forensics API.

Redis is disabled and file logging is turned off before the app is imported,
so the suite runs without external services.
"""

import os
from typing import Any, Generator, Iterable

os.environ["REDIS_URL"] = ""
os.environ["LOG_TO_FILE"] = "false"
os.environ["ANALYSIS_PUBLISH_EVENTS"] = "false"

import pytest
from fastapi.testclient import TestClient

from app.features.analysis.schemas.analysis import AnalysisJob, AnalysisOptions, AnalysisStatus
from app.features.analysis.services import cache as cache_module
from app.features.analysis.services.module import AnalysisModule


@pytest.fixture(scope="session")
def test_app():
    """Create FastAPI test application."""
    from app.main import app

    return app


@pytest.fixture(scope="function")
def client(test_app) -> Generator[TestClient, None, None]:
    """
    Create a test client for making HTTP requests.
    """
    with TestClient(test_app) as test_client:
        yield test_client


@pytest.fixture(autouse=True)
def clear_memory_cache():
    """The in-memory cache fallback is process wide; isolate tests from each other."""
    cache_module._memory_cache.clear()
    yield
    cache_module._memory_cache.clear()


@pytest.fixture
def job() -> AnalysisJob:
    return AnalysisJob(
        id="test-job",
        url="https://example.com",
        status=AnalysisStatus.running,
        options=AnalysisOptions(
            max_depth=3,
            respect_robots_txt=True,
            include_external_links=False,
            performance_runs=1,
        ),
    )


def _make_module(
    name: str,
    phase: str = "performance",
    dependencies: Iterable[str] = (),
    result: Any = None,
    error: Exception = None,
    calls: list = None,
) -> AnalysisModule:
    """Module that records its name in ``calls`` and returns ``result`` or raises ``error``."""

    async def execute(context):
        if calls is not None:
            calls.append(name)
        if error is not None:
            raise error
        return {"success": True} if result is None else result

    return AnalysisModule(name=name, phase=phase, dependencies=list(dependencies), execute=execute)


@pytest.fixture
def make_module():
    return _make_module
