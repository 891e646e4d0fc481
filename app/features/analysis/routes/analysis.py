import asyncio
import json
import logging
import time
import uuid
from datetime import datetime, timezone

from fastapi import APIRouter, Depends, HTTPException, status
from sse_starlette.sse import EventSourceResponse

from app.features.analysis.exceptions import AnalysisError
from app.features.analysis.modules import default_modules
from app.features.analysis.schemas.analysis import (
    AnalysisJob,
    AnalysisOptions,
    AnalysisRequest,
    AnalysisStatus,
)
from app.features.analysis.services.event_stream import (
    TERMINAL_EVENTS,
    attach_queue,
    attach_redis_publisher,
)
from app.features.analysis.services.orchestrator import Orchestrator
from app.features.analysis.services.report_generator import generate_report
from app.platform.config import settings
from app.platform.response import api_response
from app.platform.utils.url_validator import validate_url

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/analysis", tags=["analysis"])


def get_orchestrator() -> Orchestrator:
    """
    One orchestrator per request: listeners are per instance, so sharing one
    across jobs would mix their event streams.
    """
    orchestrator = Orchestrator(
        parallel=settings.ANALYSIS_PARALLEL_WAVES,
        module_timeout=settings.ANALYSIS_MODULE_TIMEOUT_SECONDS,
        deadline=settings.ANALYSIS_TIMEOUT_SECONDS,
    )
    for module in default_modules():
        orchestrator.register_module(module)
    return orchestrator


def build_job(data: AnalysisRequest) -> AnalysisJob:
    is_valid, normalized_url, error = validate_url(data.url)
    if not is_valid:
        raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail=error)

    requested = data.options.model_dump(exclude_none=True) if data.options else {}
    options = AnalysisOptions(
        max_depth=requested.get("max_depth", settings.ANALYSIS_DEFAULT_MAX_DEPTH),
        respect_robots_txt=requested.get("respect_robots_txt", settings.ANALYSIS_DEFAULT_RESPECT_ROBOTS_TXT),
        include_external_links=requested.get(
            "include_external_links", settings.ANALYSIS_DEFAULT_INCLUDE_EXTERNAL_LINKS
        ),
        performance_runs=requested.get("performance_runs", settings.ANALYSIS_DEFAULT_PERFORMANCE_RUNS),
    )

    return AnalysisJob(
        id=str(uuid.uuid4()),
        url=normalized_url,
        status=AnalysisStatus.running,
        options=options,
        started_at=datetime.now(timezone.utc),
    )


@router.post("", summary="Run a website analysis")
async def run_analysis(
    data: AnalysisRequest,
    orchestrator: Orchestrator = Depends(get_orchestrator),
):
    """
    Run every registered analysis module against the URL and return the
    scored report. Failed modules are listed in the report; only engine
    failures (dependency errors, run deadline) fail the request.
    """
    job = build_job(data)
    if settings.ANALYSIS_PUBLISH_EVENTS:
        attach_redis_publisher(orchestrator, job.id)

    logger.info(f"[{job.id}] Analysis requested for {job.url}")
    start = time.perf_counter()

    try:
        run = await orchestrator.run(job)
    except AnalysisError as e:
        logger.error(f"[{job.id}] Analysis failed: {e}")
        return api_response(
            status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
            message=f"Analysis failed: {e}",
            data={"job_id": job.id, "status": AnalysisStatus.failed.value},
        )

    duration = int((time.perf_counter() - start) * 1000)
    report = generate_report(job.url, run.results, duration, run.failed_modules)

    return api_response(
        data={
            "job_id": job.id,
            "status": AnalysisStatus.completed.value,
            "report": report,
        },
        message="Analysis completed successfully",
    )


@router.post("/stream", summary="Run a website analysis and stream its events")
async def stream_analysis(
    data: AnalysisRequest,
    orchestrator: Orchestrator = Depends(get_orchestrator),
):
    """
    Server-Sent Events stream of module_start, module_complete, module_error,
    progress and finally complete or error.
    """
    job = build_job(data)
    queue: asyncio.Queue = asyncio.Queue()
    attach_queue(orchestrator, queue)
    if settings.ANALYSIS_PUBLISH_EVENTS:
        attach_redis_publisher(orchestrator, job.id)

    async def event_generator():
        task = asyncio.create_task(orchestrator.execute_analysis(job))
        try:
            yield {"event": "queued", "data": json.dumps({"job_id": job.id, "url": job.url})}
            while True:
                event, payload = await queue.get()
                yield {"event": event, "data": json.dumps({"job_id": job.id, **payload})}
                if event in TERMINAL_EVENTS:
                    break
            # Reap the task; a fatal error was already sent as an event
            await asyncio.gather(task, return_exceptions=True)
        finally:
            if not task.done():
                logger.info(f"[{job.id}] SSE client disconnected, cancelling analysis")
                task.cancel()

    return EventSourceResponse(event_generator())
