"""
Bridges orchestrator events to consumers outside the run: an in-process
asyncio queue (for SSE responses) and Redis pub/sub (for other processes).
"""
import asyncio
from typing import Any, Dict

from fastapi.encoders import jsonable_encoder

from app.features.analysis.services.events import AnalysisEvent
from app.features.analysis.services.orchestrator import Orchestrator
from app.platform.services.sse_helper import publish_analysis_event

TERMINAL_EVENTS = (AnalysisEvent.complete, AnalysisEvent.error)


def serialize_event(event: AnalysisEvent, *args: Any) -> Dict[str, Any]:
    """JSON-ready body for an event and its listener arguments."""
    if event == AnalysisEvent.module_start:
        return {"module": args[0]}
    if event == AnalysisEvent.module_complete:
        return {"module": args[0], "result": jsonable_encoder(args[1])}
    if event == AnalysisEvent.module_error:
        return {"module": args[0], "error": str(args[1]), "error_type": type(args[1]).__name__}
    if event == AnalysisEvent.progress:
        return args[0].model_dump(mode="json")
    if event == AnalysisEvent.complete:
        return {"results": args[0].model_dump(mode="json", exclude_none=True)}
    if event == AnalysisEvent.error:
        return {"error": str(args[0]), "error_type": type(args[0]).__name__}
    raise ValueError(f"Unknown analysis event: {event}")


def attach_queue(orchestrator: Orchestrator, queue: asyncio.Queue) -> None:
    """Push every event as ``(event name, payload)`` onto ``queue``."""
    for event in AnalysisEvent:
        orchestrator.on(event, _queue_listener(event, queue))


def _queue_listener(event: AnalysisEvent, queue: asyncio.Queue):
    def listener(*args: Any) -> None:
        queue.put_nowait((event.value, serialize_event(event, *args)))
    return listener


def attach_redis_publisher(orchestrator: Orchestrator, job_id: str) -> None:
    """Mirror every event to the job's Redis channel. Publishing is best-effort."""
    for event in AnalysisEvent:
        orchestrator.on(event, _redis_listener(event, job_id))


def _redis_listener(event: AnalysisEvent, job_id: str):
    async def listener(*args: Any) -> None:
        await publish_analysis_event(job_id, event.value, serialize_event(event, *args))
    return listener
