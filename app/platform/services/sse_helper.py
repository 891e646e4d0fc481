"""
SSE (Server-Sent Events) helper for publishing real-time analysis events via Redis pub/sub.

This module lets a running analysis broadcast its lifecycle events so that
other processes (an SSE endpoint, a dashboard) can subscribe to them.
"""

import json
import logging
from datetime import datetime, timezone
from typing import Any, Dict

from fastapi.encoders import jsonable_encoder
from redis.exceptions import RedisError

from app.platform.cache.redis import get_redis_client

logger = logging.getLogger(__name__)


def progress_channel(job_id: str) -> str:
    """Channel pattern: analysis_progress:{job_id}"""
    return f"analysis_progress:{job_id}"


def build_event_payload(job_id: str, event_type: str, data: Dict[str, Any]) -> Dict[str, Any]:
    return {
        "event_type": event_type,
        "timestamp": _get_current_timestamp(),
        "job_id": job_id,
        **jsonable_encoder(data),
    }


async def publish_analysis_event(job_id: str, event_type: str, data: Dict[str, Any]) -> bool:
    """
    Publish an analysis event to Redis for SSE streaming.

    Args:
        job_id: The analysis job ID
        event_type: module_start, module_complete, module_error, progress, complete or error
        data: Event body (pydantic models and datetimes are encoded)

    Returns:
        True if published successfully, False otherwise
    """
    redis_client = get_redis_client()
    if redis_client is None:
        logger.debug(f"[{job_id}] Redis not configured, dropping '{event_type}' event")
        return False

    try:
        message = build_event_payload(job_id, event_type, data)
        await redis_client.publish(progress_channel(job_id), json.dumps(message))
        logger.debug(f"[{job_id}] Published SSE event: {event_type}")
        return True

    except (RedisError, OSError) as e:
        logger.error(f"[{job_id}] Failed to publish SSE event '{event_type}': {e}")
        return False


def _get_current_timestamp() -> str:
    """Get current UTC timestamp in ISO format."""
    return datetime.now(timezone.utc).isoformat()
