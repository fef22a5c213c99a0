from __future__ import annotations

import asyncio
from typing import Any

import structlog

logger = structlog.get_logger(__name__)
DEFAULT_ENQUEUE_TIMEOUT_SECONDS = 2.0


def _is_celery_task(task_obj: object) -> bool:
    return type(task_obj).__module__.startswith("celery.")


async def enqueue_task(
    task: Any,
    *,
    event: str,
    timeout_seconds: float = DEFAULT_ENQUEUE_TIMEOUT_SECONDS,
    **kwargs: Any,
) -> bool:
    """Fire-and-forget enqueue. A broker failure is logged, never raised."""

    def enqueue_call() -> object:
        return task.delay(**kwargs)

    try:
        if _is_celery_task(task):
            await asyncio.wait_for(asyncio.to_thread(enqueue_call), timeout=timeout_seconds)
        else:
            enqueue_call()
        return True
    except asyncio.TimeoutError:
        logger.warning("task_enqueue_timeout", task_event=event, enqueue_timeout_seconds=timeout_seconds)
        return False
    except Exception as exc:
        logger.warning("task_enqueue_failed", task_event=event, error_type=type(exc).__name__)
        return False
