"""Helpers for queueing Celery tasks from the API process."""

from __future__ import annotations

import logging
from typing import Any, Optional

logger = logging.getLogger(__name__)


def safe_celery_delay(task, *args, **kwargs) -> Optional[Any]:
    """
    Queue a Celery task, returning None when the broker is unreachable.

    Args:
        task: Celery task to queue
        *args: Positional arguments for the task
        **kwargs: Keyword arguments for the task

    Returns:
        The AsyncResult of ``task.delay()``, or None if it could not be queued
    """
    try:
        result = task.delay(*args, **kwargs)
        logger.debug(f"Celery task {task.name} queued with ID: {result.id}")
        return result
    except Exception as e:
        logger.warning(f"Failed to queue Celery task {task.name}: {e}")
        return None
