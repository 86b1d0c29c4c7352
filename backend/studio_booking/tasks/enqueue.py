"""
Task enqueue helper.

Tasks are sent by name so callers in the service layer never import task
modules (which import services back).
"""

from __future__ import annotations

import logging
from typing import Any, Dict, Optional, Tuple

from .celery_app import celery_app

logger = logging.getLogger(__name__)


def enqueue_task(
    task_name: str,
    args: Optional[Tuple[Any, ...]] = None,
    kwargs: Optional[Dict[str, Any]] = None,
    **options: Any,
) -> Any:
    """
    Enqueue a Celery task by its registered name.

    Args:
        task_name: Fully qualified task name
        args: Positional arguments for the task
        kwargs: Keyword arguments for the task
        **options: Additional apply_async options (countdown, queue, etc.)

    Returns:
        AsyncResult from Celery
    """
    return celery_app.send_task(task_name, args=args or (), kwargs=kwargs or {}, **options)
