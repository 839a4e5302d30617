import asyncio
from typing import Optional

from camera_preview.core.logging_utils import LoggerLike, ensure_structured_logger, get_module_logger

logger = get_module_logger(__name__)


async def cancel_task_safely(
    task: Optional[asyncio.Task],
    task_name: str = "task",
    timeout: float = 5.0,
    logger_instance: LoggerLike = None
) -> bool:
    log = ensure_structured_logger(logger_instance) if logger_instance is not None else logger
    if task is None:
        log.debug("%s: No task to cancel", task_name)
        return True
    if task.done():
        log.debug("%s: Already done", task_name)
        return True
    log.debug("%s: Cancelling...", task_name)
    task.cancel()
    try:
        await asyncio.wait_for(task, timeout=timeout)
        log.debug("%s: Cancelled successfully", task_name)
        return True
    except asyncio.CancelledError:
        log.debug("%s: Cancelled (CancelledError)", task_name)
        return True
    except asyncio.TimeoutError:
        log.warning("%s: Cancellation timeout after %.1fs", task_name, timeout)
        return False
    except Exception as e:
        log.warning("%s: Exception during cancellation: %s", task_name, e)
        return False
