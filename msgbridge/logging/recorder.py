"""Per-failure error log files for the gateway."""

import asyncio
import logging
import uuid
from datetime import datetime, timezone
from pathlib import Path
from typing import Any, Optional

logger = logging.getLogger("msgbridge")

ERROR_LOG_DIR = Path(__file__).resolve().parent.parent.parent.joinpath("logs").joinpath("errors")
_PENDING_LOG_TASKS: set[asyncio.Task] = set()

# Error files are skipped entirely when disabled (tests turn this off)
_ERROR_FILES_ENABLED = True


def set_error_files_enabled(enabled: bool) -> None:
    global _ERROR_FILES_ENABLED
    _ERROR_FILES_ENABLED = enabled


def _register_background_task(task: asyncio.Task) -> None:
    _PENDING_LOG_TASKS.add(task)
    task.add_done_callback(_PENDING_LOG_TASKS.discard)


async def wait_for_pending_logs() -> None:
    """Wait for error-log writes still running in worker threads."""
    if not _PENDING_LOG_TASKS:
        return
    logger.info("Waiting for %d pending log flush tasks", len(_PENDING_LOG_TASKS))
    await asyncio.gather(*list(_PENDING_LOG_TASKS), return_exceptions=True)


def log_error_event(
    model_name: str,
    error_type: str,
    error_message: str,
    request_id: Optional[str] = None,
    http_status: Optional[int] = None,
    extra_context: Optional[dict[str, Any]] = None,
    log_dir: Optional[Path] = None,
) -> Optional[Path]:
    """
    Log an error event to the errors directory for easy error tracking.

    One small ``key=value`` file per error, named after the time and model.
    Written in a worker thread when an event loop is running.
    """
    if not _ERROR_FILES_ENABLED:
        return None

    target_dir = log_dir or ERROR_LOG_DIR
    target_dir.mkdir(parents=True, exist_ok=True)

    timestamp = datetime.now(timezone.utc)
    timestamp_str = timestamp.strftime("%Y%m%d_%H%M%S")
    short_id = uuid.uuid4().hex[:4]
    safe_model = "".join(c if c.isalnum() or c in "-_" else "-" for c in (model_name or "unknown"))[:48]
    error_path = target_dir / f"{timestamp_str}-{short_id}_{safe_model}.err"

    lines = [
        f"timestamp={timestamp.isoformat()}",
        f"model={model_name or 'unknown'}",
        f"error_type={error_type}",
        f"error_message={error_message}",
    ]
    if request_id:
        lines.append(f"request_id={request_id}")
    if http_status is not None:
        lines.append(f"http_status={http_status}")
    if extra_context:
        for key, value in extra_context.items():
            lines.append(f"{key}={value}")

    content = "\n".join(lines) + "\n"

    try:
        loop = asyncio.get_running_loop()
    except RuntimeError:
        # No event loop, write synchronously
        error_path.write_text(content, encoding="utf-8")
        return error_path

    task = loop.create_task(asyncio.to_thread(error_path.write_text, content, encoding="utf-8"))
    _register_background_task(task)
    return error_path
