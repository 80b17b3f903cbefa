"""Fixed-interval poll loop for asynchronous hosted jobs."""

import logging
import time
from typing import Any, Callable

logger = logging.getLogger(__name__)

TERMINAL_SUCCESS = "completed"
TERMINAL_FAILURE = ("failed", "canceled")


class JobFailedError(RuntimeError):
    """Raised when a job ends in a failed or canceled state."""

    def __init__(self, job_id: str, status: str, detail: str | None = None):
        self.job_id = job_id
        self.status = status
        self.detail = detail
        super().__init__(f"Job {job_id} {status}: {detail or 'Unknown error'}")


class PollTimeoutError(TimeoutError):
    """Raised when a job does not finish within the wait budget."""


def _error_detail(job: Any) -> str | None:
    error = getattr(job, "error", None)
    if error is None and isinstance(job, dict):
        error = job.get("error")
    if error is None:
        return None
    message = getattr(error, "message", None)
    if message is None and isinstance(error, dict):
        message = error.get("message")
    return message or str(error)


def _status(job: Any) -> str | None:
    if isinstance(job, dict):
        return job.get("status")
    return getattr(job, "status", None)


def wait_for_completion(
    fetch: Callable[[str], Any],
    job_id: str,
    poll_interval: float = 10.0,
    timeout: float = 600.0,
    sleep: Callable[[float], None] = time.sleep,
    clock: Callable[[], float] = time.monotonic,
) -> Any:
    """Call ``fetch(job_id)`` until the job completes, fails, or time runs out.

    Returns the completed job. Raises JobFailedError for ``failed`` or
    ``canceled`` and PollTimeoutError once *timeout* seconds have elapsed.
    """
    started = clock()
    while clock() - started < timeout:
        job = fetch(job_id)
        status = _status(job)

        if status == TERMINAL_SUCCESS:
            return job
        if status in TERMINAL_FAILURE:
            raise JobFailedError(job_id, status, _error_detail(job))

        logger.info("[poll] %s: %s...", job_id, status)
        sleep(poll_interval)

    raise PollTimeoutError(f"Job {job_id} timed out after {timeout}s")
