from __future__ import annotations
import asyncio
import logging
from dataclasses import dataclass
from typing import Callable, Optional, Set

from .api import SegmentationAPI
from .errors import ProcessingError, SegmentationClientError
from .schemas import STATUS_COMPLETED, STATUS_ERROR, STATUS_PROCESSING, JobMetrics

logger = logging.getLogger(__name__)

@dataclass
class PollHandle:
    job_id: str
    generation: int
    task: Optional[asyncio.Task] = None
    polls: int = 0

    @property
    def active(self) -> bool:
        return self.task is not None and not self.task.done()

@dataclass(frozen=True)
class PollResult:
    handle: PollHandle
    metrics: Optional[JobMetrics] = None
    error: Optional[SegmentationClientError] = None

OnResult = Callable[[PollResult], None]

class Poller:
    """Runs at most one status loop at a time.

    The loop waits for each response before sleeping again, so a slow server
    never gets two status queries for the same job in flight.
    """

    def __init__(self, api: SegmentationAPI, interval: float = 3.0):
        self._api = api
        self.interval = interval
        self._handle: Optional[PollHandle] = None
        self._tasks: Set[asyncio.Task] = set()

    @property
    def handle(self) -> Optional[PollHandle]:
        return self._handle

    @property
    def active(self) -> bool:
        return self._handle is not None and self._handle.active

    def start(self, job_id: str, generation: int, on_result: OnResult) -> PollHandle:
        self.stop()
        handle = PollHandle(job_id=job_id, generation=generation)
        handle.task = asyncio.get_running_loop().create_task(
            self._run(handle, on_result), name=f"poll-{job_id}"
        )
        self._tasks.add(handle.task)
        handle.task.add_done_callback(self._tasks.discard)
        self._handle = handle
        logger.debug("Polling job %s every %.2fs", job_id, self.interval)
        return handle

    def stop(self) -> None:
        handle, self._handle = self._handle, None
        if handle is not None and handle.active:
            handle.task.cancel()
            logger.debug("Stopped polling job %s after %d polls", handle.job_id, handle.polls)

    async def wait_stopped(self) -> None:
        self.stop()
        if self._tasks:
            await asyncio.gather(*self._tasks, return_exceptions=True)

    async def _run(self, handle: PollHandle, on_result: OnResult) -> None:
        try:
            result = await self._poll_until_done(handle)
            try:
                on_result(result)
            except Exception:
                logger.exception("Failed to apply poll result for job %s", handle.job_id)
        finally:
            if self._handle is handle:
                self._handle = None

    async def _poll_until_done(self, handle: PollHandle) -> PollResult:
        while True:
            await asyncio.sleep(self.interval)
            handle.polls += 1
            try:
                status = await self._api.get_status(handle.job_id)
            except SegmentationClientError as e:
                logger.info("Status query for job %s failed: %s", handle.job_id, e)
                return PollResult(handle, error=e)
            except Exception as e:
                logger.exception("Unexpected error polling job %s", handle.job_id)
                return PollResult(handle, error=SegmentationClientError(f"Failed to fetch job status: {e}"))

            logger.debug("Job %s poll #%d: %s", handle.job_id, handle.polls, status.status)
            if status.status == STATUS_PROCESSING:
                continue
            if status.status == STATUS_COMPLETED:
                if status.metrics is None:
                    return PollResult(handle, error=ProcessingError("Job completed without metrics."))
                return PollResult(handle, metrics=status.metrics)
            if status.status == STATUS_ERROR:
                message = status.message or status.error or "Processing failed on server."
                return PollResult(handle, error=ProcessingError(message))
            logger.warning("Job %s reported unknown status %r, still waiting", handle.job_id, status.status)
