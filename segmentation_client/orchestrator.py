"""Public command surface for the 3D segmentation job: submit, cancel, clear.

One ``JobOrchestrator`` owns one store, one poller and (usually) one HTTP
client. Use it as an async context manager, or call ``aclose()``, so the poll
task never outlives its consumer.
"""

from __future__ import annotations
import asyncio
import logging
from typing import Dict, Mapping, Optional

from .api import SegmentationAPI
from .auth import AuthSession, TokenSession
from .errors import JobStateError, SegmentationClientError
from .modalities import MODALITY_NAMES, ModalityHandle, modality_index, validate_modalities
from .models import Job, JobStatus
from .poller import Poller, PollResult
from .schemas import ClearResponse, SubmitResponse
from .settings import Settings, settings as default_settings
from .store import StateStore

logger = logging.getLogger(__name__)

MASK_ARTIFACT = "mask"

def modality_artifact(index: int) -> str:
    return f"modality:{index}"

class JobOrchestrator:
    def __init__(
        self,
        api: SegmentationAPI,
        *,
        poll_interval: float = 3.0,
        store: Optional[StateStore] = None,
        owns_api: bool = True,
    ):
        self.api = api
        self.store = store or StateStore()
        self.poller = Poller(api, interval=poll_interval)
        self._owns_api = owns_api
        self._closed = False
        # generation whose pending submission was cancelled by the caller
        self._cancelled_generation: Optional[int] = None

    @classmethod
    def from_settings(
        cls, settings: Optional[Settings] = None, auth: Optional[AuthSession] = None
    ) -> JobOrchestrator:
        settings = settings or default_settings
        if auth is None:
            auth = TokenSession(settings.api_token)
        api = SegmentationAPI(
            settings.api_base_url, auth=auth, timeout=settings.request_timeout_seconds
        )
        return cls(api, poll_interval=settings.poll_interval_seconds)

    async def __aenter__(self) -> JobOrchestrator:
        return self

    async def __aexit__(self, *exc_info) -> None:
        await self.aclose()

    async def aclose(self) -> None:
        if self._closed:
            return
        self._closed = True
        await self.poller.wait_stopped()
        if self._owns_api:
            await self.api.aclose()

    @property
    def closed(self) -> bool:
        return self._closed

    def _ensure_open(self) -> None:
        if self._closed:
            raise RuntimeError("JobOrchestrator is closed")

    # ---- state -------------------------------------------------------------

    @property
    def job(self) -> Job:
        return self.store.job

    @property
    def inputs(self) -> Dict[str, ModalityHandle]:
        return self.store.inputs

    @property
    def artifacts(self) -> Dict[str, bytes]:
        return self.store.artifacts

    def set_input(self, key: str, handle: ModalityHandle) -> None:
        self.store.set_input(key, handle)

    # ---- commands ----------------------------------------------------------

    async def submit(self, inputs: Optional[Mapping[str, ModalityHandle]] = None) -> SubmitResponse:
        self._ensure_open()
        if inputs is not None:
            self.store.replace_inputs(dict(inputs))
        # raises ValidationError before anything is stopped or sent
        modalities = validate_modalities(**self.store.inputs)

        self.poller.stop()
        generation = self.store.begin_submission(modalities)
        try:
            resp = await self.api.submit_job(modalities)
        except SegmentationClientError as e:
            logger.info("Submission failed: %s", e)
            self._fail_submission(generation, e)
            raise
        except asyncio.CancelledError:
            logger.info("Submission interrupted before the server answered")
            self._fail_submission(
                generation, SegmentationClientError("Submission was interrupted before the server answered.")
            )
            raise
        except Exception as e:
            logger.exception("Unexpected error submitting job")
            self._fail_submission(generation, SegmentationClientError(f"Failed to submit job: {e}"))
            raise

        if generation == self._cancelled_generation:
            logger.info("Job %s accepted after cancel, not tracking it", resp.job_id)
            return resp
        if not self.store.mark_processing(generation, resp.job_id, resp.prediction_id):
            logger.info("Job %s was superseded during submission, not polling it", resp.job_id)
            return resp
        if not self._closed:
            self.poller.start(resp.job_id, generation, self._apply_poll_result)
        return resp

    def cancel(self) -> None:
        """Stop tracking the job locally. The remote job is not told and may keep running.

        If the submission is still in flight, its answer is ignored when it arrives.
        """
        job = self.store.job
        if job.status is JobStatus.SUBMITTING:
            self._cancelled_generation = job.generation
            logger.info("Submission cancelled; the server may still accept the job")
        elif self.poller.active:
            logger.info("Polling cancelled for job %s; remote processing is not aborted", job.job_id)
        self.poller.stop()

    async def clear(self) -> ClearResponse:
        self._ensure_open()
        # local state is only reset once the server side is gone
        resp = await self.api.clear_all()
        self.poller.stop()
        self.store.reset()
        logger.info("Cleared all 3D prediction data: %s", resp.message)
        return resp

    async def download_mask(self) -> bytes:
        job = self._completed_job("download the mask")
        data = await self.api.download_mask(job.job_id)
        self.store.retain_artifact(job.generation, MASK_ARTIFACT, data)
        return data

    async def view_modality(self, index: int) -> bytes:
        index = modality_index(index)
        job = self._completed_job(f"view {MODALITY_NAMES[index]}")
        data = await self.api.view_modality(job.job_id, index)
        self.store.retain_artifact(job.generation, modality_artifact(index), data)
        return data

    def _completed_job(self, action: str) -> Job:
        self._ensure_open()
        job = self.store.job
        if job.status is not JobStatus.COMPLETED or not job.job_id:
            raise JobStateError(f"Cannot {action}: job is {job.status.value}, not completed.")
        return job

    def _fail_submission(self, generation: int, error: SegmentationClientError) -> None:
        if generation != self._cancelled_generation:
            self.store.mark_failed(generation, error)

    def _apply_poll_result(self, result: PollResult) -> None:
        generation = result.handle.generation
        if result.error is not None:
            if self.store.mark_failed(generation, result.error):
                logger.info("Job %s failed: %s", result.handle.job_id, result.error)
        elif result.metrics is not None:
            if self.store.mark_completed(generation, result.metrics):
                logger.info("Job %s completed", result.handle.job_id)
