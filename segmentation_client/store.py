"""Single source of truth for the live job.

Every mutation that originates from asynchronous work carries the generation
it was started for; if the store has moved on (new submission, clear) the
update is dropped and the method returns False.
"""

from __future__ import annotations
import dataclasses
import logging
import threading
import time
from typing import Dict, Iterable, Optional

from .errors import SegmentationClientError
from .modalities import MODALITY_KEYS, ModalityHandle, ModalitySet
from .models import Job, JobStatus
from .schemas import JobMetrics

logger = logging.getLogger(__name__)

class StateStore:
    def __init__(self) -> None:
        self._lock = threading.Lock()
        self._job = Job(generation=0)
        self._inputs: Dict[str, ModalityHandle] = {key: None for key in MODALITY_KEYS}
        self._artifacts: Dict[str, bytes] = {}

    # ---- reads -------------------------------------------------------------

    @property
    def job(self) -> Job:
        with self._lock:
            return dataclasses.replace(self._job)

    @property
    def generation(self) -> int:
        with self._lock:
            return self._job.generation

    @property
    def inputs(self) -> Dict[str, ModalityHandle]:
        with self._lock:
            return dict(self._inputs)

    @property
    def artifacts(self) -> Dict[str, bytes]:
        with self._lock:
            return dict(self._artifacts)

    # ---- inputs ------------------------------------------------------------

    def set_input(self, key: str, handle: ModalityHandle) -> None:
        if key not in self._inputs:
            raise KeyError(f"Unknown modality '{key}', expected one of {', '.join(MODALITY_KEYS)}")
        with self._lock:
            self._inputs[key] = handle

    def replace_inputs(self, inputs: Dict[str, ModalityHandle]) -> None:
        unknown = set(inputs) - set(MODALITY_KEYS)
        if unknown:
            raise KeyError(f"Unknown modalities: {', '.join(sorted(unknown))}")
        with self._lock:
            self._inputs = {key: inputs.get(key) for key in MODALITY_KEYS}

    # ---- transitions -------------------------------------------------------

    def begin_submission(self, modalities: ModalitySet) -> int:
        """Discard the current job and start a new one in SUBMITTING."""
        with self._lock:
            generation = self._job.generation + 1
            self._job = Job(generation=generation, status=JobStatus.SUBMITTING, modalities=modalities)
            self._artifacts = {}
            return generation

    def mark_processing(self, generation: int, job_id: str, prediction_id: Optional[str]) -> bool:
        return self._transition(
            generation, (JobStatus.SUBMITTING,), JobStatus.PROCESSING,
            job_id=job_id, prediction_id=prediction_id,
        )

    def mark_completed(self, generation: int, metrics: JobMetrics) -> bool:
        return self._transition(generation, (JobStatus.PROCESSING,), JobStatus.COMPLETED, metrics=metrics)

    def mark_failed(self, generation: int, error: SegmentationClientError) -> bool:
        return self._transition(
            generation, (JobStatus.SUBMITTING, JobStatus.PROCESSING), JobStatus.FAILED, error=error,
        )

    def reset(self) -> None:
        """Back to an empty IDLE job; in-flight work for older generations becomes stale."""
        with self._lock:
            self._job = Job(generation=self._job.generation + 1)
            self._inputs = {key: None for key in MODALITY_KEYS}
            self._artifacts = {}

    def retain_artifact(self, generation: int, key: str, data: bytes) -> bool:
        with self._lock:
            if generation != self._job.generation:
                logger.debug("Not retaining %s for superseded job generation %d", key, generation)
                return False
            self._artifacts[key] = data
            return True

    def _transition(
        self,
        generation: int,
        allowed_from: Iterable[JobStatus],
        status: JobStatus,
        **changes,
    ) -> bool:
        with self._lock:
            job = self._job
            if job.generation != generation:
                logger.debug("Dropping %s for superseded job generation %d", status.value, generation)
                return False
            if job.status not in allowed_from:
                logger.debug("Ignoring %s -> %s for job %s", job.status.value, status.value, job.job_id)
                return False
            self._job = dataclasses.replace(job, status=status, updated_at=time.time(), **changes)
            return True
