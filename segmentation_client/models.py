from __future__ import annotations
from dataclasses import dataclass, field
from enum import Enum
from typing import Optional
import time

from .errors import SegmentationClientError
from .modalities import ModalitySet
from .schemas import JobMetrics

class JobStatus(str, Enum):
    IDLE = "idle"
    SUBMITTING = "submitting"
    PROCESSING = "processing"
    COMPLETED = "completed"
    FAILED = "failed"

    @property
    def terminal(self) -> bool:
        return self in (JobStatus.COMPLETED, JobStatus.FAILED)

@dataclass
class Job:
    generation: int
    status: JobStatus = JobStatus.IDLE
    job_id: Optional[str] = None
    prediction_id: Optional[str] = None
    modalities: Optional[ModalitySet] = None
    metrics: Optional[JobMetrics] = None      # only when COMPLETED
    error: Optional[SegmentationClientError] = None  # only when FAILED
    created_at: float = field(default_factory=time.time)
    updated_at: float = field(default_factory=time.time)
