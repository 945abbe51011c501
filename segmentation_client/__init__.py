"""Client for asynchronous multi-modality 3D tumour segmentation jobs."""

from .api import SegmentationAPI
from .auth import AuthSession, TokenSession
from .errors import (
    AuthError,
    FormatError,
    JobStateError,
    NetworkError,
    ProcessingError,
    SegmentationClientError,
    ServerError,
    SubmissionRejected,
    ValidationError,
)
from .modalities import MODALITY_KEYS, MODALITY_NAMES, ModalityFile, ModalitySet, validate_modalities
from .models import Job, JobStatus
from .orchestrator import JobOrchestrator
from .schemas import JobMetrics, StatusResponse, SubmitResponse, TissueMetrics
from .settings import Settings, configure_logging, settings

__all__ = [
    "AuthError",
    "AuthSession",
    "FormatError",
    "Job",
    "JobMetrics",
    "JobOrchestrator",
    "JobStateError",
    "JobStatus",
    "MODALITY_KEYS",
    "MODALITY_NAMES",
    "ModalityFile",
    "ModalitySet",
    "NetworkError",
    "ProcessingError",
    "SegmentationAPI",
    "SegmentationClientError",
    "ServerError",
    "Settings",
    "StatusResponse",
    "SubmissionRejected",
    "SubmitResponse",
    "TissueMetrics",
    "TokenSession",
    "ValidationError",
    "configure_logging",
    "settings",
    "validate_modalities",
]
