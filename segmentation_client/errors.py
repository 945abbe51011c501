from __future__ import annotations
from typing import Any, Optional, Sequence

# Fallback messages when the server does not send one
HTTP_ERROR_MESSAGES = {
    400: "Invalid request. Please check your input.",
    401: "Unauthorized. Please log in.",
    403: "Access denied.",
    404: "Resource not found.",
    408: "Request timeout. Please try again.",
    413: "File too large. Maximum 50MB allowed.",
    500: "Server error. Please try again later.",
    503: "Service unavailable. Please try again later.",
}

class SegmentationClientError(Exception):
    def __init__(self, message: str):
        super().__init__(message)
        self.message = message

class ValidationError(SegmentationClientError):
    """Local input problem, raised before anything is sent."""

    def __init__(self, message: str, missing: Sequence[str] = ()):
        super().__init__(message)
        self.missing = tuple(missing)

class NetworkError(SegmentationClientError):
    pass

class ServerError(SegmentationClientError):
    def __init__(self, status: int, message: str, errors: Optional[Any] = None):
        super().__init__(message)
        self.status = status
        self.errors = errors

    def __str__(self) -> str:
        return f"{self.status}: {self.message}"

class AuthError(ServerError):
    def __init__(self, message: str = HTTP_ERROR_MESSAGES[401], errors: Optional[Any] = None):
        super().__init__(401, message, errors)

class SubmissionRejected(SegmentationClientError):
    pass

class ProcessingError(SegmentationClientError):
    pass

class FormatError(SegmentationClientError):
    pass

class JobStateError(SegmentationClientError):
    pass
