"""HTTP access to the 3D segmentation service.

Every call goes through ``SegmentationAPI._request`` so failures are classified
the same way everywhere: no response -> NetworkError, 401 -> AuthError (after
telling the auth session), any other non-2xx -> ServerError.
"""

from __future__ import annotations
import logging
from typing import Any, Dict, Optional, Tuple, Type, TypeVar

import httpx
from pydantic import BaseModel, ValidationError as PayloadError

from .auth import AuthSession
from .errors import (
    HTTP_ERROR_MESSAGES,
    AuthError,
    FormatError,
    NetworkError,
    ServerError,
    SubmissionRejected,
)
from .modalities import ModalitySet, modality_index
from .schemas import ClearResponse, StatusResponse, SubmitResponse

logger = logging.getLogger(__name__)

BINARY_CONTENT_TYPE = "application/octet-stream"

M = TypeVar("M", bound=BaseModel)

def _error_message(resp: httpx.Response) -> Tuple[str, Optional[Any]]:
    data: Any = None
    try:
        data = resp.json()
    except ValueError:
        pass
    message = None
    errors = None
    if isinstance(data, dict):
        message = data.get("message")
        # FastAPI puts its message under "detail"
        if not message and isinstance(data.get("detail"), str):
            message = data["detail"]
        errors = data.get("errors")
    message = message or HTTP_ERROR_MESSAGES.get(resp.status_code) or resp.reason_phrase
    return str(message), errors

def _parse(model: Type[M], resp: httpx.Response) -> M:
    try:
        return model.model_validate(resp.json())
    except (ValueError, PayloadError) as e:
        raise ServerError(resp.status_code, f"Invalid response payload: {e}") from e

class SegmentationAPI:
    def __init__(
        self,
        base_url: str,
        *,
        auth: Optional[AuthSession] = None,
        timeout: float = 60.0,
        transport: Optional[httpx.AsyncBaseTransport] = None,
    ):
        self.auth = auth
        self._client = httpx.AsyncClient(
            base_url=base_url.rstrip("/"), timeout=timeout, transport=transport
        )

    async def __aenter__(self) -> SegmentationAPI:
        return self

    async def __aexit__(self, *exc_info) -> None:
        await self.aclose()

    async def aclose(self) -> None:
        await self._client.aclose()

    @property
    def closed(self) -> bool:
        return self._client.is_closed

    def _headers(self) -> Dict[str, str]:
        headers: Dict[str, str] = {}
        token = self.auth.token if self.auth is not None else None
        if token:
            headers["Authorization"] = f"Bearer {token}"
        return headers

    async def _request(self, method: str, path: str, **kwargs: Any) -> httpx.Response:
        try:
            resp = await self._client.request(method, path, headers=self._headers(), **kwargs)
        except httpx.TransportError as e:
            raise NetworkError(
                str(e) or "Network error. Please check your connection and try again."
            ) from e

        if resp.is_success:
            return resp

        message, errors = _error_message(resp)
        if resp.status_code == 401:
            err = AuthError(message, errors)
            if self.auth is not None:
                self.auth.session_expired(err)
            raise err
        raise ServerError(resp.status_code, message, errors)

    async def submit_job(self, modalities: ModalitySet) -> SubmitResponse:
        resp = await self._request("POST", "/3dpredict", files=modalities.as_multipart())
        payload = _parse(SubmitResponse, resp)
        if not payload.success:
            raise SubmissionRejected(payload.message or "Submission failed. Please try again.")
        if not payload.job_id:
            raise SubmissionRejected("Submission accepted without a job id.")
        logger.info("Submitted job %s (prediction %s)", payload.job_id, payload.prediction_id)
        return payload

    async def get_status(self, job_id: str) -> StatusResponse:
        resp = await self._request("GET", f"/3dpredict/status/{job_id}")
        return _parse(StatusResponse, resp)

    async def download_mask(self, job_id: str) -> bytes:
        resp = await self._request("GET", f"/3dpredict/download/{job_id}")
        content_type = resp.headers.get("content-type", "")
        if BINARY_CONTENT_TYPE not in content_type:
            raise FormatError(
                f"Invalid response format. Expected binary file, got '{content_type or 'none'}'."
            )
        return resp.content

    async def view_modality(self, job_id: str, index: int) -> bytes:
        index = modality_index(index)
        resp = await self._request("GET", f"/3dpredict/view/{job_id}/{index}")
        return resp.content

    async def clear_all(self) -> ClearResponse:
        resp = await self._request("DELETE", "/3dpredict/clear")
        return _parse(ClearResponse, resp)
