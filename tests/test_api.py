from unittest.mock import Mock

import httpx
import pytest

from segmentation_client import (
    AuthError,
    FormatError,
    NetworkError,
    SegmentationAPI,
    ServerError,
    SubmissionRejected,
    TokenSession,
    ValidationError,
    validate_modalities,
)


def make_api(handler, **kwargs):
    return SegmentationAPI("http://test", transport=httpx.MockTransport(handler), **kwargs)


@pytest.mark.asyncio
async def test_submit_sends_four_parts_and_bearer(modality_files):
    seen = {}

    def handler(request):
        seen["auth"] = request.headers.get("authorization")
        seen["body"] = request.content
        seen["path"] = request.url.path
        return httpx.Response(200, json={"success": True, "job_id": "J1", "prediction_id": "P1"})

    async with make_api(handler, auth=TokenSession("tok")) as api:
        resp = await api.submit_job(validate_modalities(**modality_files))

    assert (resp.job_id, resp.prediction_id) == ("J1", "P1")
    assert seen["path"] == "/3dpredict"
    assert seen["auth"] == "Bearer tok"
    for key in ("t1", "t1gd", "t2", "flair"):
        assert f'name="{key}"'.encode() in seen["body"]
        assert f"{key}-volume".encode() in seen["body"]


@pytest.mark.asyncio
async def test_no_token_no_header():
    seen = {}

    def handler(request):
        seen["auth"] = request.headers.get("authorization")
        return httpx.Response(200, json={"status": "processing"})

    async with make_api(handler, auth=TokenSession()) as api:
        await api.get_status("J1")
    assert seen["auth"] is None


@pytest.mark.asyncio
async def test_base_url_path_is_kept():
    seen = {}

    def handler(request):
        seen["path"] = request.url.path
        return httpx.Response(200, json={"status": "processing"})

    api = SegmentationAPI("http://test/api/", transport=httpx.MockTransport(handler))
    await api.get_status("J9")
    await api.aclose()
    assert seen["path"] == "/api/3dpredict/status/J9"


@pytest.mark.asyncio
async def test_logical_failure_is_submission_rejected(modality_files):
    api = make_api(lambda r: httpx.Response(200, json={"success": False, "message": "queue full"}))
    with pytest.raises(SubmissionRejected, match="queue full"):
        await api.submit_job(validate_modalities(**modality_files))
    await api.aclose()


@pytest.mark.asyncio
async def test_success_without_job_id_is_rejected(modality_files):
    api = make_api(lambda r: httpx.Response(200, json={"success": True}))
    with pytest.raises(SubmissionRejected):
        await api.submit_job(validate_modalities(**modality_files))
    await api.aclose()


@pytest.mark.asyncio
async def test_transport_failure_is_network_error():
    def handler(request):
        raise httpx.ConnectError("connection refused", request=request)

    api = make_api(handler)
    with pytest.raises(NetworkError, match="connection refused"):
        await api.get_status("J1")
    await api.aclose()


@pytest.mark.asyncio
async def test_server_error_keeps_status_and_message():
    api = make_api(lambda r: httpx.Response(503, json={"message": "GPU pool drained", "errors": [{"x": 1}]}))
    with pytest.raises(ServerError) as exc:
        await api.clear_all()
    assert exc.value.status == 503
    assert exc.value.message == "GPU pool drained"
    assert exc.value.errors == [{"x": 1}]
    await api.aclose()


@pytest.mark.asyncio
async def test_server_error_default_message_without_body():
    api = make_api(lambda r: httpx.Response(413, content=b"<html>too big</html>"))
    with pytest.raises(ServerError) as exc:
        await api.get_status("J1")
    assert exc.value.message == "File too large. Maximum 50MB allowed."
    await api.aclose()


@pytest.mark.asyncio
async def test_server_error_falls_back_to_detail_then_reason():
    api = make_api(lambda r: httpx.Response(409, json={"detail": "busy"}))
    with pytest.raises(ServerError, match="busy"):
        await api.get_status("J1")
    await api.aclose()

    api = make_api(lambda r: httpx.Response(418))
    with pytest.raises(ServerError) as exc:
        await api.get_status("J1")
    assert exc.value.message == "I'm a teapot"
    await api.aclose()


@pytest.mark.asyncio
async def test_unauthorized_signals_session_expiry():
    auth = TokenSession("stale")
    expired = []
    auth.on_expired(expired.append)

    api = make_api(lambda r: httpx.Response(401, json={"message": "token expired"}), auth=auth)
    with pytest.raises(AuthError) as exc:
        await api.download_mask("J1")
    await api.aclose()

    assert exc.value.status == 401
    assert exc.value.message == "token expired"
    assert expired == [exc.value]
    assert auth.token is None


@pytest.mark.asyncio
async def test_unparseable_payload_is_server_error():
    api = make_api(lambda r: httpx.Response(200, content=b"not json"))
    with pytest.raises(ServerError, match="Invalid response payload"):
        await api.get_status("J1")
    await api.aclose()


@pytest.mark.asyncio
async def test_download_requires_binary_content_type():
    api = make_api(lambda r: httpx.Response(200, json={"message": "oops"}))
    with pytest.raises(FormatError):
        await api.download_mask("J1")
    await api.aclose()


@pytest.mark.asyncio
async def test_download_returns_bytes():
    api = make_api(
        lambda r: httpx.Response(200, content=b"\x1f\x8b", headers={"content-type": "application/octet-stream"})
    )
    assert await api.download_mask("J1") == b"\x1f\x8b"
    await api.aclose()


@pytest.mark.asyncio
async def test_view_modality_paths_and_bad_index(fake_service):
    api = make_api(fake_service)
    assert await api.view_modality("J1", 3) == b"VIEW3"
    assert fake_service.requests[-1].url.path == "/3dpredict/view/J1/3"

    with pytest.raises(ValidationError):
        await api.view_modality("J1", 4)
    assert len(fake_service.requests) == 1
    await api.aclose()


@pytest.mark.asyncio
async def test_any_auth_session_gets_the_expiry_signal():
    auth = Mock(token="abc")
    api = make_api(lambda r: httpx.Response(401), auth=auth)
    with pytest.raises(AuthError) as exc:
        await api.clear_all()
    await api.aclose()

    auth.session_expired.assert_called_once_with(exc.value)
    assert exc.value.message == "Unauthorized. Please log in."
