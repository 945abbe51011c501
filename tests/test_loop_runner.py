import asyncio
import os
import sys

import httpx
import pytest

from segmentation_client import JobOrchestrator, JobStatus, SegmentationAPI

from conftest import INTERVAL, FakeService

APP_DIR = os.path.join(os.path.dirname(os.path.dirname(os.path.abspath(__file__))), "predict3d_app")
if APP_DIR not in sys.path:
    sys.path.insert(0, APP_DIR)

from services import loop_runner  # noqa: E402


def test_loop_is_started_once():
    loop = loop_runner.start_once()
    assert loop_runner.start_once() is loop
    assert loop.is_running()


def test_run_and_call_from_plain_thread(modality_files):
    service = FakeService()
    api = SegmentationAPI("http://test", transport=httpx.MockTransport(service))
    orch = JobOrchestrator(api, poll_interval=INTERVAL)

    resp = loop_runner.run(orch.submit(modality_files), timeout=5)
    assert resp.job_id == "J1"
    assert orch.poller.active

    loop_runner.call(orch.cancel, timeout=5)
    assert not orch.poller.active
    assert orch.job.status is JobStatus.PROCESSING

    loop_runner.run(orch.aclose(), timeout=5)
    assert api.closed


def test_run_propagates_errors():
    async def boom():
        await asyncio.sleep(0)
        raise ValueError("nope")

    with pytest.raises(ValueError, match="nope"):
        loop_runner.run(boom(), timeout=5)
