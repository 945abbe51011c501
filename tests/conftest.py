"""Shared fixtures.

The mock service reads its database URL at import time, so point it at a
throwaway SQLite file before any test module imports it.
"""

import asyncio
import os
import sys
import tempfile

import httpx
import pytest

PROJECT_ROOT = os.path.dirname(os.path.dirname(os.path.abspath(__file__)))
if PROJECT_ROOT not in sys.path:
    sys.path.insert(0, PROJECT_ROOT)

_DB_DIR = tempfile.mkdtemp(prefix="mock_service_")
os.environ["MOCK_SERVICE_DATABASE_URL"] = f"sqlite:///{os.path.join(_DB_DIR, 'mock.db')}"

from segmentation_client import ModalityFile  # noqa: E402

METRICS = {
    "NCR": {"volume_cm3": 3.2, "confidence": 0.9},
    "ED": {"volume_cm3": 6.8, "confidence": 0.87},
    "ET": {"volume_cm3": 2.4, "confidence": 0.91},
    "Total": {"volume_cm3": 12.4, "confidence": 0.88},
    "tumor_type": "glioma",
    "classification_confidence": 0.93,
}

class FakeService:
    """Scripted stand-in for the remote service behind httpx.MockTransport.

    ``statuses`` is consumed one entry per status query; the last entry repeats.
    Entries may be dicts (JSON 200) or ready-made httpx.Response objects.
    ``submit`` is a callable returning the response to the submission.
    """

    def __init__(self, statuses=None, submit=None, delay=0.0):
        self.statuses = list(statuses or [{"status": "processing"}])
        self.submit = submit or (
            lambda: httpx.Response(200, json={"success": True, "job_id": "J1", "prediction_id": "P1"})
        )
        self.delay = delay
        self.requests = []
        self.in_flight = 0
        self.max_in_flight = 0

    def count(self, prefix):
        return sum(1 for r in self.requests if r.url.path.startswith(prefix))

    async def __call__(self, request: httpx.Request) -> httpx.Response:
        self.requests.append(request)
        self.in_flight += 1
        self.max_in_flight = max(self.max_in_flight, self.in_flight)
        try:
            if self.delay:
                await asyncio.sleep(self.delay)
            return self._respond(request)
        finally:
            self.in_flight -= 1

    def _respond(self, request):
        path = request.url.path
        if path == "/3dpredict" and request.method == "POST":
            return self.submit()
        if path.startswith("/3dpredict/status/"):
            entry = self.statuses.pop(0) if len(self.statuses) > 1 else self.statuses[0]
            return entry if isinstance(entry, httpx.Response) else httpx.Response(200, json=entry)
        if path.startswith("/3dpredict/download/"):
            return httpx.Response(200, content=b"MASK", headers={"content-type": "application/octet-stream"})
        if path.startswith("/3dpredict/view/"):
            index = path.rsplit("/", 1)[-1]
            return httpx.Response(200, content=f"VIEW{index}".encode(), headers={"content-type": "application/octet-stream"})
        if path == "/3dpredict/clear" and request.method == "DELETE":
            return httpx.Response(200, json={"message": "cleared"})
        return httpx.Response(404, json={"message": "not found"})

@pytest.fixture
def modality_files():
    return {
        key: ModalityFile(f"{key}.nii.gz", f"{key}-volume".encode())
        for key in ("t1", "t1gd", "t2", "flair")
    }

@pytest.fixture
def fake_service():
    return FakeService()

INTERVAL = 0.01


async def wait_for(predicate, timeout=2.0):
    loop = asyncio.get_running_loop()
    deadline = loop.time() + timeout
    while not predicate():
        if loop.time() > deadline:
            raise AssertionError("condition not reached")
        await asyncio.sleep(INTERVAL / 2)
