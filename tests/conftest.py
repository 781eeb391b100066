import time

import pytest
from fastapi.testclient import TestClient

from carousel_studio.core.config import settings
from carousel_studio.db.jobs_store import JobStore
from carousel_studio.main import app


@pytest.fixture(autouse=True)
def no_latency(monkeypatch):
    for name in ("TEXT_DELAY_MIN_MS", "TEXT_DELAY_MAX_MS", "IMAGE_DELAY_MIN_MS", "IMAGE_DELAY_MAX_MS"):
        monkeypatch.setattr(settings, name, 0)


@pytest.fixture
def client():
    app.state.store = JobStore()
    with TestClient(app) as c:
        yield c


@pytest.fixture
def wait_for_terminal(client):
    def wait(job_id, timeout=5.0):
        deadline = time.monotonic() + timeout
        while time.monotonic() < deadline:
            body = client.get(f"/api/jobs/{job_id}").json()
            if body["status"] in ("completed", "failed"):
                return body
            time.sleep(0.02)
        raise AssertionError(f"job {job_id} did not finish")
    return wait
