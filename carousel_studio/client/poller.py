import time
from typing import Any, Callable, Dict, Optional

import requests

from ..common.schemas import GenerationResult
from ..core.config import settings
from ..core.log import log_event

ProgressCallback = Callable[[float, str], None]


class ClientError(Exception):
    """User-visible failure of a client operation."""


def _ok(r) -> bool:
    return 200 <= r.status_code < 300


def _json_or_empty(r) -> Dict[str, Any]:
    try:
        data = r.json()
    except ValueError:
        return {}
    return data if isinstance(data, dict) else {}


def clamp_progress(value: Any) -> float:
    try:
        n = float(value or 0)
    except (TypeError, ValueError):
        n = 0.0
    return max(0.0, min(100.0, n))


class JobPoller:
    """Submits generation requests and polls their status until a terminal state.

    ``session`` only needs ``get``/``post`` returning objects with
    ``status_code`` and ``json()``; a ``requests.Session`` is used by default.
    """

    def __init__(self, base_url: Optional[str] = None, *, session=None,
                 interval_ms: Optional[int] = None, timeout_sec: Optional[float] = None,
                 clock: Callable[[], float] = time.monotonic,
                 sleep: Callable[[float], None] = time.sleep):
        self.base_url = (settings.API_BASE_URL if base_url is None else base_url).rstrip("/")
        self.session = session if session is not None else requests.Session()
        self.interval = (settings.POLL_INTERVAL_MS if interval_ms is None else interval_ms) / 1000.0
        self.timeout = settings.POLL_TIMEOUT_SEC if timeout_sec is None else timeout_sec
        self._clock = clock
        self._sleep = sleep

    def _request(self, method: str, path: str, **kwargs):
        if isinstance(self.session, requests.Session):
            kwargs.setdefault("timeout", settings.HTTP_TIMEOUT_SEC)
        try:
            return getattr(self.session, method)(f"{self.base_url}{path}", **kwargs)
        except requests.RequestException as e:
            raise ClientError(f"Network error: {e}") from e

    def submit(self, payload: Dict[str, Any]) -> str:
        r = self._request("post", "/api/generate", json=payload)
        data = _json_or_empty(r)
        if not _ok(r) or not data.get("jobId"):
            raise ClientError(data.get("error") or "Failed to queue generation.")
        log_event("client.job.queued", job_id=data["jobId"])
        return data["jobId"]

    def poll(self, job_id: str, on_progress: Optional[ProgressCallback] = None) -> GenerationResult:
        start = self._clock()
        while self._clock() - start < self.timeout:
            r = self._request("get", f"/api/jobs/{job_id}")
            if not _ok(r):
                raise ClientError("Unable to fetch generation job status.")

            job = _json_or_empty(r)
            status = job.get("status")
            if on_progress:
                on_progress(clamp_progress(job.get("progress")), f"Generating text + images ({status})...")

            if status == "completed":
                return GenerationResult.model_validate(job["result"])
            if status == "failed":
                raise ClientError(job.get("error") or "Generation failed.")

            self._sleep(self.interval)

        log_event("client.job.timeout", job_id=job_id, timeout_sec=self.timeout)
        raise ClientError("Generation timed out. Please try again.")

    def generate(self, payload: Dict[str, Any], on_progress: Optional[ProgressCallback] = None) -> GenerationResult:
        if on_progress:
            on_progress(2, "Queueing job...")
        job_id = self.submit(payload)
        result = self.poll(job_id, on_progress)
        if on_progress:
            on_progress(100, "Done")
        return result
