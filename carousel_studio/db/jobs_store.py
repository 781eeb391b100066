import asyncio
import contextlib
from datetime import datetime, timedelta, timezone
from typing import Dict, Optional

from ..core.config import settings
from ..core.log import log_event
from ..models.schemas import GenerationIn, JobRecord


class JobStore:
    """In-memory job table.

    Jobs live until the sweeper removes them, whatever their status. A client
    that polls after the retention window gets a not-found.
    """

    def __init__(self, ttl_sec: Optional[int] = None, sweep_interval_sec: Optional[int] = None):
        self.ttl = timedelta(seconds=settings.JOB_TTL_SEC if ttl_sec is None else ttl_sec)
        self.sweep_interval = settings.SWEEP_INTERVAL_SEC if sweep_interval_sec is None else sweep_interval_sec
        self._jobs: Dict[str, JobRecord] = {}
        self._sweeper: Optional[asyncio.Task] = None

    def __len__(self) -> int:
        return len(self._jobs)

    def __contains__(self, job_id: str) -> bool:
        return job_id in self._jobs

    def create(self, payload: GenerationIn) -> JobRecord:
        job = JobRecord(input=payload)
        self._jobs[job.id] = job
        log_event("job.created", job_id=job.id, topic=payload.topic, count=payload.count)
        return job

    def get(self, job_id: str) -> Optional[JobRecord]:
        return self._jobs.get(job_id)

    def sweep(self, now: Optional[datetime] = None) -> int:
        now = now or datetime.now(timezone.utc)
        expired = [job_id for job_id, job in self._jobs.items() if now - job.created_at > self.ttl]
        for job_id in expired:
            del self._jobs[job_id]
        if expired:
            log_event("jobs.sweep", removed=len(expired), remaining=len(self._jobs))
        return len(expired)

    async def _sweep_forever(self) -> None:
        while True:
            await asyncio.sleep(self.sweep_interval)
            self.sweep()

    def start_sweeper(self) -> None:
        if self._sweeper is None or self._sweeper.done():
            self._sweeper = asyncio.get_running_loop().create_task(self._sweep_forever())

    async def stop_sweeper(self) -> None:
        if self._sweeper is None:
            return
        self._sweeper.cancel()
        with contextlib.suppress(asyncio.CancelledError):
            await self._sweeper
        self._sweeper = None
