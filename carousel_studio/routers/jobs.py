import json
from typing import Any

from fastapi import APIRouter, Request
from fastapi.responses import JSONResponse

from ..core.config import settings
from ..core.errors import GenerationRequestError, InvalidInput, PayloadTooLarge
from ..core.log import log_event
from ..db.jobs_store import JobStore
from ..models.schemas import JobAccepted
from ..services.generation import sanitize_generation_input, start_generation


router = APIRouter(prefix="/api", tags=["jobs"])

NO_STORE = {"Cache-Control": "no-store"}


def _json(status_code: int, payload: Any) -> JSONResponse:
    return JSONResponse(status_code=status_code, content=payload, headers=NO_STORE)


def _store(request: Request) -> JobStore:
    return request.app.state.store


async def read_json_body(request: Request) -> Any:
    data = b""
    async for chunk in request.stream():
        data += chunk
        if len(data) > settings.MAX_BODY_BYTES:
            raise PayloadTooLarge()
    if not data.strip():
        return {}
    try:
        return json.loads(data)
    except (ValueError, RecursionError):
        raise InvalidInput("Invalid JSON")


@router.post("/generate")
async def generate(request: Request):
    try:
        payload = await read_json_body(request)
        generation_in = sanitize_generation_input(payload)
    except GenerationRequestError as e:
        log_event("generate.rejected", status=e.status_code, error=e.message)
        return _json(e.status_code, {"error": e.message})

    job = _store(request).create(generation_in)
    start_generation(job)
    accepted = JobAccepted(jobId=job.id, status=job.status, progress=job.progress)
    return _json(202, accepted.model_dump())


@router.get("/jobs/{job_id:path}")
async def get_job(job_id: str, request: Request):
    job = _store(request).get(job_id)
    if not job:
        return _json(404, {"error": "Job not found"})
    return _json(200, job.to_out().model_dump(mode="json"))
