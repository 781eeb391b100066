import asyncio
import math
import random
import time
from datetime import datetime, timezone
from typing import Any, Dict
from urllib.parse import quote

from pydantic import ValidationError

from ..common.schemas import GenerationMeta, GenerationResult, Slide
from ..core.config import settings
from ..core.errors import InvalidInput
from ..core.log import log_event
from ..models.schemas import GenerationIn, JobRecord

TONE_MAP: Dict[str, tuple] = {
    "professional": ("strategic", "results-driven", "clear", "credible"),
    "friendly": ("warm", "approachable", "encouraging", "conversational"),
    "bold": ("confident", "high-energy", "direct", "provocative"),
    "educational": ("informative", "structured", "insightful", "practical"),
}

LAST_CTA = "Ready to launch? Start now."
NEXT_CTA = "Keep swiping for the next idea."


def sanitize_generation_input(payload: Any) -> GenerationIn:
    """Coerce a decoded request body into a GenerationIn or raise InvalidInput."""
    if not isinstance(payload, dict):
        payload = {}
    try:
        return GenerationIn.model_validate(payload)
    except ValidationError as e:
        err = e.errors()[0]
        cause = (err.get("ctx") or {}).get("error")
        raise InvalidInput(str(cause) if cause else err.get("msg", "Invalid request")) from None


async def _simulated_latency(min_ms: int, max_ms: int) -> None:
    if max_ms <= 0:
        await asyncio.sleep(0)
        return
    await asyncio.sleep(random.randint(max(0, min_ms), max(min_ms, max_ms)) / 1000.0)


async def generate_slide_text(topic: str, tone: str, index: int, total: int) -> Dict[str, str]:
    angles = TONE_MAP.get(tone) or TONE_MAP["professional"]
    angle = angles[index % len(angles)]
    await _simulated_latency(settings.TEXT_DELAY_MIN_MS, settings.TEXT_DELAY_MAX_MS)

    return {
        "headline": f"{topic}: {angle} insight {index + 1}",
        "body": (
            f"Frame {index + 1}/{total} gives a {angle} perspective on {topic}. "
            "Use this slide to communicate a practical takeaway and momentum."
        ),
        "cta": LAST_CTA if index + 1 == total else NEXT_CTA,
    }


def placeholder_image_url(topic: str, image_style: str, index: int) -> str:
    seed = quote(f"{topic}-{image_style}-{index + 1}", safe="")
    size = settings.IMAGE_SIZE
    return f"{settings.IMAGE_BASE_URL}/seed/{seed}/{size}/{size}"


async def generate_slide_image(topic: str, image_style: str, index: int) -> Dict[str, str]:
    await _simulated_latency(settings.IMAGE_DELAY_MIN_MS, settings.IMAGE_DELAY_MAX_MS)
    return {
        "imagePrompt": f"{image_style} {topic} social carousel square composition {index + 1}",
        "imageUrl": placeholder_image_url(topic, image_style, index),
    }


def slide_progress(done: int, total: int) -> int:
    # 5 on start, 95 after the last slide, 100 once the result is attached
    return math.floor(done / total * 90 + 0.5) + 5


async def create_slides_for_job(job: JobRecord) -> GenerationResult:
    topic, tone = job.input.topic, job.input.tone
    image_style, count = job.input.imageStyle, job.input.count
    job.mark_running(5)

    slides = []
    for index in range(count):
        text, image = await asyncio.gather(
            generate_slide_text(topic, tone, index, count),
            generate_slide_image(topic, image_style, index),
        )
        slides.append(Slide(id=f"slide-{job.id}-{index + 1}", **text, **image))
        job.advance(slide_progress(index + 1, count))

    return GenerationResult(
        meta=GenerationMeta(
            topic=topic,
            tone=tone,
            imageStyle=image_style,
            generatedAt=datetime.now(timezone.utc).isoformat(timespec="milliseconds").replace("+00:00", "Z"),
            author=settings.APP_AUTHOR,
            version=settings.APP_VERSION,
        ),
        slides=slides,
    )


async def process_job(job: JobRecord) -> None:
    """Run one job to a terminal state; failures land in the record."""
    t0 = time.perf_counter()
    log_event("generation.begin", job_id=job.id, tone=job.input.tone,
              image_style=job.input.imageStyle, count=job.input.count)
    try:
        result = await create_slides_for_job(job)
    except Exception as e:
        job.fail(str(e))
        log_event("generation.failed", job_id=job.id, error=job.error,
                  elapsed_ms=int((time.perf_counter() - t0) * 1000))
        return
    job.complete(result)
    log_event("generation.done", job_id=job.id, slides=len(result.slides),
              elapsed_ms=int((time.perf_counter() - t0) * 1000))


def start_generation(job: JobRecord) -> asyncio.Task:
    job.task = asyncio.get_running_loop().create_task(process_job(job), name=f"generate:{job.id}")
    return job.task
