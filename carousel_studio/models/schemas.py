import asyncio
import math
import secrets
import string
import time
from datetime import datetime, timezone
from typing import Any, Optional

from pydantic import BaseModel, ConfigDict, Field, field_validator

from ..common.schemas import GenerationResult, ImageStyle, JobStatus, JobStatusOut, Tone

TONES = ("professional", "friendly", "bold", "educational")
IMAGE_STYLES = ("photo", "illustration", "abstract")

DEFAULT_TONE: Tone = "professional"
DEFAULT_IMAGE_STYLE: ImageStyle = "illustration"
DEFAULT_COUNT = 5
MIN_COUNT, MAX_COUNT = 1, 12
MIN_TOPIC_LENGTH = 3
TOPIC_ERROR = "Topic must be at least 3 characters."

_BASE36 = string.digits + string.ascii_lowercase


def new_job_id() -> str:
    suffix = "".join(secrets.choice(_BASE36) for _ in range(7))
    return f"job-{int(time.time() * 1000)}-{suffix}"


class GenerationIn(BaseModel):
    """Sanitized generation request.

    Loose client values are coerced instead of rejected: unknown tones and
    styles fall back to defaults and ``count`` is clamped. Only the topic can
    make a request invalid.
    """

    topic: str = Field(default="", validate_default=True)
    tone: Tone = Field(default=DEFAULT_TONE, validate_default=True)
    imageStyle: ImageStyle = Field(default=DEFAULT_IMAGE_STYLE, validate_default=True)
    count: int = Field(default=DEFAULT_COUNT, validate_default=True)

    @field_validator("topic", mode="before")
    @classmethod
    def validate_topic(cls, v: Any) -> str:
        topic = str(v).strip() if v else ""
        if len(topic) < MIN_TOPIC_LENGTH:
            raise ValueError(TOPIC_ERROR)
        return topic

    @field_validator("tone", mode="before")
    @classmethod
    def validate_tone(cls, v: Any) -> str:
        return v if v in TONES else DEFAULT_TONE

    @field_validator("imageStyle", mode="before")
    @classmethod
    def validate_image_style(cls, v: Any) -> str:
        return v if v in IMAGE_STYLES else DEFAULT_IMAGE_STYLE

    @field_validator("count", mode="before")
    @classmethod
    def validate_count(cls, v: Any) -> int:
        try:
            n = float(v)
        except (TypeError, ValueError):
            n = 0.0
        except OverflowError:
            # ints beyond float range clamp like +/-infinity
            n = math.inf if v > 0 else -math.inf
        if math.isnan(n) or n == 0:
            n = DEFAULT_COUNT
        return int(max(MIN_COUNT, min(MAX_COUNT, n)))


class JobRecord(BaseModel):
    model_config = ConfigDict(arbitrary_types_allowed=True)

    id: str = Field(default_factory=new_job_id)
    status: JobStatus = "queued"
    progress: int = 0
    input: GenerationIn
    result: Optional[GenerationResult] = None
    error: Optional[str] = None
    created_at: datetime = Field(default_factory=lambda: datetime.now(timezone.utc))
    # handle of the generation task; kept so the task is not garbage collected
    task: Optional[asyncio.Task] = Field(default=None, exclude=True)

    @property
    def is_terminal(self) -> bool:
        return self.status in ("completed", "failed")

    def mark_running(self, progress: int) -> None:
        self.status = "running"
        self.advance(progress)

    def advance(self, progress: int) -> None:
        # progress never moves backwards and stays within 0..100
        self.progress = max(self.progress, min(100, int(progress)))

    def complete(self, result: GenerationResult) -> None:
        self.advance(100)
        self.result = result
        self.error = None
        self.status = "completed"

    def fail(self, message: str) -> None:
        self.result = None
        self.error = message or "Generation failed"
        self.status = "failed"

    def to_out(self) -> JobStatusOut:
        return JobStatusOut(
            jobId=self.id,
            status=self.status,
            progress=self.progress,
            error=self.error,
            result=self.result if self.status == "completed" else None,
        )


class JobAccepted(BaseModel):
    jobId: str
    status: JobStatus
    progress: int


class ErrorOut(BaseModel):
    error: str
