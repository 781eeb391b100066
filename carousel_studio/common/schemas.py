from pydantic import BaseModel
from typing import Literal, Optional, List

JobStatus = Literal["queued","running","completed","failed"]
Tone = Literal["professional","friendly","bold","educational"]
ImageStyle = Literal["photo","illustration","abstract"]

TERMINAL_STATUSES = ("completed", "failed")


class Slide(BaseModel):
    id: str
    headline: str
    body: str
    cta: str
    imageUrl: str
    imagePrompt: Optional[str] = None


class GenerationMeta(BaseModel):
    topic: str
    tone: Tone
    imageStyle: ImageStyle
    generatedAt: str
    author: str
    version: str


class GenerationResult(BaseModel):
    meta: GenerationMeta
    slides: List[Slide]


class JobStatusOut(BaseModel):
    jobId: str
    status: JobStatus
    progress: int
    error: Optional[str] = None
    result: Optional[GenerationResult] = None
