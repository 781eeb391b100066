import asyncio

import pytest

from carousel_studio.core.errors import InvalidInput
from carousel_studio.models.schemas import GenerationIn, JobRecord
from carousel_studio.services import generation
from carousel_studio.services.generation import (
    generate_slide_image,
    generate_slide_text,
    process_job,
    sanitize_generation_input,
    slide_progress,
)


@pytest.mark.parametrize("raw, expected", [
    (3, 3), (0, 5), (None, 5), ("abc", 5), ("7", 7), (-4, 1), (99, 12), (12, 12), (1, 1), (3.7, 3),
    (10 ** 400, 12), (-10 ** 400, 1),
])
def test_count_is_clamped(raw, expected):
    assert sanitize_generation_input({"topic": "Coffee", "count": raw}).count == expected


def test_defaults_for_unknown_tone_and_style():
    parsed = sanitize_generation_input({"topic": "  Coffee  ", "tone": "sarcastic", "imageStyle": "oil"})
    assert parsed.topic == "Coffee"
    assert parsed.tone == "professional"
    assert parsed.imageStyle == "illustration"
    assert parsed.count == 5


@pytest.mark.parametrize("payload", [{}, {"topic": "a"}, {"topic": "   ab   "}, {"topic": None}, [1, 2], "Coffee"])
def test_short_or_missing_topic_is_rejected(payload):
    with pytest.raises(InvalidInput) as exc:
        sanitize_generation_input(payload)
    assert exc.value.message == "Topic must be at least 3 characters."
    assert exc.value.status_code == 400


def test_slide_text_templates():
    text = asyncio.run(generate_slide_text("Coffee", "bold", 1, 3))
    assert text["headline"] == "Coffee: high-energy insight 2"
    assert text["body"].startswith("Frame 2/3 gives a high-energy perspective on Coffee. ")
    assert text["cta"] == "Keep swiping for the next idea."

    last = asyncio.run(generate_slide_text("Coffee", "bold", 2, 3))
    assert last["cta"] == "Ready to launch? Start now."


def test_slide_image_is_a_deterministic_placeholder():
    image = asyncio.run(generate_slide_image("Cold Brew", "photo", 0))
    assert image["imageUrl"] == "https://picsum.photos/seed/Cold%20Brew-photo-1/1024/1024"
    assert image["imagePrompt"] == "photo Cold Brew social carousel square composition 1"
    assert asyncio.run(generate_slide_image("Cold Brew", "photo", 0)) == image


def test_progress_scale():
    assert [slide_progress(i, 4) for i in range(1, 5)] == [28, 50, 73, 95]
    assert slide_progress(1, 1) == 95


def test_process_job_progress_is_monotonic_and_ends_at_100():
    job = JobRecord(input=GenerationIn(topic="Coffee", count=4))
    seen = []

    async def watch():
        while not job.is_terminal:
            seen.append(job.progress)
            await asyncio.sleep(0)
        seen.append(job.progress)

    async def scenario():
        await asyncio.gather(process_job(job), watch())

    asyncio.run(scenario())

    assert job.status == "completed"
    assert seen == sorted(seen)
    assert seen[-1] == 100
    assert job.error is None
    assert [s.id for s in job.result.slides] == [f"slide-{job.id}-{n}" for n in range(1, 5)]
    assert job.result.meta.topic == "Coffee"


def test_process_job_failure_keeps_no_slides(monkeypatch):
    calls = []

    async def flaky_text(topic, tone, index, total):
        calls.append(index)
        if index == 2:
            raise ValueError("template missing")
        return {"headline": "h", "body": "b", "cta": "c"}

    monkeypatch.setattr(generation, "generate_slide_text", flaky_text)
    job = JobRecord(input=GenerationIn(topic="Coffee", count=5))
    asyncio.run(process_job(job))

    assert calls == [0, 1, 2]
    assert job.status == "failed"
    assert job.error == "template missing"
    assert job.result is None
    assert job.to_out().result is None


def test_empty_error_message_gets_a_default(monkeypatch):
    async def silent_failure(*args):
        raise RuntimeError()

    monkeypatch.setattr(generation, "generate_slide_image", silent_failure)
    job = JobRecord(input=GenerationIn(topic="Coffee", count=1))
    asyncio.run(process_job(job))
    assert job.error == "Generation failed"


def test_start_generation_keeps_the_task_handle():
    async def scenario():
        job = JobRecord(input=GenerationIn(topic="Coffee", count=2))
        task = generation.start_generation(job)
        assert job.task is task
        assert job.status == "queued"
        await task
        return job

    job = asyncio.run(scenario())
    assert job.status == "completed"
    assert "task" not in job.model_dump()
