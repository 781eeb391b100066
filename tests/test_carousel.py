from collections import Counter

import pytest

from carousel_studio.client.carousel import CarouselState
from carousel_studio.common.schemas import GenerationMeta, GenerationResult, Slide


def make_result(*ids):
    meta = GenerationMeta(topic="Coffee", tone="bold", imageStyle="photo",
                          generatedAt="2026-01-01T00:00:00.000Z", author="Carousel Studio", version="v2")
    slides = [Slide(id=i, headline=f"Coffee {i}", body=f"body {i}", cta=f"cta {i}", imageUrl=f"https://img.test/{i}")
              for i in ids]
    return GenerationResult(meta=meta, slides=slides)


@pytest.fixture
def state():
    s = CarouselState()
    s.load(make_result("A", "B", "C"))
    return s


def order(state):
    return [s.id for s in state.slides]


def test_load_selects_first_slide(state):
    assert state.selected_id == "A"
    assert state.meta.topic == "Coffee"
    assert state.status == "Generated 3 slides for “Coffee”."


def test_load_empty_result_clears_selection():
    s = CarouselState()
    s.load(make_result())
    assert s.selected is None


@pytest.mark.parametrize("source, target, expected", [
    ("A", "C", ["B", "C", "A"]),
    ("C", "A", ["C", "A", "B"]),
    ("A", "B", ["B", "A", "C"]),
    ("B", "A", ["B", "A", "C"]),
])
def test_reorder_inserts_at_target_position(state, source, target, expected):
    before = Counter(order(state))
    assert state.reorder(source, target) is True
    assert order(state) == expected
    assert Counter(order(state)) == before
    assert state.status == "Slide order updated."


@pytest.mark.parametrize("source, target", [("A", "A"), ("", "B"), ("Z", "B"), ("A", "Z")])
def test_reorder_noops(state, source, target):
    status = state.status
    assert state.reorder(source, target) is False
    assert order(state) == ["A", "B", "C"]
    assert state.status == status


def test_edit_trims_and_saves(state):
    assert state.edit("  New headline ", "New body", "Go", " https://img.test/new ") is True
    slide = state.selected
    assert (slide.headline, slide.body, slide.cta, slide.imageUrl) == ("New headline", "New body", "Go", "https://img.test/new")
    assert state.status == "Slide saved."
    assert not state.status_is_error


@pytest.mark.parametrize("fields", [
    ("", "b", "c", "u"), ("h", "   ", "c", "u"), ("h", "b", "", "u"), ("h", "b", "c", " "),
])
def test_edit_with_empty_field_is_rejected(state, fields):
    before = [s.model_dump() for s in state.slides]
    assert state.edit(*fields) is False
    assert [s.model_dump() for s in state.slides] == before
    assert state.status == "All slide fields are required."
    assert state.status_is_error


def test_edit_without_selection_is_ignored():
    s = CarouselState()
    assert s.edit("h", "b", "c", "u") is False


def test_edits_do_not_leak_into_the_loaded_result():
    result = make_result("A")
    s = CarouselState()
    s.load(result)
    s.edit("changed", "b", "c", "u")
    assert result.slides[0].headline == "Coffee A"


def test_select_and_render(state):
    assert state.select("B") is True
    assert state.select("nope") is False
    rendered = state.render()
    assert "*[2] Coffee B" in rendered
    assert " [1] Coffee A" in rendered
    assert rendered.splitlines()[-1] == "Generated 3 slides for “Coffee”."
