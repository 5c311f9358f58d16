"""Tests for agents.book_writer — outline, chapter continuation, progress."""

import pytest

from agents.book_writer import BookWriter
from core.errors import MalformedOutputError, ModelCallError, PipelineRunError
from core.state import BookOutline, ChapterPlan, IntegratedArchitecture


OUTLINE = {
    "title": "Building the Task Tracker",
    "introduction": "How to build it.",
    "chapters": [
        {"title": "Data Models", "sections": ["Task Entity", "Migrations"]},
        {"title": "HTTP Layer", "sections": ["Routes"]},
    ],
}


@pytest.fixture
def architecture(make_architecture):
    return IntegratedArchitecture.from_dict(make_architecture())


def test_outline(scripted, architecture):
    gateway, executor = scripted([OUTLINE])
    outline = BookWriter(executor).outline(architecture, ("Track tasks",))
    assert outline.title == "Building the Task Tracker"
    assert [c.title for c in outline.chapters] == ["Data Models", "HTTP Layer"]
    assert outline.chapters[0].sections == ("Task Entity", "Migrations")
    assert "src/models.py" in gateway.calls[0][1]


def test_outline_without_usable_chapters(scripted, architecture):
    _, executor = scripted([{"title": "T", "chapters": [{"sections": ["x"]}]}])
    with pytest.raises(MalformedOutputError):
        BookWriter(executor).outline(architecture, ("r",))


def test_write_book_with_continuation(scripted, architecture):
    gateway, executor = scripted([
        OUTLINE,
        "## Task Entity\nfields... [INCOMPLETE]",
        "## Migrations\nalembic... [COMPLETE]",
        "## Routes\nflask... [COMPLETE]",
    ])
    progress = []
    book = BookWriter(executor).write_book(
        architecture, ("Track tasks",), on_progress=lambda *args: progress.append(args),
    )

    assert len(gateway.calls) == 4
    assert book.complete
    first = book.chapters[0]
    assert first.path == "chapter-01"
    assert first.kind == "chapter"
    assert first.content.index("fields...") < first.content.index("alembic...")
    assert "[INCOMPLETE]" not in first.content
    assert first.possibly_incomplete is False
    assert progress == [(0, 2, "Data Models"), (1, 2, "HTTP Layer"), (2, 2, "Complete")]

    continue_system = gateway.calls[2][0]
    assert "Migrations" in continue_system
    assert "fields..." in continue_system


def test_chapter_without_sections_uses_defaults(scripted, architecture):
    gateway, executor = scripted(["text [COMPLETE]"])
    plan = ChapterPlan(title="Security Hardening")
    unit = BookWriter(executor).write_chapter(1, plan, architecture, ("r",))
    assert "Secret Management" in gateway.calls[0][0]
    assert "Secret Management" in unit.purpose


def test_chapter_force_completed(scripted, architecture):
    _, executor = scripted(["a [INCOMPLETE]", "b [INCOMPLETE]", "c [INCOMPLETE]"])
    plan = ChapterPlan(title="Data Models", sections=("Task Entity",))
    unit = BookWriter(executor, max_rounds=2).write_chapter(1, plan, architecture, ("r",))
    assert unit.possibly_incomplete is True
    assert unit.content == "a\n\nb\n\nc"


def test_failing_chapter_keeps_finished_ones(scripted, architecture):
    _, executor = scripted([
        "chapter one [COMPLETE]",
        ModelCallError("invalid request", retryable=False),
    ])
    outline = BookOutline.from_dict(OUTLINE)
    with pytest.raises(PipelineRunError) as exc_info:
        BookWriter(executor).write_book(architecture, ("r",), outline=outline)
    err = exc_info.value
    assert err.phase == "book"
    assert err.unit == "HTTP Layer"
    assert [c.name for c in err.completed] == ["Data Models"]
