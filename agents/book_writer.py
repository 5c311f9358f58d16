"""Book writer agent — the implementation instruction book, chapter by chapter.

Chapters are long-form units: each one goes through the continuation
engine until the model marks it complete (or the round limit is hit).
"""

import json
import logging

from config.defaults import DEFAULTS
from config.sections import SECTION_TABLE_VERSION, default_sections
from core.continuation import ContinuationEngine, tail
from core.errors import MalformedOutputError, PipelineError, PipelineRunError
from core.shapes import OUTLINE_SHAPE
from core.state import BookOutline, GeneratedUnit, ImplementationBook
from utils.template_engine import render_prompt

logger = logging.getLogger(__name__)


def _bullets(items):
    return "\n".join(f"- {item}" for item in items)


class BookWriter:

    name = "book_writer"

    def __init__(self, executor, max_rounds=None):
        self.executor = executor
        self.max_rounds = max_rounds

    def outline(self, architecture, requirements):
        vision = architecture.integrated_vision[:DEFAULTS["outline_vision_chars"]]
        user_message = (
            "Project Requirements:\n" + "\n".join(requirements)
            + f"\n\nArchitectural Vision:\n{vision}"
            + "\n\nFiles in implementation order:\n"
            + "\n".join(f"{n.implementation_order}. {n.path}" for n in architecture.dependency_graph)
            + "\n\nGenerate a comprehensive implementation book outline for this project."
        )
        payload = self.executor.execute(
            render_prompt("book_outline"), user_message, OUTLINE_SHAPE, unit="book_outline",
        )
        outline = BookOutline.from_dict(payload)
        if not outline.chapters:
            raise MalformedOutputError("Book outline has no usable chapters", unit="book_outline", field="chapters")
        logger.info("Book outline '%s' with %d chapter(s)", outline.title, len(outline.chapters))
        return outline

    def write_chapter(self, index, plan, architecture, requirements):
        """Write one chapter to completion. Returns a chapter GeneratedUnit."""
        sections = list(plan.sections)
        if not sections:
            sections = default_sections(plan.title)
            logger.debug("'%s' has no sections; using section table v%s", plan.title, SECTION_TABLE_VERSION)
        unit_id = f"chapter-{index:02d}"
        related = [n.to_dict() for n in architecture.dependency_graph[:DEFAULTS["chapter_related_files"]]]

        def draft(requested):
            prompt = render_prompt("chapter", {
                "title": plan.title, "sections": _bullets(requested),
            })
            user_message = (
                "Project Requirements:\n" + "\n".join(requirements)
                + f"\n\nChapter to write: {plan.title}"
                + "\n\nArchitectural Context:\n"
                + architecture.integrated_vision[:DEFAULTS["chapter_vision_chars"]]
                + "\n\nFiles related to this chapter:\n" + json.dumps(related, indent=2)
            )
            return self.executor.complete_text(prompt, user_message, unit=unit_id).payload

        def continue_(state):
            prompt = render_prompt("chapter_continue", {
                "title": plan.title,
                "tail": tail(state.accumulated_content),
                "sections": _bullets(state.remaining_sections) or "- (wrap up the chapter)",
            })
            user_message = (
                f'Continue the implementation instructions for chapter "{plan.title}". '
                "Pick up exactly where the previous text left off."
            )
            return self.executor.complete_text(prompt, user_message, unit=unit_id).payload

        engine = ContinuationEngine(max_rounds=self.max_rounds)
        result = engine.run(unit_id, sections, draft, continue_)
        return GeneratedUnit(
            path=unit_id,
            name=plan.title,
            content=result.content,
            language="markdown",
            kind="chapter",
            description=plan.title,
            purpose="; ".join(sections),
            complete=True,
            possibly_incomplete=result.possibly_incomplete,
        )

    def write_book(self, architecture, requirements, outline=None, on_progress=None):
        """Write every chapter in outline order.

        on_progress(completed, total, current_label) is called before the
        first chapter and after each one. A failing chapter raises
        PipelineRunError carrying the chapters already written.
        """
        outline = outline or self.outline(architecture, requirements)
        total = len(outline.chapters)
        chapters = []

        for i, plan in enumerate(outline.chapters, 1):
            if on_progress:
                on_progress(len(chapters), total, plan.title)
            logger.info("Chapter %d/%d: %s", i, total, plan.title)
            try:
                chapters.append(self.write_chapter(i, plan, architecture, requirements))
            except PipelineError as e:
                raise PipelineRunError("book", plan.title, e, completed=chapters) from e

        if on_progress:
            on_progress(len(chapters), total, "Complete")
        return ImplementationBook(
            title=outline.title,
            introduction=outline.introduction,
            chapters=tuple(chapters),
        )
