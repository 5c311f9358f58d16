"""Continuation engine for long-form units.

drafting -> continuing* -> complete

The model ends every response with a completion marker or an incomplete
marker. While output is incomplete the engine asks for more, seeded with the
tail of what was produced so far and the sections not yet covered, and
appends each response in call order.
"""

import logging

from config.defaults import DEFAULTS
from core.state import ContinuationState

logger = logging.getLogger(__name__)

DRAFTING = "drafting"
CONTINUING = "continuing"
COMPLETE = "complete"


def remaining_sections(content, sections):
    """Sections whose titles do not appear in content.

    Case-insensitive substring check against the section title. It is an
    approximation: a passing mention counts as coverage and a reworded
    heading does not.
    """
    text = content.lower()
    return [s for s in sections if s.lower() not in text]


def tail(content, paragraphs=None, max_chars=None):
    """Last few paragraphs of content, capped at max_chars."""
    paragraphs = paragraphs or DEFAULTS["continuation_tail_paragraphs"]
    max_chars = max_chars or DEFAULTS["continuation_tail_chars"]
    parts = [p for p in content.split("\n\n") if p.strip()]
    excerpt = "\n\n".join(parts[-paragraphs:])
    if len(excerpt) > max_chars:
        excerpt = excerpt[-max_chars:]
    return excerpt


class ContinuationResult:
    def __init__(self, content, rounds, possibly_incomplete):
        self.content = content
        self.rounds = rounds
        self.possibly_incomplete = possibly_incomplete


class ContinuationEngine:
    """Drives one unit to completion.

    draft(sections) -> raw text for the first call.
    continue_(state) -> raw text for a follow-up, given a ContinuationState
        whose accumulated_content and remaining_sections are current.
    """

    def __init__(self, max_rounds=None, complete_marker=None, incomplete_marker=None):
        self.max_rounds = DEFAULTS["max_continuation_rounds"] if max_rounds is None else max_rounds
        self.complete_marker = complete_marker or DEFAULTS["complete_marker"]
        self.incomplete_marker = incomplete_marker or DEFAULTS["incomplete_marker"]
        self.status = DRAFTING

    def split(self, text):
        """Return (content without markers, is_complete)."""
        text = text or ""
        incomplete = self.incomplete_marker in text
        complete = self.complete_marker in text and not incomplete
        cleaned = text.replace(self.complete_marker, "").replace(self.incomplete_marker, "")
        return cleaned.strip(), complete

    def run(self, unit_id, sections, draft, continue_):
        self.status = DRAFTING
        state = ContinuationState(unit_id=unit_id, sections=list(sections))

        content, done = self.split(draft(state.sections))
        state.accumulated_content = content

        while not done:
            if state.rounds >= self.max_rounds:
                logger.warning(
                    "[%s] no completion marker after %d continuation round(s); "
                    "force-completing", unit_id, state.rounds,
                )
                self.status = COMPLETE
                return ContinuationResult(state.accumulated_content, state.rounds, True)

            self.status = CONTINUING
            state.remaining_sections = remaining_sections(state.accumulated_content, state.sections)
            state.rounds += 1
            logger.info(
                "[%s] continuation round %d, %d section(s) remaining",
                unit_id, state.rounds, len(state.remaining_sections),
            )
            content, done = self.split(continue_(state))
            if content:
                state.accumulated_content = f"{state.accumulated_content}\n\n{content}".strip()

        self.status = COMPLETE
        return ContinuationResult(state.accumulated_content, state.rounds, False)
