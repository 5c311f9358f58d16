"""Implementer agent — writes the content of one planned file."""

import json
import logging
import os

from config.defaults import DEFAULTS
from config.file_types import DEFAULT_GUIDANCE, EXTENSION_LANGUAGES, NAME_LANGUAGES, PATH_GUIDANCE
from core.shapes import IMPLEMENTATION_SHAPE
from core.state import GeneratedUnit
from utils.template_engine import render_prompt

logger = logging.getLogger(__name__)


def guess_language(filepath):
    """Guess language from file name or extension."""
    name = os.path.basename(filepath).lower()
    if name in NAME_LANGUAGES:
        return NAME_LANGUAGES[name]
    _, ext = os.path.splitext(name)
    return EXTENSION_LANGUAGES.get(ext, "text")


def file_guidance(path):
    lowered = "/" + path.lower()
    for keywords, guidance in PATH_GUIDANCE:
        if any(k in lowered for k in keywords):
            return guidance
    return DEFAULT_GUIDANCE


def excerpt(text, limit):
    if len(text) <= limit:
        return text
    return text[:limit] + "\n... (truncated)"


def relevant_chapter(node, book):
    """First completed chapter whose title and the file's path/name mention
    each other, or None."""
    if book is None:
        return None
    path = node.path.lower()
    name = node.name.lower()
    stem = os.path.splitext(name)[0]
    for chapter in book.chapters:
        if not chapter.complete or not chapter.content:
            continue
        title = chapter.name.lower()
        if not title:
            continue
        if title in path or title in name or (stem and stem in title):
            return chapter
    return None


class ImplementerAgent:
    """Generates one file from its node, its completed dependencies, the
    requirements and the integrated vision. One structured call, no
    content-quality retries."""

    name = "implementer"

    def __init__(self, executor):
        self.executor = executor

    def build_message(self, node, dependency_context, requirements, vision_text, book=None):
        parts = [
            "File to Implement:",
            f"Name: {node.name}",
            f"Path: {node.path}",
            f"Description: {node.description}",
            f"Purpose: {node.purpose}",
            f"Type: {node.type}",
            f"Dependencies: {json.dumps(list(node.dependencies))}",
            f"Dependents: {json.dumps(list(node.dependents))}",
            f"Implementation Order: {node.implementation_order}",
            "",
            "Project Requirements:",
            "\n".join(requirements),
            "",
            "Architectural Vision:",
            excerpt(vision_text, DEFAULTS["vision_excerpt_chars"]),
        ]

        chapter = relevant_chapter(node, book)
        if chapter is not None:
            parts += [
                "",
                f"Relevant Implementation Book Chapter: {chapter.name}",
                excerpt(chapter.content, DEFAULTS["chapter_excerpt_chars"]),
            ]

        parts.append("")
        if dependency_context:
            parts.append("Dependency Implementations:")
            for dep in dependency_context:
                parts += [
                    f"File: {dep.path}",
                    f"Purpose: {dep.purpose}",
                    f"Language: {dep.language}",
                    f"```{dep.language}",
                    excerpt(dep.content, DEFAULTS["dependency_excerpt_chars"]),
                    "```",
                    "",
                ]
        else:
            parts.append("No dependencies")

        parts.append(
            "\nGenerate the COMPLETE implementation of this file. "
            "It must be fully functional with no placeholders or TODOs."
        )
        return "\n".join(parts)

    def generate_unit(self, node, dependency_context, requirements, vision_text, book=None):
        prompt = render_prompt("implementer", {
            "guidance": file_guidance(node.path),
            "path": node.path,
        })
        user_message = self.build_message(node, dependency_context, requirements, vision_text, book)

        logger.info("Implementing %s (order %d)", node.path, node.implementation_order)
        payload = self.executor.execute(prompt, user_message, IMPLEMENTATION_SHAPE, unit=node.path)

        language = payload.get("language")
        if not isinstance(language, str) or not language.strip():
            language = guess_language(node.path)
        return GeneratedUnit(
            path=node.path,
            name=node.name,
            content=payload["code"],
            language=language.strip().lower(),
            kind="file",
            description=node.description,
            purpose=node.purpose,
            dependencies=tuple(node.dependencies),
            complete=True,
        )
