"""Default pipeline settings.

Values can be overridden with ARCHFORGE_* environment variables (a .env file
in the working directory is loaded first).
"""

import os

from dotenv import load_dotenv

load_dotenv()


def _env(name, default, cast=str):
    raw = os.environ.get(f"ARCHFORGE_{name.upper()}")
    if raw is None or raw == "":
        return default
    try:
        return cast(raw)
    except ValueError:
        raise ValueError(f"Invalid value for ARCHFORGE_{name.upper()}: {raw!r}")


DEFAULTS = {
    "model": _env("model", "claude-sonnet-4-5-20250929"),
    "max_tokens": _env("max_tokens", 32768, int),
    "temperature": _env("temperature", 0.2, float),
    "request_timeout": _env("request_timeout", 600.0, float),
    # Resilient call policy: total attempts per call, backoff = base * 2**attempt
    "max_attempts": _env("max_attempts", 3, int),
    "retry_base_delay": _env("retry_base_delay", 2.0, float),
    # Continuation protocol for long-form units
    "max_continuation_rounds": _env("max_continuation_rounds", 5, int),
    "continuation_tail_paragraphs": _env("continuation_tail_paragraphs", 3, int),
    "continuation_tail_chars": _env("continuation_tail_chars", 4000, int),
    "complete_marker": "[COMPLETE]",
    "incomplete_marker": "[INCOMPLETE]",
    # Prompt excerpt sizes
    "vision_excerpt_chars": _env("vision_excerpt_chars", 2000, int),
    "outline_vision_chars": _env("outline_vision_chars", 5000, int),
    "chapter_vision_chars": _env("chapter_vision_chars", 3000, int),
    "dependency_excerpt_chars": _env("dependency_excerpt_chars", 6000, int),
    "chapter_excerpt_chars": _env("chapter_excerpt_chars", 3000, int),
    "chapter_related_files": _env("chapter_related_files", 10, int),
    # 1 = sequential specialist calls
    "specialist_workers": _env("specialist_workers", 1, int),
    "job_ttl": _env("job_ttl", 3600, int),
    "max_jobs": _env("max_jobs", 50, int),
    "log_level": _env("log_level", "INFO"),
}
