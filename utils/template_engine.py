"""Agent prompts — text files under agents/prompts rendered with string.Template.

A prompt is addressed by its file stem ("chapter", "implementer", ...).
Names are checked against a plain identifier pattern before the filesystem
is touched, so a name can never reach outside the prompts directory.
The continuation markers from config are available to every prompt.
"""

import functools
import logging
import os
import re
from string import Template

from config.defaults import DEFAULTS

logger = logging.getLogger(__name__)

PROMPTS_DIR = os.path.join(
    os.path.dirname(os.path.dirname(os.path.abspath(__file__))), "agents", "prompts",
)

_PROMPT_NAME = re.compile(r"^[a-z][a-z0-9_]*$")


def available_prompts():
    return sorted(f[:-len(".txt")] for f in os.listdir(PROMPTS_DIR) if f.endswith(".txt"))


@functools.lru_cache(maxsize=None)
def load_prompt(name):
    """Prompt text for name. Raises ValueError for a bad or unknown name."""
    if not isinstance(name, str) or not _PROMPT_NAME.match(name):
        raise ValueError(f"Invalid prompt name: {name!r}")
    path = os.path.join(PROMPTS_DIR, f"{name}.txt")
    if not os.path.isfile(path):
        raise ValueError(f"Unknown prompt {name!r} (available: {', '.join(available_prompts())})")
    with open(path, "r") as f:
        text = f.read()
    logger.debug("Loaded prompt %s (%d chars)", name, len(text))
    return text


def render_prompt(name, variables=None):
    """Render a prompt. Caller variables win over the marker defaults.

    JSON examples inside prompts need no escaping, and placeholders with no
    value are left in the text as written.
    """
    values = {
        "complete_marker": DEFAULTS["complete_marker"],
        "incomplete_marker": DEFAULTS["incomplete_marker"],
    }
    values.update(variables or {})
    return Template(load_prompt(name)).safe_substitute(values)
