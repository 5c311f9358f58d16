"""Output directory naming and writing generated files to disk."""

import os
import re

MAX_DEDUP = 1000


def slugify(text):
    """Convert text to a filesystem-safe slug."""
    text = text.lower().strip()
    text = re.sub(r"[^\w\s-]", "", text)
    text = re.sub(r"[\s_-]+", "_", text)
    return text.strip("_")


def extract_project_name(requirements):
    """Pull a short project name from the first requirement."""
    filler = {
        "build", "me", "a", "an", "the", "create", "make", "generate",
        "write", "for", "to", "with", "using", "that", "and", "app",
        "application", "tool", "system", "platform", "please", "can",
        "you", "i", "want", "need", "some", "new", "should", "must", "be",
    }
    first = requirements[0] if requirements else ""
    words = re.sub(r"[^\w\s]", "", first.lower()).split()
    meaningful = [w for w in words if w not in filler]
    name = "_".join(meaningful[:3]) if meaningful else "project"
    return slugify(name)


def get_output_dir(base_dir, requirements):
    """Return a deduplicated project directory under base_dir."""
    base = os.path.join(base_dir, extract_project_name(requirements))
    if not os.path.exists(base):
        return base

    # Dedup with _2, _3, etc.
    for counter in range(2, MAX_DEDUP + 2):
        candidate = f"{base}_{counter}"
        if not os.path.exists(candidate):
            return candidate

    raise RuntimeError(f"Too many duplicate projects (>{MAX_DEDUP}) under: {base_dir}")


def write_units(units, output_dir):
    """Write generated file units into output_dir. Returns written paths.

    Chapters are skipped; a path that resolves outside output_dir raises
    ValueError.
    """
    os.makedirs(output_dir, exist_ok=True)
    root = os.path.realpath(output_dir)
    written = []
    for unit in units:
        if unit.kind != "file":
            continue
        resolved = os.path.realpath(os.path.join(output_dir, unit.path))
        if not resolved.startswith(root + os.sep):
            raise ValueError(f"Path escapes output directory: {unit.path}")
        os.makedirs(os.path.dirname(resolved), exist_ok=True)
        with open(resolved, "w") as fp:
            fp.write(unit.content)
        written.append(unit.path)
    return written


def write_book(book, output_dir, filename="IMPLEMENTATION_BOOK.md"):
    """Write the implementation book as one markdown file. Returns its path."""
    os.makedirs(output_dir, exist_ok=True)
    parts = [f"# {book.title}", "", book.introduction, ""]
    for chapter in book.chapters:
        parts += [f"## {chapter.name}", "", chapter.content, ""]
        if chapter.possibly_incomplete:
            parts += ["> This chapter may be incomplete.", ""]
    path = os.path.join(output_dir, filename)
    with open(path, "w") as fp:
        fp.write("\n".join(parts))
    return path
