"""Tests for utils.output — project naming and writing generated files."""

import os

import pytest

from core.state import GeneratedUnit, ImplementationBook
from utils.output import extract_project_name, get_output_dir, slugify, write_book, write_units


def _unit(path, content="x", kind="file"):
    return GeneratedUnit(path=path, name=os.path.basename(path), content=content,
                         language="text", kind=kind)


def test_slugify():
    assert slugify("Hello, World!") == "hello_world"
    assert slugify("  a--b  c ") == "a_b_c"


def test_extract_project_name():
    assert extract_project_name(["Build a task tracker with user accounts"]) == "task_tracker_user"
    assert extract_project_name(["Build me an app"]) == "project"
    assert extract_project_name([]) == "project"


def test_get_output_dir_dedups(tmp_path):
    reqs = ["Build a task tracker"]
    first = get_output_dir(str(tmp_path), reqs)
    assert first.endswith("task_tracker")
    os.makedirs(first)
    assert get_output_dir(str(tmp_path), reqs).endswith("task_tracker_2")


def test_write_units(tmp_path):
    units = [
        _unit("src/app.py", "print('hi')\n"),
        _unit("README.md", "# Tracker\n"),
        _unit("chapter-01", "ignored", kind="chapter"),
    ]
    written = write_units(units, str(tmp_path))
    assert written == ["src/app.py", "README.md"]
    assert (tmp_path / "src" / "app.py").read_text() == "print('hi')\n"
    assert not (tmp_path / "chapter-01").exists()


def test_write_units_rejects_escaping_paths(tmp_path):
    with pytest.raises(ValueError):
        write_units([_unit("../evil.py")], str(tmp_path / "out"))


def test_write_book(tmp_path):
    chapters = (
        GeneratedUnit(path="chapter-01", name="Models", content="Define Task.",
                      language="markdown", kind="chapter"),
        GeneratedUnit(path="chapter-02", name="Routes", content="Add routes.",
                      language="markdown", kind="chapter", possibly_incomplete=True),
    )
    book = ImplementationBook(title="Tracker Book", introduction="Intro.", chapters=chapters)
    path = write_book(book, str(tmp_path))
    text = open(path).read()
    assert text.startswith("# Tracker Book")
    assert "## Models" in text and "## Routes" in text
    assert text.count("may be incomplete") == 1
