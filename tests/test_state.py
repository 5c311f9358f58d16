"""Tests for core.state models."""

import pytest

from core.errors import MissingPreconditionError
from core.state import (
    FileNode,
    FolderNode,
    GeneratedUnit,
    GenerationJob,
    ImplementationBook,
    IntegratedArchitecture,
    Level2Output,
    PipelineState,
    SpecialistVision,
    normalize_requirements,
)


def test_normalize_requirements_strips_blanks():
    assert normalize_requirements([" a ", "", "b"]) == ("a", "b")


@pytest.mark.parametrize("bad", [None, [], ["", "  "], "a string"])
def test_normalize_requirements_rejects(bad):
    with pytest.raises(MissingPreconditionError):
        normalize_requirements(bad)


def test_folder_iter_files_excludes_root_name():
    root = FolderNode.from_dict({
        "name": "proj",
        "files": [{"name": "README.md"}],
        "subfolders": [{"name": "src", "subfolders": [{"name": "api", "files": [{"name": "routes.py"}]}]}],
    })
    assert [p for p, _ in root.iter_files()] == ["README.md", "src/api/routes.py"]


def test_specialist_vision_reads_either_tree_key():
    nested = SpecialistVision.from_dict({"visionText": "v", "projectStructure": {"rootFolder": {"name": "a"}}})
    flat = SpecialistVision.from_dict({"visionText": "v", "rootFolder": {"name": "b"}})
    assert nested.proposed_tree.name == "a"
    assert flat.proposed_tree.name == "b"


def test_file_node_bad_order_defaults_to_one():
    assert FileNode.from_dict({"name": "a", "path": "a", "implementationOrder": "soon"}).implementation_order == 1
    assert FileNode.from_dict({"name": "a", "path": "a"}).implementation_order == 1


def test_file_node_camel_case():
    node = FileNode(name="a.py", path="src/a.py", dependencies=("src/b.py",), implementation_order=2)
    data = node.to_dict()
    assert data["implementationOrder"] == 2
    assert data["dependencies"] == ["src/b.py"]


def test_architecture_requires_tree_and_graph():
    with pytest.raises(MissingPreconditionError):
        IntegratedArchitecture.from_dict({"rootFolder": {"name": "x"}})
    with pytest.raises(MissingPreconditionError):
        IntegratedArchitecture.from_dict({"rootFolder": {"name": "x"}, "dependencyTree": {"files": []}})


def test_level2_carries_book(make_architecture):
    data = make_architecture()
    data["implementationBook"] = {
        "title": "Book", "introduction": "Intro",
        "chapters": [{"title": "Models", "content": "text", "isComplete": True}],
    }
    level2 = Level2Output.from_dict(data)
    assert level2.book.chapters[0].name == "Models"
    assert level2.to_dict()["implementationBook"]["chapters"][0]["isComplete"] is True


def test_generated_unit_is_frozen():
    unit = GeneratedUnit(path="a.py", name="a.py", content="x", language="python")
    with pytest.raises(AttributeError):
        unit.content = "y"


def test_generated_unit_accepts_code_key():
    assert GeneratedUnit.from_dict({"path": "a.py", "code": "x = 1"}).content == "x = 1"


def test_book_complete_needs_every_chapter():
    chapters = (
        GeneratedUnit(path="chapter-01", name="A", content="a", language="markdown", kind="chapter"),
        GeneratedUnit(path="chapter-02", name="B", content="b", language="markdown",
                      kind="chapter", complete=False),
    )
    assert ImplementationBook(title="T", introduction="", chapters=chapters).complete is False
    assert ImplementationBook(title="T", introduction="", chapters=chapters[:1]).complete is True


def test_job_progress():
    job = GenerationJob(id="j1", total_units=4, completed_units=1)
    assert job.progress == 25.0
    assert GenerationJob(id="j2").progress == 0.0
    job.status = "complete"
    assert job.progress == 100.0
    assert job.terminal


def test_job_to_dict_keys():
    data = GenerationJob(id="j1").to_dict()
    assert data["status"] == "initializing"
    assert data["currentUnit"] == "Initializing"
    assert data["isComplete"] is False


def test_pipeline_state_defaults():
    state = PipelineState(requirements=("a",))
    assert state.phase == "specialists"
    assert state.errors == []
    assert state.level1 is None
