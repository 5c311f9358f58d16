"""Tests for agents.integrator — single call, graph validation and repair."""

import pytest

from agents.integrator import IntegratorAgent, format_visions
from core.errors import (
    CyclicDependencyError,
    InconsistentDependencyGraphError,
    MalformedOutputError,
    NoVisionsAvailableError,
)
from core.state import SpecialistVision


def _visions(make_vision):
    return [SpecialistVision.from_dict(make_vision(r)) for r in ("Backend Developer", "QA Engineer")]


def test_no_visions_fails_before_any_call(scripted):
    gateway, executor = scripted([])
    with pytest.raises(NoVisionsAvailableError):
        IntegratorAgent(executor).integrate(("x",), [])
    assert gateway.calls == []


def test_integrate_repairs_swapped_orders(scripted, make_vision, make_architecture):
    gateway, executor = scripted([make_architecture()])
    arch = IntegratorAgent(executor).integrate(("Build a task tracker",), _visions(make_vision))

    assert len(gateway.calls) == 1
    assert [n.path for n in arch.dependency_graph] == ["src/models.py", "src/service.py", "src/app.py"]
    assert [n.implementation_order for n in arch.dependency_graph] == [1, 2, 3]
    assert arch.integrated_vision.startswith("A Flask task tracker")
    assert arch.resolution_notes == ("Picked Flask over FastAPI",)
    assert arch.repair_notes


def test_prompt_carries_every_vision(scripted, make_vision, make_architecture):
    gateway, executor = scripted([make_architecture()])
    IntegratorAgent(executor).integrate(("Build a task tracker",), _visions(make_vision))
    system, user = gateway.calls[0]
    assert "Chief Technology Officer" in system
    assert "Specialist 1: Backend Developer" in user
    assert "Specialist 2: QA Engineer" in user
    assert "Build a task tracker" in user


def test_orphan_file_raises(scripted, make_vision, make_architecture):
    payload = make_architecture()
    payload["dependencyTree"]["files"].append({"name": "extra.py", "path": "src/extra.py"})
    _, executor = scripted([payload])
    with pytest.raises(InconsistentDependencyGraphError):
        IntegratorAgent(executor).integrate(("x",), _visions(make_vision))


def test_cycle_raises(scripted, make_vision, make_architecture):
    payload = make_architecture()
    payload["dependencyTree"]["files"][0]["dependencies"] = ["src/app.py"]
    _, executor = scripted([payload])
    with pytest.raises(CyclicDependencyError):
        IntegratorAgent(executor).integrate(("x",), _visions(make_vision))


def test_missing_dependency_tree_is_malformed(scripted, make_vision, make_architecture):
    payload = make_architecture()
    del payload["dependencyTree"]
    _, executor = scripted([payload])
    with pytest.raises(MalformedOutputError) as exc_info:
        IntegratorAgent(executor).integrate(("x",), _visions(make_vision))
    assert exc_info.value.field == "dependencyTree"
    assert exc_info.value.unit == "integration"


def test_format_visions_separates_blocks(make_vision):
    text = format_visions(_visions(make_vision))
    assert text.count("--------------") == 1
    assert '"name": "tracker"' in text
