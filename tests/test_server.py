"""Tests for server.py Flask endpoints — all orchestrator calls are mocked."""

from unittest.mock import MagicMock, patch

import pytest

from core.errors import (
    CyclicDependencyError,
    MalformedOutputError,
    MissingPreconditionError,
    ModelCallError,
    PipelineRunError,
)
from core.state import GeneratedUnit, GenerationJob, Level1Output, Level3Output


@pytest.fixture
def client():
    import server
    server.app.config["TESTING"] = True
    with server.app.test_client() as c:
        yield c


def _unit(path):
    return GeneratedUnit(path=path, name=path, content="x", language="python")


# ---------------------------------------------------------------------------
# GET /api/roles
# ---------------------------------------------------------------------------

def test_roles_post(client):
    resp = client.post("/api/roles", json={"requirements": ["Build a task tracker with user accounts"]})
    assert resp.status_code == 200
    data = resp.get_json()
    assert data["roles"][-1] == "Chief Technology Officer"
    assert "UI/UX Designer" in data["roles"]
    assert data["tableVersion"]


def test_roles_get(client):
    resp = client.get("/api/roles?requirement=store+data+in+sql")
    assert "Database Architect" in resp.get_json()["roles"]


# ---------------------------------------------------------------------------
# POST /api/architect
# ---------------------------------------------------------------------------

def test_architect_level1(client):
    output = Level1Output(specialists=(), roles=("Backend Developer", "Chief Technology Officer"))
    with patch("server.orchestrator.run_level1", return_value=output) as mock_run:
        resp = client.post("/api/architect", json={"level": 1, "requirements": ["a todo app"]})
    assert resp.status_code == 200
    data = resp.get_json()
    assert data["level"] == 1
    assert data["roles"] == ["Backend Developer", "Chief Technology Officer"]
    mock_run.assert_called_once_with(["a todo app"])


def test_architect_level2_passes_level1_output(client):
    with patch("server.orchestrator.run_level2") as mock_run:
        mock_run.return_value.to_dict.return_value = {"integratedVision": "v"}
        resp = client.post("/api/architect", json={
            "level": 2, "requirements": ["r"], "level1Output": {"specialists": []},
        })
    assert resp.status_code == 200
    mock_run.assert_called_once_with(["r"], {"specialists": []})


def test_architect_level3(client):
    output = Level3Output(implementations=(_unit("src/app.py"),))
    with patch("server.orchestrator.run_level3", return_value=output):
        resp = client.post("/api/architect", json={"level": 3, "requirements": ["r"], "level2Output": {}})
    assert resp.get_json()["implementations"][0]["path"] == "src/app.py"


def test_architect_unknown_level(client):
    resp = client.post("/api/architect", json={"level": 7, "requirements": ["r"]})
    assert resp.status_code == 400


def test_architect_missing_body(client):
    resp = client.post("/api/architect", data="not json", content_type="text/plain")
    assert resp.status_code == 400


def test_architect_missing_requirements(client):
    resp = client.post("/api/architect", json={"level": 1})
    assert resp.status_code == 400
    assert resp.get_json()["type"] == "MissingPreconditionError"


def test_architect_level2_without_level1(client):
    resp = client.post("/api/architect", json={"level": 2, "requirements": ["r"]})
    assert resp.status_code == 400


@pytest.mark.parametrize("error,status", [
    (MissingPreconditionError("no"), 400),
    (MalformedOutputError("bad", unit="integration", field="rootFolder"), 422),
    (CyclicDependencyError(["a", "b", "a"]), 422),
    (ModelCallError("down", attempts=3), 502),
])
def test_error_status_mapping(client, error, status):
    with patch("server.orchestrator.run_level2", side_effect=error):
        resp = client.post("/api/architect", json={"level": 2, "requirements": ["r"], "level1Output": {}})
    assert resp.status_code == status
    assert "error" in resp.get_json()


def test_malformed_error_body(client):
    error = MalformedOutputError("bad", unit="integration", field="rootFolder")
    with patch("server.orchestrator.run_level2", side_effect=error):
        resp = client.post("/api/architect", json={"level": 2, "requirements": ["r"], "level1Output": {}})
    data = resp.get_json()
    assert data["unit"] == "integration"
    assert data["field"] == "rootFolder"


def test_run_error_reports_completed_units(client):
    error = PipelineRunError("implementation", "src/b.py", ModelCallError("down"), completed=[_unit("src/a.py")])
    with patch("server.orchestrator.run_level3", side_effect=error):
        resp = client.post("/api/architect", json={"level": 3, "requirements": ["r"], "level2Output": {}})
    assert resp.status_code == 500
    data = resp.get_json()
    assert data["unit"] == "src/b.py"
    assert [u["path"] for u in data["completed"]] == ["src/a.py"]


# ---------------------------------------------------------------------------
# Book generation jobs
# ---------------------------------------------------------------------------

def test_book_generation_returns_id(client):
    job = GenerationJob(id="job-1", kind="book")
    with patch("server.orchestrator.start_book_job", return_value="job-1") as mock_start, \
         patch("server.orchestrator.job_status", return_value=job):
        resp = client.post("/api/book-generation", json={"requirements": ["r"], "level2Output": {"x": 1}})
    assert resp.status_code == 200
    data = resp.get_json()
    assert data["generationId"] == "job-1"
    assert data["status"] == "initializing"
    mock_start.assert_called_once_with(["r"], {"x": 1})


def test_book_generation_precondition(client):
    resp = client.post("/api/book-generation", json={"requirements": ["r"]})
    assert resp.status_code == 400


def test_book_status_missing_id(client):
    resp = client.get("/api/book-generation-status")
    assert resp.status_code == 400


def test_book_status_not_found(client):
    resp = client.get("/api/book-generation-status?id=nope")
    assert resp.status_code == 404


def test_book_status_progress(client):
    job = GenerationJob(id="job-1", kind="book", status="in-progress",
                        total_units=4, completed_units=1, current_unit_label="Models")
    with patch("server.orchestrator.job_status", return_value=job):
        resp = client.get("/api/book-generation-status?id=job-1")
    data = resp.get_json()
    assert data["progress"] == 25.0
    assert data["currentUnit"] == "Models"
    assert data["isComplete"] is False


def test_book_status_ignores_implementation_jobs(client):
    job = GenerationJob(id="job-2", kind="implementation")
    with patch("server.orchestrator.job_status", return_value=job):
        resp = client.get("/api/book-generation-status?id=job-2")
    assert resp.status_code == 404


# ---------------------------------------------------------------------------
# Implementation jobs
# ---------------------------------------------------------------------------

def test_implementation_job(client):
    job = GenerationJob(id="job-3", kind="implementation")
    with patch("server.orchestrator.start_implementation_job", return_value="job-3"), \
         patch("server.orchestrator.job_status", return_value=job):
        resp = client.post("/api/implementation-job", json={"requirements": ["r"], "level2Output": {}})
    assert resp.get_json() == {"jobId": "job-3", "status": "initializing"}


def test_job_status(client):
    job = GenerationJob(id="job-3", kind="implementation", status="complete",
                        result={"implementations": []})
    with patch("server.orchestrator.job_status", return_value=job):
        resp = client.get("/api/jobs/job-3")
    data = resp.get_json()
    assert data["isComplete"] is True
    assert data["progress"] == 100.0


def test_job_status_not_found(client):
    resp = client.get("/api/jobs/unknown")
    assert resp.status_code == 404


def test_job_status_uses_store(client):
    import server
    fake = MagicMock()
    fake.job_status.return_value = None
    with patch.object(server, "orchestrator", fake):
        resp = client.get("/api/jobs/abc")
    assert resp.status_code == 404
    fake.job_status.assert_called_once_with("abc")


def test_missing_api_key_is_a_client_error(client):
    error = MissingPreconditionError("ANTHROPIC_API_KEY environment variable is not set.")
    with patch("server.orchestrator.run_level1", side_effect=error):
        resp = client.post("/api/architect", json={"level": 1, "requirements": ["a todo app"]})
    assert resp.status_code == 400
    assert "ANTHROPIC_API_KEY" in resp.get_json()["error"]
