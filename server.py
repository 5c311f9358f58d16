#!/usr/bin/env python3
"""archforge - HTTP adapter over the generation pipeline."""

import logging
import os

from flask import Flask, jsonify, request

from config.roles import ROLE_TABLE_VERSION
from core.errors import (
    CyclicDependencyError,
    InconsistentDependencyGraphError,
    MalformedOutputError,
    MissingPreconditionError,
    ModelCallError,
    PipelineError,
    PipelineRunError,
)
from core.orchestrator import Orchestrator
from manager.roles import select_roles
from utils.log import configure_logging

logger = logging.getLogger(__name__)

app = Flask(__name__)
orchestrator = Orchestrator()

# Most specific first; PipelineError is the fallback.
_STATUS = (
    (MissingPreconditionError, 400),
    (MalformedOutputError, 422),
    (InconsistentDependencyGraphError, 422),
    (CyclicDependencyError, 422),
    (ModelCallError, 502),
    (PipelineError, 500),
)


def _status_for(error):
    for cls, status in _STATUS:
        if isinstance(error, cls):
            return status
    return 500


@app.errorhandler(PipelineError)
def handle_pipeline_error(error):
    status = _status_for(error)
    body = {"error": str(error), "type": type(error).__name__}
    if isinstance(error, MalformedOutputError):
        body.update(unit=error.unit, field=error.field)
    elif isinstance(error, InconsistentDependencyGraphError):
        body.update(field=error.field, paths=list(error.paths))
    elif isinstance(error, CyclicDependencyError):
        body["cycle"] = list(error.cycle)
    elif isinstance(error, PipelineRunError):
        body.update(
            phase=error.phase,
            unit=error.unit,
            completed=[u.to_dict() for u in error.completed],
        )
    if status >= 500:
        logger.error("Request failed: %s", error)
    return jsonify(body), status


def _payload():
    data = request.get_json(silent=True)
    if not isinstance(data, dict):
        raise MissingPreconditionError("Request body must be a JSON object")
    return data


@app.route("/api/roles", methods=["GET", "POST"])
def api_roles():
    """Role selection for a requirement list (no model calls)."""
    if request.method == "POST":
        requirements = _payload().get("requirements") or []
    else:
        requirements = request.args.getlist("requirement")
    roles = select_roles(requirements) if requirements else []
    return jsonify({"roles": roles, "tableVersion": ROLE_TABLE_VERSION})


@app.route("/api/architect", methods=["POST"])
def api_architect():
    """Run one phase: level 1 (visions), 2 (integration) or 3 (implementation)."""
    data = _payload()
    level = data.get("level", 1)
    requirements = data.get("requirements")

    if level == 1:
        output = orchestrator.run_level1(requirements)
    elif level == 2:
        output = orchestrator.run_level2(requirements, data.get("level1Output"))
    elif level == 3:
        output = orchestrator.run_level3(requirements, data.get("level2Output"))
    else:
        return jsonify({"error": f"Unknown level: {level!r}"}), 400

    result = output.to_dict()
    result["level"] = level
    return jsonify(result)


@app.route("/api/book-generation", methods=["POST"])
def api_book_generation():
    """Start implementation-book generation; poll the returned id."""
    data = _payload()
    job_id = orchestrator.start_book_job(data.get("requirements"), data.get("level2Output"))
    job = orchestrator.job_status(job_id)
    return jsonify({
        "generationId": job_id,
        "status": job.status if job else "initializing",
        "message": "Book generation started",
    })


@app.route("/api/book-generation-status")
def api_book_generation_status():
    job_id = request.args.get("id")
    if not job_id:
        return jsonify({"error": "Missing id"}), 400
    job = orchestrator.job_status(job_id)
    if not job or job.kind != "book":
        return jsonify({"error": "Generation not found"}), 404
    return jsonify(job.to_dict())


@app.route("/api/implementation-job", methods=["POST"])
def api_implementation_job():
    """Start phase 3 as a background job. Graph errors are reported here."""
    data = _payload()
    job_id = orchestrator.start_implementation_job(data.get("requirements"), data.get("level2Output"))
    job = orchestrator.job_status(job_id)
    return jsonify({"jobId": job_id, "status": job.status if job else "initializing"})


@app.route("/api/jobs/<job_id>")
def api_job(job_id):
    job = orchestrator.job_status(job_id)
    if not job:
        return jsonify({"error": "Job not found"}), 404
    return jsonify(job.to_dict())


if __name__ == "__main__":
    configure_logging()
    port = int(os.environ.get("PORT", 5001))
    print(f"archforge running at http://localhost:{port}")
    app.run(debug=False, port=port)
