"""Shared fixtures: a scripted model gateway and canned model payloads."""

import json

import pytest

from core.executor import ResilientCallExecutor


class ScriptedGateway:
    """Stands in for AnthropicGateway.

    responses is a list consumed in call order, or a callable
    (system, user) -> response. A response that is an Exception instance is
    raised instead of returned; dicts are sent back as JSON text.
    """

    def __init__(self, responses):
        self.responses = responses if callable(responses) else list(responses)
        self.calls = []

    def complete(self, system_instructions, user_content):
        self.calls.append((system_instructions, user_content))
        if callable(self.responses):
            response = self.responses(system_instructions, user_content)
        else:
            if not self.responses:
                raise AssertionError("ScriptedGateway ran out of responses")
            response = self.responses.pop(0)
        if isinstance(response, Exception):
            raise response
        if isinstance(response, dict):
            return json.dumps(response)
        return response


@pytest.fixture
def scripted():
    """Factory: scripted(responses) -> (gateway, executor) with no backoff."""
    def build(responses, max_attempts=3):
        gateway = ScriptedGateway(responses)
        executor = ResilientCallExecutor(gateway, max_attempts=max_attempts, base_delay=0)
        return gateway, executor
    return build


def vision_payload(role="Backend Developer"):
    return {
        "role": role,
        "expertise": f"{role} expertise",
        "visionText": f"{role} sees a small web app.",
        "projectStructure": {
            "rootFolder": {
                "name": "tracker",
                "files": [{"name": "README.md"}],
                "subfolders": [{"name": "src", "files": [{"name": "app.py"}]}],
            },
        },
    }


def architecture_payload():
    """Integration response for a three-file project.

    src/models.py <- src/service.py <- src/app.py, with the orders of the
    last two swapped by the model.
    """
    return {
        "integratedVision": "A Flask task tracker with a service layer.",
        "resolutionNotes": ["Picked Flask over FastAPI"],
        "rootFolder": {
            "name": "tracker",
            "description": "root",
            "files": [],
            "subfolders": [{
                "name": "src",
                "files": [
                    {"name": "models.py", "description": "ORM models"},
                    {"name": "service.py", "description": "Task service"},
                    {"name": "app.py", "description": "HTTP routes"},
                ],
                "subfolders": [],
            }],
        },
        "dependencyTree": {
            "files": [
                {"name": "models.py", "path": "src/models.py", "dependencies": [],
                 "implementationOrder": 1},
                {"name": "app.py", "path": "src/app.py",
                 "dependencies": ["src/models.py", "src/service.py"], "implementationOrder": 2},
                {"name": "service.py", "path": "src/service.py",
                 "dependencies": ["src/models.py"], "implementationOrder": 3},
            ],
        },
    }


@pytest.fixture
def make_vision():
    return vision_payload


@pytest.fixture
def make_architecture():
    return architecture_payload
