"""Declared response shapes for model calls.

A shape names the top-level fields a JSON payload must carry and their
types. Validation is intentionally shallow: nested structures are checked
by the stage that consumes them.
"""

from dataclasses import dataclass, field


@dataclass(frozen=True)
class ResponseShape:
    name: str
    required: dict = field(default_factory=dict)    # field -> type or tuple of types
    non_empty: tuple = ()                           # fields that must not be empty

    def validate(self, payload):
        """Return (field, problem) for the first violation, or None."""
        if not isinstance(payload, dict):
            return (None, f"expected a JSON object, got {type(payload).__name__}")
        for key, expected in self.required.items():
            if key not in payload or payload[key] is None:
                return (key, "missing required field")
            if not isinstance(payload[key], expected):
                return (key, f"expected {_type_names(expected)}, got {type(payload[key]).__name__}")
        for key in self.non_empty:
            if not payload.get(key):
                return (key, "must not be empty")
        return None

    def describe(self):
        """One-line field list appended to instructions."""
        return ", ".join(f'"{k}" ({_type_names(t)})' for k, t in self.required.items())


def _type_names(expected):
    if isinstance(expected, tuple):
        return " or ".join(_JSON_NAMES.get(t, t.__name__) for t in expected)
    return _JSON_NAMES.get(expected, expected.__name__)


_JSON_NAMES = {str: "string", list: "array", dict: "object", int: "integer", bool: "boolean"}


SPECIALIST_SHAPE = ResponseShape(
    name="specialist_vision",
    required={"visionText": str, "projectStructure": dict},
    non_empty=("visionText",),
)

INTEGRATION_SHAPE = ResponseShape(
    name="integrated_architecture",
    required={
        "integratedVision": str,
        "resolutionNotes": list,
        "rootFolder": dict,
        "dependencyTree": dict,
    },
    non_empty=("integratedVision", "rootFolder"),
)

IMPLEMENTATION_SHAPE = ResponseShape(
    name="file_implementation",
    required={"code": str},
)

OUTLINE_SHAPE = ResponseShape(
    name="book_outline",
    required={"title": str, "chapters": list},
    non_empty=("chapters",),
)
