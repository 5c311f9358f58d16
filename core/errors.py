"""Pipeline error taxonomy."""


class PipelineError(Exception):
    """Base class for every error raised by the generation pipeline."""


class ModelCallError(PipelineError):
    """Transport-level failure talking to the model provider.

    retryable: whether the executor may try the same request again.
    attempts: how many attempts were made before giving up (0 when raised
        by the gateway itself).
    """

    def __init__(self, message, retryable=True, attempts=0, cause=None):
        super().__init__(message)
        self.retryable = retryable
        self.attempts = attempts
        self.cause = cause


class NoPayloadFoundError(PipelineError):
    """Model text contains no structured region at all."""


class MalformedOutputError(PipelineError):
    """Extraction, parsing or shape validation failed for a model response.

    unit names the stage/unit the call was made for and field the offending
    field (None when the payload could not be parsed at all).
    """

    def __init__(self, message, unit="", field=None, raw_text=""):
        super().__init__(message)
        self.unit = unit
        self.field = field
        self.raw_text = raw_text


class MissingPreconditionError(PipelineError):
    """The caller did not supply the prior-phase output a phase needs."""


class NoVisionsAvailableError(MissingPreconditionError):
    """Integration was asked to run without any specialist visions."""


class InconsistentDependencyGraphError(PipelineError):
    """The dependency graph contradicts the folder tree or its own edges."""

    def __init__(self, message, field="", paths=()):
        super().__init__(message)
        self.field = field
        self.paths = list(paths)


class CyclicDependencyError(PipelineError):
    """No topological order exists for the dependency graph."""

    def __init__(self, cycle):
        super().__init__("Dependency cycle: " + " -> ".join(cycle))
        self.cycle = list(cycle)


class PipelineRunError(PipelineError):
    """A unit failed mid-run. Units completed before it are kept in `completed`."""

    def __init__(self, phase, unit, cause, completed=()):
        super().__init__(f"{phase} failed at {unit or 'setup'}: {cause}")
        self.phase = phase
        self.unit = unit
        self.cause = cause
        self.completed = list(completed)
