"""Specialist agent — one vision and proposed file tree per expert role."""

import logging
from concurrent.futures import ThreadPoolExecutor
from dataclasses import dataclass, field, replace

from config.defaults import DEFAULTS
from core.errors import MissingPreconditionError, PipelineError
from core.shapes import SPECIALIST_SHAPE
from core.state import RoleFailure, SpecialistVision
from manager.roles import role_focus, vision_roles
from utils.template_engine import render_prompt

logger = logging.getLogger(__name__)


@dataclass
class VisionBatch:
    visions: list[SpecialistVision] = field(default_factory=list)
    failures: list[RoleFailure] = field(default_factory=list)


class SpecialistAgent:
    """Asks each specialist role for its vision of the project.

    Calls are isolated: a failing role is recorded in the batch's failures
    and never discards the visions of other roles.
    """

    name = "specialist"

    def __init__(self, executor, workers=None):
        self.executor = executor
        self.workers = max(1, workers or DEFAULTS["specialist_workers"])

    def generate_vision(self, requirements, role):
        focus = "\n".join(f"- {item}" for item in role_focus(role)) or f"- The concerns of a {role}"
        prompt = render_prompt("specialist", {"role": role, "focus": focus})
        user_message = "Requirements:\n" + "\n".join(requirements)

        payload = self.executor.execute(prompt, user_message, SPECIALIST_SHAPE, unit=f"vision:{role}")
        # the role is ours to name, whatever the model echoed back
        return replace(SpecialistVision.from_dict(payload), role=role)

    def generate_visions(self, requirements, roles):
        """Run one vision call per non-integrator role. Returns a VisionBatch
        with visions and failures both in role order."""
        targets = vision_roles(roles)
        logger.info("Generating %d specialist vision(s): %s", len(targets), ", ".join(targets))

        if self.workers == 1 or len(targets) < 2:
            outcomes = [self._attempt(requirements, role, i, len(targets)) for i, role in enumerate(targets)]
        else:
            with ThreadPoolExecutor(max_workers=min(self.workers, len(targets))) as pool:
                futures = [
                    pool.submit(self._attempt, requirements, role, i, len(targets))
                    for i, role in enumerate(targets)
                ]
                outcomes = [f.result() for f in futures]

        batch = VisionBatch()
        for outcome in outcomes:
            if isinstance(outcome, RoleFailure):
                batch.failures.append(outcome)
            else:
                batch.visions.append(outcome)
        return batch

    def _attempt(self, requirements, role, index, total):
        logger.info("Vision %d/%d: %s", index + 1, total, role)
        try:
            return self.generate_vision(requirements, role)
        except MissingPreconditionError:
            # a missing API key fails every role the same way
            raise
        except PipelineError as e:
            logger.error("Specialist %s failed: %s", role, e)
            return RoleFailure(role=role, error=f"{type(e).__name__}: {e}")
