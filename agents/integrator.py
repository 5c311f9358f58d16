"""Integrator agent — merges specialist visions into one architecture."""

import json
import logging

from config import roles as role_table
from core.errors import NoVisionsAvailableError
from core.graph import build_graph
from core.shapes import INTEGRATION_SHAPE
from core.state import FolderNode, IntegratedArchitecture
from utils.template_engine import render_prompt

logger = logging.getLogger(__name__)


def format_visions(visions):
    """Serialize every specialist vision for the integration prompt."""
    blocks = []
    for i, sv in enumerate(visions, 1):
        blocks.append(
            f"Specialist {i}: {sv.role}\n"
            f"Expertise: {sv.expertise}\n"
            f"Vision:\n{sv.vision_text}\n"
            f"Project Structure:\n{json.dumps(sv.proposed_tree.to_dict(), indent=2)}\n"
        )
    return "\n\n--------------\n\n".join(blocks)


class IntegratorAgent:
    """One call that resolves conflicts and returns the canonical tree plus
    dependency graph, followed by local validation and order repair."""

    name = "integrator"

    def __init__(self, executor, role=None):
        self.executor = executor
        self.role = role or role_table.INTEGRATOR_ROLE

    def integrate(self, requirements, visions):
        if not visions:
            raise NoVisionsAvailableError("No specialist visions available to integrate")

        prompt = render_prompt("integrator", {"role": self.role})
        user_message = (
            "Requirements:\n" + "\n".join(requirements)
            + "\n\nSpecialist Visions:\n" + format_visions(visions)
        )

        logger.info("Integrating %d specialist vision(s)", len(visions))
        payload = self.executor.execute(prompt, user_message, INTEGRATION_SHAPE, unit="integration")

        root = FolderNode.from_dict(payload["rootFolder"])
        raw_files = payload["dependencyTree"].get("files")
        if not isinstance(raw_files, list):
            raw_files = []
        graph, repair_notes = build_graph(
            [f for f in raw_files if isinstance(f, dict)], root,
        )

        architecture = IntegratedArchitecture(
            integrated_vision=payload["integratedVision"],
            resolution_notes=tuple(str(n) for n in payload["resolutionNotes"]),
            root_folder=root,
            dependency_graph=graph,
            repair_notes=tuple(repair_notes),
        )
        logger.info(
            "Architecture has %d file(s), max order %d, %d repair(s)",
            len(graph), max(n.implementation_order for n in graph), len(repair_notes),
        )
        return architecture
