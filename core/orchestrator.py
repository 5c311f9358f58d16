"""Main pipeline orchestrator — phase state machine plus polled background jobs."""

import logging
import threading
from dataclasses import replace

from agents.book_writer import BookWriter
from agents.implementer import ImplementerAgent
from agents.integrator import IntegratorAgent
from agents.specialist import SpecialistAgent
from core.errors import MissingPreconditionError, PipelineError, PipelineRunError
from core.executor import ResilientCallExecutor
from core.graph import normalize_graph
from core.jobs import InMemoryJobStore
from core.scheduler import DependencyScheduler
from core.state import (
    Level1Output,
    Level2Output,
    Level3Output,
    PipelineState,
    normalize_requirements,
)
from manager.roles import select_roles
from utils.llm import AnthropicGateway

logger = logging.getLogger(__name__)


def _level1(value):
    if value is None:
        raise MissingPreconditionError("level1Output is required for integration")
    return value if isinstance(value, Level1Output) else Level1Output.from_dict(value)


def _level2(value):
    if value is None:
        raise MissingPreconditionError("level2Output is required for implementation")
    level2 = value if isinstance(value, Level2Output) else Level2Output.from_dict(value)
    architecture = level2.architecture
    graph = normalize_graph(architecture.dependency_graph, architecture.root_folder)
    return replace(level2, architecture=replace(architecture, dependency_graph=graph))


class Orchestrator:
    """Runs the three phases, individually or end to end.

    Every phase validates its inputs before the first model call. Phases
    run sequentially; within phase 3 the scheduler's order guarantees a file
    is generated only after all of its dependencies.
    """

    def __init__(self, gateway=None, executor=None, job_store=None):
        self.executor = executor or ResilientCallExecutor(gateway or AnthropicGateway())
        self.specialists = SpecialistAgent(self.executor)
        self.integrator = IntegratorAgent(self.executor)
        self.implementer = ImplementerAgent(self.executor)
        self.book_writer = BookWriter(self.executor)
        self.scheduler = DependencyScheduler()
        self.jobs = job_store or InMemoryJobStore()

    # --- Phase 1 ---

    def run_level1(self, requirements):
        requirements = normalize_requirements(requirements)
        roles = select_roles(requirements)
        logger.info("Selected specialists: %s", ", ".join(roles))

        batch = self.specialists.generate_visions(requirements, roles)
        if batch.failures:
            logger.warning(
                "%d specialist(s) failed: %s",
                len(batch.failures), ", ".join(f.role for f in batch.failures),
            )
        return Level1Output(
            specialists=tuple(batch.visions),
            roles=tuple(roles),
            failures=tuple(batch.failures),
        )

    # --- Phase 2 ---

    def run_level2(self, requirements, level1_output):
        requirements = normalize_requirements(requirements)
        level1 = _level1(level1_output)
        architecture = self.integrator.integrate(requirements, list(level1.specialists))
        return Level2Output(architecture=architecture)

    # --- Phase 3 ---

    def run_level3(self, requirements, level2_output, on_progress=None):
        """Generate every file in dependency order.

        on_progress(completed, total, current_label) is called before each
        file and once at the end. A failing file raises PipelineRunError with
        the files completed before it.
        """
        requirements = normalize_requirements(requirements)
        level2 = _level2(level2_output)
        architecture = level2.architecture
        ordered = self.scheduler.schedule(architecture.dependency_graph)

        completed = {}
        units = []
        for node in ordered:
            if on_progress:
                on_progress(len(units), len(ordered), node.path)
            context = self.scheduler.dependency_context(node, completed)
            try:
                unit = self.implementer.generate_unit(
                    node, context, requirements, architecture.integrated_vision, book=level2.book,
                )
            except PipelineError as e:
                logger.error("Implementation failed at %s: %s", node.path, e)
                raise PipelineRunError("implementation", node.path, e, completed=units) from e
            completed[node.path] = unit
            units.append(unit)

        if on_progress:
            on_progress(len(units), len(ordered), "Complete")
        logger.info("Implemented %d file(s)", len(units))
        return Level3Output(implementations=tuple(units))

    # --- End to end ---

    def run_full(self, requirements, with_book=False):
        """Run all phases. Returns the PipelineState; on failure its phase is
        "failed", errors says where, and finished outputs are kept."""
        state = PipelineState(requirements=normalize_requirements(requirements))
        try:
            state.level1 = self.run_level1(state.requirements)
            for failure in state.level1.failures:
                state.errors.append(f"specialist {failure.role}: {failure.error}")

            state.phase = "integration"
            state.level2 = self.run_level2(state.requirements, state.level1)

            if with_book:
                book = self.book_writer.write_book(state.level2.architecture, state.requirements)
                state.level2 = Level2Output(architecture=state.level2.architecture, book=book)

            state.phase = "implementation"
            state.level3 = self.run_level3(state.requirements, state.level2)
            state.phase = "done"
        except PipelineRunError as e:
            state.errors.append(str(e))
            if e.phase == "implementation":
                state.level3 = Level3Output(implementations=tuple(e.completed))
            state.phase = "failed"
        except PipelineError as e:
            state.errors.append(f"{state.phase} failed: {e}")
            state.phase = "failed"
        return state

    # --- Background jobs ---

    def start_book_job(self, requirements, level2_output, background=True):
        """Start implementation-book generation. Returns the job id at once."""
        requirements = normalize_requirements(requirements)
        level2 = _level2(level2_output)
        job = self.jobs.create(kind="book")
        self._launch(job.id, self._run_book_job, (job.id, requirements, level2), background)
        return job.id

    def start_implementation_job(self, requirements, level2_output, background=True):
        """Start phase 3 as a polled job. Graph errors surface here, before
        the job exists."""
        requirements = normalize_requirements(requirements)
        level2 = _level2(level2_output)
        self.scheduler.schedule(level2.architecture.dependency_graph)
        job = self.jobs.create(kind="implementation")
        self._launch(job.id, self._run_implementation_job, (job.id, requirements, level2), background)
        return job.id

    def job_status(self, job_id):
        return self.jobs.get(job_id)

    def _launch(self, job_id, target, args, background):
        if not background:
            target(*args)
            return
        thread = threading.Thread(target=target, args=args, name=f"job-{job_id[:8]}", daemon=True)
        thread.start()

    def _progress(self, job_id):
        def report(completed, total, label):
            self.jobs.update(
                job_id,
                status="in-progress",
                completed_units=completed,
                total_units=total,
                current_unit_label=label,
            )
        return report

    def _run_book_job(self, job_id, requirements, level2):
        self.jobs.update(job_id, status="in-progress", current_unit_label="Outline")
        try:
            book = self.book_writer.write_book(
                level2.architecture, requirements, on_progress=self._progress(job_id),
            )
        except PipelineRunError as e:
            self._fail_job(job_id, e, [u.to_dict() for u in e.completed])
            return
        except Exception as e:
            # thread boundary: record the failure for pollers
            logger.exception("Book job %s failed", job_id)
            self._fail_job(job_id, e)
            return
        self.jobs.update(
            job_id,
            status="complete",
            current_unit_label="Complete",
            result={"implementationBook": book.to_dict()},
        )

    def _run_implementation_job(self, job_id, requirements, level2):
        self.jobs.update(job_id, status="in-progress")
        try:
            level3 = self.run_level3(requirements, level2, on_progress=self._progress(job_id))
        except PipelineRunError as e:
            self._fail_job(job_id, e, [u.to_dict() for u in e.completed])
            return
        except Exception as e:
            logger.exception("Implementation job %s failed", job_id)
            self._fail_job(job_id, e)
            return
        self.jobs.update(
            job_id,
            status="complete",
            current_unit_label="Complete",
            result=level3.to_dict(),
        )

    def _fail_job(self, job_id, error, completed=None):
        logger.error("Job %s failed: %s", job_id, error)
        self.jobs.update(
            job_id,
            status="error",
            error=str(error) or type(error).__name__,
            result={"completed": completed or []},
        )
