"""Dependency scheduler: walk the graph in implementation order."""

import logging

from core.errors import InconsistentDependencyGraphError
from core.graph import verify_graph

logger = logging.getLogger(__name__)


class DependencyScheduler:
    """Orders graph nodes and assembles per-node dependency context.

    Sorting by implementation_order is enough once verify_graph() has
    confirmed every node's order exceeds its dependencies' orders; ties keep
    the graph's own order.
    """

    def schedule(self, graph):
        verify_graph(graph)
        ordered = sorted(graph, key=lambda n: n.implementation_order)
        logger.info(
            "Scheduled %d file(s) across %d order level(s)",
            len(ordered), len({n.implementation_order for n in ordered}),
        )
        return ordered

    def dependency_context(self, node, completed):
        """Completed units for node's dependencies, in declared order.

        completed maps path -> GeneratedUnit. A dependency that has not
        completed is a scheduling bug, never something to paper over.
        """
        context = []
        for dep in node.dependencies:
            unit = completed.get(dep)
            if unit is None or not unit.complete:
                raise InconsistentDependencyGraphError(
                    f"{node.path} scheduled before its dependency {dep} completed",
                    field="dependencies", paths=[node.path, dep],
                )
            context.append(unit)
        return context

    def walk(self, graph, completed=None):
        """Yield (node, dependency_context) in schedule order.

        The caller must add each node's finished unit to `completed` before
        advancing the iterator.
        """
        completed = {} if completed is None else completed
        for node in self.schedule(graph):
            yield node, self.dependency_context(node, completed)
