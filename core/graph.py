"""Dependency graph normalization, validation and order repair.

Edges are ground truth; the model's implementationOrder is only a hint.
Orders are always recomputed as the longest dependency chain below a node:
a file without dependencies gets 1, every other file gets one more than its
highest dependency.
"""

from __future__ import annotations

import logging
import posixpath
from dataclasses import replace

from core.errors import CyclicDependencyError, InconsistentDependencyGraphError
from core.state import FileNode, FolderNode

logger = logging.getLogger(__name__)


def _clean(path):
    p = (path or "").strip().replace("\\", "/")
    while p.startswith("./") or p.startswith("/"):
        p = p[2:] if p.startswith("./") else p[1:]
    return p.strip("/")


def _strip_root(p, root_name):
    if root_name and (p == root_name or p.startswith(root_name + "/")):
        p = p[len(root_name):]
    return p.strip("/")


def _with_name(p, name):
    if not name:
        return p
    if not p:
        return name
    if p == name or p.endswith("/" + name):
        return p
    return f"{p}/{name}"


def normalize_path(path, name="", root_name="", known=()):
    """Canonical relative path for a graph node.

    Strips leading "/" and "./" and the root folder name, and appends the
    file name when the path only names the containing directory. A path
    that is already in known is kept as is, so a top-level folder named
    like the root (app/app/page.tsx) is not mistaken for the root prefix.
    """
    p = _clean(path)
    exact = _with_name(p, name)
    if exact in known:
        return exact
    return _with_name(_strip_root(p, root_name), name)


def _resolve_ref(ref, keys, root_name):
    """Map a dependency reference onto a known node key, or None."""
    p = _clean(ref)
    if p in keys:
        return p
    p = _strip_root(p, root_name)
    if p in keys:
        return p
    # "dir/file.ts/file.ts" from callers that joined path and name twice
    head, tail = posixpath.split(p)
    if tail and posixpath.basename(head) == tail and head in keys:
        return head
    suffix_matches = [k for k in keys if k.endswith("/" + p)] if p else []
    if len(suffix_matches) == 1:
        return suffix_matches[0]
    return None


def tree_paths(root: FolderNode):
    return {path for path, _ in root.iter_files()}


def build_graph(raw_nodes, root: FolderNode):
    """Validate and repair a model-emitted dependency graph.

    raw_nodes: FileNode objects or dicts in the order the model emitted them.
    Returns (nodes, repair_notes) with nodes sorted by (order, emission index).

    Raises InconsistentDependencyGraphError when the graph and the folder
    tree disagree about which files exist, and CyclicDependencyError when the
    edges admit no topological order.
    """
    notes = []
    root_name = root.name
    tree = tree_paths(root)

    nodes = {}      # key -> FileNode, insertion order == emission order
    for raw in raw_nodes:
        node = raw if isinstance(raw, FileNode) else FileNode.from_dict(raw)
        name = node.name or posixpath.basename(_clean(node.path))
        if not name:
            raise InconsistentDependencyGraphError(
                "Dependency graph entry has neither a name nor a path", field="name",
            )
        key = normalize_path(node.path, name, root_name, tree)
        if key in nodes:
            notes.append(f"Dropped duplicate graph entry for {key}")
            continue
        nodes[key] = replace(node, name=name, path=key)

    if not nodes:
        raise InconsistentDependencyGraphError("Dependency graph has no files", field="files")

    _check_correspondence(set(nodes), tree)

    edges = {}
    for key, node in nodes.items():
        resolved = []
        for ref in node.dependencies:
            dep = _resolve_ref(ref, nodes, root_name)
            if dep is None:
                notes.append(f"{key}: dropped dependency on unknown file {ref!r}")
            elif dep == key:
                notes.append(f"{key}: dropped self-dependency")
            elif dep not in resolved:
                resolved.append(dep)
        edges[key] = resolved

    orders = compute_orders(edges)

    for key, node in nodes.items():
        if node.implementation_order != orders[key]:
            notes.append(
                f"{key}: implementationOrder {node.implementation_order} "
                f"recomputed to {orders[key]}"
            )

    dependents = {key: [] for key in nodes}
    for key, deps in edges.items():
        for dep in deps:
            dependents[dep].append(key)

    index = {key: i for i, key in enumerate(nodes)}
    result = [
        replace(
            node,
            dependencies=tuple(edges[key]),
            dependents=tuple(dependents[key]),
            implementation_order=orders[key],
        )
        for key, node in nodes.items()
    ]
    result.sort(key=lambda n: (n.implementation_order, index[n.path]))

    if notes:
        logger.info("Repaired dependency graph: %d change(s)", len(notes))
        for note in notes:
            logger.debug("graph repair: %s", note)
    return tuple(result), notes


def _check_correspondence(graph_keys, tree_keys):
    missing_from_tree = sorted(graph_keys - tree_keys)
    missing_from_graph = sorted(tree_keys - graph_keys)
    if not missing_from_tree and not missing_from_graph:
        return
    parts = []
    if missing_from_graph:
        parts.append("tree files missing from dependency graph: " + ", ".join(missing_from_graph))
    if missing_from_tree:
        parts.append("graph files missing from folder tree: " + ", ".join(missing_from_tree))
    raise InconsistentDependencyGraphError(
        "; ".join(parts), field="files", paths=missing_from_graph + missing_from_tree,
    )


def compute_orders(edges):
    """Longest-chain order for every key in edges ({key: [dependency keys]}).

    Raises CyclicDependencyError naming the first cycle found, walking keys in
    insertion order so the reported cycle is stable.
    """
    orders = {}
    visiting = []
    on_stack = set()

    def visit(key):
        if key in orders:
            return orders[key]
        if key in on_stack:
            start = visiting.index(key)
            raise CyclicDependencyError(visiting[start:] + [key])
        visiting.append(key)
        on_stack.add(key)
        deps = edges.get(key, ())
        order = 1 + max((visit(d) for d in deps), default=0)
        visiting.pop()
        on_stack.discard(key)
        orders[key] = order
        return order

    for key in edges:
        visit(key)
    return orders


def _escapes(path):
    p = (path or "").replace("\\", "/")
    return not p or p.startswith("/") or ".." in p.split("/")


def verify_graph(nodes):
    """Check an already-built graph without repairing it.

    Raises InconsistentDependencyGraphError for absolute or ".." paths,
    duplicate paths, unknown dependencies or an order that does not exceed a
    dependency's order, and CyclicDependencyError for cycles.
    """
    by_path = {}
    for node in nodes:
        if _escapes(node.path):
            raise InconsistentDependencyGraphError(
                f"Graph path is not relative to the project: {node.path}",
                field="path", paths=[node.path],
            )
        if node.path in by_path:
            raise InconsistentDependencyGraphError(
                f"Duplicate graph entry: {node.path}", field="path", paths=[node.path],
            )
        by_path[node.path] = node

    for node in nodes:
        unknown = [d for d in node.dependencies if d not in by_path]
        if unknown:
            raise InconsistentDependencyGraphError(
                f"{node.path} depends on unknown file(s): {', '.join(unknown)}",
                field="dependencies", paths=[node.path] + unknown,
            )

    compute_orders({n.path: list(n.dependencies) for n in nodes})

    for node in nodes:
        if node.implementation_order < 1:
            raise InconsistentDependencyGraphError(
                f"{node.path} has implementationOrder {node.implementation_order} < 1",
                field="implementationOrder", paths=[node.path],
            )
        for dep in node.dependencies:
            if by_path[dep].implementation_order >= node.implementation_order:
                raise InconsistentDependencyGraphError(
                    f"{node.path} (order {node.implementation_order}) does not come after "
                    f"its dependency {dep} (order {by_path[dep].implementation_order})",
                    field="implementationOrder", paths=[node.path, dep],
                )
    return by_path


def normalize_graph(nodes, root: FolderNode):
    """Canonical paths and dependency references for a caller-supplied graph.

    Applies the same path cleanup as build_graph but repairs nothing else:
    orders are kept and references that match no node are left as written,
    so verify_graph() still rejects them.
    """
    known = tree_paths(root)
    renamed = []
    for node in nodes:
        name = node.name or posixpath.basename(_clean(node.path))
        renamed.append(replace(node, name=name, path=normalize_path(node.path, name, root.name, known)))

    keys = {n.path for n in renamed}

    def resolve(refs):
        return tuple(_resolve_ref(r, keys, root.name) or r for r in refs)

    return tuple(
        replace(n, dependencies=resolve(n.dependencies), dependents=resolve(n.dependents))
        for n in renamed
    )
