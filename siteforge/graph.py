"""
Resource Graph Module

Responsibility:
- Collect resource declarations, enforcing unique ids at insertion time
- Resolve depends_on references into a directed acyclic graph
- Compute a deterministic topological creation order

Ordering is Kahn's algorithm with ties broken by declaration order, so a
node never moves ahead of an earlier-declared node unless a dependency
forces it to. This is PURE deterministic logic.
"""

import heapq
import logging
from typing import Dict, Iterable, List, Optional, Sequence

from siteforge.errors import CycleError, DuplicateIdError, UnknownReferenceError
from siteforge.models import ResourceKind, ResourceNode

logger = logging.getLogger(__name__)


class ResourceGraph:
    """
    Append-only collection of resource declarations.

    Dependency targets are not checked on declare() so that resources can
    be declared in any order; build() checks them.
    """

    def __init__(self):
        self._nodes: Dict[str, ResourceNode] = {}

    def declare(self, kind, node_id: str, properties: Optional[dict] = None,
                depends_on: Iterable[str] = ()) -> ResourceNode:
        """
        Declare a resource.

        Raises DuplicateIdError if the id is taken; the graph is left
        untouched in that case. The stored node holds a read-only
        copy of properties.
        """
        if node_id in self._nodes:
            raise DuplicateIdError(node_id)

        node = ResourceNode(
            id=node_id,
            kind=ResourceKind(kind),
            properties=properties or {},
            depends_on=_unique(depends_on),
        )
        self._nodes[node_id] = node
        logger.debug("Declared %s '%s' depending on %s", node.kind.value, node_id, list(node.depends_on))
        return node

    @property
    def nodes(self) -> tuple:
        """Declared nodes in declaration order."""
        return tuple(self._nodes.values())

    def get(self, node_id: str) -> Optional[ResourceNode]:
        return self._nodes.get(node_id)

    def build(self) -> "ResolvedGraph":
        return build(self.nodes)

    def __contains__(self, node_id) -> bool:
        return node_id in self._nodes

    def __len__(self) -> int:
        return len(self._nodes)

    def __iter__(self):
        return iter(self._nodes.values())


class ResolvedGraph:
    """Nodes in a valid topological order. Immutable."""

    def __init__(self, order: Sequence[ResourceNode]):
        self._order = tuple(order)
        self._positions = {node.id: i for i, node in enumerate(self._order)}
        self._dependents: Dict[str, List[str]] = {node.id: [] for node in self._order}
        for node in self._order:
            for dep_id in node.depends_on:
                self._dependents[dep_id].append(node.id)

    @property
    def order(self) -> tuple:
        return self._order

    def ids(self) -> List[str]:
        return [node.id for node in self._order]

    def get(self, node_id: str) -> Optional[ResourceNode]:
        position = self._positions.get(node_id)
        return None if position is None else self._order[position]

    def position(self, node_id: str) -> int:
        return self._positions[node_id]

    def dependents(self, node_id: str) -> List[str]:
        """Ids of the nodes that depend directly on node_id."""
        return list(self._dependents[node_id])

    def __len__(self) -> int:
        return len(self._order)

    def __iter__(self):
        return iter(self._order)


def build(nodes: Sequence[ResourceNode]) -> ResolvedGraph:
    """
    Resolve a sequence of nodes into a ResolvedGraph.

    Raises:
        DuplicateIdError: two nodes share an id
        UnknownReferenceError: a node depends on an id that is not present
        CycleError: the dependencies form a cycle
    """
    nodes = list(nodes)
    index: Dict[str, int] = {}

    for i, node in enumerate(nodes):
        if node.id in index:
            raise DuplicateIdError(node.id)
        index[node.id] = i

    for node in nodes:
        for dep_id in node.depends_on:
            if dep_id not in index:
                raise UnknownReferenceError(dep_id, node.id)

    in_degree = [0] * len(nodes)
    dependents: List[List[int]] = [[] for _ in nodes]
    for i, node in enumerate(nodes):
        for dep_id in node.depends_on:
            in_degree[i] += 1
            dependents[index[dep_id]].append(i)

    ready = [i for i, degree in enumerate(in_degree) if degree == 0]
    heapq.heapify(ready)
    order = []

    while ready:
        i = heapq.heappop(ready)
        order.append(nodes[i])
        for j in dependents[i]:
            in_degree[j] -= 1
            if in_degree[j] == 0:
                heapq.heappush(ready, j)

    if len(order) < len(nodes):
        remaining = [node for i, node in enumerate(nodes) if in_degree[i] > 0]
        cycle = _find_cycle(remaining, index)
        logger.debug("Cycle detected among %s", cycle)
        raise CycleError(cycle)

    logger.debug("Resolved order: %s", [node.id for node in order])
    return ResolvedGraph(order)


def _find_cycle(remaining: List[ResourceNode], index: Dict[str, int]) -> List[str]:
    """
    Extract one concrete cycle from the nodes Kahn's algorithm left behind.

    Every remaining node still has a remaining dependency, so following the
    first such dependency from any node must eventually revisit a node.
    """
    by_id = {node.id: node for node in remaining}
    path: List[str] = []
    seen: Dict[str, int] = {}
    current = remaining[0].id

    while current not in seen:
        seen[current] = len(path)
        path.append(current)
        current = next(dep for dep in by_id[current].depends_on if dep in by_id)

    cycle = path[seen[current]:]
    start = min(range(len(cycle)), key=lambda k: index[cycle[k]])
    return cycle[start:] + cycle[:start]


def _unique(ids: Iterable[str]) -> tuple:
    result = []
    for node_id in ids:
        if node_id not in result:
            result.append(node_id)
    return tuple(result)
