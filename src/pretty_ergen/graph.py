from __future__ import annotations

import logging
from collections.abc import Iterator
from dataclasses import dataclass, field

from .entity import Entity

# ============================================================================
# Schema graph
#
# One node per registered entity, stored in an arena and addressed by index.
# Adjacency is kept as index lists:
#
#   outgoing  tables this table's foreign keys point at
#   incoming  tables whose foreign keys point at this table
#
# Parallel edges (several FK columns to the same table, self references) are
# kept as-is. Traversal state lives in a separate side-table so each region
# extraction starts from a clean slate.
# ============================================================================

logger = logging.getLogger(__name__)

# Expansion directions. The value is also the offset step taken when moving
# along an edge in that direction.
LEFT = -1
RIGHT = 1


@dataclass(slots=True)
class GraphNode:
    entity: Entity
    incoming: list[int] = field(default_factory=list)
    outgoing: list[int] = field(default_factory=list)

    @property
    def isolated(self) -> bool:
        return not self.incoming and not self.outgoing


@dataclass(slots=True)
class TraversalState:
    """Per-pass visited flags and offsets, parallel to the node arena."""

    visited: list[bool]
    offset: list[int]

    @classmethod
    def fresh(cls, size: int) -> TraversalState:
        return cls(visited=[False] * size, offset=[0] * size)


@dataclass(slots=True)
class Partition:
    """Isolated nodes plus one offset map per connected region.

    Region maps preserve registration order of their nodes.
    """

    isolated: list[int] = field(default_factory=list)
    regions: list[dict[int, int]] = field(default_factory=list)


class SchemaGraph:
    def __init__(self, entities: list[Entity]) -> None:
        self.nodes: list[GraphNode] = [GraphNode(e) for e in entities]
        self._link()
        self.cyclic = self._find_cyclic()

    def __len__(self) -> int:
        return len(self.nodes)

    def _link(self) -> None:
        by_table: dict[tuple[str, str], list[int]] = {}
        for i, node in enumerate(self.nodes):
            by_table.setdefault((node.entity.schema, node.entity.name), []).append(i)

        edges = 0
        for i, node in enumerate(self.nodes):
            for column in sorted(node.entity.columns, key=lambda c: c.order):
                ref = column.reference
                if not ref.valid:
                    continue
                targets = by_table.get((ref.schema, ref.table), [])
                if not targets:
                    logger.debug(
                        "Unresolved reference %s -> %s",
                        node.entity.qualified_name(column),
                        ref.fullname,
                    )
                for j in targets:
                    node.outgoing.append(j)
                    self.nodes[j].incoming.append(i)
                    edges += 1

        logger.debug("Linked %d tables with %d foreign-key edges", len(self.nodes), edges)

    def _find_cyclic(self) -> list[bool]:
        """Flag nodes that lie on a directed reference cycle.

        Kosaraju's two passes: finish order over outgoing edges, then
        components over incoming edges in reverse finish order. A node is
        cyclic when its component has more than one member or it references
        itself.
        """
        size = len(self)
        seen = [False] * size
        finished: list[int] = []
        for root in range(size):
            if seen[root]:
                continue
            seen[root] = True
            stack = [(root, iter(self.nodes[root].outgoing))]
            while stack:
                index, pending = stack[-1]
                for nxt in pending:
                    if not seen[nxt]:
                        seen[nxt] = True
                        stack.append((nxt, iter(self.nodes[nxt].outgoing)))
                        break
                else:
                    stack.pop()
                    finished.append(index)

        component = [-1] * size
        members: list[int] = []
        for root in reversed(finished):
            if component[root] != -1:
                continue
            label = len(members)
            component[root] = label
            count = 0
            todo = [root]
            while todo:
                index = todo.pop()
                count += 1
                for prev in self.nodes[index].incoming:
                    if component[prev] == -1:
                        component[prev] = label
                        todo.append(prev)
            members.append(count)

        return [
            members[component[i]] > 1 or i in node.outgoing
            for i, node in enumerate(self.nodes)
        ]

    # ------------------------------------------------------------------------
    # Traversal
    # ------------------------------------------------------------------------

    def _neighbors(self, index: int, direction: int) -> Iterator[tuple[int, int]]:
        """Yield (neighbor, step) pairs in visiting order for ``direction``.

        Expanding left visits incoming edges before outgoing ones; expanding
        right visits outgoing edges first. The order decides which path wins
        an offset in cyclic or diamond-shaped graphs.
        """
        node = self.nodes[index]
        if direction == LEFT:
            groups = ((node.incoming, LEFT), (node.outgoing, RIGHT))
        else:
            groups = ((node.outgoing, RIGHT), (node.incoming, LEFT))
        for neighbors, step in groups:
            for neighbor in neighbors:
                yield neighbor, step

    def expand(self, seed: int, direction: int, state: TraversalState) -> None:
        """Assign offsets to everything reachable from ``seed``.

        The seed is placed at offset 0. Moving along an incoming edge steps
        the offset by -1, along an outgoing edge by +1. A node already placed
        is only revisited when the new offset is further out in the step's
        direction. Nodes on a reference cycle are never re-entered while they
        are on the current path, and offsets stay below ``len(self) ** 2`` in
        magnitude; without both limits cycles recurse forever. Iterative to
        keep long reference chains off the interpreter stack.
        """
        limit = len(self) ** 2
        on_path: set[int] = set()
        stack: list[tuple[int, int, Iterator[tuple[int, int]]]] = []

        def enter(index: int, offset: int, heading: int) -> None:
            state.visited[index] = True
            state.offset[index] = offset
            if self.cyclic[index]:
                on_path.add(index)
            stack.append((index, offset, self._neighbors(index, heading)))

        enter(seed, 0, direction)
        while stack:
            index, offset, pending = stack[-1]
            for neighbor, step in pending:
                target = offset + step
                if neighbor in on_path or abs(target) >= limit:
                    continue
                if not state.visited[neighbor] or _further(state.offset[neighbor], target, step):
                    enter(neighbor, target, step)
                    break
            else:
                stack.pop()
                if self.cyclic[index]:
                    on_path.discard(index)

    def extract_region(self, active: list[int]) -> tuple[dict[int, int], list[int]]:
        """Pull the region containing ``active[0]`` out of ``active``.

        Returns the region's offsets and the remaining active nodes.
        """
        state = TraversalState.fresh(len(self))
        seed = active[0]
        self.expand(seed, LEFT, state)
        self.expand(seed, RIGHT, state)

        region: dict[int, int] = {}
        remaining: list[int] = []
        for i in active:
            if state.visited[i]:
                region[i] = state.offset[i]
            else:
                remaining.append(i)
        return region, remaining

    def partition(self) -> Partition:
        """Split nodes into the isolated set and connected regions."""
        result = Partition()
        active: list[int] = []
        for i, node in enumerate(self.nodes):
            if node.isolated:
                result.isolated.append(i)
            else:
                active.append(i)

        while active:
            region, active = self.extract_region(active)
            logger.debug(
                "Extracted region %d with %d tables", len(result.regions), len(region)
            )
            result.regions.append(region)
        return result


def _further(current: int, target: int, step: int) -> bool:
    if step < 0:
        return current > target
    return current < target
