#!/usr/bin/env python3

import logging
from typing import List, Optional, Sequence, Set, Tuple


class GraphColorizer:
    """
    Exact coloring of a constraint graph with a fixed number of colors.

    Pairwise edges require different colors at both ends. A hyperedge
    forbids all of its nodes sharing one color. Constraints are only ever
    added, so once colorize() returns None it stays None.

    colorize() is a deterministic backtracking search: nodes are visited by
    descending constraint degree (node id breaks ties), colors are tried in
    increasing order and a node never opens more than one new color beyond
    those already in use.
    """

    def __init__(self, node_count: int, color_count: int, logger: Optional[logging.Logger] = None):
        if color_count < 1:
            raise ValueError(f"color_count must be >= 1, got {color_count}")
        self.node_count = node_count
        self.color_count = color_count
        self.log = logger or logging.getLogger(__name__)
        self._neighbors: List[Set[int]] = [set() for _ in range(node_count)]
        self._pair_edges = 0
        self._hyperedges: List[Tuple[int, ...]] = []
        self._node_hyperedges: List[List[int]] = [[] for _ in range(node_count)]

    def size(self) -> int:
        return self.node_count

    def count_edges(self) -> int:
        return self._pair_edges + len(self._hyperedges)

    def add_edge(self, i: int, j: int):
        """Require nodes i and j to get different colors"""
        if i == j:
            # a node can never differ from itself
            self._add_hyperedge((i,))
            return
        if j in self._neighbors[i]:
            return
        self._neighbors[i].add(j)
        self._neighbors[j].add(i)
        self._pair_edges += 1

    def add_hyperedge(self, nodes: Sequence[int], size: Optional[int] = None):
        """Forbid the first size nodes (all of them by default) from sharing one color"""
        members = tuple(sorted(set(nodes[:size] if size is not None else nodes)))
        if not members:
            self.log.warning("Ignoring empty hyperedge")
            return
        if len(members) == 2:
            self.add_edge(members[0], members[1])
            return
        self._add_hyperedge(members)

    def _add_hyperedge(self, members: Tuple[int, ...]):
        edge_id = len(self._hyperedges)
        self._hyperedges.append(members)
        for node in members:
            self._node_hyperedges[node].append(edge_id)

    # -------------------- search --------------------

    def _node_order(self) -> List[int]:
        degree = [len(self._neighbors[n]) + len(self._node_hyperedges[n]) for n in range(self.node_count)]
        return sorted(range(self.node_count), key=lambda n: (-degree[n], n))

    def _allowed(self, node: int, color: int, colors: List[int]) -> bool:
        for other in self._neighbors[node]:
            if colors[other] == color:
                return False
        for edge_id in self._node_hyperedges[node]:
            if all(colors[other] == color for other in self._hyperedges[edge_id] if other != node):
                return False
        return True

    def colorize(self) -> Optional[List[int]]:
        """A coloring satisfying every constraint, or None if there is none"""
        order = self._node_order()
        n = len(order)
        colors = [-1] * self.node_count
        next_color = [0] * n
        # highest color used by the nodes placed before each position
        ceiling = [-1] * (n + 1)

        pos = 0
        while pos < n:
            node = order[pos]
            limit = min(self.color_count - 1, ceiling[pos] + 1)
            color = next_color[pos]
            while color <= limit and not self._allowed(node, color, colors):
                color += 1

            if color > limit:
                next_color[pos] = 0
                pos -= 1
                if pos < 0:
                    return None
                prev = order[pos]
                next_color[pos] = colors[prev] + 1
                colors[prev] = -1
                continue

            colors[node] = color
            ceiling[pos + 1] = max(ceiling[pos], color)
            pos += 1

        return colors
