"""
Hierarchy builder for query-log and span-log nodes.
"""

import logging
from typing import Dict, List, Optional

from ..core.types import ExecutionNode

logger = logging.getLogger(__name__)


class HierarchyBuilder:
    """Builds a forest from a flat list of normalized nodes."""

    def build_forest(self, nodes: List[ExecutionNode]) -> List[ExecutionNode]:
        """
        Link nodes to their parents and return the ordered root list.

        A node is a root when its parent key is empty, equals its own key,
        or does not resolve to any node of the batch. Parent cycles
        (A -> B -> A) are broken by promoting the first node of the cycle,
        in input order, to a root.

        Children and roots are sorted ascending by start time; ties keep
        their input order.

        Args:
            nodes: Normalized nodes of one query or one trace (modified in-place)

        Returns:
            Root nodes of the forest
        """
        # Pass 1: resolve correlation keys, last node wins on duplicates
        key_map: Dict[str, int] = {}
        for index, node in enumerate(nodes):
            key_map[node['correlation_key']] = index

        parents: List[Optional[int]] = []
        for node in nodes:
            parent_key = node['parent_key']
            if parent_key == '' or parent_key == node['correlation_key']:
                parents.append(None)
            else:
                parents.append(key_map.get(parent_key))

        # Pass 2: break cycles longer than a self reference
        self._break_cycles(nodes, parents)

        # Pass 3: attach children in input order
        roots = []
        for index, node in enumerate(nodes):
            parent_index = parents[index]
            if parent_index is None:
                roots.append(node)
                continue
            parent = nodes[parent_index]
            parent['children'].append(node)
            parent['child_count'] = len(parent['children'])

        # Pass 4: depths and sibling order
        roots.sort(key=lambda n: n['start_time'])
        self._assign_depths_and_sort(roots)

        logger.debug("Built forest of %d roots from %d nodes", len(roots), len(nodes))
        return roots

    @staticmethod
    def _break_cycles(nodes: List[ExecutionNode], parents: List[Optional[int]]) -> None:
        """
        Walk every parent chain once and cut the chain where it loops.

        Args:
            nodes: Normalized nodes
            parents: Parent index per node, None for roots (modified in-place)
        """
        unvisited, in_walk, done = 0, 1, 2
        state = [unvisited] * len(nodes)

        for start in range(len(nodes)):
            if state[start] != unvisited:
                continue
            walk = []
            current = start
            while current is not None and state[current] == unvisited:
                state[current] = in_walk
                walk.append(current)
                current = parents[current]

            if current is not None and state[current] == in_walk:
                # The chain returned to a node of this walk
                cycle_start = walk.index(current)
                cycle = walk[cycle_start:]
                entry = min(cycle)
                logger.warning(
                    "Parent cycle of %d nodes detected, promoting '%s' to root",
                    len(cycle), nodes[entry]['correlation_key']
                )
                parents[entry] = None

            for index in walk:
                state[index] = done

    @staticmethod
    def _assign_depths_and_sort(roots: List[ExecutionNode]) -> None:
        """
        Set depth top-down and sort children by start time.

        Uses an explicit stack so deep chains cannot exhaust the call stack.
        """
        stack = [(root, 0) for root in roots]
        while stack:
            node, depth = stack.pop()
            node['depth'] = depth
            children = node['children']
            if children:
                children.sort(key=lambda n: n['start_time'])
                stack.extend((child, depth + 1) for child in children)
