"""
Timeline statistics over a flat node list.
"""

from typing import List

from ..core.types import ExecutionNode, TimelineStats


class TimelineIndexer:
    """Computes display bounds for the timeline view."""

    @staticmethod
    def calculate_stats(flat_list: List[ExecutionNode]) -> TimelineStats:
        """
        Fold every node once to find the total count and the time bounds.

        Independent of the tree structure, so orphaned nodes count the same
        as attached ones.

        Args:
            flat_list: All nodes of the batch

        Returns:
            TimelineStats; both bounds are 0 for an empty list
        """
        if not flat_list:
            return {'total_nodes': 0, 'min_timestamp': 0, 'max_timestamp': 0}

        min_timestamp = flat_list[0]['start_time']
        max_timestamp = flat_list[0]['start_time'] + flat_list[0]['duration']
        for node in flat_list[1:]:
            start = node['start_time']
            end = start + node['duration']
            if start < min_timestamp:
                min_timestamp = start
            if end > max_timestamp:
                max_timestamp = end

        return {
            'total_nodes': len(flat_list),
            'min_timestamp': min_timestamp,
            'max_timestamp': max_timestamp,
        }
