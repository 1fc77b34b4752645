"""
Result builder for JSON output.
"""

from typing import Dict, List

from ..core.types import ExecutionNode, TimelineResult, TopologyResult
from ..formatters import format_duration_us

NODE_FIELDS = (
    'id', 'correlation_key', 'parent_key', 'start_time', 'duration', 'depth',
    'child_count', 'kind', 'host', 'display', 'search_text', 'color', 'attributes', 'data',
)


def _shallow_node(node: ExecutionNode) -> Dict:
    result = {field: node[field] for field in NODE_FIELDS}
    result['duration_formatted'] = format_duration_us(node['duration'])
    return result


def _nested_node(node: ExecutionNode) -> Dict:
    """Copy a node and its subtree without recursing on the call stack."""
    result = _shallow_node(node)
    result['children'] = []
    stack = [(node, result)]
    while stack:
        source, target = stack.pop()
        for child in source['children']:
            child_result = _shallow_node(child)
            child_result['children'] = []
            target['children'].append(child_result)
            stack.append((child, child_result))
    return result


def prepare_timeline_results(timeline: TimelineResult) -> Dict:
    """
    Convert a timeline to a structured format for JSON output.

    Roots are emitted as nested trees. The flat list repeats every node
    without its subtree, referencing children by id instead.

    Args:
        timeline: Result of TraceInspector.build_timeline()

    Returns:
        Dictionary with 'roots', 'flat_list' and 'stats'
    """
    flat_list = []
    for node in timeline['flat_list']:
        shallow = _shallow_node(node)
        shallow['child_ids'] = [child['id'] for child in node['children']]
        flat_list.append(shallow)

    stats = dict(timeline['stats'])
    stats['duration_formatted'] = format_duration_us(stats['max_timestamp'] - stats['min_timestamp'])

    return {
        'roots': [_nested_node(root) for root in timeline['roots']],
        'flat_list': flat_list,
        'stats': stats,
    }


def prepare_topology_results(topology: TopologyResult) -> Dict:
    """
    Convert a topology to a structured format for JSON output.

    Edges gain the mean latency, the error rate and formatted durations.

    Args:
        topology: Result of TraceInspector.build_topology() or build_query_topology()

    Returns:
        Dictionary with 'nodes' and 'edges'
    """
    edges: List[Dict] = []
    for edge in topology['edges']:
        count = edge['count']
        avg_duration = edge['total_duration_us'] / count if count > 0 else 0
        result = dict(edge)
        result['sample_rows'] = list(edge['sample_rows'])
        result['avg_duration_us'] = avg_duration
        result['error_rate'] = edge['error_count'] / count if count > 0 else 0.0
        result['min_duration_formatted'] = format_duration_us(edge['min_duration_us'])
        result['avg_duration_formatted'] = format_duration_us(avg_duration)
        result['max_duration_formatted'] = format_duration_us(edge['max_duration_us'])
        edges.append(result)

    return {
        'nodes': [dict(node) for node in topology['nodes']],
        'edges': edges,
    }


def prepare_results(result: Dict) -> Dict:
    """
    Convert a TraceInspector.inspect() result for JSON output.

    Args:
        result: Dictionary with 'timeline' and 'topology'

    Returns:
        Dictionary with the prepared 'timeline' and 'topology'
    """
    return {
        'timeline': prepare_timeline_results(result['timeline']),
        'topology': prepare_topology_results(result['topology']),
    }
