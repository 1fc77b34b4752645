"""
Host topology builder for distributed query logs.
"""

import hashlib
import logging
from typing import Dict, List

from ..core.types import QueryTopoEdge, TopoNode, TopologyResult
from ..extractors import AttributeExtractor, StatusExtractor, get_short_hostname
from ..formatters import get_color
from .topology_builder import TopologyGraph

logger = logging.getLogger(__name__)

USER_NODE_ID = 'user'
UNKNOWN_NODE_ID = 'unknown'

CLIENT_NAME_FIELDS = ('client_name', 'client_hostname', 'http_referer', 'http_user_agent')


def get_host_node_id(host: str) -> str:
    return 'n' + hashlib.md5(host.encode('utf-8')).hexdigest()


class QueryTopologyBuilder:
    """Builds a host-to-host graph of an initial query and its sub-queries."""

    def __init__(self, config):
        """
        Initialize with inspector configuration.

        Args:
            config: InspectorConfig instance
        """
        self.config = config

    @staticmethod
    def get_client_name(record: Dict) -> str:
        """Name of the client that sent the initial query."""
        for field in CLIENT_NAME_FIELDS:
            value = AttributeExtractor.to_string(record.get(field))
            if value:
                return value
        return 'User'

    @staticmethod
    def _make_node(node_id: str, label: str, description: str) -> TopoNode:
        return {
            'id': node_id,
            'service_name': label,
            'instance_name': description,
            'label': label,
            'description': description,
            'color': get_color(description or label),
        }

    def build_topology(self, rows: List[Dict]) -> TopologyResult:
        """
        Build the host graph of a distributed query.

        The first row's initial_query_id names the initial query. Its client
        links to the initiator host; each sub-query links its initiator's
        host to the host that ran it. Calls between the same pair of hosts
        merge into one edge.

        Args:
            rows: Raw query-log rows of one initial query

        Returns:
            Dictionary with 'nodes' and 'edges' lists in creation order
        """
        graph = TopologyGraph(self.config.sample_row_cap)
        if not rows:
            return graph.to_result()

        # Later records of the same query replace earlier ones (QueryStart -> QueryFinish)
        queries: Dict[str, tuple] = {}
        for row in rows:
            host = AttributeExtractor.to_string(row.get('host') or row.get('host_name')) or 'Unknown'
            host_id = get_host_node_id(host)
            if host_id not in graph.nodes:
                graph.nodes[host_id] = self._make_node(host_id, get_short_hostname(host), host)
            queries[AttributeExtractor.to_string(row.get('query_id'))] = (row, host_id)

        initial_query_id = AttributeExtractor.to_string(rows[0].get('initial_query_id'))
        initial = queries.get(initial_query_id)
        if initial is None:
            self._ensure_unknown_node(graph)
        else:
            initial_row, initial_host_id = initial
            graph.nodes[USER_NODE_ID] = self._make_node(USER_NODE_ID, self.get_client_name(initial_row), '')
            self._add_call(graph, USER_NODE_ID, initial_host_id, initial_query_id, initial_row)

        for query_id, (row, host_id) in queries.items():
            parent_query_id = AttributeExtractor.to_string(row.get('initial_query_id'))
            if not parent_query_id or parent_query_id == query_id:
                continue
            initiator = queries.get(parent_query_id)
            if initiator is None:
                source_id = self._ensure_unknown_node(graph)
            else:
                source_id = initiator[1]
            self._add_call(graph, source_id, host_id, query_id, row)

        logger.debug("Built query topology with %d hosts and %d edges", len(graph.nodes), len(graph.edges))
        return graph.to_result()

    def _ensure_unknown_node(self, graph: TopologyGraph) -> str:
        if UNKNOWN_NODE_ID not in graph.nodes:
            graph.nodes[UNKNOWN_NODE_ID] = self._make_node(UNKNOWN_NODE_ID, 'Unknown Initiator', '')
        return UNKNOWN_NODE_ID

    @staticmethod
    def _add_call(graph: TopologyGraph, source_id: str, target_id: str, query_id: str, row: Dict) -> QueryTopoEdge:
        edge = graph.get_or_create_edge(source_id, target_id)
        duration_us = max(AttributeExtractor.to_number(row.get('query_duration_ms')) * 1000, 0)
        graph.record_call(edge, duration_us, StatusExtractor.is_query_error(row), row)
        edge.setdefault('query_ids', []).append(query_id)
        return edge
