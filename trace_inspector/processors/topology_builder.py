"""
Service topology builder for span hierarchies.
"""

import logging
import math
from typing import Dict, List, Optional

from ..core.types import ExecutionNode, TopoEdge, TopoNode, TopologyResult
from ..extractors import (
    AttributeExtractor,
    EndpointExtractor,
    SpanKindClassifier,
    StatusExtractor,
    UserAgentExtractor,
)
from ..formatters import get_color

logger = logging.getLogger(__name__)

ENTRY_NODE_ID = 'entry::user'
ENTRY_INSTANCE = 'user'


def get_node_key(service_name: str, instance_name: str) -> str:
    return f"{service_name}::{instance_name}"


class TopologyGraph:
    """Nodes and aggregated edges collected during one topology build."""

    def __init__(self, sample_row_cap: int):
        self.sample_row_cap = sample_row_cap
        self.nodes: Dict[str, TopoNode] = {}
        self.edges: Dict[str, TopoEdge] = {}
        self.truncated = False

    def get_or_create_node(self, service_name: str, instance_name: str) -> TopoNode:
        node_id = get_node_key(service_name, instance_name)
        node = self.nodes.get(node_id)
        if node is None:
            node = {
                'id': node_id,
                'service_name': service_name,
                'instance_name': instance_name,
                'label': service_name,
                'description': instance_name,
                'color': get_color(service_name),
            }
            self.nodes[node_id] = node
        return node

    def get_or_create_edge(self, source_id: str, target_id: str) -> TopoEdge:
        edge_id = f"{source_id}->{target_id}"
        edge = self.edges.get(edge_id)
        if edge is None:
            edge = {
                'id': edge_id,
                'source': source_id,
                'target': target_id,
                'count': 0,
                'error_count': 0,
                'min_duration_us': math.inf,
                'max_duration_us': 0,
                'total_duration_us': 0,
                'sample_rows': [],
            }
            self.edges[edge_id] = edge
        return edge

    def record_call(self, edge: TopoEdge, duration_us: float, is_error: bool, record: Dict) -> None:
        """
        Merge one observed call into an edge.

        Args:
            edge: Edge to update (modified in-place)
            duration_us: Call duration in microseconds
            is_error: Whether the call failed
            record: Raw record kept as a sample while under the cap
        """
        edge['count'] += 1
        edge['total_duration_us'] += duration_us
        edge['min_duration_us'] = min(edge['min_duration_us'], duration_us)
        edge['max_duration_us'] = max(edge['max_duration_us'], duration_us)
        if is_error:
            edge['error_count'] += 1
        if len(edge['sample_rows']) < self.sample_row_cap:
            edge['sample_rows'].append(record)

    def to_result(self) -> TopologyResult:
        edges = []
        for edge in self.edges.values():
            if edge['min_duration_us'] == math.inf:
                edge = dict(edge, min_duration_us=0)
            edges.append(edge)
        return {'nodes': list(self.nodes.values()), 'edges': edges}


class SpanRef:
    """Topology view of one span: its identity plus the call statistics it contributes."""

    __slots__ = ('span_id', 'service_name', 'instance_name', 'kind', 'duration_us',
                 'status', 'attributes', 'record')

    def __init__(self, node: ExecutionNode, default_service_name: str):
        record = node['data']
        attributes = node['attributes']
        self.span_id = node['correlation_key']
        self.service_name = (
            AttributeExtractor.to_string(record.get('service_name'))
            or AttributeExtractor.to_string(attributes.get('service.name'))
            or default_service_name
        )
        self.instance_name = AttributeExtractor.to_string(record.get('hostname'))
        self.kind = node['kind']
        self.duration_us = max(node['duration'], AttributeExtractor.to_number(record.get('duration_us')))
        self.status = StatusExtractor.extract_status(record)
        self.attributes = attributes
        self.record = record

    def same_identity(self, other: 'SpanRef') -> bool:
        return (self.service_name == other.service_name and
                self.instance_name == other.instance_name)


class TopologyBuilder:
    """Walks span forests top-down and aggregates service-to-service calls."""

    def __init__(self, config, endpoint_extractor: Optional[EndpointExtractor] = None):
        """
        Initialize with configuration and the endpoint extractor.

        Args:
            config: InspectorConfig instance
            endpoint_extractor: EndpointExtractor instance (created from config if omitted)
        """
        self.config = config
        self.endpoint_extractor = endpoint_extractor or EndpointExtractor(config)

    def build_topology(self, roots: List[ExecutionNode]) -> TopologyResult:
        """
        Build the service topology of a span forest.

        Same-service internal hops collapse into their upstream service; every
        other parent -> child hop becomes an edge. Call-initiating leaves (and
        call-initiating spans whose subtree reached no other service) get an
        edge to their inferred remote target. A synthetic entry node links to
        every root.

        Args:
            roots: Root nodes produced by HierarchyBuilder

        Returns:
            Dictionary with 'nodes' and 'edges' lists in creation order
        """
        graph = TopologyGraph(self.config.sample_row_cap)
        roots = [root for root in roots if root['correlation_key'] != '']
        if not roots:
            return graph.to_result()

        root_refs = [SpanRef(root, self.config.service_name) for root in roots]
        for root, root_ref in zip(roots, root_refs):
            graph.get_or_create_node(root_ref.service_name, root_ref.instance_name)
            self._build_links(graph, root_ref, root['children'], 1)

        self._link_entry(graph, root_refs)

        logger.debug("Built topology with %d nodes and %d edges", len(graph.nodes), len(graph.edges))
        return graph.to_result()

    def _add_link(self, graph: TopologyGraph, source: SpanRef, target: SpanRef) -> None:
        source_node = graph.get_or_create_node(source.service_name, source.instance_name)
        target_node = graph.get_or_create_node(target.service_name, target.instance_name)
        edge = graph.get_or_create_edge(source_node['id'], target_node['id'])
        graph.record_call(edge, target.duration_us,
                          StatusExtractor.is_error_status(target.status), target.record)

    def _add_remote_link(self, graph: TopologyGraph, source: SpanRef) -> bool:
        remote = self.endpoint_extractor.extract_remote_target(
            source.record, source.attributes, source.kind,
            source.service_name, source.instance_name
        )
        if remote is None:
            return False

        application, instance = remote
        source_node = graph.get_or_create_node(source.service_name, source.instance_name)
        target_node = graph.get_or_create_node(application, instance)
        edge = graph.get_or_create_edge(source_node['id'], target_node['id'])
        # The remote side is not observed, the calling span carries the statistics
        graph.record_call(edge, source.duration_us,
                          StatusExtractor.is_error_status(source.status), source.record)
        return True

    def _build_links(
        self,
        graph: TopologyGraph,
        upstream: SpanRef,
        children: List[ExecutionNode],
        depth: int
    ) -> bool:
        """
        Materialize the edges below one upstream service.

        Args:
            graph: Graph being built
            upstream: Service identity the children are reached from
            children: Child nodes to process
            depth: Depth of the children in the span tree

        Returns:
            True if any edge was materialized below the upstream service
        """
        if not children:
            return False
        if depth > self.config.max_depth:
            if not graph.truncated:
                logger.warning("Span tree deeper than %d levels, deeper spans are left out of the topology",
                               self.config.max_depth)
                graph.truncated = True
            return False

        has_termination = False
        for child_node in children:
            child = SpanRef(child_node, self.config.service_name)
            grandchildren = child_node['children']

            if upstream.same_identity(child) and not SpanKindClassifier.is_termination(child.kind):
                # In-process work: keep walking on behalf of the upstream service
                subtree_terminated = self._build_links(graph, upstream, grandchildren, depth + 1)
            else:
                self._add_link(graph, upstream, child)
                has_termination = True
                subtree_terminated = self._build_links(graph, child, grandchildren, depth + 1)

            if subtree_terminated:
                has_termination = True

            if not grandchildren or not subtree_terminated:
                if self._add_remote_link(graph, child):
                    has_termination = True

        return has_termination

    def _link_entry(self, graph: TopologyGraph, root_refs: List[SpanRef]) -> None:
        """Create the synthetic entry node and link it to every root."""
        label = UserAgentExtractor.infer_entry_label(
            (ref.record, ref.attributes) for ref in root_refs
        )
        if ENTRY_NODE_ID not in graph.nodes:
            graph.nodes[ENTRY_NODE_ID] = {
                'id': ENTRY_NODE_ID,
                'service_name': label,
                'instance_name': ENTRY_INSTANCE,
                'label': label,
                'description': '',
                'color': get_color(label),
            }

        for ref in root_refs:
            root_node = graph.get_or_create_node(ref.service_name, ref.instance_name)
            edge = graph.get_or_create_edge(ENTRY_NODE_ID, root_node['id'])
            graph.record_call(edge, ref.duration_us,
                              StatusExtractor.is_error_status(ref.status), ref.record)
