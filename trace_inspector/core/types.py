"""
Type definitions for timeline and topology reconstruction.
"""

from typing import Any, Dict, List, TypedDict


class ExecutionNode(TypedDict):
    """One observed unit of work (a query-log row or a trace span)."""
    id: str
    correlation_key: str
    parent_key: str
    start_time: float
    duration: float
    depth: int
    children: List['ExecutionNode']
    child_count: int
    attributes: Dict[str, Any]
    kind: str
    host: str
    display: str
    search_text: str
    color: str
    data: Dict[str, Any]


class TimelineStats(TypedDict):
    """Aggregate bounds over a whole node set."""
    total_nodes: int
    min_timestamp: float
    max_timestamp: float


class TimelineResult(TypedDict):
    """Forest of roots plus the flat node list and its stats."""
    roots: List[ExecutionNode]
    flat_list: List[ExecutionNode]
    stats: TimelineStats


class TopoNode(TypedDict):
    """A distinct (service, instance) pair rendered as a graph vertex."""
    id: str
    service_name: str
    instance_name: str
    label: str
    description: str
    color: str


class TopoEdge(TypedDict):
    """Aggregated, directed summary of all calls between two topology nodes."""
    id: str
    source: str
    target: str
    count: int
    error_count: int
    min_duration_us: float
    max_duration_us: float
    total_duration_us: float
    sample_rows: List[Dict[str, Any]]


class QueryTopoEdge(TopoEdge, total=False):
    """Host-to-host edge of a distributed query, listing the queries it merges."""
    query_ids: List[str]


class TopologyResult(TypedDict):
    """Deduplicated topology nodes and aggregated edges."""
    nodes: List[TopoNode]
    edges: List[TopoEdge]


class InspectorConfig:
    """Configuration for timeline and topology reconstruction."""

    def __init__(
        self,
        service_name: str = 'ClickHouse',
        sample_row_cap: int = 200,
        max_depth: int = 256,
        self_query_operation: str = 'Connection::sendQuery()'
    ):
        """
        Initialize reconstruction configuration.

        Args:
            service_name: Service name of the database cluster itself. Used for span
                         topology nodes that carry no explicit service name, and as the
                         remote application of CLIENT spans sending queries to it.
                         Default: 'ClickHouse'

            sample_row_cap: Maximum number of raw records retained per topology edge.
                           Calls beyond the cap are still counted.
                           Default: 200

            max_depth: Maximum span depth expanded while building the topology.
                      Deeper subtrees are skipped with a warning.
                      Default: 256

            self_query_operation: Operation name of a CLIENT span that sends a query
                                 to another node of the same database cluster.
                                 Default: 'Connection::sendQuery()'
        """
        self.service_name = service_name
        self.sample_row_cap = sample_row_cap
        self.max_depth = max_depth
        self.self_query_operation = self_query_operation
