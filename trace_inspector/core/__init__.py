"""Core components for timeline and topology reconstruction."""

from .types import (
    ExecutionNode,
    InspectorConfig,
    QueryTopoEdge,
    TimelineResult,
    TimelineStats,
    TopoEdge,
    TopologyResult,
    TopoNode,
)
from .inspector import TraceInspector

__all__ = [
    "TraceInspector",
    "ExecutionNode",
    "InspectorConfig",
    "QueryTopoEdge",
    "TimelineResult",
    "TimelineStats",
    "TopoEdge",
    "TopologyResult",
    "TopoNode",
]
