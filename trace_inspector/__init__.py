"""
Trace Inspector - execution timeline and service topology reconstruction
for database cluster query logs and trace spans.
"""

__version__ = "1.0.0"

from .core.types import InspectorConfig, TimelineStats, TopoEdge, TopoNode
from .core.inspector import TraceInspector
from .processors.record_normalizer import QUERY_LOG, SPAN_LOG

__all__ = [
    "TraceInspector",
    "InspectorConfig",
    "TimelineStats",
    "TopoEdge",
    "TopoNode",
    "QUERY_LOG",
    "SPAN_LOG",
]
