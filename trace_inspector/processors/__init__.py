"""Processors for turning flat rows into timelines and topologies."""

from .file_processor import TraceFileProcessor
from .record_normalizer import (
    FLAVORS,
    QUERY_LOG,
    SPAN_LOG,
    NodeArena,
    RecordFlavor,
    RecordNormalizer,
    get_flavor,
)
from .hierarchy_builder import HierarchyBuilder
from .timeline_indexer import TimelineIndexer
from .topology_builder import TopologyBuilder
from .query_topology_builder import QueryTopologyBuilder

__all__ = [
    "TraceFileProcessor",
    "FLAVORS",
    "QUERY_LOG",
    "SPAN_LOG",
    "NodeArena",
    "RecordFlavor",
    "RecordNormalizer",
    "get_flavor",
    "HierarchyBuilder",
    "TimelineIndexer",
    "TopologyBuilder",
    "QueryTopologyBuilder",
]
