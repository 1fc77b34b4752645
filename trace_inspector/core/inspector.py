"""
Main trace inspector orchestrator.
"""

import logging
from typing import Dict, List, Optional

from ..core.types import InspectorConfig, TimelineResult, TopologyResult
from ..extractors import EndpointExtractor
from ..processors import (
    QUERY_LOG,
    SPAN_LOG,
    HierarchyBuilder,
    QueryTopologyBuilder,
    RecordNormalizer,
    TimelineIndexer,
    TopologyBuilder,
    TraceFileProcessor,
    get_flavor,
)

logger = logging.getLogger(__name__)


class TraceInspector:
    """Main orchestrator for timeline and topology reconstruction."""

    def __init__(self, config: Optional[InspectorConfig] = None):
        """
        Initialize the TraceInspector.

        Args:
            config: InspectorConfig instance (defaults are used if omitted)
        """
        self.config = config or InspectorConfig()

        # Initialize components
        self.endpoint_extractor = EndpointExtractor(self.config)
        self.file_processor = TraceFileProcessor()
        self.hierarchy_builder = HierarchyBuilder()
        self.timeline_indexer = TimelineIndexer()
        self.topology_builder = TopologyBuilder(self.config, self.endpoint_extractor)
        self.query_topology_builder = QueryTopologyBuilder(self.config)

    def build_timeline(self, rows: List[Dict], flavor: str = SPAN_LOG) -> TimelineResult:
        """
        Reconstruct the execution forest of one query or one trace.

        Every call normalizes the rows into fresh nodes, so results never
        share state with earlier calls.

        Args:
            rows: Raw query-log or span-log rows
            flavor: QUERY_LOG or SPAN_LOG

        Returns:
            Dictionary with 'roots', 'flat_list' and 'stats'
        """
        normalizer = RecordNormalizer(get_flavor(flavor))
        arena = normalizer.new_arena()

        # Pass 1: normalize every row into a node owned by this call's arena
        flat_list = [normalizer.normalize(row, arena) for row in rows]

        # Pass 2: link parents and children
        roots = self.hierarchy_builder.build_forest(flat_list)

        # Pass 3: bounds over all nodes, attached or not
        stats = self.timeline_indexer.calculate_stats(flat_list)

        return {'roots': roots, 'flat_list': flat_list, 'stats': stats}

    def build_topology(self, rows: List[Dict]) -> TopologyResult:
        """
        Build the service topology of span rows.

        Args:
            rows: Raw span-log rows of one trace

        Returns:
            Dictionary with 'nodes' and 'edges'
        """
        timeline = self.build_timeline(rows, SPAN_LOG)
        return self.topology_builder.build_topology(timeline['roots'])

    def build_query_topology(self, rows: List[Dict]) -> TopologyResult:
        """
        Build the host topology of query-log rows.

        Args:
            rows: Raw query-log rows of one initial query

        Returns:
            Dictionary with 'nodes' and 'edges'
        """
        return self.query_topology_builder.build_topology(rows)

    def inspect(self, rows: List[Dict], flavor: str = SPAN_LOG) -> Dict:
        """
        Build both views of one batch of rows.

        Args:
            rows: Raw rows of one query or one trace
            flavor: QUERY_LOG or SPAN_LOG

        Returns:
            Dictionary with 'timeline' and 'topology'
        """
        timeline = self.build_timeline(rows, flavor)
        if flavor == QUERY_LOG:
            topology = self.query_topology_builder.build_topology(rows)
        else:
            topology = self.topology_builder.build_topology(timeline['roots'])
        return {'timeline': timeline, 'topology': topology}

    def inspect_file(self, file_path: str, flavor: str = SPAN_LOG,
                     group_by: Optional[str] = None) -> Dict[str, Dict]:
        """
        Read an exported row file and inspect every group in it.

        Args:
            file_path: Path to the exported file
            flavor: QUERY_LOG or SPAN_LOG
            group_by: Field to split the rows on (e.g. 'trace_id'); the whole
                      file is one group when omitted

        Returns:
            Dictionary mapping group value -> inspect() result
        """
        get_flavor(flavor)
        rows = self.file_processor.process_file(file_path)
        if group_by:
            groups = self.file_processor.group_rows(rows, group_by)
        else:
            groups = {'': rows}

        results = {}
        for group_key, group_rows in groups.items():
            results[group_key] = self.inspect(group_rows, flavor)

        logger.debug("Inspected %d rows in %d groups", len(rows), len(groups))
        return results
