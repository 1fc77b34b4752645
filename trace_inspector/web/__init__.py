"""Output preparation for the CLI and the HTTP API."""

from .result_builder import prepare_results, prepare_timeline_results, prepare_topology_results

__all__ = ["prepare_results", "prepare_timeline_results", "prepare_topology_results"]
