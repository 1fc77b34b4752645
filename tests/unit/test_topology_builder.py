"""
Unit tests for trace_inspector.processors.topology_builder module.
"""
import json
import logging

import pytest
from trace_inspector import InspectorConfig, TraceInspector
from trace_inspector.processors.topology_builder import TopologyGraph, get_node_key

CHROME_MAC = ("Mozilla/5.0 (Macintosh; Intel Mac OS X 14_0) AppleWebKit/537.36 "
              "(KHTML, like Gecko) Chrome/120.0.0.0 Safari/537.36")


def by_id(items):
    return {item["id"]: item for item in items}


class TestTopologyGraph:
    """Tests for node and edge aggregation."""

    def test_node_identity(self):
        graph = TopologyGraph(sample_row_cap=10)
        node = graph.get_or_create_node("ClickHouse", "ch-node-1")
        assert node["id"] == "ClickHouse::ch-node-1"
        assert node["label"] == "ClickHouse"
        assert node["description"] == "ch-node-1"
        assert graph.get_or_create_node("ClickHouse", "ch-node-1") is node
        assert get_node_key("a", "b") == "a::b"

    def test_edge_statistics(self):
        """Test count, error and latency bounds across merged calls."""
        graph = TopologyGraph(sample_row_cap=10)
        edge = graph.get_or_create_edge("a::1", "b::2")
        graph.record_call(edge, 300, False, {"row": 1})
        graph.record_call(edge, 100, True, {"row": 2})
        assert edge["id"] == "a::1->b::2"
        assert edge["count"] == 2
        assert edge["error_count"] == 1
        assert edge["min_duration_us"] == 100
        assert edge["max_duration_us"] == 300
        assert edge["total_duration_us"] == 400
        assert edge["sample_rows"] == [{"row": 1}, {"row": 2}]

    def test_sample_cap(self):
        graph = TopologyGraph(sample_row_cap=2)
        edge = graph.get_or_create_edge("a", "b")
        for i in range(5):
            graph.record_call(edge, i, False, {"row": i})
        assert edge["count"] == 5
        assert len(edge["sample_rows"]) == 2

    def test_unused_edge_has_zero_minimum(self):
        graph = TopologyGraph(sample_row_cap=2)
        graph.get_or_create_edge("a", "b")
        assert graph.to_result()["edges"][0]["min_duration_us"] == 0


class TestBuildTopology:
    """Tests for span forest topology."""

    def test_internal_hops_collapse(self, inspector, sample_spans):
        """Test that internal spans collapse and the database call becomes an edge."""
        topology = inspector.build_topology(sample_spans)

        assert [node["id"] for node in topology["nodes"]] == [
            "ClickHouse::ch-node-1", "x::h:1", "entry::user"
        ]
        edges = by_id(topology["edges"])
        assert set(edges) == {"ClickHouse::ch-node-1->x::h:1", "entry::user->ClickHouse::ch-node-1"}

        remote = edges["ClickHouse::ch-node-1->x::h:1"]
        assert remote["count"] == 1
        assert remote["min_duration_us"] == remote["max_duration_us"] == 1000
        assert remote["sample_rows"][0]["span_id"] == "c"

        entry = edges["entry::user->ClickHouse::ch-node-1"]
        assert entry["total_duration_us"] == 4000
        assert entry["sample_rows"][0]["span_id"] == "a"

    def test_entry_node(self, inspector, sample_spans):
        entry = by_id(inspector.build_topology(sample_spans)["nodes"])["entry::user"]
        assert entry["label"] == "user"
        assert entry["instance_name"] == "user"
        assert entry["description"] == ""

    def test_entry_label_from_user_agent(self, inspector, span_factory):
        spans = [span_factory(span_id="a", kind="SERVER",
                              attribute=json.dumps({"http.user.agent": CHROME_MAC}))]
        entry = by_id(inspector.build_topology(spans)["nodes"])["entry::user"]
        assert entry["label"] == "Chrome (Macintosh; Intel Mac OS X 14_0)"

    def test_repeated_calls_merge(self, inspector, span_factory):
        """Test that two calls to the same database merge into one edge."""
        db = json.dumps({"db.system": "postgresql", "server.address": "pg", "server.port": 5432})
        spans = [
            span_factory(span_id="root", kind="SERVER", start_time_us=0, finish_time_us=1000),
            span_factory(span_id="c1", parent_span_id="root", kind="CLIENT",
                         start_time_us=100, finish_time_us=200, attribute=db),
            span_factory(span_id="c2", parent_span_id="root", kind="CLIENT",
                         start_time_us=300, finish_time_us=600, status_code="ERROR", attribute=db),
        ]
        edge = by_id(inspector.build_topology(spans)["edges"])["ClickHouse::ch-node-1->postgresql::pg:5432"]
        assert edge["count"] == 2
        assert edge["error_count"] == 1
        assert edge["min_duration_us"] == 100
        assert edge["max_duration_us"] == 300
        assert edge["total_duration_us"] == 400

    def test_sample_cap_from_config(self, span_factory):
        inspector = TraceInspector(InspectorConfig(sample_row_cap=2))
        db = json.dumps({"db.system": "postgresql", "server.address": "pg"})
        spans = [span_factory(span_id="root", kind="SERVER")] + [
            span_factory(span_id=f"c{i}", parent_span_id="root", kind="CLIENT", attribute=db)
            for i in range(3)
        ]
        edge = by_id(inspector.build_topology(spans)["edges"])["ClickHouse::ch-node-1->postgresql::pg"]
        assert edge["count"] == 3
        assert len(edge["sample_rows"]) == 2

    def test_cross_host_edge_uses_target_statistics(self, inspector, span_factory):
        spans = [
            span_factory(span_id="a", kind="SERVER", hostname="ch-node-1",
                         start_time_us=0, finish_time_us=1000),
            span_factory(span_id="b", parent_span_id="a", kind="SERVER", hostname="ch-node-2",
                         start_time_us=100, finish_time_us=350, status_code="500"),
        ]
        edge = by_id(inspector.build_topology(spans)["edges"])["ClickHouse::ch-node-1->ClickHouse::ch-node-2"]
        assert edge["total_duration_us"] == 250
        assert edge["error_count"] == 1
        assert edge["sample_rows"][0]["span_id"] == "b"

    def test_service_name_from_record(self, inspector, span_factory):
        spans = [
            span_factory(span_id="a", kind="SERVER", service_name="frontend", hostname="web-1"),
            span_factory(span_id="b", parent_span_id="a", kind="SERVER", service_name="orders",
                         hostname="app-1"),
        ]
        node_ids = [node["id"] for node in inspector.build_topology(spans)["nodes"]]
        assert node_ids == ["frontend::web-1", "orders::app-1", "entry::user"]

    def test_distributed_query(self, inspector, distributed_query_spans):
        """Test sub-queries to other replicas, observed and unobserved."""
        topology = inspector.build_topology(distributed_query_spans)

        assert [node["id"] for node in topology["nodes"]] == [
            "ClickHouse::ch-node-1",
            "ClickHouse::ch-node-2",
            "ClickHouse::ch-node-3:9000",
            "entry::user",
        ]
        edges = by_id(topology["edges"])
        assert set(edges) == {
            "ClickHouse::ch-node-1->ClickHouse::ch-node-2",
            "ClickHouse::ch-node-1->ClickHouse::ch-node-3:9000",
            "entry::user->ClickHouse::ch-node-1",
        }
        # Observed remote side: the receiving span carries the statistics
        assert edges["ClickHouse::ch-node-1->ClickHouse::ch-node-2"]["total_duration_us"] == 1800
        # Unobserved remote side: the sending span carries them
        assert edges["ClickHouse::ch-node-1->ClickHouse::ch-node-3:9000"]["total_duration_us"] == 4000

    def test_self_loop_is_not_drawn(self, inspector, span_factory):
        spans = [
            span_factory(span_id="a", kind="SERVER"),
            span_factory(span_id="b", parent_span_id="a", kind="CLIENT",
                         operation_name="Connection::sendQuery()",
                         attribute=json.dumps({"server.address": "ch-node-1"})),
        ]
        edges = inspector.build_topology(spans)["edges"]
        assert [edge["id"] for edge in edges] == ["entry::user->ClickHouse::ch-node-1"]

    def test_empty_input(self, inspector):
        assert inspector.build_topology([]) == {"nodes": [], "edges": []}

    def test_roots_without_key_are_ignored(self, inspector, span_factory):
        assert inspector.build_topology([span_factory(span_id="")]) == {"nodes": [], "edges": []}

    def test_depth_limit(self, span_factory, caplog):
        """Test that spans below the depth limit are left out with a warning."""
        inspector = TraceInspector(InspectorConfig(max_depth=2))
        spans = [span_factory(span_id="s0", kind="SERVER", hostname="h0")] + [
            span_factory(span_id=f"s{i}", parent_span_id=f"s{i - 1}", kind="SERVER", hostname=f"h{i}")
            for i in range(1, 5)
        ]
        with caplog.at_level(logging.WARNING):
            topology = inspector.build_topology(spans)

        assert {edge["id"] for edge in topology["edges"]} == {
            "entry::user->ClickHouse::h0",
            "ClickHouse::h0->ClickHouse::h1",
            "ClickHouse::h1->ClickHouse::h2",
        }
        assert "deeper than 2 levels" in caplog.text

    def test_repeated_builds_are_independent(self, inspector, sample_spans):
        first = inspector.build_topology(sample_spans)
        second = inspector.build_topology(sample_spans)
        assert first == second
        assert first["edges"][0] is not second["edges"][0]
