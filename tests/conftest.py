"""
Pytest configuration and shared fixtures for trace inspector tests.
"""
import json
import pytest

from trace_inspector import InspectorConfig, TraceInspector


def make_span(**overrides):
    """Build a span-log row with sensible defaults."""
    span = {
        "trace_id": "trace-001",
        "span_id": "span-default",
        "parent_span_id": "",
        "hostname": "ch-node-1",
        "operation_name": "query",
        "kind": "INTERNAL",
        "start_time_us": 1000,
        "finish_time_us": 2000,
        "status_code": "OK",
    }
    span.update(overrides)
    return span


def make_query_log(**overrides):
    """Build a query-log row with sensible defaults."""
    row = {
        "query_id": "q-default",
        "initial_query_id": "q-default",
        "host": "ch-node-1.cluster.local",
        "type": "QueryFinish",
        "start_time_microseconds": 1000000,
        "query_duration_ms": 10,
        "exception_code": 0,
        "client_name": "",
        "client_hostname": "",
        "http_referer": "",
        "http_user_agent": "",
    }
    row.update(overrides)
    return row


@pytest.fixture
def config():
    """Default inspector configuration."""
    return InspectorConfig()


@pytest.fixture
def inspector():
    """TraceInspector with default configuration."""
    return TraceInspector()


@pytest.fixture
def sample_spans():
    """SERVER root with an INTERNAL child calling a database through a CLIENT grandchild."""
    return [
        make_span(span_id="a", kind="SERVER", start_time_us=1000, finish_time_us=5000),
        make_span(span_id="b", parent_span_id="a", kind="INTERNAL",
                  start_time_us=1500, finish_time_us=4500),
        make_span(span_id="c", parent_span_id="b", kind="CLIENT",
                  start_time_us=2000, finish_time_us=3000,
                  attribute=json.dumps({
                      "db.system": "x",
                      "server.address": "h",
                      "server.port": "1",
                  })),
    ]


@pytest.fixture
def distributed_query_spans():
    """Initial query on node 1 sending sub-queries to nodes 2 and 3."""
    return [
        make_span(span_id="root", kind="SERVER", hostname="ch-node-1",
                  operation_name="TCPHandler", start_time_us=1000, finish_time_us=9000),
        make_span(span_id="send-2", parent_span_id="root", kind="CLIENT", hostname="ch-node-1",
                  operation_name="Connection::sendQuery()", start_time_us=2000, finish_time_us=4000,
                  attribute=json.dumps({"server.address": "ch-node-2", "server.port": 9000})),
        make_span(span_id="remote-2", parent_span_id="send-2", kind="SERVER", hostname="ch-node-2",
                  operation_name="TCPHandler", start_time_us=2100, finish_time_us=3900),
        make_span(span_id="send-3", parent_span_id="root", kind="CLIENT", hostname="ch-node-1",
                  operation_name="Connection::sendQuery()", start_time_us=2000, finish_time_us=6000,
                  attribute=json.dumps({"server.address": "ch-node-3", "server.port": 9000})),
    ]


@pytest.fixture
def sample_query_logs():
    """Initial query on node 1 with two sub-queries on node 2 and one on node 3."""
    return [
        make_query_log(query_id="q1", initial_query_id="q1", host="ch-node-1.cluster.local",
                       start_time_microseconds=1000000, query_duration_ms=50,
                       client_name="clickhouse-client"),
        make_query_log(query_id="q2", initial_query_id="q1", host="ch-node-2.cluster.local",
                       start_time_microseconds=1010000, query_duration_ms=20),
        make_query_log(query_id="q3", initial_query_id="q1", host="ch-node-2.cluster.local",
                       start_time_microseconds=1005000, query_duration_ms=30,
                       exception_code=60, type="ExceptionWhileProcessing"),
        make_query_log(query_id="q4", initial_query_id="q1", host="ch-node-3.cluster.local",
                       start_time_microseconds=1020000, query_duration_ms=5),
    ]


@pytest.fixture
def temp_json_file(tmp_path):
    """Create a temporary file and return a helper function."""
    def _create_file(content, suffix=".json"):
        file_path = tmp_path / f"rows_{len(list(tmp_path.iterdir()))}{suffix}"
        if not isinstance(content, str):
            content = json.dumps(content)
        file_path.write_text(content)
        return str(file_path)

    return _create_file


@pytest.fixture
def span_factory():
    """Factory building span-log rows."""
    return make_span


@pytest.fixture
def query_log_factory():
    """Factory building query-log rows."""
    return make_query_log
