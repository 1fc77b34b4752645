"""
Record normalizer turning raw query-log and span-log rows into execution nodes.
"""

from typing import Any, Callable, Dict, Tuple

from ..core.types import ExecutionNode
from ..extractors import AttributeExtractor, SpanKindClassifier, get_short_hostname
from ..formatters import get_color

QUERY_LOG = 'query_log'
SPAN_LOG = 'span_log'


class RecordFlavor:
    """Declares which fields of a raw record the normalizer reads."""

    def __init__(
        self,
        name: str,
        id_prefix: str,
        key_field: str,
        parent_field: str,
        start_fields: Tuple[str, ...],
        host_fields: Tuple[str, ...],
        default_host: str,
        duration: Callable[[Dict, float], float],
        display: Callable[[Dict, str, str], str],
        attribute_fields: Tuple[str, ...] = (),
        kind_field: str = ''
    ):
        self.name = name
        self.id_prefix = id_prefix
        self.key_field = key_field
        self.parent_field = parent_field
        self.start_fields = start_fields
        self.host_fields = host_fields
        self.default_host = default_host
        self.duration = duration
        self.display = display
        self.attribute_fields = attribute_fields
        self.kind_field = kind_field


def _query_duration_us(record: Dict, start_time: float) -> float:
    return AttributeExtractor.to_number(record.get('query_duration_ms')) * 1000


def _span_duration_us(record: Dict, start_time: float) -> float:
    return AttributeExtractor.to_number(record.get('finish_time_us')) - start_time


def _query_display(record: Dict, key: str, host: str) -> str:
    return get_short_hostname(host)


def _span_display(record: Dict, key: str, host: str) -> str:
    return AttributeExtractor.to_string(record.get('operation_name')) or key


FLAVORS = {
    QUERY_LOG: RecordFlavor(
        name=QUERY_LOG,
        id_prefix='node',
        key_field='query_id',
        parent_field='initial_query_id',
        start_fields=('start_time_us', 'start_time_microseconds'),
        host_fields=('host', 'host_name'),
        default_host='Unknown',
        duration=_query_duration_us,
        display=_query_display,
    ),
    SPAN_LOG: RecordFlavor(
        name=SPAN_LOG,
        id_prefix='trace-node',
        key_field='span_id',
        parent_field='parent_span_id',
        start_fields=('start_time_us',),
        host_fields=('hostname',),
        default_host='-',
        duration=_span_duration_us,
        display=_span_display,
        attribute_fields=('attribute', 'attributes', 'span_attributes'),
        kind_field='kind',
    ),
}


def get_flavor(name: str) -> RecordFlavor:
    """
    Look up a record flavor by name.

    Raises:
        ValueError: If the flavor is not known
    """
    try:
        return FLAVORS[name]
    except KeyError:
        raise ValueError(f"Unknown record flavor '{name}', expected one of {sorted(FLAVORS)}") from None


class NodeArena:
    """Owns the nodes of one invocation and hands out their sequential ids."""

    def __init__(self, id_prefix: str):
        self.id_prefix = id_prefix
        self.nodes = []

    def allocate(self) -> str:
        return f"{self.id_prefix}-{len(self.nodes)}"

    def add(self, node: ExecutionNode) -> int:
        self.nodes.append(node)
        return len(self.nodes) - 1

    def __len__(self) -> int:
        return len(self.nodes)


class RecordNormalizer:
    """Converts one raw flat record into a canonical execution node."""

    def __init__(self, flavor: RecordFlavor):
        """
        Initialize with the flavor of records to read.

        Args:
            flavor: RecordFlavor naming the correlation, time and host fields
        """
        self.flavor = flavor

    def new_arena(self) -> NodeArena:
        return NodeArena(self.flavor.id_prefix)

    def normalize(self, record: Dict[str, Any], arena: NodeArena) -> ExecutionNode:
        """
        Normalize a record and register the node in the arena.

        Never raises for malformed input: non-numeric times become 0,
        negative durations clamp to 0 and unparsable attribute payloads
        are wrapped as {'value': raw}.

        Args:
            record: Raw key -> value record
            arena: Arena owning the nodes of the current invocation

        Returns:
            The new execution node
        """
        flavor = self.flavor
        correlation_key = AttributeExtractor.to_string(record.get(flavor.key_field))
        parent_key = AttributeExtractor.to_string(record.get(flavor.parent_field))

        start_time = AttributeExtractor.to_number(
            AttributeExtractor.first_present(record, flavor.start_fields)
        )
        start_time = max(start_time, 0)
        duration = max(flavor.duration(record, start_time), 0)

        host = AttributeExtractor.to_string(
            AttributeExtractor.first_present(record, flavor.host_fields)
        ) or flavor.default_host

        attributes = {}
        if flavor.attribute_fields:
            attributes = AttributeExtractor.parse_attributes(
                AttributeExtractor.first_present(record, flavor.attribute_fields)
            )

        kind = ''
        if flavor.kind_field:
            kind = SpanKindClassifier.normalize_kind(record.get(flavor.kind_field))

        display = flavor.display(record, correlation_key, host)

        node: ExecutionNode = {
            'id': arena.allocate(),
            'correlation_key': correlation_key,
            'parent_key': parent_key,
            'start_time': start_time,
            'duration': duration,
            'depth': 0,
            'children': [],
            'child_count': 0,
            'attributes': attributes,
            'kind': kind,
            'host': host,
            'display': display,
            'search_text': f"{host} {display}".lower(),
            'color': get_color(host),
            'data': record,
        }
        arena.add(node)
        return node
