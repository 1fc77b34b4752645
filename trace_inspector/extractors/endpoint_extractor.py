"""
Remote endpoint inference for call-initiating spans.
"""

from typing import Dict, Optional, Tuple
from urllib.parse import urlparse

from .attribute_extractor import AttributeExtractor, PORT, TEXT
from .span_kind import SpanKindClassifier

# Keys that name the peer directly, in priority order
DIRECT_ENDPOINT_KEYS = (
    ('net.peer', TEXT),
    ('peer.service', TEXT),
    ('peer.address', TEXT),
    ('peer.hostname', TEXT),
    ('net.sock.peer.addr', TEXT),
    ('net.peer.ip', TEXT),
    ('network.peer.address', TEXT),
    ('network.peer.name', TEXT),
    ('server.address', TEXT),
    ('server.socket.address', TEXT),
    ('http.host', TEXT),
    ('rpc.service', TEXT),
    ('db.instance', TEXT),
)

PORT_KEYS = (
    ('net.peer.port', PORT),
    ('net.sock.peer.port', PORT),
    ('network.peer.port', PORT),
    ('server.port', PORT),
    ('server.socket.port', PORT),
    ('db.port', PORT),
)

HOST_KEYS = (
    ('net.peer.name', TEXT),
    ('net.peer.ip', TEXT),
    ('network.peer.address', TEXT),
    ('network.peer.name', TEXT),
    ('server.address', TEXT),
    ('server.socket.address', TEXT),
    ('peer.hostname', TEXT),
    ('db.host', TEXT),
    ('target', TEXT),
)

URL_KEYS = (
    ('http.url', TEXT),
    ('url.full', TEXT),
    ('url.original', TEXT),
    ('db.connection_string', TEXT),
)

# Attributes naming the remote application of a CLIENT span, in priority order.
# 'http.client' is a marker: its presence means the remote application is 'http'.
CLIENT_APPLICATION_KEYS = (
    ('http.client', 'http'),
    ('messaging.system', None),
    ('db.system', None),
    ('rpc.system', None),
)

UNKNOWN = 'unknown'


class EndpointExtractor:
    """Infers the (application, instance) identity a call-initiating span talks to."""

    def __init__(self, config):
        """
        Initialize with inspector configuration.

        Args:
            config: InspectorConfig instance
        """
        self.config = config

    @staticmethod
    def extract_endpoint(record: Dict, attributes: Dict) -> str:
        """
        Build the remote instance string from peer address attributes.

        Direct peer keys win; a separate port is appended when the address
        carries none. Otherwise host and port keys are combined, and as a
        last resort the host(:port) of a URL-like attribute is used.

        Args:
            record: Raw span record
            attributes: Parsed attribute bag

        Returns:
            Endpoint string, or an empty string when nothing was found
        """
        direct = AttributeExtractor.first_non_empty(record, attributes, DIRECT_ENDPOINT_KEYS)
        if direct:
            normalized = direct.strip()
            port = AttributeExtractor.first_non_empty(record, attributes, PORT_KEYS)
            if port and ':' not in normalized and not normalized.startswith('['):
                return f"{normalized}:{port}"
            return direct

        host = AttributeExtractor.first_non_empty(record, attributes, HOST_KEYS)
        port = AttributeExtractor.first_non_empty(record, attributes, PORT_KEYS)
        if host and port:
            return f"{host}:{port}"
        if host:
            return host

        url = AttributeExtractor.first_non_empty(record, attributes, URL_KEYS)
        if url:
            return EndpointExtractor.extract_host_from_url(url) or url
        return ''

    @staticmethod
    def extract_host_from_url(url: str) -> str:
        """
        Extract host(:port) from a full URL.

        Args:
            url: URL or connection string

        Returns:
            'host:port', 'host', or an empty string if the value is not a URL with a host
        """
        if '://' not in url:
            return ''
        try:
            parsed = urlparse(url.strip())
            host = parsed.hostname
            port = parsed.port
        except ValueError:
            return ''
        if not host:
            return ''
        if ':' in host:
            host = f"[{host}]"
        if port is not None:
            return f"{host}:{port}"
        return host

    def extract_remote_application(self, kind: str, operation_name: str, attributes: Dict) -> str:
        """
        Determine the application on the other end of a call.

        Args:
            kind: Normalized span kind
            operation_name: Span operation name
            attributes: Parsed attribute bag

        Returns:
            Application name, or an empty string when the span does not call out
        """
        if SpanKindClassifier.is_client(kind):
            if operation_name == self.config.self_query_operation:
                return self.config.service_name
            for key, fixed_name in CLIENT_APPLICATION_KEYS:
                value = AttributeExtractor.to_string(attributes.get(key))
                if value:
                    return fixed_name or value
            return UNKNOWN

        if SpanKindClassifier.is_producer(kind):
            system = AttributeExtractor.to_string(attributes.get('messaging.system'))
            if system:
                return system
            if AttributeExtractor.to_string(attributes.get('messaging.kafka.topic')):
                return 'kafka'
            return UNKNOWN

        return ''

    def extract_remote_target(
        self,
        record: Dict,
        attributes: Dict,
        kind: str,
        service_name: str,
        instance_name: str
    ) -> Optional[Tuple[str, str]]:
        """
        Infer the remote (application, instance) a span calls.

        Args:
            record: Raw span record
            attributes: Parsed attribute bag
            kind: Normalized span kind
            service_name: Service the span itself belongs to
            instance_name: Instance the span itself runs on

        Returns:
            (application, instance) tuple, or None when the span calls nothing
            or the inferred target is the span's own identity
        """
        operation_name = AttributeExtractor.to_string(
            record.get('operation_name') or attributes.get('operation_name')
        )
        application = self.extract_remote_application(kind, operation_name, attributes)
        if not application:
            return None

        instance = self.extract_endpoint(record, attributes) or UNKNOWN

        # Mislabelled data can point a span at itself
        if application == service_name and instance == instance_name:
            return None

        return application, instance
