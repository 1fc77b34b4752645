"""Data extraction utilities for query-log and span-log records."""

from .attribute_extractor import AttributeExtractor
from .endpoint_extractor import EndpointExtractor
from .host_name import get_short_hostname
from .span_kind import SpanKindClassifier
from .status_extractor import StatusExtractor
from .user_agent import UserAgentExtractor

__all__ = [
    "AttributeExtractor",
    "EndpointExtractor",
    "get_short_hostname",
    "SpanKindClassifier",
    "StatusExtractor",
    "UserAgentExtractor",
]
