"""
Span kind normalization and role classification.
"""

from typing import Any

# OTLP SpanKind enum values
OTLP_KIND_NAMES = {
    0: '',
    1: 'INTERNAL',
    2: 'SERVER',
    3: 'CLIENT',
    4: 'PRODUCER',
    5: 'CONSUMER',
}

# Roles
TERMINATION = 'termination'
CALL = 'call'
INTERNAL = 'internal'

TERMINATION_KINDS = ('SERVER', 'CONSUMER', 'TIMER')
CALL_KINDS = ('CLIENT', 'PRODUCER')


class SpanKindClassifier:
    """Classifies span kinds into boundary-terminating, call-initiating or internal roles."""

    @staticmethod
    def normalize_kind(kind: Any) -> str:
        """
        Normalize a raw kind value to an upper-case name.

        Accepts names ('server', 'SPAN_KIND_CLIENT') and OTLP integer values.

        Args:
            kind: Raw kind field value

        Returns:
            Normalized kind name, or an empty string when unknown
        """
        if kind is None or isinstance(kind, bool):
            return ''
        if isinstance(kind, int):
            return OTLP_KIND_NAMES.get(kind, '')
        text = str(kind).strip().upper()
        if text.isdigit():
            return OTLP_KIND_NAMES.get(int(text), '')
        if text.startswith('SPAN_KIND_'):
            text = text[len('SPAN_KIND_'):]
        if text == 'UNSPECIFIED':
            return ''
        return text

    @staticmethod
    def classify(kind: str) -> str:
        """Return the role of a normalized kind."""
        if kind in TERMINATION_KINDS:
            return TERMINATION
        if kind in CALL_KINDS:
            return CALL
        return INTERNAL

    @staticmethod
    def is_termination(kind: str) -> bool:
        return kind in TERMINATION_KINDS

    @staticmethod
    def is_client(kind: str) -> bool:
        return kind == 'CLIENT'

    @staticmethod
    def is_producer(kind: str) -> bool:
        return kind == 'PRODUCER'
