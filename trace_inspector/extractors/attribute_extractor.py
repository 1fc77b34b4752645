"""
Scalar coercion and attribute bag access for loosely typed observability rows.
"""

import json
import math
from typing import Any, Dict, Iterable, Optional, Tuple, Union

Number = Union[int, float]

# Expected shapes for attribute lookups
TEXT = 'text'
PORT = 'port'

AttributeKey = Tuple[str, str]


class AttributeExtractor:
    """Reads values out of raw records and their attribute bags."""

    @staticmethod
    def to_number(value: Any) -> Number:
        """
        Best-effort numeric coercion.

        Args:
            value: Raw field value (number, numeric string, or anything else)

        Returns:
            The numeric value, or 0 when the value is missing, non-numeric or not finite
        """
        if isinstance(value, bool):
            return 0
        if isinstance(value, int):
            return value
        if isinstance(value, float):
            return value if math.isfinite(value) else 0
        if isinstance(value, str):
            text = value.strip()
            try:
                return int(text)
            except ValueError:
                pass
            try:
                parsed = float(text)
            except ValueError:
                return 0
            return parsed if math.isfinite(parsed) else 0
        return 0

    @staticmethod
    def to_string(value: Any) -> str:
        """
        Coerce a field value to a string. None becomes an empty string.
        """
        if isinstance(value, str):
            return value
        if value is None:
            return ''
        if isinstance(value, bool):
            return 'true' if value else 'false'
        return str(value)

    @staticmethod
    def parse_attributes(value: Any) -> Dict[str, Any]:
        """
        Parse an attribute payload into a key -> value bag.

        A JSON object string is decoded; a mapping passes through. Any other
        present value (unparsable text, JSON arrays, scalars) is wrapped as
        {'value': raw} so that nothing is lost.

        Args:
            value: Raw attribute field value

        Returns:
            Attribute dictionary (empty when the field is missing)
        """
        if value is None:
            return {}
        if isinstance(value, dict):
            return value
        if isinstance(value, str):
            try:
                parsed = json.loads(value)
            except ValueError:
                return {'value': value}
            if isinstance(parsed, dict):
                return parsed
            return {'value': value}
        return {'value': value}

    @staticmethod
    def matches_shape(value: Any, shape: str) -> bool:
        """
        Check that a value looks like what a lookup table entry expects.

        Args:
            value: Candidate value
            shape: TEXT (non-empty string or number) or PORT (integer or digit string)

        Returns:
            True if the value can be used for this shape
        """
        if value is None or isinstance(value, (bool, dict, list)):
            return False
        if shape == PORT:
            if isinstance(value, int):
                return value >= 0
            if isinstance(value, float):
                return value.is_integer() and value >= 0
            return isinstance(value, str) and value.strip().isdigit()
        return AttributeExtractor.to_string(value) != ''

    @staticmethod
    def get_value(record: Dict, attributes: Dict, key: str, shape: str = TEXT) -> str:
        """
        Look up a key in the attribute bag first, then in the raw record.

        Returns:
            The value as a string, or an empty string when absent or of the wrong shape
        """
        for source in (attributes, record):
            value = source.get(key)
            if not AttributeExtractor.matches_shape(value, shape):
                continue
            if shape == PORT:
                return value.strip() if isinstance(value, str) else str(int(value))
            return AttributeExtractor.to_string(value)
        return ''

    @staticmethod
    def first_non_empty(record: Dict, attributes: Dict, keys: Iterable[AttributeKey]) -> str:
        """
        Walk an ordered (key, shape) table and return the first usable value.

        Args:
            record: Raw record
            attributes: Parsed attribute bag of the record
            keys: Ordered table of (key, expected shape) pairs

        Returns:
            First non-empty value, or an empty string
        """
        for key, shape in keys:
            value = AttributeExtractor.get_value(record, attributes, key, shape)
            if value != '':
                return value
        return ''

    @staticmethod
    def first_present(record: Dict, keys: Iterable[str]) -> Optional[Any]:
        """Return the first record field that is present and not None."""
        for key in keys:
            value = record.get(key)
            if value is not None:
                return value
        return None
