"""
Error status detection for span and query-log records.
"""

import math
from typing import Dict

from .attribute_extractor import AttributeExtractor


class StatusExtractor:
    """Decides whether a record represents a failed call."""

    @staticmethod
    def extract_status(record: Dict) -> str:
        """
        Read the status of a span record.

        Args:
            record: Raw span record

        Returns:
            'status_code' if set, else 'status', else an empty string
        """
        return AttributeExtractor.to_string(record.get('status_code') or record.get('status'))

    @staticmethod
    def is_error_status(status: str) -> bool:
        """
        Classify a status value.

        Empty, '0' and 'OK' (any case) are success. A numeric status is an
        error from 400 up; any other text is an error if it mentions 'error'
        or 'fail'.

        Args:
            status: Status text

        Returns:
            True if the status indicates a failure
        """
        status = status.strip()
        if status in ('', '0') or status.upper() == 'OK':
            return False
        try:
            status_code = float(status)
        except ValueError:
            status_code = None
        if status_code is not None and math.isfinite(status_code):
            return status_code >= 400
        normalized = status.lower()
        return 'error' in normalized or 'fail' in normalized

    @staticmethod
    def is_query_error(record: Dict) -> bool:
        """
        Check a query-log record for failure.

        Args:
            record: Raw query-log record

        Returns:
            True if the query raised an exception
        """
        if AttributeExtractor.to_number(record.get('exception_code')) > 0:
            return True
        query_type = AttributeExtractor.to_string(record.get('type'))
        return query_type.startswith('Exception')
