"""
Exported row file processing using streaming parser.
"""

import ijson
import sys
from collections import defaultdict
from typing import Dict, Iterator, List

PROGRESS_EVERY = 10000


class TraceFileProcessor:
    """Reads query-log or span-log rows exported from the cluster."""

    @staticmethod
    def iter_rows(file_path: str) -> Iterator[Dict]:
        """
        Stream rows from an exported file.

        Supports ClickHouse FORMAT JSON output ({"meta": ..., "data": [...]}),
        a plain JSON array of rows, and JSONEachRow / NDJSON files.

        Args:
            file_path: Path to the exported file

        Yields:
            Row dictionaries
        """
        with open(file_path, 'rb') as f:
            first = TraceFileProcessor._first_significant_byte(f)
            f.seek(0)

            if first == b'[':
                yield from ijson.items(f, 'item', use_float=True)
                return

            found = False
            for row in ijson.items(f, 'data.item', use_float=True, multiple_values=True):
                found = True
                yield row
            if found:
                return

            # No rows under "data": one row object per top-level value
            f.seek(0)
            for row in ijson.items(f, '', use_float=True, multiple_values=True):
                if isinstance(row, dict) and not TraceFileProcessor._is_envelope(row):
                    yield row

    @staticmethod
    def process_file(file_path: str) -> List[Dict]:
        """
        Read all rows of an exported file.

        Args:
            file_path: Path to the exported file

        Returns:
            List of row dictionaries in file order
        """
        print(f"Processing {file_path}...", file=sys.stderr)

        rows = []
        for row in TraceFileProcessor.iter_rows(file_path):
            rows.append(row)
            if len(rows) % PROGRESS_EVERY == 0:
                print(f"  Read {len(rows)} rows...", file=sys.stderr)

        print(f"Completed reading file: {len(rows)} rows found.", file=sys.stderr)
        return rows

    @staticmethod
    def group_rows(rows: List[Dict], field: str) -> Dict[str, List[Dict]]:
        """
        Group rows by a correlation field, keeping first-seen group order.

        Args:
            rows: Row dictionaries
            field: Field to group by (e.g. 'trace_id', 'initial_query_id')

        Returns:
            Dictionary mapping field value -> rows; rows without the field group under ''
        """
        groups = defaultdict(list)
        for row in rows:
            value = row.get(field)
            groups['' if value is None else str(value)].append(row)
        return dict(groups)

    @staticmethod
    def _first_significant_byte(f) -> bytes:
        chunk = f.read(64)
        if chunk.startswith(b'\xef\xbb\xbf'):
            chunk = chunk[3:]
        stripped = chunk.lstrip()
        while not stripped and chunk:
            chunk = f.read(64)
            stripped = chunk.lstrip()
        return stripped[:1]

    @staticmethod
    def _is_envelope(value: Dict) -> bool:
        """FORMAT JSON output whose data array is empty."""
        return 'meta' in value and isinstance(value.get('data'), list)
