"""
Deterministic color assignment for hosts and services.
"""

import hashlib

PALETTE = (
    '#4285F4',
    '#EA4335',
    '#FBBC05',
    '#34A853',
    '#3498db',
    '#e74c3c',
    '#2ecc71',
    '#f39c12',
    '#9b59b6',
    '#1abc9c',
    '#d35400',
    '#c0392b',
)


def get_color(key: str) -> str:
    """
    Pick a palette color for a key.

    The same key always maps to the same color, across runs and processes.

    Args:
        key: Service name or host name

    Returns:
        Hex color string
    """
    digest = hashlib.md5(key.encode('utf-8')).hexdigest()
    return PALETTE[int(digest, 16) % len(PALETTE)]
