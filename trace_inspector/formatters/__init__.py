"""Formatting helpers for display output."""

from .color import get_color
from .time_formatter import format_duration_us, format_time

__all__ = ["get_color", "format_duration_us", "format_time"]
