"""Shared helper functions."""

from .time import ClockFn, now_ms
from .io import read_json_file, write_json_file

__all__ = ["ClockFn", "now_ms", "read_json_file", "write_json_file"]
