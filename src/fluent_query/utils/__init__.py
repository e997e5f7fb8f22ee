"""Shared utilities: structured logging and date parsing."""

from .date_parser import parse_datetime
from .logging import bind_context, get_logger

__all__ = [
    "bind_context",
    "get_logger",
    "parse_datetime",
]
