"""SQL dialects."""

from .mysql import MySQLDialect

__all__ = ["MySQLDialect"]
