"""
SQL identifier handling utilities.

Provides functions for quoting the target table of a statement. Column names
and join text are passed through untouched, so callers can keep using table
aliases and expressions there.
"""


def quote_identifier(name: str) -> str:
    """
    Quote a SQL identifier using MySQL backticks.

    Surrounding whitespace is trimmed and internal backticks are escaped by
    doubling them.

    Examples:
        >>> quote_identifier("users")
        '`users`'
        >>> quote_identifier(" order`items ")
        '`order``items`'
    """
    escaped = name.strip().replace("`", "``")
    return f"`{escaped}`"


def qualify_table(table: str, alias: str = "") -> str:
    """
    Create a quoted table reference with an optional alias.

    Examples:
        >>> qualify_table("users", "u")
        '`users` u'
        >>> qualify_table("users")
        '`users`'
    """
    return f"{quote_identifier(table)} {alias or ''}".strip()
