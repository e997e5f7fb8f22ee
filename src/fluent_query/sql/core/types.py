"""
Core types shared by the builder and its renderers.
"""

from enum import Enum
from typing import Any, Callable, Mapping, TypeVar, Union

T = TypeVar("T")

# Builds a domain object from one fetched row (a class works too).
RowMapper = Callable[[Mapping[str, Any]], T]


class Combinator(str, Enum):
    """Boolean operator joining top-level WHERE fragments."""

    AND = "AND"
    OR = "OR"


class ReturnFormat(str, Enum):
    """Shape of the value returned by ``Query.select()``.

    NONE           number of rows matched
    FULL           list of row dicts
    SINGLE_ROW     first row dict, or ``{}``
    SINGLE_COLUMN  list of first-column values
    SINGLE_CELL    first column of the first row, or ``None``
    """

    NONE = "none"
    FULL = "full"
    SINGLE_ROW = "single_row"
    SINGLE_COLUMN = "single_column"
    SINGLE_CELL = "single_cell"


SelectFormat = Union[ReturnFormat, RowMapper]
