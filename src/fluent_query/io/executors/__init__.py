"""Database executors used to run built statements."""

from .base import Executor, PreparedStatement
from .sqlalchemy_executor import SqlAlchemyExecutor, SqlAlchemyStatement

__all__ = [
    "Executor",
    "PreparedStatement",
    "SqlAlchemyExecutor",
    "SqlAlchemyStatement",
]
