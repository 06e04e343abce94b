"""
Base strategy interface for dialect-specific operations.

Defines the abstract base class that every dialect strategy inherits from.
A strategy knows how to reach its database (connection URL, engine kwargs,
required options), how to prepare a fresh connection, and how to list the
tables that already exist. Everything else in the package works against this
interface and never branches on the dialect name itself.
"""
from abc import ABC, abstractmethod
from contextlib import contextmanager
from typing import TYPE_CHECKING, Any

import sqlalchemy as sa

if TYPE_CHECKING:
    from dbmodel.connection import ConnectionWrapper
    from dbmodel.options import SchemaOptions

# Registry of dialect name -> strategy class
# Defined here to avoid circular imports (concrete strategies import from base)
_STRATEGY_REGISTRY: dict[str, type['SchemaStrategy']] = {}


def register_strategy(dialect: str):
    """Decorator to register a strategy class for a dialect.

    Usage:
        @register_strategy('postgresql')
        class PostgresStrategy(SchemaStrategy):
            ...
    """
    def decorator(cls: type['SchemaStrategy']) -> type['SchemaStrategy']:
        _STRATEGY_REGISTRY[dialect] = cls
        return cls
    return decorator


def get_raw_connection(conn: Any) -> Any:
    """Unwrap a pooled SQLAlchemy connection to the driver connection."""
    if hasattr(conn, 'driver_connection'):
        return conn.driver_connection
    return conn


class SchemaStrategy(ABC):
    """Base class for dialect-specific operations.
    """

    @contextmanager
    def _cursor(self, cn: 'ConnectionWrapper', sql: str, params: tuple | None = None):
        """Context manager for cursor lifecycle.
        """
        cursor = cn.dbapi_connection.cursor()
        try:
            cursor.execute(sql, params or ())
            yield cursor
        finally:
            cursor.close()

    def _select_column_raw(self, cn: 'ConnectionWrapper', sql: str,
                           params: tuple | None = None) -> list:
        """Execute SQL and return first column as list.
        """
        with self._cursor(cn, sql, params) as cursor:
            return [row[0] for row in cursor.fetchall()]

    @property
    @abstractmethod
    def dialect_name(self) -> str:
        """Return the dialect identifier (e.g. 'sqlite')."""

    @abstractmethod
    def build_connection_url(self, options: 'SchemaOptions') -> sa.URL:
        """Build the SQLAlchemy connection URL for this dialect.

        Args:
            options: SchemaOptions with connection parameters

        Returns
            sqlalchemy.URL for ``create_engine``
        """

    @abstractmethod
    def get_engine_kwargs(self, options: 'SchemaOptions') -> dict[str, Any]:
        """Return dialect-specific ``create_engine`` kwargs.
        """

    @abstractmethod
    def configure_connection(self, conn: Any) -> None:
        """Prepare a freshly opened connection.

        Args:
            conn: Pooled or raw DBAPI connection
        """

    @abstractmethod
    def list_tables(self, cn: 'ConnectionWrapper') -> list[str]:
        """Return the names of the tables visible on the connection.
        """

    @classmethod
    @abstractmethod
    def get_required_options(cls) -> list[str]:
        """Return list of required option field names for this dialect.

        Returns
            List of field names that must have non-None/non-zero values
        """

    @classmethod
    def validate_options(cls, options: 'SchemaOptions') -> None:
        """Validate options for this dialect.

        Raises
            ValueError: If any required field is None or 0
        """
        for field in cls.get_required_options():
            if not getattr(options, field):
                raise ValueError(f'field {field} cannot be None or 0')

    def table_exists(self, cn: 'ConnectionWrapper', table: str) -> bool:
        """Check whether a table exists, comparing names case-insensitively.

        Unquoted identifiers are case-insensitive in both supported dialects.
        """
        return table.lower() in {name.lower() for name in self.list_tables(cn)}
