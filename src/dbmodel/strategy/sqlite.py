"""
SQLite-specific strategy implementation.

Handles the SQLite details the schema layer cares about:
- File or ``:memory:`` databases addressed only by path
- Foreign key enforcement, which SQLite leaves off per connection
- Auto-commit through ``isolation_level = None``
- Table listing from ``sqlite_master``
"""
import logging
from typing import TYPE_CHECKING, Any

import sqlalchemy as sa
from dbmodel.strategy.base import SchemaStrategy, get_raw_connection
from dbmodel.strategy.base import register_strategy

if TYPE_CHECKING:
    from dbmodel.connection import ConnectionWrapper
    from dbmodel.options import SchemaOptions

logger = logging.getLogger(__name__)


@register_strategy('sqlite')
class SQLiteStrategy(SchemaStrategy):
    """SQLite-specific operations.
    """

    @property
    def dialect_name(self) -> str:
        """Return the dialect identifier for SQLite."""
        return 'sqlite'

    def build_connection_url(self, options: 'SchemaOptions') -> sa.URL:
        """Build the SQLAlchemy connection URL for SQLite."""
        return sa.URL.create(drivername='sqlite', database=options.database)

    def get_engine_kwargs(self, options: 'SchemaOptions') -> dict[str, Any]:
        """Return SQLAlchemy create_engine kwargs for SQLite."""
        return {}

    @classmethod
    def get_required_options(cls) -> list[str]:
        """Return required options for SQLite connections."""
        return ['database']

    def configure_connection(self, conn: Any) -> None:
        """Configure connection settings for SQLite.
        """
        sqlite_conn = get_raw_connection(conn)
        sqlite_conn.execute('PRAGMA foreign_keys = ON')
        sqlite_conn.isolation_level = None
        logger.debug('Configured SQLite connection (foreign_keys=ON, autocommit)')

    def list_tables(self, cn: 'ConnectionWrapper') -> list[str]:
        """List user tables from sqlite_master.
        """
        sql = """
select name from sqlite_master where type = 'table' and name not like 'sqlite_%' order by name
"""
        return self._select_column_raw(cn, sql)
