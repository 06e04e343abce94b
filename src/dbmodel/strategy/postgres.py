"""
PostgreSQL-specific strategy implementation.

Connections go through psycopg 3 and run in auto-commit mode so each
submitted statement stands on its own. Table listing is limited to the
current schema.
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


@register_strategy('postgresql')
class PostgresStrategy(SchemaStrategy):
    """PostgreSQL-specific operations.
    """

    @property
    def dialect_name(self) -> str:
        """Return the dialect identifier for PostgreSQL."""
        return 'postgresql'

    def build_connection_url(self, options: 'SchemaOptions') -> sa.URL:
        """Build the SQLAlchemy connection URL for PostgreSQL."""
        query = {}
        if options.timeout:
            query['connect_timeout'] = str(options.timeout)
        if options.appname:
            query['application_name'] = options.appname

        return sa.URL.create(
            drivername='postgresql+psycopg',
            username=options.username,
            password=options.password,
            host=options.hostname,
            port=options.port,
            database=options.database,
            query=query
        )

    def get_engine_kwargs(self, options: 'SchemaOptions') -> dict[str, Any]:
        """Return SQLAlchemy create_engine kwargs for PostgreSQL."""
        return {}

    @classmethod
    def get_required_options(cls) -> list[str]:
        """Return required options for PostgreSQL connections."""
        return ['hostname', 'username', 'password', 'database', 'port']

    def configure_connection(self, conn: Any) -> None:
        """Configure connection settings for PostgreSQL.
        """
        raw_conn = get_raw_connection(conn)
        raw_conn.autocommit = True

    def list_tables(self, cn: 'ConnectionWrapper') -> list[str]:
        """List base tables in the current schema.
        """
        sql = """
select table_name
from information_schema.tables
where table_schema = current_schema() and table_type = 'BASE TABLE'
order by table_name
"""
        return self._select_column_raw(cn, sql)
