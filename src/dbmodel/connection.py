"""
Database connection handling with SQLAlchemy.

This module provides:
1. The `connect()` function for creating new database connections
2. The `ConnectionWrapper` class, the statement-submitting collaborator
   used by `MappingClient`
3. Engine creation and management through a thread-safe registry

The ConnectionWrapper deliberately exposes a small surface:
- execute(sql) - Submit one statement and return the affected row count
- close() - Release the connection
- list_tables() / table_exists(table) - Dialect-aware introspection
"""
import atexit
import logging
import threading
import time
from collections.abc import Callable
from dataclasses import fields
from functools import wraps
from typing import Any, Self, TypeVar

import sqlalchemy as sa
from dbmodel.exceptions import ConnectionFailure, DbConnectionError
from dbmodel.exceptions import is_retryable_error
from dbmodel.options import SchemaOptions
from dbmodel.strategy import get_db_strategy, get_strategy
from dbmodel.utils import get_dialect_name
from sqlalchemy.engine import Engine
from sqlalchemy.pool import NullPool

from libb import load_options

__all__ = [
    'ConnectionWrapper',
    'connect',
    'configure_connection',
    'check_connection',
    'create_url_from_options',
    'get_engine_for_options',
    'dispose_all_engines',
]

logger = logging.getLogger(__name__)

T = TypeVar('T')
_engine_registry: dict[str, Engine] = {}
_engine_registry_lock = threading.RLock()


def create_url_from_options(options: SchemaOptions) -> sa.URL:
    """Convert SchemaOptions to SQLAlchemy URL.
    """
    return get_strategy(options.drivername).build_connection_url(options)


def check_connection(func: Callable[..., T] | None = None, *, max_retries: int = 3,
                     retry_delay: float = 1, retry_errors: type | tuple[type, ...] | None = None,
                     retry_backoff: float = 1.5,
                     sleep_func: Callable[[float], None] = time.sleep) -> Callable[..., T]:
    """Connection retry decorator with backoff.

    Retries the wrapped call when it raises one of `retry_errors` (connection
    errors by default) and the error message looks transient. Anything else,
    a syntax error reported as sqlite3.OperationalError included, is raised
    on the first attempt.

    Supports both @check_connection and @check_connection() syntax.
    """
    def decorator(f: Callable[..., T]) -> Callable[..., T]:
        @wraps(f)
        def inner(*args: Any, **kwargs: Any) -> T:
            error_types = retry_errors if retry_errors is not None else DbConnectionError

            tries = 0
            delay = retry_delay
            while True:
                try:
                    return f(*args, **kwargs)
                except error_types as err:
                    if not is_retryable_error(err):
                        raise
                    tries += 1
                    if tries >= max_retries:
                        logger.error(f'Maximum retries ({max_retries}) exceeded: {err}')
                        raise
                    logger.warning(f'Connection error (attempt {tries}/{max_retries}): {err}')
                    sleep_func(delay)
                    delay *= retry_backoff

        return inner

    if func is None:
        return decorator
    return decorator(func)


def get_engine_for_options(options: SchemaOptions,
                           engine_factory: Callable[..., Engine] = sa.create_engine,
                           **kwargs: Any) -> Engine:
    """Get or create a SQLAlchemy engine for the given options.

    Engines never pool: every `connect()` gets its own DBAPI connection,
    which for SQLite ``:memory:`` means its own database.
    """
    key = str(options)

    with _engine_registry_lock:
        if key in _engine_registry:
            logger.debug(f'Using existing engine for {options.drivername}')
            return _engine_registry[key]

        strategy = get_strategy(options.drivername)
        url = create_url_from_options(options)

        engine_kwargs: dict[str, Any] = {'echo': options.echo, 'poolclass': NullPool}
        engine_kwargs.update(strategy.get_engine_kwargs(options))
        engine_kwargs.update(kwargs)

        engine = engine_factory(url, **engine_kwargs)

        _engine_registry[key] = engine
        logger.debug(f'Created new engine for {options.drivername}')

        return engine


def dispose_all_engines() -> None:
    """Dispose all engines in the registry.
    """
    with _engine_registry_lock:
        for engine in _engine_registry.values():
            engine.dispose()
        _engine_registry.clear()
        logger.debug('All database engines disposed')


atexit.register(dispose_all_engines)


class ConnectionWrapper:
    """Wraps a SQLAlchemy connection to submit statements and track timing.

    Statements run on the DBAPI connection, which the dialect strategy puts
    in auto-commit mode, so every statement is applied independently.
    """

    def __init__(self, sa_connection: sa.engine.Connection | None = None,
                 options: SchemaOptions | None = None) -> None:
        self.sa_connection = sa_connection
        self.engine = sa_connection.engine if sa_connection else None
        self.options = options
        self.dbapi_connection = sa_connection.connection if sa_connection else None
        self._dialect = get_dialect_name(sa_connection) if sa_connection else None
        self.calls = 0
        self.time = 0

    def __enter__(self) -> Self:
        return self

    def __exit__(self, exc_type: type | None, exc_val: Exception | None,
                 exc_tb: Any | None) -> None:
        self.close()

    def __repr__(self) -> str:
        state = 'closed' if self.closed else 'open'
        return f'ConnectionWrapper(dialect={self._dialect!r}, {state})'

    @property
    def dialect(self) -> str:
        """Return the dialect name ('postgresql' or 'sqlite')."""
        return self._dialect

    @property
    def closed(self) -> bool:
        return self.sa_connection is None or self.sa_connection.closed

    def addcall(self, elapsed: float) -> None:
        """Track execution statistics
        """
        self.time += elapsed
        self.calls += 1

    def close(self) -> None:
        """Close the SQLAlchemy connection
        """
        if self.closed:
            return
        self.sa_connection.close()
        logger.debug(f'Connection closed: {self.calls} statements in {self.time:.2f}s '
                     f'(avg: {self.time/max(1, self.calls):.3f}s per statement)')

    def execute(self, sql: str) -> int:
        """Submit one statement and return the affected row count.

        Raises the driver's exception when the database rejects the statement.
        """
        if self.closed:
            raise ConnectionFailure('Cannot execute on a closed connection')
        if self.options is not None and not self.options.check_connection:
            return self._submit(sql)
        return self._submit_with_retry(sql)

    def _submit(self, sql: str) -> int:
        start = time.time()
        cursor = self.dbapi_connection.cursor()
        try:
            cursor.execute(sql)
            rowcount = cursor.rowcount
        finally:
            cursor.close()
            self.addcall(time.time() - start)
        return rowcount

    _submit_with_retry = check_connection(_submit)

    def list_tables(self) -> list[str]:
        """Return the names of the tables visible on this connection.
        """
        return get_db_strategy(self).list_tables(self)

    def table_exists(self, table: str) -> bool:
        """Check whether a table exists on this connection.
        """
        return get_db_strategy(self).table_exists(self, table)


def configure_connection(sa_connection: sa.engine.Connection) -> None:
    """Configure a SQLAlchemy connection with dialect-specific settings.
    """
    strategy = get_db_strategy(sa_connection)
    strategy.configure_connection(sa_connection.connection)


@load_options(cls=SchemaOptions)
def connect(options: SchemaOptions | dict[str, Any] | str,
            config: Any | None = None, **kw: Any) -> ConnectionWrapper:
    """Connect to a database using SQLAlchemy for connection management

    Args:
        options: Can be:
                - SchemaOptions object
                - String path to configuration
                - Dictionary of options
                - Options specified as keyword arguments
        config: Configuration object (for loading from config files)
        **kw: Additional keyword arguments to override options

    Returns
        ConnectionWrapper object for submitting statements to the database
    """
    if isinstance(options, SchemaOptions):
        for field in fields(options):
            kw.pop(field.name, None)
    else:
        options_func = load_options(cls=SchemaOptions)(lambda o, c: o)
        options = options_func(options, config, **kw)

    engine = get_engine_for_options(options)

    try:
        sa_connection = engine.connect()
    except DbConnectionError as err:
        raise ConnectionFailure(f'Could not connect to {options.drivername} '
                                f'database {options.database!r}: {err}') from err
    configure_connection(sa_connection)
    logger.debug(f'Connected to {options.drivername} database {options.database!r}')

    return ConnectionWrapper(sa_connection, options)
