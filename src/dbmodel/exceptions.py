"""
Exception classes for table definitions and schema application.
"""
import re
import sqlite3

import psycopg
import sqlalchemy as sa

# Patterns match the driver's own wording, never a bare keyword that
# could also be a user identifier.
RETRYABLE_PATTERNS = [
    # SSL/TLS errors
    r'\bssl (connection|error|syscall|handshake)',
    r'\btls (connection|error|handshake|alert)',
    # Connection drops
    r'connection (to server )?(was |has been |is )?(closed|reset|refused|lost|terminated|broken)',
    r'server closed the connection',
    r'eof detected',
    r'broken pipe',
    # Timeouts
    r'(connection|statement|lock|operation) timeout',
    r'\btimed out\b',
    # Network issues
    r'could not connect',
    r'no route to host',
    r'network is (unreachable|down)',
    # Database unavailable
    r'database system is (starting up|shutting down)',
    r'too many connections',
]

# SQLite has no network: only lock contention is transient
SQLITE_RETRYABLE_PATTERNS = [
    r'database( table)? is locked',
    r'database is busy',
]

_RETRYABLE_REGEX = re.compile('|'.join(RETRYABLE_PATTERNS), re.IGNORECASE)
_SQLITE_RETRYABLE_REGEX = re.compile('|'.join(SQLITE_RETRYABLE_PATTERNS), re.IGNORECASE)


def is_retryable_error(exc: BaseException) -> bool:
    """Check if an exception represents a transient error worth retrying.

    Syntax errors, constraint violations and permission errors will fail
    again on the next attempt and are not retryable. SQLite errors, which
    include syntax errors reported as OperationalError, are retried only
    on lock contention.

    :param exc: The exception to check.
    :returns: True if the error is likely transient and worth retrying.
    """
    orig = getattr(exc, 'orig', None) if isinstance(exc, sa.exc.DBAPIError) else None
    error_msg = str(exc).lower()
    if isinstance(exc, sqlite3.Error) or isinstance(orig, sqlite3.Error):
        return bool(_SQLITE_RETRYABLE_REGEX.search(error_msg))
    return bool(_RETRYABLE_REGEX.search(error_msg))


class MappingError(Exception):
    """Base class for all dbmodel errors.
    """


class InvalidSpec(MappingError, ValueError):
    """A column or model was built from malformed input.
    """


class NoEntitiesRegistered(MappingError):
    """Schema application was requested with no registered models.
    """


class ClientClosedError(MappingError):
    """An operation was attempted on a client that has been shut down.
    """


class ConnectionFailure(MappingError):
    """Error establishing or maintaining database connection.
    """


class StatementSubmissionFailure(MappingError):
    """One or more submitted statements were rejected by the database.

    The failed results are kept on ``failures`` in submission order.
    """

    def __init__(self, failures):
        self.failures = list(failures)
        tables = ', '.join(result.table for result in self.failures)
        super().__init__(f'{len(self.failures)} statement(s) failed: {tables}')


DbConnectionError = (
    psycopg.OperationalError,
    psycopg.InterfaceError,
    sqlite3.OperationalError,
    sqlite3.InterfaceError,
    sa.exc.OperationalError,
    sa.exc.InterfaceError,
    ConnectionFailure,
    )

StatementError = (
    psycopg.Error,
    sqlite3.Error,
    sa.exc.DBAPIError,
    )
