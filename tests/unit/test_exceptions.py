import sqlite3

import psycopg
import pytest
import sqlalchemy as sa
from dbmodel import MappingError, StatementError, StatementResult
from dbmodel import StatementSubmissionFailure
from dbmodel.exceptions import is_retryable_error


@pytest.mark.parametrize('message', [
    'SSL connection has been closed unexpectedly',
    'SSL SYSCALL error: EOF detected',
    'server closed the connection unexpectedly',
    'connection timed out',
    'canceling statement due to statement timeout',
    'could not connect to server',
    'FATAL: the database system is starting up',
    'FATAL: too many connections for role',
])
def test_retryable_errors(message):
    """Test transient server errors are retryable"""
    assert is_retryable_error(psycopg.OperationalError(message))


@pytest.mark.parametrize('message', [
    'database is locked',
    'database table is locked',
])
def test_sqlite_lock_is_retryable(message):
    """Test SQLite lock contention is retryable"""
    assert is_retryable_error(sqlite3.OperationalError(message))


@pytest.mark.parametrize('message', [
    'near "Order": syntax error',
    'table Owner already exists',
    'UNIQUE constraint failed: Owner.phone',
    'duplicate column name: timeout',
    'duplicate column name: ssl',
    'duplicate column name: tls_version',
    'no such table: connection_closed',
    'unable to open database file',
])
def test_sqlite_errors_not_retryable(message):
    """Test deterministic SQLite errors are not retryable, whatever identifiers they name"""
    assert not is_retryable_error(sqlite3.OperationalError(message))


@pytest.mark.parametrize('message', [
    'permission denied for schema public',
    'column "timeout" specified more than once',
    'column "ssl" specified more than once',
    'relation "tls" already exists',
])
def test_server_errors_not_retryable(message):
    """Test permanent server errors are not retryable"""
    assert not is_retryable_error(psycopg.OperationalError(message))


def test_wrapped_sqlite_error():
    """Test SQLAlchemy-wrapped SQLite errors follow the SQLite rules"""
    locked = sa.exc.OperationalError('stmt', None, sqlite3.OperationalError('database is locked'))
    duplicate = sa.exc.OperationalError(
        'stmt', None, sqlite3.OperationalError('duplicate column name: timeout'))

    assert is_retryable_error(locked)
    assert not is_retryable_error(duplicate)


def test_submission_failure_carries_results():
    """Test the failure lists the failed results"""
    failures = [
        StatementResult('Owner', 'CREATE TABLE IF NOT EXISTS Owner ( id INTEGER )', 'boom'),
        StatementResult('Pet', 'CREATE TABLE IF NOT EXISTS Pet ( id INTEGER )', 'boom'),
    ]
    err = StatementSubmissionFailure(failures)

    assert isinstance(err, MappingError)
    assert err.failures == failures
    assert str(err) == '2 statement(s) failed: Owner, Pet'


def test_statement_error_group():
    """Test driver errors are caught by the StatementError group"""
    with pytest.raises(StatementError):
        raise sqlite3.IntegrityError('UNIQUE constraint failed')


def test_statement_result_ok():
    assert StatementResult('T', 'sql').ok
    assert not StatementResult('T', 'sql', 'error').ok
