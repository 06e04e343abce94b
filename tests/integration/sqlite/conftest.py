"""
Fixtures for SQLite-specific integration tests.
"""
import pytest
from dbmodel import MappingClient


@pytest.fixture
def sqlite_client(sqlite_conn):
    """Mapping client over an in-memory SQLite connection."""
    client = MappingClient(sqlite_conn)
    yield client
    if not client.closed:
        client.shutdown()
