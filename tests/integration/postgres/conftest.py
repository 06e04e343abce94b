"""
Fixtures for PostgreSQL-specific integration tests.
"""
import pytest
from dbmodel import MappingClient


@pytest.fixture
def postgres_client(postgres_conn):
    """Mapping client over a PostgreSQL connection."""
    client = MappingClient(postgres_conn)
    yield client
    if not client.closed:
        client.shutdown()
