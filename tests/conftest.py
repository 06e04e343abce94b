import pytest
from dbmodel.connection import dispose_all_engines


@pytest.fixture(autouse=True)
def dispose_engines():
    """Dispose cached engines before and after each test to ensure test isolation."""
    dispose_all_engines()
    yield
    dispose_all_engines()


pytest_plugins = [
    'tests.fixtures.mocks',
    'tests.fixtures.values',
    'tests.fixtures.sqlite',
    'tests.fixtures.postgres',
]
