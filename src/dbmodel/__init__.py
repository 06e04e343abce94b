"""
Declarative table definitions rendered to CREATE TABLE statements.

Tables are described as a `Model` of `Column` specs, registered with a
`MappingClient`, and created on the client's connection:

    cn = dbmodel.connect({'drivername': 'sqlite', 'database': 'app.db'})
    with dbmodel.MappingClient(cn) as client:
        client.register_models(Owner, Pet)
        results = client.apply()

The module functions below are facades over the same operations.
"""
__version__ = '0.1.0'

from dbmodel.client import MappingClient, StatementConnection, StatementResult
from dbmodel.connection import ConnectionWrapper, connect
from dbmodel.exceptions import ClientClosedError, ConnectionFailure
from dbmodel.exceptions import DbConnectionError, InvalidSpec, MappingError
from dbmodel.exceptions import NoEntitiesRegistered, StatementError
from dbmodel.exceptions import StatementSubmissionFailure
from dbmodel.model import Column, ColumnSpec, Model
from dbmodel.options import SchemaOptions


def render(model: Model) -> str:
    """Render the CREATE TABLE statement for a model.
    """
    return model.render_create_statement()


def create_tables(cn: StatementConnection, *models: Model,
                  strict: bool = False) -> list[StatementResult]:
    """Create the given tables on an open connection without closing it.
    """
    client = MappingClient(cn, strict=strict)
    client.register_models(*models)
    return client.apply()


__all__ = [
    'connect',
    'ConnectionWrapper',
    'SchemaOptions',
    'Column',
    'ColumnSpec',
    'Model',
    'MappingClient',
    'StatementConnection',
    'StatementResult',
    'render',
    'create_tables',
    'MappingError',
    'InvalidSpec',
    'NoEntitiesRegistered',
    'StatementSubmissionFailure',
    'ClientClosedError',
    'ConnectionFailure',
    'DbConnectionError',
    'StatementError',
]
