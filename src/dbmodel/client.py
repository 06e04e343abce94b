"""
Schema registry: owns a connection and applies registered table definitions.

Testing notes:

Prefer supplying a fake connection when unit-testing code that drives a
MappingClient. Anything with ``execute(sql)`` and ``close()`` will do:

    class RecordingConnection:
        def __init__(self):
            self.statements = []
            self.closed = False

        def execute(self, sql):
            self.statements.append(sql)
            return 0

        def close(self):
            self.closed = True

    client = MappingClient(RecordingConnection())
"""
import logging
from dataclasses import dataclass
from typing import Any, Protocol, Self

from dbmodel.connection import connect
from dbmodel.exceptions import ClientClosedError, NoEntitiesRegistered
from dbmodel.exceptions import StatementError, StatementSubmissionFailure
from dbmodel.model import Model
from dbmodel.options import SchemaOptions

__all__ = ['MappingClient', 'StatementConnection', 'StatementResult']

logger = logging.getLogger(__name__)


class StatementConnection(Protocol):
    """The connection capabilities MappingClient depends on.

    `execute` returns once the statement has completed and raises if the
    database rejected it.
    """

    def execute(self, sql: str) -> Any: ...

    def close(self) -> None: ...


@dataclass(frozen=True)
class StatementResult:
    """Outcome of one submitted statement."""
    table: str
    sql: str
    error: str | None = None

    @property
    def ok(self) -> bool:
        return self.error is None


class MappingClient:
    """Applies registered Models to the database behind a connection.

    Models are applied in registration order, one statement at a time. A
    rejected statement is logged and recorded, and the remaining statements
    are still submitted. With ``strict=True`` a StatementSubmissionFailure is
    raised once the whole batch has been submitted.

    Statements are not wrapped in a transaction: each one is applied on its
    own, so a failed batch may leave some tables created.
    """

    def __init__(self, connection: StatementConnection, strict: bool = False) -> None:
        self._connection = connection
        self._entities: list[Model] = []
        self._closed = False
        self.strict = strict

    @classmethod
    def from_options(cls, options: SchemaOptions | dict[str, Any] | str,
                     config: Any | None = None, **kw: Any) -> Self:
        """Connect with `dbmodel.connect` and wrap the connection in a client.

        ``strict`` is taken from the options.
        """
        cn = connect(options, config, **kw)
        return cls(cn, strict=cn.options.strict)

    def __enter__(self) -> Self:
        return self

    def __exit__(self, exc_type: type | None, exc_val: Exception | None,
                 exc_tb: Any | None) -> None:
        if not self._closed:
            self.shutdown()

    def __repr__(self) -> str:
        state = 'closed' if self._closed else 'open'
        return f'MappingClient(entities={[m.table_name for m in self._entities]!r}, {state})'

    @property
    def connection(self) -> StatementConnection:
        return self._connection

    @property
    def entities(self) -> tuple[Model, ...]:
        return tuple(self._entities)

    @property
    def closed(self) -> bool:
        return self._closed

    def _check_open(self, operation: str) -> None:
        if self._closed:
            raise ClientClosedError(f'Cannot {operation}: client has been shut down')

    def register_models(self, *models: Model) -> None:
        """Append models in argument order. Duplicates are kept.
        """
        self._check_open('register models')
        for model in models:
            if not isinstance(model, Model):
                raise TypeError(f'Expected Model, got {type(model).__name__}')
        self._entities.extend(models)
        logger.debug(f'Registered {len(models)} model(s); {len(self._entities)} total')

    def statements(self) -> list[str]:
        """Rendered CREATE statements for the registered models, in order.
        """
        self._check_open('render statements')
        return [model.render_create_statement() for model in self._entities]

    def apply(self) -> list[StatementResult]:
        """Create every registered table, in registration order.

        Returns
            One StatementResult per registered model, in submission order

        Raises
            NoEntitiesRegistered: If no models are registered; the connection
                is not touched and the client remains usable
            StatementSubmissionFailure: In strict mode, after the batch, if
                any statement failed
        """
        self._check_open('apply')
        self._require_entities('apply')
        batch = [(model.table_name, model.render_create_statement())
                 for model in self._entities]
        return self._submit_all(batch)

    def drop(self) -> list[StatementResult]:
        """Drop every registered table, in reverse registration order.

        Same reporting and strict-mode rules as `apply`.
        """
        self._check_open('drop')
        self._require_entities('drop')
        batch = [(model.table_name, model.render_drop_statement())
                 for model in reversed(self._entities)]
        return self._submit_all(batch)

    def shutdown(self) -> None:
        """Close the connection. The client cannot be used afterwards.
        """
        self._check_open('shut down')
        self._closed = True
        self._connection.close()
        logger.debug('Mapping client shut down')

    def _require_entities(self, operation: str) -> None:
        if not self._entities:
            logger.warning(f'Nothing to {operation}: no models registered')
            raise NoEntitiesRegistered(f'Cannot {operation}: no models registered')

    def _submit_all(self, batch: list[tuple[str, str]]) -> list[StatementResult]:
        results = [self._submit(table, sql) for table, sql in batch]

        failures = [result for result in results if not result.ok]
        if failures:
            logger.error(f'{len(failures)} of {len(results)} statement(s) failed')
            if self.strict:
                raise StatementSubmissionFailure(failures)
        return results

    def _submit(self, table: str, sql: str) -> StatementResult:
        logger.info(sql)
        try:
            self._connection.execute(sql)
        except StatementError as err:
            logger.error(f'Statement for {table} failed: {err}')
            return StatementResult(table, sql, str(err))
        return StatementResult(table, sql)
