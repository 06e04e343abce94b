"""
Declarative table definitions and their CREATE TABLE rendering.

A `Model` is a table name plus an ordered tuple of `Column` objects built
from plain mappings:

    Owner = Model('Owner', [
        {'name': 'id', 'type': 'INTEGER', 'pk': True},
        {'name': 'name', 'type': 'TEXT', 'nullable': False},
        {'name': 'phone', 'type': 'INTEGER', 'nullable': False, 'unique': True},
    ])

    Owner.render_create_statement()
    # CREATE TABLE IF NOT EXISTS Owner ( id INTEGER PRIMARY KEY ,
    #   name TEXT NOT NULL , phone INTEGER NOT NULL UNIQUE )   (one line)

Rendered text is deterministic: columns appear in declaration order joined by
``' , '``, and each column's constraints always follow the order PRIMARY KEY,
NOT NULL, UNIQUE. Identifiers and type tokens are emitted as given, unquoted.
Nothing here touches a connection.
"""
import logging
from collections.abc import Iterable, Mapping
from dataclasses import dataclass
from typing import Any, TypedDict

from dbmodel.exceptions import InvalidSpec

__all__ = ['Column', 'ColumnSpec', 'Model']

logger = logging.getLogger(__name__)

COLUMN_SEPARATOR = ' , '


class ColumnSpec(TypedDict, total=False):
    """Plain-mapping form accepted by `Column.from_spec`."""
    name: str
    type: str
    pk: bool
    nullable: bool
    unique: bool
    references: str


_SPEC_KEYS = ColumnSpec.__required_keys__ | ColumnSpec.__optional_keys__

# spec key -> (Column field, default)
_FLAG_DEFAULTS = {
    'pk': ('is_primary_key', False),
    'nullable': ('is_nullable', True),
    'unique': ('is_unique', False),
}


def _require_identifier(value: Any, what: str) -> str:
    if not isinstance(value, str) or not value.strip():
        raise InvalidSpec(f'{what} must be a non-empty string, got {value!r}')
    if value != value.strip():
        raise InvalidSpec(f'{what} must not have surrounding whitespace, got {value!r}')
    return value


def _flag(spec: Mapping[str, Any], key: str) -> bool:
    """Read a flag from a spec, None meaning the default."""
    _, default = _FLAG_DEFAULTS[key]
    value = spec.get(key)
    return default if value is None else value


@dataclass(frozen=True)
class Column:
    """One field of a table.

    `references` names a foreign key target. It is kept on the column but is
    not rendered.
    """
    name: str
    type: str
    is_primary_key: bool = False
    is_nullable: bool = True
    is_unique: bool = False
    references: str | None = None

    def __post_init__(self):
        _require_identifier(self.name, 'Column name')
        _require_identifier(self.type, f'Type of column {self.name!r}')
        for key, (field, _) in _FLAG_DEFAULTS.items():
            value = getattr(self, field)
            if not isinstance(value, bool):
                raise InvalidSpec(f'Column flag {key!r} of {self.name!r} must be a bool, '
                                  f'got {value!r}')

    @classmethod
    def from_spec(cls, spec: 'ColumnSpec | Mapping[str, Any] | Column') -> 'Column':
        """Build a Column from a plain mapping.

        Missing `pk` and `unique` default to False, missing `nullable` to True.
        Unrecognized keys are ignored with a warning. An existing Column is
        returned as is.

        Raises
            InvalidSpec: If `name` or `type` is missing, empty or padded with
                whitespace, or a flag is not a bool
        """
        if isinstance(spec, Column):
            return spec
        if not isinstance(spec, Mapping):
            raise InvalidSpec(f'Column spec must be a mapping, got {type(spec).__name__}')

        unknown = set(spec) - _SPEC_KEYS
        if unknown:
            logger.warning(f'Ignoring unrecognized keys {sorted(unknown, key=str)} '
                           f'in spec for column {spec.get("name")!r}')

        flags = {field: _flag(spec, key) for key, (field, _) in _FLAG_DEFAULTS.items()}
        return cls(
            name=spec.get('name'),
            type=spec.get('type'),
            references=spec.get('references'),
            **flags
        )

    def render(self) -> str:
        """Render the column clause, e.g. ``phone INTEGER NOT NULL UNIQUE``."""
        parts = [self.name, self.type]
        if self.is_primary_key:
            parts.append('PRIMARY KEY')
        if not self.is_nullable:
            parts.append('NOT NULL')
        if self.is_unique:
            parts.append('UNIQUE')
        return ' '.join(parts)


class Model:
    """A table definition: a name and an ordered, non-empty tuple of columns.
    """

    __slots__ = ('_table_name', '_columns')

    def __init__(self, table_name: str,
                 column_specs: Iterable['ColumnSpec | Mapping[str, Any] | Column']) -> None:
        self._table_name = _require_identifier(table_name, 'Table name')
        if isinstance(column_specs, (str, bytes, Mapping)) or column_specs is None:
            raise InvalidSpec(f'Columns of {table_name} must be a sequence of column specs')
        self._columns = tuple(Column.from_spec(spec) for spec in column_specs)
        if not self._columns:
            raise InvalidSpec(f'Table {table_name} must define at least one column')

    @property
    def table_name(self) -> str:
        return self._table_name

    @property
    def columns(self) -> tuple[Column, ...]:
        return self._columns

    @property
    def column_names(self) -> list[str]:
        return [col.name for col in self._columns]

    @property
    def primary_key(self) -> str | None:
        """Name of the first primary key column, if any."""
        for col in self._columns:
            if col.is_primary_key:
                return col.name
        return None

    def render_create_statement(self) -> str:
        """Render the CREATE TABLE IF NOT EXISTS statement for this table.
        """
        clauses = COLUMN_SEPARATOR.join(col.render() for col in self._columns)
        sql = f'CREATE TABLE IF NOT EXISTS {self._table_name} ( {clauses} )'
        logger.debug(f'Rendered {self._table_name}: {sql}')
        return sql

    def render_drop_statement(self) -> str:
        """Render the DROP TABLE IF EXISTS statement for this table.
        """
        return f'DROP TABLE IF EXISTS {self._table_name}'

    def __eq__(self, other: object) -> bool:
        if not isinstance(other, Model):
            return NotImplemented
        return (self._table_name, self._columns) == (other._table_name, other._columns)

    def __hash__(self) -> int:
        return hash((self._table_name, self._columns))

    def __repr__(self) -> str:
        return f'Model({self._table_name!r}, columns={self.column_names!r})'
