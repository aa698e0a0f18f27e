"""
PostgreSQL type identifiers and column metadata.

Type OIDs are looked up once from psycopg's builtin type registry so the
marshaler and the row decoder dispatch on the same numeric identifiers the
server reports in a statement description.
"""
import datetime
import logging
from typing import Any, Self

from psycopg.postgres import types as pg_types

logger = logging.getLogger(__name__)

_oid = lambda x: pg_types.get(x).oid

BOOL = _oid('bool')
INT2 = _oid('int2')
INT4 = _oid('int4')
INT8 = _oid('int8')
FLOAT4 = _oid('float4')
FLOAT8 = _oid('float8')
NUMERIC = _oid('numeric')
TEXT = _oid('text')
VARCHAR = _oid('varchar')
BPCHAR = _oid('bpchar')
NAME = _oid('name')
BYTEA = _oid('bytea')
DATE = _oid('date')
TIME = _oid('time')
TIMESTAMP = _oid('timestamp')
TIMESTAMPTZ = _oid('timestamptz')
INTERVAL = _oid('interval')
UUID = _oid('uuid')
JSON = _oid('json')
JSONB = _oid('jsonb')

# Python type produced by the row decoder for each supported column type.
postgres_types: dict[int, type] = {
    BOOL: bool,
    INT2: int,
    INT4: int,
    INT8: int,
    FLOAT4: float,
    FLOAT8: float,
    NUMERIC: str,
    TEXT: str,
    VARCHAR: str,
    BPCHAR: str,
    NAME: str,
    BYTEA: bytes,
    DATE: datetime.date,
    TIME: datetime.time,
    TIMESTAMP: datetime.datetime,
    TIMESTAMPTZ: datetime.datetime,
    UUID: str,
    JSON: str,
    JSONB: str,
}


def type_name(oid: int) -> str:
    """Return the builtin type name for an OID, or the OID as text.
    """
    info = pg_types.get(oid)
    return info.name if info is not None else str(oid)


class Column:
    """Name and declared SQL type of one result column.
    """

    def __init__(self, name: str, type_code: int, type_name: str | None = None) -> None:
        self.name = name
        self.type_code = type_code
        self.type_name = type_name
        self.python_type = postgres_types.get(type_code)

    @classmethod
    def from_attribute(cls, attribute: Any) -> Self:
        """Create a Column from an asyncpg statement attribute.
        """
        return cls(attribute.name, attribute.type.oid, attribute.type.name)

    def __repr__(self) -> str:
        return (f'Column(name={self.name!r}, type_code={self.type_code!r}, '
                f'type_name={self.type_name!r})')

    def to_dict(self) -> dict[str, Any]:
        """Convert to dictionary for serialization.
        """
        return {
            'name': self.name,
            'type_code': self.type_code,
            'type_name': self.type_name,
            'python_type': self.python_type.__name__ if self.python_type else None,
            }

    @staticmethod
    def get_names(columns: list[Self]) -> list[str]:
        """Get column names from a list of Column objects.
        """
        return [col.name for col in columns]

    @staticmethod
    def get_column_types_dict(columns: list[Self]) -> dict[str, dict[str, Any]]:
        """Get a dictionary of column types indexed by name.
        """
        return {col.name: col.to_dict() for col in columns}
