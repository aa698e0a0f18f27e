"""
PostgreSQL access with native Python values.

Statements can be run either as:
- Connection methods: cn.query(sql, *args), cn.execute(sql, *args)
- Module functions: pgbind.query(cn, sql, *args)
- Awaitables: await cn.query_async(sql, *args)

Placeholders are positional: $1, $2, ...
"""
__version__ = '0.1.0'

from typing import Any

from pgbind.connection import Connection, connect
from pgbind.exceptions import ConfigurationError, ConnectionFailure
from pgbind.exceptions import DatabaseError, DataConversionError
from pgbind.exceptions import ExecutionError, InvalidDsn, InvalidParameter
from pgbind.exceptions import MissingParameter, QueryError, RuntimeFailed
from pgbind.exceptions import TypeConversionError, UnsupportedType
from pgbind.exceptions import is_retryable_error
from pgbind.options import ConnectOptions
from pgbind.types import Column


def execute(cn: Connection, sql: str, *args: Any) -> int:
    """Execute a SQL statement and return affected row count.
    """
    return cn.execute(sql, *args)


delete = execute
insert = execute
update = execute


def query(cn: Connection, sql: str, *args: Any) -> Any:
    """Execute a SQL statement and return its rows.
    """
    return cn.query(sql, *args)


select = query


__all__ = [
    'connect',
    'Connection',
    'ConnectOptions',
    'Column',
    'execute',
    'delete',
    'insert',
    'update',
    'query',
    'select',
    'is_retryable_error',
    'DatabaseError',
    'ConfigurationError',
    'MissingParameter',
    'InvalidParameter',
    'InvalidDsn',
    'ConnectionFailure',
    'RuntimeFailed',
    'ExecutionError',
    'QueryError',
    'TypeConversionError',
    'UnsupportedType',
    'DataConversionError',
]
