"""
Statement execution on the background loop.

Every call runs the same pipeline against the live driver connection:

    prepare → refine parameters → bind → execute

`query` hands back the raw records together with the column descriptors so
that decoding can happen on the caller's side; `execute` hands back the
affected row count taken from the command status tag.

Prepare-time failures (syntax errors, unknown relations) and execute-time
failures (constraint violations, runtime errors) are both raised as
ExecutionError. The two cannot be told apart by class; the message prefix
says which step failed but callers should not branch on it.
"""
import asyncio
import logging
import time
from collections.abc import Sequence
from functools import wraps
from typing import Any

import asyncpg
from pgbind.adapters.params import Parameter, bind_params, refine_params
from pgbind.exceptions import ExecutionError
from pgbind.types import Column

logger = logging.getLogger(__name__)

DriverError = (asyncpg.PostgresError, asyncpg.InterfaceError, OSError)


def parse_status(status: str | None) -> int:
    """Affected row count from a command tag such as `UPDATE 3`.

    `INSERT 0 1` → 1, `SELECT 2` → 2, `CREATE TABLE` → 0.
    """
    if not status:
        return 0
    last = status.rsplit(' ', 1)[-1]
    return int(last) if last.isdigit() else 0


def dumpsql(func):
    """Decorator for logging SQL, parameters and timing of a call."""
    @wraps(func)
    async def wrapper(self, sql: str, params: Sequence[Parameter], *args: Any, **kwargs: Any):
        start = time.time()
        logger.debug(f'SQL:\n{sql}\nargs: {list(params)}')
        try:
            return await func(self, sql, params, *args, **kwargs)
        except Exception:
            logger.error(f'Error with query:\nSQL:\n{sql}\nargs: {len(params)} parameters')
            raise
        finally:
            elapsed = time.time() - start
            self.addcall(elapsed)
            logger.debug(f'Query time: {elapsed:.4f}s')
    return wrapper


class StatementExecutor:
    """Runs statements on one asyncpg connection.

    The driver allows a single operation in flight per connection, so calls
    take the lock for the whole prepare/execute sequence; concurrent callers
    are served in arrival order.
    """

    def __init__(self, driver_connection: asyncpg.Connection) -> None:
        self.driver_connection = driver_connection
        self.calls = 0
        self.time = 0.0
        self._lock = asyncio.Lock()

    def addcall(self, elapsed: float) -> None:
        """Track execution statistics
        """
        self.time += elapsed
        self.calls += 1

    async def prepare(self, sql: str) -> Any:
        """Prepare `sql`, exposing declared parameter and column types.
        """
        if self.driver_connection.is_closed():
            raise ExecutionError('Prepare failed: connection is closed')
        try:
            return await self.driver_connection.prepare(sql)
        except DriverError as exc:
            raise ExecutionError(f'Prepare failed: {exc}') from exc

    async def _run(self, sql: str, params: list[Parameter]) -> tuple[Any, list[Any]]:
        statement = await self.prepare(sql)
        refine_params(params, [t.oid for t in statement.get_parameters()])
        values = bind_params(params)
        try:
            records = await statement.fetch(*values)
        except DriverError as exc:
            raise ExecutionError(f'Query execution failed: {exc}') from exc
        return statement, records

    @dumpsql
    async def query(self, sql: str, params: list[Parameter]) -> tuple[list[Any], list[Column]]:
        """Run a statement and return its records and column descriptors.
        """
        async with self._lock:
            statement, records = await self._run(sql, params)
        columns = [Column.from_attribute(attr) for attr in statement.get_attributes()]
        logger.debug(f'Query result: {statement.get_statusmsg()}')
        return records, columns

    @dumpsql
    async def execute(self, sql: str, params: list[Parameter]) -> int:
        """Run a statement and return the affected row count.
        """
        async with self._lock:
            statement, _ = await self._run(sql, params)
        status = statement.get_statusmsg()
        logger.debug(f'Query result: {status}')
        return parse_status(status)
