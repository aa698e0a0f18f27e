import asyncpg
import pytest
from pgbind.exceptions import ExecutionError, UnsupportedType, is_retryable_error

pytestmark = pytest.mark.integration


def test_syntax_error(psql_docker, conn):
    with pytest.raises(ExecutionError) as excinfo:
        conn.query('selec 1')
    assert isinstance(excinfo.value.__cause__, asyncpg.PostgresSyntaxError)
    assert not is_retryable_error(excinfo.value)


def test_unknown_table(psql_docker, conn):
    with pytest.raises(ExecutionError, match='does_not_exist'):
        conn.query('select * from does_not_exist')


def test_constraint_violation(psql_docker, conn):
    with pytest.raises(ExecutionError) as excinfo:
        conn.execute('insert into test_table (name, value) values ($1, $2)', 'Alice', 1)
    assert isinstance(excinfo.value.__cause__, asyncpg.UniqueViolationError)


def test_runtime_error(psql_docker, conn):
    with pytest.raises(ExecutionError, match='division by zero'):
        conn.query('select 1 / $1::int4 as value', 0)


def test_connection_usable_after_error(psql_docker, conn):
    with pytest.raises(ExecutionError):
        conn.query('selec 1')
    assert conn.query('select 1::int4 as one') == [{'one': 1}]


def test_unsupported_column_type(psql_docker, conn):
    """A range column fails only that call, naming the column and OID."""
    with pytest.raises(UnsupportedType) as excinfo:
        conn.query('select int4range(1, 5) as span')
    message = str(excinfo.value)
    assert "'span'" in message
    assert '3904' in message

    assert conn.query('select 1::int4 as one') == [{'one': 1}]


def test_unsupported_type_in_empty_result(psql_docker, conn):
    """No rows means nothing to decode."""
    assert conn.query('select int4range(1, 5) as span where false') == []


def test_call_after_close(psql_docker, conn):
    conn.close()
    with pytest.raises(ExecutionError, match='closed'):
        conn.query('select 1::int4 as one')
