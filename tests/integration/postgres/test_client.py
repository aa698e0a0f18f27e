import pgbind
import pytest
from pgbind.exceptions import ConnectionFailure
from tests import config
from tests.fixtures.postgres import connect_test_db

pytestmark = pytest.mark.integration


def test_select(psql_docker, conn):
    """Verify basic SELECT query returns proper results and structure.
    """
    result = pgbind.select(conn, 'select name, value from test_table order by value')

    expected_data = [
        {'name': 'Alice', 'value': 10},
        {'name': 'Bob', 'value': 20},
        {'name': 'Charlie', 'value': 30},
        {'name': 'Ethan', 'value': 50},
        {'name': 'Fiona', 'value': 70},
        {'name': 'George', 'value': 80},
    ]
    assert result == expected_data, 'The select query did not return the expected results.'


def test_select_with_parameter(psql_docker, conn):
    result = conn.query('select name from test_table where value > $1 order by value', 45)
    assert [row['name'] for row in result] == ['Ethan', 'Fiona', 'George']


def test_three_rows_keep_column_order(psql_docker, conn):
    """Rows keep exactly the selected keys in column order, call after call."""
    sql = 'select value::int4 as id, name::text as name from test_table order by value limit 3'
    first = conn.query(sql)
    second = conn.query(sql)
    for result in (first, second):
        assert len(result) == 3
        assert all(list(row) == ['id', 'name'] for row in result)
        assert [row['id'] for row in result] == [10, 20, 30]


def test_insert(psql_docker, conn):
    row_count = pgbind.insert(conn, 'insert into test_table (name, value) values ($1, $2)', 'Diana', 40)
    assert row_count == 1

    result = conn.query('select value from test_table where name = $1', 'Diana')
    assert result == [{'value': 40}]


def test_update(psql_docker, conn):
    row_count = pgbind.update(conn, 'update test_table set value = value + $1 where value < $2', 1, 25)
    assert row_count == 2


def test_delete(psql_docker, conn):
    row_count = pgbind.delete(conn, 'delete from test_table where value >= $1', 50)
    assert row_count == 3
    assert len(conn.query('select * from test_table')) == 3


def test_ddl_returns_zero(psql_docker, conn):
    assert conn.execute('create temporary table scratch (id int)') == 0


def test_empty_result(psql_docker, conn):
    assert conn.query('select * from test_table where value < 0') == []


def test_connect_with_dsn(psql_docker):
    pg = config.postgresql
    dsn = f'postgresql://{pg.username}:{pg.password}@{pg.hostname}:{pg.port}/{pg.database}'
    with pgbind.connect(dsn) as cn:
        assert cn.query('select current_database() as db') == [{'db': pg.database}]


def test_application_name(psql_docker):
    with connect_test_db(appname='pgbind-tests') as cn:
        result = cn.query("select current_setting('application_name') as name")
    assert result == [{'name': 'pgbind-tests'}]


def test_repr(psql_docker, conn):
    pg = config.postgresql
    assert repr(conn) == (f"Connection(host='{pg.hostname}', port={pg.port}, "
                          f"db='{pg.database}', user='{pg.username}')")


def test_statistics(psql_docker, conn):
    calls = conn.calls
    conn.query('select 1 as one')
    assert conn.calls == calls + 1


def test_unreachable_port():
    """A closed port is a connection error, never a configuration error."""
    with pytest.raises(ConnectionFailure):
        pgbind.connect(dsn='postgresql://u:p@localhost:1/db')


def test_wrong_password(psql_docker):
    pg = config.postgresql
    with pytest.raises(ConnectionFailure):
        pgbind.connect(host=pg.hostname, user=pg.username, password='wrong',
                       port=pg.port, db=pg.database)
