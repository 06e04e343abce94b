import dbmodel
import pytest


def test_connect_sqlite(sqlite_conn):
    """Test connecting to an in-memory database"""
    assert sqlite_conn.dialect == 'sqlite'
    assert not sqlite_conn.closed
    assert sqlite_conn.list_tables() == []


def test_execute_tracks_calls(sqlite_conn):
    """Test statement counting"""
    sqlite_conn.execute('CREATE TABLE IF NOT EXISTS Tag ( label TEXT )')
    sqlite_conn.execute('CREATE TABLE IF NOT EXISTS Tag ( label TEXT )')

    assert sqlite_conn.calls == 2
    assert sqlite_conn.table_exists('Tag')


def test_syntax_error_is_not_retried(sqlite_conn):
    """Test a malformed statement fails on the first attempt"""
    with pytest.raises(dbmodel.StatementError):
        sqlite_conn.execute('CREATE TABLE IF NOT EXISTS Order ( id INTEGER )')

    assert sqlite_conn.calls == 1


@pytest.mark.parametrize('column', ['ssl', 'timeout', 'tls'])
def test_duplicate_column_is_not_retried(sqlite_conn, column):
    """Test a rejected statement naming a network-sounding column fails once"""
    sql = f'CREATE TABLE IF NOT EXISTS Cert ( {column} TEXT , {column} TEXT )'

    with pytest.raises(dbmodel.StatementError, match='duplicate column name'):
        sqlite_conn.execute(sql)

    assert sqlite_conn.calls == 1


def test_duplicate_column_reported_by_client(sqlite_client):
    """Test the client records the failure after a single submission"""
    cert = dbmodel.Model('Cert', [
        {'name': 'timeout', 'type': 'INTEGER'},
        {'name': 'timeout', 'type': 'INTEGER'},
    ])
    sqlite_client.register_models(cert)

    results = sqlite_client.apply()

    assert not results[0].ok
    assert 'duplicate column name: timeout' in results[0].error
    assert sqlite_client.connection.calls == 1


def test_foreign_keys_enabled(sqlite_conn):
    """Test connections are configured with foreign key enforcement"""
    cursor = sqlite_conn.dbapi_connection.cursor()
    try:
        cursor.execute('PRAGMA foreign_keys')
        assert cursor.fetchone()[0] == 1
    finally:
        cursor.close()


def test_connections_are_isolated():
    """Test each in-memory connection gets its own database"""
    options = dbmodel.SchemaOptions(drivername='sqlite', database=':memory:')
    with dbmodel.connect(options) as first, dbmodel.connect(options) as second:
        first.execute('CREATE TABLE Tag ( label TEXT )')
        assert second.list_tables() == []


def test_context_manager_closes(tmp_path):
    with dbmodel.connect({'drivername': 'sqlite', 'database': str(tmp_path / 'ctx.db')}) as cn:
        cn.execute('CREATE TABLE IF NOT EXISTS Tag ( label TEXT )')

    assert cn.closed


def test_statements_are_committed_without_explicit_commit(tmp_path):
    """Test auto-commit applies each statement before the connection closes"""
    options = dbmodel.SchemaOptions(drivername='sqlite', database=str(tmp_path / 'commit.db'))
    writer = dbmodel.connect(options)
    writer.execute('CREATE TABLE IF NOT EXISTS Tag ( label TEXT )')
    writer.execute("INSERT INTO Tag (label) VALUES ('urgent')")

    with dbmodel.connect(options) as reader:
        assert reader.table_exists('Tag')
        cursor = reader.dbapi_connection.cursor()
        try:
            cursor.execute('SELECT label FROM Tag')
            assert cursor.fetchall() == [('urgent',)]
        finally:
            cursor.close()

    writer.close()
