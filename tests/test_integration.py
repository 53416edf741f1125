"""
Live-server tests. Skipped unless RethinkDB listens on localhost:28015.
"""

import socket
import uuid

import pytest

from backends import RethinkDBBackend
from core.backend import Status

RETHINKDB_DEFAULT_PORT = 28015
TEST_DATA = {f"field_{i}": f"value_{i}" for i in range(1, 11)}


def _server_running() -> bool:
    try:
        with socket.create_connection(('localhost', RETHINKDB_DEFAULT_PORT), timeout=1):
            return True
    except OSError:
        return False


pytestmark = pytest.mark.skipif(
    not _server_running(),
    reason=f"RethinkDB is not running and listening on port {RETHINKDB_DEFAULT_PORT}",
)


@pytest.fixture
def live():
    table = f"test_{uuid.uuid4().hex[:8]}"
    backend = RethinkDBBackend({'rethinkdb.table': table, 'rethinkdb.database': 'ycsb_test'})
    backend.init()
    backend.insert(table, '1', TEST_DATA)
    backend.insert(table, '2', TEST_DATA)
    yield backend, table
    backend.client.r.db('ycsb_test').table_drop(table).run(backend.client.conn)
    backend.cleanup()


def test_insert_read_round_trip(live):
    backend, table = live
    assert backend.insert(table, '0', TEST_DATA).status is Status.OK
    assert backend.read(table, '0').data == TEST_DATA


def test_duplicate_insert_fails(live):
    backend, table = live
    assert backend.insert(table, '1', TEST_DATA).status is Status.ERROR


def test_update_is_partial(live):
    backend, table = live
    assert backend.update(table, '1', {'field_1': 'new_value'}).status is Status.OK
    assert backend.read(table, '1', {'field_1'}).data == {'field_1': 'new_value'}
    assert backend.read(table, '1', {'field_2'}).data == {'field_2': 'value_2'}


def test_update_missing_key(live):
    backend, table = live
    assert backend.update(table, 'nope', {'field_1': 'x'}).status is Status.NOT_FOUND
    assert backend.read(table, 'nope').status is Status.NOT_FOUND


def test_delete(live):
    backend, table = live
    assert backend.delete(table, '1').status is Status.OK
    assert backend.read(table, '1').status is Status.NOT_FOUND
    assert backend.delete(table, '1').status is Status.NOT_FOUND


def test_scan(live):
    backend, table = live
    result = backend.scan(table, '1', 10, {'field_1'})
    assert result.status is Status.OK
    assert result.data == [{'field_1': 'value_1'}, {'field_1': 'value_1'}]

    keys = backend.scan(table, '1', 10, {'__pk__'}).data
    assert [row['__pk__'] for row in keys] == ['1', '2']
    assert backend.scan(table, '1', 0).data == []
