import pytest

from core.backend import BackendConnectionError, OperationError
from core.hosts import HostPool


class FakeRethinkClient:
    """In-memory stand-in for RethinkDBClient returning server-shaped write responses."""

    def __init__(self, databases=None, fail_connect=False):
        self.databases = {db: {} for db in (databases or [])}
        self.fail_connect = fail_connect
        self.conn = None
        self.connected_to = None
        self.calls = []
        self.fail_next = None
        self.create_races = set()

    def _maybe_fail(self):
        if self.fail_next is not None:
            error, self.fail_next = self.fail_next, None
            raise OperationError(error)

    def connect(self, host, port, timeout=20):
        if self.fail_connect:
            raise BackendConnectionError(f"Cannot connect to {host}:{port}: Connection refused")
        self.conn = object()
        self.connected_to = (host, port)

    def close(self):
        if self.conn is None:
            raise BackendConnectionError("Not connected")
        self.conn = None

    def db_list(self):
        self.calls.append(('db_list',))
        self._maybe_fail()
        return list(self.databases)

    def db_create(self, db):
        self.calls.append(('db_create', db))
        self._maybe_fail()
        if db in self.databases or db in self.create_races:
            self.databases.setdefault(db, {})
            return False
        self.databases[db] = {}
        return True

    def table_list(self, db):
        self.calls.append(('table_list', db))
        self._maybe_fail()
        return list(self.databases[db])

    def table_create(self, db, table, primary_key, durability):
        self.calls.append(('table_create', db, table, primary_key, durability))
        self._maybe_fail()
        if table in self.databases[db] or table in self.create_races:
            self.databases[db].setdefault(table, {})
            return False
        self.databases[db][table] = {}
        return True

    def table_wait(self, db, table):
        self.calls.append(('table_wait', db, table))
        self._maybe_fail()

    def _rows(self, db, table):
        if table not in self.databases.get(db, {}):
            raise OperationError(f"Table `{db}.{table}` does not exist.")
        return self.databases[db][table]

    @staticmethod
    def _pluck(row, fields):
        if not fields:
            return dict(row)
        return {f: row[f] for f in fields if f in row}

    def get(self, db, table, key, fields=None, read_mode=None):
        self.calls.append(('get', db, table, key, fields, read_mode))
        self._maybe_fail()
        row = self._rows(db, table).get(key)
        if row is None:
            return None
        return self._pluck(row, fields)

    def between(self, db, table, low_key, limit, fields=None, read_mode=None):
        self.calls.append(('between', db, table, low_key, limit, fields, read_mode))
        self._maybe_fail()
        rows = self._rows(db, table)
        keys = sorted(k for k in rows if k >= low_key)[:limit]
        return [self._pluck(rows[k], fields) for k in keys]

    def update(self, db, table, key, values, durability):
        self.calls.append(('update', db, table, key, dict(values), durability))
        self._maybe_fail()
        rows = self._rows(db, table)
        if key not in rows:
            return {'replaced': 0, 'unchanged': 0, 'skipped': 1, 'errors': 0}
        merged = {**rows[key], **values}
        if merged == rows[key]:
            return {'replaced': 0, 'unchanged': 1, 'skipped': 0, 'errors': 0}
        rows[key] = merged
        return {'replaced': 1, 'unchanged': 0, 'skipped': 0, 'errors': 0}

    def insert(self, db, table, document, durability):
        self.calls.append(('insert', db, table, dict(document), durability))
        self._maybe_fail()
        rows = self._rows(db, table)
        key = document['__pk__']
        if key in rows:
            return {
                'inserted': 0, 'errors': 1,
                'first_error': f'Duplicate primary key `__pk__`:\n{{"__pk__":\t"{key}"}}',
            }
        rows[key] = dict(document)
        return {'inserted': 1, 'errors': 0}

    def delete(self, db, table, key, durability):
        self.calls.append(('delete', db, table, key, durability))
        self._maybe_fail()
        rows = self._rows(db, table)
        if rows.pop(key, None) is None:
            return {'deleted': 0, 'skipped': 1, 'errors': 0}
        return {'deleted': 1, 'skipped': 0, 'errors': 0}


@pytest.fixture(autouse=True)
def isolated_environment(monkeypatch, tmp_path):
    """No RETHINKDB_* variables or .env leak into tests; fresh host pools."""
    for name in ('HOST', 'PORT', 'DURABILITY', 'TABLE', 'DATABASE', 'READ_CONSISTENCY', 'TIMEOUT'):
        monkeypatch.delenv(f"RETHINKDB_{name}", raising=False)
    monkeypatch.chdir(tmp_path)
    HostPool.reset_shared()
    yield
    HostPool.reset_shared()


@pytest.fixture
def fake_client():
    return FakeRethinkClient()


@pytest.fixture
def make_backend():
    from backends.rethink import RethinkDBBackend

    def _make(config=None, client=None, init=True):
        backend = RethinkDBBackend(config or {}, client=client or FakeRethinkClient())
        if init:
            backend.init()
        return backend

    return _make
