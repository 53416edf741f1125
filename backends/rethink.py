"""
RethinkDB backend implementation.

Every benchmark operation is a single ReQL query against a table whose
primary key is the reserved ``__pk__`` field.
"""

import logging
import threading
import time
from typing import Any, Dict, List, Optional, Set

from rethinkdb import RethinkDB
from rethinkdb.errors import ReqlError, ReqlNonExistenceError, ReqlOpFailedError

from core.backend import (
    Backend, BackendType, BackendConnectionError, OperationError, OperationResult, Status,
)
from core.config import RethinkDBConfig
from core.hosts import HostPool

logger = logging.getLogger(__name__)

PRIMARY_KEY = '__pk__'

# Serializes the check-then-create schema bootstrap across worker threads.
_SCHEMA_LOCK = threading.Lock()


def _already_exists(exc: ReqlError) -> bool:
    return isinstance(exc, ReqlOpFailedError) and 'already exists' in str(exc)


class RethinkDBClient:
    """
    Thin wrapper around the rethinkdb driver.

    Driver exceptions surface as OperationError (queries) or
    BackendConnectionError (connect/close) so callers never see ReqlError.
    """

    def __init__(self):
        self.r = RethinkDB()
        self.conn = None

    def connect(self, host: str, port: int, timeout: int = 20):
        try:
            self.conn = self.r.connect(host=host, port=port, timeout=timeout)
        except ReqlError as e:
            raise BackendConnectionError(f"Cannot connect to {host}:{port}: {e}") from e

    def close(self):
        if self.conn is None:
            raise BackendConnectionError("Not connected")
        try:
            self.conn.close()
        except ReqlError as e:
            raise BackendConnectionError(str(e)) from e
        finally:
            self.conn = None

    def _run(self, query):
        try:
            return query.run(self.conn)
        except ReqlError as e:
            raise OperationError(str(e)) from e

    def _table(self, db: str, table: str, read_mode: Optional[str] = None):
        if read_mode:
            return self.r.db(db).table(table, read_mode=read_mode)
        return self.r.db(db).table(table)

    # ---- Schema ------------------------------------------------------------

    def db_list(self) -> List[str]:
        return list(self._run(self.r.db_list()))

    def db_create(self, db: str) -> bool:
        """Create a database; False if it already exists."""
        try:
            self.r.db_create(db).run(self.conn)
        except ReqlError as e:
            if _already_exists(e):
                return False
            raise OperationError(str(e)) from e
        return True

    def table_list(self, db: str) -> List[str]:
        return list(self._run(self.r.db(db).table_list()))

    def table_create(self, db: str, table: str, primary_key: str, durability: str) -> bool:
        """Create a table; False if it already exists."""
        try:
            self.r.db(db).table_create(
                table, primary_key=primary_key, durability=durability
            ).run(self.conn)
        except ReqlError as e:
            if _already_exists(e):
                return False
            raise OperationError(str(e)) from e
        return True

    def table_wait(self, db: str, table: str):
        self._run(self.r.db(db).table(table).wait())

    # ---- Records -----------------------------------------------------------

    def get(self, db: str, table: str, key: str, fields: Optional[List[str]] = None,
            read_mode: Optional[str] = None) -> Optional[Dict[str, Any]]:
        """Fetch one row by primary key; None when it does not exist."""
        query = self._table(db, table, read_mode).get(key)
        if fields:
            query = query.pluck(*fields).default(None)
        try:
            return query.run(self.conn)
        except ReqlNonExistenceError:
            return None
        except ReqlError as e:
            raise OperationError(str(e)) from e

    def between(self, db: str, table: str, low_key: str, limit: int,
                fields: Optional[List[str]] = None,
                read_mode: Optional[str] = None) -> List[Dict[str, Any]]:
        """Rows with primary key >= low_key in ascending key order."""
        query = (
            self._table(db, table, read_mode)
            .between(low_key, self.r.maxval)
            .order_by(index=self.r.asc(PRIMARY_KEY))
            .limit(limit)
        )
        if fields:
            query = query.pluck(*fields)
        return list(self._run(query))

    def update(self, db: str, table: str, key: str, values: Dict[str, str],
               durability: str) -> Dict[str, Any]:
        return self._run(self._table(db, table).get(key).update(values, durability=durability))

    def insert(self, db: str, table: str, document: Dict[str, str],
               durability: str) -> Dict[str, Any]:
        return self._run(
            self._table(db, table).insert(document, durability=durability, conflict='error')
        )

    def delete(self, db: str, table: str, key: str, durability: str) -> Dict[str, Any]:
        return self._run(self._table(db, table).get(key).delete(durability=durability))


def _elapsed_ms(start: float) -> float:
    return (time.perf_counter() - start) * 1000


def _strip_key(row: Dict[str, Any], fields: Optional[Set[str]]) -> Dict[str, str]:
    record = {k: str(v) for k, v in row.items()}
    if not fields or PRIMARY_KEY not in fields:
        record.pop(PRIMARY_KEY, None)
    return record


def _write_error(response: Dict[str, Any], expected: str) -> str:
    if response.get('first_error'):
        return response['first_error']
    counts = ', '.join(
        f"{k}={response[k]}" for k in
        ('inserted', 'replaced', 'unchanged', 'skipped', 'deleted', 'errors')
        if response.get(k)
    )
    return f"expected {expected}=1, got {counts or 'nothing'}"


class RethinkDBBackend(Backend):
    """
    RethinkDB backend for benchmarking.

    Note: one instance per worker thread; instances spread across the
    configured hosts in round-robin order.
    """

    def __init__(self, config: Optional[Dict[str, Any]] = None, client: Optional[RethinkDBClient] = None):
        super().__init__(config)
        self.backend_type = BackendType.RETHINKDB
        self.client = client or RethinkDBClient()
        self.settings = None
        self.host = None

    # ---- Lifecycle ---------------------------------------------------------

    def init(self) -> None:
        """Connect to one host and bootstrap the database and table."""
        try:
            self.settings = RethinkDBConfig.from_properties(self.config)
        except ValueError as e:
            raise BackendConnectionError(f"Invalid configuration: {e}") from e

        self.host = HostPool.shared(self.settings.hosts).next_host()
        logger.debug("Connecting to RethinkDB at %s:%d", self.host, self.settings.port)
        self.client.connect(self.host, self.settings.port, self.settings.timeout)
        self.connection = self.client.conn

        try:
            self._ensure_schema()
        except OperationError as e:
            self.cleanup()
            raise BackendConnectionError(f"Schema bootstrap failed: {e}") from e

    def _ensure_schema(self):
        db = self.settings.database
        table = self.settings.table

        with _SCHEMA_LOCK:
            if db not in self.client.db_list():
                if self.client.db_create(db):
                    logger.info("Created database %s", db)
                else:
                    logger.info("Database %s already exists", db)

            if table not in self.client.table_list(db):
                created = self.client.table_create(
                    db, table, primary_key=PRIMARY_KEY, durability=self.settings.durability
                )
                if created:
                    logger.info("Created table %s.%s (durability=%s)", db, table, self.settings.durability)
                else:
                    logger.info("Table %s.%s already exists", db, table)

            self.client.table_wait(db, table)

    def cleanup(self) -> None:
        """Close the connection; a second call raises."""
        try:
            self.client.close()
        finally:
            self.connection = None

    # ---- Operations --------------------------------------------------------

    def _not_connected(self) -> Optional[OperationResult]:
        if self.connection is None or self.settings is None:
            return OperationResult.failed("Not connected")
        return None

    def _failed(self, op: str, key: str, error: Exception, start: float) -> OperationResult:
        logger.warning("%s %s failed: %s", op, key, error)
        return OperationResult.failed(str(error), _elapsed_ms(start))

    def read(self, table: str, key: str, fields: Optional[Set[str]] = None) -> OperationResult:
        """
        Point lookup by primary key.

        Returns:
            OK with a field dict, or NOT_FOUND when no row matches
        """
        not_connected = self._not_connected()
        if not_connected:
            return not_connected

        start = time.perf_counter()
        try:
            row = self.client.get(
                self.settings.database, table, key,
                fields=sorted(fields) if fields else None,
                read_mode=self.settings.read_consistency,
            )
        except OperationError as e:
            return self._failed('read', key, e, start)

        if row is None:
            return OperationResult.not_found(_elapsed_ms(start))
        return OperationResult(
            status=Status.OK,
            latency_ms=_elapsed_ms(start),
            data=_strip_key(row, fields),
        )

    def scan(self, table: str, start_key: str, count: int,
             fields: Optional[Set[str]] = None) -> OperationResult:
        """
        Range scan over the primary key starting at start_key.

        An empty range is OK with an empty list.
        """
        not_connected = self._not_connected()
        if not_connected:
            return not_connected

        if count <= 0:
            return OperationResult(status=Status.OK, data=[])

        start = time.perf_counter()
        try:
            rows = self.client.between(
                self.settings.database, table, start_key, count,
                fields=sorted(fields) if fields else None,
                read_mode=self.settings.read_consistency,
            )
        except OperationError as e:
            return self._failed('scan', start_key, e, start)

        return OperationResult(
            status=Status.OK,
            latency_ms=_elapsed_ms(start),
            data=[_strip_key(row, fields) for row in rows],
        )

    def update(self, table: str, key: str, values: Dict[str, str]) -> OperationResult:
        """Partial update; NOT_FOUND when the key does not exist."""
        not_connected = self._not_connected()
        if not_connected:
            return not_connected

        start = time.perf_counter()
        document = {k: str(v) for k, v in values.items()}
        document.pop(PRIMARY_KEY, None)
        try:
            response = self.client.update(
                self.settings.database, table, key, document, self.settings.durability
            )
        except OperationError as e:
            return self._failed('update', key, e, start)

        if response.get('replaced', 0) == 1 and not response.get('errors'):
            return OperationResult(status=Status.OK, latency_ms=_elapsed_ms(start))
        if response.get('skipped', 0) == 1:
            return OperationResult.not_found(_elapsed_ms(start))
        return self._failed('update', key, OperationError(_write_error(response, 'replaced')), start)

    def insert(self, table: str, key: str, values: Dict[str, str]) -> OperationResult:
        """Insert a new record; a duplicate key is an ERROR."""
        not_connected = self._not_connected()
        if not_connected:
            return not_connected

        if not key:
            return OperationResult.failed("Empty primary key")

        start = time.perf_counter()
        document = {k: str(v) for k, v in values.items()}
        document[PRIMARY_KEY] = key
        try:
            response = self.client.insert(
                self.settings.database, table, document, self.settings.durability
            )
        except OperationError as e:
            return self._failed('insert', key, e, start)

        if response.get('inserted', 0) == 1 and not response.get('errors'):
            return OperationResult(status=Status.OK, latency_ms=_elapsed_ms(start))
        return self._failed('insert', key, OperationError(_write_error(response, 'inserted')), start)

    def delete(self, table: str, key: str) -> OperationResult:
        """Delete by key; NOT_FOUND when nothing was deleted."""
        not_connected = self._not_connected()
        if not_connected:
            return not_connected

        start = time.perf_counter()
        try:
            response = self.client.delete(
                self.settings.database, table, key, self.settings.durability
            )
        except OperationError as e:
            return self._failed('delete', key, e, start)

        if response.get('deleted', 0) == 1 and not response.get('errors'):
            return OperationResult(status=Status.OK, latency_ms=_elapsed_ms(start))
        if response.get('skipped', 0) == 1:
            return OperationResult.not_found(_elapsed_ms(start))
        return self._failed('delete', key, OperationError(_write_error(response, 'deleted')), start)

    def get_backend_info(self) -> Dict[str, Any]:
        info = super().get_backend_info()
        info['host'] = self.host
        if self.settings:
            info['settings'] = self.settings.to_dict()
        return info
