"""
YAML file data store.

Each collection lives in its own YAML file under the data directory as a
list of mappings. All access goes through transactions: a transaction
holds the store-wide file lock, works on an in-memory copy of the
collections it touches and writes them back only when it finishes
without an error. Transactions nest; only the outermost one commits.
"""
import copy
import logging
import os
import threading
import uuid
from contextlib import contextmanager
from datetime import datetime
from typing import Any, Dict, Iterator, List, Optional

import yaml
from filelock import FileLock, Timeout

from . import config
from .exceptions import StoreError

logger = logging.getLogger(__name__)

COLLECTIONS = ('teams', 'team_members', 'tournaments', 'matches', 'standings', 'participants')


class YamlStore:
    def __init__(self, data_dir: Optional[str] = None, lock_timeout: Optional[float] = None):
        self.data_dir = data_dir or config.DATA_DIR
        self.lock_timeout = lock_timeout if lock_timeout is not None else config.LOCK_TIMEOUT
        os.makedirs(self.data_dir, exist_ok=True)
        self._lock = FileLock(os.path.join(self.data_dir, '.lock'), timeout=self.lock_timeout)
        self._state = threading.local()

    def __repr__(self):
        return f"YamlStore(data_dir={self.data_dir})"

    # -- files ---------------------------------------------------------------

    def _path(self, collection: str) -> str:
        if collection not in COLLECTIONS:
            raise StoreError(f'Unknown collection: {collection!r}')
        return os.path.join(self.data_dir, f'{collection}.yaml')

    def _read(self, collection: str) -> List[Dict[str, Any]]:
        path = self._path(collection)
        if not os.path.exists(path):
            return []
        try:
            with open(path, 'r', encoding='utf-8') as f:
                data = yaml.safe_load(f)
        except (OSError, yaml.YAMLError) as e:
            raise StoreError(f'Failed to read {path}: {e}') from e
        if not data:
            return []
        if not isinstance(data, list):
            raise StoreError(f'{path} does not contain a list of records')
        return data

    def _write(self, collection: str, rows: List[Dict[str, Any]]):
        path = self._path(collection)
        tmp_path = path + '.tmp'
        try:
            with open(tmp_path, 'w', encoding='utf-8') as f:
                yaml.safe_dump(rows, f, default_flow_style=False, allow_unicode=True)
            os.replace(tmp_path, path)
        except OSError as e:
            raise StoreError(f'Failed to write {path}: {e}') from e

    # -- transactions --------------------------------------------------------

    @property
    def in_transaction(self) -> bool:
        return getattr(self._state, 'depth', 0) > 0

    @contextmanager
    def transaction(self) -> Iterator['YamlStore']:
        """Hold the store lock; commit every touched collection when the outermost block exits cleanly."""
        try:
            self._lock.acquire()
        except Timeout as e:
            raise StoreError(f'Timed out after {self.lock_timeout}s waiting for {self._lock.lock_file}') from e

        state = self._state
        if not self.in_transaction:
            state.depth = 0
            state.tables = {}
            state.dirty = set()
        state.depth += 1
        try:
            yield self
            if state.depth == 1:
                for collection in sorted(state.dirty):
                    self._write(collection, state.tables[collection])
                if state.dirty:
                    logger.debug('Committed %s', ', '.join(sorted(state.dirty)))
        finally:
            state.depth -= 1
            if state.depth == 0:
                state.tables = {}
                state.dirty = set()
            self._lock.release()

    def _table(self, collection: str) -> List[Dict[str, Any]]:
        tables = self._state.tables
        if collection not in tables:
            tables[collection] = self._read(collection)
        return tables[collection]

    def _touch(self, collection: str):
        self._state.dirty.add(collection)

    @contextmanager
    def event_lock(self, event_id: str) -> Iterator[None]:
        """Serialize tournament creation and deletion for one event across processes."""
        safe_id = ''.join(c if c.isalnum() or c in '-_' else '_' for c in str(event_id))
        lock = FileLock(os.path.join(self.data_dir, f'.event-{safe_id}.lock'), timeout=self.lock_timeout)
        try:
            lock.acquire()
        except Timeout as e:
            raise StoreError(f'Timed out waiting for event {event_id} lock') from e
        try:
            yield
        finally:
            lock.release()

    # -- records -------------------------------------------------------------

    @staticmethod
    def _matches(row: Dict[str, Any], filters: Dict[str, Any]) -> bool:
        for key, expected in filters.items():
            value = row.get(key)
            if isinstance(expected, (list, tuple, set, frozenset)):
                if value not in expected:
                    return False
            elif value != expected:
                return False
        return True

    def insert(self, collection: str, rows: List[Dict[str, Any]]) -> List[Dict[str, Any]]:
        """Append rows, giving each an id and a creation timestamp when missing."""
        with self.transaction():
            table = self._table(collection)
            existing_ids = {row.get('id') for row in table}
            inserted = []
            for row in rows:
                row = copy.deepcopy(row)
                if not row.get('id'):
                    row['id'] = str(uuid.uuid4())
                if row['id'] in existing_ids:
                    raise StoreError(f'Duplicate id {row["id"]} in {collection}')
                row.setdefault('created_at', datetime.now().isoformat())
                existing_ids.add(row['id'])
                table.append(row)
                inserted.append(copy.deepcopy(row))
            if inserted:
                self._touch(collection)
            return inserted

    def select(self, collection: str, order_by: Optional[List[str]] = None, **filters) -> List[Dict[str, Any]]:
        """Rows matching all filters; a list/tuple filter value means 'one of'."""
        with self.transaction():
            rows = [copy.deepcopy(row) for row in self._table(collection) if self._matches(row, filters)]
        if order_by:
            rows.sort(key=lambda row: tuple(_sort_value(row.get(key)) for key in order_by))
        return rows

    def get(self, collection: str, id: str) -> Optional[Dict[str, Any]]:
        rows = self.select(collection, id=id)
        return rows[0] if rows else None

    def update(self, collection: str, id: str, fields: Dict[str, Any]) -> Optional[Dict[str, Any]]:
        """Merge fields into the row with this id. Returns the updated row, or None if absent."""
        with self.transaction():
            for row in self._table(collection):
                if row.get('id') == id:
                    row.update(copy.deepcopy(fields))
                    row['updated_at'] = datetime.now().isoformat()
                    self._touch(collection)
                    return copy.deepcopy(row)
        return None

    def delete(self, collection: str, **filters) -> int:
        """Remove rows matching all filters. At least one filter is required."""
        if not filters:
            raise ValueError('delete() needs at least one filter')
        with self.transaction():
            table = self._table(collection)
            kept = [row for row in table if not self._matches(row, filters)]
            removed = len(table) - len(kept)
            if removed:
                table[:] = kept
                self._touch(collection)
        return removed


def _sort_value(value):
    # None sorts last without comparing against other types
    return (value is None, value if value is not None else 0)
