"""Durable key-value stores backing the access ledger and the repository cache."""

import json
import logging
import os
import threading
from pathlib import Path
from typing import Dict, Optional, Protocol

import psycopg2
from psycopg2.pool import ThreadedConnectionPool

from repo_ranker.config import Settings
from repo_ranker.domain.errors import StorageReadError

logger = logging.getLogger(__name__)


class KeyValueStore(Protocol):
    """String key-value store persisted across process restarts."""

    def get(self, key: str) -> Optional[str]:
        ...

    def set(self, key: str, value: str) -> None:
        ...


class InMemoryKeyValueStore:
    """Process-local store, used in tests and for throwaway sessions."""

    def __init__(self, initial: Optional[Dict[str, str]] = None):
        self._data: Dict[str, str] = dict(initial or {})

    def get(self, key: str) -> Optional[str]:
        return self._data.get(key)

    def set(self, key: str, value: str) -> None:
        self._data[key] = value


class JsonFileKeyValueStore:
    """Store keeping every key in a single JSON object on disk."""

    def __init__(self, path: Path):
        self.path = Path(path)
        self._lock = threading.Lock()

    def _load(self) -> Dict[str, str]:
        if not self.path.exists():
            return {}
        try:
            data = json.loads(self.path.read_text(encoding="utf-8"))
        except (OSError, json.JSONDecodeError) as e:
            raise StorageReadError(f"Cannot read store file {self.path}: {e}") from e
        if not isinstance(data, dict):
            raise StorageReadError(f"Store file {self.path} does not hold a JSON object")
        return data

    def get(self, key: str) -> Optional[str]:
        with self._lock:
            return self._load().get(key)

    def set(self, key: str, value: str) -> None:
        with self._lock:
            try:
                data = self._load()
            except StorageReadError as e:
                logger.warning(f"Replacing unreadable store file: {e}")
                data = {}
            data[key] = value

            self.path.parent.mkdir(parents=True, exist_ok=True)
            # Write to a sibling file first so a crash never leaves half a document
            tmp_path = self.path.with_suffix(self.path.suffix + ".tmp")
            tmp_path.write_text(json.dumps(data, ensure_ascii=False), encoding="utf-8")
            os.replace(tmp_path, self.path)


class PostgresKeyValueStore:
    """Key-value store kept in a PostgreSQL table."""

    def __init__(self, connection_string: str):
        """
        Initialize PostgreSQL key-value store.

        Args:
            connection_string: PostgreSQL connection string
        """
        self.connection_string = connection_string
        self.pool: Optional[ThreadedConnectionPool] = None

    def connect(self):
        """Initialize connection pool."""
        try:
            self.pool = ThreadedConnectionPool(1, 5, self.connection_string)
            logger.info("Database connection pool created")
        except Exception as e:
            logger.error(f"Error creating connection pool: {e}")
            raise

    def close(self):
        """Close connection pool."""
        if self.pool:
            self.pool.closeall()
            self.pool = None
            logger.info("Database connection pool closed")

    def _get_connection(self):
        if not self.pool:
            self.connect()
        return self.pool.getconn()

    def _return_connection(self, conn):
        if self.pool:
            self.pool.putconn(conn)

    def initialize_schema(self):
        """Create the key-value table if it doesn't exist."""
        conn = self._get_connection()
        try:
            with conn.cursor() as cur:
                cur.execute("""
                    CREATE TABLE IF NOT EXISTS kv_store (
                        key VARCHAR(255) PRIMARY KEY,
                        value TEXT NOT NULL,
                        updated_at TIMESTAMPTZ DEFAULT CURRENT_TIMESTAMP
                    );
                """)
                conn.commit()
                logger.info("Key-value schema initialized")
        except Exception as e:
            conn.rollback()
            logger.error(f"Error initializing schema: {e}")
            raise
        finally:
            self._return_connection(conn)

    def get(self, key: str) -> Optional[str]:
        try:
            conn = self._get_connection()
        except psycopg2.Error as e:
            raise StorageReadError(f"Cannot connect to key-value store: {e}") from e
        try:
            with conn.cursor() as cur:
                cur.execute("SELECT value FROM kv_store WHERE key = %s", (key,))
                row = cur.fetchone()
                return row[0] if row else None
        except psycopg2.Error as e:
            conn.rollback()
            raise StorageReadError(f"Error reading key {key!r}: {e}") from e
        finally:
            self._return_connection(conn)

    def set(self, key: str, value: str) -> None:
        conn = self._get_connection()
        try:
            with conn.cursor() as cur:
                cur.execute(
                    """
                    INSERT INTO kv_store (key, value) VALUES (%s, %s)
                    ON CONFLICT (key)
                    DO UPDATE SET
                        value = EXCLUDED.value,
                        updated_at = CURRENT_TIMESTAMP
                    """,
                    (key, value),
                )
                conn.commit()
        except Exception as e:
            conn.rollback()
            logger.error(f"Error writing key {key!r}: {e}")
            raise
        finally:
            self._return_connection(conn)


def build_store(settings: Settings) -> KeyValueStore:
    """Create the key-value store selected by settings.store_backend."""
    if settings.store_backend == "postgres":
        store = PostgresKeyValueStore(settings.postgres_dsn)
        store.initialize_schema()
        return store
    if settings.store_backend == "memory":
        return InMemoryKeyValueStore()
    return JsonFileKeyValueStore(Path(settings.store_path).expanduser())
