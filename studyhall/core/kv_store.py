# studyhall/core/kv_store.py
"""
Durable key-value storage for the client's persisted state.

SQLite is the default backend; Redis can be selected through STORE_BACKEND.
Values are opaque serialized strings - interpretation belongs to
the persistence layer.
"""

import logging
import sqlite3
from abc import ABC, abstractmethod
from typing import Dict, Optional

import redis

from studyhall.core.config import settings

logger = logging.getLogger(__name__)


class KeyValueStore(ABC):
    @abstractmethod
    def get(self, key: str) -> Optional[str]:
        pass

    @abstractmethod
    def set(self, key: str, value: str) -> None:
        pass

    @abstractmethod
    def delete(self, key: str) -> None:
        pass


class InMemoryKeyValueStore(KeyValueStore):
    def __init__(self, initial: Optional[Dict[str, str]] = None):
        self._data: Dict[str, str] = dict(initial or {})

    def get(self, key: str) -> Optional[str]:
        return self._data.get(key)

    def set(self, key: str, value: str) -> None:
        self._data[key] = value

    def delete(self, key: str) -> None:
        self._data.pop(key, None)


class SqliteKeyValueStore(KeyValueStore):
    def __init__(self, db_path: str = "studyhall.db"):
        self.db_path = db_path
        self.init_database()

    def init_database(self):
        """Initialize the database with the key-value table"""
        conn = self.get_connection()
        try:
            conn.execute("""
                CREATE TABLE IF NOT EXISTS kv_store (
                    key TEXT PRIMARY KEY,
                    value TEXT NOT NULL,
                    updated_at TIMESTAMP DEFAULT CURRENT_TIMESTAMP
                )
            """)
            conn.commit()
        finally:
            conn.close()

    def get_connection(self):
        return sqlite3.connect(self.db_path)

    def get(self, key: str) -> Optional[str]:
        conn = self.get_connection()
        try:
            row = conn.execute("SELECT value FROM kv_store WHERE key = ?", (key,)).fetchone()
        finally:
            conn.close()
        return row[0] if row else None

    def set(self, key: str, value: str) -> None:
        conn = self.get_connection()
        try:
            conn.execute("""
                INSERT OR REPLACE INTO kv_store (key, value, updated_at)
                VALUES (?, ?, CURRENT_TIMESTAMP)
            """, (key, value))
            conn.commit()
        finally:
            conn.close()

    def delete(self, key: str) -> None:
        conn = self.get_connection()
        try:
            conn.execute("DELETE FROM kv_store WHERE key = ?", (key,))
            conn.commit()
        finally:
            conn.close()


class RedisKeyValueStore(KeyValueStore):
    """Plain GET/SET under a fixed prefix; persisted state never expires"""

    def __init__(self, redis_client: redis.Redis, prefix: str = "studyhall"):
        self.redis = redis_client
        self.prefix = prefix

    def _key(self, key: str) -> str:
        return f"{self.prefix}:{key}"

    def get(self, key: str) -> Optional[str]:
        value = self.redis.get(self._key(key))
        if isinstance(value, bytes):
            value = value.decode("utf-8")
        return value

    def set(self, key: str, value: str) -> None:
        self.redis.set(self._key(key), value)

    def delete(self, key: str) -> None:
        self.redis.delete(self._key(key))


def create_redis_client() -> Optional[redis.Redis]:
    """Create Redis client, or None when the server is unreachable"""
    try:
        client = redis.Redis(
            host=settings.REDIS_HOST,
            port=settings.REDIS_PORT,
            db=settings.REDIS_DB,
            password=settings.REDIS_PASSWORD or None,
            decode_responses=True,
            socket_connect_timeout=5,
            socket_timeout=5
        )
        client.ping()
        logger.info("Redis connection successful")
        return client
    except redis.RedisError as e:
        logger.error(f"Redis connection failed: {e}")
        return None


def create_store() -> KeyValueStore:
    """Build the configured backend; redis falls back to sqlite when down"""
    if settings.STORE_BACKEND == "redis":
        client = create_redis_client()
        if client is not None:
            return RedisKeyValueStore(client)
        logger.warning("Falling back to sqlite store at %s", settings.STORE_PATH)
    elif settings.STORE_BACKEND == "memory":
        return InMemoryKeyValueStore()
    return SqliteKeyValueStore(settings.STORE_PATH)
