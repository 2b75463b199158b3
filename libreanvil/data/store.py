"""
DuckDB Map Store - Local persistence for the map collection.

The whole collection is stored as one JSON value under one key of a small
key-value table, and is always read and written wholesale.
"""

from pathlib import Path
from typing import List, Optional

import duckdb
from pydantic import TypeAdapter, ValidationError

from libreanvil.architect.seeder import default_maps
from libreanvil.config import get_config
from libreanvil.data.schemas.models import MapData
from libreanvil.utils.logger import get_logger

logger = get_logger(__name__)

_MAP_LIST = TypeAdapter(List[MapData])


class DuckDBMapStore:
    """
    Key-value store for the map collection.
    """

    def __init__(
        self,
        db_path: Optional[str] = None,
        storage_key: Optional[str] = None
    ):
        """
        Initialize the store.

        Args:
            db_path: Path to the DuckDB database file (defaults to config,
                ":memory:" for an in-memory database)
            storage_key: Key the collection is stored under (defaults to config)
        """
        config = get_config()
        self._db_path = db_path or config.storage.path
        self._storage_key = storage_key or config.storage.storage_key

        if self._db_path != ":memory:":
            Path(self._db_path).parent.mkdir(parents=True, exist_ok=True)

        self._conn = duckdb.connect(self._db_path)
        self._init_schema()
        logger.info(f"DuckDB Map Store initialized: {self._db_path}")

    @property
    def db_path(self) -> str:
        return self._db_path

    @property
    def storage_key(self) -> str:
        return self._storage_key

    @property
    def recovery_key(self) -> str:
        """Key holding the last stored value that failed validation."""
        return f"{self._storage_key}.invalid"

    def _init_schema(self) -> None:
        self._conn.execute("""
            CREATE TABLE IF NOT EXISTS kv_store (
                key VARCHAR PRIMARY KEY,
                value JSON NOT NULL,
                updated_at TIMESTAMP DEFAULT CURRENT_TIMESTAMP
            )
        """)

    def _write_raw(self, key: str, value: str) -> None:
        self._conn.execute("""
            INSERT OR REPLACE INTO kv_store (key, value, updated_at)
            VALUES (?, ?, CURRENT_TIMESTAMP)
        """, [key, value])

    def _read_raw(self) -> Optional[str]:
        row = self._conn.execute(
            "SELECT value FROM kv_store WHERE key = ?", [self._storage_key]
        ).fetchone()
        return row[0] if row else None

    def load_maps(self) -> List[MapData]:
        """
        Load the map collection.

        An empty store is seeded with the default collection. A stored value
        that no longer validates is copied to the recovery key and the
        defaults are returned instead; the next save replaces the original.

        Returns:
            List of MapData
        """
        raw = self._read_raw()
        if raw is None:
            maps = default_maps()
            self.save_maps(maps)
            logger.info(f"Seeded {len(maps)} default map(s) under '{self._storage_key}'")
            return maps

        try:
            maps = _MAP_LIST.validate_json(raw)
        except ValidationError as e:
            logger.error(f"Stored maps under '{self._storage_key}' are invalid: {e}")
            self._write_raw(self.recovery_key, raw)
            logger.warning(f"Kept a copy of the invalid maps under '{self.recovery_key}'")
            return default_maps()

        logger.debug(f"Loaded {len(maps)} map(s)")
        return maps

    def save_maps(self, maps: List[MapData]) -> None:
        """
        Replace the stored collection.

        Args:
            maps: The complete collection to persist
        """
        self._write_raw(self._storage_key, _MAP_LIST.dump_json(maps).decode("utf-8"))
        logger.debug(f"Saved {len(maps)} map(s)")

    def reset(self) -> List[MapData]:
        """Discard the stored collection and re-seed the defaults."""
        self._conn.execute("DELETE FROM kv_store WHERE key = ?", [self._storage_key])
        logger.info(f"Reset map store key '{self._storage_key}'")
        return self.load_maps()

    def close(self) -> None:
        """Close the database connection."""
        self._conn.close()
        logger.info("DuckDB connection closed")

    def __enter__(self):
        return self

    def __exit__(self, exc_type, exc_val, exc_tb):
        self.close()


# Global instance
_map_store: Optional[DuckDBMapStore] = None


def get_map_store(db_path: Optional[str] = None, force_new: bool = False) -> DuckDBMapStore:
    """
    Get the global map store instance.

    Args:
        db_path: Optional database path override
        force_new: Force creation of a new instance

    Returns:
        DuckDBMapStore instance
    """
    global _map_store

    if _map_store is None or force_new:
        _map_store = DuckDBMapStore(db_path=db_path)

    return _map_store
