"""Integration tests for the DuckDB map store.

These tests use real DuckDB databases in temporary directories.
"""

import json

import duckdb

from libreanvil.architect.editing import add_map, replace_map
from libreanvil.architect.factories import create_new_map
from libreanvil.data.store import DuckDBMapStore, get_map_store


class TestDuckDBMapStore:
    """Test the map store with real database operations."""

    def test_init_with_memory_db(self):
        """Test the store works on an in-memory database."""
        with DuckDBMapStore(db_path=":memory:", storage_key="maps") as store:
            assert store.storage_key == "maps"
            assert len(store.load_maps()) == 1

    def test_init_creates_file(self, tmp_path):
        """Test a file database and its directory are created."""
        db_path = tmp_path / "nested" / "store.duckdb"
        store = DuckDBMapStore(db_path=str(db_path))
        store.close()
        assert db_path.exists()

    def test_empty_store_is_seeded(self, map_store):
        """Test loading an empty store returns and persists the defaults."""
        maps = map_store.load_maps()
        assert [m.name for m in maps] == ["Fantasy World"]
        assert map_store.load_maps() == maps

    def test_save_and_load(self, map_store, custom_map):
        """Test the whole collection is stored and restored."""
        maps = add_map(map_store.load_maps(), custom_map)
        map_store.save_maps(maps)
        assert map_store.load_maps() == maps

    def test_save_replaces_whole_value(self, map_store):
        """Test a save overwrites the previous collection."""
        maps = map_store.load_maps()
        renamed = maps[0].model_copy(update={"name": "Renamed"})
        map_store.save_maps(replace_map(maps, renamed))
        map_store.save_maps([create_new_map("Only")])

        loaded = map_store.load_maps()
        assert [m.name for m in loaded] == ["Only"]

    def test_persists_across_connections(self, tmp_path):
        """Test data survives reopening the database."""
        db_path = str(tmp_path / "persist.duckdb")
        new_map = create_new_map("Persistent")
        with DuckDBMapStore(db_path=db_path) as store:
            store.save_maps([new_map])

        with DuckDBMapStore(db_path=db_path) as store:
            assert store.load_maps() == [new_map]

    def test_storage_keys_are_independent(self, tmp_path):
        """Test two keys in one database do not share data."""
        db_path = str(tmp_path / "keys.duckdb")
        with DuckDBMapStore(db_path=db_path, storage_key="a") as store:
            store.save_maps([create_new_map("A")])
        with DuckDBMapStore(db_path=db_path, storage_key="b") as store:
            assert [m.name for m in store.load_maps()] == ["Fantasy World"]

    def test_reset(self, map_store):
        """Test reset re-seeds the defaults."""
        map_store.save_maps([create_new_map("Temporary")])
        maps = map_store.reset()
        assert [m.name for m in maps] == ["Fantasy World"]
        assert [m.name for m in map_store.load_maps()] == ["Fantasy World"]

    def test_invalid_stored_value(self, tmp_path):
        """Test an invalid stored value falls back to defaults without overwriting."""
        db_path = str(tmp_path / "broken.duckdb")
        with DuckDBMapStore(db_path=db_path) as store:
            store.save_maps([])

        conn = duckdb.connect(db_path)
        conn.execute("UPDATE kv_store SET value = ? WHERE key = 'maps'", ['[{"id": 1}]'])
        conn.close()

        with DuckDBMapStore(db_path=db_path) as store:
            assert [m.name for m in store.load_maps()] == ["Fantasy World"]
            raw = store._conn.execute("SELECT value FROM kv_store WHERE key = 'maps'").fetchone()[0]
            assert json.loads(raw) == [{"id": 1}]

    def test_invalid_value_survives_next_save(self, tmp_path):
        """Test the invalid value stays recoverable after the collection is saved again."""
        db_path = str(tmp_path / "broken.duckdb")
        with DuckDBMapStore(db_path=db_path, storage_key="maps") as store:
            store._conn.execute(
                "INSERT INTO kv_store (key, value) VALUES ('maps', ?)", ['[{"id": 1}]']
            )
            maps = store.load_maps()
            store.save_maps(maps)

            assert store.recovery_key == "maps.invalid"
            rows = dict(store._conn.execute("SELECT key, value FROM kv_store").fetchall())
            assert json.loads(rows["maps.invalid"]) == [{"id": 1}]
            assert json.loads(rows["maps"])[0]["name"] == "Fantasy World"


def test_get_map_store(tmp_path):
    """Test the global store accessor."""
    db_path = str(tmp_path / "global.duckdb")
    store = get_map_store(db_path=db_path, force_new=True)
    try:
        assert get_map_store() is store
        assert store.db_path == db_path
    finally:
        store.close()
