"""Tests for the local key-value store."""

from hope_erp.data.persistence import KeyValueStore, MemoryStore, get_data_dir


class TestKeyValueStore:
    def test_init_creates_storage_directory(self, temp_data_dir):
        KeyValueStore(temp_data_dir)
        assert (temp_data_dir / "storage").exists()

    def test_set_and_get_item(self, temp_data_dir):
        store = KeyValueStore(temp_data_dir)
        store.set_item("sales_opportunities_table_available", "false")
        assert store.get_item("sales_opportunities_table_available") == "false"

    def test_get_missing_item(self, temp_data_dir):
        store = KeyValueStore(temp_data_dir)
        assert store.get_item("nonexistent") is None

    def test_overwrite_item(self, temp_data_dir):
        store = KeyValueStore(temp_data_dir)
        store.set_item("key", "one")
        store.set_item("key", "two")
        assert store.get_item("key") == "two"

    def test_remove_item(self, temp_data_dir):
        store = KeyValueStore(temp_data_dir)
        store.set_item("key", "value")

        store.remove_item("key")
        store.remove_item("key")  # Removing twice is fine

        assert store.get_item("key") is None

    def test_unsafe_keys_stay_inside_storage(self, temp_data_dir):
        store = KeyValueStore(temp_data_dir)
        store.set_item("../escape/attempt", "x")

        assert store.get_item("../escape/attempt") == "x"
        assert not (temp_data_dir.parent / "escape").exists()
        assert len(list((temp_data_dir / "storage").glob("*.json"))) == 1

    def test_keys_and_clear(self, temp_data_dir):
        store = KeyValueStore(temp_data_dir)
        store.set_item("a", "1")
        store.set_item("b", "2")

        assert store.keys() == ["a", "b"]

        store.clear()
        assert store.keys() == []

    def test_values_survive_new_instance(self, temp_data_dir):
        KeyValueStore(temp_data_dir).set_item("key", '{"regions": true}')
        assert KeyValueStore(temp_data_dir).get_item("key") == '{"regions": true}'


class TestMemoryStore:
    def test_round_trip(self):
        store = MemoryStore()
        store.set_item("a", "1")
        assert store.get_item("a") == "1"
        store.remove_item("a")
        assert store.get_item("a") is None

    def test_initial_items(self):
        store = MemoryStore({"a": "1", "b": "2"})
        assert store.keys() == ["a", "b"]
        store.clear()
        assert store.keys() == []


class TestGetDataDir:
    def test_env_override(self, temp_data_dir, monkeypatch):
        target = temp_data_dir / "erp"
        monkeypatch.setenv("HOPE_ERP_DATA_DIR", str(target))

        data_dir = get_data_dir()

        assert data_dir == target
        assert (target / "storage").exists()
        assert not (target / "logs").exists()
