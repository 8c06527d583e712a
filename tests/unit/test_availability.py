"""Tests for the table availability cache."""

import json

import pytest

from hope_erp.data.availability import DEFAULT_NAMESPACE, AvailabilityCache, ProbeState
from hope_erp.data.persistence import KeyValueStore, MemoryStore


class FailingStore(MemoryStore):
    def set_item(self, key, value):
        raise OSError("disk full")

    def remove_item(self, key):
        raise OSError("read-only filesystem")


class CountingStore(MemoryStore):
    def __init__(self, initial=None):
        super().__init__(initial)
        self.reads = 0

    def get_item(self, key):
        self.reads += 1
        return super().get_item(key)


class TestAvailabilityCache:
    def test_unknown_resource_is_none(self, cache):
        assert cache.get("surgery_cases") is None

    def test_set_and_get(self, cache):
        cache.set("surgery_cases", True)
        cache.set("sales_opportunities", False)

        assert cache.get("surgery_cases") is True
        assert cache.get("sales_opportunities") is False

    def test_set_twice_is_idempotent(self, cache):
        cache.set("regions", True)
        cache.set("regions", True)
        assert cache.get("regions") is True

    def test_persists_whole_mapping_under_namespace(self, memory_store):
        cache = AvailabilityCache(memory_store)
        cache.set("regions", True)
        cache.set("sales_reps", False)

        stored = json.loads(memory_store.get_item(DEFAULT_NAMESPACE))
        assert stored == {"regions": True, "sales_reps": False}

    def test_survives_reload(self, memory_store):
        AvailabilityCache(memory_store).set("regions", True)

        reloaded = AvailabilityCache(memory_store)
        assert reloaded.get("regions") is True

    def test_survives_reload_from_disk(self, temp_data_dir):
        AvailabilityCache(KeyValueStore(temp_data_dir)).set("surgeons", False)

        reloaded = AvailabilityCache(KeyValueStore(temp_data_dir))
        assert reloaded.get("surgeons") is False

    def test_hydrates_lazily_once(self):
        store = CountingStore({DEFAULT_NAMESPACE: json.dumps({"regions": True})})
        cache = AvailabilityCache(store)
        assert store.reads == 0

        cache.get("regions")
        cache.get("surgeons")
        assert store.reads == 1

    def test_set_keeps_entries_from_store(self):
        store = MemoryStore({DEFAULT_NAMESPACE: json.dumps({"regions": True})})
        cache = AvailabilityCache(store)

        cache.set("surgeons", False)

        assert json.loads(store.get_item(DEFAULT_NAMESPACE)) == {"regions": True, "surgeons": False}

    @pytest.mark.parametrize("raw", ["{not json", "[1, 2, 3]", "true", '"text"'])
    def test_corrupt_store_treated_as_empty(self, raw):
        cache = AvailabilityCache(MemoryStore({DEFAULT_NAMESPACE: raw}))
        assert cache.get("regions") is None
        assert cache.snapshot() == {}

    def test_non_boolean_values_are_dropped(self):
        raw = json.dumps({"regions": True, "surgeons": "yes", "sales_reps": 1})
        cache = AvailabilityCache(MemoryStore({DEFAULT_NAMESPACE: raw}))
        assert cache.snapshot() == {"regions": True}

    def test_write_failure_does_not_raise(self):
        cache = AvailabilityCache(FailingStore())
        cache.set("regions", False)
        cache.reset()
        cache.set("regions", True)
        assert cache.get("regions") is True

    def test_reset_single_resource(self, memory_store):
        cache = AvailabilityCache(memory_store)
        cache.set("regions", True)
        cache.set("sales_opportunities", False)

        cache.reset("sales_opportunities")

        assert cache.get("sales_opportunities") is None
        assert cache.get("regions") is True
        assert AvailabilityCache(memory_store).get("sales_opportunities") is None

    def test_reset_all_removes_persisted_key(self, memory_store):
        cache = AvailabilityCache(memory_store)
        cache.set("regions", True)

        cache.reset()

        assert cache.snapshot() == {}
        assert memory_store.get_item(DEFAULT_NAMESPACE) is None

    def test_custom_namespace(self, memory_store):
        AvailabilityCache(memory_store, namespace="dashboard_tables_available").set("regions", True)
        assert memory_store.get_item("dashboard_tables_available") is not None
        assert memory_store.get_item(DEFAULT_NAMESPACE) is None


class TestProbeState:
    def test_lifecycle(self, cache):
        assert cache.state("regions") == ProbeState.IDLE

        cache.begin_probe("regions")
        assert cache.state("regions") == ProbeState.PROBING

        cache.set("regions", False)
        assert cache.state("regions") == ProbeState.KNOWN

        cache.reset("regions")
        assert cache.state("regions") == ProbeState.IDLE

    def test_begin_probe_on_known_is_noop(self, cache):
        cache.set("regions", True)
        cache.begin_probe("regions")
        assert cache.state("regions") == ProbeState.KNOWN

    def test_persisted_entries_are_known(self):
        cache = AvailabilityCache(MemoryStore({DEFAULT_NAMESPACE: json.dumps({"regions": False})}))
        assert cache.state("regions") == ProbeState.KNOWN
