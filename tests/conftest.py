"""Pytest configuration and shared fixtures."""

import pytest
from pathlib import Path
from tempfile import TemporaryDirectory

from hope_erp.backend.base import BackendError, BaseBackend
from hope_erp.data.availability import AvailabilityCache
from hope_erp.data.persistence import MemoryStore


class FakeBackend(BaseBackend):
    """In-memory stand-in for the hosted service.

    ``tables`` and ``functions`` map names to a payload, an exception to
    raise, or a callable taking the requested columns / params. Unknown names
    fail the way a missing relation does.
    """

    def __init__(self, tables=None, functions=None):
        self.tables = dict(tables or {})
        self.functions = dict(functions or {})
        self.calls = []

    @property
    def name(self):
        return "fake"

    def is_available(self):
        return True

    def select(self, table, columns="*", filters=None, order=None, ascending=True, limit=None):
        self.calls.append(("select", table, columns, limit))
        value = self.tables.get(table, BackendError(table, "relation does not exist", status_code=404))
        if isinstance(value, Exception):
            raise value
        if callable(value):
            value = value(columns)
        rows = list(value)
        return rows[:limit] if limit else rows

    def rpc(self, function, params=None):
        self.calls.append(("rpc", function, params))
        value = self.functions.get(function, BackendError(function, "function not found", status_code=404))
        if isinstance(value, Exception):
            raise value
        if callable(value):
            value = value(params)
        return value

    def called(self, kind, name):
        return [c for c in self.calls if c[0] == kind and c[1] == name]


@pytest.fixture
def temp_data_dir():
    """Create a temporary data directory for tests."""
    with TemporaryDirectory() as tmpdir:
        yield Path(tmpdir)


@pytest.fixture
def memory_store():
    return MemoryStore()


@pytest.fixture
def cache(memory_store):
    return AvailabilityCache(memory_store)


@pytest.fixture
def make_backend():
    """Factory for FakeBackend instances."""
    return FakeBackend


@pytest.fixture
def surgery_case_details_rows():
    """Rows as returned by get_surgery_cases_with_details / the details view."""
    return [
        {
            "id": 101,
            "case_number": "SC-2026-0101",
            "scheduled_at": "2026-10-19T08:30:00",
            "status": "scheduled",
            "surgeon_id": 7,
            "hospital_id": 3,
            "procedure_id": 12,
            "region_id": 2,
            "operating_room": "OR 4",
            "estimated_cost": "18250.00",
            "surgeon_first_name": "Maria",
            "surgeon_last_name": "Lopez",
            "hospital_name": "St. Mary's",
            "procedure_name": "Total Knee Arthroplasty",
        },
        {
            "id": 102,
            "case_number": "SC-2026-0102",
            "scheduled_at": "2026-10-20T13:00:00",
            "status": "in_progress",
            "surgeon_id": 9,
            "hospital_id": 3,
            "procedure_id": 14,
            "region_id": 2,
            "surgeon_first_name": "Ken",
            "surgeon_last_name": None,
            "hospital_name": "St. Mary's",
            "procedure_name": "Hip Revision",
        },
    ]


@pytest.fixture
def surgery_case_raw_rows():
    """Rows straight from the surgery_cases table."""
    return [
        {
            "id": 101,
            "case_number": "SC-2026-0101",
            "scheduled_at": "2026-10-19T08:30:00",
            "status": "scheduled",
            "surgeon_id": 7,
            "hospital_id": 3,
            "procedure_id": 12,
            "region_id": 2,
        },
    ]


@pytest.fixture
def opportunity_joined_rows():
    return [
        {
            "id": 1,
            "title": "Knee system conversion",
            "stage": "proposal",
            "estimated_value": 120000,
            "probability": 50,
            "expected_close_date": "2026-12-01",
            "hospital_id": 3,
            "surgeon_id": 7,
            "rep_id": 4,
            "created_at": "2026-09-01T10:00:00Z",
            "hospital": {"name": "St. Mary's"},
            "surgeon": {"first_name": "Maria", "last_name": "Lopez"},
            "rep": {"first_name": "Sam", "last_name": "Reyes"},
        },
        {
            "id": 2,
            "title": "Trauma kit renewal",
            "stage": "closed-won",
            "estimated_value": "40000",
            "probability": 100,
            "hospital": None,
            "surgeon": None,
            "rep": {"first_name": "Sam", "last_name": "Reyes"},
        },
    ]


@pytest.fixture
def dashboard_kpi_payload():
    return {
        "surgeries_today": {"value": 6, "label": "Surgeries Today", "type": "number"},
        "inventory_value": {"value": 1250000.5, "label": "Inventory Value", "type": "currency"},
        "low_stock_items": {"value": "3", "type": "number"},
        "last_updated": "2026-10-19T07:00:00Z",
    }
