"""Tests for the table probe."""

import asyncio

from hope_erp.backend.base import BackendError
from hope_erp.data.probe import TableProbe


class TestTableProbe:
    def test_available_table(self, make_backend):
        backend = make_backend(tables={"regions": [{"id": 1}, {"id": 2}]})
        assert asyncio.run(TableProbe(backend).probe("regions")) is True

    def test_requests_a_single_row(self, make_backend):
        backend = make_backend(tables={"regions": [{"id": 1}, {"id": 2}]})
        asyncio.run(TableProbe(backend, columns="id").probe("regions"))
        assert backend.calls == [("select", "regions", "id", 1)]

    def test_empty_table_is_available(self, make_backend):
        backend = make_backend(tables={"regions": []})
        assert asyncio.run(TableProbe(backend).probe("regions")) is True

    def test_missing_table(self, make_backend):
        assert asyncio.run(TableProbe(make_backend()).probe("sales_opportunities")) is False

    def test_network_error_is_unavailable(self, make_backend):
        backend = make_backend(tables={"regions": ConnectionError("reset by peer")})
        assert asyncio.run(TableProbe(backend).probe("regions")) is False

    def test_permission_error_is_unavailable(self, make_backend):
        backend = make_backend(tables={"regions": BackendError("regions", "denied", status_code=401)})
        assert asyncio.run(TableProbe(backend).probe("regions")) is False

    def test_table_override(self, make_backend):
        backend = make_backend(tables={"sales_opportunities": []})
        probe = TableProbe(backend)

        assert asyncio.run(probe.probe("pipeline", table="sales_opportunities")) is True
        assert backend.calls[0][1] == "sales_opportunities"

    def test_repeated_probes_are_stable(self, make_backend):
        probe = TableProbe(make_backend(tables={"regions": []}))
        results = [asyncio.run(probe.probe("regions")) for _ in range(3)]
        assert results == [True, True, True]

    def test_probe_many(self, make_backend):
        backend = make_backend(tables={"regions": [], "surgeons": []})

        results = asyncio.run(TableProbe(backend).probe_many(["regions", "sales_reps", "surgeons"]))

        assert results == {"regions": True, "sales_reps": False, "surgeons": True}
        assert [c[1] for c in backend.calls] == ["regions", "sales_reps", "surgeons"]
