"""Tests for the chained-hash parcel registry."""

import logging

import pytest

from errors import DuplicateParcelError, ParcelNotFoundError, ValidationError
from models import ParcelSize, ParcelStatus
from parcel_registry import ParcelRegistry, parcel_hash


def add(registry, pid, status=ParcelStatus.IN_QUEUE, tick=0, city="Lagos", priority=1, size="Small"):
    return registry.insert(pid, status, tick, city, priority, size)


class TestHash:
    def test_known_values(self):
        assert parcel_hash("", 30) == 0
        assert parcel_hash("A", 30) == 65 % 30
        assert parcel_hash("AB", 30) == (65 * 31 + 66) % 30

    def test_matches_unreduced_polynomial(self):
        pid = "PKG-000123-LAGOS"
        full = 0
        for ch in pid:
            full = full * 31 + ord(ch)
        for capacity in (30, 60, 97, 240):
            assert parcel_hash(pid, capacity) == full % capacity

    def test_depends_on_capacity(self):
        assert parcel_hash("AB", 30) != parcel_hash("AB", 60)


class TestInsert:
    def test_exists_after_insert(self, registry):
        add(registry, "P1")
        assert registry.exists("P1")
        assert "P1" in registry
        assert len(registry) == 1

    def test_record_fields(self, registry):
        rec = add(registry, "P1", tick=7, city="Abuja", priority=3, size="Large")
        assert rec is registry.get("P1")
        assert rec.status is ParcelStatus.IN_QUEUE
        assert rec.arrival_tick == 7
        assert rec.dispatch_tick == -1
        assert rec.return_count == 0
        assert rec.destination_city == "Abuja"
        assert rec.priority == 3
        assert rec.size is ParcelSize.LARGE

    def test_status_may_be_given_as_text(self, registry):
        assert add(registry, "P1", status="Sorted").status is ParcelStatus.SORTED

    def test_duplicate_id_is_rejected(self, registry):
        add(registry, "P1")
        with pytest.raises(DuplicateParcelError) as excinfo:
            add(registry, "P1", city="Kano")
        assert excinfo.value.parcel_id == "P1"
        assert len(registry) == 1
        assert registry.get("P1").destination_city == "Lagos"

    @pytest.mark.parametrize("kwargs, field", [
        ({"pid": ""}, "parcel_id"),
        ({"pid": "  "}, "parcel_id"),
        ({"pid": None}, "parcel_id"),
        ({"city": ""}, "destination_city"),
        ({"priority": 0}, "priority"),
        ({"priority": 4}, "priority"),
        ({"priority": True}, "priority"),
        ({"size": "Huge"}, "size"),
        ({"size": "small"}, "size"),
        ({"status": "Lost"}, "status"),
    ])
    def test_validation(self, registry, kwargs, field):
        args = {"pid": "P1", **kwargs}
        pid = args.pop("pid")
        with pytest.raises(ValidationError) as excinfo:
            add(registry, pid, **args)
        assert excinfo.value.field == field
        assert len(registry) == 0

    def test_failures_are_logged(self, registry, caplog):
        add(registry, "P1")
        with caplog.at_level(logging.ERROR, logger="parcel_registry"):
            with pytest.raises(DuplicateParcelError):
                add(registry, "P1")
        assert "Parcel already exists: P1" in caplog.text


class TestResize:
    def test_capacity_doubles_past_threshold(self, registry):
        for i in range(23):
            add(registry, f"P{i}")
        assert registry.capacity == 30
        add(registry, "P23")
        assert registry.capacity == 60
        assert len(registry) == 24

    def test_records_survive_resize_unchanged(self, registry):
        before = {}
        for i in range(23):
            rec = add(registry, f"ID-{i}", tick=i, city=f"City{i % 4}", priority=i % 3 + 1)
            before[rec.parcel_id] = (rec, rec.arrival_tick, rec.destination_city, rec.priority)
        registry.update_status("ID-5", ParcelStatus.RETURNED)
        registry.increment_return_count("ID-5")

        add(registry, "ID-extra")
        assert registry.capacity == 60

        for pid, (rec, tick, city, priority) in before.items():
            got = registry.get(pid)
            assert got is rec
            assert (got.arrival_tick, got.destination_city, got.priority) == (tick, city, priority)
        assert registry.get("ID-5").status is ParcelStatus.RETURNED
        assert registry.get("ID-5").return_count == 1

    def test_every_record_is_in_its_hashed_bucket(self, registry):
        for i in range(100):
            add(registry, f"X{i}")
        seen = []
        for index, chain in enumerate(registry.first_n_buckets(registry.capacity)):
            for pid in chain:
                assert parcel_hash(pid, registry.capacity) == index
                seen.append(pid)
        assert sorted(seen) == sorted(f"X{i}" for i in range(100))

    def test_explicit_resize(self, registry):
        add(registry, "P1")
        registry.resize()
        assert registry.capacity == 60
        assert registry.exists("P1")


class TestLookup:
    def test_missing_id(self, registry):
        assert registry.exists("nope") is False
        with pytest.raises(ParcelNotFoundError):
            registry.get("nope")
        with pytest.raises(ParcelNotFoundError):
            registry.update_status("nope", ParcelStatus.SORTED)
        with pytest.raises(ParcelNotFoundError):
            registry.increment_return_count("nope")

    def test_exists_with_bad_input(self, registry):
        assert registry.exists("") is False
        assert registry.exists(None) is False

    def test_new_record_goes_to_chain_head(self):
        registry = ParcelRegistry(initial_capacity=1, load_factor_threshold=100)
        add(registry, "A")
        add(registry, "B")
        assert registry.first_n_buckets(1) == [["B", "A"]]


class TestStatus:
    def test_exists_after_status_updates(self, registry):
        add(registry, "P1")
        for status in ParcelStatus:
            registry.update_status("P1", status)
            assert registry.exists("P1")

    def test_any_transition_is_allowed(self, registry):
        add(registry, "P1")
        registry.update_status("P1", ParcelStatus.DISPATCHED)
        rec = registry.update_status("P1", ParcelStatus.IN_QUEUE)
        assert rec.status is ParcelStatus.IN_QUEUE

    def test_dispatch_without_clock_stamps_zero(self, registry):
        add(registry, "P1", tick=0)
        assert registry.update_status("P1", "Dispatched").dispatch_tick == 0

    def test_dispatch_uses_clock(self):
        now = {"tick": 12}
        registry = ParcelRegistry(clock=lambda: now["tick"])
        add(registry, "P1", tick=4)
        rec = registry.update_status("P1", ParcelStatus.DISPATCHED)
        assert rec.dispatch_tick == 12
        assert rec.dispatch_latency == 8

        now["tick"] = 20
        registry.update_status("P1", ParcelStatus.SORTED)
        assert rec.dispatch_tick == 12

    def test_return_count(self, registry):
        add(registry, "P1")
        assert registry.increment_return_count("P1") == 1
        assert registry.increment_return_count("P1") == 2
        assert registry.get("P1").return_count == 2


class TestStatistics:
    @pytest.fixture
    def populated(self):
        now = {"tick": 0}
        registry = ParcelRegistry(clock=lambda: now["tick"])
        add(registry, "Q1", tick=0)
        add(registry, "Q2", status=ParcelStatus.SORTED, tick=1)
        add(registry, "D1", tick=2)
        add(registry, "D2", tick=3)
        add(registry, "R1", tick=0)
        now["tick"] = 10
        registry.update_status("D1", ParcelStatus.DISPATCHED)
        now["tick"] = 5
        registry.update_status("D2", ParcelStatus.DISPATCHED)
        registry.update_status("R1", ParcelStatus.RETURNED)
        registry.increment_return_count("R1")
        registry.increment_return_count("R1")
        registry.increment_return_count("Q1")
        return registry

    def test_collect(self, populated):
        s = populated.collect_statistics()
        assert s.total == 5
        assert s.status_counts == {
            ParcelStatus.IN_QUEUE: 1,
            ParcelStatus.SORTED: 1,
            ParcelStatus.DISPATCHED: 2,
            ParcelStatus.RETURNED: 1,
        }
        assert s.in_system == 2
        assert s.total_returns == 3
        assert (s.max_returns, s.most_returned) == (2, "R1")
        assert s.returned_more_than_once == 1
        assert s.dispatched_with_tick == 2
        assert s.mean_latency == pytest.approx((8 + 2) / 2)
        assert (s.max_latency, s.longest_latency_parcel) == (8, "D1")

    def test_empty(self, registry):
        s = registry.collect_statistics()
        assert s.total == 0
        assert s.in_system == 0
        assert s.mean_latency is None
        assert "No parcels have been processed yet" in registry.get_statistics()

    def test_report_text(self, populated):
        report = populated.get_statistics()
        assert "Total Parcels: 5" in report
        assert "Table Capacity: 30" in report
        assert "  Dispatched: 2" in report
        assert "Parcels Still in System: 2" in report
        assert "Most Returns: 2 (Parcel R1)" in report
        assert "Average Processing Time: 5.00 ticks" in report
        assert "Longest Delay: 8 ticks (Parcel D1)" in report
