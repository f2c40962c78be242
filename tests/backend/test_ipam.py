# tests/backend/test_ipam.py
"""
Unit Tests for the sequential address allocator

Run with:
    pytest tests/backend/test_ipam.py -v
"""

from unittest.mock import Mock

import pytest
from sqlalchemy.exc import IntegrityError, OperationalError

from core.exceptions import ConflictError, StorageError, ValidationError
from core.ipam import IPAMService, generate_sequence, successor
from database.models import IPAddress
from schemas.ip import AllocationEntry, IPBulkCreate


def stored_ips(db):
    return [row.ip for row in db.query(IPAddress).order_by(IPAddress.id).all()]


def add_row(db, ip, group="g"):
    db.add(IPAddress(ip=ip, group_name=group, available_for_user=True))
    db.commit()


class TestSuccessor:
    """Tests for successor"""

    def test_increments_last_octet(self):
        assert successor("0.0.0.0") == "0.0.0.1"
        assert successor("10.0.0.1") == "10.0.0.2"

    def test_carries_into_third_octet(self):
        assert successor("1.2.3.255") == "1.2.4.0"

    def test_carries_across_two_octets(self):
        assert successor("1.2.255.255") == "1.3.0.0"

    def test_end_of_address_space(self):
        with pytest.raises(ValidationError):
            successor("255.255.255.255")

    def test_rejects_malformed_address(self):
        with pytest.raises(ValidationError):
            successor("10.0.0.256")


class TestGenerateSequence:

    def test_sequence_crosses_octet_boundary(self):
        assert generate_sequence("10.0.0.254", 4) == [
            "10.0.0.254", "10.0.0.255", "10.0.1.0", "10.0.1.1"
        ]

    def test_zero_count(self):
        assert generate_sequence("10.0.0.1", 0) == []

    def test_last_address_alone_is_fine(self):
        assert generate_sequence("255.255.255.255", 1) == ["255.255.255.255"]


class TestValidateRequest:
    """Consistency checks run before any storage access"""

    @pytest.fixture
    def service(self):
        return IPAMService()

    def test_sum_must_equal_count(self, service):
        request = IPBulkCreate(
            count=3,
            allocations=[AllocationEntry(amount=2, group="g", first_ip="10.0.0.1")]
        )
        with pytest.raises(ValidationError, match=r"Total allocated \(2\) must equal number of IPs \(3\)"):
            service.validate_request(request)

    def test_count_must_be_positive(self, service):
        request = IPBulkCreate(
            count=0,
            allocations=[AllocationEntry(amount=0, group="g", first_ip="10.0.0.1")]
        )
        with pytest.raises(ValidationError, match="positive"):
            service.validate_request(request)

    def test_allocations_required(self, service):
        with pytest.raises(ValidationError, match="at least one allocation"):
            service.validate_request(IPBulkCreate(count=1, allocations=[]))

    def test_first_ip_required_without_explicit_list(self, service):
        request = IPBulkCreate(
            count=1,
            allocations=[AllocationEntry(amount=1, group="g")]
        )
        with pytest.raises(ValidationError, match="first_ip is required"):
            service.validate_request(request)

    def test_explicit_list_length_must_match(self, service):
        request = IPBulkCreate(
            count=2,
            allocations=[AllocationEntry(amount=2, group="g")],
            ips=["10.0.0.1"]
        )
        with pytest.raises(ValidationError, match="Expected 2 addresses"):
            service.validate_request(request)

    def test_explicit_list_rejects_duplicates(self, service):
        request = IPBulkCreate(
            count=2,
            allocations=[AllocationEntry(amount=2, group="g")],
            ips=["10.0.0.1", "10.0.0.1"]
        )
        with pytest.raises(ValidationError, match="Duplicate address 10.0.0.1"):
            service.validate_request(request)

    def test_explicit_list_returned(self, service):
        request = IPBulkCreate(
            count=1,
            allocations=[AllocationEntry(amount=1, group="g")],
            ips=["10.0.0.9"]
        )
        assert service.validate_request(request) == ["10.0.0.9"]

    def test_no_storage_access_on_invalid_request(self, service):
        db = Mock()
        request = IPBulkCreate(
            count=5,
            allocations=[AllocationEntry(amount=1, group="g", first_ip="10.0.0.1")]
        )
        with pytest.raises(ValidationError):
            service.allocate(db, request)

        db.query.assert_not_called()
        db.add.assert_not_called()
        db.commit.assert_not_called()


class TestSynthesisMode:
    """Allocation by walking forward from first_ip"""

    @pytest.fixture
    def service(self):
        return IPAMService()

    def test_skips_occupied_start(self, service, db):
        add_row(db, "10.0.0.1")
        request = IPBulkCreate(
            count=2,
            allocations=[AllocationEntry(amount=2, group="g", first_ip="10.0.0.1")]
        )

        rows = service.allocate(db, request)

        assert [r.ip for r in rows] == ["10.0.0.2", "10.0.0.3"]
        assert all(r.group_name == "g" for r in rows)

    def test_skips_holes_in_the_middle(self, service, db):
        add_row(db, "10.0.0.2")
        add_row(db, "10.0.0.4")
        request = IPBulkCreate(
            count=3,
            allocations=[AllocationEntry(amount=3, group="g", first_ip="10.0.0.1")]
        )

        rows = service.allocate(db, request)

        assert [r.ip for r in rows] == ["10.0.0.1", "10.0.0.3", "10.0.0.5"]

    def test_later_allocations_see_earlier_rows(self, service, db):
        request = IPBulkCreate(
            count=4,
            allocations=[
                AllocationEntry(amount=2, group="a", first_ip="10.0.0.1"),
                AllocationEntry(amount=2, group="b", first_ip="10.0.0.1"),
            ]
        )

        rows = service.allocate(db, request)

        assert [(r.ip, r.group_name) for r in rows] == [
            ("10.0.0.1", "a"),
            ("10.0.0.2", "a"),
            ("10.0.0.3", "b"),
            ("10.0.0.4", "b"),
        ]

    def test_each_allocation_restarts_at_its_own_first_ip(self, service, db):
        request = IPBulkCreate(
            count=2,
            allocations=[
                AllocationEntry(amount=1, group="a", first_ip="10.0.5.1"),
                AllocationEntry(amount=1, group="b", first_ip="10.0.0.1"),
            ]
        )

        rows = service.allocate(db, request)

        assert [r.ip for r in rows] == ["10.0.5.1", "10.0.0.1"]

    def test_scan_carries_across_octets(self, service, db):
        add_row(db, "10.0.0.255")
        request = IPBulkCreate(
            count=1,
            allocations=[AllocationEntry(amount=1, group="g", first_ip="10.0.0.255")]
        )

        rows = service.allocate(db, request)

        assert rows[0].ip == "10.0.1.0"

    def test_rows_are_reserved_and_carry_gateway(self, service, db):
        request = IPBulkCreate(
            count=2,
            allocations=[
                AllocationEntry(amount=2, group="g", first_ip="192.168.1.10", gateway="192.168.1.1")
            ]
        )

        rows = service.allocate(db, request)

        assert all(r.available_for_user is False for r in rows)
        assert all(r.gateway == "192.168.1.1" for r in rows)
        assert stored_ips(db) == ["192.168.1.10", "192.168.1.11"]

    def test_zero_amount_allocation_creates_nothing(self, service, db):
        request = IPBulkCreate(
            count=1,
            allocations=[
                AllocationEntry(amount=0, group="a", first_ip="10.0.0.1"),
                AllocationEntry(amount=1, group="b", first_ip="10.0.0.1"),
            ]
        )

        rows = service.allocate(db, request)

        assert [(r.ip, r.group_name) for r in rows] == [("10.0.0.1", "b")]

    def test_results_unique_with_existing_rows(self, service, db):
        for ip in ("10.0.0.1", "10.0.0.3", "10.0.0.6"):
            add_row(db, ip)
        request = IPBulkCreate(
            count=6,
            allocations=[
                AllocationEntry(amount=3, group="a", first_ip="10.0.0.1"),
                AllocationEntry(amount=3, group="b", first_ip="10.0.0.2"),
            ]
        )

        service.allocate(db, request)

        ips = stored_ips(db)
        assert len(ips) == 9
        assert len(set(ips)) == 9


class TestExplicitMode:
    """Allocation from a caller-supplied address list"""

    @pytest.fixture
    def service(self):
        return IPAMService()

    def test_uses_list_in_allocation_order(self, service, db):
        request = IPBulkCreate(
            count=3,
            allocations=[
                AllocationEntry(amount=1, group="a"),
                AllocationEntry(amount=2, group="b"),
            ],
            ips=["10.1.0.7", "10.2.0.1", "10.0.0.3"]
        )

        rows = service.allocate(db, request)

        assert [(r.ip, r.group_name) for r in rows] == [
            ("10.1.0.7", "a"),
            ("10.2.0.1", "b"),
            ("10.0.0.3", "b"),
        ]

    def test_explicit_list_wins_over_first_ip(self, service, db):
        request = IPBulkCreate(
            count=1,
            allocations=[AllocationEntry(amount=1, group="g", first_ip="10.9.9.9")],
            ips=["10.0.0.1"]
        )

        rows = service.allocate(db, request)

        assert rows[0].ip == "10.0.0.1"

    def test_conflict_rolls_back_whole_call(self, service, db):
        add_row(db, "10.0.0.5")
        request = IPBulkCreate(
            count=3,
            allocations=[AllocationEntry(amount=3, group="g")],
            ips=["10.0.0.3", "10.0.0.4", "10.0.0.5"]
        )

        with pytest.raises(ConflictError) as exc_info:
            service.allocate(db, request)

        assert exc_info.value.address == "10.0.0.5"
        assert "10.0.0.5" in str(exc_info.value)
        assert stored_ips(db) == ["10.0.0.5"]


class TestStorageFailures:
    """Database errors are mapped and rolled back"""

    @pytest.fixture
    def service(self):
        return IPAMService()

    @pytest.fixture
    def request_one(self):
        return IPBulkCreate(
            count=1,
            allocations=[AllocationEntry(amount=1, group="g", first_ip="10.0.0.1")]
        )

    def test_operational_error_becomes_storage_error(self, service, request_one):
        db = Mock()
        db.query.side_effect = OperationalError("SELECT", {}, Exception("database is locked"))

        with pytest.raises(StorageError):
            service.allocate(db, request_one)

        db.rollback.assert_called_once()
        db.commit.assert_not_called()

    def test_unique_violation_from_concurrent_writer_is_conflict(self, service, request_one, monkeypatch):
        db = Mock()
        db.flush.side_effect = IntegrityError("INSERT", {}, Exception("UNIQUE constraint failed"))
        # Free at scan time, taken once the other writer committed
        checks = iter([False, True])
        monkeypatch.setattr(service, "is_allocated", lambda _db, _ip: next(checks))

        with pytest.raises(ConflictError) as exc_info:
            service.allocate(db, request_one)

        assert exc_info.value.address == "10.0.0.1"
        db.rollback.assert_called_once()
