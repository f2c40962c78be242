# backend/core/ipam.py
"""
IP Address Management - sequential allocation of seat addresses

Two modes, selected by whether the request carries an explicit address list:
- explicit: addresses are taken verbatim, any address already stored aborts
  the whole request
- synthesis: each allocation walks forward from its own first_ip, skipping
  addresses that are already stored

Every row of one request is written inside a single transaction.
"""

import ipaddress
import logging
from typing import List, Optional

from sqlalchemy.exc import IntegrityError, SQLAlchemyError
from sqlalchemy.orm import Session

from database.models import IPAddress
from schemas.ip import AllocationEntry, IPBulkCreate
from .exceptions import ConflictError, IPAdminError, StorageError, ValidationError

logger = logging.getLogger(__name__)


def parse_ipv4(address: str) -> ipaddress.IPv4Address:
    """Parse a dotted-quad string, raising ValidationError if malformed"""
    try:
        return ipaddress.IPv4Address(str(address).strip())
    except ValueError:
        raise ValidationError(f"'{address}' is not a valid IPv4 address")


def successor(address: str) -> str:
    """Next address in base-256 order, e.g. 1.2.3.255 -> 1.2.4.0"""
    try:
        return str(parse_ipv4(address) + 1)
    except ipaddress.AddressValueError:
        raise ValidationError(f"No IPv4 address after {address}")


def generate_sequence(start: str, count: int) -> List[str]:
    """count consecutive addresses beginning at start (no storage lookup)"""
    if count < 0:
        raise ValidationError("count cannot be negative")
    if count == 0:
        return []

    current = str(parse_ipv4(start))
    sequence = [current]
    for _ in range(count - 1):
        current = successor(current)
        sequence.append(current)
    return sequence


class IPAMService:
    """
    Sequential address allocator
    """

    def validate_request(self, request: IPBulkCreate) -> Optional[List[str]]:
        """
        Check a bulk request for consistency without touching storage

        Returns:
            The normalized explicit address list, or None in synthesis mode
        """
        if not isinstance(request.count, int) or request.count <= 0:
            raise ValidationError("count must be a positive integer")

        if not request.allocations:
            raise ValidationError("Add at least one allocation")

        for index, entry in enumerate(request.allocations):
            if entry.amount < 0:
                raise ValidationError(f"allocations.{index}.amount cannot be negative")
            if entry.gateway is not None:
                parse_ipv4(entry.gateway)

        allocated = sum(entry.amount for entry in request.allocations)
        if allocated != request.count:
            raise ValidationError(
                f"Total allocated ({allocated}) must equal number of IPs ({request.count})"
            )

        if request.ips is not None:
            if len(request.ips) != request.count:
                raise ValidationError(
                    f"Expected {request.count} addresses in ips, got {len(request.ips)}"
                )
            explicit = [str(parse_ipv4(ip)) for ip in request.ips]
            seen = set()
            for ip in explicit:
                if ip in seen:
                    raise ValidationError(f"Duplicate address {ip} in ips")
                seen.add(ip)
            return explicit

        for index, entry in enumerate(request.allocations):
            if not entry.first_ip:
                raise ValidationError(f"allocations.{index}.first_ip is required")
            parse_ipv4(entry.first_ip)

        return None

    def is_allocated(self, db: Session, address: str) -> bool:
        """Exact-match existence check"""
        return db.query(IPAddress.id).filter(IPAddress.ip == address).first() is not None

    def allocate(self, db: Session, request: IPBulkCreate) -> List[IPAddress]:
        """
        Create request.count rows, all or nothing

        Raises:
            ValidationError: request is inconsistent (nothing touched)
            ConflictError: an explicit address, or a concurrently claimed
                one, already exists
            StorageError: the database failed
        """
        explicit = self.validate_request(request)

        created: List[IPAddress] = []
        address = None
        try:
            if explicit is not None:
                remaining = iter(explicit)
                for entry in request.allocations:
                    for _ in range(entry.amount):
                        address = next(remaining)
                        if self.is_allocated(db, address):
                            raise ConflictError(f"IP {address} already exists", address=address)
                        created.append(self._insert(db, address, entry))
            else:
                for entry in request.allocations:
                    address = str(parse_ipv4(entry.first_ip))
                    for _ in range(entry.amount):
                        # Rows inserted earlier in this call are visible here,
                        # so the scan also skips them
                        while self.is_allocated(db, address):
                            address = successor(address)
                        created.append(self._insert(db, address, entry))

            db.commit()
        except IPAdminError as e:
            db.rollback()
            logger.warning(f"Allocation rolled back: {e}")
            raise
        except IntegrityError as e:
            db.rollback()
            raise self._constraint_error(db, address, e)
        except SQLAlchemyError as e:
            db.rollback()
            logger.error(f"Allocation failed, storage error: {e}")
            raise StorageError(f"Database error while allocating addresses: {e}")

        for row in created:
            db.refresh(row)

        mode = "explicit" if explicit is not None else "synthesis"
        logger.info(
            f"Allocated {len(created)} IPs ({mode}): "
            + ", ".join(f"{e.group}={e.amount}" for e in request.allocations if e.amount)
        )
        return created

    def _insert(self, db: Session, address: str, entry: AllocationEntry) -> IPAddress:
        row = IPAddress(
            ip=address,
            group_name=entry.group,
            gateway=entry.gateway,
            available_for_user=False
        )
        db.add(row)
        db.flush()
        return row

    def _constraint_error(self, db: Session, address: Optional[str], error: IntegrityError) -> IPAdminError:
        """Map a rejected insert to a conflict if another writer now owns the address"""
        logger.warning(f"Allocation rolled back, constraint violated at {address}: {error.orig}")
        try:
            taken = address is not None and self.is_allocated(db, address)
        except SQLAlchemyError as e:
            return StorageError(f"Database error while allocating addresses: {e}")

        if taken:
            return ConflictError(f"IP {address} already exists", address=address)
        return ValidationError(f"Rejected by database constraints: {error.orig}")


# Global instance
ipam_service = IPAMService()
