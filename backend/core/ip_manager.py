# backend/core/ip_manager.py
"""
IP row management

Listing, batch editing and bulk creation of the addresses offered to
Guacamole users. Bulk creation is delegated to the allocator in core.ipam.
"""

import logging
from typing import List, Optional

from sqlalchemy.exc import IntegrityError, SQLAlchemyError
from sqlalchemy.orm import Session

from database.models import IPAddress
from schemas.ip import IPBulkCreate, IPUpdateItem
from .exceptions import ConflictError, IPAdminError, NotFoundError, StorageError, ValidationError
from .group_manager import group_manager
from .ipam import ipam_service

logger = logging.getLogger(__name__)


class IPManager:
    """Service for address rows"""

    def list_ips(
        self,
        db: Session,
        group: Optional[str] = None,
        available: Optional[bool] = None
    ) -> List[IPAddress]:
        query = db.query(IPAddress)
        if group:
            query = query.filter(IPAddress.group_name == group)
        if available is not None:
            query = query.filter(IPAddress.available_for_user == available)
        return query.order_by(IPAddress.id.asc()).all()

    def get_ip(self, db: Session, address: str) -> Optional[IPAddress]:
        return db.query(IPAddress).filter(IPAddress.ip == address).first()

    def create_ips(self, db: Session, request: IPBulkCreate) -> List[IPAddress]:
        """Bulk create after checking every group exists"""
        known = group_manager.get_group_names(db)
        unknown = sorted({entry.group for entry in request.allocations} - known)
        if unknown:
            raise ValidationError(f"Unknown group(s): {', '.join(unknown)}")

        return ipam_service.allocate(db, request)

    def update_ips(self, db: Session, changes: List[IPUpdateItem]) -> List[IPAddress]:
        """
        Apply a batch of address/group edits in one transaction

        Each row is matched by (old_ip, old_group). Any failing item rolls
        back the whole batch.
        """
        if not changes:
            return []

        known = group_manager.get_group_names(db)
        unknown = sorted({item.new_group for item in changes} - known)
        if unknown:
            raise ValidationError(f"Unknown group(s): {', '.join(unknown)}")

        updated: List[IPAddress] = []
        item = None
        try:
            for item in changes:
                row = db.query(IPAddress).filter(
                    IPAddress.ip == item.old_ip,
                    IPAddress.group_name == item.old_group
                ).first()
                if not row:
                    raise NotFoundError(f"IP {item.old_ip} in group {item.old_group} not found")

                if item.new_ip != item.old_ip and ipam_service.is_allocated(db, item.new_ip):
                    raise ConflictError(f"IP {item.new_ip} already exists", address=item.new_ip)

                row.ip = item.new_ip
                row.group_name = item.new_group
                db.flush()
                updated.append(row)

            db.commit()
        except IPAdminError as e:
            db.rollback()
            logger.warning(f"IP update rolled back: {e}")
            raise
        except IntegrityError as e:
            db.rollback()
            logger.warning(f"IP update rolled back, constraint violated: {e.orig}")
            raise ConflictError(f"IP {item.new_ip} already exists", address=item.new_ip)
        except SQLAlchemyError as e:
            db.rollback()
            logger.error(f"IP update failed: {e}")
            raise StorageError(f"Database error while updating IPs: {e}")

        for row in updated:
            db.refresh(row)

        logger.info(f"Updated {len(updated)} IP row(s)")
        return updated

    def set_availability(self, db: Session, address: str, available: bool) -> IPAddress:
        """Open or close one address for user self-service"""
        row = self.get_ip(db, address)
        if not row:
            raise NotFoundError(f"IP {address} not found")

        row.available_for_user = available
        try:
            db.commit()
        except SQLAlchemyError as e:
            db.rollback()
            raise StorageError(f"Database error while updating IP: {e}")
        db.refresh(row)

        logger.info(f"IP {address} available_for_user={available}")
        return row

    def delete_ip(self, db: Session, address: str) -> None:
        row = self.get_ip(db, address)
        if not row:
            raise NotFoundError(f"IP {address} not found")

        db.delete(row)
        try:
            db.commit()
        except SQLAlchemyError as e:
            db.rollback()
            raise StorageError(f"Database error while deleting IP: {e}")

        logger.info(f"IP {address} deleted")


# Global instance
ip_manager = IPManager()
