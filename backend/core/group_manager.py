# backend/core/group_manager.py
"""
Group directory - the Guacamole user groups seats are assigned to
"""

import logging
from typing import Iterable, List, Optional, Set

from sqlalchemy.exc import IntegrityError, SQLAlchemyError
from sqlalchemy.orm import Session

from database.models import Group, IPAddress
from .exceptions import ConflictError, StorageError, ValidationError

logger = logging.getLogger(__name__)


class GroupManager:
    """CRUD over groups"""

    def list_groups(self, db: Session) -> List[Group]:
        return db.query(Group).order_by(Group.name.asc()).all()

    def get_group(self, db: Session, name: str) -> Optional[Group]:
        return db.query(Group).filter(Group.name == name).first()

    def get_group_names(self, db: Session) -> Set[str]:
        """Names valid for assigning addresses"""
        return {name for (name,) in db.query(Group.name).all()}

    def create_group(self, db: Session, name: str) -> Group:
        name = (name or "").strip()
        if not name:
            raise ValidationError("name required")

        if self.get_group(db, name):
            raise ConflictError(f"Group {name} already exists")

        group = Group(name=name, disabled=False)
        db.add(group)
        try:
            db.commit()
        except IntegrityError:
            db.rollback()
            raise ConflictError(f"Group {name} already exists")
        except SQLAlchemyError as e:
            db.rollback()
            raise StorageError(f"Database error while creating group: {e}")
        db.refresh(group)

        logger.info(f"Group created: {name}")
        return group

    def delete_group(self, db: Session, name: str) -> bool:
        """
        Delete a group by name

        Returns False when the group does not exist. A group that still owns
        addresses cannot be deleted.
        """
        group = self.get_group(db, name)
        if not group:
            return False

        in_use = db.query(IPAddress).filter(IPAddress.group_name == name).count()
        if in_use:
            raise ConflictError(f"Group {name} still owns {in_use} IP(s)", error_code="GROUP_IN_USE")

        db.delete(group)
        try:
            db.commit()
        except SQLAlchemyError as e:
            db.rollback()
            raise StorageError(f"Database error while deleting group: {e}")

        logger.info(f"Group deleted: {name}")
        return True

    def seed_groups(self, db: Session, names: Iterable[str]) -> int:
        """Create any missing groups from names; returns how many were added"""
        existing = self.get_group_names(db)
        added = 0
        for name in names:
            name = name.strip()
            if name and name not in existing:
                db.add(Group(name=name, disabled=False))
                existing.add(name)
                added += 1
        if added:
            db.commit()
            logger.info(f"Seeded {added} default group(s)")
        return added


# Global instance
group_manager = GroupManager()
