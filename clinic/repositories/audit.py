from typing import Any, Dict, List, Optional
import logging

from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import Session

from ..core.exceptions import StoreError
from ..models.audit import AuditLogEntry

logger = logging.getLogger(__name__)

class AuditStore:
    """Append-only admin audit log. Each append commits on its own."""

    def __init__(self, db: Session):
        self.db = db

    def append(
        self,
        actor_id: int,
        action: str,
        target_id: Optional[int] = None,
        previous_role: Optional[str] = None,
        new_role: Optional[str] = None,
        details: Optional[Dict[str, Any]] = None,
    ) -> AuditLogEntry:
        entry = AuditLogEntry(
            actor_id=actor_id,
            action=action,
            target_id=target_id,
            previous_role=previous_role,
            new_role=new_role,
            details=details or {},
        )
        try:
            self.db.add(entry)
            self.db.commit()
        except SQLAlchemyError as exc:
            self.db.rollback()
            raise StoreError(f"Failed to record audit action '{action}'") from exc
        return entry

    def record(self, actor_id: int, action: str, **fields) -> Optional[AuditLogEntry]:
        """Append an entry, logging instead of raising on failure."""
        try:
            return self.append(actor_id, action, **fields)
        except StoreError as exc:
            logger.error(f"Error logging audit action: {exc}")
            return None

    def list_entries(
        self,
        action: Optional[str] = None,
        target_id: Optional[int] = None,
        skip: int = 0,
        limit: int = 50,
    ) -> List[AuditLogEntry]:
        query = self.db.query(AuditLogEntry)
        if action:
            query = query.filter(AuditLogEntry.action == action)
        if target_id is not None:
            query = query.filter(AuditLogEntry.target_id == target_id)
        return (
            query.order_by(AuditLogEntry.timestamp.desc(), AuditLogEntry.id.desc())
            .offset(skip)
            .limit(limit)
            .all()
        )
