from sqlalchemy import Column, Integer, String, DateTime, JSON
from sqlalchemy.sql import func

from ..core.database import Base

class AuditLogEntry(Base):
    """Append-only record of an admin action."""
    __tablename__ = "admin_audit_log"

    id = Column(Integer, primary_key=True, index=True)
    # Plain integers: entries outlive the profiles they mention
    actor_id = Column(Integer, nullable=False, index=True)
    action = Column(String(50), nullable=False, index=True)
    target_id = Column(Integer, nullable=True, index=True)
    previous_role = Column(String(20), nullable=True)
    new_role = Column(String(20), nullable=True)
    details = Column(JSON, nullable=True)
    timestamp = Column(DateTime, server_default=func.now(), index=True)

    def __repr__(self):
        return f"<AuditLogEntry(id={self.id}, action='{self.action}', actor_id={self.actor_id})>"
