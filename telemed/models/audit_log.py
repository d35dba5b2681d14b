"""Audit log model definitions."""

from datetime import datetime, timezone

from sqlalchemy import Column, DateTime, Integer, String

from telemed.database import Base


class AuditLog(Base):
    """Records who touched which resource, and how."""
    __tablename__ = "audit_logs"

    id = Column(Integer, primary_key=True)
    user_id = Column(String(36), nullable=False)
    resource_type = Column(String, nullable=False)
    resource_id = Column(String, nullable=False)
    action = Column(String, nullable=False)
    timestamp = Column(DateTime(timezone=True), default=lambda: datetime.now(timezone.utc))
