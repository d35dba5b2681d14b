"""Appointment model definitions."""

import uuid
from datetime import datetime, timezone

from sqlalchemy import Column, Date, DateTime, ForeignKey, String, Text, Time

from telemed.database import Base

APPOINTMENT_STATUSES = ("pending", "confirmed", "completed", "cancelled")
CANCELLED_STATUS = "cancelled"
CONSULTATION_MODES = ("video", "in-person")


class Appointment(Base):
    """A booking of one doctor's weekly slot on a specific date."""
    __tablename__ = "appointments"

    id = Column(String(36), primary_key=True, default=lambda: str(uuid.uuid4()))
    doctor_id = Column(String(36), ForeignKey("users.id"), nullable=False)
    patient_id = Column(String(36), ForeignKey("users.id"))
    date = Column(Date, nullable=False)
    time_slot = Column(Time, nullable=False)
    mode = Column(String, nullable=False, default="video")
    status = Column(String, nullable=False, default="pending")
    payment_status = Column(String, nullable=False, default="pending")
    notes = Column(Text)
    created_at = Column(DateTime(timezone=True), default=lambda: datetime.now(timezone.utc))
