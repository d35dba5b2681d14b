"""Weekly availability template definitions."""

import uuid

from sqlalchemy import Boolean, Column, ForeignKey, Integer, String, Time

from telemed.database import Base


class WeeklyAvailabilitySlot(Base):
    """Recurring slot a doctor offers every week on ``day_of_week`` (0=Sunday)."""
    __tablename__ = "time_slots"

    id = Column(String(36), primary_key=True, default=lambda: str(uuid.uuid4()))
    doctor_id = Column(String(36), ForeignKey("users.id"), nullable=False)
    day_of_week = Column(Integer, nullable=False)
    start_time = Column(Time, nullable=False)
    end_time = Column(Time, nullable=False)
    is_available = Column(Boolean, nullable=False, default=True)
