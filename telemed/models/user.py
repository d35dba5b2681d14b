"""Identity and profile model definitions."""

import uuid
from datetime import datetime, timezone

from sqlalchemy import JSON, Boolean, Column, DateTime, ForeignKey, Integer, Numeric, String, Text

from telemed.database import Base


def _new_id() -> str:
    return str(uuid.uuid4())


def _utc_now() -> datetime:
    return datetime.now(timezone.utc)


class Identity(Base):
    """Login credentials for one account."""
    __tablename__ = "identities"

    id = Column(String(36), primary_key=True, default=_new_id)
    email = Column(String, unique=True, index=True, nullable=False)
    hashed_password = Column(String, nullable=False)
    role = Column(String, nullable=False, default="patient")  # patient/doctor
    created_at = Column(DateTime(timezone=True), default=_utc_now)


class UserProfile(Base):
    """Public profile of a patient or doctor."""
    __tablename__ = "users"

    id = Column(String(36), ForeignKey("identities.id"), primary_key=True)
    email = Column(String, nullable=False, index=True)
    full_name = Column(String, nullable=False, default="")
    role = Column(String, nullable=False, index=True)
    created_at = Column(DateTime(timezone=True), default=_utc_now)
    updated_at = Column(DateTime(timezone=True), onupdate=_utc_now)
    is_active = Column(Boolean, nullable=False, default=True)

    phone_number = Column(String)
    profile_image = Column(String)
    specialty = Column(String, index=True)
    years_of_experience = Column(Integer)
    education = Column(Text)
    bio = Column(Text)
    consultation_fee = Column(Numeric(10, 2))
    available_days = Column(JSON)
    location = Column(String)
    medical_license = Column(String)
