from datetime import date

from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import Session

from telemed.core.errors import UpstreamQueryError
from telemed.models.appointment import CANCELLED_STATUS, Appointment
from telemed.models.time_slot import WeeklyAvailabilitySlot


class AvailabilityRepository:
    """Read access to weekly slot templates and bookings."""

    def __init__(self, db: Session):
        self.db = db

    def list_weekly_slots(
        self,
        doctor_id: str,
        day_of_week: int,
        available_only: bool = True,
    ) -> list[WeeklyAvailabilitySlot]:
        query = self.db.query(WeeklyAvailabilitySlot).filter(
            WeeklyAvailabilitySlot.doctor_id == doctor_id,
            WeeklyAvailabilitySlot.day_of_week == day_of_week,
        )
        if available_only:
            query = query.filter(WeeklyAvailabilitySlot.is_available.is_(True))

        try:
            return query.order_by(WeeklyAvailabilitySlot.start_time.asc()).all()
        except SQLAlchemyError as exc:
            raise UpstreamQueryError(str(exc)) from exc

    def list_bookings(
        self,
        doctor_id: str,
        booking_date: date,
        exclude_status: str | None = CANCELLED_STATUS,
    ) -> list[Appointment]:
        query = self.db.query(Appointment).filter(
            Appointment.doctor_id == doctor_id,
            Appointment.date == booking_date,
        )
        if exclude_status is not None:
            query = query.filter(Appointment.status != exclude_status)

        try:
            return query.all()
        except SQLAlchemyError as exc:
            raise UpstreamQueryError(str(exc)) from exc
