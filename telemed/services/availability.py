"""Bookable slot resolution for one doctor on one calendar date.

A doctor publishes a weekly template of slots. A slot is bookable on a date
when it falls on that weekday, is flagged available, and no non-cancelled
appointment on that date already starts at the same time.
"""

from collections.abc import Iterable, Sequence
from datetime import date, datetime, time
from typing import Protocol

from pydantic import BaseModel, Field, field_serializer

from telemed.core.errors import ValidationError
from telemed.models.appointment import CANCELLED_STATUS


class SlotTemplate(Protocol):
    id: str
    day_of_week: int
    start_time: time
    end_time: time
    is_available: bool


class BookedSlot(Protocol):
    time_slot: time
    status: str


class SlotSource(Protocol):
    def list_weekly_slots(self, doctor_id: str, day_of_week: int, available_only: bool = True) -> Sequence[SlotTemplate]:
        ...

    def list_bookings(self, doctor_id: str, booking_date: date, exclude_status: str | None = CANCELLED_STATUS) -> Sequence[BookedSlot]:
        ...


class ResolvedSlot(BaseModel):
    id: str
    start_time: time = Field(serialization_alias='startTime')
    end_time: time = Field(serialization_alias='endTime')
    available: bool = True

    @field_serializer('start_time', 'end_time')
    def serialize_time(self, value: time) -> str:
        return value.strftime('%H:%M')


def parse_date(value: date | str | None) -> date:
    if isinstance(value, datetime):
        return value.date()
    if isinstance(value, date):
        return value

    if value is None or not value.strip():
        raise ValidationError('Date is required.')

    normalized = value.strip()
    try:
        return date.fromisoformat(normalized)
    except ValueError:
        pass

    try:
        return datetime.fromisoformat(normalized).date()
    except ValueError as exc:
        raise ValidationError(f'Invalid date: {normalized!r}. Expected YYYY-MM-DD.') from exc


def parse_time(value: time | str | None) -> time:
    if isinstance(value, time):
        return value

    if value is None or not value.strip():
        raise ValidationError('Time is required.')

    normalized = value.strip()
    try:
        return time.fromisoformat(normalized)
    except ValueError as exc:
        raise ValidationError(f'Invalid time: {normalized!r}. Expected HH:MM.') from exc


def day_of_week(value: date) -> int:
    """Weekday index with Sunday as 0 and Saturday as 6."""
    return value.isoweekday() % 7


def compute_available_slots(
    weekly_slots: Iterable[SlotTemplate],
    booked_start_times: Iterable[time],
) -> list[ResolvedSlot]:
    booked = set(booked_start_times)
    return [
        ResolvedSlot(id=str(slot.id), start_time=slot.start_time, end_time=slot.end_time, available=True)
        for slot in weekly_slots
        if slot.is_available and slot.start_time not in booked
    ]


def resolve_available_slots(doctor_id: str | None, slot_date: date | str | None, repository: SlotSource) -> list[ResolvedSlot]:
    if doctor_id is None or not str(doctor_id).strip():
        raise ValidationError('Doctor ID is required.')

    requested_date = parse_date(slot_date)
    weekday = day_of_week(requested_date)

    # Repository errors propagate; bookings are not read when the template read fails.
    weekly_slots = repository.list_weekly_slots(doctor_id, weekday, available_only=True)
    bookings = repository.list_bookings(doctor_id, requested_date, exclude_status=CANCELLED_STATUS)

    weekly_slots = [slot for slot in weekly_slots if slot.day_of_week == weekday]
    booked_start_times = {
        booking.time_slot for booking in bookings if booking.status != CANCELLED_STATUS
    }

    return compute_available_slots(weekly_slots, booked_start_times)
