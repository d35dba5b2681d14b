import logging
from datetime import time

from fastapi import APIRouter, Depends, Query, status
from fastapi.responses import JSONResponse
from pydantic import BaseModel, ConfigDict, field_validator, model_validator
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import Session

from telemed.auth.dependencies import get_current_user
from telemed.database import get_db
from telemed.models.time_slot import WeeklyAvailabilitySlot
from telemed.models.user import Identity

router = APIRouter(tags=['schedule'])

logger = logging.getLogger(__name__)


class TimeSlotResponse(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    id: str
    doctor_id: str
    day_of_week: int
    start_time: time
    end_time: time
    is_available: bool


class CreateTimeSlotRequest(BaseModel):
    doctor_id: str
    day_of_week: int
    start_time: time
    end_time: time
    is_available: bool = True

    @field_validator('day_of_week')
    @classmethod
    def validate_day_of_week(cls, value: int) -> int:
        if not 0 <= value <= 6:
            raise ValueError('day_of_week must be between 0 (Sunday) and 6 (Saturday).')
        return value

    @model_validator(mode='after')
    def validate_time_range(self):
        if self.end_time <= self.start_time:
            raise ValueError('end_time must be after start_time.')
        return self


class UpdateTimeSlotRequest(BaseModel):
    id: str
    day_of_week: int | None = None
    start_time: time | None = None
    end_time: time | None = None
    is_available: bool | None = None

    @field_validator('day_of_week')
    @classmethod
    def validate_day_of_week(cls, value: int | None) -> int | None:
        if value is not None and not 0 <= value <= 6:
            raise ValueError('day_of_week must be between 0 (Sunday) and 6 (Saturday).')
        return value


def forbidden() -> JSONResponse:
    return JSONResponse(
        status_code=status.HTTP_403_FORBIDDEN,
        content={'error': 'Doctors can only manage their own schedule'},
    )


def database_error(exc: SQLAlchemyError, message: str) -> JSONResponse:
    logger.exception(message)
    return JSONResponse(
        status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
        content={'error': str(exc) or message},
    )


@router.get('')
def list_time_slots(doctor_id: str | None = Query(default=None, alias='doctorId'), db: Session = Depends(get_db)):
    if not doctor_id:
        return JSONResponse(status_code=status.HTTP_400_BAD_REQUEST, content={'error': 'Doctor ID is required'})

    try:
        time_slots = db.query(WeeklyAvailabilitySlot).filter(
            WeeklyAvailabilitySlot.doctor_id == doctor_id,
        ).order_by(
            WeeklyAvailabilitySlot.day_of_week.asc(),
            WeeklyAvailabilitySlot.start_time.asc(),
        ).all()
    except SQLAlchemyError as exc:
        return database_error(exc, 'Failed to fetch time slots')

    return {'time_slots': [TimeSlotResponse.model_validate(slot).model_dump(mode='json') for slot in time_slots]}


@router.post('')
def create_time_slot(
    data: CreateTimeSlotRequest,
    current_user: Identity = Depends(get_current_user),
    db: Session = Depends(get_db),
):
    if data.doctor_id != current_user.id:
        return forbidden()

    time_slot = WeeklyAvailabilitySlot(**data.model_dump())

    try:
        db.add(time_slot)
        db.commit()
        db.refresh(time_slot)
    except SQLAlchemyError as exc:
        db.rollback()
        return database_error(exc, 'Failed to create time slot')

    return {
        'message': 'Time slot created successfully',
        'time_slot': TimeSlotResponse.model_validate(time_slot).model_dump(mode='json'),
    }


@router.put('')
def update_time_slot(
    data: UpdateTimeSlotRequest,
    current_user: Identity = Depends(get_current_user),
    db: Session = Depends(get_db),
):
    updates = data.model_dump(exclude={'id'}, exclude_none=True)

    try:
        time_slot = db.query(WeeklyAvailabilitySlot).filter(WeeklyAvailabilitySlot.id == data.id).first()
        if time_slot is None:
            return JSONResponse(status_code=status.HTTP_404_NOT_FOUND, content={'error': 'Time slot not found'})

        if time_slot.doctor_id != current_user.id:
            return forbidden()

        for field_name, value in updates.items():
            setattr(time_slot, field_name, value)

        if time_slot.end_time <= time_slot.start_time:
            db.rollback()
            return JSONResponse(
                status_code=status.HTTP_400_BAD_REQUEST,
                content={'error': 'end_time must be after start_time.'},
            )

        db.commit()
        db.refresh(time_slot)
    except SQLAlchemyError as exc:
        db.rollback()
        return database_error(exc, 'Failed to update time slot')

    return {
        'message': 'Time slot updated successfully',
        'time_slot': TimeSlotResponse.model_validate(time_slot).model_dump(mode='json'),
    }


@router.delete('')
def delete_time_slot(
    id: str | None = Query(default=None),
    current_user: Identity = Depends(get_current_user),
    db: Session = Depends(get_db),
):
    if not id:
        return JSONResponse(status_code=status.HTTP_400_BAD_REQUEST, content={'error': 'Time slot ID is required'})

    try:
        deleted_rows = db.query(WeeklyAvailabilitySlot).filter(
            WeeklyAvailabilitySlot.id == id,
            WeeklyAvailabilitySlot.doctor_id == current_user.id,
        ).delete(synchronize_session=False)
        db.commit()
    except SQLAlchemyError as exc:
        db.rollback()
        return database_error(exc, 'Failed to delete time slot')

    if not deleted_rows:
        return JSONResponse(status_code=status.HTTP_404_NOT_FOUND, content={'error': 'Time slot not found'})

    return {'message': 'Time slot deleted successfully'}
