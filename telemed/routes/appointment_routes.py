import logging

from fastapi import APIRouter, Depends, Query, status
from fastapi.responses import JSONResponse
from pydantic import BaseModel, ConfigDict, Field
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import Session

from telemed.database import get_db
from telemed.models.appointment import APPOINTMENT_STATUSES, CONSULTATION_MODES, Appointment
from telemed.models.user import UserProfile
from telemed.repositories.availability import AvailabilityRepository
from telemed.services.availability import parse_date, parse_time, resolve_available_slots

router = APIRouter(tags=['appointments'])

logger = logging.getLogger(__name__)


class CreateAppointmentRequest(BaseModel):
    doctor_id: str | None = None
    patient_id: str | None = None
    date: str | None = None
    time: str | None = None
    mode: str | None = None
    notes: str | None = None


class UpdateStatusRequest(BaseModel):
    model_config = ConfigDict(populate_by_name=True)

    appointment_id: str | None = Field(default=None, alias='appointmentId')
    status: str | None = None
    notes: str | None = None


def error_response(message: str, status_code: int) -> JSONResponse:
    return JSONResponse(status_code=status_code, content={'error': message})


def serialize_appointment(appointment: Appointment, doctor: UserProfile | None = None) -> dict:
    payload = {
        'id': appointment.id,
        'doctor_id': appointment.doctor_id,
        'patient_id': appointment.patient_id,
        'date': appointment.date.isoformat(),
        'time_slot': appointment.time_slot.strftime('%H:%M'),
        'mode': appointment.mode,
        'status': appointment.status,
        'payment_status': appointment.payment_status,
        'notes': appointment.notes,
    }
    if doctor is not None:
        payload['doctor'] = {
            'id': doctor.id,
            'full_name': doctor.full_name,
            'specialty': doctor.specialty,
            'profile_image': doctor.profile_image,
        }
    return payload


@router.get('')
def list_appointments(
    user_id: str | None = Query(default=None, alias='userId'),
    role: str = Query(default='patient'),
    db: Session = Depends(get_db),
):
    if not user_id:
        return error_response('User ID is required', status.HTTP_400_BAD_REQUEST)

    owner_column = Appointment.doctor_id if role == 'doctor' else Appointment.patient_id

    try:
        rows = (
            db.query(Appointment, UserProfile)
            .outerjoin(UserProfile, UserProfile.id == Appointment.doctor_id)
            .filter(owner_column == user_id)
            .order_by(Appointment.date.asc(), Appointment.time_slot.asc())
            .all()
        )
    except SQLAlchemyError as exc:
        logger.exception('Error fetching appointments')
        return error_response(str(exc) or 'Failed to fetch appointments', status.HTTP_500_INTERNAL_SERVER_ERROR)

    return {'appointments': [serialize_appointment(appointment, doctor) for appointment, doctor in rows]}


@router.post('')
def create_appointment(data: CreateAppointmentRequest, db: Session = Depends(get_db)):
    if not all([data.doctor_id, data.patient_id, data.date, data.time, data.mode]):
        return error_response('Missing required fields', status.HTTP_400_BAD_REQUEST)

    mode = data.mode.strip().lower()
    if mode not in CONSULTATION_MODES:
        return error_response(
            f'Invalid mode. Expected one of: {", ".join(CONSULTATION_MODES)}',
            status.HTTP_400_BAD_REQUEST,
        )

    booking_date = parse_date(data.date)
    start_time = parse_time(data.time)

    open_slots = resolve_available_slots(data.doctor_id, booking_date, AvailabilityRepository(db))
    if start_time not in {slot.start_time for slot in open_slots}:
        return error_response('Requested time slot is not available', status.HTTP_409_CONFLICT)

    appointment = Appointment(
        doctor_id=data.doctor_id,
        patient_id=data.patient_id,
        date=booking_date,
        time_slot=start_time,
        mode=mode,
        status='pending',
        payment_status='pending',
        notes=data.notes,
    )

    try:
        db.add(appointment)
        db.commit()
        db.refresh(appointment)
    except SQLAlchemyError as exc:
        db.rollback()
        logger.exception('Error creating appointment')
        return error_response(str(exc) or 'Failed to create appointment', status.HTTP_500_INTERNAL_SERVER_ERROR)

    return {'message': 'Appointment created successfully', 'appointment': serialize_appointment(appointment)}


@router.get('/available-slots')
def list_available_slots(
    doctor_id: str | None = Query(default=None, alias='doctorId'),
    date: str | None = Query(default=None),
    db: Session = Depends(get_db),
):
    if not doctor_id or not date:
        return error_response('Doctor ID and date are required', status.HTTP_400_BAD_REQUEST)

    # ValidationError and UpstreamQueryError are rendered by the app-level handlers.
    slots = resolve_available_slots(doctor_id, date, AvailabilityRepository(db))
    return {'time_slots': [slot.model_dump(by_alias=True) for slot in slots]}


@router.post('/update-status')
def update_appointment_status(data: UpdateStatusRequest, db: Session = Depends(get_db)):
    if not data.appointment_id or not data.status:
        return error_response('Missing required fields', status.HTTP_400_BAD_REQUEST)

    normalized_status = data.status.strip().lower()
    if normalized_status not in APPOINTMENT_STATUSES:
        return error_response(
            f'Invalid status. Expected one of: {", ".join(APPOINTMENT_STATUSES)}',
            status.HTTP_400_BAD_REQUEST,
        )

    updates = {'status': normalized_status}
    if data.notes:
        updates['notes'] = data.notes

    try:
        updated_rows = db.query(Appointment).filter(
            Appointment.id == data.appointment_id,
        ).update(updates, synchronize_session=False)
        db.commit()
    except SQLAlchemyError as exc:
        db.rollback()
        logger.exception('Error updating appointment status')
        return error_response(str(exc) or 'Failed to update appointment status', status.HTTP_500_INTERNAL_SERVER_ERROR)

    if not updated_rows:
        return error_response('Appointment not found', status.HTTP_404_NOT_FOUND)

    return {'success': True}
