import logging
from datetime import datetime, timezone

from fastapi import APIRouter, Depends, status
from fastapi.responses import JSONResponse
from pydantic import BaseModel, ConfigDict, Field
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import Session

from telemed.auth.dependencies import get_optional_user
from telemed.database import get_db
from telemed.models.audit_log import AuditLog
from telemed.models.health_record import HealthRecord
from telemed.models.user import Identity

router = APIRouter(tags=['audit'])

logger = logging.getLogger(__name__)

HEALTH_RECORD_TYPE = 'health_record'


class DataAccessLogRequest(BaseModel):
    model_config = ConfigDict(populate_by_name=True)

    record_type: str | None = Field(default=None, alias='recordType')
    record_id: str | None = Field(default=None, alias='recordId')
    action: str | None = None
    user_id: str | None = Field(default=None, alias='userId')


class ActionLogRequest(BaseModel):
    model_config = ConfigDict(populate_by_name=True)

    resource_type: str | None = Field(default=None, alias='resourceType')
    resource_id: str | None = Field(default=None, alias='resourceId')
    action: str | None = None
    user_id: str | None = Field(default=None, alias='userId')


def _check_caller(current_user: Identity | None, user_id: str | None, *required: str | None) -> JSONResponse | None:
    if current_user is None:
        return JSONResponse(status_code=status.HTTP_401_UNAUTHORIZED, content={'error': 'Authentication required'})

    if not all(required):
        return JSONResponse(status_code=status.HTTP_400_BAD_REQUEST, content={'error': 'Missing required fields'})

    if user_id != current_user.id:
        return JSONResponse(status_code=status.HTTP_403_FORBIDDEN, content={'error': 'User ID mismatch'})

    return None


def track_health_record_access(record_id: str, user_id: str, db: Session) -> bool:
    """Stamp the record's last access. Returns False when the record does not exist."""
    updated_rows = db.query(HealthRecord).filter(HealthRecord.id == record_id).update(
        {'last_accessed_at': datetime.now(timezone.utc), 'last_accessed_by': user_id},
        synchronize_session=False,
    )
    return bool(updated_rows)


def write_audit_log(user_id: str, resource_type: str, resource_id: str, action: str, db: Session) -> bool:
    """Insert one audit row. Failures are logged and reported as False, never raised."""
    try:
        db.add(
            AuditLog(
                user_id=user_id,
                resource_type=resource_type,
                resource_id=resource_id,
                action=action,
                timestamp=datetime.now(timezone.utc),
            )
        )
        db.commit()
    except SQLAlchemyError:
        db.rollback()
        logger.exception('Error creating audit log for %s %s', resource_type, resource_id)
        return False

    return True


@router.post('/log-data-access')
def log_data_access(
    data: DataAccessLogRequest,
    current_user: Identity | None = Depends(get_optional_user),
    db: Session = Depends(get_db),
):
    rejection = _check_caller(current_user, data.user_id, data.record_type, data.record_id, data.action)
    if rejection is not None:
        return rejection

    if data.record_type == HEALTH_RECORD_TYPE:
        try:
            if not track_health_record_access(data.record_id, current_user.id, db):
                logger.warning('Health record %s not found while tracking access', data.record_id)
            db.commit()
        except SQLAlchemyError:
            db.rollback()
            logger.exception('Error tracking health record access for %s', data.record_id)

    write_audit_log(current_user.id, data.record_type, data.record_id, data.action, db)
    return {'success': True}


@router.post('/log')
def log_appointment_action(
    data: ActionLogRequest,
    current_user: Identity | None = Depends(get_optional_user),
    db: Session = Depends(get_db),
):
    rejection = _check_caller(current_user, data.user_id, data.resource_type, data.resource_id, data.action)
    if rejection is not None:
        return rejection

    write_audit_log(current_user.id, data.resource_type, data.resource_id, data.action, db)
    return {'success': True}
