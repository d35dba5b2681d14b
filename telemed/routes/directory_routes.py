import logging
import math

from fastapi import APIRouter, Depends, Query, Request, status
from fastapi.responses import JSONResponse
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import Session

from telemed.core import config
from telemed.core.cache import TTLCache
from telemed.database import get_db
from telemed.models.user import UserProfile

router = APIRouter(tags=['doctors'])

logger = logging.getLogger(__name__)

DOCTOR_PUBLIC_FIELDS = (
    'id',
    'full_name',
    'email',
    'specialty',
    'years_of_experience',
    'education',
    'bio',
    'consultation_fee',
    'available_days',
    'location',
    'profile_image',
)


def get_cache(request: Request) -> TTLCache:
    return request.app.state.cache


def invalidate_doctor_directory(cache: TTLCache) -> None:
    # Directory pages are the only cached entries; drop them all when a doctor joins.
    cache.clear()


def serialize_doctor(profile: UserProfile) -> dict:
    doctor = {field_name: getattr(profile, field_name) for field_name in DOCTOR_PUBLIC_FIELDS}
    if doctor['consultation_fee'] is not None:
        doctor['consultation_fee'] = float(doctor['consultation_fee'])
    return doctor


def fetch_doctor_page(db: Session, specialty: str | None, location: str | None, limit: int, page: int) -> dict:
    query = db.query(UserProfile).filter(
        UserProfile.role == 'doctor',
        UserProfile.is_active.is_(True),
    )
    if specialty:
        query = query.filter(UserProfile.specialty == specialty)
    if location:
        query = query.filter(UserProfile.location.ilike(f'%{location}%'))

    total = query.count()
    doctors = query.order_by(UserProfile.full_name.asc()).offset((page - 1) * limit).limit(limit).all()

    return {
        'doctors': [serialize_doctor(doctor) for doctor in doctors],
        'pagination': {
            'total': total,
            'page': page,
            'limit': limit,
            'totalPages': math.ceil(total / limit) if total else 0,
        },
    }


@router.get('')
def list_doctors(
    specialty: str | None = Query(default=None),
    location: str | None = Query(default=None),
    limit: int = Query(default=10, ge=1, le=100),
    page: int = Query(default=1, ge=1),
    db: Session = Depends(get_db),
    cache: TTLCache = Depends(get_cache),
):
    cache_key = ('doctors', specialty, location, limit, page)
    try:
        return cache.get_or_fetch(
            cache_key,
            lambda: fetch_doctor_page(db, specialty, location, limit, page),
            ttl_seconds=config.DOCTOR_CACHE_TTL_SECONDS,
        )
    except SQLAlchemyError as exc:
        logger.exception('Error fetching doctors')
        return JSONResponse(
            status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
            content={'error': str(exc) or 'Failed to fetch doctors'},
        )
