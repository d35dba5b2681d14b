import logging
import re

from fastapi import APIRouter, Depends, Request, status
from fastapi.responses import JSONResponse
from pydantic import BaseModel, ConfigDict, Field
from sqlalchemy.exc import IntegrityError, SQLAlchemyError
from sqlalchemy.orm import Session

from telemed.auth import jwt_handler
from telemed.auth.dependencies import get_current_user
from telemed.auth.passwords import hash_password, verify_password
from telemed.database import get_db
from telemed.models.user import Identity, UserProfile
from telemed.routes.directory_routes import invalidate_doctor_directory

router = APIRouter(tags=['auth'])

logger = logging.getLogger(__name__)

EMAIL_PATTERN = re.compile(r'^[^@\s]+@[^@\s]+\.[^@\s]+$')
MIN_PASSWORD_LENGTH = 6
ROLES = ('patient', 'doctor')
DOCTOR_PROFILE_FIELDS = (
    'phone_number',
    'specialty',
    'years_of_experience',
    'education',
    'bio',
    'consultation_fee',
    'available_days',
    'location',
    'medical_license',
)


class IdentityRejected(Exception):
    """The identity store refused to create the account."""


class RegistrationData(BaseModel):
    model_config = ConfigDict(extra='ignore')

    full_name: str = ''
    role: str = 'patient'
    phone_number: str | None = None
    specialty: str | None = None
    years_of_experience: int | None = None
    education: str | None = None
    bio: str | None = None
    consultation_fee: float | None = None
    available_days: list[str] | None = None
    location: str | None = None
    medical_license: str | None = None


class RegisterRequest(BaseModel):
    model_config = ConfigDict(populate_by_name=True)

    email: str | None = None
    password: str | None = None
    user_data: RegistrationData = Field(default_factory=RegistrationData, alias='userData')


class LoginRequest(BaseModel):
    email: str
    password: str


def create_identity(email: str | None, password: str | None, role: str, db: Session) -> Identity:
    normalized_email = (email or '').strip().lower()
    if not normalized_email or not EMAIL_PATTERN.match(normalized_email):
        raise IdentityRejected('Unable to validate email address: invalid format')
    if not password or len(password) < MIN_PASSWORD_LENGTH:
        raise IdentityRejected(f'Password should be at least {MIN_PASSWORD_LENGTH} characters.')
    if role not in ROLES:
        raise IdentityRejected(f'Invalid role: {role}')

    identity = Identity(email=normalized_email, hashed_password=hash_password(password), role=role)
    db.add(identity)
    try:
        db.commit()
    except IntegrityError as exc:
        db.rollback()
        raise IdentityRejected('A user with this email address has already been registered') from exc

    db.refresh(identity)
    return identity


def build_profile(identity: Identity, user_data: RegistrationData) -> UserProfile:
    profile = UserProfile(
        id=identity.id,
        email=identity.email,
        full_name=user_data.full_name or '',
        role=identity.role,
    )
    if identity.role == 'doctor':
        for field_name in DOCTOR_PROFILE_FIELDS:
            setattr(profile, field_name, getattr(user_data, field_name))
    return profile


@router.post('/register')
def register(data: RegisterRequest, request: Request, db: Session = Depends(get_db)):
    role = (data.user_data.role or 'patient').strip().lower()
    logger.info('Registration attempt with role %s', role)

    try:
        identity = create_identity(data.email, data.password, role, db)
    except IdentityRejected as exc:
        logger.warning('Identity rejected: %s', exc)
        return JSONResponse(status_code=status.HTTP_400_BAD_REQUEST, content={'error': str(exc)})
    except SQLAlchemyError as exc:
        db.rollback()
        logger.exception('Identity creation failed')
        return JSONResponse(status_code=status.HTTP_500_INTERNAL_SERVER_ERROR, content={'error': str(exc)})

    if identity is None or not identity.id:
        return JSONResponse(
            status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
            content={'error': 'No user returned from auth signup'},
        )

    try:
        db.add(build_profile(identity, data.user_data))
        db.commit()
    except SQLAlchemyError as exc:
        db.rollback()
        logger.error('Profile creation error: %s', exc)

        try:
            db.merge(build_profile(identity, data.user_data))
            db.commit()
        except SQLAlchemyError as upsert_exc:
            db.rollback()
            logger.exception('Profile upsert error')
            return JSONResponse(
                status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
                content={'error': str(upsert_exc)},
            )

    if identity.role == 'doctor':
        invalidate_doctor_directory(request.app.state.cache)

    return {
        'success': True,
        'userId': identity.id,
        'message': 'Registration successful. Please proceed to login.',
    }


@router.post('/login')
def login(data: LoginRequest, db: Session = Depends(get_db)):
    identity = db.query(Identity).filter(Identity.email == data.email.strip().lower()).first()
    if identity is None or not verify_password(data.password, identity.hashed_password):
        return JSONResponse(status_code=status.HTTP_401_UNAUTHORIZED, content={'error': 'Invalid login credentials'})

    token = jwt_handler.create_access_token(subject=identity.id, role=identity.role)
    return {'access_token': token, 'token_type': 'bearer'}


@router.get('/me')
def me(current_user: Identity = Depends(get_current_user)):
    return {'id': current_user.id, 'email': current_user.email, 'role': current_user.role}
