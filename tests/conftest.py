import os

os.environ.setdefault('DATABASE_URL', 'sqlite://')
os.environ.setdefault('JWT_SECRET_KEY', 'telemed-test-signing-key-0123456789abcdef')

import pytest  # noqa: E402
from fastapi.testclient import TestClient  # noqa: E402
from sqlalchemy import create_engine  # noqa: E402
from sqlalchemy.orm import sessionmaker  # noqa: E402
from sqlalchemy.pool import StaticPool  # noqa: E402

from telemed.auth import jwt_handler  # noqa: E402
from telemed.auth.passwords import hash_password  # noqa: E402
from telemed.database import Base, create_tables, get_db  # noqa: E402
from telemed.main import app  # noqa: E402
from telemed.models.user import Identity, UserProfile  # noqa: E402


@pytest.fixture
def db_engine():
    engine = create_engine(
        'sqlite:///:memory:',
        connect_args={'check_same_thread': False},
        poolclass=StaticPool,
    )
    create_tables(bind=engine)
    try:
        yield engine
    finally:
        Base.metadata.drop_all(bind=engine)
        engine.dispose()


@pytest.fixture
def db_session(db_engine):
    testing_session_local = sessionmaker(autocommit=False, autoflush=False, bind=db_engine)
    db = testing_session_local()
    try:
        yield db
    finally:
        db.close()


@pytest.fixture
def client(db_engine):
    testing_session_local = sessionmaker(autocommit=False, autoflush=False, bind=db_engine)

    def override_get_db():
        db = testing_session_local()
        try:
            yield db
        finally:
            db.close()

    app.dependency_overrides[get_db] = override_get_db
    app.state.cache.clear()
    try:
        yield TestClient(app)
    finally:
        app.dependency_overrides.clear()
        app.state.cache.clear()


@pytest.fixture
def make_user(db_session):
    def _make_user(email: str, role: str = 'patient', full_name: str = '', **profile_fields) -> Identity:
        identity = Identity(email=email, hashed_password=hash_password('secret123'), role=role)
        db_session.add(identity)
        db_session.commit()
        db_session.refresh(identity)
        db_session.add(UserProfile(id=identity.id, email=email, full_name=full_name, role=role, **profile_fields))
        db_session.commit()
        return identity

    return _make_user


def auth_header(identity: Identity) -> dict:
    token = jwt_handler.create_access_token(subject=identity.id, role=identity.role)
    return {'Authorization': f'Bearer {token}'}


@pytest.fixture
def auth_headers():
    return auth_header
