import pytest
from sqlalchemy import inspect
from sqlalchemy.exc import OperationalError

from telemed.database import create_tables
from telemed.routes import init_routes


@pytest.fixture
def init_env(tmp_path, monkeypatch: pytest.MonkeyPatch):
    monkeypatch.setattr(init_routes, 'create_tables', lambda: [])
    monkeypatch.setattr(init_routes, 'ensure_lookup_indexes', lambda: None)
    monkeypatch.setattr('telemed.core.config.STORAGE_ROOT', str(tmp_path))
    return tmp_path


def test_init_creates_storage_bucket_and_reports_details(client, init_env) -> None:
    response = client.get('/init')

    assert response.status_code == 200
    body = response.json()
    assert body['success'] is True
    assert body['details']['database']['initialized'] is True
    assert body['details']['storage']['initialized'] is True
    assert body['details']['storage']['bucket_created'] is True
    assert (init_env / 'public' / 'profile-images' / '.keep').exists()


def test_init_is_idempotent(client, init_env) -> None:
    assert client.get('/init').status_code == 200

    response = client.get('/init')

    assert response.status_code == 200
    assert response.json()['details']['storage']['bucket_created'] is False
    assert response.json()['details']['storage']['folder_created'] is False


def test_init_reports_database_failure(client, init_env, monkeypatch: pytest.MonkeyPatch) -> None:
    def failing_create_tables():
        raise OperationalError('CREATE TABLE', {}, Exception('permission denied'))

    monkeypatch.setattr(init_routes, 'create_tables', failing_create_tables)

    response = client.get('/init')

    assert response.status_code == 500
    body = response.json()
    assert body['success'] is False
    assert 'permission denied' in body['details']['database']['message']


def test_init_reports_storage_failure(client, init_env, monkeypatch: pytest.MonkeyPatch) -> None:
    def failing_storage():
        raise PermissionError('read-only file system')

    monkeypatch.setattr(init_routes, 'ensure_storage_buckets', failing_storage)

    response = client.get('/init')

    assert response.status_code == 500
    assert response.json()['message'] == 'Failed to initialize storage buckets'


def test_create_tables_only_reports_new_tables(db_engine) -> None:
    assert create_tables(bind=db_engine) == []
    assert {'time_slots', 'appointments', 'users', 'identities', 'audit_logs', 'health_records'} <= set(
        inspect(db_engine).get_table_names()
    )
