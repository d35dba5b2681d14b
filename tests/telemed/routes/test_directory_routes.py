import pytest

from telemed.main import app
from telemed.models.user import UserProfile


def test_list_doctors_filters_active_doctors(client, make_user) -> None:
    make_user('a@example.com', role='doctor', full_name='Dr. Adams', specialty='Cardiology', location='Boston')
    make_user('b@example.com', role='doctor', full_name='Dr. Baker', specialty='Dermatology', location='Denver')
    make_user('p@example.com', role='patient', full_name='Pat Ient')
    make_user('c@example.com', role='doctor', full_name='Dr. Cole', specialty='Cardiology', is_active=False)

    response = client.get('/doctors', params={'specialty': 'Cardiology'})

    assert response.status_code == 200
    body = response.json()
    assert [doctor['full_name'] for doctor in body['doctors']] == ['Dr. Adams']
    assert body['pagination'] == {'total': 1, 'page': 1, 'limit': 10, 'totalPages': 1}


def test_list_doctors_paginates(client, make_user) -> None:
    for index in range(3):
        make_user(f'doc{index}@example.com', role='doctor', full_name=f'Dr. {index}')

    response = client.get('/doctors', params={'limit': 2, 'page': 2})

    body = response.json()
    assert [doctor['full_name'] for doctor in body['doctors']] == ['Dr. 2']
    assert body['pagination'] == {'total': 3, 'page': 2, 'limit': 2, 'totalPages': 2}


def test_list_doctors_serves_repeat_requests_from_cache(client, db_session, make_user) -> None:
    make_user('a@example.com', role='doctor', full_name='Dr. Adams')
    assert len(client.get('/doctors').json()['doctors']) == 1

    db_session.query(UserProfile).delete()
    db_session.commit()

    assert len(client.get('/doctors').json()['doctors']) == 1


def test_registering_a_doctor_invalidates_cached_directory(client) -> None:
    assert client.get('/doctors').json()['doctors'] == []

    client.post(
        '/auth/register',
        json={'email': 'new@example.com', 'password': 'secret123', 'userData': {'full_name': 'Dr. New', 'role': 'doctor'}},
    )

    assert [doctor['full_name'] for doctor in client.get('/doctors').json()['doctors']] == ['Dr. New']


def test_distinct_filters_do_not_grow_cache_past_its_limit(client, monkeypatch: pytest.MonkeyPatch) -> None:
    monkeypatch.setattr(app.state.cache, 'max_size', 5)

    for index in range(20):
        assert client.get('/doctors', params={'location': f'city-{index}'}).status_code == 200

    assert len(app.state.cache) == 5
