import pytest

from telemed.auth import jwt_handler
from telemed.models.time_slot import WeeklyAvailabilitySlot


@pytest.fixture
def doctor(make_user):
    return make_user('doctor@example.com', role='doctor', full_name='Dr. Adams')


def _slot(doctor_id: str, **overrides) -> dict:
    payload = {'doctor_id': doctor_id, 'day_of_week': 1, 'start_time': '09:00', 'end_time': '09:30'}
    payload.update(overrides)
    return payload


def test_schedule_requires_a_session(client) -> None:
    response = client.get('/doctor/time-slots', params={'doctorId': 'doc1'})

    assert response.status_code == 401
    assert response.json() == {'error': 'Authentication required'}


def test_schedule_is_restricted_to_doctors(client, make_user, auth_headers) -> None:
    patient = make_user('patient@example.com')

    response = client.get('/doctor/time-slots', params={'doctorId': 'doc1'}, headers=auth_headers(patient))

    assert response.status_code == 403


def test_doctor_creates_and_lists_slots_in_weekly_order(client, doctor, auth_headers) -> None:
    headers = auth_headers(doctor)
    client.post('/doctor/time-slots', json=_slot(doctor.id, day_of_week=3), headers=headers)
    client.post('/doctor/time-slots', json=_slot(doctor.id, start_time='10:00', end_time='10:30'), headers=headers)
    created = client.post('/doctor/time-slots', json=_slot(doctor.id), headers=headers)

    assert created.status_code == 200
    assert created.json()['time_slot']['is_available'] is True

    response = client.get('/doctor/time-slots', params={'doctorId': doctor.id}, headers=headers)

    assert [(slot['day_of_week'], slot['start_time']) for slot in response.json()['time_slots']] == [
        (1, '09:00:00'),
        (1, '10:00:00'),
        (3, '09:00:00'),
    ]


def test_created_slot_feeds_available_slots(client, doctor, auth_headers) -> None:
    client.post('/doctor/time-slots', json=_slot(doctor.id), headers=auth_headers(doctor))

    response = client.get('/appointments/available-slots', params={'doctorId': doctor.id, 'date': '2024-01-01'})

    assert [slot['startTime'] for slot in response.json()['time_slots']] == ['09:00']


def test_create_rejects_invalid_time_range(client, doctor, auth_headers) -> None:
    response = client.post(
        '/doctor/time-slots',
        json=_slot(doctor.id, start_time='10:00', end_time='09:00'),
        headers=auth_headers(doctor),
    )

    assert response.status_code == 422


def test_doctor_cannot_create_slots_for_someone_else(client, doctor, auth_headers) -> None:
    response = client.post('/doctor/time-slots', json=_slot('another-doctor'), headers=auth_headers(doctor))

    assert response.status_code == 403


def test_doctor_updates_and_deletes_own_slot(client, db_session, doctor, auth_headers) -> None:
    headers = auth_headers(doctor)
    slot_id = client.post('/doctor/time-slots', json=_slot(doctor.id), headers=headers).json()['time_slot']['id']

    updated = client.put('/doctor/time-slots', json={'id': slot_id, 'is_available': False}, headers=headers)

    assert updated.status_code == 200
    assert updated.json()['time_slot']['is_available'] is False

    deleted = client.delete('/doctor/time-slots', params={'id': slot_id}, headers=headers)

    assert deleted.status_code == 200
    assert db_session.query(WeeklyAvailabilitySlot).count() == 0


def test_update_rejects_inverted_range(client, doctor, auth_headers) -> None:
    headers = auth_headers(doctor)
    slot_id = client.post('/doctor/time-slots', json=_slot(doctor.id), headers=headers).json()['time_slot']['id']

    response = client.put('/doctor/time-slots', json={'id': slot_id, 'end_time': '08:00'}, headers=headers)

    assert response.status_code == 400


def test_delete_unknown_slot_returns_404(client, doctor, auth_headers) -> None:
    response = client.delete('/doctor/time-slots', params={'id': 'missing'}, headers=auth_headers(doctor))

    assert response.status_code == 404


def test_doctor_session_cookie_is_accepted_by_schedule_routes(client, doctor) -> None:
    client.cookies.set('session', jwt_handler.create_access_token(subject=doctor.id, role='doctor'))

    created = client.post('/doctor/time-slots', json=_slot(doctor.id))
    listed = client.get('/doctor/time-slots', params={'doctorId': doctor.id})

    assert created.status_code == 200
    assert [slot['id'] for slot in listed.json()['time_slots']] == [created.json()['time_slot']['id']]


def test_cors_preflight_is_answered_without_a_session(client) -> None:
    response = client.options(
        '/doctor/time-slots',
        headers={
            'Origin': 'http://localhost:3000',
            'Access-Control-Request-Method': 'POST',
            'Access-Control-Request-Headers': 'authorization,content-type',
        },
    )

    assert response.status_code == 200
    assert response.headers['access-control-allow-origin'] == 'http://localhost:3000'


def test_guard_denials_carry_cors_headers(client) -> None:
    response = client.get(
        '/doctor/time-slots',
        params={'doctorId': 'doc1'},
        headers={'Origin': 'http://localhost:3000'},
    )

    assert response.status_code == 401
    assert response.json() == {'error': 'Authentication required'}
    assert response.headers['access-control-allow-origin'] == 'http://localhost:3000'
