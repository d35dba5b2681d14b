import pytest

from telemed.auth import jwt_handler
from telemed.auth.guard import GuardRule, RouteGuard


@pytest.fixture
def guard() -> RouteGuard:
    return RouteGuard()


def test_unguarded_paths_are_allowed_without_session(guard: RouteGuard) -> None:
    assert guard.evaluate('/appointments/available-slots', None).allowed
    assert guard.evaluate('/doctors', None).allowed


def test_doctor_paths_require_a_session(guard: RouteGuard) -> None:
    decision = guard.evaluate('/doctor/time-slots', None)

    assert not decision.allowed
    assert decision.status_code == 401
    assert decision.error == 'Authentication required'


def test_doctor_paths_reject_other_roles(guard: RouteGuard) -> None:
    decision = guard.evaluate('/doctor/time-slots', {'sub': 'u1', 'role': 'patient'})

    assert not decision.allowed
    assert decision.status_code == 403


def test_doctor_paths_allow_doctors(guard: RouteGuard) -> None:
    assert guard.evaluate('/doctor/time-slots', {'sub': 'u1', 'role': 'doctor'}).allowed


def test_session_only_rule_accepts_any_role(guard: RouteGuard) -> None:
    assert not guard.evaluate('/profile/medical-history', None).allowed
    assert guard.evaluate('/profile/medical-history', {'sub': 'u1', 'role': 'patient'}).allowed


def test_custom_rules_replace_defaults() -> None:
    guard = RouteGuard([GuardRule('/admin', frozenset({'admin'}))])

    assert guard.evaluate('/doctor/time-slots', None).allowed
    assert guard.evaluate('/admin/users', {'sub': 'u1', 'role': 'admin'}).allowed
    assert guard.evaluate('/admin/users', {'sub': 'u1', 'role': 'doctor'}).status_code == 403


def test_read_session_claims_from_bearer_header_and_cookie() -> None:
    token = jwt_handler.create_access_token(subject='user-1', role='doctor')

    assert jwt_handler.read_session_claims(f'Bearer {token}')['role'] == 'doctor'
    assert jwt_handler.read_session_claims(None, token)['sub'] == 'user-1'


@pytest.mark.parametrize('authorization', [None, '', 'Basic abc', 'Bearer ', 'Bearer not-a-jwt'])
def test_read_session_claims_returns_none_without_valid_token(authorization) -> None:
    assert jwt_handler.read_session_claims(authorization) is None


def test_read_session_claims_rejects_expired_token() -> None:
    token = jwt_handler.create_access_token(subject='user-1', expires_minutes=-1)

    assert jwt_handler.read_session_claims(f'Bearer {token}') is None
