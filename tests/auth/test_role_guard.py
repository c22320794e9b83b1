import pytest

from lifesure.auth.dependencies import RoleDenial, check_role, enforce_role
from lifesure.auth.identity import VerifiedIdentity
from lifesure.core.constants import Role
from lifesure.core.errors import MissingSubject, RoleMismatch, UserNotFound


def test_check_role_allows_matching_role(db, make_user) -> None:
    make_user('admin-1', Role.ADMIN)

    result = check_role(db, 'admin-1', Role.ADMIN)

    assert result.allowed
    assert result.user.uid == 'admin-1'


def test_check_role_without_required_role_accepts_any_stored_user(db, make_user) -> None:
    make_user('agent-1', Role.AGENT)

    assert check_role(db, 'agent-1', None).allowed


@pytest.mark.parametrize(
    ('subject_id', 'required_role', 'denial'),
    [
        ('', Role.ADMIN, RoleDenial.MISSING_SUBJECT),
        (None, Role.CUSTOMER, RoleDenial.MISSING_SUBJECT),
        ('ghost', Role.ADMIN, RoleDenial.USER_NOT_FOUND),
        ('customer-1', Role.ADMIN, RoleDenial.ROLE_MISMATCH),
        ('customer-1', Role.AGENT, RoleDenial.ROLE_MISMATCH),
    ],
)
def test_check_role_reports_denials(db, make_user, subject_id, required_role, denial) -> None:
    make_user('customer-1', Role.CUSTOMER)

    result = check_role(db, subject_id, required_role)

    assert not result.allowed
    assert result.denial is denial


def test_enforce_role_returns_request_context(db, make_user) -> None:
    make_user('customer-1', Role.CUSTOMER)

    ctx = enforce_role(db, VerifiedIdentity(subject_id='customer-1', email='c@example.com'), Role.CUSTOMER)

    assert ctx.uid == 'customer-1'
    assert ctx.email == 'c@example.com'
    assert ctx.user.role == 'customer'


def test_enforce_role_falls_back_to_stored_email(db, make_user) -> None:
    make_user('customer-1', Role.CUSTOMER, email='stored@example.com')

    ctx = enforce_role(db, VerifiedIdentity(subject_id='customer-1'), None)

    assert ctx.email == 'stored@example.com'


def test_enforce_role_mismatch_is_forbidden_with_role_name(db, make_user) -> None:
    make_user('customer-1', Role.CUSTOMER)

    with pytest.raises(RoleMismatch) as exception_info:
        enforce_role(db, VerifiedIdentity(subject_id='customer-1'), Role.ADMIN)

    assert exception_info.value.status_code == 403
    assert exception_info.value.detail == 'Access denied. Admin role required.'


def test_enforce_role_unknown_user_is_not_found(db) -> None:
    with pytest.raises(UserNotFound) as exception_info:
        enforce_role(db, VerifiedIdentity(subject_id='ghost'), Role.AGENT)

    assert exception_info.value.status_code == 404
    assert exception_info.value.detail == 'User not found'


def test_enforce_role_missing_subject_is_unauthenticated(db) -> None:
    with pytest.raises(MissingSubject) as exception_info:
        enforce_role(db, VerifiedIdentity(subject_id=''), Role.CUSTOMER)

    assert exception_info.value.status_code == 401
    assert exception_info.value.detail == 'User ID is required'
