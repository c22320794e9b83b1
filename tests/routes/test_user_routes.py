import json

import pytest

from lifesure.auth.identity import VerifiedIdentity
from lifesure.core.constants import Role
from lifesure.core.errors import UserNotFound, ValidationError
from lifesure.models.user import User
from lifesure.routes.user_routes import (
    UpdateProfileRequest,
    UpsertUserRequest,
    apply_profile_update,
    create_or_update_user,
    get_user,
    update_last_login,
    upsert_user,
)


def test_upsert_user_creates_customer_with_default_display_name(db) -> None:
    user, created = upsert_user(UpsertUserRequest(uid='u-1', email='jane.doe@example.com'), db)

    assert created is True
    assert user.role == Role.CUSTOMER
    assert user.display_name == 'jane.doe'
    assert user.provider == 'email'
    assert user.last_login is not None


def test_upsert_user_accepts_camel_case_payload(db) -> None:
    data = UpsertUserRequest.model_validate(
        {'uid': 'u-1', 'email': 'jane@example.com', 'displayName': 'Jane', 'photoURL': 'https://img/jane.png'},
    )

    user, _ = upsert_user(data, db)

    assert user.display_name == 'Jane'
    assert user.photo_url == 'https://img/jane.png'


def test_upsert_user_never_changes_existing_role(db, make_user) -> None:
    make_user('admin-1', Role.ADMIN, display_name='Root')

    user, created = upsert_user(UpsertUserRequest(uid='admin-1', email='new@example.com'), db)

    assert created is False
    assert user.role == Role.ADMIN
    assert user.email == 'new@example.com'
    assert user.display_name == 'Root'
    assert db.query(User).count() == 1


@pytest.mark.parametrize('payload', [{'uid': 'u-1'}, {'email': 'jane@example.com'}, {}])
def test_upsert_user_requires_uid_and_email(db, payload: dict) -> None:
    with pytest.raises(ValidationError) as exception_info:
        upsert_user(UpsertUserRequest(**payload), db)

    assert exception_info.value.detail == 'UID and email are required'
    assert db.query(User).count() == 0


def test_create_or_update_user_returns_201_then_200(db) -> None:
    first = create_or_update_user(UpsertUserRequest(uid='u-1', email='jane@example.com'), db)
    second = create_or_update_user(UpsertUserRequest(uid='u-1', email='jane@example.com'), db)

    assert first.status_code == 201
    body = json.loads(first.body)
    assert body['success'] is True
    assert body['user']['role'] == 'customer'
    assert second['message'] == 'User profile updated successfully'


def test_get_user_returns_camel_case_profile(db, make_user) -> None:
    make_user('u-1', photo_url='https://img/u1.png')

    result = get_user('u-1', identity=VerifiedIdentity(subject_id='u-1'), db=db)

    assert result['user']['uid'] == 'u-1'
    assert result['user']['photoURL'] == 'https://img/u1.png'
    assert 'displayName' in result['user']


def test_get_user_unknown_uid_is_not_found(db) -> None:
    with pytest.raises(UserNotFound):
        get_user('ghost', identity=VerifiedIdentity(subject_id='u-1'), db=db)


def test_apply_profile_update_sets_name_and_photo(db, make_user) -> None:
    make_user('u-1', photo_url='https://img/old.png')

    user = apply_profile_update(db, 'u-1', UpdateProfileRequest(display_name='  Jane  ', photo_url=None))

    assert user.display_name == 'Jane'
    assert user.photo_url is None


def test_apply_profile_update_requires_display_name(db, make_user) -> None:
    make_user('u-1', display_name='Before')

    with pytest.raises(ValidationError):
        apply_profile_update(db, 'u-1', UpdateProfileRequest(display_name='   '))

    assert db.query(User).filter(User.uid == 'u-1').one().display_name == 'Before'


def test_update_last_login_unknown_user_is_not_found(db) -> None:
    with pytest.raises(UserNotFound):
        update_last_login('ghost', db=db)


def test_update_last_login_for_existing_user(db, make_user) -> None:
    make_user('u-1')

    assert update_last_login('u-1', db=db) == {'success': True, 'message': 'Last login updated'}
