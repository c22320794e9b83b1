import logging

from fastapi import APIRouter, Depends, status
from fastapi.responses import JSONResponse
from pydantic import Field, field_validator
from sqlalchemy.orm import Session

from lifesure.auth.dependencies import RequestContext, get_db, get_request_context, get_verified_identity
from lifesure.auth.identity import VerifiedIdentity
from lifesure.core.constants import Role
from lifesure.core.errors import UserNotFound, ValidationError
from lifesure.database import utcnow
from lifesure.models.user import User
from lifesure.routes.common import store_errors
from lifesure.schemas import CamelModel, UserResponse, dump

logger = logging.getLogger(__name__)

router = APIRouter(tags=['users'])


class UpsertUserRequest(CamelModel):
    uid: str | None = None
    email: str | None = None
    display_name: str | None = None
    photo_url: str | None = Field(default=None, alias='photoURL')
    provider: str = 'email'

    @field_validator('email')
    @classmethod
    def normalize_email(cls, value: str | None) -> str | None:
        return value.strip() if value else value


class UpdateProfileRequest(CamelModel):
    display_name: str | None = None
    photo_url: str | None = Field(default=None, alias='photoURL')


def default_display_name(email: str) -> str:
    return email.split('@', 1)[0]


def upsert_user(data: UpsertUserRequest, db: Session) -> tuple[User, bool]:
    """Create the user with the customer role, or refresh an existing profile.

    The stored role is never touched here. Returns the user and whether it
    was created.
    """
    if not data.uid or not data.email:
        raise ValidationError('UID and email are required')

    with store_errors(db, 'Failed to create/update user profile'):
        now = utcnow()
        user = db.query(User).filter(User.uid == data.uid).first()
        created = user is None

        if created:
            user = User(
                uid=data.uid,
                email=data.email,
                display_name=data.display_name or default_display_name(data.email),
                photo_url=data.photo_url,
                role=Role.CUSTOMER.value,
                provider=data.provider,
                is_active=True,
                created_at=now,
                updated_at=now,
                last_login=now,
            )
            db.add(user)
        else:
            user.email = data.email
            if data.display_name:
                user.display_name = data.display_name
            if data.photo_url is not None:
                user.photo_url = data.photo_url
            user.last_login = now
            user.updated_at = now

        db.commit()
        db.refresh(user)

    if created:
        logger.info('Registered user %s with customer role', user.uid)
    return user, created


@router.post('/users')
def create_or_update_user(data: UpsertUserRequest, db: Session = Depends(get_db)):
    user, created = upsert_user(data, db)
    if created:
        return JSONResponse(
            status_code=status.HTTP_201_CREATED,
            content={
                'success': True,
                'message': 'User created successfully with customer role',
                'user': dump(UserResponse, user),
            },
        )
    return {'success': True, 'message': 'User profile updated successfully', 'user': dump(UserResponse, user)}


@router.get('/users/{uid}')
def get_user(
    uid: str,
    identity: VerifiedIdentity = Depends(get_verified_identity),
    db: Session = Depends(get_db),
):
    with store_errors(db, 'Failed to fetch user'):
        user = db.query(User).filter(User.uid == uid).first()
    if user is None:
        raise UserNotFound()
    return {'success': True, 'user': dump(UserResponse, user)}


def apply_profile_update(db: Session, uid: str, data: UpdateProfileRequest) -> User:
    display_name = (data.display_name or '').strip()
    if not display_name:
        raise ValidationError('Display name is required')

    with store_errors(db, 'Profile update failed'):
        user = db.query(User).filter(User.uid == uid).first()
        if user is None:
            raise UserNotFound()
        user.display_name = display_name
        user.photo_url = data.photo_url
        user.updated_at = utcnow()
        db.commit()
        db.refresh(user)
    return user


@router.patch('/users/{uid}/profile')
def update_user_profile(
    uid: str,
    data: UpdateProfileRequest,
    identity: VerifiedIdentity = Depends(get_verified_identity),
    db: Session = Depends(get_db),
):
    user = apply_profile_update(db, uid, data)
    return {'success': True, 'message': 'Profile updated', 'user': dump(UserResponse, user)}


@router.patch('/users/{uid}/last-login')
def update_last_login(uid: str, db: Session = Depends(get_db)):
    with store_errors(db, 'Failed to update'):
        updated = db.query(User).filter(User.uid == uid).update(
            {User.last_login: utcnow()},
            synchronize_session=False,
        )
        db.commit()
    if not updated:
        raise UserNotFound()
    return {'success': True, 'message': 'Last login updated'}


@router.get('/profile')
def get_own_profile(ctx: RequestContext = Depends(get_request_context)):
    user = ctx.user
    return {
        'success': True,
        'user': {
            'uid': user.uid,
            'email': user.email,
            'displayName': user.display_name,
            'photoURL': user.photo_url,
            'role': user.role,
            'createdAt': user.created_at,
            'lastLogin': user.last_login,
        },
    }


@router.patch('/profile')
def update_own_profile(
    data: UpdateProfileRequest,
    identity: VerifiedIdentity = Depends(get_verified_identity),
    db: Session = Depends(get_db),
):
    user = apply_profile_update(db, identity.subject_id, data)
    return {'success': True, 'message': 'Profile updated successfully', 'user': dump(UserResponse, user)}
