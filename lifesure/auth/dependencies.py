import logging
from dataclasses import dataclass
from enum import StrEnum
from typing import Callable, Iterator

from fastapi import Depends
from fastapi.security import HTTPAuthorizationCredentials, HTTPBearer
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import Session

from lifesure.auth.identity import VerifiedIdentity
from lifesure.core.constants import Role
from lifesure.core.context import AppContext, get_context
from lifesure.core.errors import MissingSubject, RoleMismatch, Unauthenticated, UpstreamFailure, UserNotFound
from lifesure.models.user import User

logger = logging.getLogger(__name__)

security = HTTPBearer(auto_error=False)


def get_db(context: AppContext = Depends(get_context)) -> Iterator[Session]:
    db = context.session_factory()
    try:
        yield db
    finally:
        db.close()


def get_verified_identity(
    credentials: HTTPAuthorizationCredentials | None = Depends(security),
    context: AppContext = Depends(get_context),
) -> VerifiedIdentity:
    if credentials is None or not credentials.credentials:
        raise Unauthenticated()
    return context.verifier.verify(credentials.credentials)


class RoleDenial(StrEnum):
    MISSING_SUBJECT = "missing_subject"
    USER_NOT_FOUND = "user_not_found"
    ROLE_MISMATCH = "role_mismatch"


@dataclass(frozen=True)
class RoleCheck:
    """Outcome of a role check: the loaded user, or why access was denied."""

    user: User | None = None
    denial: RoleDenial | None = None

    @property
    def allowed(self) -> bool:
        return self.denial is None


@dataclass(frozen=True)
class RequestContext:
    """Verified identity plus the stored user it maps to, for one request."""

    identity: VerifiedIdentity
    user: User

    @property
    def uid(self) -> str:
        return self.user.uid

    @property
    def email(self) -> str | None:
        return self.identity.email or self.user.email


def load_user(db: Session, subject_id: str) -> User | None:
    try:
        return db.query(User).filter(User.uid == subject_id).first()
    except SQLAlchemyError as exc:
        logger.exception('Failed to load user %s', subject_id)
        raise UpstreamFailure('Failed to verify user role', error=str(exc)) from exc


def check_role(db: Session, subject_id: str | None, required_role: Role | None) -> RoleCheck:
    """Load the user for ``subject_id`` and compare its stored role.

    ``required_role`` of ``None`` accepts any stored user.
    """
    if not subject_id:
        return RoleCheck(denial=RoleDenial.MISSING_SUBJECT)

    user = load_user(db, subject_id)
    if user is None:
        return RoleCheck(denial=RoleDenial.USER_NOT_FOUND)

    if required_role is not None and user.role != required_role:
        return RoleCheck(user=user, denial=RoleDenial.ROLE_MISMATCH)

    return RoleCheck(user=user)


def enforce_role(db: Session, identity: VerifiedIdentity, required_role: Role | None) -> RequestContext:
    result = check_role(db, identity.subject_id, required_role)
    if result.allowed:
        return RequestContext(identity=identity, user=result.user)
    if result.denial is RoleDenial.MISSING_SUBJECT:
        raise MissingSubject()
    if result.denial is RoleDenial.USER_NOT_FOUND:
        raise UserNotFound()
    raise RoleMismatch(f'Access denied. {required_role.value.capitalize()} role required.')


def require_role(role: Role) -> Callable[..., RequestContext]:
    def dependency(
        identity: VerifiedIdentity = Depends(get_verified_identity),
        db: Session = Depends(get_db),
    ) -> RequestContext:
        return enforce_role(db, identity, role)

    dependency.__name__ = f'require_{role.value}'
    return dependency


def get_request_context(
    identity: VerifiedIdentity = Depends(get_verified_identity),
    db: Session = Depends(get_db),
) -> RequestContext:
    return enforce_role(db, identity, None)


require_admin = require_role(Role.ADMIN)
require_agent = require_role(Role.AGENT)
require_customer = require_role(Role.CUSTOMER)
