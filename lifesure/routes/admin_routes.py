"""User management and dashboard endpoints for admins."""

import logging

from fastapi import APIRouter, Depends
from pydantic import Field
from sqlalchemy.orm import Session

from lifesure.auth.dependencies import RequestContext, get_db, require_admin
from lifesure.core.constants import ApplicationStatus, Role
from lifesure.core.errors import UserNotFound, ValidationError
from lifesure.database import utcnow
from lifesure.models.application import Application
from lifesure.models.policy import Policy
from lifesure.models.user import User
from lifesure.routes.common import store_errors
from lifesure.routes.payment_routes import total_revenue
from lifesure.schemas import CamelModel, UserResponse, dump_all

logger = logging.getLogger(__name__)

router = APIRouter(prefix='/admin', tags=['admin'])


class RoleUpdateRequest(CamelModel):
    role: str | None = None
    legacy_role: str | None = Field(default=None, alias='Role')

    def requested_role(self) -> str | None:
        return self.role or self.legacy_role


def change_role(admin_uid: str, target_uid: str, role: str | None, db: Session) -> User:
    if role not in {item.value for item in Role}:
        raise ValidationError('Invalid role. Must be admin, agent, or customer')

    with store_errors(db, 'Failed to update role'):
        user = db.query(User).filter(User.uid == target_uid).first()
        if user is None:
            raise UserNotFound()
        user.role = role
        user.updated_by = admin_uid
        user.updated_at = utcnow()
        db.commit()
        db.refresh(user)

    logger.info('Role of %s changed to %s by %s', target_uid, role, admin_uid)
    return user


def remove_user(admin_uid: str, target_uid: str, db: Session) -> None:
    if target_uid == admin_uid:
        raise ValidationError('Cannot delete your own account')

    with store_errors(db, 'Failed to delete user'):
        deleted = db.query(User).filter(User.uid == target_uid).delete(synchronize_session=False)
        if not deleted:
            raise UserNotFound()
        db.commit()

    logger.info('User %s deleted by %s', target_uid, admin_uid)


def dashboard_stats(db: Session) -> dict:
    return {
        'totalUsers': db.query(User).count(),
        'totalPolicies': db.query(Policy).count(),
        'totalApplications': db.query(Application).count(),
        'pendingApplications': db.query(Application).filter(
            Application.status == ApplicationStatus.PENDING.value,
        ).count(),
        'approvedApplications': db.query(Application).filter(
            Application.status == ApplicationStatus.APPROVED.value,
        ).count(),
        'totalAgents': db.query(User).filter(User.role == Role.AGENT.value).count(),
        'totalCustomers': db.query(User).filter(User.role == Role.CUSTOMER.value).count(),
        'totalRevenue': total_revenue(db),
    }


@router.get('/users')
def list_users(
    ctx: RequestContext = Depends(require_admin),
    db: Session = Depends(get_db),
):
    with store_errors(db, 'Failed to fetch users'):
        users = db.query(User).order_by(User.created_at.desc(), User.id.desc()).all()
    return {'success': True, 'users': dump_all(UserResponse, users), 'message': 'All users fetched by admin'}


@router.patch('/users/{target_uid}/role')
def update_user_role(
    target_uid: str,
    data: RoleUpdateRequest,
    ctx: RequestContext = Depends(require_admin),
    db: Session = Depends(get_db),
):
    user = change_role(ctx.uid, target_uid, data.requested_role(), db)
    return {'success': True, 'message': f'User role updated to {user.role} by admin'}


@router.delete('/users/{target_uid}')
def delete_user(
    target_uid: str,
    ctx: RequestContext = Depends(require_admin),
    db: Session = Depends(get_db),
):
    remove_user(ctx.uid, target_uid, db)
    return {'success': True, 'message': 'User deleted successfully'}


@router.get('/dashboard-stats')
def get_dashboard_stats(
    ctx: RequestContext = Depends(require_admin),
    db: Session = Depends(get_db),
):
    with store_errors(db, 'Failed to fetch dashboard statistics'):
        stats = dashboard_stats(db)
    return {'success': True, 'stats': stats}
