"""Customer-to-agent promotion workflow."""

import logging

from fastapi import APIRouter, Depends, Query
from sqlalchemy.orm import Session

from lifesure.auth.dependencies import RequestContext, get_db, require_admin, require_customer
from lifesure.core.constants import AgentApplicationAction, AgentApplicationStatus, Role
from lifesure.core.errors import NotFound, ValidationError
from lifesure.database import utcnow
from lifesure.models.user import User
from lifesure.routes.common import store_errors
from lifesure.schemas import CamelModel, UserResponse, dump_all

logger = logging.getLogger(__name__)

router = APIRouter(tags=['agents'])


class AgentApplicationRequest(CamelModel):
    experience: str | None = None
    qualifications: str | None = None
    reason: str | None = None


class AgentDecisionRequest(CamelModel):
    action: str | None = None


def apply_for_agent(ctx: RequestContext, data: AgentApplicationRequest, db: Session) -> User:
    with store_errors(db, 'Failed to submit agent application'):
        user = db.query(User).filter(User.uid == ctx.uid).first()
        if user is None:
            raise NotFound('User not found')
        if user.agent_application_status is not None:
            raise ValidationError('Agent application already submitted')

        now = utcnow()
        user.agent_application_status = AgentApplicationStatus.PENDING.value
        user.agent_application = {
            'experience': data.experience,
            'qualifications': data.qualifications,
            'reason': data.reason,
            'appliedAt': now.isoformat(),
        }
        user.updated_at = now
        db.commit()
        db.refresh(user)
    return user


def decide_agent_application(admin_uid: str, user_id: str, action: str | None, db: Session) -> User:
    """Approve or reject a promotion request; approval makes the user an agent."""
    if action not in {item.value for item in AgentApplicationAction}:
        raise ValidationError('Invalid action. Use approve or reject')

    approve = action == AgentApplicationAction.APPROVE
    with store_errors(db, 'Failed to process agent application'):
        user = db.query(User).filter(User.uid == user_id).first()
        if user is None:
            raise NotFound('Application not found')

        now = utcnow()
        user.agent_application_status = (
            AgentApplicationStatus.APPROVED.value if approve else AgentApplicationStatus.REJECTED.value
        )
        user.processed_by = admin_uid
        user.processed_at = now
        user.updated_at = now
        if approve:
            user.role = Role.AGENT.value
        db.commit()
        db.refresh(user)

    logger.info('Agent application for %s %sd by %s', user_id, action, admin_uid)
    return user


@router.post('/apply-agent')
def submit_agent_application(
    data: AgentApplicationRequest,
    ctx: RequestContext = Depends(require_customer),
    db: Session = Depends(get_db),
):
    apply_for_agent(ctx, data, db)
    return {'success': True, 'message': 'Agent application submitted successfully'}


@router.get('/admin/agent-applications')
def list_agent_applications(
    status_filter: str = Query(default=AgentApplicationStatus.PENDING.value, alias='status'),
    ctx: RequestContext = Depends(require_admin),
    db: Session = Depends(get_db),
):
    with store_errors(db, 'Failed to fetch agent applications'):
        users = db.query(User).filter(User.agent_application_status == status_filter).all()

    users.sort(key=lambda user: (user.agent_application or {}).get('appliedAt') or '', reverse=True)
    return {'success': True, 'applications': dump_all(UserResponse, users)}


@router.patch('/admin/agent-applications/{user_id}')
def process_agent_application(
    user_id: str,
    data: AgentDecisionRequest,
    ctx: RequestContext = Depends(require_admin),
    db: Session = Depends(get_db),
):
    decide_agent_application(ctx.uid, user_id, data.action, db)
    return {'success': True, 'message': f'Agent application {data.action}d successfully'}


@router.get('/admin/agents')
def list_agents(
    ctx: RequestContext = Depends(require_admin),
    db: Session = Depends(get_db),
):
    with store_errors(db, 'Failed to fetch agents'):
        agents = (
            db.query(User)
            .filter(User.role == Role.AGENT.value)
            .order_by(User.created_at.desc(), User.id.desc())
            .all()
        )
    return {'success': True, 'agents': dump_all(UserResponse, agents)}
