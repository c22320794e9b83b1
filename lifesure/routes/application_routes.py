import logging
from typing import Any

from fastapi import APIRouter, Depends, Query, status
from fastapi.responses import JSONResponse
from pydantic import ConfigDict
from sqlalchemy.orm import Session

from lifesure.auth.dependencies import (
    RequestContext,
    get_db,
    get_verified_identity,
    require_admin,
    require_agent,
    require_customer,
)
from lifesure.auth.identity import VerifiedIdentity
from lifesure.core.constants import ApplicationStatus, Role
from lifesure.core.errors import NotFound, ValidationError
from lifesure.database import utcnow
from lifesure.models.application import Application
from lifesure.models.policy import Policy
from lifesure.models.user import User
from lifesure.routes.common import paginate, search_filter, store_errors
from lifesure.schemas import ApplicationResponse, CamelModel, PolicyResponse, UserResponse, dump

logger = logging.getLogger(__name__)

router = APIRouter(tags=['applications'])

UNKNOWN_POLICY_NAME = 'Unknown Policy'
DEFAULT_REJECTION_REASON = 'No reason provided'


class SubmitApplicationRequest(CamelModel):
    """Only ``policyId`` is trusted; every other field is kept as applicant details."""

    model_config = ConfigDict(extra='allow')

    policy_id: int | None = None
    details: dict[str, Any] | None = None

    def applicant_details(self) -> dict[str, Any]:
        return {**(self.details or {}), **(self.model_extra or {})}


class StatusUpdateRequest(CamelModel):
    status: str | None = None
    assigned_agent: str | None = None


class AssignAgentRequest(CamelModel):
    agent_id: str | None = None


class RejectApplicationRequest(CamelModel):
    reason: str | None = None


def validate_status(value: str | None) -> str:
    if value not in {item.value for item in ApplicationStatus}:
        raise ValidationError('Invalid status')
    return value


def find_application(db: Session, application_id: int) -> Application:
    application = db.query(Application).filter(Application.id == application_id).first()
    if application is None:
        raise NotFound('Application not found')
    return application


def find_policy(db: Session, policy_id: int | None) -> Policy | None:
    if policy_id is None:
        return None
    return db.query(Policy).filter(Policy.id == policy_id).first()


def find_user(db: Session, uid: str | None) -> User | None:
    if not uid:
        return None
    return db.query(User).filter(User.uid == uid).first()


def with_policy(db: Session, application: Application) -> dict[str, Any]:
    policy = find_policy(db, application.policy_id)
    item = dump(ApplicationResponse, application)
    item['policy'] = dump(PolicyResponse, policy)
    item['policyName'] = policy.title if policy else UNKNOWN_POLICY_NAME
    return item


def submit_application(ctx: RequestContext, data: SubmitApplicationRequest, db: Session) -> Application:
    """Store the application and bump the policy's counter in one transaction."""
    if data.policy_id is None:
        raise ValidationError('Policy ID is required')

    with store_errors(db, 'Failed to submit application'):
        policy = find_policy(db, data.policy_id)
        if policy is None:
            raise NotFound('Policy not found')

        now = utcnow()
        application = Application(
            user_id=ctx.uid,
            user_email=ctx.user.email,
            policy_id=policy.id,
            policy_name=policy.title,
            premium=policy.base_premium,
            coverage_amount=policy.coverage_max,
            duration=policy.duration,
            details=data.applicant_details(),
            status=ApplicationStatus.PENDING.value,
            submitted_at=now,
            created_at=now,
            updated_at=now,
        )
        db.add(application)
        db.query(Policy).filter(Policy.id == policy.id).update(
            {Policy.applications_count: Policy.applications_count + 1},
            synchronize_session=False,
        )
        db.commit()
        db.refresh(application)

    logger.info('Application %s submitted by %s for policy %s', application.id, ctx.uid, policy.id)
    return application


@router.post('/customer/applications')
def create_application(
    data: SubmitApplicationRequest,
    ctx: RequestContext = Depends(require_customer),
    db: Session = Depends(get_db),
):
    application = submit_application(ctx, data, db)
    return JSONResponse(
        status_code=status.HTTP_201_CREATED,
        content={
            'success': True,
            'message': 'Application submitted successfully by customer',
            'application': dump(ApplicationResponse, application),
        },
    )


@router.get('/customer/applications')
def list_own_applications(
    ctx: RequestContext = Depends(require_customer),
    db: Session = Depends(get_db),
):
    with store_errors(db, 'Failed to fetch customer applications'):
        applications = (
            db.query(Application)
            .filter(Application.user_id == ctx.uid)
            .order_by(Application.created_at.desc(), Application.id.desc())
            .all()
        )
        items = [with_policy(db, application) for application in applications]
    return {'success': True, 'applications': items}


@router.get('/applications/user/{user_id}')
def list_user_applications(
    user_id: str,
    identity: VerifiedIdentity = Depends(get_verified_identity),
    db: Session = Depends(get_db),
):
    with store_errors(db, 'Failed to fetch applications'):
        applications = (
            db.query(Application)
            .filter(Application.user_id == user_id)
            .order_by(Application.created_at.desc(), Application.id.desc())
            .all()
        )
        items = []
        for application in applications:
            item = with_policy(db, application)
            policy = item['policy'] or {}
            item['premium'] = policy.get('basePremium')
            item['coverageAmount'] = policy.get('coverageMax')
            item['duration'] = policy.get('duration')
            items.append(item)
    return {'success': True, 'applications': items}


@router.get('/applications')
@router.get('/admin/applications')
def list_all_applications(
    status_filter: str | None = Query(default=None, alias='status'),
    search: str | None = Query(default=None),
    page: int = Query(default=1),
    limit: int | None = Query(default=None),
    ctx: RequestContext = Depends(require_admin),
    db: Session = Depends(get_db),
):
    """All applications with the current policy title joined in by the database."""
    with store_errors(db, 'Failed to fetch applications'):
        query = db.query(Application, Policy.title).outerjoin(Policy, Policy.id == Application.policy_id)

        if status_filter and status_filter != 'all':
            query = query.filter(Application.status == status_filter)

        matches = search_filter(search, Application.user_email, Application.policy_name)
        if matches is not None:
            query = query.filter(matches)

        query = query.order_by(Application.created_at.desc(), Application.id.desc())

        if limit is None:
            rows, pagination = query.all(), None
        else:
            result = paginate(query, page, limit)
            rows, pagination = result.items, result.summary()

    applications = []
    for application, policy_title in rows:
        item = dump(ApplicationResponse, application)
        item['policyName'] = policy_title
        applications.append(item)

    body = {'success': True, 'applications': applications, 'message': 'All applications fetched by admin'}
    if pagination is not None:
        body['pagination'] = pagination
    return body


@router.get('/admin/applications/{application_id}')
def get_application_details(
    application_id: int,
    ctx: RequestContext = Depends(require_admin),
    db: Session = Depends(get_db),
):
    with store_errors(db, 'Failed to fetch application details'):
        application = find_application(db, application_id)
        item = dump(ApplicationResponse, application)
        item['policy'] = dump(PolicyResponse, find_policy(db, application.policy_id))
        item['customer'] = dump(UserResponse, find_user(db, application.user_id))
        item['agent'] = dump(UserResponse, find_user(db, application.assigned_agent))
    return {'success': True, 'application': item}


@router.patch('/applications/{application_id}/status')
def update_application_status(
    application_id: int,
    data: StatusUpdateRequest,
    ctx: RequestContext = Depends(require_admin),
    db: Session = Depends(get_db),
):
    new_status = validate_status(data.status)

    with store_errors(db, 'Failed to update application status'):
        application = find_application(db, application_id)
        application.status = new_status
        application.updated_at = utcnow()
        application.updated_by = ctx.uid
        if data.assigned_agent:
            application.assigned_agent = data.assigned_agent
        db.commit()

    return {'success': True, 'message': 'Application status updated successfully'}


@router.patch('/admin/applications/{application_id}/assign-agent')
def assign_agent(
    application_id: int,
    data: AssignAgentRequest,
    ctx: RequestContext = Depends(require_admin),
    db: Session = Depends(get_db),
):
    if not data.agent_id:
        raise ValidationError('Agent ID is required')

    with store_errors(db, 'Failed to assign agent'):
        agent = db.query(User).filter(User.uid == data.agent_id, User.role == Role.AGENT.value).first()
        if agent is None:
            raise NotFound('Agent not found')

        application = find_application(db, application_id)
        now = utcnow()
        application.assigned_agent = agent.uid
        application.assigned_agent_name = agent.display_name
        application.assigned_agent_email = agent.email
        application.assigned_at = now
        application.assigned_by = ctx.uid
        application.updated_at = now
        db.commit()

    logger.info('Application %s assigned to agent %s', application_id, agent.uid)
    return {'success': True, 'message': 'Agent assigned successfully'}


@router.patch('/admin/applications/{application_id}/reject')
def reject_application(
    application_id: int,
    data: RejectApplicationRequest,
    ctx: RequestContext = Depends(require_admin),
    db: Session = Depends(get_db),
):
    with store_errors(db, 'Failed to reject application'):
        application = find_application(db, application_id)
        now = utcnow()
        application.status = ApplicationStatus.REJECTED.value
        application.rejection_reason = data.reason or DEFAULT_REJECTION_REASON
        application.rejected_at = now
        application.rejected_by = ctx.uid
        application.updated_at = now
        db.commit()

    return {'success': True, 'message': 'Application rejected successfully'}


@router.get('/agent/applications')
def list_applications_for_agent(
    ctx: RequestContext = Depends(require_agent),
    db: Session = Depends(get_db),
):
    with store_errors(db, 'Failed to fetch applications'):
        applications = db.query(Application).order_by(Application.created_at.desc(), Application.id.desc()).all()
    return {
        'success': True,
        'applications': [dump(ApplicationResponse, application) for application in applications],
        'message': 'Applications fetched by agent',
    }


@router.get('/agent/assigned-applications')
def list_assigned_applications(
    ctx: RequestContext = Depends(require_agent),
    db: Session = Depends(get_db),
):
    with store_errors(db, 'Failed to fetch assigned applications'):
        applications = (
            db.query(Application)
            .filter(Application.assigned_agent == ctx.uid)
            .order_by(Application.created_at.desc(), Application.id.desc())
            .all()
        )
        items = []
        for application in applications:
            item = dump(ApplicationResponse, application)
            item['policy'] = dump(PolicyResponse, find_policy(db, application.policy_id))
            item['customer'] = dump(UserResponse, find_user(db, application.user_id))
            items.append(item)
    return {'success': True, 'applications': items}


@router.patch('/agent/applications/{application_id}/status')
def agent_update_application_status(
    application_id: int,
    data: StatusUpdateRequest,
    ctx: RequestContext = Depends(require_agent),
    db: Session = Depends(get_db),
):
    new_status = validate_status(data.status)

    with store_errors(db, 'Failed to update application status'):
        application = find_application(db, application_id)
        application.status = new_status
        application.updated_at = utcnow()
        application.updated_by = ctx.uid
        application.updated_by_email = ctx.email
        db.commit()

    return {'success': True, 'message': f'Application status updated to {new_status} by agent'}


@router.get('/agent/customers')
def list_agent_customers(
    ctx: RequestContext = Depends(require_agent),
    db: Session = Depends(get_db),
):
    """Customers with applications assigned to the caller, latest application first."""
    with store_errors(db, 'Failed to fetch customers'):
        applications = (
            db.query(Application)
            .filter(Application.assigned_agent == ctx.uid)
            .order_by(Application.created_at.desc(), Application.id.desc())
            .all()
        )

        customers: dict[str, dict[str, Any]] = {}
        for application in applications:
            customer = customers.get(application.user_id)
            if customer is not None:
                customer['policies'].append(application.policy_name)
                continue

            user = find_user(db, application.user_id)
            customers[application.user_id] = {
                'applicationId': application.id,
                'userId': application.user_id,
                'name': (user.display_name if user else None) or application.user_email,
                'email': application.user_email,
                'policies': [application.policy_name],
                'status': application.status,
            }

    return {'success': True, 'customers': list(customers.values())}
