import logging

from fastapi import APIRouter, Depends, Query, status
from fastapi.responses import JSONResponse
from sqlalchemy import func
from sqlalchemy.orm import Session

from lifesure.auth.dependencies import RequestContext, get_db, require_admin
from lifesure.core import config
from lifesure.core.errors import NotFound, require_fields
from lifesure.database import utcnow
from lifesure.models.policy import Policy
from lifesure.routes.common import order_by_field, paginate, search_filter, store_errors
from lifesure.schemas import CamelModel, PolicyResponse, dump, dump_all

logger = logging.getLogger(__name__)

router = APIRouter(tags=['policies'])

POLICY_REQUIRED_FIELDS = [
    'title',
    'category',
    'description',
    'minAge',
    'maxAge',
    'coverageMin',
    'coverageMax',
    'basePremium',
]

POLICY_SORT_FIELDS = {
    'createdAt': Policy.created_at,
    'updatedAt': Policy.updated_at,
    'title': Policy.title,
    'category': Policy.category,
    'basePremium': Policy.base_premium,
    'coverageMax': Policy.coverage_max,
    'coverageMin': Policy.coverage_min,
    'minAge': Policy.min_age,
    'maxAge': Policy.max_age,
    'applicationsCount': Policy.applications_count,
}


class PolicyRequest(CamelModel):
    """Policy fields accepted from clients; numeric fields are coerced from strings."""

    title: str | None = None
    category: str | None = None
    description: str | None = None
    min_age: int | None = None
    max_age: int | None = None
    coverage_min: float | None = None
    coverage_max: float | None = None
    base_premium: float | None = None
    duration: str | None = None
    image_url: str | None = None


def create_policy_record(data: PolicyRequest, created_by: str, db: Session) -> Policy:
    require_fields(data.model_dump(by_alias=True), POLICY_REQUIRED_FIELDS)

    now = utcnow()
    policy = Policy(
        title=data.title,
        category=data.category,
        description=data.description,
        min_age=data.min_age,
        max_age=data.max_age,
        coverage_min=data.coverage_min,
        coverage_max=data.coverage_max,
        base_premium=data.base_premium,
        duration=data.duration or '',
        image_url=data.image_url or '',
        applications_count=0,
        created_by=created_by,
        created_at=now,
        updated_at=now,
    )
    with store_errors(db, 'Failed to create policy'):
        db.add(policy)
        db.commit()
        db.refresh(policy)

    logger.info('Policy %s created by %s', policy.id, created_by)
    return policy


def update_policy_record(policy_id: int, data: PolicyRequest, updated_by: str, db: Session) -> Policy:
    changes = data.model_dump(exclude_unset=True, exclude_none=True)

    with store_errors(db, 'Failed to update policy'):
        policy = db.query(Policy).filter(Policy.id == policy_id).first()
        if policy is None:
            raise NotFound('Policy not found')

        for field, value in changes.items():
            setattr(policy, field, value)
        policy.updated_by = updated_by
        policy.updated_at = utcnow()

        db.commit()
        db.refresh(policy)
    return policy


def delete_policy_record(policy_id: int, db: Session) -> None:
    with store_errors(db, 'Failed to delete policy'):
        deleted = db.query(Policy).filter(Policy.id == policy_id).delete(synchronize_session=False)
        if not deleted:
            raise NotFound('Policy not found')
        db.commit()
    logger.info('Policy %s deleted', policy_id)


@router.get('/policies')
def list_policies(
    search: str | None = Query(default=None),
    category: str | None = Query(default=None),
    sort_by: str = Query(default='createdAt', alias='sortBy'),
    sort_order: str = Query(default='desc', alias='sortOrder'),
    page: int = Query(default=1),
    limit: int = Query(default=config.DEFAULT_PAGE_SIZE),
    db: Session = Depends(get_db),
):
    with store_errors(db, 'Failed to fetch policies'):
        query = db.query(Policy)

        matches = search_filter(search, Policy.title, Policy.category)
        if matches is not None:
            query = query.filter(matches)

        if category and category.strip() and category.strip().lower() != 'all':
            query = query.filter(func.lower(Policy.category) == category.strip().lower())

        query = order_by_field(query, POLICY_SORT_FIELDS, sort_by, sort_order)
        result = paginate(query, page, limit)

    pagination = result.summary()
    pagination['totalPolicies'] = result.total
    return {
        'success': True,
        'policies': dump_all(PolicyResponse, result.items),
        'pagination': pagination,
        'filters': {
            'search': search or None,
            'category': category or None,
            'sortBy': sort_by if sort_by in POLICY_SORT_FIELDS else 'createdAt',
            'sortOrder': sort_order,
        },
    }


@router.get('/policies/top-policies')
def list_top_policies(db: Session = Depends(get_db)):
    with store_errors(db, 'Failed to fetch top policies'):
        policies = (
            db.query(Policy)
            .order_by(Policy.applications_count.desc(), Policy.id.desc())
            .limit(config.TOP_POLICIES_LIMIT)
            .all()
        )
    return {
        'success': True,
        'message': 'Top policies retrieved successfully',
        'policies': dump_all(PolicyResponse, policies),
    }


@router.get('/policies/{policy_id}')
def get_policy(policy_id: int, db: Session = Depends(get_db)):
    with store_errors(db, 'Failed to fetch policy'):
        policy = db.query(Policy).filter(Policy.id == policy_id).first()
    if policy is None:
        raise NotFound('Policy not found')
    return {'success': True, 'policy': dump(PolicyResponse, policy)}


@router.post('/policies')
@router.post('/admin/policies')
def create_policy(
    data: PolicyRequest,
    ctx: RequestContext = Depends(require_admin),
    db: Session = Depends(get_db),
):
    policy = create_policy_record(data, ctx.uid, db)
    return JSONResponse(
        status_code=status.HTTP_201_CREATED,
        content={
            'success': True,
            'message': 'Policy created successfully',
            'policy': dump(PolicyResponse, policy),
        },
    )


@router.put('/policies/{policy_id}')
@router.put('/admin/policies/{policy_id}')
def update_policy(
    policy_id: int,
    data: PolicyRequest,
    ctx: RequestContext = Depends(require_admin),
    db: Session = Depends(get_db),
):
    policy = update_policy_record(policy_id, data, ctx.uid, db)
    return {'success': True, 'message': 'Policy updated successfully', 'policy': dump(PolicyResponse, policy)}


@router.delete('/policies/{policy_id}')
@router.delete('/admin/policies/{policy_id}')
def delete_policy(
    policy_id: int,
    ctx: RequestContext = Depends(require_admin),
    db: Session = Depends(get_db),
):
    delete_policy_record(policy_id, db)
    return {'success': True, 'message': 'Policy deleted successfully'}
