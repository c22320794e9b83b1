import logging
from typing import Any

from fastapi import APIRouter, Depends, status
from fastapi.responses import JSONResponse
from sqlalchemy.orm import Session

from lifesure.auth.dependencies import RequestContext, get_db, require_admin, require_customer
from lifesure.core.constants import ApplicationStatus, ClaimStatus
from lifesure.core.errors import NotFound, ValidationError
from lifesure.database import utcnow
from lifesure.models.application import Application
from lifesure.models.claim import Claim
from lifesure.routes.common import store_errors
from lifesure.schemas import CamelModel, ClaimResponse, dump, dump_all

logger = logging.getLogger(__name__)

router = APIRouter(tags=['claims'])


class SubmitClaimRequest(CamelModel):
    policy_id: int | None = None
    reason: str | None = None
    documents: list[Any] | None = None


def submit_claim(ctx: RequestContext, data: SubmitClaimRequest, db: Session) -> Claim:
    """A claim needs an approved application by the caller for the same policy."""
    if not data.policy_id or not data.reason:
        raise ValidationError('Policy ID and reason are required')

    with store_errors(db, 'Failed to submit claim'):
        application = (
            db.query(Application)
            .filter(
                Application.user_id == ctx.uid,
                Application.policy_id == data.policy_id,
                Application.status == ApplicationStatus.APPROVED.value,
            )
            .order_by(Application.created_at.desc(), Application.id.desc())
            .first()
        )
        if application is None:
            raise NotFound('Active policy not found')

        now = utcnow()
        claim = Claim(
            user_id=ctx.uid,
            user_email=ctx.email,
            policy_id=data.policy_id,
            application_id=application.id,
            reason=data.reason,
            documents=data.documents or [],
            status=ClaimStatus.PENDING.value,
            submitted_at=now,
            created_at=now,
            updated_at=now,
        )
        db.add(claim)
        db.commit()
        db.refresh(claim)

    logger.info('Claim %s submitted by %s against application %s', claim.id, ctx.uid, application.id)
    return claim


@router.post('/customer/claims')
def create_claim(
    data: SubmitClaimRequest,
    ctx: RequestContext = Depends(require_customer),
    db: Session = Depends(get_db),
):
    claim = submit_claim(ctx, data, db)
    return JSONResponse(
        status_code=status.HTTP_201_CREATED,
        content={'success': True, 'message': 'Claim submitted successfully', 'claim': dump(ClaimResponse, claim)},
    )


@router.get('/customer/claims')
def list_own_claims(
    ctx: RequestContext = Depends(require_customer),
    db: Session = Depends(get_db),
):
    with store_errors(db, 'Failed to fetch claims'):
        claims = (
            db.query(Claim)
            .filter(Claim.user_id == ctx.uid)
            .order_by(Claim.created_at.desc(), Claim.id.desc())
            .all()
        )
    return {'success': True, 'claims': dump_all(ClaimResponse, claims)}


@router.get('/admin/claims')
def list_all_claims(
    ctx: RequestContext = Depends(require_admin),
    db: Session = Depends(get_db),
):
    with store_errors(db, 'Failed to fetch claims'):
        claims = db.query(Claim).order_by(Claim.created_at.desc(), Claim.id.desc()).all()
    return {'success': True, 'claims': dump_all(ClaimResponse, claims)}
