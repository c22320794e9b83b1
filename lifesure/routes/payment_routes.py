import logging
import time

from fastapi import APIRouter, Depends
from sqlalchemy import func
from sqlalchemy.orm import Session

from lifesure.auth.dependencies import RequestContext, get_db, get_request_context, require_admin, require_customer
from lifesure.core.constants import PaymentStatus, Role
from lifesure.core.context import AppContext, get_context
from lifesure.core.errors import Forbidden, ValidationError
from lifesure.database import utcnow
from lifesure.models.payment import Payment
from lifesure.models.policy import Policy
from lifesure.routes.common import store_errors
from lifesure.schemas import CamelModel, PaymentResponse, PolicyResponse, dump, dump_all

logger = logging.getLogger(__name__)

router = APIRouter(tags=['payments'])


class PaymentIntentRequest(CamelModel):
    amount: float | None = None
    policy_id: int | None = None


class ConfirmPaymentRequest(CamelModel):
    payment_intent_id: str | None = None
    policy_id: int | None = None
    amount: float | None = None


def start_payment(ctx: RequestContext, data: PaymentIntentRequest, context: AppContext) -> dict:
    if not data.amount or not data.policy_id:
        raise ValidationError('Amount and Policy ID are required')

    intent = context.payments.create_payment_intent(
        data.amount,
        metadata={
            'policyId': str(data.policy_id),
            'userId': ctx.uid,
            'userEmail': ctx.email or '',
        },
    )
    return {
        'success': True,
        'message': 'Payment intent created for customer',
        'clientSecret': intent.client_secret,
        'paymentIntentId': intent.id,
    }


def record_payment(ctx: RequestContext, data: ConfirmPaymentRequest, db: Session, currency: str = 'usd') -> Payment:
    """Write the payment record; the processor is trusted to have captured ``amount``."""
    if not data.payment_intent_id or not data.policy_id or not data.amount:
        raise ValidationError('Missing required payment information')

    now = utcnow()
    payment = Payment(
        payment_intent_id=data.payment_intent_id,
        user_id=ctx.uid,
        user_email=ctx.email,
        policy_id=data.policy_id,
        amount=data.amount,
        currency=currency,
        status=PaymentStatus.COMPLETED.value,
        transaction_id=f'tx_{int(time.time() * 1000)}',
        payment_date=now,
        created_at=now,
    )
    with store_errors(db, 'Failed to confirm payment'):
        db.add(payment)
        db.commit()
        db.refresh(payment)

    logger.info(
        'Payment %s recorded for %s (policy %s, amount %s)',
        payment.payment_intent_id,
        ctx.uid,
        payment.policy_id,
        payment.amount,
    )
    return payment


@router.post('/create-payment-intent')
@router.post('/customer/create-payment-intent')
def create_payment_intent(
    data: PaymentIntentRequest,
    ctx: RequestContext = Depends(require_customer),
    context: AppContext = Depends(get_context),
):
    return start_payment(ctx, data, context)


@router.post('/confirm-payment')
def confirm_payment(
    data: ConfirmPaymentRequest,
    ctx: RequestContext = Depends(require_customer),
    context: AppContext = Depends(get_context),
    db: Session = Depends(get_db),
):
    payment = record_payment(ctx, data, db, currency=context.payments.currency)
    return {'success': True, 'message': 'Payment confirmed successfully', 'payment': dump(PaymentResponse, payment)}


@router.get('/customer/payments')
def list_own_payments(
    ctx: RequestContext = Depends(require_customer),
    db: Session = Depends(get_db),
):
    with store_errors(db, 'Failed to fetch customer payments'):
        payments = (
            db.query(Payment)
            .filter(Payment.user_id == ctx.uid)
            .order_by(Payment.payment_date.desc(), Payment.id.desc())
            .all()
        )
    return {'success': True, 'payments': dump_all(PaymentResponse, payments)}


@router.get('/payments/user/{user_id}')
def list_user_payments(
    user_id: str,
    ctx: RequestContext = Depends(get_request_context),
    db: Session = Depends(get_db),
):
    if ctx.user.role != Role.ADMIN and ctx.uid != user_id:
        raise Forbidden('Access denied')

    with store_errors(db, 'Failed to fetch payments'):
        payments = (
            db.query(Payment)
            .filter(Payment.user_id == user_id)
            .order_by(Payment.payment_date.desc(), Payment.id.desc())
            .all()
        )
        items = []
        for payment in payments:
            policy = db.query(Policy).filter(Policy.id == payment.policy_id).first()
            item = dump(PaymentResponse, payment)
            item['policy'] = dump(PolicyResponse, policy)
            item['policyName'] = policy.title if policy else 'Unknown Policy'
            items.append(item)
    return {'success': True, 'payments': items}


@router.get('/admin/payments')
def list_all_payments(
    ctx: RequestContext = Depends(require_admin),
    db: Session = Depends(get_db),
):
    with store_errors(db, 'Failed to fetch payments'):
        payments = db.query(Payment).order_by(Payment.payment_date.desc(), Payment.id.desc()).all()
    return {
        'success': True,
        'payments': dump_all(PaymentResponse, payments),
        'message': 'All payments fetched by admin',
    }


def total_revenue(db: Session) -> float:
    total = db.query(func.coalesce(func.sum(Payment.amount), 0.0)).filter(
        Payment.status == PaymentStatus.COMPLETED.value,
    ).scalar()
    return float(total or 0)
