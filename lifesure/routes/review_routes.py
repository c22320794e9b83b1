from fastapi import APIRouter, Depends, Query, status
from fastapi.responses import JSONResponse
from sqlalchemy.exc import IntegrityError
from sqlalchemy.orm import Session

from lifesure.auth.dependencies import RequestContext, get_db, require_customer
from lifesure.core.errors import NotFound, ValidationError
from lifesure.database import utcnow
from lifesure.models.policy import Policy
from lifesure.models.review import Review
from lifesure.routes.common import store_errors
from lifesure.schemas import CamelModel, ReviewResponse, dump, dump_all

router = APIRouter(tags=['reviews'])

MIN_RATING = 1
MAX_RATING = 5
DUPLICATE_REVIEW_MESSAGE = 'You have already reviewed this policy'


class SubmitReviewRequest(CamelModel):
    rating: int | None = None
    feedback: str | None = None
    policy_id: int | None = None
    user_name: str | None = None
    user_photo: str | None = None


def submit_review(ctx: RequestContext, data: SubmitReviewRequest, db: Session) -> Review:
    if not data.rating or not data.feedback or not data.policy_id:
        raise ValidationError('Rating, feedback, and policy ID are required')

    if data.rating < MIN_RATING or data.rating > MAX_RATING:
        raise ValidationError(f'Rating must be between {MIN_RATING} and {MAX_RATING}')

    with store_errors(db, 'Failed to submit review'):
        if db.query(Policy.id).filter(Policy.id == data.policy_id).first() is None:
            raise NotFound('Policy not found')

        existing = db.query(Review.id).filter(
            Review.user_id == ctx.uid,
            Review.policy_id == data.policy_id,
        ).first()
        if existing is not None:
            raise ValidationError(DUPLICATE_REVIEW_MESSAGE)

        now = utcnow()
        review = Review(
            user_id=ctx.uid,
            user_name=data.user_name or ctx.user.display_name,
            user_email=ctx.email,
            user_photo=data.user_photo or ctx.user.photo_url,
            policy_id=data.policy_id,
            rating=data.rating,
            feedback=data.feedback,
            is_approved=True,
            created_at=now,
            updated_at=now,
        )
        db.add(review)
        try:
            db.commit()
        except IntegrityError as exc:
            # A concurrent submission won the unique (user, policy) constraint.
            db.rollback()
            raise ValidationError(DUPLICATE_REVIEW_MESSAGE) from exc
        db.refresh(review)

    return review


@router.post('/reviews')
def create_review(
    data: SubmitReviewRequest,
    ctx: RequestContext = Depends(require_customer),
    db: Session = Depends(get_db),
):
    review = submit_review(ctx, data, db)
    return JSONResponse(
        status_code=status.HTTP_201_CREATED,
        content={'success': True, 'message': 'Review submitted successfully', 'review': dump(ReviewResponse, review)},
    )


@router.get('/reviews')
def list_reviews(
    policy_id: int | None = Query(default=None, alias='policyId'),
    limit: int = Query(default=10, ge=1),
    db: Session = Depends(get_db),
):
    with store_errors(db, 'Failed to fetch reviews'):
        query = db.query(Review).filter(Review.is_approved.is_(True))
        if policy_id is not None:
            query = query.filter(Review.policy_id == policy_id)
        reviews = query.order_by(Review.created_at.desc(), Review.id.desc()).limit(limit).all()
    return {'success': True, 'reviews': dump_all(ReviewResponse, reviews)}
