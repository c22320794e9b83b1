"""Response shapes shared across route modules.

Every model reads from ORM rows (``from_attributes``) and serialises with
camelCase keys, which is what the web client consumes.
"""

from datetime import datetime
from typing import Any

from pydantic import BaseModel, ConfigDict, Field
from pydantic.alias_generators import to_camel


class CamelModel(BaseModel):
    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True, from_attributes=True)


class UserResponse(CamelModel):
    id: int
    uid: str
    email: str
    display_name: str | None = None
    photo_url: str | None = Field(default=None, alias='photoURL')
    role: str
    provider: str | None = None
    is_active: bool | None = None
    agent_application_status: str | None = None
    agent_application: dict[str, Any] | None = None
    processed_by: str | None = None
    processed_at: datetime | None = None
    created_at: datetime | None = None
    updated_at: datetime | None = None
    last_login: datetime | None = None


class PolicyResponse(CamelModel):
    id: int
    title: str
    category: str
    description: str
    min_age: int | None = None
    max_age: int | None = None
    coverage_min: float | None = None
    coverage_max: float | None = None
    duration: str | None = None
    base_premium: float | None = None
    image_url: str | None = None
    applications_count: int = 0
    created_by: str | None = None
    updated_by: str | None = None
    created_at: datetime | None = None
    updated_at: datetime | None = None


class ApplicationResponse(CamelModel):
    id: int
    user_id: str
    user_email: str | None = None
    policy_id: int
    policy_name: str | None = None
    premium: float | None = None
    coverage_amount: float | None = None
    duration: str | None = None
    details: dict[str, Any] | None = None
    status: str
    assigned_agent: str | None = None
    assigned_agent_name: str | None = None
    assigned_agent_email: str | None = None
    assigned_at: datetime | None = None
    rejection_reason: str | None = None
    rejected_at: datetime | None = None
    updated_by: str | None = None
    submitted_at: datetime | None = None
    created_at: datetime | None = None
    updated_at: datetime | None = None


class ReviewResponse(CamelModel):
    id: int
    user_id: str
    user_name: str | None = None
    user_email: str | None = None
    user_photo: str | None = None
    policy_id: int
    rating: int
    feedback: str
    is_approved: bool | None = None
    created_at: datetime | None = None


class PaymentResponse(CamelModel):
    id: int
    payment_intent_id: str
    user_id: str
    user_email: str | None = None
    policy_id: int
    amount: float
    currency: str | None = None
    status: str | None = None
    transaction_id: str | None = None
    payment_date: datetime | None = None


class ClaimResponse(CamelModel):
    id: int
    user_id: str
    user_email: str | None = None
    policy_id: int
    application_id: int
    reason: str
    documents: list[Any] | None = None
    status: str | None = None
    submitted_at: datetime | None = None
    created_at: datetime | None = None


class BlogResponse(CamelModel):
    id: int
    title: str
    content: str
    author_id: str
    author_name: str | None = None
    author_email: str | None = None
    publish_date: datetime | None = None
    created_at: datetime | None = None
    updated_at: datetime | None = None


def dump(schema: type[CamelModel], obj: Any) -> dict[str, Any] | None:
    if obj is None:
        return None
    return schema.model_validate(obj).model_dump(mode='json', by_alias=True)


def dump_all(schema: type[CamelModel], objs: list[Any]) -> list[dict[str, Any]]:
    return [dump(schema, obj) for obj in objs]
