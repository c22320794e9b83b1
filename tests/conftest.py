import time

import jwt
import pytest
from fastapi.testclient import TestClient

from lifesure.auth.dependencies import RequestContext
from lifesure.auth.identity import FIREBASE_ISSUER_PREFIX, IdentityVerifier, VerifiedIdentity
from lifesure.core.constants import Role
from lifesure.core.context import AppContext, get_context
from lifesure.database import Base, build_engine, build_session_factory, init_schema
from lifesure.main import app
from lifesure.models.policy import Policy
from lifesure.models.user import User
from lifesure.payments.gateway import PaymentIntent

TEST_PROJECT_ID = 'lifesure-test'
TEST_SIGNING_SECRET = 'lifesure-test-signing-secret-0123456789'


class FakePaymentGateway:
    currency = 'usd'

    def __init__(self) -> None:
        self.calls: list[tuple[float, dict[str, str]]] = []

    def create_payment_intent(self, amount: float, metadata: dict[str, str]) -> PaymentIntent:
        self.calls.append((amount, metadata))
        return PaymentIntent(id=f'pi_test_{len(self.calls)}', client_secret=f'pi_test_{len(self.calls)}_secret')


def make_verifier() -> IdentityVerifier:
    return IdentityVerifier(
        audience=TEST_PROJECT_ID,
        issuer=f'{FIREBASE_ISSUER_PREFIX}{TEST_PROJECT_ID}',
        key_resolver=lambda token: TEST_SIGNING_SECRET,
        algorithms=('HS256',),
    )


def mint_token(uid: str, email: str | None = None, **overrides) -> str:
    now = int(time.time())
    claims = {
        'sub': uid,
        'email': email or f'{uid}@example.com',
        'aud': TEST_PROJECT_ID,
        'iss': f'{FIREBASE_ISSUER_PREFIX}{TEST_PROJECT_ID}',
        'iat': now - 10,
        'exp': now + 3600,
    }
    claims.update(overrides)
    return jwt.encode(claims, TEST_SIGNING_SECRET, algorithm='HS256')


@pytest.fixture
def engine():
    engine = build_engine('sqlite:///:memory:')
    init_schema(engine)
    try:
        yield engine
    finally:
        Base.metadata.drop_all(bind=engine)
        engine.dispose()


@pytest.fixture
def db(engine):
    session = build_session_factory(engine)()
    try:
        yield session
    finally:
        session.close()


@pytest.fixture
def payments() -> FakePaymentGateway:
    return FakePaymentGateway()


@pytest.fixture
def app_context(engine, payments) -> AppContext:
    return AppContext(
        engine=engine,
        session_factory=build_session_factory(engine),
        verifier=make_verifier(),
        payments=payments,
    )


@pytest.fixture
def make_user(db):
    def _make_user(uid: str, role: Role = Role.CUSTOMER, **fields) -> User:
        user = User(
            uid=uid,
            email=fields.pop('email', f'{uid}@example.com'),
            display_name=fields.pop('display_name', uid.title()),
            role=role.value,
            **fields,
        )
        db.add(user)
        db.commit()
        db.refresh(user)
        return user

    return _make_user


@pytest.fixture
def make_policy(db):
    def _make_policy(title: str = 'Family Shield', **fields) -> Policy:
        policy = Policy(
            title=title,
            category=fields.pop('category', 'Life'),
            description=fields.pop('description', f'{title} coverage'),
            min_age=fields.pop('min_age', 18),
            max_age=fields.pop('max_age', 60),
            coverage_min=fields.pop('coverage_min', 10000.0),
            coverage_max=fields.pop('coverage_max', 500000.0),
            base_premium=fields.pop('base_premium', 120.0),
            duration=fields.pop('duration', '10 years'),
            applications_count=fields.pop('applications_count', 0),
            **fields,
        )
        db.add(policy)
        db.commit()
        db.refresh(policy)
        return policy

    return _make_policy


@pytest.fixture
def context_for():
    def _context_for(user: User) -> RequestContext:
        return RequestContext(identity=VerifiedIdentity(subject_id=user.uid, email=user.email), user=user)

    return _context_for


@pytest.fixture
def auth_headers():
    def _auth_headers(uid: str, **claims) -> dict[str, str]:
        return {'Authorization': f'Bearer {mint_token(uid, **claims)}'}

    return _auth_headers


@pytest.fixture
def client(app_context):
    app.dependency_overrides[get_context] = lambda: app_context
    try:
        yield TestClient(app)
    finally:
        app.dependency_overrides.clear()
