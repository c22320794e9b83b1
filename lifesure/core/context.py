"""Application-wide collaborators, built once at startup."""

from dataclasses import dataclass
from typing import Protocol

from fastapi import Request
from sqlalchemy.engine import Engine
from sqlalchemy.orm import sessionmaker

from lifesure.auth.identity import IdentityVerifier, firebase_verifier
from lifesure.core import config
from lifesure.database import build_engine, build_session_factory
from lifesure.payments.gateway import PaymentIntent, StripePaymentGateway


class PaymentGateway(Protocol):
    currency: str

    def create_payment_intent(self, amount: float, metadata: dict[str, str]) -> PaymentIntent: ...


@dataclass(frozen=True)
class AppContext:
    engine: Engine
    session_factory: sessionmaker
    verifier: IdentityVerifier
    payments: PaymentGateway


def build_context() -> AppContext:
    engine = build_engine(config.DATABASE_URL, echo=config.SQL_ECHO)
    return AppContext(
        engine=engine,
        session_factory=build_session_factory(engine),
        verifier=firebase_verifier(),
        payments=StripePaymentGateway(),
    )


def get_context(request: Request) -> AppContext:
    return request.app.state.context
