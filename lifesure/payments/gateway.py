import logging
from dataclasses import dataclass

import stripe

from lifesure.core import config
from lifesure.core.errors import UpstreamFailure

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class PaymentIntent:
    id: str
    client_secret: str


def to_minor_units(amount: float) -> int:
    return int(round(amount * 100))


class StripePaymentGateway:
    """Creates payment intents; funds are captured client-side by Stripe."""

    def __init__(self, api_key: str = config.PAYMENT_GATEWAY_KEY, currency: str = config.PAYMENT_CURRENCY) -> None:
        self.api_key = api_key
        self.currency = currency

    def create_payment_intent(self, amount: float, metadata: dict[str, str]) -> PaymentIntent:
        try:
            intent = stripe.PaymentIntent.create(
                amount=to_minor_units(amount),
                currency=self.currency,
                metadata=metadata,
                api_key=self.api_key,
            )
        except stripe.StripeError as exc:
            logger.exception('Stripe rejected payment intent for policy %s', metadata.get('policyId'))
            raise UpstreamFailure('Failed to create payment intent', error=str(exc)) from exc

        return PaymentIntent(id=intent.id, client_secret=intent.client_secret)
