import logging
from typing import Optional

import stripe

from .config import Settings
from .errors import ExternalServiceError, ValidationError

logger = logging.getLogger(__name__)


def to_cents(amount: float) -> int:
    return int(round(amount * 100))


def create_payment_intent(settings: Settings, amount: float, currency: Optional[str] = None) -> str:
    """Create a Stripe PaymentIntent and return its client secret."""
    if not settings.stripe_secret:
        raise ExternalServiceError("Stripe not configured")
    if amount is None or amount <= 0:
        raise ValidationError("Amount must be positive")

    try:
        intent = stripe.PaymentIntent.create(
            amount=to_cents(amount),
            currency=(currency or "eur").lower(),
            automatic_payment_methods={"enabled": True},
            api_key=settings.stripe_secret,
        )
    except stripe.StripeError as exc:
        logger.warning("Stripe rejected payment intent: %s", exc)
        raise ExternalServiceError("Payment provider error") from exc
    return intent.client_secret
