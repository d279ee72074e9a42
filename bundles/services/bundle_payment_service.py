"""
Bundle checkout: create a Stripe PaymentIntent for a bundle purchase.

Bundle payments are not mentor-specific: the whole amount goes to the platform
until sessions are booked. The subscription itself is opened once the payment
succeeds (create_subscription with the PaymentIntent id as transaction id).
"""
import logging

import stripe
from django.conf import settings

from bundles import config
from pricing import config as pricing_config

logger = logging.getLogger(__name__)


class BundlePaymentError(Exception):
    """Raised when bundle checkout fails; message is safe to show to user."""

    def __init__(self, message: str, payment_intent_id: str = None):
        self.message = message
        self.payment_intent_id = payment_intent_id
        super().__init__(message)


def is_configured() -> bool:
    key = getattr(settings, "STRIPE_SECRET_KEY", None) or ""
    return bool(key.strip())


def get_client():
    if not is_configured():
        raise RuntimeError("Stripe is not configured: STRIPE_SECRET_KEY is missing or empty.")
    stripe.api_key = settings.STRIPE_SECRET_KEY
    return stripe


def create_bundle_payment_intent(*, bundle, student, attempt_id: str | None = None) -> dict:
    """
    Create (do not confirm) a PaymentIntent for the bundle's listed final price.

    Returns:
        {"payment_intent_id": "pi_xxx", "client_secret": "...", "amount": int}
    """
    if not bundle.is_active:
        raise BundlePaymentError("Bundle package is no longer available.")
    if not is_configured():
        raise BundlePaymentError("Payment is not configured. Please try again later.")
    if bundle.final_price <= 0:
        raise BundlePaymentError("Invalid amount for bundle payment.")

    client = get_client()
    metadata = {
        "payment_type": "bundle",
        "bundle_id": str(bundle.pk),
        "student_id": str(student.pk),
        "amount": str(bundle.final_price),
    }
    create_kwargs = dict(
        amount=bundle.final_price * config.STRIPE_AMOUNT_MULTIPLIER,
        currency=pricing_config.CURRENCY,
        confirm=False,
        capture_method="automatic",
        description=f"Bundle: {bundle.name}",
        metadata=metadata,
        payment_method_types=["card"],
    )
    if (attempt_id or "").strip():
        create_kwargs["idempotency_key"] = f"bundle:{bundle.pk}:{student.pk}:{attempt_id.strip()[:64]}"

    try:
        intent = client.PaymentIntent.create(**create_kwargs)
    except stripe.StripeError as e:
        err = getattr(e, "error", e)
        msg = getattr(err, "user_message", None) or str(e)
        if not msg or "api" in msg.lower():
            msg = "Payment could not be set up. Please try again."
        logger.warning("create_bundle_payment_intent: stripe error bundle=%s %s", bundle.pk, e)
        raise BundlePaymentError(msg)

    logger.info("create_bundle_payment_intent: bundle=%s student=%s pi=%s", bundle.pk, student.pk, intent.id)
    return {
        "payment_intent_id": intent.id,
        "client_secret": intent.client_secret,
        "amount": bundle.final_price,
    }
