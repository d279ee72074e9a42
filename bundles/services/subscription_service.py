"""
Student subscription lifecycle. All subscription session counts change through here.
Never modify remaining_sessions / used_sessions outside this module.
"""
import logging

from django.db import transaction
from django.utils import timezone

from bundles.models import BundlePackage, StudentSubscription
from bundles.services.bundle_service import compute_expiry, is_subscription_valid

logger = logging.getLogger(__name__)


class SubscriptionError(Exception):
    """Raised when a subscription operation is not allowed; message is safe to show to user."""
    pass


@transaction.atomic()
def create_subscription(student, bundle: BundlePackage, transaction_id: str = None, now=None) -> StudentSubscription:
    """Open a subscription at the bundle's current listed price."""
    now = now or timezone.now()
    if not bundle.is_active:
        raise SubscriptionError("Bundle package is no longer available.")
    subscription = StudentSubscription.objects.create(
        student=student,
        bundle=bundle,
        bundle_name=bundle.name,
        total_sessions=bundle.session_count,
        used_sessions=0,
        remaining_sessions=bundle.session_count,
        original_price=bundle.original_price,
        paid_price=bundle.final_price,
        discount_amount=bundle.original_price - bundle.final_price,
        purchase_date=now,
        expiry_date=compute_expiry(now, bundle.validity_days),
        status="active",
        transactions=[transaction_id] if transaction_id else [],
    )
    logger.info(
        "create_subscription: student=%s bundle=%s subscription=%s",
        student.pk,
        bundle.pk,
        subscription.pk,
    )
    return subscription


def get_active_subscription(student, now=None):
    """First subscription (newest purchase first) that is active, has sessions left and is unexpired."""
    now = now or timezone.now()
    subscriptions = StudentSubscription.objects.filter(student=student, status="active")
    for subscription in subscriptions:
        if is_subscription_valid(subscription, now=now):
            return subscription
    return None


@transaction.atomic()
def use_subscription_session(subscription, transaction_id: str, now=None) -> StudentSubscription:
    """
    Consume one session. The subscription flips to expired when its last session is used.
    Raises SubscriptionError if it is not active, has no sessions left or has expired.
    """
    now = now or timezone.now()
    subscription = StudentSubscription.objects.select_for_update().get(pk=subscription.pk)
    if subscription.status != "active":
        raise SubscriptionError("Subscription is not active.")
    if subscription.remaining_sessions <= 0:
        raise SubscriptionError("No remaining sessions in subscription.")
    if subscription.expiry_date <= now:
        raise SubscriptionError("Subscription has expired.")

    subscription.used_sessions += 1
    subscription.remaining_sessions -= 1
    subscription.transactions = list(subscription.transactions or []) + [transaction_id]
    update_fields = ["used_sessions", "remaining_sessions", "transactions", "updated_at"]
    if subscription.remaining_sessions == 0:
        subscription.status = "expired"
        update_fields.append("status")
    subscription.save(update_fields=update_fields)
    logger.info(
        "use_subscription_session: subscription=%s remaining=%s",
        subscription.pk,
        subscription.remaining_sessions,
    )
    return subscription


@transaction.atomic()
def cancel_subscription(subscription) -> StudentSubscription:
    subscription = StudentSubscription.objects.select_for_update().get(pk=subscription.pk)
    if subscription.status == "cancelled":
        return subscription
    subscription.status = "cancelled"
    subscription.save(update_fields=["status", "updated_at"])
    logger.info("cancel_subscription: subscription=%s", subscription.pk)
    return subscription


@transaction.atomic()
def expire_subscriptions(now=None) -> int:
    """Mark active subscriptions past their expiry date as expired. Idempotent."""
    now = now or timezone.now()
    expired = StudentSubscription.objects.filter(status="active", expiry_date__lt=now)
    count = expired.update(status="expired", updated_at=now)
    if count:
        logger.info("expire_subscriptions: expired %s subscriptions at %s", count, now)
    return count
