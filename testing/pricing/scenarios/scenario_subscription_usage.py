from bundles.services.bundle_service import is_subscription_valid
from bundles.services.subscription_service import (
    SubscriptionError,
    create_subscription,
    use_subscription_session,
)
from testing.pricing.base import cleanup_scenario_data, create_bundle, ensure_test_student


def run():
    name = "scenario_subscription_usage"
    cleanup_scenario_data(name)
    student = ensure_test_student()
    bundle = create_bundle(scenario_name=name, session_count=2, original_price=300000, discount_percentage=0)
    subscription = create_subscription(student, bundle, transaction_id="scenario-tx-0")
    if subscription.paid_price != 300000:
        raise Exception(f"Expected paid price 300000, got {subscription.paid_price}")

    subscription = use_subscription_session(subscription, "scenario-tx-1")
    subscription = use_subscription_session(subscription, "scenario-tx-2")
    if subscription.status != "expired" or subscription.remaining_sessions != 0:
        raise Exception("Subscription should expire once its last session is used.")
    if is_subscription_valid(subscription):
        raise Exception("A used-up subscription must not be valid.")
    try:
        use_subscription_session(subscription, "scenario-tx-3")
    except SubscriptionError:
        pass
    else:
        raise Exception("Expected SubscriptionError when using an exhausted subscription.")
    cleanup_scenario_data(name)
