from django.conf import settings
from django.contrib.auth import get_user_model
from django.db import transaction

from bundles.models import BundlePackage, StudentSubscription
from pricing.models import DiscountRule, PricingRule

SCENARIO_TAG_PREFIX = "[pricing_scenario]"


def scenario_marker(scenario_name):
    return f"{SCENARIO_TAG_PREFIX}:{scenario_name}"


def assert_scenarios_enabled():
    if not settings.ALLOW_TEST_SCENARIOS:
        raise Exception("Test scenarios disabled in this environment.")


def ensure_test_student():
    student, _ = get_user_model().objects.get_or_create(
        username="test_student",
        defaults={"email": "test_student@local.test", "is_active": True},
    )
    return student


@transaction.atomic()
def cleanup_scenario_data(scenario_name):
    marker = scenario_marker(scenario_name)
    StudentSubscription.objects.filter(bundle__name__startswith=marker).delete()
    BundlePackage.objects.filter(name__startswith=marker).delete()
    DiscountRule.objects.filter(name__startswith=marker).delete()
    PricingRule.objects.filter(rule_name__startswith=marker).delete()


def create_session_rule(*, scenario_name, base_price=100000, mentor_share=70, is_active=True):
    return PricingRule.objects.create(
        rule_name=f"{scenario_marker(scenario_name)} session",
        category="session_pricing",
        base_price=base_price,
        mentor_share=mentor_share,
        platform_fee=100 - mentor_share,
        is_active=is_active,
    )


def create_discount_rule(*, scenario_name, label, **fields):
    fields.setdefault("is_active", True)
    return DiscountRule.objects.create(name=f"{scenario_marker(scenario_name)} {label}", **fields)


def create_bundle(*, scenario_name, session_count=10, original_price=1000000, discount_percentage=10, validity_days=30):
    return BundlePackage.objects.create(
        name=f"{scenario_marker(scenario_name)} bundle",
        description="Scenario bundle for pricing checks",
        type="session_pack",
        session_count=session_count,
        original_price=original_price,
        discount_percentage=discount_percentage,
        validity_days=validity_days,
        features=["scenario"],
    )
