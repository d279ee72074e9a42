from datetime import date, datetime, timedelta
from decimal import Decimal
from io import StringIO
from types import SimpleNamespace
from unittest import TestCase
from unittest.mock import Mock, patch

import stripe
from django.contrib.auth import get_user_model
from django.core.management import call_command
from django.test import TestCase as DjangoTestCase, override_settings
from django.utils import timezone

from bundles.models import BundlePackage, StudentSubscription
from bundles.services.bundle_payment_service import BundlePaymentError, create_bundle_payment_intent
from bundles.services.bundle_service import (
    bundle_stats,
    bundle_type_display_name,
    calculate_savings,
    compare_bundles,
    compute_bundle_final_price,
    compute_expiry,
    is_good_value,
    is_subscription_valid,
    recommend_bundles,
    validate_bundle_data,
)
from bundles.services.subscription_service import (
    SubscriptionError,
    cancel_subscription,
    create_subscription,
    expire_subscriptions,
    get_active_subscription,
    use_subscription_session,
)
from pricing.services.validation import ValidationError


def _bundle(name="Pack", session_count=10, original_price=1000000, final_price=900000, discount_percentage=10, **extra):
    fields = dict(
        name=name,
        type="session_pack",
        session_count=session_count,
        original_price=original_price,
        final_price=final_price,
        discount_percentage=discount_percentage,
        is_active=True,
    )
    fields.update(extra)
    return SimpleNamespace(**fields)


class BundlePriceTests(TestCase):
    def test_final_price_applies_discount_percentage(self):
        self.assertEqual(compute_bundle_final_price(1000000, 10), 900000)
        self.assertEqual(compute_bundle_final_price(500000, 0), 500000)
        self.assertEqual(compute_bundle_final_price(500000, 100), 0)

    def test_final_price_rounds_half_up(self):
        # 999999 * 0.875 = 874999.125
        self.assertEqual(compute_bundle_final_price(999999, Decimal("12.50")), 874999)
        # 5 * 0.9 = 4.5
        self.assertEqual(compute_bundle_final_price(5, 10), 5)

    def test_final_price_rejects_bad_input(self):
        with self.assertRaises(ValidationError):
            compute_bundle_final_price(1000000, 120)
        with self.assertRaises(ValidationError):
            compute_bundle_final_price(-1, 10)


class ExpiryTests(TestCase):
    def test_adds_calendar_days(self):
        self.assertEqual(compute_expiry(date(2024, 1, 31), 30), date(2024, 3, 1))

    def test_keeps_time_of_day(self):
        purchased = datetime(2024, 6, 1, 15, 30)

        self.assertEqual(compute_expiry(purchased, 7), datetime(2024, 6, 8, 15, 30))

    def test_rejects_negative_days(self):
        with self.assertRaises(ValidationError):
            compute_expiry(date(2024, 1, 1), -1)


class SubscriptionValidityTests(TestCase):
    def setUp(self):
        self.now = datetime(2024, 6, 1, 12, 0)

    def _subscription(self, **overrides):
        fields = dict(status="active", remaining_sessions=3, expiry_date=self.now + timedelta(days=1))
        fields.update(overrides)
        return SimpleNamespace(**fields)

    def test_valid_when_active_with_sessions_before_expiry(self):
        self.assertTrue(is_subscription_valid(self._subscription(), now=self.now))

    def test_each_condition_is_required(self):
        self.assertFalse(is_subscription_valid(self._subscription(status="cancelled"), now=self.now))
        self.assertFalse(is_subscription_valid(self._subscription(remaining_sessions=0), now=self.now))
        self.assertFalse(is_subscription_valid(self._subscription(expiry_date=self.now), now=self.now))

    def test_date_expiry_compares_with_calendar_day(self):
        self.assertTrue(is_subscription_valid(self._subscription(expiry_date=date(2024, 6, 2)), now=self.now))
        self.assertFalse(is_subscription_valid(self._subscription(expiry_date=date(2024, 6, 1)), now=self.now))

    def test_date_now_against_datetime_expiry(self):
        today = date(2024, 6, 1)

        self.assertTrue(is_subscription_valid(self._subscription(expiry_date=datetime(2024, 6, 2, 9, 0)), now=today))
        self.assertFalse(is_subscription_valid(self._subscription(expiry_date=datetime(2024, 6, 1, 18, 0)), now=today))

    def test_accepts_plain_dict(self):
        subscription = {"status": "active", "remaining_sessions": 1, "expiry_date": self.now + timedelta(hours=1)}

        self.assertTrue(is_subscription_valid(subscription, now=self.now))


class BundleCatalogHelperTests(TestCase):
    def _valid_data(self, **overrides):
        data = {
            "name": "Ten pack",
            "description": "Ten sessions with any mentor",
            "original_price": 1000000,
            "session_count": 10,
            "discount_percentage": 10,
            "validity_days": 60,
            "features": ["priority booking"],
        }
        data.update(overrides)
        return data

    def test_validate_accepts_complete_payload(self):
        data = self._valid_data()

        self.assertIs(validate_bundle_data(data), data)

    def test_validate_reports_failing_field(self):
        cases = {
            "name": {"name": "ab"},
            "description": {"description": "short"},
            "original_price": {"original_price": 0},
            "session_count": {"session_count": None},
            "discount_percentage": {"discount_percentage": 101},
            "validity_days": {"validity_days": -5},
            "features": {"features": []},
        }
        for field, overrides in cases.items():
            with self.assertRaises(ValidationError) as ctx:
                validate_bundle_data(self._valid_data(**overrides))
            self.assertEqual(ctx.exception.field, field)

    def test_savings(self):
        savings = calculate_savings(_bundle(original_price=1000000, final_price=850000))

        self.assertEqual(savings, {"absolute_savings": 150000, "percentage_savings": 15.0})

    def test_savings_percentage_rounds_half_up(self):
        # 1 / 800 = 0.125%
        savings = calculate_savings(_bundle(original_price=800, final_price=799))

        self.assertEqual(savings["percentage_savings"], 0.13)

    def test_bundle_without_sessions_never_wins(self):
        empty = _bundle(name="Empty", session_count=0, final_price=100)
        five_pack = _bundle(name="Five", session_count=5, final_price=500000)

        result = compare_bundles(empty, five_pack)

        self.assertIs(result["cheaper_bundle"], five_pack)
        self.assertEqual(result["better_value"], "B")
        self.assertEqual(result["price_difference"], float("inf"))
        self.assertEqual(compare_bundles(empty, empty)["price_difference"], 0)
        self.assertFalse(is_good_value(_bundle(session_count=0, final_price=100, discount_percentage=50)))

    def test_compare_prefers_lower_price_per_session(self):
        ten_pack = _bundle(name="Ten", session_count=10, final_price=900000)
        five_pack = _bundle(name="Five", session_count=5, final_price=500000)

        result = compare_bundles(ten_pack, five_pack)

        self.assertIs(result["cheaper_bundle"], ten_pack)
        self.assertEqual(result["better_value"], "A")
        self.assertEqual(result["price_difference"], 10000)

    def test_good_value_needs_discount_and_reasonable_price(self):
        self.assertTrue(is_good_value(_bundle(session_count=10, final_price=1500000, discount_percentage=15)))
        self.assertFalse(is_good_value(_bundle(session_count=10, final_price=1500000, discount_percentage=10)))
        self.assertFalse(is_good_value(_bundle(session_count=5, final_price=1500000, discount_percentage=20)))

    def test_recommend_filters_and_ranks(self):
        best = _bundle(name="Best", session_count=10, final_price=800000)
        good = _bundle(name="Good", session_count=8, final_price=800000)
        too_small = _bundle(name="Small", session_count=2, final_price=100000)
        too_expensive = _bundle(name="Pricey", session_count=12, final_price=3000000)
        inactive = _bundle(name="Inactive", session_count=10, final_price=100000, is_active=False)

        result = recommend_bundles(
            [good, too_small, too_expensive, inactive, best],
            target_sessions=10,
            budget=1000000,
        )

        self.assertEqual([b.name for b in result], ["Best", "Good"])

    def test_stats_cover_active_bundles_only(self):
        bundles = [
            _bundle(type="monthly", session_count=4, final_price=400000, discount_percentage=10),
            _bundle(type="session_pack", session_count=10, final_price=800000, discount_percentage=20),
            _bundle(type="custom", session_count=1, final_price=50000, is_active=False),
        ]

        stats = bundle_stats(bundles)

        self.assertEqual(stats["total_bundles"], 3)
        self.assertEqual(stats["active_bundles"], 2)
        self.assertEqual(stats["average_price"], 600000)
        self.assertEqual(stats["average_discount"], 15)
        self.assertEqual(stats["total_sessions_offered"], 14)
        self.assertEqual(stats["price_range"], {"min": 400000, "max": 800000})
        self.assertEqual(stats["type_distribution"]["monthly"], 1)
        self.assertEqual(stats["type_distribution"]["custom"], 0)

    def test_stats_without_active_bundles(self):
        stats = bundle_stats([])

        self.assertEqual(stats["average_price"], 0)
        self.assertEqual(stats["price_range"], {"min": 0, "max": 0})

    def test_type_display_name(self):
        self.assertEqual(bundle_type_display_name("monthly"), "Paket Bulanan")
        self.assertEqual(bundle_type_display_name("unknown"), "unknown")


class BundlePaymentServiceTests(TestCase):
    def _bundle(self, **overrides):
        return _bundle(pk=7, **overrides)

    @override_settings(STRIPE_SECRET_KEY="sk_test_123")
    @patch("bundles.services.bundle_payment_service.get_client")
    def test_creates_intent_for_listed_price(self, get_client):
        client = Mock()
        client.PaymentIntent.create.return_value = SimpleNamespace(id="pi_1", client_secret="secret_1")
        get_client.return_value = client

        result = create_bundle_payment_intent(bundle=self._bundle(), student=SimpleNamespace(pk=3), attempt_id="abc")

        self.assertEqual(result, {"payment_intent_id": "pi_1", "client_secret": "secret_1", "amount": 900000})
        kwargs = client.PaymentIntent.create.call_args.kwargs
        self.assertEqual(kwargs["amount"], 90000000)
        self.assertEqual(kwargs["currency"], "idr")
        self.assertEqual(kwargs["metadata"]["payment_type"], "bundle")
        self.assertEqual(kwargs["idempotency_key"], "bundle:7:3:abc")

    @override_settings(STRIPE_SECRET_KEY="sk_test_123")
    @patch("bundles.services.bundle_payment_service.get_client")
    def test_stripe_error_becomes_bundle_payment_error(self, get_client):
        client = Mock()
        client.PaymentIntent.create.side_effect = stripe.StripeError("card declined")
        get_client.return_value = client

        with self.assertRaises(BundlePaymentError):
            create_bundle_payment_intent(bundle=self._bundle(), student=SimpleNamespace(pk=3))

    @override_settings(STRIPE_SECRET_KEY="")
    def test_requires_configuration(self):
        with self.assertRaises(BundlePaymentError):
            create_bundle_payment_intent(bundle=self._bundle(), student=SimpleNamespace(pk=3))

    @override_settings(STRIPE_SECRET_KEY="sk_test_123")
    @patch("bundles.services.bundle_payment_service.get_client")
    def test_rejects_inactive_bundle(self, get_client):
        with self.assertRaises(BundlePaymentError):
            create_bundle_payment_intent(bundle=self._bundle(is_active=False), student=SimpleNamespace(pk=3))
        get_client.assert_not_called()


class BundlePackageModelTests(DjangoTestCase):
    def test_save_derives_final_price(self):
        bundle = BundlePackage.objects.create(
            name="Ten pack",
            description="Ten sessions with any mentor",
            type="session_pack",
            session_count=10,
            original_price=1000000,
            discount_percentage=10,
            validity_days=60,
        )
        self.assertEqual(bundle.final_price, 900000)

        bundle.discount_percentage = Decimal("25.00")
        bundle.save(update_fields=["discount_percentage"])
        bundle.refresh_from_db()

        self.assertEqual(bundle.final_price, 750000)

    def test_save_accepts_string_amounts(self):
        bundle = BundlePackage.objects.create(
            name="Form pack",
            description="Created from raw form values",
            type="custom",
            session_count=4,
            original_price="400000",
            discount_percentage="12.5",
            validity_days=30,
        )

        self.assertEqual(bundle.final_price, 350000)
        self.assertEqual(bundle.discount_percentage, Decimal("12.5"))
        bundle.refresh_from_db()
        self.assertEqual(bundle.final_price, 350000)
        self.assertEqual(bundle.original_price, 400000)


class SubscriptionServiceTests(DjangoTestCase):
    def setUp(self):
        self.student = get_user_model().objects.create_user(username="student", password="testpass123")
        self.bundle = BundlePackage.objects.create(
            name="Two pack",
            description="Two sessions to get started",
            type="session_pack",
            session_count=2,
            original_price=300000,
            discount_percentage=10,
            validity_days=30,
        )
        self.now = timezone.now()

    def test_create_copies_bundle_terms(self):
        subscription = create_subscription(self.student, self.bundle, transaction_id="pi_1", now=self.now)

        self.assertEqual(subscription.bundle_name, "Two pack")
        self.assertEqual(subscription.total_sessions, 2)
        self.assertEqual(subscription.remaining_sessions, 2)
        self.assertEqual(subscription.paid_price, 270000)
        self.assertEqual(subscription.discount_amount, 30000)
        self.assertEqual(subscription.expiry_date, self.now + timedelta(days=30))
        self.assertEqual(subscription.transactions, ["pi_1"])

    def test_create_rejects_inactive_bundle(self):
        self.bundle.is_active = False
        self.bundle.save()

        with self.assertRaises(SubscriptionError):
            create_subscription(self.student, self.bundle)

    def test_using_last_session_expires_subscription(self):
        subscription = create_subscription(self.student, self.bundle, now=self.now)

        subscription = use_subscription_session(subscription, "booking-1", now=self.now)
        self.assertEqual(subscription.remaining_sessions, 1)
        self.assertEqual(subscription.status, "active")

        subscription = use_subscription_session(subscription, "booking-2", now=self.now)
        self.assertEqual(subscription.used_sessions, 2)
        self.assertEqual(subscription.remaining_sessions, 0)
        self.assertEqual(subscription.status, "expired")
        self.assertEqual(subscription.transactions, ["booking-1", "booking-2"])

        with self.assertRaises(SubscriptionError):
            use_subscription_session(subscription, "booking-3", now=self.now)

    def test_cannot_use_after_expiry_date(self):
        subscription = create_subscription(self.student, self.bundle, now=self.now)

        with self.assertRaises(SubscriptionError):
            use_subscription_session(subscription, "booking-1", now=self.now + timedelta(days=31))

        subscription.refresh_from_db()
        self.assertEqual(subscription.remaining_sessions, 2)

    def test_active_subscription_lookup(self):
        older = create_subscription(self.student, self.bundle, now=self.now - timedelta(days=1))
        newer = create_subscription(self.student, self.bundle, now=self.now)

        self.assertEqual(get_active_subscription(self.student, now=self.now), newer)

        cancel_subscription(newer)
        self.assertEqual(get_active_subscription(self.student, now=self.now), older)

        cancel_subscription(older)
        self.assertIsNone(get_active_subscription(self.student, now=self.now))

    def test_expire_subscriptions_is_idempotent(self):
        create_subscription(self.student, self.bundle, now=self.now - timedelta(days=40))
        current = create_subscription(self.student, self.bundle, now=self.now)

        self.assertEqual(expire_subscriptions(now=self.now), 1)
        self.assertEqual(expire_subscriptions(now=self.now), 0)
        current.refresh_from_db()
        self.assertEqual(current.status, "active")

    def test_expire_command(self):
        create_subscription(self.student, self.bundle, now=self.now - timedelta(days=90))
        out = StringIO()

        call_command("expire_subscriptions", stdout=out)

        self.assertIn("1 subscriptions expired", out.getvalue())
        self.assertFalse(StudentSubscription.objects.filter(status="active").exists())
