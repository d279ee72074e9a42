from datetime import date, datetime, timedelta
from decimal import Decimal
from types import SimpleNamespace
from unittest import TestCase

from django.contrib.auth import get_user_model
from django.test import TestCase as DjangoTestCase
from django.urls import reverse

from bundles.models import BundlePackage
from pricing.config import FeeSettings
from pricing.models import DiscountRule, PricingRule
from pricing.services.discount_service import (
    calculate_discount,
    calculate_tiered_price,
    select_best_discount,
)
from pricing.services.money import as_number, format_currency, round_amount, to_decimal
from pricing.services.pricing_facade import PricingFacade
from pricing.services.rule_catalog import RuleCatalog
from pricing.services.session_price_service import SessionParams, compute_session_price
from pricing.services.validation import ValidationError
from pricing.templatetags.pricing_filters import rupiah


def _session_rule(base_price=100000, mentor_share=70, **extra):
    fields = dict(
        rule_name="Standard session",
        category="session_pricing",
        base_price=base_price,
        mentor_share=mentor_share,
        is_active=True,
    )
    fields.update(extra)
    return SimpleNamespace(**fields)


def _discount(name, type, value, min_sessions=0, max_sessions=None, max_discount=None, is_active=True, **extra):
    return SimpleNamespace(
        name=name,
        type=type,
        value=value,
        min_sessions=min_sessions,
        max_sessions=max_sessions,
        max_discount=max_discount,
        is_active=is_active,
        **extra,
    )


class MoneyHelperTests(TestCase):
    def test_round_amount_rounds_half_away_from_zero(self):
        self.assertEqual(round_amount(Decimal("2.5")), 3)
        self.assertEqual(round_amount(Decimal("-2.5")), -3)
        self.assertEqual(round_amount(Decimal("2.49")), 2)

    def test_float_conversion_keeps_written_value(self):
        self.assertEqual(to_decimal(1.2), Decimal("1.2"))

    def test_as_number_drops_integral_fraction(self):
        self.assertEqual(as_number(Decimal("70.00")), 70)
        self.assertIsInstance(as_number(Decimal("70.00")), int)
        self.assertEqual(as_number(Decimal("0.5")), 0.5)

    def test_format_currency_groups_with_dots(self):
        self.assertEqual(format_currency(150000), "Rp 150.000")
        self.assertEqual(format_currency(999), "Rp 999")
        self.assertEqual(format_currency(-2500), "-Rp 2.500")

    def test_rupiah_filter(self):
        self.assertEqual(rupiah(1500000), "Rp 1.500.000")
        self.assertEqual(rupiah(None), "")
        self.assertEqual(rupiah("not a number"), "not a number")


class SessionPriceTests(TestCase):
    def test_fallback_when_no_rule(self):
        breakdown = compute_session_price(
            None,
            {"material_levels": [], "duration_minutes": 60, "is_online": True},
            fee_settings=FeeSettings(70, 30),
        )

        self.assertEqual(breakdown.base_price, 120000)
        self.assertEqual(breakdown.final_price, 120000)
        self.assertEqual(breakdown.subtotal, 120000)
        self.assertEqual(breakdown.mentor_earnings, 84000)
        self.assertEqual(breakdown.platform_earnings, 36000)
        self.assertEqual(breakdown.level_multiplier, 1.0)
        self.assertEqual(breakdown.location_multiplier, 1.0)
        self.assertEqual(breakdown.max_level, 1)
        self.assertEqual(breakdown.category, "Default")

    def test_fallback_ignores_levels_and_location(self):
        breakdown = compute_session_price(
            None,
            SessionParams(material_levels=[5], duration_minutes=45, is_online=False),
            fee_settings=FeeSettings(70, 30),
        )

        self.assertEqual(breakdown.final_price, 90000)
        self.assertEqual(breakdown.mentor_earnings, 63000)
        self.assertEqual(breakdown.platform_earnings, 27000)

    def test_fallback_uses_injected_fee_split(self):
        breakdown = compute_session_price(
            None,
            {"material_levels": [], "duration_minutes": 60},
            fee_settings=FeeSettings(80, 20),
        )

        self.assertEqual(breakdown.mentor_share, 80)
        self.assertEqual(breakdown.platform_fee, 20)
        self.assertEqual(breakdown.mentor_earnings, 96000)
        self.assertEqual(breakdown.platform_earnings, 24000)

    def test_level_raises_price_by_ten_percent_per_step(self):
        breakdown = compute_session_price(
            _session_rule(),
            {"material_levels": [1, 3, 2], "duration_minutes": 60, "is_online": True},
        )

        self.assertEqual(breakdown.max_level, 3)
        self.assertEqual(breakdown.level_multiplier, 1.2)
        self.assertEqual(breakdown.level_bonus, 20000)
        self.assertEqual(breakdown.final_price, 120000)
        self.assertEqual(breakdown.mentor_earnings, 84000)
        self.assertEqual(breakdown.platform_earnings, 36000)
        self.assertEqual(breakdown.platform_fee, 30)
        self.assertEqual(breakdown.category, "session_pricing")

    def test_offline_session_adds_location_surcharge(self):
        breakdown = compute_session_price(
            _session_rule(),
            {"material_levels": [3], "duration_minutes": 60, "is_online": False},
        )

        self.assertEqual(breakdown.subtotal, 120000)
        self.assertEqual(breakdown.location_multiplier, 1.2)
        self.assertEqual(breakdown.location_bonus, 24000)
        self.assertEqual(breakdown.final_price, 144000)
        self.assertEqual(breakdown.mentor_earnings, 100800)
        self.assertEqual(breakdown.platform_earnings, 43200)

    def test_duration_scales_linearly(self):
        breakdown = compute_session_price(
            _session_rule(),
            {"material_levels": [5], "duration_minutes": 90, "is_online": True},
        )

        self.assertEqual(breakdown.duration_multiplier, 1.5)
        self.assertEqual(breakdown.final_price, 210000)

    def test_empty_levels_price_as_level_one(self):
        breakdown = compute_session_price(_session_rule(), {"material_levels": [], "duration_minutes": 60})

        self.assertEqual(breakdown.max_level, 1)
        self.assertEqual(breakdown.level_bonus, 0)
        self.assertEqual(breakdown.final_price, 100000)

    def test_subtotal_is_rounded_before_location_multiplier(self):
        # 7 * 0.5 = 3.5 -> subtotal 4 -> 4.8 -> 5 (rounding once would give 4)
        breakdown = compute_session_price(
            _session_rule(base_price=7),
            {"material_levels": [1], "duration_minutes": 30, "is_online": False},
        )

        self.assertEqual(breakdown.subtotal, 4)
        self.assertEqual(breakdown.final_price, 5)
        self.assertEqual(breakdown.mentor_earnings, 4)
        self.assertEqual(breakdown.platform_earnings, 1)

    def test_earnings_always_add_up_to_final_price(self):
        for duration in (15, 37, 45, 61, 100):
            for is_online in (True, False):
                breakdown = compute_session_price(
                    _session_rule(base_price=123457, mentor_share=Decimal("67.50")),
                    {"material_levels": [2, 4], "duration_minutes": duration, "is_online": is_online},
                )
                self.assertEqual(breakdown.mentor_earnings + breakdown.platform_earnings, breakdown.final_price)

    def test_decimal_mentor_share_from_database_is_reported_as_number(self):
        breakdown = compute_session_price(
            _session_rule(mentor_share=Decimal("70.00")),
            {"material_levels": [1], "duration_minutes": 60},
        )

        self.assertEqual(breakdown.mentor_share, 70)
        self.assertEqual(breakdown.as_dict()["platform_fee"], 30)

    def test_rejects_non_positive_duration(self):
        with self.assertRaises(ValidationError) as ctx:
            compute_session_price(_session_rule(), {"material_levels": [1], "duration_minutes": 0})
        self.assertEqual(ctx.exception.field, "duration_minutes")

    def test_rejects_level_below_one(self):
        with self.assertRaises(ValidationError) as ctx:
            compute_session_price(_session_rule(), {"material_levels": [0, 2], "duration_minutes": 60})
        self.assertEqual(ctx.exception.field, "material_levels")

    def test_rejects_negative_base_price(self):
        with self.assertRaises(ValidationError):
            compute_session_price(_session_rule(base_price=-1), {"material_levels": [1], "duration_minutes": 60})

    def test_rejects_mentor_share_above_hundred(self):
        with self.assertRaises(ValidationError):
            compute_session_price(_session_rule(mentor_share=101), {"material_levels": [1], "duration_minutes": 60})


class SelectBestDiscountTests(TestCase):
    def test_picks_largest_discount(self):
        rules = [
            _discount("Ten percent", "percentage", 10),
            _discount("Flat 150k", "fixed_amount", 150000),
        ]

        selection = select_best_discount(rules, 5, 1000000)

        self.assertEqual(selection.rule.name, "Flat 150k")
        self.assertEqual(selection.discount_amount, 150000)
        self.assertEqual(selection.final_price, 850000)

    def test_cap_applies_before_comparison(self):
        rules = [
            _discount("Half off capped", "percentage", 50, max_discount=50000),
            _discount("Flat 30k", "fixed_amount", 30000),
        ]

        selection = select_best_discount(rules, 5, 1000000)

        self.assertEqual(selection.rule.name, "Half off capped")
        self.assertEqual(selection.discount_amount, 50000)
        self.assertEqual(selection.final_price, 950000)

    def test_cap_limits_percentage_discount(self):
        selection = select_best_discount([_discount("Half off", "percentage", 50, max_discount=5000)], 1, 100000)

        self.assertEqual(selection.discount_amount, 5000)
        self.assertEqual(selection.final_price, 95000)

    def test_tie_keeps_first_rule(self):
        rules = [
            _discount("First", "fixed_amount", 50000),
            _discount("Second", "percentage", 5),
        ]

        selection = select_best_discount(rules, 3, 1000000)

        self.assertEqual(selection.rule.name, "First")

    def test_no_applicable_rule_returns_original_price(self):
        rules = [
            _discount("Inactive", "fixed_amount", 50000, is_active=False),
            _discount("Bulk only", "percentage", 20, min_sessions=10),
            _discount("Small packs", "percentage", 20, min_sessions=1, max_sessions=4),
        ]

        selection = select_best_discount(rules, 5, 500000)

        self.assertIsNone(selection.rule)
        self.assertEqual(selection.discount_amount, 0)
        self.assertEqual(selection.final_price, 500000)
        self.assertIsNone(selection.as_dict()["rule_id"])

    def test_session_bounds_are_inclusive(self):
        rule = _discount("Five to ten", "fixed_amount", 10000, min_sessions=5, max_sessions=10)

        self.assertIs(select_best_discount([rule], 5, 100000).rule, rule)
        self.assertIs(select_best_discount([rule], 10, 100000).rule, rule)
        self.assertIsNone(select_best_discount([rule], 4, 100000).rule)
        self.assertIsNone(select_best_discount([rule], 11, 100000).rule)

    def test_fixed_discount_larger_than_price_is_not_clamped(self):
        selection = select_best_discount([_discount("Big", "fixed_amount", 200000)], 1, 150000)

        self.assertEqual(selection.discount_amount, 200000)
        self.assertEqual(selection.final_price, -50000)

    def test_zero_value_rule_is_still_selected(self):
        rule = _discount("Placeholder", "percentage", 0)

        selection = select_best_discount([rule], 1, 100000)

        self.assertIs(selection.rule, rule)
        self.assertEqual(selection.discount_amount, 0)
        self.assertEqual(selection.final_price, 100000)

    def test_unknown_type_is_rejected(self):
        with self.assertRaises(ValidationError):
            select_best_discount([_discount("Odd", "bogo", 1)], 1, 100000)

    def test_rejects_negative_session_count(self):
        with self.assertRaises(ValidationError):
            select_best_discount([], -1, 100000)


class CalculateDiscountTests(TestCase):
    def test_percentage_preview(self):
        result = calculate_discount(_discount("Twenty", "percentage", Decimal("20.00")), 150000)

        self.assertEqual(result["discount_amount"], 30000)
        self.assertEqual(result["final_amount"], 120000)
        self.assertEqual(result["rule_type"], "percentage")

    def test_preview_total_stops_at_zero(self):
        result = calculate_discount(_discount("Huge", "fixed_amount", 200000), 150000)

        self.assertEqual(result["discount_amount"], 200000)
        self.assertEqual(result["final_amount"], 0)

    def test_inactive_rule_gives_nothing(self):
        result = calculate_discount(_discount("Off", "fixed_amount", 5000, is_active=False), 150000)

        self.assertEqual(result, {"discount_amount": 0, "final_amount": 150000})


class TieredPriceTests(TestCase):
    def _rule(self):
        return _session_rule(
            discount_tiers=[
                {"session_count": 5, "discount_percentage": 10},
                {"session_count": 10, "discount_percentage": 20},
            ],
            special_rates={"new_student_discount": 5, "loyalty_discount": 0},
        )

    def test_largest_reached_tier_applies(self):
        result = calculate_tiered_price(self._rule(), 10)

        self.assertEqual(result["total_price"], 800000)
        self.assertEqual(result["discount_applied"], 20)
        self.assertEqual(result["tier_used"]["session_count"], 10)
        self.assertEqual(result["mentor_earnings"], 560000)
        self.assertEqual(result["platform_earnings"], 240000)

    def test_special_rates_stack_on_reduced_total(self):
        result = calculate_tiered_price(self._rule(), 10, is_new_student=True, is_loyal_customer=True)

        self.assertEqual(result["total_price"], 760000)
        self.assertEqual(result["mentor_earnings"] + result["platform_earnings"], 760000)

    def test_below_first_tier(self):
        result = calculate_tiered_price(self._rule(), 3)

        self.assertEqual(result["total_price"], 300000)
        self.assertEqual(result["discount_applied"], 0)
        self.assertIsNone(result["tier_used"])

    def test_requires_rule(self):
        with self.assertRaises(ValidationError):
            calculate_tiered_price(None, 3)


class RuleCatalogTests(TestCase):
    def test_current_session_rule_is_first_active_session_rule(self):
        inactive = _session_rule(rule_name="Old", is_active=False)
        commission = _session_rule(rule_name="Commission", category="mentor_commission")
        current = _session_rule(rule_name="Current")
        later = _session_rule(rule_name="Later")
        catalog = RuleCatalog(pricing_rules=[inactive, commission, current, later])

        self.assertIs(catalog.current_session_rule(), current)

    def test_current_session_rule_is_none_without_active_rule(self):
        catalog = RuleCatalog(pricing_rules=[_session_rule(is_active=False)])

        self.assertIsNone(catalog.current_session_rule())

    def test_current_pricing_keeps_last_rule_per_category(self):
        first = _session_rule(rule_name="First")
        second = _session_rule(rule_name="Second")
        commission = _session_rule(rule_name="Commission", category="mentor_commission")

        current = RuleCatalog(pricing_rules=[first, commission, second]).current_pricing()

        self.assertIs(current["session_pricing"], second)
        self.assertIs(current["mentor_commission"], commission)

    def test_applicable_rules_check_amount_role_and_window(self):
        now = datetime(2024, 6, 1, 12, 0)
        plain = _discount("Plain", "fixed_amount", 1000)
        needs_amount = _discount("Big orders", "fixed_amount", 1000, min_amount=500000)
        students_only = _discount("Students", "fixed_amount", 1000, applicable_roles=["student"])
        expired = _discount("Expired", "fixed_amount", 1000, valid_until=now - timedelta(days=1))
        upcoming = _discount("Upcoming", "fixed_amount", 1000, valid_from=now + timedelta(days=1))
        catalog = RuleCatalog(discount_rules=[plain, needs_amount, students_only, expired, upcoming])

        applicable = catalog.applicable_discount_rules(3, amount=200000, user_role="mentor", now=now)

        self.assertEqual(applicable, [plain])

    def test_discount_rules_filters(self):
        active = _discount("Active", "percentage", 5)
        inactive = _discount("Inactive", "fixed_amount", 5, is_active=False)
        catalog = RuleCatalog(discount_rules=[active, inactive])

        self.assertEqual(catalog.discount_rules(active_only=True), [active])
        self.assertEqual(catalog.discount_rules(rule_type="fixed_amount"), [inactive])


class PricingFacadeTests(TestCase):
    def test_bundle_quote_keeps_bundle_discount_and_rule_discount_separate(self):
        bundle = SimpleNamespace(pk=1, session_count=10, original_price=1000000, discount_percentage=Decimal("10.00"))
        rules = [_discount("Flat 50k", "fixed_amount", 50000, min_sessions=5)]

        quote = PricingFacade().price_bundle_purchase(bundle, rules)

        self.assertEqual(quote.bundle_final_price, 900000)
        self.assertEqual(quote.bundle_discount_amount, 100000)
        self.assertEqual(quote.discount_selection.final_price, 950000)
        self.assertEqual(quote.as_dict()["display"]["bundle_final_price"], "Rp 900.000")

    def test_current_session_uses_catalog_fallback(self):
        facade = PricingFacade(catalog=RuleCatalog(), fee_settings=FeeSettings(70, 30))

        breakdown = facade.price_current_session({"material_levels": [2], "duration_minutes": 30})

        self.assertEqual(breakdown.category, "Default")
        self.assertEqual(breakdown.final_price, 60000)


class PricingModelTests(DjangoTestCase):
    def test_rules_are_ordered_by_effective_date(self):
        newer = PricingRule.objects.create(
            rule_name="Newer", base_price=150000, mentor_share=70, effective_date=date(2024, 5, 1)
        )
        older = PricingRule.objects.create(
            rule_name="Older", base_price=100000, mentor_share=70, effective_date=date(2024, 1, 1)
        )

        self.assertEqual(RuleCatalog.from_database().current_session_rule(), older)
        older.toggle_active()
        self.assertEqual(RuleCatalog.from_database().current_session_rule(), newer)

    def test_discount_rule_clean_rejects_percentage_over_hundred(self):
        from django.core.exceptions import ValidationError as ModelValidationError

        rule = DiscountRule(name="Too much", type="percentage", value=150)
        with self.assertRaises(ModelValidationError):
            rule.clean()


class PricingPreviewViewTests(DjangoTestCase):
    def setUp(self):
        self.staff = get_user_model().objects.create_user(
            username="staff", email="staff@local.test", password="testpass123", is_staff=True
        )
        self.client.force_login(self.staff)

    def test_session_preview_without_rule_uses_fallback(self):
        response = self.client.get(
            reverse("pricing:session_price_preview"),
            {"material_levels": "", "duration_minutes": "60", "is_online": "true"},
        )

        self.assertEqual(response.status_code, 200)
        self.assertEqual(response.json()["final_price"], 120000)
        self.assertEqual(response.json()["category"], "Default")

    def test_session_preview_with_active_rule(self):
        PricingRule.objects.create(rule_name="Standard", base_price=100000, mentor_share=70, platform_fee=30)

        response = self.client.get(
            reverse("pricing:session_price_preview"),
            {"material_levels": "1,3", "duration_minutes": "60", "is_online": "false"},
        )

        payload = response.json()
        self.assertEqual(payload["final_price"], 144000)
        self.assertEqual(payload["display"]["final_price"], "Rp 144.000")

    def test_session_preview_rejects_bad_level(self):
        response = self.client.get(
            reverse("pricing:session_price_preview"),
            {"material_levels": "0", "duration_minutes": "60"},
        )

        self.assertEqual(response.status_code, 400)
        self.assertEqual(response.json()["field"], "material_levels")

    def test_bundle_preview(self):
        bundle = BundlePackage.objects.create(
            name="Ten pack",
            description="Ten sessions at a discount",
            type="session_pack",
            session_count=10,
            original_price=1000000,
            discount_percentage=10,
            validity_days=60,
            features=["priority booking"],
        )
        rule = DiscountRule.objects.create(name="Flat 50k", type="fixed_amount", value=50000, min_sessions=5)

        response = self.client.get(reverse("pricing:bundle_price_preview", args=[bundle.pk]))

        payload = response.json()
        self.assertEqual(payload["bundle_final_price"], 900000)
        self.assertEqual(payload["discount_rule"]["rule_id"], rule.pk)
        self.assertEqual(payload["discount_rule"]["final_price"], 950000)

    def test_discount_preview(self):
        rule = DiscountRule.objects.create(name="Twenty", type="percentage", value=20)

        response = self.client.get(reverse("pricing:discount_rule_preview", args=[rule.pk]), {"amount": "150000"})

        self.assertEqual(response.json()["final_amount"], 120000)

    def test_tier_preview_without_rule_is_not_found(self):
        response = self.client.get(reverse("pricing:tiered_price_preview"), {"session_count": "5"})

        self.assertEqual(response.status_code, 404)

    def test_non_staff_is_redirected_to_login(self):
        self.client.logout()
        user = get_user_model().objects.create_user(username="student", password="testpass123")
        self.client.force_login(user)

        response = self.client.get(reverse("pricing:session_price_preview"))

        self.assertEqual(response.status_code, 302)
