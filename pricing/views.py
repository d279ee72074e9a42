"""
Pricing preview endpoints for the admin dashboard. Staff-only, read-only JSON.
"""
import logging

from django.contrib.admin.views.decorators import staff_member_required
from django.http import JsonResponse
from django.shortcuts import get_object_or_404
from django.views.decorators.http import require_GET

from bundles.models import BundlePackage
from pricing.models import DiscountRule, PricingRule
from pricing.services.discount_service import calculate_discount, calculate_tiered_price
from pricing.services.money import format_currency
from pricing.services.pricing_facade import PricingFacade
from pricing.services.rule_catalog import RuleCatalog
from pricing.services.session_price_service import SessionParams
from pricing.services.validation import ValidationError

logger = logging.getLogger(__name__)

TRUE_VALUES = ("1", "true", "yes", "on")


def _bool_param(request, name, default=False):
    raw = request.GET.get(name)
    if raw is None:
        return default
    return raw.strip().lower() in TRUE_VALUES


def _int_param(request, name, default=None):
    raw = request.GET.get(name)
    if raw in (None, ""):
        return default
    try:
        return int(raw)
    except ValueError:
        raise ValidationError(f"{name} must be a whole number.", name)


def _number_param(request, name, default=None):
    raw = request.GET.get(name)
    if raw in (None, ""):
        return default
    try:
        value = float(raw)
    except ValueError:
        raise ValidationError(f"{name} must be a number.", name)
    return int(value) if value.is_integer() else value


def _levels_param(request):
    raw = request.GET.get("material_levels", "")
    try:
        return [int(part) for part in raw.split(",") if part.strip()]
    except ValueError:
        raise ValidationError("material_levels must be a comma-separated list of whole numbers.", "material_levels")


def _bad_request(error: ValidationError):
    return JsonResponse({"error": error.message, "field": error.field}, status=400)


@staff_member_required
@require_GET
def session_price_preview(request):
    """
    GET /pricing/preview/session/?material_levels=1,3&duration_minutes=90&is_online=true[&rule_id=7]
    Without rule_id the current active session_pricing rule is used (fallback when none).
    """
    try:
        params = SessionParams(
            material_levels=_levels_param(request),
            duration_minutes=_number_param(request, "duration_minutes"),
            is_online=_bool_param(request, "is_online", default=True),
        )
        rule_id = _int_param(request, "rule_id")
        facade = PricingFacade()
        if rule_id is not None:
            breakdown = facade.price_session(get_object_or_404(PricingRule, pk=rule_id), params)
        else:
            breakdown = facade.price_current_session(params)
    except ValidationError as e:
        logger.warning("session_price_preview: rejected %s", e.message)
        return _bad_request(e)

    payload = breakdown.as_dict()
    payload["display"] = {
        "final_price": format_currency(breakdown.final_price),
        "mentor_earnings": format_currency(breakdown.mentor_earnings),
        "platform_earnings": format_currency(breakdown.platform_earnings),
    }
    return JsonResponse(payload)


@staff_member_required
@require_GET
def bundle_price_preview(request, bundle_id):
    """GET /pricing/preview/bundle/<id>/[?session_count=N], listed bundle price and best catalog discount."""
    bundle = get_object_or_404(BundlePackage, pk=bundle_id)
    try:
        session_count = _int_param(request, "session_count")
        catalog = RuleCatalog.from_database()
        quote = PricingFacade(catalog=catalog).price_bundle_purchase(
            bundle,
            catalog.discount_rules(),
            session_count=session_count,
        )
    except ValidationError as e:
        logger.warning("bundle_price_preview: rejected bundle=%s %s", bundle_id, e.message)
        return _bad_request(e)
    return JsonResponse(quote.as_dict())


@staff_member_required
@require_GET
def discount_rule_preview(request, rule_id):
    """GET /pricing/preview/discount/<id>/?amount=150000, effect of one rule on an amount."""
    rule = get_object_or_404(DiscountRule, pk=rule_id)
    try:
        amount = _number_param(request, "amount", default=0)
        result = calculate_discount(rule, amount)
    except ValidationError as e:
        return _bad_request(e)
    return JsonResponse(result)


@staff_member_required
@require_GET
def tiered_price_preview(request):
    """
    GET /pricing/preview/tiers/?session_count=5[&is_new_student=1&is_loyal_customer=1&is_referral=1]
    Multi-session price from the current rule's tiers and special rates.
    """
    try:
        rule = RuleCatalog.from_database().current_session_rule()
        if rule is None:
            return JsonResponse({"error": "No active pricing rule found"}, status=404)
        result = calculate_tiered_price(
            rule,
            _int_param(request, "session_count", default=1),
            is_new_student=_bool_param(request, "is_new_student"),
            is_loyal_customer=_bool_param(request, "is_loyal_customer"),
            is_referral=_bool_param(request, "is_referral"),
        )
    except ValidationError as e:
        return _bad_request(e)
    return JsonResponse(result)
