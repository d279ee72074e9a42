"""
Bundle price math and catalog helpers.

compute_bundle_final_price is the only place a bundle's sellable price is derived;
BundlePackage.save() calls it so stored prices always match.
"""
from datetime import date, datetime, timedelta
from decimal import ROUND_HALF_UP, Decimal

from django.utils import timezone

from bundles import config
from pricing.services.money import as_number, percent_of, round_amount, to_decimal
from pricing.services.validation import (
    ValidationError,
    require_amount,
    require_count,
    require_percentage,
)


def _field(obj, name, default=None):
    if isinstance(obj, dict):
        return obj.get(name, default)
    return getattr(obj, name, default)


def compute_bundle_final_price(original_price, discount_percentage) -> int:
    require_amount(original_price, "original_price")
    require_percentage(discount_percentage, "discount_percentage")
    return round_amount(to_decimal(original_price) - percent_of(original_price, discount_percentage))


def compute_expiry(purchase_date, validity_days: int):
    """Calendar-day addition. No timezone normalization: pass a normalized date."""
    require_count(validity_days, "validity_days")
    if not isinstance(purchase_date, (date, datetime)):
        raise ValidationError("purchase_date must be a date or datetime.", "purchase_date")
    return purchase_date + timedelta(days=validity_days)


def _as_day(value):
    return value.date() if isinstance(value, datetime) else value


def is_subscription_valid(subscription, now=None) -> bool:
    """
    Active, with sessions left and not yet expired. All three must hold.
    When either side is a plain date the comparison is by calendar day.
    """
    now = now or timezone.now()
    expiry_date = _field(subscription, "expiry_date")
    if expiry_date is None:
        return False
    if not (isinstance(expiry_date, datetime) and isinstance(now, datetime)):
        now, expiry_date = _as_day(now), _as_day(expiry_date)
    return (
        _field(subscription, "status") == "active"
        and (_field(subscription, "remaining_sessions") or 0) > 0
        and now < expiry_date
    )


def validate_bundle_data(data: dict) -> dict:
    """Checks an admin bundle form payload before it is saved. Raises ValidationError."""
    name = (data.get("name") or "").strip()
    if len(name) < config.MIN_NAME_LENGTH:
        raise ValidationError(f"Bundle name must be at least {config.MIN_NAME_LENGTH} characters long", "name")

    description = (data.get("description") or "").strip()
    if len(description) < config.MIN_DESCRIPTION_LENGTH:
        raise ValidationError(
            f"Bundle description must be at least {config.MIN_DESCRIPTION_LENGTH} characters long",
            "description",
        )

    original_price = data.get("original_price")
    if not original_price or original_price <= 0:
        raise ValidationError("Original price must be greater than 0", "original_price")

    session_count = data.get("session_count")
    if not session_count or session_count <= 0:
        raise ValidationError("Session count must be greater than 0", "session_count")

    discount_percentage = data.get("discount_percentage", 0)
    if discount_percentage is None or discount_percentage < 0 or discount_percentage > 100:
        raise ValidationError("Discount percentage must be between 0 and 100", "discount_percentage")

    validity_days = data.get("validity_days")
    if not validity_days or validity_days <= 0:
        raise ValidationError("Validity days must be greater than 0", "validity_days")

    if not data.get("features"):
        raise ValidationError("Bundle must have at least one feature", "features")
    return data


def calculate_savings(bundle) -> dict:
    original_price = _field(bundle, "original_price")
    absolute_savings = original_price - _field(bundle, "final_price")
    percentage_savings = Decimal(0)
    if original_price:
        percentage_savings = to_decimal(absolute_savings) * 100 / to_decimal(original_price)
    return {
        "absolute_savings": absolute_savings,
        "percentage_savings": float(percentage_savings.quantize(Decimal("0.01"), rounding=ROUND_HALF_UP)),
    }


def price_per_session(bundle) -> Decimal:
    """Infinity for a bundle without sessions, so it never ranks as the cheaper one."""
    session_count = _field(bundle, "session_count")
    if not session_count:
        return Decimal("Infinity")
    return to_decimal(_field(bundle, "final_price")) / session_count


def compare_bundles(bundle_a, bundle_b) -> dict:
    per_session_a = price_per_session(bundle_a)
    per_session_b = price_per_session(bundle_b)
    a_is_cheaper = per_session_a < per_session_b
    difference = Decimal(0) if per_session_a == per_session_b else abs(per_session_a - per_session_b)
    return {
        "cheaper_bundle": bundle_a if a_is_cheaper else bundle_b,
        "price_difference": as_number(difference) if difference.is_finite() else float(difference),
        "better_value": "A" if a_is_cheaper else "B",
    }


def is_good_value(bundle) -> bool:
    has_good_discount = _field(bundle, "discount_percentage") >= config.GOOD_VALUE_MIN_DISCOUNT_PERCENTAGE
    has_reasonable_price = price_per_session(bundle) <= config.GOOD_VALUE_MAX_PRICE_PER_SESSION
    return has_good_discount and has_reasonable_price


def recommend_bundles(bundles, target_sessions=None, budget=None, limit=config.RECOMMENDATION_LIMIT) -> list:
    """Active bundles ranked by sessions per unit of price, optionally near a target count and under a budget."""
    recommended = [b for b in bundles if _field(b, "is_active", True)]
    if target_sessions:
        low = target_sessions * config.RECOMMENDATION_MIN_SESSION_RATIO
        high = target_sessions * config.RECOMMENDATION_MAX_SESSION_RATIO
        recommended = [b for b in recommended if low <= _field(b, "session_count") <= high]
    if budget:
        recommended = [b for b in recommended if _field(b, "final_price") <= budget]

    def value(bundle):
        final_price = _field(bundle, "final_price")
        if not final_price:
            return Decimal("Infinity")
        return to_decimal(_field(bundle, "session_count")) / to_decimal(final_price)

    return sorted(recommended, key=value, reverse=True)[:limit]


def bundle_stats(bundles) -> dict:
    bundles = list(bundles)
    active = [b for b in bundles if _field(b, "is_active", True)]
    stats = {
        "total_bundles": len(bundles),
        "active_bundles": len(active),
        "average_price": 0,
        "average_discount": 0,
        "total_sessions_offered": 0,
        "price_range": {"min": 0, "max": 0},
        "type_distribution": {key: 0 for key, _ in config.BUNDLE_TYPES},
    }
    if not active:
        return stats

    prices = [_field(b, "final_price") for b in active]
    stats["average_price"] = as_number(to_decimal(sum(prices)) / len(active))
    stats["average_discount"] = as_number(
        sum(to_decimal(_field(b, "discount_percentage")) for b in active) / len(active)
    )
    stats["total_sessions_offered"] = sum(_field(b, "session_count") for b in active)
    stats["price_range"] = {"min": min(prices), "max": max(prices)}
    for bundle in active:
        bundle_type = _field(bundle, "type")
        stats["type_distribution"][bundle_type] = stats["type_distribution"].get(bundle_type, 0) + 1
    return stats


def bundle_type_display_name(bundle_type: str) -> str:
    return dict(config.BUNDLE_TYPES).get(bundle_type, bundle_type)
