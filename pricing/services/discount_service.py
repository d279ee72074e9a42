"""
Discount resolution. Picks exactly one discount rule per purchase; rules never stack.

Rules are read through attributes (type, value, min_sessions, max_sessions,
max_discount, is_active), so both DiscountRule rows and plain objects work.
"""
import logging
from dataclasses import dataclass
from decimal import Decimal
from typing import Any, Iterable, Optional

from pricing.services.money import as_number, percent_of, round_amount, to_decimal
from pricing.services.validation import (
    ValidationError,
    require_amount,
    require_count,
    require_percentage,
)

logger = logging.getLogger(__name__)

PERCENTAGE = "percentage"
FIXED_AMOUNT = "fixed_amount"


@dataclass(frozen=True)
class DiscountSelection:
    rule: Optional[Any]
    discount_amount: Any
    final_price: Any

    def as_dict(self) -> dict:
        rule = self.rule
        return {
            "rule_id": getattr(rule, "id", None) if rule is not None else None,
            "rule_name": getattr(rule, "name", None) if rule is not None else None,
            "rule_type": getattr(rule, "type", None) if rule is not None else None,
            "discount_amount": as_number(self.discount_amount),
            "final_price": as_number(self.final_price),
        }


def is_rule_applicable(rule, session_count: int) -> bool:
    """Active and session_count within [min_sessions, max_sessions]; missing max is unbounded."""
    if not rule.is_active:
        return False
    if session_count < (rule.min_sessions or 0):
        return False
    max_sessions = getattr(rule, "max_sessions", None)
    if max_sessions is not None and session_count > max_sessions:
        return False
    return True


def compute_discount_amount(rule, original_price) -> Decimal:
    """Raw discount for one rule, capped by max_discount. Fixed amounts are not limited to the price."""
    if rule.type == PERCENTAGE:
        amount = percent_of(original_price, rule.value)
    elif rule.type == FIXED_AMOUNT:
        amount = to_decimal(rule.value)
    else:
        raise ValidationError(f"Unknown discount type: {rule.type}", "type")

    max_discount = getattr(rule, "max_discount", None)
    if max_discount is not None:
        amount = min(amount, to_decimal(max_discount))
    return amount


def select_best_discount(rules: Iterable, session_count: int, original_price) -> DiscountSelection:
    """
    Greedy max over the applicable rules.

    Ties keep the earliest rule in input order. The final price is not clamped:
    a fixed amount larger than the price yields a negative result.
    """
    require_count(session_count, "session_count")
    require_amount(original_price, "original_price")

    best_rule = None
    best_amount = Decimal(0)
    for rule in rules:
        if not is_rule_applicable(rule, session_count):
            continue
        amount = compute_discount_amount(rule, original_price)
        if best_rule is None or amount > best_amount:
            best_rule = rule
            best_amount = amount

    if best_rule is None:
        logger.debug("select_best_discount: no applicable rule for sessions=%s", session_count)
        return DiscountSelection(rule=None, discount_amount=0, final_price=original_price)

    final_price = to_decimal(original_price) - best_amount
    logger.debug(
        "select_best_discount: sessions=%s rule=%s discount=%s",
        session_count,
        getattr(best_rule, "name", best_rule),
        best_amount,
    )
    return DiscountSelection(
        rule=best_rule,
        discount_amount=as_number(best_amount),
        final_price=as_number(final_price),
    )


def calculate_discount(rule, original_amount) -> dict:
    """
    Preview of a single rule against an amount (admin "test this rule" box).
    Inactive rules give no discount; the preview total never goes below zero.
    """
    require_amount(original_amount, "original_amount")
    if rule is None or not rule.is_active:
        return {"discount_amount": 0, "final_amount": original_amount}

    discount_amount = compute_discount_amount(rule, original_amount)
    final_amount = max(Decimal(0), to_decimal(original_amount) - discount_amount)
    return {
        "discount_amount": as_number(discount_amount),
        "final_amount": as_number(final_amount),
        "rule_name": getattr(rule, "name", None),
        "rule_type": rule.type,
    }


def _tier_value(tier, key):
    if isinstance(tier, dict):
        return tier.get(key)
    return getattr(tier, key)


def calculate_tiered_price(
    rule,
    session_count: int,
    is_new_student: bool = False,
    is_loyal_customer: bool = False,
    is_referral: bool = False,
) -> dict:
    """
    Multi-session price from a pricing rule's own discount tiers and special rates.

    The largest tier whose session_count is reached applies; special rates then
    apply one after another on the reduced total.
    """
    if rule is None:
        raise ValidationError("A pricing rule is required for tiered pricing.", "rule")
    require_count(session_count, "session_count")
    base_price = to_decimal(require_amount(rule.base_price, "base_price"))
    mentor_share = require_percentage(rule.mentor_share, "mentor_share")

    total = base_price * session_count

    reached = [tier for tier in (rule.discount_tiers or []) if session_count >= _tier_value(tier, "session_count")]
    tier_used = max(reached, key=lambda tier: _tier_value(tier, "session_count")) if reached else None
    if tier_used is not None:
        total -= percent_of(total, _tier_value(tier_used, "discount_percentage"))

    special_rates = getattr(rule, "special_rates", None) or {}
    for flag, key in (
        (is_new_student, "new_student_discount"),
        (is_loyal_customer, "loyalty_discount"),
        (is_referral, "referral_discount"),
    ):
        if flag and special_rates.get(key):
            total -= percent_of(total, special_rates[key])

    total_price = round_amount(total)
    mentor_earnings = round_amount(percent_of(total_price, mentor_share))
    return {
        "base_price": as_number(base_price),
        "total_price": total_price,
        "mentor_earnings": mentor_earnings,
        "platform_earnings": total_price - mentor_earnings,
        "discount_applied": as_number(_tier_value(tier_used, "discount_percentage")) if tier_used else 0,
        "tier_used": tier_used,
    }
