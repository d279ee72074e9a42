"""
Read side of the pricing catalog.

The calculators never query the database themselves: callers build a RuleCatalog
(from the ORM or from plain objects), fetch rules, and pass them in.
"""
import logging
from typing import Iterable, List, Optional

from django.utils import timezone

from pricing.services.discount_service import is_rule_applicable

logger = logging.getLogger(__name__)

SESSION_PRICING = "session_pricing"


class RuleCatalog:
    def __init__(self, pricing_rules: Optional[Iterable] = None, discount_rules: Optional[Iterable] = None):
        self._pricing_rules = list(pricing_rules or [])
        self._discount_rules = list(discount_rules or [])

    @classmethod
    def from_database(cls) -> "RuleCatalog":
        """Snapshot of every rule row, in model ordering."""
        from pricing.models import DiscountRule, PricingRule

        return cls(
            pricing_rules=PricingRule.objects.all(),
            discount_rules=DiscountRule.objects.all(),
        )

    def pricing_rules(self, category: Optional[str] = None, active_only: bool = False) -> List:
        rules = self._pricing_rules
        if category is not None:
            rules = [r for r in rules if r.category == category]
        if active_only:
            rules = [r for r in rules if r.is_active]
        return list(rules)

    def current_session_rule(self):
        """First active session_pricing rule, or None (callers then use the fallback price)."""
        rules = self.pricing_rules(category=SESSION_PRICING, active_only=True)
        if not rules:
            logger.info("current_session_rule: no active session_pricing rule, fallback pricing applies")
            return None
        return rules[0]

    def current_pricing(self) -> dict:
        """Category -> active rule. Later rules of the same category replace earlier ones."""
        current = {}
        for rule in self.pricing_rules(active_only=True):
            current[rule.category] = rule
        return current

    def discount_rules(self, active_only: bool = False, rule_type: Optional[str] = None) -> List:
        rules = self._discount_rules
        if active_only:
            rules = [r for r in rules if r.is_active]
        if rule_type is not None:
            rules = [r for r in rules if r.type == rule_type]
        return list(rules)

    def applicable_discount_rules(self, session_count: int, amount=None, user_role: Optional[str] = None, now=None) -> List:
        """
        Rules a purchase qualifies for, in catalog order.

        Session bounds and the active flag always apply; the minimum amount, role list
        and validity window are checked only when the matching context is known.
        """
        now = now or timezone.now()
        applicable = []
        for rule in self._discount_rules:
            if not is_rule_applicable(rule, session_count):
                continue
            min_amount = getattr(rule, "min_amount", None)
            if min_amount and amount is not None and amount < min_amount:
                continue
            roles = getattr(rule, "applicable_roles", None) or []
            if roles and user_role and user_role not in roles:
                continue
            valid_from = getattr(rule, "valid_from", None)
            valid_until = getattr(rule, "valid_until", None)
            if valid_from and now < valid_from:
                continue
            if valid_until and now > valid_until:
                continue
            applicable.append(rule)
        return applicable
