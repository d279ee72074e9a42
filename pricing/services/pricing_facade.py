"""
Entry points used by the booking flow and the admin preview.

The bundle's own discount_percentage and the catalog DiscountRules are two separate
mechanisms: price_bundle_purchase reports both and never folds them into one number.
"""
import logging
from dataclasses import dataclass
from typing import Iterable, Optional

from bundles.services.bundle_service import compute_bundle_final_price
from pricing import config
from pricing.services.discount_service import DiscountSelection, select_best_discount
from pricing.services.money import as_number, format_currency
from pricing.services.rule_catalog import RuleCatalog
from pricing.services.session_price_service import SessionPriceBreakdown, compute_session_price

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class BundlePurchaseQuote:
    bundle_original_price: int
    bundle_final_price: int
    bundle_discount_amount: int
    session_count: int
    discount_selection: DiscountSelection

    def as_dict(self) -> dict:
        return {
            "bundle_original_price": self.bundle_original_price,
            "bundle_final_price": self.bundle_final_price,
            "bundle_discount_amount": self.bundle_discount_amount,
            "session_count": self.session_count,
            "discount_rule": self.discount_selection.as_dict(),
            "display": {
                "bundle_original_price": format_currency(self.bundle_original_price),
                "bundle_final_price": format_currency(self.bundle_final_price),
                "rule_final_price": format_currency(self.discount_selection.final_price),
            },
        }


class PricingFacade:
    def __init__(self, catalog: Optional[RuleCatalog] = None, fee_settings: Optional[config.FeeSettings] = None):
        self.catalog = catalog
        self.fee_settings = fee_settings

    def price_session(self, rule, params) -> SessionPriceBreakdown:
        return compute_session_price(rule, params, fee_settings=self.fee_settings)

    def price_current_session(self, params) -> SessionPriceBreakdown:
        """Price with the catalog's current session_pricing rule (or the fallback when there is none)."""
        catalog = self.catalog or RuleCatalog.from_database()
        return self.price_session(catalog.current_session_rule(), params)

    def price_bundle_purchase(self, bundle, discount_rules: Iterable, session_count: Optional[int] = None) -> BundlePurchaseQuote:
        """
        Quote a bundle: its listed price (own discount_percentage) and, separately,
        the best catalog discount for its session count against its original price.
        """
        if session_count is None:
            session_count = bundle.session_count
        original_price = as_number(bundle.original_price)
        selection = select_best_discount(discount_rules, session_count, original_price)
        bundle_final_price = compute_bundle_final_price(original_price, bundle.discount_percentage)
        logger.debug(
            "price_bundle_purchase: bundle=%s listed=%s rule_discount=%s",
            getattr(bundle, "pk", None),
            bundle_final_price,
            selection.discount_amount,
        )
        return BundlePurchaseQuote(
            bundle_original_price=original_price,
            bundle_final_price=bundle_final_price,
            bundle_discount_amount=original_price - bundle_final_price,
            session_count=session_count,
            discount_selection=selection,
        )
