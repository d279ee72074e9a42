from pricing.config import FeeSettings
from pricing.services.pricing_facade import PricingFacade
from pricing.services.rule_catalog import RuleCatalog


def run():
    facade = PricingFacade(catalog=RuleCatalog(), fee_settings=FeeSettings(70, 30))
    breakdown = facade.price_current_session({"material_levels": [], "duration_minutes": 60, "is_online": True})
    if breakdown.category != "Default":
        raise Exception(f"Expected fallback category, got {breakdown.category}")
    if breakdown.final_price != 120000:
        raise Exception(f"Expected 120000, got {breakdown.final_price}")
    if (breakdown.mentor_earnings, breakdown.platform_earnings) != (84000, 36000):
        raise Exception(f"Unexpected split {breakdown.mentor_earnings}/{breakdown.platform_earnings}")
