from pricing.services.pricing_facade import PricingFacade
from pricing.services.rule_catalog import RuleCatalog
from testing.pricing.base import cleanup_scenario_data, create_session_rule


def run():
    cleanup_scenario_data("scenario_session_rule_pricing")
    rule = create_session_rule(scenario_name="scenario_session_rule_pricing", base_price=100000, mentor_share=70)
    facade = PricingFacade(catalog=RuleCatalog(pricing_rules=[rule]))

    online = facade.price_current_session({"material_levels": [3], "duration_minutes": 60, "is_online": True})
    if online.final_price != 120000:
        raise Exception(f"Expected level-3 online price 120000, got {online.final_price}")

    offline = facade.price_current_session({"material_levels": [3], "duration_minutes": 60, "is_online": False})
    if offline.final_price != 144000:
        raise Exception(f"Expected level-3 offline price 144000, got {offline.final_price}")
    if offline.mentor_earnings + offline.platform_earnings != offline.final_price:
        raise Exception("Mentor and platform earnings must add up to the final price.")
    cleanup_scenario_data("scenario_session_rule_pricing")
