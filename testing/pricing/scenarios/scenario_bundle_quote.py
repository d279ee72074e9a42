from pricing.models import DiscountRule
from pricing.services.pricing_facade import PricingFacade
from testing.pricing.base import cleanup_scenario_data, create_bundle, create_discount_rule, scenario_marker


def run():
    name = "scenario_bundle_quote"
    cleanup_scenario_data(name)
    bundle = create_bundle(scenario_name=name, session_count=10, original_price=1000000, discount_percentage=10)
    capped = create_discount_rule(
        scenario_name=name, label="capped", type="percentage", value=50, min_sessions=5, max_discount=50000,
    )
    create_discount_rule(scenario_name=name, label="fixed", type="fixed_amount", value=30000, min_sessions=1)
    create_discount_rule(
        scenario_name=name, label="out of range", type="fixed_amount", value=900000, min_sessions=20,
    )

    rules = list(DiscountRule.objects.filter(name__startswith=scenario_marker(name)))
    quote = PricingFacade().price_bundle_purchase(bundle, rules)
    if quote.bundle_final_price != 900000:
        raise Exception(f"Expected listed price 900000, got {quote.bundle_final_price}")
    if quote.discount_selection.rule.pk != capped.pk:
        raise Exception("Expected the capped percentage rule to win.")
    if quote.discount_selection.final_price != 950000:
        raise Exception(f"Expected rule price 950000, got {quote.discount_selection.final_price}")
    cleanup_scenario_data(name)
