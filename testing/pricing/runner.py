"""
Runs the pricing scenarios against the configured database.

Every scenario runs even when an earlier one fails; callers get one
ScenarioResult per scenario and decide how to report failures.
"""
import logging
import time
from dataclasses import dataclass
from typing import List, Optional

from testing.pricing.base import assert_scenarios_enabled
from testing.pricing.scenarios import (
    scenario_bundle_quote,
    scenario_fallback_pricing,
    scenario_session_rule_pricing,
    scenario_subscription_usage,
)

logger = logging.getLogger(__name__)

AVAILABLE_SCENARIOS = {
    "fallback": scenario_fallback_pricing,
    "session_rule": scenario_session_rule_pricing,
    "bundle_quote": scenario_bundle_quote,
    "subscription_usage": scenario_subscription_usage,
}


@dataclass(frozen=True)
class ScenarioResult:
    name: str
    passed: bool
    duration_ms: int
    error: Optional[str] = None


def _execute(name, scenario) -> ScenarioResult:
    started = time.monotonic()
    try:
        scenario.run()
    except Exception as e:
        logger.warning("run_scenario: %s failed: %s", name, e)
        return ScenarioResult(name, False, int((time.monotonic() - started) * 1000), str(e))
    return ScenarioResult(name, True, int((time.monotonic() - started) * 1000))


def run_scenario(name) -> ScenarioResult:
    assert_scenarios_enabled()
    if name not in AVAILABLE_SCENARIOS:
        raise Exception(f"Unknown scenario '{name}'. Available: {', '.join(AVAILABLE_SCENARIOS.keys())}")
    return _execute(name, AVAILABLE_SCENARIOS[name])


def run_all() -> List[ScenarioResult]:
    assert_scenarios_enabled()
    return [_execute(name, scenario) for name, scenario in AVAILABLE_SCENARIOS.items()]
