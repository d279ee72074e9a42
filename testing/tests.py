from io import StringIO
from types import SimpleNamespace
from unittest.mock import Mock, patch

from django.core.management import call_command
from django.core.management.base import CommandError
from django.test import SimpleTestCase, TestCase, override_settings

from testing.pricing import runner


def _failing_scenario(message):
    return SimpleNamespace(run=Mock(side_effect=Exception(message)))


@override_settings(ALLOW_TEST_SCENARIOS=True)
class ScenarioRunnerTests(SimpleTestCase):
    def test_run_all_keeps_going_after_a_failure(self):
        passing = SimpleNamespace(run=Mock())
        scenarios = {"broken": _failing_scenario("expected 5, got 4"), "ok": passing}

        with patch.dict(runner.AVAILABLE_SCENARIOS, scenarios, clear=True):
            results = runner.run_all()

        self.assertEqual([(r.name, r.passed) for r in results], [("broken", False), ("ok", True)])
        self.assertEqual(results[0].error, "expected 5, got 4")
        passing.run.assert_called_once_with()

    def test_unknown_scenario_is_rejected(self):
        with self.assertRaises(Exception):
            runner.run_scenario("does_not_exist")

    @override_settings(ALLOW_TEST_SCENARIOS=False)
    def test_disabled_environment_runs_nothing(self):
        scenario = SimpleNamespace(run=Mock())

        with patch.dict(runner.AVAILABLE_SCENARIOS, {"ok": scenario}, clear=True):
            with self.assertRaises(Exception):
                runner.run_all()
        scenario.run.assert_not_called()

    def test_command_reports_each_result_and_fails(self):
        scenarios = {"broken": _failing_scenario("boom"), "ok": SimpleNamespace(run=Mock())}
        out = StringIO()

        with patch.dict(runner.AVAILABLE_SCENARIOS, scenarios, clear=True):
            with self.assertRaises(CommandError) as ctx:
                call_command("run_pricing_scenarios", stdout=out)

        self.assertIn("FAIL broken", out.getvalue())
        self.assertIn("PASS ok", out.getvalue())
        self.assertIn("1 of 2 scenarios failed: broken", str(ctx.exception))


@override_settings(ALLOW_TEST_SCENARIOS=True)
class PricingScenarioIntegrationTests(TestCase):
    def test_all_scenarios_pass_against_database(self):
        out = StringIO()

        call_command("run_pricing_scenarios", stdout=out)

        self.assertIn("4 scenarios passed.", out.getvalue())
