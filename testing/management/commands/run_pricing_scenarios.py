from django.core.management.base import BaseCommand, CommandError

from testing.pricing.runner import AVAILABLE_SCENARIOS, run_all, run_scenario


class Command(BaseCommand):
    help = "Run pricing and subscription scenarios (guarded by ALLOW_TEST_SCENARIOS)."

    def add_arguments(self, parser):
        parser.add_argument(
            "--scenario",
            choices=sorted(AVAILABLE_SCENARIOS.keys()),
            help="Run only one scenario.",
        )

    def handle(self, *args, **options):
        scenario = options.get("scenario")
        try:
            results = [run_scenario(scenario)] if scenario else run_all()
        except Exception as exc:
            raise CommandError(f"Scenario run aborted: {exc}")

        for result in results:
            if result.passed:
                self.stdout.write(self.style.SUCCESS(f"PASS {result.name} ({result.duration_ms} ms)"))
            else:
                self.stdout.write(self.style.ERROR(f"FAIL {result.name} ({result.duration_ms} ms): {result.error}"))

        failed = [r.name for r in results if not r.passed]
        if failed:
            raise CommandError(f"{len(failed)} of {len(results)} scenarios failed: {', '.join(failed)}")
        self.stdout.write(self.style.SUCCESS(f"{len(results)} scenarios passed."))
