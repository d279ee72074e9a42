"""
Django management command to expire bundle subscriptions past their expiry date.

Usage:
    python manage.py expire_subscriptions
"""

from django.core.management.base import BaseCommand, CommandError
from django.utils import timezone

from bundles.services.subscription_service import expire_subscriptions


class Command(BaseCommand):
    help = 'Mark active bundle subscriptions past their expiry date as expired'

    def handle(self, *args, **options):
        self.stdout.write(f'[{timezone.now()}] Starting subscription expiry...')
        try:
            expired_count = expire_subscriptions()
        except Exception as e:
            raise CommandError(f'expire_subscriptions failed: {e}')
        self.stdout.write(
            self.style.SUCCESS(f'[{timezone.now()}] Expiry completed: {expired_count} subscriptions expired')
        )
