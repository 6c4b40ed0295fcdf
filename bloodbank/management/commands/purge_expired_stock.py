from datetime import timedelta

from django.conf import settings
from django.core.management.base import BaseCommand

from bloodbank.services.ledger import StockLedger


class Command(BaseCommand):
    help = "Delete stock batches that expired more than --days days ago."

    def add_arguments(self, parser):
        parser.add_argument(
            "--days",
            type=int,
            default=None,
            help="Grace period after expiry (default: STOCK_PURGE_AFTER_DAYS)",
        )

    def handle(self, *args, **options):
        days = options.get("days")
        if days is None:
            days = int(getattr(settings, "STOCK_PURGE_AFTER_DAYS", 30))
        deleted = StockLedger().purge_expired(older_than=timedelta(days=max(days, 0)))
        self.stdout.write(self.style.SUCCESS(f"Purged {deleted} expired stock batch(es)."))
