from django.core.management.base import BaseCommand, CommandError

from bloodbank.models import BloodBank
from bloodbank.services.ledger import StockLedger


class Command(BaseCommand):
    help = "Recompute every bank's stock summary from its batches and report any drift that was corrected."

    def add_arguments(self, parser):
        parser.add_argument("--bank", type=int, help="Only reconcile the bank with this id")

    def handle(self, *args, **options):
        banks = BloodBank.objects.all()
        if options.get("bank") is not None:
            banks = banks.filter(pk=options["bank"])
            if not banks.exists():
                raise CommandError(f"Blood bank {options['bank']} does not exist")

        ledger = StockLedger()
        drifted = 0
        for bank in banks:
            drift = ledger.reconcile(bank)
            if not drift:
                continue
            drifted += 1
            for bloodgroup, (before, after) in sorted(drift.items()):
                self.stdout.write(self.style.WARNING(f"{bank.name} {bloodgroup}: {before} -> {after}"))

        if drifted:
            self.stdout.write(self.style.WARNING(f"Corrected drift in {drifted} bank(s)."))
        else:
            self.stdout.write(self.style.SUCCESS("All stock summaries match their batches."))
