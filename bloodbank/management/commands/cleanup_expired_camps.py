from django.core.management.base import BaseCommand

from camp.services import cleanup_expired_camps


class Command(BaseCommand):
    help = "Delete blood camps whose date has passed."

    def handle(self, *args, **options):
        deleted = cleanup_expired_camps()
        self.stdout.write(self.style.SUCCESS(f"Deleted {deleted} expired blood camp(s)."))
