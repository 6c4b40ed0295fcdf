import os

from django.contrib.auth import get_user_model
from django.contrib.auth.models import Group
from django.core.management.base import BaseCommand
from django.db import transaction

ROLE_GROUPS = ("BLOODBANK", "DONOR")


class Command(BaseCommand):
    help = "Create the role groups and provision the administrator account from environment variables."

    def handle(self, *args, **options):
        for name in ROLE_GROUPS:
            _, created = Group.objects.get_or_create(name=name)
            if created:
                self.stdout.write(f"Created group: {name}")

        username = (os.getenv("ADMIN_USERNAME") or "").strip()
        password = os.getenv("ADMIN_PASSWORD") or ""
        email = (os.getenv("ADMIN_EMAIL") or "").strip()
        reset_password = (os.getenv("ADMIN_RESET_PASSWORD") or "false").lower() == "true"

        if not username or not password:
            self.stdout.write("Skipping admin provisioning (ADMIN_USERNAME/ADMIN_PASSWORD not set).")
            return

        User = get_user_model()

        with transaction.atomic():
            user, created = User.objects.get_or_create(
                username=username,
                defaults={"email": email, "is_staff": True, "is_superuser": True},
            )
            if created:
                user.set_password(password)
                user.save()
                self.stdout.write(self.style.SUCCESS(f"Created admin user: {username}"))
                return

            updates = {
                "email": email or user.email,
                "is_staff": True,
                "is_superuser": True,
            }
            changed = [field for field, value in updates.items() if getattr(user, field) != value]
            for field in changed:
                setattr(user, field, updates[field])
            if reset_password:
                user.set_password(password)
                changed.append("password")

            if changed:
                user.save()
                self.stdout.write(f"Updated admin user {username}: {', '.join(changed)}")
            else:
                self.stdout.write(f"Admin user already present: {username}")
