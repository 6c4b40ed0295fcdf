import random
from datetime import time, timedelta

from django.contrib.auth.models import Group, User
from django.core.management.base import BaseCommand
from django.db import transaction
from django.utils import timezone
from faker import Faker

from bloodbank.models import BLOOD_GROUPS, CITIES, COMPONENTS, BloodBank
from bloodbank.services.ledger import StockLedger
from camp.models import BloodCamp, CampRegistration
from donor.models import Donor

BANK_CATEGORIES = ["Government", "Private", "Charitable", "Red Cross"]
DEFAULT_PASSWORD = "DemoPass123!"


class Command(BaseCommand):
    help = "Generate a demo dataset with blood banks, stock batches, donors and camps"

    def add_arguments(self, parser):
        parser.add_argument("--banks", type=int, default=5, help="Number of blood banks to create (default 5)")
        parser.add_argument("--donors", type=int, help="Number of donors to create (default random between 40-60)")
        parser.add_argument("--camps", type=int, default=8, help="Number of camps to create (default 8)")
        parser.add_argument("--seed", type=int, help="Random seed for deterministic runs")
        parser.add_argument("--purge", action="store_true", help="Delete existing banks/donors/camps before seeding")

    def handle(self, *args, **options):
        faker = Faker("en_IN")
        if options.get("seed") is not None:
            Faker.seed(options["seed"])
            random.seed(options["seed"])

        bank_target = max(1, options.get("banks") or 5)
        donor_target = options.get("donors") or random.randint(40, 60)
        camp_target = max(0, options.get("camps") or 0)

        if options.get("purge"):
            self._purge_existing()

        bank_group = self._ensure_group("BLOODBANK")
        donor_group = self._ensure_group("DONOR")

        with transaction.atomic():
            banks = self._create_banks(bank_target, bank_group, faker)
            batch_count = self._create_stock(banks)
            donors = self._create_donors(donor_target, donor_group, faker)
            camps = self._create_camps(camp_target, banks, donors, faker)

        summary = (
            f"Seed complete: {len(banks)} blood banks, {batch_count} stock batches, "
            f"{len(donors)} donors, {len(camps)} camps."
        )
        self.stdout.write(self.style.SUCCESS(summary))
        self.stdout.write(
            self.style.SUCCESS(
                "Default password for generated accounts: '" + DEFAULT_PASSWORD + "'"
            )
        )

    # ------------------------------------------------------------------
    def _ensure_group(self, name):
        group, _ = Group.objects.get_or_create(name=name)
        return group

    def _purge_existing(self):
        self.stdout.write("Purging existing banks/donors/camps…")
        BloodCamp.objects.all().delete()

        bank_user_ids = list(BloodBank.objects.values_list("user_id", flat=True))
        donor_user_ids = list(Donor.objects.values_list("user_id", flat=True))

        # Deleting the user cascades to the bank/donor profile and its stock
        User.objects.filter(id__in=bank_user_ids + donor_user_ids).delete()
        self.stdout.write(self.style.WARNING("Existing demo records removed."))

    def _unique_email(self, prefix):
        suffix = random.randint(1000, 999999)
        email = f"{prefix}{suffix}@demo.local"
        while User.objects.filter(username=email).exists():
            suffix = random.randint(1000, 999999)
            email = f"{prefix}{suffix}@demo.local"
        return email

    def _create_user(self, prefix, group, first_name, last_name=""):
        email = self._unique_email(prefix)
        user = User.objects.create_user(
            username=email,
            first_name=first_name[:150],
            last_name=last_name[:150],
            email=email,
            password=DEFAULT_PASSWORD,
        )
        group.user_set.add(user)
        return user

    def _mobile(self):
        return str(random.randint(6, 9)) + "".join(random.choice("0123456789") for _ in range(9))

    def _create_banks(self, target, bank_group, faker):
        banks = []
        for _ in range(target):
            contact_person = faker.name()
            user = self._create_user("bank_", bank_group, contact_person)
            city = random.choice(CITIES)
            bank = BloodBank.objects.create(
                user=user,
                name=f"{faker.last_name()} Blood Bank",
                hospital_name=f"{faker.company()} Hospital",
                category=random.choice(BANK_CATEGORIES),
                contact_person=contact_person,
                email=user.email,
                contact_no=self._mobile(),
                license_no=f"LIC-{random.randint(100000, 999999)}-{len(banks)}",
                address=faker.street_address(),
                pincode=faker.postcode(),
                city=city,
            )
            banks.append(bank)
        return banks

    def _create_stock(self, banks):
        ledger = StockLedger()
        now = timezone.now()
        created = 0
        for bank in banks:
            for _ in range(random.randint(6, 14)):
                result = ledger.add_stock(
                    bank,
                    component=random.choice(COMPONENTS),
                    bloodgroup=random.choice(BLOOD_GROUPS),
                    city=bank.city if bank.city in CITIES else random.choice(CITIES),
                    units=random.randint(1, 25),
                    expiry_date=now + timedelta(days=random.randint(3, 42), hours=random.randint(0, 23)),
                )
                if result.success:
                    created += 1
                else:
                    self.stdout.write(self.style.WARNING(f"Skipped batch for {bank.name}: {result.message}"))
        return created

    def _create_donors(self, target, donor_group, faker):
        today = timezone.now().date()
        donors = []
        for _ in range(target):
            user = self._create_user("donor_", donor_group, faker.first_name(), faker.last_name())
            donor = Donor.objects.create(
                user=user,
                bloodgroup=random.choice(BLOOD_GROUPS),
                mobile=self._mobile(),
                sex=random.choice(["M", "F"]),
                date_of_birth=faker.date_of_birth(minimum_age=18, maximum_age=60),
            )
            if random.random() < 0.4:
                donated_on = today - timedelta(days=random.randint(10, 400))
                donor.record_donation(donated_on, f"{random.choice(CITIES)} camp")
            donors.append(donor)
        return donors

    def _create_camps(self, target, banks, donors, faker):
        today = timezone.now().date()
        camps = []
        for _ in range(target):
            bank = random.choice(banks)
            start_hour = random.randint(8, 12)
            camp = BloodCamp.objects.create(
                name=f"{faker.city()} Donation Drive",
                location=faker.street_address(),
                city=random.choice(CITIES),
                date=today + timedelta(days=random.randint(1, 30)),
                start_time=time(start_hour, 0),
                end_time=time(start_hour + random.randint(3, 6), 0),
                bank=bank,
                contact_number=self._mobile(),
                email=bank.email,
                approved=random.random() < 0.6,
            )
            if camp.approved and donors:
                for donor in random.sample(donors, k=min(len(donors), random.randint(0, 6))):
                    CampRegistration.objects.create(camp=camp, donor=donor)
            camps.append(camp)
        return camps
