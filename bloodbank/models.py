from django.contrib.auth.models import User
from django.core.validators import MinValueValidator
from django.db import models
from django.utils import timezone


BLOOD_GROUPS = ["A+", "A-", "B+", "B-", "AB+", "AB-", "O+", "O-"]
BLOOD_GROUP_CHOICES = [(bg, bg) for bg in BLOOD_GROUPS]

COMPONENTS = ["Whole Blood", "Single Plasma", "Single Platelet"]
COMPONENT_CHOICES = [(c, c) for c in COMPONENTS]

CITIES = ["Ahmedabad", "Delhi", "Mumbai", "Lucknow", "Bangalore"]
CITY_CHOICES = [(c, c) for c in CITIES]


class BloodBank(models.Model):
    user = models.OneToOneField(User, on_delete=models.CASCADE, related_name='bloodbank')
    name = models.CharField(max_length=120)
    hospital_name = models.CharField(max_length=120)
    category = models.CharField(max_length=40)
    contact_person = models.CharField(max_length=80)
    email = models.EmailField(unique=True)
    contact_no = models.CharField(max_length=20)
    license_no = models.CharField(max_length=40, unique=True)
    address = models.CharField(max_length=255)
    pincode = models.CharField(max_length=12)
    city = models.CharField(max_length=40)
    # Bumped on every ledger mutation; callers may pass it back as expected_version.
    version = models.PositiveIntegerField(default=0)
    created_at = models.DateTimeField(auto_now_add=True)

    class Meta:
        ordering = ['id']

    def __str__(self):
        return self.name

    def public_info(self) -> dict:
        """Projection that is safe to expose to anonymous visitors."""
        return {
            'id': self.pk,
            'name': self.name,
            'hospital_name': self.hospital_name,
            'city': self.city,
            'contact_no': self.contact_no,
            'email': self.email,
            'address': self.address,
        }


class StockBatch(models.Model):
    bank = models.ForeignKey(BloodBank, on_delete=models.CASCADE, related_name='batches')
    component = models.CharField(max_length=20, choices=COMPONENT_CHOICES)
    bloodgroup = models.CharField(max_length=10, choices=BLOOD_GROUP_CHOICES)
    city = models.CharField(max_length=40, choices=CITY_CHOICES)
    units = models.PositiveIntegerField(default=0)
    expiry_date = models.DateTimeField()
    added_at = models.DateTimeField(default=timezone.now, editable=False)
    # True while ``units`` is included in the bank's StockSummary row.
    counted = models.BooleanField(default=True)

    class Meta:
        ordering = ['id']
        indexes = [
            models.Index(fields=['bank', 'bloodgroup'], name='stockbatch_bank_group_idx'),
            models.Index(fields=['expiry_date'], name='stockbatch_expiry_idx'),
        ]
        verbose_name = "Stock Batch"
        verbose_name_plural = "Stock Batches"

    def __str__(self):
        return f"{self.bank} - {self.component} {self.bloodgroup} x{self.units}"

    def is_expired(self, now=None) -> bool:
        now = now or timezone.now()
        return self.expiry_date <= now

    def is_available(self, now=None) -> bool:
        return self.units > 0 and not self.is_expired(now)

    def contribution(self, now=None) -> int:
        """Units this batch should add to the summary at ``now``."""
        return self.units if self.is_available(now) else 0

    def as_dict(self) -> dict:
        return {
            'id': self.pk,
            'component': self.component,
            'bloodgroup': self.bloodgroup,
            'city': self.city,
            'units': self.units,
            'expiry_date': self.expiry_date.isoformat(),
            'added_at': self.added_at.isoformat(),
        }


class StockSummary(models.Model):
    bank = models.ForeignKey(BloodBank, on_delete=models.CASCADE, related_name='summary_rows')
    bloodgroup = models.CharField(max_length=10, choices=BLOOD_GROUP_CHOICES)
    units = models.PositiveIntegerField(default=0, validators=[MinValueValidator(0)])

    class Meta:
        ordering = ['bank_id', 'id']
        constraints = [
            models.UniqueConstraint(fields=['bank', 'bloodgroup'], name='unique_summary_per_bank_group'),
        ]
        verbose_name = "Stock Summary"
        verbose_name_plural = "Stock Summaries"

    def __str__(self):
        return f"{self.bank} {self.bloodgroup}: {self.units}"
