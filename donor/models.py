from datetime import timedelta

from django.conf import settings
from django.contrib.auth.models import User
from django.db import models, transaction
from django.db.models import F
from django.utils import timezone

from bloodbank.models import BLOOD_GROUP_CHOICES


class Donor(models.Model):
    user = models.OneToOneField(User, on_delete=models.CASCADE)

    bloodgroup = models.CharField(max_length=10, choices=BLOOD_GROUP_CHOICES)
    mobile = models.CharField(max_length=20, null=False)
    sex = models.CharField(
        max_length=1,
        choices=(('M', 'Male'), ('F', 'Female'), ('O', 'Other'), ('U', 'Prefer not to say')),
        default='U',
    )
    date_of_birth = models.DateField(null=True, blank=True)

    # Donation recovery tracking
    last_donated_at = models.DateField(null=True, blank=True)
    total_donations = models.PositiveIntegerField(default=0)
    created_at = models.DateTimeField(auto_now_add=True)

    @property
    def get_name(self):
        return (self.user.first_name + " " + self.user.last_name).strip()

    def __str__(self):
        return self.user.first_name or self.user.username

    @property
    def age_years(self):
        if not self.date_of_birth:
            return None
        today = timezone.now().date()
        years = today.year - self.date_of_birth.year
        if (today.month, today.day) < (self.date_of_birth.month, self.date_of_birth.day):
            years -= 1
        return years

    @property
    def donation_recovery_days(self) -> int:
        return int(getattr(settings, "DONATION_RECOVERY_DAYS", 90))

    @property
    def next_eligible_donation_date(self):
        if not self.last_donated_at:
            return None
        return self.last_donated_at + timedelta(days=self.donation_recovery_days)

    def is_eligible(self, today=None) -> bool:
        next_date = self.next_eligible_donation_date
        if next_date is None:
            return True
        today = today or timezone.now().date()
        return today >= next_date

    def record_donation(self, donated_on, location: str) -> "DonationRecord":
        """Append to the donation history and move the recovery window."""
        with transaction.atomic():
            record = DonationRecord.objects.create(donor=self, date=donated_on, location=location)
            Donor.objects.filter(pk=self.pk).update(
                last_donated_at=donated_on,
                total_donations=F('total_donations') + 1,
            )
        self.refresh_from_db(fields=['last_donated_at', 'total_donations'])
        return record


class DonationRecord(models.Model):
    donor = models.ForeignKey(Donor, on_delete=models.CASCADE, related_name='donations')
    date = models.DateField()
    location = models.CharField(max_length=255)

    def __str__(self):
        return f"{self.donor.get_name} - {self.date} - {self.location}"

    class Meta:
        ordering = ['-date', '-id']  # Most recent first
        verbose_name = "Donation Record"
        verbose_name_plural = "Donation Records"
