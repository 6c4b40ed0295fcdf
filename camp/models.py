from django.core.validators import MinLengthValidator, RegexValidator
from django.db import models

from bloodbank.models import BloodBank
from donor.models import Donor


indian_mobile_validator = RegexValidator(
    regex=r'^[6-9][0-9]{9}$',
    message="Enter a valid 10-digit mobile number.",
)


class BloodCamp(models.Model):
    name = models.CharField(max_length=100, validators=[MinLengthValidator(3)])
    location = models.CharField(max_length=255)
    city = models.CharField(max_length=40)
    date = models.DateField()
    start_time = models.TimeField()
    end_time = models.TimeField()
    bank = models.ForeignKey(BloodBank, on_delete=models.CASCADE, related_name='camps')
    contact_number = models.CharField(max_length=10, validators=[indian_mobile_validator])
    email = models.EmailField()
    approved = models.BooleanField(default=False)
    donors = models.ManyToManyField(Donor, through='CampRegistration', related_name='camps')
    created_at = models.DateTimeField(auto_now_add=True)

    class Meta:
        ordering = ['date', 'id']

    def __str__(self):
        return f"{self.name} ({self.city}, {self.date})"

    def as_dict(self) -> dict:
        return {
            'id': self.pk,
            'name': self.name,
            'location': self.location,
            'city': self.city,
            'date': self.date.isoformat(),
            'start_time': self.start_time.strftime('%H:%M'),
            'end_time': self.end_time.strftime('%H:%M'),
            'bank': self.bank.name,
            'contact_number': self.contact_number,
            'email': self.email,
            'approved': self.approved,
        }


class CampRegistration(models.Model):
    camp = models.ForeignKey(BloodCamp, on_delete=models.CASCADE, related_name='registrations')
    donor = models.ForeignKey(Donor, on_delete=models.CASCADE, related_name='camp_registrations')
    has_donated = models.BooleanField(default=False)
    registered_at = models.DateTimeField(auto_now_add=True)

    class Meta:
        ordering = ['registered_at', 'id']
        constraints = [
            models.UniqueConstraint(fields=['camp', 'donor'], name='unique_camp_registration'),
        ]

    def __str__(self):
        return f"{self.donor} @ {self.camp}"
