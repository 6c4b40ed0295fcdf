from django import forms
from django.contrib.auth.models import User
from django.utils import timezone

from . import models

# Upper bound of the integer column backing StockBatch.units
MAX_UNITS = 2147483647


class BloodBankForm(forms.ModelForm):
    password = forms.CharField(widget=forms.PasswordInput(), min_length=6)

    class Meta:
        model = models.BloodBank
        fields = [
            'name', 'hospital_name', 'category', 'contact_person', 'email',
            'contact_no', 'license_no', 'address', 'pincode', 'city',
        ]

    def clean_email(self):
        email = self.cleaned_data['email'].strip().lower()
        if User.objects.filter(username=email).exists():
            raise forms.ValidationError("Blood Bank with this email or license number already exists")
        return email


class _ExpiryMixin:
    """Shared expiry validation; ``now`` comes from the ledger's clock."""

    def clean_expiry_date(self):
        expiry = self.cleaned_data['expiry_date']
        now = self.now or timezone.now()
        if expiry <= now:
            raise forms.ValidationError("Expiry date must be in the future")
        return expiry


class AddStockForm(_ExpiryMixin, forms.Form):
    component = forms.ChoiceField(choices=models.COMPONENT_CHOICES)
    bloodgroup = forms.ChoiceField(choices=models.BLOOD_GROUP_CHOICES)
    city = forms.ChoiceField(choices=models.CITY_CHOICES)
    units = forms.IntegerField(
        min_value=1,
        max_value=MAX_UNITS,
        error_messages={
            'min_value': "Units must be a positive number",
            'max_value': "Units must be a positive number",
            'invalid': "Units must be a positive number",
        },
    )
    expiry_date = forms.DateTimeField()

    def __init__(self, *args, now=None, **kwargs):
        super().__init__(*args, **kwargs)
        self.now = now


class UpdateStockForm(_ExpiryMixin, forms.Form):
    units = forms.IntegerField(
        min_value=1,
        max_value=MAX_UNITS,
        error_messages={
            'min_value': "Units must be a positive number",
            'max_value': "Units must be a positive number",
            'invalid': "Units must be a positive number",
        },
    )
    expiry_date = forms.DateTimeField()

    def __init__(self, *args, now=None, **kwargs):
        super().__init__(*args, **kwargs)
        self.now = now


class AvailabilityFilterForm(forms.Form):
    component = forms.ChoiceField(choices=models.COMPONENT_CHOICES, required=False)
    bloodgroup = forms.ChoiceField(choices=models.BLOOD_GROUP_CHOICES, required=False)
    city = forms.ChoiceField(choices=models.CITY_CHOICES, required=False)


def error_messages(form) -> dict:
    """Flatten ``form.errors`` into ``{field: [message, ...]}``."""
    return {
        field: [entry['message'] for entry in entries]
        for field, entries in form.errors.get_json_data().items()
    }


def first_error(form) -> str:
    for messages in error_messages(form).values():
        if messages:
            return messages[0]
    return "Invalid input"
