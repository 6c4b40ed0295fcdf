from django import forms

from . import models


class BloodCampForm(forms.ModelForm):
    class Meta:
        model = models.BloodCamp
        fields = [
            'name', 'location', 'city', 'date', 'start_time', 'end_time',
            'bank', 'contact_number', 'email',
        ]

    def clean(self):
        cleaned = super().clean()
        start = cleaned.get('start_time')
        end = cleaned.get('end_time')
        if start and end and end <= start:
            self.add_error('end_time', "End time must be after the start time.")
        return cleaned
