from django import forms
from django.contrib.auth.models import User

from bloodbank.models import BLOOD_GROUP_CHOICES
from .models import Donor


class DonorUserForm(forms.ModelForm):
    email = forms.EmailField()

    class Meta:
        model = User
        fields = ['first_name', 'last_name', 'email', 'password']
        widgets = {
            'password': forms.PasswordInput()
        }

    def clean_email(self):
        email = self.cleaned_data['email'].strip().lower()
        if User.objects.filter(username=email).exists():
            raise forms.ValidationError("Email is already registered")
        return email


class DonorForm(forms.ModelForm):
    bloodgroup = forms.ChoiceField(choices=BLOOD_GROUP_CHOICES, widget=forms.Select(attrs={'class': 'form-control'}))

    class Meta:
        model = Donor
        fields = ['bloodgroup', 'mobile', 'sex', 'date_of_birth']
        widgets = {
            'mobile': forms.TextInput(attrs={'class': 'form-control'}),
            'date_of_birth': forms.DateInput(attrs={'type': 'date'}),
        }
