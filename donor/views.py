import logging

from django.contrib.auth import authenticate, login
from django.contrib.auth.models import Group
from django.db import transaction
from django.views.decorators.http import require_GET, require_POST

from bloodbank.forms import error_messages
from bloodbank.results import LedgerResult, invalid, unauthorized
from bloodbank.utils.http import json_result, request_data
from .forms import DonorUserForm, DonorForm
from .models import Donor

logger = logging.getLogger(__name__)

DONOR_GROUP = 'DONOR'


def current_donor(request):
    user = request.user
    if not user.is_authenticated or not user.groups.filter(name=DONOR_GROUP).exists():
        return None
    return Donor.objects.select_related('user').filter(user=user).first()


@require_POST
def donorsignup_view(request):
    data = request_data(request)
    if data is None:
        return json_result(invalid("Request body must be a JSON object"))

    userForm = DonorUserForm(data)
    donorForm = DonorForm(data)
    user_ok = userForm.is_valid()
    donor_ok = donorForm.is_valid()
    if not (user_ok and donor_ok):
        errors = {**error_messages(userForm), **error_messages(donorForm)}
        logger.debug("Donor signup errors: %s", errors)
        first = next((msgs[0] for msgs in errors.values() if msgs), "Registration failed")
        return json_result(invalid(first, errors))

    with transaction.atomic():
        # Create user; donors sign in with their email address
        user = userForm.save(commit=False)
        user.username = userForm.cleaned_data['email']
        user.set_password(userForm.cleaned_data['password'])
        user.save()

        # Create donor
        donor = donorForm.save(commit=False)
        donor.user = user
        donor.save()

        # Add to donor group
        my_donor_group, _ = Group.objects.get_or_create(name=DONOR_GROUP)
        my_donor_group.user_set.add(user)

    logger.info("Registered donor %s", donor.pk)
    return json_result(LedgerResult.ok("Registration successful", donor_id=donor.pk))


@require_POST
def donorlogin_view(request):
    data = request_data(request) or {}
    email = (data.get('email') or '').strip().lower()

    user = authenticate(request, username=email, password=data.get('password') or '')
    if user is None:
        logger.debug("Donor authentication failed for %s", email)
        return json_result(unauthorized("Invalid email or password"))
    if not user.groups.filter(name=DONOR_GROUP).exists():
        return json_result(unauthorized("This account is not registered as a donor."))

    login(request, user)
    return json_result(LedgerResult.ok(f"Welcome back, {user.first_name}!"))


@require_GET
def donor_dashboard_view(request):
    donor = current_donor(request)
    if donor is None:
        return json_result(unauthorized("Access denied. Donor account required."))

    next_date = donor.next_eligible_donation_date
    history = [
        {'date': record.date.isoformat(), 'location': record.location}
        for record in donor.donations.all()
    ]
    payload = {
        'donor': {
            'id': donor.pk,
            'name': donor.get_name,
            'email': donor.user.email,
            'bloodgroup': donor.bloodgroup,
            'mobile': donor.mobile,
            'age': donor.age_years,
            'total_donations': donor.total_donations,
            'last_donated_at': donor.last_donated_at.isoformat() if donor.last_donated_at else None,
        },
        'isEligibleToday': donor.is_eligible(),
        'nextEligibleDate': next_date.isoformat() if next_date else "Eligible Now",
        'donationHistory': history,
        'registeredCamps': [reg.camp.as_dict() for reg in donor.camp_registrations.select_related('camp__bank')],
    }
    return json_result(LedgerResult.ok("Dashboard loaded", **payload))
