import logging

from django.contrib.auth import authenticate, login, logout
from django.contrib.auth.models import Group, User
from django.db import DatabaseError, transaction
from django.views.decorators.http import require_GET, require_POST

from camp import services as camp_services

from . import forms, models
from .results import ErrorCategory, LedgerResult, invalid, unauthorized
from .services.availability import query_availability
from .services.ledger import StockLedger
from .services.stats import get_admin_stats
from .utils.http import json_result, request_data

logger = logging.getLogger(__name__)

BLOODBANK_GROUP = 'BLOODBANK'


def current_bank(request):
    user = request.user
    if not user.is_authenticated or not user.groups.filter(name=BLOODBANK_GROUP).exists():
        return None
    return models.BloodBank.objects.filter(user=user).first()


@require_POST
def bloodbank_register_view(request):
    data = request_data(request)
    if data is None:
        return json_result(invalid("Request body must be a JSON object"))
    form = forms.BloodBankForm(data)
    if not form.is_valid():
        logger.debug("Blood bank registration errors: %s", form.errors)
        return json_result(invalid(forms.first_error(form), forms.error_messages(form)))

    with transaction.atomic():
        bank = form.save(commit=False)
        user = User.objects.create_user(
            username=bank.email,
            email=bank.email,
            password=form.cleaned_data['password'],
            first_name=bank.contact_person[:150],
        )
        bank.user = user
        bank.save()
        group, _ = Group.objects.get_or_create(name=BLOODBANK_GROUP)
        group.user_set.add(user)

    logger.info("Registered blood bank %s (%s)", bank.pk, bank.name)
    return json_result(LedgerResult.ok("Blood Bank Registration successful", bank=bank.public_info()))


@require_POST
def bloodbank_login_view(request):
    data = request_data(request) or {}
    email = (data.get('email') or '').strip().lower()
    password = data.get('password') or ''

    user = authenticate(request, username=email, password=password)
    if user is None or not user.groups.filter(name=BLOODBANK_GROUP).exists():
        logger.debug("Blood bank login failed for %s", email)
        return json_result(unauthorized("Invalid email or password"))
    login(request, user)
    return json_result(LedgerResult.ok("Login successful"))


@require_POST
def logout_view(request):
    logout(request)
    return json_result(LedgerResult.ok("Logged out"))


@require_GET
def bloodbank_dashboard_view(request):
    bank = current_bank(request)
    if bank is None:
        return json_result(unauthorized())

    try:
        summary = StockLedger().summary(bank)
        bank.refresh_from_db(fields=['version'])
    except DatabaseError:
        logger.exception("Loading stock summary failed for bank %s", bank.pk)
        return json_result(LedgerResult.fail(ErrorCategory.INTERNAL_ERROR, "Server error occurred"))
    payload = {
        'bank': bank.public_info(),
        'version': bank.version,
        'summary': summary,
        'batches': [batch.as_dict() for batch in bank.batches.all()],
        'pendingCamps': [camp.as_dict() for camp in camp_services.pending_camps(bank)],
        'approvedCamps': [
            {
                **camp.as_dict(),
                'donors': [
                    {
                        'id': reg.donor_id,
                        'name': reg.donor.get_name,
                        'bloodgroup': reg.donor.bloodgroup,
                        'mobile': reg.donor.mobile,
                        'email': reg.donor.user.email,
                        'has_donated': reg.has_donated,
                    }
                    for reg in camp.registrations.all()
                ],
            }
            for camp in camp_services.approved_camps(bank)
        ],
    }
    return json_result(LedgerResult.ok("Dashboard loaded", **payload))


@require_POST
def add_stock_view(request):
    bank = current_bank(request)
    if bank is None:
        return json_result(unauthorized())
    data = request_data(request)
    if data is None:
        return json_result(invalid("Request body must be a JSON object"))

    result = StockLedger().add_stock(
        bank,
        component=data.get('component'),
        bloodgroup=data.get('bloodgroup'),
        city=data.get('city'),
        units=data.get('units'),
        expiry_date=data.get('expiry_date'),
        expected_version=data.get('version'),
    )
    return json_result(result)


@require_POST
def update_stock_view(request):
    bank = current_bank(request)
    if bank is None:
        return json_result(unauthorized())
    data = request_data(request)
    if data is None:
        return json_result(invalid("Request body must be a JSON object"))

    result = StockLedger().update_stock(
        bank,
        data.get('stock_id'),
        units=data.get('units'),
        expiry_date=data.get('expiry_date'),
        expected_version=data.get('version'),
    )
    return json_result(result)


@require_POST
def delete_stock_view(request):
    bank = current_bank(request)
    if bank is None:
        return json_result(unauthorized())
    data = request_data(request)
    if data is None:
        return json_result(invalid("Request body must be a JSON object"))

    result = StockLedger().delete_stock(bank, data.get('stock_id'), expected_version=data.get('version'))
    return json_result(result)


@require_GET
def blood_availability_api_view(request):
    form = forms.AvailabilityFilterForm(request.GET)
    if not form.is_valid():
        return json_result(invalid(forms.first_error(form), forms.error_messages(form)))

    matches = query_availability(
        component=form.cleaned_data.get('component') or None,
        bloodgroup=form.cleaned_data.get('bloodgroup') or None,
        city=form.cleaned_data.get('city') or None,
    )
    return json_result(LedgerResult.ok("Search complete", results=[m.as_dict() for m in matches]))


@require_POST
def adminlogin_view(request):
    data = request_data(request) or {}
    user = authenticate(request, username=data.get('username'), password=data.get('password'))
    if user is None or not user.is_superuser:
        return json_result(unauthorized("Invalid admin credentials."))
    login(request, user)
    return json_result(LedgerResult.ok("Login successful"))


@require_GET
def admin_stats_view(request):
    if not (request.user.is_authenticated and request.user.is_superuser):
        return json_result(unauthorized())
    return json_result(LedgerResult.ok("Statistics loaded", stats=get_admin_stats()))
