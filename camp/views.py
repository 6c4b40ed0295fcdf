import logging

from django.views.decorators.http import require_GET, require_POST

from bloodbank.results import LedgerResult, invalid, not_found, unauthorized
from bloodbank.utils.http import json_result, request_data
from bloodbank.views import current_bank
from donor.models import Donor
from donor.views import current_donor

from . import services

logger = logging.getLogger(__name__)


def _camp_reviewer(request):
    """(allowed, bank) for approve/reject: superusers see every camp, banks only their own."""
    if request.user.is_authenticated and request.user.is_superuser:
        return True, None
    bank = current_bank(request)
    return bank is not None, bank


@require_POST
def register_camp_view(request):
    data = request_data(request)
    if data is None:
        return json_result(invalid("Request body must be a JSON object"))
    return json_result(services.register_camp(data))


@require_GET
def active_camps_view(request):
    camps = [camp.as_dict() for camp in services.active_camps()]
    return json_result(LedgerResult.ok("Active camps", camps=camps))


@require_POST
def join_camp_view(request, pk):
    donor = current_donor(request)
    if donor is None:
        return json_result(unauthorized("Please log in as a donor to register for a camp"))
    return json_result(services.register_donor(pk, donor))


@require_POST
def approve_camp_view(request, pk):
    allowed, bank = _camp_reviewer(request)
    if not allowed:
        return json_result(unauthorized())
    return json_result(services.approve_camp(pk, bank=bank))


@require_POST
def reject_camp_view(request, pk):
    allowed, bank = _camp_reviewer(request)
    if not allowed:
        return json_result(unauthorized())
    return json_result(services.reject_camp(pk, bank=bank))


@require_POST
def mark_donated_view(request, pk):
    bank = current_bank(request)
    if bank is None:
        return json_result(unauthorized())
    data = request_data(request) or {}
    donor_id = str(data.get('donor_id') or '')
    donor = Donor.objects.filter(pk=int(donor_id)).first() if donor_id.isdigit() else None
    if donor is None:
        return json_result(not_found("Donor not found"))
    return json_result(services.mark_donated(pk, donor, bank=bank))
