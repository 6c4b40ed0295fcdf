"""Blood camp workflow: registration, approval, donor sign-up and cleanup."""

from __future__ import annotations

import logging
from typing import List, Optional

from django.db import DatabaseError, IntegrityError, transaction
from django.utils import timezone

from bloodbank.forms import error_messages
from bloodbank.results import ErrorCategory, LedgerResult, invalid, not_found
from donor.models import Donor

from .forms import BloodCampForm
from .models import BloodCamp, CampRegistration


logger = logging.getLogger(__name__)


def _queue_after_commit(task, *args, **kwargs):
    """Queue ``task`` once the surrounding transaction commits; dispatch failures are logged, not raised."""

    def dispatch():
        try:
            task.delay(*args, **kwargs)
        except Exception as dispatch_error:
            logger.error("Failed to queue %s: %s", task.name, dispatch_error)

    transaction.on_commit(dispatch)


def register_camp(data) -> LedgerResult:
    form = BloodCampForm(data)
    if not form.is_valid():
        messages = [m for msgs in error_messages(form).values() for m in msgs]
        return invalid(", ".join(messages), error_messages(form))
    try:
        camp = form.save()
    except DatabaseError:
        logger.exception("Error registering blood camp")
        return LedgerResult.fail(ErrorCategory.INTERNAL_ERROR, "Registration failed")
    logger.info("Blood camp %s registered with bank %s", camp.pk, camp.bank_id)
    return LedgerResult.ok("Blood Camp Registration successful", camp=camp.as_dict())


def active_camps(now=None) -> List[BloodCamp]:
    today = timezone.localdate(now) if now else timezone.localdate()
    return list(
        BloodCamp.objects.select_related('bank')
        .filter(approved=True, date__gte=today)
        .order_by('date', 'id')
    )


def pending_camps(bank) -> List[BloodCamp]:
    return list(BloodCamp.objects.select_related('bank').filter(bank=bank, approved=False))


def approved_camps(bank) -> List[BloodCamp]:
    return list(
        BloodCamp.objects.select_related('bank')
        .prefetch_related('registrations__donor__user')
        .filter(bank=bank, approved=True)
        .order_by('date', 'id')
    )


def _find_camp(camp_id, bank=None) -> Optional[BloodCamp]:
    try:
        pk = int(camp_id)
    except (TypeError, ValueError):
        return None
    camps = BloodCamp.objects.select_related('bank').filter(pk=pk)
    if bank is not None:
        camps = camps.filter(bank=bank)
    return camps.first()


def approve_camp(camp_id, *, bank=None) -> LedgerResult:
    """Approve a pending camp; ``bank`` restricts the lookup to that bank's camps."""
    from bloodbank import tasks

    camp = _find_camp(camp_id, bank)
    if camp is None:
        return not_found("Camp not found")
    if camp.approved:
        return invalid("Camp is already approved")

    BloodCamp.objects.filter(pk=camp.pk).update(approved=True)
    _queue_after_commit(tasks.send_camp_approved_sms, camp.pk)
    logger.info("Blood camp %s approved", camp.pk)
    return LedgerResult.ok("Camp approved successfully")


def reject_camp(camp_id, *, bank=None) -> LedgerResult:
    from bloodbank import tasks

    camp = _find_camp(camp_id, bank)
    if camp is None:
        return not_found("Camp not found")

    details = {
        'contact_number': camp.contact_number,
        'camp_name': camp.name,
        'bank_name': camp.bank.name,
        'camp_date': camp.date.isoformat(),
    }
    camp.delete()
    _queue_after_commit(tasks.send_camp_rejected_sms, **details)
    logger.info("Blood camp %s rejected and removed", camp_id)
    return LedgerResult.ok("Camp rejected successfully")


def register_donor(camp_id, donor: Donor, now=None) -> LedgerResult:
    camp = _find_camp(camp_id)
    if camp is None or not camp.approved:
        return not_found("Camp not found")
    today = timezone.localdate(now) if now else timezone.localdate()
    if camp.date < today:
        return invalid("This camp has already taken place")
    if CampRegistration.objects.filter(camp=camp, donor=donor).exists():
        return invalid("You are already registered for this camp")

    try:
        with transaction.atomic():
            CampRegistration.objects.create(camp=camp, donor=donor)
    except IntegrityError:
        return invalid("You are already registered for this camp")
    logger.info("Donor %s registered for camp %s", donor.pk, camp.pk)
    return LedgerResult.ok("Successfully registered for blood camp")


def mark_donated(camp_id, donor: Donor, *, bank=None) -> LedgerResult:
    camp = _find_camp(camp_id, bank)
    if camp is None:
        return not_found("Camp not found")
    registration = CampRegistration.objects.filter(camp=camp, donor=donor).first()
    if registration is None:
        return not_found("Donor is not registered for this camp")
    if registration.has_donated:
        return invalid("Donation already recorded for this donor")

    with transaction.atomic():
        donor.record_donation(camp.date, f"{camp.name}, {camp.city}")
        CampRegistration.objects.filter(pk=registration.pk).update(has_donated=True)
    logger.info("Donor %s marked as donated at camp %s", donor.pk, camp.pk)
    return LedgerResult.ok("Donor marked as donated successfully")


def cleanup_expired_camps(now=None) -> int:
    today = timezone.localdate(now) if now else timezone.localdate()
    _, per_model = BloodCamp.objects.filter(date__lt=today).delete()
    deleted = per_model.get(BloodCamp._meta.label, 0)
    logger.info("Deleted %s expired blood camps", deleted)
    return deleted
