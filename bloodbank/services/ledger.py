"""Per-bank blood stock ledger.

Each bank owns a list of ``StockBatch`` rows and eight ``StockSummary`` rows
(one per blood group). For every group the summary holds the units of the
bank's batches that are non-expired and non-empty. Mutations keep the two in
step with delta updates; a delta that would push a summary below zero means
the row had drifted, so that group is recomputed from its batches instead.

Mutations for one bank are serialized by locking the bank row for the length
of the transaction. Every mutation bumps ``BloodBank.version`` and callers
may pass ``expected_version`` to reject writes based on a stale read.
"""

from __future__ import annotations

import logging
from datetime import timedelta
from typing import Callable, Dict, Optional

from django.conf import settings
from django.db import DEFAULT_DB_ALIAS, DatabaseError, transaction
from django.db.models import F, Q, Sum
from django.utils import timezone

from bloodbank import forms
from bloodbank.models import BLOOD_GROUPS, BloodBank, StockBatch, StockSummary
from bloodbank.results import ErrorCategory, LedgerResult, invalid, not_found


logger = logging.getLogger(__name__)

SERVER_ERROR_MESSAGE = "Server error occurred"


class StockLedger:
    def __init__(self, *, clock: Callable = timezone.now, using: Optional[str] = None):
        self.clock = clock
        self.using = using or DEFAULT_DB_ALIAS

    # ------------------------------------------------------------------
    # Mutations

    def add_stock(
        self,
        bank: BloodBank,
        component=None,
        bloodgroup=None,
        city=None,
        units=None,
        expiry_date=None,
        *,
        expected_version=None,
    ) -> LedgerResult:
        now = self.clock()
        form = forms.AddStockForm(
            {
                'component': component,
                'bloodgroup': bloodgroup,
                'city': city,
                'units': units,
                'expiry_date': expiry_date,
            },
            now=now,
        )
        if not form.is_valid():
            return invalid(forms.first_error(form), forms.error_messages(form))
        data = form.cleaned_data

        try:
            with transaction.atomic(using=self.using):
                locked = self._lock(bank)
                if locked is None:
                    return not_found("Blood bank not found")
                conflict = self._check_version(locked, expected_version)
                if conflict is not None:
                    return conflict

                batch = StockBatch.objects.using(self.using).create(
                    bank=locked,
                    component=data['component'],
                    bloodgroup=data['bloodgroup'],
                    city=data['city'],
                    units=data['units'],
                    expiry_date=data['expiry_date'],
                    added_at=now,
                    counted=True,
                )
                self._apply_delta(locked, batch.bloodgroup, batch.units, now)
                self._bump_version(locked, bank)
        except DatabaseError:
            logger.exception("Add blood stock failed for bank %s", bank.pk)
            return LedgerResult.fail(ErrorCategory.INTERNAL_ERROR, SERVER_ERROR_MESSAGE)

        logger.info(
            "Stock added: bank=%s batch=%s %s %s units=%s",
            bank.pk, batch.pk, batch.component, batch.bloodgroup, batch.units,
        )
        return LedgerResult.ok("Blood stock added successfully", batch=batch, version=bank.version)

    def update_stock(
        self,
        bank: BloodBank,
        batch_id,
        units=None,
        expiry_date=None,
        *,
        expected_version=None,
    ) -> LedgerResult:
        if batch_id in (None, ""):
            return invalid("Stock ID is required")
        now = self.clock()
        form = forms.UpdateStockForm({'units': units, 'expiry_date': expiry_date}, now=now)
        if not form.is_valid():
            return invalid(forms.first_error(form), forms.error_messages(form))
        data = form.cleaned_data

        try:
            with transaction.atomic(using=self.using):
                locked = self._lock(bank)
                if locked is None:
                    return not_found("Blood bank not found")
                batch = self._owned_batch(locked, batch_id)
                if batch is None:
                    return not_found("Blood stock not found")
                conflict = self._check_version(locked, expected_version)
                if conflict is not None:
                    return conflict

                old_contribution = batch.units if batch.counted else 0
                batch.units = data['units']
                batch.expiry_date = data['expiry_date']
                batch.counted = batch.is_available(now)
                batch.save(using=self.using, update_fields=['units', 'expiry_date', 'counted'])

                new_contribution = batch.units if batch.counted else 0
                self._apply_delta(locked, batch.bloodgroup, new_contribution - old_contribution, now)
                self._bump_version(locked, bank)
        except DatabaseError:
            logger.exception("Update blood stock failed for bank %s batch %s", bank.pk, batch_id)
            return LedgerResult.fail(ErrorCategory.INTERNAL_ERROR, SERVER_ERROR_MESSAGE)

        logger.info("Stock updated: bank=%s batch=%s units=%s", bank.pk, batch.pk, batch.units)
        return LedgerResult.ok("Blood stock updated successfully", batch=batch, version=bank.version)

    def delete_stock(self, bank: BloodBank, batch_id, *, expected_version=None) -> LedgerResult:
        if batch_id in (None, ""):
            return invalid("Stock ID is required")
        now = self.clock()

        try:
            with transaction.atomic(using=self.using):
                locked = self._lock(bank)
                if locked is None:
                    return not_found("Blood bank not found")
                batch = self._owned_batch(locked, batch_id)
                if batch is None:
                    return not_found("Blood stock not found")
                conflict = self._check_version(locked, expected_version)
                if conflict is not None:
                    return conflict

                bloodgroup = batch.bloodgroup
                contribution = batch.units if batch.counted else 0
                deleted_id = batch.pk
                batch.delete(using=self.using)
                self._apply_delta(locked, bloodgroup, -contribution, now)
                self._bump_version(locked, bank)
        except DatabaseError:
            logger.exception("Delete blood stock failed for bank %s batch %s", bank.pk, batch_id)
            return LedgerResult.fail(ErrorCategory.INTERNAL_ERROR, SERVER_ERROR_MESSAGE)

        logger.info("Stock deleted: bank=%s batch=%s", bank.pk, deleted_id)
        return LedgerResult.ok("Blood stock deleted successfully", version=bank.version)

    # ------------------------------------------------------------------
    # Expiry and repair

    def settle_expired(self, bank: BloodBank) -> int:
        """Take batches that expired since they were counted out of the summary."""
        now = self.clock()
        try:
            with transaction.atomic(using=self.using):
                locked = self._lock(bank)
                if locked is None:
                    return 0
                stale = StockBatch.objects.using(self.using).filter(
                    bank=locked, counted=True, expiry_date__lte=now,
                )
                totals = list(stale.order_by().values('bloodgroup').annotate(total=Sum('units')))
                settled = stale.update(counted=False)
                for row in totals:
                    self._apply_delta(locked, row['bloodgroup'], -(row['total'] or 0), now)
        except DatabaseError:
            # Summary rows keep their previous totals until the next sweep.
            logger.exception("Settling expired stock failed for bank %s", bank.pk)
            return 0

        if settled:
            logger.info("Settled %s expired batches for bank %s", settled, bank.pk)
        return settled

    def summary(self, bank: BloodBank) -> Dict[str, int]:
        """Units per blood group, always keyed by all eight groups."""
        if getattr(settings, 'STOCK_SUMMARY_SETTLE_ON_READ', True):
            self.settle_expired(bank)
        totals = {bg: 0 for bg in BLOOD_GROUPS}
        rows = StockSummary.objects.using(self.using).filter(bank_id=bank.pk)
        for row in rows:
            totals[row.bloodgroup] = row.units
        return totals

    def reconcile(self, bank: BloodBank) -> Dict[str, tuple]:
        """Recompute every group from the batch list; returns ``{group: (old, new)}`` for drifted rows."""
        now = self.clock()
        drift = {}
        with transaction.atomic(using=self.using):
            locked = self._lock(bank)
            if locked is None:
                return drift
            for bg in BLOOD_GROUPS:
                before = self._summary_row(locked, bg).units
                after = self._recompute_group(locked, bg, now)
                if before != after:
                    drift[bg] = (before, after)

        if drift:
            logger.warning("Reconciled stock summary drift for bank %s: %s", bank.pk, drift)
        return drift

    def purge_expired(self, bank: Optional[BloodBank] = None, older_than: timedelta = timedelta(0)) -> int:
        """Delete batches that expired more than ``older_than`` ago."""
        cutoff = self.clock() - older_than
        expired = StockBatch.objects.using(self.using).filter(expiry_date__lte=cutoff)
        if bank is not None:
            expired = expired.filter(bank_id=bank.pk)

        deleted = 0
        bank_ids = sorted(set(expired.values_list('bank_id', flat=True)))
        for bank_obj in BloodBank.objects.using(self.using).filter(pk__in=bank_ids):
            self.settle_expired(bank_obj)
            with transaction.atomic(using=self.using):
                self._lock(bank_obj)
                count, _ = expired.filter(bank_id=bank_obj.pk, counted=False).delete()
                deleted += count

        if deleted:
            logger.info("Purged %s expired stock batches", deleted)
        return deleted

    # ------------------------------------------------------------------
    # Helpers

    def _lock(self, bank: BloodBank) -> Optional[BloodBank]:
        return (
            BloodBank.objects.using(self.using)
            .select_for_update()
            .filter(pk=bank.pk)
            .first()
        )

    def _owned_batch(self, bank: BloodBank, batch_id) -> Optional[StockBatch]:
        try:
            pk = int(batch_id)
        except (TypeError, ValueError):
            return None
        return StockBatch.objects.using(self.using).filter(pk=pk, bank=bank).first()

    def _check_version(self, bank: BloodBank, expected_version) -> Optional[LedgerResult]:
        if expected_version in (None, ""):
            return None
        try:
            expected = int(expected_version)
        except (TypeError, ValueError):
            return invalid("Version must be a whole number")
        if expected != bank.version:
            logger.info(
                "Rejected stale write for bank %s: expected version %s, current %s",
                bank.pk, expected, bank.version,
            )
            return LedgerResult.fail(
                ErrorCategory.CONFLICT,
                "Stock was changed by another request; reload and try again",
                version=bank.version,
            )
        return None

    def _bump_version(self, locked: BloodBank, caller_copy: BloodBank) -> None:
        BloodBank.objects.using(self.using).filter(pk=locked.pk).update(version=F('version') + 1)
        locked.version += 1
        caller_copy.version = locked.version

    def _summary_row(self, bank: BloodBank, bloodgroup: str) -> StockSummary:
        row, _ = StockSummary.objects.using(self.using).get_or_create(bank=bank, bloodgroup=bloodgroup)
        return row

    def _apply_delta(self, bank: BloodBank, bloodgroup: str, delta: int, now) -> int:
        row = self._summary_row(bank, bloodgroup)
        if delta == 0:
            return row.units
        if row.units + delta < 0:
            logger.warning(
                "Summary for bank %s %s would drop to %s; recomputing from batches",
                bank.pk, bloodgroup, row.units + delta,
            )
            return self._recompute_group(bank, bloodgroup, now)
        StockSummary.objects.using(self.using).filter(pk=row.pk).update(units=F('units') + delta)
        return row.units + delta

    def _recompute_group(self, bank: BloodBank, bloodgroup: str, now) -> int:
        batches = StockBatch.objects.using(self.using).filter(bank=bank, bloodgroup=bloodgroup)
        live = Q(units__gt=0, expiry_date__gt=now)
        total = batches.filter(live).aggregate(total=Sum('units'))['total'] or 0
        batches.filter(live).exclude(counted=True).update(counted=True)
        batches.filter(counted=True, expiry_date__lte=now).update(counted=False)
        StockSummary.objects.using(self.using).filter(bank=bank, bloodgroup=bloodgroup).update(units=total)
        return total
