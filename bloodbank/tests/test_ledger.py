"""Behaviour of the per-bank stock ledger."""

from datetime import timedelta
from unittest.mock import patch

from django.db import DatabaseError
from django.test import TestCase, override_settings

from bloodbank.forms import MAX_UNITS
from bloodbank.models import BLOOD_GROUPS, BloodBank, StockBatch, StockSummary
from bloodbank.results import ErrorCategory
from bloodbank.services.ledger import StockLedger
from bloodbank.tests.helpers import aware, create_bank

NOW = aware(2030, 1, 1, 12, 0)


def fixed_clock(moment):
	return lambda: moment


class StockLedgerTestCase(TestCase):
	def setUp(self):
		self.bank = create_bank()
		self.ledger = StockLedger(clock=fixed_clock(NOW))

	def _add(self, bank=None, bloodgroup="A+", units=10, expires_in=timedelta(days=7), **kwargs):
		params = {
			"component": "Whole Blood",
			"bloodgroup": bloodgroup,
			"city": "Delhi",
			"units": units,
			"expiry_date": NOW + expires_in,
		}
		params.update(kwargs)
		return self.ledger.add_stock(bank or self.bank, **params)

	def _summary_units(self, bank=None, bloodgroup="A+"):
		return StockSummary.objects.get(bank=bank or self.bank, bloodgroup=bloodgroup).units

	def _batch_total(self, bank=None, bloodgroup="A+"):
		return sum(
			batch.contribution(NOW)
			for batch in StockBatch.objects.filter(bank=bank or self.bank, bloodgroup=bloodgroup)
		)


class SummaryRowsTests(StockLedgerTestCase):
	def test_new_bank_gets_zero_row_per_group(self):
		rows = dict(StockSummary.objects.filter(bank=self.bank).values_list("bloodgroup", "units"))
		self.assertEqual(set(rows), set(BLOOD_GROUPS))
		self.assertTrue(all(units == 0 for units in rows.values()))

	def test_summary_is_keyed_by_all_groups(self):
		self._add(bloodgroup="O-", units=4)
		summary = self.ledger.summary(self.bank)
		self.assertEqual(list(summary), BLOOD_GROUPS)
		self.assertEqual(summary["O-"], 4)
		self.assertEqual(sum(summary.values()), 4)


class AddUpdateDeleteTests(StockLedgerTestCase):
	def test_add_update_delete_keeps_summary_in_step(self):
		first = self._add(units=10)
		second = self._add(units=5)
		self.assertTrue(first.success and second.success)
		self.assertEqual(self._summary_units(), 15)

		updated = self.ledger.update_stock(self.bank, first.batch.pk, units=3, expiry_date=NOW + timedelta(days=7))
		self.assertTrue(updated.success, updated.message)
		self.assertEqual(updated.message, "Blood stock updated successfully")
		self.assertEqual(self._summary_units(), 8)

		deleted = self.ledger.delete_stock(self.bank, second.batch.pk)
		self.assertTrue(deleted.success, deleted.message)
		self.assertEqual(self._summary_units(), 3)
		self.assertEqual(self._summary_units(), self._batch_total())

	def test_add_returns_batch_and_version(self):
		result = self._add(units=6)
		self.assertEqual(result.message, "Blood stock added successfully")
		self.assertEqual(result.http_status, 200)
		payload = result.as_dict()
		self.assertEqual(payload["batch"]["units"], 6)
		self.assertEqual(payload["version"], 1)
		self.bank.refresh_from_db()
		self.assertEqual(self.bank.version, 1)

	def test_groups_are_tracked_separately(self):
		self._add(bloodgroup="B+", units=7)
		self._add(bloodgroup="AB-", units=2)
		self.assertEqual(self._summary_units(bloodgroup="B+"), 7)
		self.assertEqual(self._summary_units(bloodgroup="AB-"), 2)
		self.assertEqual(self._summary_units(bloodgroup="A+"), 0)

	def test_non_positive_units_rejected_without_change(self):
		for units in (-1, 0, "abc"):
			result = self._add(units=units)
			self.assertFalse(result.success)
			self.assertEqual(result.category, ErrorCategory.INVALID_INPUT)
			self.assertEqual(result.message, "Units must be a positive number")
		self.assertFalse(StockBatch.objects.exists())
		self.assertEqual(self._summary_units(), 0)
		self.bank.refresh_from_db()
		self.assertEqual(self.bank.version, 0)

	def test_units_beyond_column_range_rejected(self):
		result = self._add(units=10 ** 20)
		self.assertEqual(result.category, ErrorCategory.INVALID_INPUT)
		self.assertEqual(result.message, "Units must be a positive number")
		self.assertTrue(self._add(units=MAX_UNITS).success)

		batch = StockBatch.objects.get()
		result = self.ledger.update_stock(self.bank, batch.pk, units=MAX_UNITS + 1, expiry_date=NOW + timedelta(days=1))
		self.assertEqual(result.category, ErrorCategory.INVALID_INPUT)
		batch.refresh_from_db()
		self.assertEqual(batch.units, MAX_UNITS)

	def test_unknown_blood_group_rejected(self):
		result = self._add(bloodgroup="C+")
		self.assertEqual(result.category, ErrorCategory.INVALID_INPUT)
		self.assertIn("bloodgroup", result.data["errors"])

	def test_expiry_must_be_in_the_future(self):
		result = self._add(expires_in=timedelta(0))
		self.assertEqual(result.category, ErrorCategory.INVALID_INPUT)
		self.assertEqual(result.message, "Expiry date must be in the future")

	def test_update_requires_stock_id(self):
		result = self.ledger.update_stock(self.bank, None, units=3, expiry_date=NOW + timedelta(days=1))
		self.assertEqual(result.category, ErrorCategory.INVALID_INPUT)
		self.assertEqual(result.message, "Stock ID is required")

	def test_update_with_invalid_units_leaves_batch(self):
		batch = self._add(units=10).batch
		result = self.ledger.update_stock(self.bank, batch.pk, units=-1, expiry_date=NOW + timedelta(days=1))
		self.assertEqual(result.category, ErrorCategory.INVALID_INPUT)
		batch.refresh_from_db()
		self.assertEqual(batch.units, 10)
		self.assertEqual(self._summary_units(), 10)

	def test_update_moving_expiry_into_past_is_rejected(self):
		batch = self._add(units=10).batch
		result = self.ledger.update_stock(self.bank, batch.pk, units=10, expiry_date=NOW - timedelta(hours=1))
		self.assertEqual(result.category, ErrorCategory.INVALID_INPUT)
		self.assertEqual(self._summary_units(), 10)


class OwnershipTests(StockLedgerTestCase):
	def setUp(self):
		super().setUp()
		self.other = create_bank(city="Mumbai")
		self.batch = self._add(units=9).batch
		self.bank.refresh_from_db()

	def test_cannot_update_another_banks_batch(self):
		result = self.ledger.update_stock(self.other, self.batch.pk, units=1, expiry_date=NOW + timedelta(days=1))
		self.assertEqual(result.category, ErrorCategory.NOT_FOUND)
		self.assertEqual(result.message, "Blood stock not found")
		self.assertEqual(result.http_status, 404)
		self.batch.refresh_from_db()
		self.assertEqual(self.batch.units, 9)

	def test_cannot_delete_another_banks_batch(self):
		result = self.ledger.delete_stock(self.other, self.batch.pk)
		self.assertEqual(result.category, ErrorCategory.NOT_FOUND)
		self.assertTrue(StockBatch.objects.filter(pk=self.batch.pk).exists())
		self.assertEqual(self._summary_units(), 9)

	def test_rejected_access_does_not_touch_versions(self):
		self.ledger.delete_stock(self.other, self.batch.pk)
		self.other.refresh_from_db()
		self.assertEqual(self.other.version, 0)
		self.assertEqual(BloodBank.objects.get(pk=self.bank.pk).version, self.bank.version)

	def test_malformed_ids_are_not_found(self):
		for batch_id in ("abc", 999999):
			result = self.ledger.delete_stock(self.bank, batch_id)
			self.assertEqual(result.category, ErrorCategory.NOT_FOUND)


class VersionConflictTests(StockLedgerTestCase):
	def test_stale_version_is_rejected(self):
		batch = self._add(units=10, expected_version=0).batch
		stale = 0
		result = self.ledger.update_stock(
			self.bank, batch.pk, units=2, expiry_date=NOW + timedelta(days=1), expected_version=stale,
		)
		self.assertEqual(result.category, ErrorCategory.CONFLICT)
		self.assertEqual(result.http_status, 409)
		self.assertEqual(result.data["version"], 1)
		batch.refresh_from_db()
		self.assertEqual(batch.units, 10)

	def test_current_version_is_accepted(self):
		self._add(units=10)
		self._add(units=1, expected_version=1)
		self.assertEqual(self._summary_units(), 11)
		self.assertEqual(BloodBank.objects.get(pk=self.bank.pk).version, 2)

	def test_non_numeric_version_is_invalid(self):
		result = self._add(expected_version="latest")
		self.assertEqual(result.category, ErrorCategory.INVALID_INPUT)


class ExpiryTests(StockLedgerTestCase):
	def test_expired_batches_leave_the_summary(self):
		self._add(units=5, expires_in=timedelta(hours=1))
		self._add(units=4, expires_in=timedelta(days=3))
		self.assertEqual(self._summary_units(), 9)

		later = StockLedger(clock=fixed_clock(NOW + timedelta(hours=2)))
		self.assertEqual(later.settle_expired(self.bank), 1)
		self.assertEqual(self._summary_units(), 4)
		self.assertEqual(later.settle_expired(self.bank), 0)
		self.assertEqual(self._summary_units(), 4)

	@override_settings(STOCK_SUMMARY_SETTLE_ON_READ=True)
	def test_summary_settles_on_read(self):
		self._add(units=5, expires_in=timedelta(hours=1))
		later = StockLedger(clock=fixed_clock(NOW + timedelta(days=1)))
		self.assertEqual(later.summary(self.bank)["A+"], 0)

	def test_deleting_settled_batch_does_not_double_subtract(self):
		batch = self._add(units=5, expires_in=timedelta(hours=1)).batch
		self._add(units=4, expires_in=timedelta(days=3))
		later = StockLedger(clock=fixed_clock(NOW + timedelta(hours=2)))
		later.settle_expired(self.bank)
		later.delete_stock(self.bank, batch.pk)
		self.assertEqual(self._summary_units(), 4)


class DriftRepairTests(StockLedgerTestCase):
	def test_underflow_recomputes_instead_of_clamping(self):
		keep = self._add(units=6).batch
		drop = self._add(units=5).batch
		StockSummary.objects.filter(bank=self.bank, bloodgroup="A+").update(units=2)

		result = self.ledger.delete_stock(self.bank, drop.pk)
		self.assertTrue(result.success)
		self.assertEqual(self._summary_units(), keep.units)

	def test_reconcile_reports_and_fixes_drift(self):
		self._add(units=6)
		self._add(bloodgroup="O+", units=2)
		StockSummary.objects.filter(bank=self.bank, bloodgroup="A+").update(units=40)

		drift = self.ledger.reconcile(self.bank)
		self.assertEqual(drift, {"A+": (40, 6)})
		self.assertEqual(self._summary_units(), 6)
		self.assertEqual(self.ledger.reconcile(self.bank), {})

	def test_missing_summary_row_is_recreated(self):
		StockSummary.objects.filter(bank=self.bank, bloodgroup="B-").delete()
		self._add(bloodgroup="B-", units=3)
		self.assertEqual(self._summary_units(bloodgroup="B-"), 3)


class PurgeTests(StockLedgerTestCase):
	def test_purge_removes_old_expired_batches_only(self):
		past = StockLedger(clock=fixed_clock(NOW - timedelta(days=40)))
		past.add_stock(
			self.bank, component="Single Plasma", bloodgroup="A+", city="Delhi",
			units=8, expiry_date=NOW - timedelta(days=35),
		)
		recent = StockLedger(clock=fixed_clock(NOW - timedelta(days=3)))
		recent.add_stock(
			self.bank, component="Single Plasma", bloodgroup="A+", city="Delhi",
			units=2, expiry_date=NOW - timedelta(days=1),
		)
		live = self._add(units=5).batch

		deleted = self.ledger.purge_expired(older_than=timedelta(days=30))
		self.assertEqual(deleted, 1)
		self.assertEqual(StockBatch.objects.filter(bank=self.bank).count(), 2)
		self.assertTrue(StockBatch.objects.filter(pk=live.pk).exists())
		self.assertEqual(self._summary_units(), 5)


class StorageFailureTests(StockLedgerTestCase):
	def setUp(self):
		super().setUp()
		self.batch = self._add(units=10).batch
		self.bank.refresh_from_db()

	def _assert_unchanged(self):
		self.assertEqual(StockBatch.objects.filter(bank=self.bank).count(), 1)
		self.batch.refresh_from_db()
		self.assertEqual(self.batch.units, 10)
		self.assertEqual(self._summary_units(), 10)
		self.assertEqual(BloodBank.objects.get(pk=self.bank.pk).version, 1)

	def _assert_server_error(self, result):
		self.assertFalse(result.success)
		self.assertEqual(result.category, ErrorCategory.INTERNAL_ERROR)
		self.assertEqual(result.http_status, 500)
		self.assertEqual(result.message, "Server error occurred")

	@patch.object(StockLedger, "_apply_delta", side_effect=DatabaseError("disk I/O error"))
	def test_add_rolls_back_on_storage_error(self, _):
		with self.assertLogs("bloodbank.services.ledger", level="ERROR"):
			result = self._add(units=5)
		self._assert_server_error(result)
		self._assert_unchanged()
		self.assertEqual(self.bank.version, 1)

	@patch.object(StockLedger, "_apply_delta", side_effect=DatabaseError("disk I/O error"))
	def test_update_rolls_back_on_storage_error(self, _):
		with self.assertLogs("bloodbank.services.ledger", level="ERROR"):
			result = self.ledger.update_stock(self.bank, self.batch.pk, units=2, expiry_date=NOW + timedelta(days=2))
		self._assert_server_error(result)
		self._assert_unchanged()

	@patch.object(StockLedger, "_apply_delta", side_effect=DatabaseError("disk I/O error"))
	def test_delete_rolls_back_on_storage_error(self, _):
		with self.assertLogs("bloodbank.services.ledger", level="ERROR"):
			result = self.ledger.delete_stock(self.bank, self.batch.pk)
		self._assert_server_error(result)
		self._assert_unchanged()

	def test_settle_failure_keeps_previous_totals(self):
		later = StockLedger(clock=fixed_clock(NOW + timedelta(days=30)))
		with patch.object(StockLedger, "_lock", side_effect=DatabaseError("database is locked")):
			with self.assertLogs("bloodbank.services.ledger", level="ERROR"):
				self.assertEqual(later.settle_expired(self.bank), 0)
				summary = later.summary(self.bank)
		self.assertEqual(summary["A+"], 10)
		self.assertEqual(later.summary(self.bank)["A+"], 0)
