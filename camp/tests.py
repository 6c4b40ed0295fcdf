from datetime import time, timedelta
from unittest.mock import patch

from django.test import Client, TestCase
from django.urls import reverse
from django.utils import timezone

from bloodbank.results import ErrorCategory
from bloodbank.tests.helpers import PASSWORD, create_bank, create_donor
from camp import services
from camp.models import BloodCamp, CampRegistration


class CampTestCase(TestCase):
	def setUp(self):
		self.bank = create_bank(name="Lions Blood Bank")
		self.today = timezone.localdate()

	def _camp(self, bank=None, days_ahead=5, approved=False, **overrides):
		fields = {
			"name": "Weekend Drive",
			"location": "Town Hall",
			"city": "Delhi",
			"date": self.today + timedelta(days=days_ahead),
			"start_time": time(9, 0),
			"end_time": time(13, 0),
			"bank": bank or self.bank,
			"contact_number": "9876543210",
			"email": "organiser@example.com",
			"approved": approved,
		}
		fields.update(overrides)
		return BloodCamp.objects.create(**fields)


class RegisterCampTests(CampTestCase):
	def _payload(self, **overrides):
		payload = {
			"name": "College Drive",
			"location": "Main Auditorium",
			"city": "Delhi",
			"date": (self.today + timedelta(days=10)).isoformat(),
			"start_time": "10:00",
			"end_time": "16:00",
			"bank": self.bank.pk,
			"contact_number": "9123456789",
			"email": "college@example.com",
		}
		payload.update(overrides)
		return payload

	def test_new_camps_start_pending(self):
		result = services.register_camp(self._payload())
		self.assertTrue(result.success, result.message)
		camp = BloodCamp.objects.get()
		self.assertFalse(camp.approved)
		self.assertEqual(services.pending_camps(self.bank), [camp])

	def test_rejects_invalid_contact_and_times(self):
		result = services.register_camp(self._payload(contact_number="12345", end_time="09:00"))
		self.assertEqual(result.category, ErrorCategory.INVALID_INPUT)
		self.assertIn("contact_number", result.data["errors"])
		self.assertIn("end_time", result.data["errors"])
		self.assertFalse(BloodCamp.objects.exists())

	def test_register_view(self):
		response = self.client.post(reverse("camp-register"), self._payload(), content_type="application/json")
		self.assertEqual(response.status_code, 200, response.json())
		self.assertEqual(response.json()["camp"]["bank"], "Lions Blood Bank")


class CampReviewTests(CampTestCase):
	@patch("bloodbank.tasks.send_camp_approved_sms.delay")
	def test_approve_queues_sms_after_commit(self, mock_delay):
		camp = self._camp()
		with self.captureOnCommitCallbacks(execute=True):
			result = services.approve_camp(camp.pk, bank=self.bank)
		self.assertTrue(result.success)
		camp.refresh_from_db()
		self.assertTrue(camp.approved)
		mock_delay.assert_called_once_with(camp.pk)

	@patch("bloodbank.tasks.send_camp_approved_sms.delay", side_effect=OSError("Connection refused"))
	def test_approve_survives_broker_outage(self, mock_delay):
		camp = self._camp()
		with self.assertLogs("camp.services", level="ERROR"):
			with self.captureOnCommitCallbacks(execute=True):
				result = services.approve_camp(camp.pk, bank=self.bank)
		self.assertTrue(result.success)
		mock_delay.assert_called_once_with(camp.pk)
		camp.refresh_from_db()
		self.assertTrue(camp.approved)

	@patch("bloodbank.tasks.send_camp_rejected_sms.delay", side_effect=OSError("Connection refused"))
	def test_reject_survives_broker_outage(self, mock_delay):
		camp = self._camp()
		with self.assertLogs("camp.services", level="ERROR"):
			with self.captureOnCommitCallbacks(execute=True):
				result = services.reject_camp(camp.pk, bank=self.bank)
		self.assertTrue(result.success)
		self.assertEqual(mock_delay.call_count, 1)
		self.assertFalse(BloodCamp.objects.exists())

	def test_approving_twice_is_invalid(self):
		camp = self._camp(approved=True)
		result = services.approve_camp(camp.pk)
		self.assertEqual(result.category, ErrorCategory.INVALID_INPUT)

	def test_bank_cannot_review_another_banks_camp(self):
		other = create_bank()
		camp = self._camp(bank=other)
		self.assertEqual(services.approve_camp(camp.pk, bank=self.bank).category, ErrorCategory.NOT_FOUND)
		self.assertEqual(services.reject_camp(camp.pk, bank=self.bank).category, ErrorCategory.NOT_FOUND)
		self.assertTrue(BloodCamp.objects.filter(pk=camp.pk).exists())

	@patch("bloodbank.tasks.send_camp_rejected_sms.delay")
	def test_reject_deletes_and_notifies(self, mock_delay):
		camp = self._camp()
		with self.captureOnCommitCallbacks(execute=True):
			result = services.reject_camp(camp.pk, bank=self.bank)
		self.assertTrue(result.success)
		self.assertFalse(BloodCamp.objects.exists())
		mock_delay.assert_called_once_with(
			contact_number="9876543210",
			camp_name="Weekend Drive",
			bank_name="Lions Blood Bank",
			camp_date=camp.date.isoformat(),
		)

	@patch("bloodbank.tasks.send_camp_approved_sms.delay")
	def test_approve_view_requires_bank_login(self, mock_delay):
		camp = self._camp()
		self.assertEqual(self.client.post(reverse("camp-approve", args=[camp.pk])).status_code, 401)

		self.client.login(username=self.bank.email, password=PASSWORD)
		response = self.client.post(reverse("camp-approve", args=[camp.pk]))
		self.assertEqual(response.status_code, 200)


class DonorRegistrationTests(CampTestCase):
	def setUp(self):
		super().setUp()
		self.donor = create_donor()
		self.camp = self._camp(approved=True)

	def test_register_once(self):
		first = services.register_donor(self.camp.pk, self.donor)
		self.assertTrue(first.success)
		second = services.register_donor(self.camp.pk, self.donor)
		self.assertEqual(second.category, ErrorCategory.INVALID_INPUT)
		self.assertEqual(second.message, "You are already registered for this camp")
		self.assertEqual(CampRegistration.objects.count(), 1)

	def test_pending_camps_are_not_joinable(self):
		pending = self._camp()
		self.assertEqual(services.register_donor(pending.pk, self.donor).category, ErrorCategory.NOT_FOUND)

	def test_past_camps_are_not_joinable(self):
		past = self._camp(days_ahead=-1, approved=True)
		self.assertEqual(services.register_donor(past.pk, self.donor).category, ErrorCategory.INVALID_INPUT)

	def test_active_camps_lists_upcoming_approved(self):
		self._camp()
		self._camp(days_ahead=-3, approved=True)
		self.assertEqual(services.active_camps(), [self.camp])

	def test_join_view(self):
		client = Client()
		self.assertEqual(client.post(reverse("camp-join", args=[self.camp.pk])).status_code, 401)
		client.login(username=self.donor.user.username, password=PASSWORD)
		response = client.post(reverse("camp-join", args=[self.camp.pk]))
		self.assertEqual(response.status_code, 200)
		self.assertTrue(CampRegistration.objects.filter(camp=self.camp, donor=self.donor).exists())


class MarkDonatedTests(CampTestCase):
	def setUp(self):
		super().setUp()
		self.donor = create_donor()
		self.camp = self._camp(approved=True)
		services.register_donor(self.camp.pk, self.donor)

	def test_records_donation_and_starts_recovery(self):
		result = services.mark_donated(self.camp.pk, self.donor, bank=self.bank)
		self.assertTrue(result.success, result.message)
		self.donor.refresh_from_db()
		self.assertEqual(self.donor.total_donations, 1)
		self.assertEqual(self.donor.last_donated_at, self.camp.date)
		self.assertTrue(CampRegistration.objects.get(camp=self.camp, donor=self.donor).has_donated)

		again = services.mark_donated(self.camp.pk, self.donor, bank=self.bank)
		self.assertEqual(again.category, ErrorCategory.INVALID_INPUT)
		self.assertEqual(self.donor.donations.count(), 1)

	def test_unregistered_donor(self):
		stranger = create_donor()
		result = services.mark_donated(self.camp.pk, stranger, bank=self.bank)
		self.assertEqual(result.category, ErrorCategory.NOT_FOUND)

	def test_mark_donated_view(self):
		self.client.login(username=self.bank.email, password=PASSWORD)
		response = self.client.post(
			reverse("camp-mark-donated", args=[self.camp.pk]),
			{"donor_id": self.donor.pk},
			content_type="application/json",
		)
		self.assertEqual(response.status_code, 200, response.json())


class CleanupTests(CampTestCase):
	def test_removes_only_past_camps(self):
		keep = self._camp(days_ahead=0)
		self._camp(days_ahead=-1)
		self._camp(days_ahead=-30, approved=True)
		self.assertEqual(services.cleanup_expired_camps(), 2)
		self.assertEqual(list(BloodCamp.objects.all()), [keep])

	def test_cleanup_with_explicit_date(self):
		self._camp(days_ahead=2)
		later = timezone.now() + timedelta(days=5)
		self.assertEqual(services.cleanup_expired_camps(later), 1)
