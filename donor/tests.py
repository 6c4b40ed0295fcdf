from datetime import date, timedelta

from django.test import Client, TestCase, override_settings
from django.urls import reverse
from django.utils import timezone

from bloodbank.tests.helpers import PASSWORD, create_donor
from donor.forms import DonorForm
from donor.models import Donor


class DonorFormTests(TestCase):
	def setUp(self):
		self.base_data = {
			'bloodgroup': 'A+',
			'mobile': '9876543210',
			'sex': 'F',
		}

	def test_date_of_birth_is_optional(self):
		form = DonorForm(data=self.base_data)
		self.assertTrue(form.is_valid(), form.errors)

	def test_rejects_unknown_blood_group(self):
		form = DonorForm(data={**self.base_data, 'bloodgroup': 'Q+'})
		self.assertFalse(form.is_valid())
		self.assertIn('bloodgroup', form.errors)


class DonorEligibilityTests(TestCase):
	def setUp(self):
		self.donor = create_donor()

	def test_new_donor_is_eligible(self):
		self.assertTrue(self.donor.is_eligible())
		self.assertIsNone(self.donor.next_eligible_donation_date)

	@override_settings(DONATION_RECOVERY_DAYS=90)
	def test_recovery_window(self):
		self.donor.record_donation(date(2030, 1, 1), "City Camp")
		self.assertEqual(self.donor.next_eligible_donation_date, date(2030, 4, 1))
		self.assertFalse(self.donor.is_eligible(today=date(2030, 3, 31)))
		self.assertTrue(self.donor.is_eligible(today=date(2030, 4, 1)))

	def test_record_donation_appends_history(self):
		self.donor.record_donation(date(2029, 5, 1), "Camp A")
		self.donor.record_donation(date(2029, 9, 1), "Camp B")
		self.assertEqual(self.donor.total_donations, 2)
		self.assertEqual(self.donor.last_donated_at, date(2029, 9, 1))
		self.assertEqual([r.location for r in self.donor.donations.all()], ["Camp B", "Camp A"])

	def test_age_years(self):
		self.donor.date_of_birth = timezone.now().date() - timedelta(days=365 * 30 + 30)
		self.assertEqual(self.donor.age_years, 30)


class DonorViewTests(TestCase):
	def setUp(self):
		self.client = Client()

	def _signup(self, **overrides):
		payload = {
			'first_name': 'Meera',
			'last_name': 'Iyer',
			'email': 'Meera@Example.com',
			'password': PASSWORD,
			'bloodgroup': 'B+',
			'mobile': '9123456789',
			'sex': 'F',
		}
		payload.update(overrides)
		return self.client.post(reverse('donorsignup'), payload, content_type='application/json')

	def test_signup_login_and_dashboard(self):
		response = self._signup()
		self.assertEqual(response.status_code, 200, response.json())
		donor = Donor.objects.get()
		self.assertEqual(donor.user.username, 'meera@example.com')
		self.assertTrue(donor.user.check_password(PASSWORD))

		login = self.client.post(
			reverse('donorlogin'),
			{'email': 'meera@example.com', 'password': PASSWORD},
			content_type='application/json',
		)
		self.assertEqual(login.status_code, 200)

		dashboard = self.client.get(reverse('donor-dashboard')).json()
		self.assertTrue(dashboard['isEligibleToday'])
		self.assertEqual(dashboard['nextEligibleDate'], 'Eligible Now')
		self.assertEqual(dashboard['donor']['bloodgroup'], 'B+')
		self.assertEqual(dashboard['donationHistory'], [])

	def test_duplicate_email_is_rejected(self):
		self._signup()
		response = self._signup(mobile='9000000000')
		self.assertEqual(response.status_code, 400)
		self.assertEqual(response.json()['message'], 'Email is already registered')
		self.assertEqual(Donor.objects.count(), 1)

	def test_dashboard_requires_donor(self):
		self.assertEqual(self.client.get(reverse('donor-dashboard')).status_code, 401)

	def test_dashboard_shows_next_eligible_date(self):
		donor = create_donor()
		donor.record_donation(timezone.now().date() - timedelta(days=10), "Camp A")
		self.client.login(username=donor.user.username, password=PASSWORD)
		dashboard = self.client.get(reverse('donor-dashboard')).json()
		self.assertFalse(dashboard['isEligibleToday'])
		self.assertEqual(dashboard['nextEligibleDate'], (timezone.now().date() + timedelta(days=80)).isoformat())
