from datetime import timedelta
from unittest.mock import patch

from django.contrib.auth.models import User
from django.db import DatabaseError
from django.test import Client, TestCase
from django.urls import reverse
from django.utils import timezone

from bloodbank.models import BloodBank, StockBatch, StockSummary
from bloodbank.services.ledger import StockLedger
from bloodbank.tests.helpers import PASSWORD, create_bank, create_donor


def future(days=7):
	return (timezone.now() + timedelta(days=days)).isoformat()


class BloodBankAccountViewTests(TestCase):
	def setUp(self):
		self.client = Client()

	def test_register_creates_bank_user_and_summary(self):
		response = self.client.post(
			reverse("bloodbank-register"),
			{
				"name": "City Blood Bank",
				"hospital_name": "City Hospital",
				"category": "Private",
				"contact_person": "Ravi Kumar",
				"email": "City@Example.com",
				"contact_no": "9876501234",
				"license_no": "LIC-778",
				"address": "MG Road",
				"pincode": "560001",
				"city": "Bangalore",
				"password": PASSWORD,
			},
			content_type="application/json",
		)
		self.assertEqual(response.status_code, 200, response.json())
		bank = BloodBank.objects.get(email="city@example.com")
		self.assertTrue(User.objects.filter(username="city@example.com").exists())
		self.assertEqual(StockSummary.objects.filter(bank=bank).count(), 8)
		self.assertNotIn("password", response.json()["bank"])

	def test_register_rejects_duplicate_email(self):
		create_bank(email="taken@example.com")
		response = self.client.post(
			reverse("bloodbank-register"),
			{"email": "taken@example.com", "password": PASSWORD},
			content_type="application/json",
		)
		self.assertEqual(response.status_code, 400)
		self.assertFalse(response.json()["success"])

	def test_login_and_logout(self):
		create_bank(email="login@example.com")
		response = self.client.post(
			reverse("bloodbank-login"),
			{"email": "login@example.com", "password": PASSWORD},
			content_type="application/json",
		)
		self.assertEqual(response.status_code, 200)
		self.assertEqual(self.client.get(reverse("bloodbank-dashboard")).status_code, 200)

		self.client.post(reverse("logout"))
		self.assertEqual(self.client.get(reverse("bloodbank-dashboard")).status_code, 401)

	def test_login_rejects_bad_password(self):
		create_bank(email="login@example.com")
		response = self.client.post(
			reverse("bloodbank-login"),
			{"email": "login@example.com", "password": "wrong"},
			content_type="application/json",
		)
		self.assertEqual(response.status_code, 401)


class StockViewTests(TestCase):
	def setUp(self):
		self.client = Client()
		self.bank = create_bank()
		self.client.login(username=self.bank.email, password=PASSWORD)

	def _post(self, name, payload):
		return self.client.post(reverse(name), payload, content_type="application/json")

	def test_anonymous_requests_are_unauthorized(self):
		anonymous = Client()
		for name in ("stock-add", "stock-update", "stock-delete"):
			response = anonymous.post(reverse(name), {}, content_type="application/json")
			self.assertEqual(response.status_code, 401)
			self.assertEqual(response.json()["message"], "Not logged in")

	def test_donor_accounts_cannot_manage_stock(self):
		donor = create_donor()
		client = Client()
		client.login(username=donor.user.username, password=PASSWORD)
		response = client.post(reverse("stock-add"), {}, content_type="application/json")
		self.assertEqual(response.status_code, 401)

	def test_add_update_delete_flow(self):
		added = self._post("stock-add", {
			"component": "Whole Blood",
			"bloodgroup": "A+",
			"city": "Delhi",
			"units": 10,
			"expiry_date": future(),
		})
		self.assertEqual(added.status_code, 200, added.json())
		body = added.json()
		self.assertEqual(body["message"], "Blood stock added successfully")
		stock_id = body["batch"]["id"]

		updated = self._post("stock-update", {
			"stock_id": stock_id,
			"units": 4,
			"expiry_date": future(3),
			"version": body["version"],
		})
		self.assertEqual(updated.status_code, 200, updated.json())

		dashboard = self.client.get(reverse("bloodbank-dashboard")).json()
		self.assertEqual(dashboard["summary"]["A+"], 4)
		self.assertEqual(dashboard["version"], 2)

		deleted = self._post("stock-delete", {"stock_id": stock_id, "version": 2})
		self.assertEqual(deleted.status_code, 200)
		self.assertFalse(StockBatch.objects.exists())

	def test_invalid_units_return_bad_request(self):
		response = self._post("stock-add", {
			"component": "Whole Blood",
			"bloodgroup": "A+",
			"city": "Delhi",
			"units": -1,
			"expiry_date": future(),
		})
		self.assertEqual(response.status_code, 400)
		self.assertEqual(response.json()["message"], "Units must be a positive number")

	def test_stale_version_returns_conflict(self):
		self._post("stock-add", {
			"component": "Whole Blood", "bloodgroup": "O+", "city": "Delhi", "units": 2, "expiry_date": future(),
		})
		response = self._post("stock-add", {
			"component": "Whole Blood", "bloodgroup": "O+", "city": "Delhi", "units": 2,
			"expiry_date": future(), "version": 0,
		})
		self.assertEqual(response.status_code, 409)

	def test_malformed_json_body(self):
		response = self.client.post(reverse("stock-add"), "{not json", content_type="application/json")
		self.assertEqual(response.status_code, 400)

	def test_other_banks_batch_is_not_found(self):
		other = create_bank()
		client = Client()
		client.login(username=other.email, password=PASSWORD)
		added = client.post(reverse("stock-add"), {
			"component": "Whole Blood", "bloodgroup": "B-", "city": "Mumbai", "units": 3, "expiry_date": future(),
		}, content_type="application/json").json()

		response = self._post("stock-delete", {"stock_id": added["batch"]["id"]})
		self.assertEqual(response.status_code, 404)
		self.assertEqual(response.json()["message"], "Blood stock not found")


class DashboardStorageFailureTests(TestCase):
	def test_summary_failure_returns_server_error(self):
		bank = create_bank()
		self.client.login(username=bank.email, password=PASSWORD)
		with patch.object(StockLedger, "summary", side_effect=DatabaseError("database is locked")):
			with self.assertLogs("bloodbank.views", level="ERROR"):
				response = self.client.get(reverse("bloodbank-dashboard"))
		self.assertEqual(response.status_code, 500)
		self.assertEqual(response.json()["category"], "internal-error")


class PublicAvailabilityViewTests(TestCase):
	def test_returns_matching_banks(self):
		bank = create_bank(city="Lucknow")
		StockBatch.objects.create(
			bank=bank, component="Single Platelet", bloodgroup="AB+", city="Lucknow",
			units=2, expiry_date=timezone.now() + timedelta(days=2),
		)
		response = self.client.get(reverse("blood-availability"), {"bloodgroup": "AB+", "city": "Lucknow"})
		self.assertEqual(response.status_code, 200)
		results = response.json()["results"]
		self.assertEqual(len(results), 1)
		self.assertEqual(results[0]["bloodBank"]["name"], bank.name)

	def test_unknown_filter_value_is_invalid(self):
		response = self.client.get(reverse("blood-availability"), {"bloodgroup": "Z"})
		self.assertEqual(response.status_code, 400)


class AdminStatsViewTests(TestCase):
	def setUp(self):
		self.admin = User.objects.create_superuser("admin", "admin@example.com", "pass1234")

	def test_requires_superuser(self):
		self.assertEqual(self.client.get(reverse("admin-stats")).status_code, 401)

	def test_admin_login_and_stats(self):
		bank = create_bank()
		create_donor()
		StockBatch.objects.create(
			bank=bank, component="Whole Blood", bloodgroup="O+", city="Delhi",
			units=12, expiry_date=timezone.now() + timedelta(days=2),
		)
		StockBatch.objects.create(
			bank=bank, component="Whole Blood", bloodgroup="A-", city="Delhi",
			units=3, expiry_date=timezone.now() + timedelta(days=2),
		)
		login = self.client.post(
			reverse("adminlogin"), {"username": "admin", "password": "pass1234"}, content_type="application/json",
		)
		self.assertEqual(login.status_code, 200)

		stats = self.client.get(reverse("admin-stats")).json()["stats"]
		self.assertEqual(stats["bloodBanks"], 1)
		self.assertEqual(stats["registeredDonors"], 1)
		self.assertEqual(stats["newDonorsThisMonth"], 1)
		self.assertEqual(stats["totalBloodUnits"], 15)
		self.assertEqual(stats["bloodTypeData"]["O+"], 12)
		self.assertEqual(stats["mostNeededType"], "A-")
