from datetime import datetime
from itertools import count

from django.contrib.auth.models import Group, User
from django.utils import timezone

from bloodbank.models import BloodBank
from donor.models import Donor

PASSWORD = "DemoPass123!"

_sequence = count(1)


def aware(*args):
	return timezone.make_aware(datetime(*args))


def create_bank(city="Delhi", **overrides):
	n = next(_sequence)
	email = overrides.pop("email", f"bank{n}@example.com")
	user = User.objects.create_user(username=email, email=email, password=PASSWORD)
	Group.objects.get_or_create(name="BLOODBANK")[0].user_set.add(user)
	fields = {
		"name": f"Bank {n}",
		"hospital_name": f"Hospital {n}",
		"category": "Government",
		"contact_person": "Asha Rao",
		"email": email,
		"contact_no": "9876543210",
		"license_no": f"LIC-{n:05d}",
		"address": f"{n} Ring Road",
		"pincode": "110001",
		"city": city,
	}
	fields.update(overrides)
	return BloodBank.objects.create(user=user, **fields)


def create_donor(bloodgroup="O+", **overrides):
	n = next(_sequence)
	email = overrides.pop("email", f"donor{n}@example.com")
	user = User.objects.create_user(
		username=email,
		email=email,
		password=PASSWORD,
		first_name="Test",
		last_name=f"Donor{n}",
	)
	Group.objects.get_or_create(name="DONOR")[0].user_set.add(user)
	fields = {"bloodgroup": bloodgroup, "mobile": "9123456780"}
	fields.update(overrides)
	return Donor.objects.create(user=user, **fields)
