"""AWS SNS powered notifications for blood camp organisers."""

from __future__ import annotations

import logging
from typing import Optional

from django.conf import settings

from bloodbank.utils.phone import normalize_phone_number
from bloodbank.utils.sms_sender import send_sms as send_single_sms


logger = logging.getLogger(__name__)


def notify_camp_approved(camp, *, sns_client=None) -> dict:
	"""Tell the camp organiser that the hosting bank approved their camp."""

	message = (
		f"LifebloX: your blood camp \"{camp.name}\" on {camp.date:%d %b %Y} "
		f"({camp.start_time:%H:%M}-{camp.end_time:%H:%M}) at {camp.location}, {camp.city} "
		f"has been approved by {camp.bank.name}. Thank you for organising it!"
	)
	return _dispatch(camp.contact_number, message, sns_client=sns_client, context=f"camp {camp.pk} approval")


def notify_camp_rejected(
	*,
	contact_number: str,
	camp_name: str,
	bank_name: str,
	camp_date: str,
	sns_client=None,
) -> dict:
	"""The camp row is gone by the time this runs, so it takes plain values."""

	message = (
		f"LifebloX: your blood camp \"{camp_name}\" on {camp_date} was not approved by "
		f"{bank_name}. We are sorry for the inconvenience."
	)
	return _dispatch(contact_number, message, sns_client=sns_client, context=f"camp '{camp_name}' rejection")


def _dispatch(raw_number: Optional[str], message: str, *, sns_client=None, context: str) -> dict:
	if not getattr(settings, 'AWS_SNS_ENABLED', False):
		logger.info("AWS SNS disabled; skipping %s SMS", context)
		return {'status': 'skipped', 'reason': 'sns-disabled'}

	phone = normalize_phone_number(raw_number)
	if not phone:
		logger.warning("No usable phone number for %s SMS (%r)", context, raw_number)
		return {'status': 'skipped', 'reason': 'no-contact'}

	result = send_single_sms(phone, message[:1200], sns_client=sns_client)
	if result.get('status') != 'success':
		logger.error("SMS for %s failed: %s", context, result)
	else:
		logger.info("SMS for %s sent to %s", context, phone)
	return result
