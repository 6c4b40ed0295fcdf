from __future__ import annotations

import logging

from django.db.models.signals import post_save
from django.dispatch import receiver

from .models import BLOOD_GROUPS, BloodBank, StockSummary

LOGGER = logging.getLogger(__name__)


@receiver(post_save, sender=BloodBank)
def create_summary_rows(sender, instance: BloodBank, created: bool, raw: bool = False, using=None, **kwargs):
	"""Give every new bank one zeroed summary row per blood group."""

	if not created or raw:
		return

	StockSummary.objects.using(using).bulk_create(
		[StockSummary(bank=instance, bloodgroup=bg, units=0) for bg in BLOOD_GROUPS],
		ignore_conflicts=True,
	)
	LOGGER.debug("Initialised stock summary rows for blood bank %s", instance.pk)
