import logging
from datetime import timedelta

from celery import shared_task
from django.conf import settings

from bloodbank import models
from bloodbank.services import sms as sms_service
from bloodbank.services.ledger import StockLedger


logger = logging.getLogger(__name__)


@shared_task(bind=True, autoretry_for=(Exception,), retry_backoff=True, retry_kwargs={'max_retries': 3})
def send_camp_approved_sms(self, camp_id: int) -> dict:
    from camp.models import BloodCamp

    camp = BloodCamp.objects.select_related('bank').filter(pk=camp_id).first()
    if camp is None:
        logger.warning("Camp %s no longer exists; skipping approval SMS", camp_id)
        return {'status': 'skipped', 'reason': 'camp-missing'}
    return sms_service.notify_camp_approved(camp)


@shared_task(bind=True, autoretry_for=(Exception,), retry_backoff=True, retry_kwargs={'max_retries': 3})
def send_camp_rejected_sms(self, contact_number: str, camp_name: str, bank_name: str, camp_date: str) -> dict:
    return sms_service.notify_camp_rejected(
        contact_number=contact_number,
        camp_name=camp_name,
        bank_name=bank_name,
        camp_date=camp_date,
    )


@shared_task
def settle_expired_stock() -> int:
    ledger = StockLedger()
    settled = 0
    for bank in models.BloodBank.objects.filter(batches__counted=True).distinct():
        settled += ledger.settle_expired(bank)
    logger.info("Expiry sweep settled %s batches", settled)
    return settled


@shared_task
def purge_expired_stock(days: int = None) -> int:
    if days is None:
        days = int(getattr(settings, 'STOCK_PURGE_AFTER_DAYS', 30))
    return StockLedger().purge_expired(older_than=timedelta(days=days))


@shared_task
def cleanup_expired_camps() -> int:
    from camp.services import cleanup_expired_camps as cleanup

    return cleanup()
