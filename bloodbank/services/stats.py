from __future__ import annotations

from django.db.models import Sum
from django.utils import timezone

from bloodbank.models import BLOOD_GROUPS, BloodBank, StockBatch
from camp.models import BloodCamp
from donor.models import Donor


def get_admin_stats(now=None) -> dict:
    """Headline numbers for the administrator dashboard.

    Unit totals are computed from live batches (non-expired, units > 0) rather
    than summary rows so that the figure does not depend on expiry settlement.
    """

    now = now or timezone.now()
    start_of_month = timezone.localtime(now).replace(day=1, hour=0, minute=0, second=0, microsecond=0)

    per_group = {bg: 0 for bg in BLOOD_GROUPS}
    live = (
        StockBatch.objects.filter(units__gt=0, expiry_date__gt=now)
        .order_by()
        .values('bloodgroup')
        .annotate(total=Sum('units'))
    )
    for row in live:
        per_group[row['bloodgroup']] = row['total'] or 0

    stocked = [(bg, units) for bg, units in per_group.items() if units > 0]
    most_needed = min(stocked, key=lambda item: item[1])[0] if stocked else 'Unknown'

    return {
        'registeredDonors': Donor.objects.count(),
        'bloodBanks': BloodBank.objects.count(),
        'totalCamps': BloodCamp.objects.count(),
        'citiesWithCamps': BloodCamp.objects.order_by().values('city').distinct().count(),
        'newDonorsThisMonth': Donor.objects.filter(created_at__gte=start_of_month).count(),
        'totalBloodUnits': sum(per_group.values()),
        'bloodTypeData': per_group,
        'mostNeededType': most_needed,
    }
