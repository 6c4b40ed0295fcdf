"""Public blood availability search across every bank's stock batches."""

from __future__ import annotations

from collections import OrderedDict
from dataclasses import dataclass, field
from typing import Dict, List, Optional

from django.utils import timezone

from bloodbank.models import BloodBank, StockBatch


@dataclass
class AvailabilityMatch:
    bank: Dict
    batches: List[Dict] = field(default_factory=list)

    def as_dict(self) -> Dict:
        return {'bloodBank': self.bank, 'matchingStock': self.batches}


def query_availability(
    *,
    component: Optional[str] = None,
    bloodgroup: Optional[str] = None,
    city: Optional[str] = None,
    now=None,
    using: Optional[str] = None,
) -> List[AvailabilityMatch]:
    """Return banks holding usable stock that matches the filters.

    Only batches with units left and an expiry after ``now`` are returned.
    ``city`` matches the batch's own city, which is where the units are held;
    the bank's registered city is informational. Banks without a matching
    batch are left out. Results come back in bank id order.
    """

    now = now or timezone.now()
    batches = StockBatch.objects.filter(units__gt=0, expiry_date__gt=now)
    if using:
        batches = batches.using(using)
    if component:
        batches = batches.filter(component=component)
    if bloodgroup:
        batches = batches.filter(bloodgroup=bloodgroup)
    if city:
        batches = batches.filter(city=city)

    grouped: "OrderedDict[int, List[StockBatch]]" = OrderedDict()
    for batch in batches.order_by('bank_id', 'id'):
        grouped.setdefault(batch.bank_id, []).append(batch)

    if not grouped:
        return []

    banks = BloodBank.objects.all()
    if using:
        banks = banks.using(using)
    bank_map = banks.in_bulk(list(grouped.keys()))

    matches: List[AvailabilityMatch] = []
    for bank_id, bank_batches in grouped.items():
        bank = bank_map.get(bank_id)
        if bank is None:
            continue
        matches.append(
            AvailabilityMatch(
                bank=bank.public_info(),
                batches=[b.as_dict() for b in bank_batches],
            )
        )
    return matches
