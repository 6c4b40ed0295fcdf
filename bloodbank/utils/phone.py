from __future__ import annotations

import re
from typing import Optional

from django.conf import settings


def normalize_phone_number(raw: Optional[str]) -> Optional[str]:
    """Return ``raw`` as an E.164 number, or None when it cannot be used.

    Camp contact numbers are stored as bare 10-digit Indian mobiles
    ("9876543210"); those get AWS_SNS_DEFAULT_COUNTRY_CODE prepended.
    Numbers already carrying a "+" prefix are only stripped of punctuation.
    """

    if not raw:
        return None

    cleaned = re.sub(r"[\s\-().]+", "", str(raw).strip())
    if cleaned.startswith("+"):
        digits = re.sub(r"[^0-9]", "", cleaned)
        return f"+{digits}" if len(digits) >= 7 else None

    digits = re.sub(r"[^0-9]", "", cleaned).lstrip("0")
    if len(digits) < 7:
        return None

    country = str(getattr(settings, "AWS_SNS_DEFAULT_COUNTRY_CODE", None) or "+91").lstrip("+")
    if len(digits) > 10 and digits.startswith(country):
        return f"+{digits}"
    return f"+{country}{digits}"
