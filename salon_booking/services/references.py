# salon_booking/services/references.py
"""
Human-readable booking references: APT-YYYY-NNNNNN.

The numeric part is drawn from `secrets`, so references are not guessable
from one another. Uniqueness is enforced by the caller (pre-check plus the
unique constraint on appointments.booking_reference).
"""

import re
import secrets
from typing import Optional

REFERENCE_PATTERN = re.compile(r"^APT-\d{4}-\d{6}$")


def generate_booking_reference(year: int, random_below=secrets.randbelow) -> str:
    return f"APT-{year}-{random_below(1_000_000):06d}"


def is_booking_reference(value: Optional[str]) -> bool:
    return bool(value) and REFERENCE_PATTERN.match(value) is not None
