import subprocess
import sys
from pathlib import Path

import pytest

PROJECT_ROOT = Path(__file__).resolve().parents[1]


# Each module is imported first in a fresh interpreter: a cycle only shows up
# for the entry point that reaches it first.
@pytest.mark.parametrize("module", [
    "salon_booking.main",
    "salon_booking.deps",
    "salon_booking.services.booking",
    "salon_booking.services.waitlist",
    "salon_booking.services.catalog",
    "salon_booking.services.repository",
    "salon_booking.services.appointment_status",
    "salon_booking.services.slots",
    "salon_booking.services.slots.availability",
])
def test_module_imports_in_clean_interpreter(module):
    completed = subprocess.run(
        [sys.executable, "-c", f"import {module}"],
        cwd=PROJECT_ROOT,
        capture_output=True,
        text=True,
        timeout=60,
    )
    assert completed.returncode == 0, completed.stderr
