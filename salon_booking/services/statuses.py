# salon_booking/services/statuses.py
"""Appointment status groups shared by the slot engine and the storage layer."""

# Hold no capacity on the calendar
CAPACITY_FREE_STATUSES = frozenset({"cancelled", "no_show"})

TERMINAL_STATUSES = frozenset({"completed", "cancelled", "no_show"})
