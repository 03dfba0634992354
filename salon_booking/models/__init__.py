from .tables import (
    Base,
    Users,
    Pets,
    Services,
    Addons,
    Appointments,
    AppointmentAddons,
    Waitlist,
    Settings,
)

__all__ = [
    "Base",
    "Users",
    "Pets",
    "Services",
    "Addons",
    "Appointments",
    "AppointmentAddons",
    "Waitlist",
    "Settings",
]
