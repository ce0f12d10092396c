"""Entity schemas."""

from vaccine_registry.schemas.appointments import Appointment, DoseKind, Reminder
from vaccine_registry.schemas.centers import Center
from vaccine_registry.schemas.people import Citizen, PersonInfo, Staff

__all__ = [
    "Appointment",
    "Center",
    "Citizen",
    "DoseKind",
    "PersonInfo",
    "Reminder",
    "Staff",
]
