"""Appointment schemas."""

from datetime import date as DateType
from enum import Enum

from pydantic import BaseModel, Field


class DoseKind(str, Enum):
    """Which vaccination event an appointment is for."""

    FIRST = "FIRST"
    SECOND = "SECOND"


class Appointment(BaseModel):
    """
    A booked dose slot.

    Appointments are never modified after booking; completion is tracked
    on the citizen.
    """

    appointment_id: str = Field(..., min_length=1)
    citizen_id: str
    center_id: str
    dose_kind: DoseKind
    date: DateType

    model_config = {"frozen": True}

    def __str__(self) -> str:
        return (
            f"{self.appointment_id} | center {self.center_id} | "
            f"{self.dose_kind.value} | {self.date.isoformat()}"
        )


class Reminder(BaseModel):
    """Notification payload for a next-day appointment."""

    appointment_id: str
    citizen_name: str
    phone: str
    center_id: str
    center_name: str | None = None
    dose_kind: DoseKind
    date: DateType

    model_config = {"frozen": True}

    @property
    def message(self) -> str:
        """Human readable reminder text."""
        where = f"{self.center_name} ({self.center_id})" if self.center_name else self.center_id
        return (
            f"{self.citizen_name} ({self.phone}) at center {where} "
            f"for {self.dose_kind.value} dose on {self.date.isoformat()}"
        )
