"""Citizen and staff schemas."""

from pydantic import BaseModel, Field, model_validator

from vaccine_registry.core.validators import (
    MIN_ELIGIBLE_AGE,
    NATIONAL_ID_PATTERN,
    PHONE_PATTERN,
)
from vaccine_registry.schemas.appointments import DoseKind


class PersonInfo(BaseModel):
    """Display fields shared by citizens and staff."""

    name: str = Field(..., min_length=1)
    age: int = Field(..., ge=0)
    phone: str = Field(..., pattern=PHONE_PATTERN)

    model_config = {"frozen": True}

    def __str__(self) -> str:
        return f"{self.name} ({self.age}), Phone: {self.phone}"


class Citizen(BaseModel):
    """A registered citizen, keyed by national ID."""

    national_id: str = Field(..., pattern=NATIONAL_ID_PATTERN)
    person: PersonInfo
    dose1_completed: bool = False
    dose2_completed: bool = False

    model_config = {"frozen": True}

    @model_validator(mode="after")
    def check_eligible_age(self) -> "Citizen":
        """Citizens below the minimum eligible age cannot exist."""
        if self.person.age < MIN_ELIGIBLE_AGE:
            raise ValueError(f"Citizen age must be {MIN_ELIGIBLE_AGE} or above")
        return self

    @property
    def name(self) -> str:
        return self.person.name

    @property
    def age(self) -> int:
        return self.person.age

    @property
    def phone(self) -> str:
        return self.person.phone

    def is_dose_completed(self, dose_kind: DoseKind) -> bool:
        """Check the completion flag for a dose kind."""
        if dose_kind is DoseKind.FIRST:
            return self.dose1_completed
        return self.dose2_completed

    def with_dose_completed(self, dose_kind: DoseKind) -> "Citizen":
        """
        Return a copy with the flag for ``dose_kind`` set.

        Flags only move from False to True; an already completed dose
        returns ``self`` unchanged.
        """
        if self.is_dose_completed(dose_kind):
            return self
        field = "dose1_completed" if dose_kind is DoseKind.FIRST else "dose2_completed"
        return self.model_copy(update={field: True})

    def __str__(self) -> str:
        return (
            f"Citizen: {self.person}, ID: {self.national_id}, "
            f"Dose1: {'Yes' if self.dose1_completed else 'No'}, "
            f"Dose2: {'Yes' if self.dose2_completed else 'No'}"
        )


class Staff(BaseModel):
    """Vaccination center staff member."""

    staff_id: str = Field(..., min_length=1)
    role: str = Field(..., min_length=1)
    person: PersonInfo

    model_config = {"frozen": True}

    def __str__(self) -> str:
        return f"Staff: {self.person}, ID: {self.staff_id}, Role: {self.role}"
