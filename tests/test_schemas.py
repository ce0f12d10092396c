"""Tests for entity schemas."""

from datetime import date

import pytest
from pydantic import ValidationError

from vaccine_registry.schemas import (
    Appointment,
    Center,
    Citizen,
    DoseKind,
    PersonInfo,
    Reminder,
    Staff,
)


@pytest.fixture
def person() -> PersonInfo:
    return PersonInfo(name="Ravi Kale", age=40, phone="9123456780")


def test_citizen_defaults_and_display(person):
    """Test new citizens have no doses and render like the console view."""
    citizen = Citizen(national_id="111122223333", person=person)

    assert citizen.dose1_completed is False
    assert citizen.dose2_completed is False
    assert citizen.name == "Ravi Kale"
    assert citizen.age == 40
    assert citizen.phone == "9123456780"
    assert str(citizen) == (
        "Citizen: Ravi Kale (40), Phone: 9123456780, ID: 111122223333, Dose1: No, Dose2: No"
    )


def test_citizen_is_frozen(person):
    """Test citizens cannot be mutated in place."""
    citizen = Citizen(national_id="111122223333", person=person)
    with pytest.raises(ValidationError):
        citizen.dose1_completed = True


def test_citizen_rejects_underage(person):
    """Test a citizen below the minimum age cannot be built."""
    with pytest.raises(ValidationError):
        Citizen(national_id="111122223333", person=person.model_copy(update={"age": 11}))


def test_citizen_rejects_bad_id(person):
    """Test malformed national IDs are rejected by the schema."""
    with pytest.raises(ValidationError):
        Citizen(national_id="1111", person=person)


def test_with_dose_completed_is_monotonic(person):
    """Test completion flags only move from False to True."""
    citizen = Citizen(national_id="111122223333", person=person)

    first = citizen.with_dose_completed(DoseKind.FIRST)
    assert first.dose1_completed is True
    assert first.dose2_completed is False
    assert citizen.dose1_completed is False

    again = first.with_dose_completed(DoseKind.FIRST)
    assert again is first

    both = first.with_dose_completed(DoseKind.SECOND)
    assert both.dose1_completed is True
    assert both.dose2_completed is True


def test_staff_shares_person_fields(person):
    """Test staff embed the same person fields as citizens."""
    staff = Staff(staff_id="S01", role="Nurse", person=person)
    assert str(staff) == "Staff: Ravi Kale (40), Phone: 9123456780, ID: S01, Role: Nurse"


def test_center_display_and_capacity():
    """Test center display text and positive capacity constraint."""
    center = Center(center_id="C001", name="City Hospital", location="Solapur", daily_capacity=5)
    assert str(center) == "C001 - City Hospital (Solapur), Capacity: 5"

    with pytest.raises(ValidationError):
        Center(center_id="C002", name="X", location="Y", daily_capacity=0)


def test_appointment_accepts_dose_kind_value():
    """Test dose kind may be given by its string value."""
    appointment = Appointment(
        appointment_id="a-1",
        citizen_id="111122223333",
        center_id="C001",
        dose_kind="SECOND",
        date=date(2024, 1, 10),
    )
    assert appointment.dose_kind is DoseKind.SECOND
    assert str(appointment) == "a-1 | center C001 | SECOND | 2024-01-10"


def test_reminder_message():
    """Test reminder text includes the center name when known."""
    reminder = Reminder(
        appointment_id="a-1",
        citizen_name="Ravi Kale",
        phone="9123456780",
        center_id="C001",
        center_name="City Hospital",
        dose_kind=DoseKind.FIRST,
        date=date(2024, 1, 10),
    )
    assert reminder.message == (
        "Ravi Kale (9123456780) at center City Hospital (C001) for FIRST dose on 2024-01-10"
    )

    unnamed = reminder.model_copy(update={"center_name": None})
    assert "at center C001 for" in unnamed.message
