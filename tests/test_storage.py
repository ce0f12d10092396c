"""Tests for flat-file storage."""

import os
from datetime import date
from pathlib import Path
from unittest.mock import patch

import pytest
from structlog.testing import capture_logs

from vaccine_registry.core.exceptions import PersistenceException
from vaccine_registry.schemas import Appointment, Center, Citizen, DoseKind, PersonInfo
from vaccine_registry.storage import FlatFileStore, parse_bool


@pytest.fixture
def store(settings) -> FlatFileStore:
    return FlatFileStore(settings)


@pytest.fixture
def citizens() -> list[Citizen]:
    return [
        Citizen(
            national_id="123456789012",
            person=PersonInfo(name="Asha Patil", age=34, phone="9876543210"),
            dose1_completed=True,
        ),
        Citizen(
            national_id="210987654321",
            person=PersonInfo(name="Kale, Ravi", age=12, phone="9123456780"),
        ),
    ]


def test_missing_files_load_as_empty(store):
    """Test a missing file is an empty collection, not an error."""
    for result in (store.load_citizens(), store.load_centers(), store.load_appointments()):
        assert result.records == []
        assert result.skipped_count == 0


def test_citizen_line_format(store, citizens):
    """Test citizens are written one per line with literal booleans."""
    store.save_citizens(citizens[:1])

    assert store.citizens_path.read_text(encoding="utf-8") == (
        "Asha Patil,34,9876543210,123456789012,true,false\n"
    )


def test_center_and_appointment_line_format(store):
    """Test center and appointment field order and ISO dates."""
    store.save_centers([Center(center_id="C001", name="City Hospital", location="Solapur", daily_capacity=5)])
    store.save_appointments(
        [
            Appointment(
                appointment_id="a-1",
                citizen_id="123456789012",
                center_id="C001",
                dose_kind=DoseKind.FIRST,
                date=date(2024, 1, 10),
            )
        ]
    )

    assert store.centers_path.read_text(encoding="utf-8") == "C001,City Hospital,Solapur,5\n"
    assert store.appointments_path.read_text(encoding="utf-8") == (
        "a-1,123456789012,C001,FIRST,2024-01-10\n"
    )


def test_round_trip(store, citizens):
    """Test saving then loading yields equal records, commas in names included."""
    centers = [
        Center(center_id="C001", name="City Hospital", location="Solapur", daily_capacity=5),
        Center(center_id="C002", name="Health Clinic", location="Solapur East", daily_capacity=3),
    ]
    appointments = [
        Appointment(
            appointment_id=f"a-{i}",
            citizen_id=citizens[i % 2].national_id,
            center_id=centers[i % 2].center_id,
            dose_kind=DoseKind.FIRST,
            date=date(2024, 1, 10 + i),
        )
        for i in range(3)
    ]

    store.save_citizens(citizens)
    store.save_centers(centers)
    store.save_appointments(appointments)

    assert store.load_citizens().records == citizens
    assert store.load_centers().records == centers
    assert store.load_appointments().records == appointments


def test_malformed_lines_are_reported(store):
    """Test bad lines are skipped and counted instead of aborting the load."""
    store.citizens_path.write_text(
        "\n".join(
            [
                "Asha Patil,34,9876543210,123456789012,true,false",
                "too,few,fields",
                "Young One,9,9876543210,111111111111,false,false",
                "",
                "Bad Flag,30,9876543210,222222222222,yes,false",
                "Bad Age,abc,9876543210,333333333333,false,false",
                "Asha Again,50,9876543210,123456789012,false,false",
                "Ravi Kale,40,9123456780,444444444444,FALSE,False",
            ]
        )
        + "\n",
        encoding="utf-8",
    )

    with capture_logs() as logs:
        result = store.load_citizens()

    assert [c.national_id for c in result.records] == ["123456789012", "444444444444"]
    assert result.skipped_count == 5
    assert [s.line_number for s in result.skipped] == [2, 3, 5, 6, 7]
    assert "duplicate key" in result.skipped[-1].reason
    assert any(
        log["event"] == "records_skipped" and log["skipped_count"] == 5 for log in logs
    )


def test_malformed_appointments_and_centers(store):
    """Test unknown dose kinds, bad dates and bad capacities are skipped."""
    store.centers_path.write_text("C001,City,Solapur,5\nC002,Clinic,East,0\nC003,X,Y,many\n")
    store.appointments_path.write_text(
        "a-1,123456789012,C001,FIRST,2024-01-10\n"
        "a-2,123456789012,C001,THIRD,2024-01-10\n"
        "a-3,123456789012,C001,SECOND,10/01/2024\n"
    )

    centers = store.load_centers()
    appointments = store.load_appointments()

    assert [c.center_id for c in centers.records] == ["C001"]
    assert centers.skipped_count == 2
    assert [a.appointment_id for a in appointments.records] == ["a-1"]
    assert appointments.skipped_count == 2


def test_line_breaks_inside_fields_round_trip(store):
    """Test quoted fields spanning lines and Unicode line separators reload intact."""
    citizens = [
        Citizen(
            national_id="123456789012",
            person=PersonInfo(name="Asha Patil", age=34, phone="9876543210"),
        ),
        Citizen(
            national_id="210987654321",
            person=PersonInfo(name="Ravi\nKale\x85Jr", age=40, phone="9123456780"),
        ),
    ]
    centers = [
        Center(center_id="C009", name='North "A"\nWing', location="Solapur\r\nEast", daily_capacity=4),
        Center(center_id="C010", name="Annex", location="Solapur", daily_capacity=2),
    ]

    store.save_citizens(citizens)
    store.save_centers(centers)

    citizens_result = store.load_citizens()
    centers_result = store.load_centers()
    assert citizens_result.records == citizens
    assert citizens_result.skipped_count == 0
    assert centers_result.records == centers
    assert centers_result.skipped_count == 0


def test_skipped_line_numbers_count_physical_lines(store):
    """Test a bad record after a multi-line record is reported at its own line."""
    store.centers_path.write_text(
        'C001,"City\nHospital",Solapur,5\nC002,Clinic,East,0\nC003,Annex,West,2\n',
        encoding="utf-8",
    )

    result = store.load_centers()

    assert [c.center_id for c in result.records] == ["C001", "C003"]
    assert result.records[0].name == "City\nHospital"
    assert [s.line_number for s in result.skipped] == [3]
    assert result.skipped[0].line == "C002,Clinic,East,0"


def test_undecodable_line_is_skipped(store):
    """Test a line that is not UTF-8 is reported and the other lines still load."""
    store.citizens_path.write_bytes(
        b"Asha Patil,34,9876543210,123456789012,true,false\n"
        b"\xff\xfe broken,30,9876543210,222222222222,false,false\n"
        b"Ravi Kale,40,9123456780,444444444444,false,false\n"
    )

    with capture_logs() as logs:
        result = store.load_citizens()

    assert [c.national_id for c in result.records] == ["123456789012", "444444444444"]
    assert result.skipped_count == 1
    assert result.skipped[0].line_number == 2
    assert "UTF-8" in result.skipped[0].reason
    assert "222222222222" in result.skipped[0].line
    assert any(log["event"] == "records_skipped" for log in logs)


def test_unreadable_file_raises(store):
    """Test an existing file that cannot be read is a persistence failure."""
    store.citizens_path.write_text("Asha Patil,34,9876543210,123456789012,true,false\n")

    with patch.object(Path, "read_bytes", side_effect=PermissionError("permission denied")):
        with pytest.raises(PersistenceException) as exc_info:
            store.load_citizens()

    assert exc_info.value.path == store.citizens_path


def test_save_replaces_whole_file(store, citizens):
    """Test every save is a full rewrite."""
    store.save_citizens(citizens)
    store.save_citizens(citizens[1:])

    assert store.load_citizens().records == citizens[1:]


def test_failed_save_keeps_previous_file(store, citizens):
    """Test a write failure leaves the old file intact and no temp files behind."""
    store.save_citizens(citizens)
    before = store.citizens_path.read_text(encoding="utf-8")

    with patch("vaccine_registry.storage.os.replace", side_effect=OSError("disk full")):
        with pytest.raises(PersistenceException) as exc_info:
            store.save_citizens(citizens[:1])

    assert "disk full" in exc_info.value.message
    assert store.citizens_path.read_text(encoding="utf-8") == before
    assert os.listdir(store.citizens_path.parent) == [store.citizens_path.name]


def test_parse_bool():
    """Test only literal true/false are accepted."""
    assert parse_bool("true") is True
    assert parse_bool("False") is False
    with pytest.raises(ValueError):
        parse_bool("1")
