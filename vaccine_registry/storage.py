"""Flat-file storage for citizens, centers and appointments."""

import csv
import os
import tempfile
from collections.abc import Callable, Iterable, Iterator
from datetime import date
from pathlib import Path
from typing import Any

import structlog
from pydantic import BaseModel

from vaccine_registry.config import Settings
from vaccine_registry.core.exceptions import PersistenceException
from vaccine_registry.schemas import Appointment, Center, Citizen, DoseKind, PersonInfo

logger = structlog.get_logger(__name__)

CITIZEN_FIELDS = ("name", "age", "phone", "id", "dose1Completed", "dose2Completed")
CENTER_FIELDS = ("centerId", "name", "location", "dailyCapacity")
APPOINTMENT_FIELDS = ("appointmentId", "citizenId", "centerId", "doseKind", "date")


# ============================================================================
# Field codecs
# ============================================================================


def format_bool(value: bool) -> str:
    """Render a boolean as literal true/false."""
    return "true" if value else "false"


def parse_bool(raw: str) -> bool:
    """Parse literal true/false (case-insensitive); anything else is malformed."""
    lowered = raw.strip().lower()
    if lowered == "true":
        return True
    if lowered == "false":
        return False
    raise ValueError(f"expected true/false, got {raw!r}")


def encode_citizen(citizen: Citizen) -> list[str]:
    return [
        citizen.name,
        str(citizen.age),
        citizen.phone,
        citizen.national_id,
        format_bool(citizen.dose1_completed),
        format_bool(citizen.dose2_completed),
    ]


def decode_citizen(fields: list[str]) -> Citizen:
    name, age, phone, national_id, dose1, dose2 = fields
    return Citizen(
        national_id=national_id,
        person=PersonInfo(name=name, age=int(age), phone=phone),
        dose1_completed=parse_bool(dose1),
        dose2_completed=parse_bool(dose2),
    )


def encode_center(center: Center) -> list[str]:
    return [center.center_id, center.name, center.location, str(center.daily_capacity)]


def decode_center(fields: list[str]) -> Center:
    center_id, name, location, capacity = fields
    return Center(
        center_id=center_id,
        name=name,
        location=location,
        daily_capacity=int(capacity),
    )


def encode_appointment(appointment: Appointment) -> list[str]:
    return [
        appointment.appointment_id,
        appointment.citizen_id,
        appointment.center_id,
        appointment.dose_kind.value,
        appointment.date.isoformat(),
    ]


def decode_appointment(fields: list[str]) -> Appointment:
    appointment_id, citizen_id, center_id, dose_kind, raw_date = fields
    return Appointment(
        appointment_id=appointment_id,
        citizen_id=citizen_id,
        center_id=center_id,
        dose_kind=DoseKind(dose_kind),
        date=date.fromisoformat(raw_date),
    )


# ============================================================================
# Load results
# ============================================================================


class SkippedLine(BaseModel):
    """A line that could not be turned into a record."""

    line_number: int
    line: str
    reason: str


class LoadResult(BaseModel):
    """Records parsed from one file plus the lines that were skipped."""

    path: Path
    records: list[Any] = []
    skipped: list[SkippedLine] = []

    @property
    def loaded_count(self) -> int:
        return len(self.records)

    @property
    def skipped_count(self) -> int:
        return len(self.skipped)


# ============================================================================
# Store
# ============================================================================


class FlatFileStore:
    """
    Reads and writes each collection as a comma-separated file.

    One record per line, no header. Fields containing a comma, quote or
    line break are quoted the way the ``csv`` module does it, so a quoted
    field may continue onto the next line; plain values are written bare.
    """

    def __init__(self, settings: Settings):
        """Initialize store with file locations from settings."""
        self.citizens_path = settings.citizens_path
        self.centers_path = settings.centers_path
        self.appointments_path = settings.appointments_path

    def load_citizens(self) -> LoadResult:
        return self._load(self.citizens_path, CITIZEN_FIELDS, decode_citizen, lambda c: c.national_id)

    def load_centers(self) -> LoadResult:
        return self._load(self.centers_path, CENTER_FIELDS, decode_center, lambda c: c.center_id)

    def load_appointments(self) -> LoadResult:
        return self._load(
            self.appointments_path,
            APPOINTMENT_FIELDS,
            decode_appointment,
            lambda a: a.appointment_id,
        )

    def save_citizens(self, citizens: Iterable[Citizen]) -> None:
        self._save(self.citizens_path, (encode_citizen(c) for c in citizens))

    def save_centers(self, centers: Iterable[Center]) -> None:
        self._save(self.centers_path, (encode_center(c) for c in centers))

    def save_appointments(self, appointments: Iterable[Appointment]) -> None:
        self._save(self.appointments_path, (encode_appointment(a) for a in appointments))

    def _load(
        self,
        path: Path,
        field_names: tuple[str, ...],
        decode: Callable[[list[str]], Any],
        key: Callable[[Any], str],
    ) -> LoadResult:
        """
        Parse every record of ``path``.

        A missing file is an empty collection. Blank lines are ignored.
        Only ``\\n`` and ``\\r`` end a physical line; a quoted field may span
        several of them. Lines that are not valid UTF-8, records with the
        wrong field count, unparseable values or a key already seen earlier
        in the file are reported in ``skipped`` and the rest still load.

        Raises:
            PersistenceException: If the file exists but cannot be read
        """
        result = LoadResult(path=path)
        try:
            raw = path.read_bytes()
        except FileNotFoundError:
            return result
        except OSError as e:
            logger.error("load_failed", path=str(path), error=str(e))
            raise PersistenceException(f"Could not read {path}: {e}", path=path) from e

        # (line number, text) of each physical line read for the current record
        consumed: list[tuple[int, str]] = []

        def decoded_lines() -> Iterator[str]:
            for line_number, chunk in enumerate(raw.splitlines(keepends=True), start=1):
                try:
                    text = chunk.decode("utf-8")
                except UnicodeDecodeError as e:
                    result.skipped.append(
                        SkippedLine(
                            line_number=line_number,
                            line=chunk.decode("utf-8", errors="replace").rstrip("\r\n"),
                            reason=f"invalid UTF-8: {e}",
                        )
                    )
                    continue
                consumed.append((line_number, text))
                yield text

        reader = csv.reader(decoded_lines())
        seen: set[str] = set()
        while True:
            consumed.clear()
            try:
                fields = next(reader)
            except StopIteration:
                break
            except csv.Error as e:
                self._skip(result, consumed, str(e))
                continue
            if fields == [] or (len(fields) == 1 and not fields[0].strip()):
                continue
            try:
                if len(fields) != len(field_names):
                    raise ValueError(
                        f"expected {len(field_names)} fields "
                        f"({','.join(field_names)}), got {len(fields)}"
                    )
                record = decode(fields)
                record_key = key(record)
                if record_key in seen:
                    raise ValueError(f"duplicate key {record_key!r}")
            except ValueError as e:
                self._skip(result, consumed, str(e))
                continue
            seen.add(record_key)
            result.records.append(record)

        result.skipped.sort(key=lambda s: s.line_number)
        if result.skipped:
            logger.warning(
                "records_skipped",
                path=str(path),
                skipped_count=result.skipped_count,
                loaded_count=result.loaded_count,
                first_line=result.skipped[0].line_number,
            )
        return result

    @staticmethod
    def _skip(result: LoadResult, consumed: list[tuple[int, str]], reason: str) -> None:
        line_number = consumed[0][0] if consumed else 0
        line = "".join(text for _, text in consumed).rstrip("\r\n")
        result.skipped.append(SkippedLine(line_number=line_number, line=line, reason=reason))

    def _save(self, path: Path, rows: Iterable[list[str]]) -> None:
        """
        Rewrite ``path`` with ``rows``.

        Rows go to a temporary file in the same directory which then
        replaces the target, so a failed write leaves the old file intact.

        Raises:
            PersistenceException: On any I/O error
        """
        tmp_name: str | None = None
        try:
            path.parent.mkdir(parents=True, exist_ok=True)
            with tempfile.NamedTemporaryFile(
                "w",
                dir=path.parent,
                prefix=f".{path.name}.",
                suffix=".tmp",
                newline="",
                encoding="utf-8",
                delete=False,
            ) as tmp:
                tmp_name = tmp.name
                writer = csv.writer(tmp, lineterminator="\n")
                writer.writerows(rows)
                tmp.flush()
                os.fsync(tmp.fileno())
            os.replace(tmp_name, path)
        except OSError as e:
            if tmp_name is not None:
                Path(tmp_name).unlink(missing_ok=True)
            logger.error("persistence_failed", path=str(path), error=str(e))
            raise PersistenceException(f"Could not save {path}: {e}", path=path) from e
