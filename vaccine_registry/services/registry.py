"""Registry service: in-memory store for citizens, centers and appointments."""

import threading
import uuid
from collections.abc import Callable
from datetime import date
from typing import Any

import structlog

from vaccine_registry.config import Settings
from vaccine_registry.core.exceptions import (
    CapacityExceededException,
    DuplicateEntityException,
    IneligibleTransitionException,
    InvalidFormatException,
    NotFoundException,
    PersistenceException,
)
from vaccine_registry.core.validators import (
    validate_age,
    validate_capacity,
    validate_center_id,
    validate_id,
    validate_phone,
)
from vaccine_registry.schemas import (
    Appointment,
    Center,
    Citizen,
    DoseKind,
    PersonInfo,
    Reminder,
)
from vaccine_registry.services.reminder_service import ReminderScheduler
from vaccine_registry.storage import FlatFileStore, LoadResult

logger = structlog.get_logger(__name__)


def new_appointment_id() -> str:
    return str(uuid.uuid4())


class VaccineRegistry:
    """
    Service for citizen registration, center management and dose booking.

    All three collections live in insertion-ordered dicts guarded by one
    lock. Every mutation is applied in memory first and then the affected
    collection is rewritten on disk. A failed write raises
    ``PersistenceException`` carrying the in-memory record; the change is
    not rolled back.
    """

    def __init__(
        self,
        settings: Settings,
        store: FlatFileStore | None = None,
        clock: Callable[[], date] = date.today,
        notifier: Callable[[Reminder], None] | None = None,
        start_scheduler: bool | None = None,
    ):
        """
        Load persisted state and start the reminder scheduler.

        Args:
            settings: Application settings
            store: Storage backend (defaults to flat files from settings)
            clock: Returns today's date for reminder ticks
            notifier: Receives each reminder (defaults to a log event)
            start_scheduler: Override ``settings.reminders_enabled``
        """
        self.settings = settings
        self.store = store or FlatFileStore(settings)

        self._lock = threading.RLock()
        self._citizens: dict[str, Citizen] = {}
        self._centers: dict[str, Center] = {}
        self._appointments: dict[str, Appointment] = {}

        self.load_report: dict[str, LoadResult] = {}
        self._load_all()

        self.scheduler = ReminderScheduler(
            registry=self,
            initial_delay=settings.reminder_initial_delay_seconds,
            period=settings.reminder_period_seconds,
            shutdown_timeout=settings.reminder_shutdown_timeout_seconds,
            clock=clock,
            notifier=notifier,
        )
        enabled = settings.reminders_enabled if start_scheduler is None else start_scheduler
        if enabled:
            self.scheduler.start()

    def __enter__(self) -> "VaccineRegistry":
        return self

    def __exit__(self, *exc_info: Any) -> None:
        self.shutdown()

    # =========================================================================
    # Persistence
    # =========================================================================

    def _load_all(self) -> None:
        citizens = self.store.load_citizens()
        centers = self.store.load_centers()
        appointments = self.store.load_appointments()

        with self._lock:
            self._citizens = {c.national_id: c for c in citizens.records}
            self._centers = {c.center_id: c for c in centers.records}
            self._appointments = {a.appointment_id: a for a in appointments.records}

        self.load_report = {
            "citizens": citizens,
            "centers": centers,
            "appointments": appointments,
        }
        logger.info(
            "registry_loaded",
            citizens=citizens.loaded_count,
            centers=centers.loaded_count,
            appointments=appointments.loaded_count,
            skipped=sum(r.skipped_count for r in self.load_report.values()),
        )

    def _persist(self, save: Callable[[list[Any]], None], records: list[Any], record: Any) -> None:
        try:
            save(records)
        except PersistenceException as e:
            raise PersistenceException(
                f"{e.message} (change kept in memory only)", path=e.path, record=record
            ) from e

    # =========================================================================
    # Citizens
    # =========================================================================

    def register_citizen(self, name: str, age: int, phone: str, national_id: str) -> Citizen:
        """
        Register a new citizen with no doses completed.

        Age, phone and ID are checked in that order; the first failure wins.

        Args:
            name: Display name
            age: Age in years
            phone: 10-digit phone number
            national_id: 12-digit national ID

        Returns:
            The created citizen

        Raises:
            IneligibleAgeException: Age below the minimum
            InvalidFormatException: Bad phone, ID or name
            DuplicateEntityException: ID already registered
            PersistenceException: Citizen registered in memory but not saved
        """
        validate_age(age)
        validate_phone(phone)
        validate_id(national_id)
        name = (name or "").strip()
        if not name:
            raise InvalidFormatException("Name must not be empty.")

        with self._lock:
            if national_id in self._citizens:
                raise DuplicateEntityException(f"Citizen already registered: {national_id}")

            citizen = Citizen(
                national_id=national_id,
                person=PersonInfo(name=name, age=age, phone=phone),
            )
            self._citizens[national_id] = citizen
            logger.info("citizen_registered", national_id=national_id)
            self._persist(self.store.save_citizens, list(self._citizens.values()), citizen)

        return citizen

    def find_citizen(self, national_id: str) -> Citizen:
        """Get citizen by national ID or raise NotFoundException."""
        with self._lock:
            citizen = self._citizens.get(national_id)
        if citizen is None:
            raise NotFoundException(f"Citizen not found: {national_id}")
        return citizen

    def get_citizen_or_none(self, national_id: str) -> Citizen | None:
        with self._lock:
            return self._citizens.get(national_id)

    def list_citizens(self) -> list[Citizen]:
        with self._lock:
            return list(self._citizens.values())

    def mark_dose_completed(self, appointment_id: str) -> Citizen:
        """
        Mark the dose of an appointment as completed on its citizen.

        Completing an already completed dose is a no-op apart from the
        rewrite of the citizens file.

        Returns:
            The citizen after the update

        Raises:
            NotFoundException: Appointment or its citizen is missing
            PersistenceException: Flag set in memory but not saved
        """
        with self._lock:
            appointment = self._appointments.get(appointment_id)
            if appointment is None:
                raise NotFoundException(f"Appointment not found: {appointment_id}")
            citizen = self._citizens.get(appointment.citizen_id)
            if citizen is None:
                raise NotFoundException(
                    f"Citizen not found for appointment {appointment_id}: {appointment.citizen_id}"
                )

            updated = citizen.with_dose_completed(appointment.dose_kind)
            self._citizens[citizen.national_id] = updated
            logger.info(
                "dose_completed",
                appointment_id=appointment_id,
                national_id=citizen.national_id,
                dose_kind=appointment.dose_kind.value,
                already_completed=updated is citizen,
            )
            self._persist(self.store.save_citizens, list(self._citizens.values()), updated)

        return updated

    # =========================================================================
    # Centers
    # =========================================================================

    def add_center(self, center_id: str, name: str, location: str, capacity: int) -> Center:
        """
        Add a vaccination center.

        Raises:
            InvalidFormatException: Empty ID or non-positive capacity
            DuplicateEntityException: Center ID already exists
            PersistenceException: Center added in memory but not saved
        """
        validate_center_id(center_id)
        validate_capacity(capacity)

        with self._lock:
            if center_id in self._centers:
                raise DuplicateEntityException(f"Center already exists: {center_id}")

            center = Center(center_id=center_id, name=name, location=location, daily_capacity=capacity)
            self._centers[center_id] = center
            logger.info("center_added", center_id=center_id, daily_capacity=capacity)
            self._persist(self.store.save_centers, list(self._centers.values()), center)

        return center

    def get_center(self, center_id: str) -> Center:
        """Get center by ID or raise NotFoundException."""
        with self._lock:
            center = self._centers.get(center_id)
        if center is None:
            raise NotFoundException(f"Center not found: {center_id}")
        return center

    def get_center_or_none(self, center_id: str) -> Center | None:
        with self._lock:
            return self._centers.get(center_id)

    def list_centers(self) -> list[Center]:
        """Snapshot of all centers in insertion order."""
        with self._lock:
            return list(self._centers.values())

    def update_center_capacity(self, center_id: str, capacity: int) -> Center:
        """
        Change a center's daily capacity.

        Bookings already made are kept even if they now exceed the new
        capacity; only later bookings are checked against it.
        """
        validate_capacity(capacity)

        with self._lock:
            center = self._centers.get(center_id)
            if center is None:
                raise NotFoundException(f"Center not found: {center_id}")

            updated = center.model_copy(update={"daily_capacity": capacity})
            self._centers[center_id] = updated
            logger.info(
                "center_capacity_updated",
                center_id=center_id,
                old_capacity=center.daily_capacity,
                new_capacity=capacity,
            )
            self._persist(self.store.save_centers, list(self._centers.values()), updated)

        return updated

    # =========================================================================
    # Appointments
    # =========================================================================

    def book_appointment(
        self,
        citizen_id: str,
        center_id: str,
        dose_kind: DoseKind,
        day: date,
    ) -> Appointment:
        """
        Book a dose slot at a center on a calendar day.

        A center admits at most ``daily_capacity`` appointments per day;
        requests beyond that are rejected, never queued.

        Args:
            citizen_id: National ID of a registered citizen
            center_id: Existing center ID
            dose_kind: FIRST or SECOND
            day: Appointment date

        Returns:
            The created appointment

        Raises:
            NotFoundException: Unknown citizen or center
            IneligibleTransitionException: SECOND dose before FIRST is completed
            CapacityExceededException: No slots left for that center and day
            PersistenceException: Booked in memory but not saved
        """
        dose_kind = DoseKind(dose_kind)

        with self._lock:
            citizen = self.find_citizen(citizen_id)
            center = self.get_center(center_id)

            if dose_kind is DoseKind.SECOND and not citizen.dose1_completed:
                raise IneligibleTransitionException(
                    "Second dose cannot be booked before the first dose is completed."
                )

            booked = sum(
                1
                for a in self._appointments.values()
                if a.center_id == center_id and a.date == day
            )
            if booked >= center.daily_capacity:
                logger.info(
                    "capacity_exceeded",
                    center_id=center_id,
                    date=day.isoformat(),
                    booked=booked,
                    daily_capacity=center.daily_capacity,
                )
                raise CapacityExceededException(
                    f"No slots available at {center.name} on {day.isoformat()}"
                )

            appointment_id = new_appointment_id()
            while appointment_id in self._appointments:
                appointment_id = new_appointment_id()

            appointment = Appointment(
                appointment_id=appointment_id,
                citizen_id=citizen_id,
                center_id=center_id,
                dose_kind=dose_kind,
                date=day,
            )
            self._appointments[appointment_id] = appointment
            logger.info(
                "appointment_booked",
                appointment_id=appointment_id,
                national_id=citizen_id,
                center_id=center_id,
                dose_kind=dose_kind.value,
                date=day.isoformat(),
            )
            self._persist(
                self.store.save_appointments, list(self._appointments.values()), appointment
            )

        return appointment

    def find_appointments_by_citizen(self, citizen_id: str) -> list[Appointment]:
        """Citizen's appointments by ascending date, ties in booking order."""
        with self._lock:
            matches = [a for a in self._appointments.values() if a.citizen_id == citizen_id]
        return sorted(matches, key=lambda a: a.date)

    def appointments_on(self, day: date) -> list[Appointment]:
        """All appointments on a calendar day, in booking order."""
        with self._lock:
            return [a for a in self._appointments.values() if a.date == day]

    def doses_per_center(self) -> dict[str, int]:
        """
        Count appointments per center ID.

        Every known center starts at zero. Appointments pointing at an
        unknown center are still counted under their center ID.
        """
        with self._lock:
            counts = {center_id: 0 for center_id in self._centers}
            for appointment in self._appointments.values():
                counts[appointment.center_id] = counts.get(appointment.center_id, 0) + 1
        return counts

    # =========================================================================
    # Lifecycle
    # =========================================================================

    def shutdown(self) -> None:
        """Stop the reminder scheduler, waiting at most the configured timeout."""
        self.scheduler.stop()
