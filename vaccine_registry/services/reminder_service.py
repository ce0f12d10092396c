"""Background reminders for next-day appointments."""

import threading
from collections.abc import Callable
from datetime import date, timedelta
from typing import TYPE_CHECKING

import structlog

from vaccine_registry.schemas import Reminder

if TYPE_CHECKING:
    from vaccine_registry.services.registry import VaccineRegistry

logger = structlog.get_logger(__name__)


def log_reminder(reminder: Reminder) -> None:
    """Default notifier: emit the reminder as a log event."""
    logger.info(
        "appointment_reminder",
        appointment_id=reminder.appointment_id,
        citizen_name=reminder.citizen_name,
        phone=reminder.phone,
        center_id=reminder.center_id,
        center_name=reminder.center_name,
        dose_kind=reminder.dose_kind.value,
        date=reminder.date.isoformat(),
        message=reminder.message,
    )


class ReminderScheduler:
    """
    Periodic task that notifies citizens booked for tomorrow.

    Runs on its own daemon thread: waits ``initial_delay`` seconds, then
    runs a tick every ``period`` seconds until stopped. The registry owns
    the scheduler and stops it on shutdown.
    """

    def __init__(
        self,
        registry: "VaccineRegistry",
        initial_delay: float,
        period: float,
        shutdown_timeout: float = 5.0,
        clock: Callable[[], date] = date.today,
        notifier: Callable[[Reminder], None] | None = None,
    ):
        """Initialize scheduler; nothing runs until ``start()``."""
        self.registry = registry
        self.initial_delay = initial_delay
        self.period = period
        self.shutdown_timeout = shutdown_timeout
        self.clock = clock
        self.notifier = notifier or log_reminder

        self._stop_event = threading.Event()
        self._thread: threading.Thread | None = None

    @property
    def is_running(self) -> bool:
        return self._thread is not None and self._thread.is_alive()

    def start(self) -> None:
        """Start the background thread. Starting twice is a no-op."""
        if self._thread is not None:
            return
        self._thread = threading.Thread(target=self._run, name="ReminderScheduler", daemon=True)
        self._thread.start()
        logger.info("reminder_scheduler_started", initial_delay=self.initial_delay, period=self.period)

    def stop(self, timeout: float | None = None) -> bool:
        """
        Stop scheduling further ticks.

        A tick already in progress is not interrupted, but the wait for it
        is bounded by ``timeout`` (default ``shutdown_timeout``).

        Returns:
            True if the thread has exited (or never started)
        """
        self._stop_event.set()
        thread = self._thread
        if thread is None or thread is threading.current_thread():
            return True

        wait = self.shutdown_timeout if timeout is None else timeout
        thread.join(wait)
        if thread.is_alive():
            logger.warning("reminder_shutdown_timeout", timeout=wait)
            return False

        logger.info("reminder_scheduler_stopped")
        return True

    def _run(self) -> None:
        if self._stop_event.wait(self.initial_delay):
            return
        while True:
            try:
                self.run_tick()
            except Exception:
                logger.exception("reminder_tick_failed")
            if self._stop_event.wait(self.period):
                return

    def run_tick(self) -> list[Reminder]:
        """
        Notify every citizen with an appointment tomorrow.

        An appointment whose citizen is missing, or whose notification
        fails, is logged and skipped; the rest of the tick continues.

        Returns:
            Reminders that were delivered to the notifier
        """
        tomorrow = self.clock() + timedelta(days=1)
        appointments = self.registry.appointments_on(tomorrow)
        if not appointments:
            return []

        logger.info("reminder_tick", date=tomorrow.isoformat(), appointments=len(appointments))

        sent: list[Reminder] = []
        for appointment in appointments:
            citizen = self.registry.get_citizen_or_none(appointment.citizen_id)
            if citizen is None:
                logger.warning(
                    "reminder_citizen_missing",
                    appointment_id=appointment.appointment_id,
                    national_id=appointment.citizen_id,
                )
                continue

            center = self.registry.get_center_or_none(appointment.center_id)
            reminder = Reminder(
                appointment_id=appointment.appointment_id,
                citizen_name=citizen.name,
                phone=citizen.phone,
                center_id=appointment.center_id,
                center_name=center.name if center else None,
                dose_kind=appointment.dose_kind,
                date=appointment.date,
            )
            try:
                self.notifier(reminder)
            except Exception:
                logger.exception(
                    "reminder_notify_failed", appointment_id=appointment.appointment_id
                )
                continue
            sent.append(reminder)

        return sent
