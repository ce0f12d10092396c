"""Command line interface for the vaccine registry."""

import argparse
import sys
from collections.abc import Callable
from datetime import date

import structlog

from vaccine_registry.config import get_settings
from vaccine_registry.core.exceptions import AppException, PersistenceException
from vaccine_registry.core.logging import configure_logging
from vaccine_registry.schemas import DoseKind
from vaccine_registry.seed import seed_centers_if_empty
from vaccine_registry.services.registry import VaccineRegistry

logger = structlog.get_logger(__name__)

EXIT_OK = 0
EXIT_ERROR = 1
EXIT_NOT_PERSISTED = 2

REPORT_BAR_WIDTH = 40


# =========================
# Rendering helpers
# =========================
def render_report(counts: dict[str, int], width: int = REPORT_BAR_WIDTH) -> list[str]:
    """Text bar chart of appointments per center."""
    if not counts:
        return ["No centers."]
    peak = max(counts.values()) or 1
    label_width = max(len(center_id) for center_id in counts)
    lines = []
    for center_id, count in counts.items():
        bar = "#" * round(count * width / peak)
        lines.append(f"{center_id.ljust(label_width)} | {bar} {count}")
    return lines


def print_citizen_status(registry: VaccineRegistry, national_id: str) -> None:
    print(registry.find_citizen(national_id))
    appointments = registry.find_appointments_by_citizen(national_id)
    if not appointments:
        print("No appointments.")
        return
    print("Appointments:")
    for a in appointments:
        print(f" - {a}")


# =========================
# Subcommands
# =========================
def cmd_register(registry: VaccineRegistry, args: argparse.Namespace) -> None:
    citizen = registry.register_citizen(args.name, args.age, args.phone, args.id)
    print(f"Citizen registered: {citizen.national_id}")


def cmd_find(registry: VaccineRegistry, args: argparse.Namespace) -> None:
    print(registry.find_citizen(args.id))


def cmd_add_center(registry: VaccineRegistry, args: argparse.Namespace) -> None:
    center = registry.add_center(args.center_id, args.name, args.location, args.capacity)
    print(f"Center added: {center}")


def cmd_list_centers(registry: VaccineRegistry, args: argparse.Namespace) -> None:
    centers = registry.list_centers()
    if not centers:
        print("No centers.")
        return
    print("--- Centers ---")
    for c in centers:
        print(c)


def cmd_set_capacity(registry: VaccineRegistry, args: argparse.Namespace) -> None:
    center = registry.update_center_capacity(args.center_id, args.capacity)
    print(f"Capacity updated: {center}")


def cmd_book(registry: VaccineRegistry, args: argparse.Namespace) -> None:
    appointment = registry.book_appointment(args.id, args.center_id, args.dose, args.date)
    print(f"Booked: {appointment.appointment_id}")


def cmd_complete(registry: VaccineRegistry, args: argparse.Namespace) -> None:
    citizen = registry.mark_dose_completed(args.appointment_id)
    print(f"Marked completed. {citizen}")


def cmd_status(registry: VaccineRegistry, args: argparse.Namespace) -> None:
    print_citizen_status(registry, args.id)


def cmd_report(registry: VaccineRegistry, args: argparse.Namespace) -> None:
    print("--- Doses per center ---")
    for line in render_report(registry.doses_per_center()):
        print(line)


def cmd_seed(registry: VaccineRegistry, args: argparse.Namespace) -> None:
    added = seed_centers_if_empty(registry)
    print(f"Seeded {len(added)} default centers." if added else "Centers already present.")


def cmd_menu(registry: VaccineRegistry, args: argparse.Namespace) -> None:
    seed_centers_if_empty(registry)
    run_menu(registry)


# =========================
# Interactive menu
# =========================
MENU = """
=== Vaccine Management System ===
1. Register Citizen
2. List Centers
3. Book Dose 1
4. Book Dose 2
5. Mark Dose Completed
6. Show Citizen Status
7. Doses per Center Report
8. Exit"""


def run_menu(registry: VaccineRegistry, input_fn: Callable[[str], str] = input) -> None:
    """
    Interactive console loop.

    Domain errors and bad input are printed and the loop continues.
    Returns on option 8 or end of input.
    """

    def ask(prompt: str) -> str:
        return input_fn(prompt).strip()

    def book(dose_kind: DoseKind) -> None:
        national_id = ask("National ID: ")
        center_id = ask("Center ID: ")
        day = date.fromisoformat(ask("Date (YYYY-MM-DD): "))
        appointment = registry.book_appointment(national_id, center_id, dose_kind, day)
        print(f"Booked: {appointment.appointment_id}")

    def register() -> None:
        name = ask("Name: ")
        age = int(ask("Age: "))
        phone = ask("Phone (10 digits): ")
        national_id = ask("National ID (12 digits): ")
        registry.register_citizen(name, age, phone, national_id)
        print("Citizen registered.")

    def complete() -> None:
        citizen = registry.mark_dose_completed(ask("Appointment ID: "))
        print(f"Marked completed. {citizen}")

    actions: dict[str, Callable[[], None]] = {
        "1": register,
        "2": lambda: cmd_list_centers(registry, argparse.Namespace()),
        "3": lambda: book(DoseKind.FIRST),
        "4": lambda: book(DoseKind.SECOND),
        "5": complete,
        "6": lambda: print_citizen_status(registry, ask("National ID: ")),
        "7": lambda: cmd_report(registry, argparse.Namespace()),
    }

    while True:
        print(MENU)
        try:
            choice = ask("Choose option: ")
        except EOFError:
            return
        if choice == "8":
            print("Goodbye!")
            return
        action = actions.get(choice)
        if action is None:
            print("Invalid option.")
            continue
        try:
            action()
        except PersistenceException as e:
            print(f"Warning: {e.message}")
        except AppException as e:
            print(f"Error: {e.message}")
        except ValueError as e:
            print(f"Invalid input: {e}")
        except EOFError:
            return


# =========================
# Parser
# =========================
def _dose_kind(value: str) -> DoseKind:
    aliases = {"1": DoseKind.FIRST, "2": DoseKind.SECOND}
    try:
        return aliases.get(value) or DoseKind(value.upper())
    except ValueError:
        raise argparse.ArgumentTypeError(f"invalid dose kind: {value!r}") from None


def _iso_date(value: str) -> date:
    try:
        return date.fromisoformat(value)
    except ValueError:
        raise argparse.ArgumentTypeError(f"invalid date (YYYY-MM-DD): {value!r}") from None


def build_parser() -> argparse.ArgumentParser:
    p = argparse.ArgumentParser(
        prog="vaccine-registry", description="Citizen vaccination registry and dose booking"
    )
    sub = p.add_subparsers(required=True)

    p_reg = sub.add_parser("register", help="Register a citizen")
    p_reg.add_argument("--name", required=True)
    p_reg.add_argument("--age", type=int, required=True)
    p_reg.add_argument("--phone", required=True, help="10 digits")
    p_reg.add_argument("--id", required=True, help="12-digit national ID")
    p_reg.set_defaults(func=cmd_register)

    p_find = sub.add_parser("find", help="Show a citizen")
    p_find.add_argument("--id", required=True)
    p_find.set_defaults(func=cmd_find)

    p_center = sub.add_parser("add-center", help="Add a vaccination center")
    p_center.add_argument("--center-id", required=True)
    p_center.add_argument("--name", required=True)
    p_center.add_argument("--location", required=True)
    p_center.add_argument("--capacity", type=int, required=True)
    p_center.set_defaults(func=cmd_add_center)

    p_list = sub.add_parser("list-centers", help="List centers")
    p_list.set_defaults(func=cmd_list_centers)

    p_cap = sub.add_parser("set-capacity", help="Change a center's daily capacity")
    p_cap.add_argument("--center-id", required=True)
    p_cap.add_argument("--capacity", type=int, required=True)
    p_cap.set_defaults(func=cmd_set_capacity)

    p_book = sub.add_parser("book", help="Book a dose appointment")
    p_book.add_argument("--id", required=True, help="Citizen national ID")
    p_book.add_argument("--center-id", required=True)
    p_book.add_argument("--dose", type=_dose_kind, required=True, help="FIRST/SECOND or 1/2")
    p_book.add_argument("--date", type=_iso_date, required=True, help="YYYY-MM-DD")
    p_book.set_defaults(func=cmd_book)

    p_done = sub.add_parser("complete", help="Mark an appointment's dose as completed")
    p_done.add_argument("--appointment-id", required=True)
    p_done.set_defaults(func=cmd_complete)

    p_status = sub.add_parser("status", help="Citizen status and appointments")
    p_status.add_argument("--id", required=True)
    p_status.set_defaults(func=cmd_status)

    p_report = sub.add_parser("report", help="Appointments per center")
    p_report.set_defaults(func=cmd_report)

    p_seed = sub.add_parser("seed", help="Add default centers if none exist")
    p_seed.set_defaults(func=cmd_seed)

    p_menu = sub.add_parser("menu", help="Interactive console with reminders running")
    p_menu.set_defaults(func=cmd_menu, reminders=True)

    return p


def main(argv: list[str] | None = None) -> int:
    parser = build_parser()
    args = parser.parse_args(argv)

    settings = get_settings()
    configure_logging(settings)

    try:
        registry = VaccineRegistry(
            settings, start_scheduler=getattr(args, "reminders", False) and settings.reminders_enabled
        )
    except PersistenceException as e:
        print(f"Error: {e.message}", file=sys.stderr)
        return EXIT_ERROR

    with registry:
        try:
            args.func(registry, args)
        except PersistenceException as e:
            print(f"Warning: {e.message}", file=sys.stderr)
            return EXIT_NOT_PERSISTED
        except AppException as e:
            print(f"Error: {e.message}", file=sys.stderr)
            return EXIT_ERROR
        except Exception:
            logger.exception("unexpected_error")
            print("Unexpected error, see log for details.", file=sys.stderr)
            return EXIT_ERROR

    return EXIT_OK


if __name__ == "__main__":
    sys.exit(main())
