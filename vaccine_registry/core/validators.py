"""Field format and eligibility checks run before any registry mutation."""

import re

from vaccine_registry.core.exceptions import IneligibleAgeException, InvalidFormatException

NATIONAL_ID_DIGITS = 12
PHONE_DIGITS = 10
MIN_ELIGIBLE_AGE = 12

NATIONAL_ID_PATTERN = rf"^[0-9]{{{NATIONAL_ID_DIGITS}}}$"
PHONE_PATTERN = rf"^[0-9]{{{PHONE_DIGITS}}}$"

_national_id_re = re.compile(NATIONAL_ID_PATTERN)
_phone_re = re.compile(PHONE_PATTERN)


def validate_id(national_id: str | None) -> str:
    """
    Check a citizen national ID.

    Args:
        national_id: Candidate ID

    Returns:
        The ID unchanged

    Raises:
        InvalidFormatException: Unless the ID is exactly 12 ASCII digits
    """
    if not isinstance(national_id, str) or not _national_id_re.fullmatch(national_id):
        raise InvalidFormatException(
            f"Invalid national ID. Must be {NATIONAL_ID_DIGITS} digits."
        )
    return national_id


def validate_phone(phone: str | None) -> str:
    """
    Check a phone number.

    Raises:
        InvalidFormatException: Unless the phone is exactly 10 ASCII digits
    """
    if not isinstance(phone, str) or not _phone_re.fullmatch(phone):
        raise InvalidFormatException(f"Invalid phone. Must be {PHONE_DIGITS} digits.")
    return phone


def validate_age(age: int) -> int:
    """
    Check eligibility by age.

    Raises:
        InvalidFormatException: If age is not a whole number
        IneligibleAgeException: If age is below the minimum eligible age
    """
    if isinstance(age, bool) or not isinstance(age, int):
        raise InvalidFormatException(f"Age must be a whole number, got {age!r}.")
    if age < MIN_ELIGIBLE_AGE:
        raise IneligibleAgeException(f"Age must be {MIN_ELIGIBLE_AGE} or above.")
    return age


def validate_center_id(center_id: str | None) -> str:
    """Reject empty or blank center IDs."""
    if not center_id or not center_id.strip():
        raise InvalidFormatException("Center ID required.")
    return center_id


def validate_capacity(capacity: int) -> int:
    """Daily capacity must be a positive integer."""
    # bool is an int subclass; True must not pass as a capacity of 1
    if isinstance(capacity, bool) or not isinstance(capacity, int) or capacity <= 0:
        raise InvalidFormatException(
            f"Daily capacity must be a positive integer, got {capacity!r}."
        )
    return capacity
