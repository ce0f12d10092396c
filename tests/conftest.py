"""Pytest configuration and shared fixtures for the test suite."""

from collections.abc import Generator
from datetime import date
from pathlib import Path

import pytest

from vaccine_registry.config import Settings
from vaccine_registry.schemas import Center, Citizen
from vaccine_registry.services.registry import VaccineRegistry

TODAY = date(2024, 1, 9)


@pytest.fixture
def settings(tmp_path: Path) -> Settings:
    """Settings pointing every flat file at a temporary directory."""
    return Settings(
        data_dir=tmp_path,
        reminders_enabled=False,
        reminder_initial_delay_seconds=0.01,
        reminder_period_seconds=0.01,
        reminder_shutdown_timeout_seconds=1.0,
    )


@pytest.fixture
def registry(settings: Settings) -> Generator[VaccineRegistry, None, None]:
    """Registry on an empty data directory, scheduler not started, clock fixed."""
    reg = VaccineRegistry(settings, clock=lambda: TODAY, start_scheduler=False)
    yield reg
    reg.shutdown()


@pytest.fixture
def sample_citizen_data() -> dict:
    """Sample citizen registration data."""
    return {
        "name": "Asha Patil",
        "age": 34,
        "phone": "9876543210",
        "national_id": "123456789012",
    }


@pytest.fixture
def citizen(registry: VaccineRegistry, sample_citizen_data: dict) -> Citizen:
    """A registered citizen with no doses completed."""
    return registry.register_citizen(**sample_citizen_data)


@pytest.fixture
def center(registry: VaccineRegistry) -> Center:
    """Center C001 with capacity 2."""
    return registry.add_center("C001", "City Hospital", "Solapur", 2)
