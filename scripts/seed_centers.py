"""Script to seed the default vaccination centers."""

from vaccine_registry.config import get_settings
from vaccine_registry.core.logging import configure_logging
from vaccine_registry.seed import seed_centers_if_empty
from vaccine_registry.services.registry import VaccineRegistry


def seed() -> None:
    """Add the default centers to the configured data directory if it has none."""
    settings = get_settings()
    configure_logging(settings)

    with VaccineRegistry(settings, start_scheduler=False) as registry:
        added = seed_centers_if_empty(registry)

    if added:
        print(f"✓ Seeded {len(added)} centers into {settings.centers_path}")
    else:
        print("✓ Centers already present, nothing to do")


if __name__ == "__main__":
    seed()
