"""Default vaccination centers."""

import structlog

from vaccine_registry.schemas import Center
from vaccine_registry.services.registry import VaccineRegistry

logger = structlog.get_logger(__name__)

DEFAULT_CENTERS = [
    ("C001", "City Hospital", "Solapur", 5),
    ("C002", "Health Clinic", "Solapur East", 3),
]


def seed_centers_if_empty(registry: VaccineRegistry) -> list[Center]:
    """
    Add the default centers when the registry has none.

    Returns:
        The centers that were added (empty if centers already existed)
    """
    if registry.list_centers():
        return []

    added = [registry.add_center(*row) for row in DEFAULT_CENTERS]
    logger.info("centers_seeded", count=len(added))
    return added
