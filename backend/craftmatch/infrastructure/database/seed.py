"""Start-up seeding of sample artisan profiles from packaged YAML."""

import logging
from pathlib import Path

import yaml

from craftmatch.infrastructure.database.models.artisan_profile import ArtisanProfileModel
from craftmatch.infrastructure.database.repositories.profile_repository import (
    SQLAlchemyProfileRepository,
)

logger = logging.getLogger(__name__)

_OPTIONAL_FIELDS = ("location", "customer_satisfaction", "completion_rate", "total_orders")


def load_sample_profiles(path: Path | str) -> list[ArtisanProfileModel]:
    """Parse the sample artisans file into ORM models (invalid entries skipped)."""
    with open(path, "r", encoding="utf-8") as f:
        data = yaml.safe_load(f) or {}

    models: list[ArtisanProfileModel] = []
    for entry in data.get("artisans", []):
        if not isinstance(entry, dict) or not entry.get("id") or not entry.get("profession"):
            logger.warning("Skipping malformed sample artisan entry: %r", entry)
            continue
        models.append(
            ArtisanProfileModel(
                id=str(entry["id"]),
                name=str(entry.get("name", entry["id"])),
                profession=str(entry["profession"]),
                description=str(entry.get("description", "")).strip(),
                **{key: entry.get(key) for key in _OPTIONAL_FIELDS},
            )
        )
    return models


async def seed_sample_profiles(
    repository: SQLAlchemyProfileRepository, path: Path | str
) -> int:
    """Insert the sample artisans when the store is empty. Idempotent."""
    if await repository.count() > 0:
        logger.debug("Artisan profiles already present; skipping seed")
        return 0
    models = load_sample_profiles(path)
    inserted = await repository.add_many(models)
    logger.info("Seeded %d sample artisan profiles from %s", inserted, path)
    return inserted
