"""Shared fixtures: the packaged profession catalogue and small builders."""

from pathlib import Path

import pytest

import craftmatch
from craftmatch.domain.entities import CandidateProfile, PerformanceMetrics, ProfessionCatalog
from craftmatch.infrastructure.catalog.yaml_catalog_loader import load_profession_catalog

CATALOG_FILE = Path(craftmatch.__file__).resolve().parent / "data" / "professions.yaml"


@pytest.fixture(scope="session")
def catalog() -> ProfessionCatalog:
    return load_profession_catalog(CATALOG_FILE)


def make_profile(
    profile_id: str,
    profession: str,
    satisfaction: float | None = 4.5,
    completion: float | None = 0.9,
    orders: int | None = 50,
) -> CandidateProfile:
    return CandidateProfile(
        id=profile_id,
        name=f"Artisan {profile_id}",
        profession=profession,
        description=f"{profession} artisan",
        location="Lisbon",
        performance_metrics=PerformanceMetrics.resolve(satisfaction, completion, orders),
    )
