"""YAML loader for the profession catalogue.

Parses ``professions.yaml`` into immutable ProfessionDefinition entities.
Unlike seed data, a broken catalogue is fatal: the heuristic matcher is
useless without it, so loading fails fast at start-up.
"""

import logging
from pathlib import Path

import yaml

from craftmatch.domain.entities import ProfessionCatalog, ProfessionDefinition
from craftmatch.domain.normalization import normalize_profession, normalize_text

logger = logging.getLogger(__name__)

_TERM_GROUPS = ("aliases", "keywords", "materials", "techniques", "products")


class CatalogLoadError(Exception):
    """Raised when the profession catalogue file is missing or malformed."""

    def __init__(self, path: Path | str, reason: str):
        self.path = str(path)
        self.reason = reason
        super().__init__(f"Invalid profession catalogue '{path}': {reason}")


def load_profession_catalog(path: Path | str) -> ProfessionCatalog:
    """Load and validate the profession catalogue from a YAML file."""
    path = Path(path)
    try:
        with open(path, "r", encoding="utf-8") as f:
            data = yaml.safe_load(f)
    except (OSError, yaml.YAMLError) as exc:
        raise CatalogLoadError(path, str(exc)) from exc

    catalog = parse_profession_catalog(data, source=path)
    logger.info("Loaded %d professions from %s", len(catalog), path)
    return catalog


def parse_profession_catalog(data: object, source: Path | str = "<memory>") -> ProfessionCatalog:
    """Map a raw YAML document to a ProfessionCatalog."""
    if not isinstance(data, dict) or not isinstance(data.get("professions"), list):
        raise CatalogLoadError(source, "expected a mapping with a 'professions' list")

    definitions: list[ProfessionDefinition] = []
    seen: set[str] = set()
    for index, entry in enumerate(data["professions"]):
        definition = _build_definition(entry, index, source)
        if definition.name in seen:
            raise CatalogLoadError(source, f"duplicate profession '{definition.name}'")
        seen.add(definition.name)
        definitions.append(definition)

    if not definitions:
        raise CatalogLoadError(source, "catalogue defines no professions")
    return ProfessionCatalog(professions=tuple(definitions))


def _build_definition(entry: object, index: int, source: Path | str) -> ProfessionDefinition:
    if not isinstance(entry, dict):
        raise CatalogLoadError(source, f"profession #{index} is not a mapping")

    name = normalize_profession(entry.get("name"))
    if not name:
        raise CatalogLoadError(source, f"profession #{index} has no name")

    groups: dict[str, tuple[str, ...]] = {}
    for group in _TERM_GROUPS:
        raw_terms = entry.get(group) or []
        if not isinstance(raw_terms, list):
            raise CatalogLoadError(source, f"'{name}.{group}' must be a list")
        terms = []
        for term in raw_terms:
            normalized = normalize_text(str(term))
            if normalized and normalized not in terms:
                terms.append(normalized)
        groups[group] = tuple(terms)

    return ProfessionDefinition(name=name, **groups)
