#!/usr/bin/env python3
"""
Spot Catalog
============
Closed configuration every spot payload is checked against:

  - valid spot types
  - spot_data.title -> allowed spot_name values
  - per-type structural schema for spot_data (JSON Schema fragments)
  - the required secondary-filter combination

The catalog is data, not code: it lives in ``spot_catalog.yaml`` next to this
module and can be swapped with ``--catalog PATH`` on the CLI.
"""

from __future__ import annotations

from dataclasses import dataclass
from pathlib import Path

import yaml


# ---------------------------------------------------------------------------
# Constants
# ---------------------------------------------------------------------------

DEFAULT_CATALOG_PATH = Path(__file__).resolve().parent / "spot_catalog.yaml"
REQUIRED_SECTIONS = ("spot_types", "required_secondary_filters", "titles", "schemas")


class CatalogError(ValueError):
    """Raised when a catalog document is missing sections or is inconsistent."""


@dataclass(frozen=True)
class Filter:
    """One (name, value) classification tag."""
    name: str
    value: str

    @property
    def token(self) -> str:
        return f"{self.name}:{self.value}"

    @property
    def label(self) -> str:
        return f"{self.name}: {self.value}"


# ---------------------------------------------------------------------------
# Catalog
# ---------------------------------------------------------------------------

class Catalog:
    """Read-only view over a loaded catalog document."""

    def __init__(self, spot_types, titles, schemas, required_filters):
        self._spot_types: tuple[str, ...] = tuple(spot_types)
        self._titles: dict[str, tuple[str, ...]] = {t: tuple(names) for t, names in titles.items()}
        self._schemas: dict[str, dict] = dict(schemas)
        self._required_filters: tuple[Filter, ...] = tuple(required_filters)

    @property
    def spot_types(self) -> tuple[str, ...]:
        return self._spot_types

    @property
    def titles(self) -> dict[str, tuple[str, ...]]:
        return dict(self._titles)

    def is_valid_spot_type(self, spot_type) -> bool:
        return isinstance(spot_type, str) and spot_type in self._spot_types

    def is_valid_title(self, title) -> bool:
        return isinstance(title, str) and title in self._titles

    def allowed_spot_names(self, title) -> frozenset[str]:
        if not self.is_valid_title(title):
            return frozenset()
        return frozenset(self._titles[title])

    def schema_for(self, spot_type) -> dict | None:
        """Schema for ``spot_type``; ``{}`` means any payload passes, None means unknown type."""
        if not isinstance(spot_type, str):
            return None
        return self._schemas.get(spot_type)

    def required_secondary_filters(self) -> tuple[Filter, ...]:
        return self._required_filters


# ---------------------------------------------------------------------------
# Loading
# ---------------------------------------------------------------------------

def _parse_filters(raw) -> list[Filter]:
    if not isinstance(raw, list) or not raw:
        raise CatalogError("'required_secondary_filters' must be a non-empty list")
    filters = []
    for i, entry in enumerate(raw):
        if not isinstance(entry, dict) or "name" not in entry or "value" not in entry:
            raise CatalogError(f"required_secondary_filters[{i}] must have 'name' and 'value'")
        filters.append(Filter(name=str(entry["name"]), value=str(entry["value"])))
    return filters


def build_catalog(data: dict) -> Catalog:
    """Build a Catalog from an already-parsed document, checking its consistency."""
    if not isinstance(data, dict):
        raise CatalogError("catalog document must be a mapping")
    for section in REQUIRED_SECTIONS:
        if section not in data:
            raise CatalogError(f"catalog is missing the '{section}' section")

    spot_types = data["spot_types"]
    if not isinstance(spot_types, list) or not all(isinstance(t, str) for t in spot_types):
        raise CatalogError("'spot_types' must be a list of strings")

    titles = data["titles"]
    if not isinstance(titles, dict):
        raise CatalogError("'titles' must map each title to a list of spot names")
    for title, names in titles.items():
        if not isinstance(names, list):
            raise CatalogError(f"titles['{title}'] must be a list of spot names")

    schemas = data["schemas"]
    if not isinstance(schemas, dict):
        raise CatalogError("'schemas' must map each spot type to a schema")
    unknown = sorted(set(schemas) - set(spot_types))
    if unknown:
        raise CatalogError(f"schemas defined for unknown spot types: {', '.join(unknown)}")
    missing = [t for t in spot_types if t not in schemas]
    if missing:
        raise CatalogError(f"spot types without a schema: {', '.join(missing)}")
    for spot_type, schema in schemas.items():
        if not isinstance(schema, dict):
            raise CatalogError(f"schemas['{spot_type}'] must be a mapping (use {{}} to accept anything)")

    return Catalog(
        spot_types=spot_types,
        titles=titles,
        schemas=schemas,
        required_filters=_parse_filters(data["required_secondary_filters"]),
    )


def load_catalog(path: str | Path | None = None) -> Catalog:
    """Load the catalog YAML at ``path`` (default: the bundled catalog)."""
    catalog_path = Path(path) if path else DEFAULT_CATALOG_PATH
    try:
        with open(catalog_path, encoding="utf-8") as f:
            data = yaml.safe_load(f)
    except OSError as e:
        raise CatalogError(f"cannot read catalog {catalog_path}: {e}") from e
    except yaml.YAMLError as e:
        raise CatalogError(f"catalog {catalog_path} is not valid YAML: {e}") from e
    return build_catalog(data)
