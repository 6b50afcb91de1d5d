#!/usr/bin/env python3
"""Catalog membership checks for a spot's title, spot_name and spot_type.

The three verdicts are computed independently. An unknown title also fails
the name check (no names are allowed under it); callers decide whether to
surface that second failure.
"""

from __future__ import annotations

from dataclasses import dataclass, field

from spot_validator.catalog import Catalog


@dataclass
class CrossReferenceResult:
    title_ok: bool
    name_ok: bool
    type_ok: bool
    reasons: dict[str, str] = field(default_factory=dict)  # "title" | "name" | "type" -> message

    @property
    def ok(self) -> bool:
        return self.title_ok and self.name_ok and self.type_ok


def check_cross_references(catalog: Catalog, title, spot_name, spot_type) -> CrossReferenceResult:
    reasons: dict[str, str] = {}

    title_ok = catalog.is_valid_title(title)
    if not title_ok:
        reasons["title"] = f'invalid spot_data.title: "{title}"'

    name_ok = isinstance(spot_name, str) and spot_name in catalog.allowed_spot_names(title)
    if not name_ok:
        if title_ok:
            reasons["name"] = f'spot_name "{spot_name}" is not valid for title "{title}"'
        else:
            reasons["name"] = f'spot_name "{spot_name}" cannot be matched: title "{title}" is unknown'

    type_ok = catalog.is_valid_spot_type(spot_type)
    if not type_ok:
        reasons["type"] = f'invalid spot_type: "{spot_type}"'

    return CrossReferenceResult(title_ok=title_ok, name_ok=name_ok, type_ok=type_ok, reasons=reasons)
