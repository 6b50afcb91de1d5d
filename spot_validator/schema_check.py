#!/usr/bin/env python3
"""Structural check of spot_data against the schema registered for its spot_type.

Schemas are JSON Schema (draft 7) fragments from the catalog. Every mismatch is
collected, so one call reports all offending fields of a payload.

Deviations from stock draft 7:
  - ``number`` rejects NaN/Infinity (Python's json module accepts them)
  - ``format: date`` is asserted, not just annotated
"""

from __future__ import annotations

import math
from dataclasses import dataclass, field

import jsonschema
from jsonschema import Draft7Validator, FormatChecker

from spot_validator.catalog import Catalog


UNKNOWN_TYPE = "unknown_type"
ROOT_PATH = "<root>"


def _is_finite_number(checker, instance) -> bool:
    if not Draft7Validator.TYPE_CHECKER.is_type(instance, "number"):
        return False
    return not isinstance(instance, float) or math.isfinite(instance)


SpotDataValidator = jsonschema.validators.extend(
    Draft7Validator,
    type_checker=Draft7Validator.TYPE_CHECKER.redefine("number", _is_finite_number),
)

_FORMAT_CHECKER = FormatChecker()


@dataclass(frozen=True)
class FieldViolation:
    path: str       # dotted field path, e.g. "processing_day.analytics.0.total"
    keyword: str    # schema keyword that failed ("required", "type", "enum", ...)
    message: str


@dataclass
class SchemaCheckResult:
    valid: bool
    violations: list[FieldViolation] = field(default_factory=list)


def _dotted(path) -> str:
    parts = [str(p) for p in path]
    return ".".join(parts) if parts else ROOT_PATH


def check_spot_data(catalog: Catalog, spot_type, spot_data) -> SchemaCheckResult:
    """Validate ``spot_data`` against the catalog schema for ``spot_type``.

    An unknown type is a failure with a single ``unknown_type`` violation.
    The empty schema ("map") accepts anything, including a missing payload.
    """
    schema = catalog.schema_for(spot_type)
    if schema is None:
        return SchemaCheckResult(
            valid=False,
            violations=[FieldViolation(ROOT_PATH, UNKNOWN_TYPE, f"no schema for spot_type {spot_type!r}")],
        )
    if not schema:
        return SchemaCheckResult(valid=True)

    validator = SpotDataValidator(schema, format_checker=_FORMAT_CHECKER)
    errors = sorted(
        validator.iter_errors(spot_data),
        key=lambda e: ([str(p) for p in e.absolute_path], e.validator),
    )
    violations = [
        FieldViolation(path=_dotted(e.absolute_path), keyword=str(e.validator), message=e.message)
        for e in errors
    ]
    return SchemaCheckResult(valid=not violations, violations=violations)


def format_violations(violations: list[FieldViolation]) -> str:
    """One ``path [keyword]: message`` entry per violation, joined with "; "."""
    return "; ".join(f"{v.path} [{v.keyword}]: {v.message}" for v in violations)
