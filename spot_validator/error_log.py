#!/usr/bin/env python3
"""Run-scoped accumulator for validation errors and filter-compliant spots.

One ``ValidationRun`` is created per validation pass and passed through the
validation calls. It is append-only: nothing recorded is ever dropped, and
every view below is computed on demand without mutating state.
"""

from __future__ import annotations

from collections import defaultdict
from dataclasses import dataclass, field
from datetime import datetime, timezone


# ---------------------------------------------------------------------------
# Error kinds
# ---------------------------------------------------------------------------

MISSING_FIELD = "MISSING_FIELD"
INVALID_TITLE = "INVALID_TITLE"
INVALID_SPOT_NAME = "INVALID_SPOT_NAME"
INVALID_SPOT_TYPE = "INVALID_SPOT_TYPE"
INVALID_SPOT_DATA_FORMAT = "INVALID_SPOT_DATA_FORMAT"
INVALID_FIELD = "INVALID_FIELD"
MISSING_REQUIRED_SECONDARY_FILTERS = "MISSING_REQUIRED_SECONDARY_FILTERS"
INVALID_FORMAT = "INVALID_FORMAT"
FILE_ERROR = "FILE_ERROR"

ERROR_KINDS = (
    MISSING_FIELD,
    INVALID_TITLE,
    INVALID_SPOT_NAME,
    INVALID_SPOT_TYPE,
    INVALID_SPOT_DATA_FORMAT,
    INVALID_FIELD,
    MISSING_REQUIRED_SECONDARY_FILTERS,
    INVALID_FORMAT,
    FILE_ERROR,
)

NO_SPOT_NAME = "N/A"
FILE_LEVEL_INDEX = -1


@dataclass(frozen=True)
class ValidationError:
    file_name: str
    item_index: int          # -1 for file-level errors
    spot_name: str
    error_type: str          # one of ERROR_KINDS
    message: str
    timestamp: datetime = field(default_factory=lambda: datetime.now(timezone.utc))


@dataclass(frozen=True)
class CompliantItem:
    """A record whose secondary_filters exactly match the required set."""
    file_name: str
    item_index: int
    spot_name: str


@dataclass
class EntityFilterStatus:
    """Filter-compliance verdict for one spot_name among failing records."""
    spot_name: str
    has_compliant_default: bool   # some other record with this name passed
    errors: list[ValidationError]


class ValidationRun:
    def __init__(self):
        self.errors: list[ValidationError] = []
        self.compliant: list[CompliantItem] = []

    # -- recording ---------------------------------------------------------

    def add_error(self, file_name: str, item_index: int, spot_name, error_type: str, message: str) -> ValidationError:
        if error_type not in ERROR_KINDS:
            raise ValueError(f"unknown error type: {error_type}")
        err = ValidationError(
            file_name=str(file_name),
            item_index=item_index,
            spot_name=str(spot_name) if spot_name else NO_SPOT_NAME,
            error_type=error_type,
            message=message,
        )
        self.errors.append(err)
        return err

    def record_compliant(self, file_name: str, item_index: int, spot_name) -> None:
        self.compliant.append(CompliantItem(
            file_name=str(file_name),
            item_index=item_index,
            spot_name=str(spot_name) if spot_name else NO_SPOT_NAME,
        ))

    # -- views -------------------------------------------------------------

    @property
    def error_count(self) -> int:
        return len(self.errors)

    def errors_by_kind(self) -> dict[str, int]:
        """Error count per kind, highest first; ties keep first-seen order."""
        counts: dict[str, int] = {}
        for e in self.errors:
            counts[e.error_type] = counts.get(e.error_type, 0) + 1
        return dict(sorted(counts.items(), key=lambda kv: kv[1], reverse=True))

    def errors_by_file(self, errors: list[ValidationError] | None = None) -> dict[str, list[ValidationError]]:
        grouped: dict[str, list[ValidationError]] = defaultdict(list)
        for e in self.errors if errors is None else errors:
            grouped[e.file_name].append(e)
        return dict(grouped)

    def errors_by_entity(self, spot_name: str) -> list[ValidationError]:
        return [e for e in self.errors if e.spot_name == spot_name]

    def missing_filter_errors(self) -> list[ValidationError]:
        return [e for e in self.errors if e.error_type == MISSING_REQUIRED_SECONDARY_FILTERS]

    def other_errors(self) -> list[ValidationError]:
        return [e for e in self.errors if e.error_type != MISSING_REQUIRED_SECONDARY_FILTERS]

    def compliant_entities(self) -> set[str]:
        return {c.spot_name for c in self.compliant}

    def compliant_by_file(self) -> dict[str, list[CompliantItem]]:
        grouped: dict[str, list[CompliantItem]] = defaultdict(list)
        for c in self.compliant:
            grouped[c.file_name].append(c)
        return dict(grouped)

    def filter_compliance(self, errors: list[ValidationError] | None = None) -> list[EntityFilterStatus]:
        """Classify filter failures per spot_name.

        ``errors`` defaults to every MISSING_REQUIRED_SECONDARY_FILTERS error of
        the run; pass a subset (e.g. one file's) to classify just those. A name
        counts as configured if any record in the whole run passed the check.
        """
        if errors is None:
            errors = self.missing_filter_errors()
        else:
            errors = [e for e in errors if e.error_type == MISSING_REQUIRED_SECONDARY_FILTERS]
        compliant_names = self.compliant_entities()

        by_name: dict[str, list[ValidationError]] = defaultdict(list)
        for e in errors:
            by_name[e.spot_name].append(e)
        return [
            EntityFilterStatus(spot_name=name, has_compliant_default=name in compliant_names, errors=errs)
            for name, errs in by_name.items()
        ]
