#!/usr/bin/env python3
"""
Spot Payload Validator: CLI Tool

Validates every payload file (JSON array of spot records) in a directory
against the spot catalog:

  1. Required fields: spot_name, spot_type, spot_data, spot_data.title
  2. Title is known and lists the spot_name
  3. spot_type is known and spot_data matches its schema
  4. primary/secondary/specific filters are arrays
  5. secondary_filters is exactly the required default set

Problems are recorded, never raised: a bad record does not stop its file and
a bad file does not stop the run.

Usage:
  python -m spot_validator.validate_payloads                  # full validation
  python -m spot_validator.validate_payloads --config         # print the catalog
  python -m spot_validator.validate_payloads --search-filters # list compliant spots
  [--dir DIR] [--log-file log.log] [--catalog spot_catalog.yaml]
"""

from __future__ import annotations

import argparse
import json
import sys
from dataclasses import dataclass
from pathlib import Path

from spot_validator.catalog import Catalog, CatalogError, load_catalog
from spot_validator.cross_reference import check_cross_references
from spot_validator.error_log import (
    FILE_ERROR,
    FILE_LEVEL_INDEX,
    INVALID_FIELD,
    INVALID_FORMAT,
    INVALID_SPOT_DATA_FORMAT,
    INVALID_SPOT_NAME,
    INVALID_SPOT_TYPE,
    INVALID_TITLE,
    MISSING_FIELD,
    MISSING_REQUIRED_SECONDARY_FILTERS,
    NO_SPOT_NAME,
    ValidationRun,
)
from spot_validator.filter_set import (
    check_secondary_filters,
    describe_filter_mismatch,
    has_required_secondary_filters,
)
from spot_validator.report import (
    WIDE,
    format_compliant_items,
    format_configuration,
    format_errors,
    format_log,
    format_run_summary,
)
from spot_validator.schema_check import check_spot_data, format_violations

# ─── Constants ──────────────────────────────────────────────────────────────

PAYLOAD_SUFFIX = ".json"
# Build/config files that live next to payloads but are not payloads.
IGNORED_FILES = frozenset({"package.json", "package-lock.json", "tsconfig.json", "node_modules"})
FILTER_FIELDS = ("primary_filters", "secondary_filters", "specific_filters")
DEFAULT_LOG_FILE = "log.log"


# ─── Utility ────────────────────────────────────────────────────────────────

def warn(msg):
    """Print warning to stderr."""
    print(f"WARNING: {msg}", file=sys.stderr)


def info(msg):
    """Print info to stdout."""
    print(msg)


def _is_missing(value) -> bool:
    """Absent, null, false, empty string and zero count as missing.

    Empty objects and arrays are present.
    """
    if value is None or value is False:
        return True
    if isinstance(value, str):
        return value == ""
    if isinstance(value, (int, float)):
        return value == 0 or value != value
    return False


@dataclass
class FileOutcome:
    path: Path
    valid_items: int
    invalid_items: int
    valid: bool

    @property
    def total_items(self) -> int:
        return self.valid_items + self.invalid_items


# ─── Record validation ──────────────────────────────────────────────────────

def validate_payload_item(run: ValidationRun, catalog: Catalog, file_name: str, item, index: int) -> bool:
    """Validate one spot record, recording every failed rule in ``run``.

    Only a missing spot_data or spot_data.title stops the checks early.
    Returns True when the record passed every check.
    """
    record = item if isinstance(item, dict) else {}
    spot_name = record.get("spot_name")
    spot_type = record.get("spot_type")
    spot_data = record.get("spot_data")
    name_label = NO_SPOT_NAME if _is_missing(spot_name) else spot_name
    valid = True

    def fail(error_type: str, message: str):
        nonlocal valid
        valid = False
        run.add_error(file_name, index, name_label, error_type, message)

    if _is_missing(spot_name):
        fail(MISSING_FIELD, "Field spot_name is missing")
    if _is_missing(spot_type):
        fail(MISSING_FIELD, "Field spot_type is missing")
    if _is_missing(spot_data):
        fail(MISSING_FIELD, "Field spot_data is missing")
        return False

    title = spot_data.get("title") if isinstance(spot_data, dict) else None
    if _is_missing(title):
        fail(MISSING_FIELD, "Field spot_data.title is missing")
        return False

    refs = check_cross_references(catalog, title, spot_name, spot_type)
    if not refs.title_ok:
        fail(INVALID_TITLE, refs.reasons["title"])
    elif not refs.name_ok:
        fail(INVALID_SPOT_NAME, refs.reasons["name"])

    if not refs.type_ok:
        fail(INVALID_SPOT_TYPE, refs.reasons["type"])
    else:
        shape = check_spot_data(catalog, spot_type, spot_data)
        if not shape.valid:
            fail(
                INVALID_SPOT_DATA_FORMAT,
                f'Invalid spot_data format for spot_type "{spot_type}". '
                f"Errors: {format_violations(shape.violations)}",
            )

    for field_name in FILTER_FIELDS:
        if not isinstance(record.get(field_name), list):
            fail(INVALID_FIELD, f"{field_name} must be an array")

    required = catalog.required_secondary_filters()
    filters = check_secondary_filters(record.get("secondary_filters"), required)
    if not filters.valid:
        fail(MISSING_REQUIRED_SECONDARY_FILTERS, describe_filter_mismatch(filters, required))
    else:
        run.record_compliant(file_name, index, name_label)

    return valid


# ─── Files ──────────────────────────────────────────────────────────────────

def discover_payload_files(directory: str | Path) -> list[Path]:
    """Payload files directly under ``directory``, sorted by name."""
    root = Path(directory)
    return sorted(
        (p for p in root.iterdir()
         if p.is_file() and p.name.endswith(PAYLOAD_SUFFIX) and p.name not in IGNORED_FILES),
        key=lambda p: p.name,
    )


def load_payload_file(path: str | Path):
    with open(path, encoding="utf-8") as f:
        return json.load(f)


def validate_file(run: ValidationRun, catalog: Catalog, path: str | Path) -> FileOutcome:
    path = Path(path)
    info(f"\n🔍 Validating file: {path}")
    try:
        data = load_payload_file(path)
    except (OSError, ValueError) as e:
        # ValueError covers json.JSONDecodeError and UnicodeDecodeError
        run.add_error(str(path), FILE_LEVEL_INDEX, NO_SPOT_NAME, FILE_ERROR, f"Error processing file: {e}")
        info(f"❌ Error processing file: {e}")
        return FileOutcome(path=path, valid_items=0, invalid_items=0, valid=False)

    if not isinstance(data, list):
        run.add_error(str(path), FILE_LEVEL_INDEX, NO_SPOT_NAME, INVALID_FORMAT,
                      "The file must contain an array of objects")
        info("❌ The file does not contain an array of objects")
        return FileOutcome(path=path, valid_items=0, invalid_items=0, valid=False)

    valid_items = 0
    for index, item in enumerate(data):
        if validate_payload_item(run, catalog, str(path), item, index):
            valid_items += 1
    invalid_items = len(data) - valid_items

    info(f"✅ Valid items: {valid_items}")
    info(f"❌ Invalid items: {invalid_items}")
    info(f"📊 Total items: {len(data)}")
    return FileOutcome(path=path, valid_items=valid_items, invalid_items=invalid_items, valid=invalid_items == 0)


def _list_files(files: list[Path], label: str):
    info(f"📁 {label}: {len(files)}")
    for p in files:
        info(f"   - {p.name}")


# ─── Modes ──────────────────────────────────────────────────────────────────

def validate_all_files(directory: str | Path, catalog: Catalog, log_file: str | Path = DEFAULT_LOG_FILE) -> ValidationRun:
    """Full validation of every payload file in ``directory``.

    Prints the console report and writes the log artifact to ``log_file``.
    """
    run = ValidationRun()
    info("🚀 Starting payload integrity validation...\n")

    files = discover_payload_files(directory)
    if not files:
        warn(f"No JSON payload file found in {directory}")
        return run
    _list_files(files, "Payload files found")

    outcomes = [validate_file(run, catalog, p) for p in files]
    valid_files = sum(1 for o in outcomes if o.valid)

    info(format_run_summary(len(files), valid_files, run))
    info("")
    info(format_compliant_items(run, catalog.required_secondary_filters()))

    if run.errors:
        info(format_errors(run))
    else:
        info("\n🎉 All files are valid!")

    log_path = Path(log_file)
    log_path.write_text(format_log(run), encoding="utf-8")
    info(f"\n📄 Validation log saved to: {log_path}")
    return run


def search_file(run: ValidationRun, catalog: Catalog, path: str | Path) -> int:
    """Record the compliant spots of one file; returns how many were found."""
    path = Path(path)
    info(f"\n🔍 Searching in: {path}")
    try:
        data = load_payload_file(path)
    except (OSError, ValueError) as e:
        info(f"❌ Error processing file: {e}")
        return 0

    if not isinstance(data, list):
        info("❌ The file does not contain an array of objects")
        return 0

    required = catalog.required_secondary_filters()
    found = 0
    for index, item in enumerate(data):
        if not isinstance(item, dict):
            continue
        if has_required_secondary_filters(item.get("secondary_filters"), required):
            run.record_compliant(str(path), index, item.get("spot_name"))
            found += 1

    info(f"✅ Items found: {found}")
    info(f"📊 Total items in file: {len(data)}")
    return found


def search_required_filters(directory: str | Path, catalog: Catalog) -> ValidationRun:
    """Report which spots carry the full default filter set, without validating."""
    run = ValidationRun()
    info("🔍 Searching for items with the required secondary filters...\n")

    files = discover_payload_files(directory)
    if not files:
        warn(f"No JSON payload file found in {directory}")
        return run
    _list_files(files, "Files found")

    for p in files:
        search_file(run, catalog, p)

    info("\n" + WIDE)
    info("🎯 SEARCH RESULTS")
    info(WIDE)
    info(format_compliant_items(run, catalog.required_secondary_filters()))
    return run


# ─── CLI ────────────────────────────────────────────────────────────────────

def main(argv=None) -> int:
    parser = argparse.ArgumentParser(
        description="Validate spot payload JSON files against the spot catalog.",
    )
    mode = parser.add_mutually_exclusive_group()
    mode.add_argument("--config", action="store_true",
                      help="Print valid types, titles/spot names and required filters, then exit")
    mode.add_argument("--search-filters", action="store_true",
                      help="Only list items carrying the required secondary filters")
    parser.add_argument("--dir", default=".", help="Directory holding the payload files (default: CWD)")
    parser.add_argument("--log-file", default=DEFAULT_LOG_FILE,
                        help=f"Where to write the validation log (default: {DEFAULT_LOG_FILE})")
    parser.add_argument("--catalog", default=None, help="Alternative catalog YAML")
    args = parser.parse_args(argv)

    try:
        catalog = load_catalog(args.catalog)
    except CatalogError as e:
        print(f"ERROR: {e}", file=sys.stderr)
        return 2

    if args.config:
        info(format_configuration(catalog))
    elif args.search_filters:
        search_required_filters(args.dir, catalog)
    else:
        validate_all_files(args.dir, catalog, args.log_file)
    return 0


if __name__ == "__main__":
    sys.exit(main())
