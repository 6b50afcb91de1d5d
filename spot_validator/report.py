#!/usr/bin/env python3
"""Text renderers for validation results.

Every function returns a string; printing and writing files is left to the
caller (validate_payloads.py). The same classification of filter failures is
used for the console and for the log artifact.
"""

from __future__ import annotations

from datetime import datetime, timezone
from pathlib import Path
from typing import Sequence

from spot_validator.catalog import Catalog, Filter
from spot_validator.error_log import (
    FILE_LEVEL_INDEX,
    MISSING_REQUIRED_SECONDARY_FILTERS,
    EntityFilterStatus,
    ValidationError,
    ValidationRun,
)

WIDE = "═" * 80
LOG_WIDE = "═" * 100
RULE = "─" * 60
LOG_RULE = "─" * 80
LOG_ENTRY_RULE = "─" * 100


def _base(file_name: str) -> str:
    return Path(file_name).name


def _index_label(index: int) -> str:
    return str(index) if index != FILE_LEVEL_INDEX else "N/A"


def _iso(ts: datetime) -> str:
    return ts.isoformat(timespec="milliseconds")


def format_required_filters(required: Sequence[Filter], indent: str = "   ") -> str:
    return "\n".join(f"{indent}{i}. {f.label}" for i, f in enumerate(required, 1))


# ---------------------------------------------------------------------------
# Configuration (--config)
# ---------------------------------------------------------------------------

def format_configuration(catalog: Catalog) -> str:
    lines = ["", "=" * 50, "⚙️  VALIDATION CONFIGURATION", "=" * 50, "", "📋 VALID SPOT TYPES:"]
    lines += [f"   - {t}" for t in catalog.spot_types]
    lines += ["", "📋 VALID TITLES AND SPOT NAMES:"]
    for title, names in catalog.titles.items():
        lines += ["", f"📋 {title}", "   valid spot_names:"]
        lines += [f"      - {n}" for n in names]
    lines += ["", "🎯 REQUIRED SECONDARY FILTERS:", format_required_filters(catalog.required_secondary_filters())]
    return "\n".join(lines)


# ---------------------------------------------------------------------------
# Console
# ---------------------------------------------------------------------------

def format_compliant_items(run: ValidationRun, required: Sequence[Filter]) -> str:
    """Records carrying the full default filter set, grouped by file."""
    if not run.compliant:
        return "⚠️  No item found with the required secondary filters."
    lines = [
        "🎯 ITEMS WITH REQUIRED SECONDARY FILTERS",
        f"📍 Total items found: {len(run.compliant)}",
    ]
    for file_name, items in run.compliant_by_file().items():
        lines += ["", f"📄 {_base(file_name)} ({len(items)} items):"]
        lines += [f"   ✅ Item {c.item_index}: {c.spot_name}" for c in items]
    lines += ["", "📝 Required filters:", format_required_filters(required)]
    return "\n".join(lines)


def format_run_summary(file_count: int, valid_files: int, run: ValidationRun) -> str:
    return "\n".join([
        "",
        WIDE,
        "📋 VALIDATION SUMMARY",
        WIDE,
        f"✅ Valid files: {valid_files}",
        f"❌ Files with errors: {file_count - valid_files}",
        f"📊 Total files: {file_count}",
        f"🚨 Total errors found: {run.error_count}",
    ])


def _format_entity_status(status: EntityFilterStatus, with_details: bool) -> list[str]:
    if status.has_compliant_default:
        return [
            f'📊 spot_name: "{status.spot_name}" - default filter configured',
            "   💬 Spot has at least one item with the correct default filters",
        ]
    lines = [
        f'📊 spot_name: "{status.spot_name}" - Total: {len(status.errors)} items',
        "   💬 No spot found with the default filter defined",
    ]
    for e in status.errors:
        if with_details:
            lines.append(f"   📍 Item {e.item_index} - {_iso(e.timestamp)}")
            lines.append(f"   📝 Details: {e.message}")
        else:
            lines.append(f"   📍 Item {e.item_index} ({_base(e.file_name)})")
    return lines


def format_errors(run: ValidationRun) -> str:
    lines = ["", WIDE, "🚨 ERRORS FOUND", WIDE]

    statuses = run.filter_compliance()
    if statuses:
        lines += ["", f"🎯 {MISSING_REQUIRED_SECONDARY_FILTERS} - by spot_name:", RULE]
        for status in statuses:
            lines += _format_entity_status(status, with_details=False)
            lines.append("")

    others = run.other_errors()
    if others:
        lines += ["", "📋 OTHER ERRORS:", RULE]
        for file_name, file_errors in run.errors_by_file(others).items():
            lines += ["", f"📄 File: {_base(file_name)} ({len(file_errors)} errors)", RULE]
            for i, e in enumerate(file_errors, 1):
                lines += [
                    "",
                    f"   🔴 ERROR #{i}",
                    f"   📍 Item: {_index_label(e.item_index)}",
                    f"   🏷️  Spot: {e.spot_name}",
                    f"   ⚠️  Type: {e.error_type}",
                    "   💬 Message:",
                    f"      {e.message}",
                ]
    return "\n".join(lines)


# ---------------------------------------------------------------------------
# Log artifact
# ---------------------------------------------------------------------------

def _format_log_error(e: ValidationError, number: int, file_name: str) -> list[str]:
    return [
        LOG_ENTRY_RULE,
        f"🔴 ERROR #{number}",
        LOG_ENTRY_RULE,
        f"📁 File...............: {file_name}",
        f"📍 Item...............: {_index_label(e.item_index)}",
        f"🏷️  Spot Name.........: {e.spot_name}",
        f"⚠️  Error Type........: {e.error_type}",
        f"⏰ Timestamp..........: {_iso(e.timestamp)}",
        "",
        "💬 Message:",
        f"   {e.message}",
        "",
    ]


def format_log(run: ValidationRun, generated_at: datetime | None = None) -> str:
    """Full report for the log file: header, per-file breakdown, final summary."""
    stamp = _iso(generated_at or datetime.now(timezone.utc))

    # Keyed by base name, as in the per-file sections.
    by_file: dict[str, list[ValidationError]] = {}
    for e in run.errors:
        by_file.setdefault(_base(e.file_name), []).append(e)

    lines = [
        "╔" + "═" * 94 + "╗",
        "║" + "PAYLOAD VALIDATION LOG".center(94) + "║",
        "╚" + "═" * 94 + "╝",
        "",
        f"📅 Date/Time: {stamp}",
        f"🔍 Total errors: {run.error_count}",
        f"📁 Files with errors: {len(by_file)}",
        "",
    ]

    for file_name, file_errors in by_file.items():
        lines += [
            LOG_WIDE,
            f"📄 FILE: {file_name}",
            LOG_WIDE,
            f"📊 Total errors in this file: {len(file_errors)}",
            "",
        ]
        statuses = run.filter_compliance(file_errors)
        if statuses:
            lines += [f"🎯 {MISSING_REQUIRED_SECONDARY_FILTERS} - by spot_name:", LOG_RULE]
            for status in statuses:
                lines += _format_entity_status(status, with_details=True)
                lines.append("")

        others = [e for e in file_errors if e.error_type != MISSING_REQUIRED_SECONDARY_FILTERS]
        if others:
            if statuses:
                lines += ["", "📋 OTHER ERRORS:", LOG_RULE]
            for i, e in enumerate(others, 1):
                lines += _format_log_error(e, i, file_name)

    lines += [
        "",
        LOG_WIDE,
        "📊 FINAL VALIDATION SUMMARY",
        LOG_WIDE,
        f"📅 Date/Time: {stamp}",
        f"🔍 Total errors found: {run.error_count}",
        f"📁 Files with errors: {len(by_file)}",
        "",
        "📋 Errors per file:",
    ]
    lines += [f"   - {name}: {len(errs)} errors" for name, errs in by_file.items()]
    lines += ["", "📋 Error types:"]
    lines += [f"   - {kind}: {count} occurrences" for kind, count in run.errors_by_kind().items()]

    statuses = run.filter_compliance()
    if statuses:
        lines += ["", f"🎯 {MISSING_REQUIRED_SECONDARY_FILTERS} by spot_name:"]
        for status in statuses:
            if status.has_compliant_default:
                lines.append(f'   - "{status.spot_name}": default filter configured')
            else:
                lines.append(f'   - "{status.spot_name}": {len(status.errors)} items without default filters')

    lines.append(LOG_WIDE)
    return "\n".join(lines) + "\n"
