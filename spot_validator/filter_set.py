#!/usr/bin/env python3
"""Required secondary-filter check.

A spot's secondary_filters must be exactly the required default combination.
Comparison is on normalized ``name:value`` tokens with set semantics, after a
raw length check against the required count. A list of the right length that
repeats an entry therefore still fails: its token set is smaller.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import Sequence

from spot_validator.catalog import Filter


@dataclass
class FilterSetResult:
    valid: bool
    count: int                                       # raw number of entries received
    missing: list[str] = field(default_factory=list)  # required tokens not present
    extra: list[str] = field(default_factory=list)    # present tokens not required


def filter_token(entry) -> str:
    """Normalize one filter entry to ``name:value``; absent parts become empty."""
    if isinstance(entry, Filter):
        return entry.token
    if not isinstance(entry, dict):
        return ":"
    name = entry.get("name")
    value = entry.get("value")
    return f"{'' if name is None else name}:{'' if value is None else value}"


def _token_label(token: str) -> str:
    return token.replace(":", ": ", 1)


def check_secondary_filters(filters, required: Sequence[Filter]) -> FilterSetResult:
    """Compare ``filters`` with the required set. Non-list input counts as empty."""
    entries = filters if isinstance(filters, list) else []
    required_tokens = [f.token for f in required]
    required_set = set(required_tokens)

    item_tokens: list[str] = []
    for entry in entries:
        token = filter_token(entry)
        if token not in item_tokens:
            item_tokens.append(token)
    item_set = set(item_tokens)

    valid = (
        len(entries) == len(required_tokens)
        and len(item_set) == len(required_set)
        and all(t in item_set for t in required_set)
    )
    if valid:
        return FilterSetResult(valid=True, count=len(entries))

    return FilterSetResult(
        valid=False,
        count=len(entries),
        missing=[t for t in required_tokens if t not in item_set],
        extra=[t for t in item_tokens if t not in required_set],
    )


def has_required_secondary_filters(filters, required: Sequence[Filter]) -> bool:
    return check_secondary_filters(filters, required).valid


def describe_filter_mismatch(result: FilterSetResult, required: Sequence[Filter]) -> str:
    parts = ["Required secondary filters do not match."]
    if result.count != len(required):
        parts.append(f"Expected {len(required)} filters, found {result.count}.")
    if result.missing:
        parts.append(f"Missing: [{', '.join(_token_label(t) for t in result.missing)}].")
    if result.extra:
        parts.append(f"Extra: [{', '.join(_token_label(t) for t in result.extra)}].")
    parts.append(f"Required: {', '.join(f.label for f in required)}")
    return " ".join(parts)
