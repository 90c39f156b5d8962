"""
Semantic column resolution for station rows.

Rows keep whatever headers the source spreadsheet declares. Each semantic
field (work center, team, quantity, ...) is resolved through an ordered list
of rules; a rule is a pure function ``record -> value | None`` and the first
rule returning a value wins. Aliases live in ``config.prioritizer`` so they
can be audited without reading this module.

Nothing here mutates the record or caches results.
"""

import math
import re
from typing import Callable, Dict, List, Mapping, Optional

from config import prioritizer as config
from core.dates import is_blank, normalize_date

Rule = Callable[[Mapping], Optional[object]]

_DIGITS = re.compile(r"\d+")
_STRIP_NUMBER = re.compile(r"[,\s]")


# ===========================
# Numeric parsing
# ===========================

def parse_number(value) -> Optional[float]:
    """
    Parse a locale-formatted number ("1,250", " 40 ") into a float.

    Thousands separators and whitespace are stripped first.
    Returns None for blanks, text and non-finite results.
    """
    if is_blank(value) or isinstance(value, bool):
        return None
    if isinstance(value, (int, float)):
        number = float(value)
    else:
        try:
            number = float(_STRIP_NUMBER.sub("", str(value)))
        except ValueError:
            return None
    return number if math.isfinite(number) else None


def extract_priority_number(value) -> Optional[int]:
    """First run of digits anywhere in a free-text note, e.g. "Priority 2" -> 2."""
    if is_blank(value):
        return None
    if isinstance(value, float) and value.is_integer():
        value = int(value)
    match = _DIGITS.search(str(value))
    return int(match.group(0)) if match else None


# ===========================
# Rule builders
# ===========================

def first_non_blank(aliases: List[str]) -> Rule:
    """Rule: value of the first alias column holding a non-blank value."""
    def rule(record: Mapping):
        for alias in aliases:
            value = record.get(alias)
            if not is_blank(value):
                return value
        return None
    return rule


def first_present(aliases: List[str]) -> Rule:
    """Rule: value of the first alias column that exists in the record."""
    def rule(record: Mapping):
        for alias in aliases:
            if alias in record:
                return record[alias]
        return None
    return rule


def header_contains_all(terms: List[str]) -> Rule:
    """Rule: value of the first column whose header contains every term."""
    def rule(record: Mapping):
        for key in record:
            if all(term in str(key) for term in terms):
                return record[key]
        return None
    return rule


def quantity_columns(record: Mapping) -> List[str]:
    """Headers that look like the issued-quantity column, in record order."""
    matches = []
    for key in record:
        name = str(key)
        if any(term in name for term in config.QUANTITY_COLUMN_TERMS) and any(
            q in name for q in config.QUANTITY_COLUMN_QUALIFIERS
        ):
            matches.append(key)
    return matches


def quantity_rule(record: Mapping):
    """
    Rule: first quantity column holding a non-blank, non-zero value.

    Falls back to the first matching column's raw value, zero or empty.
    """
    keys = quantity_columns(record)
    if not keys:
        return None
    for key in keys:
        value = record.get(key)
        if not is_blank(value) and parse_number(value) != 0:
            return value
    return record.get(keys[0])


# ===========================
# Rule table
# ===========================

FIELD_RULES: Dict[str, List[Rule]] = {
    "work_center": [first_non_blank(config.WORK_CENTER_ALIASES)],
    "team": [first_non_blank(config.TEAM_ALIASES)],
    "expected_completion": [first_non_blank(config.EXPECTED_COMPLETION_ALIASES)],
    "quantity": [quantity_rule],
    "remaining": [
        first_present(config.REMAINING_ALIASES),
        header_contains_all(config.REMAINING_COLUMN_TERMS),
    ],
    "priority_note": [first_non_blank(config.PRIORITY_NOTE_ALIASES)],
}


def resolve(record: Mapping, field: str):
    """
    Resolve a semantic field from a row record.

    Args:
        record: Row record (header -> raw cell value)
        field: Key of FIELD_RULES

    Returns:
        Raw cell value, or None when no rule matches

    Raises:
        KeyError: If field is not a known semantic field
    """
    for rule in FIELD_RULES[field]:
        value = rule(record)
        if value is not None:
            return value
    return None


# ===========================
# Typed accessors
# ===========================

def get_work_center(record: Mapping) -> str:
    value = resolve(record, "work_center")
    return "" if is_blank(value) else str(value).strip()


def get_team(record: Mapping) -> str:
    value = resolve(record, "team")
    return "" if is_blank(value) else str(value).strip()


def get_expected_completion(record: Mapping):
    return normalize_date(resolve(record, "expected_completion"))


def get_quantity(record: Mapping) -> Optional[float]:
    return parse_number(resolve(record, "quantity"))


def get_remaining(record: Mapping) -> Optional[float]:
    return parse_number(resolve(record, "remaining"))


def get_priority_number(record: Mapping) -> Optional[int]:
    return extract_priority_number(resolve(record, "priority_note"))


def find_expected_completion_header(headers: List[str]) -> Optional[str]:
    """Header of the expected-completion column, if the sheet has one."""
    for alias in config.EXPECTED_COMPLETION_ALIASES:
        if alias in headers:
            return alias
    return None


def is_standard_time_header(header: str) -> bool:
    return config.STANDARD_TIME_MARKER in str(header)
