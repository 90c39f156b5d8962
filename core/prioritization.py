"""
Ranking engine for station rows.

Handles:
- Supply completion date (expected completion, +28 days for large quantities)
- Canonical multi-key comparator
- Partitioning by work center, and by team inside the TU work center
- Rank assignment (1-based, restarting per partition)
- Output header selection

The engine is pure: input records are never mutated and no state survives a
call. Callers pass their own logger to observe what happens.
"""

import functools
import logging
from dataclasses import dataclass, field
from datetime import date, timedelta
from typing import Dict, List, Mapping, Optional, Sequence

from config import prioritizer as config
from core import columns
from core.dates import format_date

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class RankedRow:
    """A source record with its rank and computed supply completion date."""
    rank: int
    record: Mapping
    supply_date: Optional[date] = None

    def as_record(self) -> dict:
        """New dict of the source values plus the formatted supply completion date."""
        values = dict(self.record)
        values[config.SUPPLY_COMPLETION_COLUMN] = format_date(self.supply_date)
        return values


@dataclass
class Partition:
    """One tab / export sheet: a work center, or a TU team."""
    label: str
    work_center: str
    team: Optional[str] = None
    headers: List[str] = field(default_factory=list)
    rows: List[RankedRow] = field(default_factory=list)

    def __len__(self) -> int:
        return len(self.rows)


@dataclass(frozen=True)
class TabSelection:
    """Which partition the user is looking at. Owned by the UI, never the engine."""
    work_center: str = ""
    team: Optional[str] = None


# ===========================
# Supply completion date
# ===========================

def supply_completion_date(record: Mapping, log: Optional[logging.Logger] = None) -> Optional[date]:
    """
    Compute the supply completion date of a row.

    - No expected completion date -> None
    - Quantity absent, non-numeric or <= 30 -> expected completion date
    - Quantity > 30 -> expected completion date + 28 days

    Args:
        record: Row record
        log: Optional logger for per-row DEBUG tracing

    Returns:
        Supply completion date, or None
    """
    log = log or logger
    expected = columns.get_expected_completion(record)
    if expected is None:
        return None

    quantity = columns.get_quantity(record)
    if quantity is None or quantity <= config.SUPPLY_QUANTITY_THRESHOLD:
        result = expected
    else:
        result = expected + timedelta(days=config.SUPPLY_OFFSET_DAYS)

    log.debug("supply date: expected=%s quantity=%s -> %s", expected, quantity, result)
    return result


# ===========================
# Comparator
# ===========================

@dataclass(frozen=True)
class SortKeys:
    """Per-row values the comparator looks at, computed once per sort."""
    balance_matches: bool
    supply_date: Optional[date]
    remaining: Optional[float]
    priority: Optional[int]


def sort_keys(record: Mapping, log: Optional[logging.Logger] = None) -> SortKeys:
    quantity = columns.get_quantity(record)
    remaining = columns.get_remaining(record)
    balance_matches = (
        quantity is not None
        and remaining is not None
        and abs(remaining - quantity) <= config.BALANCE_MATCH_TOLERANCE
    )
    return SortKeys(
        balance_matches=balance_matches,
        supply_date=supply_completion_date(record, log),
        remaining=remaining,
        priority=columns.get_priority_number(record),
    )


def _present_first(a, b) -> int:
    """Present values before absent ones, then ascending."""
    if a is not None and b is None:
        return -1
    if a is None and b is not None:
        return 1
    if a is None and b is None or a == b:
        return 0
    return -1 if a < b else 1


def compare_keys(a: SortKeys, b: SortKeys) -> int:
    """
    Canonical ordering, each step only breaking ties left by the previous:

    1. remaining == quantity (both present) first
    2. supply completion date, earlier first, missing last
    3. remaining to execute, smaller first, missing last
    4. internal priority number, smaller first, missing last
    """
    if a.balance_matches != b.balance_matches:
        return -1 if a.balance_matches else 1
    for left, right in (
        (a.supply_date, b.supply_date),
        (a.remaining, b.remaining),
        (a.priority, b.priority),
    ):
        result = _present_first(left, right)
        if result:
            return result
    return 0


def compare_rows(a: Mapping, b: Mapping) -> int:
    """Comparator over raw records (convenience for callers and tests)."""
    return compare_keys(sort_keys(a), sort_keys(b))


def rank_rows(records: Sequence[Mapping], log: Optional[logging.Logger] = None) -> List[RankedRow]:
    """
    Stable-sort one group of records and assign 1-based ranks.

    Returns:
        New list of RankedRow; the input sequence and records are untouched
    """
    keyed = [(sort_keys(record, log), record) for record in records]
    keyed.sort(key=functools.cmp_to_key(lambda x, y: compare_keys(x[0], y[0])))
    return [
        RankedRow(rank=position, record=record, supply_date=keys.supply_date)
        for position, (keys, record) in enumerate(keyed, start=1)
    ]


# ===========================
# Partitioning
# ===========================

def _unique(values) -> List[str]:
    seen: Dict[str, None] = {}
    for value in values:
        if value and value not in seen:
            seen[value] = None
    return list(seen)


def list_work_centers(records: Sequence[Mapping]) -> List[str]:
    """Distinct non-blank work centers in first-seen order."""
    return _unique(columns.get_work_center(r) for r in records)


def list_teams(records: Sequence[Mapping], work_center: str = config.TEAM_SPLIT_WORK_CENTER) -> List[str]:
    """Distinct non-blank teams of one work center in first-seen order."""
    return _unique(
        columns.get_team(r) for r in records if columns.get_work_center(r) == work_center
    )


def output_headers(ranked: Sequence[RankedRow]) -> List[str]:
    """
    Visible columns of a partition.

    Columns of the first ranked row minus the hidden ones, with the supply
    completion column right after the expected completion column
    (appended when the sheet has none).
    """
    if not ranked:
        return []
    all_headers = [str(h) for h in ranked[0].record.keys()]
    visible = [h for h in all_headers if h not in config.HIDDEN_COLUMNS]
    if config.SUPPLY_COMPLETION_COLUMN in visible:
        return visible

    expected_header = columns.find_expected_completion_header(visible)
    if expected_header is None:
        return visible + [config.SUPPLY_COMPLETION_COLUMN]
    position = visible.index(expected_header) + 1
    return visible[:position] + [config.SUPPLY_COMPLETION_COLUMN] + visible[position:]


def _build_partition(label, work_center, team, records, log) -> Partition:
    ranked = rank_rows(records, log)
    return Partition(
        label=label,
        work_center=work_center,
        team=team,
        headers=output_headers(ranked),
        rows=ranked,
    )


def build_partitions(records: Sequence[Mapping], log: Optional[logging.Logger] = None) -> List[Partition]:
    """
    Split rows into tabs and rank each one independently.

    - One partition per work center, in first-seen order
    - The TU work center becomes one partition per team ("TU - <team>");
      when no TU row has a team it stays a single "TU" partition
    - Rows without a work center, and TU rows without a team when other
      TU rows have one, are left out and counted in a warning

    Args:
        records: Row records from the ingest step
        log: Caller-supplied logger; defaults to this module's logger

    Returns:
        List of Partition (empty for empty or unrecognised input)
    """
    log = log or logger
    if not records:
        log.info("No rows to prioritize")
        return []

    by_work_center: Dict[str, List[Mapping]] = {}
    skipped = 0
    no_team = 0
    for record in records:
        work_center = columns.get_work_center(record)
        if not work_center:
            skipped += 1
            continue
        by_work_center.setdefault(work_center, []).append(record)

    partitions: List[Partition] = []
    for work_center, group in by_work_center.items():
        if work_center != config.TEAM_SPLIT_WORK_CENTER:
            partitions.append(_build_partition(work_center, work_center, None, group, log))
            continue

        teams = list_teams(group, work_center)
        if not teams:
            partitions.append(_build_partition(work_center, work_center, None, group, log))
            continue
        for team in teams:
            team_rows = [r for r in group if columns.get_team(r) == team]
            partitions.append(
                _build_partition(f"{work_center} - {team}", work_center, team, team_rows, log)
            )
        no_team = sum(1 for r in group if not columns.get_team(r))

    if skipped:
        log.warning("Skipped %d rows without a work center", skipped)
    if no_team:
        log.warning("Skipped %d %s rows without a team", no_team, config.TEAM_SPLIT_WORK_CENTER)
    log.info(
        "Prioritized %d rows into %d partitions: %s",
        sum(len(p) for p in partitions),
        len(partitions),
        ", ".join(f"{p.label} ({len(p)})" for p in partitions),
    )
    return partitions


# ===========================
# Tab selection
# ===========================

def resolve_selection(partitions: Sequence[Partition], selection: Optional[TabSelection] = None) -> TabSelection:
    """
    Normalize a tab selection against the available partitions.

    - No or unknown work center -> first work center
    - TU without a team -> first TU team
    - Team is cleared for any other work center
    """
    if not partitions:
        return TabSelection()
    work_centers = _unique(p.work_center for p in partitions)
    selection = selection or TabSelection()

    work_center = selection.work_center if selection.work_center in work_centers else work_centers[0]
    teams = [p.team for p in partitions if p.work_center == work_center and p.team]
    if not teams:
        return TabSelection(work_center=work_center, team=None)
    team = selection.team if selection.team in teams else teams[0]
    return TabSelection(work_center=work_center, team=team)


def select_partition(partitions: Sequence[Partition], selection: Optional[TabSelection] = None) -> Optional[Partition]:
    """Partition matching a (normalized) selection, or None when there is none."""
    resolved = resolve_selection(partitions, selection)
    for partition in partitions:
        if partition.work_center == resolved.work_center and partition.team == resolved.team:
            return partition
    return None
