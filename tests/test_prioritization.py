from __future__ import annotations

import logging
from datetime import date, timedelta

from config import prioritizer as config
from core import prioritization
from core.prioritization import TabSelection
from tests.conftest import EXPECTED, ORDER, PRODUCT, QUANTITY, REMAINING, TEAM, WORK_CENTER, make_row


def orders(ranked):
    return [r.record[ORDER] for r in ranked]


# ===========================
# Supply completion date
# ===========================

def test_supply_date_equals_expected_for_small_quantity():
    row = make_row("1", expected="01.01.2024", quantity=30)
    assert prioritization.supply_completion_date(row) == date(2024, 1, 1)


def test_supply_date_adds_28_days_above_threshold():
    row = make_row("1", expected="01.01.2024", quantity=31)
    assert prioritization.supply_completion_date(row) == date(2024, 1, 29)


def test_supply_date_with_missing_or_text_quantity():
    assert prioritization.supply_completion_date(make_row("1", expected="01.01.2024")) == date(2024, 1, 1)
    assert prioritization.supply_completion_date(make_row("1", expected="01.01.2024", quantity="n/a")) == date(2024, 1, 1)


def test_supply_date_without_expected_date_is_none():
    assert prioritization.supply_completion_date(make_row("1", quantity=100)) is None


def test_supply_date_from_serial_and_formatted_quantity():
    row = make_row("1", expected=45300, quantity="1,200")
    assert prioritization.supply_completion_date(row) == date(2024, 1, 9) + timedelta(days=28)


# ===========================
# Comparator
# ===========================

def test_large_quantity_ranks_after_small_quantity_on_same_expected_date():
    rows = [
        make_row("big", expected="01.01.2024", quantity=40),
        make_row("small", expected="01.01.2024", quantity=10),
    ]
    ranked = prioritization.rank_rows(rows)
    assert orders(ranked) == ["small", "big"]
    assert [r.supply_date for r in ranked] == [date(2024, 1, 1), date(2024, 1, 29)]
    assert [r.rank for r in ranked] == [1, 2]


def test_dated_rows_before_undated_rows():
    rows = [
        make_row("none", quantity=5),
        make_row("late", expected="01.06.2024", quantity=5),
    ]
    assert orders(prioritization.rank_rows(rows)) == ["late", "none"]


def test_present_remaining_beats_absent_regardless_of_size():
    rows = [
        make_row("absent", expected="01.01.2024", quantity=5),
        make_row("present", expected="01.01.2024", quantity=5, remaining=500),
    ]
    assert orders(prioritization.rank_rows(rows)) == ["present", "absent"]


def test_smaller_remaining_first():
    rows = [
        make_row("more", expected="01.01.2024", quantity=5, remaining=9),
        make_row("less", expected="01.01.2024", quantity=5, remaining=2),
    ]
    assert orders(prioritization.rank_rows(rows)) == ["less", "more"]


def test_smaller_embedded_priority_first():
    rows = [
        make_row("p5", expected="01.01.2024", quantity=5, remaining=3, priority="Priority 5"),
        make_row("p2", expected="01.01.2024", quantity=5, remaining=3, priority="Priority 2"),
        make_row("none", expected="01.01.2024", quantity=5, remaining=3),
    ]
    assert orders(prioritization.rank_rows(rows)) == ["p2", "p5", "none"]


def test_balance_matching_quantity_outranks_earlier_date():
    rows = [
        make_row("early", expected="01.01.2024", quantity=20, remaining=5),
        make_row("balanced", expected="01.03.2024", quantity=20, remaining="20.00005"),
    ]
    assert orders(prioritization.rank_rows(rows)) == ["balanced", "early"]


def test_balance_needs_both_values():
    a = make_row("a", expected="01.01.2024", remaining=0)
    b = make_row("b", expected="01.01.2024", quantity=0)
    keys_a = prioritization.sort_keys(a)
    keys_b = prioritization.sort_keys(b)
    assert not keys_a.balance_matches
    assert not keys_b.balance_matches


def test_full_ties_keep_input_order():
    rows = [make_row(str(i), expected="01.01.2024", quantity=5) for i in range(5)]
    assert orders(prioritization.rank_rows(rows)) == ["0", "1", "2", "3", "4"]
    assert prioritization.compare_rows(rows[0], rows[1]) == 0


def test_ranking_is_idempotent(station_rows):
    first = prioritization.rank_rows(station_rows)
    second = prioritization.rank_rows([r.record for r in first])
    assert orders(second) == orders(first)


# ===========================
# Partitions
# ===========================

def test_partitions_in_first_seen_order_with_tu_teams(station_rows):
    partitions = prioritization.build_partitions(station_rows)
    assert [p.label for p in partitions] == ["QC", "TU - A", "TU - B", "SMT"]
    assert [(p.work_center, p.team) for p in partitions] == [
        ("QC", None), ("TU", "A"), ("TU", "B"), ("SMT", None),
    ]


def test_each_partition_ranked_independently(station_rows):
    partitions = {p.label: p for p in prioritization.build_partitions(station_rows)}
    assert orders(partitions["QC"].rows) == ["1003", "1001"]
    assert orders(partitions["TU - A"].rows) == ["1006", "1002", "1005"]
    assert orders(partitions["TU - B"].rows) == ["1004"]
    for partition in partitions.values():
        assert [r.rank for r in partition.rows] == list(range(1, len(partition.rows) + 1))


def test_other_work_centers_never_in_tu_partitions(station_rows):
    for partition in prioritization.build_partitions(station_rows):
        if partition.work_center == "TU":
            assert all(r.record[WORK_CENTER] == "TU" for r in partition.rows)


def test_tu_without_teams_is_one_partition():
    rows = [
        make_row("1", "TU", expected="02.01.2024"),
        make_row("2", "TU", expected="01.01.2024"),
    ]
    partitions = prioritization.build_partitions(rows)
    assert [p.label for p in partitions] == ["TU"]
    assert orders(partitions[0].rows) == ["2", "1"]


def test_empty_and_unrecognized_input():
    assert prioritization.build_partitions([]) == []
    assert prioritization.build_partitions([{"foo": "bar"}, {"foo": ""}]) == []


def test_rows_without_work_center_are_skipped(caplog):
    rows = [make_row("1", "QC"), make_row("2", "")]
    with caplog.at_level(logging.WARNING, logger="core.prioritization"):
        partitions = prioritization.build_partitions(rows)
    assert [len(p) for p in partitions] == [1]
    assert "Skipped 1 rows without a work center" in caplog.text


def test_tu_rows_without_team_are_counted_when_dropped(caplog):
    rows = [
        make_row("1", "TU", team="A"),
        make_row("2", "TU"),
        make_row("3", "TU", team=" "),
        make_row("4", "QC"),
    ]
    with caplog.at_level(logging.WARNING, logger="core.prioritization"):
        partitions = prioritization.build_partitions(rows)
    assert [p.label for p in partitions] == ["TU - A", "QC"]
    assert "Skipped 2 TU rows without a team" in caplog.text
    assert "without a work center" not in caplog.text


def test_tu_without_any_team_logs_no_warning(caplog):
    rows = [make_row("1", "TU"), make_row("2", "TU")]
    with caplog.at_level(logging.WARNING, logger="core.prioritization"):
        partitions = prioritization.build_partitions(rows)
    assert [p.label for p in partitions] == ["TU"]
    assert "Skipped" not in caplog.text


def test_caller_supplied_logger_receives_summary(station_rows, caplog):
    log = logging.getLogger("tests.prioritizer")
    with caplog.at_level(logging.DEBUG, logger="tests.prioritizer"):
        prioritization.build_partitions(station_rows, log=log)
    messages = [r.getMessage() for r in caplog.records if r.name == "tests.prioritizer"]
    assert any(m.startswith("Prioritized 7 rows into 4 partitions") for m in messages)
    assert any(m.startswith("supply date:") for m in messages)


def test_input_rows_are_not_mutated(station_rows, frozen):
    partitions = prioritization.build_partitions(station_rows)
    assert station_rows == frozen
    assert all(config.SUPPLY_COMPLETION_COLUMN not in row for row in station_rows)
    exported = partitions[0].rows[0].as_record()
    assert exported[config.SUPPLY_COMPLETION_COLUMN] == "20.1.2024"
    assert config.SUPPLY_COMPLETION_COLUMN not in partitions[0].rows[0].record


def test_ranked_rows_reference_the_original_records(station_rows):
    partitions = prioritization.build_partitions(station_rows)
    ids = {id(r) for r in station_rows}
    assert all(id(row.record) in ids for p in partitions for row in p.rows)


# ===========================
# Headers
# ===========================

def test_headers_hide_columns_and_insert_supply_after_expected(station_rows):
    qc = prioritization.build_partitions(station_rows)[0]
    assert TEAM not in qc.headers
    assert PRODUCT not in qc.headers
    assert qc.headers == [ORDER, WORK_CENTER, EXPECTED, config.SUPPLY_COMPLETION_COLUMN, QUANTITY, REMAINING, "הערות מנהל פרויקט"]


def test_headers_append_supply_column_without_expected_column():
    ranked = prioritization.rank_rows([{"Station Name": "SMT", "Order": "1"}])
    assert prioritization.output_headers(ranked) == ["Station Name", "Order", config.SUPPLY_COMPLETION_COLUMN]


def test_headers_do_not_duplicate_existing_supply_column():
    ranked = prioritization.rank_rows([{"station": "SMT", config.SUPPLY_COMPLETION_COLUMN: ""}])
    assert prioritization.output_headers(ranked) == ["station", config.SUPPLY_COMPLETION_COLUMN]


def test_headers_of_empty_partition():
    assert prioritization.output_headers([]) == []


# ===========================
# Tab selection
# ===========================

def test_default_selection_is_first_work_center(station_rows):
    partitions = prioritization.build_partitions(station_rows)
    assert prioritization.resolve_selection(partitions) == TabSelection("QC", None)


def test_selecting_tu_picks_first_team(station_rows):
    partitions = prioritization.build_partitions(station_rows)
    assert prioritization.resolve_selection(partitions, TabSelection("TU")) == TabSelection("TU", "A")
    assert prioritization.resolve_selection(partitions, TabSelection("TU", "B")) == TabSelection("TU", "B")
    assert prioritization.resolve_selection(partitions, TabSelection("TU", "Z")) == TabSelection("TU", "A")


def test_team_is_dropped_for_other_work_centers(station_rows):
    partitions = prioritization.build_partitions(station_rows)
    assert prioritization.resolve_selection(partitions, TabSelection("SMT", "A")) == TabSelection("SMT", None)
    assert prioritization.resolve_selection(partitions, TabSelection("??")) == TabSelection("QC", None)


def test_select_partition(station_rows):
    partitions = prioritization.build_partitions(station_rows)
    assert prioritization.select_partition(partitions, TabSelection("TU", "B")).label == "TU - B"
    assert prioritization.select_partition(partitions).label == "QC"
    assert prioritization.select_partition([]) is None
    assert prioritization.resolve_selection([]) == TabSelection()
