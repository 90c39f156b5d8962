# Shared pytest fixtures
from __future__ import annotations

import copy

import pytest

WORK_CENTER = "מרכז עבודה"
TEAM = "צוות"
EXPECTED = "מועד סיום צפוי"
QUANTITY = "כמות שהופקה"
REMAINING = "יתרה לביצוע"
PRIORITY = "הערות מנהל פרויקט"
PRODUCT = "תאור מוצר"
ORDER = "פק\"ע"


def make_row(order, work_center="QC", team="", expected="", quantity="", remaining="", priority="", product="widget"):
    return {
        ORDER: order,
        WORK_CENTER: work_center,
        TEAM: team,
        PRODUCT: product,
        EXPECTED: expected,
        QUANTITY: quantity,
        REMAINING: remaining,
        PRIORITY: priority,
    }


@pytest.fixture()
def station_rows() -> list[dict]:
    return [
        make_row("1001", "QC", expected="10.01.2024", quantity=40),
        make_row("1002", "TU", team="A", expected="05.01.2024", quantity=5),
        make_row("1003", "QC", expected="20.01.2024", quantity=5),
        make_row("1004", "TU", team="B", expected=45300, quantity="1,200"),
        make_row("1005", "TU", team="A", expected="", quantity=5, priority="Priority 1"),
        make_row("1006", "TU", team="A", expected="01.01.2024", quantity=10, remaining=3),
        make_row("1007", "SMT", expected="", quantity=""),
    ]


@pytest.fixture()
def frozen(station_rows):
    """Deep copy of the rows for no-mutation checks."""
    return copy.deepcopy(station_rows)
