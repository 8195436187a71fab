"""Tests for the financial statement table parser."""

from decimal import Decimal

import pytest

from filing_metrics.models import MetricCategory, MetricSource, MetricUnit, PeriodType, Scale, StatementType
from filing_metrics.statements import (
    find_statement_sections,
    parse_number,
    parse_row,
    parse_tables,
    table_frame,
    table_records,
    tables_to_metrics,
)

INCOME_GRID = """CONSOLIDATED STATEMENTS OF OPERATIONS
(in millions, except per-share amounts)
| | 2024 | 2023 |
| Total Revenue | 89,498 | 82,959 |
| Cost of sales | 40,000 | 38,000 |
| Other income | — | 12 |
| Net income | (1,200) | 3,100 |
| Diluted earnings per share | 1.25 | 1.10 |
"""

INCOME_TEXT = """CONSOLIDATED STATEMENTS OF INCOME
(In millions)
                                  2024       2023
Net sales                       $ 1,200    $ 1,000
Cost of sales                       700        600
  Gross profit                      500        400
Net income                        (50)        30
"""


def _metric(metrics, category):
    return next(m for m in metrics if m.category is category)


# --- Numbers & rows ---


def test_parse_number():
    assert parse_number("(1,234.5)") == Decimal("-1234.5")
    assert parse_number("$ 12") == Decimal("12")
    assert parse_number("-7") == Decimal("-7")
    assert parse_number("—") is None
    assert parse_number("") is None


def test_grid_row():
    row = parse_row("| Total Revenue | $ | 89,498 | 82,959 |")
    assert row.label == "Total Revenue"
    assert row.values == [Decimal("89498"), Decimal("82959")]
    assert row.is_total
    assert row.category is MetricCategory.REVENUE


def test_grid_row_indent_from_leading_cells():
    row = parse_row("| | Cost of sales | 40 |")
    assert row.indent_level == 1
    assert row.category is MetricCategory.COST_OF_REVENUE


def test_text_row_splits_on_first_number():
    row = parse_row("Net income (loss)          (50)      30")
    assert row.label == "Net income (loss)"
    assert row.values == [Decimal("-50"), Decimal("30")]
    assert row.category is MetricCategory.NET_INCOME


@pytest.mark.parametrize("line", [
    "| Page 45 | 12 |",
    "| See Note 4 | 1,000 |",
    "| F-3 | 12 |",
    "ab 12",
    "| 2024 | 2023 |",
    "(in millions) 2024",
])
def test_noise_rows_are_discarded(line):
    assert parse_row(line) is None


# --- Section search ---


def test_scale_resolution_from_section_caption():
    tables = parse_tables(INCOME_GRID)
    assert len(tables) == 1
    table = tables[0]
    assert table.statement_type is StatementType.INCOME_STATEMENT
    assert table.unit is Scale.MILLIONS
    assert table.periods == ["2024", "2023"]

    metrics = tables_to_metrics(tables)
    revenue = _metric(metrics, MetricCategory.REVENUE)
    assert revenue.value == Decimal("89498000000")
    assert revenue.period == "2024"
    assert revenue.period_type is PeriodType.ANNUAL
    assert revenue.source is MetricSource.TABLE
    assert revenue.yoy_change == pytest.approx(7.88)


def test_total_rows_carry_higher_confidence():
    metrics = tables_to_metrics(parse_tables(INCOME_GRID))
    assert _metric(metrics, MetricCategory.REVENUE).confidence == pytest.approx(0.95)
    assert _metric(metrics, MetricCategory.COST_OF_REVENUE).confidence == pytest.approx(0.85)


def test_per_share_values_are_not_scaled():
    metrics = tables_to_metrics(parse_tables(INCOME_GRID))
    eps = _metric(metrics, MetricCategory.EPS_DILUTED)
    assert eps.value == Decimal("1.25")
    assert eps.unit is MetricUnit.PER_SHARE


def test_negative_and_missing_cells():
    metrics = tables_to_metrics(parse_tables(INCOME_GRID))
    assert _metric(metrics, MetricCategory.NET_INCOME).value == Decimal("-1200000000")
    other = _metric(metrics, MetricCategory.OTHER_INCOME)
    assert other.value == Decimal("12000000")
    assert other.period == "2023"


def test_line_based_fallback_without_grid():
    tables = parse_tables(INCOME_TEXT)
    assert [t.statement_type for t in tables] == [StatementType.INCOME_STATEMENT]
    metrics = tables_to_metrics(tables)
    assert _metric(metrics, MetricCategory.REVENUE).value == Decimal("1200000000")
    assert _metric(metrics, MetricCategory.NET_INCOME).value == Decimal("-50000000")
    gross = _metric(metrics, MetricCategory.GROSS_PROFIT)
    assert gross.confidence == pytest.approx(0.84)


def test_sections_bounded_by_next_heading_and_notes():
    text = """CONSOLIDATED BALANCE SHEETS
(in thousands)
| Total current assets | 1,500 |
| Total assets | 5,000 |
| Total liabilities | 3,000 |
CONSOLIDATED STATEMENTS OF CASH FLOWS
| Net cash provided by operating activities | 700 |
Notes to Consolidated Financial Statements
| Total assets | 99 |
"""
    tables = {t.statement_type: t for t in parse_tables(text)}
    assert set(tables) == {StatementType.BALANCE_SHEET, StatementType.CASH_FLOW}

    balance = tables[StatementType.BALANCE_SHEET]
    assert balance.unit is Scale.THOUSANDS
    assert [r.category for r in balance.rows] == [
        MetricCategory.CURRENT_ASSETS, MetricCategory.TOTAL_ASSETS, MetricCategory.TOTAL_LIABILITIES,
    ]
    cash_flow = tables[StatementType.CASH_FLOW]
    assert [r.category for r in cash_flow.rows] == [MetricCategory.OPERATING_CASH_FLOW]

    assets = _metric(tables_to_metrics([balance]), MetricCategory.TOTAL_ASSETS)
    assert assets.value == Decimal("5000000")


def test_table_of_contents_hits_are_skipped():
    text = """Table of Contents
Consolidated Balance Sheets 45
Consolidated Statements of Operations 46

CONSOLIDATED BALANCE SHEETS
(in millions)
| Total assets | 352,583 |
"""
    sections = find_statement_sections(text, StatementType.BALANCE_SHEET)
    assert len(sections) == 2

    tables = parse_tables(text)
    assert [t.statement_type for t in tables] == [StatementType.BALANCE_SHEET]
    assets = _metric(tables_to_metrics(tables), MetricCategory.TOTAL_ASSETS)
    assert assets.value == Decimal("352583000000")


def test_region_scan_when_no_heading():
    text = """Selected data
Total revenue 5,000 4,000
Cost of revenue 3,000 2,500
Net income 800 600
Other text here
"""
    tables = parse_tables(text)
    assert len(tables) == 1
    assert tables[0].statement_type is StatementType.INCOME_STATEMENT
    assert tables[0].title.startswith("Statement region")
    assert tables[0].unit is Scale.MILLIONS


def test_region_scan_needs_minimum_rows():
    assert parse_tables("Total revenue 5,000\nNet income 800\n") == []


def test_empty_text():
    assert parse_tables("") == []


# --- Tabular views ---


def test_table_frame_columns():
    table = parse_tables(INCOME_GRID)[0]
    df = table_frame(table)
    assert list(df.columns) == ["label", "category", "is_total", "indent_level", "2024", "2023"]
    assert len(df) == 5


def test_table_records_are_json_safe():
    table = parse_tables(INCOME_GRID)[0]
    records = table_records(table)
    other = next(r for r in records if r["label"] == "Other income")
    assert other["2024"] is None
    assert other["2023"] == 12.0
    assert records[0]["category"] == "revenue"


def test_pipe_rows_without_leading_pipe():
    row = parse_row("Total Revenue | 89,498 | 82,959")
    assert row.label == "Total Revenue"
    assert row.values == [Decimal("89498"), Decimal("82959")]

    text = """CONSOLIDATED STATEMENTS OF OPERATIONS
(in millions)
Products | 300 | 250
Services | 200 | 180
Sales | 500 | 430
Total Revenue | 520 | 450
"""
    rows = parse_tables(text)[0].rows
    assert [(r.label, r.category) for r in rows] == [
        ("Products", MetricCategory.PRODUCT_REVENUE),
        ("Services", MetricCategory.SERVICE_REVENUE),
        ("Sales", MetricCategory.REVENUE),
        ("Total Revenue", MetricCategory.REVENUE),
    ]
    metrics = tables_to_metrics(parse_tables(text))
    assert all("|" not in m.name for m in metrics)
