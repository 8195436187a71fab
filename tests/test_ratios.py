"""Tests for the ratio engine."""

import logging
from decimal import Decimal

import pytest

from filing_metrics.models import HealthStatus, Metric, MetricCategory as C, MetricSource, RatioCategory
from filing_metrics.ratios import LADDERS, compute_ratios


def _metrics(**values):
    return [
        Metric(
            category=C[name.upper()],
            name=name,
            value=Decimal(str(v)),
            source=MetricSource.TABLE,
            confidence=0.9,
        )
        for name, v in values.items()
    ]


FULL = dict(
    revenue=1000,
    cost_of_revenue=600,
    operating_income=220,
    net_income=170,
    depreciation_amortization=50,
    total_assets=2000,
    current_assets=850,
    cash_and_equivalents=200,
    accounts_receivable=100,
    inventory=150,
    total_liabilities=1100,
    current_liabilities=400,
    total_equity=800,
    retained_earnings=500,
    interest_expense=-20,
)


def _by_name(ratios):
    return {r.name: r for r in ratios}


def test_full_catalogue():
    ratios = _by_name(compute_ratios(_metrics(**FULL)))
    assert list(ratios) == [
        "Gross Margin", "Operating Margin", "Net Margin", "Return on Assets",
        "Return on Equity", "EBITDA Margin", "Current Ratio", "Quick Ratio",
        "Cash Ratio", "Working Capital Ratio", "Debt to Equity", "Interest Coverage",
        "Debt Ratio", "Retained Earnings Ratio", "Asset Turnover",
        "Receivables Turnover", "Inventory Turnover",
    ]
    assert set(ratios) == set(LADDERS)


def test_derived_inputs():
    ratios = _by_name(compute_ratios(_metrics(**FULL)))
    # Gross profit from revenue - cost of revenue, EBITDA from operating income + D&A
    assert ratios["Gross Margin"].value == pytest.approx(40.0)
    assert ratios["EBITDA Margin"].value == pytest.approx(27.0)
    # Negative interest expense is treated by magnitude
    assert ratios["Interest Coverage"].value == pytest.approx(11.0)
    assert ratios["Quick Ratio"].value == pytest.approx(1.75)
    assert ratios["Inventory Turnover"].value == pytest.approx(4.0)


def test_formatting_and_families():
    ratios = _by_name(compute_ratios(_metrics(**FULL)))
    assert ratios["Gross Margin"].formatted == "40.0%"
    assert ratios["Cash Ratio"].formatted == "0.50x"
    assert ratios["Gross Margin"].category is RatioCategory.PROFITABILITY
    assert ratios["Cash Ratio"].category is RatioCategory.LIQUIDITY
    assert ratios["Debt Ratio"].category is RatioCategory.SOLVENCY
    assert ratios["Asset Turnover"].category is RatioCategory.EFFICIENCY


def test_health_buckets():
    ratios = _by_name(compute_ratios(_metrics(**FULL)))
    assert ratios["Gross Margin"].health is HealthStatus.GOOD
    assert ratios["Working Capital Ratio"].health is HealthStatus.EXCELLENT
    assert ratios["Debt Ratio"].health is HealthStatus.NEUTRAL
    assert ratios["Inventory Turnover"].health is HealthStatus.NEUTRAL
    assert ratios["Gross Margin"].interpretation == "Gross Margin is healthy."


def test_gross_margin_above_100_percent_is_omitted(caplog):
    with caplog.at_level(logging.WARNING, logger="filing_metrics.ratios"):
        ratios = _by_name(compute_ratios(_metrics(revenue=100, gross_profit=140)))
    assert "Gross Margin" not in ratios
    assert "Gross Margin" in caplog.text


def test_missing_inputs_suppress_ratios():
    assert compute_ratios(_metrics(revenue=1000)) == []
    assert compute_ratios([]) == []


def test_non_positive_denominators_suppress_ratios():
    ratios = _by_name(compute_ratios(_metrics(
        current_assets=100, current_liabilities=0,
        net_income=10, total_equity=-50, total_liabilities=300,
        retained_earnings=-20, total_assets=250,
    )))
    assert "Current Ratio" not in ratios
    assert "Return on Equity" not in ratios
    assert "Debt to Equity" not in ratios
    # Falls back to assets when equity is negative
    assert ratios["Retained Earnings Ratio"].value == pytest.approx(-8.0)
    assert ratios["Retained Earnings Ratio"].health is HealthStatus.WARNING


@pytest.mark.parametrize("value,expected", [
    (50.0, HealthStatus.EXCELLENT),
    (45.0, HealthStatus.EXCELLENT),
    (30.0, HealthStatus.GOOD),
    (20.0, HealthStatus.NEUTRAL),
    (5.0, HealthStatus.CAUTION),
    (-1.0, HealthStatus.WARNING),
])
def test_gross_margin_ladder(value, expected):
    assert LADDERS["Gross Margin"].grade(value) is expected


@pytest.mark.parametrize("value,expected", [
    (25.0, HealthStatus.EXCELLENT),
    (50.0, HealthStatus.GOOD),
    (60.0, HealthStatus.NEUTRAL),
    (80.0, HealthStatus.CAUTION),
    (90.0, HealthStatus.WARNING),
])
def test_debt_ratio_ladder_lower_is_better(value, expected):
    assert LADDERS["Debt Ratio"].grade(value) is expected


def test_interest_coverage_ladder():
    ladder = LADDERS["Interest Coverage"]
    assert ladder.grade(12) is HealthStatus.EXCELLENT
    assert ladder.grade(1.0) is HealthStatus.WARNING
