"""Financial ratio catalogue with plausibility bounds and health ladders.

Seventeen ratios across four families:

  Profitability  gross / operating / net / EBITDA margin, ROA, ROE
  Liquidity      current, quick, cash, working-capital ratio
  Solvency       debt-to-equity, interest coverage, debt ratio,
                 retained-earnings ratio
  Efficiency     asset, receivables, inventory turnover

A ratio is only reported when every input is present and its denominator
is positive. Margins above 100% almost always mean a mis-scaled or
mis-mapped upstream figure, so they are dropped instead of shown.
"""

from __future__ import annotations

import logging
from collections.abc import Iterable
from typing import NamedTuple

from filing_metrics.merger import metrics_by_category
from filing_metrics.models import HealthStatus, Metric, MetricCategory as C, Ratio, RatioCategory

log = logging.getLogger(__name__)

MAX_MARGIN_PCT = 100.0


class Ladder(NamedTuple):
    """Thresholds for excellent / good / neutral / caution, best first."""

    excellent: float
    good: float
    neutral: float
    caution: float
    lower_is_better: bool = False

    def grade(self, value: float) -> HealthStatus:
        steps = (
            (self.excellent, HealthStatus.EXCELLENT),
            (self.good, HealthStatus.GOOD),
            (self.neutral, HealthStatus.NEUTRAL),
            (self.caution, HealthStatus.CAUTION),
        )
        for threshold, status in steps:
            if (value <= threshold) if self.lower_is_better else (value >= threshold):
                return status
        return HealthStatus.WARNING


# ═══════════════════════════════════════════════════════════════════════════
#  Health ladders (fixed constants)
# ═══════════════════════════════════════════════════════════════════════════

LADDERS: dict[str, Ladder] = {
    "Gross Margin": Ladder(45.0, 30.0, 15.0, 0.0),
    "Operating Margin": Ladder(30.0, 20.0, 10.0, 0.0),
    "Net Margin": Ladder(22.5, 15.0, 5.0, 0.0),
    "EBITDA Margin": Ladder(30.0, 20.0, 10.0, 0.0),
    "Return on Assets": Ladder(12.0, 8.0, 2.0, 0.0),
    "Return on Equity": Ladder(30.0, 20.0, 10.0, 0.0),
    "Current Ratio": Ladder(3.0, 2.0, 1.0, 0.5),
    "Quick Ratio": Ladder(2.25, 1.5, 0.8, 0.4),
    "Cash Ratio": Ladder(0.75, 0.5, 0.2, 0.1),
    "Working Capital Ratio": Ladder(20.0, 10.0, 5.0, 0.0),
    "Debt to Equity": Ladder(100.0, 150.0, 200.0, 300.0, lower_is_better=True),
    "Interest Coverage": Ladder(10.0, 5.0, 2.5, 1.5),
    "Debt Ratio": Ladder(30.0, 50.0, 70.0, 85.0, lower_is_better=True),
    "Retained Earnings Ratio": Ladder(60.0, 40.0, 20.0, 0.0),
    "Asset Turnover": Ladder(0.75, 0.5, 0.25, 0.125),
    "Receivables Turnover": Ladder(12.0, 8.0, 4.0, 2.0),
    "Inventory Turnover": Ladder(10.5, 7.0, 3.0, 1.5),
}

_MARGINS = {"Gross Margin", "Operating Margin", "Net Margin", "EBITDA Margin"}

_INTERPRETATIONS = {
    HealthStatus.EXCELLENT: "{name} is excellent.",
    HealthStatus.GOOD: "{name} is healthy.",
    HealthStatus.NEUTRAL: "{name} is around average.",
    HealthStatus.CAUTION: "{name} needs attention.",
    HealthStatus.WARNING: "{name} is at risk level.",
}


def _div(a: float | None, b: float | None) -> float | None:
    """Safe division: None if either operand is missing or the divisor is not positive."""
    if a is None or b is None or b <= 0:
        return None
    return a / b


def _pct(a: float | None, b: float | None) -> float | None:
    v = _div(a, b)
    return None if v is None else v * 100


def _make_ratio(
    name: str,
    value: float | None,
    category: RatioCategory,
    description: str,
    percent: bool,
) -> Ratio | None:
    if value is None:
        return None
    if name in _MARGINS and value > MAX_MARGIN_PCT:
        log.warning("Suppressing %s of %.1f%% (likely an upstream parsing error)", name, value)
        return None
    health = LADDERS[name].grade(value)
    return Ratio(
        name=name,
        value=round(value, 4),
        formatted=f"{value:.1f}%" if percent else f"{value:.2f}x",
        category=category,
        health=health,
        description=description,
        interpretation=_INTERPRETATIONS[health].format(name=name),
    )


def compute_ratios(metrics: Iterable[Metric]) -> list[Ratio]:
    """Compute every ratio whose inputs are available, in catalogue order."""
    by_cat = metrics_by_category(metrics)

    def v(category: C) -> float | None:
        m = by_cat.get(category)
        return float(m.value) if m is not None else None

    rev = v(C.REVENUE)
    cogs = v(C.COST_OF_REVENUE)
    gp = v(C.GROSS_PROFIT)
    oi = v(C.OPERATING_INCOME)
    ni = v(C.NET_INCOME)
    ebitda = v(C.EBITDA)
    ta = v(C.TOTAL_ASSETS)
    ca = v(C.CURRENT_ASSETS)
    cash = v(C.CASH_AND_EQUIVALENTS)
    ar = v(C.ACCOUNTS_RECEIVABLE)
    inv = v(C.INVENTORY)
    tl = v(C.TOTAL_LIABILITIES)
    cl = v(C.CURRENT_LIABILITIES)
    eq = v(C.TOTAL_EQUITY)
    re_ = v(C.RETAINED_EARNINGS)
    interest = v(C.INTEREST_EXPENSE)

    # Expenses are sometimes reported with a negative sign
    if cogs is not None:
        cogs = abs(cogs)
    if interest is not None:
        interest = abs(interest)

    if gp is None and rev is not None and cogs is not None:
        gp = rev - cogs
    if ebitda is None and oi is not None:
        da = v(C.DEPRECIATION_AMORTIZATION)
        if da is None:
            dep, amort = v(C.DEPRECIATION), v(C.AMORTIZATION)
            if dep is not None or amort is not None:
                da = (dep or 0.0) + (amort or 0.0)
        if da is not None:
            ebitda = oi + abs(da)

    quick_assets = None
    if ca is not None and inv is not None:
        quick_assets = ca - inv
    working_capital = None
    if ca is not None and cl is not None:
        working_capital = ca - cl
    re_base = eq if eq is not None and eq > 0 else ta

    P, L, S, E = (
        RatioCategory.PROFITABILITY, RatioCategory.LIQUIDITY,
        RatioCategory.SOLVENCY, RatioCategory.EFFICIENCY,
    )
    candidates = [
        _make_ratio("Gross Margin", _pct(gp, rev), P, "Gross profit as a share of revenue", True),
        _make_ratio("Operating Margin", _pct(oi, rev), P, "Operating income as a share of revenue", True),
        _make_ratio("Net Margin", _pct(ni, rev), P, "Net income as a share of revenue", True),
        _make_ratio("Return on Assets", _pct(ni, ta), P, "Net income relative to total assets", True),
        _make_ratio("Return on Equity", _pct(ni, eq), P, "Net income relative to stockholders' equity", True),
        _make_ratio("EBITDA Margin", _pct(ebitda, rev), P, "EBITDA as a share of revenue", True),
        _make_ratio("Current Ratio", _div(ca, cl), L, "Current assets over current liabilities", False),
        _make_ratio("Quick Ratio", _div(quick_assets, cl), L,
                    "Current assets excluding inventory over current liabilities", False),
        _make_ratio("Cash Ratio", _div(cash, cl), L, "Cash and equivalents over current liabilities", False),
        _make_ratio("Working Capital Ratio", _pct(working_capital, ta), L,
                    "Working capital relative to total assets", True),
        _make_ratio("Debt to Equity", _pct(tl, eq), S, "Total liabilities relative to stockholders' equity", True),
        _make_ratio("Interest Coverage", _div(oi, interest), S, "Operating income over interest expense", False),
        _make_ratio("Debt Ratio", _pct(tl, ta), S, "Total liabilities as a share of total assets", True),
        _make_ratio("Retained Earnings Ratio", _pct(re_, re_base), S,
                    "Retained earnings relative to equity (or assets when equity is not positive)", True),
        _make_ratio("Asset Turnover", _div(rev, ta), E, "Revenue generated per dollar of assets", False),
        _make_ratio("Receivables Turnover", _div(rev, ar), E, "Revenue over accounts receivable", False),
        _make_ratio("Inventory Turnover", _div(cogs, inv), E, "Cost of revenue over inventory", False),
    ]
    ratios = [r for r in candidates if r is not None]
    log.info("Computed %d of %d ratios", len(ratios), len(LADDERS))
    return ratios
