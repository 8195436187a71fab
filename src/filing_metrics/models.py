"""Pydantic models for extracted metrics, statement tables and ratios."""

from __future__ import annotations

from decimal import Decimal
from enum import Enum

from pydantic import BaseModel, ConfigDict, Field


# ---------------------------------------------------------------------------
# Enumerations
# ---------------------------------------------------------------------------

class StatementGroup(str, Enum):
    INCOME_STATEMENT = "income_statement"
    ASSETS = "assets"
    LIABILITIES = "liabilities"
    EQUITY = "equity"
    CASH_FLOW = "cash_flow"
    PER_SHARE = "per_share"
    SHARES = "shares"


class MetricCategory(str, Enum):
    """Closed set of canonical line items.

    Declaration order is the output order of merged metric lists.
    """

    # Income statement
    REVENUE = "revenue"
    PRODUCT_REVENUE = "product_revenue"
    SERVICE_REVENUE = "service_revenue"
    COST_OF_REVENUE = "cost_of_revenue"
    GROSS_PROFIT = "gross_profit"
    RD_EXPENSE = "rd_expense"
    SGA_EXPENSE = "sga_expense"
    OPERATING_EXPENSES = "operating_expenses"
    TOTAL_EXPENSES = "total_expenses"
    OPERATING_INCOME = "operating_income"
    INTEREST_EXPENSE = "interest_expense"
    INTEREST_INCOME = "interest_income"
    OTHER_INCOME = "other_income"
    INCOME_BEFORE_TAX = "income_before_tax"
    INCOME_TAX = "income_tax"
    NET_INCOME = "net_income"
    COMPREHENSIVE_INCOME = "comprehensive_income"
    OTHER_COMPREHENSIVE_INCOME = "other_comprehensive_income"
    EBITDA = "ebitda"
    DEPRECIATION = "depreciation"
    AMORTIZATION = "amortization"
    DEPRECIATION_AMORTIZATION = "depreciation_amortization"

    # Balance sheet: assets
    TOTAL_ASSETS = "total_assets"
    CURRENT_ASSETS = "current_assets"
    CASH_AND_EQUIVALENTS = "cash_and_equivalents"
    MARKETABLE_SECURITIES = "marketable_securities"
    ACCOUNTS_RECEIVABLE = "accounts_receivable"
    INVENTORY = "inventory"
    RAW_MATERIALS = "raw_materials"
    WORK_IN_PROCESS = "work_in_process"
    FINISHED_GOODS = "finished_goods"
    PREPAID_EXPENSES = "prepaid_expenses"
    OTHER_CURRENT_ASSETS = "other_current_assets"
    FIXED_ASSETS = "fixed_assets"
    GOODWILL = "goodwill"
    INTANGIBLE_ASSETS = "intangible_assets"
    LONG_TERM_INVESTMENTS = "long_term_investments"
    DEFERRED_TAX_ASSETS = "deferred_tax_assets"
    OPERATING_LEASE_ASSETS = "operating_lease_assets"

    # Balance sheet: liabilities
    TOTAL_LIABILITIES = "total_liabilities"
    CURRENT_LIABILITIES = "current_liabilities"
    ACCOUNTS_PAYABLE = "accounts_payable"
    ACCRUED_EXPENSES = "accrued_expenses"
    DEFERRED_REVENUE = "deferred_revenue"
    SHORT_TERM_DEBT = "short_term_debt"
    LONG_TERM_DEBT = "long_term_debt"
    OPERATING_LEASE_LIABILITIES = "operating_lease_liabilities"
    LONG_TERM_LEASE_LIABILITIES = "long_term_lease_liabilities"
    DEFERRED_TAX_LIABILITIES = "deferred_tax_liabilities"

    # Balance sheet: equity
    TOTAL_EQUITY = "total_equity"
    COMMON_STOCK = "common_stock"
    ADDITIONAL_PAID_IN_CAPITAL = "additional_paid_in_capital"
    RETAINED_EARNINGS = "retained_earnings"
    TREASURY_STOCK = "treasury_stock"
    ACCUMULATED_OCI = "accumulated_oci"
    NONCONTROLLING_INTEREST = "noncontrolling_interest"

    # Cash flow
    OPERATING_CASH_FLOW = "operating_cash_flow"
    INVESTING_CASH_FLOW = "investing_cash_flow"
    FINANCING_CASH_FLOW = "financing_cash_flow"
    FREE_CASH_FLOW = "free_cash_flow"
    CAPITAL_EXPENDITURES = "capital_expenditures"
    INVESTMENT_PURCHASES = "investment_purchases"
    INVESTMENT_PROCEEDS = "investment_proceeds"
    ACQUISITIONS = "acquisitions"
    DIVIDENDS_PAID = "dividends_paid"
    SHARE_REPURCHASES = "share_repurchases"
    DEBT_ISSUED = "debt_issued"
    DEBT_REPAID = "debt_repaid"
    STOCK_COMPENSATION = "stock_compensation"
    WORKING_CAPITAL_CHANGES = "working_capital_changes"
    NET_CHANGE_IN_CASH = "net_change_in_cash"

    # Per share
    EPS_BASIC = "eps_basic"
    EPS_DILUTED = "eps_diluted"
    BOOK_VALUE_PER_SHARE = "book_value_per_share"
    DIVIDENDS_PER_SHARE = "dividends_per_share"

    # Shares
    SHARES_OUTSTANDING = "shares_outstanding"
    SHARES_DILUTED = "shares_diluted"

    @property
    def group(self) -> StatementGroup:
        return CATEGORY_GROUPS[self]

    @property
    def display_name(self) -> str:
        return CATEGORY_DISPLAY_NAMES.get(self, self.value.replace("_", " ").title())

    @property
    def default_unit(self) -> MetricUnit:
        if self.group is StatementGroup.PER_SHARE:
            return MetricUnit.PER_SHARE
        if self.group is StatementGroup.SHARES:
            return MetricUnit.SHARES
        return MetricUnit.DOLLARS


class MetricUnit(str, Enum):
    DOLLARS = "dollars"
    SHARES = "shares"
    RATIO = "ratio"
    PER_SHARE = "per_share"
    NONE = "none"


class PeriodType(str, Enum):
    QUARTERLY = "quarterly"
    ANNUAL = "annual"
    YTD = "ytd"


class MetricSource(str, Enum):
    STRUCTURED = "structured"
    STRUCTURED_FALLBACK = "structured_fallback"
    TABLE = "table"
    PATTERN = "pattern"

    @property
    def rank(self) -> int:
        """Merge priority: author-declared facts, then tables, then free text."""
        return _SOURCE_RANK[self]


_SOURCE_RANK = {
    MetricSource.STRUCTURED: 3,
    MetricSource.STRUCTURED_FALLBACK: 3,
    MetricSource.TABLE: 2,
    MetricSource.PATTERN: 1,
}


class Scale(str, Enum):
    """Reporting scale declared by "(in millions)" style captions."""

    ONES = "ones"
    THOUSANDS = "thousands"
    MILLIONS = "millions"
    BILLIONS = "billions"

    @property
    def multiplier(self) -> Decimal:
        return _SCALE_MULTIPLIERS[self]


_SCALE_MULTIPLIERS = {
    Scale.ONES: Decimal(1),
    Scale.THOUSANDS: Decimal(1_000),
    Scale.MILLIONS: Decimal(1_000_000),
    Scale.BILLIONS: Decimal(1_000_000_000),
}


class StatementType(str, Enum):
    INCOME_STATEMENT = "income_statement"
    BALANCE_SHEET = "balance_sheet"
    CASH_FLOW = "cash_flow"
    COMPREHENSIVE_INCOME = "comprehensive_income"
    EQUITY = "equity"


class RatioCategory(str, Enum):
    PROFITABILITY = "profitability"
    LIQUIDITY = "liquidity"
    SOLVENCY = "solvency"
    EFFICIENCY = "efficiency"


class HealthStatus(str, Enum):
    EXCELLENT = "excellent"
    GOOD = "good"
    NEUTRAL = "neutral"
    CAUTION = "caution"
    WARNING = "warning"


# ---------------------------------------------------------------------------
# Category metadata
# ---------------------------------------------------------------------------

def _group(group: StatementGroup, first: MetricCategory, last: MetricCategory) -> dict:
    members = list(MetricCategory)
    span = members[members.index(first): members.index(last) + 1]
    return {c: group for c in span}


CATEGORY_GROUPS: dict[MetricCategory, StatementGroup] = {
    **_group(StatementGroup.INCOME_STATEMENT,
             MetricCategory.REVENUE, MetricCategory.DEPRECIATION_AMORTIZATION),
    **_group(StatementGroup.ASSETS,
             MetricCategory.TOTAL_ASSETS, MetricCategory.OPERATING_LEASE_ASSETS),
    **_group(StatementGroup.LIABILITIES,
             MetricCategory.TOTAL_LIABILITIES, MetricCategory.DEFERRED_TAX_LIABILITIES),
    **_group(StatementGroup.EQUITY,
             MetricCategory.TOTAL_EQUITY, MetricCategory.NONCONTROLLING_INTEREST),
    **_group(StatementGroup.CASH_FLOW,
             MetricCategory.OPERATING_CASH_FLOW, MetricCategory.NET_CHANGE_IN_CASH),
    **_group(StatementGroup.PER_SHARE,
             MetricCategory.EPS_BASIC, MetricCategory.DIVIDENDS_PER_SHARE),
    **_group(StatementGroup.SHARES,
             MetricCategory.SHARES_OUTSTANDING, MetricCategory.SHARES_DILUTED),
}

CATEGORY_DISPLAY_NAMES: dict[MetricCategory, str] = {
    MetricCategory.REVENUE: "Total Revenue",
    MetricCategory.RD_EXPENSE: "Research & Development",
    MetricCategory.SGA_EXPENSE: "Selling, General & Administrative",
    MetricCategory.EBITDA: "EBITDA",
    MetricCategory.DEPRECIATION_AMORTIZATION: "Depreciation & Amortization",
    MetricCategory.CASH_AND_EQUIVALENTS: "Cash & Cash Equivalents",
    MetricCategory.FIXED_ASSETS: "Property, Plant & Equipment",
    MetricCategory.TOTAL_EQUITY: "Total Stockholders' Equity",
    MetricCategory.ACCUMULATED_OCI: "Accumulated Other Comprehensive Income",
    MetricCategory.STOCK_COMPENSATION: "Stock-Based Compensation",
    MetricCategory.EPS_BASIC: "EPS (Basic)",
    MetricCategory.EPS_DILUTED: "EPS (Diluted)",
    MetricCategory.SHARES_DILUTED: "Diluted Shares Outstanding",
}


def format_value(value: Decimal | float | None, unit: MetricUnit = MetricUnit.DOLLARS) -> str:
    """Format a number for display (e.g., $1.23B, $456M, $6.11/share)."""
    if value is None:
        return "N/A"
    v = float(value)
    if unit is MetricUnit.PER_SHARE:
        return f"${v:,.2f}"
    if unit is MetricUnit.SHARES:
        return f"{v:,.0f} shares"
    if unit in (MetricUnit.RATIO, MetricUnit.NONE):
        return f"{v:,.2f}"
    sign = "-" if v < 0 else ""
    av = abs(v)
    if av >= 1e12:
        return f"{sign}${av / 1e12:,.2f}T"
    if av >= 1e9:
        return f"{sign}${av / 1e9:,.2f}B"
    if av >= 1e6:
        return f"{sign}${av / 1e6:,.2f}M"
    return f"{sign}${av:,.0f}"


# ---------------------------------------------------------------------------
# Extracted data
# ---------------------------------------------------------------------------

class Metric(BaseModel):
    model_config = ConfigDict(frozen=True)

    category: MetricCategory
    name: str
    value: Decimal  # full scale, never "in millions"
    unit: MetricUnit = MetricUnit.DOLLARS
    period: str | None = None
    period_type: PeriodType | None = None
    source: MetricSource
    confidence: float = Field(ge=0.0, le=1.0)
    context: str = ""
    yoy_change: float | None = None

    @property
    def display_value(self) -> str:
        return format_value(self.value, self.unit)


class Context(BaseModel):
    model_config = ConfigDict(frozen=True)

    id: str
    instant: str | None = None
    start_date: str | None = None
    end_date: str | None = None
    dimensional: bool = False  # carries segment/scenario members

    @property
    def period(self) -> str | None:
        return self.instant or self.end_date or self.start_date


class Row(BaseModel):
    model_config = ConfigDict(frozen=True)

    label: str
    values: list[Decimal | None]
    is_total: bool = False
    is_subtotal: bool = False
    indent_level: int = 0
    category: MetricCategory | None = None


class Table(BaseModel):
    model_config = ConfigDict(frozen=True)

    statement_type: StatementType
    title: str
    periods: list[str]
    rows: list[Row]
    unit: Scale = Scale.MILLIONS
    excerpt: str = ""


# ---------------------------------------------------------------------------
# Ratios
# ---------------------------------------------------------------------------

class Ratio(BaseModel):
    model_config = ConfigDict(frozen=True)

    name: str
    value: float
    formatted: str
    category: RatioCategory
    health: HealthStatus
    description: str = ""
    interpretation: str = ""


# ---------------------------------------------------------------------------
# Pipeline output
# ---------------------------------------------------------------------------

class FilingAnalysis(BaseModel):
    model_config = ConfigDict(frozen=True)

    document_name: str
    status: str = "ok"  # "ok" | "no_content" | "error"
    metrics: list[Metric] = []
    tables: list[Table] = []
    ratios: list[Ratio] = []
    cleaned_text: str = ""
    metadata: dict[str, str] = {}

    def metric(self, category: MetricCategory) -> Metric | None:
        for m in self.metrics:
            if m.category is category:
                return m
        return None

    def ratio(self, name: str) -> Ratio | None:
        for r in self.ratios:
            if r.name == name:
                return r
        return None
