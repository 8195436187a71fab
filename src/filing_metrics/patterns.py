"""Pattern-based metric extraction from cleaned filing text.

Catches figures the table parser misses: numbers stated in prose
("Total revenue was $3.5 billion") or in rows whose statement heading was
never found.

Each catalogue entry is a term variant with a base confidence; specific
phrasings ("Total Revenue") outrank generic ones ("Revenue"). For every
term three numeric-adjacency regexes run over the text:

  1. inline:    ``Total Revenue: $ 520`` or ``| Total Revenue | 89,498 |``
  2. prose:     ``Total revenue was $3.5 billion``
  3. negative:  ``Net Loss (123,456)``

Up to ``pattern_max_matches`` distinct hits per term are kept in document
order; the n-th hit's confidence is ``base * (1 - n * decay)``.
"""

from __future__ import annotations

import logging
import re
from decimal import Decimal, InvalidOperation
from typing import NamedTuple

from filing_metrics.captions import detect_period, detect_period_type, detect_scale, nearest_scale
from filing_metrics.config import get_config
from filing_metrics.models import Metric, MetricCategory as C, MetricSource, MetricUnit, Scale

log = logging.getLogger(__name__)


class PatternDef(NamedTuple):
    term: str
    category: C
    confidence: float
    negative: bool = False  # the term itself names a loss or deficit


# ═══════════════════════════════════════════════════════════════════════════
#  Term catalogue (order is evaluation order; ties in confidence keep it)
# ═══════════════════════════════════════════════════════════════════════════

PATTERN_CATALOGUE: list[PatternDef] = [
    # Revenue
    PatternDef("Total Revenue", C.REVENUE, 1.0),
    PatternDef("Total Revenues", C.REVENUE, 1.0),
    PatternDef("Total Net Sales", C.REVENUE, 0.95),
    PatternDef("Net Revenue", C.REVENUE, 0.95),
    PatternDef("Net Revenues", C.REVENUE, 0.95),
    PatternDef("Net Sales", C.REVENUE, 0.9),
    PatternDef("Total Sales", C.REVENUE, 0.9),
    PatternDef("Revenue", C.REVENUE, 0.8),
    PatternDef("Revenues", C.REVENUE, 0.8),
    PatternDef("Sales", C.REVENUE, 0.7),
    PatternDef("Product Sales", C.PRODUCT_REVENUE, 1.0),
    PatternDef("Product Revenue", C.PRODUCT_REVENUE, 1.0),
    PatternDef("Service Revenue", C.SERVICE_REVENUE, 1.0),
    PatternDef("Services Revenue", C.SERVICE_REVENUE, 0.95),
    # Costs & profit
    PatternDef("Cost of Revenue", C.COST_OF_REVENUE, 1.0),
    PatternDef("Cost of Revenues", C.COST_OF_REVENUE, 1.0),
    PatternDef("Cost of Sales", C.COST_OF_REVENUE, 0.95),
    PatternDef("Cost of Goods Sold", C.COST_OF_REVENUE, 0.95),
    PatternDef("COGS", C.COST_OF_REVENUE, 0.9),
    PatternDef("Gross Profit", C.GROSS_PROFIT, 1.0),
    PatternDef("Gross Margin", C.GROSS_PROFIT, 0.9),
    PatternDef("Operating Income", C.OPERATING_INCOME, 1.0),
    PatternDef("Operating Profit", C.OPERATING_INCOME, 0.95),
    PatternDef("Income from Operations", C.OPERATING_INCOME, 0.95),
    PatternDef("Operating Loss", C.OPERATING_INCOME, 0.9, negative=True),
    PatternDef("Net Income (Loss)", C.NET_INCOME, 1.0),
    PatternDef("Net Income", C.NET_INCOME, 1.0),
    PatternDef("Net Earnings", C.NET_INCOME, 0.95),
    PatternDef("Net Profit", C.NET_INCOME, 0.95),
    PatternDef("Net Loss", C.NET_INCOME, 0.9, negative=True),
    PatternDef("EBITDA", C.EBITDA, 1.0),
    PatternDef("Adjusted EBITDA", C.EBITDA, 0.95),
    # Expenses & other income statement items
    PatternDef("Total Operating Expenses", C.OPERATING_EXPENSES, 1.0),
    PatternDef("Operating Expenses", C.OPERATING_EXPENSES, 0.9),
    PatternDef("Total Costs and Expenses", C.TOTAL_EXPENSES, 1.0),
    PatternDef("Total Expenses", C.TOTAL_EXPENSES, 0.95),
    PatternDef("Research and Development", C.RD_EXPENSE, 1.0),
    PatternDef("R&D Expense", C.RD_EXPENSE, 1.0),
    PatternDef("Selling, General and Administrative", C.SGA_EXPENSE, 0.95),
    PatternDef("SG&A Expense", C.SGA_EXPENSE, 1.0),
    PatternDef("Interest Expense", C.INTEREST_EXPENSE, 1.0),
    PatternDef("Interest Costs", C.INTEREST_EXPENSE, 0.95),
    PatternDef("Interest Paid", C.INTEREST_EXPENSE, 0.9),
    PatternDef("Interest Income", C.INTEREST_INCOME, 1.0),
    PatternDef("Interest and Other Income", C.INTEREST_INCOME, 0.9),
    PatternDef("Other Income", C.OTHER_INCOME, 0.85),
    PatternDef("Income Before Income Taxes", C.INCOME_BEFORE_TAX, 1.0),
    PatternDef("Income Before Taxes", C.INCOME_BEFORE_TAX, 1.0),
    PatternDef("Pretax Income", C.INCOME_BEFORE_TAX, 0.95),
    PatternDef("Provision for Income Taxes", C.INCOME_TAX, 1.0),
    PatternDef("Income Tax Expense", C.INCOME_TAX, 0.95),
    PatternDef("Depreciation and Amortization", C.DEPRECIATION_AMORTIZATION, 1.0),
    PatternDef("Depreciation", C.DEPRECIATION, 0.9),
    PatternDef("Amortization", C.AMORTIZATION, 0.9),
    # Assets
    PatternDef("Total Assets", C.TOTAL_ASSETS, 1.0),
    PatternDef("Total Current Assets", C.CURRENT_ASSETS, 1.0),
    PatternDef("Current Assets", C.CURRENT_ASSETS, 0.95),
    PatternDef("Cash and Cash Equivalents", C.CASH_AND_EQUIVALENTS, 1.0),
    PatternDef("Cash and Equivalents", C.CASH_AND_EQUIVALENTS, 0.95),
    PatternDef("Cash", C.CASH_AND_EQUIVALENTS, 0.7),
    PatternDef("Marketable Securities", C.MARKETABLE_SECURITIES, 1.0),
    PatternDef("Short-term Investments", C.MARKETABLE_SECURITIES, 0.95),
    PatternDef("Accounts Receivable", C.ACCOUNTS_RECEIVABLE, 1.0),
    PatternDef("Trade Receivables", C.ACCOUNTS_RECEIVABLE, 0.95),
    PatternDef("Total Inventories", C.INVENTORY, 1.0),
    PatternDef("Inventories", C.INVENTORY, 1.0),
    PatternDef("Inventory", C.INVENTORY, 0.9),
    PatternDef("Raw Materials", C.RAW_MATERIALS, 1.0),
    PatternDef("Work in Process", C.WORK_IN_PROCESS, 1.0),
    PatternDef("Finished Goods", C.FINISHED_GOODS, 1.0),
    PatternDef("Prepaid Expenses", C.PREPAID_EXPENSES, 1.0),
    PatternDef("Other Current Assets", C.OTHER_CURRENT_ASSETS, 0.9),
    PatternDef("Property, Plant and Equipment", C.FIXED_ASSETS, 1.0),
    PatternDef("Net Fixed Assets", C.FIXED_ASSETS, 0.95),
    PatternDef("PP&E", C.FIXED_ASSETS, 0.9),
    PatternDef("Goodwill", C.GOODWILL, 1.0),
    PatternDef("Intangible Assets", C.INTANGIBLE_ASSETS, 0.95),
    PatternDef("Long-term Investments", C.LONG_TERM_INVESTMENTS, 0.95),
    PatternDef("Deferred Tax Assets", C.DEFERRED_TAX_ASSETS, 1.0),
    # Liabilities
    PatternDef("Total Liabilities", C.TOTAL_LIABILITIES, 1.0),
    PatternDef("Total Current Liabilities", C.CURRENT_LIABILITIES, 1.0),
    PatternDef("Current Liabilities", C.CURRENT_LIABILITIES, 0.95),
    PatternDef("Accounts Payable", C.ACCOUNTS_PAYABLE, 1.0),
    PatternDef("Accrued Expenses", C.ACCRUED_EXPENSES, 1.0),
    PatternDef("Accrued Liabilities", C.ACCRUED_EXPENSES, 0.9),
    PatternDef("Deferred Revenue", C.DEFERRED_REVENUE, 1.0),
    PatternDef("Unearned Revenue", C.DEFERRED_REVENUE, 0.9),
    PatternDef("Short-term Debt", C.SHORT_TERM_DEBT, 1.0),
    PatternDef("Commercial Paper", C.SHORT_TERM_DEBT, 0.9),
    PatternDef("Total Long-term Debt", C.LONG_TERM_DEBT, 1.0),
    PatternDef("Long-term Debt", C.LONG_TERM_DEBT, 1.0),
    PatternDef("Total Debt", C.LONG_TERM_DEBT, 0.9),
    PatternDef("Operating Lease Liabilities", C.OPERATING_LEASE_LIABILITIES, 1.0),
    PatternDef("Long-term Operating Lease", C.LONG_TERM_LEASE_LIABILITIES, 1.0),
    # Equity
    PatternDef("Total Stockholders' Equity", C.TOTAL_EQUITY, 1.0),
    PatternDef("Total Shareholders' Equity", C.TOTAL_EQUITY, 1.0),
    PatternDef("Total Equity", C.TOTAL_EQUITY, 1.0),
    PatternDef("Stockholders' Equity", C.TOTAL_EQUITY, 0.95),
    PatternDef("Shareholders' Equity", C.TOTAL_EQUITY, 0.95),
    PatternDef("Retained Earnings", C.RETAINED_EARNINGS, 1.0),
    PatternDef("Accumulated Deficit", C.RETAINED_EARNINGS, 0.9, negative=True),
    PatternDef("Treasury Stock", C.TREASURY_STOCK, 0.9),
    # Cash flow
    PatternDef("Net Cash Provided by Operating Activities", C.OPERATING_CASH_FLOW, 1.0),
    PatternDef("Operating Cash Flow", C.OPERATING_CASH_FLOW, 1.0),
    PatternDef("Net Cash from Operating Activities", C.OPERATING_CASH_FLOW, 0.95),
    PatternDef("Cash from Operations", C.OPERATING_CASH_FLOW, 0.95),
    PatternDef("Net Cash Used in Investing Activities", C.INVESTING_CASH_FLOW, 1.0),
    PatternDef("Investing Cash Flow", C.INVESTING_CASH_FLOW, 1.0),
    PatternDef("Cash from Investing", C.INVESTING_CASH_FLOW, 0.95),
    PatternDef("Net Cash Used in Financing Activities", C.FINANCING_CASH_FLOW, 1.0),
    PatternDef("Financing Cash Flow", C.FINANCING_CASH_FLOW, 1.0),
    PatternDef("Cash from Financing", C.FINANCING_CASH_FLOW, 0.95),
    PatternDef("Free Cash Flow", C.FREE_CASH_FLOW, 1.0),
    PatternDef("Capital Expenditures", C.CAPITAL_EXPENDITURES, 1.0),
    PatternDef("Purchases of Property and Equipment", C.CAPITAL_EXPENDITURES, 1.0),
    PatternDef("CapEx", C.CAPITAL_EXPENDITURES, 0.9),
    PatternDef("Purchases of Marketable Securities", C.INVESTMENT_PURCHASES, 1.0),
    PatternDef("Proceeds from Maturities", C.INVESTMENT_PROCEEDS, 1.0),
    PatternDef("Payment of Dividends", C.DIVIDENDS_PAID, 1.0),
    PatternDef("Cash Dividends Paid", C.DIVIDENDS_PAID, 1.0),
    PatternDef("Dividends Paid", C.DIVIDENDS_PAID, 0.95),
    PatternDef("Repurchases of Common Stock", C.SHARE_REPURCHASES, 1.0),
    PatternDef("Share Repurchases", C.SHARE_REPURCHASES, 0.95),
    PatternDef("Stock-based Compensation", C.STOCK_COMPENSATION, 1.0),
    PatternDef("Share-based Compensation", C.STOCK_COMPENSATION, 1.0),
    PatternDef("Changes in Operating Assets", C.WORKING_CAPITAL_CHANGES, 0.8),
    # Per share
    PatternDef("Diluted Earnings Per Share", C.EPS_DILUTED, 1.0),
    PatternDef("Diluted EPS", C.EPS_DILUTED, 0.95),
    PatternDef("Basic Earnings Per Share", C.EPS_BASIC, 1.0),
    PatternDef("Basic EPS", C.EPS_BASIC, 0.95),
    PatternDef("Earnings Per Share", C.EPS_BASIC, 0.8),
    PatternDef("EPS", C.EPS_BASIC, 0.7),
    PatternDef("Book Value Per Share", C.BOOK_VALUE_PER_SHARE, 1.0),
    PatternDef("Dividends Per Share", C.DIVIDENDS_PER_SHARE, 1.0),
    # Shares
    PatternDef("Common Shares Outstanding", C.SHARES_OUTSTANDING, 1.0),
    PatternDef("Shares Outstanding", C.SHARES_OUTSTANDING, 1.0),
    PatternDef("Basic Shares Outstanding", C.SHARES_OUTSTANDING, 0.95),
    PatternDef("Weighted Average Shares", C.SHARES_OUTSTANDING, 0.9),
    PatternDef("Diluted Shares Outstanding", C.SHARES_DILUTED, 1.0),
]

# ═══════════════════════════════════════════════════════════════════════════
#  Regex construction
# ═══════════════════════════════════════════════════════════════════════════

_NUMBER = (
    r"(?P<neg>-\s*)?(?P<open>\()?\s*\$?\s*(?:\|\s*)?(?P<open2>\()?\s*"
    r"(?P<num>\d[\d,]*(?:\.\d+)?)(?P<close>\s*\))?"
    r"(?:\s*(?P<word>million|billion|thousand)s?\b)?"
)
_PROSE_VERBS = r"(?:was|were|of|totaled|totalled|totaling|amounted\s+to|reached|increased\s+to|decreased\s+to)"
_YEAR_LIKE_RE = re.compile(r"^(?:19|20)\d{2}$")
_WORD_SCALES = {"million": Scale.MILLIONS, "billion": Scale.BILLIONS, "thousand": Scale.THOUSANDS}


def _term_regex(term: str) -> str:
    words = []
    for word in term.split():
        w = re.escape(word)
        w = w.replace(r"\-", r"[-\s]?").replace("'", "['’]?")
        words.append(w)
    body = r"\s+".join(words)
    # Whole words only; "Revenue" inside "Cost of Revenue" or "Deferred Revenue" is not a hit
    return r"(?<![A-Za-z&])(?<!of )(?<!deferred )(?<!unearned )" + body + r"(?![A-Za-z])"


def _compile(pdef: PatternDef) -> list[re.Pattern]:
    term = _term_regex(pdef.term)
    return [
        re.compile(term + r"[:\t |]*" + _NUMBER, re.I),
        re.compile(term + r"\s+" + _PROSE_VERBS + r"\s+" + _NUMBER, re.I),
        re.compile(term + r"[:\t ]*\(\s*\$?\s*(?P<num>\d[\d,]*(?:\.\d+)?)\s*\)", re.I),
    ]


_COMPILED: list[tuple[PatternDef, list[re.Pattern]]] = [(p, _compile(p)) for p in PATTERN_CATALOGUE]


# ═══════════════════════════════════════════════════════════════════════════
#  Extraction
# ═══════════════════════════════════════════════════════════════════════════


def _is_parenthesized(m: re.Match) -> bool:
    groups = m.groupdict()
    if "open" not in groups:
        return True  # the dedicated parenthesis pattern
    return bool((groups.get("open") or groups.get("open2")) and groups.get("close"))


def _term_matches(text: str, patterns: list[re.Pattern], limit: int) -> list[re.Match]:
    """Distinct hits across all patterns, in document order."""
    by_position: dict[int, re.Match] = {}
    for pattern in patterns:
        for m in pattern.finditer(text):
            by_position.setdefault(m.start("num"), m)
    return [by_position[pos] for pos in sorted(by_position)][:limit]


def _context(text: str, m: re.Match) -> str:
    return " ".join(text[max(0, m.start() - 100):m.end() + 100].split())


def extract_patterns(text: str, default_scale: Scale | None = None) -> list[Metric]:
    """Scan cleaned text for every catalogue term; possibly empty."""
    if not text:
        return []
    cfg = get_config()
    default_scale = default_scale or detect_scale(text)
    period = detect_period(text)
    period_type = detect_period_type(period)

    metrics: list[Metric] = []
    for pdef, patterns in _COMPILED:
        per_share = pdef.category.default_unit is MetricUnit.PER_SHARE
        for index, m in enumerate(_term_matches(text, patterns, cfg.pattern_max_matches)):
            raw = m.group("num")
            has_currency = "$" in m.group(0)
            if _YEAR_LIKE_RE.match(raw) and not has_currency:
                continue
            try:
                value = Decimal(raw.replace(",", ""))
            except InvalidOperation:
                log.debug("Skipping malformed token %r for %s", raw, pdef.term)
                continue

            if not per_share:
                word = (m.groupdict().get("word") or "").lower()
                scale = (
                    _WORD_SCALES.get(word)
                    or nearest_scale(text, m.start(), cfg.unit_lookback_chars)
                    or default_scale
                )
                value = value * scale.multiplier
                if abs(value) < Decimal(str(cfg.pattern_min_magnitude)):
                    continue

            negative = _is_parenthesized(m) or bool(m.groupdict().get("neg")) or pdef.negative
            if negative:
                value = -abs(value)

            confidence = max(0.0, pdef.confidence * (1 - index * cfg.pattern_confidence_decay))
            metrics.append(Metric(
                category=pdef.category,
                name=pdef.term,
                value=value,
                unit=pdef.category.default_unit,
                period=period,
                period_type=period_type,
                source=MetricSource.PATTERN,
                confidence=round(confidence, 4),
                context=_context(text, m),
            ))

    log.info("Pattern extraction: %d candidate metrics", len(metrics))
    return metrics
