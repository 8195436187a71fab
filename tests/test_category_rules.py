"""Tests for the ordered concept and label categorization tables."""

from filing_metrics.category_rules import (
    CONCEPT_LISTS,
    CONTAINS_LABEL_RULES,
    EXACT_LABEL_RULES,
    LabelRule,
    concept_category,
    label_category,
    match_concept,
    normalize_label,
)
from filing_metrics.models import MetricCategory as C


# --- Concept names (iXBRL) ---


def test_exact_concept_match():
    match = match_concept("us-gaap:Revenues")
    assert match.category is C.REVENUE
    assert match.display_name == "Total Revenue"
    assert match.rank == 0


def test_concept_match_ignores_case_and_prefix():
    assert concept_category("US-GAAP:netincomeloss") is C.NET_INCOME
    assert concept_category("EarningsPerShareDiluted") is C.EPS_DILUTED
    assert concept_category("us-gaap:Assets") is C.TOTAL_ASSETS


def test_ignored_concepts_are_discarded():
    assert concept_category("us-gaap:LiabilitiesAndStockholdersEquity") is None
    assert concept_category("us-gaap:NetIncomeLossAttributableToNoncontrollingInterest") is None
    assert CONCEPT_LISTS[0][0] is None


def test_predicates_cover_extension_concepts():
    match = match_concept("acme:SegmentRevenues")
    assert match.category is C.REVENUE
    assert match.rank == 99
    assert concept_category("acme:AdjustedNetIncomeLossTotal") is C.NET_INCOME
    assert concept_category("acme:LiabilitiesAndStockholdersEquityRestated") is None


def test_unknown_concept():
    assert match_concept("dei:DocumentFiscalYearFocus") is None
    assert match_concept("") is None


# --- Row labels ---


def test_normalize_label():
    assert normalize_label("Research & development (1)") == "research and development"
    assert normalize_label("Total stockholders’ equity:") == "total stockholders' equity"
    assert normalize_label("Long-term debt") == "long term debt"
    assert normalize_label("Total Revenue |") == "total revenue"


def test_total_revenue_exact_match():
    assert label_category("Total Revenue") is C.REVENUE
    assert label_category("Total net sales") is C.REVENUE


def test_specific_revenue_rules_beat_generic_revenue():
    assert label_category("Deferred revenue") is C.DEFERRED_REVENUE
    assert label_category("Cost of revenue") is C.COST_OF_REVENUE
    assert label_category("Subscription revenue") is C.REVENUE


def test_operating_activities_before_cash():
    assert label_category("Net cash provided by operating activities") is C.OPERATING_CASH_FLOW
    assert label_category("Cash and cash equivalents, end of period") is C.CASH_AND_EQUIVALENTS


def test_liabilities_and_equity_total_is_discarded():
    assert label_category("Total liabilities and stockholders' equity") is None
    assert label_category("Total liabilities and shareholders’ equity") is None
    assert label_category("Total stockholders' equity") is C.TOTAL_EQUITY


def test_fixed_assets_before_depreciation():
    label = "Property, plant and equipment, net of accumulated depreciation"
    assert label_category(label) is C.FIXED_ASSETS
    assert label_category("Depreciation and amortization") is C.DEPRECIATION_AMORTIZATION


def test_per_share_labels():
    assert label_category("Diluted earnings per share") is C.EPS_DILUTED
    assert label_category("Basic net income per share") is C.EPS_BASIC
    assert label_category("Weighted-average shares, diluted") is C.SHARES_DILUTED


def test_unrecognized_label():
    assert label_category("Commitments and contingencies") is None
    assert label_category("") is None


def test_contains_rule_order_is_pinned():
    needles = [r.needles for r in CONTAINS_LABEL_RULES]
    assert CONTAINS_LABEL_RULES[0] == LabelRule(("liabilities and", "equity"), None)
    assert needles.index(("operating activities",)) < needles.index(("cash and cash equivalents",))
    assert needles.index(("property, plant",)) < needles.index(("depreciation",))
    assert needles.index(("deferred revenue",)) < needles.index(("revenue",))
    assert needles[-2:] == [("revenue",), ("net sales",)]


def test_exact_rules_are_single_needle():
    assert all(len(rule.needles) == 1 for rule in EXACT_LABEL_RULES)
    assert EXACT_LABEL_RULES[0] == LabelRule(("total revenue",), C.REVENUE)
