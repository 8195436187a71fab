"""Tests for inline-XBRL fact extraction."""

from decimal import Decimal, InvalidOperation

import pytest

from filing_metrics.models import Context, MetricCategory, MetricSource, MetricUnit, PeriodType
from filing_metrics.preprocessor import parse_tree
from filing_metrics.xbrl_facts import (
    collect_contexts,
    collect_units,
    extract_facts,
    extract_structured,
    infer_unit,
    parse_fact_value,
    period_type_for,
    scan_fact_markup,
)

IXBRL_DOC = """<html><body>
<ix:header><ix:resources>
  <xbrli:context id="FY2024">
    <xbrli:entity><xbrli:identifier scheme="http://www.sec.gov/CIK">0000320193</xbrli:identifier></xbrli:entity>
    <xbrli:period><xbrli:startDate>2024-01-01</xbrli:startDate><xbrli:endDate>2024-12-31</xbrli:endDate></xbrli:period>
  </xbrli:context>
  <xbrli:context id="FY2023">
    <xbrli:entity><xbrli:identifier scheme="http://www.sec.gov/CIK">0000320193</xbrli:identifier></xbrli:entity>
    <xbrli:period><xbrli:startDate>2023-01-01</xbrli:startDate><xbrli:endDate>2023-12-31</xbrli:endDate></xbrli:period>
  </xbrli:context>
  <xbrli:context id="I2024">
    <xbrli:entity><xbrli:identifier scheme="http://www.sec.gov/CIK">0000320193</xbrli:identifier></xbrli:entity>
    <xbrli:period><xbrli:instant>2024-12-31</xbrli:instant></xbrli:period>
  </xbrli:context>
  <xbrli:context id="FY2024_Segment">
    <xbrli:entity><xbrli:identifier scheme="http://www.sec.gov/CIK">0000320193</xbrli:identifier>
      <xbrli:segment><xbrldi:explicitMember dimension="srt:ProductOrServiceAxis">us-gaap:ProductMember</xbrldi:explicitMember></xbrli:segment>
    </xbrli:entity>
    <xbrli:period><xbrli:startDate>2024-01-01</xbrli:startDate><xbrli:endDate>2024-12-31</xbrli:endDate></xbrli:period>
  </xbrli:context>
  <xbrli:unit id="usd"><xbrli:measure>iso4217:USD</xbrli:measure></xbrli:unit>
  <xbrli:unit id="usdPerShare"><xbrli:divide>
    <xbrli:unitNumerator><xbrli:measure>iso4217:USD</xbrli:measure></xbrli:unitNumerator>
    <xbrli:unitDenominator><xbrli:measure>xbrli:shares</xbrli:measure></xbrli:unitDenominator>
  </xbrli:divide></xbrli:unit>
</ix:resources></ix:header>
<table>
<tr><td>Net sales</td>
<td><ix:nonFraction name="us-gaap:Revenues" contextRef="FY2024_Segment" unitRef="usd" scale="6" decimals="-6">200,583</ix:nonFraction></td></tr>
<tr><td>Total net sales</td>
<td><ix:nonFraction name="us-gaap:Revenues" contextRef="FY2023" unitRef="usd" scale="6" decimals="-6">383,285</ix:nonFraction></td>
<td><ix:nonFraction name="us-gaap:Revenues" contextRef="FY2024" unitRef="usd" scale="6" decimals="-6">391,035</ix:nonFraction></td></tr>
<tr><td>Net income</td>
<td><ix:nonFraction name="us-gaap:NetIncomeLoss" contextRef="FY2024" unitRef="usd" decimals="-6">96,995</ix:nonFraction></td></tr>
<tr><td>Other expense</td>
<td><ix:nonFraction name="us-gaap:OtherNonoperatingIncomeExpense" contextRef="FY2024" unitRef="usd" scale="6" sign="-">(269)</ix:nonFraction></td></tr>
<tr><td>Diluted EPS</td>
<td><ix:nonFraction name="us-gaap:EarningsPerShareDiluted" contextRef="FY2024" unitRef="usdPerShare" decimals="2">6.08</ix:nonFraction></td></tr>
<tr><td>Total assets</td>
<td><ix:nonFraction name="us-gaap:Assets" contextRef="I2024" unitRef="usd" scale="6">364,980</ix:nonFraction></td></tr>
<tr><td>Unmapped</td>
<td><ix:nonFraction name="dei:EntityNumberOfEmployees" contextRef="I2024" unitRef="usd">164,000</ix:nonFraction></td></tr>
</table>
</body></html>"""


def _by_category(metrics):
    out = {}
    for m in metrics:
        out.setdefault(m.category, []).append(m)
    return out


# --- Value parsing ---


def test_parse_fact_value_applies_scale():
    assert parse_fact_value("383,285", scale="6") == Decimal("383285000000")
    assert parse_fact_value("96,995") == Decimal("96995")
    assert parse_fact_value("1.5", scale="-2") == Decimal("0.015")


def test_parse_fact_value_sign_conventions():
    assert parse_fact_value("(1,234)") == Decimal("-1234")
    assert parse_fact_value("1,234", sign="-") == Decimal("-1234")
    assert parse_fact_value("-12.5") == Decimal("-12.5")


def test_parse_fact_value_comma_decimal_format():
    assert parse_fact_value("1.234,56", fmt="ixt:num-comma-decimal") == Decimal("1234.56")


def test_parse_fact_value_skips_non_numeric_blocks():
    assert parse_fact_value("") is None
    assert parse_fact_value("none") is None
    assert parse_fact_value("1" * 300) is None


def test_parse_fact_value_rounds_to_bounded_precision():
    assert parse_fact_value("0.123456789") == Decimal("0.123457")


def test_parse_fact_value_malformed_token_raises():
    with pytest.raises(InvalidOperation):
        parse_fact_value("12-34")


def test_infer_unit():
    assert infer_unit("us-gaap:EarningsPerShareBasic", "iso4217:USD") is MetricUnit.PER_SHARE
    assert infer_unit("us-gaap:Revenues", "iso4217:USD/xbrli:shares") is MetricUnit.PER_SHARE
    assert infer_unit("us-gaap:Revenues", "iso4217:USD") is MetricUnit.DOLLARS
    assert infer_unit("us-gaap:CommonStockSharesOutstanding", "xbrli:shares") is MetricUnit.SHARES
    assert infer_unit("us-gaap:Revenues", None) is MetricUnit.DOLLARS


def test_period_type_for():
    annual = Context(id="a", start_date="2024-01-01", end_date="2024-12-31")
    quarter = Context(id="q", start_date="2024-07-01", end_date="2024-09-30")
    ytd = Context(id="y", start_date="2024-01-01", end_date="2024-06-30")
    instant = Context(id="i", instant="2024-12-31")
    assert period_type_for(annual) is PeriodType.ANNUAL
    assert period_type_for(quarter) is PeriodType.QUARTERLY
    assert period_type_for(ytd) is PeriodType.YTD
    assert period_type_for(instant) is None
    assert period_type_for(None) is None


# --- Tree walk ---


def test_collect_contexts_and_units():
    tree = parse_tree(IXBRL_DOC)
    contexts = collect_contexts(tree)
    assert contexts["fy2024"].end_date == "2024-12-31"
    assert contexts["i2024"].period == "2024-12-31"
    assert contexts["fy2024_segment"].dimensional
    assert not contexts["fy2024"].dimensional

    units = collect_units(tree)
    assert units["usd"] == "iso4217:USD"
    assert units["usdpershare"] == "iso4217:USD/xbrli:shares"


def test_extract_facts_maps_and_scales():
    metrics = extract_facts(parse_tree(IXBRL_DOC))
    by_cat = _by_category(metrics)

    revenue = by_cat[MetricCategory.REVENUE][0]
    # Non-dimensional, latest period first
    assert revenue.value == Decimal("391035000000")
    assert revenue.period == "2024-12-31"
    assert revenue.period_type is PeriodType.ANNUAL
    assert revenue.source is MetricSource.STRUCTURED
    assert revenue.confidence == pytest.approx(0.97)
    assert "contextRef=FY2024" in revenue.context

    assert by_cat[MetricCategory.NET_INCOME][0].value == Decimal("96995")
    assert by_cat[MetricCategory.TOTAL_ASSETS][0].value == Decimal("364980000000")

    eps = by_cat[MetricCategory.EPS_DILUTED][0]
    assert eps.value == Decimal("6.08")
    assert eps.unit is MetricUnit.PER_SHARE


def test_extract_facts_negative_sign_attribute():
    metrics = extract_facts(parse_tree(IXBRL_DOC))
    other = _by_category(metrics)[MetricCategory.OTHER_INCOME][0]
    assert other.value == Decimal("-269000000")


def test_extract_facts_discards_unmapped_concepts():
    metrics = extract_facts(parse_tree(IXBRL_DOC))
    assert all("EntityNumberOfEmployees" not in m.context for m in metrics)


def test_fact_without_context_keeps_value():
    doc = ('<html><body><ix:nonFraction name="us-gaap:Revenues" contextRef="missing" '
           'unitRef="usd">1,000</ix:nonFraction></body></html>')
    metrics = extract_facts(parse_tree(doc))
    assert len(metrics) == 1
    assert metrics[0].value == Decimal("1000")
    assert metrics[0].period is None


def test_malformed_fact_is_skipped_not_fatal():
    doc = ('<html><body>'
           '<ix:nonFraction name="us-gaap:Revenues" contextRef="c" unitRef="usd">12-34</ix:nonFraction>'
           '<ix:nonFraction name="us-gaap:NetIncomeLoss" contextRef="c" unitRef="usd">5,000</ix:nonFraction>'
           '</body></html>')
    metrics = extract_facts(parse_tree(doc))
    assert [m.category for m in metrics] == [MetricCategory.NET_INCOME]


# --- Fallback scan ---


def test_scan_fact_markup_uses_fallback_source():
    metrics = scan_fact_markup(IXBRL_DOC)
    revenue = _by_category(metrics)[MetricCategory.REVENUE][0]
    assert revenue.value == Decimal("391035000000")
    assert revenue.source is MetricSource.STRUCTURED_FALLBACK
    assert revenue.confidence == pytest.approx(0.95)


def test_scan_fact_markup_reads_plain_xbrl_instance():
    instance = """<xbrl>
<xbrli:context id="c1"><xbrli:period><xbrli:instant>2024-06-30</xbrli:instant></xbrli:period></xbrli:context>
<us-gaap:Assets contextRef="c1" unitRef="usd" decimals="-3">512000</us-gaap:Assets>
</xbrl>"""
    metrics = scan_fact_markup(instance)
    assert len(metrics) == 1
    assert metrics[0].category is MetricCategory.TOTAL_ASSETS
    assert metrics[0].period == "2024-06-30"


def test_extract_structured_prefers_tree_walk():
    metrics = extract_structured(IXBRL_DOC, parse_tree(IXBRL_DOC))
    assert metrics
    assert all(m.source is MetricSource.STRUCTURED for m in metrics)


def test_extract_structured_falls_back_without_tree():
    metrics = extract_structured(IXBRL_DOC, None)
    assert metrics
    assert all(m.source is MetricSource.STRUCTURED_FALLBACK for m in metrics)


def test_extract_structured_on_plain_text():
    assert extract_structured("Total revenue was $3.5 billion.") == []


@pytest.mark.parametrize("token", ["NaN1", "sNaN2"])
def test_parse_fact_value_rejects_nan_tokens(token):
    with pytest.raises(InvalidOperation):
        parse_fact_value(token)


def test_nan_fact_does_not_drop_neighbouring_facts():
    doc = ('<html><body>'
           '<ix:nonFraction name="us-gaap:Revenues" contextRef="c" unitRef="usd">NaN1</ix:nonFraction>'
           '<ix:nonFraction name="us-gaap:Assets" contextRef="c" unitRef="usd">5,000</ix:nonFraction>'
           '</body></html>')
    metrics = extract_structured(doc, parse_tree(doc))
    assert [(m.category, m.value) for m in metrics] == [(MetricCategory.TOTAL_ASSETS, Decimal("5000"))]
