"""Tests for pattern-based extraction from prose and loose text."""

from decimal import Decimal

import pytest

from filing_metrics.config import get_config
from filing_metrics.merger import merge_metrics
from filing_metrics.models import MetricCategory, MetricSource, MetricUnit, PeriodType, Scale
from filing_metrics.patterns import PATTERN_CATALOGUE, extract_patterns


def _candidates(metrics, category):
    return [m for m in metrics if m.category is category]


def test_catalogue_specific_terms_outrank_generic():
    conf = {p.term: p.confidence for p in PATTERN_CATALOGUE}
    assert conf["Total Revenue"] > conf["Revenue"] > conf["Sales"]
    assert conf["Net Income"] > conf["Net Loss"]
    assert all(0 < p.confidence <= 1 for p in PATTERN_CATALOGUE)


def test_net_loss_in_parentheses_is_negative():
    metrics = extract_patterns("Net Loss (123,456)")
    net = _candidates(metrics, MetricCategory.NET_INCOME)
    assert net
    assert net[0].value == Decimal("-123456") * Scale.MILLIONS.multiplier
    assert net[0].source is MetricSource.PATTERN


def test_sign_uses_nearby_unit_declaration():
    text = "(in thousands)\nNet Loss (123,456)"
    net = _candidates(extract_patterns(text), MetricCategory.NET_INCOME)[0]
    assert net.value == Decimal("-123456000")


def test_loss_keyword_without_parentheses_is_negative():
    net = _candidates(extract_patterns("Net loss: $ 2,500"), MetricCategory.NET_INCOME)[0]
    assert net.value < 0


def test_prose_with_inline_unit_word():
    metrics = extract_patterns("For the fiscal year, total revenue was $3.5 billion, up 8%.")
    revenue = max(_candidates(metrics, MetricCategory.REVENUE), key=lambda m: m.confidence)
    assert revenue.value == Decimal("3500000000")


def test_pipe_delimited_row():
    metrics = extract_patterns("| Total Assets | $ | 352,583 |", default_scale=Scale.MILLIONS)
    assets = _candidates(metrics, MetricCategory.TOTAL_ASSETS)[0]
    assert assets.value == Decimal("352583000000")


def test_label_specificity_wins_after_merge():
    text = "Revenue: 500\nTotal Revenue: 520"
    merged = merge_metrics(extract_patterns(text))
    revenue = next(m for m in merged if m.category is MetricCategory.REVENUE)
    assert revenue.value == Decimal("520") * Scale.MILLIONS.multiplier
    assert revenue.name == "Total Revenue"
    assert revenue.confidence == pytest.approx(1.0)


def test_confidence_decays_for_repeated_matches():
    text = "Goodwill 1,000\nGoodwill 2,000\nGoodwill 3,000"
    goodwill = _candidates(extract_patterns(text), MetricCategory.GOODWILL)
    decay = get_config().pattern_confidence_decay
    assert [m.value for m in goodwill] == [Decimal("1000000000"), Decimal("2000000000"), Decimal("3000000000")]
    assert goodwill[0].confidence == pytest.approx(1.0)
    assert goodwill[1].confidence == pytest.approx(1.0 - decay)
    assert goodwill[2].confidence == pytest.approx(1.0 - 2 * decay)


def test_matches_per_term_are_capped():
    text = "\n".join(f"Goodwill {i},000" for i in range(1, 10))
    goodwill = _candidates(extract_patterns(text), MetricCategory.GOODWILL)
    assert len(goodwill) == get_config().pattern_max_matches


def test_implausibly_small_values_are_rejected():
    assert _candidates(extract_patterns("Total Assets 12", Scale.ONES), MetricCategory.TOTAL_ASSETS) == []


def test_years_are_not_taken_as_values():
    assert _candidates(extract_patterns("Revenue 2024 compared to 2023"), MetricCategory.REVENUE) == []


def test_per_share_values_are_not_scaled():
    metrics = extract_patterns("(in millions)\nDiluted EPS $6.08")
    eps = _candidates(metrics, MetricCategory.EPS_DILUTED)[0]
    assert eps.value == Decimal("6.08")
    assert eps.unit is MetricUnit.PER_SHARE


def test_generic_term_inside_longer_label_is_ignored():
    metrics = extract_patterns("Cost of Revenue 4,000\nDeferred Revenue 900")
    assert _candidates(metrics, MetricCategory.REVENUE) == []
    assert _candidates(metrics, MetricCategory.COST_OF_REVENUE)
    assert _candidates(metrics, MetricCategory.DEFERRED_REVENUE)


def test_period_label_from_text():
    text = "For the Year Ended December 31, 2024\nTotal Revenue: 520"
    revenue = _candidates(extract_patterns(text), MetricCategory.REVENUE)[0]
    assert revenue.period == "For the Year Ended December 31, 2024"
    assert revenue.period_type is PeriodType.ANNUAL


def test_context_window_is_recorded():
    revenue = _candidates(extract_patterns("Total Revenue: 520"), MetricCategory.REVENUE)[0]
    assert "Total Revenue: 520" in revenue.context


def test_empty_text():
    assert extract_patterns("") == []
