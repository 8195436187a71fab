"""Cross-strategy metric merge.

Exactly one Metric survives per canonical category. Candidates are ranked by
``(source rank, confidence)``: structured facts beat table rows, table rows
beat text patterns, and within a source the higher confidence wins (total
rows carry more confidence than detail rows). Exact ties keep the candidate
that was produced first, so the result is deterministic for a fixed input.
"""

from __future__ import annotations

import logging
from collections.abc import Iterable

from filing_metrics.models import Metric, MetricCategory

log = logging.getLogger(__name__)

_CATEGORY_ORDER = {c: i for i, c in enumerate(MetricCategory)}


def _merge_key(indexed: tuple[int, Metric]) -> tuple[int, float, int]:
    index, metric = indexed
    return (-metric.source.rank, -metric.confidence, index)


def merge_metrics(*candidate_sets: Iterable[Metric]) -> list[Metric]:
    """Merge candidate lists into one metric per category.

    Inputs are never modified; the returned list is sorted by the
    category's declaration order.
    """
    grouped: dict[MetricCategory, list[tuple[int, Metric]]] = {}
    index = 0
    for candidates in candidate_sets:
        for metric in candidates:
            grouped.setdefault(metric.category, []).append((index, metric))
            index += 1

    merged = [min(group, key=_merge_key)[1] for group in grouped.values()]
    merged.sort(key=lambda m: _CATEGORY_ORDER[m.category])
    log.info("Merged %d candidates into %d metrics", index, len(merged))
    return merged


def metrics_by_category(metrics: Iterable[Metric]) -> dict[MetricCategory, Metric]:
    """Index a merged list by category (later duplicates are ignored)."""
    out: dict[MetricCategory, Metric] = {}
    for m in metrics:
        out.setdefault(m.category, m)
    return out
