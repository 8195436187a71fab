"""End-to-end filing analysis.

Pipeline per document:
  1. clean_document()     → line-preserving text (tables as pipe rows)
  2. parse_tree()         → BeautifulSoup handle for iXBRL (markup only)
  3. STRATEGIES           → structured facts, statement tables, text patterns
  4. merge_metrics()      → one metric per category
  5. compute_ratios()     → ratio catalogue with health buckets

Each strategy is isolated: an exception inside one is logged and that
strategy contributes nothing while the others still run. Malformed input
never raises; blank input yields a ``no_content`` analysis.
"""

from __future__ import annotations

import logging
from collections.abc import Callable
from concurrent.futures import ThreadPoolExecutor, as_completed
from dataclasses import dataclass, field
from pathlib import Path
from typing import Any, TypeVar

from filing_metrics.captions import detect_scale
from filing_metrics.config import get_config
from filing_metrics.merger import merge_metrics
from filing_metrics.models import FilingAnalysis, Metric, Scale, Table
from filing_metrics.patterns import extract_patterns
from filing_metrics.preprocessor import clean_document, compression_ratio, has_inline_xbrl, looks_like_markup, parse_tree
from filing_metrics.ratios import compute_ratios
from filing_metrics.statements import parse_tables, tables_to_metrics
from filing_metrics.xbrl_facts import extract_structured

log = logging.getLogger(__name__)

SUPPORTED_SUFFIXES = (".htm", ".html", ".xhtml", ".xml", ".txt")

T = TypeVar("T")


@dataclass(frozen=True)
class ExtractionInput:
    """Everything a strategy may read. Shared read-only across strategies."""

    raw: str
    cleaned: str
    tree: Any = None
    default_scale: Scale = Scale.MILLIONS
    tables: list[Table] = field(default_factory=list)


def _structured_strategy(inp: ExtractionInput) -> list[Metric]:
    if inp.tree is None and not has_inline_xbrl(inp.raw):
        return []
    return extract_structured(inp.raw, inp.tree)


def _table_strategy(inp: ExtractionInput) -> list[Metric]:
    return tables_to_metrics(inp.tables)


def _pattern_strategy(inp: ExtractionInput) -> list[Metric]:
    return extract_patterns(inp.cleaned, inp.default_scale)


# Evaluation order; the merger decides precedence, not this list
STRATEGIES: list[tuple[str, Callable[[ExtractionInput], list[Metric]]]] = [
    ("structured", _structured_strategy),
    ("table", _table_strategy),
    ("pattern", _pattern_strategy),
]


def _guarded(name: str, fn: Callable[..., list[T]], *args: Any) -> list[T]:
    try:
        return fn(*args)
    except Exception as e:
        log.warning("Extraction strategy '%s' failed: %s", name, e)
        return []


def analyze_filing(text: str | None, document_name: str = "document", tree: Any = None) -> FilingAnalysis:
    """Analyze one filing (HTML, iXBRL or plain text).

    Args:
        text: Raw document text.
        document_name: Label carried into the result metadata.
        tree: Optional pre-parsed bs4 document; built here for markup input
            when omitted.

    Returns:
        FilingAnalysis with merged metrics, statement tables, ratios, the
        cleaned text, and observability metadata.
    """
    if text is None or not text.strip():
        log.info("No content in %s", document_name)
        return FilingAnalysis(
            document_name=document_name,
            status="no_content",
            metadata={"document_name": document_name, "status": "no_content"},
        )

    is_markup = looks_like_markup(text)
    cleaned = clean_document(text)
    if tree is None and is_markup:
        tree = parse_tree(text)
    default_scale = detect_scale(cleaned) or Scale.MILLIONS
    tables = _guarded("table", parse_tables, cleaned)

    inp = ExtractionInput(raw=text, cleaned=cleaned, tree=tree, default_scale=default_scale, tables=tables)
    results: dict[str, list[Metric]] = {}
    for name, strategy in STRATEGIES:
        results[name] = _guarded(name, strategy, inp)

    metrics = merge_metrics(*results.values())
    ratios = compute_ratios(metrics)

    structured = results.get("structured", [])
    metadata = {
        "document_name": document_name,
        "format": "html" if is_markup else "text",
        "has_structured_facts": str(bool(structured)).lower(),
        "structured_fact_count": str(len(structured)),
        "structured_source": structured[0].source.value if structured else "none",
        "table_count": str(len(tables)),
        "default_unit": default_scale.value,
        "original_size": str(len(text)),
        "cleaned_size": str(len(cleaned)),
        "compression_ratio": compression_ratio(len(text), len(cleaned)),
        "metric_count": str(len(metrics)),
        "ratio_count": str(len(ratios)),
    }
    for name, found in results.items():
        metadata[f"{name}_candidates"] = str(len(found))

    log.info(
        "Analyzed %s: %d metrics, %d tables, %d ratios",
        document_name, len(metrics), len(tables), len(ratios),
    )
    return FilingAnalysis(
        document_name=document_name,
        metrics=metrics,
        tables=tables,
        ratios=ratios,
        cleaned_text=cleaned,
        metadata=metadata,
    )


def analyze_file(path: str | Path) -> FilingAnalysis:
    """Read a local filing (.htm/.html/.xml/.txt) and analyze it.

    Raises:
        FileNotFoundError: path does not exist.
        ValueError: unsupported file type (binary containers are not read).
    """
    p = Path(path)
    if not p.is_file():
        raise FileNotFoundError(f"No such filing: {p}")
    if p.suffix.lower() not in SUPPORTED_SUFFIXES:
        raise ValueError(f"Unsupported file type '{p.suffix}'. Expected one of {', '.join(SUPPORTED_SUFFIXES)}")
    text = p.read_text(encoding="utf-8", errors="replace")
    return analyze_filing(text, document_name=p.name)


# ═══════════════════════════════════════════════════════════════════════════
#  Batch analysis
# ═══════════════════════════════════════════════════════════════════════════

def analyze_filings_batch(
    documents: list[tuple[str, str]],
    *,
    max_workers: int | None = None,
) -> list[FilingAnalysis]:
    """Analyze several (document_name, text) pairs concurrently.

    Every call is independent, so a plain thread pool is enough. Results
    come back in input order.
    """
    if not documents:
        return []
    workers = max_workers or get_config().batch_max_workers
    results: list[FilingAnalysis | None] = [None] * len(documents)
    with ThreadPoolExecutor(max_workers=workers) as executor:
        futures = {
            executor.submit(analyze_filing, text, name): i
            for i, (name, text) in enumerate(documents)
        }
        for future in as_completed(futures):
            i = futures[future]
            try:
                results[i] = future.result()
            except Exception as exc:
                name = documents[i][0]
                log.warning("Batch analysis of %s failed: %s", name, exc)
                results[i] = FilingAnalysis(
                    document_name=name,
                    status="error",
                    metadata={"document_name": name, "error": str(exc)},
                )
    return results
