"""Inline-XBRL fact extraction.

Two traversals produce the same ``Metric`` shape:

  1. Tree walk (primary) over a BeautifulSoup document: collect
     ``xbrli:context`` and ``xbrli:unit`` scaffolding, then every
     ``ix:nonFraction`` fact.
  2. Markup scan (fallback) when the tree walk finds nothing (no tree,
     a tree that lost the ix namespace, or a plain XBRL instance): a regex
     over the raw markup for any element carrying a ``contextRef``
     attribute. Tagged ``MetricSource.STRUCTURED_FALLBACK``.

Tag and attribute names are compared case-insensitively: ``html.parser``
lower-cases them (``ix:nonfraction``, ``contextref``) while XML parsers
keep the original camel case.

Facts are ordered so that, for each category, the preferred candidate
comes first: non-dimensional contexts, then the latest period, then the
most authoritative concept, then document order.
"""

from __future__ import annotations

import html
import logging
import re
from datetime import date
from decimal import ROUND_HALF_UP, Decimal, InvalidOperation
from typing import Any

from filing_metrics.category_rules import match_concept
from filing_metrics.config import get_config
from filing_metrics.models import Context, Metric, MetricSource, MetricUnit, PeriodType

log = logging.getLogger(__name__)

_NUM_STRIP_RE = re.compile(r"[$€£¥,()\s]")
_CURRENCY_RE = re.compile(r"iso4217|usd|eur|gbp|jpy|cad|chf|cny|aud|inr|krw")
_DIM_LOCAL_NAMES = frozenset(["segment", "scenario", "explicitmember", "typedmember"])

# Fallback scan patterns (raw markup, any namespace prefix)
_FACT_RE = re.compile(
    r"<([A-Za-z][\w.-]*(?::[\w.-]+)?)\b([^>]*?\bcontextref\s*=\s*[\"'][^\"']+[\"'][^>]*)>(.*?)</\1\s*>",
    re.IGNORECASE | re.DOTALL,
)
_ATTR_RE = re.compile(r"([\w:.-]+)\s*=\s*[\"']([^\"']*)[\"']")
_CONTEXT_RE = re.compile(
    r"<(?:[\w-]+:)?context\b[^>]*?\bid\s*=\s*[\"']([^\"']+)[\"'][^>]*>(.*?)</(?:[\w-]+:)?context\s*>",
    re.IGNORECASE | re.DOTALL,
)
_UNIT_RE = re.compile(
    r"<(?:[\w-]+:)?unit\b[^>]*?\bid\s*=\s*[\"']([^\"']+)[\"'][^>]*>(.*?)</(?:[\w-]+:)?unit\s*>",
    re.IGNORECASE | re.DOTALL,
)
_DATE_RE = re.compile(
    r"<(?:[\w-]+:)?(instant|startdate|enddate)\b[^>]*>\s*([^<]+?)\s*<",
    re.IGNORECASE,
)
_DIM_RE = re.compile(r"<(?:[\w-]+:)?(?:explicitmember|typedmember)\b", re.IGNORECASE)
_TAG_RE = re.compile(r"<[^>]+>")


# ═══════════════════════════════════════════════════════════════════════════
#  Small helpers
# ═══════════════════════════════════════════════════════════════════════════


def _local(name: str | None) -> str:
    """'xbrli:startDate' → 'startdate'."""
    if not name:
        return ""
    return name.rsplit(":", 1)[-1].lower()


def _attr(el: Any, name: str) -> str | None:
    """Case-insensitive attribute lookup on a bs4 Tag."""
    wanted = name.lower()
    for key, value in (el.attrs or {}).items():
        if key.lower() == wanted:
            if isinstance(value, list):
                value = " ".join(value)
            return str(value).strip()
    return None


def _round(value: Decimal, max_places: int) -> Decimal:
    places = min(max_places, max(0, -value.as_tuple().exponent))
    return value.quantize(Decimal(1).scaleb(-places), rounding=ROUND_HALF_UP)


def parse_fact_value(
    text: str,
    scale: str | None = None,
    sign: str | None = None,
    fmt: str | None = None,
) -> Decimal | None:
    """Parse a displayed fact value into a full-scale Decimal.

    Returns None for blocks that are too long or hold no digit. Raises
    ``InvalidOperation`` / ``ValueError`` for malformed tokens; callers skip
    those per fact.
    """
    cfg = get_config()
    raw = (text or "").strip()
    if not raw or len(raw) > cfg.max_value_chars or not any(ch.isdigit() for ch in raw):
        return None

    negative = "(" in raw and ")" in raw
    if sign and sign.strip().lower() in ("-", "minus"):
        negative = True

    token = raw.replace("−", "-")
    if fmt and "comma" in fmt.lower() and "decimal" in fmt.lower():
        # ixt:num-comma-decimal → "1.234,56"
        token = token.replace(".", "").replace(",", ".")
    token = _NUM_STRIP_RE.sub("", token)
    if token.startswith("-"):
        negative = True
        token = token[1:]

    value = Decimal(token)
    if not value.is_finite():
        raise InvalidOperation(token)
    if scale not in (None, ""):
        value = value.scaleb(int(scale))
    value = _round(value, cfg.fact_decimal_places)
    return -value if negative else value


def infer_unit(concept: str, unit_measure: str | None) -> MetricUnit:
    c = concept.lower()
    if "earningspershare" in c or "pershare" in c:
        return MetricUnit.PER_SHARE
    if not unit_measure:
        return MetricUnit.DOLLARS
    u = unit_measure.lower()
    if "pershare" in u or ("/" in u and u.endswith("shares")):
        return MetricUnit.PER_SHARE
    if _CURRENCY_RE.search(u):
        return MetricUnit.DOLLARS
    if "shares" in u:
        return MetricUnit.SHARES
    if "pure" in u:
        return MetricUnit.NONE
    return MetricUnit.DOLLARS


def period_type_for(ctx: Context | None) -> PeriodType | None:
    """Classify a duration context; instants have no period type."""
    if ctx is None or ctx.instant or not (ctx.start_date and ctx.end_date):
        return None
    try:
        days = (date.fromisoformat(ctx.end_date[:10]) - date.fromisoformat(ctx.start_date[:10])).days
    except ValueError:
        return None
    if days >= 300:
        return PeriodType.ANNUAL
    if 80 <= days <= 100:
        return PeriodType.QUARTERLY
    return PeriodType.YTD


def _period_key(period: str | None) -> int:
    """Sort key placing the latest period first and missing periods last."""
    digits = re.sub(r"\D", "", period or "")
    return -int(digits) if digits else 0


class _RawFact:
    __slots__ = ("concept", "text", "context_ref", "unit_ref", "scale", "sign", "decimals", "fmt")

    def __init__(self, concept, text, context_ref, unit_ref, scale, sign, decimals, fmt):
        self.concept = concept
        self.text = text
        self.context_ref = context_ref
        self.unit_ref = unit_ref
        self.scale = scale
        self.sign = sign
        self.decimals = decimals
        self.fmt = fmt


def _build_metrics(
    facts: list[_RawFact],
    contexts: dict[str, Context],
    units: dict[str, str],
    source: MetricSource,
    confidence: float,
) -> list[Metric]:
    ranked: list[tuple[tuple, Metric]] = []
    for index, fact in enumerate(facts):
        match = match_concept(fact.concept)
        if match is None:
            continue
        try:
            value = parse_fact_value(fact.text, fact.scale, fact.sign, fact.fmt)
        except (InvalidOperation, ValueError) as e:
            log.debug("Skipping malformed fact %s=%r: %s", fact.concept, fact.text, e)
            continue
        if value is None:
            continue

        ref = (fact.context_ref or "").strip().lower()
        ctx = contexts.get(ref)
        period = ctx.period if ctx else None
        unit_key = (fact.unit_ref or "").strip().lower()
        measure = units.get(unit_key, fact.unit_ref)
        unit = infer_unit(fact.concept, measure)
        if match.category.default_unit is not unit and unit is MetricUnit.DOLLARS:
            unit = match.category.default_unit

        metric = Metric(
            category=match.category,
            name=match.display_name,
            value=value,
            unit=unit,
            period=period,
            period_type=period_type_for(ctx),
            source=source,
            confidence=confidence,
            context=(
                f"iXBRL:{fact.concept} contextRef={fact.context_ref} unitRef={fact.unit_ref} "
                f"period={period} unit={measure} decimals={fact.decimals} scale={fact.scale}"
            ),
        )
        key = (bool(ctx and ctx.dimensional), _period_key(period), match.rank, index)
        ranked.append((key, metric))

    ranked.sort(key=lambda item: item[0])
    return [m for _, m in ranked]


# ═══════════════════════════════════════════════════════════════════════════
#  Primary: tree walk
# ═══════════════════════════════════════════════════════════════════════════


def _first_local(el: Any, local_name: str) -> str | None:
    found = el.find(lambda t: _local(t.name) == local_name)
    if found is None:
        return None
    text = found.get_text(strip=True)
    return text or None


def collect_contexts(tree: Any) -> dict[str, Context]:
    """Context scaffolding keyed by lower-cased, trimmed id."""
    contexts: dict[str, Context] = {}
    for el in tree.find_all(lambda t: _local(t.name) == "context"):
        cid = _attr(el, "id")
        if not cid:
            continue
        dimensional = el.find(lambda t: _local(t.name) in _DIM_LOCAL_NAMES) is not None
        contexts[cid.lower()] = Context(
            id=cid,
            instant=_first_local(el, "instant"),
            start_date=_first_local(el, "startdate"),
            end_date=_first_local(el, "enddate"),
            dimensional=dimensional,
        )
    return contexts


def collect_units(tree: Any) -> dict[str, str]:
    """Unit id → measure text ('iso4217:USD', 'iso4217:USD/xbrli:shares')."""
    units: dict[str, str] = {}
    for el in tree.find_all(lambda t: _local(t.name) == "unit"):
        uid = _attr(el, "id")
        if not uid:
            continue
        measures = [m.get_text(strip=True) for m in el.find_all(lambda t: _local(t.name) == "measure")]
        units[uid.lower()] = "/".join(m for m in measures if m) or uid
    return units


def extract_facts(tree: Any) -> list[Metric]:
    """Walk ``ix:nonFraction`` facts in a parsed document."""
    if tree is None:
        return []
    cfg = get_config()
    contexts = collect_contexts(tree)
    units = collect_units(tree)

    facts: list[_RawFact] = []
    for el in tree.find_all(lambda t: _local(t.name) == "nonfraction"):
        concept = _attr(el, "name")
        if not concept:
            continue
        facts.append(_RawFact(
            concept=concept,
            text=el.get_text(strip=True),
            context_ref=_attr(el, "contextRef"),
            unit_ref=_attr(el, "unitRef"),
            scale=_attr(el, "scale"),
            sign=_attr(el, "sign"),
            decimals=_attr(el, "decimals"),
            fmt=_attr(el, "format"),
        ))

    metrics = _build_metrics(facts, contexts, units, MetricSource.STRUCTURED, cfg.structured_confidence)
    log.info("iXBRL tree walk: %d contexts, %d facts, %d mapped", len(contexts), len(facts), len(metrics))
    return metrics


# ═══════════════════════════════════════════════════════════════════════════
#  Fallback: raw markup scan by attribute presence
# ═══════════════════════════════════════════════════════════════════════════


def _scan_contexts(raw: str) -> dict[str, Context]:
    contexts: dict[str, Context] = {}
    for m in _CONTEXT_RE.finditer(raw):
        dates = {k.lower(): v for k, v in _DATE_RE.findall(m.group(2))}
        contexts[m.group(1).strip().lower()] = Context(
            id=m.group(1).strip(),
            instant=dates.get("instant"),
            start_date=dates.get("startdate"),
            end_date=dates.get("enddate"),
            dimensional=bool(_DIM_RE.search(m.group(2))),
        )
    return contexts


def _scan_units(raw: str) -> dict[str, str]:
    units: dict[str, str] = {}
    for m in _UNIT_RE.finditer(raw):
        measure = " ".join(_TAG_RE.sub(" ", m.group(2)).split())
        units[m.group(1).strip().lower()] = measure.replace(" ", "/") or m.group(1)
    return units


def scan_fact_markup(raw: str) -> list[Metric]:
    """Find fact-like elements directly by ``contextRef`` presence."""
    if not raw or "contextref" not in raw.lower():
        return []
    cfg = get_config()
    contexts = _scan_contexts(raw)
    units = _scan_units(raw)

    facts: list[_RawFact] = []
    for m in _FACT_RE.finditer(raw):
        tag, attr_text, inner = m.group(1), m.group(2), m.group(3)
        if _local(tag) == "nonnumeric":
            continue
        attrs = {k.lower(): v for k, v in _ATTR_RE.findall(attr_text)}
        concept = attrs.get("name") or tag
        text = html.unescape(_TAG_RE.sub("", inner)).strip()
        facts.append(_RawFact(
            concept=concept,
            text=text,
            context_ref=attrs.get("contextref"),
            unit_ref=attrs.get("unitref"),
            scale=attrs.get("scale"),
            sign=attrs.get("sign"),
            decimals=attrs.get("decimals"),
            fmt=attrs.get("format"),
        ))

    metrics = _build_metrics(
        facts, contexts, units, MetricSource.STRUCTURED_FALLBACK, cfg.structured_fallback_confidence,
    )
    log.info("iXBRL markup scan: %d contexts, %d facts, %d mapped", len(contexts), len(facts), len(metrics))
    return metrics


def extract_structured(raw: str, tree: Any = None) -> list[Metric]:
    """Tree walk first; markup scan only when the walk yields nothing."""
    metrics: list[Metric] = []
    if tree is not None:
        try:
            metrics = extract_facts(tree)
        except Exception as e:
            log.warning("iXBRL tree walk failed, falling back to markup scan: %s", e)
            metrics = []
    if metrics:
        return metrics
    if not raw and tree is not None:
        raw = str(tree)
    return scan_fact_markup(raw)
