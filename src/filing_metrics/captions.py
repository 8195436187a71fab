"""Reporting captions: scale ("in millions") and period ("Year Ended ...").

Shared by the statement table parser and the pattern extractor.
"""

from __future__ import annotations

import re

from filing_metrics.models import PeriodType, Scale

_MONTHS = (
    r"(?:January|February|March|April|May|June|July|August|September|"
    r"October|November|December|Jan\.?|Feb\.?|Mar\.?|Apr\.?|Jun\.?|Jul\.?|"
    r"Aug\.?|Sept?\.?|Oct\.?|Nov\.?|Dec\.?)"
)

SCALE_PATTERNS: list[tuple[Scale, re.Pattern]] = [
    (Scale.BILLIONS, re.compile(r"\bin\s+billions\b|\(\s*billions\s*\)|\bbillions\s+of\s+(?:u\.s\.\s+)?dollars", re.I)),
    (Scale.MILLIONS, re.compile(r"\bin\s+millions\b|\(\s*millions\s*\)|\bmillions\s+of\s+(?:u\.s\.\s+)?dollars", re.I)),
    (Scale.THOUSANDS, re.compile(r"\bin\s+thousands\b|\(\s*thousands\s*\)|\bthousands\s+of\s+(?:u\.s\.\s+)?dollars|000'?s\s+omitted", re.I)),
]

_UNIT_DECLARATION_RE = re.compile(
    r"\bin\s+(billions|millions|thousands)\b|\(\s*(billions|millions|thousands)\s*\)", re.I,
)

_DATE_HEADER_RE = re.compile(_MONTHS + r"\s+\d{1,2},?\s+\d{4}", re.I)
_QUARTER_HEADER_RE = re.compile(r"\bQ[1-4]\s*'?(?:20|19)?\d{2}\b", re.I)
_YEAR_HEADER_RE = re.compile(r"\b(?:19|20)\d{2}\b")

PERIOD_PATTERNS: list[re.Pattern] = [
    re.compile(
        r"(?:for\s+the\s+)?(?:fiscal\s+)?(?:(?:three|six|nine|twelve)\s+months|quarter|year|period)s?\s+"
        r"ended\s+" + _MONTHS + r"\s+\d{1,2},?\s+\d{4}",
        re.I,
    ),
    re.compile(r"\bQ[1-4]\s+(?:FY\s*)?\d{4}\b", re.I),
    re.compile(r"\b(?:FY|fiscal\s+year)\s*\d{4}\b", re.I),
]

DEFAULT_PERIODS = ["Current Period", "Prior Period"]
_SCALE_WORDS = {"billions": Scale.BILLIONS, "millions": Scale.MILLIONS, "thousands": Scale.THOUSANDS}


def detect_scale(text: str, default: Scale | None = Scale.MILLIONS) -> Scale | None:
    """Document or table scale from "(in millions)" style captions.

    The earliest caption wins; "(in millions, except shares in thousands)"
    is a millions table. Equal positions fall back to declaration order.
    """
    if not text:
        return default
    best: tuple[int, int, Scale] | None = None
    for order, (scale, pattern) in enumerate(SCALE_PATTERNS):
        m = pattern.search(text)
        if m and (best is None or (m.start(), order) < best[:2]):
            best = (m.start(), order, scale)
    return best[2] if best else default


def nearest_scale(text: str, position: int, lookback: int) -> Scale | None:
    """Closest unit declaration before ``position`` within ``lookback`` chars."""
    window = text[max(0, position - lookback):position]
    found = None
    for m in _UNIT_DECLARATION_RE.finditer(window):
        found = m
    if found is None:
        return None
    word = (found.group(1) or found.group(2)).lower()
    return _SCALE_WORDS[word]


def detect_periods(excerpt: str, limit: int = 4) -> list[str]:
    """Column headers of a statement: dates, then quarters, then years."""
    head = excerpt[:2000]
    for pattern in (_DATE_HEADER_RE, _QUARTER_HEADER_RE, _YEAR_HEADER_RE):
        found: list[str] = []
        for m in pattern.finditer(head):
            label = " ".join(m.group(0).split())
            if label not in found:
                found.append(label)
        if found:
            return found[:limit]
    return list(DEFAULT_PERIODS)


def detect_period(text: str) -> str | None:
    """Reporting period phrase such as 'Year Ended December 31, 2024'."""
    if not text:
        return None
    for pattern in PERIOD_PATTERNS:
        m = pattern.search(text)
        if m:
            return " ".join(m.group(0).split())
    return None


def detect_period_type(text: str | None) -> PeriodType | None:
    if not text:
        return None
    t = text.lower()
    if "three months" in t or "quarter" in t or re.search(r"\bq[1-4]\b", t):
        return PeriodType.QUARTERLY
    if "nine months" in t or "six months" in t or "year to date" in t or "year-to-date" in t:
        return PeriodType.YTD
    if ("twelve months" in t or "fiscal year" in t or "year ended" in t
            or "years ended" in t or "annual" in t or re.search(r"\bfy\s*\d{2,4}\b", t)):
        return PeriodType.ANNUAL
    if re.fullmatch(r"\s*(?:19|20)\d{2}\s*", t):
        return PeriodType.ANNUAL
    return None
