"""Financial statement table parser.

Algorithm:
  1.  For each statement type (income statement, balance sheet, cash flow,
      comprehensive income, equity) search the cleaned text for heading
      synonyms, case-insensitively, in document order.
  2.  Bound each candidate section at the next terminator (another
      statement heading, "notes to", "Item N.", "Part II", signatures,
      auditor's report), capped at ``section_max_chars``.
  3.  Parse rows: pipe-delimited lines (tables linearized by the
      preprocessor) as explicit grids, anything else by splitting on
      embedded numeric tokens.
  4.  Map labels to categories; keep the first candidate section that
      yields at least one mapped row. Table-of-contents hits produce none
      and are skipped.
  5.  If no heading produced a table, scan the whole document for runs of
      statement-shaped lines.

The scale caption ("in millions" / "in billions" / "in thousands", default
millions) is detected once per table and applied to every value when the
rows become Metrics.
"""

from __future__ import annotations

import logging
import re
from collections import Counter
from dataclasses import dataclass
from decimal import Decimal, InvalidOperation

import pandas as pd

from filing_metrics.captions import detect_period_type, detect_periods, detect_scale
from filing_metrics.category_rules import label_category
from filing_metrics.config import get_config
from filing_metrics.models import (
    Metric,
    MetricSource,
    MetricUnit,
    Row,
    Scale,
    StatementGroup,
    StatementType,
    Table,
)

log = logging.getLogger(__name__)

# ═══════════════════════════════════════════════════════════════════════════
#  Headings & terminators
# ═══════════════════════════════════════════════════════════════════════════

STATEMENT_HEADINGS: list[tuple[StatementType, list[str]]] = [
    (StatementType.INCOME_STATEMENT, [
        "consolidated statements of operations",
        "consolidated statements of income",
        "consolidated statements of earnings",
        "consolidated statement of operations",
        "consolidated statement of income",
        "statements of operations",
        "statement of operations",
        "statements of income",
        "statement of income",
        "income statements",
        "income statement",
        "results of operations",
    ]),
    (StatementType.BALANCE_SHEET, [
        "consolidated balance sheets",
        "consolidated balance sheet",
        "consolidated statements of financial position",
        "consolidated statement of financial position",
        "statements of financial condition",
        "statement of financial position",
        "balance sheets",
        "balance sheet",
    ]),
    (StatementType.CASH_FLOW, [
        "consolidated statements of cash flows",
        "consolidated statement of cash flows",
        "statements of cash flows",
        "statement of cash flows",
        "cash flow statements",
        "cash flow statement",
    ]),
    (StatementType.COMPREHENSIVE_INCOME, [
        "consolidated statements of comprehensive income",
        "consolidated statement of comprehensive income",
        "consolidated statements of comprehensive loss",
        "statements of comprehensive income",
        "statement of comprehensive income",
    ]),
    (StatementType.EQUITY, [
        "consolidated statements of stockholders' equity",
        "consolidated statements of shareholders' equity",
        "consolidated statements of changes in equity",
        "consolidated statements of equity",
        "statements of stockholders' equity",
        "statements of shareholders' equity",
        "statement of changes in equity",
    ]),
]

_GENERIC_TERMINATORS = [
    r"notes\s+to\s+(?:the\s+)?(?:condensed\s+)?(?:consolidated\s+)?financial\s+statements",
    r"notes\s+to\s+(?:the\s+)?consolidated",
    r"accompanying\s+notes\s+are\s+an\s+integral\s+part",
    r"^\s*item\s+\d{1,2}[a-c]?\s*[.:]",
    r"^\s*part\s+i{1,3}v?\b",
    r"^\s*signatures\s*$",
    r"report\s+of\s+independent\s+registered",
]

_NOISE_RES = [
    re.compile(r"^(?:page|p\.)\s*\d*$", re.I),
    re.compile(r"^f\s*-?\s*\d+$", re.I),
    re.compile(r"^\(?\s*see\s+notes?\b", re.I),
    re.compile(r"^\(?\s*notes?\s+\d+", re.I),
    re.compile(r"^table\s+of\s+contents$", re.I),
    re.compile(r"^index\b", re.I),
    re.compile(r"^\(?\s*in\s+(?:millions|billions|thousands)\b", re.I),
    # Table-of-contents entries naming a statement
    re.compile(r"^consolidated\s+(?:statements?|balance\s+sheets?)\b", re.I),
]

_MAX_HEADING_LINE = 150
_MAX_TEXT_LABEL = 100

_CELL_NUM_RE = re.compile(r"^\(?\s*-?\s*\$?\s*\(?\s*-?\s*\d[\d,]*(?:\.\d+)?\s*\)?$")
_LINE_TOKEN_RE = re.compile(r"\(?\s*\$?\s*\(?\s*-?\d[\d,]*(?:\.\d+)?\s*\)?|(?<!\S)[—–](?!\S)")
_DASHES = frozenset(["—", "–", "-", "--", "—-", "$—", "$ —", "$-", "n/a", "N/A", "nm", "NM"])
_SKIP_CELLS = frozenset(["$", ")", "%", "(", "€", "£"])


def _heading_re(phrase: str) -> re.Pattern:
    body = r"\s+".join(re.escape(w) for w in phrase.split())
    return re.compile(body.replace("'", "['’]?"), re.I)


_HEADING_RES: list[tuple[StatementType, list[re.Pattern]]] = [
    (stype, [_heading_re(p) for p in phrases]) for stype, phrases in STATEMENT_HEADINGS
]


def _terminator_re(stype: StatementType) -> re.Pattern:
    others = [
        r"\s+".join(re.escape(w) for w in p.split()).replace("'", "['’]?")
        for other, phrases in STATEMENT_HEADINGS if other is not stype
        for p in phrases if p.startswith("consolidated")
    ]
    return re.compile("|".join(others + _GENERIC_TERMINATORS), re.I | re.M)


_TERMINATOR_RES = {stype: _terminator_re(stype) for stype, _ in STATEMENT_HEADINGS}


@dataclass
class StatementSection:
    statement_type: StatementType
    title: str
    start: int
    text: str


# ═══════════════════════════════════════════════════════════════════════════
#  Section search
# ═══════════════════════════════════════════════════════════════════════════


def _line_at(text: str, pos: int) -> tuple[int, int]:
    start = text.rfind("\n", 0, pos) + 1
    end = text.find("\n", pos)
    return start, len(text) if end == -1 else end


def find_statement_sections(text: str, stype: StatementType) -> list[StatementSection]:
    """Candidate sections for one statement type.

    Synonyms are tried in declared order (most specific first) and each
    synonym's hits in document order. Only headings standing on a short
    line of their own count; mentions inside prose do not.
    """
    cfg = get_config()
    terminator = _TERMINATOR_RES[stype]
    seen: set[int] = set()
    sections: list[StatementSection] = []
    for pattern in dict(_HEADING_RES)[stype]:
        for m in pattern.finditer(text):
            line_start, line_end = _line_at(text, m.start())
            if line_start in seen or line_end - line_start > _MAX_HEADING_LINE:
                continue
            seen.add(line_start)
            t = terminator.search(text, line_end)
            end = t.start() if t else len(text)
            end = min(end, line_end + cfg.section_max_chars)
            title = " ".join(text[line_start:line_end].replace("|", " ").split())[:120]
            sections.append(StatementSection(stype, title, line_start, text[line_end:end]))
    return sections


# ═══════════════════════════════════════════════════════════════════════════
#  Row parsing
# ═══════════════════════════════════════════════════════════════════════════


def parse_number(token: str) -> Decimal | None:
    """'(1,234.5)' → -1234.5; dashes and blanks → None."""
    t = token.strip().replace("−", "-")
    if not t or t in _DASHES or not any(ch.isdigit() for ch in t):
        return None
    negative = "(" in t or t.endswith(")")
    cleaned = re.sub(r"[$€£,()\s]", "", t)
    if cleaned.startswith("-"):
        negative = True
        cleaned = cleaned[1:]
    try:
        value = Decimal(cleaned)
    except InvalidOperation:
        log.debug("Skipping malformed numeric token %r", token)
        return None
    return -value if negative else value


def _is_valid_label(label: str) -> bool:
    if len(label) < 3 or re.fullmatch(r"[\d\W_]+", label):
        return False
    return not any(p.search(label) for p in _NOISE_RES)


def _row_flags(label: str) -> tuple[bool, bool]:
    lower = label.lower()
    return lower.startswith("total") or "total " in lower, "subtotal" in lower


def _grid_row(line: str) -> Row | None:
    cells = [c.strip() for c in line.strip().strip("|").split("|")]
    indent = 0
    while indent < len(cells) and not cells[indent]:
        indent += 1
    if indent >= len(cells):
        return None
    label = cells[indent].rstrip(":").strip()
    values: list[Decimal | None] = []
    for cell in cells[indent + 1:]:
        if not cell or cell in _SKIP_CELLS or cell.endswith("%"):
            continue
        if cell in _DASHES:
            values.append(None)
            continue
        if not _CELL_NUM_RE.match(cell):
            continue
        values.append(parse_number(cell))
    return _make_row(label, values, min(indent, 3))


def _text_row(line: str) -> Row | None:
    first = _LINE_TOKEN_RE.search(line)
    if first is None:
        return None
    label = line[:first.start()].strip().rstrip(":").strip()
    if len(label) > _MAX_TEXT_LABEL:
        return None
    values = [parse_number(m.group(0)) for m in _LINE_TOKEN_RE.finditer(line, first.start())]
    indent = (len(line) - len(line.lstrip(" "))) // 2
    return _make_row(label, values, min(indent, 3))


def _make_row(label: str, values: list[Decimal | None], indent: int) -> Row | None:
    if not _is_valid_label(label) or all(v is None for v in values):
        return None
    is_total, is_subtotal = _row_flags(label)
    return Row(
        label=label,
        values=values,
        is_total=is_total,
        is_subtotal=is_subtotal,
        indent_level=indent,
        category=label_category(label),
    )


def parse_row(line: str) -> Row | None:
    """One statement line → Row (category may be None)."""
    if not line.strip():
        return None
    if "|" in line:
        return _grid_row(line)
    return _text_row(line)


def parse_rows(excerpt: str) -> list[Row]:
    """Mapped rows of a section; unrecognized labels are dropped."""
    rows = []
    for line in excerpt.split("\n"):
        row = parse_row(line)
        if row is not None and row.category is not None:
            rows.append(row)
    return rows


# ═══════════════════════════════════════════════════════════════════════════
#  Table assembly
# ═══════════════════════════════════════════════════════════════════════════


def _table_scale(caption: str, context: str) -> Scale:
    """Caption under the heading first, then the text just above it."""
    return detect_scale(caption, default=None) or detect_scale(context)


def _build_table(stype: StatementType, title: str, excerpt: str, context: str = "") -> Table | None:
    rows = parse_rows(excerpt)
    if not rows:
        return None
    cfg = get_config()
    return Table(
        statement_type=stype,
        title=title,
        periods=detect_periods(excerpt),
        rows=rows,
        unit=_table_scale(title + "\n" + excerpt[:3000], context),
        excerpt=excerpt[:cfg.excerpt_chars],
    )


def parse_statement_sections(text: str) -> list[Table]:
    tables: list[Table] = []
    for stype, _ in STATEMENT_HEADINGS:
        for section in find_statement_sections(text, stype):
            context = text[max(0, section.start - 300):section.start]
            table = _build_table(stype, section.title, section.text, context)
            if table is not None:
                log.debug("Located %s at offset %d (%d rows)", stype.value, section.start, len(table.rows))
                tables.append(table)
                break
    return tables


_GROUP_STATEMENT = {
    StatementGroup.INCOME_STATEMENT: StatementType.INCOME_STATEMENT,
    StatementGroup.PER_SHARE: StatementType.INCOME_STATEMENT,
    StatementGroup.SHARES: StatementType.INCOME_STATEMENT,
    StatementGroup.ASSETS: StatementType.BALANCE_SHEET,
    StatementGroup.LIABILITIES: StatementType.BALANCE_SHEET,
    StatementGroup.EQUITY: StatementType.BALANCE_SHEET,
    StatementGroup.CASH_FLOW: StatementType.CASH_FLOW,
}


def _infer_statement_type(rows: list[Row]) -> StatementType:
    votes = Counter(_GROUP_STATEMENT[r.category.group] for r in rows if r.category is not None)
    order = [stype for stype, _ in STATEMENT_HEADINGS]
    return max(votes, key=lambda s: (votes[s], -order.index(s)))


def scan_statement_regions(text: str) -> list[Table]:
    """Secondary pass: runs of consecutive statement-shaped lines anywhere."""
    cfg = get_config()
    lines = text.split("\n")
    tables: list[Table] = []
    run: list[int] = []

    def _flush() -> None:
        if len(run) >= cfg.region_min_rows:
            first, last = run[0], run[-1]
            excerpt = "\n".join(lines[first:last + 1])
            context = "\n".join(lines[max(0, first - 5):first])
            rows = parse_rows(excerpt)
            if rows:
                tables.append(Table(
                    statement_type=_infer_statement_type(rows),
                    title=f"Statement region (lines {first + 1}-{last + 1})",
                    periods=detect_periods(context + "\n" + excerpt),
                    rows=rows,
                    unit=_table_scale(excerpt, context),
                    excerpt=excerpt[:cfg.excerpt_chars],
                ))
        run.clear()

    for i, line in enumerate(lines):
        if parse_row(line) is not None:
            run.append(i)
        elif line.strip():
            _flush()
    _flush()
    return tables


def parse_tables(text: str) -> list[Table]:
    """Statement tables located by heading, else by region scan."""
    if not text:
        return []
    tables = parse_statement_sections(text)
    if not tables:
        tables = scan_statement_regions(text)
    log.info("Parsed %d statement tables: %s", len(tables), [t.statement_type.value for t in tables])
    return tables


# ═══════════════════════════════════════════════════════════════════════════
#  Conversion
# ═══════════════════════════════════════════════════════════════════════════


def _yoy_change(values: list[Decimal | None]) -> float | None:
    if len(values) < 2 or values[0] is None or not values[1]:
        return None
    return round(float((values[0] - values[1]) / abs(values[1]) * 100), 2)


def tables_to_metrics(tables: list[Table]) -> list[Metric]:
    """Every mapped row → Metric at full scale (first non-null column)."""
    cfg = get_config()
    metrics: list[Metric] = []
    for table in tables:
        table_period_type = detect_period_type(table.title + " " + table.excerpt[:500])
        for row in table.rows:
            if row.category is None:
                continue
            idx = next((i for i, v in enumerate(row.values) if v is not None), None)
            if idx is None:
                continue
            unit = row.category.default_unit
            value = row.values[idx]
            if unit is not MetricUnit.PER_SHARE:
                value = value * table.unit.multiplier
            period = table.periods[idx] if idx < len(table.periods) else None
            base = cfg.table_total_confidence if row.is_total else cfg.table_row_confidence
            metrics.append(Metric(
                category=row.category,
                name=row.label,
                value=value,
                unit=unit,
                period=period,
                period_type=detect_period_type(period) or table_period_type,
                source=MetricSource.TABLE,
                confidence=max(0.0, round(base - 0.01 * row.indent_level, 4)),
                context=f"From {table.title} ({table.unit.value})",
                yoy_change=_yoy_change(row.values),
            ))
    return metrics


def table_frame(table: Table) -> pd.DataFrame:
    """Rows as a DataFrame: label, category, flags, one column per period."""
    width = max((len(r.values) for r in table.rows), default=0)
    periods = list(table.periods[:width])
    periods += [f"Column {i + 1}" for i in range(len(periods), width)]
    records = []
    for row in table.rows:
        record = {
            "label": row.label,
            "category": row.category.value if row.category else None,
            "is_total": row.is_total,
            "indent_level": row.indent_level,
        }
        for i, period in enumerate(periods):
            v = row.values[i] if i < len(row.values) else None
            record[period] = float(v) if v is not None else None
        records.append(record)
    return pd.DataFrame(records, columns=["label", "category", "is_total", "indent_level", *periods])


def table_records(table: Table) -> list[dict]:
    """JSON-safe row records (NaN → None), values as reported."""
    df = table_frame(table)
    if df.empty:
        return []
    df = df.astype(object).where(df.notna(), None)
    return df.to_dict(orient="records")
