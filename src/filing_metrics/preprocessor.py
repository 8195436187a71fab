"""Filing text preprocessing: markup stripping and table linearization.

Turns a raw 10-K / 10-Q document (HTML, inline-XBRL HTML, or plain text)
into cleaned text in which:
  - script/style/head/navigation blocks, the ``ix:header`` block and
    ``display:none`` elements are gone
  - every table row is a single ``| cell | cell |`` line, so line-based
    parsers can recover column alignment without the tree
  - block elements end a line; inline elements never split a word
  - entities are decoded and whitespace is collapsed inside lines

Never raises: if BeautifulSoup chokes, a regex stripper takes over.
"""

from __future__ import annotations

import html
import logging
import re

from bs4 import BeautifulSoup, NavigableString, Tag

log = logging.getLogger(__name__)

_BLOCK_TAGS = frozenset([
    "p", "div", "br", "h1", "h2", "h3", "h4", "h5", "h6",
    "li", "ol", "ul", "blockquote", "pre", "hr",
    "section", "article", "header", "footer",
    "tr", "table", "thead", "tbody", "tfoot",
    "dt", "dd", "dl", "figcaption", "figure", "center",
])

_REMOVE_TAGS = ["script", "style", "head", "noscript", "nav", "title"]

_MARKUP_RE = re.compile(
    r"<\s*(?:html|body|div|p|table|tr|td|span|br|font|ix:|xbrl|\?xml|!doctype)",
    re.IGNORECASE,
)
_IXBRL_RE = re.compile(r"<\s*ix:(?:nonfraction|nonnumeric|header)\b|contextref\s*=", re.IGNORECASE)
_HIDDEN_STYLE_RE = re.compile(r"display\s*:\s*none", re.IGNORECASE)


def looks_like_markup(text: str) -> bool:
    """True when the document is HTML / XBRL rather than plain text."""
    if not text:
        return False
    return bool(_MARKUP_RE.search(text[:20_000]))


def has_inline_xbrl(text: str) -> bool:
    """True when the document carries inline-XBRL fact markup."""
    return bool(text) and bool(_IXBRL_RE.search(text))


def parse_tree(raw: str) -> BeautifulSoup | None:
    """Build the structured-document handle used by the iXBRL extractor."""
    if not raw or not looks_like_markup(raw):
        return None
    try:
        return BeautifulSoup(raw, "html.parser")
    except Exception as e:
        log.warning("Could not parse document markup: %s", e)
        return None


def clean_document(raw: str) -> str:
    """Return cleaned, line-preserving text for any supported input."""
    if not raw:
        return ""
    if looks_like_markup(raw):
        return _normalize_whitespace(_strip_markup(raw), keep_indent=False)
    return _normalize_whitespace(html.unescape(raw), keep_indent=True)


def compression_ratio(raw_len: int, cleaned_len: int) -> str:
    """How much the cleaning shrank the document, e.g. '82.4%'."""
    if raw_len <= 0:
        return "0.0%"
    return "%.1f%%" % ((1 - cleaned_len / raw_len) * 100)


# ═══════════════════════════════════════════════════════════════════════════
#  Markup stripping
# ═══════════════════════════════════════════════════════════════════════════


def _linearize_row(tr: Tag) -> str:
    cells = []
    for td in tr.find_all(["td", "th"]):
        cells.append(td.get_text(" ", strip=True))
    # Drop trailing blanks but keep leading ones: they carry indentation
    while cells and not cells[-1]:
        cells.pop()
    if not any(cells):
        return ""
    return "| " + " | ".join(cells) + " |"


def _strip_markup(raw: str) -> str:
    """Strip HTML tags and extract readable text using BeautifulSoup.

    Uses block-level element awareness to insert newlines only where
    appropriate, preventing word breaks across inline elements
    (e.g., <span>B</span><span>USINESS</span> → "BUSINESS" not "B\\nUSINESS").
    """
    try:
        soup = BeautifulSoup(raw, "html.parser")

        for tag in soup(_REMOVE_TAGS):
            tag.decompose()
        # ix:header holds hidden facts and context scaffolding, not content
        for tag in soup.find_all(re.compile(r"^ix:header$", re.I)):
            tag.decompose()
        for tag in soup.find_all(attrs={"style": _HIDDEN_STYLE_RE}):
            tag.decompose()

        for table in soup.find_all("table"):
            # Nested tables are flattened into their outermost table
            if table.find_parent("table") is not None:
                continue
            rows_text = [r for r in (_linearize_row(tr) for tr in table.find_all("tr")) if r]
            if rows_text:
                table.replace_with("\n" + "\n".join(rows_text) + "\n")
            else:
                table.decompose()

        parts: list[str] = []

        def _walk(node: Tag | NavigableString) -> None:
            if isinstance(node, NavigableString):
                text = str(node)
                if text.strip():
                    parts.append(text)
                elif parts and not parts[-1].endswith((" ", "\n")):
                    parts.append(" ")
                return
            if not isinstance(node, Tag):
                return
            tag_name = node.name.lower() if node.name else ""
            is_block = tag_name in _BLOCK_TAGS
            if is_block:
                parts.append("\n")
            for child in node.children:
                _walk(child)
            if is_block:
                parts.append("\n")

        _walk(soup)
        text = "".join(parts)
    except Exception as e:
        log.warning("BeautifulSoup failed, falling back to regex stripping: %s", e)
        text = html.unescape(_regex_strip(raw))
    return text.replace("\xa0", " ")


def _regex_strip(raw: str) -> str:
    text = re.sub(r"<(script|style|head)[^>]*>.*?</\1>", " ", raw, flags=re.DOTALL | re.IGNORECASE)
    text = re.sub(r"<ix:header[^>]*>.*?</ix:header>", " ", text, flags=re.DOTALL | re.IGNORECASE)
    text = re.sub(r"<tr[^>]*>", "\n| ", text, flags=re.IGNORECASE)
    text = re.sub(r"<t[dh][^>]*>", " | ", text, flags=re.IGNORECASE)
    text = re.sub(r"<(?:br|p|div|li|h[1-6])[^>]*>", "\n", text, flags=re.IGNORECASE)
    text = re.sub(r"<[^>]+>", " ", text)
    return text


def _normalize_whitespace(text: str, keep_indent: bool) -> str:
    """Collapse spaces within lines, trim line ends, limit blank lines.

    With ``keep_indent`` the leading indentation of plain-text lines is
    kept (tabs become four spaces); statement parsers use it as a weak
    nesting signal. Markup indentation is source formatting and is dropped.
    """
    text = text.replace("\r\n", "\n").replace("\r", "\n").replace("\xa0", " ")
    lines = []
    for line in text.split("\n"):
        line = line.rstrip().replace("\t", "    ")
        stripped = line.lstrip(" ")
        indent = len(line) - len(stripped) if keep_indent else 0
        stripped = re.sub(r"[ \t]+", " ", stripped)
        stripped = re.sub(r"\|(?: \|)+ *$", "|", stripped)
        lines.append(" " * indent + stripped if stripped else "")
    text = "\n".join(lines)
    text = re.sub(r"\n{3,}", "\n\n", text)
    return text.strip("\n")
