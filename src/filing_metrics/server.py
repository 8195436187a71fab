"""Filing-Metrics: MCP server for metric extraction from filing documents.

Tool hierarchy
──────────────
  Full analysis
    1. analyze_document         — text → merged metrics + tables + ratios + metadata
    2. analyze_document_file    — local .htm/.html/.xml/.txt filing → same as above

  Focused views
    3. extract_metrics          — just the merged metric list
    4. get_statement_tables     — parsed statement tables as row records
    5. get_financial_ratios     — just computed ratios with health buckets
    6. clean_filing_text        — markup stripped, tables as pipe-delimited rows

The caller supplies the document text; no filing is fetched remotely.
Tools are registered after their definitions so the names stay plain callables.
"""

from __future__ import annotations

from fastmcp import FastMCP

from filing_metrics.config import get_config
from filing_metrics.models import StatementType
from filing_metrics.pipeline import analyze_file, analyze_filing
from filing_metrics.preprocessor import clean_document
from filing_metrics.statements import table_records

mcp = FastMCP(name="Filing-Metrics")


# ═══════════════════════════════════════════════════════════════════════════
#  FULL ANALYSIS
# ═══════════════════════════════════════════════════════════════════════════

def analyze_document(text: str, document_name: str = "document") -> dict:
    """Analyze a filing supplied as HTML, inline XBRL or plain text.

    Runs structured-fact, statement-table and text-pattern extraction,
    merges them to one value per line item (structured facts first, then
    table rows, then text patterns) and derives financial ratios.

    Args:
        text: Full document text.
        document_name: Name echoed back in the result metadata.

    Returns:
        Dict with status, metrics, tables, ratios, cleaned_text and metadata.
    """
    return analyze_filing(text, document_name).model_dump(mode="json")


def analyze_document_file(path: str) -> dict:
    """Analyze a filing stored on local disk.

    Args:
        path: Path to an .htm, .html, .xhtml, .xml or .txt file.
    """
    try:
        return analyze_file(path).model_dump(mode="json")
    except (FileNotFoundError, ValueError) as e:
        return {"error": str(e), "path": path}


# ═══════════════════════════════════════════════════════════════════════════
#  FOCUSED VIEWS
# ═══════════════════════════════════════════════════════════════════════════

def extract_metrics(text: str) -> list[dict]:
    """Merged metric list only: one entry per line item, values at full scale."""
    result = analyze_filing(text)
    return [
        {**m.model_dump(mode="json"), "display_value": m.display_value}
        for m in result.metrics
    ]


def get_statement_tables(text: str, statement_type: str | None = None) -> list[dict]:
    """Statement tables found in the document.

    Args:
        text: Full document text.
        statement_type: Optional filter: income_statement, balance_sheet,
            cash_flow, comprehensive_income or equity.
    """
    if statement_type is not None:
        try:
            wanted = StatementType(statement_type.strip().lower())
        except ValueError:
            valid = ", ".join(s.value for s in StatementType)
            return [{"error": f"Unknown statement_type '{statement_type}'. Expected one of: {valid}"}]
    else:
        wanted = None

    result = analyze_filing(text)
    tables = []
    for table in result.tables:
        if wanted is not None and table.statement_type is not wanted:
            continue
        tables.append({
            "statement_type": table.statement_type.value,
            "title": table.title,
            "unit": table.unit.value,
            "periods": table.periods,
            "rows": table_records(table),
        })
    return tables


def get_financial_ratios(text: str) -> dict:
    """Ratios with qualitative health buckets, grouped by family."""
    result = analyze_filing(text)
    grouped: dict[str, list[dict]] = {}
    for r in result.ratios:
        grouped.setdefault(r.category.value, []).append(r.model_dump(mode="json"))
    return {
        "document_name": result.document_name,
        "status": result.status,
        "ratios": grouped,
    }


def clean_filing_text(text: str, max_length: int = 50_000) -> dict:
    """Strip markup and return line-preserving text.

    Args:
        text: Raw document text.
        max_length: Truncate the cleaned text to this many characters.
    """
    cleaned = clean_document(text)
    return {
        "text": cleaned[:max_length],
        "length": len(cleaned),
        "truncated": len(cleaned) > max_length,
    }


for _tool in (
    analyze_document,
    analyze_document_file,
    extract_metrics,
    get_statement_tables,
    get_financial_ratios,
    clean_filing_text,
):
    mcp.tool()(_tool)


# ═══════════════════════════════════════════════════════════════════════════
#  ENTRY POINT
# ═══════════════════════════════════════════════════════════════════════════

if __name__ == "__main__":
    import sys

    # Support SSE transport for remote hosting:
    #   python -m filing_metrics.server --sse
    # Default is STDIO (for local MCP clients)
    if "--sse" in sys.argv:
        mcp.run(transport="sse", port=get_config().port)
    else:
        mcp.run()
