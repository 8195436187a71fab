"""Configuration management via environment variables.

Reads from .env file (via pydantic-settings) with sensible defaults.
All values can be overridden via environment variables prefixed with
``FILING_METRICS_`` (e.g. ``FILING_METRICS_PATTERN_CONFIDENCE_DECAY=0.05``).

Extraction tunables:
    STRUCTURED_CONFIDENCE     — confidence for iXBRL facts (tree walk)
    PATTERN_CONFIDENCE_DECAY  — discount per repeated match of the same term
    PATTERN_MIN_MAGNITUDE     — smallest plausible dollar figure from free text
    SECTION_MAX_CHARS         — cap on a located statement section

Optional:
    PORT  — tool server port for SSE transport
"""

from pydantic import field_validator
from pydantic_settings import BaseSettings


class Settings(BaseSettings):
    # Structured facts (iXBRL) are author-declared, so they rank highest
    structured_confidence: float = 0.97
    structured_fallback_confidence: float = 0.95
    fact_decimal_places: int = 6
    max_value_chars: int = 200

    # Table parser
    table_total_confidence: float = 0.95
    table_row_confidence: float = 0.85
    section_max_chars: int = 50_000
    region_min_rows: int = 3
    excerpt_chars: int = 1000

    # Pattern extractor
    pattern_confidence_decay: float = 0.08
    pattern_max_matches: int = 5
    pattern_min_magnitude: float = 1000
    unit_lookback_chars: int = 1500

    # Batch analysis
    batch_max_workers: int = 4

    # Server port (SSE transport only)
    port: int = 8877

    # A decay of 1.0 or more would zero out every repeated match
    @field_validator("pattern_confidence_decay", mode="before")
    @classmethod
    def clamp_decay(cls, v: float) -> float:
        v = float(v)
        return min(max(v, 0.0), 0.5)

    model_config = {
        "env_file": ".env",
        "env_file_encoding": "utf-8",
        "env_prefix": "FILING_METRICS_",
        "extra": "ignore",
    }


_config: Settings | None = None


def get_config() -> Settings:
    """Get or create the shared Settings singleton."""
    global _config
    if _config is None:
        _config = Settings()
    return _config
