"""Utility functions."""
import re
import unicodedata
from typing import Any, Optional


def to_int(s: Optional[str]) -> Optional[int]:
    """Convert string to int, returning None if conversion fails."""
    try:
        return int(s) if s is not None else None
    except (TypeError, ValueError):
        return None


def positive_int(s: Optional[str], default: int = 1) -> int:
    """Convert to a positive int, falling back to `default`."""
    value = to_int(s.strip() if isinstance(s, str) else s)
    if value is None or value < 1:
        return default
    return value


def cell_to_str(value: Any) -> str:
    """Render a raw spreadsheet cell as text ('4.0' -> '4', None -> '')."""
    if value is None:
        return ""
    if isinstance(value, bool):
        return str(value)
    if isinstance(value, float) and value.is_integer():
        return str(int(value))
    return str(value)


def slugify(text: str) -> str:
    """Lowercase, accent-free, dash-separated version of `text`."""
    normalized = unicodedata.normalize("NFKD", text)
    ascii_text = normalized.encode("ascii", "ignore").decode("ascii")
    return re.sub(r"[^a-z0-9]+", "-", ascii_text.lower()).strip("-")
