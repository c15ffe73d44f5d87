import math
import re
from typing import Any, Optional

NON_NUMERIC_RE = re.compile(r"[^0-9.]")
FILENAME_WEEK_RE = re.compile(r"(?<![a-z])(?:week|wk)[\s_\-.#]*(\d{1,2})(?!\d)", re.IGNORECASE)


def parse_score_safe(value: Any) -> Optional[float]:
    # Numbers pass through; text keeps only digits and dots ("123.4 pts" -> 123.4)
    if isinstance(value, bool) or value is None:
        return None
    if isinstance(value, (int, float)):
        try:
            score = float(value)
        except OverflowError:
            return None
        return score if math.isfinite(score) else None
    cleaned = NON_NUMERIC_RE.sub("", str(value))
    if not cleaned:
        return None
    try:
        score = float(cleaned)
    except ValueError:
        return None
    return score if math.isfinite(score) else None


def clean_team_name(value: Any) -> str:
    if value is None:
        return ""
    return str(value).strip()


def parse_positive_int(value: Any) -> Optional[int]:
    """Accept 5, 5.0, "5", " 5 "; anything else (including 0, 2.5, "five") is None."""
    if isinstance(value, bool) or value is None:
        return None
    if isinstance(value, float):
        if not math.isfinite(value) or not value.is_integer():
            return None
        value = int(value)
    if isinstance(value, int):
        return value if value >= 1 else None
    text = str(value).strip()
    if not re.fullmatch(r"\d+", text):
        return None
    n = int(text)
    return n if n >= 1 else None


def week_from_filename(filename: Optional[str]) -> Optional[int]:
    m = FILENAME_WEEK_RE.search(filename or "")
    if not m:
        return None
    return parse_positive_int(m.group(1))
