import math
import re
import unicodedata
from datetime import date, datetime
from typing import Any, Optional, Tuple


def normalize_text(s: Optional[str]) -> str:
    """Lowercase, strip diacritics and collapse whitespace."""
    if not s:
        return ""
    decomposed = unicodedata.normalize("NFD", str(s).lower())
    stripped = "".join(c for c in decomposed if not unicodedata.combining(c))
    return " ".join(stripped.split())


def split_full_name(full_name: Optional[str]) -> Tuple[str, str]:
    """Split "First Last Names" on the first whitespace."""
    parts = (full_name or "").split()
    if not parts:
        return "", ""
    return parts[0], " ".join(parts[1:])


def is_missing(value: Any) -> bool:
    if value is None:
        return True
    if isinstance(value, float) and math.isnan(value):
        return True
    if isinstance(value, str) and value.strip() == "":
        return True
    return False


DATE_FORMATS = ("%Y-%m-%d", "%d/%m/%Y", "%d-%m-%Y", "%d.%m.%Y", "%Y/%m/%d")


def parse_date(value: Any) -> Optional[date]:
    """Parse a birth date in one of the accepted formats, None if it cannot be read."""
    if isinstance(value, datetime):
        return value.date()
    if isinstance(value, date):
        return value
    if is_missing(value) or not isinstance(value, str):
        return None
    text = value.strip()
    # ISO timestamps: keep the date part
    if "T" in text:
        text = text.split("T", 1)[0]
    elif " " in text:
        text = text.split(" ", 1)[0]
    for fmt in DATE_FORMATS:
        try:
            return datetime.strptime(text, fmt).date()
        except ValueError:
            continue
    return None


_GRADE_RE = re.compile(r"^[+-]?\d+(\.\d+)?$")


def parse_grade(value: Any) -> Optional[float]:
    """Parse a grade such as 14, "14.5" or "14,5". Returns None when not a finite number."""
    if isinstance(value, bool):
        return None
    if isinstance(value, (int, float)):
        grade = value
    elif isinstance(value, str):
        text = value.strip().replace(",", ".")
        if not _GRADE_RE.match(text):
            return None
        grade = text
    else:
        return None
    try:
        grade = float(grade)
    except OverflowError:
        return None
    return grade if math.isfinite(grade) else None
