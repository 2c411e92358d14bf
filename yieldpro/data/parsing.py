"""
Tolerant value parsing for operator-maintained exports.

Source tables mix French and ISO formats, currency symbols and thousands
separators. Every helper here degrades to a fallback instead of raising:
a malformed cell must never abort a dashboard computation.
"""

import math
import re
import unicodedata
from datetime import date, datetime, timezone
from decimal import Decimal
from typing import Any, Optional

import numpy as np
import pandas as pd


# Characters stripped before numeric parsing
_CURRENCY_CHARS = re.compile(r"[€$£%]")
_WHITESPACE = re.compile(r"\s+")
_NON_NUMERIC = re.compile(r"[^\d,.\-]")

_ISO_DATE = re.compile(r"^(\d{4})-(\d{2})-(\d{2})$")
_FR_DASH_DATE = re.compile(r"^(\d{2})-(\d{2})-(\d{4})$")
_FR_SLASH_DATE = re.compile(r"^(\d{2})/(\d{2})/(\d{4})$")


def normalize_key(value: Any) -> str:
    """
    Lowercase, accent-free, alphanumeric-only version of a string.

    Used to match column names and status/room-type tokens regardless of
    accents, spacing or mis-encoded characters.

    >>> normalize_key("Date d'arrivée")
    'datedarrivee'
    """
    if value is None:
        return ""
    decomposed = unicodedata.normalize("NFD", str(value))
    stripped = "".join(c for c in decomposed if not unicodedata.combining(c))
    return re.sub(r"[^a-zA-Z0-9]", "", stripped).lower()


def _is_real_number(value: Any) -> bool:
    if isinstance(value, (bool, np.bool_)):
        return False
    return isinstance(value, (int, float, Decimal, np.integer, np.floating))


def _collapse_separators(raw: str, sep: str) -> str:
    """Resolve a string where `sep` is the only separator present."""
    count = raw.count(sep)
    if count == 1:
        return raw.replace(sep, ".")

    head, _, tail = raw.rpartition(sep)
    if len(tail) == 3:
        # "3.000.000" style: every separator groups thousands
        return raw.replace(sep, "")
    return f"{head.replace(sep, '')}.{tail}"


def parse_optional_number(value: Any) -> Optional[float]:
    """
    Parse a loosely formatted number, returning None when impossible.

    Handles:
    - plain ints/floats (non-finite values are rejected)
    - whitespace incl. non-breaking spaces, currency symbols, percent signs
    - "(12.50)" accounting negatives
    - mixed decimal/thousands separators: when both ',' and '.' appear, the
      later one is the decimal separator
    """
    if value is None:
        return None

    if _is_real_number(value):
        number = float(value)
        return number if math.isfinite(number) else None

    if not isinstance(value, str):
        return None

    raw = value.replace("\u00a0", " ").strip()
    if not raw:
        return None

    negative = False
    if raw.startswith("(") and raw.endswith(")"):
        negative = True
        raw = raw[1:-1]

    raw = _WHITESPACE.sub("", raw)
    raw = _CURRENCY_CHARS.sub("", raw)
    raw = _NON_NUMERIC.sub("", raw)
    if not raw:
        return None

    has_comma = "," in raw
    has_dot = "." in raw

    if has_comma and has_dot:
        if raw.rfind(",") > raw.rfind("."):
            raw = raw.replace(".", "").replace(",", ".")
        else:
            raw = raw.replace(",", "")
    elif has_comma:
        raw = _collapse_separators(raw, ",")
    elif has_dot and raw.count(".") > 1:
        raw = _collapse_separators(raw, ".")

    try:
        number = float(raw)
    except (ValueError, OverflowError):
        return None

    if not math.isfinite(number):
        return None
    return -number if negative else number


def parse_number(value: Any, fallback: float = 0.0) -> float:
    """
    Best-effort finite number, or `fallback` when the value cannot be parsed.

    >>> parse_number("1 234,50 €")
    1234.5
    >>> parse_number("(12.50)")
    -12.5
    >>> parse_number("n/a", fallback=-1)
    -1
    """
    number = parse_optional_number(value)
    return fallback if number is None else number


def _build_date(year: str, month: str, day: str) -> Optional[date]:
    try:
        return date(int(year), int(month), int(day))
    except ValueError:
        return None


def to_naive(moment: datetime) -> datetime:
    """Convert an aware datetime to naive UTC; naive values pass through."""
    if moment.tzinfo is not None:
        return moment.astimezone(timezone.utc).replace(tzinfo=None)
    return moment


def _generic_parse(text: str) -> Optional[datetime]:
    parsed = pd.to_datetime(text, errors="coerce")
    if parsed is None or pd.isna(parsed):
        return None
    return to_naive(parsed.to_pydatetime())


def parse_date(value: Any) -> Optional[date]:
    """
    Parse a calendar date from ISO, French dash or French slash formats.

    Falls back to a generic pandas parse; returns None on total failure.
    """
    if value is None or value is pd.NaT:
        return None
    if isinstance(value, datetime):
        return to_naive(value).date()
    if isinstance(value, date):
        return value
    if not isinstance(value, str):
        return None

    text = value.strip()
    if not text:
        return None

    for pattern, order in (
        (_ISO_DATE, (1, 2, 3)),
        (_FR_DASH_DATE, (3, 2, 1)),
        (_FR_SLASH_DATE, (3, 2, 1)),
    ):
        match = pattern.match(text)
        if match:
            parsed = _build_date(*(match.group(i) for i in order))
            if parsed is not None:
                return parsed

    moment = _generic_parse(text)
    return moment.date() if moment is not None else None


def parse_datetime(value: Any) -> Optional[datetime]:
    """
    Parse a timestamp (e.g. a purchase date). Date-only values map to midnight.

    Returned datetimes are always naive; aware inputs are converted to UTC.
    """
    if value is None or value is pd.NaT:
        return None
    if isinstance(value, datetime):
        return to_naive(value)
    if isinstance(value, date):
        return datetime(value.year, value.month, value.day)
    if not isinstance(value, str):
        return None

    text = value.strip()
    if not text:
        return None

    if _ISO_DATE.match(text) or _FR_DASH_DATE.match(text) or _FR_SLASH_DATE.match(text):
        day = parse_date(text)
        return datetime(day.year, day.month, day.day) if day else None

    return _generic_parse(text)


def is_cancelled_status(status: Any) -> bool:
    """Cancelled when the status mentions "annul" or "cancel" (any case/accent)."""
    key = normalize_key(status)
    return "annul" in key or "cancel" in key


def is_closed_flag(value: Any) -> bool:
    """The closed-for-sale column uses the literal marker "x"."""
    if value is None:
        return False
    return str(value).strip().lower() == "x"


def round_half_away(value: float) -> int:
    """Round to the nearest integer, ties away from zero."""
    return int(math.copysign(math.floor(abs(value) + 0.5), value))


def clamp(value: float, lower: float, upper: float) -> float:
    """Clamp into [lower, upper]; when lower > upper the upper bound wins."""
    return min(max(value, lower), upper)
