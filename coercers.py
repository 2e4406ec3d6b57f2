"""Scalar coercion helpers for raw spreadsheet cells.

Every function here is total: bad input degrades to 0 or None, never an exception.
"""
import re
from datetime import datetime

from dateutil import parser as date_parser

# 1.234,56 -> periods are thousands separators, comma is the decimal point
_EURO_GROUPED = re.compile(r'\d+\.\d{3,},\d+')
# 1.234 -> period is a thousands separator
_DOT_GROUPED = re.compile(r'^\d+\.\d{3,}$')
# Leading numeric prefix, same tolerance as a browser's parseFloat ("12 kg" -> 12)
_FLOAT_PREFIX = re.compile(r'^[+-]?(?:\d+\.?\d*|\.\d+)(?:[eE][+-]?\d+)?')
_NOT_MONEY_CHAR = re.compile(r'[^\d.,-]')

_ISO_DATE = re.compile(r'^\d{4}-\d{2}-\d{2}')
_DAY_MONTH_YEAR = re.compile(r'^(\d{1,2})[/\-](\d{1,2})[/\-](\d{2,4})$')
_FREE_FORM_DEFAULT = datetime(2001, 1, 1)


def _parse_float(text):
    match = _FLOAT_PREFIX.match(text.strip())
    if not match:
        return 0.0
    try:
        return float(match.group(0))
    except ValueError:
        return 0.0


def to_num(value):
    """General quantity coercion with the comma/period locale heuristic.

    Numbers pass through unchanged; None and empty strings give 0.
    """
    if value is None:
        return 0.0
    if isinstance(value, (int, float)) and not isinstance(value, bool):
        return value

    s = str(value).strip()
    if _EURO_GROUPED.search(s):
        s = s.replace('.', '').replace(',', '.', 1)
    elif ',' in s and '.' not in s:
        s = s.replace(',', '.', 1)
    elif _DOT_GROUPED.match(s):
        s = s.replace('.', '')
    return _parse_float(s)


def parse_money(value):
    """Looser coercion used for line item amounts.

    Strips anything that is not a digit, period, comma or minus sign, then reads the
    first comma as the decimal point. Kept separate from to_num on purpose: the two
    disagree on inputs like "1.234,50" and the ledger totals depend on this one.
    """
    raw = _NOT_MONEY_CHAR.sub('', str(value or '0'))
    return _parse_float(raw.replace(',', '.', 1))


def parse_date_any(value):
    """Parse an ISO, day/month/year or free-form date. Returns None when nothing fits.

    Free-form text fills missing parts from 2001-01-01, not today, so a stray "1"
    or "Mon" never lands inside a current date range.
    """
    if not value:
        return None
    t = str(value).strip()
    if not t:
        return None

    if _ISO_DATE.match(t):
        try:
            return _naive(date_parser.isoparse(t))
        except (ValueError, OverflowError):
            pass

    m = _DAY_MONTH_YEAR.match(t)
    if m:
        day, month, year = int(m.group(1)), int(m.group(2)), int(m.group(3))
        if year < 100:
            year += 2000
        try:
            return datetime(year, month, day)
        except ValueError:
            pass

    try:
        return _naive(date_parser.parse(t, default=_FREE_FORM_DEFAULT))
    except (ValueError, OverflowError):
        return None


def _naive(dt):
    # Bounds in the filter are naive calendar dates
    return dt.replace(tzinfo=None) if dt.tzinfo else dt
