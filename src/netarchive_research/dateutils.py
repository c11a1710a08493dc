"""Date handling for the CSV inputs and the CDX (Wayback) date format.

All functions are pure and build their formatters per call, so they are safe to
use from worker threads.
"""

from __future__ import annotations

import logging
from datetime import datetime, timedelta, timezone
from typing import TYPE_CHECKING, Optional

if TYPE_CHECKING:
    from .cdx.entry import CDXEntry

logger = logging.getLogger(__name__)

_EPOCH = datetime(1970, 1, 1, tzinfo=timezone.utc)

# 2012-04-02T23:52:39Z
CSV_DATE_FORMAT = "%Y-%m-%dT%H:%M:%SZ"

# CDX date format as specified in the CDX documentation (yyyyMMddHHmmss).
CDX_DATE_FORMAT = "%Y%m%d%H%M%S"

# Tried after ISO-8601 when the CSV date is not in CSV_DATE_FORMAT.
FALLBACK_DATE_FORMATS = (
    "%b %d, %Y",
    "%d-%m-%Y",
    "%d/%m/%Y",
    "%d.%m.%Y",
    "%x",
)


def _as_utc(dt: datetime) -> datetime:
    if dt.tzinfo is None:
        return dt.replace(tzinfo=timezone.utc)
    return dt.astimezone(timezone.utc)


def datetime_to_millis(dt: datetime) -> int:
    return (_as_utc(dt) - _EPOCH) // timedelta(milliseconds=1)


def millis_to_datetime(ms: int) -> datetime:
    return _EPOCH + timedelta(milliseconds=int(ms))


def date_to_cdx_date(ms: int) -> str:
    """Epoch milliseconds to the 14 digit CDX date string (UTC)."""

    return millis_to_datetime(ms).strftime(CDX_DATE_FORMAT)


def cdx_date_to_millis(value: str) -> int:
    """Parse a 14 digit CDX date string (UTC) into epoch milliseconds.

    Raises ValueError for anything but exactly 14 digits forming a valid date.
    """

    s = (value or "").strip()
    if len(s) != 14 or not s.isdigit():
        raise ValueError(f"not a CDX date: {value!r}")
    dt = datetime.strptime(s, CDX_DATE_FORMAT).replace(tzinfo=timezone.utc)
    return datetime_to_millis(dt)


def _parse_iso(s: str) -> Optional[datetime]:
    iso = s[:-1] + "+00:00" if s.endswith("Z") else s
    try:
        return datetime.fromisoformat(iso)
    except ValueError:
        return None


def parse_csv_date(value: Optional[str]) -> Optional[datetime]:
    """Best-effort parse of a date from one of the input CSV files.

    The expected format is CSV_DATE_FORMAT (UTC). Otherwise ISO-8601 and the
    FALLBACK_DATE_FORMATS are tried. Returns None for blank input or when no
    format matches; the latter is logged, not raised.
    """

    s = (value or "").strip()
    if not s:
        return None

    try:
        return datetime.strptime(s, CSV_DATE_FORMAT).replace(tzinfo=timezone.utc)
    except ValueError:
        logger.debug("Could not parse the date %r with dateformat %r", s, CSV_DATE_FORMAT)

    dt = _parse_iso(s)
    if dt is not None:
        return _as_utc(dt)

    for fmt in FALLBACK_DATE_FORMATS:
        try:
            return datetime.strptime(s, fmt).replace(tzinfo=timezone.utc)
        except ValueError:
            continue

    logger.warning("Could not parse the date %r with any known dateformat; treating it as absent", s)
    return None


def check_date_interval(entry: "CDXEntry", earliest: Optional[datetime], latest: Optional[datetime]) -> bool:
    """Whether the capture date of the entry lies within [earliest, latest].

    Both bounds are inclusive; a missing bound does not constrain that side.
    """

    if earliest is not None and entry.date < datetime_to_millis(earliest):
        return False
    if latest is not None and entry.date > datetime_to_millis(latest):
        return False
    return True
