"""Date parsing against an ordered table of known layouts.

Layouts are ``strptime`` formats handed to :func:`dateparser.parse` as
``date_formats`` with only the custom-formats parser enabled, so the first
layout that matches the whole string wins and later layouts are not
consulted.  Free-form and relative dates ("yesterday") are not accepted.

Before matching, the value is normalised:

* the zone (``Z``, ``+02:00``, ``-0700``, ``GMT``, ``PST`` ...) is popped with
  dateparser's own timezone table and reapplied to the result, because the
  custom-formats parser discards ``%z``;
* an ISO 8601 ``T`` between date and time becomes a space;
* dateparser lowercases the value and spells month and weekday names out in
  full, so layouts use ``%B`` and ``%A`` (``Jan`` and ``January`` both match
  ``%B``).

Results are timezone-aware and normalised to UTC (values without a zone are
read as UTC).
"""

from __future__ import annotations

import logging
import re
from datetime import UTC, datetime

import dateparser
from dateparser.timezone_parser import pop_tz_offset_from_string

logger = logging.getLogger(__name__)

# ---------------------------------------------------------------------------
# Layout table (order matters: first match wins)
# ---------------------------------------------------------------------------

DATE_LAYOUTS: tuple[str, ...] = (
    "%d %B %y %H:%M",  # RFC 822 (RSS)
    "%Y-%m-%d %H:%M:%S.%f",  # RFC 3339 (Atom)
    "%Y-%m-%d %H:%M:%S",
    "%Y-%m-%d %H:%M",
    "%A %B %d %H:%M:%S %Y",  # ANSI C, Unix date
    "%A, %d-%B-%y %H:%M:%S",  # RFC 850
    "%A, %d %B %Y %H:%M:%S",  # RFC 1123
    "%A, %d %B %Y %I:%M:%S %p",
    "%A, %d %B %Y %H:%M",
    "%A, %d %B %Y",
    "%A, %d %B %y %H:%M:%S",
    "%A, %B %d, %Y %H:%M:%S",
    "%A, %B %d, %Y %I:%M %p",
    "%A, %B %d, %Y %H:%M",
    "%A, %B %d, %Y",
    "%A, %B %d %Y %H:%M:%S",
    "%A, %B %d %Y %H:%M",
    "%A, %Y-%m-%d %H:%M",
    "%A %B %d, %Y %I:%M %p",
    "%A %B %d %Y %H:%M:%S",
    "%A %d %B %Y %H:%M:%S",
    "%B %d, %Y %I:%M:%S %p",
    "%B %d, %Y %I:%M %p",
    "%B %d, %Y %H:%M:%S",
    "%B %d, %Y %H:%M",
    "%B %d, %Y",
    "%B %d %Y %I:%M:%S%p",
    "%B %d %Y",
    "%d %B %Y %H:%M:%S",
    "%d %B %Y %H:%M",
    "%d %B %Y",
    "%Y %B %d",
    "%d.%m.%Y %H:%M:%S",
    "%d.%m.%Y %H:%M",
    "%d.%m.%Y",
    "%H:%M %d.%m.%Y",
    "%Y/%m/%d %H:%M:%S",
    "%Y/%m/%d",
    "%Y-%m-%d",
    "%d/%m/%Y %H:%M:%S",
    "%d/%m/%Y - %H:%M",
    "%d/%m/%Y %H:%M",
    "%d/%m/%Y",
    "%d-%m-%Y %H:%M:%S",
    "%d-%m-%Y",
    "%m/%d/%Y %I:%M:%S %p",
    "%m/%d/%Y %I:%M %p",
    "%m/%d/%Y %H:%M:%S",
    "%m/%d/%Y",
    "%m-%d-%Y",
    "%y/%m/%d %H:%M",
    "%y-%m-%d %H:%M",
)

_ISO_SEPARATOR_RE = re.compile(r"(?<=\d)T(?=\d)")

_DATEPARSER_SETTINGS = {
    "PARSERS": ["custom-formats"],
    "TIMEZONE": "UTC",
    "RETURN_AS_TIMEZONE_AWARE": True,
}


def parse_date(value: str | None, layouts: tuple[str, ...] = DATE_LAYOUTS) -> datetime | None:
    """Parse *value* with the first matching layout; None when nothing matches.

    The result is always timezone-aware, in UTC.
    """
    if not value or not value.strip():
        return None
    raw, zone = pop_tz_offset_from_string(value.strip())
    raw = _ISO_SEPARATOR_RE.sub(" ", raw.strip())
    try:
        parsed = dateparser.parse(
            raw,
            date_formats=list(layouts),
            languages=["en"],
            settings=_DATEPARSER_SETTINGS,
        )
    except (ValueError, OverflowError) as exc:
        logger.debug("Date parse failed for %r: %s", value, exc)
        return None
    if parsed is None:
        logger.debug("Failed to parse date %r", value)
        return None
    if zone is not None:
        parsed = parsed.replace(tzinfo=zone)
    return parsed.astimezone(UTC)
