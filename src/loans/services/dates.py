"""Calendar date <-> stored timestamp conversion.

Staff type dates into a date picker as ``yyyy-MM-dd`` text. Those dates are
persisted as absolute instants anchored at 12:00 local time, so that reading
them back in any zone within twelve hours of the reference zone lands on the
same calendar day. The anchoring happens once, here, at the parse boundary;
display formatting never shifts days.

The reference zone is Django's current time zone unless ``tz`` is given.
"""

import re
import zoneinfo
from datetime import date, datetime, time
from datetime import timezone as dt_timezone

from django.utils import timezone

from ..exceptions import InvalidDateFormat

CALENDAR_DATE_RE = re.compile(r"^(\d{4})-(\d{2})-(\d{2})$")
NOON = time(12, 0, 0)

# Date-picker style display tokens mapped to strftime directives
_DISPLAY_TOKENS = {
    "yyyy": "%Y",
    "yy": "%y",
    "MM": "%m",
    "dd": "%d",
    "HH": "%H",
    "mm": "%M",
    "ss": "%S",
}
_DISPLAY_TOKEN_RE = re.compile("|".join(_DISPLAY_TOKENS))


def _zone(tz=None):
    if tz is None:
        return timezone.get_current_timezone()
    if isinstance(tz, str):
        return zoneinfo.ZoneInfo(tz)
    return tz


def parse_calendar_date(value) -> date | None:
    """Parse ``yyyy-MM-dd`` text into a date.

    Returns None for empty input. Raises InvalidDateFormat when the text
    does not match the pattern or names a day that does not exist.
    """
    if value is None:
        return None
    if isinstance(value, datetime):
        raise InvalidDateFormat(value)
    if isinstance(value, date):
        return value
    text = str(value).strip()
    if not text:
        return None
    match = CALENDAR_DATE_RE.match(text)
    if not match:
        raise InvalidDateFormat(value)
    year, month, day = (int(part) for part in match.groups())
    try:
        return date(year, month, day)
    except ValueError:
        raise InvalidDateFormat(value) from None


def parse_stored_timestamp(value) -> datetime | None:
    """Return an aware datetime for an ISO timestamp string or datetime.

    Naive values are taken to be UTC, which is how the database stores them.
    """
    if value is None or value == "":
        return None
    if isinstance(value, str):
        try:
            value = datetime.fromisoformat(value.strip())
        except ValueError:
            raise InvalidDateFormat(value) from None
    if not isinstance(value, datetime):
        raise InvalidDateFormat(value)
    if timezone.is_naive(value):
        value = value.replace(tzinfo=dt_timezone.utc)
    return value


def to_stored_timestamp(calendar_date_text, tz=None) -> datetime | None:
    """Convert date-picker text to the instant persisted for it.

    ``"2024-03-15"`` becomes 2024-03-15 12:00 in the reference zone,
    expressed in UTC. Empty input returns None; callers pick any default.
    """
    day = parse_calendar_date(calendar_date_text)
    if day is None:
        return None
    local_noon = timezone.make_aware(datetime.combine(day, NOON), _zone(tz))
    return local_noon.astimezone(dt_timezone.utc)


def to_calendar_date(stored_timestamp, tz=None) -> str:
    """Render a stored instant back to ``yyyy-MM-dd`` in the reference zone."""
    instant = parse_stored_timestamp(stored_timestamp)
    if instant is None:
        return ""
    return timezone.localtime(instant, _zone(tz)).date().isoformat()


def _to_strftime(pattern: str) -> str:
    if "%" in pattern:
        return pattern
    return _DISPLAY_TOKEN_RE.sub(
        lambda m: _DISPLAY_TOKENS[m.group(0)], pattern
    )


def format_for_display(value, pattern: str = "dd/MM/yyyy", tz=None) -> str:
    """Format a stored instant, a date, or date text for display.

    Accepts ``dd/MM/yyyy`` style tokens or a raw strftime pattern. Pure
    formatting: no day offset is applied.
    """
    if value is None or value == "":
        return ""
    if isinstance(value, str) and len(value.strip()) <= 10:
        moment = parse_calendar_date(value)
    elif isinstance(value, date) and not isinstance(value, datetime):
        moment = value
    else:
        moment = timezone.localtime(parse_stored_timestamp(value), _zone(tz))
    return moment.strftime(_to_strftime(pattern))


def as_calendar_date(value, tz=None) -> date | None:
    """Coerce date text, a date, or a stored instant to a calendar date."""
    if value is None or value == "":
        return None
    if isinstance(value, datetime):
        instant = parse_stored_timestamp(value)
        return timezone.localtime(instant, _zone(tz)).date()
    if isinstance(value, str) and len(value.strip()) > 10:
        return date.fromisoformat(to_calendar_date(value, tz))
    return parse_calendar_date(value)


def is_overdue(calendar_date_text, reference_date=None, tz=None) -> bool:
    """True when the date falls strictly before the reference day.

    Both sides are compared as calendar dates; the same day is not overdue.
    An empty date is never overdue. The reference day defaults to today in
    the reference zone.
    """
    due = as_calendar_date(calendar_date_text, tz)
    if due is None:
        return False
    reference = as_calendar_date(reference_date, tz)
    if reference is None:
        reference = timezone.localdate(timezone=_zone(tz))
    return due < reference


def current_calendar_date(tz=None) -> str:
    """Today's date in the reference zone as ``yyyy-MM-dd``."""
    return timezone.localdate(timezone=_zone(tz)).isoformat()
