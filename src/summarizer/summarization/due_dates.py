"""Resolve free-text due-date phrases into concrete datetimes.

Heuristic only. Rules are tried in order and the first match wins:

1. absolute date (ISO 8601 or a common written form)
2. weekday name, pushed a further week when "next" is present
3. "in N day(s)" / "in N week(s)"
4. "tomorrow"
5. "end of week" / "eow" (the next Friday strictly after today)
6. "end of month" / "eom"

Relative results land at 17:00. Anything else resolves to None.
"""

from __future__ import annotations

import calendar
import re
from datetime import datetime, timedelta, tzinfo

import structlog

logger = structlog.get_logger(__name__)

_WEEKDAYS = ("monday", "tuesday", "wednesday", "thursday", "friday", "saturday", "sunday")
_FRIDAY = 4
_END_OF_DAY_HOUR = 17
_IN_N_PATTERN = re.compile(r"in\s+(\d+)\s+(day|week)s?")
_END_OF_WEEK_PATTERN = re.compile(r"\bend of (?:the )?week\b|\beow\b")
_END_OF_MONTH_PATTERN = re.compile(r"\bend of (?:the )?month\b|\beom\b")

_WRITTEN_FORMATS = (
    "%B %d, %Y",
    "%B %d %Y",
    "%b %d, %Y",
    "%b %d %Y",
    "%d %B %Y",
    "%d %b %Y",
    "%m/%d/%Y",
    "%Y/%m/%d",
)


def _at_end_of_day(moment: datetime) -> datetime:
    return moment.replace(hour=_END_OF_DAY_HOUR, minute=0, second=0, microsecond=0)


def _parse_absolute(phrase: str, now: datetime) -> datetime | None:
    parsed: datetime | None = None
    try:
        parsed = datetime.fromisoformat(phrase)
    except ValueError:
        for fmt in _WRITTEN_FORMATS:
            try:
                parsed = datetime.strptime(phrase, fmt)
                break
            except ValueError:
                continue

    if parsed is not None and parsed.tzinfo is None and now.tzinfo is not None:
        parsed = parsed.replace(tzinfo=now.tzinfo)
    return parsed


def parse_due_date(
    phrase: str | None,
    now: datetime | None = None,
    tz: tzinfo | None = None,
) -> datetime | None:
    """Resolve ``phrase`` relative to ``now``.

    ``now`` defaults to the current time in ``tz``, or in the local fixed
    offset when no zone is given. Relative arithmetic is wall-clock in
    ``now``'s tzinfo, so with a ZoneInfo a result across a DST change
    still lands at 17:00 local time.

    Returns:
        The resolved datetime, or None when no rule matches.
    """
    if not phrase or not phrase.strip():
        return None

    if now is None:
        now = datetime.now(tz) if tz is not None else datetime.now().astimezone()
    text = phrase.strip()

    absolute = _parse_absolute(text, now)
    if absolute is not None:
        return absolute

    lowered = text.lower()

    for index, day_name in enumerate(_WEEKDAYS):
        if day_name in lowered:
            days_until = index - now.weekday()
            if days_until <= 0:
                days_until += 7
            if "next" in lowered:
                days_until += 7
            return _at_end_of_day(now + timedelta(days=days_until))

    match = _IN_N_PATTERN.search(lowered)
    if match:
        amount = int(match.group(1))
        days = amount * 7 if match.group(2) == "week" else amount
        return _at_end_of_day(now + timedelta(days=days))

    if "tomorrow" in lowered:
        return _at_end_of_day(now + timedelta(days=1))

    if _END_OF_WEEK_PATTERN.search(lowered):
        days_until_friday = (_FRIDAY - now.weekday()) % 7 or 7
        return _at_end_of_day(now + timedelta(days=days_until_friday))

    if _END_OF_MONTH_PATTERN.search(lowered):
        last_day = calendar.monthrange(now.year, now.month)[1]
        return _at_end_of_day(now.replace(day=last_day))

    logger.debug("due_date_unresolved", phrase=phrase)
    return None
