"""
Timestamp Normalization
=======================

Turns the time text LinkedIn shows next to messages into a relative-time
label plus a recency flag.

Three sources are understood:
- an ISO instant in a `datetime` attribute,
- relative text ("5m", "2 hours ago", "yesterday"),
- a bare clock time ("5:05 PM") combined with the date of the nearest
  preceding date separator ("Today", "Oct 15", "OCT 15, 2025").
"""

from __future__ import annotations

import logging
import re
from dataclasses import dataclass
from datetime import date, datetime, time, timedelta
from typing import List, Optional

from assist_core.dom import DocumentNode, HostDocument, node_text, precedes
from assist_core.selectors import SELECTORS, resolve

logger = logging.getLogger(__name__)

MONTH_ABBREVIATIONS = ("jan", "feb", "mar", "apr", "may", "jun", "jul", "aug", "sep", "oct", "nov", "dec")
WEEKDAYS = ("monday", "tuesday", "wednesday", "thursday", "friday", "saturday", "sunday")

CLOCK_RE = re.compile(r"^(\d{1,2}):(\d{2})\s*(am|pm)?$", re.IGNORECASE)
FULL_DATE_RE = re.compile(r"([a-z]+)\s+(\d{1,2}),?\s*(\d{4})", re.IGNORECASE)
SHORT_DATE_RE = re.compile(r"([a-z]+)\s+(\d{1,2})", re.IGNORECASE)

RECENT_MINUTES = 60
RECENT_HOURS = 2

_RELATIVE_PATTERNS = [
    ("years", re.compile(r"(\d+)\s*(?:y|yr|yrs|year|years)\b")),
    ("months", re.compile(r"(\d+)\s*(?:mo|mos|month|months)\b")),
    ("weeks", re.compile(r"(\d+)\s*(?:w|wk|wks|week|weeks)\b")),
    ("minutes", re.compile(r"(\d+)\s*(?:m|min|mins|minute|minutes)\b")),
    ("hours", re.compile(r"(\d+)\s*(?:h|hr|hrs|hour|hours)\b")),
]
_DAYS_RE = re.compile(r"(\d+)\s*(?:d|day|days)\b")


@dataclass(frozen=True)
class TimestampInfo:
    """Normalized timestamp of one message."""

    raw: str
    relative: str
    is_recent: bool


@dataclass(frozen=True)
class DateSeparator:
    """A date heading between runs of messages."""

    node: DocumentNode
    text: str
    date: Optional[date]


def _plural(count: int, unit: str) -> str:
    return f"{count} {unit}{'s' if count != 1 else ''}"


def month_index(token: str) -> int:
    """0-based month for a month name or abbreviation, -1 if not a month."""
    prefix = token.lower()[:3]
    if prefix in MONTH_ABBREVIATIONS:
        return MONTH_ABBREVIATIONS.index(prefix)
    return -1


def _safe_date(year: int, month: int, day: int) -> Optional[date]:
    try:
        return date(year, month, day)
    except ValueError:
        return None


def parse_separator_date(text: str, now: datetime) -> Optional[date]:
    """
    Parse date-separator text into a calendar date.

    Args:
        text: Separator text ("Today", "Yesterday", "Monday", "Oct 15", "OCT 15, 2025")
        now: Current local time

    Returns:
        The calendar date, or None if the text is not a date
    """
    lower = text.lower().strip()
    today = now.date()

    if lower == "today":
        return today
    if lower == "yesterday":
        return today - timedelta(days=1)
    if lower in WEEKDAYS:
        back = (today.weekday() - WEEKDAYS.index(lower)) % 7 or 7
        return today - timedelta(days=back)

    full = FULL_DATE_RE.search(text)
    if full:
        month = month_index(full.group(1))
        if month != -1:
            return _safe_date(int(full.group(3)), month + 1, int(full.group(2)))

    short = SHORT_DATE_RE.search(text)
    if short:
        month = month_index(short.group(1))
        if month != -1:
            day = int(short.group(2))
            candidate = _safe_date(today.year, month + 1, day)
            # A date later than today belongs to last year
            if candidate is None or candidate > today:
                candidate = _safe_date(today.year - 1, month + 1, day)
            return candidate

    return None


def parse_clock(text: str) -> Optional[time]:
    """Parse "5:05 PM" / "17:05" into a time of day."""
    match = CLOCK_RE.match(text.strip())
    if not match:
        return None
    hour, minute = int(match.group(1)), int(match.group(2))
    meridiem = (match.group(3) or "").lower()
    if meridiem == "pm" and hour < 12:
        hour += 12
    elif meridiem == "am" and hour == 12:
        hour = 0
    if hour > 23 or minute > 59:
        return None
    return time(hour, minute)


def relative_from_instant(instant: datetime, now: datetime) -> TimestampInfo:
    """
    Label an absolute instant by elapsed time.

    Buckets: <1 min "just now", <60 min "{n}m ago", <24 h "{n}h ago",
    1 day "yesterday", <30 days "{n}d ago", <60 days "about {n} weeks ago",
    else "{n} months ago (Mon D)". Recent only under 2 hours.
    """
    elapsed = now - instant
    minutes = int(elapsed.total_seconds() // 60)
    hours = minutes // 60
    days = hours // 24

    if minutes < 1:
        return TimestampInfo(instant.isoformat(), "just now", True)
    if minutes < 60:
        return TimestampInfo(instant.isoformat(), f"{minutes}m ago", True)
    if hours < 24:
        return TimestampInfo(instant.isoformat(), f"{hours}h ago", hours < RECENT_HOURS)
    if days == 1:
        return TimestampInfo(instant.isoformat(), "yesterday", False)
    if days < 30:
        return TimestampInfo(instant.isoformat(), f"{days}d ago", False)
    if days < 60:
        return TimestampInfo(instant.isoformat(), f"about {days // 7} weeks ago", False)

    months = days // 30
    stamp = f"{instant:%b} {instant.day}"
    return TimestampInfo(instant.isoformat(), f"{_plural(months, 'month')} ago ({stamp})", False)


def relative_from_date(day: date, now: datetime) -> TimestampInfo:
    """Label a calendar date with no time of day."""
    delta = (now.date() - day).days
    if delta <= 0:
        return TimestampInfo(day.isoformat(), "today", False)
    if delta == 1:
        return TimestampInfo(day.isoformat(), "yesterday", False)
    info = relative_from_instant(datetime.combine(day, time()), now)
    return TimestampInfo(day.isoformat(), info.relative, False)


def parse_relative_text(text: str) -> TimestampInfo:
    """
    Parse relative time text shown by LinkedIn.

    Recent when under 60 minutes or under 2 hours; everything else is not.
    """
    raw = text.strip()
    lower = raw.lower()

    if "just now" in lower or re.search(r"\bnow\b", lower):
        return TimestampInfo(raw, "just now", True)

    for unit, pattern in _RELATIVE_PATTERNS:
        match = pattern.search(lower)
        if not match:
            continue
        count = int(match.group(1))
        if unit == "minutes":
            return TimestampInfo(raw, f"{count}m ago", count < RECENT_MINUTES)
        if unit == "hours":
            return TimestampInfo(raw, f"{count}h ago", count < RECENT_HOURS)
        if unit == "weeks":
            return TimestampInfo(raw, f"{_plural(count, 'week')} ago", False)
        if unit == "months":
            return TimestampInfo(raw, f"{_plural(count, 'month')} ago", False)
        return TimestampInfo(raw, f"{_plural(count, 'year')} ago", False)

    if "today" in lower or CLOCK_RE.match(lower):
        return TimestampInfo(raw, "today", False)
    if "yesterday" in lower:
        return TimestampInfo(raw, "yesterday", False)

    days = _DAYS_RE.search(lower)
    if days:
        return TimestampInfo(raw, f"{int(days.group(1))}d ago", False)

    return TimestampInfo(raw, lower or "unknown", False)


def parse_iso_instant(value: str) -> Optional[datetime]:
    """Parse an ISO-8601 `datetime` attribute into naive local time."""
    text = value.strip()
    if text.endswith("Z"):
        text = text[:-1] + "+00:00"
    try:
        parsed = datetime.fromisoformat(text)
    except ValueError:
        return None
    if parsed.tzinfo is not None:
        parsed = parsed.astimezone().replace(tzinfo=None)
    return parsed


def collect_date_separators(
    document: HostDocument,
    thread: DocumentNode,
    now: datetime,
) -> List[DateSeparator]:
    """Date separators inside the thread, from the first selector that finds any."""
    separators: List[DateSeparator] = []
    for selector in SELECTORS["date_separator"]:
        for node in thread.select(selector):
            text = node_text(node)
            if text:
                separators.append(DateSeparator(node, text, parse_separator_date(text, now)))
        if separators:
            break
    logger.debug(
        "Found %d date separators: %s",
        len(separators),
        [(s.text, s.date.isoformat() if s.date else None) for s in separators],
    )
    return separators


def date_context_for(node: DocumentNode, separators: List[DateSeparator]) -> Optional[date]:
    """Date of the latest separator positioned at or above the node."""
    best: Optional[date] = None
    for separator in separators:
        if separator.date is not None and precedes(separator.node, node):
            best = separator.date
    return best


def extract_timestamp(
    document: HostDocument,
    element: DocumentNode,
    date_context: Optional[date],
    now: datetime,
) -> Optional[TimestampInfo]:
    """
    Resolve the timestamp shown inside an element.

    Args:
        document: Host document
        element: Message group or message item
        date_context: Date inherited from the nearest preceding separator
        now: Current local time

    Returns:
        TimestampInfo, or None when neither a timestamp nor a date context exists
    """
    stamp = resolve(document, "message_timestamp", scope=element)
    if stamp is not None:
        iso = stamp.attr("datetime")
        if iso:
            instant = parse_iso_instant(iso)
            if instant is not None:
                info = relative_from_instant(instant, now)
                return TimestampInfo(iso, info.relative, info.is_recent)

        text = node_text(stamp)
        if text:
            clock = parse_clock(text)
            if clock is not None and date_context is not None:
                return relative_from_instant(datetime.combine(date_context, clock), now)
            return parse_relative_text(text)

    if date_context is not None:
        return relative_from_date(date_context, now)

    return None
