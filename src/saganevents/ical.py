from __future__ import annotations
from dataclasses import dataclass, field, replace
from datetime import date, datetime, time, timedelta, timezone, tzinfo
import logging
from typing import Any, Dict, FrozenSet, Iterator, List, Optional, Set, Tuple, Union
from zoneinfo import ZoneInfo, ZoneInfoNotFoundError

import vobject
from vobject.base import VObjectError

logger = logging.getLogger(__name__)


class CalendarParseError(Exception):
    """Raised when a document is not usable iCalendar data."""


@dataclass(frozen=True)
class CalendarEntry:
    """One VEVENT with its times resolved to aware datetimes."""

    summary: str
    start: datetime
    end: datetime
    location: Optional[str] = None
    link: Optional[str] = None
    uid: Optional[str] = None
    recurrence_id: Optional[datetime] = None
    recurrence: Any = field(default=None, compare=False, repr=False)   # dateutil rruleset
    overridden: FrozenSet[datetime] = frozenset()

    def occurrences(self, window_start: datetime, window_end: datetime) -> Iterator[Tuple[datetime, datetime]]:
        """Yield (start, end) pairs, stopping at the first recurrence past ``window_end``."""
        if self.recurrence is None:
            yield self.start, self.end
            return

        duration = self.end - self.start
        for value in self.recurrence:
            if isinstance(value, datetime):
                start = value.replace(tzinfo=self.start.tzinfo)
            else:
                start = datetime.combine(value, time.min, tzinfo=self.start.tzinfo)
            if start >= window_end:
                break
            if start in self.overridden:
                continue
            end = start + duration
            if end < window_start:
                continue
            yield start, end


def _line(vevent, name: str):
    lines = vevent.contents.get(name)
    return lines[0] if lines else None


def _text(vevent, name: str) -> Optional[str]:
    line = _line(vevent, name)
    if line is None or line.value is None:
        return None
    value = str(line.value).strip()
    return value or None


def _tzid(line) -> Optional[str]:
    # vobject moves TZID aside once the value is converted to a datetime
    for key in ("TZID", "X-VOBJ-ORIGINAL-TZID"):
        value = line.params.get(key)
        while isinstance(value, (list, tuple)):
            value = value[0] if value else None
        if value:
            return str(value)
    return None


def _zone(tzid: Optional[str]) -> Optional[tzinfo]:
    if not tzid:
        return None
    try:
        return ZoneInfo(tzid)
    except (ZoneInfoNotFoundError, ValueError):
        logger.debug("Unknown TZID %r; keeping parser timezone", tzid)
        return None


def _localize(value: Union[date, datetime], zone: Optional[tzinfo], default_tz: tzinfo) -> datetime:
    if isinstance(value, datetime):
        if zone is not None:
            return value.replace(tzinfo=zone)
        if value.tzinfo is None:
            return value.replace(tzinfo=default_tz)
        return value
    if isinstance(value, date):
        # all-day values start at local midnight
        return datetime.combine(value, time.min, tzinfo=default_tz)
    raise ValueError(f"not a date or date-time: {value!r}")


def _datetime_of(line, default_tz: tzinfo) -> datetime:
    return _localize(line.value, _zone(_tzid(line)), default_tz)


def _to_entry(vevent, default_tz: tzinfo) -> Optional[CalendarEntry]:
    summary = _text(vevent, "summary")
    start_line = _line(vevent, "dtstart")
    if summary is None or start_line is None:
        logger.debug("Skipping VEVENT without SUMMARY or DTSTART (uid=%s)", _text(vevent, "uid"))
        return None

    all_day = not isinstance(start_line.value, datetime)
    start = _datetime_of(start_line, default_tz)

    end_line = _line(vevent, "dtend")
    duration_line = _line(vevent, "duration")
    if end_line is not None:
        end = _datetime_of(end_line, default_tz)
    elif duration_line is not None:
        end = start + duration_line.value
    elif all_day:
        end = start + timedelta(days=1)
    else:
        end = start

    recurrence = None
    if "rrule" in vevent.contents or "rdate" in vevent.contents:
        recurrence = vevent.getrruleset(addRDate=True)

    recurrence_id_line = _line(vevent, "recurrence-id")
    recurrence_id = _datetime_of(recurrence_id_line, default_tz) if recurrence_id_line is not None else None

    return CalendarEntry(
        summary=summary,
        start=start,
        end=end,
        location=_text(vevent, "location"),
        link=_text(vevent, "url"),
        uid=_text(vevent, "uid"),
        recurrence_id=recurrence_id,
        recurrence=recurrence,
    )


def parse_entries(data: Union[bytes, str], default_tz: tzinfo = timezone.utc) -> List[CalendarEntry]:
    """Parse an iCalendar document into its events, in document order.

    Raises CalendarParseError when the document is not a VCALENDAR or any
    VEVENT carries values vobject cannot convert.
    """
    text = data.decode("utf-8-sig", errors="replace") if isinstance(data, bytes) else data

    try:
        calendar = vobject.readOne(text)
    except (VObjectError, ValueError, StopIteration) as e:
        raise CalendarParseError("could not parse iCal data") from e

    if (getattr(calendar, "name", None) or "").upper() != "VCALENDAR":
        raise CalendarParseError("could not parse iCal data")

    entries: List[CalendarEntry] = []
    for vevent in calendar.contents.get("vevent", []):
        try:
            entry = _to_entry(vevent, default_tz)
        except (VObjectError, ValueError, TypeError) as e:
            raise CalendarParseError("could not parse iCal data") from e
        if entry is not None:
            entries.append(entry)

    overrides: Dict[str, Set[datetime]] = {}
    for entry in entries:
        if entry.uid and entry.recurrence_id is not None:
            overrides.setdefault(entry.uid, set()).add(entry.recurrence_id)

    if overrides:
        entries = [
            replace(e, overridden=frozenset(overrides[e.uid]))
            if e.recurrence is not None and e.uid in overrides
            else e
            for e in entries
        ]
    return entries
