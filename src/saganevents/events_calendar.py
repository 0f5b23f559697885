from __future__ import annotations
import logging
from typing import Callable, List, Optional, Sequence
from zoneinfo import ZoneInfo

import requests

from .config import EventsConfig
from .ical import CalendarEntry, CalendarParseError, parse_entries
from .models import Event, Period

logger = logging.getLogger(__name__)

TEXT_CALENDAR = "text/calendar"

Parser = Callable[..., Sequence[CalendarEntry]]


class InvalidCalendarError(Exception):
    """Raised when calendar data cannot be fetched or parsed."""


class EventsCalendarService:
    """Looks up site events from a remote iCalendar document.

    Every call fetches the document again; nothing is cached between calls.
    """

    def __init__(
        self,
        config: EventsConfig,
        session: Optional[requests.Session] = None,
        parser: Parser = parse_entries,
    ) -> None:
        self.config = config
        self.tz = ZoneInfo(config.timezone)
        self._parser = parser
        if session is None:
            session = requests.Session()
            session.headers.update({"User-Agent": config.user_agent})
        self._session = session

    def find_events(self, period: Period) -> List[Event]:
        uri = self.config.require_calendar_uri()
        body = self._fetch(uri)

        try:
            entries = self._parser(body, self.tz)
        except CalendarParseError as e:
            raise InvalidCalendarError("could not parse iCal data") from e

        window_start, window_end = period.bounds(self.tz)
        try:
            events = self._to_events(entries, window_start, window_end)
        except (TypeError, ValueError) as e:
            # mixed floating and zoned recurrence dates only fail once expanded
            raise InvalidCalendarError("could not parse iCal data") from e

        logger.info(
            "Found %d events in %d calendar entries for %s +%d days",
            len(events), len(entries), period.start.isoformat(), period.days,
        )
        return events

    def _to_events(self, entries: Sequence[CalendarEntry], window_start, window_end) -> List[Event]:
        events: List[Event] = []
        for entry in entries:
            for start, end in entry.occurrences(window_start, window_end):
                event = Event(
                    summary=entry.summary,
                    start=start,
                    end=end,
                    location=entry.location,
                    link=entry.link,
                )
                if event.overlaps(window_start, window_end):
                    events.append(event)
        return events

    def _fetch(self, uri: str) -> bytes:
        logger.debug("Fetching calendar from %s", uri)
        try:
            resp = self._session.get(
                uri,
                headers={"Accept": TEXT_CALENDAR},
                timeout=self.config.request_timeout_seconds,
            )
        except requests.RequestException as e:
            raise InvalidCalendarError("calendar data not available") from e

        if not 200 <= resp.status_code < 300:
            logger.debug("Calendar request to %s returned HTTP %s", uri, resp.status_code)
            raise InvalidCalendarError("calendar data not available")
        return resp.content
