from __future__ import annotations

import json
import logging
import sys
from datetime import date, datetime
from typing import List, Optional
from zoneinfo import ZoneInfo

from dotenv import load_dotenv

from .config import ConfigurationError, load_config
from .events_calendar import EventsCalendarService, InvalidCalendarError
from .models import Event, Period

CONFIG_PATH_DEFAULT = "config.yaml"
DAYS_DEFAULT = 30


def _format_event(e: Event) -> str:
    line = f"{e.start.strftime('%Y-%m-%d %H:%M')} - {e.end.strftime('%Y-%m-%d %H:%M %Z')}  {e.summary}"
    if e.location:
        line += f" @ {e.location}"
    if e.link:
        line += f" <{e.link}>"
    return line


def run_once(
    config_path: str = CONFIG_PATH_DEFAULT,
    start: Optional[date] = None,
    days: int = DAYS_DEFAULT,
    as_json: bool = False,
) -> List[Event]:
    load_dotenv()
    cfg = load_config(config_path)

    if start is None:
        start = datetime.now(tz=ZoneInfo(cfg.events.timezone)).date()

    service = EventsCalendarService(cfg.events)
    events = service.find_events(Period.of(start, days))

    if as_json:
        print(json.dumps([e.to_dict() for e in events], indent=2, ensure_ascii=False))
    else:
        print(f"{len(events)} events from {start.isoformat()} for {days} days")
        for e in events:
            print(_format_event(e))
    return events


def main(argv: Optional[List[str]] = None) -> int:
    import argparse

    ap = argparse.ArgumentParser(description="List events from the site's iCalendar feed")
    ap.add_argument("--config", default=CONFIG_PATH_DEFAULT)
    ap.add_argument("--start", type=date.fromisoformat, default=None, help="first day, YYYY-MM-DD")
    ap.add_argument("--days", type=int, default=DAYS_DEFAULT)
    ap.add_argument("--json", action="store_true")
    ap.add_argument("--verbose", action="store_true")
    args = ap.parse_args(argv)

    if args.verbose:
        logging.basicConfig(level=logging.DEBUG)

    try:
        run_once(config_path=args.config, start=args.start, days=args.days, as_json=args.json)
    except (ConfigurationError, InvalidCalendarError, ValueError) as e:
        print(f"error: {e}", file=sys.stderr)
        return 1
    return 0


if __name__ == "__main__":
    sys.exit(main())
