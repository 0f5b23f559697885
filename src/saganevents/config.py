from __future__ import annotations
from dataclasses import dataclass
from pathlib import Path
from typing import Any, Dict, Optional
from zoneinfo import ZoneInfo, ZoneInfoNotFoundError
import os
import yaml

CALENDAR_URI_KEY = "sagan.site.events.calendar-uri"
CALENDAR_URI_ENV = "SAGAN_SITE_EVENTS_CALENDAR_URI"
TIMEZONE_KEY = "sagan.site.events.timezone"


class ConfigurationError(ValueError):
    """Raised when a required setting is missing, blank or invalid."""


@dataclass(frozen=True)
class EventsConfig:
    calendar_uri: str = ""
    timezone: str = "UTC"
    request_timeout_seconds: Optional[float] = None
    user_agent: str = "sagan-events/1.0"

    def require_calendar_uri(self) -> str:
        uri = (self.calendar_uri or "").strip()
        if not uri:
            raise ConfigurationError(f"No calendar URI configured, see '{CALENDAR_URI_KEY}'")
        return uri


@dataclass(frozen=True)
class SiteConfig:
    events: EventsConfig


def _timezone_name(value: Any) -> str:
    name = "UTC" if value is None else str(value).strip()
    try:
        ZoneInfo(name)
    except (ZoneInfoNotFoundError, ValueError) as e:
        raise ConfigurationError(f"Unknown timezone '{name}', see '{TIMEZONE_KEY}'") from e
    return name


def load_config(path: Optional[str] = None) -> SiteConfig:
    data: Dict[str, Any] = {}
    if path:
        p = Path(path)
        if p.exists():
            data = yaml.safe_load(p.read_text(encoding="utf-8")) or {}

    sagan = data.get("sagan") or {}
    site = sagan.get("site") or {}
    events = site.get("events") or {}

    timeout = events.get("request-timeout-seconds")
    calendar_uri = os.environ.get(CALENDAR_URI_ENV) or events.get("calendar-uri") or ""

    return SiteConfig(
        events=EventsConfig(
            calendar_uri=str(calendar_uri).strip(),
            timezone=_timezone_name(events.get("timezone")),
            request_timeout_seconds=float(timeout) if timeout is not None else None,
            user_agent=str(events.get("user-agent", "sagan-events/1.0")),
        ),
    )
