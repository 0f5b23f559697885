from __future__ import annotations
from dataclasses import dataclass
from datetime import date, datetime, time, timedelta, tzinfo
from typing import Any, Dict, Optional, Tuple, Union

@dataclass(frozen=True)
class Period:
    """A window of whole days starting at ``start``, ``days`` long."""

    start: date
    days: int

    def __post_init__(self) -> None:
        if isinstance(self.start, datetime) or not isinstance(self.start, date):
            raise ValueError(f"period start must be a date, got {self.start!r}")
        if isinstance(self.days, bool) or not isinstance(self.days, int) or self.days < 0:
            raise ValueError(f"period days must be a non-negative integer, got {self.days!r}")

    @classmethod
    def of(cls, start: Union[str, date], days: int) -> "Period":
        if isinstance(start, str):
            start = date.fromisoformat(start)
        return cls(start=start, days=days)

    @property
    def end(self) -> date:
        return self.start + timedelta(days=self.days)

    def bounds(self, tz: tzinfo) -> Tuple[datetime, datetime]:
        return (
            datetime.combine(self.start, time.min, tzinfo=tz),
            datetime.combine(self.end, time.min, tzinfo=tz),
        )

@dataclass(frozen=True)
class Event:
    summary: str
    start: datetime             # timezone-aware
    end: datetime               # timezone-aware
    location: Optional[str] = None
    link: Optional[str] = None

    def overlaps(self, window_start: datetime, window_end: datetime) -> bool:
        if self.end <= self.start:
            return window_start <= self.start < window_end
        return self.start < window_end and self.end > window_start

    def to_dict(self) -> Dict[str, Any]:
        return {
            "summary": self.summary,
            "start": self.start.isoformat(),
            "end": self.end.isoformat(),
            "location": self.location,
            "link": self.link,
        }
