import json
from datetime import datetime
from zoneinfo import ZoneInfo

from saganevents.config import CALENDAR_URI_ENV
from saganevents.events_calendar import InvalidCalendarError
from saganevents.main import main
from saganevents.models import Event

LA = ZoneInfo("America/Los_Angeles")


class StubService:
    periods = []

    def __init__(self, config, session=None, parser=None):
        self.config = config

    def find_events(self, period):
        StubService.periods.append(period)
        return [
            Event(
                summary="Spring IO conference",
                start=datetime(2020, 5, 14, 0, 0, tzinfo=LA),
                end=datetime(2020, 5, 15, 9, 0, tzinfo=LA),
                location="Barcelona, Spain",
                link="https://springio.net",
            )
        ]


class FailingService(StubService):
    def find_events(self, period):
        raise InvalidCalendarError("calendar data not available")


def _prepare(monkeypatch, tmp_path, service):
    monkeypatch.setattr("saganevents.main.load_dotenv", lambda *_args, **_kwargs: None)
    monkeypatch.setattr("saganevents.main.EventsCalendarService", service)
    monkeypatch.setenv(CALENDAR_URI_ENV, "http://example.org/ical")
    StubService.periods = []
    return str(tmp_path / "config.yaml")


def test_main_prints_json_payload(monkeypatch, tmp_path, capsys):
    config_path = _prepare(monkeypatch, tmp_path, StubService)

    status = main(["--config", config_path, "--start", "2020-05-01", "--days", "30", "--json"])

    assert status == 0
    payload = json.loads(capsys.readouterr().out)
    assert payload == [{
        "summary": "Spring IO conference",
        "start": "2020-05-14T00:00:00-07:00",
        "end": "2020-05-15T09:00:00-07:00",
        "location": "Barcelona, Spain",
        "link": "https://springio.net",
    }]
    assert StubService.periods[0].start.isoformat() == "2020-05-01"
    assert StubService.periods[0].days == 30


def test_main_prints_one_line_per_event(monkeypatch, tmp_path, capsys):
    config_path = _prepare(monkeypatch, tmp_path, StubService)

    assert main(["--config", config_path, "--start", "2020-05-01"]) == 0

    out = capsys.readouterr().out.splitlines()
    assert out[0] == "1 events from 2020-05-01 for 30 days"
    assert "Spring IO conference @ Barcelona, Spain <https://springio.net>" in out[1]


def test_main_reports_calendar_errors(monkeypatch, tmp_path, capsys):
    config_path = _prepare(monkeypatch, tmp_path, FailingService)

    status = main(["--config", config_path, "--start", "2020-05-01"])

    assert status == 1
    assert "error: calendar data not available" in capsys.readouterr().err


def test_main_reports_missing_calendar_uri(monkeypatch, tmp_path, capsys):
    monkeypatch.setattr("saganevents.main.load_dotenv", lambda *_args, **_kwargs: None)
    monkeypatch.delenv(CALENDAR_URI_ENV, raising=False)

    status = main(["--config", str(tmp_path / "config.yaml"), "--start", "2020-05-01"])

    assert status == 1
    assert "No calendar URI configured, see 'sagan.site.events.calendar-uri'" in capsys.readouterr().err


def test_main_reports_unknown_timezone(monkeypatch, tmp_path, capsys):
    config_path = _prepare(monkeypatch, tmp_path, StubService)
    (tmp_path / "config.yaml").write_text(
        "sagan: {site: {events: {timezone: Mars/Olympus_Mons}}}\n", encoding="utf-8"
    )

    status = main(["--config", config_path, "--start", "2020-05-01"])

    assert status == 1
    assert "error: Unknown timezone 'Mars/Olympus_Mons'" in capsys.readouterr().err
