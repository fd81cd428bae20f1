"""Calendar deep links and ICS export for a scheduled game."""

from __future__ import annotations

import re
from datetime import datetime, timedelta, timezone
from urllib.parse import quote

from icalendar import Alarm, Calendar, Event

from padel_message import GameSnapshot, Schedule
from padel_message.config import DEFAULT_CONFIG, EngineConfig

GOOGLE_CALENDAR_URL = "https://calendar.google.com/calendar/render"

# Characters encodeURIComponent leaves unescaped.
_URI_SAFE = "-_.!~*'()"


def _encode(text: str) -> str:
    return quote(text, safe=_URI_SAFE)


def _format_utc(dt: datetime) -> str:
    return dt.astimezone(timezone.utc).strftime("%Y%m%dT%H%M%SZ")


def event_title(venue_name: str) -> str:
    return f"Padel - {venue_name}"


def build_links(schedule: Schedule, venue_name: str) -> dict[str, str]:
    """Build the "add to calendar" links for a game.

    ``schedule.start``/``schedule.end`` carry the club's fixed UTC offset, so
    converting to UTC is a plain subtraction of that offset.
    """
    dates = f"{_format_utc(schedule.start)}/{_format_utc(schedule.end)}"
    google = (
        f"{GOOGLE_CALENDAR_URL}?action=TEMPLATE"
        f"&text={_encode(event_title(venue_name))}"
        f"&dates={dates}"
        f"&location={_encode(venue_name)}"
    )
    return {"google": google}


def resolve_maps_url(venue_name: str, config: EngineConfig = DEFAULT_CONFIG) -> str | None:
    """Look up a club's maps link by exact name."""
    return config.clubs.get(venue_name.strip())


def create_game_calendar(
    snapshot: GameSnapshot, config: EngineConfig = DEFAULT_CONFIG
) -> Calendar:
    """Create an ICS calendar holding the game as a single event."""
    cal = Calendar()
    cal.add("prodid", "-//Padel Games//padel-message//")
    cal.add("version", "2.0")
    cal.add("calscale", "GREGORIAN")
    cal.add("method", "PUBLISH")

    if snapshot.schedule is not None:
        cal.add_component(_create_event(snapshot, snapshot.schedule, config))

    return cal


def _create_event(snapshot: GameSnapshot, schedule: Schedule, config: EngineConfig) -> Event:
    """Create a calendar event from a game snapshot."""
    event = Event()
    venue_name = snapshot.venue.name if snapshot.venue else config.placeholder_venue

    event.add("summary", event_title(venue_name))
    event.add("dtstart", schedule.start.astimezone(timezone.utc))
    event.add("dtend", schedule.end.astimezone(timezone.utc))
    event.add("location", venue_name)

    lines = [schedule.title]
    if snapshot.price_label:
        lines.append(f"{config.labels.price} {snapshot.price_label}")
    lines.append(f"{config.labels.courts} {snapshot.courts}")
    lines.append(f"{len(snapshot.main_roster)}/{snapshot.max_players}")
    if snapshot.note:
        lines.append("")
        lines.append(snapshot.note)
    event.add("description", "\n".join(lines))

    if snapshot.venue and snapshot.venue.maps_url:
        event.add("url", snapshot.venue.maps_url)

    # Stable UID based on start time + venue
    slug = re.sub(r"[^a-z0-9]+", "-", venue_name.lower()).strip("-") or "venue"
    event.add("uid", f"padel-{_format_utc(schedule.start)}-{slug}@padel-message")

    if snapshot.cancelled:
        event.add("status", "CANCELLED")
        event.add("transp", "TRANSPARENT")
    else:
        event.add("status", "CONFIRMED")
        alarm = Alarm()
        alarm.add("action", "DISPLAY")
        alarm.add("description", f"{event_title(venue_name)} starts in 2 hours!")
        alarm.add("trigger", timedelta(hours=-2))
        event.add_component(alarm)

    return event
