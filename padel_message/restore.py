"""Put lost decoration back into a game message before editing it.

Messages copied or forwarded by hand lose their bold labels and links. This
pass re-adds them line by line and leaves already-decorated spans alone, so
``restore(restore(text)) == restore(text)``.
"""

from __future__ import annotations

import logging
from datetime import datetime

from padel_message import Schedule, Venue
from padel_message.calendar_gen import build_links
from padel_message.config import DEFAULT_CONFIG, EngineConfig
from padel_message.formatter import format_calendar_line, format_venue
from padel_message.parser import (
    HEADER_EMOJI,
    find_schedule,
    is_cancel_banner,
    is_waitlist_heading,
    parse_calendar_line,
    parse_header,
    parse_labeled_line,
    parse_roster_heading,
    parse_venue_line,
    plain_text,
)

logger = logging.getLogger(__name__)


def _bold_label(line: str, label: str) -> str:
    if f"<b>{label}" in line or f"{label}</b>" in line:
        return line
    return line.replace(label, f"<b>{label}</b>", 1)


def _link_venue(line: str, label: str, config: EngineConfig) -> str:
    """Wrap a bare club name in its maps link if the club is known."""
    head, sep, value = line.partition(f"{label}</b>")
    if not sep or "<a" in value:
        return line
    name = value.strip()
    url = config.clubs.get(name)
    if not url:
        return line
    return f"{head}{sep} {format_venue(name, url)}"


def _restore_line(
    line: str, schedule: Schedule | None, venue_name: str, config: EngineConfig
) -> str:
    labels = config.labels

    title = parse_header(line)
    if title is not None:
        if "<" in line:
            return line
        prefix = line.split(HEADER_EMOJI, 1)[0]
        return f"{prefix}{HEADER_EMOJI} <b>{title}</b>"

    for label in (labels.venue, labels.price, labels.courts):
        parsed = parse_labeled_line(line, label)
        if parsed is None:
            continue
        line = _bold_label(line, label)
        if label == labels.venue:
            line = _link_venue(line, label, config)
        return line

    heading = parse_roster_heading(line, config)
    if heading is not None:
        _, bold = heading
        return line if bold else f"<b>{plain_text(line)}</b>"

    if is_waitlist_heading(line, config):
        return line if "<b>" in line else f"⏳ <b>{labels.waitlist_heading}</b>"

    if parse_calendar_line(line, config) == "" and schedule is not None:
        return format_calendar_line(build_links(schedule, venue_name)["google"], config)

    if is_cancel_banner(line, config) and "<b>" not in line:
        return f"❗️<b>{labels.cancel_marker}</b>❗️"

    return line


def _find_venue(lines: list[str], config: EngineConfig) -> Venue | None:
    for line in lines:
        parsed = parse_venue_line(line, config)
        if parsed is not None:
            return parsed[0]
    return None


def restore(text: str, config: EngineConfig | None = None, now: datetime | None = None) -> str:
    """Re-add bold labels, the venue link and the calendar link where missing."""
    config = config or DEFAULT_CONFIG
    if not text:
        return text or ""
    try:
        lines = text.split("\n")
        schedule = find_schedule(text, config, now)
        venue = _find_venue(lines, config)
        venue_name = venue.name if venue else config.placeholder_venue
        return "\n".join(_restore_line(line, schedule, venue_name, config) for line in lines)
    except Exception:
        logger.exception("Failed to restore message formatting")
        return text
