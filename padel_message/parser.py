"""Read game state back out of a rendered chat message.

The message is scanned line by line. Each kind of line has its own small rule
(header, labelled field, calendar line, section heading, roster entry,
waitlist entry) so a damaged line only loses that one field. Three inputs are
recognised:

- canonical text, as produced by :func:`padel_message.formatter.format_game`;
- legacy text: plain labels and headings, a bare venue name, 🎾-prefixed
  waitlist entries, no calendar line;
- degraded text: no roster heading at all, but numbered or 🎾 entries still
  present. Venue and price fall back to configured placeholders.
"""

from __future__ import annotations

import logging
import math
import re
from dataclasses import dataclass, field
from datetime import datetime, timedelta
from urllib.parse import urlsplit

from bs4 import BeautifulSoup

from padel_message import (
    Dialect,
    GameSnapshot,
    ParsedMessage,
    Participant,
    Schedule,
    Venue,
)
from padel_message.calendar_gen import build_links
from padel_message.config import DEFAULT_CONFIG, EngineConfig, max_players_for

logger = logging.getLogger(__name__)

HEADER_EMOJI = "🎾"

_TAG_RE = re.compile(r"<[^>]+>")
_SCHEDULE_RE = re.compile(
    r"^\s*(?P<day>[^,<>]+?)\s*,\s*"
    r"(?P<date>\d{1,2}\.\d{1,2})\s*,\s*"
    r"(?P<start>\d{1,2}:\d{2})\s*-\s*(?P<end>\d{1,2}:\d{2})\s*$"
)
_ROSTER_LINE_RE = re.compile(r"^\s*(?P<index>\d+)\.\s*(?P<name>.+?)\s*\((?P<level>[^()]+)\)\s*$")
_EMPTY_SLOT_RE = re.compile(r"^\s*\d+\.\s*-\s*$")
_WAITLIST_LINE_RE = re.compile(
    rf"^\s*(?:\d+\.|{HEADER_EMOJI})\s*(?P<name>.+?)\s*\((?P<level>[^()]+)\)\s*$"
)
_EMPTY_WAITLIST = "---"
_BANNER_CHARS = "❗️ "


# --- Text helpers ---


def plain_text(fragment: str) -> str:
    """Visible text of an HTML fragment, whitespace collapsed."""
    if "<" not in fragment and "&" not in fragment:
        return " ".join(fragment.split())
    text = BeautifulSoup(fragment, "html.parser").get_text()
    return " ".join(text.split())


def first_anchor(fragment: str) -> tuple[str, str] | None:
    """Return ``(href, text)`` of the first ``<a href>`` in a fragment."""
    if "<a" not in fragment:
        return None
    anchor = BeautifulSoup(fragment, "html.parser").find("a", href=True)
    if anchor is None:
        return None
    return anchor["href"], anchor.get_text(strip=True)


def normalize_identity(display_name: str) -> str:
    """Key used to decide whether two roster entries are the same person.

    Anchors identify by the last path segment of their href, ``@handles`` by
    the handle, anything else by its lowercased visible text.
    """
    anchor = first_anchor(display_name)
    if anchor is not None:
        parts = urlsplit(anchor[0])
        segment = parts.path.rstrip("/").rsplit("/", 1)[-1] or parts.query or parts.netloc
        if segment:
            return segment.lstrip("@").lower()

    text = plain_text(display_name)
    handle = re.match(r"^@(\S+)", text)
    if handle:
        return handle.group(1).lower()
    return text.lower()


# --- Line rules ---


def parse_header(line: str) -> str | None:
    """Return the game title if ``line`` is the 🎾 header line."""
    text = plain_text(line)
    if not text.startswith(HEADER_EMOJI):
        return None
    title = text[len(HEADER_EMOJI):].strip()
    if not _SCHEDULE_RE.match(title):
        return None
    return title


def parse_schedule(title: str, year: int, config: EngineConfig = DEFAULT_CONFIG) -> Schedule | None:
    """Derive start/end datetimes from a ``"day, dd.mm, hh:mm-hh:mm"`` title.

    Returns None for titles that do not fit the pattern or name an
    impossible date.
    """
    match = _SCHEDULE_RE.match(title)
    if not match:
        return None

    day_num, month_num = (int(p) for p in match.group("date").split("."))
    start_hour, start_min = (int(p) for p in match.group("start").split(":"))
    end_hour, end_min = (int(p) for p in match.group("end").split(":"))
    try:
        start = datetime(year, month_num, day_num, start_hour, start_min, tzinfo=config.tz)
        end = datetime(year, month_num, day_num, end_hour, end_min, tzinfo=config.tz)
    except ValueError:
        logger.debug("Unparsable schedule in title %r", title)
        return None
    if end <= start:
        end += timedelta(days=1)

    return Schedule(
        day_label=match.group("day"),
        date_label=match.group("date"),
        time_range=f"{match.group('start')}-{match.group('end')}",
        start=start,
        end=end,
    )


def parse_labeled_line(line: str, label: str) -> tuple[str, bool] | None:
    """Split a ``<emoji> <b>Label:</b> value`` line.

    Returns ``(raw value, label was bold)``, or None when the label is not at
    the start of the line (emoji and markup aside).
    """
    match = re.search(rf"(<b>\s*)?{re.escape(label)}\s*(</b>)?", line)
    if not match:
        return None
    if re.search(r"\w", _TAG_RE.sub("", line[: match.start()])):
        return None
    bold = bool(match.group(1) and match.group(2))
    return line[match.end():].strip(), bold


def parse_venue_line(line: str, config: EngineConfig = DEFAULT_CONFIG) -> tuple[Venue, bool] | None:
    parsed = parse_labeled_line(line, config.labels.venue)
    if parsed is None:
        return None
    value, bold = parsed

    anchor = first_anchor(value)
    if anchor is not None:
        href, name = anchor
        return Venue(name=name, maps_url=href), bold

    name = plain_text(value)
    return Venue(name=name, maps_url=config.clubs.get(name)), bold


def parse_price_line(line: str, config: EngineConfig = DEFAULT_CONFIG) -> tuple[str, bool] | None:
    return parse_labeled_line(line, config.labels.price)


def parse_courts_line(line: str, config: EngineConfig = DEFAULT_CONFIG) -> tuple[int | None, bool] | None:
    parsed = parse_labeled_line(line, config.labels.courts)
    if parsed is None:
        return None
    value, bold = parsed
    digits = re.search(r"\d+", plain_text(value))
    return (int(digits.group()) if digits else None), bold


def parse_calendar_line(line: str, config: EngineConfig = DEFAULT_CONFIG) -> str | None:
    """Return the calendar href, ``""`` for an unlinked calendar line, or None."""
    if config.labels.calendar not in plain_text(line):
        return None
    anchor = first_anchor(line)
    return anchor[0] if anchor else ""


def is_cancel_banner(line: str, config: EngineConfig = DEFAULT_CONFIG) -> bool:
    return plain_text(line).strip(_BANNER_CHARS) == config.labels.cancel_marker


def parse_roster_heading(line: str, config: EngineConfig = DEFAULT_CONFIG) -> tuple[bool, bool] | None:
    """Return ``(cancelled heading, bold)`` for the roster section heading."""
    text = plain_text(line)
    if text == config.labels.roster_heading:
        cancelled = False
    elif text == config.labels.cancelled_heading:
        cancelled = True
    else:
        return None
    return cancelled, "<b>" in line


def is_waitlist_heading(line: str, config: EngineConfig = DEFAULT_CONFIG) -> bool:
    return plain_text(line).lstrip("⏳️ ") == config.labels.waitlist_heading


def parse_roster_line(line: str) -> Participant | None:
    """``N. name (level)``; empty ``N. -`` slots give None."""
    if _EMPTY_SLOT_RE.match(line):
        return None
    match = _ROSTER_LINE_RE.match(line)
    if not match:
        return None
    return Participant(display_name=match.group("name"), skill_level=match.group("level").strip())


def parse_waitlist_line(line: str) -> Participant | None:
    """``N. name (level)`` or ``🎾 name (level)``."""
    match = _WAITLIST_LINE_RE.match(line)
    if not match:
        return None
    return Participant(display_name=match.group("name"), skill_level=match.group("level").strip())


# --- Message-level parsing ---


@dataclass
class _Head:
    title: str = ""
    schedule: Schedule | None = None
    venue: Venue | None = None
    price: str | None = None
    courts: int | None = None
    calendar_link: str | None = None
    calendar_seen: bool = False
    cancelled: bool = False
    decorated: bool = True
    note_lines: list[str] = field(default_factory=list)

    @property
    def note(self) -> str | None:
        lines = list(self.note_lines)
        while lines and not lines[-1].strip():
            lines.pop()
        return "\n".join(lines) if lines else None


def _parse_head(lines: list[str], year: int, config: EngineConfig) -> _Head:
    """Read the block above the roster heading."""
    head = _Head()
    for line in lines:
        if not line.strip():
            if head.note_lines:
                head.note_lines.append("")
            continue

        title = parse_header(line)
        if title is not None and not head.title:
            head.title = title
            head.schedule = parse_schedule(title, year, config)
            head.decorated &= "<b>" in line
            continue

        venue = parse_venue_line(line, config)
        if venue is not None:
            head.venue, bold = venue
            head.decorated &= bold
            continue

        price = parse_price_line(line, config)
        if price is not None:
            head.price, bold = price
            head.decorated &= bold
            continue

        courts = parse_courts_line(line, config)
        if courts is not None:
            head.courts, bold = courts
            head.decorated &= bold
            continue

        calendar = parse_calendar_line(line, config)
        if calendar is not None:
            head.calendar_seen = True
            head.calendar_link = calendar or None
            head.decorated &= bool(calendar)
            continue

        if is_cancel_banner(line, config):
            head.cancelled = True
            continue

        text = plain_text(line)
        if config.labels.cancel_marker in text or config.labels.cancelled_phrase in text:
            head.cancelled = True
        head.note_lines.append(line.strip())
    return head


def _parse_sections(lines: list[str], config: EngineConfig) -> tuple[list[Participant], list[Participant]]:
    """Read roster and waitlist entries below the roster heading."""
    main: list[Participant] = []
    waitlist: list[Participant] = []
    in_waitlist = False
    for line in lines:
        stripped = line.strip()
        if not stripped or stripped == _EMPTY_WAITLIST:
            continue
        if is_waitlist_heading(line, config):
            in_waitlist = True
            continue
        if not in_waitlist and not stripped.startswith(HEADER_EMOJI):
            entry = parse_roster_line(line)
            if entry is not None:
                main.append(entry)
            continue
        entry = parse_waitlist_line(line)
        if entry is not None:
            waitlist.append(entry)
    return main, waitlist


def _fit_capacity(
    courts: int | None, main: list[Participant], waitlist: list[Participant], config: EngineConfig
) -> tuple[int, list[Participant], list[Participant]]:
    """Pick the court count and keep the main roster within its slots."""
    if courts is None:
        needed = math.ceil(len(main) / config.slots_per_court) if config.slots_per_court else 0
        courts = max(config.default_courts, needed)
    if courts > config.max_courts:
        logger.debug("Message books %d courts, capping at %d", courts, config.max_courts)
        courts = config.max_courts
    capacity = max_players_for(courts, config)
    if len(main) > capacity:
        overflow = main[capacity:]
        logger.debug("Roster has %d entries for %d slots, moving overflow to waitlist", len(main), capacity)
        main, waitlist = main[:capacity], overflow + waitlist
    return courts, main, waitlist


def _dedupe(main: list[Participant], waitlist: list[Participant]) -> tuple[list[Participant], list[Participant]]:
    """Keep only the first occurrence of each identity across both lists."""
    seen: set[str] = set()
    lists: list[list[Participant]] = [[], []]
    for target, entries in zip(lists, (main, waitlist)):
        for entry in entries:
            key = normalize_identity(entry.display_name)
            if key in seen:
                continue
            seen.add(key)
            target.append(entry)
    return lists[0], lists[1]


def _calendar_for(head: _Head, venue_name: str) -> str | None:
    if head.calendar_link:
        return head.calendar_link
    if head.schedule is not None:
        return build_links(head.schedule, venue_name)["google"]
    return None


def _parse_canonical(lines: list[str], heading_idx: int, year: int, config: EngineConfig) -> ParsedMessage:
    cancelled_heading, bold_heading = parse_roster_heading(lines[heading_idx], config)
    head = _parse_head(lines[:heading_idx], year, config)
    main, waitlist = _dedupe(*_parse_sections(lines[heading_idx + 1:], config))
    courts, main, waitlist = _fit_capacity(head.courts, main, waitlist, config)

    venue_name = head.venue.name if head.venue else config.placeholder_venue
    snapshot = GameSnapshot(
        title=head.title,
        schedule=head.schedule,
        venue=head.venue,
        price_label=head.price,
        courts=courts,
        max_players=max_players_for(courts, config),
        note=head.note,
        cancelled=head.cancelled or cancelled_heading,
        main_roster=tuple(main),
        waitlist=tuple(waitlist),
        calendar_link=_calendar_for(head, venue_name),
    )

    canonical = bold_heading and head.decorated and bool(head.title) and head.calendar_seen
    dialect = Dialect.CANONICAL if canonical else Dialect.LEGACY
    if dialect is Dialect.LEGACY:
        logger.debug("Reading legacy game message %r", head.title)
    return ParsedMessage(dialect=dialect, snapshot=snapshot)


def _parse_degraded(lines: list[str], year: int, config: EngineConfig) -> ParsedMessage | None:
    """No roster heading: salvage entries and the header, if any."""
    title = ""
    main: list[Participant] = []
    waitlist: list[Participant] = []
    in_waitlist = False
    found_section = False
    cancelled = False
    for line in lines:
        if not title:
            header = parse_header(line)
            if header is not None:
                title = header
                continue
        if is_waitlist_heading(line, config):
            in_waitlist = found_section = True
            continue
        stripped = line.strip()
        if not in_waitlist and re.match(r"^\d+\.", stripped):
            entry = parse_roster_line(line)
            if entry is not None:
                main.append(entry)
            continue
        if in_waitlist or stripped.startswith(HEADER_EMOJI):
            entry = parse_waitlist_line(line)
            if entry is not None:
                waitlist.append(entry)
                continue
        text = plain_text(line)
        if config.labels.cancel_marker in text or config.labels.cancelled_phrase in text:
            cancelled = True

    if not (main or waitlist or found_section):
        return None

    logger.debug("Game message has no roster heading, salvaging %d+%d entries", len(main), len(waitlist))
    main, waitlist = _dedupe(main, waitlist)
    courts, main, waitlist = _fit_capacity(None, main, waitlist, config)
    schedule = parse_schedule(title, year, config) if title else None
    snapshot = GameSnapshot(
        title=title,
        schedule=schedule,
        venue=Venue(name=config.placeholder_venue),
        price_label=config.placeholder_price,
        courts=courts,
        max_players=max_players_for(courts, config),
        cancelled=cancelled,
        main_roster=tuple(main),
        waitlist=tuple(waitlist),
        calendar_link=build_links(schedule, config.placeholder_venue)["google"] if schedule else None,
    )
    return ParsedMessage(dialect=Dialect.DEGRADED, snapshot=snapshot)


def parse_message(
    text: str, config: EngineConfig | None = None, now: datetime | None = None
) -> ParsedMessage | None:
    """Parse a game message, keeping track of which dialect it was in.

    Returns None when the text has no roster or waitlist content at all;
    callers should then leave the message untouched.
    """
    config = config or DEFAULT_CONFIG
    try:
        year = (now or datetime.now(config.tz)).astimezone(config.tz).year
        lines = (text or "").splitlines()
        for idx, line in enumerate(lines):
            if parse_roster_heading(line, config) is not None:
                return _parse_canonical(lines, idx, year, config)
        return _parse_degraded(lines, year, config)
    except Exception:
        logger.exception("Failed to parse game message")
        return None


def parse(text: str, config: EngineConfig | None = None, now: datetime | None = None) -> GameSnapshot | None:
    """Parse a game message into a snapshot, or None if nothing is recoverable."""
    parsed = parse_message(text, config, now)
    return parsed.snapshot if parsed else None


def find_schedule(text: str, config: EngineConfig | None = None, now: datetime | None = None) -> Schedule | None:
    """Schedule from the first header line of ``text``, whatever else it holds."""
    config = config or DEFAULT_CONFIG
    try:
        year = (now or datetime.now(config.tz)).astimezone(config.tz).year
        for line in (text or "").splitlines():
            title = parse_header(line)
            if title is not None:
                return parse_schedule(title, year, config)
    except Exception:
        logger.exception("Failed to read schedule from game message")
    return None
