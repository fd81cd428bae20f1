"""Render game snapshots back into chat message text."""

from __future__ import annotations

import logging
import re

from padel_message import GameSnapshot, GameStats, Participant
from padel_message.calendar_gen import build_links
from padel_message.config import DEFAULT_CONFIG, EngineConfig

logger = logging.getLogger(__name__)

EMPTY_SLOT = "-"
EMPTY_WAITLIST = "---"


def format_game(snapshot: GameSnapshot, config: EngineConfig | None = None) -> str:
    """Format a snapshot as the canonical game message.

    The output is what :func:`padel_message.parser.parse` reads back into the
    same roster, waitlist, schedule, venue and cancellation state.
    """
    config = config or DEFAULT_CONFIG
    labels = config.labels

    lines: list[str] = []
    if snapshot.title:
        lines += [f"🎾 <b>{snapshot.title}</b>", ""]

    if snapshot.venue is not None:
        lines.append(f"📍 <b>{labels.venue}</b> {format_venue(snapshot.venue.name, snapshot.venue.maps_url)}")
    if snapshot.price_label is not None:
        lines.append(f"💵 <b>{labels.price}</b> {snapshot.price_label}")
    lines.append(f"🏟️ <b>{labels.courts}</b> {snapshot.courts}")

    if snapshot.note and snapshot.note.strip():
        lines += ["", snapshot.note.strip()]
    if snapshot.cancelled:
        lines += ["", f"❗️<b>{labels.cancel_marker}</b>❗️"]

    calendar_link = snapshot.calendar_link
    if calendar_link is None and snapshot.schedule is not None:
        venue_name = snapshot.venue.name if snapshot.venue else config.placeholder_venue
        calendar_link = build_links(snapshot.schedule, venue_name)["google"]
    if calendar_link:
        lines += ["", format_calendar_line(calendar_link, config)]

    heading = labels.cancelled_heading if snapshot.cancelled else labels.roster_heading
    lines += ["", f"<b>{heading}</b>"]
    lines += format_player_slots(snapshot.main_roster, snapshot.max_players)

    lines += ["", f"⏳ <b>{labels.waitlist_heading}</b>"]
    lines += format_waitlist(snapshot.waitlist)

    return "\n".join(lines)


def format_venue(name: str, maps_url: str | None) -> str:
    return f'<a href="{maps_url}">{name}</a>' if maps_url else name


def format_calendar_line(url: str, config: EngineConfig = DEFAULT_CONFIG) -> str:
    return f'📅 <a href="{url}">{config.labels.calendar}</a>'


def format_entry(index: int, participant: Participant) -> str:
    return f"{index}. {participant.display_name} ({participant.skill_level})"


def format_player_slots(roster: tuple[Participant, ...], max_players: int) -> list[str]:
    """One line per slot: the player in it or an empty ``N. -`` marker."""
    slots: list[str] = []
    for i in range(max(max_players, len(roster))):
        if i < len(roster):
            slots.append(format_entry(i + 1, roster[i]))
        else:
            slots.append(f"{i + 1}. {EMPTY_SLOT}")
    return slots


def format_waitlist(waitlist: tuple[Participant, ...]) -> list[str]:
    if not waitlist:
        return [EMPTY_WAITLIST]
    return [format_entry(i + 1, p) for i, p in enumerate(waitlist)]


# --- Auxiliary bot messages ---


def format_late_warning(hours_remaining: float, config: EngineConfig | None = None) -> str:
    """Warning shown to a player about to cancel inside the penalty window."""
    config = config or DEFAULT_CONFIG
    return config.labels.late_warning.format(hours=hours_remaining)


def format_stats(stats: GameStats) -> str:
    return (
        "📊 Статистика игры:\n\n"
        f"👥 Записано игроков: {stats.registered}\n"
        f"⏳ В waitlist: {stats.waitlisted}\n"
        f"📈 Всего участников: {stats.total}"
    )


def format_admin_panel(
    snapshot: GameSnapshot,
    chat_id: int,
    message_id: int,
    config: EngineConfig | None = None,
) -> str:
    """Private admin control message pointing back at a game message.

    :func:`extract_game_reference` reads the chat/message ids back out of it.
    """
    config = config or DEFAULT_CONFIG
    registered = len(snapshot.main_roster)
    waitlisted = len(snapshot.waitlist)
    venue_name = snapshot.venue.name if snapshot.venue else config.placeholder_venue

    lines = [
        "🔧 <b>Панель администратора</b>",
        "",
        f"🎾 <b>Игра:</b> {snapshot.title or '—'}",
        f"📍 <b>{config.labels.venue}</b> {venue_name}",
    ]
    if snapshot.cancelled:
        lines.append(f"🚫 <b>{config.labels.cancelled_phrase}</b>")
    lines += [
        "",
        "📊 <b>Статистика:</b>",
        f"👥 Записано: {registered}/{snapshot.max_players}",
        f"⏳ В waitlist: {waitlisted}",
        f"📈 Всего участников: {registered + waitlisted}",
        "",
        "🔗 <b>Связанное сообщение:</b>",
        f"Chat ID: {chat_id}",
        f"Message ID: {message_id}",
        "",
        "Используйте кнопки ниже для управления игрой:",
    ]
    return "\n".join(lines)


def extract_game_reference(admin_text: str) -> tuple[int, int] | None:
    """Return ``(chat_id, message_id)`` from an admin control message."""
    try:
        chat_match = re.search(r"Chat ID:\s*(-?\d+)", admin_text or "")
        message_match = re.search(r"Message ID:\s*(\d+)", admin_text or "")
        if not chat_match or not message_match:
            return None
        return int(chat_match.group(1)), int(message_match.group(1))
    except Exception:
        logger.exception("Failed to read game reference from admin message")
        return None
