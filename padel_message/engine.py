"""Message-in, message-out operations used by the bot.

Each call restores lost formatting, parses the text, applies one action and
renders the result. Nothing is kept between calls, so concurrent edits of the
same message are last-writer-wins.
"""

from __future__ import annotations

import logging
from datetime import datetime

from padel_message import MessageUpdate, Outcome, Participant
from padel_message.config import DEFAULT_CONFIG, EngineConfig
from padel_message.formatter import format_admin_panel, format_game, format_stats
from padel_message.parser import parse
from padel_message.penalty import is_late_cancellation
from padel_message.restore import restore
from padel_message.roster import apply, cancel_game, game_stats, restore_game

logger = logging.getLogger(__name__)


def update_message(
    text: str,
    display_name: str,
    action: str,
    *,
    config: EngineConfig | None = None,
    now: datetime | None = None,
) -> MessageUpdate:
    """Apply a player's button press to a game message.

    ``late`` is filled in when the player leaves the main roster, so the bot
    can show the penalty warning; the cancellation is applied either way.
    """
    config = config or DEFAULT_CONFIG
    unchanged = MessageUpdate(text=text, changed=False)
    if not (display_name or "").strip() or not (action or "").strip():
        return unchanged

    try:
        restored = restore(text, config, now)
        snapshot = parse(restored, config, now)
        if snapshot is None:
            logger.debug("Message has no roster, leaving it unchanged")
            return unchanged

        participant = Participant(display_name=display_name.strip(), skill_level=action)
        result = apply(snapshot, participant, action, config, now)
        if result.outcome is Outcome.NOOP:
            return unchanged

        late = is_late_cancellation(restored, config, now) if result.outcome.left_main_roster else None
        return MessageUpdate(
            text=format_game(result.snapshot, config),
            notification=result.notification,
            late=late,
        )
    except Exception:
        logger.exception("Failed to update game message for %r", display_name)
        return unchanged


def cancel_message(text: str, *, config: EngineConfig | None = None, now: datetime | None = None) -> str:
    """Admin cancel of the game in ``text``; unparsable text is returned as is."""
    config = config or DEFAULT_CONFIG
    try:
        snapshot = parse(restore(text, config, now), config, now)
        if snapshot is None:
            return text
        return format_game(cancel_game(snapshot), config)
    except Exception:
        logger.exception("Failed to cancel game message")
        return text


def restore_message(text: str, *, config: EngineConfig | None = None, now: datetime | None = None) -> str:
    """Admin restore of a cancelled game; unparsable text is returned as is."""
    config = config or DEFAULT_CONFIG
    try:
        snapshot = parse(restore(text, config, now), config, now)
        if snapshot is None:
            return text
        return format_game(restore_game(snapshot), config)
    except Exception:
        logger.exception("Failed to restore game message")
        return text


def stats_message(text: str, *, config: EngineConfig | None = None) -> str | None:
    snapshot = parse(text, config)
    if snapshot is None:
        return None
    return format_stats(game_stats(snapshot))


def admin_panel_message(
    text: str, chat_id: int, message_id: int, *, config: EngineConfig | None = None
) -> str:
    """Admin control message for the game in ``text``."""
    snapshot = parse(text, config)
    if snapshot is None:
        return (
            "🔧 <b>Панель администратора</b>\n\n"
            "⚠️ Не удалось загрузить полные данные об игре.\n\n"
            "🔗 <b>Связанное сообщение:</b>\n"
            f"Chat ID: {chat_id}\n"
            f"Message ID: {message_id}"
        )
    return format_admin_panel(snapshot, chat_id, message_id, config)
