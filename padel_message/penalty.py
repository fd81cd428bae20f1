"""Late-cancellation check.

The result is advisory: the roster engine cancels regardless, and callers
show the warning to the player.
"""

from __future__ import annotations

import logging
from datetime import datetime, timezone

from padel_message import LateCancellation
from padel_message.config import DEFAULT_CONFIG, EngineConfig
from padel_message.parser import find_schedule

logger = logging.getLogger(__name__)


def hours_until_game(
    text: str, config: EngineConfig | None = None, now: datetime | None = None
) -> float | None:
    """Hours from ``now`` until the game's start, or None if unknown or started."""
    config = config or DEFAULT_CONFIG
    now = now or datetime.now(timezone.utc)
    try:
        schedule = find_schedule(text, config, now)
        if schedule is None:
            return None
        hours = (schedule.start - now).total_seconds() / 3600
    except Exception:
        logger.exception("Failed to compute time until game")
        return None
    return hours if hours > 0 else None


def is_late_cancellation(
    text: str, config: EngineConfig | None = None, now: datetime | None = None
) -> LateCancellation:
    config = config or DEFAULT_CONFIG
    hours = hours_until_game(text, config, now)
    if hours is None:
        return LateCancellation(is_late=False, hours_remaining=None)
    return LateCancellation(is_late=0 < hours < config.late_window_hours, hours_remaining=hours)
