"""Fixed tables and phrases used to read and write game messages.

Everything here is bundled into an immutable ``EngineConfig``. Parser,
formatter, normalizer and roster engine take it as a ``config=`` keyword and
fall back to ``DEFAULT_CONFIG``; tests pass their own instance instead of
patching module globals.
"""

from __future__ import annotations

import json
from dataclasses import dataclass, field, replace
from datetime import timedelta, timezone, tzinfo
from pathlib import Path
from types import MappingProxyType
from typing import Mapping

CLUB_LOCATIONS: Mapping[str, str] = MappingProxyType({
    "SANDDUNE PADEL CLUB Al Qouz": "https://maps.app.goo.gl/GZgQCpsX1uyvFwLB7?g_st=ipc",
    "Oxygen Padel Sport Academy": "https://maps.app.goo.gl/cH1EZrrpbuYVWsMY6?g_st=ipc",
})

SKILL_LEVELS: tuple[str, ...] = ("E", "D-", "D", "D+", "D++", "C-", "C", "C+")

NOT_COMING = "not_coming"


@dataclass(frozen=True)
class MessageLabels:
    """Russian-language phrases of the message grammar and bot replies."""

    venue: str = "Место:"
    price: str = "Цена:"
    courts: str = "Забронировано кортов:"
    roster_heading: str = "Записавшиеся игроки:"
    cancelled_heading: str = "Игра отменена. Waitlist:"
    waitlist_heading: str = "Waitlist:"
    calendar: str = "Добавить в Google Calendar"
    cancel_marker: str = "ОТМЕНА"
    cancelled_phrase: str = "Игра отменена"

    promoted: str = "{name} отменил участие. {promoted} переходит в основной состав"
    cancelled: str = "{name} отменил участие"
    queued: str = "⏳ Основной список заполнен, вы добавлены в лист ожидания"
    registered: str = "Записал вас с уровнем {level}!"
    not_coming: str = "Жаль, что не сможете прийти на эту игру!"
    late_warning: str = (
        "⚠️ ВНИМАНИЕ! До игры осталось {hours:.1f} часов.\n\n"
        "Согласно правилам группы, отмена менее чем за 24 часа до игры "
        "влечет штрафные санкции.\n\n"
        "Подробности в правилах участия в группе.\n\n"
        "Вы все еще хотите отменить участие?"
    )


@dataclass(frozen=True)
class EngineConfig:
    """Injected configuration for the message engine."""

    clubs: Mapping[str, str] = field(default_factory=lambda: CLUB_LOCATIONS)
    skill_levels: tuple[str, ...] = SKILL_LEVELS
    not_coming: str = NOT_COMING
    slots_per_court: int = 4
    default_courts: int = 1
    max_courts: int = 20
    # Single-city deployment: fixed offset, no DST.
    utc_offset_hours: int = 4
    late_window_hours: int = 24
    placeholder_venue: str = "—"
    placeholder_price: str = "—"
    labels: MessageLabels = field(default_factory=MessageLabels)

    @property
    def tz(self) -> tzinfo:
        return timezone(timedelta(hours=self.utc_offset_hours))


DEFAULT_CONFIG = EngineConfig()


def max_players_for(courts: int, config: EngineConfig = DEFAULT_CONFIG) -> int:
    """Number of main-roster slots for a number of booked courts."""
    return max(0, courts) * config.slots_per_court


def load_config(path: str | Path, base: EngineConfig = DEFAULT_CONFIG) -> EngineConfig:
    """Load engine configuration overrides from a JSON file.

    Recognised keys: ``clubs``, ``skill_levels``, ``slots_per_court``,
    ``default_courts``, ``max_courts``, ``utc_offset_hours``,
    ``late_window_hours``.
    Missing keys keep the values of ``base``.
    """
    with open(path, encoding="utf-8") as f:
        data = json.load(f)

    overrides: dict = {}
    if "clubs" in data:
        overrides["clubs"] = MappingProxyType(dict(data["clubs"]))
    if "skill_levels" in data:
        overrides["skill_levels"] = tuple(data["skill_levels"])
    for key in ("slots_per_court", "default_courts", "max_courts", "utc_offset_hours", "late_window_hours"):
        if key in data:
            overrides[key] = int(data[key])
    return replace(base, **overrides)
