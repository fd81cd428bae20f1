"""Padel game messages: shared data models."""

from __future__ import annotations

import enum
from dataclasses import dataclass
from datetime import datetime


@dataclass(frozen=True)
class Participant:
    """A player entry as it appears in the message text."""

    display_name: str
    skill_level: str
    joined_at: datetime | None = None


@dataclass(frozen=True)
class Venue:
    """Club name with its maps link, when one is known."""

    name: str
    maps_url: str | None = None


@dataclass(frozen=True)
class Schedule:
    """Day/date/time labels of a game plus the derived start and end."""

    day_label: str
    date_label: str
    time_range: str
    start: datetime
    end: datetime

    @property
    def title(self) -> str:
        return f"{self.day_label}, {self.date_label}, {self.time_range}"


@dataclass(frozen=True)
class GameSnapshot:
    """Roster state of one game, decoded from (or encoded into) a message."""

    title: str
    schedule: Schedule | None
    venue: Venue | None
    price_label: str | None
    courts: int
    max_players: int
    note: str | None = None
    cancelled: bool = False
    main_roster: tuple[Participant, ...] = ()
    waitlist: tuple[Participant, ...] = ()
    calendar_link: str | None = None

    @property
    def free_slots(self) -> int:
        return max(0, self.max_players - len(self.main_roster))


class Dialect(enum.Enum):
    """Which flavour of message text a snapshot was read from."""

    CANONICAL = "canonical"
    LEGACY = "legacy"
    DEGRADED = "degraded"


@dataclass(frozen=True)
class ParsedMessage:
    dialect: Dialect
    snapshot: GameSnapshot


class Outcome(enum.Enum):
    """What a single participant action did to the rosters."""

    REGISTERED = "registered"
    QUEUED = "queued"
    CANCELLED = "cancelled"
    PROMOTED = "promoted"
    LEFT_WAITLIST = "left_waitlist"
    NOOP = "noop"

    @property
    def left_main_roster(self) -> bool:
        return self in (Outcome.CANCELLED, Outcome.PROMOTED)


@dataclass(frozen=True)
class ActionResult:
    snapshot: GameSnapshot
    outcome: Outcome
    notification: str | None = None
    promoted: Participant | None = None


@dataclass(frozen=True)
class GameStats:
    registered: int
    waitlisted: int
    total: int
    available_slots: int


@dataclass(frozen=True)
class LateCancellation:
    """Advisory result of the late-cancellation check."""

    is_late: bool
    hours_remaining: float | None


@dataclass(frozen=True)
class MessageUpdate:
    """Result of running one action against a message text."""

    text: str
    notification: str | None = None
    late: LateCancellation | None = None
    changed: bool = True
