"""Apply player and admin actions to a game snapshot.

Every function returns a new snapshot; the input is never modified. Both
lists stay in registration order: entries are only ever appended, and the
waitlist head is the only entry ever promoted.

There is no version token on a snapshot. Two actions applied to snapshots
parsed from the same stale message text will overwrite each other when the
results are written back; callers that need more must serialize edits per
message.
"""

from __future__ import annotations

import logging
from dataclasses import replace
from datetime import datetime, timezone

from padel_message import ActionResult, GameSnapshot, GameStats, Outcome, Participant
from padel_message.config import DEFAULT_CONFIG, EngineConfig
from padel_message.parser import normalize_identity

logger = logging.getLogger(__name__)


def _without(entries: tuple[Participant, ...], identity: str) -> tuple[Participant, ...]:
    return tuple(p for p in entries if normalize_identity(p.display_name) != identity)


def _find(entries: tuple[Participant, ...], identity: str) -> Participant | None:
    for entry in entries:
        if normalize_identity(entry.display_name) == identity:
            return entry
    return None


def apply(
    snapshot: GameSnapshot,
    participant: Participant,
    action: str,
    config: EngineConfig | None = None,
    now: datetime | None = None,
) -> ActionResult:
    """Apply one player action.

    ``action`` is a skill label to register with, or ``config.not_coming``
    to cancel. Choosing the label a player is already registered with also
    cancels.
    """
    config = config or DEFAULT_CONFIG
    labels = config.labels
    identity = normalize_identity(participant.display_name)

    in_main = _find(snapshot.main_roster, identity)
    in_waitlist = _find(snapshot.waitlist, identity)
    existing = in_main or in_waitlist

    main = _without(snapshot.main_roster, identity)
    waitlist = _without(snapshot.waitlist, identity)

    if action == config.not_coming or (existing is not None and existing.skill_level == action):
        if existing is None:
            return ActionResult(snapshot=snapshot, outcome=Outcome.NOOP)
        if in_main is None:
            return ActionResult(
                snapshot=replace(snapshot, waitlist=waitlist),
                outcome=Outcome.LEFT_WAITLIST,
            )

        if waitlist and len(main) < snapshot.max_players:
            promoted, waitlist = waitlist[0], waitlist[1:]
            main = main + (promoted,)
            logger.debug("Promoting %s from the waitlist", promoted.display_name)
            return ActionResult(
                snapshot=replace(snapshot, main_roster=main, waitlist=waitlist),
                outcome=Outcome.PROMOTED,
                notification=labels.promoted.format(
                    name=in_main.display_name, promoted=promoted.display_name
                ),
                promoted=promoted,
            )

        return ActionResult(
            snapshot=replace(snapshot, main_roster=main, waitlist=waitlist),
            outcome=Outcome.CANCELLED,
            notification=labels.cancelled.format(name=in_main.display_name),
        )

    entry = replace(
        participant,
        skill_level=action,
        joined_at=participant.joined_at or now or datetime.now(timezone.utc),
    )
    if len(main) < snapshot.max_players:
        return ActionResult(
            snapshot=replace(snapshot, main_roster=main + (entry,), waitlist=waitlist),
            outcome=Outcome.REGISTERED,
        )

    return ActionResult(
        snapshot=replace(snapshot, main_roster=main, waitlist=waitlist + (entry,)),
        outcome=Outcome.QUEUED,
        notification=labels.queued,
    )


def cancel_game(snapshot: GameSnapshot) -> GameSnapshot:
    """Admin cancel: flag the game and move everyone to the waitlist, in order."""
    return replace(
        snapshot,
        cancelled=True,
        main_roster=(),
        waitlist=snapshot.main_roster + snapshot.waitlist,
    )


def restore_game(snapshot: GameSnapshot) -> GameSnapshot:
    """Admin restore: clear the flag and refill the main roster from the waitlist."""
    free = max(0, snapshot.max_players - len(snapshot.main_roster))
    return replace(
        snapshot,
        cancelled=False,
        main_roster=snapshot.main_roster + snapshot.waitlist[:free],
        waitlist=snapshot.waitlist[free:],
    )


def game_stats(snapshot: GameSnapshot) -> GameStats:
    registered = len(snapshot.main_roster)
    waitlisted = len(snapshot.waitlist)
    return GameStats(
        registered=registered,
        waitlisted=waitlisted,
        total=registered + waitlisted,
        available_slots=snapshot.free_slots,
    )
