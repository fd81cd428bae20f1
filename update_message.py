#!/usr/bin/env python3
"""
Padel Game Message Updater

Reads a game message (as posted in the chat) from a file, applies one player
or admin action and prints the new message text. Optionally writes an ICS
file for the game.
"""

from __future__ import annotations

import argparse
import sys
from datetime import datetime
from pathlib import Path

from padel_message.calendar_gen import create_game_calendar
from padel_message.config import DEFAULT_CONFIG, EngineConfig, load_config
from padel_message.engine import cancel_message, restore_message, update_message
from padel_message.formatter import format_late_warning
from padel_message.parser import parse


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(description="Apply an action to a padel game message.")
    parser.add_argument("message_file", type=Path, help="file holding the current message text")
    parser.add_argument("name", nargs="?", help="player display name, e.g. @nick")
    parser.add_argument("action", nargs="?", help="skill level to register with, or not_coming")
    parser.add_argument("--config", type=Path, help="JSON file with club/skill overrides")
    parser.add_argument("--now", help="ISO timestamp to use as the current time")
    parser.add_argument("--ics", type=Path, help="also write the game as an ICS file")
    group = parser.add_mutually_exclusive_group()
    group.add_argument("--cancel-game", action="store_true", help="admin: cancel the game")
    group.add_argument("--restore-game", action="store_true", help="admin: restore the game")
    return parser


def load_engine_config(path: Path | None) -> EngineConfig:
    if path is None:
        default_path = Path("clubs.json")
        return load_config(default_path) if default_path.exists() else DEFAULT_CONFIG
    return load_config(path)


def main(argv: list[str] | None = None) -> int:
    args = build_parser().parse_args(argv)

    try:
        config = load_engine_config(args.config)
        text = args.message_file.read_text(encoding="utf-8")
        now = datetime.fromisoformat(args.now) if args.now else None
        if now is not None and now.tzinfo is None:
            now = now.replace(tzinfo=config.tz)
    except Exception as e:
        print(f"ERROR: {e}", file=sys.stderr)
        return 1

    if args.cancel_game:
        new_text = cancel_message(text, config=config, now=now)
    elif args.restore_game:
        new_text = restore_message(text, config=config, now=now)
    else:
        if not args.name or not args.action:
            print("ERROR: name and action are required for player actions", file=sys.stderr)
            return 2
        update = update_message(text, args.name, args.action, config=config, now=now)
        new_text = update.text
        if not update.changed:
            print("  Message unchanged", file=sys.stderr)
        if update.notification:
            print(f"  Notification: {update.notification}", file=sys.stderr)
        if update.late and update.late.is_late:
            print(format_late_warning(update.late.hours_remaining, config), file=sys.stderr)

    print(new_text)

    if args.ics:
        snapshot = parse(new_text, config, now)
        if snapshot is None:
            print("  No game found, ICS not written", file=sys.stderr)
            return 1
        args.ics.write_bytes(create_game_calendar(snapshot, config).to_ical())
        print(f"  Saved {args.ics}", file=sys.stderr)

    return 0


if __name__ == "__main__":
    sys.exit(main())
