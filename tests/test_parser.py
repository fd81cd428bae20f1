"""Tests for reading game state out of message text."""

from __future__ import annotations

from datetime import datetime
from types import MappingProxyType

import pytest

from padel_message import Dialect, GameSnapshot, Participant
from padel_message.config import EngineConfig
from padel_message.parser import (
    normalize_identity,
    parse,
    parse_courts_line,
    parse_header,
    parse_message,
    parse_roster_line,
    parse_schedule,
    parse_venue_line,
    parse_waitlist_line,
)


def _names(entries: tuple[Participant, ...]) -> list[str]:
    return [p.display_name for p in entries]


# --- Line rules ---


class TestLineRules:
    def test_header_plain_and_bold(self) -> None:
        assert parse_header("🎾 Вторник, 07.01, 8:00-09:30") == "Вторник, 07.01, 8:00-09:30"
        assert parse_header("🎾 <b>Вторник, 07.01, 8:00-09:30</b>") == "Вторник, 07.01, 8:00-09:30"

    def test_header_rejects_waitlist_entry(self) -> None:
        assert parse_header("🎾 @player (D+)") is None
        assert parse_header("🎾 Incomplete message without structure") is None

    def test_roster_line(self) -> None:
        entry = parse_roster_line("3. John (Jr) (C+)")
        assert entry == Participant(display_name="John (Jr)", skill_level="C+")

    def test_empty_slot_is_not_an_entry(self) -> None:
        assert parse_roster_line("2. -") is None

    def test_waitlist_line_both_forms(self) -> None:
        assert parse_waitlist_line("1. @a (D)") == Participant("@a", "D")
        assert parse_waitlist_line("🎾 @a (D)") == Participant("@a", "D")
        assert parse_waitlist_line("---") is None

    def test_venue_line_with_anchor(self) -> None:
        venue, bold = parse_venue_line('📍 <b>Место:</b> <a href="https://maps.example/x">Some Club</a>')
        assert venue.name == "Some Club"
        assert venue.maps_url == "https://maps.example/x"
        assert bold is True

    def test_venue_line_resolved_from_directory(self) -> None:
        venue, bold = parse_venue_line("📍 Место: Oxygen Padel Sport Academy")
        assert venue.maps_url.startswith("https://maps.app.goo.gl/")
        assert bold is False

    def test_unknown_venue_has_no_link(self) -> None:
        venue, _ = parse_venue_line("📍 <b>Место:</b> Backyard Court")
        assert venue.name == "Backyard Court"
        assert venue.maps_url is None

    def test_label_must_start_the_line(self) -> None:
        assert parse_venue_line("Напоминаю, Место: как обычно") is None

    def test_courts_line(self) -> None:
        assert parse_courts_line("🏟️ <b>Забронировано кортов:</b> 3") == (3, True)
        assert parse_courts_line("🏟 Забронировано кортов: два") == (None, False)


class TestSchedule:
    def test_derives_start_and_end(self) -> None:
        schedule = parse_schedule("Вторник, 07.01, 8:00-09:30", 2025)
        assert schedule.start.hour == 8
        assert schedule.end.hour == 9 and schedule.end.minute == 30
        assert schedule.start.utcoffset().total_seconds() == 4 * 3600
        assert schedule.title == "Вторник, 07.01, 8:00-09:30"

    def test_range_past_midnight_ends_next_day(self) -> None:
        schedule = parse_schedule("Пятница, 10.01, 23:00-00:30", 2025)
        assert schedule.end.day == 11

    def test_impossible_date(self) -> None:
        assert parse_schedule("Среда, 31.02, 8:00-09:30", 2025) is None


class TestIdentity:
    @pytest.mark.parametrize(
        "name, expected",
        [
            ("@testuser", "testuser"),
            ('<a href="https://t.me/testuser">@testuser</a>', "testuser"),
            ("Regular Name", "regular name"),
            ("  Regular   Name ", "regular name"),
            ("@user-with-dashes", "user-with-dashes"),
            ("@тест_user", "тест_user"),
            ('<a href="tg://user?id=42">Иван</a>', "id=42"),
        ],
    )
    def test_normalize(self, name: str, expected: str) -> None:
        assert normalize_identity(name) == expected


# --- Message parsing ---


class TestParseCanonical:
    def test_empty_game(self, canonical_empty: str, now: datetime) -> None:
        parsed = parse_message(canonical_empty, now=now)
        assert parsed.dialect is Dialect.CANONICAL
        snapshot = parsed.snapshot
        assert snapshot.title == "Вторник, 07.01, 8:00-09:30"
        assert snapshot.venue.name == "SANDDUNE PADEL CLUB Al Qouz"
        assert snapshot.price_label == "65 aed/чел"
        assert snapshot.courts == 1
        assert snapshot.max_players == 4
        assert snapshot.main_roster == ()
        assert snapshot.waitlist == ()
        assert snapshot.cancelled is False
        assert "20250107T040000Z" in snapshot.calendar_link

    def test_full_game_with_emoji_waitlist(self, full_with_waitlist: str, now: datetime) -> None:
        snapshot = parse(full_with_waitlist, now=now)
        assert _names(snapshot.main_roster) == [
            "@p1",
            '<a href="https://t.me/p2">@p2</a>',
            "Ivan Petrov",
            "@p4",
        ]
        assert [p.skill_level for p in snapshot.main_roster] == ["D+", "D", "C-", "C"]
        assert _names(snapshot.waitlist) == ["@a", "@b"]
        assert snapshot.note == "Приходите за 10 минут до начала"

    def test_cancel_banner(self, canonical_empty: str, now: datetime) -> None:
        text = canonical_empty.replace(
            "🏟️ <b>Забронировано кортов:</b> 1",
            "🏟️ <b>Забронировано кортов:</b> 1\n\n❗️<b>ОТМЕНА</b>❗️",
        )
        snapshot = parse(text, now=now)
        assert snapshot.cancelled is True
        assert snapshot.note is None

    def test_cancelled_heading(self, now: datetime) -> None:
        snapshot = parse("<b>Игра отменена. Waitlist:</b>\n1. @a (D)", now=now)
        assert snapshot.cancelled is True
        assert _names(snapshot.main_roster) == ["@a"]


class TestParseLegacy:
    def test_plain_labels(self, legacy_text: str, now: datetime) -> None:
        parsed = parse_message(legacy_text, now=now)
        assert parsed.dialect is Dialect.LEGACY
        snapshot = parsed.snapshot
        assert snapshot.courts == 2
        assert snapshot.max_players == 8
        assert snapshot.venue.maps_url == "https://maps.app.goo.gl/GZgQCpsX1uyvFwLB7?g_st=ipc"
        assert _names(snapshot.main_roster) == ["@player1", "@player2"]

    def test_calendar_regenerated_when_missing(self, legacy_text: str, now: datetime) -> None:
        snapshot = parse(legacy_text, now=now)
        assert snapshot.calendar_link.startswith("https://calendar.google.com/calendar/render")
        assert "dates=20250107T040000Z/20250107T053000Z" in snapshot.calendar_link

    def test_heading_only(self, now: datetime) -> None:
        parsed = parse_message("<b>Записавшиеся игроки:</b>\n\n⏳ <b>Waitlist:</b>\n---", now=now)
        assert parsed.dialect is Dialect.LEGACY
        assert parsed.snapshot.venue is None
        assert parsed.snapshot.price_label is None
        assert parsed.snapshot.max_players == 4
        assert parsed.snapshot.calendar_link is None

    def test_missing_courts_fit_the_roster(self, now: datetime) -> None:
        lines = ["Записавшиеся игроки:"] + [f"{i}. @u{i} (D)" for i in range(1, 6)]
        snapshot = parse("\n".join(lines), now=now)
        assert snapshot.courts == 2
        assert len(snapshot.main_roster) == 5

    def test_overflow_moves_to_waitlist_front(self, now: datetime) -> None:
        lines = ["🏟️ Забронировано кортов: 1", "Записавшиеся игроки:"]
        lines += [f"{i}. @u{i} (D)" for i in range(1, 6)]
        lines += ["⏳ Waitlist:", "1. @w (E)"]
        snapshot = parse("\n".join(lines), now=now)
        assert _names(snapshot.main_roster) == ["@u1", "@u2", "@u3", "@u4"]
        assert _names(snapshot.waitlist) == ["@u5", "@w"]

    def test_duplicate_identity_kept_once(self, now: datetime) -> None:
        text = "Записавшиеся игроки:\n1. @dup (D)\n⏳ Waitlist:\n🎾 @DUP (C)\n🎾 @other (E)"
        snapshot = parse(text, now=now)
        assert _names(snapshot.main_roster) == ["@dup"]
        assert _names(snapshot.waitlist) == ["@other"]

    def test_unparsable_date_keeps_title(self, now: datetime) -> None:
        snapshot = parse("🎾 Среда, 31.02, 8:00-09:30\nЗаписавшиеся игроки:", now=now)
        assert snapshot.title == "Среда, 31.02, 8:00-09:30"
        assert snapshot.schedule is None
        assert snapshot.calendar_link is None


class TestParseDegraded:
    def test_entries_without_heading(self, degraded_text: str, now: datetime) -> None:
        parsed = parse_message(degraded_text, now=now)
        assert parsed.dialect is Dialect.DEGRADED
        snapshot = parsed.snapshot
        assert _names(snapshot.main_roster) == ["@x1", "@x2"]
        assert _names(snapshot.waitlist) == ["@x3"]
        assert snapshot.venue.name == "—"
        assert snapshot.price_label == "—"

    def test_placeholders_come_from_config(self, degraded_text: str, now: datetime) -> None:
        config = EngineConfig(placeholder_venue="?", placeholder_price="n/a")
        snapshot = parse(degraded_text, config=config, now=now)
        assert snapshot.venue.name == "?"
        assert snapshot.price_label == "n/a"

    def test_cancellation_marker_kept(self, now: datetime) -> None:
        text = "❗️<b>ОТМЕНА</b>❗️\nИгра отменена\n1. @x1 (D)\n🎾 @x3 (E)"
        parsed = parse_message(text, now=now)
        assert parsed.dialect is Dialect.DEGRADED
        assert parsed.snapshot.cancelled is True
        assert _names(parsed.snapshot.main_roster) == ["@x1"]

    def test_cancelled_phrase_alone(self, now: datetime) -> None:
        assert parse("🚫 Игра отменена\n1. @x1 (D)", now=now).cancelled is True

    def test_not_cancelled_without_marker(self, degraded_text: str, now: datetime) -> None:
        assert parse(degraded_text, now=now).cancelled is False

    @pytest.mark.parametrize(
        "text",
        ["", "Invalid message", "🎾 Incomplete message without structure", "Random text", "\n\n"],
    )
    def test_unrecoverable_text(self, text: str) -> None:
        assert parse(text) is None


class TestInjectedConfig:
    def test_custom_club_directory(self, now: datetime) -> None:
        config = EngineConfig(clubs=MappingProxyType({"Home Court": "https://maps.example/home"}))
        snapshot = parse("📍 Место: Home Court\nЗаписавшиеся игроки:", config=config, now=now)
        assert snapshot.venue.maps_url == "https://maps.example/home"

        default = parse("📍 Место: Home Court\nЗаписавшиеся игроки:", now=now)
        assert default.venue.maps_url is None

    def test_slots_per_court(self, now: datetime) -> None:
        config = EngineConfig(slots_per_court=2)
        snapshot: GameSnapshot = parse("🏟️ Забронировано кортов: 3\nЗаписавшиеся игроки:", config=config, now=now)
        assert snapshot.max_players == 6

    def test_court_count_is_capped(self, now: datetime) -> None:
        snapshot = parse("🏟️ <b>Забронировано кортов:</b> 2000000\n<b>Записавшиеся игроки:</b>", now=now)
        assert snapshot.courts == 20
        assert snapshot.max_players == 80

    def test_cap_moves_overflow_to_waitlist(self, now: datetime) -> None:
        config = EngineConfig(max_courts=1)
        roster = "\n".join(f"{i}. @u{i} (D)" for i in range(1, 7))
        snapshot = parse(f"🏟️ Забронировано кортов: 5\nЗаписавшиеся игроки:\n{roster}", config=config, now=now)
        assert snapshot.courts == 1
        assert _names(snapshot.main_roster) == ["@u1", "@u2", "@u3", "@u4"]
        assert _names(snapshot.waitlist) == ["@u5", "@u6"]
