"""Tests for re-adding lost message formatting."""

from __future__ import annotations

from datetime import datetime
from types import MappingProxyType

import pytest

from padel_message.config import EngineConfig
from padel_message.restore import restore


class TestRestore:
    def test_bold_labels_and_headings(self, legacy_text: str, now: datetime) -> None:
        result = restore(legacy_text, now=now)
        assert "🎾 <b>Вторник, 07.01, 8:00-09:30</b>" in result
        assert "📍 <b>Место:</b>" in result
        assert "💵 <b>Цена:</b> 65 aed/чел" in result
        assert "🏟️ <b>Забронировано кортов:</b> 2" in result
        assert "<b>Записавшиеся игроки:</b>" in result
        assert "⏳ <b>Waitlist:</b>" in result

    def test_venue_link_from_directory(self, legacy_text: str, now: datetime) -> None:
        result = restore(legacy_text, now=now)
        assert (
            '<a href="https://maps.app.goo.gl/GZgQCpsX1uyvFwLB7?g_st=ipc">'
            "SANDDUNE PADEL CLUB Al Qouz</a>"
        ) in result

    def test_unknown_venue_left_plain(self, now: datetime) -> None:
        assert restore("📍 Место: Backyard Court", now=now) == "📍 <b>Место:</b> Backyard Court"

    def test_calendar_link_synthesized(self, now: datetime) -> None:
        text = "🎾 Вторник, 07.01, 8:00-09:30\n📍 Место: Oxygen Padel Sport Academy\n📅 Добавить в Google Calendar"
        result = restore(text, now=now)
        assert '📅 <a href="https://calendar.google.com/calendar/render?action=TEMPLATE' in result
        assert "text=Padel%20-%20Oxygen%20Padel%20Sport%20Academy" in result
        assert "Добавить в Google Calendar</a>" in result

    def test_calendar_line_without_schedule_untouched(self) -> None:
        text = "📅 Добавить в Google Calendar\nЗаписавшиеся игроки:"
        assert restore(text).startswith("📅 Добавить в Google Calendar\n")

    def test_cancel_banner(self) -> None:
        assert restore("❗️ОТМЕНА❗️") == "❗️<b>ОТМЕНА</b>❗️"

    def test_preserves_existing_markup(self, now: datetime) -> None:
        text = (
            "🎾 <b>Вторник, 07.01, 8:00-09:30</b>\n"
            '📍 <b>Место:</b> <a href="https://maps.app.goo.gl/test">SANDDUNE PADEL CLUB Al Qouz</a>\n'
            "<b>Записавшиеся игроки:</b>"
        )
        result = restore(text, now=now)
        assert result == text
        assert "<b><b>" not in result

    def test_canonical_text_unchanged(self, canonical_empty: str, full_with_waitlist: str, now: datetime) -> None:
        assert restore(canonical_empty, now=now) == canonical_empty
        assert restore(full_with_waitlist, now=now) == full_with_waitlist

    def test_entries_untouched(self, legacy_text: str, now: datetime) -> None:
        result = restore(legacy_text, now=now)
        assert "1. @player1 (D+)" in result
        assert "\n---" in result

    def test_uses_injected_directory(self, now: datetime) -> None:
        config = EngineConfig(clubs=MappingProxyType({"Backyard Court": "https://maps.example/b"}))
        result = restore("📍 Место: Backyard Court", config=config, now=now)
        assert result == '📍 <b>Место:</b> <a href="https://maps.example/b">Backyard Court</a>'

    @pytest.mark.parametrize(
        "text",
        [
            "",
            "Invalid message",
            "🎾 Вторник, 07.01, 8:00-09:30",
            "📅 Добавить в Google Calendar",
            "💵 <b>Цена:</b> 65 aed/чел\n💵 Цена: 70",
            "⏳ Waitlist:\n🎾 @a (D)",
            "🎾 Вторник, 07.01, 8:00-09:30\n📍 Место: SANDDUNE PADEL CLUB Al Qouz\n📅 Добавить в Google Calendar",
        ],
    )
    def test_idempotent(self, text: str, now: datetime) -> None:
        once = restore(text, now=now)
        assert restore(once, now=now) == once
        assert "<b><b>" not in once
        assert once.count("<a ") == once.count("</a>")

    @pytest.mark.parametrize("fixture_name", ["legacy_text", "degraded_text", "full_with_waitlist", "canonical_empty"])
    def test_idempotent_on_fixtures(self, fixture_name: str, request: pytest.FixtureRequest, now: datetime) -> None:
        once = restore(request.getfixturevalue(fixture_name), now=now)
        assert restore(once, now=now) == once
