from __future__ import annotations

from datetime import datetime, timezone
from pathlib import Path

import pytest

FIXTURE_DIR = Path(__file__).parent / "fixtures"

# Fixture messages are dated 07.01; parse them as 2025 messages.
NOW = datetime(2025, 1, 5, 12, 0, tzinfo=timezone.utc)


def read_fixture(name: str) -> str:
    return (FIXTURE_DIR / name).read_text(encoding="utf-8").rstrip("\n")


@pytest.fixture
def now() -> datetime:
    return NOW


@pytest.fixture
def canonical_empty() -> str:
    return read_fixture("canonical_empty.txt")


@pytest.fixture
def full_with_waitlist() -> str:
    return read_fixture("full_with_waitlist.txt")


@pytest.fixture
def legacy_text() -> str:
    return read_fixture("legacy.txt")


@pytest.fixture
def degraded_text() -> str:
    return read_fixture("degraded.txt")
