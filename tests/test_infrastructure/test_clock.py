"""Tests for clock implementations."""

from __future__ import annotations

import pytest

from timelock_escrow.config import Settings
from timelock_escrow.domain.collaborators import Clock
from timelock_escrow.infrastructure.clock import ManualClock, SystemClock, build_clock


class TestManualClock:
    def test_starts_where_told(self) -> None:
        assert ManualClock(start=42).now() == 42

    def test_advance(self) -> None:
        clock = ManualClock(start=100)
        assert clock.advance(50) == 150
        assert clock.now() == 150

    def test_advance_by_zero_is_allowed(self) -> None:
        clock = ManualClock(start=100)
        clock.advance(0)
        assert clock.now() == 100

    def test_cannot_go_backwards(self) -> None:
        clock = ManualClock(start=100)
        with pytest.raises(ValueError, match="negative"):
            clock.advance(-1)
        with pytest.raises(ValueError, match="back"):
            clock.set(99)
        assert clock.now() == 100

    def test_set(self) -> None:
        clock = ManualClock(start=100)
        clock.set(500)
        assert clock.now() == 500

    def test_negative_start(self) -> None:
        with pytest.raises(ValueError):
            ManualClock(start=-1)


class TestSystemClock:
    def test_is_non_decreasing(self) -> None:
        clock = SystemClock()
        readings = [clock.now() for _ in range(5)]
        assert readings == sorted(readings)
        assert readings[0] > 1_600_000_000


class TestBuildClock:
    def test_manual_mode(self) -> None:
        clock = build_clock(Settings(clock_mode="manual", manual_clock_start=7))
        assert isinstance(clock, ManualClock)
        assert clock.now() == 7

    def test_system_mode(self) -> None:
        clock = build_clock(Settings(clock_mode="system"))
        assert isinstance(clock, SystemClock)
        assert isinstance(clock, Clock)
