"""
Blackout window and next permissible spawn time
"""
import random
from datetime import date, datetime

import pytest

from porohunt.config import settings
from porohunt.core.spawning.blackout import blackout_end_on, is_blackout, next_allowed_spawn_at


class TestIsBlackout:
    @pytest.mark.parametrize(
        "hour, expected",
        [(0, True), (2, True), (5, True), (6, False), (12, False), (23, False)],
    )
    def test_default_window(self, hour, expected):
        assert is_blackout(datetime(2024, 5, 1, hour, 30)) is expected

    def test_window_wrapping_midnight(self, monkeypatch):
        monkeypatch.setattr(settings, "blackout_start_hour", 22)
        monkeypatch.setattr(settings, "blackout_end_hour", 6)
        assert is_blackout(datetime(2024, 5, 1, 23, 0))
        assert is_blackout(datetime(2024, 5, 1, 3, 0))
        assert not is_blackout(datetime(2024, 5, 1, 21, 59))

    def test_empty_window(self, monkeypatch):
        monkeypatch.setattr(settings, "blackout_start_hour", 6)
        monkeypatch.setattr(settings, "blackout_end_hour", 6)
        assert not is_blackout(datetime(2024, 5, 1, 6, 0))


class TestNextAllowed:
    def test_during_blackout_is_same_morning(self):
        rng = random.Random(8)
        for _ in range(50):
            allowed = next_allowed_spawn_at(datetime(2024, 5, 1, 2, 0), rng)
            assert datetime(2024, 5, 1, 6, 0) <= allowed <= datetime(2024, 5, 1, 6, 30)

    def test_after_morning_is_next_day(self):
        allowed = next_allowed_spawn_at(datetime(2024, 5, 1, 15, 0), random.Random(1))
        assert datetime(2024, 5, 2, 6, 0) <= allowed <= datetime(2024, 5, 2, 6, 30)

    def test_jitter_can_be_disabled(self, monkeypatch):
        monkeypatch.setattr(settings, "blackout_jitter_minutes", 0)
        assert blackout_end_on(date(2024, 5, 3)) == datetime(2024, 5, 3, 6, 0)
