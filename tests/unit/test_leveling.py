"""
XP curve, titles and rewards
"""
import random

import pytest

from porohunt.core.leveling import (
    GOLD_BY_RARITY,
    catch_xp,
    compute_level,
    format_xp_message,
    gold_for_rarity,
    unlocked_title,
    xp_for_next_level,
)


class TestXpCurve:
    def test_linear_requirements(self):
        assert xp_for_next_level(1) == 100
        assert xp_for_next_level(2) == 150
        assert xp_for_next_level(10) == 550

    def test_compute_level_boundaries(self):
        assert compute_level(0) == (1, 0)
        assert compute_level(99) == (1, 99)
        assert compute_level(100) == (2, 0)
        assert compute_level(249) == (2, 149)
        assert compute_level(250) == (3, 0)

    def test_large_grant_crosses_several_levels(self):
        # 100 + 150 + 200 + 250 = 700 reaches level 5 exactly
        assert compute_level(700) == (5, 0)

    def test_level_is_monotonic_in_xp(self):
        levels = [compute_level(xp)[0] for xp in range(0, 5000, 7)]
        assert levels == sorted(levels)

    def test_same_xp_gives_same_level(self):
        assert compute_level(1234) == compute_level(1234)

    def test_negative_xp_is_level_one(self):
        assert compute_level(-50) == (1, 0)


class TestTitles:
    @pytest.mark.parametrize(
        "level, title",
        [
            (1, "Poro Curious"),
            (2, "Poro Curious"),
            (3, "Snack Scout"),
            (7, "Fluff Wrangler"),
            (12, "Freljord Friend"),
            (24, "Poro Warden"),
            (25, "Legend of the Herd"),
            (99, "Legend of the Herd"),
        ],
    )
    def test_unlocked_title(self, level, title):
        assert unlocked_title(level) == title


class TestCatchRewards:
    def test_catch_xp(self):
        assert catch_xp(True) == 25
        assert catch_xp(False) == 5
        assert catch_xp(True, 10) == 35
        assert catch_xp(False, 10) == 15

    @pytest.mark.parametrize("rarity", sorted(GOLD_BY_RARITY))
    def test_gold_within_rarity_range(self, rarity):
        lo, hi = GOLD_BY_RARITY[rarity]
        rng = random.Random(3)
        rolls = {gold_for_rarity(rarity, rng) for _ in range(300)}
        assert min(rolls) >= lo
        assert max(rolls) <= hi

    def test_format_xp_message(self):
        assert format_xp_message(25, 1, 1) == "+25 XP"
        assert "Level up! Now Lv.2!" in format_xp_message(25, 1, 2)
        assert "Gained 3 levels" in format_xp_message(500, 1, 4)
