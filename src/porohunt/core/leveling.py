"""XP, levels and titles.

Trainers store cumulative XP only; level and title are always recomputed
from it so they can never drift out of step.
"""

from __future__ import annotations

import random

from porohunt.core.catalog import Rarity

# (required level, title), ascending
TITLES: list[tuple[int, str]] = [
    (1, "Poro Curious"),
    (3, "Snack Scout"),
    (5, "Fluff Wrangler"),
    (8, "Poro Handler"),
    (12, "Freljord Friend"),
    (16, "Whisker Watcher"),
    (20, "Poro Warden"),
    (25, "Legend of the Herd"),
]

# Inclusive gold ranges per rarity tier
GOLD_BY_RARITY: dict[str, tuple[int, int]] = {
    "common": (1, 7),
    "rare": (8, 16),
    "ultra_rare": (17, 50),
}

CATCH_XP_SUCCESS = 25
CATCH_XP_FAILURE = 5


def xp_for_next_level(level: int) -> int:
    """XP needed to advance from ``level`` to ``level + 1``.

    Linear curve: 100 at L1, +50 per level after that.
    """
    return 100 + (level - 1) * 50


def compute_level(total_xp: int) -> tuple[int, int]:
    """Level reached with ``total_xp`` cumulative XP.

    Returns (level, xp_into_level). Loops so a single large grant can
    cross several levels at once.
    """
    level = 1
    remaining = max(0, total_xp)
    needed = xp_for_next_level(level)
    while remaining >= needed:
        remaining -= needed
        level += 1
        needed = xp_for_next_level(level)
    return level, remaining


def unlocked_title(level: int) -> str:
    """Best title unlocked at ``level``."""
    best = TITLES[0][1]
    for required, title in TITLES:
        if level >= required:
            best = title
    return best


def catch_xp(success: bool, xp_bonus: int = 0) -> int:
    """XP for a catch attempt. Failing still progresses a little."""
    base = CATCH_XP_SUCCESS if success else CATCH_XP_FAILURE
    return base + max(0, xp_bonus)


def gold_for_rarity(rarity: Rarity | str, rng: random.Random | None = None) -> int:
    """Roll the gold reward for catching a poro of the given rarity."""
    rng = rng or random
    lo, hi = GOLD_BY_RARITY.get(rarity, GOLD_BY_RARITY["common"])
    return rng.randint(lo, hi)


def format_xp_message(xp_amount: int, old_level: int, new_level: int) -> str:
    """Format an XP gain line for display."""
    parts = [f"+{xp_amount} XP"]
    gained = new_level - old_level
    if gained == 1:
        parts.append(f"Level up! Now Lv.{new_level}!")
    elif gained > 1:
        parts.append(f"Gained {gained} levels! Now Lv.{new_level}!")
    return " | ".join(parts)
