"""Poro catalog: static definitions loaded once from ``data/poros.json``.

The catalog is immutable at runtime. Spawns pick from it by weight and
every other component looks entries up by id.
"""

from __future__ import annotations

import json
import random
from dataclasses import asdict, dataclass
from functools import lru_cache
from pathlib import Path
from typing import Literal

from pydantic import BaseModel, ConfigDict, Field, model_validator

CATALOG_PATH = Path(__file__).resolve().parent.parent / "data" / "poros.json"

STAT_NAMES = ("size", "weight", "throw_distance", "fluffiness", "hunger")

Rarity = Literal["common", "rare", "ultra_rare"]


@dataclass(frozen=True)
class PoroStats:
    """Rolled per-instance attributes."""

    size: int
    weight: int
    throw_distance: int
    fluffiness: int
    hunger: int

    def as_dict(self) -> dict[str, int]:
        return asdict(self)


class StatRange(BaseModel):
    model_config = ConfigDict(frozen=True)

    min: int
    max: int


class StatRanges(BaseModel):
    model_config = ConfigDict(frozen=True)

    size: StatRange
    weight: StatRange
    throw_distance: StatRange
    fluffiness: StatRange
    hunger: StatRange


class FixedStats(BaseModel):
    model_config = ConfigDict(frozen=True)

    size: int
    weight: int
    throw_distance: int
    fluffiness: int
    hunger: int


class Poro(BaseModel):
    """A catalog entry."""

    model_config = ConfigDict(frozen=True)

    id: str = Field(min_length=1)
    name: str = Field(min_length=1)
    rarity: Rarity
    weight: float = Field(ge=0)
    base_catch: float = Field(ge=0, le=1)
    xp_bonus: int = Field(default=0, ge=0)
    stat_ranges: StatRanges | None = None
    fixed_stats: FixedStats | None = None

    @model_validator(mode="after")
    def _has_stats(self) -> Poro:
        if self.stat_ranges is None and self.fixed_stats is None:
            raise ValueError(f"poro {self.id} needs stat_ranges or fixed_stats")
        return self

    @property
    def rarity_label(self) -> str:
        return self.rarity.replace("_", " ").title()


class CatalogError(RuntimeError):
    """Raised when the catalog file is missing or malformed."""


def _read_catalog(path: Path) -> tuple[Poro, ...]:
    try:
        raw = json.loads(path.read_text(encoding="utf-8"))
    except (OSError, json.JSONDecodeError) as e:
        raise CatalogError(f"cannot read poro catalog {path}: {e}") from e

    if not isinstance(raw, list) or not raw:
        raise CatalogError("poro catalog must be a non-empty list")

    poros = tuple(Poro.model_validate(entry) for entry in raw)

    ids = [p.id for p in poros]
    if len(ids) != len(set(ids)):
        raise CatalogError("poro catalog has duplicate ids")

    return poros


@lru_cache
def load_catalog(path: Path = CATALOG_PATH) -> tuple[Poro, ...]:
    """Load and validate the catalog. Cached for the process lifetime."""
    return _read_catalog(path)


@lru_cache
def _catalog_index(path: Path = CATALOG_PATH) -> dict[str, Poro]:
    return {p.id: p for p in load_catalog(path)}


def get_poro(poro_id: str) -> Poro | None:
    """Look a poro up by id."""
    return _catalog_index().get(poro_id)


def weighted_pick(poros: tuple[Poro, ...] | list[Poro], rng: random.Random | None = None) -> Poro:
    """Pick a poro proportionally to its weight.

    When every weight is zero the pick is uniform.
    """
    rng = rng or random
    total = sum(p.weight for p in poros)
    if total <= 0:
        return rng.choice(list(poros))

    roll = rng.random() * total
    for poro in poros:
        roll -= poro.weight
        if roll < 0:
            return poro

    # Float rounding can leave roll at exactly 0 after the last entry
    return [p for p in poros if p.weight > 0][-1]


def pick_random_poro(rng: random.Random | None = None) -> Poro:
    """Pick a spawn from the loaded catalog."""
    return weighted_pick(load_catalog(), rng)


def _rand_between(rng, a: int, b: int) -> int:
    lo, hi = min(a, b), max(a, b)
    return rng.randint(lo, hi)


def roll_stats(poro: Poro, rng: random.Random | None = None) -> PoroStats:
    """Roll instance stats within the poro's ranges, or copy its fixed stats."""
    if poro.fixed_stats is not None:
        return PoroStats(**poro.fixed_stats.model_dump())

    rng = rng or random
    ranges = poro.stat_ranges
    return PoroStats(
        **{
            name: _rand_between(rng, getattr(ranges, name).min, getattr(ranges, name).max)
            for name in STAT_NAMES
        }
    )
