"""
Random sources and the draws made from them.
The reducer never touches a global generator: every draw goes through a RandomSource
handed in by the caller, so seeded and scripted sessions replay exactly.
"""

import random
from typing import Iterable, Protocol, Sequence

from loot_goblin.engine.definitions import ActionDefinition, Catalog
from loot_goblin.engine.state import ITEM_KINDS, RARITIES, Loot

WEIGHTED = "weighted"
UNIFORM = "uniform"
SAMPLING_MODES = (WEIGHTED, UNIFORM)


class RandomSource(Protocol):
    def rand_index(self, n: int) -> int:
        """Uniform index with 0 <= i < n. Raises ValueError for n <= 0."""
        ...


def _check_bound(n: int) -> None:
    if n <= 0:
        raise ValueError(f"rand_index bound must be positive, got {n}")


class SeededRandom:
    """random.Random behind the RandomSource interface. seed=None seeds from the OS."""

    def __init__(self, seed: int | None = None):
        self._rng = random.Random(seed)

    def rand_index(self, n: int) -> int:
        _check_bound(n)
        return self._rng.randrange(n)


class ScriptedRandom:
    """Replays a fixed sequence of indices, e.g. for tests and replays."""

    def __init__(self, values: Iterable[int]):
        self.values = list(values)
        self.position = 0

    @property
    def remaining(self) -> int:
        return len(self.values) - self.position

    def rand_index(self, n: int) -> int:
        _check_bound(n)
        if self.position >= len(self.values):
            raise IndexError(f"ScriptedRandom exhausted after {len(self.values)} draws")
        value = self.values[self.position]
        if not 0 <= value < n:
            raise ValueError(f"Scripted value {value} at position {self.position} is out of range for n={n}")
        self.position += 1
        return value


class RecordingRandom:
    """Wraps another source and records every draw (feed .draws to ScriptedRandom to replay)."""

    def __init__(self, inner: RandomSource):
        self.inner = inner
        self.draws: list[int] = []

    def rand_index(self, n: int) -> int:
        value = self.inner.rand_index(n)
        self.draws.append(value)
        return value


def select_weighted(weights: Sequence[int], rng: RandomSource) -> int:
    """
    Cumulative-weight selection: draw r in [0, sum(weights)) and pick the first
    index whose running total exceeds r. Zero-weight entries are never picked.
    All-zero weights fall back to a uniform draw.
    """
    total = sum(weights)
    if total <= 0:
        return rng.rand_index(len(weights))
    r = rng.rand_index(total)
    running = 0
    for i, w in enumerate(weights):
        running += w
        if r < running:
            return i
    # Unreachable while r < total
    return len(weights) - 1


def select_outcome(action: ActionDefinition, rng: RandomSource, mode: str | None = None) -> int:
    """Pick one of the action's outcome indices (weighted by default, see config.OUTCOME_SAMPLING)."""
    if mode is None:
        from loot_goblin.config import OUTCOME_SAMPLING
        mode = OUTCOME_SAMPLING
    if mode == WEIGHTED:
        return select_weighted(action.weights, rng)
    if mode == UNIFORM:
        return rng.rand_index(len(action.outcomes))
    raise ValueError(f"Unknown sampling mode: {mode!r}")


def draw_loot(rng: RandomSource) -> Loot:
    """One loot, rarity uniform over the five tiers."""
    return Loot(rarity=RARITIES[rng.rand_index(len(RARITIES))])


def draw_item(rng: RandomSource) -> str:
    return ITEM_KINDS[rng.rand_index(len(ITEM_KINDS))]


def draw_location_and_scenario(catalog: Catalog, rng: RandomSource) -> tuple[int, int]:
    """Uniform location, then uniform scenario within it."""
    location = rng.rand_index(len(catalog.locations))
    scenario = rng.rand_index(len(catalog.locations[location].scenarios))
    return location, scenario


def rummage_caught(fail_odds: int, rng: RandomSource) -> bool:
    """1-in-fail_odds chance of getting caught. No draw is made when fail_odds is 0."""
    if fail_odds <= 0:
        return False
    return rng.rand_index(fail_odds) == 0
