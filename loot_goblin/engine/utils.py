"""
Helpers for building adventures, walking turn order, and console output.
"""

from collections import Counter

from loot_goblin.engine.definitions import Catalog
from loot_goblin.engine.events import AdventureEvent
from loot_goblin.engine.state import (
    PLAYERS,
    Adventure,
    Goblin,
    Roster,
    Settings,
    Started,
)


def create_adventure(
    players: list[str] | None = None,
    creator: str = "",
    save_slot: int = 0,
    num_rounds: int | None = None,
    rummage_fail_odds: int | None = None,
) -> Adventure:
    """
    Build a Preparing adventure with the given roster slots filled (default: just p1).
    The creator owns p1. Useful for scripts and tests; the reducer does the same via recruit_goblin.

    Example: create_adventure(["p1", "p3"], creator="alice", num_rounds=3)
    """
    adventure = Adventure.new(creator=creator, save_slot=save_slot)
    goblins = adventure.state.goblins
    settings = adventure.state.settings
    for player in players or ["p1"]:
        if player not in PLAYERS:
            raise ValueError(f"Unknown player: {player}")
        if goblins.get(player) is None:
            goblins.put(player, Goblin())
    if "p1" not in (players or ["p1"]):
        goblins.remove("p1")
        settings.goblin_owners.pop(creator, None)
    settings.goblin_order = goblins.players()
    if num_rounds is not None:
        settings.num_rounds = num_rounds
    if rummage_fail_odds is not None:
        settings.rummage_fail_odds = rummage_fail_odds
    return adventure


def next_player(settings: Settings, player: str) -> str:
    """The participant after player in turn order, wrapping last -> first."""
    order = settings.goblin_order
    return order[(order.index(player) + 1) % len(order)]


def turn_position(settings: Settings, player: str) -> int:
    """Ordinal of player in turn order; players outside the order sort after it, in roster order."""
    if player in settings.goblin_order:
        return settings.goblin_order.index(player)
    return len(settings.goblin_order) + PLAYERS.index(player)


def rank_goblins(goblins: Roster, settings: Settings) -> list[dict]:
    """
    Standings: most loot first, then most luck, then earlier in turn order.
    Returns [{ rank, player, loot, luck, greed, health, items, rarities }, ...].
    """
    players = sorted(
        goblins.players(),
        key=lambda p: (-len(goblins.get(p).loot), -goblins.get(p).luck, turn_position(settings, p)),
    )
    standings = []
    for rank, player in enumerate(players, start=1):
        goblin = goblins.get(player)
        standings.append({
            "rank": rank,
            "player": player,
            "loot": len(goblin.loot),
            "luck": goblin.luck,
            "greed": goblin.greed,
            "health": goblin.health,
            "items": list(goblin.items),
            "rarities": dict(Counter(l.rarity for l in goblin.loot)),
        })
    return standings


def print_adventure(adventure: Adventure, catalog: Catalog | None = None, verbose: bool = False):
    """
    Pretty-print the current adventure.

    Args:
        adventure: Adventure to show
        catalog: If given, resolve location/scenario indices to names
        verbose: If True, list each loot's rarity
    """
    state = adventure.state
    header = f"Adventure ({adventure.status})"
    if isinstance(state, Started):
        n = len(state.settings.goblin_order)
        header += (
            f" | Round {state.turn.nonce // n + 1}/{state.settings.num_rounds}"
            f" | Goblin: {state.turn.player} | Phase: {state.phase.kind}"
        )
    print(f"\n{'='*60}")
    print(header)
    print(f"{'='*60}")

    if isinstance(state, Started) and catalog is not None and state.phase.kind == "event":
        loc = catalog.location(state.phase.location)
        scen = catalog.scenario(state.phase.location, state.phase.scenario)
        print(f"\n{loc.name}: {scen.name}")

    for player in state.goblins.players():
        goblin = state.goblins.get(player)
        marker = "*" if isinstance(state, Started) and state.turn.player == player else " "
        print(
            f"{marker} {player}: hp={goblin.health} luck={goblin.luck} greed={goblin.greed} "
            f"loot={len(goblin.loot)} items={goblin.items or '-'}"
        )
        if verbose and goblin.loot:
            counts = Counter(l.rarity for l in goblin.loot)
            print("    " + ", ".join(f"{k}: {v}" for k, v in sorted(counts.items())))
    print()


def print_events(events: list[AdventureEvent]):
    for event in events:
        details = ", ".join(f"{k}={v}" for k, v in event.payload.items())
        print(f"  [{event.type}] {details}")
