"""
Effect table: what an accepted event outcome does to the goblins.
Applied in place by the reducer, which is already working on a copy.
"""

from loot_goblin.engine.events import (
    AdventureEvent,
    loot_gained,
    loot_lost,
    loot_transferred,
    stat_changed,
)
from loot_goblin.engine.resolver import RandomSource, draw_loot
from loot_goblin.engine.state import MAX_LOOT, Goblin, Roster, Settings
from loot_goblin.engine.utils import next_player

GAIN_LOOT_EFFECTS = frozenset({"get_loot", "get_item", "steal_loot", "steal_item"})
LOSE_LOOT_EFFECTS = frozenset({"lose_loot", "lose_item", "item_got_stolen"})
NO_OP_EFFECTS = frozenset({"slap_fight", "ok"})

# effect -> (stat, delta)
STAT_EFFECTS = {
    "heal": ("health", 1),
    "boost_luck": ("luck", 1),
    "reduce_greed": ("greed", -2),
    "get_attacked": ("health", -1),
}


def change_stat(goblin: Goblin, player: str, stat: str, delta: int, reason: str) -> list[AdventureEvent]:
    """Add delta to a goblin stat, flooring at 0. Emits stat_changed only when the value moves."""
    old_value = getattr(goblin, stat)
    new_value = max(0, old_value + delta)
    setattr(goblin, stat, new_value)
    if new_value == old_value:
        return []
    return [stat_changed(player, stat, old_value, new_value, reason)]


def apply_effect(
    goblins: Roster,
    settings: Settings,
    player: str,
    effect: str,
    rng: RandomSource,
) -> list[AdventureEvent]:
    """
    Apply one effect to the active goblin (player).
    Loot gains are skipped, without drawing a rarity, when the goblin is at MAX_LOOT.
    loot_got_stolen moves the newest loot to the next goblin in turn order; it is lost
    when there is no other goblin or the recipient is full.
    """
    goblin = goblins.get(player)
    events: list[AdventureEvent] = []

    if effect in GAIN_LOOT_EFFECTS:
        if len(goblin.loot) < MAX_LOOT:
            loot = draw_loot(rng)
            goblin.loot.append(loot)
            events.append(loot_gained(player, loot.rarity, effect))

    elif effect in STAT_EFFECTS:
        stat, delta = STAT_EFFECTS[effect]
        events.extend(change_stat(goblin, player, stat, delta, effect))

    elif effect in LOSE_LOOT_EFFECTS:
        if goblin.loot:
            loot = goblin.loot.pop()
            events.append(loot_lost(player, loot.rarity, effect))

    elif effect == "loot_got_stolen":
        if goblin.loot:
            loot = goblin.loot.pop()
            recipient = next_player(settings, player)
            target = goblins.get(recipient)
            if recipient == player or target is None or len(target.loot) >= MAX_LOOT:
                events.append(loot_lost(player, loot.rarity, effect))
            else:
                target.loot.append(loot)
                events.append(loot_transferred(player, recipient, loot.rarity))

    elif effect in NO_OP_EFFECTS:
        pass

    else:
        raise ValueError(f"Unknown effect: {effect!r}")

    return events
