"""
Adventure events for UI hooks and logging.
Events describe what happened during action processing.
"""

from dataclasses import dataclass
from typing import Any


@dataclass
class AdventureEvent:
    """Base event class. All events have a type and payload."""
    type: str
    payload: dict[str, Any]

    def to_dict(self) -> dict[str, Any]:
        return {"type": self.type, "payload": self.payload}

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> "AdventureEvent":
        return cls(type=data["type"], payload=data["payload"])


# ===== Event Type Constants =====

# Roster/setup events
GOBLIN_RECRUITED = "goblin_recruited"
GOBLIN_DISMISSED = "goblin_dismissed"
SETTINGS_UPDATED = "settings_updated"
ADVENTURE_STARTED = "adventure_started"

# Phase/Turn events
TURN_STARTED = "turn_started"
PHASE_CHANGED = "phase_changed"

# Camp events
LOOT_RUMMAGED = "loot_rummaged"
RUMMAGE_FAILED = "rummage_failed"
LOOT_TAKEN = "loot_taken"
LOOT_LEFT = "loot_left"
HERO_BRIBED = "hero_bribed"
ITEM_TAKEN = "item_taken"

# Event phase events
EVENT_STARTED = "event_started"
CHOICE_MADE = "choice_made"
OUTCOME_APPLIED = "outcome_applied"
STAT_CHANGED = "stat_changed"
LOOT_GAINED = "loot_gained"
LOOT_LOST = "loot_lost"
LOOT_TRANSFERRED = "loot_transferred"

# End of adventure
ADVENTURE_COMPLETED = "adventure_completed"


# ===== Event Factory Functions =====

def goblin_recruited(player: str, owner: str | None) -> AdventureEvent:
    return AdventureEvent(GOBLIN_RECRUITED, {"player": player, "owner": owner})


def goblin_dismissed(player: str) -> AdventureEvent:
    return AdventureEvent(GOBLIN_DISMISSED, {"player": player})


def settings_updated(changes: dict[str, Any]) -> AdventureEvent:
    return AdventureEvent(SETTINGS_UPDATED, {"changes": changes})


def adventure_started(goblin_order: list[str], starting_greed: dict[str, int]) -> AdventureEvent:
    return AdventureEvent(ADVENTURE_STARTED, {
        "goblin_order": goblin_order,
        "starting_greed": starting_greed,  # player -> greed
    })


def turn_started(player: str, nonce: int, round_number: int) -> AdventureEvent:
    return AdventureEvent(TURN_STARTED, {
        "player": player,
        "nonce": nonce,
        "round": round_number,  # 1-based
    })


def phase_changed(old_phase: str, new_phase: str, player: str) -> AdventureEvent:
    return AdventureEvent(PHASE_CHANGED, {
        "old_phase": old_phase,
        "new_phase": new_phase,
        "player": player,
    })


def loot_rummaged(player: str, rarity: str) -> AdventureEvent:
    return AdventureEvent(LOOT_RUMMAGED, {"player": player, "rarity": rarity})


def rummage_failed(player: str) -> AdventureEvent:
    return AdventureEvent(RUMMAGE_FAILED, {"player": player})


def loot_taken(player: str, rarity: str, loot_count: int) -> AdventureEvent:
    return AdventureEvent(LOOT_TAKEN, {
        "player": player,
        "rarity": rarity,
        "loot_count": loot_count,
    })


def loot_left(player: str, rarity: str) -> AdventureEvent:
    return AdventureEvent(LOOT_LEFT, {"player": player, "rarity": rarity})


def hero_bribed(player: str, hero: str, rarity: str, got: str) -> AdventureEvent:
    """Emitted when a goblin hands loot to a hero; got is the item offered in return."""
    return AdventureEvent(HERO_BRIBED, {
        "player": player,
        "hero": hero,
        "rarity": rarity,
        "got": got,
    })


def item_taken(player: str, item: str, dropped: str | None) -> AdventureEvent:
    return AdventureEvent(ITEM_TAKEN, {
        "player": player,
        "item": item,
        "dropped": dropped,  # item evicted to make room, if any
    })


def event_started(player: str, location: int, scenario: int, location_id: str) -> AdventureEvent:
    return AdventureEvent(EVENT_STARTED, {
        "player": player,
        "location": location,
        "scenario": scenario,
        "location_id": location_id,
    })


def choice_made(player: str, choice: int, effect_index: int, effect: str) -> AdventureEvent:
    return AdventureEvent(CHOICE_MADE, {
        "player": player,
        "choice": choice,
        "effect_index": effect_index,
        "effect": effect,
    })


def outcome_applied(player: str, effect: str, is_good: bool) -> AdventureEvent:
    return AdventureEvent(OUTCOME_APPLIED, {
        "player": player,
        "effect": effect,
        "is_good": is_good,
    })


def stat_changed(player: str, stat: str, old_value: int, new_value: int, reason: str) -> AdventureEvent:
    return AdventureEvent(STAT_CHANGED, {
        "player": player,
        "stat": stat,
        "old_value": old_value,
        "new_value": new_value,
        "change": new_value - old_value,
        "reason": reason,
    })


def loot_gained(player: str, rarity: str, reason: str) -> AdventureEvent:
    return AdventureEvent(LOOT_GAINED, {"player": player, "rarity": rarity, "reason": reason})


def loot_lost(player: str, rarity: str, reason: str) -> AdventureEvent:
    return AdventureEvent(LOOT_LOST, {"player": player, "rarity": rarity, "reason": reason})


def loot_transferred(from_player: str, to_player: str, rarity: str) -> AdventureEvent:
    return AdventureEvent(LOOT_TRANSFERRED, {
        "from_player": from_player,
        "to_player": to_player,
        "rarity": rarity,
    })


def adventure_completed(rounds_played: int, standings: list[dict[str, Any]]) -> AdventureEvent:
    return AdventureEvent(ADVENTURE_COMPLETED, {
        "rounds_played": rounds_played,
        "standings": standings,
    })
