"""
Action definitions for the adventure.
Actions are immutable, deterministic instructions. Randomness is not part of an action:
the reducer draws from the RandomSource it is handed.
"""

from dataclasses import dataclass, field
from typing import Any

# event_make_choice action indices
RISKY = 0
SAFE = 1


@dataclass
class Action:
    """Base action class. All actions have a type, player, and payload."""
    type: str  # e.g., "rummage_for_loot", "event_make_choice", "take_a_break"
    player: str  # participant (p1..p4) performing the action
    payload: dict = field(default_factory=dict)  # Action-specific data

    def to_dict(self) -> dict[str, Any]:
        return {"type": self.type, "player": self.player, "payload": dict(self.payload)}

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> "Action":
        return cls(type=data["type"], player=data["player"], payload=dict(data.get("payload") or {}))


# ===== Preparing =====

def recruit_goblin(player: str, target: str, owner: str | None = None) -> Action:
    """
    Recruit a fresh goblin into an empty roster slot.
    owner is the identity that controls the goblin (recorded in settings.goblin_owners).

    Example: recruit_goblin("p1", "p2", owner="user-42")
    """
    payload = {"target": target}
    if owner:
        payload["owner"] = owner
    return Action(type="recruit_goblin", player=player, payload=payload)


def dismiss_goblin(player: str, target: str) -> Action:
    """Empty a roster slot. The last goblin cannot be dismissed."""
    return Action(type="dismiss_goblin", player=player, payload={"target": target})


def update_settings(
    player: str,
    num_rounds: int | None = None,
    rummage_fail_odds: int | None = None,
) -> Action:
    """
    Change adventure settings before the start. Omitted fields stay as they are.
    num_rounds: 1..MAX_NUM_ROUNDS. rummage_fail_odds: 1-in-N chance a rummage is caught, 0 disables.
    """
    payload = {}
    if num_rounds is not None:
        payload["num_rounds"] = num_rounds
    if rummage_fail_odds is not None:
        payload["rummage_fail_odds"] = rummage_fail_odds
    return Action(type="update_settings", player=player, payload=payload)


def start_adventure(player: str) -> Action:
    """Fix turn order, seed starting greed, and enter the first camp."""
    return Action(type="start_adventure", player=player, payload={})


# ===== Camp =====

def rummage_for_loot(player: str) -> Action:
    """Rummage through the party sack. Once per camp visit."""
    return Action(type="rummage_for_loot", player=player, payload={})


def rummage_take_loot(player: str) -> Action:
    """Pocket the loot found while rummaging (greed +1)."""
    return Action(type="rummage_take_loot", player=player, payload={})


def rummage_leave_loot(player: str) -> Action:
    """Put the loot back (greed -1)."""
    return Action(type="rummage_leave_loot", player=player, payload={})


def bribe_hero(player: str, hero: str) -> Action:
    """
    Hand the most recent loot to a hero in exchange for an item.
    Once per camp visit; the goblin must carry at least one loot.

    Example: bribe_hero("p1", "wizard")
    """
    return Action(type="bribe_hero", player=player, payload={"hero": hero})


def bribe_take_item(player: str) -> Action:
    """Pocket the item a bribed hero handed over."""
    return Action(type="bribe_take_item", player=player, payload={})


def event_start(player: str) -> Action:
    """Leave camp and head into a random location and scenario."""
    return Action(type="event_start", player=player, payload={})


# ===== Event =====

def event_make_choice(player: str, choice: int) -> Action:
    """
    Pick one of the scenario's two actions: RISKY (0) or SAFE (1).
    The outcome is drawn immediately and the goblin's greed goes up by 1.
    """
    return Action(type="event_make_choice", player=player, payload={"choice": choice})


def event_handle_outcome(player: str) -> Action:
    """Accept the drawn outcome and apply its effect."""
    return Action(type="event_handle_outcome", player=player, payload={})


def keep_going(player: str) -> Action:
    """Press on to another location and scenario. Same goblin keeps the turn."""
    return Action(type="keep_going", player=player, payload={})


def take_a_break(player: str) -> Action:
    """Return to camp and pass the turn to the next goblin in turn order."""
    return Action(type="take_a_break", player=player, payload={})
