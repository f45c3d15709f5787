"""
Query functions for UI integration.
These functions help the UI understand what actions are available
without mutating adventure state.
"""

from dataclasses import dataclass
from typing import Any

from loot_goblin.engine.actions import Action
from loot_goblin.engine.definitions import Catalog
from loot_goblin.engine.errors import AdventureError
from loot_goblin.engine.reducer import PHASE_ALLOWED_ACTIONS, apply_action
from loot_goblin.engine.resolver import RandomSource, SeededRandom
from loot_goblin.engine.state import (
    MAX_LOOT,
    Adventure,
    CampPhase,
    EventPhase,
    Goblin,
    RummageFail,
    RummageSuccess,
    Started,
)
from loot_goblin.engine.utils import rank_goblins


@dataclass
class ValidationResult:
    """Result of action validation."""
    valid: bool
    error: str | None = None
    reason: str | None = None

    def to_dict(self) -> dict[str, Any]:
        return {"valid": self.valid, "error": self.error, "reason": self.reason}


# ===== Action Validation =====

def validate_action(adventure: Adventure, action: Action, catalog: Catalog) -> ValidationResult:
    """
    Validate an action without applying it.
    Runs the reducer against a throwaway random source; the adventure itself is never touched.
    """
    try:
        apply_action(adventure, action, catalog, SeededRandom(0))
    except AdventureError as e:
        return ValidationResult(False, e.message, e.reason)
    return ValidationResult(True)


def get_available_action_types(adventure: Adventure) -> list[str]:
    """Get action types that would currently succeed for the goblin holding the turn."""
    phase = adventure.phase_key
    allowed = list(PHASE_ALLOWED_ACTIONS.get(phase, []))
    state = adventure.state

    if phase == "preparing":
        if len(state.goblins) >= len(state.goblins.slots):
            allowed.remove("recruit_goblin")
        if len(state.goblins) <= 1:
            allowed.remove("dismiss_goblin")
        return allowed

    if phase == "camp":
        camp = state.phase
        goblin = state.goblins.get(state.turn.player)
        result = camp.rummage_result
        pending = isinstance(result, RummageSuccess) and result.took is None
        out = []
        if result is None:
            out.append("rummage_for_loot")
        if pending and len(goblin.loot) < MAX_LOOT:
            out.append("rummage_take_loot")
        if pending:
            out.append("rummage_leave_loot")
        if camp.bribe_result is None and goblin.loot:
            out.append("bribe_hero")
        if camp.bribe_result is not None and not camp.bribe_result.confirmed:
            out.append("bribe_take_item")
        out.append("event_start")
        return out

    if phase == "event":
        outcome = state.phase.outcome
        if outcome is None:
            return ["event_make_choice", "take_a_break"]
        if not outcome.accepted:
            return ["event_handle_outcome"]
        return ["keep_going", "take_a_break"]

    return allowed


def get_active_goblin(adventure: Adventure) -> tuple[str, Goblin] | None:
    """(player, goblin) holding the turn, or None when the adventure is not Started."""
    state = adventure.state
    if not isinstance(state, Started):
        return None
    return state.turn.player, state.goblins.get(state.turn.player)


def pick_dialog(catalog: Catalog, pool: str, rng: RandomSource) -> str:
    """
    Random flavor line from a dialog pool ("camp", "entering_camp", "loot_rummage", ...)
    or a location id. Returns "" for an unknown or empty pool.
    """
    if pool == "camp":
        lines = catalog.camp.dialog
    elif pool in catalog.dialog:
        lines = catalog.dialog[pool]
    else:
        lines = next((loc.dialog for loc in catalog.locations if loc.id == pool), [])
    if not lines:
        return ""
    return lines[rng.rand_index(len(lines))]


def get_camp_view(adventure: Adventure, catalog: Catalog) -> dict[str, Any] | None:
    """Camp text plus rummage/bribe status for the active goblin, or None when not in camp."""
    state = adventure.state
    if not isinstance(state, Started) or not isinstance(state.phase, CampPhase):
        return None
    camp = state.phase

    result = camp.rummage_result
    if result is None:
        rummage = {"status": "none"}
    elif isinstance(result, RummageFail):
        rummage = {"status": "fail"}
    else:
        rummage = {"status": "success", "rarity": result.loot.rarity, "took": result.took}

    bribe = camp.bribe_result.to_dict() if camp.bribe_result else None
    return {
        "player": state.turn.player,
        "name": catalog.camp.name,
        "description": catalog.camp.description,
        "images": list(catalog.camp.images),
        "rummage": rummage,
        "bribe": bribe,
        "heroes": dict(state.settings.heroes),
        "available_actions": get_available_action_types(adventure),
    }


def get_event_view(adventure: Adventure, catalog: Catalog) -> dict[str, Any] | None:
    """
    Resolve the current event's indices to catalog text: location/scenario names, the two
    action labels and, once drawn, the outcome with its effect description and is_good.
    Returns None when not in an event.
    """
    state = adventure.state
    if not isinstance(state, Started) or not isinstance(state.phase, EventPhase):
        return None
    event = state.phase
    location = catalog.location(event.location)
    scenario = catalog.scenario(event.location, event.scenario)

    view: dict[str, Any] = {
        "player": state.turn.player,
        "location": event.location,
        "location_id": location.id,
        "location_name": location.name,
        "location_description": location.description,
        "images": list(location.images),
        "scenario": event.scenario,
        "scenario_name": scenario.name,
        "scenario_description": scenario.description,
        "actions": [a.label for a in scenario.actions],
        "outcome": None,
        "available_actions": get_available_action_types(adventure),
    }
    if event.outcome is not None:
        outcome_def = scenario.actions[event.outcome.choice].outcomes[event.outcome.effect]
        effect_def = catalog.effect(outcome_def.effect)
        view["outcome"] = {
            "choice": event.outcome.choice,
            "effect_index": event.outcome.effect,
            "effect": outcome_def.effect,
            "description": outcome_def.description,
            "dialog": list(outcome_def.dialog),
            "effect_description": effect_def.description,
            "is_good": effect_def.is_good,
            "accepted": event.outcome.accepted,
        }
    return view


def get_standings(adventure: Adventure) -> list[dict[str, Any]]:
    """Rank goblins by loot count, then luck, then turn order."""
    return rank_goblins(adventure.state.goblins, adventure.state.settings)


def get_adventure_summary(adventure: Adventure) -> dict[str, Any]:
    """
    Get a summary of the current adventure for UI display.
    """
    state = adventure.state
    settings = state.settings
    summary: dict[str, Any] = {
        "status": adventure.status,
        "phase": adventure.phase_key,
        "creator": adventure.creator,
        "save_slot": adventure.save_slot,
        "num_rounds": settings.num_rounds,
        "goblin_order": list(settings.goblin_order),
        "goblin_count": len(state.goblins),
        "current_player": None,
        "round": None,
        "num_events": None,
        "standings": get_standings(adventure),
        "available_actions": get_available_action_types(adventure),
    }
    if isinstance(state, Started):
        summary["current_player"] = state.turn.player
        summary["round"] = state.turn.nonce // len(settings.goblin_order) + 1
        summary["num_events"] = state.turn.num_events
    return summary
